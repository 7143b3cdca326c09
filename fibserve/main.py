"""
fibserve Main module - CLI and HTTP API
"""

import json
import logging
from typing import Any, Dict, Optional

import typer
import uvicorn
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.routing import APIRouter
from pydantic import BaseModel

from fibserve.config import Settings, get_settings, set_settings
from fibserve.error_msg import FibServeException
from fibserve.features import FeatureRegistry, OperationResult
from fibserve.log_config import setup_logging
from fibserve.version import get_version

# Module-level logger
logger = logging.getLogger("fibserve.main")

CORS_ALLOW_METHODS = ["GET", "POST", "OPTIONS"]
CORS_ALLOW_HEADERS = ["Content-Type"]

# Sent on every computed response, not only on cross-origin ones
CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": ", ".join(CORS_ALLOW_METHODS),
    "Access-Control-Allow-Headers": ", ".join(CORS_ALLOW_HEADERS),
}


class ErrorResponse(BaseModel):
    """Standard error response model"""

    detail: str


class FibonacciResponse(BaseModel):
    """Computed term for a clamped index"""

    n: int
    fibonacci: str
    timestamp: str


# Create CLI app with Typer
app = typer.Typer(
    name="fibserve",
    help="fibserve - exact Fibonacci numbers over HTTP",
    add_completion=False,
)

# Create FastAPI app for API server
api_app = FastAPI(
    title="fibserve API",
    description="Exact Fibonacci numbers for /api/fib/<n>, clamped to a configured ceiling",
    version=get_version(),
    # Every path belongs to the catch-all route below
    docs_url=None,
    redoc_url=None,
    openapi_url=None,
)

# Add CORS middleware
api_app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=CORS_ALLOW_METHODS,
    allow_headers=CORS_ALLOW_HEADERS,
)

# API router for versioned endpoints
api_router = APIRouter(prefix="/api/v1")


# ----------------- Helper Functions -----------------


def _feature_or_exit(feature_name: str):
    feature = FeatureRegistry.get_feature(feature_name)
    if not feature:
        logger.error("Unknown feature: %s", feature_name)
        raise typer.Exit(code=1)
    return feature


def _handle_cli_result(feature_name: str, result: OperationResult) -> Any:
    """Return the result data, or exit with code 1 on failure"""
    if not result.success:
        logger.error("%s failed: %s", feature_name, result.error or "Unknown error")
        raise typer.Exit(code=1)
    return result.data


def _resolve_settings(**overrides: Any) -> Settings:
    try:
        return get_settings().with_overrides(**overrides)
    except FibServeException as e:
        logger.error("Invalid configuration: %s", e.msg)
        raise typer.Exit(code=1) from e


def _run_feature(feature_name: str, **kwargs: Any) -> Dict[str, Any]:
    feature = _feature_or_exit(feature_name)
    try:
        result = feature.handler(**kwargs)
    except Exception as e:
        logger.exception("Unexpected error")
        raise typer.Exit(code=1) from e
    return _handle_cli_result(feature_name, result)


def _raw_request_path(request: Request) -> str:
    """The path as sent on the wire, without percent-decoding or the query string"""
    raw_path = request.scope.get("raw_path")
    if not raw_path:
        return request.url.path
    return raw_path.split(b"?", 1)[0].decode("latin-1")


def _configured_ceiling() -> int:
    try:
        return get_settings().ceiling
    except FibServeException as e:
        logger.error("Invalid configuration: %s", e.msg)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error",
        ) from e


def _api_result(feature_name: str, **kwargs: Any) -> Any:
    """Run a feature for an HTTP endpoint, mapping failures to HTTP errors"""
    try:
        feature = FeatureRegistry.get_feature(feature_name)
        if not feature:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"{feature_name.capitalize()} feature not found",
            )
        result = feature.handler(**kwargs)
        if hasattr(result, "success"):
            if not result.success:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=result.error or "An error occurred",
                )
            return result.data
        return result
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error in %s endpoint: %s", feature_name, str(e), exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error",
        ) from e


# ----------------- CLI Commands -----------------


@app.command()
def version() -> None:
    """Show the fibserve version"""
    setup_logging(False)
    data = _run_feature("version")
    logger.info("fibserve version: %s", data.get("version", "unknown"))


@app.command()
def compute(
    n: int = typer.Argument(..., help="Position in the Fibonacci sequence"),
    ceiling: Optional[int] = typer.Option(
        None, help="Largest index that will be computed (default: FIBSERVE_CEILING or 1000)"
    ),
    json_output: bool = typer.Option(
        False, "--json", help="Print the full JSON payload instead of the bare number"
    ),
    debug: bool = typer.Option(False, "--debug", help="Enable debug mode"),
    verbose: bool = typer.Option(False, "--verbose", help="Enable verbose logging (between info and debug)"),
) -> None:
    """Compute the n-th Fibonacci number"""
    setup_logging(debug, verbose)
    settings = _resolve_settings(ceiling=ceiling)

    data = _run_feature("fibonacci", n=n, ceiling=settings.ceiling)
    if json_output:
        print(json.dumps(data))
    else:
        print(data["fibonacci"])


@app.command()
def resolve(
    path: str = typer.Argument(..., help="Request path, e.g. /api/fib/42"),
    ceiling: Optional[int] = typer.Option(
        None, help="Largest index that will be computed (default: FIBSERVE_CEILING or 1000)"
    ),
    debug: bool = typer.Option(False, "--debug", help="Enable debug mode"),
) -> None:
    """Print the JSON payload the API would return for a request path"""
    setup_logging(debug)
    settings = _resolve_settings(ceiling=ceiling)

    data = _run_feature("fibonacci", path=path, ceiling=settings.ceiling)
    print(json.dumps(data))


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, help="Host to bind the API server (default: FIBSERVE_HOST or 127.0.0.1)"),
    port: Optional[int] = typer.Option(None, help="Port to bind the API server (default: FIBSERVE_PORT or 8000)"),
    ceiling: Optional[int] = typer.Option(None, help="Largest index that will be computed"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug mode"),
):
    """Start the fibserve API server"""
    setup_logging(debug)
    settings = _resolve_settings(host=host, port=port, ceiling=ceiling)
    set_settings(settings)

    logger.info(
        f"Starting fibserve API server version {get_version()} on {settings.host}:{settings.port}"
    )
    logger.info(f"Serving F(n) for n <= {settings.ceiling} at http://{settings.host}:{settings.port}/api/fib/<n>")

    uvicorn.run(api_app, host=settings.host, port=settings.port, log_config=None)


# ----------------- API Endpoints -----------------


@api_router.get("/version")
async def get_version_endpoint():
    """Get fibserve version"""
    return _api_result("version")


# Include the router before the catch-all route so it takes precedence
api_app.include_router(api_router)


@api_app.api_route(
    "/{full_path:path}",
    methods=CORS_ALLOW_METHODS,
    response_model=FibonacciResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def fibonacci_endpoint(request: Request, full_path: str):
    """
    Compute F(n) for ``/api/fib/<n>``.

    Every other path is answered as if index 0 had been requested.
    """
    data = _api_result(
        "fibonacci", path=_raw_request_path(request), ceiling=_configured_ceiling()
    )
    body = FibonacciResponse(**data)
    return JSONResponse(content=body.model_dump(), headers=CORS_HEADERS)


if __name__ == "__main__":
    app()
