"""
This module defines all fibserve features using a unified registry system.
The CLI and the HTTP API both dispatch through it.
"""

from typing import (
    Dict,
    Any,
    Callable,
    Optional,
    TypeVar,
    Generic,
)
from dataclasses import dataclass
from datetime import datetime, timezone
import logging

from fibserve.config import get_settings
from fibserve.error_msg import FibServeException
from fibserve.log_config import VERBOSE_LEVEL
from fibserve.sequence import FibonacciResult, compute_for_index, compute_for_path

logger = logging.getLogger("fibserve.features")

T = TypeVar("T")


class OperationResult(Generic[T]):
    """Wrapper for operation results with success/error handling"""

    def __init__(
        self, success: bool, data: Optional[T] = None, error: Optional[str] = None
    ):
        self.success = success
        self.data = data
        self.error = error

    @classmethod
    def ok(cls, data: Optional[T] = None) -> "OperationResult[T]":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> "OperationResult[T]":
        return cls(success=False, error=error)


@dataclass
class Feature:
    """Base class for all fibserve features"""

    name: str
    description: str
    handler: Callable
    cli_options: Optional[Dict[str, Any]] = None
    api_endpoint: Optional[Dict[str, Any]] = None


class FeatureRegistry:
    """Registry for all fibserve features"""

    _features: Dict[str, Feature] = {}

    @classmethod
    def register(cls, feature: Feature) -> Feature:
        """Register a new feature"""
        cls._features[feature.name] = feature
        return feature

    @classmethod
    def get_feature(cls, name: str) -> Optional[Feature]:
        """Get a feature by name"""
        return cls._features.get(name)

    @classmethod
    def get_all_features(cls) -> Dict[str, Feature]:
        """Get all registered features"""
        return cls._features.copy()


# ----------------- Feature Handlers -----------------


def utc_timestamp() -> str:
    """RFC 3339 timestamp in UTC"""
    return datetime.now(timezone.utc).isoformat()


def result_payload(result: FibonacciResult) -> Dict[str, Any]:
    return {
        "n": result.n,
        "fibonacci": result.decimal,
        "timestamp": utc_timestamp(),
    }


def handle_version(**kwargs) -> OperationResult[Dict[str, str]]:
    """Handle version request"""
    from fibserve.version import get_version

    return OperationResult[Dict[str, str]](
        success=True, data={"version": get_version()}
    )


def handle_fibonacci(
    path: Optional[str] = None,
    n: Optional[int] = None,
    ceiling: Optional[int] = None,
    **kwargs,
) -> OperationResult[Dict[str, Any]]:
    """
    Compute a Fibonacci term either from a request path or from an explicit index.

    Exactly one of ``path`` and ``n`` must be given. Paths that do not name an
    index resolve to index 0; explicit indices must be non-negative. The
    result is clamped to ``ceiling`` (the configured ceiling when omitted).
    """
    if (path is None) == (n is None):
        return OperationResult.fail(
            "Exactly one of path or n must be provided"
        )
    if n is not None and n < 0:
        return OperationResult.fail(
            f"Index must be non-negative, got {n}"
        )

    try:
        if ceiling is None:
            ceiling = get_settings().ceiling
        if ceiling < 0:
            return OperationResult.fail(
                f"Ceiling must be non-negative, got {ceiling}"
            )

        if path is not None:
            result = compute_for_path(path, ceiling)
        else:
            result = compute_for_index(n, ceiling)

        logger.log(VERBOSE_LEVEL, "F(%d) computed (%d digits)", result.n, len(result.decimal))
        return OperationResult.ok(result_payload(result))
    except FibServeException as e:
        return OperationResult.fail(f"Invalid configuration: {e.msg}")
    except Exception as e:
        return OperationResult.fail(f"Unexpected error: {str(e)}")


# Register all features
version_feature = FeatureRegistry.register(
    Feature(
        name="version",
        description="Get the fibserve version",
        handler=handle_version,
        api_endpoint={
            "path": "/version",
            "methods": ["GET"],
            "response_model": Dict[str, str],
        },
    )
)

fibonacci_feature = FeatureRegistry.register(
    Feature(
        name="fibonacci",
        description="Compute the exact n-th Fibonacci number, clamped to the ceiling",
        handler=handle_fibonacci,
        cli_options={
            "n": {
                "type": int,
                "required": True,
                "help": "Position in the Fibonacci sequence",
            },
            "ceiling": {
                "type": int,
                "required": False,
                "help": "Largest index that will be computed",
            },
        },
        api_endpoint={
            "path": "/api/fib/{n}",
            "methods": ["GET", "POST"],
            "response_model": Dict[str, Any],
        },
    )
)
