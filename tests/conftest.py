"""pytest configuration and fixtures for fibserve tests"""

from __future__ import annotations

import os
import socket
import subprocess
import sys
import time
from pathlib import Path
from typing import Generator, Optional

import pytest
import requests
from fastapi.testclient import TestClient

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from fibserve.config import Settings, set_settings
from fibserve.main import api_app


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "unit: fast tests of a single module")
    config.addinivalue_line("markers", "integration: tests that exercise the HTTP or CLI surface")


def fib_reference(count: int) -> list[int]:
    """First ``count`` Fibonacci terms, built independently of fibserve."""
    terms = [0, 1]
    while len(terms) < count:
        terms.append(terms[-1] + terms[-2])
    return terms[:count]


@pytest.fixture(scope="session")
def fib_table() -> list[int]:
    return fib_reference(1001)


@pytest.fixture(autouse=True)
def _default_settings() -> Generator[None, None, None]:
    """Every test starts from the default ceiling, regardless of the environment."""
    set_settings(Settings())
    yield
    set_settings(None)


@pytest.fixture(scope="function")
def api_client() -> TestClient:
    """Create a test client for the API."""
    return TestClient(api_app)


def _free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


class TestServer:
    """Context manager for managing a test server process."""

    __test__ = False

    def __init__(self, host: str = "127.0.0.1", port: Optional[int] = None):
        self.host = host
        self.port = port or _free_port()
        self.process: Optional[subprocess.Popen] = None
        self.base_url = f"http://{self.host}:{self.port}"

    def start(self) -> None:
        """Start the test server."""
        if self.process is not None:
            return

        cmd = [sys.executable, "-m", "fibserve.main", "serve", "--host", self.host, "--port", str(self.port)]

        env = os.environ.copy()
        env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(REPO_ROOT), env.get("PYTHONPATH")]))
        self.process = subprocess.Popen(
            cmd,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            env=env,
        )

        # Wait for the server to start
        max_attempts = 40
        for _ in range(max_attempts):
            try:
                response = requests.get(f"{self.base_url}/api/v1/version", timeout=1)
                if response.status_code == 200:
                    return
            except requests.RequestException:
                time.sleep(0.25)

        self.stop()
        raise RuntimeError("Failed to start test server")

    def stop(self) -> None:
        """Stop the test server."""
        if self.process is not None:
            self.process.terminate()
            try:
                self.process.wait(timeout=5)
            except subprocess.TimeoutExpired:
                self.process.kill()
            self.process = None

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()


@pytest.fixture(scope="function")
def test_server_process() -> Generator[TestServer, None, None]:
    """Fixture that provides a running test server."""
    server = TestServer()
    try:
        server.start()
        yield server
    finally:
        server.stop()
