"""Runtime configuration for the fibserve API and CLI."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Mapping
import os

from fibserve.error_msg import FibServeException, fail

CEILING_ENV = "FIBSERVE_CEILING"
HOST_ENV = "FIBSERVE_HOST"
PORT_ENV = "FIBSERVE_PORT"

DEFAULT_CEILING = 1000
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8000


def _int_from_env(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError as e:
        raise FibServeException(f"{name} must be an integer, got {raw!r}") from e


@dataclass(frozen=True)
class Settings:
    """Process-wide settings. The ceiling bounds every index passed to the accumulator."""

    ceiling: int = DEFAULT_CEILING
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT

    def __post_init__(self) -> None:
        if self.ceiling < 0:
            fail(f"Ceiling must be non-negative, got {self.ceiling}")

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "Settings":
        env = os.environ if env is None else env
        return cls(
            ceiling=_int_from_env(env, CEILING_ENV, DEFAULT_CEILING),
            host=env.get(HOST_ENV) or DEFAULT_HOST,
            port=_int_from_env(env, PORT_ENV, DEFAULT_PORT),
        )

    def with_overrides(self, **overrides: object) -> "Settings":
        """Return a copy with every non-None override applied."""
        changes = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **changes) if changes else self


_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def set_settings(settings: Settings | None) -> None:
    """Install settings for the running app; ``None`` re-reads the environment on next use."""
    global _settings
    _settings = settings
