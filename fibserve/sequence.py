"""
Fibonacci sequence core: index extraction from request paths and the
arbitrary-precision accumulator.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger("fibserve.sequence")

ROUTE_PREFIX = ("api", "fib")

# Largest index a path may name; larger values are treated as unparseable.
MAX_INDEX = 2**64 - 1

# Returned by extract_index whenever the path does not name an index.
# Indistinguishable from an explicit request for F(0).
DEFAULT_INDEX = 0


def parse_index(path: str) -> Optional[int]:
    """Parse ``/api/fib/<n>`` into ``n``; ``None`` when the path does not match."""
    parts = path.strip("/").split("/")
    if len(parts) < 3 or tuple(parts[:2]) != ROUTE_PREFIX:
        return None

    segment = parts[2]
    # Optional single "+", then ASCII decimal digits; no "-" or whitespace
    digits = segment[1:] if segment.startswith("+") else segment
    if not (digits.isascii() and digits.isdecimal()):
        return None
    significant = digits.lstrip("0") or "0"
    if len(significant) > len(str(MAX_INDEX)):
        return None
    n = int(significant)
    if n > MAX_INDEX:
        return None
    logger.debug("Found number in /api/fib/:number: %d", n)
    return n


def extract_index(path: str) -> int:
    """
    Recover the requested index from a request path.

    Any path that is not of the form ``/api/fib/<non-negative integer>``
    (leading and trailing slashes tolerated) yields ``DEFAULT_INDEX``.
    Never raises.
    """
    n = parse_index(path)
    return DEFAULT_INDEX if n is None else n


def clamp_index(n: int, ceiling: int) -> int:
    return min(n, ceiling)


def fibonacci(n: int) -> int:
    """
    Compute the n-th Fibonacci number, F(0) = 0 and F(1) = 1.

    Args:
        n: index already clamped by the caller

    Returns:
        The exact term as a Python integer
    """
    if n == 0:
        return 0
    if n == 1:
        return 1

    a, b = 0, 1
    for _ in range(2, n + 1):
        a, b = b, a + b

    return b


@dataclass(frozen=True)
class FibonacciResult:
    """A clamped index together with its sequence term"""

    n: int
    value: int

    @property
    def decimal(self) -> str:
        return str(self.value)


def compute_for_index(n: int, ceiling: int) -> FibonacciResult:
    clamped = clamp_index(n, ceiling)
    return FibonacciResult(n=clamped, value=fibonacci(clamped))


def compute_for_path(path: str, ceiling: int) -> FibonacciResult:
    """Run the full pipeline: extract, clamp to ``ceiling``, accumulate."""
    return compute_for_index(extract_index(path), ceiling)
