"""
fibserve - exact Fibonacci terms over HTTP
"""

from fibserve.version import __version__

__all__ = ["__version__"]
