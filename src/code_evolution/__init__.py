"""code-evolution: heuristic code-improvement suggestions for GitHub repositories."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("code-evolution")
except PackageNotFoundError:
    __version__ = "0.1.0"

__all__ = ["__version__"]
