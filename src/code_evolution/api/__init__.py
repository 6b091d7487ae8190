"""HTTP API for code-evolution."""

from code_evolution.api.app import create_app

__all__ = ["create_app"]
