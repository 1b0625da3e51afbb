"""Web surface of the asset viewer."""

from .server import create_app

__all__ = ["create_app"]
