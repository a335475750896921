"""Web interface for the Passerelles backend."""

from .server import create_app

__all__ = ["create_app"]
