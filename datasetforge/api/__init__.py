"""HTTP API for the generation wizard."""

from .app import create_app

__all__ = ["create_app"]
