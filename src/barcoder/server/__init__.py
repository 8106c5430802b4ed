"""ASGI application factory and dependencies for the Barcoder server."""

from barcoder.server.app import create_app

__all__ = ["create_app"]
