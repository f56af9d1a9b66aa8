"""HTTP surface — FastAPI application and routes."""

from ctrain.server.app import create_app

__all__ = ["create_app"]
