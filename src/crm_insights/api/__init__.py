"""FastAPI application exposing the chat assistant and dashboard data."""

from .app import create_app

__all__ = ["create_app"]
