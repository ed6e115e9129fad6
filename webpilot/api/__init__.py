"""API module - FastAPI application exposing the agent over HTTP."""

from .main import create_app

__all__ = ["create_app"]
