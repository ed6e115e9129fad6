"""API route modules."""

from . import agent

__all__ = ["agent"]
