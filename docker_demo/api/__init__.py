"""API endpoints for the FastAPI Docker demo."""

from . import health, ping

__all__ = ["health", "ping"]
