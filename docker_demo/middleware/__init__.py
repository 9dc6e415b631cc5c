"""ASGI middleware for the FastAPI Docker demo."""

from .logging import RequestLoggingMiddleware

__all__ = ["RequestLoggingMiddleware"]
