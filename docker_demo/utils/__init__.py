"""Utility modules for the FastAPI Docker demo."""

from .logging import setup_logging, get_logger
from .request_helpers import generate_request_id, get_client_ip

__all__ = [
    "setup_logging",
    "get_logger",
    "generate_request_id",
    "get_client_ip",
]
