"""FastAPI Docker demo: a layered service image and containerized coverage."""

__version__ = "1.0.0"
