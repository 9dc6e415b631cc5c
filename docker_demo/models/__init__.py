"""Data models for the FastAPI Docker demo."""

from .container import (
    SIGKILL_EXIT_CODE,
    ContainerHandle,
    ContainerSpec,
    FileSystemBind,
    StopOutcome,
    StopResult,
)
from .errors import (
    ErrorType,
    ErrorResponse,
    DockerDemoException,
    ContainerStartError,
    ReadinessTimeoutError,
    ContainerStopError,
    CoverageArtifactError,
)

__all__ = [
    # Container models
    "SIGKILL_EXIT_CODE",
    "ContainerHandle",
    "ContainerSpec",
    "FileSystemBind",
    "StopOutcome",
    "StopResult",
    # Error models
    "ErrorType",
    "ErrorResponse",
    "DockerDemoException",
    "ContainerStartError",
    "ReadinessTimeoutError",
    "ContainerStopError",
    "CoverageArtifactError",
]
