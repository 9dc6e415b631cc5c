"""Error models and exception classes for the FastAPI Docker demo."""

import time
from typing import Optional
from pydantic import BaseModel, Field
from enum import Enum


class ErrorType(str, Enum):
    """Error type enumeration."""

    VALIDATION = "validation"
    RESOURCE_NOT_FOUND = "resource_not_found"
    INTERNAL_SERVER = "internal_server"
    SERVICE_UNAVAILABLE = "service_unavailable"
    TIMEOUT = "timeout"
    CONTAINER_START = "container_start"
    CONTAINER_STOP = "container_stop"
    COVERAGE_ARTIFACT = "coverage_artifact"


class ErrorResponse(BaseModel):
    """Standardized error response model."""

    error: str = Field(..., description="Main error message")
    error_type: ErrorType = Field(..., description="Error category")
    request_id: Optional[str] = Field(
        None, description="Request identifier for tracking"
    )
    timestamp: float = Field(default_factory=time.time, description="Error timestamp")

    class Config:
        use_enum_values = True


# Custom Exception Classes


class DockerDemoException(Exception):
    """Base exception for the container harness."""

    def __init__(self, message: str, error_type: ErrorType = ErrorType.INTERNAL_SERVER):
        self.message = message
        self.error_type = error_type
        super().__init__(message)


class ContainerStartError(DockerDemoException):
    """The image could not be started, or the container died before it was ready."""

    def __init__(self, image: str, message: str = None):
        self.image = image
        super().__init__(
            message=message or f"Failed to start container from image {image}",
            error_type=ErrorType.CONTAINER_START,
        )


class ReadinessTimeoutError(DockerDemoException):
    """The container never accepted connections within the readiness timeout."""

    def __init__(self, target: str, elapsed: float, timeout: float):
        self.target = target
        self.elapsed = elapsed
        self.timeout = timeout
        super().__init__(
            message=(
                f"{target} not ready after waiting {elapsed:.1f}s "
                f"(timeout {timeout:.1f}s)"
            ),
            error_type=ErrorType.TIMEOUT,
        )


class ContainerStopError(DockerDemoException):
    """The container runtime could not be reached to stop a container."""

    def __init__(self, container_id: str, message: str = None):
        self.container_id = container_id
        super().__init__(
            message=message or f"Failed to stop container {container_id[:12]}",
            error_type=ErrorType.CONTAINER_STOP,
        )


class CoverageArtifactError(DockerDemoException):
    """The coverage data file is missing, empty or unreadable."""

    def __init__(self, path: str, message: str = None):
        self.path = path
        super().__init__(
            message=message or f"Invalid coverage artifact: {path}",
            error_type=ErrorType.COVERAGE_ARTIFACT,
        )
