"""Configuration management for the FastAPI Docker demo.

This module provides a unified Settings class with flat fields read from
the environment, organized into logical groups.

Usage:
    from docker_demo.config import settings

    # Access grouped settings
    settings.api.api_port
    settings.container.stop_grace_period_seconds

    # Or use flat access
    settings.api_port
    settings.stop_grace_period_seconds
"""

from pathlib import Path
from typing import Optional

from pydantic import Field, validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Import grouped configurations
from .api import APIConfig
from .container import ContainerConfig
from .logging import LoggingConfig


class Settings(BaseSettings):
    """Application settings with environment variable support.

    This class provides both:
    1. Grouped access via nested configs (settings.container.image_name)
    2. Flat access (settings.image_name)
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # API Configuration
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=8080, ge=1, le=65535)
    api_debug: bool = Field(default=False)
    enable_docs: bool = Field(default=True)

    # Image and container Configuration
    image_name: str = Field(
        default="fastapi-docker-demo:latest",
        description="Image reference the harness launches",
    )
    container_port: int = Field(
        default=8080,
        ge=1,
        le=65535,
        description="Port the service listens on inside the container",
    )
    pull_missing_images: bool = Field(
        default=False,
        description="Pull the image when it is not present locally",
    )

    # Readiness Configuration
    readiness_timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        le=600,
        description="Maximum time to wait for the service port to accept connections",
    )
    readiness_poll_interval_seconds: float = Field(
        default=0.5,
        gt=0,
        le=10,
        description="Delay between readiness probes",
    )

    # Stop Configuration
    stop_grace_period_seconds: int = Field(
        default=10,
        ge=0,
        le=300,
        description=(
            "Seconds a stop request waits for a clean exit before the runtime "
            "kills the container. Must cover the coverage agent's flush time."
        ),
    )
    remove_after_stop: bool = Field(
        default=True, description="Remove containers once they are stopped"
    )

    # Coverage Configuration
    coverage_agent_dir: str = Field(
        default="./coverage-agent",
        description="Host directory holding the coverage agent configuration",
    )
    coverage_report_dir: str = Field(
        default="./coverage-report",
        description="Host directory the coverage data file is written to",
    )
    coverage_data_file: str = Field(default=".coverage")
    container_agent_dir: str = Field(default="/coverage-agent")
    container_report_dir: str = Field(default="/coverage-report")

    # Logging Configuration
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")
    enable_access_logs: bool = Field(default=True)

    # ========================================================================
    # VALIDATORS
    # ========================================================================

    @validator("log_level")
    def validate_log_level(cls, v):
        """Normalize and check the log level name."""
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @validator("log_format")
    def validate_log_format(cls, v):
        """Only json and console renderers are supported."""
        fmt = v.lower()
        if fmt not in {"json", "console"}:
            raise ValueError("log_format must be 'json' or 'console'")
        return fmt

    @validator("container_agent_dir", "container_report_dir")
    def validate_container_path(cls, v):
        """Container-side bind targets must be absolute."""
        if not v.startswith("/"):
            raise ValueError(f"Container path must be absolute: {v}")
        return v

    # ========================================================================
    # GROUPED CONFIG ACCESS
    # ========================================================================

    @property
    def api(self) -> APIConfig:
        """Access API configuration group."""
        return APIConfig(
            api_host=self.api_host,
            api_port=self.api_port,
            api_debug=self.api_debug,
            enable_docs=self.enable_docs,
        )

    @property
    def container(self) -> ContainerConfig:
        """Access container harness configuration group."""
        return ContainerConfig(
            image_name=self.image_name,
            container_port=self.container_port,
            pull_missing_images=self.pull_missing_images,
            readiness_timeout_seconds=self.readiness_timeout_seconds,
            readiness_poll_interval_seconds=self.readiness_poll_interval_seconds,
            stop_grace_period_seconds=self.stop_grace_period_seconds,
            remove_after_stop=self.remove_after_stop,
            coverage_agent_dir=self.coverage_agent_dir,
            coverage_report_dir=self.coverage_report_dir,
            coverage_data_file=self.coverage_data_file,
            container_agent_dir=self.container_agent_dir,
            container_report_dir=self.container_report_dir,
        )

    @property
    def logging(self) -> LoggingConfig:
        """Access logging configuration group."""
        return LoggingConfig(
            log_level=self.log_level,
            log_format=self.log_format,
            enable_access_logs=self.enable_access_logs,
        )

    # ========================================================================
    # HELPER METHODS
    # ========================================================================

    def get_artifact_path(self) -> Path:
        """Host path of the coverage artifact."""
        return self.container.get_artifact_path()

    def get_rcfile_path(self) -> Optional[Path]:
        """Host path of the coverage rc file, if it exists."""
        path = Path(self.coverage_agent_dir).resolve() / ".coveragerc"
        return path if path.exists() else None


# Global settings instance
settings = Settings()

__all__ = [
    "Settings",
    "settings",
    # Grouped configs
    "APIConfig",
    "ContainerConfig",
    "LoggingConfig",
]
