"""Logging configuration."""

from pydantic import Field
from pydantic_settings import BaseSettings


class LoggingConfig(BaseSettings):
    """structlog output settings."""

    log_level: str = Field(default="INFO", alias="log_level")
    log_format: str = Field(default="json", alias="log_format")
    enable_access_logs: bool = Field(default=True, alias="enable_access_logs")

    class Config:
        env_prefix = ""
        extra = "ignore"
