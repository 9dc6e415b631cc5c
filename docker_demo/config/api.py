"""API server configuration."""

from pydantic import Field
from pydantic_settings import BaseSettings


class APIConfig(BaseSettings):
    """HTTP server settings."""

    api_host: str = Field(default="0.0.0.0", alias="api_host")
    api_port: int = Field(default=8080, ge=1, le=65535, alias="api_port")
    api_debug: bool = Field(default=False, alias="api_debug")
    enable_docs: bool = Field(default=True, alias="enable_docs")

    class Config:
        env_prefix = ""
        extra = "ignore"
