"""Container harness configuration."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings


class ContainerConfig(BaseSettings):
    """Settings for launching, probing and stopping the service container."""

    image_name: str = Field(default="fastapi-docker-demo:latest", alias="image_name")
    container_port: int = Field(default=8080, ge=1, le=65535, alias="container_port")
    pull_missing_images: bool = Field(default=False, alias="pull_missing_images")

    readiness_timeout_seconds: float = Field(
        default=60.0, gt=0, le=600, alias="readiness_timeout_seconds"
    )
    readiness_poll_interval_seconds: float = Field(
        default=0.5, gt=0, le=10, alias="readiness_poll_interval_seconds"
    )
    stop_grace_period_seconds: int = Field(
        default=10, ge=0, le=300, alias="stop_grace_period_seconds"
    )
    remove_after_stop: bool = Field(default=True, alias="remove_after_stop")

    # Host side of the coverage bindings
    coverage_agent_dir: str = Field(default="./coverage-agent", alias="coverage_agent_dir")
    coverage_report_dir: str = Field(
        default="./coverage-report", alias="coverage_report_dir"
    )
    coverage_data_file: str = Field(default=".coverage", alias="coverage_data_file")

    # Container side of the coverage bindings
    container_agent_dir: str = Field(default="/coverage-agent", alias="container_agent_dir")
    container_report_dir: str = Field(
        default="/coverage-report", alias="container_report_dir"
    )

    def get_artifact_path(self) -> Path:
        """Host path of the coverage data file written by the container."""
        return Path(self.coverage_report_dir).resolve() / self.coverage_data_file

    def get_container_data_file(self) -> str:
        """Container path the coverage agent writes its data file to."""
        return f"{self.container_report_dir.rstrip('/')}/{self.coverage_data_file}"

    def get_container_rcfile(self) -> str:
        """Container path of the coverage configuration file."""
        return f"{self.container_agent_dir.rstrip('/')}/.coveragerc"

    class Config:
        env_prefix = ""
        extra = "ignore"
