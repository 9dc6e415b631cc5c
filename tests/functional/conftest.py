"""Functional test fixtures for the containerized service.

These tests build the service image and run it in a real container, so they
need a reachable Docker daemon. They are skipped when none is available.
Configure via environment variables:
    DOCKER_HOST: Daemon to use (default: the local socket)
    IMAGE_NAME: Tag to build and run (default: fastapi-docker-demo:latest)
    STOP_GRACE_PERIOD_SECONDS: Grace period for stop requests (default: 10)

Example:
    pytest tests/functional/ -v -m docker
"""

import os
from pathlib import Path

import pytest
from docker.errors import BuildError, DockerException

from docker_demo.config import ContainerConfig
from docker_demo.services.container import DockerClientFactory, running_container
from docker_demo.services.coverage import build_coverage_spec, clear_artifact

PROJECT_ROOT = Path(__file__).resolve().parents[2]

IMAGE_NAME = os.environ.get("IMAGE_NAME", "fastapi-docker-demo:latest")
GRACE_PERIOD = int(os.environ.get("STOP_GRACE_PERIOD_SECONDS", "10"))
READINESS_TIMEOUT = float(os.environ.get("FUNCTIONAL_READINESS_TIMEOUT", "60"))


def pytest_collection_modifyitems(items):
    for item in items:
        if "functional" in item.nodeid:
            item.add_marker(pytest.mark.docker)


@pytest.fixture(scope="session")
def docker_client():
    """Shared Docker client; skips the session if no daemon is reachable."""
    if not DockerClientFactory.is_available():
        pytest.skip("Docker daemon not available")
    yield DockerClientFactory.get_client()
    DockerClientFactory.close()


@pytest.fixture(scope="session")
def service_image(docker_client) -> str:
    """Build the service image once per session."""
    try:
        docker_client.images.build(path=str(PROJECT_ROOT), tag=IMAGE_NAME, rm=True)
    except (BuildError, DockerException) as e:
        pytest.fail(f"Failed to build {IMAGE_NAME}: {e}")
    return IMAGE_NAME


@pytest.fixture
def functional_config(tmp_path) -> ContainerConfig:
    """Container config writing coverage data into a per-test directory."""
    report_dir = tmp_path / "coverage-report"
    report_dir.mkdir()
    # The container user must be able to write the data file
    report_dir.chmod(0o777)
    return ContainerConfig(
        image_name=IMAGE_NAME,
        container_port=8080,
        readiness_timeout_seconds=READINESS_TIMEOUT,
        stop_grace_period_seconds=GRACE_PERIOD,
        coverage_agent_dir=str(PROJECT_ROOT / "coverage-agent"),
        coverage_report_dir=str(report_dir),
    )


@pytest.fixture
def coverage_container(docker_client, service_image, functional_config):
    """Service container running under the coverage agent.

    Yields the handle; the container is stopped with the configured grace
    period when the test finishes, whatever its outcome.
    """
    clear_artifact(functional_config)
    spec = build_coverage_spec(functional_config, image=service_image)
    with running_container(spec, client=docker_client, config=functional_config) as handle:
        yield handle
