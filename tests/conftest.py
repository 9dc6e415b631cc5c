"""Pytest configuration and shared fixtures."""

import os
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Set test environment before importing config
# Use setdefault to allow environment variables to override defaults
os.environ.setdefault("LOG_FORMAT", "console")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("READINESS_TIMEOUT_SECONDS", "5")
os.environ.setdefault("READINESS_POLL_INTERVAL_SECONDS", "0.05")

from docker.models.containers import Container

from docker_demo.config import ContainerConfig
from docker_demo.models.container import ContainerHandle, ContainerSpec, FileSystemBind

PROJECT_ROOT = Path(__file__).resolve().parent.parent


def make_container(
    container_id: str = "abc123def4567890",
    host_port: str = "49153",
    container_port: int = 8080,
    exit_code: int = 0,
    status: str = "running",
):
    """Mock Docker container that is running with one published port."""
    container = MagicMock(spec=Container)
    container.id = container_id
    container.status = status
    container.ports = {
        f"{container_port}/tcp": [
            {"HostIp": "0.0.0.0", "HostPort": host_port},
            {"HostIp": "::", "HostPort": host_port},
        ]
    }
    container.attrs = {"State": {"Running": False, "ExitCode": exit_code}}
    container.logs.return_value = b"uvicorn exited"
    return container


@pytest.fixture
def container_factory():
    """Factory for mock containers with custom ports, state and exit code."""
    return make_container


@pytest.fixture
def mock_container():
    """Mock running container publishing 8080 on host port 49153."""
    return make_container()


@pytest.fixture
def mock_docker_client(mock_container):
    """Mock Docker client whose containers.run/get return mock_container."""
    client = MagicMock()
    client.api.base_url = "http+docker://localhost"
    client.images.get.return_value = MagicMock()
    client.containers.run.return_value = mock_container
    client.containers.get.return_value = mock_container
    client.ping.return_value = True
    return client


@pytest.fixture
def sample_spec(tmp_path):
    """Container spec exposing 8080 with agent and report bindings."""
    agent_dir = tmp_path / "agent"
    agent_dir.mkdir()
    return ContainerSpec(
        image="fastapi-docker-demo:latest",
        exposed_ports=[8080],
        binds=[
            FileSystemBind(agent_dir, "/coverage-agent", read_only=True),
            FileSystemBind(tmp_path / "report", "/coverage-report"),
        ],
        command=["python", "-m", "docker_demo.main"],
    )


@pytest.fixture
def sample_handle():
    """Handle for a container whose 8080 is mapped to host port 49153."""
    return ContainerHandle(
        container_id="abc123def4567890",
        image="fastapi-docker-demo:latest",
        port_mappings={8080: 49153},
    )


@pytest.fixture
def coverage_config(tmp_path):
    """Container config with coverage directories under tmp_path."""
    return ContainerConfig(
        image_name="fastapi-docker-demo:test",
        container_port=8080,
        coverage_agent_dir=str(PROJECT_ROOT / "coverage-agent"),
        coverage_report_dir=str(tmp_path / "coverage-report"),
    )


@pytest.fixture
def client():
    """Create FastAPI test client for integration tests."""
    from fastapi.testclient import TestClient
    from docker_demo.main import app

    return TestClient(app)
