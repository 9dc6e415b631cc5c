"""End-to-end coverage collection from the containerized service.

The service runs under the coverage agent in a real container. After a
graceful stop the data file in the bound report directory must show the
/ping handler as executed and the /unused handler as not executed.
"""

import os
from pathlib import Path

import httpx
import pytest

from docker_demo.models.container import StopOutcome
from docker_demo.services.container import GracefulStopper
from docker_demo.services.coverage import CoverageArtifact

PROJECT_ROOT = Path(__file__).resolve().parents[2]
GRACE_PERIOD = int(os.environ.get("STOP_GRACE_PERIOD_SECONDS", "10"))

PING_SOURCE = PROJECT_ROOT / "docker_demo" / "api" / "ping.py"


class TestContainerCoverage:
    def test_ping_served_from_container(self, coverage_container):
        response = httpx.get(f"{coverage_container.base_url()}/ping", timeout=10)

        assert response.status_code == 200
        assert response.text == "pong"

    def test_graceful_stop_writes_coverage(
        self, docker_client, coverage_container, functional_config
    ):
        """Serve /ping, stop gracefully, then read the agent's data file."""
        for _ in range(3):
            response = httpx.get(f"{coverage_container.base_url()}/ping", timeout=10)
            assert response.status_code == 200
            assert response.text == "pong"

        result = GracefulStopper(docker_client, grace_period=GRACE_PERIOD).stop(
            coverage_container
        )

        assert result.grace_period == GRACE_PERIOD
        assert result.outcome == StopOutcome.GRACEFUL
        assert coverage_container.stop_count == 1

        artifact = CoverageArtifact.from_settings(functional_config)
        assert artifact.exists()
        artifact.load()
        assert artifact.find_measured_file(str(PING_SOURCE)) is not None
        assert artifact.coverage_by_function(PING_SOURCE, ["ping", "unused"]) == {
            "ping": True,
            "unused": False,
        }

    def test_zero_grace_period_stop(self, docker_client, coverage_container):
        """A zero grace period is a forced kill; only the request is checked."""
        result = GracefulStopper(docker_client, grace_period=0).stop(
            coverage_container
        )

        assert result.grace_period == 0
        assert coverage_container.stop_count == 1
        assert coverage_container.stopped

    def test_stop_is_not_repeated_on_teardown(self, docker_client, coverage_container):
        first = GracefulStopper(docker_client, grace_period=GRACE_PERIOD).stop(
            coverage_container
        )

        second = GracefulStopper(docker_client).stop(coverage_container)

        assert second is first
        assert coverage_container.stop_count == 1


@pytest.mark.parametrize("path", ["/health", "/unused"])
def test_other_endpoints_served(coverage_container, path):
    response = httpx.get(f"{coverage_container.base_url()}{path}", timeout=10)

    assert response.status_code == 200
