"""Unit tests for the scoped container lifecycle."""

from unittest.mock import MagicMock

import pytest
from docker.errors import APIError, ImageNotFound

from docker_demo.config import ContainerConfig
from docker_demo.models.errors import ContainerStopError, ReadinessTimeoutError
from docker_demo.services.container.lifecycle import running_container


@pytest.fixture
def wait_strategy():
    strategy = MagicMock()
    strategy.wait_until_ready.return_value = 0.1
    return strategy


class TestRunningContainer:
    """The container is stopped exactly once on every exit path."""

    def test_success_path(
        self, mock_docker_client, mock_container, sample_spec, wait_strategy
    ):
        with running_container(
            sample_spec,
            client=mock_docker_client,
            wait_strategy=wait_strategy,
            grace_period=10,
        ) as handle:
            assert handle.get_mapped_port(8080) == 49153
            assert not handle.stopped

        wait_strategy.wait_until_ready.assert_called_once()
        mock_container.stop.assert_called_once_with(timeout=10)
        assert handle.stop_count == 1
        assert handle.stop_result.graceful

    def test_assertion_failure_path(
        self, mock_docker_client, mock_container, sample_spec, wait_strategy
    ):
        with pytest.raises(AssertionError, match="body mismatch"):
            with running_container(
                sample_spec,
                client=mock_docker_client,
                wait_strategy=wait_strategy,
                grace_period=10,
            ) as handle:
                raise AssertionError("body mismatch")

        mock_container.stop.assert_called_once_with(timeout=10)
        assert handle.stop_count == 1

    def test_unexpected_exception_path(
        self, mock_docker_client, mock_container, sample_spec, wait_strategy
    ):
        with pytest.raises(RuntimeError):
            with running_container(
                sample_spec, client=mock_docker_client, wait_strategy=wait_strategy
            ) as handle:
                raise RuntimeError("boom")

        assert mock_container.stop.call_count == 1
        assert handle.stop_count == 1

    def test_readiness_timeout_still_stops(
        self, mock_docker_client, mock_container, sample_spec, wait_strategy
    ):
        wait_strategy.wait_until_ready.side_effect = ReadinessTimeoutError(
            "localhost:49153", elapsed=5.0, timeout=5.0
        )

        with pytest.raises(ReadinessTimeoutError):
            with running_container(
                sample_spec, client=mock_docker_client, wait_strategy=wait_strategy
            ):
                pytest.fail("body must not run when the container is not ready")

        assert mock_container.stop.call_count == 1

    def test_stop_failure_does_not_mask_body_failure(
        self, mock_docker_client, mock_container, sample_spec, wait_strategy
    ):
        mock_container.stop.side_effect = APIError("daemon gone")

        with pytest.raises(AssertionError, match="status 500"):
            with running_container(
                sample_spec, client=mock_docker_client, wait_strategy=wait_strategy
            ):
                raise AssertionError("status 500")

        assert mock_container.stop.call_count == 1

    def test_stop_failure_surfaces_after_success(
        self, mock_docker_client, mock_container, sample_spec, wait_strategy
    ):
        mock_container.stop.side_effect = APIError("daemon gone")

        with pytest.raises(ContainerStopError):
            with running_container(
                sample_spec, client=mock_docker_client, wait_strategy=wait_strategy
            ):
                pass

        assert mock_container.stop.call_count == 1

    def test_default_wait_strategy_targets_first_exposed_port(
        self, mock_docker_client, sample_spec, monkeypatch
    ):
        calls = []

        def fake_wait(self, handle, container=None):
            calls.append((self.port, handle.container_id))
            return 0.0

        monkeypatch.setattr(
            "docker_demo.services.container.readiness.ListeningPortWaitStrategy.wait_until_ready",
            fake_wait,
        )

        with running_container(sample_spec, client=mock_docker_client):
            pass

        assert calls == [(8080, "abc123def4567890")]

    def test_container_config_drives_harness(
        self, mock_docker_client, mock_container, sample_spec, monkeypatch
    ):
        """Pull, readiness, grace period and removal come from the given config."""
        seen = {}

        def fake_wait(self, handle, container=None):
            seen.update(timeout=self.timeout, poll_interval=self.poll_interval)
            return 0.0

        monkeypatch.setattr(
            "docker_demo.services.container.readiness.ListeningPortWaitStrategy.wait_until_ready",
            fake_wait,
        )
        mock_docker_client.images.get.side_effect = ImageNotFound("no such image")
        config = ContainerConfig(
            pull_missing_images=True,
            readiness_timeout_seconds=12,
            readiness_poll_interval_seconds=0.25,
            stop_grace_period_seconds=3,
            remove_after_stop=False,
        )

        with running_container(sample_spec, client=mock_docker_client, config=config):
            pass

        mock_docker_client.images.pull.assert_called_once_with(
            "fastapi-docker-demo:latest"
        )
        assert seen == {"timeout": 12, "poll_interval": 0.25}
        mock_container.stop.assert_called_once_with(timeout=3)
        mock_container.remove.assert_not_called()

    def test_explicit_grace_period_overrides_config(
        self, mock_docker_client, mock_container, sample_spec, wait_strategy
    ):
        config = ContainerConfig(stop_grace_period_seconds=3)

        with running_container(
            sample_spec,
            client=mock_docker_client,
            wait_strategy=wait_strategy,
            grace_period=7,
            config=config,
        ):
            pass

        mock_container.stop.assert_called_once_with(timeout=7)
