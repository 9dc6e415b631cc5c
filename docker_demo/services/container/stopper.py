"""Graceful container stop with an explicit grace period.

A stop request sends the container's stop signal (SIGTERM) and waits up to
the grace period for the process to exit on its own, after which the runtime
kills it. Agents that persist state from an exit hook, such as coverage.py
writing its data file, only get to run that hook in the first case.
"""

import time
from typing import Optional

import docker
import requests
import structlog
from docker.errors import DockerException, NotFound

from ...config import settings
from ...models.container import (
    SIGKILL_EXIT_CODE,
    ContainerHandle,
    StopOutcome,
    StopResult,
)
from ...models.errors import ContainerStopError
from .client import DockerClientFactory
from .utils import get_exit_code

logger = structlog.get_logger(__name__)


def classify_exit(exit_code: Optional[int]) -> StopOutcome:
    """A SIGKILL exit (or an unknown one) means the grace period ran out."""
    if exit_code is None or exit_code == SIGKILL_EXIT_CODE:
        return StopOutcome.FORCED
    return StopOutcome.GRACEFUL


class GracefulStopper:
    """Stops containers with a bounded grace period, exactly once per handle."""

    def __init__(
        self,
        client: Optional[docker.DockerClient] = None,
        grace_period: Optional[int] = None,
        remove: Optional[bool] = None,
    ):
        self._client = client
        self.grace_period = (
            settings.stop_grace_period_seconds if grace_period is None else grace_period
        )
        self.remove = settings.remove_after_stop if remove is None else remove
        self._validate_grace_period(self.grace_period)

    @property
    def client(self) -> docker.DockerClient:
        if self._client is None:
            self._client = DockerClientFactory.get_client()
        return self._client

    @staticmethod
    def _validate_grace_period(grace_period: int) -> None:
        if grace_period < 0:
            raise ValueError(f"grace_period must be >= 0, got {grace_period}")

    def stop(
        self, handle: ContainerHandle, grace_period: Optional[int] = None
    ) -> StopResult:
        """Stop a container, waiting up to grace_period seconds for a clean exit.

        Calling stop again on the same handle returns the first result
        without contacting the runtime. A failed stop is not retried.

        Args:
            handle: Container to stop
            grace_period: Seconds to wait before the runtime kills the
                process; defaults to the stopper's grace period

        Returns:
            StopResult describing how the container exited

        Raises:
            ValueError: If grace_period is negative
            ContainerStopError: If the runtime cannot be reached, or an
                earlier stop of the same handle failed
        """
        grace_period = self.grace_period if grace_period is None else grace_period
        self._validate_grace_period(grace_period)

        if handle.stop_result is not None:
            logger.warning(
                "Container already stopped",
                container_id=handle.short_id,
                stop_count=handle.stop_count,
            )
            return handle.stop_result

        if handle.stop_count > 0:
            # An earlier stop request failed; stops are not retried
            raise ContainerStopError(
                handle.container_id,
                f"Stop of container {handle.short_id} already failed; "
                "it may still be running",
            )

        handle.stop_count += 1
        start = time.monotonic()

        logger.info(
            "Stopping container",
            container_id=handle.short_id,
            grace_period=grace_period,
        )

        try:
            container = self.client.containers.get(handle.container_id)
        except NotFound:
            container = None
        except (DockerException, requests.exceptions.RequestException) as e:
            logger.error(
                "Container runtime unreachable, container left running",
                container_id=handle.short_id,
                error=str(e),
            )
            raise ContainerStopError(
                handle.container_id,
                f"Failed to reach the container runtime to stop {handle.short_id}: {e}",
            ) from e

        exit_code = None
        if container is None:
            logger.warning("Container already gone", container_id=handle.short_id)
        else:
            try:
                container.stop(timeout=grace_period)
                exit_code = get_exit_code(container)
            except NotFound:
                logger.warning(
                    "Container disappeared during stop", container_id=handle.short_id
                )
            except (DockerException, requests.exceptions.RequestException) as e:
                logger.error(
                    "Stop request failed, container may still be running",
                    container_id=handle.short_id,
                    error=str(e),
                )
                raise ContainerStopError(
                    handle.container_id,
                    f"Failed to stop container {handle.short_id}: {e}",
                ) from e

        result = StopResult(
            container_id=handle.container_id,
            grace_period=grace_period,
            exit_code=exit_code,
            outcome=classify_exit(exit_code),
            duration_seconds=time.monotonic() - start,
        )
        handle.stop_result = result

        log = logger.info if result.graceful else logger.warning
        log(
            "Container stopped",
            container_id=handle.short_id,
            exit_code=exit_code,
            outcome=result.outcome.value,
            duration=round(result.duration_seconds, 3),
        )

        if self.remove and container is not None:
            self._remove(handle, container)

        return result

    def _remove(self, handle: ContainerHandle, container) -> None:
        try:
            container.remove()
            logger.debug("Removed container", container_id=handle.short_id)
        except NotFound:
            pass
        except (DockerException, requests.exceptions.RequestException) as e:
            logger.warning(
                "Failed to remove container",
                container_id=handle.short_id,
                error=str(e),
            )
