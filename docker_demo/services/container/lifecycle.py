"""Scoped container lifecycle: launch, wait, yield, always stop."""

from contextlib import contextmanager
from typing import Iterator, Optional

import docker
import structlog

from ...config import ContainerConfig, settings
from ...models.container import ContainerHandle, ContainerSpec
from ...models.errors import ContainerStopError
from .launcher import ContainerLauncher
from .readiness import ListeningPortWaitStrategy, WaitStrategy
from .stopper import GracefulStopper

logger = structlog.get_logger(__name__)


@contextmanager
def running_container(
    spec: ContainerSpec,
    client: Optional[docker.DockerClient] = None,
    wait_strategy: Optional[WaitStrategy] = None,
    grace_period: Optional[int] = None,
    remove: Optional[bool] = None,
    config: Optional[ContainerConfig] = None,
) -> Iterator[ContainerHandle]:
    """Run a container for the duration of a ``with`` block.

    The container is stopped with a bounded grace period on every exit path:
    normal completion, failed assertions, exceptions, and readiness failures.
    A stop failure after the block already raised is logged and the original
    exception propagates; otherwise the stop failure is raised.

    Pull, readiness, grace period and removal settings come from ``config``
    (the global container settings by default); ``grace_period`` and
    ``remove`` override it.

    Example:
        with running_container(spec) as handle:
            response = httpx.get(f"{handle.base_url()}/ping")
    """
    config = config or settings.container
    launcher = ContainerLauncher(
        client, pull_missing_images=config.pull_missing_images
    )
    stopper = GracefulStopper(
        launcher.client,
        grace_period=(
            config.stop_grace_period_seconds if grace_period is None else grace_period
        ),
        remove=config.remove_after_stop if remove is None else remove,
    )
    if wait_strategy is None:
        port = spec.exposed_ports[0] if spec.exposed_ports else None
        wait_strategy = ListeningPortWaitStrategy(
            port=port,
            timeout=config.readiness_timeout_seconds,
            poll_interval=config.readiness_poll_interval_seconds,
        )

    handle = launcher.launch(spec)
    try:
        if handle.port_mappings:
            wait_strategy.wait_until_ready(handle, launcher.get_container(handle))
        yield handle
    except BaseException:
        try:
            stopper.stop(handle)
        except ContainerStopError as stop_error:
            logger.error(
                "Failed to stop container after error",
                container_id=handle.short_id,
                error=str(stop_error),
            )
        raise
    else:
        stopper.stop(handle)
