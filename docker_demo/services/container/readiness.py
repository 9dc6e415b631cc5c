"""Readiness waiting for launched containers.

A wait strategy polls the host port mapped to an exposed container port on
a fixed interval until a probe succeeds or the timeout elapses. The polling
loop is the only retry mechanism.
"""

import socket
import time
from abc import ABC, abstractmethod
from typing import Optional

import httpx
import structlog
from docker.models.containers import Container

from ...config import settings
from ...models.container import ContainerHandle
from ...models.errors import ContainerStartError, ReadinessTimeoutError
from .utils import get_logs_tail, is_container_terminated

logger = structlog.get_logger(__name__)


class WaitStrategy(ABC):
    """Base class for readiness probes."""

    def __init__(
        self,
        port: Optional[int] = None,
        timeout: Optional[float] = None,
        poll_interval: Optional[float] = None,
    ):
        self.port = port
        self.timeout = (
            settings.readiness_timeout_seconds if timeout is None else timeout
        )
        self.poll_interval = (
            settings.readiness_poll_interval_seconds
            if poll_interval is None
            else poll_interval
        )
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")
        if self.poll_interval <= 0:
            raise ValueError("poll_interval must be positive")

    @abstractmethod
    def probe(self, host: str, port: int) -> bool:
        """Return True once the service behind host:port is ready."""

    def describe(self, host: str, port: int) -> str:
        return f"{host}:{port}"

    def _resolve_port(self, handle: ContainerHandle) -> int:
        if self.port is not None:
            return handle.get_mapped_port(self.port)
        if len(handle.port_mappings) != 1:
            raise ValueError(
                "A port must be given when the container exposes "
                f"{len(handle.port_mappings)} ports"
            )
        return next(iter(handle.port_mappings.values()))

    def wait_until_ready(
        self, handle: ContainerHandle, container: Optional[Container] = None
    ) -> float:
        """Block until the probe succeeds.

        Args:
            handle: Container to wait for
            container: Docker container behind the handle; when given, the
                wait fails fast if the container stops

        Returns:
            Seconds spent waiting

        Raises:
            ReadinessTimeoutError: If the probe does not succeed in time
            ContainerStartError: If the container stops while waiting
        """
        host_port = self._resolve_port(handle)
        target = self.describe(handle.host, host_port)
        start = time.monotonic()
        deadline = start + self.timeout
        attempts = 0

        logger.debug(
            "Waiting for container readiness",
            container_id=handle.short_id,
            target=target,
            timeout=self.timeout,
        )

        while True:
            attempts += 1
            if self.probe(handle.host, host_port):
                elapsed = time.monotonic() - start
                logger.info(
                    "Container ready",
                    container_id=handle.short_id,
                    target=target,
                    elapsed=round(elapsed, 3),
                    attempts=attempts,
                )
                return elapsed

            if container is not None and is_container_terminated(container):
                logs = get_logs_tail(container)
                logger.error(
                    "Container stopped before becoming ready",
                    container_id=handle.short_id,
                    logs=logs,
                )
                raise ContainerStartError(
                    handle.image,
                    f"Container {handle.short_id} stopped before {target} became ready"
                    + (f":\n{logs}" if logs else ""),
                )

            now = time.monotonic()
            if now >= deadline:
                elapsed = now - start
                logger.error(
                    "Container readiness timed out",
                    container_id=handle.short_id,
                    target=target,
                    elapsed=round(elapsed, 3),
                    attempts=attempts,
                )
                raise ReadinessTimeoutError(target, elapsed, self.timeout)

            time.sleep(min(self.poll_interval, max(deadline - now, 0)))


class ListeningPortWaitStrategy(WaitStrategy):
    """Ready once the mapped port accepts and holds a TCP connection.

    Port publishing proxies accept connections on the host port before the
    process inside the container listens, then close them immediately. A
    connection that stays open for the hold period means a real listener.
    """

    def __init__(self, *args, hold: float = 0.1, **kwargs):
        super().__init__(*args, **kwargs)
        self.hold = hold

    def probe(self, host: str, port: int) -> bool:
        try:
            with socket.create_connection((host, port), timeout=1.0) as sock:
                sock.settimeout(self.hold)
                try:
                    data = sock.recv(1)
                except socket.timeout:
                    return True
                # Peer closed right away: nothing is listening behind the proxy
                return bool(data)
        except OSError:
            return False


class HttpWaitStrategy(WaitStrategy):
    """Ready once an HTTP GET on a path returns the expected status."""

    def __init__(
        self,
        *args,
        path: str = "/health",
        status_code: int = 200,
        request_timeout: float = 2.0,
        **kwargs,
    ):
        super().__init__(*args, **kwargs)
        self.path = path if path.startswith("/") else f"/{path}"
        self.status_code = status_code
        self.request_timeout = request_timeout

    def describe(self, host: str, port: int) -> str:
        return f"http://{host}:{port}{self.path}"

    def probe(self, host: str, port: int) -> bool:
        try:
            response = httpx.get(
                self.describe(host, port), timeout=self.request_timeout
            )
        except httpx.HTTPError:
            return False
        return response.status_code == self.status_code
