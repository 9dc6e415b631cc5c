"""Container launching: image resolution, bindings, ports and command override."""

import dataclasses
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

import docker
import structlog
from docker.errors import APIError, ContainerError, ImageNotFound, NotFound
from docker.models.containers import Container

from ...config import settings
from ...models.container import ContainerHandle, ContainerSpec, FileSystemBind
from ...models.errors import ContainerStartError
from .client import DockerClientFactory
from .utils import get_logs_tail, wait_for_container_running

logger = structlog.get_logger(__name__)

MANAGED_LABEL = "com.docker-demo.managed"


class ContainerLauncher:
    """Starts containers from a ContainerSpec and returns handles to them.

    Every exposed container port is published on an ephemeral host port
    chosen by the runtime; the assignment is read back into the handle.
    """

    def __init__(
        self,
        client: Optional[docker.DockerClient] = None,
        pull_missing_images: Optional[bool] = None,
    ):
        self._client = client
        self._pull_missing_images = (
            settings.pull_missing_images
            if pull_missing_images is None
            else pull_missing_images
        )

    @property
    def client(self) -> docker.DockerClient:
        if self._client is None:
            self._client = DockerClientFactory.get_client()
        return self._client

    def launch(self, spec: ContainerSpec) -> ContainerHandle:
        """Start a container and wait until the runtime reports it running.

        Args:
            spec: Image, ports, bindings and command to launch

        Returns:
            ContainerHandle for the running container

        Raises:
            ContainerStartError: If the image is unavailable or the container
                does not start
        """
        self._ensure_image(spec.image)
        binds = self._prepare_binds(spec.binds)
        spec = dataclasses.replace(spec, binds=binds)

        labels = {
            MANAGED_LABEL: "true",
            "com.docker-demo.created-at": datetime.now(timezone.utc).isoformat(),
            **spec.labels,
        }
        name = f"docker-demo-{uuid.uuid4().hex[:12]}"

        try:
            container = self.client.containers.run(
                spec.image,
                command=spec.command,
                name=name,
                ports=spec.get_ports(),
                volumes=spec.get_volumes(),
                environment=spec.environment or None,
                labels=labels,
                detach=True,
            )
        except (ImageNotFound, ContainerError, APIError) as e:
            logger.error("Container failed to start", image=spec.image, error=str(e))
            raise ContainerStartError(spec.image, f"Failed to start {spec.image}: {e}") from e

        if not wait_for_container_running(container):
            logs = get_logs_tail(container)
            self._discard(container)
            logger.error(
                "Container exited during startup", image=spec.image, logs=logs
            )
            raise ContainerStartError(
                spec.image,
                f"Container from {spec.image} exited during startup"
                + (f":\n{logs}" if logs else ""),
            )

        try:
            port_mappings = self._read_port_mappings(
                container, spec.image, spec.exposed_ports
            )
        except ContainerStartError:
            self._discard(container)
            raise

        handle = ContainerHandle(
            container_id=container.id,
            image=spec.image,
            port_mappings=port_mappings,
            binds=list(binds),
            command=list(spec.command) if spec.command else None,
            host=DockerClientFactory.get_host(self.client),
            labels=labels,
        )

        logger.info(
            "Container started",
            container_id=handle.short_id,
            image=spec.image,
            ports=port_mappings,
            binds=[f"{b.host_path}:{b.container_path}" for b in binds],
            command_override=handle.command is not None,
        )
        return handle

    def get_container(self, handle: ContainerHandle) -> Optional[Container]:
        """Look up the Docker container behind a handle."""
        try:
            return self.client.containers.get(handle.container_id)
        except NotFound:
            return None

    def _ensure_image(self, image: str) -> None:
        try:
            self.client.images.get(image)
            return
        except ImageNotFound:
            if not self._pull_missing_images:
                raise ContainerStartError(
                    image,
                    f"Image {image} not found locally and pulling is disabled",
                ) from None
        except APIError as e:
            raise ContainerStartError(image, f"Failed to inspect {image}: {e}") from e

        logger.info("Pulling image", image=image)
        try:
            self.client.images.pull(image)
        except (ImageNotFound, APIError) as e:
            raise ContainerStartError(image, f"Failed to pull {image}: {e}") from e

    def _prepare_binds(self, binds: List[FileSystemBind]) -> List[FileSystemBind]:
        """Resolve host paths; create missing writable directories."""
        prepared = []
        for bind in binds:
            host_path = Path(bind.host_path).expanduser().resolve()
            if not host_path.exists():
                if bind.read_only:
                    logger.warning(
                        "Read-only bind source does not exist",
                        host_path=str(host_path),
                    )
                else:
                    host_path.mkdir(parents=True, exist_ok=True)
            prepared.append(dataclasses.replace(bind, host_path=host_path))
        return prepared

    def _read_port_mappings(
        self, container: Container, image: str, exposed_ports: List[int]
    ) -> Dict[int, int]:
        container.reload()
        published = container.ports or {}
        mappings: Dict[int, int] = {}

        for port in exposed_ports:
            bindings = published.get(f"{port}/tcp") or []
            host_ports = {int(b["HostPort"]) for b in bindings if b.get("HostPort")}
            if not host_ports:
                raise ContainerStartError(
                    image,
                    f"No host port published for container port {port}",
                )
            # IPv4 and IPv6 bindings share the same host port
            mappings[port] = min(host_ports)

        return mappings

    def _discard(self, container: Container) -> None:
        try:
            container.remove(force=True)
        except (NotFound, APIError) as e:
            logger.warning(
                "Failed to remove container", container_id=container.id[:12], error=str(e)
            )
