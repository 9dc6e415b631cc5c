"""Docker client factory and initialization."""

from typing import Optional
from urllib.parse import urlparse

import docker
import structlog
from docker.errors import DockerException

logger = structlog.get_logger(__name__)


class DockerClientFactory:
    """Creates and caches the Docker client used by the harness.

    The client is configured from the environment (DOCKER_HOST,
    DOCKER_TLS_VERIFY, DOCKER_CERT_PATH), exactly like the docker CLI.
    """

    _client: Optional[docker.DockerClient] = None

    @classmethod
    def get_client(cls) -> docker.DockerClient:
        """Get the shared Docker client, creating it on first use.

        Raises:
            DockerException: If the Docker daemon cannot be reached
        """
        if cls._client is None:
            cls._client = docker.from_env()
            logger.debug("Docker client created", base_url=cls._client.api.base_url)
        return cls._client

    @classmethod
    def is_available(cls) -> bool:
        """Check if the Docker daemon is reachable."""
        try:
            return bool(cls.get_client().ping())
        except DockerException as e:
            logger.debug("Docker daemon unavailable", error=str(e))
            return False

    @classmethod
    def close(cls) -> None:
        """Close the shared client."""
        if cls._client is not None:
            try:
                cls._client.close()
            finally:
                cls._client = None

    @staticmethod
    def get_host(client: docker.DockerClient) -> str:
        """Host name under which mapped container ports are reachable.

        Local daemons (unix socket, npipe) publish ports on localhost; a
        remote daemon publishes them on its own address.
        """
        base_url = client.api.base_url or ""
        parsed = urlparse(base_url.replace("tcp://", "http://", 1))
        if parsed.scheme in ("http", "https") and parsed.hostname not in (
            None,
            "localhost",
            "127.0.0.1",
        ):
            return parsed.hostname
        return "localhost"
