"""Container management services.

This package provides the Docker container harness split into:
- client.py: Docker client factory and initialization
- launcher.py: Starting containers with ports, bindings and command overrides
- readiness.py: Waiting for a launched service to accept connections
- stopper.py: Stopping containers with an explicit grace period
- lifecycle.py: Scoped launch/wait/stop as a context manager
- utils.py: Shared utilities for container operations
"""

from .client import DockerClientFactory
from .launcher import ContainerLauncher, MANAGED_LABEL
from .lifecycle import running_container
from .readiness import HttpWaitStrategy, ListeningPortWaitStrategy, WaitStrategy
from .stopper import GracefulStopper, classify_exit
from .utils import wait_for_container_running, get_exit_code, get_logs_tail

__all__ = [
    "DockerClientFactory",
    "ContainerLauncher",
    "MANAGED_LABEL",
    "running_container",
    "WaitStrategy",
    "ListeningPortWaitStrategy",
    "HttpWaitStrategy",
    "GracefulStopper",
    "classify_exit",
    "wait_for_container_running",
    "get_exit_code",
    "get_logs_tail",
]
