"""Container harness data models.

A ContainerSpec describes what to launch; the launcher turns it into a
ContainerHandle referencing the running instance. The handle is owned by a
single test for its whole lifetime and is stopped exactly once.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional

# Exit code of a process terminated by SIGKILL (128 + 9)
SIGKILL_EXIT_CODE = 137


@dataclass(frozen=True)
class FileSystemBind:
    """A host directory bound into the container filesystem."""

    host_path: Path
    container_path: str
    read_only: bool = False

    def to_volume(self) -> Dict[str, Dict[str, str]]:
        """Render as a Docker SDK ``volumes`` entry."""
        return {
            str(self.host_path): {
                "bind": self.container_path,
                "mode": "ro" if self.read_only else "rw",
            }
        }


@dataclass
class ContainerSpec:
    """What to launch: image, exposed ports, bindings and command override."""

    image: str
    exposed_ports: List[int] = field(default_factory=list)
    binds: List[FileSystemBind] = field(default_factory=list)
    command: Optional[List[str]] = None
    environment: Dict[str, str] = field(default_factory=dict)
    labels: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        if len(set(self.exposed_ports)) != len(self.exposed_ports):
            raise ValueError(f"Duplicate exposed ports: {self.exposed_ports}")

    def get_volumes(self) -> Dict[str, Dict[str, str]]:
        volumes: Dict[str, Dict[str, str]] = {}
        for bind in self.binds:
            volumes.update(bind.to_volume())
        return volumes

    def get_ports(self) -> Dict[str, None]:
        """Map every exposed port to an ephemeral host port."""
        return {f"{port}/tcp": None for port in self.exposed_ports}


class StopOutcome(str, Enum):
    """How a stopped container exited."""

    GRACEFUL = "graceful"
    FORCED = "forced"


@dataclass
class StopResult:
    """Outcome of a bounded-grace stop request."""

    container_id: str
    grace_period: int
    exit_code: Optional[int]
    outcome: StopOutcome
    duration_seconds: float = 0.0

    @property
    def graceful(self) -> bool:
        return self.outcome == StopOutcome.GRACEFUL


@dataclass
class ContainerHandle:
    """Reference to one running container instance.

    port_mappings maps each exposed container port to the host port the
    runtime assigned to it.
    """

    container_id: str
    image: str
    port_mappings: Dict[int, int]
    binds: List[FileSystemBind] = field(default_factory=list)
    command: Optional[List[str]] = None
    host: str = "localhost"
    labels: Dict[str, str] = field(default_factory=dict)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    stop_count: int = 0
    stop_result: Optional[StopResult] = None

    def __hash__(self):
        return hash(self.container_id)

    def __eq__(self, other):
        if not isinstance(other, ContainerHandle):
            return False
        return self.container_id == other.container_id

    @property
    def short_id(self) -> str:
        return self.container_id[:12]

    @property
    def stopped(self) -> bool:
        return self.stop_result is not None

    def get_mapped_port(self, container_port: int) -> int:
        """Get the host port mapped to an exposed container port."""
        try:
            return self.port_mappings[container_port]
        except KeyError:
            raise ValueError(
                f"Port {container_port} is not exposed by container {self.short_id}; "
                f"exposed ports: {sorted(self.port_mappings)}"
            ) from None

    def base_url(self, container_port: Optional[int] = None) -> str:
        """HTTP base URL for an exposed port (the only one if not given)."""
        if container_port is None:
            if len(self.port_mappings) != 1:
                raise ValueError(
                    "container_port is required when the container exposes "
                    f"{len(self.port_mappings)} ports"
                )
            container_port = next(iter(self.port_mappings))
        return f"http://{self.host}:{self.get_mapped_port(container_port)}"
