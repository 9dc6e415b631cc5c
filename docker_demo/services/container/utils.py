"""Shared utilities for container operations.

This module contains common patterns used by the launcher, the readiness
waiter and the stopper.
"""

import time
from typing import Optional

import structlog
from docker.errors import APIError, NotFound
from docker.models.containers import Container

logger = structlog.get_logger(__name__)

# Container states from which a process will never become ready
TERMINAL_STATES = frozenset({"exited", "dead", "removing"})


def wait_for_container_running(
    container: Container,
    max_wait: float = 5.0,
    interval: float = 0.05,
    stable_checks_required: int = 3,
) -> bool:
    """
    Wait for a container to reach a stable running state.

    Uses polling with stability checks to ensure the container
    is truly running before returning.

    Args:
        container: Docker container to wait for
        max_wait: Maximum time to wait in seconds
        interval: Polling interval in seconds
        stable_checks_required: Number of consecutive running checks required

    Returns:
        True if container is running, False otherwise
    """
    stable_checks = 0
    deadline = time.monotonic() + max_wait

    while time.monotonic() < deadline:
        try:
            container.reload()
            status = getattr(container, "status", "")
            if status == "running":
                stable_checks += 1
                if stable_checks >= stable_checks_required:
                    return True
            elif status in TERMINAL_STATES:
                return False
            else:
                stable_checks = 0
        except NotFound:
            return False
        except APIError:
            stable_checks = 0
        time.sleep(interval)

    # Final check
    try:
        container.reload()
        return getattr(container, "status", "") == "running"
    except (NotFound, APIError):
        return False


def is_container_terminated(container: Container) -> bool:
    """Check whether a container has stopped or disappeared."""
    try:
        container.reload()
    except NotFound:
        return True
    return getattr(container, "status", "") in TERMINAL_STATES


def get_exit_code(container: Container) -> Optional[int]:
    """Exit code of a stopped container, or None if it is unknown."""
    try:
        container.reload()
    except NotFound:
        return None
    state = container.attrs.get("State", {})
    if state.get("Running"):
        return None
    return state.get("ExitCode")


def get_logs_tail(container: Container, lines: int = 20) -> str:
    """Last lines of container output, for error messages."""
    try:
        output = container.logs(tail=lines)
    except (NotFound, APIError) as e:
        logger.debug("Could not read container logs", error=str(e))
        return ""
    if isinstance(output, bytes):
        output = output.decode("utf-8", errors="replace")
    return output.strip()
