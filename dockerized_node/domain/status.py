"""Derived status predicates over container status snapshots."""

from __future__ import annotations

from collections.abc import Iterable

from .models import ContainerServiceStatus


def domain_snapshot_is_running(snapshot: Iterable[ContainerServiceStatus]) -> bool:
    """Return whether any service in the snapshot is running.

    Args:
        snapshot: Point-in-time service statuses.

    Returns:
        bool: True iff at least one service reports running; False when empty.
    """

    return any(service_status.is_running for service_status in snapshot)


def domain_snapshot_has_services(snapshot: Iterable[ContainerServiceStatus]) -> bool:
    """Return whether the runtime knows at least one service, running or not.

    Args:
        snapshot: Point-in-time service statuses.

    Returns:
        bool: True when the snapshot is not empty.
    """

    return any(True for _ in snapshot)


def domain_format_elapsed_time(elapsed_milliseconds: int) -> str:
    """Format elapsed milliseconds as `m:ss`.

    Args:
        elapsed_milliseconds: Non-negative duration in milliseconds.

    Returns:
        str: Minutes and zero-padded seconds.

    Raises:
        ValueError: Raised when the duration is negative.
    """

    if elapsed_milliseconds < 0:
        raise ValueError("elapsed_milliseconds must be >= 0")
    minutes, remainder_milliseconds = divmod(elapsed_milliseconds, 60000)
    seconds = round(remainder_milliseconds / 1000)
    if seconds == 60:
        minutes, seconds = minutes + 1, 0
    return f"{minutes}:{seconds:02d}"
