"""Stage timeline event helpers for lifecycle diagnostics."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any


def domain_build_stage_event(
    stage: str,
    status: str,
    details: dict[str, Any] | None = None,
) -> dict[str, object]:
    """Build one structured lifecycle stage event.

    Args:
        stage: Stage name (`resolve_version`, `fetch_source`, `compose_up`, ...).
        status: Stage status marker (`started`, `completed`, `failed`).
        details: Optional structured details object.

    Returns:
        dict[str, object]: Structured timeline event stamped with the current UTC time.
    """

    event_payload: dict[str, object] = {
        "stage": stage,
        "status": status,
        "at_utc": datetime.now(timezone.utc).isoformat(),
    }
    if details:
        event_payload["details"] = details
    return event_payload


def domain_build_failure_event(stage: str, error: BaseException) -> dict[str, object]:
    """Build a `failed` stage event describing an exception.

    Args:
        stage: Stage that failed.
        error: Raised exception.

    Returns:
        dict[str, object]: Structured failure event.
    """

    return domain_build_stage_event(
        stage=stage,
        status="failed",
        details={"error_type": type(error).__name__, "error_message": str(error)},
    )
