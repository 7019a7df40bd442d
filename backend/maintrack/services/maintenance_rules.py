"""Maintenance status invariant helpers."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone


TERMINAL_STATUSES: set[str] = {"completed", "cancelled"}
OPEN_STATUSES: tuple[str, ...] = ("pending", "in-progress")
_ALLOWED_TRANSITIONS: dict[str, set[str]] = {
    "pending": {"in-progress", "completed", "cancelled"},
    "in-progress": {"completed", "cancelled"},
    "completed": set(),
    "cancelled": set(),
}


class StatusTransitionError(ValueError):
    """Raised when a record would leave a terminal status or skip the lifecycle."""


def now_utc() -> datetime:
    """Naive UTC timestamp, matching how DateTime columns are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def start_of_day(value: datetime) -> datetime:
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


def normalize_status(status: str | None) -> str:
    if not status:
        return "pending"
    normalized = status.strip().lower().replace("_", "-")
    if normalized == "in progress":
        return "in-progress"
    return normalized


def validate_status_transition(*, current_status: str | None, next_status: str | None) -> str:
    if next_status is None:
        return normalize_status(current_status)

    current = normalize_status(current_status)
    nxt = normalize_status(next_status)

    if nxt == current:
        return nxt

    allowed = _ALLOWED_TRANSITIONS.get(current)
    if allowed is None:
        raise StatusTransitionError(f"Unknown maintenance status: {current}")
    if nxt not in _ALLOWED_TRANSITIONS:
        raise StatusTransitionError(f"Unknown maintenance status: {nxt}")
    if nxt not in allowed:
        raise StatusTransitionError(f"Invalid maintenance status transition: {current} -> {nxt}")
    return nxt


def is_terminal_status(status: str | None) -> bool:
    return normalize_status(status) in TERMINAL_STATUSES


def is_completion_transition(*, current_status: str | None, next_status: str | None) -> bool:
    """True only for the single side-effecting transition into completed."""
    if next_status is None:
        return False
    return normalize_status(next_status) == "completed" and normalize_status(current_status) != "completed"


def occurrence_due_date(scheduled_date: datetime, *, window_days: int) -> datetime:
    return scheduled_date + timedelta(days=window_days)


def chain_root_id(record) -> object:
    """Occurrences always point at the chain root, never at an intermediate link."""
    return record.parent_maintenance_id or record.id


def ensure_recurrence_consistent(*, is_recurring: bool, pattern: str | None, is_template: bool) -> None:
    if is_template and not is_recurring:
        raise ValueError("A maintenance template must be recurring")
    if is_recurring and not pattern:
        raise ValueError("Recurring maintenance requires a recurrence pattern")
