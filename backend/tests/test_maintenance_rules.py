from __future__ import annotations

from datetime import datetime
from types import SimpleNamespace
from uuid import uuid4

import pytest

from maintrack.services.maintenance_rules import (
    StatusTransitionError,
    chain_root_id,
    ensure_recurrence_consistent,
    is_completion_transition,
    is_terminal_status,
    normalize_status,
    occurrence_due_date,
    validate_status_transition,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (None, "pending"),
        ("", "pending"),
        ("In Progress", "in-progress"),
        ("in_progress", "in-progress"),
        (" COMPLETED ", "completed"),
    ],
)
def test_normalize_status(raw, expected: str) -> None:
    assert normalize_status(raw) == expected


@pytest.mark.parametrize(
    ("current", "nxt"),
    [
        ("pending", "in-progress"),
        ("pending", "completed"),
        ("pending", "cancelled"),
        ("in-progress", "completed"),
        ("in-progress", "cancelled"),
    ],
)
def test_allowed_transitions(current: str, nxt: str) -> None:
    assert validate_status_transition(current_status=current, next_status=nxt) == nxt


@pytest.mark.parametrize(
    ("current", "nxt"),
    [
        ("completed", "pending"),
        ("completed", "in-progress"),
        ("cancelled", "completed"),
        ("in-progress", "pending"),
        ("pending", "archived"),
    ],
)
def test_forbidden_transitions(current: str, nxt: str) -> None:
    with pytest.raises(StatusTransitionError):
        validate_status_transition(current_status=current, next_status=nxt)


def test_same_status_and_missing_status_are_noops() -> None:
    assert validate_status_transition(current_status="completed", next_status="completed") == "completed"
    assert validate_status_transition(current_status="in-progress", next_status=None) == "in-progress"


def test_completion_transition_fires_only_once() -> None:
    assert is_completion_transition(current_status="pending", next_status="completed")
    assert is_completion_transition(current_status="in-progress", next_status="completed")
    assert not is_completion_transition(current_status="completed", next_status="completed")
    assert not is_completion_transition(current_status="pending", next_status=None)
    assert not is_completion_transition(current_status="pending", next_status="cancelled")


def test_terminal_statuses() -> None:
    assert is_terminal_status("completed")
    assert is_terminal_status("cancelled")
    assert not is_terminal_status("pending")
    assert not is_terminal_status(None)


def test_occurrence_due_date_adds_window() -> None:
    assert occurrence_due_date(datetime(2025, 1, 13, 9, 0), window_days=7) == datetime(2025, 1, 20, 9, 0)


def test_chain_root_prefers_parent() -> None:
    root = uuid4()
    own = uuid4()
    assert chain_root_id(SimpleNamespace(id=own, parent_maintenance_id=root)) == root
    assert chain_root_id(SimpleNamespace(id=own, parent_maintenance_id=None)) == own


def test_recurrence_consistency() -> None:
    ensure_recurrence_consistent(is_recurring=False, pattern=None, is_template=False)
    ensure_recurrence_consistent(is_recurring=True, pattern="weekly", is_template=True)

    with pytest.raises(ValueError, match="template must be recurring"):
        ensure_recurrence_consistent(is_recurring=False, pattern=None, is_template=True)
    with pytest.raises(ValueError, match="requires a recurrence pattern"):
        ensure_recurrence_consistent(is_recurring=True, pattern=None, is_template=False)
