from itertools import product

import pytest

from portal.domain.enums import AppointmentStatus
from portal.domain.transitions import (
    ALLOWED_TRANSITIONS,
    allowed_transitions,
    check_transition,
    is_allowed,
)

EXPECTED_TABLE = {
    "scheduled": {"confirmed", "cancelled"},
    "confirmed": {"in_progress", "cancelled"},
    "in_progress": {"completed", "no_show"},
    "completed": {"scheduled"},
    "cancelled": {"scheduled"},
    "no_show": {"scheduled"},
}


def test_table_covers_every_status() -> None:
    assert set(ALLOWED_TRANSITIONS) == set(AppointmentStatus)


@pytest.mark.parametrize(
    ("current", "requested"),
    list(product([s.value for s in AppointmentStatus], repeat=2)),
)
def test_is_allowed_matches_table(current: str, requested: str) -> None:
    assert is_allowed(current, requested) is (requested in EXPECTED_TABLE[current])


def test_is_allowed_accepts_enum_members() -> None:
    assert is_allowed(AppointmentStatus.SCHEDULED, AppointmentStatus.CONFIRMED)
    assert not is_allowed(AppointmentStatus.SCHEDULED, AppointmentStatus.COMPLETED)


def test_completed_to_confirmed_is_denied_with_allowed_list() -> None:
    result = check_transition("completed", "confirmed")

    assert result.allowed is False
    assert list(result.allowed_statuses) == ["scheduled"]
    assert result.message == (
        'Cannot change status from "completed" to "confirmed". '
        "Allowed transitions: scheduled"
    )


def test_allowed_transition_has_no_message() -> None:
    result = check_transition(AppointmentStatus.CONFIRMED, "in_progress")

    assert result.allowed is True
    assert result.message is None
    assert result.allowed_statuses == (
        AppointmentStatus.IN_PROGRESS,
        AppointmentStatus.CANCELLED,
    )


@pytest.mark.parametrize("status", ["archived", "", None, "SCHEDULED"])
def test_unknown_status_allows_nothing(status: str | None) -> None:
    assert allowed_transitions(status) == ()
    assert not is_allowed(status, "scheduled")

    result = check_transition(status, "scheduled")
    assert result.allowed is False
    assert result.message is not None
    assert result.message.endswith("Allowed transitions: none")


def test_unknown_requested_status_is_denied() -> None:
    result = check_transition("scheduled", "teleported")

    assert result.allowed is False
    assert "confirmed, cancelled" in (result.message or "")


def test_same_status_is_not_a_transition() -> None:
    assert not is_allowed("scheduled", "scheduled")
