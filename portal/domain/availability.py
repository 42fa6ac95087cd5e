"""Validation of weekly doctor availability slots."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Iterable, Mapping, Optional, Tuple

from .enums import Weekday

TIME_PATTERN = re.compile(r"([01][0-9]|2[0-3]):([0-5][0-9])")
VALID_DAYS = frozenset(day.value for day in Weekday)


class SlotErrorCode(StrEnum):
    """Kinds of slot violations."""

    INVALID_DAY = "invalid_day"
    DUPLICATE_DAY = "duplicate_day"
    INVALID_START_TIME = "invalid_start_time"
    INVALID_END_TIME = "invalid_end_time"
    END_BEFORE_START = "end_before_start"


@dataclass(frozen=True)
class SlotError:
    """One violation, tagged with the 1-based slot index."""

    index: int
    code: SlotErrorCode
    message: str


@dataclass(frozen=True)
class AvailabilityValidation:
    """Result of validating a list of slots."""

    errors: Tuple[SlotError, ...] = ()

    @property
    def valid(self) -> bool:
        return not self.errors

    @property
    def messages(self) -> list[str]:
        return [error.message for error in self.errors]


def parse_minutes(value: Any) -> Optional[int]:
    """Convert ``HH:MM`` to minutes since midnight, None if malformed."""
    if not isinstance(value, str):
        return None
    match = TIME_PATTERN.fullmatch(value)
    if match is None:
        return None
    return int(match.group(1)) * 60 + int(match.group(2))


def _field(slot: Any, wire_name: str, attr_name: str) -> Any:
    if isinstance(slot, Mapping):
        return slot.get(wire_name, slot.get(attr_name))
    return getattr(slot, attr_name, None)


def _day_key(day: Any) -> str:
    return day if isinstance(day, str) else repr(day)


def validate_availability(slots: Iterable[Any]) -> AvailabilityValidation:
    """Validate weekly availability slots.

    Slots may be wire-shaped mappings (``day``, ``startTime``, ``endTime``)
    or ``AvailabilitySlot`` models. All violations are collected; only repeats
    of a day are flagged as duplicates, never the first occurrence.

    Args:
        slots: Slots in any order

    Returns:
        Validation result with errors in slot order
    """
    errors: list[SlotError] = []
    days_seen: set[str] = set()

    for index, slot in enumerate(slots, start=1):
        day = _field(slot, "day", "day")
        start_time = _field(slot, "startTime", "start_time")
        end_time = _field(slot, "endTime", "end_time")

        if not isinstance(day, str) or day not in VALID_DAYS:
            errors.append(
                SlotError(index, SlotErrorCode.INVALID_DAY, f'Slot {index}: Invalid day "{day}"'),
            )

        key = _day_key(day)
        if key in days_seen:
            errors.append(
                SlotError(
                    index,
                    SlotErrorCode.DUPLICATE_DAY,
                    f"Slot {index}: Duplicate availability for {day}",
                ),
            )
        days_seen.add(key)

        start_minutes = parse_minutes(start_time)
        end_minutes = parse_minutes(end_time)

        if start_minutes is None:
            errors.append(
                SlotError(
                    index,
                    SlotErrorCode.INVALID_START_TIME,
                    f"Slot {index}: Invalid start time format (use HH:MM)",
                ),
            )
        if end_minutes is None:
            errors.append(
                SlotError(
                    index,
                    SlotErrorCode.INVALID_END_TIME,
                    f"Slot {index}: Invalid end time format (use HH:MM)",
                ),
            )

        if (
            start_minutes is not None
            and end_minutes is not None
            and end_minutes <= start_minutes
        ):
            errors.append(
                SlotError(
                    index,
                    SlotErrorCode.END_BEFORE_START,
                    f"Slot {index}: End time must be after start time",
                ),
            )

    return AvailabilityValidation(errors=tuple(errors))
