from .availability import (
    AvailabilityValidation,
    SlotError,
    SlotErrorCode,
    validate_availability,
)
from .enums import AppointmentStatus, AppointmentType, Weekday
from .transitions import (
    ALLOWED_TRANSITIONS,
    TransitionResult,
    allowed_transitions,
    check_transition,
    is_allowed,
)

__all__ = [
    "ALLOWED_TRANSITIONS",
    "AppointmentStatus",
    "AppointmentType",
    "AvailabilityValidation",
    "SlotError",
    "SlotErrorCode",
    "TransitionResult",
    "Weekday",
    "allowed_transitions",
    "check_transition",
    "is_allowed",
    "validate_availability",
]
