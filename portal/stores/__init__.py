from .auth import AuthStore
from .base import ActionResult
from .doctor import (
    AppointmentFilters,
    DoctorStore,
    NotificationSettings,
    PatientFilters,
)

__all__ = [
    "ActionResult",
    "AppointmentFilters",
    "AuthStore",
    "DoctorStore",
    "NotificationSettings",
    "PatientFilters",
]
