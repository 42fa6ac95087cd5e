from .client import PortalAPIClient, PortalAPIError
from .models import (
    APIResponse,
    Appointment,
    AvailabilitySlot,
    DashboardStats,
    Doctor,
    Pagination,
    Patient,
    User,
)

__all__ = [
    "APIResponse",
    "Appointment",
    "AvailabilitySlot",
    "DashboardStats",
    "Doctor",
    "Pagination",
    "Patient",
    "PortalAPIClient",
    "PortalAPIError",
    "User",
]
