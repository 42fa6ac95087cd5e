"""State of the doctor portal: dashboard, patients, appointments, settings."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Union

from loguru import logger

from portal.api.client import PortalAPIClient, PortalAPIError
from portal.api.constants import APPOINTMENTS_DEFAULT_SORT, PATIENTS_DEFAULT_SORT
from portal.api.models import (
    Appointment,
    AppointmentPayload,
    DashboardStats,
    DoctorProfileUpdate,
    Pagination,
    PasswordChange,
    Patient,
    PatientPayload,
    ProfileUpdate,
)
from portal.api.utils import to_date
from portal.domain.availability import AvailabilityValidation, validate_availability
from portal.domain.enums import AppointmentStatus
from portal.domain.transitions import StatusLike, check_transition
from portal.settings import settings

from .base import ActionResult, describe_error, log_failure

if TYPE_CHECKING:
    from .auth import AuthStore


@dataclass
class PatientFilters:
    """Filters of the patient list."""

    search: str = ""
    blood_group: str = ""
    sort_by: str = PATIENTS_DEFAULT_SORT[0]
    sort_order: str = PATIENTS_DEFAULT_SORT[1]


@dataclass
class AppointmentFilters:
    """Filters of the appointment list."""

    search: str = ""
    status: str = ""
    type: str = ""
    department: str = ""
    start_date: str = ""
    end_date: str = ""
    patient_id: str = ""
    sort_by: str = APPOINTMENTS_DEFAULT_SORT[0]
    sort_order: str = APPOINTMENTS_DEFAULT_SORT[1]

    def to_query(self) -> Dict[str, Any]:
        """Filters in wire names, without sorting."""
        return {
            "search": self.search,
            "status": self.status,
            "type": self.type,
            "department": self.department,
            "startDate": self.start_date,
            "endDate": self.end_date,
            "patientId": self.patient_id,
        }


@dataclass
class NotificationTypes:
    appointment_reminders: bool = True
    patient_updates: bool = True
    system_updates: bool = True


@dataclass
class NotificationSettings:
    """Notification preferences, kept locally."""

    email: bool = True
    sms: bool = True
    push: bool = True
    types: NotificationTypes = field(default_factory=NotificationTypes)


@dataclass
class DoctorSettings:
    notifications: NotificationSettings = field(default_factory=NotificationSettings)


def _first_page() -> Pagination:
    return Pagination(limit=settings.DEFAULT_PAGE_SIZE)


class DoctorStore:
    """View state of the doctor portal and the actions that change it.

    Actions never raise on remote failures: they set ``error`` and return an
    ``ActionResult`` carrying the display string.
    """

    def __init__(
        self,
        client: PortalAPIClient,
        auth_store: Optional[AuthStore] = None,
    ) -> None:
        self._client = client
        self._auth_store = auth_store

        self.appointments: List[Appointment] = []
        self.patients: List[Patient] = []
        self.current_patient: Optional[Patient] = None
        self.current_appointment: Optional[Appointment] = None
        self.dashboard_stats = DashboardStats()

        self.filters = PatientFilters()
        self.pagination = _first_page()
        self.appointment_filters = AppointmentFilters()
        self.appointment_pagination = _first_page()

        self.is_loading_appointments = False
        self.is_loading_patients = False
        self.is_saving_settings = False
        self.error: Optional[str] = None
        self.settings = DoctorSettings()

    # Dashboard
    async def fetch_dashboard_stats(self) -> None:
        self.is_loading_appointments = True
        self.error = None
        try:
            response = await self._client.get_dashboard()
        except PortalAPIError as e:
            log_failure("Dashboard fetch", e)
            self.error = describe_error(e, "Failed to fetch dashboard stats")
        else:
            self.dashboard_stats = response.data
        finally:
            self.is_loading_appointments = False

    # Patients
    async def fetch_patients(self) -> None:
        """Load the current page of patients with the current filters."""
        self.is_loading_patients = True
        self.error = None
        try:
            response = await self._client.get_patients(
                page=self.pagination.current_page,
                limit=self.pagination.limit,
                sort_by=self.filters.sort_by,
                sort_order=self.filters.sort_order,
                search=self.filters.search,
                blood_group=self.filters.blood_group,
            )
        except PortalAPIError as e:
            log_failure("Patients fetch", e)
            self.error = describe_error(e, "Failed to fetch patients")
        else:
            self.patients = response.data
            if response.pagination is not None:
                self.pagination = response.pagination
        finally:
            self.is_loading_patients = False

    async def fetch_patient(self, patient_id: str) -> None:
        self.is_loading_patients = True
        self.error = None
        try:
            response = await self._client.get_patient(patient_id)
        except PortalAPIError as e:
            log_failure(f"Patient {patient_id} fetch", e)
            self.error = describe_error(e, "Failed to fetch patient details")
            self.current_patient = None
        else:
            self.current_patient = response.data
        finally:
            self.is_loading_patients = False

    async def create_patient(self, payload: PatientPayload) -> ActionResult:
        self.is_loading_patients = True
        self.error = None
        try:
            response = await self._client.create_patient(payload)
        except PortalAPIError as e:
            return self._fail("Patient creation", e, "Failed to create patient")
        finally:
            self.is_loading_patients = False

        self.patients = [response.data, *self.patients]
        self._bump_stats(total_patients=1)
        return ActionResult(success=True)

    async def update_patient(
        self,
        patient_id: str,
        payload: PatientPayload,
    ) -> ActionResult:
        self.is_loading_patients = True
        self.error = None
        try:
            response = await self._client.update_patient(patient_id, payload)
        except PortalAPIError as e:
            return self._fail(
                f"Patient {patient_id} update",
                e,
                "Failed to update patient",
            )
        finally:
            self.is_loading_patients = False

        updated = response.data
        self.patients = [updated if p.id == patient_id else p for p in self.patients]
        if self.current_patient is not None and self.current_patient.id == patient_id:
            self.current_patient = updated
        return ActionResult(success=True)

    async def delete_patient(self, patient_id: str) -> ActionResult:
        self.is_loading_patients = True
        self.error = None
        try:
            await self._client.delete_patient(patient_id)
        except PortalAPIError as e:
            return self._fail(
                f"Patient {patient_id} deletion",
                e,
                "Failed to delete patient",
            )
        finally:
            self.is_loading_patients = False

        self.patients = [p for p in self.patients if p.id != patient_id]
        if self.current_patient is not None and self.current_patient.id == patient_id:
            self.current_patient = None
        self._bump_stats(total_patients=-1)
        return ActionResult(success=True)

    # Appointments
    async def fetch_appointments(self) -> None:
        """Load the current page of appointments with the current filters."""
        self.is_loading_appointments = True
        self.error = None
        try:
            response = await self._client.get_appointments(
                page=self.appointment_pagination.current_page,
                limit=self.appointment_pagination.limit,
                sort_by=self.appointment_filters.sort_by,
                sort_order=self.appointment_filters.sort_order,
                **self.appointment_filters.to_query(),
            )
        except PortalAPIError as e:
            log_failure("Appointments fetch", e)
            self.error = describe_error(e, "Failed to fetch appointments")
        else:
            self.appointments = response.data
            if response.pagination is not None:
                self.appointment_pagination = response.pagination
        finally:
            self.is_loading_appointments = False

    async def fetch_appointment(self, appointment_id: str) -> None:
        self.is_loading_appointments = True
        self.error = None
        try:
            response = await self._client.get_appointment(appointment_id)
        except PortalAPIError as e:
            log_failure(f"Appointment {appointment_id} fetch", e)
            self.error = describe_error(e, "Failed to fetch appointment details")
            self.current_appointment = None
        else:
            self.current_appointment = response.data
        finally:
            self.is_loading_appointments = False

    async def create_appointment(self, payload: AppointmentPayload) -> ActionResult:
        """Book an appointment, registering the patient when needed."""
        self.is_loading_appointments = True
        self.error = None
        try:
            response = await self._client.create_appointment(payload)
        except PortalAPIError as e:
            return self._fail(
                "Appointment creation",
                e,
                "Failed to create appointment",
            )
        finally:
            self.is_loading_appointments = False

        self.appointments = [response.data, *self.appointments]
        new_patient = payload.is_registered is False
        self._bump_stats(total_appointments=1, total_patients=int(new_patient))

        if new_patient:
            if response.patient is not None:
                self.patients = [response.patient, *self.patients]
            else:
                await self.fetch_patients()
        return ActionResult(success=True)

    async def update_appointment(
        self,
        appointment_id: str,
        payload: AppointmentPayload,
    ) -> ActionResult:
        self.is_loading_appointments = True
        self.error = None
        try:
            response = await self._client.update_appointment(appointment_id, payload)
        except PortalAPIError as e:
            return self._fail(
                f"Appointment {appointment_id} update",
                e,
                "Failed to update appointment",
            )
        finally:
            self.is_loading_appointments = False

        previous = next(
            (a for a in self.appointments if a.id == appointment_id),
            None,
        )
        updated = response.data
        self.appointments = [
            updated if a.id == appointment_id else a for a in self.appointments
        ]
        if (
            self.current_appointment is not None
            and self.current_appointment.id == appointment_id
        ):
            self.current_appointment = updated

        if (
            previous is not None
            and payload.status is not None
            and previous.status != payload.status
        ):
            self._count_status_change(previous.status, payload.status)
        return ActionResult(success=True)

    async def delete_appointment(self, appointment_id: str) -> ActionResult:
        self.is_loading_appointments = True
        self.error = None
        try:
            await self._client.delete_appointment(appointment_id)
        except PortalAPIError as e:
            return self._fail(
                f"Appointment {appointment_id} deletion",
                e,
                "Failed to delete appointment",
            )
        finally:
            self.is_loading_appointments = False

        self.appointments = [a for a in self.appointments if a.id != appointment_id]
        if (
            self.current_appointment is not None
            and self.current_appointment.id == appointment_id
        ):
            self.current_appointment = None
        self._bump_stats(total_appointments=-1)
        return ActionResult(success=True)

    async def update_appointment_status(
        self,
        appointment_id: str,
        status: StatusLike,
    ) -> ActionResult:
        """Move an appointment to another status.

        The change is checked against the transition table first; a denied
        change returns the reason and sends nothing.
        """
        appointment = self._find_appointment(appointment_id)
        if appointment is None:
            return ActionResult(success=False, error="Appointment not found")

        result = check_transition(appointment.status, status)
        if not result.allowed:
            logger.debug(result.message)
            return ActionResult(success=False, error=result.message)

        return await self.update_appointment(
            appointment_id,
            AppointmentPayload(status=AppointmentStatus(status)),
        )

    def appointments_on(self, day: Union[date, datetime, str]) -> List[Appointment]:
        """Loaded appointments falling on the given calendar day."""
        target = to_date(day)
        return [a for a in self.appointments if to_date(a.appointment_date) == target]

    # Filters and paging
    async def set_filters(self, **changes: Any) -> None:
        self.filters = replace(self.filters, **changes)
        self.pagination = self.pagination.model_copy(update={"current_page": 1})
        await self.fetch_patients()

    async def set_page(self, page: int) -> None:
        self.pagination = self.pagination.model_copy(update={"current_page": page})
        await self.fetch_patients()

    async def reset_filters(self) -> None:
        self.filters = PatientFilters()
        self.pagination = self.pagination.model_copy(update={"current_page": 1})
        await self.fetch_patients()

    async def set_appointment_filters(self, **changes: Any) -> None:
        self.appointment_filters = replace(self.appointment_filters, **changes)
        self.appointment_pagination = self.appointment_pagination.model_copy(
            update={"current_page": 1},
        )
        await self.fetch_appointments()

    async def set_appointment_page(self, page: int) -> None:
        self.appointment_pagination = self.appointment_pagination.model_copy(
            update={"current_page": page},
        )
        await self.fetch_appointments()

    async def reset_appointment_filters(self) -> None:
        self.appointment_filters = AppointmentFilters()
        self.appointment_pagination = self.appointment_pagination.model_copy(
            update={"current_page": 1},
        )
        await self.fetch_appointments()

    # Profile and settings
    async def update_doctor_profile(self, payload: DoctorProfileUpdate) -> ActionResult:
        """Save doctor specific fields; availability is validated first."""
        if payload.availability is not None:
            validation = self.validate_availability(payload.availability)
            if not validation.valid:
                return ActionResult(success=False, error="; ".join(validation.messages))

        self.is_saving_settings = True
        self.error = None
        try:
            response = await self._client.update_doctor_profile(payload)
        except PortalAPIError as e:
            return self._fail(
                "Doctor profile update",
                e,
                "Failed to update doctor profile",
            )
        finally:
            self.is_saving_settings = False

        if self._auth_store is not None:
            self._auth_store.set_user(response.data)
        return ActionResult(success=True)

    async def update_base_profile(self, payload: ProfileUpdate) -> ActionResult:
        self.is_saving_settings = True
        self.error = None
        try:
            response = await self._client.update_profile(payload)
        except PortalAPIError as e:
            return self._fail("Profile update", e, "Failed to update profile")
        finally:
            self.is_saving_settings = False

        if self._auth_store is not None:
            self._auth_store.set_user(response.data)
        return ActionResult(success=True)

    async def change_password(self, payload: PasswordChange) -> ActionResult:
        self.is_saving_settings = True
        self.error = None
        try:
            await self._client.change_password(payload)
        except PortalAPIError as e:
            return self._fail("Password change", e, "Failed to change password")
        finally:
            self.is_saving_settings = False

        return ActionResult(success=True, message="Password changed successfully")

    # TODO: persist notification settings once the backend has an endpoint for them
    def update_notification_settings(
        self,
        notifications: NotificationSettings,
    ) -> ActionResult:
        self.settings = replace(self.settings, notifications=notifications)
        return ActionResult(success=True)

    def get_settings(self) -> DoctorSettings:
        return self.settings

    def clear_error(self) -> None:
        self.error = None

    @staticmethod
    def validate_availability(slots: Iterable[Any]) -> AvailabilityValidation:
        return validate_availability(slots)

    # Helpers
    def _fail(self, action: str, error: PortalAPIError, fallback: str) -> ActionResult:
        log_failure(action, error)
        self.error = describe_error(error, fallback)
        return ActionResult(success=False, error=self.error)

    def _find_appointment(self, appointment_id: str) -> Optional[Appointment]:
        if (
            self.current_appointment is not None
            and self.current_appointment.id == appointment_id
        ):
            return self.current_appointment
        return next((a for a in self.appointments if a.id == appointment_id), None)

    def _bump_stats(self, total_patients: int = 0, total_appointments: int = 0) -> None:
        stats = self.dashboard_stats
        self.dashboard_stats = stats.model_copy(
            update={
                "total_patients": max(0, stats.total_patients + total_patients),
                "total_appointments": max(
                    0,
                    stats.total_appointments + total_appointments,
                ),
            },
        )

    def _count_status_change(
        self,
        old: AppointmentStatus,
        new: AppointmentStatus,
    ) -> None:
        stats = self.dashboard_stats
        completed = stats.completed_appointments
        cancelled = stats.cancelled_appointments

        if old == AppointmentStatus.COMPLETED:
            completed = max(0, completed - 1)
        elif old == AppointmentStatus.CANCELLED:
            cancelled = max(0, cancelled - 1)

        if new == AppointmentStatus.COMPLETED:
            completed += 1
        elif new == AppointmentStatus.CANCELLED:
            cancelled += 1

        self.dashboard_stats = stats.model_copy(
            update={
                "completed_appointments": completed,
                "cancelled_appointments": cancelled,
            },
        )
