"""Asynchronous API client for the doctor portal backend."""

import asyncio
from types import TracebackType
from typing import Any, Dict, Optional, Self, Type, TypeVar

import aiohttp
import orjson
from loguru import logger
from pydantic import BaseModel, ValidationError

from portal.api.constants import (
    APPOINTMENTS_DEFAULT_SORT,
    DEFAULT_HEADERS,
    ENDPOINTS,
    PATIENTS_DEFAULT_SORT,
)
from portal.api.utils import build_query
from portal.domain.availability import validate_availability
from portal.settings import settings

from .models import (
    AppointmentPayload,
    AppointmentResponse,
    AppointmentsResponse,
    AuthResponse,
    DashboardResponse,
    Doctor,
    DoctorProfileUpdate,
    DoctorResponse,
    LoginRequest,
    PasswordChange,
    PatientPayload,
    PatientResponse,
    PatientsResponse,
    ProfileUpdate,
    RegisterRequest,
)

ModelT = TypeVar("ModelT", bound=BaseModel)


class PortalAPIError(Exception):
    """Exception with fields of the error response."""

    def __init__(
        self,
        message: Optional[str],
        status: Optional[int],
    ) -> None:
        super().__init__(message or (f"HTTP {status}" if status else "Network error"))
        self.message = message
        self.status = status


def _json_dumps(obj: Any) -> str:
    return orjson.dumps(obj).decode()


class PortalAPIClient:
    """Asynchronous client for working with API."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[int] = None,
    ) -> None:
        self._base_url = base_url
        self._timeout = aiohttp.ClientTimeout(total=timeout or settings.API_TIMEOUT)
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> Self:
        await self._ensure_session()
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    def _headers(self) -> Dict[str, str]:
        return dict(DEFAULT_HEADERS)

    def _url(self, endpoint: str) -> str:
        if self._base_url is not None:
            return f"{self._base_url.rstrip('/')}/{endpoint.lstrip('/')}"
        return str(settings.api_url(endpoint))

    async def _ensure_session(self) -> None:
        if self._session is None or self._session.closed:
            # The backend authenticates with a cookie, also on plain IP hosts
            self._session = aiohttp.ClientSession(
                timeout=self._timeout,
                headers=self._headers(),
                cookie_jar=aiohttp.CookieJar(unsafe=True),
                json_serialize=_json_dumps,
            )

    async def _request(
        self,
        method: str,
        endpoint: str,
        model: Optional[Type[BaseModel]] = None,
        **kwargs: Any,
    ) -> Any:
        """Make HTTP request to the API.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: API endpoint
            model: Response model to parse a successful body into
            **kwargs: Additional request parameters

        Returns:
            Parsed ``model``, or the API response as dictionary without one

        Raises:
            PortalAPIError: When API returns error, an unexpected body or
                cannot be reached
            RuntimeError: If session is not initialized
        """
        await self._ensure_session()
        url = self._url(endpoint)

        if self._session is None:
            raise RuntimeError("Session not initialized")

        try:
            async with self._session.request(method, url, **kwargs) as resp:
                try:
                    data = await resp.json(loads=orjson.loads, content_type=None)
                except ValueError:
                    # Not JSON or not decodable text
                    data = None
                if not isinstance(data, dict):
                    data = {"data": data} if data is not None else {}
                if not 200 <= resp.status < 300:
                    raise PortalAPIError(
                        message=data.get("message"),
                        status=resp.status,
                    )
                if model is None:
                    return data
                return self._parse(model, data, resp.status)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"{method} {url} failed: {e!r}")
            raise PortalAPIError(message=None, status=None) from e

    @staticmethod
    def _parse(model: Type[ModelT], data: Dict[str, Any], status: int) -> ModelT:
        try:
            return model.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Unexpected {model.__name__} body: {e}")
            raise PortalAPIError(message=None, status=status) from e

    # Auth
    async def login(self, payload: LoginRequest) -> AuthResponse:
        """Log in; the backend answers with a session cookie.

        Args:
            payload: Credentials

        Returns:
            Logged in user
        """
        logger.info(f"Logging in as {payload.email}")
        return await self._request(
            "POST",
            ENDPOINTS["login"],
            json=payload.to_payload(),
            model=AuthResponse,
        )

    async def register(self, payload: RegisterRequest) -> AuthResponse:
        """Register a new account.

        Args:
            payload: Registration form

        Returns:
            Registered user
        """
        logger.info(f"Registering {payload.email}")
        return await self._request(
            "POST",
            ENDPOINTS["register"],
            json=payload.to_payload(),
            model=AuthResponse,
        )

    async def logout(self) -> None:
        """Log out and drop the session cookie."""
        logger.info("Logging out")
        await self._request("POST", ENDPOINTS["logout"])

    async def get_profile(self) -> Doctor:
        """Get the profile of the logged in user.

        Returns:
            Current user
        """
        logger.info("Fetching current profile")
        return await self._request("GET", ENDPOINTS["profile"], model=Doctor)

    async def update_profile(self, payload: ProfileUpdate) -> DoctorResponse:
        """Update base profile fields of the current user.

        Args:
            payload: Changed profile fields

        Returns:
            Updated user
        """
        logger.info("Updating base profile")
        response = await self._request(
            "PUT",
            ENDPOINTS["profile"],
            json=payload.to_payload(),
            model=DoctorResponse,
        )
        logger.debug("Base profile updated successfully")
        return response

    async def change_password(self, payload: PasswordChange) -> None:
        """Change password of the current user.

        Args:
            payload: Password change form
        """
        logger.info("Changing password")
        await self._request("PUT", ENDPOINTS["password"], json=payload.to_payload())
        logger.debug("Password changed successfully")

    # Dashboard
    async def get_dashboard(self) -> DashboardResponse:
        """Get dashboard counters and recent appointments.

        Returns:
            Dashboard response
        """
        logger.info("Fetching doctor dashboard")
        return await self._request(
            "GET",
            ENDPOINTS["dashboard"],
            model=DashboardResponse,
        )

    # Patients
    async def get_patients(
        self,
        page: int = 1,
        limit: Optional[int] = None,
        sort_by: str = PATIENTS_DEFAULT_SORT[0],
        sort_order: str = PATIENTS_DEFAULT_SORT[1],
        search: Optional[str] = None,
        blood_group: Optional[str] = None,
    ) -> PatientsResponse:
        """Get a page of patients assigned to the doctor.

        Args:
            page: Page number, starting at 1
            limit: Page size
            sort_by: Field to sort by
            sort_order: "asc" or "desc"
            search: Text matched against names and email
            blood_group: Blood group filter

        Returns:
            Patients response with pagination
        """
        logger.info(f"Fetching patients, page {page}")
        params = build_query(
            page=page,
            limit=limit or settings.DEFAULT_PAGE_SIZE,
            sortBy=sort_by,
            sortOrder=sort_order,
            search=search,
            bloodGroup=blood_group,
        )
        response = await self._request(
            "GET",
            ENDPOINTS["patients"],
            params=params,
            model=PatientsResponse,
        )
        logger.debug(f"Retrieved {len(response.data)} patients")
        return response

    async def get_patient(self, patient_id: str) -> PatientResponse:
        """Get single patient by ID.

        Args:
            patient_id: Patient ID

        Returns:
            Patient response
        """
        logger.info(f"Fetching patient {patient_id}")
        endpoint = ENDPOINTS["patient"].format(patient_id=patient_id)
        return await self._request("GET", endpoint, model=PatientResponse)

    async def create_patient(self, payload: PatientPayload) -> PatientResponse:
        """Create a patient assigned to the doctor.

        Args:
            payload: Patient fields

        Returns:
            Created patient
        """
        logger.info("Creating new patient")
        response = await self._request(
            "POST",
            ENDPOINTS["patients"],
            json=payload.to_payload(),
            model=PatientResponse,
        )
        logger.debug("Patient created successfully")
        return response

    async def update_patient(
        self,
        patient_id: str,
        payload: PatientPayload,
    ) -> PatientResponse:
        """Update patient record.

        Args:
            patient_id: Patient ID
            payload: Changed patient fields

        Returns:
            Updated patient
        """
        logger.info(f"Updating patient {patient_id}")
        endpoint = ENDPOINTS["patient"].format(patient_id=patient_id)
        response = await self._request(
            "PUT",
            endpoint,
            json=payload.to_payload(),
            model=PatientResponse,
        )
        logger.debug(f"Patient {patient_id} updated successfully")
        return response

    async def delete_patient(self, patient_id: str) -> None:
        """Delete patient.

        Args:
            patient_id: Patient ID
        """
        logger.info(f"Deleting patient {patient_id}")
        endpoint = ENDPOINTS["patient"].format(patient_id=patient_id)
        await self._request("DELETE", endpoint)

    # Appointments
    async def get_appointments(
        self,
        page: int = 1,
        limit: Optional[int] = None,
        sort_by: str = APPOINTMENTS_DEFAULT_SORT[0],
        sort_order: str = APPOINTMENTS_DEFAULT_SORT[1],
        **filters: Any,
    ) -> AppointmentsResponse:
        """Get a page of the doctor's appointments.

        Args:
            page: Page number, starting at 1
            limit: Page size
            sort_by: Field to sort by
            sort_order: "asc" or "desc"
            **filters: search, status, type, department, startDate, endDate,
                patientId; empty values are not sent

        Returns:
            Appointments response with pagination
        """
        logger.info(f"Fetching appointments, page {page}")
        params = build_query(
            page=page,
            limit=limit or settings.DEFAULT_PAGE_SIZE,
            sortBy=sort_by,
            sortOrder=sort_order,
            **filters,
        )
        response = await self._request(
            "GET",
            ENDPOINTS["appointments"],
            params=params,
            model=AppointmentsResponse,
        )
        logger.debug(f"Retrieved {len(response.data)} appointments")
        return response

    async def get_appointment(self, appointment_id: str) -> AppointmentResponse:
        """Get single appointment by ID.

        Args:
            appointment_id: Appointment ID

        Returns:
            Appointment response
        """
        logger.info(f"Fetching appointment {appointment_id}")
        endpoint = ENDPOINTS["appointment"].format(appointment_id=appointment_id)
        return await self._request("GET", endpoint, model=AppointmentResponse)

    async def create_appointment(
        self,
        payload: AppointmentPayload,
    ) -> AppointmentResponse:
        """Create new appointment.

        Args:
            payload: Appointment creation request data

        Returns:
            Created appointment, with the new patient when one was registered
        """
        logger.info("Creating new appointment")
        response = await self._request(
            "POST",
            ENDPOINTS["appointments"],
            json=payload.to_payload(),
            model=AppointmentResponse,
        )
        logger.debug("Appointment created successfully")
        return response

    async def update_appointment(
        self,
        appointment_id: str,
        payload: AppointmentPayload,
    ) -> AppointmentResponse:
        """Update appointment.

        Status changes are sent as is; run
        ``portal.domain.transitions.check_transition`` before calling this.

        Args:
            appointment_id: Appointment ID
            payload: Changed appointment fields

        Returns:
            Updated appointment
        """
        logger.info(f"Updating appointment {appointment_id}")
        endpoint = ENDPOINTS["appointment"].format(appointment_id=appointment_id)
        response = await self._request(
            "PUT",
            endpoint,
            json=payload.to_payload(),
            model=AppointmentResponse,
        )
        logger.debug(f"Appointment {appointment_id} updated successfully")
        return response

    async def delete_appointment(self, appointment_id: str) -> None:
        """Delete appointment.

        Args:
            appointment_id: Appointment ID
        """
        logger.info(f"Deleting appointment {appointment_id}")
        endpoint = ENDPOINTS["appointment"].format(appointment_id=appointment_id)
        await self._request("DELETE", endpoint)

    # Doctor profile
    async def update_doctor_profile(
        self,
        payload: DoctorProfileUpdate,
    ) -> DoctorResponse:
        """Update doctor specific profile fields.

        Args:
            payload: Changed doctor fields

        Returns:
            Updated doctor profile

        Raises:
            ValueError: If the availability slots are invalid
        """
        if payload.availability is not None:
            validation = validate_availability(payload.availability)
            if not validation.valid:
                raise ValueError("; ".join(validation.messages))

        logger.info("Updating doctor profile")
        response = await self._request(
            "PUT",
            ENDPOINTS["doctor_profile"],
            json=payload.to_payload(),
            model=DoctorResponse,
        )
        logger.debug("Doctor profile updated successfully")
        return response
