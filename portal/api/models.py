"""Pydantic models for the doctor portal API."""

from datetime import date, datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from portal.api.utils import format_phone, validate_phone
from portal.domain.enums import (
    AllergySeverity,
    AppointmentStatus,
    AppointmentType,
    BloodGroup,
    ConditionStatus,
    Department,
    Gender,
    Specialization,
)


def _parse_dt(v: Any) -> Any:
    if not isinstance(v, str):
        return v
    try:
        return datetime.fromisoformat(v.replace("Z", "+00:00"))
    except ValueError:
        return None


def _normalize_phone(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    if not validate_phone(v):
        raise ValueError("Please enter a valid phone number")
    return format_phone(v)


class PortalModel(BaseModel):
    """Base model accepting both wire aliases and field names."""

    model_config = ConfigDict(populate_by_name=True)

    def to_payload(self) -> Dict[str, Any]:
        """Serialize to the JSON body the backend expects."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class APIResponse(PortalModel):
    """Base model for API response."""

    message: Optional[str] = Field(None, description="Message")


class Pagination(PortalModel):
    """Page position of a list response."""

    current_page: int = Field(1, description="Current page", alias="currentPage")
    total_pages: int = Field(1, description="Number of pages", alias="totalPages")
    total_count: int = Field(0, description="Number of records", alias="totalCount")
    limit: int = Field(10, description="Page size")


class Address(PortalModel):
    """Postal address of a user."""

    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = Field(None, alias="zipCode")
    country: Optional[str] = None


class EmergencyContact(PortalModel):
    """Emergency contact of a patient."""

    name: str = Field(..., description="Contact name")
    relationship: str = Field(..., description="Relationship to the patient")
    phone: str = Field(..., description="Contact phone")
    email: Optional[str] = Field(None, description="Contact email")


class InsuranceInfo(PortalModel):
    """Insurance policy of a patient."""

    provider: Optional[str] = None
    policy_number: Optional[str] = Field(None, alias="policyNumber")
    group_number: Optional[str] = Field(None, alias="groupNumber")
    valid_until: Optional[datetime] = Field(None, alias="validUntil")

    @field_validator("valid_until", mode="before")
    @classmethod
    def _parse_valid_until(cls, v: Any) -> Any:
        return _parse_dt(v)


class MedicalHistoryEntry(PortalModel):
    """One condition in the medical history."""

    condition: str = Field(..., description="Diagnosed condition")
    diagnosed_date: Optional[datetime] = Field(
        None,
        description="Date of diagnosis",
        alias="diagnosedDate",
    )
    status: ConditionStatus = Field(ConditionStatus.ACTIVE, description="Status")
    notes: Optional[str] = Field(None, description="Notes")

    @field_validator("diagnosed_date", mode="before")
    @classmethod
    def _parse_date(cls, v: Any) -> Any:
        return _parse_dt(v)


class Allergy(PortalModel):
    """Known allergy of a patient."""

    allergen: str = Field(..., description="Allergen")
    severity: AllergySeverity = Field(AllergySeverity.MILD, description="Severity")
    reaction: Optional[str] = Field(None, description="Reaction")
    notes: Optional[str] = Field(None, description="Notes")


class Medication(PortalModel):
    """Medication the patient currently takes."""

    name: str = Field(..., description="Medication name")
    dosage: str = Field(..., description="Dosage")
    frequency: str = Field(..., description="Frequency")
    prescribed_date: Optional[datetime] = Field(
        None,
        description="Date of prescription",
        alias="prescribedDate",
    )
    prescribed_by: Optional[str] = Field(
        None,
        description="ID of the prescribing doctor",
        alias="prescribedBy",
    )

    @field_validator("prescribed_date", mode="before")
    @classmethod
    def _parse_date(cls, v: Any) -> Any:
        return _parse_dt(v)


class User(PortalModel):
    """Base profile shared by every role."""

    id: str = Field(..., description="ID of the user", alias="_id")
    username: Optional[str] = Field(None, description="Username")
    email: Optional[str] = Field(None, description="Email")
    first_name: Optional[str] = Field(None, description="First name", alias="firstName")
    last_name: Optional[str] = Field(None, description="Last name", alias="lastName")
    phone: Optional[str] = Field(None, description="Phone")
    date_of_birth: Optional[datetime] = Field(
        None,
        description="Date of birth",
        alias="dateOfBirth",
    )
    gender: Optional[Gender] = Field(None, description="Gender")
    address: Optional[Address] = Field(None, description="Address")
    role: Optional[str] = Field(None, description="Role of the user")
    is_active: bool = Field(True, description="Is the account active", alias="isActive")

    @field_validator("date_of_birth", mode="before")
    @classmethod
    def _parse_birth_date(cls, v: Any) -> Any:
        return _parse_dt(v)

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)


class Qualification(PortalModel):
    """Degree held by a doctor."""

    degree: str
    institution: str
    year: Optional[int] = None
    specialty: Optional[str] = None


class AvailabilitySlot(PortalModel):
    """Weekly availability window of a doctor.

    Fields are kept as plain strings so that a slot can hold what the user
    typed; ``portal.domain.availability`` decides whether it is valid.
    """

    day: Optional[str] = Field(None, description="Weekday name")
    start_time: Optional[str] = Field(None, description="HH:MM", alias="startTime")
    end_time: Optional[str] = Field(None, description="HH:MM", alias="endTime")
    is_available: bool = Field(True, description="Is the slot open", alias="isAvailable")


class Doctor(User):
    """Doctor profile."""

    medical_license_number: Optional[str] = Field(
        None,
        description="Medical license number",
        alias="medicalLicenseNumber",
    )
    specialization: List[str] = Field(default_factory=list)
    department: Optional[str] = Field(None, description="Department")
    years_of_experience: Optional[int] = Field(
        None,
        description="Years of experience",
        alias="yearsOfExperience",
    )
    qualifications: List[Qualification] = Field(default_factory=list)
    consultation_fee: Optional[float] = Field(
        None,
        description="Consultation fee",
        alias="consultationFee",
    )
    availability: List[AvailabilitySlot] = Field(default_factory=list)
    is_available_for_emergency: bool = Field(
        False,
        description="Takes emergency calls",
        alias="isAvailableForEmergency",
    )


class Patient(User):
    """Patient record."""

    emergency_contact: Optional[EmergencyContact] = Field(
        None,
        alias="emergencyContact",
    )
    insurance_info: Optional[InsuranceInfo] = Field(None, alias="insuranceInfo")
    medical_history: List[MedicalHistoryEntry] = Field(
        default_factory=list,
        alias="medicalHistory",
    )
    allergies: List[Allergy] = Field(default_factory=list)
    current_medications: List[Medication] = Field(
        default_factory=list,
        alias="currentMedications",
    )
    blood_group: Optional[BloodGroup] = Field(None, alias="bloodGroup")
    height: Optional[float] = Field(None, description="Height in cm")
    weight: Optional[float] = Field(None, description="Weight in kg")
    assigned_doctor: Optional[Union[str, User]] = Field(
        None,
        description="Assigned doctor, ID or populated profile",
        alias="assignedDoctor",
    )


class Appointment(PortalModel):
    """Appointment of a patient with the doctor."""

    id: str = Field(..., description="ID of the appointment", alias="_id")
    appointment_id: Optional[str] = Field(
        None,
        description="Human readable appointment number",
        alias="appointmentId",
    )
    patient: Optional[Union[str, Patient]] = Field(
        None,
        description="Patient, ID or populated record",
    )
    doctor: Optional[Union[str, User]] = Field(
        None,
        description="Doctor, ID or populated profile",
    )
    appointment_date: Optional[datetime] = Field(
        None,
        description="Day of the appointment",
        alias="appointmentDate",
    )
    start_time: Optional[str] = Field(None, description="HH:MM", alias="startTime")
    end_time: Optional[str] = Field(None, description="HH:MM", alias="endTime")
    duration: int = Field(30, description="Duration in minutes")
    type: AppointmentType = Field(AppointmentType.CONSULTATION, description="Type")
    status: AppointmentStatus = Field(AppointmentStatus.SCHEDULED, description="Status")
    department: Optional[str] = Field(None, description="Department")
    reason: Optional[str] = Field(None, description="Reason of the visit")
    notes: Optional[str] = Field(None, description="Notes")
    cancel_reason: Optional[str] = Field(
        None,
        description="Reason of the cancellation",
        alias="cancelReason",
    )

    @field_validator("appointment_date", mode="before")
    @classmethod
    def _parse_appointment_date(cls, v: Any) -> Any:
        return _parse_dt(v)

    @property
    def patient_id(self) -> Optional[str]:
        if isinstance(self.patient, Patient):
            return self.patient.id
        return self.patient


class StatusCount(PortalModel):
    """Number of appointments in one status."""

    status: str = Field(..., alias="_id")
    count: int = 0


class DashboardStats(PortalModel):
    """Aggregated counters for the doctor dashboard."""

    total_patients: int = Field(0, alias="totalPatients")
    total_appointments: int = Field(0, alias="totalAppointments")
    today_appointments: int = Field(0, alias="todayAppointments")
    upcoming_appointments: int = Field(0, alias="upcomingAppointments")
    completed_appointments: int = Field(0, alias="completedAppointments")
    cancelled_appointments: int = Field(0, alias="cancelledAppointments")
    status_distribution: List[StatusCount] = Field(
        default_factory=list,
        alias="statusDistribution",
    )
    recent_appointments: List[Appointment] = Field(
        default_factory=list,
        alias="recentAppointments",
    )


class DashboardResponse(APIResponse):
    """Response with dashboard counters."""

    data: DashboardStats = Field(default_factory=DashboardStats)


class PatientsResponse(APIResponse):
    """Response with a page of patients."""

    data: List[Patient] = Field(default_factory=list)
    pagination: Optional[Pagination] = None


class PatientResponse(APIResponse):
    """Response with a single patient."""

    data: Patient


class AppointmentsResponse(APIResponse):
    """Response with a page of appointments."""

    data: List[Appointment] = Field(default_factory=list)
    pagination: Optional[Pagination] = None


class AppointmentResponse(APIResponse):
    """Response with a single appointment.

    When the appointment is booked for a new patient the backend answers
    with ``data: [appointment, patient]``; the pair is split into ``data``
    and ``patient``.
    """

    data: Appointment
    patient: Optional[Patient] = None

    @model_validator(mode="before")
    @classmethod
    def _split_created_patient(cls, values: Any) -> Any:
        if isinstance(values, dict) and isinstance(values.get("data"), list):
            items = values["data"]
            values = dict(values)
            values["data"] = items[0] if items else None
            if len(items) > 1 and values.get("patient") is None:
                values["patient"] = items[1]
        return values


class DoctorResponse(APIResponse):
    """Response with the updated profile of the current user."""

    data: Doctor


class AuthResponse(APIResponse):
    """Response of login and registration."""

    user: Doctor


# Requests


class PatientPayload(PortalModel):
    """Fields sent when creating or updating a patient."""

    first_name: Optional[str] = Field(None, alias="firstName")
    last_name: Optional[str] = Field(None, alias="lastName")
    email: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    phone: Optional[str] = None
    date_of_birth: Optional[date] = Field(None, alias="dateOfBirth")
    gender: Optional[Gender] = None
    blood_group: Optional[BloodGroup] = Field(None, alias="bloodGroup")
    height: Optional[float] = Field(None, ge=30, le=300)
    weight: Optional[float] = Field(None, ge=1, le=500)
    emergency_contact: Optional[EmergencyContact] = Field(
        None,
        alias="emergencyContact",
    )
    insurance_info: Optional[InsuranceInfo] = Field(None, alias="insuranceInfo")
    medical_history: Optional[List[MedicalHistoryEntry]] = Field(
        None,
        alias="medicalHistory",
    )
    allergies: Optional[List[Allergy]] = None
    current_medications: Optional[List[Medication]] = Field(
        None,
        alias="currentMedications",
    )

    @field_validator("phone")
    @classmethod
    def _validate_phone(cls, v: Optional[str]) -> Optional[str]:
        return _normalize_phone(v)


class AppointmentPayload(PortalModel):
    """Fields sent when creating or updating an appointment.

    For a new patient set ``is_registered`` to False and fill the patient
    fields instead of ``patient_id``.
    """

    is_registered: Optional[bool] = Field(None, alias="isRegistered")
    patient_id: Optional[str] = Field(None, alias="patientId")
    appointment_date: Optional[date] = Field(None, alias="appointmentDate")
    start_time: Optional[str] = Field(None, alias="startTime")
    end_time: Optional[str] = Field(None, alias="endTime")
    duration: Optional[int] = Field(None, gt=0)
    type: Optional[AppointmentType] = None
    status: Optional[AppointmentStatus] = None
    department: Optional[str] = None
    reason: Optional[str] = None
    notes: Optional[str] = None
    cancel_reason: Optional[str] = Field(None, alias="cancelReason")

    first_name: Optional[str] = Field(None, alias="firstName")
    last_name: Optional[str] = Field(None, alias="lastName")
    email: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    phone: Optional[str] = None
    date_of_birth: Optional[date] = Field(None, alias="dateOfBirth")
    gender: Optional[Gender] = None

    @field_validator("phone")
    @classmethod
    def _validate_phone(cls, v: Optional[str]) -> Optional[str]:
        return _normalize_phone(v)


class DoctorProfileUpdate(PortalModel):
    """Doctor specific profile fields."""

    specialization: Optional[List[Specialization]] = None
    department: Optional[Department] = None
    years_of_experience: Optional[int] = Field(
        None,
        ge=0,
        le=60,
        alias="yearsOfExperience",
    )
    qualifications: Optional[List[Qualification]] = None
    consultation_fee: Optional[float] = Field(None, ge=0, alias="consultationFee")
    availability: Optional[List[AvailabilitySlot]] = None
    is_available_for_emergency: Optional[bool] = Field(
        None,
        alias="isAvailableForEmergency",
    )


class ProfileUpdate(PortalModel):
    """Base profile fields of the current user."""

    first_name: Optional[str] = Field(None, max_length=50, alias="firstName")
    last_name: Optional[str] = Field(None, max_length=50, alias="lastName")
    phone: Optional[str] = None
    date_of_birth: Optional[date] = Field(None, alias="dateOfBirth")
    gender: Optional[Gender] = None
    address: Optional[Address] = None

    @field_validator("phone")
    @classmethod
    def _validate_phone(cls, v: Optional[str]) -> Optional[str]:
        return _normalize_phone(v)


class PasswordChange(PortalModel):
    """Password change form."""

    current_password: str = Field(..., alias="currentPassword")
    new_password: str = Field(..., min_length=8, alias="newPassword")
    confirm_password: str = Field(..., alias="confirmPassword")

    @model_validator(mode="after")
    def _check_passwords(self) -> "PasswordChange":
        if self.new_password != self.confirm_password:
            raise ValueError("New password and confirm password do not match")
        if self.new_password == self.current_password:
            raise ValueError("New password must be different from current password")
        return self


class LoginRequest(PortalModel):
    """Credentials for login."""

    email: str
    password: str


class RegisterRequest(PortalModel):
    """New account registration."""

    first_name: str = Field(..., alias="firstName")
    last_name: str = Field(..., alias="lastName")
    email: str
    password: str = Field(..., min_length=8)
    phone: str
    middle_name: Optional[str] = Field(None, alias="middleName")

    @field_validator("phone")
    @classmethod
    def _validate_phone(cls, v: str) -> str:
        return _normalize_phone(v)
