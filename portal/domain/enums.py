from enum import StrEnum


class AppointmentStatus(StrEnum):
    """Appointment lifecycle statuses."""

    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


class AppointmentType(StrEnum):
    """Kinds of visits a doctor can book."""

    CONSULTATION = "consultation"
    FOLLOW_UP = "follow_up"
    EMERGENCY = "emergency"
    SURGERY = "surgery"
    CHECKUP = "checkup"


class Weekday(StrEnum):
    """Days a weekly availability slot can be keyed by."""

    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"


class BloodGroup(StrEnum):
    """Patient blood groups."""

    A_POSITIVE = "A+"
    A_NEGATIVE = "A-"
    B_POSITIVE = "B+"
    B_NEGATIVE = "B-"
    AB_POSITIVE = "AB+"
    AB_NEGATIVE = "AB-"
    O_POSITIVE = "O+"
    O_NEGATIVE = "O-"


class AllergySeverity(StrEnum):
    """Allergy severities."""

    MILD = "mild"
    MODERATE = "moderate"
    SEVERE = "severe"


class ConditionStatus(StrEnum):
    """Status of an entry in the medical history."""

    ACTIVE = "active"
    RESOLVED = "resolved"
    CHRONIC = "chronic"


class Gender(StrEnum):
    """User genders."""

    MALE = "male"
    FEMALE = "female"
    OTHER = "other"
    PREFER_NOT_TO_SAY = "prefer_not_to_say"


class Department(StrEnum):
    """Hospital departments a doctor can belong to."""

    EMERGENCY = "emergency"
    ICU = "icu"
    SURGERY = "surgery"
    ONCOLOGY = "oncology"
    CARDIOLOGY = "cardiology"
    NEUROLOGY = "neurology"
    ORTHOPEDICS = "orthopedics"
    PEDIATRICS = "pediatrics"
    MATERNITY = "maternity"
    RADIOLOGY = "radiology"
    LABORATORY = "laboratory"
    PHARMACY = "pharmacy"
    OUTPATIENT = "outpatient"
    INPATIENT = "inpatient"


class Specialization(StrEnum):
    """Medical specializations accepted for a doctor profile."""

    CARDIOLOGY = "cardiology"
    NEUROLOGY = "neurology"
    ORTHOPEDICS = "orthopedics"
    PEDIATRICS = "pediatrics"
    PSYCHIATRY = "psychiatry"
    RADIOLOGY = "radiology"
    SURGERY = "surgery"
    INTERNAL_MEDICINE = "internal_medicine"
    EMERGENCY_MEDICINE = "emergency_medicine"
    ANESTHESIOLOGY = "anesthesiology"
    PATHOLOGY = "pathology"
    DERMATOLOGY = "dermatology"
    ONCOLOGY = "oncology"
    GYNECOLOGY = "gynecology"
    UROLOGY = "urology"
    OPHTHALMOLOGY = "ophthalmology"
    ENT = "ent"
    GENERAL_PRACTICE = "general_practice"
