"""
Constants for the doctor portal API
"""

# Endpoints, relative to settings.API_BASE_URL
ENDPOINTS = {
    # Auth
    "login": "auth/login",
    "register": "auth/register",
    "logout": "auth/logout",
    "profile": "auth/profile",
    "password": "auth/password",
    # Dashboard
    "dashboard": "doctor/dashboard",
    # Patients
    "patients": "doctor/patients",
    "patient": "doctor/patients/{patient_id}",
    # Appointments
    "appointments": "doctor/appointments",
    "appointment": "doctor/appointments/{appointment_id}",
    # Doctor profile
    "doctor_profile": "doctor/profile",
}

# HTTP headers
DEFAULT_HEADERS = {
    "accept": "application/json",
    "cache-control": "no-cache",
}

# Default sorting of list endpoints
PATIENTS_DEFAULT_SORT = ("createdAt", "desc")
APPOINTMENTS_DEFAULT_SORT = ("appointmentDate", "asc")

# Statuses that invalidate the session
AUTH_ERROR_STATUSES = frozenset({401, 403})
