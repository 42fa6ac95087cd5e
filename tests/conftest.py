from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, List, Tuple, Union

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from portal.api.client import PortalAPIClient
from portal.api.models import LoginRequest

TOKEN = "test-token"
PASSWORD = "correct-horse"


def make_patient(patient_id: str, **extra: Any) -> Dict[str, Any]:
    patient = {
        "_id": patient_id,
        "firstName": "Ada",
        "lastName": f"Patient{patient_id}",
        "email": f"{patient_id}@example.com",
        "phone": "+15550100",
        "role": "patient",
        "bloodGroup": "O+",
        "medicalHistory": [{"condition": "asthma", "status": "chronic"}],
        "allergies": [{"allergen": "penicillin", "severity": "severe"}],
        "currentMedications": [
            {"name": "salbutamol", "dosage": "100mcg", "frequency": "as needed"},
        ],
    }
    patient.update(extra)
    return patient


def make_appointment(appointment_id: str, **extra: Any) -> Dict[str, Any]:
    appointment = {
        "_id": appointment_id,
        "appointmentId": f"A{appointment_id}",
        "patient": "p1",
        "doctor": "d1",
        "appointmentDate": "2026-01-05T00:00:00.000Z",
        "startTime": "09:00",
        "endTime": "09:30",
        "type": "consultation",
        "status": "scheduled",
    }
    appointment.update(extra)
    return appointment


@dataclass
class FakeBackend:
    """In-memory stand-in for the clinic REST API."""

    user: Dict[str, Any] = field(
        default_factory=lambda: {
            "_id": "d1",
            "username": "house",
            "email": "house@example.com",
            "firstName": "Gregory",
            "lastName": "House",
            "role": "doctor",
            "department": "outpatient",
            "availability": [],
        },
    )
    patients: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    appointments: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    requests: List[Tuple[str, str, Dict[str, str], Any]] = field(default_factory=list)
    failures: Dict[Tuple[str, str], Tuple[int, Union[str, bytes, None]]] = field(
        default_factory=dict,
    )
    omit_created_patient: bool = False
    _next_id: int = 100

    def fail(
        self,
        method: str,
        path: str,
        status: int,
        body: Union[str, bytes, None],
    ) -> None:
        """Answer the next matching request with ``status`` and raw ``body``."""
        self.failures[(method, path)] = (status, body)

    def new_id(self, prefix: str) -> str:
        self._next_id += 1
        return f"{prefix}{self._next_id}"

    def calls(self, method: str, path: str) -> List[Tuple[Dict[str, str], Any]]:
        return [(q, b) for m, p, q, b in self.requests if m == method and p == path]


def _not_found(message: str) -> web.Response:
    return web.json_response({"message": message}, status=404)


def build_app(backend: FakeBackend) -> web.Application:
    @web.middleware
    async def record(request: web.Request, handler: Any) -> web.StreamResponse:
        body = None
        if request.can_read_body:
            body = await request.json()
        path = request.path.removeprefix("/api/")
        backend.requests.append((request.method, path, dict(request.query), body))
        failure = backend.failures.pop((request.method, path), None)
        if failure is not None:
            status, raw = failure
            if isinstance(raw, bytes):
                return web.Response(status=status, body=raw, content_type="text/html")
            return web.Response(status=status, text=raw or "")
        protected = not path.startswith("auth/login") and not path.startswith(
            "auth/register",
        )
        if protected and request.cookies.get("jwt") != TOKEN:
            return web.json_response(
                {"message": "Not authorized, token is required"},
                status=401,
            )
        return await handler(request)

    async def login(request: web.Request) -> web.Response:
        body = await request.json()
        if body.get("password") != PASSWORD:
            return web.json_response({"message": "Invalid credentials"}, status=400)
        response = web.json_response({"user": backend.user, "message": "Login successful"})
        response.set_cookie("jwt", TOKEN)
        return response

    async def register(request: web.Request) -> web.Response:
        body = await request.json()
        user = {"_id": backend.new_id("u"), "role": "patient", **body}
        user.pop("password", None)
        response = web.json_response({"user": user}, status=201)
        response.set_cookie("jwt", TOKEN)
        return response

    async def logout(request: web.Request) -> web.Response:
        response = web.json_response({"message": "Logged out successfully"})
        response.del_cookie("jwt")
        return response

    async def get_profile(request: web.Request) -> web.Response:
        return web.json_response(backend.user)

    async def update_profile(request: web.Request) -> web.Response:
        backend.user.update(await request.json())
        return web.json_response({"data": backend.user})

    async def change_password(request: web.Request) -> web.Response:
        body = await request.json()
        if body["currentPassword"] != PASSWORD:
            return web.json_response(
                {"success": False, "message": "Current password is incorrect"},
                status=401,
            )
        return web.json_response(
            {"success": True, "message": "Password changed successfully"},
        )

    async def dashboard(request: web.Request) -> web.Response:
        appointments = list(backend.appointments.values())
        statuses: Dict[str, int] = {}
        for appointment in appointments:
            statuses[appointment["status"]] = statuses.get(appointment["status"], 0) + 1
        return web.json_response(
            {
                "data": {
                    "totalPatients": len(backend.patients),
                    "totalAppointments": len(appointments),
                    "todayAppointments": 0,
                    "upcomingAppointments": statuses.get("scheduled", 0),
                    "completedAppointments": statuses.get("completed", 0),
                    "cancelledAppointments": statuses.get("cancelled", 0),
                    "statusDistribution": [
                        {"_id": status, "count": count}
                        for status, count in statuses.items()
                    ],
                    "recentAppointments": appointments[:10],
                },
                "message": "Doctor dashboard data fetched successfully",
            },
        )

    def page_of(items: List[Dict[str, Any]], request: web.Request) -> Dict[str, Any]:
        page = int(request.query.get("page", 1))
        limit = int(request.query.get("limit", 10))
        chunk = items[(page - 1) * limit : page * limit]
        return {
            "data": chunk,
            "pagination": {
                "currentPage": page,
                "totalPages": max(1, -(-len(items) // limit)),
                "totalCount": len(items),
                "limit": limit,
            },
        }

    async def list_patients(request: web.Request) -> web.Response:
        items = list(backend.patients.values())
        search = request.query.get("search")
        if search:
            items = [p for p in items if search.lower() in p["lastName"].lower()]
        return web.json_response(page_of(items, request))

    async def create_patient(request: web.Request) -> web.Response:
        body = await request.json()
        patient = make_patient(backend.new_id("p"), **body)
        backend.patients[patient["_id"]] = patient
        return web.json_response({"data": patient}, status=201)

    async def get_patient(request: web.Request) -> web.Response:
        patient = backend.patients.get(request.match_info["id"])
        if patient is None:
            return _not_found("Patient not found or not assigned to you")
        return web.json_response({"data": patient})

    async def update_patient(request: web.Request) -> web.Response:
        patient = backend.patients.get(request.match_info["id"])
        if patient is None:
            return _not_found("Patient not found or not assigned to you")
        patient.update(await request.json())
        return web.json_response({"data": patient})

    async def delete_patient(request: web.Request) -> web.Response:
        if backend.patients.pop(request.match_info["id"], None) is None:
            return _not_found("Patient not found or not assigned to you")
        return web.json_response({"message": "Patient deleted successfully"})

    async def list_appointments(request: web.Request) -> web.Response:
        items = list(backend.appointments.values())
        status = request.query.get("status")
        if status:
            wanted = status.split(",")
            items = [a for a in items if a["status"] in wanted]
        return web.json_response(page_of(items, request))

    async def create_appointment(request: web.Request) -> web.Response:
        body = await request.json()
        if body.get("isRegistered") is False:
            patient = make_patient(
                backend.new_id("p"),
                firstName=body["firstName"],
                lastName=body["lastName"],
            )
            backend.patients[patient["_id"]] = patient
            patient_id = patient["_id"]
        else:
            patient = None
            patient_id = body["patientId"]
        appointment = make_appointment(
            backend.new_id("a"),
            patient=patient_id,
            appointmentDate=body["appointmentDate"],
            startTime=body["startTime"],
            endTime=body["endTime"],
        )
        backend.appointments[appointment["_id"]] = appointment
        if patient is None or backend.omit_created_patient:
            data: Any = appointment
        else:
            data = [appointment, patient]
        return web.json_response({"data": data}, status=201)

    async def get_appointment(request: web.Request) -> web.Response:
        appointment = backend.appointments.get(request.match_info["id"])
        if appointment is None:
            return _not_found("Appointment not found or not assigned to you")
        return web.json_response({"data": appointment})

    async def update_appointment(request: web.Request) -> web.Response:
        appointment = backend.appointments.get(request.match_info["id"])
        if appointment is None:
            return _not_found("Appointment not found or not assigned to you")
        appointment.update(await request.json())
        return web.json_response({"data": appointment})

    async def delete_appointment(request: web.Request) -> web.Response:
        if backend.appointments.pop(request.match_info["id"], None) is None:
            return _not_found("Appointment not found or not assigned to you")
        return web.json_response({"message": "Appointment deleted successfully"})

    async def update_doctor_profile(request: web.Request) -> web.Response:
        backend.user.update(await request.json())
        return web.json_response({"success": True, "data": backend.user})

    app = web.Application(middlewares=[record])
    app.router.add_post("/api/auth/login", login)
    app.router.add_post("/api/auth/register", register)
    app.router.add_post("/api/auth/logout", logout)
    app.router.add_get("/api/auth/profile", get_profile)
    app.router.add_put("/api/auth/profile", update_profile)
    app.router.add_put("/api/auth/password", change_password)
    app.router.add_get("/api/doctor/dashboard", dashboard)
    app.router.add_get("/api/doctor/patients", list_patients)
    app.router.add_post("/api/doctor/patients", create_patient)
    app.router.add_get("/api/doctor/patients/{id}", get_patient)
    app.router.add_put("/api/doctor/patients/{id}", update_patient)
    app.router.add_delete("/api/doctor/patients/{id}", delete_patient)
    app.router.add_get("/api/doctor/appointments", list_appointments)
    app.router.add_post("/api/doctor/appointments", create_appointment)
    app.router.add_get("/api/doctor/appointments/{id}", get_appointment)
    app.router.add_put("/api/doctor/appointments/{id}", update_appointment)
    app.router.add_delete("/api/doctor/appointments/{id}", delete_appointment)
    app.router.add_put("/api/doctor/profile", update_doctor_profile)
    return app


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend(
        patients={"p1": make_patient("p1"), "p2": make_patient("p2")},
        appointments={
            "a1": make_appointment("a1"),
            "a2": make_appointment(
                "a2",
                status="completed",
                appointmentDate="2026-01-06T00:00:00.000Z",
            ),
        },
    )


@pytest_asyncio.fixture
async def server(backend: FakeBackend) -> AsyncIterator[TestServer]:
    test_server = TestServer(build_app(backend))
    await test_server.start_server()
    yield test_server
    await test_server.close()


@pytest_asyncio.fixture
async def client(server: TestServer) -> AsyncIterator[PortalAPIClient]:
    async with PortalAPIClient(base_url=str(server.make_url("/api"))) as api_client:
        yield api_client


@pytest_asyncio.fixture
async def logged_in_client(client: PortalAPIClient) -> PortalAPIClient:
    await client.login(LoginRequest(email="house@example.com", password=PASSWORD))
    return client
