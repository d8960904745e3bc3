"""
Pytest configuration and fixtures.
Shared test utilities and a fake leave-management API.
"""

import json

import httpx
import pytest
from fastapi.testclient import TestClient

from leave_form.api_client import LeaveApiClient
from leave_form.circuit_breaker import CircuitBreaker
from leave_form.errors import NetworkError, UpstreamServerError
from leave_form.form_state import FormStateHolder

BASE_URL = "http://leave-api.test/api"

EMPLOYEES = [
    {"id": 1, "nombre": "Ana Torres"},
    {"id": 2, "nombre": "Luis Andrade"},
    {"id": 3, "nombre": "María Anaya"},
]


class FakeLeaveApi:
    """
    In-process stand-in for the leave-management backend.

    Records every request it receives. `submit_status` controls how
    POST /leave-requests answers; `fail_connect` simulates a dead network.
    """

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.submit_status = 201
        self.submit_body: dict | str = {"id": 42, "status": "PENDIENTE", "message": "Permiso creado"}
        self.fail_connect = False
        self.permissions = [
            {
                "id": 7,
                "empleado": "Ana Torres",
                "tipoPermiso": "vacation",
                "fechaPermiso": "2024-03-01",
                "departamento": None,
                "tiempo": "5 días",
            }
        ]

    @property
    def submitted(self) -> list[dict]:
        return [
            json.loads(r.content)
            for r in self.requests
            if r.method == "POST" and r.url.path.endswith("/leave-requests")
        ]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if self.fail_connect:
            raise httpx.ConnectError("connection refused", request=request)

        path = request.url.path
        if request.method == "POST" and path == "/api/leave-requests":
            if isinstance(self.submit_body, str):
                return httpx.Response(self.submit_status, text=self.submit_body)
            return httpx.Response(self.submit_status, json=self.submit_body)

        if request.method == "GET" and path == "/api/employees":
            return httpx.Response(200, json=EMPLOYEES)

        if request.method == "GET" and path.startswith("/api/leave-requests/employee/"):
            return httpx.Response(200, json=self.permissions)

        return httpx.Response(404, json={"error": "Not found"})

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def fake_api():
    """Return a fresh fake backend."""
    return FakeLeaveApi()


@pytest.fixture
def api_client(fake_api):
    """Leave API client wired to the fake backend with its own breaker."""
    return LeaveApiClient(
        base_url=BASE_URL,
        transport=fake_api.transport(),
        circuit_breaker=CircuitBreaker(
            failure_threshold=3,
            timeout=60,
            name="TestBreaker",
            tracked_exceptions=(NetworkError, UpstreamServerError),
        ),
    )


@pytest.fixture
def holder():
    """Empty form state holder."""
    return FormStateHolder()


@pytest.fixture
def filled_holder():
    """Form holder with every required field filled in."""
    h = FormStateHolder()
    h.set_field("employee_id", 1)
    h.set_field("employee_name", "Ana Torres")
    h.set_field("leave_type", "Vacaciones")
    h.set_field("department", "TIC")
    h.set_field("request_date", "2024-02-20")
    h.set_field("start_date", "2024-03-01")
    h.set_field("end_date", "2024-03-05")
    return h


@pytest.fixture
def test_client(fake_api, monkeypatch):
    """FastAPI test client whose leave API points at the fake backend."""
    from leave_form import main

    client = LeaveApiClient(
        base_url=BASE_URL,
        transport=fake_api.transport(),
        circuit_breaker=CircuitBreaker(
            failure_threshold=5,
            timeout=60,
            name="ServiceTestBreaker",
            tracked_exceptions=(NetworkError, UpstreamServerError),
        ),
    )
    monkeypatch.setattr(main, "leave_api", client)
    monkeypatch.setattr(main.draft_store, "entries", main.OrderedDict())

    return TestClient(main.app)
