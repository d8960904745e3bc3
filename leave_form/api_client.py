"""
Async client for the external leave-management API.

Maps transport failures to NetworkError and non-2xx answers to
SubmissionError, and guards every call with a circuit breaker.
"""

import logging
from typing import Any
from urllib.parse import quote

import httpx

from leave_form.circuit_breaker import CircuitBreaker, CircuitBreakerOpenError
from leave_form.config import settings
from leave_form.errors import NetworkError, SubmissionError, UpstreamServerError
from leave_form.models import Confirmation, Employee, LeaveRequestPayload, Permission
from leave_form.observability import trace_span
from leave_form.utils.session_context import ANONYMOUS, SessionContext

logger = logging.getLogger(__name__)

DEFAULT_FAILURE_MESSAGE = "Error al crear el permiso. Por favor intente nuevamente."


def extract_error_message(response: httpx.Response) -> str:
    """Best user-facing message from a failed response, verbatim where available."""
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        for key in ("message", "detail", "error"):
            value = body.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()

    text = response.text.strip()
    if text and body is None:
        return text
    return DEFAULT_FAILURE_MESSAGE


class LeaveApiClient:
    """Thin async wrapper around the leave-management REST endpoints."""

    def __init__(
        self,
        base_url: str,
        employees_base_url: str | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
        circuit_breaker: CircuitBreaker | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.employees_base_url = (employees_base_url or base_url).rstrip("/")
        self.timeout = timeout
        self.transport = transport
        self.circuit_breaker = circuit_breaker or CircuitBreaker(
            failure_threshold=settings.circuit_breaker_failure_threshold,
            timeout=settings.circuit_breaker_timeout,
            name="LeaveApiCircuitBreaker",
            tracked_exceptions=(NetworkError, UpstreamServerError),
        )

    async def _send(
        self,
        method: str,
        url: str,
        session: SessionContext,
        json: dict[str, Any] | None = None,
    ) -> Any:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                r = await client.request(method, url, json=json, headers=session.auth_headers())
            except httpx.RequestError as e:
                logger.error(f"No response from leave API: {method} {url}: {e}")
                raise NetworkError(
                    "No se pudo conectar con el servidor de permisos."
                ) from e

        if r.is_error:
            message = extract_error_message(r)
            logger.warning(f"Leave API rejected {method} {url}: status={r.status_code}")
            error_cls = UpstreamServerError if r.status_code >= 500 else SubmissionError
            raise error_cls(message, status_code=r.status_code)

        if not r.content:
            return {}
        try:
            return r.json()
        except ValueError as e:
            raise SubmissionError(
                "Respuesta inválida del servidor de permisos.", status_code=r.status_code
            ) from e

    async def _request(self, method: str, url: str, session: SessionContext, **kwargs) -> Any:
        try:
            return await self.circuit_breaker.call(self._send, method, url, session, **kwargs)
        except CircuitBreakerOpenError as e:
            raise NetworkError("El servidor de permisos no está disponible.") from e

    async def create_leave_request(
        self, payload: LeaveRequestPayload, session: SessionContext = ANONYMOUS
    ) -> Confirmation:
        with trace_span("create_leave_request", employee=payload.employee) as span:
            data = await self._request(
                "POST",
                f"{self.base_url}/leave-requests",
                session,
                json=payload.model_dump(mode="json", by_alias=True),
            )
            if not isinstance(data, dict):
                data = {"result": data}
            span["id"] = data.get("id")
        return Confirmation(**data)

    async def list_employees(self, session: SessionContext = ANONYMOUS) -> list[Employee]:
        with trace_span("list_employees") as span:
            data = await self._request("GET", f"{self.employees_base_url}/employees", session)
            span["rows"] = len(data or [])
        return [Employee.model_validate(row) for row in data or []]

    async def list_permissions(
        self, employee_name: str, session: SessionContext = ANONYMOUS
    ) -> list[Permission]:
        with trace_span("list_permissions", employee=employee_name) as span:
            data = await self._request(
                "GET",
                f"{self.base_url}/leave-requests/employee/{quote(employee_name, safe='')}",
                session,
            )
            span["rows"] = len(data or [])
        return [Permission.model_validate(row) for row in data or []]

    def get_circuit_breaker_state(self) -> dict:
        """Get circuit breaker state for monitoring."""
        return self.circuit_breaker.get_state()


def build_client(transport: httpx.AsyncBaseTransport | None = None) -> LeaveApiClient:
    """Create a client from application settings."""
    return LeaveApiClient(
        base_url=settings.leave_api_base_url,
        employees_base_url=settings.employees_api_base_url,
        timeout=settings.http_timeout_seconds,
        transport=transport,
    )


# Global leave API client instance
leave_api = build_client()
