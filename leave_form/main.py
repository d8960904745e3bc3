"""
FastAPI application serving the leave request form.
Holds drafts in memory, derives durations and proxies the leave-management API.
"""

import logging
import os
import time
import uuid
from collections import OrderedDict
from contextlib import asynccontextmanager
from datetime import date
from typing import Any

import uvicorn
from fastapi import FastAPI, Header, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from data.leave_catalog import DEPARTMENTS, LEAVE_TYPES, format_permission_type
from leave_form.api_client import leave_api
from leave_form.config import settings
from leave_form.duration import InvalidRange, derive_duration
from leave_form.errors import (
    LeaveFormError,
    NetworkError,
    SubmissionError,
    SubmissionInProgressError,
    ValidationError,
)
from leave_form.form_state import FormStateHolder, filter_employees
from leave_form.gateway import SubmissionGateway
from leave_form.models import Confirmation, Employee, LeaveRequestDraft
from leave_form.utils.session_context import SessionContext, session_from_headers

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# Pydantic models for API
class DurationRequest(BaseModel):
    """Request model for the duration endpoint."""

    model_config = ConfigDict(
        json_schema_extra={"example": {"start_date": "2024-03-01", "end_date": "2024-03-05"}}
    )

    start_date: date
    end_date: date
    hours_per_workday: float | None = Field(None, gt=0, description="Defaults to settings")


class DurationResponse(BaseModel):
    """Derived duration, or the warning for an inverted range."""

    valid: bool
    duration_days: int = 0
    duration_hours: float = 0.0
    duration_label: str = ""
    warning: str | None = None


class FieldUpdate(BaseModel):
    """One reducer step on a draft."""

    model_config = ConfigDict(
        json_schema_extra={"example": {"field": "start_date", "value": "2024-03-01"}}
    )

    field: str = Field(..., description="Draft field name")
    value: Any = Field(None, description="New value; null or empty clears the field")


class DraftResponse(BaseModel):
    """A draft and its identifier."""

    draft_id: str
    draft: LeaveRequestDraft


class SubmitResponse(BaseModel):
    """Result of a successful submission."""

    draft_id: str
    confirmation: Confirmation
    draft: LeaveRequestDraft


class PermissionView(BaseModel):
    """Permission row ready for display."""

    id: int | str
    employee: str
    leave_type: str
    request_date: str | None = None
    department: str | None = None
    duration_label: str = ""


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    environment: str
    leave_api_circuit_breaker: dict


class DraftStore:
    """
    Bounded in-memory store of open forms.

    OrderedDict so the least recently used draft is evicted first. Each
    entry carries its own gateway so the busy flag is per draft.
    """

    def __init__(self, max_drafts: int, ttl_seconds: int):
        self.max_drafts = max_drafts
        self.ttl_seconds = ttl_seconds
        self.entries: OrderedDict[str, dict[str, Any]] = OrderedDict()

    def _prune(self) -> None:
        now = time.time()
        expired = [
            draft_id
            for draft_id, entry in self.entries.items()
            if now - entry["ts"] > self.ttl_seconds
        ]
        for draft_id in expired:
            del self.entries[draft_id]

        while len(self.entries) > self.max_drafts:
            self.entries.popitem(last=False)

    def create(self) -> str:
        draft_id = uuid.uuid4().hex
        self.entries[draft_id] = {
            "ts": time.time(),
            "holder": FormStateHolder(hours_per_workday=settings.hours_per_workday),
            "gateway": SubmissionGateway(leave_api),
        }
        self._prune()
        return draft_id

    def get(self, draft_id: str) -> dict[str, Any]:
        self._prune()
        entry = self.entries.get(draft_id)
        if entry is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail=f"Draft {draft_id} not found"
            )
        entry["ts"] = time.time()
        self.entries.move_to_end(draft_id)
        return entry

    def __len__(self) -> int:
        return len(self.entries)


draft_store = DraftStore(max_drafts=settings.max_drafts, ttl_seconds=settings.draft_ttl_seconds)


def get_session(authorization: str | None, username: str | None) -> SessionContext:
    return session_from_headers(authorization, username)


# Lifespan context manager for startup/shutdown
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle startup and shutdown events."""
    logger.info("Starting Leave Request Form API")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Leave API: {settings.leave_api_base_url}")

    yield

    logger.info("Shutting down Leave Request Form API")


# Create FastAPI app
app = FastAPI(
    title="Leave Request Form API",
    description="Leave request drafts, duration derivation and submission to the HR backend",
    version="1.0.0",
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(LeaveFormError)
async def leave_form_error_handler(request: Request, exc: LeaveFormError):
    """Translate form errors into HTTP answers the UI can display."""
    if isinstance(exc, ValidationError):
        code = 422
        body = {"error": "validation_error", "message": exc.message, "field": exc.field}
    elif isinstance(exc, SubmissionInProgressError):
        code = status.HTTP_409_CONFLICT
        body = {"error": "submission_in_progress", "message": exc.message}
    elif isinstance(exc, SubmissionError):
        code = status.HTTP_502_BAD_GATEWAY
        body = {
            "error": "submission_error",
            "message": exc.message,
            "upstream_status": exc.status_code,
        }
    elif isinstance(exc, NetworkError):
        code = status.HTTP_503_SERVICE_UNAVAILABLE
        body = {"error": "network_error", "message": exc.message}
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
        body = {"error": "leave_form_error", "message": exc.message}

    logger.warning(f"{request.method} {request.url.path} -> {code}: {exc.message}")
    return JSONResponse(status_code=code, content=body)


# API Endpoints


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint."""
    return {"message": "Leave Request Form API", "version": "1.0.0", "docs": "/docs"}


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """
    Health check endpoint.
    Returns service status and circuit breaker state.
    """
    return HealthResponse(
        status="healthy",
        environment=settings.environment,
        leave_api_circuit_breaker=leave_api.get_circuit_breaker_state(),
    )


@app.get("/ready")
def ready():
    return {"status": "ready"}


@app.get("/catalog", tags=["Form"])
async def catalog():
    """Allowed values for the form's select inputs."""
    return {
        "leave_types": LEAVE_TYPES,
        "departments": DEPARTMENTS,
        "hours_per_workday": settings.hours_per_workday,
    }


@app.post("/duration", response_model=DurationResponse, tags=["Form"])
async def duration(request: DurationRequest):
    """
    Derive the duration of a leave period.

    An inverted range is not an HTTP error: the response carries
    `valid: false` and the warning to show next to the date inputs.
    """
    hours_per_workday = request.hours_per_workday or settings.hours_per_workday
    result = derive_duration(request.start_date, request.end_date, hours_per_workday)

    if isinstance(result, InvalidRange):
        return DurationResponse(valid=False, warning=result.warning)

    return DurationResponse(
        valid=True,
        duration_days=result.days,
        duration_hours=result.hours,
        duration_label=result.label,
    )


@app.post(
    "/drafts", response_model=DraftResponse, status_code=status.HTTP_201_CREATED, tags=["Drafts"]
)
async def create_draft():
    """Open a new, empty leave request form."""
    draft_id = draft_store.create()
    holder: FormStateHolder = draft_store.get(draft_id)["holder"]
    logger.info(f"Draft created: {draft_id}")
    return DraftResponse(draft_id=draft_id, draft=holder.get_draft())


@app.get("/drafts/{draft_id}", response_model=DraftResponse, tags=["Drafts"])
async def get_draft(draft_id: str):
    holder: FormStateHolder = draft_store.get(draft_id)["holder"]
    return DraftResponse(draft_id=draft_id, draft=holder.get_draft())


@app.patch("/drafts/{draft_id}", response_model=DraftResponse, tags=["Drafts"])
async def update_draft(draft_id: str, update: FieldUpdate):
    """
    Apply one field update.

    Setting `start_date` or `end_date` re-derives the duration fields. If the
    range is inverted the duration is zeroed and `range_warning` is set.
    """
    holder: FormStateHolder = draft_store.get(draft_id)["holder"]
    draft = holder.set_field(update.field, update.value)
    return DraftResponse(draft_id=draft_id, draft=draft)


@app.post("/drafts/{draft_id}/reset", response_model=DraftResponse, tags=["Drafts"])
async def reset_draft(draft_id: str):
    holder: FormStateHolder = draft_store.get(draft_id)["holder"]
    return DraftResponse(draft_id=draft_id, draft=holder.reset())


@app.post("/drafts/{draft_id}/submit", response_model=SubmitResponse, tags=["Drafts"])
async def submit_draft(
    draft_id: str,
    authorization: str | None = Header(None),
    x_username: str | None = Header(None),
):
    """
    Submit a draft to the leave-management API.

    On success the draft is cleared. On any failure it is kept as is so the
    user can correct it and submit again.
    """
    entry = draft_store.get(draft_id)
    holder: FormStateHolder = entry["holder"]
    gateway: SubmissionGateway = entry["gateway"]

    session = get_session(authorization, x_username)
    if not session.is_authenticated:
        logger.warning(f"Anonymous submission of draft {draft_id}: no bearer token supplied")

    confirmation = await gateway.submit_form(holder, session)
    return SubmitResponse(draft_id=draft_id, confirmation=confirmation, draft=holder.get_draft())


@app.get("/employees", response_model=list[Employee], tags=["Directory"])
async def employees(
    search: str = "",
    authorization: str | None = Header(None),
    x_username: str | None = Header(None),
):
    """List employees, optionally filtered by a case-insensitive name fragment."""
    found = await leave_api.list_employees(get_session(authorization, x_username))
    return filter_employees(found, search)


@app.get("/permissions/{employee_name}", response_model=list[PermissionView], tags=["Directory"])
async def permissions(
    employee_name: str,
    authorization: str | None = Header(None),
    x_username: str | None = Header(None),
):
    """Permissions submitted by one employee, with display labels for their types."""
    rows = await leave_api.list_permissions(employee_name, get_session(authorization, x_username))
    return [
        PermissionView(
            id=row.id,
            employee=row.employee,
            leave_type=format_permission_type(row.leave_type),
            request_date=row.request_date,
            department=row.department,
            duration_label=row.duration_label,
        )
        for row in rows
    ]


@app.get("/metrics", tags=["Monitoring"])
async def metrics():
    """Circuit breaker state and open draft count."""
    return {
        "circuit_breaker": leave_api.get_circuit_breaker_state(),
        "open_drafts": len(draft_store),
        "environment": settings.environment,
    }


if __name__ == "__main__":
    uvicorn.run(
        "leave_form.main:app",
        host="0.0.0.0",
        port=int(os.environ.get("PORT", 8000)),
        reload=settings.environment == "development",
        log_level=settings.log_level.lower(),
    )
