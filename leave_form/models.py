"""
Pydantic models for drafts, wire payloads and API responses.
"""

from datetime import date

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class Employee(BaseModel):
    """Employee as listed by the external API."""

    id: int | str
    name: str = Field(validation_alias=AliasChoices("name", "nombre"))


class LeaveRequestDraft(BaseModel):
    """
    In-progress leave request.

    Immutable: every update goes through the form reducer and yields a new
    draft. Duration fields are derived from start_date/end_date and never
    set directly by callers.
    """

    model_config = ConfigDict(frozen=True)

    employee_id: int | str | None = None
    employee_name: str = ""
    leave_type: str = ""
    department: str = ""
    request_date: date | None = None
    start_date: date | None = None
    end_date: date | None = None

    duration_days: int = 0
    duration_hours: float = 0.0
    duration_label: str = ""
    range_warning: str | None = None


class LeaveRequestPayload(BaseModel):
    """Body of POST /leave-requests."""

    model_config = ConfigDict(populate_by_name=True)

    employee: str
    leave_type: str = Field(alias="leaveType")
    request_date: date | None = Field(default=None, alias="requestDate")
    duration_label: str = Field(alias="durationLabel")


class Confirmation(BaseModel):
    """Success payload returned by the API after a submission."""

    model_config = ConfigDict(extra="allow")

    id: int | str | None = None
    status: str | None = None
    message: str | None = None


class Permission(BaseModel):
    """A submitted leave permission as listed by the API."""

    model_config = ConfigDict(populate_by_name=True)

    id: int | str
    employee: str = Field(validation_alias=AliasChoices("employee", "empleado"))
    leave_type: str = Field(validation_alias=AliasChoices("leaveType", "tipoPermiso"))
    request_date: str | None = Field(
        default=None, validation_alias=AliasChoices("requestDate", "fechaPermiso")
    )
    department: str | None = Field(
        default=None, validation_alias=AliasChoices("department", "departamento")
    )
    duration_label: str = Field(
        default="", validation_alias=AliasChoices("durationLabel", "tiempo")
    )
