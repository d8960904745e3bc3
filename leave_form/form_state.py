"""
Deterministic form state for a leave request.

Every change goes through `apply_field`, a reducer keyed by field name that
returns a new immutable draft. Date changes re-derive the duration fields,
so the draft can never hold a duration that disagrees with its dates.
"""

import logging
from datetime import date
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from data.leave_catalog import HOURS_PER_WORKDAY
from leave_form.duration import InvalidRange, derive_duration, parse_date
from leave_form.errors import SubmissionInProgressError, ValidationError
from leave_form.models import Employee, LeaveRequestDraft

logger = logging.getLogger(__name__)

TEXT_FIELDS = ("employee_name", "leave_type", "department")
DATE_FIELDS = ("request_date", "start_date", "end_date")
EDITABLE_FIELDS = ("employee_id",) + TEXT_FIELDS + DATE_FIELDS

DURATION_RESET = {
    "duration_days": 0,
    "duration_hours": 0.0,
    "duration_label": "",
}


def empty_draft() -> LeaveRequestDraft:
    """Return the initial state of a freshly opened form."""
    return LeaveRequestDraft()


def _coerce(name: str, value: Any) -> Any:
    if value is None or value == "":
        return None if name in DATE_FIELDS or name == "employee_id" else ""
    if name in DATE_FIELDS:
        return parse_date(value, field=name)
    if name in TEXT_FIELDS:
        return str(value).strip()
    return value


def _derived_duration(
    start_date: date | None, end_date: date | None, hours_per_workday: float
) -> dict[str, Any]:
    if start_date is None or end_date is None:
        return {**DURATION_RESET, "range_warning": None}

    result = derive_duration(start_date, end_date, hours_per_workday)
    if isinstance(result, InvalidRange):
        return {**DURATION_RESET, "range_warning": result.warning}

    return {
        "duration_days": result.days,
        "duration_hours": result.hours,
        "duration_label": result.label,
        "range_warning": None,
    }


def apply_field(
    draft: LeaveRequestDraft,
    name: str,
    value: Any,
    hours_per_workday: float = HOURS_PER_WORKDAY,
) -> LeaveRequestDraft:
    """
    Return a new draft with one field replaced.

    Args:
        draft: Current draft (left untouched)
        name: Field to update, one of EDITABLE_FIELDS
        value: New value; None or "" clears the field
        hours_per_workday: Hours credited per leave day

    Returns:
        Updated draft. Changing start_date or end_date also re-derives the
        duration fields; an inverted range zeroes them and sets range_warning.

    Raises:
        ValidationError: If the field is unknown or the value does not fit it
    """
    if name not in EDITABLE_FIELDS:
        raise ValidationError(f"Unknown or read-only field: {name}", field=name)

    update = {name: _coerce(name, value)}

    if name in ("start_date", "end_date"):
        start_date = update.get("start_date", draft.start_date)
        end_date = update.get("end_date", draft.end_date)
        update.update(_derived_duration(start_date, end_date, hours_per_workday))

    try:
        return LeaveRequestDraft.model_validate({**draft.model_dump(), **update})
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid value for {name}: {value!r}", field=name) from e


def filter_employees(employees: list[Employee], search_term: str) -> list[Employee]:
    """Case-insensitive substring match on employee names, order preserved."""
    term = (search_term or "").lower()
    return [employee for employee in employees if term in employee.name.lower()]


class FormStateHolder:
    """
    Owns the current draft of one leave request form.

    Single-threaded: mutations are applied one at a time and each is visible
    to the next get_draft() call. While a submission is in flight the holder
    is locked and every mutation raises SubmissionInProgressError, so an edit
    can never be wiped by the reset that follows a successful submission.
    """

    def __init__(self, hours_per_workday: float = HOURS_PER_WORKDAY):
        self.hours_per_workday = hours_per_workday
        self._draft = empty_draft()
        self.locked = False
        # Audit trail of applied (field, value) pairs since the last reset
        self.changes: list[tuple[str, Any]] = []

    def _ensure_unlocked(self) -> None:
        if self.locked:
            raise SubmissionInProgressError(
                "El permiso se está enviando; espere antes de modificarlo."
            )

    def set_field(self, name: str, value: Any) -> LeaveRequestDraft:
        """Apply one field update. On error the draft is left unchanged."""
        self._ensure_unlocked()
        self._draft = apply_field(self._draft, name, value, self.hours_per_workday)
        self.changes.append((name, value))

        if self._draft.range_warning and name in ("start_date", "end_date"):
            logger.warning(
                f"Inverted leave range: start={self._draft.start_date}, "
                f"end={self._draft.end_date}"
            )
        return self._draft

    def select_employee(self, employee: Employee | None) -> LeaveRequestDraft:
        """Bind the draft to an employee picked from the directory."""
        if employee is None:
            self.set_field("employee_id", None)
            return self.set_field("employee_name", None)

        self.set_field("employee_id", employee.id)
        return self.set_field("employee_name", employee.name)

    def get_draft(self) -> LeaveRequestDraft:
        return self._draft

    def reset(self) -> LeaveRequestDraft:
        """Discard the draft and start over from an empty form."""
        self._ensure_unlocked()
        self._draft = empty_draft()
        self.changes.clear()
        return self._draft
