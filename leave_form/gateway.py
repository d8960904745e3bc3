"""
Submission gateway: validates a completed draft and forwards it to the
leave-management API.

Lifecycle of one submission:
    IDLE -> VALIDATING -> IDLE                (invalid draft, nothing sent)
    IDLE -> VALIDATING -> SUBMITTING -> IDLE  (sent; success or failure)

No retries are performed. A failed submission must be re-invoked by the
caller once the problem is corrected.
"""

import logging
from enum import Enum

from data.leave_catalog import DEPARTMENTS, LEAVE_TYPES, is_valid_department, is_valid_leave_type
from leave_form.api_client import LeaveApiClient
from leave_form.errors import SubmissionInProgressError, ValidationError
from leave_form.form_state import FormStateHolder
from leave_form.models import Confirmation, LeaveRequestDraft, LeaveRequestPayload
from leave_form.observability import trace_span
from leave_form.utils.session_context import ANONYMOUS, SessionContext

logger = logging.getLogger(__name__)


class SubmissionState(Enum):
    """Submission lifecycle states."""

    IDLE = "idle"
    VALIDATING = "validating"
    SUBMITTING = "submitting"


def validate_draft(draft: LeaveRequestDraft) -> LeaveRequestPayload:
    """
    Check a draft is complete and build its wire payload.

    Raises:
        ValidationError: If the employee is unselected, or leave type or
            department is empty or outside its allowed set
    """
    if not draft.employee_name:
        raise ValidationError("Por favor seleccione un empleado", field="employee_name")

    if not draft.leave_type or not draft.department:
        missing = "leave_type" if not draft.leave_type else "department"
        raise ValidationError("Por favor complete todos los campos requeridos", field=missing)

    if not is_valid_leave_type(draft.leave_type):
        raise ValidationError(
            f"Invalid leave type: {draft.leave_type}. Must be one of {', '.join(LEAVE_TYPES)}.",
            field="leave_type",
        )

    if not is_valid_department(draft.department):
        raise ValidationError(
            f"Invalid department: {draft.department}. Must be one of {', '.join(DEPARTMENTS)}.",
            field="department",
        )

    return LeaveRequestPayload(
        employee=draft.employee_name,
        leave_type=draft.leave_type,
        request_date=draft.request_date,
        duration_label=draft.duration_label,
    )


class SubmissionGateway:
    """
    Sends drafts to the leave API, one at a time.

    The busy flag rejects a second submit while a request is outstanding so
    a double click cannot create duplicate permissions.
    """

    def __init__(self, client: LeaveApiClient):
        self.client = client
        self.state = SubmissionState.IDLE

    @property
    def busy(self) -> bool:
        return self.state != SubmissionState.IDLE

    async def submit(
        self, draft: LeaveRequestDraft, session: SessionContext = ANONYMOUS
    ) -> Confirmation:
        """
        Validate and send a draft.

        Returns:
            Confirmation payload from the API

        Raises:
            SubmissionInProgressError: If another submission is in flight
            ValidationError: If the draft is incomplete (nothing is sent)
            SubmissionError: If the API answered with a failure
            NetworkError: If the API could not be reached
        """
        if self.busy:
            raise SubmissionInProgressError("Ya hay un envío de permiso en curso.")

        self.state = SubmissionState.VALIDATING
        try:
            payload = validate_draft(draft)

            self.state = SubmissionState.SUBMITTING
            with trace_span("submit_leave_request", employee=payload.employee):
                confirmation = await self.client.create_leave_request(payload, session)
        finally:
            self.state = SubmissionState.IDLE

        logger.info(f"Leave request created for {payload.employee}: {confirmation.model_dump()}")
        return confirmation

    async def submit_form(
        self, holder: FormStateHolder, session: SessionContext = ANONYMOUS
    ) -> Confirmation:
        """
        Submit the holder's draft; clear it on success, keep it on failure.

        The holder stays locked until the API answers, so edits made while
        the request is in flight are rejected instead of silently discarded.
        """
        if self.busy:
            raise SubmissionInProgressError("Ya hay un envío de permiso en curso.")

        holder.locked = True
        try:
            confirmation = await self.submit(holder.get_draft(), session)
        finally:
            holder.locked = False
        holder.reset()
        return confirmation
