"""Request workflow controller.

Drives the "update request" and "meeting request" workflows:
form capture -> validation -> payload -> mutation -> notice.

State per instance: ``idle -> submitting -> idle``. The outcome of the
last submission is kept next to the state. A failed submission keeps the
modal open and the form populated so the user can retry.
"""

from dataclasses import dataclass

import structlog
from pydantic import ValidationError

from portal.client.remote import RemoteResourceClient
from portal.errors import (
    FormValidationError,
    RemoteResourceError,
    ValidationFailure,
    WorkflowBusyError,
)
from portal.models import ProjectSummary
from portal.notices import NoticeBoard, NoticeSink
from portal.requests.schemas import (
    MeetingRequestForm,
    Priority,
    RequestForm,
    RequestPayload,
    RequestType,
    SubmitOutcome,
    UpdateRequestForm,
    WorkflowKind,
    WorkflowResult,
    WorkflowState,
)

logger = structlog.get_logger()


@dataclass(frozen=True)
class WorkflowSpec:
    """Fixed texts and types of one workflow kind."""

    form_type: type[UpdateRequestForm] | type[MeetingRequestForm]
    request_type: RequestType
    title: str
    marker: str
    default_message: str
    action_text: str
    success_message: str
    failure_fallback: str
    failure_template: str = "{message}"


WORKFLOWS: dict[WorkflowKind, WorkflowSpec] = {
    WorkflowKind.UPDATE_REQUEST: WorkflowSpec(
        form_type=UpdateRequestForm,
        request_type=RequestType.PROJECT_UPDATE,
        title="Project Update Request",
        marker="📋",
        default_message="Project update requested",
        action_text="View Project",
        success_message="Update request sent successfully!",
        failure_fallback="Failed to send update request",
        failure_template="Error: {message}",
    ),
    WorkflowKind.MEETING_REQUEST: WorkflowSpec(
        form_type=MeetingRequestForm,
        request_type=RequestType.MEETING,
        title="Meeting Request",
        marker="📅",
        default_message="Meeting requested",
        action_text="Schedule Meeting",
        success_message="Meeting request sent successfully!",
        failure_fallback="Failed to send meeting request",
    ),
}

MEETING_EMAIL_SENT_MESSAGE = "Meeting request sent! Check your email for confirmation."


def parse_form(kind: WorkflowKind, data: dict) -> RequestForm:
    """Validate raw form input for a workflow.

    Raises:
        FormValidationError: If a required field is missing or malformed
    """
    try:
        return WORKFLOWS[kind].form_type.model_validate(data)
    except ValidationError as e:
        field_errors = {
            ".".join(str(p) for p in err["loc"]) or "form": err["msg"]
            for err in e.errors()
        }
        raise FormValidationError(field_errors) from e


def build_payload(
    kind: WorkflowKind,
    form: RequestForm,
    project_id: str | None = None,
) -> RequestPayload:
    """Build the create-request body for a validated form.

    Args:
        kind: Workflow kind
        form: Validated form input
        project_id: Related project; None means "all projects" or
            "general discussion"

    Returns:
        RequestPayload ready to send
    """
    spec = WORKFLOWS[kind]
    text = form.message.strip()
    message = f"{spec.marker} {text}" if text else f"{spec.marker} {spec.default_message}"

    urgent = isinstance(form, UpdateRequestForm) and form.urgent
    return RequestPayload(
        title=spec.title,
        message=message,
        type=spec.request_type,
        priority=Priority.HIGH if urgent else Priority.MEDIUM,
        related_project=project_id,
        action_text=spec.action_text,
        email=form.email if isinstance(form, MeetingRequestForm) else None,
    )


class RequestWorkflowController:
    """Lifecycle of one request workflow instance.

    Submissions do not change dashboard data, so nothing in the query
    cache is invalidated on success.
    """

    def __init__(
        self,
        kind: WorkflowKind,
        client: RemoteResourceClient,
        notices: NoticeSink | None = None,
    ):
        """Initialize controller.

        Args:
            kind: Which workflow this instance drives
            client: Remote resource client for the create-request call
            notices: Where success/failure notices go
        """
        self.kind = kind
        self._spec = WORKFLOWS[kind]
        self._client = client
        self._notices = notices or NoticeBoard()

        self.state = WorkflowState.IDLE
        self.last_outcome: SubmitOutcome | None = None
        self.last_error: str | None = None
        self.is_open = False
        self.selected_project: ProjectSummary | None = None
        self.form: RequestForm | None = None

    @property
    def is_submitting(self) -> bool:
        """Check if a submission is in flight."""
        return self.state == WorkflowState.SUBMITTING

    def open(self) -> None:
        """Show the workflow modal."""
        self.is_open = True

    def close(self) -> None:
        """Hide the workflow modal."""
        self.is_open = False

    def select_project(self, project: ProjectSummary | None) -> None:
        """Pick the related project, or None for a general request."""
        self.selected_project = project

    async def submit(self, form: RequestForm | dict) -> WorkflowResult:
        """Validate and send a request.

        Args:
            form: Validated form, or raw input to validate first

        Returns:
            WorkflowResult describing how the submission settled

        Raises:
            FormValidationError: If the input is rejected (no call is made)
            WorkflowBusyError: If a submission is already in flight
        """
        if self.is_submitting:
            raise WorkflowBusyError(f"{self.kind.value} already submitting")

        if isinstance(form, dict):
            form = parse_form(self.kind, form)
        self.form = form

        project_id = form.project_id or (
            self.selected_project.id if self.selected_project else None
        )
        payload = build_payload(self.kind, form, project_id)

        self.state = WorkflowState.SUBMITTING
        self.last_error = None
        logger.info(
            "request workflow submitting",
            workflow=self.kind.value,
            priority=payload.priority.value,
            related_project=project_id,
        )
        try:
            response = await self._client.create_request(payload.to_wire())
        except RemoteResourceError as e:
            return self._fail(payload, e)
        finally:
            self.state = WorkflowState.IDLE

        email_sent = bool((response.data or {}).get("emailSent"))
        message = self._spec.success_message
        if self.kind == WorkflowKind.MEETING_REQUEST and email_sent:
            message = MEETING_EMAIL_SENT_MESSAGE

        self.last_outcome = SubmitOutcome.SUCCESS
        self.is_open = False
        self.selected_project = None
        self.form = None
        self._notices.success(message)
        logger.info(
            "request workflow succeeded",
            workflow=self.kind.value,
            email_sent=email_sent,
        )
        return WorkflowResult(
            outcome=SubmitOutcome.SUCCESS,
            message=message,
            payload=payload,
            email_sent=email_sent,
        )

    def _fail(self, payload: RequestPayload, error: RemoteResourceError) -> WorkflowResult:
        message = error.user_message(self._spec.failure_fallback)
        if isinstance(error, ValidationFailure):
            logger.warning(
                "request workflow validation errors",
                workflow=self.kind.value,
                errors=error.errors,
            )
        logger.warning(
            "request workflow failed",
            workflow=self.kind.value,
            status_code=error.status_code,
            error=message,
        )
        self.last_outcome = SubmitOutcome.FAILED
        self.last_error = message
        self._notices.error(self._spec.failure_template.format(message=message))
        return WorkflowResult(
            outcome=SubmitOutcome.FAILED,
            message=message,
            payload=payload,
        )
