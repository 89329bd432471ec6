"""Forms and payloads for the client request workflows."""

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class WorkflowKind(str, Enum):
    """User-initiated request workflows."""

    UPDATE_REQUEST = "update-request"
    MEETING_REQUEST = "meeting-request"


class WorkflowState(str, Enum):
    """Submission state of a workflow instance."""

    IDLE = "idle"
    SUBMITTING = "submitting"


class SubmitOutcome(str, Enum):
    """How the last submission settled."""

    SUCCESS = "success"
    FAILED = "failed"


class RequestType(str, Enum):
    """Notification type recorded by the backend."""

    PROJECT_UPDATE = "project_update"
    MEETING = "meeting"


class Priority(str, Enum):
    """Request priority."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class UpdateRequestForm(BaseModel):
    """Input captured by the "request project update" modal.

    An empty message is allowed; the payload falls back to a default text.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    message: str = ""
    urgent: bool = False
    project_id: str | None = None


class MeetingRequestForm(BaseModel):
    """Input captured by the "schedule meeting" modal."""

    model_config = ConfigDict(str_strip_whitespace=True)

    message: str = Field(min_length=1, description="Meeting purpose and times")
    email: EmailStr = Field(description="Address receiving the confirmation email")
    project_id: str | None = None


RequestForm = UpdateRequestForm | MeetingRequestForm


class RequestPayload(BaseModel):
    """Body of the create-request call. Built fresh per submission."""

    model_config = ConfigDict(frozen=True)

    title: str
    message: str
    type: RequestType
    priority: Priority = Priority.MEDIUM
    related_project: str | None = None
    action_text: str
    email: str | None = None

    def to_wire(self) -> dict:
        """Backend body; unset optional fields are omitted."""
        body = {
            "title": self.title,
            "message": self.message,
            "type": self.type.value,
            "priority": self.priority.value,
            "relatedProject": self.related_project,
            "actionText": self.action_text,
            "email": self.email,
        }
        return {k: v for k, v in body.items() if v is not None}


@dataclass(frozen=True)
class WorkflowResult:
    """Settled submission."""

    outcome: SubmitOutcome
    message: str
    payload: RequestPayload
    email_sent: bool = False

    @property
    def succeeded(self) -> bool:
        """Check if the submission succeeded."""
        return self.outcome == SubmitOutcome.SUCCESS
