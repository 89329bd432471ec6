"""Client request workflows (update request, meeting request).

This module provides:
- RequestWorkflowController: submit lifecycle per workflow instance
- parse_form / build_payload: validation and payload construction
- Schemas for forms, payloads and results
"""

from portal.requests.schemas import (
    MeetingRequestForm,
    Priority,
    RequestPayload,
    RequestType,
    SubmitOutcome,
    UpdateRequestForm,
    WorkflowKind,
    WorkflowResult,
    WorkflowState,
)
from portal.requests.workflow import (
    WORKFLOWS,
    RequestWorkflowController,
    build_payload,
    parse_form,
)

__all__ = [
    "WORKFLOWS",
    "MeetingRequestForm",
    "Priority",
    "RequestPayload",
    "RequestType",
    "RequestWorkflowController",
    "SubmitOutcome",
    "UpdateRequestForm",
    "WorkflowKind",
    "WorkflowResult",
    "WorkflowState",
    "build_payload",
    "parse_form",
]
