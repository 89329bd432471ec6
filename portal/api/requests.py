"""Endpoints for the client request workflows."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from portal.api.deps import get_remote_client, require_client
from portal.client.remote import RemoteResourceClient
from portal.models import Session
from portal.requests.schemas import (
    MeetingRequestForm,
    RequestForm,
    UpdateRequestForm,
    WorkflowKind,
    WorkflowResult,
)
from portal.requests.workflow import RequestWorkflowController, parse_form

router = APIRouter(prefix="/requests", tags=["requests"])


class RequestResponse(BaseModel):
    """Outcome of a successful submission."""

    outcome: str
    message: str
    email_sent: bool = False


async def _submit(
    kind: WorkflowKind,
    form: RequestForm,
    client: RemoteResourceClient,
) -> RequestResponse:
    controller = RequestWorkflowController(kind, client)
    result: WorkflowResult = await controller.submit(form)
    if not result.succeeded:
        raise HTTPException(status_code=502, detail=result.message)
    return RequestResponse(
        outcome=result.outcome.value,
        message=result.message,
        email_sent=result.email_sent,
    )


@router.post("/update", response_model=RequestResponse)
async def request_update(
    body: dict,
    session: Annotated[Session, Depends(require_client)],
    client: Annotated[RemoteResourceClient, Depends(get_remote_client)],
) -> RequestResponse:
    """Ask the agency for a project update."""
    form: UpdateRequestForm = parse_form(WorkflowKind.UPDATE_REQUEST, body)
    return await _submit(WorkflowKind.UPDATE_REQUEST, form, client)


@router.post("/meeting", response_model=RequestResponse)
async def request_meeting(
    body: dict,
    session: Annotated[Session, Depends(require_client)],
    client: Annotated[RemoteResourceClient, Depends(get_remote_client)],
) -> RequestResponse:
    """Ask the agency for a meeting; the email defaults to the session's."""
    body = {"email": session.email, **body}
    form: MeetingRequestForm = parse_form(WorkflowKind.MEETING_REQUEST, body)
    return await _submit(WorkflowKind.MEETING_REQUEST, form, client)
