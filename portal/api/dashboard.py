"""Dashboard endpoint.

Serves the role-specific dashboard view model. Relative time labels are
computed per request, since they depend on the current time.
"""

from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from portal.api.deps import get_query_cache, get_remote_client, require_session
from portal.cache.query_cache import QueryCache
from portal.client.remote import RemoteResourceClient
from portal.dashboard.aggregator import DashboardAggregator
from portal.dashboard.feed import time_label
from portal.dashboard.schemas import DashboardView, FeedItem
from portal.models import Session

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


class OverviewResponse(BaseModel):
    """Normalized stats with display rounding applied."""

    active_projects: int
    completed_projects: int
    total_projects: int
    average_progress: int = Field(description="Rounded to the nearest integer")
    total_clients: int | None = None
    pending_messages: int | None = None
    pending_feedback: int | None = None


class ProjectCard(BaseModel):
    """Project shown in the recent projects panel."""

    id: str
    title: str
    status: str
    progress: int


class FeedRow(BaseModel):
    """Feed item with its render-time label."""

    kind: str
    source_id: str
    title: str
    excerpt: str
    actor: str
    time_label: str
    display_rank: int


class DashboardResponse(BaseModel):
    """Dashboard view for the signed-in role."""

    role: str
    overview: OverviewResponse
    recent_projects: list[ProjectCard] | None = None
    activity: list[FeedRow] = Field(default_factory=list)
    completed_for_feedback: int = 0
    errors: dict[str, str] = Field(default_factory=dict)
    stale: list[str] = Field(default_factory=list)


def _feed_row(item: FeedItem, now: datetime) -> FeedRow:
    return FeedRow(
        kind=item.kind.value,
        source_id=item.source_id,
        title=item.title,
        excerpt=item.excerpt,
        actor=item.actor,
        time_label=time_label(item, now),
        display_rank=item.display_rank,
    )


def to_response(view: DashboardView, now: datetime) -> DashboardResponse:
    """Convert a DashboardView to the API response."""
    overview = view.overview
    projects = None
    if view.projects is not None:
        projects = [
            ProjectCard(id=p.id, title=p.title, status=p.status.value, progress=p.progress)
            for p in view.recent_projects
        ]
    return DashboardResponse(
        role=view.role.value,
        overview=OverviewResponse(
            active_projects=overview.active_projects,
            completed_projects=overview.completed_projects,
            total_projects=overview.total_projects,
            average_progress=overview.display_average_progress,
            total_clients=overview.total_clients,
            pending_messages=overview.pending_messages,
            pending_feedback=overview.pending_feedback,
        ),
        recent_projects=projects,
        activity=[_feed_row(item, now) for item in view.activity],
        completed_for_feedback=view.completed_for_feedback,
        errors=view.errors,
        stale=sorted(view.stale),
    )


@router.get("", response_model=DashboardResponse)
async def get_dashboard(
    session: Annotated[Session, Depends(require_session)],
    client: Annotated[RemoteResourceClient, Depends(get_remote_client)],
    cache: Annotated[QueryCache, Depends(get_query_cache)],
) -> DashboardResponse:
    """Dashboard for the signed-in user.

    Admins get system stats only; clients get project stats, recent
    projects, notifications and the activity feed. Failed resources are
    listed in ``errors`` while the rest of the dashboard still renders.
    """
    now = datetime.now(UTC)
    view = await DashboardAggregator(client, cache).load_dashboard(session, now=now)
    return to_response(view, now)


@router.post("/refresh", status_code=204)
async def refresh_dashboard(
    session: Annotated[Session, Depends(require_session)],
    client: Annotated[RemoteResourceClient, Depends(get_remote_client)],
    cache: Annotated[QueryCache, Depends(get_query_cache)],
    resource: str | None = None,
) -> None:
    """Invalidate cached dashboard resources so the next read re-fetches."""
    DashboardAggregator(client, cache).invalidate(session, resource)
