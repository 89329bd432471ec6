"""View models produced by the dashboard aggregator and feed synthesizer."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from portal.models import Notification, ProjectSummary, Role


class FeedKind(str, Enum):
    """Source of a feed item."""

    NOTIFICATION = "notification"
    PROJECT_NOTE = "project-note"
    DEADLINE_ALERT = "deadline-alert"


class FeedItem(BaseModel):
    """One synthesized row of the client activity panel.

    Notification and project-note items carry ``occurred_at``; deadline
    alerts carry ``due_in_days`` instead.
    """

    model_config = ConfigDict(frozen=True)

    kind: FeedKind
    source_id: str = Field(description="Notification or project id")
    title: str = Field(description="Notification title or project title")
    excerpt: str = Field(default="", description="Message, note content, or alert text")
    actor: str = Field(default="", description="Who produced the item")
    occurred_at: datetime | None = None
    due_in_days: int | None = None
    deadline: datetime | None = None
    display_rank: int = Field(default=0, ge=0, description="1-based feed position")


class DashboardOverview(BaseModel):
    """Stats normalized across the admin and client response shapes.

    ``average_progress`` is stored unrounded; use
    ``display_average_progress`` when rendering.
    """

    active_projects: int = 0
    completed_projects: int = 0
    total_projects: int = 0
    average_progress: float = 0.0

    # Admin-only counters
    total_clients: int | None = None
    pending_messages: int | None = None
    pending_feedback: int | None = None

    @property
    def display_average_progress(self) -> int:
        """Average progress rounded half-up for display."""
        return int(self.average_progress + 0.5)


@dataclass
class DashboardView:
    """Aggregated dashboard for one session.

    ``projects`` and ``notifications`` are None for admins (never
    requested) and for clients whose fetch failed without prior data.
    """

    role: Role
    overview: DashboardOverview
    projects: list[ProjectSummary] | None = None
    notifications: list[Notification] | None = None
    activity: list[FeedItem] = field(default_factory=list)
    errors: dict[str, str] = field(default_factory=dict)
    stale: set[str] = field(default_factory=set)

    @property
    def recent_projects(self) -> list[ProjectSummary]:
        """Projects shown in the "recent projects" panel."""
        return (self.projects or [])[:3]

    @property
    def completed_for_feedback(self) -> int:
        """Completed projects the client can leave feedback on."""
        return sum(1 for p in self.projects or [] if p.is_completed)

    @property
    def is_partial(self) -> bool:
        """Check if at least one resource failed to load."""
        return bool(self.errors)

    @property
    def has_projects(self) -> bool:
        """Check if the client has any projects (empty state otherwise)."""
        return bool(self.projects)
