"""Project snapshots fetched for the client dashboard."""

from enum import Enum

from pydantic import AliasChoices, Field

from portal.models.base import Timestamp, WireModel


class ProjectStatus(str, Enum):
    """Lifecycle status of a project."""

    PLANNING = "planning"
    IN_PROGRESS = "in-progress"
    REVIEW = "review"
    COMPLETED = "completed"
    ON_HOLD = "on-hold"
    CANCELLED = "cancelled"


class NoteAuthor(WireModel):
    """Author of a project note."""

    name: str = ""


class Note(WireModel):
    """A note attached to a project.

    Only public notes (``is_private=False``) are shown in the activity feed.
    """

    author: NoteAuthor = Field(default_factory=NoteAuthor)
    content: str = ""
    created_at: Timestamp
    is_private: bool = False


class ProjectSummary(WireModel):
    """A project as listed on the client dashboard."""

    id: str = Field(validation_alias=AliasChoices("_id", "id"))
    title: str
    status: ProjectStatus = ProjectStatus.PLANNING
    progress: int = Field(default=0, ge=0, le=100)
    deadline: Timestamp | None = None
    notes: tuple[Note, ...] = ()

    @property
    def is_completed(self) -> bool:
        """Check if project is completed."""
        return self.status == ProjectStatus.COMPLETED

    def latest_public_note(self) -> Note | None:
        """Most recent note that is not private, if any."""
        public = [n for n in self.notes if not n.is_private]
        if not public:
            return None
        return max(public, key=lambda n: n.created_at)
