"""Activity feed synthesis for the client dashboard.

Merges notifications, public project notes and deadline-proximity alerts
into one bounded feed. Sources keep a fixed precedence: notifications,
then project notes, then deadline alerts. Items are not re-sorted across
sources.

The feed is a pure function of the current snapshots and ``now``; it is
recomputed on every render rather than patched.
"""

import math
from collections.abc import Sequence
from datetime import datetime

from portal.dashboard.schemas import FeedItem, FeedKind
from portal.models import Notification, ProjectSummary

MAX_NOTIFICATIONS = 2
MAX_PROJECT_NOTES = 3
MAX_DEADLINE_ALERTS = 2
DEADLINE_WINDOW_DAYS = 7

SECONDS_PER_HOUR = 60 * 60
SECONDS_PER_DAY = 24 * SECONDS_PER_HOUR

NOTIFICATION_ACTOR = "Admin"
DEFAULT_NOTE_AUTHOR = "Team"


def days_until_deadline(deadline: datetime, now: datetime) -> int:
    """Whole days until a deadline, rounded up.

    A deadline 1 hour away counts as 1 day; one already passed is <= 0.
    """
    return math.ceil((deadline - now).total_seconds() / SECONDS_PER_DAY)


def relative_time_label(occurred_at: datetime, now: datetime) -> str:
    """Render "{h}h ago" under a day, "{d}d ago" otherwise."""
    hours = math.floor((now - occurred_at).total_seconds() / SECONDS_PER_HOUR)
    if hours < 24:
        return f"{hours}h ago"
    return f"{hours // 24}d ago"


def deadline_label(due_in_days: int) -> str:
    """Render "due in N day(s)"."""
    return f"due in {due_in_days} day{'' if due_in_days == 1 else 's'}"


def time_label(item: FeedItem, now: datetime) -> str:
    """Time text for a feed item, computed at render time."""
    if item.kind == FeedKind.DEADLINE_ALERT:
        return deadline_label(item.due_in_days or 0)
    if item.occurred_at is None:
        return ""
    return relative_time_label(item.occurred_at, now)


def notification_items(notifications: Sequence[Notification]) -> list[FeedItem]:
    """Newest notifications first, capped."""
    newest = sorted(notifications, key=lambda n: n.created_at, reverse=True)
    return [
        FeedItem(
            kind=FeedKind.NOTIFICATION,
            source_id=n.id,
            title=n.title,
            excerpt=n.message,
            actor=NOTIFICATION_ACTOR,
            occurred_at=n.created_at,
        )
        for n in newest[:MAX_NOTIFICATIONS]
    ]


def project_note_items(projects: Sequence[ProjectSummary]) -> list[FeedItem]:
    """Latest public note of each project, flattened and capped."""
    items = []
    for project in projects:
        note = project.latest_public_note()
        if note is None:
            continue
        items.append(
            FeedItem(
                kind=FeedKind.PROJECT_NOTE,
                source_id=project.id,
                title=project.title,
                excerpt=note.content,
                actor=note.author.name or DEFAULT_NOTE_AUTHOR,
                occurred_at=note.created_at,
            )
        )
    return items[:MAX_PROJECT_NOTES]


def deadline_alert_items(
    projects: Sequence[ProjectSummary],
    now: datetime,
) -> list[FeedItem]:
    """Projects due within the alert window, in input order, capped."""
    items = []
    for project in projects:
        if project.deadline is None:
            continue
        days = days_until_deadline(project.deadline, now)
        if not 0 < days <= DEADLINE_WINDOW_DAYS:
            continue
        items.append(
            FeedItem(
                kind=FeedKind.DEADLINE_ALERT,
                source_id=project.id,
                title=project.title,
                excerpt=deadline_label(days),
                due_in_days=days,
                deadline=project.deadline,
            )
        )
    return items[:MAX_DEADLINE_ALERTS]


def synthesize(
    projects: Sequence[ProjectSummary] | None,
    notifications: Sequence[Notification] | None,
    now: datetime,
) -> list[FeedItem]:
    """Build the activity feed.

    Args:
        projects: Current project snapshots (None if unavailable)
        notifications: Current notification snapshots (None if unavailable)
        now: Reference time for deadline proximity

    Returns:
        Feed items in precedence order with 1-based ``display_rank``.
        Empty when there are no projects, even if notifications exist.
    """
    # Notifications are gated on projects too; kept for compatibility with
    # the existing dashboard. See DESIGN.md (open questions).
    if not projects:
        return []

    items = [
        *notification_items(notifications or []),
        *project_note_items(projects),
        *deadline_alert_items(projects, now),
    ]
    return [
        item.model_copy(update={"display_rank": rank})
        for rank, item in enumerate(items, start=1)
    ]
