"""Domain models for the client portal dashboard.

This module exports the snapshots decoded from backend payloads:
- Session, AuthState, Role: the signed-in user
- ProjectSummary, Note: client projects and their notes
- Notification: client notifications
- UserRecord, UserPage: admin user management
"""

from portal.models.base import Timestamp, WireModel
from portal.models.notification import Notification
from portal.models.project import Note, NoteAuthor, ProjectStatus, ProjectSummary
from portal.models.session import AuthState, Role, Session
from portal.models.user import PageInfo, UserPage, UserRecord

__all__ = [
    # Base
    "Timestamp",
    "WireModel",
    # Session
    "AuthState",
    "Role",
    "Session",
    # Projects
    "Note",
    "NoteAuthor",
    "ProjectStatus",
    "ProjectSummary",
    # Notifications
    "Notification",
    # Users
    "PageInfo",
    "UserPage",
    "UserRecord",
]
