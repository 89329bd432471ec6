"""Admin user management: list query, modals and CRUD mutations."""

from portal.users.controller import (
    USERS_RESOURCE,
    UserManagementController,
    create_admin_payload,
    page_window,
    update_user_payload,
)
from portal.users.display import Badge, initials, joined_label, role_badge, status_badge
from portal.users.schemas import (
    Closed,
    Creating,
    Deleting,
    Editing,
    ModalState,
    Notifying,
    PaginationState,
    PaginationSummary,
    UserForm,
)

__all__ = [
    "USERS_RESOURCE",
    "Badge",
    "Closed",
    "Creating",
    "Deleting",
    "Editing",
    "ModalState",
    "Notifying",
    "PaginationState",
    "PaginationSummary",
    "UserForm",
    "UserManagementController",
    "create_admin_payload",
    "initials",
    "joined_label",
    "page_window",
    "role_badge",
    "status_badge",
    "update_user_payload",
]
