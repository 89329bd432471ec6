"""Role resolution for the role-aware dashboard."""

from portal.auth.role_resolver import (
    FETCH_SETS,
    DashboardVariant,
    ResourceSpec,
    RoleResolver,
)

__all__ = [
    "FETCH_SETS",
    "DashboardVariant",
    "ResourceSpec",
    "RoleResolver",
]
