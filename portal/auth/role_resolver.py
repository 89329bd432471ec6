"""Role resolution for the dashboard.

Maps the signed-in role to its dashboard variant through a single lookup
table, so adding a role is a one-place change.
"""

from dataclasses import dataclass

import structlog

from portal.models.session import AuthState, Role

logger = structlog.get_logger()


@dataclass(frozen=True)
class ResourceSpec:
    """A remote resource fetched for a dashboard variant."""

    name: str


ADMIN_STATS = ResourceSpec("admin-stats")
PROJECT_STATS = ResourceSpec("project-stats")
RECENT_PROJECTS = ResourceSpec("recent-projects")
RECENT_NOTIFICATIONS = ResourceSpec("recent-notifications")

FETCH_SETS: dict[Role, tuple[ResourceSpec, ...]] = {
    Role.ADMIN: (ADMIN_STATS,),
    Role.CLIENT: (PROJECT_STATS, RECENT_PROJECTS, RECENT_NOTIFICATIONS),
}

ALL_RESOURCES: tuple[ResourceSpec, ...] = tuple(
    dict.fromkeys(spec for specs in FETCH_SETS.values() for spec in specs)
)


@dataclass(frozen=True)
class DashboardVariant:
    """Dashboard flavor selected for a role."""

    role: Role
    resources: tuple[ResourceSpec, ...]

    @property
    def resource_names(self) -> frozenset[str]:
        """Names of the resources this variant fetches."""
        return frozenset(r.name for r in self.resources)

    def wants(self, resource: ResourceSpec) -> bool:
        """Check if the resource belongs to this variant's fetch set."""
        return resource.name in self.resource_names


class RoleResolver:
    """Decides which dashboard variant applies to the current session."""

    def __init__(self, fetch_sets: dict[Role, tuple[ResourceSpec, ...]] | None = None):
        self._fetch_sets = fetch_sets or FETCH_SETS

    def variant_for(self, role: Role) -> DashboardVariant:
        """Dashboard variant for a role."""
        return DashboardVariant(role=role, resources=self._fetch_sets[role])

    def resolve(self, auth: AuthState) -> DashboardVariant | None:
        """Resolve the variant for an auth snapshot.

        Returns:
            DashboardVariant, or None while auth is loading or signed out
        """
        if auth.loading or auth.user is None:
            logger.debug("no dashboard variant", loading=auth.loading)
            return None
        return self.variant_for(auth.user.role)
