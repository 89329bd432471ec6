"""Dashboard aggregator.

Fetches the role-specific resource set through the query cache and
assembles a single view model. Resources outside the session's fetch set
are passed to the cache disabled, so they never reach the network.
"""

import asyncio
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime

import structlog

from portal.auth.role_resolver import (
    ADMIN_STATS,
    ALL_RESOURCES,
    PROJECT_STATS,
    RECENT_NOTIFICATIONS,
    RECENT_PROJECTS,
    ResourceSpec,
    RoleResolver,
)
from portal.cache.query_cache import QueryCache, QueryKey, QueryOptions, QueryResult
from portal.client.remote import RemoteResourceClient
from portal.config import settings
from portal.dashboard.feed import synthesize
from portal.dashboard.schemas import DashboardOverview, DashboardView
from portal.errors import RemoteResourceError
from portal.models import Notification, ProjectSummary, Role, Session

logger = structlog.get_logger()


def admin_overview(stats: dict | None) -> DashboardOverview:
    """Overview from the admin stats payload (already flat)."""
    stats = stats or {}
    return DashboardOverview(
        active_projects=stats.get("activeProjects") or 0,
        completed_projects=stats.get("completedProjects") or 0,
        total_projects=stats.get("totalProjects") or 0,
        average_progress=stats.get("avgProgress") or 0,
        total_clients=stats.get("totalClients") or 0,
        pending_messages=stats.get("pendingMessages") or 0,
        pending_feedback=stats.get("pendingFeedback") or 0,
    )


def client_overview(stats: dict | None) -> DashboardOverview:
    """Overview from the client stats payload (nested under ``overview``)."""
    overview = (stats or {}).get("overview") or {}
    return DashboardOverview(
        active_projects=overview.get("inProgressProjects") or 0,
        completed_projects=overview.get("completedProjects") or 0,
        total_projects=overview.get("totalProjects") or 0,
        average_progress=overview.get("averageProgress") or 0,
    )


# Role -> (stats resource, normalizer)
OVERVIEW_SOURCES: dict[
    Role, tuple[ResourceSpec, Callable[[dict | None], DashboardOverview]]
] = {
    Role.ADMIN: (ADMIN_STATS, admin_overview),
    Role.CLIENT: (PROJECT_STATS, client_overview),
}


class DashboardAggregator:
    """Orchestrates the role-specific fetch set for the dashboard.

    Each resource is cached and retried independently; a failure in one
    is reported in ``DashboardView.errors`` and never blocks the others.
    """

    def __init__(
        self,
        client: RemoteResourceClient,
        cache: QueryCache,
        resolver: RoleResolver | None = None,
    ):
        """Initialize aggregator with its collaborators.

        Args:
            client: Remote resource client for backend calls
            cache: Shared query cache
            resolver: Role resolver selecting the fetch set
        """
        self._client = client
        self._cache = cache
        self._resolver = resolver or RoleResolver()
        self._fetchers: dict[str, Callable[[], Awaitable]] = {
            ADMIN_STATS.name: self._client.admin_stats,
            PROJECT_STATS.name: self._client.project_dashboard_stats,
            RECENT_PROJECTS.name: self._fetch_projects,
            RECENT_NOTIFICATIONS.name: self._fetch_notifications,
        }
        self._options: dict[str, QueryOptions] = {
            ADMIN_STATS.name: QueryOptions(
                stale_ms=settings.stats_stale_ms, cache_ms=settings.stats_cache_ms
            ),
            PROJECT_STATS.name: QueryOptions(
                stale_ms=settings.stats_stale_ms, cache_ms=settings.stats_cache_ms
            ),
            RECENT_PROJECTS.name: QueryOptions(
                stale_ms=0, cache_ms=settings.default_cache_ms
            ),
            RECENT_NOTIFICATIONS.name: QueryOptions(
                stale_ms=settings.notifications_stale_ms,
                cache_ms=settings.default_cache_ms,
            ),
        }

    @staticmethod
    def key_for(resource: ResourceSpec, session: Session) -> QueryKey:
        """Cache key of a dashboard resource, scoped to role and user."""
        return QueryKey.build(resource.name, role=session.role, user=session.user_id)

    async def load_dashboard(
        self,
        session: Session,
        now: datetime | None = None,
    ) -> DashboardView:
        """Load the dashboard for a session.

        Args:
            session: Signed-in user
            now: Reference time for the activity feed (default: now, UTC)

        Returns:
            DashboardView with normalized overview and, for clients,
            projects, notifications and activity feed
        """
        now = now or datetime.now(UTC)
        variant = self._resolver.variant_for(session.role)

        results = await asyncio.gather(
            *(
                self._query(spec, session, enabled=variant.wants(spec))
                for spec in ALL_RESOURCES
            )
        )
        by_name = {spec.name: result for spec, result in zip(ALL_RESOURCES, results)}

        stats_spec, normalize = OVERVIEW_SOURCES[session.role]
        view = DashboardView(
            role=session.role,
            overview=normalize(by_name[stats_spec.name].data),
        )

        for spec in variant.resources:
            result = by_name[spec.name]
            if result.error is not None:
                view.errors[spec.name] = self._error_message(spec, result.error)
            if result.is_stale:
                view.stale.add(spec.name)

        if variant.wants(RECENT_PROJECTS):
            view.projects = by_name[RECENT_PROJECTS.name].data
        if variant.wants(RECENT_NOTIFICATIONS):
            view.notifications = by_name[RECENT_NOTIFICATIONS.name].data
            view.activity = synthesize(view.projects, view.notifications, now)

        logger.info(
            "dashboard loaded",
            role=session.role.value,
            resources=sorted(variant.resource_names),
            failed=sorted(view.errors),
            feed_items=len(view.activity),
        )
        return view

    def invalidate(self, session: Session, resource: str | None = None) -> int:
        """Force a re-fetch of one or all of the session's dashboard resources.

        Args:
            session: Signed-in user
            resource: Resource name, or None for the whole fetch set

        Returns:
            Number of cache entries invalidated
        """
        variant = self._resolver.variant_for(session.role)
        specs = [
            spec
            for spec in variant.resources
            if resource is None or spec.name == resource
        ]
        return sum(self._cache.invalidate(self.key_for(s, session)) for s in specs)

    async def _query(
        self,
        spec: ResourceSpec,
        session: Session,
        enabled: bool,
    ) -> QueryResult:
        options = self._options[spec.name]
        return await self._cache.get(
            self.key_for(spec, session),
            self._fetchers[spec.name],
            QueryOptions(
                stale_ms=options.stale_ms,
                cache_ms=options.cache_ms,
                enabled=enabled,
            ),
        )

    async def _fetch_projects(self) -> list[ProjectSummary]:
        raw = await self._client.list_projects(limit=settings.dashboard_projects_limit)
        return [ProjectSummary.model_validate(p) for p in raw]

    async def _fetch_notifications(self) -> list[Notification]:
        raw = await self._client.list_notifications(
            limit=settings.dashboard_notifications_limit
        )
        return [Notification.model_validate(n) for n in raw]

    @staticmethod
    def _error_message(spec: ResourceSpec, error: Exception) -> str:
        fallback = f"Failed to load {spec.name}"
        if isinstance(error, RemoteResourceError):
            return error.user_message(fallback)
        return fallback
