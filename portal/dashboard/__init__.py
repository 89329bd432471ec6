"""Role-aware dashboard aggregation and activity feed synthesis."""

from portal.dashboard.aggregator import (
    OVERVIEW_SOURCES,
    DashboardAggregator,
    admin_overview,
    client_overview,
)
from portal.dashboard.feed import (
    days_until_deadline,
    relative_time_label,
    synthesize,
    time_label,
)
from portal.dashboard.schemas import DashboardOverview, DashboardView, FeedItem, FeedKind

__all__ = [
    "OVERVIEW_SOURCES",
    "DashboardAggregator",
    "DashboardOverview",
    "DashboardView",
    "FeedItem",
    "FeedKind",
    "admin_overview",
    "client_overview",
    "days_until_deadline",
    "relative_time_label",
    "synthesize",
    "time_label",
]
