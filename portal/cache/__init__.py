"""Query cache shared by the dashboard controllers."""

from portal.cache.query_cache import (
    QueryCache,
    QueryKey,
    QueryOptions,
    QueryResult,
    QueryStatus,
)

__all__ = [
    "QueryCache",
    "QueryKey",
    "QueryOptions",
    "QueryResult",
    "QueryStatus",
]
