"""Pytest configuration and fixtures."""

from collections.abc import AsyncIterator, Callable
from datetime import UTC, datetime, timedelta

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from portal.cache.query_cache import QueryCache
from portal.client.remote import RemoteResourceClient
from portal.main import app
from portal.models import Role, Session

BACKEND_URL = "http://backend.test"
# Payload timestamps are relative to NOW; API tests render against the wall clock.
NOW = datetime.now(UTC).replace(microsecond=0)


class FakeBackend:
    """Routes httpx requests to canned envelope responses and records them."""

    def __init__(self):
        self._routes: dict[tuple[str, str], Callable[[httpx.Request], httpx.Response]] = {}
        self.requests: list[httpx.Request] = []

    def on(
        self,
        method: str,
        path: str,
        data=None,
        status: int = 200,
        message: str | None = None,
        errors: list[dict] | None = None,
    ) -> None:
        """Register an envelope response for a route."""
        body: dict = {"success": 200 <= status < 300}
        if data is not None:
            body["data"] = data
        if message is not None:
            body["message"] = message
        if errors is not None:
            body["errors"] = errors
        self._routes[(method, path)] = lambda request: httpx.Response(status, json=body)

    def on_call(
        self,
        method: str,
        path: str,
        handler: Callable[[httpx.Request], httpx.Response],
    ) -> None:
        """Register a custom handler for a route."""
        self._routes[(method, path)] = handler

    def fail(self, method: str, path: str, exc_type=httpx.ConnectError) -> None:
        """Make a route fail at the transport level."""

        def raise_error(request: httpx.Request) -> httpx.Response:
            raise exc_type("connection refused", request=request)

        self._routes[(method, path)] = raise_error

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self._routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"success": False, "message": "Not found"})
        return route(request)

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        """Requests received for a route."""
        return [
            r for r in self.requests if r.method == method and r.url.path == path
        ]

    @property
    def paths(self) -> list[str]:
        """Paths of all received requests, in order."""
        return [r.url.path for r in self.requests]


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def backend() -> FakeBackend:
    """Fake portal backend."""
    return FakeBackend()


@pytest.fixture
async def remote_client(backend: FakeBackend) -> AsyncIterator[RemoteResourceClient]:
    """RemoteResourceClient wired to the fake backend, without retry delays."""
    http = httpx.AsyncClient(
        transport=httpx.MockTransport(backend.handler),
        base_url=BACKEND_URL,
    )
    client = RemoteResourceClient(http_client=http, retry_attempts=2, retry_wait_max_s=0)
    yield client
    await client.close()


@pytest.fixture
def clock() -> FakeClock:
    """Hand-driven clock for cache staleness."""
    return FakeClock()


@pytest.fixture
def query_cache(clock: FakeClock) -> QueryCache:
    """Empty query cache on the fake clock."""
    return QueryCache(clock=clock)


@pytest.fixture
def client_session() -> Session:
    """Signed-in client."""
    return Session(user_id="u-client", role=Role.CLIENT, email="client@example.com")


@pytest.fixture
def admin_session() -> Session:
    """Signed-in admin."""
    return Session(user_id="u-admin", role=Role.ADMIN, email="admin@example.com")


def iso(dt: datetime) -> str:
    """Backend timestamp format."""
    return dt.isoformat().replace("+00:00", "Z")


def project_payload(
    project_id: str,
    title: str | None = None,
    status: str = "in-progress",
    progress: int = 40,
    deadline_in_days: float | None = 30,
    notes: list[dict] | None = None,
) -> dict:
    """Project as returned by the backend."""
    return {
        "_id": project_id,
        "title": title or f"Project {project_id}",
        "status": status,
        "progress": progress,
        "deadline": iso(NOW + timedelta(days=deadline_in_days))
        if deadline_in_days is not None
        else None,
        "notes": notes or [],
    }


def note_payload(
    content: str,
    hours_ago: float,
    author: str = "Dana",
    is_private: bool = False,
) -> dict:
    """Project note as returned by the backend."""
    return {
        "author": {"name": author},
        "content": content,
        "createdAt": iso(NOW - timedelta(hours=hours_ago)),
        "isPrivate": is_private,
    }


def notification_payload(notification_id: str, hours_ago: float, message: str = "") -> dict:
    """Notification as returned by the backend."""
    return {
        "_id": notification_id,
        "title": f"Notice {notification_id}",
        "message": message or f"Message {notification_id}",
        "createdAt": iso(NOW - timedelta(hours=hours_ago)),
    }


def user_payload(user_id: str, role: str = "client", is_active: bool = True) -> dict:
    """User record as returned by the backend."""
    return {
        "_id": user_id,
        "name": f"user {user_id}",
        "email": f"{user_id}@example.com",
        "role": role,
        "company": "Acme",
        "isActive": is_active,
        "createdAt": iso(NOW - timedelta(days=30)),
    }


def users_page_payload(
    users: list[dict],
    current: int = 1,
    total_pages: int = 1,
    total_users: int | None = None,
) -> dict:
    """List-users response data."""
    return {
        "users": users,
        "pagination": {
            "current": current,
            "total": total_pages,
            "totalUsers": len(users) if total_users is None else total_users,
        },
    }


@pytest.fixture
async def client(backend: FakeBackend) -> AsyncIterator[AsyncClient]:
    """Async test client for the FastAPI app, backed by the fake backend."""
    http = httpx.AsyncClient(
        transport=httpx.MockTransport(backend.handler),
        base_url=BACKEND_URL,
    )
    remote = RemoteResourceClient(http_client=http, retry_attempts=1, retry_wait_max_s=0)

    # Set up app state
    app.state.remote_client = remote
    app.state.query_cache = QueryCache()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    # Cleanup
    await remote.close()
    del app.state.remote_client
    del app.state.query_cache
