"""Tests for UserManagementController."""

import asyncio
import json

import httpx
import pytest

from portal.errors import FormValidationError
from portal.models import Role, UserRecord
from portal.notices import NoticeBoard, NoticeLevel
from portal.users import UserManagementController
from portal.users.controller import (
    create_admin_payload,
    page_window,
    update_user_payload,
)
from portal.users.schemas import (
    Closed,
    Deleting,
    Editing,
    Notifying,
    PaginationState,
    UserForm,
)
from tests.conftest import user_payload, users_page_payload

USERS_PATH = "/api/users"


@pytest.fixture
def notices() -> NoticeBoard:
    return NoticeBoard()


@pytest.fixture
def controller(remote_client, query_cache, notices) -> UserManagementController:
    return UserManagementController(remote_client, query_cache, notices, page_size=10)


def record(user_id: str, **kwargs) -> UserRecord:
    return UserRecord.model_validate(user_payload(user_id, **kwargs))


def serve_users(backend, users, total_pages=1, total_users=None):
    backend.on(
        "GET",
        USERS_PATH,
        data=users_page_payload(users, total_pages=total_pages, total_users=total_users),
    )


def list_params(backend) -> list[dict]:
    return [dict(r.url.params) for r in backend.calls("GET", USERS_PATH)]


class TestPaginationState:
    """Tests for query state transitions."""

    def test_filter_changes_reset_page(self):
        """Search and role filter changes return to page 1."""
        state = PaginationState(page=3)

        assert state.with_search("ann").page == 1
        assert state.with_role_filter(Role.CLIENT).page == 1
        assert state.cleared() == PaginationState()

    def test_query_params_omit_unset_filters(self):
        """Empty search and no role filter are not sent."""
        assert PaginationState().query_params() == {"page": 1, "limit": 10}
        assert PaginationState(search_term="ann", role_filter=Role.ADMIN).query_params() == {
            "page": 1,
            "limit": 10,
            "search": "ann",
            "role": "admin",
        }

    @pytest.mark.parametrize(
        ("current", "total", "expected"),
        [
            (1, 10, (1, 2, 3, 4, 5)),
            (5, 10, (3, 4, 5, 6, 7)),
            (10, 10, (6, 7, 8, 9, 10)),
            (2, 3, (1, 2, 3)),
            (1, 0, ()),
        ],
    )
    def test_page_window(self, current, total, expected):
        """At most five pages around the current one."""
        assert page_window(current, total) == expected


class TestLoading:
    """Tests for list loading and paging."""

    async def test_first_load_sends_minimal_params(self, controller, backend):
        """Only page and limit are sent without filters."""
        serve_users(backend, [user_payload("a"), user_payload("b")])

        page = await controller.load()

        assert [u.id for u in page.users] == ["a", "b"]
        assert list_params(backend) == [{"page": "1", "limit": "10"}]
        assert controller.load_error is None

    async def test_filters_sent_and_page_reset(self, controller, backend):
        """Filter changes go back to page 1 and are sent."""
        serve_users(backend, [user_payload("a")], total_pages=4, total_users=31)
        await controller.load()
        controller.go_to_page(3)

        controller.set_search(" ann ")
        controller.set_role_filter(Role.CLIENT)
        await controller.load()

        assert controller.query.page == 1
        assert list_params(backend)[-1] == {
            "page": "1",
            "limit": "10",
            "search": "ann",
            "role": "client",
        }

    async def test_single_page_cannot_advance(self, controller, backend):
        """Six users at ten per page leave page 2 unreachable."""
        serve_users(backend, [user_payload(f"u{i}") for i in range(6)])
        await controller.load()

        assert controller.total_pages == 1
        assert controller.next_page() is False
        assert controller.go_to_page(2) is False
        assert controller.query.page == 1
        assert len(backend.calls("GET", USERS_PATH)) == 1

    async def test_page_bounds(self, controller, backend):
        """Paging stays within [1, total]."""
        serve_users(backend, [user_payload("a")], total_pages=3, total_users=25)
        await controller.load()

        assert controller.previous_page() is False
        assert controller.go_to_page(99) is True
        assert controller.query.page == 3
        assert controller.next_page() is False

    async def test_summary(self, controller, backend):
        """Showing range and page window for the last page."""
        serve_users(backend, [user_payload("a")], total_pages=3, total_users=25)
        await controller.load()
        controller.go_to_page(3)

        summary = controller.summary()

        assert (summary.showing_from, summary.showing_to) == (21, 25)
        assert summary.page_window == (1, 2, 3)
        assert summary.has_previous
        assert not summary.has_next

    async def test_empty_result_summary(self, controller, backend):
        """No users means nothing shown."""
        serve_users(backend, [], total_pages=0, total_users=0)
        page = await controller.load()

        summary = controller.summary()

        assert page.is_empty
        assert (summary.showing_from, summary.showing_to) == (0, 0)

    async def test_page_clamped_when_results_shrink(self, controller, backend):
        """A page beyond the new total moves back to the last page."""
        serve_users(backend, [user_payload("a")], total_pages=3, total_users=25)
        await controller.load()
        controller.go_to_page(3)

        serve_users(backend, [user_payload("a")], total_pages=2, total_users=15)
        await controller.load()

        assert controller.query.page == 2
        assert [p["page"] for p in list_params(backend)] == ["1", "3", "2"]

    async def test_load_failure_keeps_previous_page(self, controller, backend):
        """The last good page stays visible when a reload fails."""
        serve_users(backend, [user_payload("a")])
        await controller.load()

        backend.on("GET", USERS_PATH, status=500, message="Database offline")
        page = await controller.load()

        assert [u.id for u in page.users] == ["a"]
        assert controller.load_error == "Database offline"

    async def test_initial_load_failure_fallback(self, controller, backend):
        """Without a backend message the fixed text is used."""
        backend.on("GET", USERS_PATH, status=500)

        assert await controller.load() is None
        assert controller.load_error == "Failed to load users"

    async def test_stale_response_discarded(self, controller, backend):
        """A slow response for an old query is not committed."""
        release = asyncio.Event()

        async def by_search(request: httpx.Request) -> httpx.Response:
            search = request.url.params.get("search")
            if search == "ann":
                await release.wait()
            body = users_page_payload([user_payload(search or "all")])
            return httpx.Response(200, json={"success": True, "data": body})

        backend.on_call("GET", USERS_PATH, by_search)

        controller.set_search("ann")
        slow = asyncio.create_task(controller.load())
        while not backend.calls("GET", USERS_PATH):
            await asyncio.sleep(0)

        controller.set_search("bob")
        await controller.load()
        release.set()
        await slow

        assert [u.id for u in controller.page.users] == ["bob"]
        assert controller.query.search_term == "bob"


class TestPayloads:
    """Tests for create and update bodies."""

    def test_create_forces_admin_role(self):
        """New accounts from this screen are always admins."""
        form = UserForm(name="Ann", email="ann@example.com", password="pw", role=Role.CLIENT)
        assert create_admin_payload(form)["role"] == "admin"

    def test_create_requires_password(self):
        with pytest.raises(FormValidationError) as exc_info:
            create_admin_payload(UserForm(name="Ann", email="ann@example.com"))
        assert set(exc_info.value.field_errors) == {"password"}

    def test_update_strips_empty_password(self):
        """An empty password is not sent, so it is not reset."""
        payload = update_user_payload(UserForm(name="Ann", email="ann@example.com"))
        assert "password" not in payload

    def test_update_keeps_new_password(self):
        payload = update_user_payload(
            UserForm(name="Ann", email="ann@example.com", password="new-secret")
        )
        assert payload["password"] == "new-secret"


class TestMutations:
    """Tests for create, update, delete, toggle and notify."""

    async def test_create_admin(self, controller, backend, notices):
        """Creating closes the modal and refreshes the list."""
        backend.on("POST", "/api/auth/register", data={})
        serve_users(backend, [user_payload("new", role="admin")])
        controller.open_create()

        ok = await controller.create_admin(
            UserForm(name="Ann", email="ann@example.com", password="pw")
        )

        assert ok
        assert controller.modal == Closed()
        assert controller.form == UserForm()
        body = json.loads(backend.calls("POST", "/api/auth/register")[0].content)
        assert body["role"] == "admin"
        assert notices.last.message == "Admin created successfully"
        assert backend.paths[-1] == USERS_PATH

    async def test_invalid_create_makes_no_call(self, controller, backend):
        controller.open_create()

        with pytest.raises(FormValidationError):
            await controller.create_admin(UserForm(name="Ann"))

        assert backend.requests == []

    async def test_create_requires_open_modal(self, controller, backend):
        """Nothing is registered unless the create modal is open."""
        form = UserForm(name="Ann", email="ann@example.com", password="pw")

        assert await controller.create_admin(form) is False
        assert backend.requests == []

    async def test_double_create_sends_once(self, controller, backend):
        """A second submit while the first is pending is ignored."""
        release = asyncio.Event()

        async def slow_register(request: httpx.Request) -> httpx.Response:
            await release.wait()
            return httpx.Response(200, json={"success": True, "data": {}})

        backend.on_call("POST", "/api/auth/register", slow_register)
        serve_users(backend, [])
        form = UserForm(name="Ann", email="ann@example.com", password="pw")
        controller.open_create()

        first = asyncio.create_task(controller.create_admin(form))
        while not controller.is_busy("create"):
            await asyncio.sleep(0)

        assert await controller.create_admin(form) is False

        release.set()
        assert await first
        assert len(backend.calls("POST", "/api/auth/register")) == 1

    async def test_edit_prefills_without_password(self, controller, backend):
        """Edit form comes from the user; the password stays empty."""
        user = record("u1", role="client")
        backend.on("PUT", "/api/users/u1", data={})
        serve_users(backend, [user_payload("u1")])

        controller.start_edit(user)
        assert controller.modal == Editing(user)
        assert controller.form.role == Role.CLIENT
        assert controller.form.password == ""

        assert await controller.update_user()
        body = json.loads(backend.calls("PUT", "/api/users/u1")[0].content)
        assert "password" not in body
        assert body["email"] == "u1@example.com"

    async def test_update_without_edit_is_noop(self, controller, backend):
        assert await controller.update_user(UserForm(name="A", email="a@b.c")) is False
        assert backend.requests == []

    async def test_delete_requires_confirmation(self, controller, backend, notices):
        """Nothing is deleted until the confirmation is open."""
        user = record("u1")
        backend.on("DELETE", "/api/users/u1", data={})
        serve_users(backend, [])

        assert await controller.confirm_delete() is False
        assert backend.calls("DELETE", "/api/users/u1") == []

        controller.request_delete(user)
        assert controller.modal == Deleting(user)
        assert await controller.confirm_delete()

        assert len(backend.calls("DELETE", "/api/users/u1")) == 1
        assert controller.modal == Closed()
        assert notices.last.message == "User deleted successfully"

    async def test_delete_failure_keeps_confirmation(self, controller, backend, notices):
        user = record("u1")
        backend.on("DELETE", "/api/users/u1", status=500)
        controller.request_delete(user)

        assert await controller.confirm_delete() is False

        assert controller.modal == Deleting(user)
        assert notices.last.level == NoticeLevel.ERROR
        assert notices.last.message == "Failed to delete user"
        assert not controller.is_busy("delete")

    async def test_update_validation_failure_message(self, controller, backend, notices):
        """Backend field errors surface the backend message."""
        user = record("u1")
        backend.on(
            "PUT",
            "/api/users/u1",
            status=400,
            message="Email already in use",
            errors=[{"field": "email", "message": "taken"}],
        )
        controller.start_edit(user)

        assert await controller.update_user() is False
        assert notices.last.message == "Email already in use"
        assert isinstance(controller.modal, Editing)

    async def test_toggles_are_per_row(self, controller, backend, notices):
        """A pending toggle only disables its own row."""
        release = asyncio.Event()

        async def slow_toggle(request: httpx.Request) -> httpx.Response:
            await release.wait()
            return httpx.Response(200, json={"success": True, "data": {}})

        backend.on_call("PUT", "/api/users/a/status", slow_toggle)
        backend.on("PUT", "/api/users/b/status", data={})
        serve_users(backend, [user_payload("a"), user_payload("b")])
        user_a, user_b = record("a"), record("b")

        pending = asyncio.create_task(controller.toggle_status(user_a))
        while not controller.is_toggle_disabled("a"):
            await asyncio.sleep(0)

        assert not controller.is_toggle_disabled("b")
        assert await controller.toggle_status(user_b)
        assert await controller.toggle_status(user_a) is False

        release.set()
        assert await pending
        assert not controller.is_toggle_disabled("a")
        assert len(backend.calls("PUT", "/api/users/a/status")) == 1

    async def test_toggle_failure(self, controller, backend, notices):
        backend.on("PUT", "/api/users/a/status", status=500)

        assert await controller.toggle_status(record("a")) is False
        assert notices.last.message == "Failed to update status"
        assert not controller.is_toggle_disabled("a")

    async def test_send_notification(self, controller, backend, notices):
        """Push notifications target the user of the open modal."""
        user = record("u1")
        backend.on("POST", "/api/push/send", data={})
        controller.start_notify(user)
        assert controller.modal == Notifying(user)

        assert await controller.send_notification(" Hello ", "Your invoice is ready")

        body = json.loads(backend.calls("POST", "/api/push/send")[0].content)
        assert body == {
            "userId": "u1",
            "title": "Hello",
            "body": "Your invoice is ready",
            "data": {"url": "/notifications"},
        }
        assert notices.last.message == "Notification sent successfully!"

    async def test_send_notification_requires_text(self, controller, backend):
        controller.start_notify(record("u1"))

        with pytest.raises(FormValidationError):
            await controller.send_notification("", "body")

        assert backend.requests == []
