"""Admin user management controller.

Owns the list query (page, search term, role filter), the modal state and
the CRUD mutations of the admin user list.

Rapid filter changes can leave several list fetches in flight. A response
is only committed if the query that issued it is still the current one.
"""

import structlog

from portal.cache.query_cache import QueryCache, QueryKey, QueryOptions, QueryStatus
from portal.client.remote import RemoteResourceClient
from portal.config import settings
from portal.errors import FormValidationError, RemoteResourceError, ValidationFailure
from portal.models import Role, UserPage, UserRecord
from portal.notices import NoticeBoard, NoticeSink
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

logger = structlog.get_logger()

USERS_RESOURCE = "admin-users"
PAGE_WINDOW_SIZE = 5
PUSH_TARGET_URL = "/notifications"


def create_admin_payload(form: UserForm) -> dict:
    """Registration body for a new admin; ``role`` is always "admin".

    Raises:
        FormValidationError: If name, email or password is empty
    """
    _require(form, "name", "email", "password")
    payload = form.model_dump(mode="json")
    payload["role"] = Role.ADMIN.value
    return payload


def update_user_payload(form: UserForm) -> dict:
    """Update body; an empty password is left out so it is not reset.

    Raises:
        FormValidationError: If name or email is empty
    """
    _require(form, "name", "email")
    payload = form.model_dump(mode="json")
    if not payload.get("password"):
        payload.pop("password", None)
    return payload


def page_window(current: int, total: int, size: int = PAGE_WINDOW_SIZE) -> tuple[int, ...]:
    """Up to ``size`` consecutive page numbers around the current page."""
    if total < 1:
        return ()
    start = max(1, min(current - size // 2, total - size + 1))
    end = min(total, start + size - 1)
    return tuple(range(start, end + 1))


def _require(form: UserForm, *fields: str) -> None:
    missing = {f: "Field required" for f in fields if not getattr(form, f)}
    if missing:
        raise FormValidationError(missing)


class UserManagementController:
    """Search/filter/paginate list plus create, edit, delete and toggle.

    Per-row toggle state is tracked by user id, so a pending toggle on
    one row never disables the toggle of another.
    """

    def __init__(
        self,
        client: RemoteResourceClient,
        cache: QueryCache,
        notices: NoticeSink | None = None,
        page_size: int | None = None,
    ):
        """Initialize controller.

        Args:
            client: Remote resource client for list and mutation calls
            cache: Shared query cache holding user pages
            notices: Where success/failure notices go
            page_size: Users per page. Defaults to settings.
        """
        self._client = client
        self._cache = cache
        self._notices = notices or NoticeBoard()

        self.query = PaginationState(limit=page_size or settings.users_page_size)
        self.page: UserPage | None = None
        self.load_error: str | None = None
        self.modal: ModalState = Closed()
        self.form = UserForm()

        self._toggling: set[str] = set()
        self._pending: set[str] = set()

    # Query state

    def set_search(self, term: str) -> None:
        """Change the search term; returns to page 1."""
        self.query = self.query.with_search(term)

    def set_role_filter(self, role: Role | None) -> None:
        """Change the role filter; returns to page 1."""
        self.query = self.query.with_role_filter(role)

    def clear_filters(self) -> None:
        """Drop search term and role filter; returns to page 1."""
        self.query = self.query.cleared()

    @property
    def total_pages(self) -> int:
        """Page count of the last committed result (at least 1)."""
        if self.page is None:
            return 1
        return max(1, self.page.pagination.total)

    def go_to_page(self, page: int) -> bool:
        """Move to a page, bounded to ``[1, total_pages]``.

        Returns:
            True if the page changed, False for a no-op
        """
        target = min(max(1, page), self.total_pages)
        if target == self.query.page:
            return False
        self.query = self.query.with_page(target)
        return True

    def next_page(self) -> bool:
        """Move one page forward if possible."""
        return self.go_to_page(self.query.page + 1)

    def previous_page(self) -> bool:
        """Move one page back if possible."""
        return self.go_to_page(self.query.page - 1)

    def key_for(self, query: PaginationState) -> QueryKey:
        """Cache key of one list query."""
        return QueryKey.build(
            USERS_RESOURCE,
            role=Role.ADMIN,
            page=query.page,
            limit=query.limit,
            search=query.search_term or None,
            role_filter=query.role_filter.value if query.role_filter else None,
        )

    async def load(self) -> UserPage | None:
        """Fetch the current query and commit it if still current.

        On failure the previous page stays visible and ``load_error`` is set.

        Returns:
            The committed page (possibly the previous one)
        """
        query = self.query
        result = await self._cache.get(
            self.key_for(query),
            lambda: self._fetch(query),
            QueryOptions(stale_ms=0, cache_ms=settings.default_cache_ms),
        )

        if query != self.query:
            logger.debug(
                "discarding stale user page",
                requested_page=query.page,
                current_page=self.query.page,
            )
            return self.page

        if result.status == QueryStatus.ERROR:
            self.load_error = self._message(result.error, "Failed to load users")
            return self.page

        self.load_error = None
        self.page = result.data

        # A deletion can shrink the result below the current page.
        if self.page is not None and query.page > self.total_pages:
            self.query = query.with_page(self.total_pages)
            return await self.load()

        return self.page

    def summary(self) -> PaginationSummary:
        """Pagination numbers for the committed page."""
        total_users = self.page.pagination.total_users if self.page else 0
        current = self.query.page
        showing_from = (current - 1) * self.query.limit + 1 if total_users else 0
        return PaginationSummary(
            current_page=current,
            total_pages=self.total_pages,
            total_users=total_users,
            showing_from=showing_from,
            showing_to=min(current * self.query.limit, total_users),
            page_window=page_window(current, self.total_pages),
        )

    # Modals

    def open_create(self) -> None:
        """Open the create-admin modal with a fresh form."""
        self.form = UserForm()
        self.modal = Creating()

    def start_edit(self, user: UserRecord) -> None:
        """Open the edit modal pre-filled from a user."""
        self.form = UserForm.from_user(user)
        self.modal = Editing(user)

    def request_delete(self, user: UserRecord) -> None:
        """Ask for confirmation before deleting a user."""
        self.modal = Deleting(user)

    def start_notify(self, user: UserRecord) -> None:
        """Open the push-notification modal for a user."""
        self.modal = Notifying(user)

    def close_modal(self) -> None:
        """Close whatever modal is open."""
        self.modal = Closed()

    def is_busy(self, action: str) -> bool:
        """Check if a create/update/delete/notify mutation is in flight."""
        return action in self._pending

    def is_toggle_disabled(self, user_id: str) -> bool:
        """Check if this row's status toggle is in flight."""
        return user_id in self._toggling

    # Mutations

    async def create_admin(self, form: UserForm | None = None) -> bool:
        """Create an admin account from the form.

        Returns:
            True on success, False on failure, when the create modal is not
            open, or while a create is already in flight
        """
        if not isinstance(self.modal, Creating):
            logger.warning("create without an open form", modal=type(self.modal).__name__)
            return False
        if self.is_busy("create"):
            return False
        form = form or self.form
        self.form = form
        payload = create_admin_payload(form)
        ok = await self._mutate(
            "create",
            self._client.create_user(payload),
            success="Admin created successfully",
            fallback="Failed to create admin",
        )
        if ok:
            self.modal = Closed()
            self.form = UserForm()
            await self._refresh()
        return ok

    async def update_user(self, form: UserForm | None = None) -> bool:
        """Save the edit form for the user being edited.

        Returns:
            True on success, False on failure or when no edit is open
        """
        if not isinstance(self.modal, Editing):
            logger.warning("update without an open edit", modal=type(self.modal).__name__)
            return False
        user = self.modal.user
        form = form or self.form
        self.form = form
        payload = update_user_payload(form)
        ok = await self._mutate(
            "update",
            self._client.update_user(user.id, payload),
            success="User updated successfully",
            fallback="Failed to update user",
        )
        if ok:
            self.modal = Closed()
            self.form = UserForm()
            await self._refresh()
        return ok

    async def confirm_delete(self) -> bool:
        """Delete the user awaiting confirmation.

        Returns:
            True on success, False on failure or without a pending confirmation
        """
        if not isinstance(self.modal, Deleting):
            logger.warning("delete without confirmation", modal=type(self.modal).__name__)
            return False
        user = self.modal.user
        ok = await self._mutate(
            "delete",
            self._client.delete_user(user.id),
            success="User deleted successfully",
            fallback="Failed to delete user",
        )
        if ok:
            self.modal = Closed()
            await self._refresh()
        return ok

    async def toggle_status(self, user: UserRecord) -> bool:
        """Flip a user's active flag.

        Returns:
            True on success, False on failure or while this row is pending
        """
        if user.id in self._toggling:
            return False
        self._toggling.add(user.id)
        try:
            ok = await self._mutate(
                None,
                self._client.toggle_user_status(user.id),
                success="User status updated",
                fallback="Failed to update status",
            )
        finally:
            self._toggling.discard(user.id)
        if ok:
            await self._refresh()
        return ok

    async def send_notification(self, title: str, body: str) -> bool:
        """Send a push notification to the user of the open notify modal.

        Raises:
            FormValidationError: If title or body is empty

        Returns:
            True on success, False on failure or when no notify modal is open
        """
        if not isinstance(self.modal, Notifying):
            return False
        missing = {
            name: "Field required"
            for name, value in (("title", title), ("body", body))
            if not value.strip()
        }
        if missing:
            raise FormValidationError(missing)
        return await self._mutate(
            "notify",
            self._client.send_push(
                self.modal.user.id,
                title.strip(),
                body.strip(),
                data={"url": PUSH_TARGET_URL},
            ),
            success="Notification sent successfully!",
            fallback="Failed to send notification",
        )

    # Internals

    async def _fetch(self, query: PaginationState) -> UserPage:
        params = query.query_params()
        data = await self._client.list_users(
            page=params["page"],
            limit=params["limit"],
            search=params.get("search"),
            role=params.get("role"),
        )
        return UserPage.model_validate(data)

    async def _mutate(self, action: str | None, call, success: str, fallback: str) -> bool:
        if action:
            self._pending.add(action)
        try:
            await call
        except RemoteResourceError as e:
            if isinstance(e, ValidationFailure):
                logger.warning("user mutation validation errors", errors=e.errors)
            message = e.user_message(fallback)
            logger.warning("user mutation failed", action=action or "toggle", error=message)
            self._notices.error(message)
            return False
        finally:
            if action:
                self._pending.discard(action)
        logger.info("user mutation succeeded", action=action or "toggle")
        self._notices.success(success)
        return True

    async def _refresh(self) -> None:
        self._cache.invalidate(USERS_RESOURCE)
        await self.load()

    @staticmethod
    def _message(error: Exception | None, fallback: str) -> str:
        if isinstance(error, RemoteResourceError):
            return error.user_message(fallback)
        return fallback
