"""Query, form and modal state of the admin user list."""

from dataclasses import dataclass, replace

from pydantic import BaseModel, ConfigDict

from portal.models import Role, UserRecord


@dataclass(frozen=True)
class PaginationState:
    """Server query of the user list.

    Changing the search term or role filter always resets ``page`` to 1.
    """

    page: int = 1
    limit: int = 10
    search_term: str = ""
    role_filter: Role | None = None

    def with_search(self, term: str) -> "PaginationState":
        """New state with another search term, back on page 1."""
        return replace(self, search_term=term.strip(), page=1)

    def with_role_filter(self, role: Role | None) -> "PaginationState":
        """New state with another role filter, back on page 1."""
        return replace(self, role_filter=role, page=1)

    def with_page(self, page: int) -> "PaginationState":
        """New state on another page."""
        return replace(self, page=max(1, page))

    def cleared(self) -> "PaginationState":
        """New state without search or filter, back on page 1."""
        return replace(self, search_term="", role_filter=None, page=1)

    def query_params(self) -> dict:
        """Params of the list-users call; unset filters are omitted."""
        params: dict = {"page": self.page, "limit": self.limit}
        if self.search_term:
            params["search"] = self.search_term
        if self.role_filter is not None:
            params["role"] = self.role_filter.value
        return params


@dataclass(frozen=True)
class PaginationSummary:
    """Numbers shown under the user table."""

    current_page: int
    total_pages: int
    total_users: int
    showing_from: int
    showing_to: int
    page_window: tuple[int, ...]

    @property
    def has_previous(self) -> bool:
        return self.current_page > 1

    @property
    def has_next(self) -> bool:
        return self.current_page < self.total_pages


class UserForm(BaseModel):
    """Create/edit form of the user modal. Defaults to a new admin."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = ""
    email: str = ""
    role: Role = Role.ADMIN
    company: str = ""
    phone: str = ""
    password: str = ""

    @classmethod
    def from_user(cls, user: UserRecord) -> "UserForm":
        """Form pre-filled for editing; the password is never populated."""
        return cls(
            name=user.name,
            email=user.email,
            role=user.role,
            company=user.company or "",
            phone=user.phone or "",
        )


# Modal state: exactly one of these is active at a time.


@dataclass(frozen=True)
class Closed:
    """No modal open."""


@dataclass(frozen=True)
class Creating:
    """Create-admin modal open."""


@dataclass(frozen=True)
class Editing:
    """Edit modal open for a user."""

    user: UserRecord


@dataclass(frozen=True)
class Deleting:
    """Delete confirmation open for a user."""

    user: UserRecord


@dataclass(frozen=True)
class Notifying:
    """Push-notification modal open for a user."""

    user: UserRecord


ModalState = Closed | Creating | Editing | Deleting | Notifying
