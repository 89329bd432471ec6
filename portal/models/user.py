"""User records managed from the admin user list."""

from pydantic import AliasChoices, Field

from portal.models.base import Timestamp, WireModel
from portal.models.session import Role


class UserRecord(WireModel):
    """A portal user account."""

    id: str = Field(validation_alias=AliasChoices("_id", "id"))
    name: str
    email: str
    role: Role = Role.CLIENT
    company: str | None = None
    phone: str | None = None
    is_active: bool = True
    created_at: Timestamp | None = None


class PageInfo(WireModel):
    """Pagination block of the list-users response.

    ``total`` is the number of pages, ``total_users`` the number of
    matching users.
    """

    current: int = 1
    total: int = 1
    total_users: int = 0


class UserPage(WireModel):
    """One page of users plus its pagination block."""

    users: tuple[UserRecord, ...] = ()
    pagination: PageInfo = Field(default_factory=PageInfo)

    @property
    def is_empty(self) -> bool:
        """No users matched the current query."""
        return not self.users
