"""Admin user list endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from portal.api.deps import get_query_cache, get_remote_client, require_admin
from portal.cache.query_cache import QueryCache
from portal.client.remote import RemoteResourceClient
from portal.models import Role, Session, UserRecord
from portal.users.controller import USERS_RESOURCE, UserManagementController
from portal.users.display import initials, joined_label, role_badge, status_badge
from portal.users.schemas import PaginationState

router = APIRouter(prefix="/users", tags=["users"])


class UserRow(BaseModel):
    """User with its derived display values."""

    id: str
    name: str
    email: str
    role: str
    company: str | None = None
    phone: str | None = None
    is_active: bool
    initials: str
    role_badge: dict[str, str]
    status_badge: dict[str, str]
    joined: str


class PaginationResponse(BaseModel):
    """Pagination numbers under the table."""

    current_page: int
    total_pages: int
    total_users: int
    showing_from: int
    showing_to: int
    page_window: list[int]


class UserListResponse(BaseModel):
    """One page of the admin user list."""

    users: list[UserRow] = Field(default_factory=list)
    pagination: PaginationResponse
    is_empty: bool


def _row(user: UserRecord) -> UserRow:
    role = role_badge(user)
    status = status_badge(user)
    return UserRow(
        id=user.id,
        name=user.name,
        email=user.email,
        role=user.role.value,
        company=user.company,
        phone=user.phone,
        is_active=user.is_active,
        initials=initials(user),
        role_badge={"label": role.label, "tone": role.tone},
        status_badge={"label": status.label, "tone": status.tone},
        joined=joined_label(user),
    )


@router.get("", response_model=UserListResponse)
async def list_users(
    session: Annotated[Session, Depends(require_admin)],
    client: Annotated[RemoteResourceClient, Depends(get_remote_client)],
    cache: Annotated[QueryCache, Depends(get_query_cache)],
    page: int = Query(default=1, ge=1, description="Page number"),
    search: str = Query(default="", description="Name, email or company"),
    role: Role | None = Query(default=None, description="Role filter"),
) -> UserListResponse:
    """List users, filtered by search term and role.

    Pages past the end are bounded to the last page.
    """
    controller = UserManagementController(client, cache)
    controller.query = PaginationState(
        page=page,
        limit=controller.query.limit,
        search_term=search.strip(),
        role_filter=role,
    )
    result = await controller.load()
    if result is None:
        raise HTTPException(status_code=502, detail=controller.load_error)

    summary = controller.summary()
    return UserListResponse(
        users=[_row(u) for u in result.users],
        pagination=PaginationResponse(
            current_page=summary.current_page,
            total_pages=summary.total_pages,
            total_users=summary.total_users,
            showing_from=summary.showing_from,
            showing_to=summary.showing_to,
            page_window=list(summary.page_window),
        ),
        is_empty=result.is_empty,
    )


@router.put("/{user_id}/status", status_code=204)
async def toggle_user_status(
    user_id: str,
    session: Annotated[Session, Depends(require_admin)],
    client: Annotated[RemoteResourceClient, Depends(get_remote_client)],
    cache: Annotated[QueryCache, Depends(get_query_cache)],
) -> None:
    """Flip a user's active flag and drop cached user pages."""
    await client.toggle_user_status(user_id)
    cache.invalidate(USERS_RESOURCE)
