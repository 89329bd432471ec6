"""Shared FastAPI dependencies.

The auth collaborator (an upstream proxy) identifies the signed-in user
with ``X-User-Id``/``X-User-Role``/``X-User-Email`` headers and forwards
the user's bearer token, which is passed on to the backend.
"""

from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request

from portal.cache.query_cache import QueryCache
from portal.client.remote import RemoteResourceClient
from portal.models import AuthState, Role, Session


def get_auth_state(
    x_user_id: Annotated[str | None, Header()] = None,
    x_user_role: Annotated[str | None, Header()] = None,
    x_user_email: Annotated[str | None, Header()] = None,
) -> AuthState:
    """Auth snapshot from the upstream identity headers."""
    if not x_user_id or not x_user_role:
        return AuthState(user=None)
    try:
        role = Role(x_user_role.lower())
    except ValueError:
        raise HTTPException(status_code=401, detail=f"Unknown role: {x_user_role}")
    return AuthState(
        user=Session(user_id=x_user_id, role=role, email=x_user_email or "")
    )


def require_session(
    auth: Annotated[AuthState, Depends(get_auth_state)],
) -> Session:
    """Signed-in session, 401 otherwise."""
    if auth.user is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return auth.user


def require_admin(session: Annotated[Session, Depends(require_session)]) -> Session:
    """Signed-in admin session, 403 otherwise."""
    if session.role != Role.ADMIN:
        raise HTTPException(status_code=403, detail="Admin access required")
    return session


def require_client(session: Annotated[Session, Depends(require_session)]) -> Session:
    """Signed-in client session, 403 otherwise."""
    if session.role != Role.CLIENT:
        raise HTTPException(status_code=403, detail="Client access required")
    return session


def get_query_cache(request: Request) -> QueryCache:
    """Get QueryCache from app state."""
    if not hasattr(request.app.state, "query_cache"):
        raise HTTPException(status_code=500, detail="QueryCache not initialized")
    return request.app.state.query_cache


def get_remote_client(
    request: Request,
    authorization: Annotated[str | None, Header()] = None,
) -> RemoteResourceClient:
    """Remote client sending the caller's bearer token to the backend."""
    if not hasattr(request.app.state, "remote_client"):
        raise HTTPException(status_code=500, detail="RemoteResourceClient not initialized")
    client: RemoteResourceClient = request.app.state.remote_client
    token = None
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization[7:].strip()
    return client.with_token(token) if token else client
