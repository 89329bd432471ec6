"""Typed wrapper around the portal backend REST API.

Every backend response is an envelope ``{success, data?, message?, errors?}``.
The client unwraps ``data`` on success and raises RemoteResourceError (or
ValidationFailure when field errors are present) otherwise.
"""

from typing import Any

import httpx
import structlog
from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from portal.config import settings
from portal.errors import RemoteResourceError, ValidationFailure

logger = structlog.get_logger()

NETWORK_ERROR_MESSAGE = "Network error"


class ApiResponse:
    """Unwrapped success envelope."""

    __slots__ = ("data", "message")

    def __init__(self, data: Any, message: str | None = None):
        self.data = data
        self.message = message


def _clean_params(params: dict | None) -> dict | None:
    """Drop unset query params instead of sending empty strings."""
    if params is None:
        return None
    return {k: v for k, v in params.items() if v is not None and v != ""}


class RemoteResourceClient:
    """Async client for the portal backend.

    Uses one shared httpx.AsyncClient. GET requests are retried with
    exponential backoff on transport failures; mutations are sent once.
    """

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        http_client: httpx.AsyncClient | None = None,
        retry_attempts: int | None = None,
        retry_wait_max_s: float = 4.0,
    ):
        """Initialize client.

        Args:
            base_url: Backend base URL. Defaults to settings.
            token: Bearer token forwarded to the backend. Defaults to settings.
            http_client: Optional pre-built client for dependency injection
            retry_attempts: GET attempts on transport errors. Defaults to settings.
            retry_wait_max_s: Upper bound of the backoff between attempts
        """
        self._client = http_client or httpx.AsyncClient(
            base_url=base_url or settings.api_base_url,
            timeout=settings.request_timeout_s,
        )
        self._headers: dict[str, str] = {}
        token = token or settings.api_token
        if token:
            self._headers["Authorization"] = f"Bearer {token}"
        self._retry_attempts = retry_attempts or settings.fetch_retry_attempts
        self._retry_wait_max_s = retry_wait_max_s

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    def with_token(self, token: str | None) -> "RemoteResourceClient":
        """Client sharing this connection pool but sending another bearer token.

        Used to forward the signed-in user's credentials per request.
        """
        clone = RemoteResourceClient(
            http_client=self._client,
            retry_attempts=self._retry_attempts,
            retry_wait_max_s=self._retry_wait_max_s,
        )
        clone._headers = {"Authorization": f"Bearer {token}"} if token else {}
        return clone

    # Generic verbs

    async def get(self, path: str, params: dict | None = None) -> ApiResponse:
        """Issue a GET, retrying transport failures."""
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self._retry_attempts),
                wait=wait_exponential(multiplier=0.5, max=self._retry_wait_max_s),
                retry=retry_if_exception_type(httpx.TransportError),
                reraise=False,
            ):
                with attempt:
                    return await self._send("GET", path, params=params)
        except RetryError as e:
            last_err = e.last_attempt.exception() if e.last_attempt else None
            logger.error(
                "retry exhausted",
                path=path,
                attempts=self._retry_attempts,
                last_error=str(last_err) if last_err else None,
            )
            raise RemoteResourceError(NETWORK_ERROR_MESSAGE) from last_err
        raise RemoteResourceError(NETWORK_ERROR_MESSAGE)  # pragma: no cover

    async def post(self, path: str, json: dict | None = None) -> ApiResponse:
        """Issue a POST."""
        return await self._send_once("POST", path, json=json)

    async def put(self, path: str, json: dict | None = None) -> ApiResponse:
        """Issue a PUT."""
        return await self._send_once("PUT", path, json=json)

    async def delete(self, path: str) -> ApiResponse:
        """Issue a DELETE."""
        return await self._send_once("DELETE", path)

    # Named endpoints

    async def list_users(
        self,
        page: int,
        limit: int,
        search: str | None = None,
        role: str | None = None,
    ) -> dict:
        """List users, paginated and filterable by search term and role."""
        response = await self.get(
            "/api/users",
            params={"page": page, "limit": limit, "search": search, "role": role},
        )
        return response.data or {}

    async def create_user(self, payload: dict) -> ApiResponse:
        """Register a new user account."""
        return await self.post("/api/auth/register", json=payload)

    async def update_user(self, user_id: str, payload: dict) -> ApiResponse:
        """Update a user by id."""
        return await self.put(f"/api/users/{user_id}", json=payload)

    async def delete_user(self, user_id: str) -> ApiResponse:
        """Delete a user by id."""
        return await self.delete(f"/api/users/{user_id}")

    async def toggle_user_status(self, user_id: str) -> ApiResponse:
        """Flip a user's active flag."""
        return await self.put(f"/api/users/{user_id}/status")

    async def list_projects(self, limit: int) -> list[dict]:
        """List the signed-in client's most recent projects."""
        response = await self.get("/api/projects", params={"limit": limit})
        return (response.data or {}).get("projects", [])

    async def project_dashboard_stats(self) -> dict:
        """Project statistics for the client dashboard."""
        response = await self.get("/api/projects/stats/dashboard")
        return response.data or {}

    async def admin_stats(self) -> dict:
        """System-wide statistics for the admin dashboard."""
        response = await self.get("/api/admin/stats")
        return response.data or {}

    async def list_notifications(self, limit: int) -> list[dict]:
        """List the signed-in client's most recent notifications."""
        response = await self.get("/api/notifications", params={"limit": limit})
        return (response.data or {}).get("notifications", [])

    async def create_request(self, payload: dict) -> ApiResponse:
        """Create a "request" notification addressed to the admins."""
        return await self.post("/api/notifications/request", json=payload)

    async def send_push(
        self,
        user_id: str,
        title: str,
        body: str,
        data: dict | None = None,
    ) -> ApiResponse:
        """Send a push notification to every device of a user."""
        return await self.post(
            "/api/push/send",
            json={"userId": user_id, "title": title, "body": body, "data": data or {}},
        )

    # Internals

    async def _send_once(self, method: str, path: str, **kwargs) -> ApiResponse:
        try:
            return await self._send(method, path, **kwargs)
        except httpx.TransportError as e:
            logger.warning("request failed", method=method, path=path, error=str(e))
            raise RemoteResourceError(NETWORK_ERROR_MESSAGE) from e

    async def _send(
        self,
        method: str,
        path: str,
        params: dict | None = None,
        json: dict | None = None,
    ) -> ApiResponse:
        response = await self._client.request(
            method,
            path,
            params=_clean_params(params),
            json=json,
            headers=self._headers,
        )
        body = self._decode(response)

        if response.is_success and body.get("success", True):
            return ApiResponse(data=body.get("data"), message=body.get("message"))

        message = body.get("message")
        errors = body.get("errors") or []
        logger.warning(
            "backend request rejected",
            method=method,
            path=path,
            status_code=response.status_code,
            message=message,
        )
        if errors:
            raise ValidationFailure(message, response.status_code, errors)
        raise RemoteResourceError(message, response.status_code)

    @staticmethod
    def _decode(response: httpx.Response) -> dict:
        try:
            body = response.json()
        except ValueError:
            return {}
        return body if isinstance(body, dict) else {}
