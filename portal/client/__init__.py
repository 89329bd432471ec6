"""Remote resource client for the portal backend REST API."""

from portal.client.remote import ApiResponse, RemoteResourceClient

__all__ = [
    "ApiResponse",
    "RemoteResourceClient",
]
