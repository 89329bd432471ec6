"""Error taxonomy for the dashboard core.

Remote failures carry the backend's human-readable message when one was
provided. Callers render them through ``user_message`` so a missing
message always falls back to a fixed string.
"""


class PortalError(Exception):
    """Base class for all dashboard core errors."""

    pass


class RemoteResourceError(PortalError):
    """Network or server failure while talking to the backend."""

    def __init__(
        self,
        message: str | None = None,
        status_code: int | None = None,
        errors: list[dict] | None = None,
    ):
        """Initialize with what the backend reported.

        Args:
            message: Backend-provided message, if any
            status_code: HTTP status code, None for transport failures
            errors: Field-level errors from the response envelope
        """
        super().__init__(message or "Remote request failed")
        self.message = message
        self.status_code = status_code
        self.errors = errors or []

    def user_message(self, fallback: str) -> str:
        """Message to show the user, falling back when the backend sent none."""
        return self.message or fallback


class ValidationFailure(RemoteResourceError):
    """Backend rejected a create/update with field-level errors."""

    pass


class FormValidationError(PortalError):
    """Form input rejected before any network call was made."""

    def __init__(self, field_errors: dict[str, str]):
        self.field_errors = field_errors
        summary = ", ".join(f"{k}: {v}" for k, v in field_errors.items())
        super().__init__(f"Invalid form input ({summary})")


class WorkflowBusyError(PortalError):
    """A submission is already in flight for this workflow."""

    pass
