"""Role and session models consumed from the auth collaborator."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Role(str, Enum):
    """Session role selecting the dashboard variant."""

    CLIENT = "client"
    ADMIN = "admin"


class Session(BaseModel):
    """Signed-in user as reported by the auth collaborator."""

    model_config = ConfigDict(frozen=True)

    user_id: str = Field(description="Backend user identifier")
    role: Role = Field(description="Role of the signed-in user")
    email: str = Field(default="", description="Email used for confirmations")


class AuthState(BaseModel):
    """Auth capability snapshot: ``{user, role, loading}``."""

    model_config = ConfigDict(frozen=True)

    user: Session | None = None
    loading: bool = False

    @property
    def role(self) -> Role | None:
        """Role of the current user, None when signed out."""
        return self.user.role if self.user else None
