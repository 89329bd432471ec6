"""Display values derived from user records.

Pure functions of UserRecord; they hold no state.
"""

from dataclasses import dataclass

from portal.models import Role, UserRecord


@dataclass(frozen=True)
class Badge:
    """Label and color tone of a badge."""

    label: str
    tone: str


ROLE_TONES = {
    Role.ADMIN: "orange",
    Role.CLIENT: "amber",
}


def role_label(user: UserRecord) -> str:
    """Capitalized role name, e.g. "Admin"."""
    return user.role.value.capitalize()


def role_badge(user: UserRecord) -> Badge:
    """Badge for the user's role."""
    return Badge(label=role_label(user), tone=ROLE_TONES[user.role])


def status_badge(user: UserRecord) -> Badge:
    """Badge for the user's active flag."""
    if user.is_active:
        return Badge(label="Active", tone="green")
    return Badge(label="Inactive", tone="red")


def initials(user: UserRecord) -> str:
    """Avatar letter: first character of the name, uppercased."""
    name = user.name.strip()
    return name[0].upper() if name else "?"


def joined_label(user: UserRecord) -> str:
    """Account creation date as YYYY-MM-DD, empty when unknown."""
    if user.created_at is None:
        return ""
    return user.created_at.date().isoformat()
