"""Base model for entities decoded from backend payloads."""

from datetime import UTC, datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def assume_utc(value: datetime) -> datetime:
    """Attach UTC to timestamps the backend sent without an offset."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


# Always timezone-aware, so it can be compared with ``datetime.now(UTC)``.
Timestamp = Annotated[datetime, AfterValidator(assume_utc)]


class WireModel(BaseModel):
    """Base class for backend snapshots.

    Provides:
    - camelCase wire aliases (``createdAt``, ``isActive``)
    - Population by Python field name for tests and internal callers
    - Unknown backend fields ignored
    - Frozen instances, since the core never mutates fetched data
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="ignore",
        frozen=True,
    )
