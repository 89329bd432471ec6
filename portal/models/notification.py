"""Notification snapshots shown in the activity feed."""

from pydantic import AliasChoices, Field

from portal.models.base import Timestamp, WireModel


class Notification(WireModel):
    """A notification addressed to the signed-in client."""

    id: str = Field(validation_alias=AliasChoices("_id", "id"))
    title: str = ""
    message: str = ""
    created_at: Timestamp
