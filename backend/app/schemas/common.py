"""
Shared schema helpers.
"""

from datetime import datetime, timezone
from typing import Annotated, Optional
from pydantic import AfterValidator, BaseModel


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Timestamps are stored as naive UTC; convert aware inputs."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


# Accepts naive or aware ISO 8601 input, always yields naive UTC
UtcDateTime = Annotated[datetime, AfterValidator(to_naive_utc)]


class MessageResponse(BaseModel):
    """Plain acknowledgement, e.g. after a delete."""
    message: str
