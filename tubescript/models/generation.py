from enum import Enum
from typing import Optional
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator

TOPIC_MIN_LENGTH = 5
TOPIC_MAX_LENGTH = 500


class ContentType(str, Enum):
    VLOG = "Vlog"
    TUTORIAL = "Tutorial"
    COMMENTARY = "Commentary"
    REVIEW = "Review"


def is_valid_url(value: Optional[str]) -> bool:
    """True for absolute http(s) URLs with a host."""
    if not value or any(ch.isspace() for ch in value):
        return False
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def topic_error(topic: Optional[str]) -> Optional[str]:
    """Return a user-facing message when a topic is out of bounds, else None."""
    text = (topic or "").strip()
    if len(text) < TOPIC_MIN_LENGTH:
        return f"Topic must be at least {TOPIC_MIN_LENGTH} characters."
    if len(text) > TOPIC_MAX_LENGTH:
        return f"Topic must be less than {TOPIC_MAX_LENGTH} characters."
    return None


class GenerationRequest(BaseModel):
    """Input to a single generation attempt. Accepts camelCase form field names."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    topic: str
    content_type: ContentType = Field(alias="contentType")
    reference_url: Optional[str] = Field(default=None, alias="referenceUrl")

    @field_validator("topic")
    @classmethod
    def topic_bounds(cls, value: str) -> str:
        message = topic_error(value)
        if message:
            raise ValueError(message)
        return value.strip()

    @field_validator("reference_url", mode="before")
    @classmethod
    def reference_url_well_formed(cls, value: Optional[str]) -> Optional[str]:
        # The form submits "" when the field is left blank
        if value is None:
            return None
        value = str(value).strip()
        if not value:
            return None
        if not is_valid_url(value):
            raise ValueError("Please enter a valid URL.")
        return value


class GenerationResponse(BaseModel):
    success: bool
    data: Optional[str] = None
    error: Optional[str] = None
