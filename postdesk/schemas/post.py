"""
PostDesk Backend — Pydantic Request/Response Schemas
====================================================

What:  Pydantic models defining the API contract between the blog UI and the
       backend.
How:   Request models run the field rules (type, trim, length) and report
       failures as ordinary Pydantic errors that PostService turns into a
       400 ValidationError. Response models serialize ORM rows with camelCase
       keys (createdAt, updatedAt).
"""

import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

from postdesk.models.post import DESCRIPTION_MAX_LENGTH, TITLE_MAX_LENGTH


def clean_text(value, label: str, max_length: int) -> str:
    """
    Validate and trim one text field.

    Raises PydanticCustomError so the message reaches the client verbatim
    (no "Value error, " prefix).
    """
    if not isinstance(value, str) or not value.strip():
        raise PydanticCustomError(
            "blank_text",
            "{label} must be a non-empty string",
            {"label": label},
        )
    value = value.strip()
    if len(value) > max_length:
        raise PydanticCustomError(
            "text_too_long",
            "{label} must not exceed {max_length} characters",
            {"label": label, "max_length": max_length},
        )
    return value


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class PostCreate(BaseModel):
    """Body of POST /posts. Both fields required; unknown keys ignored."""

    title: str
    description: str

    @field_validator("title", mode="before")
    @classmethod
    def validate_title(cls, v):
        return clean_text(v, "Title", TITLE_MAX_LENGTH)

    @field_validator("description", mode="before")
    @classmethod
    def validate_description(cls, v):
        return clean_text(v, "Description", DESCRIPTION_MAX_LENGTH)


class PostUpdate(BaseModel):
    """
    Body of PUT /posts/{id}.

    Only keys present in the body are validated and applied. An explicit
    null counts as present and fails validation; use `changes()` to get
    the fields to write.
    """

    title: Optional[str] = None
    description: Optional[str] = None

    @field_validator("title", mode="before")
    @classmethod
    def validate_title(cls, v):
        return clean_text(v, "Title", TITLE_MAX_LENGTH)

    @field_validator("description", mode="before")
    @classmethod
    def validate_description(cls, v):
        return clean_text(v, "Description", DESCRIPTION_MAX_LENGTH)

    def changes(self) -> Dict[str, str]:
        return {name: getattr(self, name) for name in self.model_fields_set}


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class PostResponse(BaseModel):
    """Full representation of a post."""

    id: uuid.UUID = Field(description="Unique post identifier (UUID)")
    title: str = Field(description="Post title (1-200 characters)")
    description: str = Field(description="Post body (1-400 characters)")
    created_at: datetime = Field(description="When the post was created (UTC ISO 8601)")
    updated_at: datetime = Field(description="When the post was last modified (UTC ISO 8601)")

    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    @field_validator("created_at", "updated_at")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        # SQLite hands back naive values; stored values are always UTC
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)


class PostListResponse(BaseModel):
    """GET /posts."""
    posts: List[PostResponse]


class PostDetailResponse(BaseModel):
    """GET /posts/{id}."""
    post: PostResponse


class PostMutationResponse(BaseModel):
    """POST /posts, PUT and DELETE /posts/{id}."""
    message: str = Field(description="Human-readable success message")
    post: PostResponse


# ══════════════════════════════════════════════════════════════════════════
# Error / Health Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    Error body shared by every endpoint.

    Only `message` is always present; the detail key depends on the error:
    `errors` (validation), `field` (conflict), `error` (internal).
    """
    message: str = Field(description="Human-readable error description")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")
    errors: Optional[Dict[str, str]] = Field(default=None, description="Per-field messages")
    field: Optional[str] = Field(default=None, description="Field that violated uniqueness")
    error: Optional[str] = Field(default=None, description="Raw internal error message")


class HealthResponse(BaseModel):
    """GET /health."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
