"""
PostDesk Backend — Post SQLAlchemy Model
========================================

What:  ORM model representing the `posts` table.
How:   Inherits from the shared DeclarativeBase; the connector creates the
       table through Base.metadata on first connect.
Who:   Used by PostService for CRUD operations.

Schema-level validation:
    The model enforces the same field rules as the API layer through
    SQLAlchemy's @validates hook, so a Post can never be built or mutated
    into an invalid state even when the service checks are bypassed.
    Rejections raise PostSchemaError carrying a per-field message map;
    PostService re-maps it to the API's ValidationError.
"""

import uuid
from datetime import datetime, timezone
from typing import Dict

from sqlalchemy import DateTime, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, validates

from postdesk.database import Base

TITLE_MAX_LENGTH = 200
DESCRIPTION_MAX_LENGTH = 400


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PostSchemaError(Exception):
    """Schema-level rejection of a Post field value."""

    def __init__(self, errors: Dict[str, str]):
        self.errors = errors
        super().__init__("; ".join(f"{k}: {v}" for k, v in errors.items()))


# field → (required message, max length, too-long message)
_FIELD_RULES = {
    "title": (
        "Please add a title",
        TITLE_MAX_LENGTH,
        f"Title cannot be more than {TITLE_MAX_LENGTH} characters",
    ),
    "description": (
        "Please add a description",
        DESCRIPTION_MAX_LENGTH,
        f"Description cannot be more than {DESCRIPTION_MAX_LENGTH} characters",
    ),
}


class Post(Base):
    """
    A single blog entry.

    Lifecycle:
        1. Created by PostService.create_post (id and timestamps assigned here)
        2. Updated field-by-field by PostService.update_post
        3. Hard-deleted by PostService.delete_post
    """

    __tablename__ = "posts"

    # Generated on the Python side so the id is known right after flush
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    title: Mapped[str] = mapped_column(
        String(TITLE_MAX_LENGTH),
        nullable=False,
    )

    description: Mapped[str] = mapped_column(
        String(DESCRIPTION_MAX_LENGTH),
        nullable=False,
    )

    # All storage in UTC
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    @validates("title", "description")
    def _validate_text_field(self, key: str, value):
        required_msg, max_length, too_long_msg = _FIELD_RULES[key]
        if not isinstance(value, str) or not value.strip():
            raise PostSchemaError({key: required_msg})
        value = value.strip()
        if len(value) > max_length:
            raise PostSchemaError({key: too_long_msg})
        return value

    def __repr__(self) -> str:
        return f"<Post(id={self.id}, title={self.title!r})>"
