"""
PostDesk Backend — Post Service (Business Logic)
================================================

What:  The five post operations (list, create, get, update, delete) with
       input validation and storage error translation.
How:   Validates IDs and bodies locally before touching storage, performs a
       single ORM operation, then flushes and commits so constraint, schema
       and commit failures surface here before a response is built.
Who:   Called by the /posts route handlers.

Error Translation:
    bad ID / body / no fields        → ValidationError   (400)
    PostSchemaError from the model   → ValidationError   (400, per-field errors)
    no matching row                  → NotFoundError     (404)
    IntegrityError (unique violation)→ ConflictError     (409, offending field)
    anything else                    → InternalError     (500, raw message)

PostService is stateless: the session is passed to every call.
"""

import logging
import re
import uuid
from typing import Any, Dict, Optional, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from postdesk.exceptions import (
    ConflictError,
    InternalError,
    NotFoundError,
    PostDeskError,
    ValidationError,
)
from postdesk.models.post import Post, PostSchemaError, utcnow
from postdesk.schemas.post import (
    PostCreate,
    PostDetailResponse,
    PostListResponse,
    PostMutationResponse,
    PostResponse,
    PostUpdate,
)

logger = logging.getLogger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)

# Unique-violation messages as reported by the supported drivers
_UNIQUE_FIELD_PATTERNS = (
    re.compile(r"Key \((?P<field>[^)]+)\)=\(.*\) already exists"),  # PostgreSQL
    re.compile(r"UNIQUE constraint failed: \w+\.(?P<field>\w+)"),  # SQLite
)
_UNIQUE_VIOLATION_MARKERS = ("duplicate key value", "UNIQUE constraint failed")


def validation_error_from(exc: PydanticValidationError) -> ValidationError:
    """Convert a Pydantic validation failure into the API's ValidationError."""
    errors: Dict[str, str] = {}
    missing = False
    for err in exc.errors():
        field = str(err["loc"][0]) if err["loc"] else "body"
        if err["type"] == "missing":
            missing = True
            errors.setdefault(field, f"{field.capitalize()} is required")
        else:
            errors.setdefault(field, err["msg"])

    if missing:
        message = "Title and description are required"
    else:
        message = next(iter(errors.values()), "Validation error")
    return ValidationError(message=message, errors=errors)


def conflicting_field(exc: IntegrityError) -> Optional[str]:
    """
    Name of the column behind a unique violation, or None when the
    integrity error is not a uniqueness problem.
    """
    raw = str(exc.orig) if exc.orig is not None else str(exc)
    if not any(marker in raw for marker in _UNIQUE_VIOLATION_MARKERS):
        return None
    for pattern in _UNIQUE_FIELD_PATTERNS:
        match = pattern.search(raw)
        if match:
            return match.group("field")
    return "unknown"


class PostService:
    """
    Business logic layer for post operations.

    Responsibilities:
        - list_posts():   every post, oldest first
        - create_post():  validate, trim, insert
        - get_post():     single post by ID
        - update_post():  partial update of supplied fields
        - delete_post():  remove and return the deleted snapshot
    """

    # ── Validation Helpers ────────────────────────────────────────────────

    @staticmethod
    def validate_post_id(post_id: Optional[str]) -> uuid.UUID:
        """
        Check the ID before any storage round-trip.

        Raises:
            ValidationError: ID missing/blank or not a UUID.
        """
        if post_id is None or not str(post_id).strip():
            raise ValidationError(message="Post ID is required")
        try:
            return uuid.UUID(str(post_id).strip())
        except ValueError:
            raise ValidationError(
                message="Invalid post ID format",
                context={"post_id": str(post_id)},
            ) from None

    @staticmethod
    def parse_body(schema: Type[SchemaT], payload: Optional[Dict[str, Any]]) -> SchemaT:
        try:
            return schema.model_validate(payload if payload is not None else {})
        except PydanticValidationError as e:
            raise validation_error_from(e) from None

    @staticmethod
    def _translate(exc: Exception, operation: str) -> PostDeskError:
        """Map a storage-layer failure to the error taxonomy."""
        if isinstance(exc, PostSchemaError):
            return ValidationError(message="Validation error", errors=exc.errors)
        if isinstance(exc, IntegrityError):
            field = conflicting_field(exc)
            if field is not None:
                logger.warning("Duplicate entry on %s (field=%s)", operation, field)
                return ConflictError(field=field)
        logger.error("Storage error during %s: %s", operation, str(exc), exc_info=True)
        return InternalError(
            error=str(exc),
            context={"operation": operation, "error_type": type(exc).__name__},
        )

    @staticmethod
    async def _load(db: AsyncSession, post_id: uuid.UUID) -> Post:
        post = await db.get(Post, post_id)
        if post is None:
            raise NotFoundError(resource="Post", resource_id=str(post_id))
        return post

    # ── Collection Operations ─────────────────────────────────────────────

    async def list_posts(self, db: AsyncSession) -> PostListResponse:
        """
        Return every stored post.

        No filtering or pagination. Ordered by creation time, oldest first.
        """
        try:
            result = await db.execute(select(Post).order_by(Post.created_at.asc()))
            posts = list(result.scalars().all())
            return PostListResponse(
                posts=[PostResponse.model_validate(post) for post in posts]
            )
        except Exception as e:
            raise self._translate(e, "list") from e

    async def create_post(
        self,
        db: AsyncSession,
        payload: Optional[Dict[str, Any]],
    ) -> PostMutationResponse:
        """
        Validate and store a new post.

        Args:
            db:       Async database session
            payload:  Raw JSON body; must hold `title` and `description`

        Returns:
            PostMutationResponse with the trimmed, persisted post.

        Raises:
            ValidationError: Missing, non-string, blank or oversized field
            ConflictError:   Uniqueness constraint violated
            InternalError:   Any other storage failure
        """
        # Empty string and null count as missing, not as invalid values
        absent = {
            name: f"{name.capitalize()} is required"
            for name in ("title", "description")
            if not (payload or {}).get(name)
        }
        if absent:
            raise ValidationError(message="Title and description are required", errors=absent)

        data = self.parse_body(PostCreate, payload)

        try:
            post = Post(title=data.title, description=data.description)
            db.add(post)
            await db.flush()
            await db.commit()
            logger.info("Post created: %s", post.id)
            return PostMutationResponse(
                message="Post created successfully",
                post=PostResponse.model_validate(post),
            )
        except PostDeskError:
            raise
        except Exception as e:
            raise self._translate(e, "create") from e

    # ── Item Operations ───────────────────────────────────────────────────

    async def get_post(self, db: AsyncSession, post_id: Optional[str]) -> PostDetailResponse:
        """
        Retrieve a single post.

        Raises:
            ValidationError: Malformed ID (no query is issued)
            NotFoundError:   No post with this ID
            InternalError:   Query execution failed
        """
        post_uuid = self.validate_post_id(post_id)
        try:
            post = await self._load(db, post_uuid)
            return PostDetailResponse(post=PostResponse.model_validate(post))
        except PostDeskError:
            raise
        except Exception as e:
            raise self._translate(e, "get") from e

    async def update_post(
        self,
        db: AsyncSession,
        post_id: Optional[str],
        payload: Optional[Dict[str, Any]],
    ) -> PostMutationResponse:
        """
        Apply a partial update.

        Only `title` and `description` keys present in the payload are
        validated and written; other keys are ignored. `updated_at` is
        refreshed on every successful update.

        Raises:
            ValidationError: Malformed ID, invalid field, or no recognized field
            NotFoundError:   No post with this ID
            InternalError:   Storage failure
        """
        post_uuid = self.validate_post_id(post_id)
        changes = self.parse_body(PostUpdate, payload).changes()
        if not changes:
            raise ValidationError(message="No valid fields to update")

        try:
            post = await self._load(db, post_uuid)
            for field, value in changes.items():
                setattr(post, field, value)
            post.updated_at = utcnow()
            await db.flush()
            await db.commit()
            logger.info("Post updated: %s (fields=%s)", post.id, sorted(changes))
            return PostMutationResponse(
                message="Post updated successfully",
                post=PostResponse.model_validate(post),
            )
        except PostDeskError:
            raise
        except Exception as e:
            raise self._translate(e, "update") from e

    async def delete_post(self, db: AsyncSession, post_id: Optional[str]) -> PostMutationResponse:
        """
        Remove a post and return what was deleted.

        A second delete of the same ID raises NotFoundError.
        """
        post_uuid = self.validate_post_id(post_id)
        try:
            post = await self._load(db, post_uuid)
            snapshot = PostResponse.model_validate(post)
            await db.delete(post)
            await db.flush()
            await db.commit()
            logger.info("Post deleted: %s", post_uuid)
            return PostMutationResponse(message="Post deleted successfully", post=snapshot)
        except PostDeskError:
            raise
        except Exception as e:
            raise self._translate(e, "delete") from e


# ── Singleton Instance ────────────────────────────────────────────────────
post_service = PostService()
