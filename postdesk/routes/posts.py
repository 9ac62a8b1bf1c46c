"""
PostDesk Backend — Post Route Handlers
======================================

What:  The post collection (GET/POST /posts) and item
       (GET/PUT/DELETE /posts/{post_id}) endpoints.
How:   Extracts the path ID and raw JSON body, delegates to PostService,
       returns the response model. Errors are raised as PostDeskError
       subclasses and rendered by the handlers registered in main.py.
Who:   Called by the blog UI (list, detail, create and edit pages).
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from postdesk.database import get_db_session
from postdesk.schemas.post import (
    ErrorResponse,
    PostDetailResponse,
    PostListResponse,
    PostMutationResponse,
)
from postdesk.services.post_service import post_service

router = APIRouter(prefix="/posts", tags=["Posts"])

_SERVER_ERROR = {500: {"description": "Storage failure", "model": ErrorResponse}}
_BAD_REQUEST = {400: {"description": "Invalid input or post ID", "model": ErrorResponse}}
_NOT_FOUND = {404: {"description": "Post not found", "model": ErrorResponse}}


# ══════════════════════════════════════════════════════════════════════════
# Collection
# ══════════════════════════════════════════════════════════════════════════


@router.get(
    "",
    response_model=PostListResponse,
    responses={**_SERVER_ERROR},
    summary="List all posts",
)
async def list_posts(
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> PostListResponse:
    """Every post, oldest first. No pagination."""
    result = await post_service.list_posts(db)
    response.headers["X-Total-Count"] = str(len(result.posts))
    return result


@router.post(
    "",
    status_code=201,
    response_model=PostMutationResponse,
    responses={
        **_BAD_REQUEST,
        409: {"description": "Duplicate entry", "model": ErrorResponse},
        **_SERVER_ERROR,
    },
    summary="Create a post",
)
async def create_post(
    payload: Optional[Dict[str, Any]] = Body(default=None),
    db: AsyncSession = Depends(get_db_session),
) -> PostMutationResponse:
    """
    Create a post from `{title, description}`.

    Both fields are trimmed before saving. Title is limited to 200
    characters, description to 400.
    """
    return await post_service.create_post(db, payload)


# ══════════════════════════════════════════════════════════════════════════
# Item
# ══════════════════════════════════════════════════════════════════════════


@router.get(
    "/{post_id}",
    response_model=PostDetailResponse,
    responses={**_BAD_REQUEST, **_NOT_FOUND, **_SERVER_ERROR},
    summary="Get a single post by ID",
)
async def get_post(
    post_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> PostDetailResponse:
    # str, not UUID: malformed IDs must produce our 400 body, not FastAPI's 422
    return await post_service.get_post(db, post_id)


@router.put(
    "/{post_id}",
    response_model=PostMutationResponse,
    responses={**_BAD_REQUEST, **_NOT_FOUND, **_SERVER_ERROR},
    summary="Update a post",
)
async def update_post(
    post_id: str,
    payload: Optional[Dict[str, Any]] = Body(default=None),
    db: AsyncSession = Depends(get_db_session),
) -> PostMutationResponse:
    """
    Partial update: only `title` and/or `description` keys present in the
    body are validated and applied.
    """
    return await post_service.update_post(db, post_id, payload)


@router.delete(
    "/{post_id}",
    response_model=PostMutationResponse,
    responses={**_BAD_REQUEST, **_NOT_FOUND, **_SERVER_ERROR},
    summary="Delete a post",
)
async def delete_post(
    post_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> PostMutationResponse:
    """Returns the deleted post's last state."""
    return await post_service.delete_post(db, post_id)
