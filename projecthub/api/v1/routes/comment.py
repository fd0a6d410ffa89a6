from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from projecthub.api.deps import get_db_session
from projecthub.core.cache import cache
from projecthub.core.rate_limit import READ_LIMIT, WRITE_LIMIT, limiter
from projecthub.schemas.comment import (
    CommentDeleted,
    CommentFilters,
    CommentPayload,
    CommentRecord,
    CommentThread,
)
from projecthub.services import comment as comment_service

router = APIRouter(tags=["comments"])


# ----- List comments (root threads unless a parent is given) -----
@router.get("", response_model=List[CommentThread])
@limiter.limit(READ_LIMIT)
async def list_comments(
        request: Request,
        project_id: Optional[str] = Query(None, alias="projectId", description="Filter by project ID"),
        parent_comment_id: Optional[str] = Query(
            None, alias="parentCommentId", description="Replies of this comment; root comments when omitted"
        ),
        db: AsyncSession = Depends(get_db_session)
):
    filters = CommentFilters(project_id=project_id, parent_comment_id=parent_comment_id)
    return await comment_service.list_comments(db, filters)


# ----- Create a new comment -----
@router.post("", response_model=CommentRecord, status_code=status.HTTP_201_CREATED)
@limiter.limit(WRITE_LIMIT)
async def create_comment(
        request: Request,
        comment_in: CommentPayload,
        db: AsyncSession = Depends(get_db_session)
):
    comment = await comment_service.create_comment(db, comment_in)
    await cache.invalidate_listings()
    return comment


# ----- Get single comment by ID -----
@router.get("/{comment_id}", response_model=CommentThread)
@limiter.limit(READ_LIMIT)
async def get_comment(
        request: Request,
        comment_id: str,
        db: AsyncSession = Depends(get_db_session)
):
    return await comment_service.get_comment(db, comment_id)


# ----- Update comment -----
@router.put("/{comment_id}", response_model=CommentRecord)
@limiter.limit(WRITE_LIMIT)
async def update_comment(
        request: Request,
        comment_id: str,
        comment_in: CommentPayload,
        db: AsyncSession = Depends(get_db_session)
):
    comment = await comment_service.update_comment(db, comment_id, comment_in)
    await cache.invalidate_listings()
    return comment


# ----- Delete comment (replies go with it) -----
@router.delete("/{comment_id}", response_model=CommentDeleted)
@limiter.limit(WRITE_LIMIT)
async def delete_comment(
        request: Request,
        comment_id: str,
        db: AsyncSession = Depends(get_db_session)
):
    deleted = await comment_service.delete_comment(db, comment_id)
    await cache.invalidate_listings()
    return deleted
