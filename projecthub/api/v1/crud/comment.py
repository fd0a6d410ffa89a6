from collections import defaultdict
from typing import Dict, Iterable, List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from projecthub.models.comment import Comment


def _with_relations(query):
    """Author, project and parent (with its author) for each comment."""
    return query.options(
        selectinload(Comment.author),
        selectinload(Comment.project),
        selectinload(Comment.parent_comment).selectinload(Comment.author),
    ).execution_options(populate_existing=True)


# ----- Get a single comment by ID -----
async def get_comment_by_id(db: AsyncSession, comment_id: str) -> Optional[Comment]:
    result = await db.execute(select(Comment).where(Comment.id == comment_id))
    return result.scalars().first()


async def get_comment_with_relations(db: AsyncSession, comment_id: str) -> Optional[Comment]:
    result = await db.execute(_with_relations(select(Comment)).where(Comment.id == comment_id))
    return result.scalars().first()


# ----- List comments, newest first -----
async def get_comments(
        db: AsyncSession,
        project_id: Optional[str] = None,
        parent_comment_id: Optional[str] = None,
        roots_only: bool = True
) -> List[Comment]:
    """
    List comments with relations loaded.

    When ``parent_comment_id`` is not given and ``roots_only`` is set, only
    comments without a parent are returned.
    """
    query = _with_relations(select(Comment))

    if project_id is not None:
        query = query.where(Comment.project_id == project_id)
    if parent_comment_id is not None:
        query = query.where(Comment.parent_comment_id == parent_comment_id)
    elif roots_only:
        query = query.where(Comment.parent_comment_id.is_(None))

    query = query.order_by(Comment.created_at.desc(), Comment.id)
    result = await db.execute(query)
    return list(result.scalars().all())


# ----- Replies and reply counts for a set of parents -----
async def get_child_comments(db: AsyncSession, parent_ids: Iterable[str]) -> Dict[str, List[Comment]]:
    """Direct replies of each parent, oldest first, keyed by parent id."""
    parent_ids = list(parent_ids)
    children: Dict[str, List[Comment]] = defaultdict(list)
    if not parent_ids:
        return children

    result = await db.execute(
        select(Comment)
        .options(selectinload(Comment.author))
        .where(Comment.parent_comment_id.in_(parent_ids))
        .order_by(Comment.created_at.asc(), Comment.id)
        .execution_options(populate_existing=True)
    )
    for child in result.scalars().all():
        children[child.parent_comment_id].append(child)
    return children


async def count_child_comments(db: AsyncSession, parent_ids: Iterable[str]) -> Dict[str, int]:
    parent_ids = list(parent_ids)
    if not parent_ids:
        return {}
    result = await db.execute(
        select(Comment.parent_comment_id, func.count(Comment.id))
        .where(Comment.parent_comment_id.in_(parent_ids))
        .group_by(Comment.parent_comment_id)
    )
    return {parent_id: count for parent_id, count in result.all()}


# ----- Create a new comment -----
async def create_comment(db: AsyncSession, comment_data: dict) -> Comment:
    new_comment = Comment(**comment_data)
    db.add(new_comment)
    await db.commit()
    return new_comment


# ----- Update a comment -----
async def update_comment(db: AsyncSession, comment: Comment, updates: dict) -> Comment:
    for key, value in updates.items():
        setattr(comment, key, value)
    db.add(comment)
    await db.commit()
    return comment


# ----- Delete a comment -----
async def delete_comment(db: AsyncSession, comment_id: str) -> int:
    """Delete by id; the store removes replies through the cascading foreign key."""
    result = await db.execute(delete(Comment).where(Comment.id == comment_id))
    await db.commit()
    return result.rowcount


# ----- Counters -----
async def count_comments(db: AsyncSession, roots_only: bool = False) -> int:
    query = select(func.count(Comment.id))
    if roots_only:
        query = query.where(Comment.parent_comment_id.is_(None))
    result = await db.execute(query)
    return result.scalar() or 0
