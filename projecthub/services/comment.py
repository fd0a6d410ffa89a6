from typing import Any, Dict, List, Mapping, Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession

from projecthub.api.v1.crud import comment as crud_comment
from projecthub.api.v1.crud import project as crud_project
from projecthub.api.v1.crud import user as crud_user
from projecthub.core.exceptions import NotFoundError, UnexpectedError, ValidationError
from projecthub.core.logger import get_logger
from projecthub.models.comment import Comment
from projecthub.schemas.comment import (
    ChildComment,
    CommentCount,
    CommentDeleted,
    CommentFilters,
    CommentPayload,
    CommentRecord,
    CommentThread,
    ParentCommentSummary,
    ProjectRef,
)
from projecthub.schemas.user import UserContact, UserSummary
from projecthub.schemas.validation import provided_fields, validate_payload

logger = get_logger("comment")

# Ancestor walk bound when re-parenting a comment
MAX_ANCESTOR_DEPTH = 50

EDITABLE_FIELDS = ("title", "content", "project_id", "parent_comment_id", "author_id")


# ---------------------------
# Response shaping
# ---------------------------
def _comment_fields(comment: Comment) -> Dict[str, Any]:
    return {
        "id": comment.id,
        "title": comment.title,
        "content": comment.content,
        "created_at": comment.created_at,
        "updated_at": comment.updated_at,
        "author_id": comment.author_id,
        "project_id": comment.project_id,
        "parent_comment_id": comment.parent_comment_id,
    }


def _user_summary(user) -> Optional[UserSummary]:
    if user is None:
        return None
    return UserSummary(id=user.id, name=user.name, email=user.email, image=user.image)


def _parent_summary(parent: Optional[Comment]) -> Optional[ParentCommentSummary]:
    if parent is None:
        return None
    author = None
    if parent.author is not None:
        author = UserContact(name=parent.author.name, email=parent.author.email)
    return ParentCommentSummary(id=parent.id, title=parent.title, author=author)


def build_record(comment: Comment, child_count: int) -> CommentRecord:
    """Comment with author, parent and project loaded -> Create/Update contract."""
    project = None
    if comment.project is not None:
        project = ProjectRef(id=comment.project.id, name=comment.project.name)
    return CommentRecord(
        **_comment_fields(comment),
        author=_user_summary(comment.author),
        parent_comment=_parent_summary(comment.parent_comment),
        project=project,
        count=CommentCount(child_comments=child_count),
    )


def build_child(comment: Comment) -> ChildComment:
    return ChildComment(**_comment_fields(comment), author=_user_summary(comment.author))


async def assemble_threads(db: AsyncSession, comments: List[Comment]) -> List[CommentThread]:
    """
    Attach one level of replies to each comment.

    Replies are fetched in one query and matched to their parent by id;
    grandchildren are never materialised.
    """
    children = await crud_comment.get_child_comments(db, [c.id for c in comments])
    threads = []
    for comment in comments:
        replies = children.get(comment.id, [])
        record = build_record(comment, len(replies))
        threads.append(
            CommentThread(
                **record.model_dump(),
                child_comments=[build_child(reply) for reply in replies],
            )
        )
    return threads


# ---------------------------
# Referential checks
# ---------------------------
async def _ensure_author(db: AsyncSession, author_id: Optional[str]) -> None:
    if author_id and not await crud_user.get_user_by_id(db, author_id):
        raise NotFoundError("User", author_id)


async def _ensure_project(db: AsyncSession, project_id: Optional[str]) -> None:
    if project_id and not await crud_project.get_project_by_id(db, project_id):
        raise NotFoundError("Project", project_id)


async def _ensure_parent(db: AsyncSession, parent_comment_id: Optional[str]) -> Optional[Comment]:
    if not parent_comment_id:
        return None
    parent = await crud_comment.get_comment_by_id(db, parent_comment_id)
    if not parent:
        raise NotFoundError("Parent comment", parent_comment_id)
    return parent


async def _ensure_not_own_ancestor(db: AsyncSession, comment_id: str, parent: Comment) -> None:
    if parent.id == comment_id:
        raise ValidationError(
            [{"field": "parentCommentId", "message": "A comment cannot reply to itself"}]
        )
    ancestor = parent
    depth = 0
    while ancestor.parent_comment_id:
        if ancestor.parent_comment_id == comment_id:
            raise ValidationError(
                [{"field": "parentCommentId", "message": "A comment cannot reply to one of its own replies"}]
            )
        if depth >= MAX_ANCESTOR_DEPTH:
            # Unverified chains are refused rather than risking a cycle
            raise ValidationError([{"field": "parentCommentId", "message": "Reply chain too deep"}])
        ancestor = await crud_comment.get_comment_by_id(db, ancestor.parent_comment_id)
        if ancestor is None:
            break
        depth += 1


async def _load_record(db: AsyncSession, comment_id: str) -> CommentRecord:
    comment = await crud_comment.get_comment_with_relations(db, comment_id)
    if comment is None:
        raise UnexpectedError()
    counts = await crud_comment.count_child_comments(db, [comment_id])
    return build_record(comment, counts.get(comment_id, 0))


# ---------------------------
# Operations
# ---------------------------
async def list_comments(db: AsyncSession, filters: Optional[CommentFilters] = None) -> List[CommentThread]:
    """
    Comments newest first. Without a parent filter only root comments are
    returned, which is the top-level thread view.
    """
    filters = filters or CommentFilters()
    comments = await crud_comment.get_comments(
        db,
        project_id=filters.project_id or None,
        parent_comment_id=filters.parent_comment_id or None,
    )
    return await assemble_threads(db, comments)


async def get_comment(db: AsyncSession, comment_id: str) -> CommentThread:
    comment = await crud_comment.get_comment_with_relations(db, comment_id)
    if not comment:
        raise NotFoundError("Comment", comment_id)
    threads = await assemble_threads(db, [comment])
    return threads[0]


async def create_comment(
        db: AsyncSession,
        payload: Union[CommentPayload, Mapping[str, Any]]
) -> CommentRecord:
    payload = validate_payload(CommentPayload, payload)

    await _ensure_author(db, payload.author_id)
    await _ensure_project(db, payload.project_id)
    await _ensure_parent(db, payload.parent_comment_id)

    # Absent optional references are left out of the insert
    comment_data = {"title": payload.title, "content": payload.content}
    for field in ("project_id", "parent_comment_id", "author_id"):
        value = getattr(payload, field)
        if value:
            comment_data[field] = value

    comment = await crud_comment.create_comment(db, comment_data)
    logger.info(
        "Comment created",
        extra={
            "comment_id": comment.id,
            "project_id": comment.project_id,
            "parent_comment_id": comment.parent_comment_id,
        },
    )
    return await _load_record(db, comment.id)


async def update_comment(
        db: AsyncSession,
        comment_id: str,
        payload: Union[CommentPayload, Mapping[str, Any]]
) -> CommentRecord:
    """
    Replace the editable fields of a comment.

    Keys missing from the payload keep their stored value; keys sent as null
    clear it.
    """
    payload = validate_payload(CommentPayload, payload)

    comment = await crud_comment.get_comment_by_id(db, comment_id)
    if not comment:
        raise NotFoundError("Comment", comment_id)

    sent = provided_fields(payload)
    updates = {field: getattr(payload, field) for field in EDITABLE_FIELDS if field in sent}

    await _ensure_author(db, updates.get("author_id"))
    await _ensure_project(db, updates.get("project_id"))
    parent = await _ensure_parent(db, updates.get("parent_comment_id"))
    if parent is not None:
        await _ensure_not_own_ancestor(db, comment_id, parent)

    await crud_comment.update_comment(db, comment, updates)
    logger.info("Comment updated", extra={"comment_id": comment_id, "fields": sorted(updates)})
    return await _load_record(db, comment_id)


async def delete_comment(db: AsyncSession, comment_id: str) -> CommentDeleted:
    comment = await crud_comment.get_comment_by_id(db, comment_id)
    if not comment:
        raise NotFoundError("Comment", comment_id)

    counts = await crud_comment.count_child_comments(db, [comment_id])
    child_count = counts.get(comment_id, 0)
    if child_count > 0:
        logger.info(
            "Deleting comment with replies",
            extra={"comment_id": comment_id, "child_count": child_count},
        )

    await crud_comment.delete_comment(db, comment_id)
    logger.info("Comment deleted", extra={"comment_id": comment_id})
    return CommentDeleted(message="Comment deleted successfully", deleted_id=comment_id)
