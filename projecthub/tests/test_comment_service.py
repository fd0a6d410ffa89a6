import logging
import uuid

import pytest

from projecthub.api.v1.crud import user as crud_user
from projecthub.core.exceptions import NotFoundError, ValidationError
from projecthub.schemas.comment import CommentFilters
from projecthub.services import comment as comment_service
from projecthub.services import project as project_service


@pytest.mark.asyncio
async def test_create_accepts_raw_mappings(db):
    user = await crud_user.create_user(db, {"name": "Ada", "email": "ada@example.com"})

    record = await comment_service.create_comment(db, {
        "title": "Hello", "content": "World", "authorId": user.id,
    })

    assert record.author.id == user.id
    assert record.project is None
    assert record.count.child_comments == 0


@pytest.mark.asyncio
async def test_invalid_payload_raises_before_any_lookup(db):
    with pytest.raises(ValidationError) as exc_info:
        await comment_service.create_comment(db, {"title": "", "content": "x", "authorId": None})
    assert exc_info.value.errors[0]["field"] == "title"


@pytest.mark.asyncio
async def test_missing_references_raise_not_found(db):
    with pytest.raises(NotFoundError) as exc_info:
        await comment_service.create_comment(db, {
            "title": "t", "content": "c", "authorId": None, "parentCommentId": str(uuid.uuid4()),
        })
    assert exc_info.value.message == "Parent comment not found"
    assert exc_info.value.status_code == 404

    assert await comment_service.list_comments(db) == []


@pytest.mark.asyncio
async def test_threads_materialise_one_level(db):
    root = await comment_service.create_comment(db, {"title": "root", "content": "c", "authorId": None})
    child = await comment_service.create_comment(db, {
        "title": "child", "content": "c", "authorId": None, "parentCommentId": root.id,
    })
    grandchild = await comment_service.create_comment(db, {
        "title": "grandchild", "content": "c", "authorId": None, "parentCommentId": child.id,
    })

    thread = await comment_service.get_comment(db, root.id)
    assert [c.id for c in thread.child_comments] == [child.id]
    assert not hasattr(thread.child_comments[0], "child_comments")

    replies = await comment_service.list_comments(db, CommentFilters(parent_comment_id=child.id))
    assert [c.id for c in replies] == [grandchild.id]


@pytest.mark.asyncio
async def test_update_distinguishes_absent_from_null(db):
    project = await project_service.create_project(db, {"name": "P", "status": "TODO", "priority": 1})
    comment = await comment_service.create_comment(db, {
        "title": "t", "content": "c", "authorId": None, "projectId": project.id,
    })

    kept = await comment_service.update_comment(db, comment.id, {"title": "t2", "content": "c", "authorId": None})
    assert kept.title == "t2"
    assert kept.project_id == project.id

    cleared = await comment_service.update_comment(db, comment.id, {
        "title": "t2", "content": "c", "authorId": None, "projectId": None,
    })
    assert cleared.project_id is None


@pytest.mark.asyncio
async def test_delete_logs_cascade_size(db, caplog):
    root = await comment_service.create_comment(db, {"title": "root", "content": "c", "authorId": None})
    for i in range(2):
        await comment_service.create_comment(db, {
            "title": f"reply {i}", "content": "c", "authorId": None, "parentCommentId": root.id,
        })

    with caplog.at_level(logging.INFO, logger="projecthub.comment"):
        deleted = await comment_service.delete_comment(db, root.id)

    assert deleted.deleted_id == root.id
    cascade = [r for r in caplog.records if r.getMessage() == "Deleting comment with replies"]
    assert len(cascade) == 1
    assert cascade[0].child_count == 2
    assert await comment_service.list_comments(db) == []

    with pytest.raises(NotFoundError):
        await comment_service.delete_comment(db, root.id)
