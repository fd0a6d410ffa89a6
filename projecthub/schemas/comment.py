from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from projecthub.schemas.common import CamelModel, blank_to_none, normalize_uuid
from projecthub.schemas.user import UserContact, UserSummary


class CommentPayload(CamelModel):
    """
    Body of POST and PUT /comments.

    ``author_id`` must be present but may be null; it is deliberately not
    UUID-checked because user ids come from the identity provider.
    """
    title: str = Field(min_length=1, max_length=200)
    content: str = Field(min_length=1)
    project_id: Optional[str] = None
    parent_comment_id: Optional[str] = None
    author_id: Optional[str]

    @field_validator("project_id", "parent_comment_id")
    @classmethod
    def validate_uuid(cls, value: Optional[str]) -> Optional[str]:
        return normalize_uuid(value)

    @field_validator("author_id", mode="before")
    @classmethod
    def empty_author(cls, value):
        return blank_to_none(value)


class CommentFilters(CamelModel):
    """Query parameters of GET /comments. No parent filter means root comments only."""
    project_id: Optional[str] = None
    parent_comment_id: Optional[str] = None


# ---------------------------
# Response contracts
# ---------------------------
class ProjectRef(CamelModel):
    id: str
    name: str


class ParentCommentSummary(CamelModel):
    id: str
    title: str
    author: Optional[UserContact] = None


class CommentCount(CamelModel):
    child_comments: int = 0


class CommentRead(CamelModel):
    id: str
    title: str
    content: str
    created_at: datetime
    updated_at: datetime
    author_id: Optional[str] = None
    project_id: Optional[str] = None
    parent_comment_id: Optional[str] = None


class ChildComment(CommentRead):
    author: Optional[UserSummary] = None


class CommentRecord(CommentRead):
    """Create and Update response: relations without the reply list."""
    author: Optional[UserSummary] = None
    parent_comment: Optional[ParentCommentSummary] = None
    project: Optional[ProjectRef] = None
    count: CommentCount = Field(default_factory=CommentCount, alias="_count")


class CommentThread(CommentRecord):
    """List and Get response: one level of replies, oldest first."""
    child_comments: List[ChildComment] = Field(default_factory=list)


class CommentDeleted(CamelModel):
    message: str
    deleted_id: str
