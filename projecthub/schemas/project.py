import re
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import AnyUrl, Field, TypeAdapter, field_validator

from projecthub.models.enums import ProjectStatus
from projecthub.schemas.comment import CommentThread
from projecthub.schemas.common import CamelModel, blank_to_none
from projecthub.schemas.user import (
    ProjectMember,
    ProjectMemberProfile,
    UserContact,
    UserProfile,
    UserSummary,
)

_url_adapter = TypeAdapter(AnyUrl)

# Seconds fraction of any length, padded or cut to microseconds before parsing
_FRACTION = re.compile(r"([T ]\d{2}:\d{2}:\d{2})\.(\d+)")


def parse_date(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO date or datetime string (``Z`` suffix allowed)."""
    if value is None:
        return None
    value = value.replace("Z", "+00:00")
    value = _FRACTION.sub(lambda m: f"{m.group(1)}.{m.group(2)[:6].ljust(6, '0')}", value)
    return datetime.fromisoformat(value)


class ProjectPayload(CamelModel):
    """Body of POST and PUT /projects."""
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = None
    image: Optional[str] = None
    status: ProjectStatus
    priority: int = Field(ge=1, le=5, strict=True)
    start_date: Optional[str] = None
    end_date: Optional[str] = None

    @field_validator("image", "start_date", "end_date", mode="before")
    @classmethod
    def empty_as_null(cls, value):
        return blank_to_none(value)

    @field_validator("image")
    @classmethod
    def validate_image(cls, value: Optional[str]) -> Optional[str]:
        if value is not None:
            try:
                _url_adapter.validate_python(value)
            except ValueError:
                raise ValueError("Invalid URL")
        return value

    @field_validator("start_date", "end_date")
    @classmethod
    def validate_date(cls, value: Optional[str]) -> Optional[str]:
        if value is not None:
            try:
                parse_date(value)
            except ValueError:
                raise ValueError("Invalid ISO date format")
        return value


# ---------------------------
# Response contracts
# ---------------------------
class ProjectCount(CamelModel):
    users: int = 0
    comments: int = 0


class ProjectCommentPreview(CamelModel):
    id: str
    title: str
    created_at: datetime
    author: Optional[UserContact] = None


class ProjectRead(CamelModel):
    id: str
    name: str
    description: Optional[str] = None
    image: Optional[str] = None
    status: ProjectStatus
    priority: int
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    creator_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ProjectSummary(ProjectRead):
    """List, Create and Update response: the five most recent comments."""
    creator: Optional[UserSummary] = None
    users: List[ProjectMember] = Field(default_factory=list)
    comments: List[ProjectCommentPreview] = Field(default_factory=list)
    count: ProjectCount = Field(default_factory=ProjectCount, alias="_count")


class ProjectDetail(ProjectRead):
    """Get response: every comment with its thread."""
    creator: Optional[UserProfile] = None
    users: List[ProjectMemberProfile] = Field(default_factory=list)
    comments: List[CommentThread] = Field(default_factory=list)
    count: ProjectCount = Field(default_factory=ProjectCount, alias="_count")


class DeletedProjectInfo(CamelModel):
    id: str
    name: str
    comments_count: int
    users_count: int


class ProjectDeleted(CamelModel):
    message: str
    deleted_project: DeletedProjectInfo


class DashboardStats(CamelModel):
    total_projects: int
    active_projects: int
    completed_projects: int
    # Every status is present, zero when no project has it
    by_status: Dict[str, int] = Field(default_factory=dict)
    this_month: int = 0
    active_users: int = 0
    total_comments: int
    root_comments: int
