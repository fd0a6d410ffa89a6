from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field, field_validator

from projecthub.models.enums import UserRole
from projecthub.schemas.common import CamelModel, blank_to_none


# Schema for creating a user (request body)
class UserPayload(CamelModel):
    name: Optional[str] = Field(default=None, max_length=100)
    email: Optional[EmailStr] = None
    image: Optional[str] = None
    role: UserRole = UserRole.USER

    @field_validator("name", "email", "image", mode="before")
    @classmethod
    def empty_as_missing(cls, value):
        return blank_to_none(value)


# Embedded in comments and projects
class UserSummary(CamelModel):
    id: str
    name: Optional[str] = None
    email: Optional[str] = None
    image: Optional[str] = None


class UserContact(CamelModel):
    name: Optional[str] = None
    email: Optional[str] = None


class ProjectMember(CamelModel):
    id: str
    name: Optional[str] = None
    email: Optional[str] = None
    role: str


class UserProfile(UserSummary):
    role: str


class ProjectMemberProfile(UserProfile):
    created_at: datetime


# Schema for reading user data in responses
class UserRead(UserProfile):
    created_at: datetime


def user_read(user) -> UserRead:
    return UserRead(
        id=user.id,
        name=user.name,
        email=user.email,
        image=user.image,
        role=user.role,
        created_at=user.created_at,
    )


def member_profile(user) -> ProjectMemberProfile:
    return ProjectMemberProfile(
        id=user.id,
        name=user.name,
        email=user.email,
        image=user.image,
        role=user.role,
        created_at=user.created_at,
    )
