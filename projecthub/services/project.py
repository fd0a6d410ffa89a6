from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession

from projecthub.api.v1.crud import comment as crud_comment
from projecthub.api.v1.crud import project as crud_project
from projecthub.api.v1.crud import user as crud_user
from projecthub.core.config import settings
from projecthub.core.exceptions import NotFoundError, UnexpectedError
from projecthub.core.logger import get_logger
from projecthub.models.enums import ProjectStatus, UserRole
from projecthub.models.project import Project
from projecthub.models.user import User
from projecthub.schemas.project import (
    DashboardStats,
    DeletedProjectInfo,
    ProjectCommentPreview,
    ProjectCount,
    ProjectDeleted,
    ProjectDetail,
    ProjectPayload,
    ProjectSummary,
    parse_date,
)
from projecthub.schemas.user import (
    ProjectMember,
    UserContact,
    UserProfile,
    UserSummary,
    member_profile,
)
from projecthub.schemas.validation import provided_fields, validate_payload
from projecthub.services.comment import assemble_threads

logger = get_logger("project")

RECENT_COMMENTS_LIMIT = 5


# ---------------------------
# Response shaping
# ---------------------------
def _project_fields(project: Project) -> Dict[str, Any]:
    return {
        "id": project.id,
        "name": project.name,
        "description": project.description,
        "image": project.image,
        "status": project.status,
        "priority": project.priority,
        "start_date": project.start_date,
        "end_date": project.end_date,
        "creator_id": project.creator_id,
        "created_at": project.created_at,
        "updated_at": project.updated_at,
    }


async def _summaries(db: AsyncSession, projects: List[Project]) -> List[ProjectSummary]:
    ids = [project.id for project in projects]
    recent = await crud_project.get_recent_comments(db, ids, limit=RECENT_COMMENTS_LIMIT)
    counts = await crud_project.count_project_relations(db, ids)

    summaries = []
    for project in projects:
        users_count, comments_count = counts.get(project.id, (0, 0))
        creator = project.creator
        summaries.append(
            ProjectSummary(
                **_project_fields(project),
                creator=UserSummary.model_validate(creator, from_attributes=True) if creator else None,
                users=[ProjectMember.model_validate(user, from_attributes=True) for user in project.users],
                comments=[
                    ProjectCommentPreview(
                        id=comment.id,
                        title=comment.title,
                        created_at=comment.created_at,
                        author=UserContact(name=comment.author.name, email=comment.author.email)
                        if comment.author else None,
                    )
                    for comment in recent.get(project.id, [])
                ],
                count=ProjectCount(users=users_count, comments=comments_count),
            )
        )
    return summaries


async def _load_summary(db: AsyncSession, project_id: str) -> ProjectSummary:
    project = await crud_project.get_project_with_people(db, project_id)
    if project is None:
        raise UnexpectedError()
    summaries = await _summaries(db, [project])
    return summaries[0]


def _project_data(payload: ProjectPayload, fields) -> Dict[str, Any]:
    """Column values for the given payload fields; blank optionals become null."""
    converters = {
        "name": lambda p: p.name,
        "description": lambda p: p.description or None,
        "image": lambda p: p.image or None,
        "status": lambda p: p.status.value,
        "priority": lambda p: p.priority,
        "start_date": lambda p: parse_date(p.start_date),
        "end_date": lambda p: parse_date(p.end_date),
    }
    return {field: converters[field](payload) for field in fields if field in converters}


# ---------------------------
# Sentinel creator
# ---------------------------
async def get_or_create_temp_user(db: AsyncSession) -> User:
    """Placeholder creator used when a project is created without a session user."""
    user, created = await crud_user.get_or_create_user_by_email(
        db,
        settings.TEMP_USER_EMAIL,
        defaults={"name": settings.TEMP_USER_NAME, "role": UserRole.USER.value},
    )
    if created:
        logger.info("Temporary user provisioned", extra={"user_id": user.id, "email": user.email})
    return user


# ---------------------------
# Operations
# ---------------------------
async def list_projects(db: AsyncSession) -> List[ProjectSummary]:
    projects = await crud_project.get_projects(db)
    return await _summaries(db, projects)


async def list_projects_for_user(db: AsyncSession, user_id: str) -> List[ProjectSummary]:
    if not await crud_user.get_user_by_id(db, user_id):
        raise NotFoundError("User", user_id)
    projects = await crud_project.get_projects_for_user(db, user_id)
    return await _summaries(db, projects)


async def get_project(db: AsyncSession, project_id: str) -> ProjectDetail:
    project = await crud_project.get_project_with_people(db, project_id)
    if not project:
        raise NotFoundError("Project", project_id)

    comments = await crud_project.get_project_comments(db, project_id)
    threads = await assemble_threads(db, comments)
    counts = await crud_project.count_project_relations(db, [project_id])
    users_count, comments_count = counts.get(project_id, (0, 0))

    creator = project.creator
    return ProjectDetail(
        **_project_fields(project),
        creator=UserProfile.model_validate(creator, from_attributes=True) if creator else None,
        users=[member_profile(user) for user in project.users],
        comments=threads,
        count=ProjectCount(users=users_count, comments=comments_count),
    )


async def create_project(
        db: AsyncSession,
        payload: Union[ProjectPayload, Mapping[str, Any]],
        creator_id: Optional[str] = None
) -> ProjectSummary:
    """
    Create a project. ``creator_id`` is the session user; without one the
    sentinel temporary user becomes the creator.
    """
    payload = validate_payload(ProjectPayload, payload)

    if creator_id:
        if not await crud_user.get_user_by_id(db, creator_id):
            raise NotFoundError("User", creator_id)
    else:
        creator_id = (await get_or_create_temp_user(db)).id

    project_data = _project_data(payload, ProjectPayload.model_fields)
    project_data["creator_id"] = creator_id

    project = await crud_project.create_project(db, project_data)
    logger.info("Project created", extra={"project_id": project.id, "creator_id": creator_id})
    return await _load_summary(db, project.id)


async def update_project(
        db: AsyncSession,
        project_id: str,
        payload: Union[ProjectPayload, Mapping[str, Any]]
) -> ProjectSummary:
    """
    Replace the editable fields of a project. Keys missing from the payload
    keep their stored value; null or blank clears optional fields.
    """
    payload = validate_payload(ProjectPayload, payload)

    project = await crud_project.get_project_by_id(db, project_id)
    if not project:
        raise NotFoundError("Project", project_id)

    updates = _project_data(payload, provided_fields(payload))
    await crud_project.update_project(db, project, updates)
    logger.info("Project updated", extra={"project_id": project_id, "fields": sorted(updates)})
    return await _load_summary(db, project_id)


async def delete_project(db: AsyncSession, project_id: str) -> ProjectDeleted:
    project = await crud_project.get_project_by_id(db, project_id)
    if not project:
        raise NotFoundError("Project", project_id)

    counts = await crud_project.count_project_relations(db, [project_id])
    users_count, comments_count = counts.get(project_id, (0, 0))
    name = project.name

    await crud_project.delete_project(db, project_id)
    logger.info(
        "Project deleted",
        extra={"project_id": project_id, "comments_count": comments_count, "users_count": users_count},
    )
    return ProjectDeleted(
        message="Project deleted successfully",
        deleted_project=DeletedProjectInfo(
            id=project_id,
            name=name,
            comments_count=comments_count,
            users_count=users_count,
        ),
    )


async def add_project_member(db: AsyncSession, project_id: str, user_id: str) -> ProjectSummary:
    if not await crud_project.get_project_by_id(db, project_id):
        raise NotFoundError("Project", project_id)
    if not await crud_user.get_user_by_id(db, user_id):
        raise NotFoundError("User", user_id)

    if await crud_project.add_member(db, project_id, user_id):
        logger.info("User assigned to project", extra={"project_id": project_id, "user_id": user_id})
    return await _load_summary(db, project_id)


async def remove_project_member(db: AsyncSession, project_id: str, user_id: str) -> ProjectSummary:
    if not await crud_project.get_project_by_id(db, project_id):
        raise NotFoundError("Project", project_id)
    if not await crud_user.get_user_by_id(db, user_id):
        raise NotFoundError("User", user_id)

    if await crud_project.remove_member(db, project_id, user_id):
        logger.info("User removed from project", extra={"project_id": project_id, "user_id": user_id})
    return await _load_summary(db, project_id)


def _start_of_month(now: Optional[datetime] = None) -> datetime:
    now = now or datetime.now(timezone.utc)
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


async def get_dashboard_stats(db: AsyncSession) -> DashboardStats:
    by_status = await crud_project.get_project_statistics(db)
    return DashboardStats(
        total_projects=by_status["total"],
        active_projects=by_status[ProjectStatus.IN_PROGRESS.value],
        completed_projects=by_status[ProjectStatus.DONE.value],
        by_status={status.value: by_status[status.value] for status in ProjectStatus},
        this_month=await crud_project.count_projects_created_since(db, _start_of_month()),
        active_users=await crud_project.count_assigned_users(db),
        total_comments=await crud_comment.count_comments(db),
        root_comments=await crud_comment.count_comments(db, roots_only=True),
    )
