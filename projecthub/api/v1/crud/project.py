from collections import defaultdict
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased, selectinload

from projecthub.models.comment import Comment
from projecthub.models.enums import ProjectStatus
from projecthub.models.project import Project, project_users


def _with_people(query):
    return query.options(
        selectinload(Project.creator),
        selectinload(Project.users),
    ).execution_options(populate_existing=True)


# ----- Get a single project by ID -----
async def get_project_by_id(db: AsyncSession, project_id: str) -> Optional[Project]:
    result = await db.execute(select(Project).where(Project.id == project_id))
    return result.scalars().first()


async def get_project_with_people(db: AsyncSession, project_id: str) -> Optional[Project]:
    """Single project with creator and assigned users loaded."""
    result = await db.execute(_with_people(select(Project)).where(Project.id == project_id))
    return result.scalars().first()


# ----- List projects, newest first -----
async def get_projects(db: AsyncSession) -> List[Project]:
    result = await db.execute(
        _with_people(select(Project)).order_by(Project.created_at.desc(), Project.id)
    )
    return list(result.scalars().all())


async def get_projects_for_user(db: AsyncSession, user_id: str) -> List[Project]:
    """Projects the user created or is assigned to."""
    member_of = select(project_users.c.project_id).where(project_users.c.user_id == user_id)
    result = await db.execute(
        _with_people(select(Project))
        .where(or_(Project.creator_id == user_id, Project.id.in_(member_of)))
        .order_by(Project.created_at.desc(), Project.id)
    )
    return list(result.scalars().all())


# ----- Comments attached to projects -----
async def get_recent_comments(
        db: AsyncSession,
        project_ids: Iterable[str],
        limit: int = 5
) -> Dict[str, List[Comment]]:
    """The ``limit`` newest comments of each project, keyed by project id."""
    project_ids = list(project_ids)
    recent: Dict[str, List[Comment]] = defaultdict(list)
    if not project_ids:
        return recent

    ranked = (
        select(
            Comment,
            func.row_number().over(
                partition_by=Comment.project_id,
                order_by=(Comment.created_at.desc(), Comment.id),
            ).label("position"),
        )
        .where(Comment.project_id.in_(project_ids))
        .subquery()
    )
    ranked_comment = aliased(Comment, ranked)
    result = await db.execute(
        select(ranked_comment)
        .options(selectinload(ranked_comment.author))
        .where(ranked.c.position <= limit)
        .order_by(ranked.c.created_at.desc(), ranked.c.id)
        .execution_options(populate_existing=True)
    )
    for comment in result.scalars().all():
        recent[comment.project_id].append(comment)
    return recent


async def get_project_comments(db: AsyncSession, project_id: str) -> List[Comment]:
    """Every comment of a project (replies included), newest first."""
    result = await db.execute(
        select(Comment)
        .options(
            selectinload(Comment.author),
            selectinload(Comment.project),
            selectinload(Comment.parent_comment).selectinload(Comment.author),
        )
        .where(Comment.project_id == project_id)
        .order_by(Comment.created_at.desc(), Comment.id)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def count_project_relations(db: AsyncSession, project_ids: Iterable[str]) -> Dict[str, Tuple[int, int]]:
    """``(users, comments)`` counts per project id."""
    project_ids = list(project_ids)
    if not project_ids:
        return {}

    user_counts = await db.execute(
        select(project_users.c.project_id, func.count(project_users.c.user_id))
        .where(project_users.c.project_id.in_(project_ids))
        .group_by(project_users.c.project_id)
    )
    comment_counts = await db.execute(
        select(Comment.project_id, func.count(Comment.id))
        .where(Comment.project_id.in_(project_ids))
        .group_by(Comment.project_id)
    )
    users = dict(user_counts.all())
    comments = dict(comment_counts.all())
    return {pid: (users.get(pid, 0), comments.get(pid, 0)) for pid in project_ids}


# ----- Create a new project -----
async def create_project(db: AsyncSession, project_data: dict) -> Project:
    new_project = Project(**project_data)
    db.add(new_project)
    await db.commit()
    return new_project


# ----- Update a project -----
async def update_project(db: AsyncSession, project: Project, updates: dict) -> Project:
    for key, value in updates.items():
        setattr(project, key, value)
    db.add(project)
    await db.commit()
    return project


# ----- Delete a project -----
async def delete_project(db: AsyncSession, project_id: str) -> int:
    result = await db.execute(delete(Project).where(Project.id == project_id))
    await db.commit()
    return result.rowcount


# ----- Membership -----
async def is_member(db: AsyncSession, project_id: str, user_id: str) -> bool:
    result = await db.execute(
        select(func.count())
        .select_from(project_users)
        .where(project_users.c.project_id == project_id, project_users.c.user_id == user_id)
    )
    return (result.scalar() or 0) > 0


async def add_member(db: AsyncSession, project_id: str, user_id: str) -> bool:
    """Assign a user; returns False when already assigned."""
    if await is_member(db, project_id, user_id):
        return False
    await db.execute(project_users.insert().values(project_id=project_id, user_id=user_id))
    await db.commit()
    return True


async def remove_member(db: AsyncSession, project_id: str, user_id: str) -> bool:
    result = await db.execute(
        project_users.delete().where(
            project_users.c.project_id == project_id,
            project_users.c.user_id == user_id,
        )
    )
    await db.commit()
    return result.rowcount > 0


# ----- Get project statistics -----
async def get_project_statistics(db: AsyncSession) -> dict:
    """Project counts by status."""
    status_counts = await db.execute(
        select(Project.status, func.count(Project.id)).group_by(Project.status)
    )

    stats = {"total": 0}
    for status, count in status_counts.all():
        stats[status] = count
        stats["total"] += count
    for project_status in ProjectStatus:
        stats.setdefault(project_status.value, 0)
    return stats


async def count_projects_created_since(db: AsyncSession, since: datetime) -> int:
    result = await db.execute(select(func.count(Project.id)).where(Project.created_at >= since))
    return result.scalar() or 0


async def count_assigned_users(db: AsyncSession) -> int:
    """Distinct users assigned to at least one project."""
    result = await db.execute(select(func.count(func.distinct(project_users.c.user_id))))
    return result.scalar() or 0
