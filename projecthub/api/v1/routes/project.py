from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from projecthub.api.deps import get_db_session, get_session_user_id
from projecthub.core.cache import PROJECT_LIST_KEY, cache
from projecthub.core.logger import get_logger
from projecthub.core.rate_limit import READ_LIMIT, WRITE_LIMIT, limiter
from projecthub.schemas.project import ProjectDeleted, ProjectDetail, ProjectPayload, ProjectSummary
from projecthub.services import project as project_service

logger = get_logger("api.project")

router = APIRouter(tags=["projects"])


# ----- List all projects, newest first -----
@router.get("", response_model=List[ProjectSummary])
@limiter.limit(READ_LIMIT)
async def list_projects(
        request: Request,
        db: AsyncSession = Depends(get_db_session)
):
    cached = await cache.get(PROJECT_LIST_KEY)
    if cached is not None:
        logger.info("Retrieved projects from cache", extra={"cache_key": PROJECT_LIST_KEY})
        return cached

    projects = await project_service.list_projects(db)
    await cache.set(PROJECT_LIST_KEY, [p.model_dump(mode="json", by_alias=True) for p in projects])
    return projects


# ----- Projects a user created or is assigned to -----
@router.get("/by-user", response_model=List[ProjectSummary])
@limiter.limit(READ_LIMIT)
async def list_projects_for_user(
        request: Request,
        user_id: str = Query(..., alias="userId", description="Creator or assigned user"),
        db: AsyncSession = Depends(get_db_session)
):
    return await project_service.list_projects_for_user(db, user_id)


# ----- Create a new project -----
@router.post("", response_model=ProjectSummary, status_code=status.HTTP_201_CREATED)
@limiter.limit(WRITE_LIMIT)
async def create_project(
        request: Request,
        project_in: ProjectPayload,
        session_user_id: Optional[str] = Depends(get_session_user_id),
        db: AsyncSession = Depends(get_db_session)
):
    project = await project_service.create_project(db, project_in, creator_id=session_user_id)
    await cache.invalidate_listings()
    return project


# ----- Get a project with its comment threads -----
@router.get("/{project_id}", response_model=ProjectDetail)
@limiter.limit(READ_LIMIT)
async def get_project(
        request: Request,
        project_id: str,
        db: AsyncSession = Depends(get_db_session)
):
    return await project_service.get_project(db, project_id)


# ----- Update project -----
@router.put("/{project_id}", response_model=ProjectSummary)
@limiter.limit(WRITE_LIMIT)
async def update_project(
        request: Request,
        project_id: str,
        project_in: ProjectPayload,
        db: AsyncSession = Depends(get_db_session)
):
    project = await project_service.update_project(db, project_id, project_in)
    await cache.invalidate_listings()
    return project


# ----- Delete project -----
@router.delete("/{project_id}", response_model=ProjectDeleted)
@limiter.limit(WRITE_LIMIT)
async def delete_project(
        request: Request,
        project_id: str,
        db: AsyncSession = Depends(get_db_session)
):
    deleted = await project_service.delete_project(db, project_id)
    await cache.invalidate_listings()
    return deleted


# ----- Assign / unassign users -----
@router.post("/{project_id}/users/{user_id}", response_model=ProjectSummary)
@limiter.limit(WRITE_LIMIT)
async def add_project_member(
        request: Request,
        project_id: str,
        user_id: str,
        db: AsyncSession = Depends(get_db_session)
):
    project = await project_service.add_project_member(db, project_id, user_id)
    await cache.invalidate_listings()
    return project


@router.delete("/{project_id}/users/{user_id}", response_model=ProjectSummary)
@limiter.limit(WRITE_LIMIT)
async def remove_project_member(
        request: Request,
        project_id: str,
        user_id: str,
        db: AsyncSession = Depends(get_db_session)
):
    project = await project_service.remove_project_member(db, project_id, user_id)
    await cache.invalidate_listings()
    return project
