from datetime import datetime, timezone

import pytest

from projecthub.api.v1.crud import project as crud_project
from projecthub.api.v1.crud import user as crud_user
from projecthub.core.config import settings
from projecthub.services import project as project_service


@pytest.mark.asyncio
async def test_temp_user_is_reused(db):
    first = await project_service.get_or_create_temp_user(db)
    second = await project_service.get_or_create_temp_user(db)

    assert first.id == second.id
    users = await crud_user.get_all_users(db, email=settings.TEMP_USER_EMAIL)
    assert len(users) == 1


@pytest.mark.asyncio
async def test_create_project_converts_dates(db):
    summary = await project_service.create_project(db, {
        "name": "Dated",
        "status": "REVIEW",
        "priority": 4,
        "startDate": "2026-05-01T09:30:00Z",
        "endDate": None,
        "description": "",
    })

    assert summary.start_date.year == 2026
    assert summary.start_date.hour == 9
    assert summary.end_date is None
    assert summary.description is None
    assert summary.creator.email == settings.TEMP_USER_EMAIL


@pytest.mark.asyncio
async def test_dashboard_stats_on_empty_store(db):
    stats = await project_service.get_dashboard_stats(db)
    assert stats.total_projects == 0
    assert stats.active_projects == 0
    assert stats.completed_projects == 0
    assert stats.root_comments == 0
    assert stats.by_status == {
        "TODO": 0, "IN_PROGRESS": 0, "REVIEW": 0, "DONE": 0, "BLOCKED": 0, "CANCELLED": 0,
    }
    assert stats.this_month == 0
    assert stats.active_users == 0


@pytest.mark.asyncio
async def test_this_month_ignores_older_projects(db):
    await project_service.create_project(db, {"name": "Current", "status": "TODO", "priority": 1})
    old = await project_service.create_project(db, {"name": "Old", "status": "CANCELLED", "priority": 1})
    project = await crud_project.get_project_by_id(db, old.id)
    await crud_project.update_project(db, project, {"created_at": datetime(2020, 1, 15, tzinfo=timezone.utc)})

    stats = await project_service.get_dashboard_stats(db)
    assert stats.total_projects == 2
    assert stats.this_month == 1
    assert stats.by_status["CANCELLED"] == 1
