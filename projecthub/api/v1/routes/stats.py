from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from projecthub.api.deps import get_db_session
from projecthub.core.cache import STATS_SUMMARY_KEY, cache
from projecthub.core.rate_limit import READ_LIMIT, limiter
from projecthub.schemas.project import DashboardStats
from projecthub.services import project as project_service

router = APIRouter(tags=["stats"])


@router.get("/summary", response_model=DashboardStats)
@limiter.limit(READ_LIMIT)
async def dashboard_summary(
        request: Request,
        db: AsyncSession = Depends(get_db_session)
):
    cached = await cache.get(STATS_SUMMARY_KEY)
    if cached is not None:
        return cached

    stats = await project_service.get_dashboard_stats(db)
    await cache.set(STATS_SUMMARY_KEY, stats.model_dump(mode="json", by_alias=True))
    return stats
