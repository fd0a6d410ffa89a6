from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from projecthub.api.deps import get_db_session
from projecthub.core.rate_limit import READ_LIMIT, WRITE_LIMIT, limiter
from projecthub.schemas.user import UserPayload, UserRead
from projecthub.services import user as user_service

# Only define router here, NO prefix
router = APIRouter(tags=["users"])


# ---------------------------
# List users
# ---------------------------
@router.get("", response_model=List[UserRead])
@limiter.limit(READ_LIMIT)
async def read_users(
        request: Request,
        email: Optional[str] = Query(None, description="Exact email match"),
        db: AsyncSession = Depends(get_db_session)
):
    return await user_service.list_users(db, email=email)


# ---------------------------
# Create user
# ---------------------------
@router.post("", response_model=UserRead, status_code=status.HTTP_201_CREATED)
@limiter.limit(WRITE_LIMIT)
async def create_user(
        request: Request,
        user_in: UserPayload,
        db: AsyncSession = Depends(get_db_session)
):
    return await user_service.create_user(db, user_in)


# ---------------------------
# Get user by ID
# ---------------------------
@router.get("/{user_id}", response_model=UserRead)
@limiter.limit(READ_LIMIT)
async def read_user(
        request: Request,
        user_id: str,
        db: AsyncSession = Depends(get_db_session)
):
    return await user_service.get_user(db, user_id)
