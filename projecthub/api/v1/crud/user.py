from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from projecthub.models.user import User


# ----- Create a new user -----
async def create_user(db: AsyncSession, user_data: dict) -> User:
    user = User(**user_data)
    db.add(user)
    await db.commit()
    return user


# ----- Get user by id -----
async def get_user_by_id(db: AsyncSession, user_id: str) -> Optional[User]:
    """
    Retrieve a user by their unique ID.
    Returns None if user does not exist.
    """
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalars().first()


# ----- Get user by email -----
async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


# ----- Get or create user by email -----
async def get_or_create_user_by_email(db: AsyncSession, email: str, defaults: dict) -> tuple:
    """
    Return ``(user, created)`` for ``email``.

    A concurrent insert of the same email loses on the unique constraint;
    the loser rolls back and reads the winner's row.
    """
    user = await get_user_by_email(db, email)
    if user:
        return user, False
    try:
        user = await create_user(db, {**defaults, "email": email})
    except IntegrityError:
        await db.rollback()
        user = await get_user_by_email(db, email)
        if user is None:
            raise
        return user, False
    return user, True


# ----- Get all users -----
async def get_all_users(db: AsyncSession, email: Optional[str] = None) -> List[User]:
    query = select(User).order_by(User.created_at.asc())
    if email:
        query = query.where(User.email == email)
    result = await db.execute(query)
    return list(result.scalars().all())
