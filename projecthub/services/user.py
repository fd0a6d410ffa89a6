from typing import Any, List, Mapping, Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession

from projecthub.api.v1.crud import user as crud_user
from projecthub.core.exceptions import ConflictError, NotFoundError
from projecthub.core.logger import get_logger
from projecthub.schemas.user import UserPayload, UserRead, user_read
from projecthub.schemas.validation import validate_payload

logger = get_logger("user")


async def list_users(db: AsyncSession, email: Optional[str] = None) -> List[UserRead]:
    return [user_read(user) for user in await crud_user.get_all_users(db, email=email)]


async def get_user(db: AsyncSession, user_id: str) -> UserRead:
    user = await crud_user.get_user_by_id(db, user_id)
    if not user:
        raise NotFoundError("User", user_id)
    return user_read(user)


async def create_user(db: AsyncSession, payload: Union[UserPayload, Mapping[str, Any]]) -> UserRead:
    payload = validate_payload(UserPayload, payload)
    if payload.email and await crud_user.get_user_by_email(db, payload.email):
        raise ConflictError("Email already registered", error_code="EMAIL_EXISTS")

    user = await crud_user.create_user(db, {
        "name": payload.name,
        "email": payload.email,
        "image": payload.image,
        "role": payload.role.value,
    })
    logger.info("User created", extra={"user_id": user.id})
    return user_read(user)
