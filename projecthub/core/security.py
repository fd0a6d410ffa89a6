from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt

from projecthub.core.config import settings


# ---------------------------
# JWT Token Utilities
# ---------------------------
def create_access_token(user_id: str, expires_delta: Optional[timedelta] = None, **claims) -> str:
    """
    Generate a JWT token for ``user_id``.

    Tokens are normally minted by the identity provider; this helper exists
    for local development and tests and produces the same claim layout.
    """
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode = dict(claims)
    to_encode.update({"exp": expire, "sub": str(user_id)})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> Optional[str]:
    """
    Decode a JWT token and return the user id stored in ``sub``.
    If invalid or expired, return None.
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None
    user_id = payload.get("sub")
    if not user_id:
        return None
    return str(user_id)
