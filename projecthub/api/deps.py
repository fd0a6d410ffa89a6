from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from projecthub.core.exceptions import AuthenticationError
from projecthub.core.security import decode_access_token
from projecthub.db.session import get_db_session  # noqa: F401

bearer_scheme = HTTPBearer(auto_error=False)


async def get_session_user_id(
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
) -> Optional[str]:
    """
    User id of the caller's session, or None when no token was sent.
    A token that is present but invalid or expired is rejected.
    """
    if credentials is None:
        return None
    user_id = decode_access_token(credentials.credentials)
    if user_id is None:
        raise AuthenticationError()
    return user_id
