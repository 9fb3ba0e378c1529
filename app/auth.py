from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.db.session import get_session
from sqlalchemy.ext.asyncio import AsyncSession
from app.db.models.user import User, RoleEnum
from app.db.repositories import get_user
from app.core.security import decode_token
from app.core.exceptions import UnauthorizedError, NotFoundError
from app.core.logging import get_logger

# auto_error=False so a missing header is a 401 like any other bad credential
security = HTTPBearer(auto_error=False)

log = get_logger("auth")


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    session: AsyncSession = Depends(get_session)
) -> User:
    """
    Resolve the acting user from the bearer token.

    Verification is signature and expiry only; the subject must still exist.

    Raises:
        UnauthorizedError: If the token is missing, invalid or expired
    """
    if credentials is None:
        raise UnauthorizedError("Not authenticated")

    try:
        payload = decode_token(credentials.credentials)
    except ValueError as e:
        log.warning(f"Rejected bearer token: {e}")
        raise UnauthorizedError()

    if payload.get("type") != "access":
        raise UnauthorizedError("Invalid token type")

    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        raise UnauthorizedError()

    user = await get_user(session, user_id)
    if not user:
        raise UnauthorizedError()
    return user


def ensure_owner(
    owner_id: int,
    acting_user: User,
    resource: str,
    resource_id: int,
    allow_admin: bool = False,
) -> None:
    """
    Gate a mutation on an owned resource.

    A caller who is not the owner gets the same NotFoundError as for an
    unknown id, so existence is never confirmed to them.

    Raises:
        NotFoundError: If acting_user may not touch the resource
    """
    if owner_id == acting_user.id:
        return
    if allow_admin and acting_user.role == RoleEnum.admin:
        return
    log.warning(f"User {acting_user.id} denied access to {resource} {resource_id}")
    raise NotFoundError(f"{resource} with ID {resource_id} not found")
