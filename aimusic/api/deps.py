from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from aimusic.db import get_pool
from aimusic.security import AuthError, decode_access_token, user_id_from_payload
from aimusic.services.music_service import MusicService

bearer = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class CurrentUser:
    id: UUID
    email: str | None = None


async def get_current_user(
    creds: HTTPAuthorizationCredentials | None = Depends(bearer),
    x_user_id: str | None = Header(default=None, alias="X-User-Id"),
) -> CurrentUser:
    """
    Primary: Authorization: Bearer <JWT>
    Fallback (dev): X-User-Id: <uuid>
    """
    if creds and creds.scheme.lower() == "bearer" and creds.credentials:
        try:
            claims = decode_access_token(creds.credentials)
            user_id = user_id_from_payload(claims)
        except AuthError as e:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))
        return CurrentUser(id=user_id, email=claims.get("email"))

    if x_user_id:
        try:
            return CurrentUser(id=UUID(x_user_id))
        except ValueError:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="bad_x_user_id")

    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="not_authenticated")


async def require_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    """
    Admin gate backed by core.user_roles / core.roles.
    Allowed role keys: admin, support, ops.
    """
    pool = await get_pool()
    row = await pool.fetchrow(
        """
        SELECT 1
        FROM core.user_roles ur
        JOIN core.roles r ON r.id = ur.role_id
        WHERE ur.user_id = $1
          AND r.role_key IN ('admin','support','ops')
        LIMIT 1
        """,
        user.id,
    )
    if not row:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="admin_required")
    return user


@lru_cache
def get_music_service() -> MusicService:
    return MusicService()
