from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from coursehub.clock import Clock, get_clock
from coursehub.database import get_db
from coursehub.models.user import User
from coursehub.services import auth_service


def get_token(request: Request) -> Optional[str]:
    """Bearer header if present, otherwise the cookie set at login"""
    header = request.headers.get("Authorization", "")
    if header.lower().startswith("bearer "):
        return header[7:].strip() or None
    return request.cookies.get("access_token")


async def get_optional_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock)
) -> Optional[User]:
    token = get_token(request)
    if not token:
        return None
    return await auth_service.get_current_user_from_token(token, db, clock())


async def get_current_user(user: Optional[User] = Depends(get_optional_user)) -> User:
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def require_roles(*roles: str):
    async def checker(user: User = Depends(get_current_user)) -> User:
        if user.role not in roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        return user
    return checker


require_admin = require_roles("admin")
