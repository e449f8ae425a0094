"""
Server-side login sessions.

A JWT is only honoured while the session row named by its ``sid`` claim
exists, which lets a new login revoke every older token of the account.
"""
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import delete, select
from typing import Optional
from datetime import datetime
import logging
import uuid

from coursehub.clock import utcnow
from coursehub.models.user import UserSession

logger = logging.getLogger(__name__)


async def create_session(
    db: AsyncSession,
    user_id: int,
    expires_at: datetime,
    now: Optional[datetime] = None
) -> UserSession:
    session = UserSession(
        id=str(uuid.uuid4()),
        user_id=user_id,
        created_at=now or utcnow(),
        expires_at=expires_at
    )
    db.add(session)
    await db.commit()
    return session


async def get_live_session(db: AsyncSession, session_id: str, now: datetime) -> Optional[UserSession]:
    result = await db.execute(
        select(UserSession).where(
            UserSession.id == session_id,
            UserSession.expires_at > now
        )
    )
    return result.scalar_one_or_none()


async def enforce_single_session(db: AsyncSession, user_id: int, keep_session_id: str) -> int:
    """
    Delete every session of the account except ``keep_session_id``.

    Runs before the login response is sent. A failure is logged and the
    login proceeds; this is best-effort invalidation.

    Returns:
        int: number of sessions removed (0 on failure)
    """
    try:
        result = await db.execute(
            delete(UserSession).where(
                UserSession.user_id == user_id,
                UserSession.id != keep_session_id
            )
        )
        await db.commit()
    except Exception:
        await db.rollback()
        logger.exception("[Session Management] Error destroying old sessions for user %s", user_id)
        return 0

    removed = result.rowcount or 0
    logger.info(
        "[Session Management] Destroyed %s old session(s) for user %s, keeping session %s",
        removed, user_id, keep_session_id
    )
    return removed


async def delete_session(db: AsyncSession, session_id: str) -> None:
    await db.execute(delete(UserSession).where(UserSession.id == session_id))
    await db.commit()
