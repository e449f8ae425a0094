from datetime import datetime, timedelta
from typing import Optional, Tuple
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
import calendar
import logging

from coursehub.clock import utcnow
from coursehub.models.user import User
from coursehub.schemas.user import UserCreate
from coursehub.config import get_settings
from coursehub.services import session_service

settings = get_settings()
logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(
    data: dict,
    expires_delta: Optional[timedelta] = None,
    now: Optional[datetime] = None
):
    now = now or utcnow()
    if expires_delta:
        expire = now + expires_delta
    else:
        expire = now + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode = data.copy()
    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    return encoded_jwt


async def authenticate_user(db: AsyncSession, username: str, password: str) -> Optional[User]:
    """Authenticate user by username and password"""
    result = await db.execute(select(User).where(User.username == username))
    user = result.scalar_one_or_none()

    if not user:
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user


async def create_user(db: AsyncSession, user_create: UserCreate, role: str = "student") -> User:
    """Create a new user"""
    # Check if user exists
    result = await db.execute(select(User).where(User.username == user_create.username))
    if result.scalar_one_or_none():
        raise ValueError("Username already exists")

    hashed_password = get_password_hash(user_create.password)
    new_user = User(
        username=user_create.username,
        password_hash=hashed_password,
        role=role
    )
    db.add(new_user)
    await db.commit()
    await db.refresh(new_user)
    return new_user


async def login(
    db: AsyncSession,
    user: User,
    now: Optional[datetime] = None
) -> Tuple[str, str]:
    """
    Open a session for an authenticated user and issue its token.

    Every other session of the account is removed before the token is
    returned, so only the newest login stays valid.

    Returns:
        (access_token, session_id)
    """
    now = now or utcnow()
    expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    session = await session_service.create_session(db, user.id, now + expires_delta, now)
    await session_service.enforce_single_session(db, user.id, session.id)

    access_token = create_access_token(
        data={"sub": user.username, "sid": session.id}, expires_delta=expires_delta, now=now
    )
    return access_token, session.id


def decode_token(token: str) -> Optional[dict]:
    """Signature check only; expiry is judged by is_token_expired against the app clock"""
    try:
        return jwt.decode(
            token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM], options={"verify_exp": False}
        )
    except JWTError:
        return None


def is_token_expired(payload: dict, now: datetime) -> bool:
    exp = payload.get("exp")
    return exp is None or exp <= calendar.timegm(now.utctimetuple())


async def get_current_user_from_token(
    token: str,
    db: AsyncSession,
    now: Optional[datetime] = None
) -> Optional[User]:
    """Get current user from JWT token, provided its session is still live"""
    now = now or utcnow()
    payload = decode_token(token)
    if payload is None or is_token_expired(payload, now):
        return None
    username = payload.get("sub")
    session_id = payload.get("sid")
    if username is None or session_id is None:
        return None

    session = await session_service.get_live_session(db, session_id, now)
    if session is None:
        return None

    result = await db.execute(select(User).where(User.username == username))
    user = result.scalar_one_or_none()
    if user is None or user.id != session.user_id:
        return None
    return user


async def logout(db: AsyncSession, token: str) -> None:
    payload = decode_token(token)
    if payload and payload.get("sid"):
        await session_service.delete_session(db, payload["sid"])
