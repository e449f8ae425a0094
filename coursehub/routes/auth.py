from fastapi import APIRouter, Depends, Form, HTTPException, Request, status
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from coursehub.clock import Clock, get_clock
from coursehub.database import get_db
from coursehub.models.user import User
from coursehub.routes.deps import get_current_user, get_token
from coursehub.schemas.user import UserCreate, UserLogin, UserResponse, Token
from coursehub.services import auth_service

router = APIRouter(tags=["auth"])


@router.post("/api/auth/register", response_model=UserResponse)
async def register(user_create: UserCreate, db: AsyncSession = Depends(get_db)):
    """Register a new student account"""
    try:
        user = await auth_service.create_user(db, user_create)
        return user
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/api/auth/login", response_model=Token)
async def login(
    user_login: UserLogin,
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock)
):
    """Log in; every earlier session of the account is revoked"""
    user = await auth_service.authenticate_user(db, user_login.username, user_login.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    access_token, _ = await auth_service.login(db, user, clock())

    response = JSONResponse({"access_token": access_token, "token_type": "bearer"})
    response.set_cookie(key="access_token", value=access_token, httponly=True)
    return response


@router.post("/auth/login-form")
async def login_form(
    username: str = Form(...),
    password: str = Form(...),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock)
):
    """Login through an HTML form"""
    user = await auth_service.authenticate_user(db, username, password)
    if not user:
        raise HTTPException(status_code=401, detail="Incorrect username or password")

    access_token, _ = await auth_service.login(db, user, clock())

    response = RedirectResponse(url="/api/auth/me", status_code=302)
    response.set_cookie(key="access_token", value=access_token, httponly=True)
    return response


@router.post("/api/auth/logout")
async def logout(request: Request, db: AsyncSession = Depends(get_db)):
    token = get_token(request)
    if token:
        await auth_service.logout(db, token)
    response = JSONResponse({"status": "logged_out"})
    response.delete_cookie("access_token")
    return response


@router.get("/api/auth/me", response_model=UserResponse)
async def me(user: User = Depends(get_current_user)):
    return user
