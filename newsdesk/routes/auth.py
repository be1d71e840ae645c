"""
Newsdesk Backend — Auth Routes
================================

    POST /api/auth/register        → 201 {token, user}   (409 if email taken)
    POST /api/auth/login           → 200 {token, user}   (401 on bad credentials)
    POST /api/auth/register-admin  → 201 {message, user} (admin bearer token)
    GET  /api/auth/me              → current user
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from newsdesk.database import get_db_session
from newsdesk.dependencies import get_current_user, require_admin
from newsdesk.models import User
from newsdesk.schemas.auth import (
    AdminCreatedResponse,
    LoginRequest,
    RegisterRequest,
    TokenResponse,
    UserResponse,
)
from newsdesk.schemas.common import ErrorResponse
from newsdesk.services.auth_service import auth_service, public_user

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post(
    "/register",
    status_code=201,
    response_model=TokenResponse,
    responses={409: {"description": "Email already registered", "model": ErrorResponse}},
)
async def register(body: RegisterRequest, db: AsyncSession = Depends(get_db_session)):
    return await auth_service.register(db, body.model_dump())


@router.post(
    "/login",
    response_model=TokenResponse,
    responses={401: {"description": "Invalid credentials", "model": ErrorResponse}},
)
async def login(body: LoginRequest, db: AsyncSession = Depends(get_db_session)):
    return await auth_service.login(db, body.email, body.password)


@router.post(
    "/register-admin",
    status_code=201,
    response_model=AdminCreatedResponse,
    responses={
        401: {"description": "Not authenticated", "model": ErrorResponse},
        403: {"description": "Caller is not an admin", "model": ErrorResponse},
        409: {"description": "Email already registered", "model": ErrorResponse},
    },
)
async def register_admin(
    body: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
    _admin: User = Depends(require_admin),
):
    return await auth_service.register_admin(db, body.model_dump())


@router.get(
    "/me",
    response_model=UserResponse,
    responses={401: {"description": "Not authenticated", "model": ErrorResponse}},
)
async def me(user: User = Depends(get_current_user)):
    return public_user(user)
