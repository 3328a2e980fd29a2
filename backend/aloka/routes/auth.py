"""
ALOKA Backend — Auth Route Handlers
====================================

What:  POST /api/auth/signup, POST /api/auth/login, GET /api/auth/me.
Why:   The UI needs to know who the caller is and which role they have.
How:   Thin wrappers over AuthService; credentials travel as
       `Authorization: Bearer <token>`.

Never log request bodies here: they carry passwords.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from aloka.database import get_db_session
from aloka.schemas.auth import AuthResponse, LoginRequest, SignupRequest, UserProfile
from aloka.schemas.common import ErrorResponse
from aloka.security import get_bearer_token
from aloka.services.auth_service import auth_service

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post(
    "/signup",
    response_model=AuthResponse,
    responses={
        400: {"description": "Missing fields or invalid role", "model": ErrorResponse},
        409: {"description": "Email already registered", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Register an account",
)
async def signup(
    payload: SignupRequest,
    db: AsyncSession = Depends(get_db_session),
) -> AuthResponse:
    return await auth_service.signup(db=db, payload=payload)


@router.post(
    "/login",
    response_model=AuthResponse,
    responses={
        400: {"description": "Missing fields", "model": ErrorResponse},
        401: {"description": "Invalid email or password", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Sign in with email and password",
)
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> AuthResponse:
    return await auth_service.login(db=db, payload=payload)


@router.get(
    "/me",
    response_model=UserProfile,
    responses={
        401: {"description": "Missing, invalid or expired credential", "model": ErrorResponse},
        404: {"description": "Account no longer exists", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Resolve the caller's identity",
)
async def me(
    token: str = Depends(get_bearer_token),
    db: AsyncSession = Depends(get_db_session),
) -> UserProfile:
    return await auth_service.get_profile(db=db, token=token)
