"""
ALOKA Backend — Auth Service
=============================

What:  Signup, login, and resolving a bearer credential to an account.
Why:   The front end decides which affordances to render (e.g. "Add Studio"
       for videographers) from the caller's profile; the optional studio
       write gate uses the same lookup.
How:   bcrypt + PyJWT via aloka.security; accounts via the ORM.
Who:   Called by /api/auth/* routes and routes.studios.require_studio_writer.

Error mapping:
    missing name/email/password       → ValidationError (400)
    email already registered          → ConflictError (409)
    wrong email or password           → AuthenticationError (401)
    bad/expired credential            → AuthenticationError (401)
    credential for a deleted account  → NotFoundError (404)
"""

import logging
import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from aloka.exceptions import (
    AlokaError,
    AuthenticationError,
    ConflictError,
    DatabaseError,
    NotFoundError,
    ValidationError,
)
from aloka.models.user import ROLE_CLIENT, SIGNUP_ROLES, User
from aloka.schemas.auth import (
    AuthResponse,
    LoginRequest,
    SignupRequest,
    UserProfile,
    UserPublic,
)
from aloka.security import (
    BCRYPT_MAX_PASSWORD_BYTES,
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)

logger = logging.getLogger(__name__)

SIGNUP_REQUIRED_FIELDS = ["name", "email", "password"]
LOGIN_REQUIRED_FIELDS = ["email", "password"]

INVALID_LOGIN_MESSAGE = "Invalid email or password"


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _missing(values: dict, required: list) -> list:
    return [name for name in required if not values.get(name) or not str(values[name]).strip()]


class AuthService:
    """Stateless account operations. All methods take the request's session."""

    async def signup(self, db: AsyncSession, payload: SignupRequest) -> AuthResponse:
        """
        Register an account and return a credential for it.

        The password is never logged, only its absence.
        """
        missing = _missing(payload.model_dump(), SIGNUP_REQUIRED_FIELDS)
        if missing:
            raise ValidationError(
                message="Name, email, and password are required",
                required=SIGNUP_REQUIRED_FIELDS,
                missing=missing,
            )
        if len(payload.password.encode("utf-8")) > BCRYPT_MAX_PASSWORD_BYTES:
            raise ValidationError(
                message=f"Password must be at most {BCRYPT_MAX_PASSWORD_BYTES} bytes",
                field="password",
            )
        role = payload.role or ROLE_CLIENT
        if role not in SIGNUP_ROLES:
            raise ValidationError(
                message=f"Role must be one of: {', '.join(sorted(SIGNUP_ROLES))}",
                field="role",
            )

        email = normalize_email(payload.email)
        try:
            existing = await db.execute(select(User.id).where(User.email == email))
            if existing.scalar_one_or_none() is not None:
                logger.info("Signup rejected, email already registered: %s", email)
                raise ConflictError(message="User with this email already exists")

            user = User(
                name=payload.name.strip(),
                email=email,
                password_hash=await run_in_threadpool(hash_password, payload.password),
                role=role,
            )
            db.add(user)
            await db.flush()
        except AlokaError:
            raise
        except IntegrityError:
            # Lost a race with a concurrent signup for the same email
            raise ConflictError(message="User with this email already exists")
        except Exception as e:
            logger.error("Signup failed: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Internal server error",
                context={"operation": "signup", "original_error": str(e)},
            )

        logger.info("User created: %s (%s, role=%s)", user.id, user.email, user.role)
        return self._auth_response(user)

    async def login(self, db: AsyncSession, payload: LoginRequest) -> AuthResponse:
        """Exchange email + password for a fresh credential."""
        missing = _missing(payload.model_dump(), LOGIN_REQUIRED_FIELDS)
        if missing:
            raise ValidationError(
                message="Email and password are required",
                required=LOGIN_REQUIRED_FIELDS,
                missing=missing,
            )

        user = await self._find_by_email(db, normalize_email(payload.email))
        if user is None or not await run_in_threadpool(
            verify_password, payload.password, user.password_hash
        ):
            raise AuthenticationError(message=INVALID_LOGIN_MESSAGE)

        logger.info("User %s logged in", user.id)
        return self._auth_response(user)

    async def authenticate(self, db: AsyncSession, token: str) -> User:
        """
        Resolve a bearer credential to a live account.

        Raises:
            AuthenticationError: bad/expired credential, non-UUID subject
            NotFoundError:       the account no longer exists
        """
        claims = decode_access_token(token)
        try:
            user_id = uuid.UUID(str(claims["sub"]))
        except ValueError:
            raise AuthenticationError(message="Invalid token")

        try:
            result = await db.execute(select(User).where(User.id == user_id))
            user = result.scalar_one_or_none()
        except Exception as e:
            logger.error("Identity lookup failed: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Internal server error",
                context={"operation": "authenticate", "original_error": str(e)},
            )

        if user is None:
            raise NotFoundError(resource="user")
        return user

    async def get_profile(self, db: AsyncSession, token: str) -> UserProfile:
        """Reduced profile of the caller: id, name, email, role, avatar."""
        user = await self.authenticate(db, token)
        return UserProfile.model_validate(user)

    # ── Helpers ───────────────────────────────────────────────────────────

    async def _find_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        try:
            result = await db.execute(select(User).where(User.email == email))
            return result.scalar_one_or_none()
        except Exception as e:
            logger.error("Account lookup failed: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Internal server error",
                context={"operation": "login", "original_error": str(e)},
            )

    @staticmethod
    def _auth_response(user: User) -> AuthResponse:
        token = create_access_token(str(user.id), user.email, user.role)
        return AuthResponse(token=token, user=UserPublic.model_validate(user))


# ── Singleton Instance ────────────────────────────────────────────────────
auth_service = AuthService()
