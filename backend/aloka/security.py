"""
ALOKA Backend — Credential Primitives
======================================

What:  Password hashing (bcrypt) and bearer credential signing (PyJWT, HS256).
Why:   Both are delegated to maintained libraries; this module only fixes the
       parameters (cost factor, claims, validity window) in one place.
Who:   AuthService (signup, login, identity) and the studio write gate.

Credential claims:
    sub    user id (string UUID)
    email  account email at issue time
    role   account role at issue time; the UI reads it to decide which
           affordances to render
    iat    issued-at (unix seconds)
    exp    iat + JWT_EXPIRE_DAYS
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from aloka.config import settings
from aloka.exceptions import AuthenticationError


# bcrypt only looks at the first 72 bytes; longer passwords are rejected
# at signup instead of being silently truncated
BCRYPT_MAX_PASSWORD_BYTES = 72


def hash_password(password: str) -> str:
    """bcrypt hash with the configured cost factor. CPU-bound: call from a threadpool."""
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Constant-time check of a password against a stored bcrypt hash."""
    encoded = password.encode("utf-8")
    if len(encoded) > BCRYPT_MAX_PASSWORD_BYTES:
        return False
    try:
        return bcrypt.checkpw(encoded, password_hash.encode("utf-8"))
    except ValueError:
        # Corrupt or non-bcrypt hash in the row
        return False


def create_access_token(
    user_id: str,
    email: str,
    role: str,
    now: Optional[datetime] = None,
) -> str:
    """Sign a credential for the given account."""
    issued_at = now or datetime.now(timezone.utc)
    expires_at = issued_at + timedelta(days=settings.jwt_expire_days)
    payload = {
        "sub": user_id,
        "email": email,
        "role": role,
        "iat": int(issued_at.timestamp()),
        "exp": int(expires_at.timestamp()),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Verify signature and expiry, return the claims.

    Raises:
        AuthenticationError: expired, forged, malformed, or missing `sub`
    """
    try:
        claims = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError:
        raise AuthenticationError(message="Token has expired")
    except jwt.PyJWTError as exc:
        raise AuthenticationError(
            message="Invalid token",
            context={"reason": type(exc).__name__},
        ) from exc
    return claims


# auto_error=False: a missing header must produce our 401 body, not
# FastAPI's default 403
bearer_scheme = HTTPBearer(auto_error=False)


def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> str:
    """FastAPI dependency: the raw token from `Authorization: Bearer <token>`."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError(message="Authorization token required")
    return credentials.credentials


def get_optional_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[str]:
    """Like get_bearer_token, but None instead of 401 when the header is absent."""
    if credentials is None or not credentials.credentials:
        return None
    return credentials.credentials
