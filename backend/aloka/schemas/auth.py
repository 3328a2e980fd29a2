"""
ALOKA Backend — Auth Request/Response Schemas
==============================================

Presence of name/email/password is checked by AuthService so a 400 can list
every missing field; the models here only fix the types.
"""

import uuid
from typing import Optional

from pydantic import Field

from aloka.schemas.common import CamelModel


class SignupRequest(CamelModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    # client (default) or videographer
    role: Optional[str] = None


class LoginRequest(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None


class UserPublic(CamelModel):
    """Account summary returned alongside a freshly issued credential."""
    id: uuid.UUID
    name: str
    email: str
    role: str


class UserProfile(UserPublic):
    """Returned by GET /api/auth/me."""
    avatar: Optional[str] = None


class AuthResponse(CamelModel):
    success: bool = True
    token: str = Field(description="Signed bearer credential")
    user: UserPublic
