"""
ALOKA Backend — Studio Route Handlers
======================================

What:  GET/POST/PATCH/DELETE /api/studios.
Why:   The studio listing and management surface used by the marketplace UI.
How:   Extracts query parameters and bodies, delegates to StudioService,
       returns the {success, data} envelope. Errors are raised, never
       returned; main.py's handlers shape them.
Who:   Called by the Studios page (listing/filters) and the Add Studio form.

Identifier:
    PATCH and DELETE take the studio id as a query parameter (?id=...),
    which is what the existing front end sends.

Authorization:
    Open by default. With STUDIO_WRITES_REQUIRE_AUTH=true, the three write
    endpoints require a bearer credential whose role is in
    STUDIO_WRITER_ROLES.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from aloka.config import settings
from aloka.database import get_db_session
from aloka.exceptions import AuthenticationError, NotFoundError, PermissionDeniedError
from aloka.schemas.common import ErrorResponse
from aloka.schemas.studio import (
    DeleteResponse,
    StudioCreate,
    StudioEnvelope,
    StudioFilters,
    StudioListResponse,
    StudioUpdate,
)
from aloka.security import get_optional_bearer_token
from aloka.services.auth_service import auth_service
from aloka.services.studio_service import studio_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/studios", tags=["Studios"])


async def require_studio_writer(
    token: Optional[str] = Depends(get_optional_bearer_token),
    db: AsyncSession = Depends(get_db_session),
) -> None:
    """
    Write gate for create/update/delete. A no-op unless
    STUDIO_WRITES_REQUIRE_AUTH is enabled.

    A credential for an account that no longer exists is a 401 here (the
    caller is not authenticated), unlike /api/auth/me which reports 404.
    """
    if not settings.studio_writes_require_auth:
        return
    if token is None:
        raise AuthenticationError(message="Authorization token required")
    try:
        user = await auth_service.authenticate(db, token)
    except NotFoundError:
        raise AuthenticationError(message="User no longer exists")
    if user.role not in settings.studio_writer_roles_set:
        logger.warning("Studio write denied for user %s (role=%s)", user.id, user.role)
        raise PermissionDeniedError(
            message="Only studio owners can manage studios",
            context={"role": user.role},
        )


@router.get(
    "",
    response_model=StudioListResponse,
    responses={500: {"description": "Server error", "model": ErrorResponse}},
    summary="List and search active studios",
    description=(
        "Returns one page of active studios sorted by rating (highest first), "
        "newest first among equal ratings. All filters are optional and combine "
        "with AND. Unparseable numeric filters are ignored."
    ),
)
async def list_studios(
    search: Optional[str] = Query(default=None, description="Full-text search over name, description and city"),
    city: Optional[str] = Query(default=None, description="Case-insensitive substring of the city"),
    min_price: Optional[str] = Query(default=None, alias="minPrice"),
    max_price: Optional[str] = Query(default=None, alias="maxPrice"),
    min_distance: Optional[str] = Query(default=None, alias="minDistance"),
    max_distance: Optional[str] = Query(default=None, alias="maxDistance"),
    min_rating: Optional[str] = Query(default=None, alias="minRating"),
    page: Optional[str] = Query(default=None, description="1-indexed page number (default 1)"),
    limit: Optional[str] = Query(default=None, description="Page size (default 10, no maximum)"),
    db: AsyncSession = Depends(get_db_session),
) -> StudioListResponse:
    """
    Numbers arrive as raw strings on purpose: StudioFilters decides what an
    unusable value means (filter absent), instead of FastAPI rejecting the
    whole request with a 422.
    """
    filters = StudioFilters(
        search=search,
        city=city,
        min_price=min_price,
        max_price=max_price,
        min_distance=min_distance,
        max_distance=max_distance,
        min_rating=min_rating,
        page=page,
        limit=limit,
    )
    return await studio_service.list_studios(db=db, filters=filters)


@router.post(
    "",
    response_model=StudioEnvelope,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_studio_writer)],
    responses={
        400: {"description": "Missing required fields or location", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Create a studio",
)
async def create_studio(
    payload: StudioCreate,
    db: AsyncSession = Depends(get_db_session),
) -> StudioEnvelope:
    studio = await studio_service.create_studio(db=db, payload=payload)
    return StudioEnvelope(data=studio)


@router.patch(
    "",
    response_model=StudioEnvelope,
    dependencies=[Depends(require_studio_writer)],
    responses={
        400: {"description": "Missing id or invalid field", "model": ErrorResponse},
        404: {"description": "Studio not found", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Partially update a studio",
    description="Only the fields present in the body are changed, including falsy values like 0 and false.",
)
async def update_studio(
    payload: StudioUpdate,
    studio_id: Optional[str] = Query(default=None, alias="id"),
    db: AsyncSession = Depends(get_db_session),
) -> StudioEnvelope:
    studio = await studio_service.update_studio(db=db, studio_id=studio_id, payload=payload)
    return StudioEnvelope(data=studio)


@router.delete(
    "",
    response_model=DeleteResponse,
    dependencies=[Depends(require_studio_writer)],
    responses={
        400: {"description": "Missing id", "model": ErrorResponse},
        404: {"description": "Studio not found", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Delete a studio",
    description="Soft delete: the studio disappears from every endpoint and cannot be restored.",
)
async def delete_studio(
    studio_id: Optional[str] = Query(default=None, alias="id"),
    db: AsyncSession = Depends(get_db_session),
) -> DeleteResponse:
    await studio_service.delete_studio(db=db, studio_id=studio_id)
    return DeleteResponse()
