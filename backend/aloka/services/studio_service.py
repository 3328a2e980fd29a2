"""
ALOKA Backend — Studio Service (Business Logic)
================================================

What:  Listing, creation, partial update and soft deletion of studios.
Why:   Keeps validation rules and persistence out of the route handlers.
How:   Each method receives the request's AsyncSession, works through the ORM
       and returns response schemas. Flushes only; the session dependency
       commits.
Who:   Called by the /api/studios route handlers.

Validation split:
    Pydantic (schemas/studio.py) rejects wrong *shapes*: a non-numeric
    perHourCharge, a rating of 7, a string where a list belongs.
    This service rejects wrong *presence*: missing required fields, partial
    locations, explicit nulls. It runs before anything touches the session,
    so a rejected create never reaches the database.

Error Handling Strategy:
    Application errors (ValidationError, NotFoundError) propagate unchanged.
    Anything else is logged and wrapped in DatabaseError (500).
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, List, Optional

from pydantic.alias_generators import to_camel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from aloka.exceptions import DatabaseError, NotFoundError, ValidationError
from aloka.models.studio import Studio
from aloka.schemas.studio import (
    LocationInput,
    StudioCreate,
    StudioFilters,
    StudioListData,
    StudioListResponse,
    StudioResponse,
    StudioUpdate,
)
from aloka.services.studio_query import (
    build_count_query,
    build_listing_query,
    build_pagination,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_DISTANCE = 50.0

# Wire names, as the client sees them in the 400 response
REQUIRED_FIELDS = ["studioName", "description", "address", "perHourCharge"]
LOCATION_FIELDS = ["city", "state", "zipCode"]

# Text fields that must stay non-blank on update
_REQUIRED_TEXT = {"studio_name", "description", "address"}


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _missing_location_fields(location: Optional[LocationInput]) -> List[str]:
    if location is None:
        return list(LOCATION_FIELDS)
    values = {"city": location.city, "state": location.state, "zipCode": location.zip_code}
    return [name for name in LOCATION_FIELDS if _is_blank(values[name])]


def _require_complete_location(location: Optional[LocationInput]) -> LocationInput:
    """Location is all-or-nothing: city, state and zipCode together."""
    missing = _missing_location_fields(location)
    if missing:
        raise ValidationError(
            message="Location details are required",
            field="location",
            required=LOCATION_FIELDS,
            missing=missing,
        )
    return location


def _wrap_unexpected(operation: str, exc: Exception, **context: Any) -> DatabaseError:
    logger.error("Database error in %s: %s", operation, str(exc), exc_info=True)
    return DatabaseError(
        message=f"Failed to {operation.replace('_', ' ')}",
        context={
            "operation": operation,
            "error_type": type(exc).__name__,
            "original_error": str(exc),
            **context,
        },
    )


class StudioService:
    """
    Business logic layer for studio operations.

    Responsibilities:
        - list_studios():  filtered, sorted, paginated listing
        - create_studio(): required-field checks, defaults, insert
        - update_studio(): partial merge of the fields present in the payload
        - delete_studio(): soft delete (is_active=False, deleted_at=now)
    """

    async def list_studios(self, db: AsyncSession, filters: StudioFilters) -> StudioListResponse:
        """
        One page of active studios plus pagination metadata.

        Two queries share one predicate: the page itself, and a COUNT without
        offset/limit for the metadata. See studio_query for the rules.
        """
        try:
            result = await db.execute(build_listing_query(filters))
            studios = list(result.scalars().all())

            count_result = await db.execute(build_count_query(filters))
            total_count = count_result.scalar() or 0
        except Exception as e:
            raise _wrap_unexpected("fetch_studios", e)

        return StudioListResponse(
            data=StudioListData(
                studios=[StudioResponse.model_validate(studio) for studio in studios],
                pagination=build_pagination(filters.page, filters.limit, total_count),
            )
        )

    async def create_studio(self, db: AsyncSession, payload: StudioCreate) -> StudioResponse:
        """
        Validate presence, apply defaults, insert.

        Defaults:
            rating=0, is_active=True (client values are not accepted)
            max_distance=50 unless a positive number was supplied
            services / equipment = []
            images = [{url: imageUrl}] or []

        Raises:
            ValidationError: a required field or location part is missing
            DatabaseError:   the insert failed
        """
        values = {
            "studioName": payload.studio_name,
            "description": payload.description,
            "address": payload.address,
            "perHourCharge": payload.per_hour_charge,
        }
        missing = [name for name in REQUIRED_FIELDS if _is_blank(values[name])]
        if missing:
            raise ValidationError(
                message="Missing required fields",
                required=REQUIRED_FIELDS,
                missing=missing,
            )
        location = _require_complete_location(payload.location)

        studio = Studio(
            studio_name=payload.studio_name.strip(),
            description=payload.description.strip(),
            address=payload.address.strip(),
            city=location.city.strip(),
            state=location.state.strip(),
            zip_code=location.zip_code.strip(),
            per_hour_charge=float(payload.per_hour_charge),
            max_distance=payload.max_distance or DEFAULT_MAX_DISTANCE,
            images=[{"url": payload.image_url}] if payload.image_url else [],
            services=list(payload.services or []),
            equipment=[item.model_dump() for item in payload.equipment or []],
            rating=0.0,
            is_active=True,
        )

        try:
            db.add(studio)
            await db.flush()
        except Exception as e:
            raise _wrap_unexpected("create_studio", e)

        logger.info("Studio created: %s (%s, %s)", studio.id, studio.studio_name, studio.city)
        return StudioResponse.model_validate(studio)

    async def update_studio(
        self,
        db: AsyncSession,
        studio_id: Optional[str],
        payload: StudioUpdate,
    ) -> StudioResponse:
        """
        Apply every field present in the payload, and nothing else.

        Presence comes from `payload.model_fields_set`, so {"rating": 0} and
        {"isActive": false} are applied like any other value. An empty body
        is a no-op that returns the current record.

        Raises:
            ValidationError: no id, explicit null, blank required text,
                             incomplete location
            NotFoundError:   unknown, malformed or soft-deleted id
        """
        studio_uuid = self._parse_studio_id(studio_id)
        changes = self._collect_changes(payload)
        studio = await self._get_live_studio(db, studio_uuid, studio_id)

        for attr, value in changes.items():
            setattr(studio, attr, value)

        try:
            await db.flush()
        except Exception as e:
            raise _wrap_unexpected("update_studio", e, studio_id=studio_id)

        logger.info("Studio %s updated: %s", studio.id, sorted(changes))
        return StudioResponse.model_validate(studio)

    async def delete_studio(self, db: AsyncSession, studio_id: Optional[str]) -> None:
        """
        Soft delete: the row stays for auditing but is gone for every endpoint.

        Raises:
            ValidationError: no id
            NotFoundError:   unknown, malformed or already-deleted id
        """
        studio_uuid = self._parse_studio_id(studio_id)
        studio = await self._get_live_studio(db, studio_uuid, studio_id)

        studio.is_active = False
        studio.deleted_at = datetime.now(timezone.utc)
        try:
            await db.flush()
        except Exception as e:
            raise _wrap_unexpected("delete_studio", e, studio_id=studio_id)

        logger.info("Studio %s soft-deleted", studio.id)

    # ── Helpers ───────────────────────────────────────────────────────────

    @staticmethod
    def _parse_studio_id(studio_id: Optional[str]) -> Optional[uuid.UUID]:
        """
        None for a malformed id (it cannot resolve, so callers 404);
        ValidationError when no id was given at all.
        """
        if _is_blank(studio_id):
            raise ValidationError(message="Studio ID is required", field="id")
        try:
            return uuid.UUID(studio_id.strip())
        except ValueError:
            return None

    async def _get_live_studio(
        self,
        db: AsyncSession,
        studio_uuid: Optional[uuid.UUID],
        raw_id: Optional[str],
    ) -> Studio:
        if studio_uuid is None:
            raise NotFoundError(resource="studio", resource_id=raw_id)
        try:
            result = await db.execute(
                select(Studio).where(Studio.id == studio_uuid, Studio.deleted_at.is_(None))
            )
            studio = result.scalar_one_or_none()
        except Exception as e:
            raise _wrap_unexpected("fetch_studio", e, studio_id=raw_id)

        if studio is None:
            raise NotFoundError(resource="studio", resource_id=raw_id)
        return studio

    @staticmethod
    def _collect_changes(payload: StudioUpdate) -> dict:
        """Translate the present fields of a partial update into column values."""
        changes: dict = {}
        for field in sorted(payload.model_fields_set):
            value = getattr(payload, field)
            wire_name = to_camel(field)

            if value is None:
                raise ValidationError(message=f"'{wire_name}' cannot be null", field=wire_name)

            if field == "location":
                location = _require_complete_location(value)
                changes["city"] = location.city.strip()
                changes["state"] = location.state.strip()
                changes["zip_code"] = location.zip_code.strip()
            elif field in _REQUIRED_TEXT:
                if _is_blank(value):
                    raise ValidationError(message=f"'{wire_name}' cannot be empty", field=wire_name)
                changes[field] = value.strip()
            elif field == "equipment":
                changes[field] = [item.model_dump() for item in value]
            elif field == "services":
                changes[field] = list(value)
            else:
                changes[field] = value
        return changes


# ── Singleton Instance ────────────────────────────────────────────────────
# StudioService is stateless; one instance serves every request
studio_service = StudioService()
