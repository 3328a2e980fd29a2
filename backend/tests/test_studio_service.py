"""
ALOKA Backend — Studio Service Unit Tests
==========================================

What:  Tests for StudioService presence rules, defaults and error wrapping.
How:   Uses mock DB sessions (no real DB); end-to-end behavior lives in
       test_studio_routes.py.

What we test:
    ✅ Create: every missing required field is enumerated, nothing is added
    ✅ Create: defaults for maxDistance, rating, isActive, lists
    ✅ Update: presence via model_fields_set, falsy values applied
    ✅ Update/Delete: missing id → 400, malformed/unknown id → 404
    ✅ Unexpected store failures become DatabaseError
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from aloka.exceptions import DatabaseError, NotFoundError, ValidationError
from aloka.models.studio import Studio
from aloka.schemas.studio import StudioCreate, StudioFilters, StudioUpdate
from aloka.services.studio_service import StudioService


def _studio(**overrides) -> Studio:
    now = datetime.now(timezone.utc)
    values = dict(
        id=uuid4(),
        studio_name="Loft A",
        description="x",
        address="1 Main",
        city="X",
        state="Y",
        zip_code="0",
        per_hour_charge=100.0,
        max_distance=50.0,
        rating=4.0,
        services=["Photography"],
        equipment=[],
        images=None,
        is_active=True,
        deleted_at=None,
        created_at=now,
        updated_at=now,
    )
    values.update(overrides)
    return Studio(**values)


def _valid_create(**overrides) -> dict:
    body = {
        "studioName": "Loft A",
        "description": "x",
        "address": "1 Main",
        "location": {"city": "X", "state": "Y", "zipCode": "0"},
        "perHourCharge": 100,
    }
    body.update(overrides)
    return body


def _stamp_on_flush(session):
    """Emulate the column defaults a real flush would fill in."""
    def _flush():
        studio = session.add.call_args[0][0]
        now = datetime.now(timezone.utc)
        studio.id = studio.id or uuid4()
        studio.created_at = now
        studio.updated_at = now
    session.flush = AsyncMock(side_effect=_flush)


def _returning(session, studio):
    result = MagicMock()
    result.scalar_one_or_none.return_value = studio
    session.execute = AsyncMock(return_value=result)


class TestCreateStudio:

    def setup_method(self):
        self.service = StudioService()

    @pytest.mark.asyncio
    async def test_missing_fields_are_enumerated(self, mock_db_session):
        payload = StudioCreate.model_validate({"studioName": "Loft A", "description": "  "})

        with pytest.raises(ValidationError) as exc_info:
            await self.service.create_studio(mock_db_session, payload)

        assert exc_info.value.message == "Missing required fields"
        assert exc_info.value.context["required"] == [
            "studioName", "description", "address", "perHourCharge",
        ]
        assert exc_info.value.context["missing"] == ["description", "address", "perHourCharge"]
        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_partial_location_is_rejected(self, mock_db_session):
        payload = StudioCreate.model_validate(
            _valid_create(location={"state": "Y", "zipCode": "0"})
        )

        with pytest.raises(ValidationError) as exc_info:
            await self.service.create_studio(mock_db_session, payload)

        assert exc_info.value.message == "Location details are required"
        assert exc_info.value.context["missing"] == ["city"]
        mock_db_session.add.assert_not_called()
        mock_db_session.flush.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_defaults_applied(self, mock_db_session):
        _stamp_on_flush(mock_db_session)
        payload = StudioCreate.model_validate(_valid_create())

        result = await self.service.create_studio(mock_db_session, payload)

        assert result.max_distance == 50
        assert result.rating == 0
        assert result.is_active is True
        assert result.images == []
        assert result.services == []
        assert result.equipment == []
        assert result.location.city == "X"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw", [0, -5, "far", ""])
    async def test_non_positive_max_distance_defaults(self, mock_db_session, raw):
        _stamp_on_flush(mock_db_session)
        payload = StudioCreate.model_validate(_valid_create(maxDistance=raw))

        result = await self.service.create_studio(mock_db_session, payload)

        assert result.max_distance == 50

    @pytest.mark.asyncio
    async def test_image_url_is_wrapped(self, mock_db_session):
        _stamp_on_flush(mock_db_session)
        payload = StudioCreate.model_validate(
            _valid_create(imageUrl="https://img.example/a.jpg", maxDistance=25)
        )

        result = await self.service.create_studio(mock_db_session, payload)

        assert [image.url for image in result.images] == ["https://img.example/a.jpg"]
        assert result.max_distance == 25

    @pytest.mark.asyncio
    async def test_flush_failure_becomes_database_error(self, mock_db_session):
        mock_db_session.flush = AsyncMock(side_effect=RuntimeError("connection reset"))
        payload = StudioCreate.model_validate(_valid_create())

        with pytest.raises(DatabaseError) as exc_info:
            await self.service.create_studio(mock_db_session, payload)

        assert exc_info.value.context["original_error"] == "connection reset"


class TestUpdateStudio:

    def setup_method(self):
        self.service = StudioService()

    @pytest.mark.asyncio
    async def test_rating_zero_is_applied(self, mock_db_session):
        studio = _studio(rating=4.5)
        _returning(mock_db_session, studio)

        result = await self.service.update_studio(
            mock_db_session, str(studio.id), StudioUpdate.model_validate({"rating": 0})
        )

        assert result.rating == 0
        assert studio.rating == 0
        mock_db_session.flush.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_is_active_false_is_applied(self, mock_db_session):
        studio = _studio()
        _returning(mock_db_session, studio)

        result = await self.service.update_studio(
            mock_db_session, str(studio.id), StudioUpdate.model_validate({"isActive": False})
        )

        assert result.is_active is False

    @pytest.mark.asyncio
    async def test_absent_fields_untouched(self, mock_db_session):
        studio = _studio(per_hour_charge=100, services=["Photography"])
        _returning(mock_db_session, studio)

        await self.service.update_studio(
            mock_db_session, str(studio.id), StudioUpdate.model_validate({"studioName": "Loft B"})
        )

        assert studio.studio_name == "Loft B"
        assert studio.per_hour_charge == 100
        assert studio.services == ["Photography"]

    @pytest.mark.asyncio
    async def test_location_replaced_as_a_unit(self, mock_db_session):
        studio = _studio()
        _returning(mock_db_session, studio)

        await self.service.update_studio(
            mock_db_session,
            str(studio.id),
            StudioUpdate.model_validate({"location": {"city": "Pune", "state": "MH", "zipCode": "411001"}}),
        )

        assert (studio.city, studio.state, studio.zip_code) == ("Pune", "MH", "411001")

    @pytest.mark.asyncio
    async def test_explicit_null_rejected(self, mock_db_session):
        with pytest.raises(ValidationError) as exc_info:
            await self.service.update_studio(
                mock_db_session, str(uuid4()), StudioUpdate.model_validate({"perHourCharge": None})
            )

        assert exc_info.value.context["field"] == "perHourCharge"
        mock_db_session.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_blank_name_rejected(self, mock_db_session):
        with pytest.raises(ValidationError):
            await self.service.update_studio(
                mock_db_session, str(uuid4()), StudioUpdate.model_validate({"studioName": " "})
            )

    @pytest.mark.asyncio
    @pytest.mark.parametrize("studio_id", [None, "", "   "])
    async def test_missing_id_is_validation_error(self, mock_db_session, studio_id):
        with pytest.raises(ValidationError) as exc_info:
            await self.service.update_studio(mock_db_session, studio_id, StudioUpdate())

        assert exc_info.value.message == "Studio ID is required"

    @pytest.mark.asyncio
    async def test_malformed_id_is_not_found(self, mock_db_session):
        with pytest.raises(NotFoundError):
            await self.service.update_studio(mock_db_session, "not-a-uuid", StudioUpdate())

        mock_db_session.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_id_is_not_found(self, mock_db_session):
        _returning(mock_db_session, None)

        with pytest.raises(NotFoundError):
            await self.service.update_studio(
                mock_db_session, str(uuid4()), StudioUpdate.model_validate({"rating": 3})
            )


class TestDeleteStudio:

    def setup_method(self):
        self.service = StudioService()

    @pytest.mark.asyncio
    async def test_soft_delete(self, mock_db_session):
        studio = _studio()
        _returning(mock_db_session, studio)

        await self.service.delete_studio(mock_db_session, str(studio.id))

        assert studio.is_active is False
        assert studio.deleted_at is not None
        mock_db_session.flush.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unknown_id_is_not_found(self, mock_db_session):
        _returning(mock_db_session, None)

        with pytest.raises(NotFoundError) as exc_info:
            await self.service.delete_studio(mock_db_session, str(uuid4()))

        assert exc_info.value.message.startswith("Studio with ID")
        mock_db_session.flush.assert_not_awaited()


class TestListStudios:

    @pytest.mark.asyncio
    async def test_store_failure_becomes_database_error(self, mock_db_session):
        mock_db_session.execute = AsyncMock(side_effect=RuntimeError("relation does not exist"))

        with pytest.raises(DatabaseError) as exc_info:
            await StudioService().list_studios(mock_db_session, StudioFilters())

        assert exc_info.value.message == "Failed to fetch studios"
        assert exc_info.value.context["original_error"] == "relation does not exist"
