"""
ALOKA Backend — Studio SQLAlchemy Model
========================================

What:  ORM model representing the `studios` table.
Why:   Maps studio listings to rows for the list/create/update/delete endpoints.
How:   Inherits from the shared DeclarativeBase; Alembic reads this for migrations.
Who:   Used by StudioService for CRUD and by studio_query for listing.

Table Design Rationale:
    - UUID primary key: opaque identifier, not enumerable
    - location is split into city / state / zip_code columns: the listing
      filters and text-searches on city, and the three are validated as a
      unit anyway. The API always exposes them as one nested `location`.
    - services / equipment / images are JSON columns: they are read and
      written whole, never queried into
    - deleted_at is the soft-delete tombstone; is_active is the operator's
      visibility toggle. A listing needs both is_active = true and
      deleted_at IS NULL.

Indexes (see alembic/versions/001):
    - idx_studios_listing_sort: (rating DESC, created_at DESC) for the fixed
      listing order
    - idx_studios_text_search: GIN over to_tsvector(studio_name, description,
      city), PostgreSQL only, created in the migration
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, Boolean, DateTime, Float, Index, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from aloka.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Studio(Base):
    """
    A bookable video production studio.

    Lifecycle:
        1. Created via POST /api/studios with rating=0, is_active=True
        2. Partially updated in place via PATCH (only supplied fields change)
        3. Soft-deleted via DELETE: is_active=False, deleted_at=now.
           A deleted studio is never listed, updated or deleted again.
    """

    __tablename__ = "studios"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        comment="Opaque studio identifier",
    )

    # ── Descriptive text ──────────────────────────────────────────────────
    studio_name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    address: Mapped[str] = mapped_column(String(500), nullable=False)

    # ── Location (always written together) ────────────────────────────────
    city: Mapped[str] = mapped_column(String(120), nullable=False)
    state: Mapped[str] = mapped_column(String(120), nullable=False)
    zip_code: Mapped[str] = mapped_column(String(20), nullable=False)

    # ── Pricing & reach ───────────────────────────────────────────────────
    per_hour_charge: Mapped[float] = mapped_column(
        Float,
        nullable=False,
        comment="Hourly rate; never negative",
    )
    # A declared service radius entered by the studio owner, not computed
    max_distance: Mapped[float] = mapped_column(
        Float,
        nullable=False,
        default=50,
        server_default=text("50"),
    )
    rating: Mapped[float] = mapped_column(
        Float,
        nullable=False,
        default=0,
        server_default=text("0"),
        comment="Average rating in [0, 5]",
    )

    # ── Free-form lists ───────────────────────────────────────────────────
    # services order is display order; the UI shows the first two and "+N more"
    services: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    equipment: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    images: Mapped[Optional[List[Dict[str, Any]]]] = mapped_column(
        JSON,
        nullable=True,
        default=list,
        comment="[{url, caption?}]; NULL is read back as []",
    )

    # ── Visibility ────────────────────────────────────────────────────────
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        server_default=text("true"),
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        default=None,
        comment="Soft-delete tombstone; NULL while the studio exists",
    )

    # ── Timestamps ────────────────────────────────────────────────────────
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        Index("idx_studios_listing_sort", rating.desc(), created_at.desc()),
    )

    @property
    def location(self) -> Dict[str, str]:
        return {"city": self.city, "state": self.state, "zip_code": self.zip_code}

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def __repr__(self) -> str:
        return (
            f"<Studio(id={self.id}, studio_name='{self.studio_name}', "
            f"city='{self.city}', is_active={self.is_active})>"
        )
