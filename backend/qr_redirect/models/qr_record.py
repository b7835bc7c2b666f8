"""QrRecord ORM — persisted QR record, link or contact, keyed by unique slug.

Invariants:
    - id is UUID primary key; slug is unique and indexed
    - kind is 'link' or 'contact' and never changes after insert
    - Contact rows carry no link columns (check constraint)
    - scan_limit, when set, is positive; scan_count is non-negative
    - password_hash stores a SHA-256 hex digest, never a raw PIN

Design Decisions:
    - Single table with a discriminant column: the admin surface edits one shape,
      the store maps rows to LinkRecord | ContactRecord at the boundary
    - contact bundle as JSON: read whole, never queried field-by-field
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    CheckConstraint, DateTime, Integer, JSON, String, Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from qr_redirect.db.base import Base


class QrRecord(Base):
    """QR record aggregate root — owns its scan events."""
    __tablename__ = "qr_records"
    __table_args__ = (
        CheckConstraint("kind IN ('link', 'contact')", name="ck_qr_records_kind"),
        CheckConstraint(
            "status IN ('active', 'archived', 'expired')",
            name="ck_qr_records_status",
        ),
        CheckConstraint("scan_count >= 0", name="ck_qr_records_scan_count"),
        CheckConstraint(
            "scan_limit IS NULL OR scan_limit > 0",
            name="ck_qr_records_scan_limit",
        ),
        CheckConstraint(
            "kind = 'link' OR (target_url IS NULL AND scan_limit IS NULL "
            "AND password_hash IS NULL AND expires_at IS NULL)",
            name="ck_qr_records_contact_shape",
        ),
        CheckConstraint(
            "kind = 'contact' OR target_url IS NOT NULL",
            name="ck_qr_records_link_shape",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    slug: Mapped[str] = mapped_column(
        String(100), nullable=False, unique=True, index=True,
    )
    kind: Mapped[str] = mapped_column(String(10), nullable=False)
    status: Mapped[str] = mapped_column(
        String(10), nullable=False, default="active",
    )
    owner_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )

    # link columns
    target_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    fallback_urls: Mapped[list] = mapped_column(
        JSON, nullable=False, default=list,
    )
    scan_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0,
    )
    scan_limit: Mapped[int | None] = mapped_column(Integer, nullable=True)
    password_hash: Mapped[str | None] = mapped_column(String(128), nullable=True)
    expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )

    # contact column
    contact: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    scan_events = relationship(
        "ScanEvent", back_populates="record", cascade="all, delete-orphan",
        passive_deletes=True,
    )
