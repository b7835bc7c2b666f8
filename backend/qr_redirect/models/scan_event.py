"""ScanEvent ORM — append-only record of one resolved scan.

Invariants:
    - Rows are inserted once and never updated
    - record_id FK cascades on delete (record purge removes its history)
    - client_origin holds an anonymized digest unless anonymization is disabled
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from qr_redirect.db.base import Base


class ScanEvent(Base):
    __tablename__ = "scan_events"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    record_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("qr_records.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    scanned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
    user_agent: Mapped[str] = mapped_column(Text, nullable=False, default="")
    client_origin: Mapped[str | None] = mapped_column(String(64), nullable=True)
    referrer: Mapped[str | None] = mapped_column(Text, nullable=True)

    record = relationship("QrRecord", back_populates="scan_events")
