"""SQL Record Store — RecordStore implementation over SQLAlchemy async sessions.

Invariants:
    - find_by_slug is an exact, case-sensitive match and has no side effects
    - Rows are mapped to LinkRecord | ContactRecord before leaving this module
    - Scan increments and status changes are single conditional UPDATE statements
      (the database arbitrates races; no read-modify-write in Python)
    - Every IO failure surfaces as StoreUnavailableError, never as "not found"

Design Decisions:
    - One short session per operation: the resolve path never holds a transaction
      across network calls (probe, selector)
    - UPDATE ... RETURNING: supported by PostgreSQL and SQLite >= 3.35
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import select, update

from qr_redirect.core.domain_types import (
    ContactDetails, ContactRecord, LinkRecord, QrRecord, RecordId,
    RecordKind, RecordStatus, Slug,
)
from qr_redirect.infrastructure.database import DatabaseSessionManager
from qr_redirect.models.qr_record import QrRecord as QrRecordRow

logger = logging.getLogger(__name__)

_CONTACT_FIELDS = (
    "first_name", "last_name", "organization", "title",
    "phone", "email", "website", "address",
)


class SqlRecordStore:
    """Record store backed by the qr_records table."""

    def __init__(self, db: DatabaseSessionManager):
        self._db = db

    async def find_by_slug(self, slug: str) -> QrRecord | None:
        async with self._db.session() as session:
            result = await session.execute(
                select(QrRecordRow).where(QrRecordRow.slug == slug),
            )
            row = result.scalar_one_or_none()
        return row_to_record(row) if row is not None else None

    async def atomic_increment_scan(
        self, record_id: RecordId, cap: int | None = None,
    ) -> int | None:
        stmt = (
            update(QrRecordRow)
            .where(
                QrRecordRow.id == record_id,
                QrRecordRow.kind == RecordKind.LINK.value,
            )
            .values(scan_count=QrRecordRow.scan_count + 1)
            .returning(QrRecordRow.scan_count)
            .execution_options(synchronize_session=False)
        )
        if cap is not None:
            stmt = stmt.where(
                QrRecordRow.status == RecordStatus.ACTIVE.value,
                QrRecordRow.scan_count < cap,
            )
        async with self._db.session() as session:
            result = await session.execute(stmt)
            new_count = result.scalar_one_or_none()
            await session.commit()
        return new_count

    async def atomic_set_status(
        self, record_id: RecordId, expected: RecordStatus, next_status: RecordStatus,
    ) -> bool:
        stmt = (
            update(QrRecordRow)
            .where(
                QrRecordRow.id == record_id,
                QrRecordRow.status == expected.value,
            )
            .values(status=next_status.value)
            .returning(QrRecordRow.id)
            .execution_options(synchronize_session=False)
        )
        async with self._db.session() as session:
            result = await session.execute(stmt)
            won = result.scalar_one_or_none() is not None
            await session.commit()
        if won:
            logger.info(
                f"Record status {expected.value} -> {next_status.value}",
                extra={"record_id": record_id},
            )
        return won


def row_to_record(row: QrRecordRow) -> QrRecord:
    """Map an ORM row onto the core sum type."""
    common = dict(
        id=RecordId(row.id),
        slug=Slug(row.slug),
        status=RecordStatus(row.status),
        created_at=_as_utc(row.created_at),
        owner_id=row.owner_id,
    )
    match RecordKind(row.kind):
        case RecordKind.LINK:
            return LinkRecord(
                **common,
                target_url=row.target_url or "",
                fallback_urls=tuple(row.fallback_urls or ()),
                scan_count=row.scan_count,
                scan_limit=row.scan_limit,
                password_hash=row.password_hash,
                expires_at=_as_utc(row.expires_at) if row.expires_at else None,
            )
        case RecordKind.CONTACT:
            return ContactRecord(
                **common, contact=_contact_from_bundle(row.contact or {}),
            )


def _contact_from_bundle(bundle: dict) -> ContactDetails:
    values = {k: bundle.get(k) for k in _CONTACT_FIELDS}
    values["first_name"] = values["first_name"] or ""
    values["last_name"] = values["last_name"] or ""
    return ContactDetails(**values)


def _as_utc(value: datetime) -> datetime:
    """SQLite drops tzinfo; stored values are always UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
