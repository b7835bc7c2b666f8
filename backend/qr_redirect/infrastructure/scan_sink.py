"""SQL Scan Sink — appends scan events to the scan_events table.

Invariants:
    - append() inserts exactly one row and commits it; it never updates
    - Free-text metadata truncated to column width (user_agent 1000, client_origin 64)
    - Failures raise StoreUnavailableError (mapped by DatabaseSessionManager)
"""

from datetime import datetime

from qr_redirect.core.domain_types import ClientMetadata, RecordId
from qr_redirect.infrastructure.database import DatabaseSessionManager
from qr_redirect.models.scan_event import ScanEvent


class SqlScanSink:

    def __init__(self, db: DatabaseSessionManager):
        self._db = db

    async def append(
        self, record_id: RecordId, metadata: ClientMetadata, timestamp: datetime,
    ) -> None:
        origin = metadata.client_origin
        async with self._db.session() as session:
            session.add(ScanEvent(
                record_id=record_id,
                scanned_at=timestamp,
                user_agent=metadata.user_agent[:1000],
                client_origin=origin[:64] if origin else None,
                referrer=metadata.referrer,
            ))
            await session.commit()
