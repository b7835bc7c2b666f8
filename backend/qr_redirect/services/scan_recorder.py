"""Scan Counter & Logger — fire-and-forget scan accounting.

Invariants:
    - record_scan() schedules work and returns immediately; the response never waits
    - Uncounted link scans get one atomic store increment; contact scans never do
    - Every scheduled scan appends exactly one ScanEvent attempt
    - Pending tasks are tracked until done; drain() awaits them before shutdown
    - Failures are logged as infrastructure errors, never raised into a request

Design Decisions:
    - asyncio tasks held in a set (strong refs) over a queue + worker: no extra
      concurrency knob, and drain() is a plain asyncio.wait
    - counted=True when the orchestrator already claimed a capped slot synchronously
"""

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, timezone

from qr_redirect.core.domain_types import ClientMetadata, LinkRecord, QrRecord
from qr_redirect.core.errors import QrRedirectError
from qr_redirect.core.repository_protocols import RecordStore, ScanSink

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ScanRecorder:
    """Increments scan counters and appends scan events in the background."""

    def __init__(
        self,
        store: RecordStore,
        sink: ScanSink,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self.store = store
        self.sink = sink
        self.clock = clock
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def record_scan(
        self, record: QrRecord, metadata: ClientMetadata, *, counted: bool = False,
    ) -> asyncio.Task:
        """Schedule scan accounting for record. Returns the background task."""
        task = asyncio.create_task(
            self._record(record, metadata, counted, self.clock()),
            name=f"scan-{record.id}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _record(
        self, record: QrRecord, metadata: ClientMetadata,
        counted: bool, timestamp: datetime,
    ) -> None:
        if isinstance(record, LinkRecord) and not counted:
            try:
                new_count = await self.store.atomic_increment_scan(record.id)
                logger.debug(
                    "Scan counted",
                    extra={"record_id": record.id, "scan_count": new_count},
                )
            except QrRedirectError as e:
                logger.error(
                    f"Scan count increment failed: {e.message}",
                    extra={"record_id": record.id, "error_code": e.code},
                )
            except Exception as e:
                logger.error(
                    f"Scan count increment crashed: {e}",
                    extra={"record_id": record.id}, exc_info=True,
                )

        try:
            await self.sink.append(record.id, metadata, timestamp)
        except QrRedirectError as e:
            logger.error(
                f"Scan event append failed: {e.message}",
                extra={"record_id": record.id, "error_code": e.code},
            )
        except Exception as e:
            logger.error(
                f"Scan event append crashed: {e}",
                extra={"record_id": record.id}, exc_info=True,
            )

    async def drain(self, timeout_seconds: float = 10.0) -> int:
        """Await all pending scan tasks. Returns how many were still pending at timeout."""
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout_seconds
        while self._tasks:
            remaining = deadline - loop.time()
            if remaining <= 0:
                break
            await asyncio.wait(set(self._tasks), timeout=remaining)
        if self._tasks:
            logger.error(
                "Scan drain timed out with events still pending",
                extra={"pending": len(self._tasks)},
            )
        else:
            logger.info("Scan recorder drained")
        return len(self._tasks)
