"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - Scan counter and status changes go through store-side atomic primitives,
      never an application-side read-modify-write
    - Implementations provided by shell via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, test fakes need no base class
    - Async in Protocol: boundary methods are async because implementations do IO,
      but the policy/credential/vCard functions that consume their results are not
"""

from collections.abc import Sequence
from datetime import datetime
from typing import Protocol

from qr_redirect.core.domain_types import (
    ClientMetadata, QrRecord, RecordId, RecordStatus,
)


class RecordStore(Protocol):
    """Contract for QR record persistence — implemented by shell."""

    async def find_by_slug(self, slug: str) -> QrRecord | None:
        """Exact, case-sensitive lookup. Raises StoreUnavailableError on IO failure."""
        ...

    async def atomic_increment_scan(
        self, record_id: RecordId, cap: int | None = None,
    ) -> int | None:
        """Increment scan_count in one store operation and return the new count.

        With cap set, the increment only applies while the record is active
        and scan_count < cap; otherwise nothing changes and None is returned.
        """
        ...

    async def atomic_set_status(
        self, record_id: RecordId, expected: RecordStatus, next_status: RecordStatus,
    ) -> bool:
        """Compare-and-swap on status. True only for the caller that won the transition."""
        ...


class ScanSink(Protocol):
    """Append-only sink for scan events — implemented by shell."""

    async def append(
        self, record_id: RecordId, metadata: ClientMetadata, timestamp: datetime,
    ) -> None: ...


class LivenessProber(Protocol):
    """Bounded-timeout reachability check of a URL."""

    async def probe(self, url: str, timeout_ms: int) -> bool: ...


class FallbackChooser(Protocol):
    """Advisory heuristic picking one fallback URL. May return anything."""

    async def choose(
        self, primary_url: str, candidates: Sequence[str], reason: str,
    ) -> str: ...
