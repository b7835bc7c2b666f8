"""Resolve Orchestrator — slug -> Outcome pipeline, the only service the boundary calls.

Sequence:
    lookup -> policy -> [lazy expiry] -> destination -> quota claim -> scan (async) -> outcome

Invariants:
    - resolve() always returns one of the five Outcome variants; it never raises
      (CancelledError excepted — an abandoned request stops here)
    - Unknown and malformed slugs are indistinguishable from unavailable records
    - Policy denials are logged at INFO; store failures at ERROR as infrastructure failures
    - Capped links are admitted only through atomic_increment_scan(cap=scan_limit):
      exactly scan_limit scans succeed regardless of concurrency
    - Lazy expiry goes through atomic_set_status(active -> expired); losing the race is fine
    - Scan recording is scheduled, not awaited, and only for resolved outcomes
    - WrongPin never echoes the PIN; its message is suppressed when the toggle is off

Design Decisions:
    - Quota claimed only once a destination resolved: an outage never consumes a
      slot, and the claim (not the lookup snapshot) decides admission, so the
      snapshot only prunes obviously exhausted records early
    - Uncapped links increment in the background (nothing depends on the count)
"""

import logging
from collections.abc import Callable
from datetime import datetime, timezone

from qr_redirect.core.access_policy import (
    Allow, DenyNeedPin, DenyUnavailable, DenyWrongPin, evaluate_access,
)
from qr_redirect.core.credentials import verify_pin
from qr_redirect.core.domain_types import (
    ClientMetadata, LinkRecord, QrRecord, RecordStatus,
)
from qr_redirect.core.errors import InvalidSlugError, QrRedirectError
from qr_redirect.core.outcomes import (
    ContactPayload, NeedPin, Outcome, Redirect, Unavailable, WrongPin,
)
from qr_redirect.core.repository_protocols import RecordStore
from qr_redirect.services.destination_resolver import DestinationResolver
from qr_redirect.services.record_lookup import RecordLookup
from qr_redirect.services.scan_recorder import ScanRecorder

logger = logging.getLogger(__name__)

DEFAULT_WRONG_PIN_MESSAGE = "The PIN you entered is incorrect. Please try again."


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ResolveOrchestrator:

    def __init__(
        self,
        store: RecordStore,
        destination: DestinationResolver,
        recorder: ScanRecorder,
        *,
        show_wrong_pin_message: bool = True,
        wrong_pin_message: str = DEFAULT_WRONG_PIN_MESSAGE,
        clock: Callable[[], datetime] = _utc_now,
        verify: Callable[[str, str], bool] = verify_pin,
    ):
        self.store = store
        self.lookup = RecordLookup(store)
        self.destination = destination
        self.recorder = recorder
        self.show_wrong_pin_message = show_wrong_pin_message
        self.wrong_pin_message = wrong_pin_message
        self.clock = clock
        self.verify = verify

    async def resolve(
        self, slug: str, supplied_pin: str | None, metadata: ClientMetadata,
    ) -> Outcome:
        try:
            outcome = await self._resolve(slug, supplied_pin, metadata)
        except InvalidSlugError:
            outcome = Unavailable(reason="invalid_slug")
        except QrRedirectError as e:
            logger.error(
                f"Infrastructure failure while resolving: {e.message}",
                extra={"slug": slug, "error_code": e.code},
            )
            return Unavailable(reason="infrastructure_failure")
        except Exception as e:
            logger.error(
                f"Unexpected failure while resolving: {e}",
                extra={"slug": slug}, exc_info=True,
            )
            return Unavailable(reason="internal_error")
        logger.info(
            "Slug resolved",
            extra={"slug": slug, "outcome": type(outcome).__name__},
        )
        return outcome

    async def _resolve(
        self, slug: str, supplied_pin: str | None, metadata: ClientMetadata,
    ) -> Outcome:
        record = await self.lookup.lookup(slug)
        if record is None:
            return Unavailable(reason="not_found")

        decision = evaluate_access(record, supplied_pin, self.clock(), self.verify)
        match decision:
            case DenyUnavailable(reason=reason, expire=True):
                await self._expire(record)
                return Unavailable(reason=reason)
            case DenyUnavailable(reason=reason):
                return Unavailable(reason=reason)
            case DenyNeedPin():
                return NeedPin(slug=record.slug)
            case DenyWrongPin():
                message = self.wrong_pin_message if self.show_wrong_pin_message else None
                return WrongPin(slug=record.slug, message=message)
            case Allow():
                pass

        outcome = await self.destination.resolve(record)
        if not isinstance(outcome, (Redirect, ContactPayload)):
            return outcome

        counted = False
        if isinstance(record, LinkRecord) and record.scan_limit is not None:
            claimed = await self.store.atomic_increment_scan(
                record.id, cap=record.scan_limit,
            )
            if claimed is None:
                await self._expire(record)
                return Unavailable(reason="scan_limit_reached")
            counted = True

        self.recorder.record_scan(record, metadata, counted=counted)
        return outcome

    async def _expire(self, record: QrRecord) -> None:
        """Lazy active -> expired transition. Outcome is Unavailable either way."""
        try:
            await self.store.atomic_set_status(
                record.id, RecordStatus.ACTIVE, RecordStatus.EXPIRED,
            )
        except QrRedirectError as e:
            logger.error(
                f"Lazy expiry failed: {e.message}",
                extra={"slug": record.slug, "error_code": e.code},
            )
