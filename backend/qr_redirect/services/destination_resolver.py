"""Destination Resolver — computes where an allowed scan goes.

State machine per call:
    Start -> TypeDispatch -> ContactPayload                          (contact)
    Start -> TypeDispatch -> LivenessCheck -> PrimaryRedirect        (link, primary up)
    Start -> TypeDispatch -> LivenessCheck -> FallbackSelection
          -> Resolved(chosen | fallback_urls[0]) | Failed            (link, primary down)

Invariants:
    - Contact records never trigger a probe
    - Probe is bounded by probe_timeout_ms; a probe that raises counts as down
    - Empty fallback_urls on a down primary -> Unavailable (Failed)
    - Selector failures are never surfaced: fallback_urls[0] is the last resort
    - Cancellation (request abandoned) propagates; nothing is awaited further
"""

import asyncio
import logging
from dataclasses import dataclass

from qr_redirect.core.domain_types import ContactRecord, LinkRecord, QrRecord
from qr_redirect.core.errors import FallbackSelectionError
from qr_redirect.core.outcomes import ContactPayload, Outcome, Redirect, Unavailable
from qr_redirect.core.repository_protocols import LivenessProber
from qr_redirect.core.vcard import render_vcard
from qr_redirect.services.fallback_selector import FallbackSelector

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProbeResult:
    reachable: bool
    reason: str


class DestinationResolver:

    def __init__(
        self,
        prober: LivenessProber,
        selector: FallbackSelector,
        probe_timeout_ms: int = 2000,
    ):
        self.prober = prober
        self.selector = selector
        self.probe_timeout_ms = probe_timeout_ms

    async def resolve(self, record: QrRecord) -> Outcome:
        match record:
            case ContactRecord():
                return ContactPayload(
                    slug=record.slug, vcard=render_vcard(record.contact),
                )
            case LinkRecord():
                return await self._resolve_link(record)
            case _:
                raise TypeError(f"Unknown record type: {type(record).__name__}")

    async def _resolve_link(self, record: LinkRecord) -> Outcome:
        probe = await self._probe(record.target_url)
        if probe.reachable:
            return Redirect(record.target_url)

        if not record.fallback_urls:
            logger.info(
                "Primary unreachable and no fallbacks configured",
                extra={"slug": record.slug, "reason": probe.reason},
            )
            return Unavailable(reason="primary_unreachable_no_fallback")

        candidates = list(record.fallback_urls)
        try:
            chosen = await self.selector.choose(
                record.target_url, candidates, probe.reason,
            )
        except FallbackSelectionError as e:
            logger.warning(
                f"Fallback selector failed, using first candidate: {e.message}",
                extra={
                    "slug": record.slug,
                    "error_code": e.code,
                    "reason": e.reason,
                },
            )
            return Redirect(candidates[0])

        logger.info(
            "Primary unreachable, redirecting to selected fallback",
            extra={"slug": record.slug, "reason": probe.reason},
        )
        return Redirect(chosen)

    async def _probe(self, url: str) -> ProbeResult:
        seconds = self.probe_timeout_ms / 1000
        try:
            async with asyncio.timeout(seconds):
                reachable = await self.prober.probe(url, self.probe_timeout_ms)
        except TimeoutError:
            return ProbeResult(False, f"it did not respond within {seconds:g} seconds")
        except Exception as e:
            logger.warning(f"Liveness prober raised: {type(e).__name__}: {e}")
            return ProbeResult(False, "the availability check failed")
        if reachable:
            return ProbeResult(True, "reachable")
        return ProbeResult(
            False, "it is not responding or returned an error status",
        )
