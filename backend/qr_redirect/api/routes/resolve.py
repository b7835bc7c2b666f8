"""Resolve Route — GET /q/{slug}: scan entry point for printed QR codes.

Invariants:
    - Every response is a redirect or a vCard download; errors never render raw
    - Redirects are 307 and carry Cache-Control: no-store (targets are mutable)
    - The PIN travels only in the query string of the request; it is never logged,
      stored, or echoed into a Location header
    - Client address anonymized (truncated SHA-256) unless disabled in settings

Design Decisions:
    - Orchestrator pulled from app.state via dependency: tests override get_orchestrator
      the same way route tests override database dependencies
"""

import hashlib
import logging
from urllib.parse import quote, urlencode

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import RedirectResponse, Response

from qr_redirect.config import Settings, get_settings
from qr_redirect.core.domain_types import ClientMetadata
from qr_redirect.core.outcomes import (
    ContactPayload, NeedPin, Outcome, Redirect, Unavailable, WrongPin,
)
from qr_redirect.core.vcard import VCARD_CONTENT_TYPE
from qr_redirect.services.resolve_orchestrator import ResolveOrchestrator

logger = logging.getLogger(__name__)
router = APIRouter(tags=["resolve"])

_NO_STORE = {"Cache-Control": "no-store"}


def get_orchestrator(request: Request) -> ResolveOrchestrator:
    return request.app.state.orchestrator


@router.get("/q/{slug}")
async def resolve_slug(
    slug: str,
    request: Request,
    pin: str | None = Query(None),
    orchestrator: ResolveOrchestrator = Depends(get_orchestrator),
    settings: Settings = Depends(get_settings),
):
    """Resolve a slug to a redirect, a vCard, or a PIN/unavailable page."""
    metadata = client_metadata(request, settings)
    outcome = await orchestrator.resolve(slug, pin, metadata)
    return outcome_to_response(outcome, settings)


def outcome_to_response(outcome: Outcome, settings: Settings) -> Response:
    """Map each Outcome variant onto its HTTP shape."""
    match outcome:
        case Redirect(url=url):
            return RedirectResponse(url, headers=_NO_STORE)
        case ContactPayload(slug=slug, vcard=vcard):
            return Response(
                content=vcard,
                media_type=VCARD_CONTENT_TYPE,
                headers={
                    "Content-Disposition": f'attachment; filename="{slug}.vcf"',
                    **_NO_STORE,
                },
            )
        case NeedPin(slug=slug):
            return RedirectResponse(_pin_page(settings, slug), headers=_NO_STORE)
        case WrongPin(slug=slug, message=message):
            url = _pin_page(settings, slug)
            if message:
                url = f"{url}?{urlencode({'error': message})}"
            return RedirectResponse(url, headers=_NO_STORE)
        case Unavailable():
            return RedirectResponse(
                settings.unavailable_page_path, headers=_NO_STORE,
            )
        case _:
            raise TypeError(f"Unknown outcome: {type(outcome).__name__}")


def _pin_page(settings: Settings, slug: str) -> str:
    return settings.pin_page_path.format(slug=quote(slug, safe=""))


def client_metadata(request: Request, settings: Settings) -> ClientMetadata:
    """Collect opaque client metadata for the scan event."""
    origin = None
    if settings.trust_forwarded_for:
        forwarded = request.headers.get("x-forwarded-for", "")
        origin = forwarded.split(",")[0].strip() or None
    if origin is None and request.client:
        origin = request.client.host
    if origin and settings.anonymize_client_ip:
        origin = hashlib.sha256(origin.encode()).hexdigest()[:16]
    return ClientMetadata(
        user_agent=request.headers.get("user-agent", ""),
        client_origin=origin,
        referrer=request.headers.get("referer"),
    )
