"""QR Redirect API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map QrRedirectError -> structured responses
    - Collaborators (store, sink, prober, chooser) built once per process in lifespan
    - Shutdown drains pending scan events before clients and pool are closed

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Orchestrator exposed via app.state; routes fetch it through a dependency
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass

import httpx
from fastapi import FastAPI

from qr_redirect.api.error_handlers import register_error_handlers
from qr_redirect.api.routes import health, resolve
from qr_redirect.config import Settings, get_settings
from qr_redirect.infrastructure.anthropic_client import ResilientAnthropicClient
from qr_redirect.infrastructure.database import DatabaseSessionManager, init_db
from qr_redirect.infrastructure.liveness_prober import HttpLivenessProber
from qr_redirect.infrastructure.observability import setup_logging
from qr_redirect.infrastructure.record_store import SqlRecordStore
from qr_redirect.infrastructure.scan_sink import SqlScanSink
from qr_redirect.services.destination_resolver import DestinationResolver
from qr_redirect.services.fallback_selector import (
    AnthropicFallbackChooser, FallbackSelector, FirstCandidateChooser,
)
from qr_redirect.services.resolve_orchestrator import ResolveOrchestrator
from qr_redirect.services.scan_recorder import ScanRecorder

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Process-wide collaborators owned by the lifespan."""
    orchestrator: ResolveOrchestrator
    recorder: ScanRecorder
    http_client: httpx.AsyncClient
    anthropic_client: ResilientAnthropicClient | None

    async def aclose(self) -> None:
        await self.http_client.aclose()
        if self.anthropic_client is not None:
            await self.anthropic_client.aclose()


def build_services(settings: Settings, db: DatabaseSessionManager) -> Services:
    """Wire the resolve pipeline from settings."""
    store = SqlRecordStore(db)
    recorder = ScanRecorder(store, SqlScanSink(db))

    http_client = httpx.AsyncClient(
        follow_redirects=True,
        headers={"User-Agent": settings.probe_user_agent},
    )
    prober = HttpLivenessProber(http_client)

    anthropic_client = None
    if settings.fallback_strategy == "anthropic":
        anthropic_client = ResilientAnthropicClient(
            api_key=settings.anthropic_api_key,
            max_retries=settings.anthropic_max_retries,
            base_delay_ms=settings.anthropic_base_delay_ms,
            max_delay_ms=settings.anthropic_max_delay_ms,
            timeout_seconds=settings.anthropic_timeout_seconds,
        )
        chooser = AnthropicFallbackChooser(
            anthropic_client,
            model=settings.fallback_model,
            max_tokens=settings.fallback_max_tokens,
        )
    else:
        chooser = FirstCandidateChooser()

    destination = DestinationResolver(
        prober,
        FallbackSelector(chooser, timeout_seconds=settings.selector_timeout_seconds),
        probe_timeout_ms=int(settings.probe_timeout_seconds * 1000),
    )
    orchestrator = ResolveOrchestrator(
        store, destination, recorder,
        show_wrong_pin_message=settings.show_wrong_pin_message,
        wrong_pin_message=settings.wrong_pin_message,
    )
    return Services(orchestrator, recorder, http_client, anthropic_client)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    db = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    services = build_services(settings, db)
    app.state.orchestrator = services.orchestrator
    app.state.scan_recorder = services.recorder
    logger.info("QR Redirect API started")
    try:
        yield
    finally:
        logger.info(
            "QR Redirect API shutting down",
            extra={"pending": services.recorder.pending},
        )
        await services.recorder.drain(settings.scan_drain_timeout_seconds)
        await services.aclose()
        await db.dispose()


app = FastAPI(
    title="QR Redirect API", version="1.0.0", lifespan=lifespan,
)

# Routes — explicit registration
app.include_router(health.router)
app.include_router(resolve.router)

register_error_handlers(app)
