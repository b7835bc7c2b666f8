"""Error Handlers — global exception handlers for the QR Redirect API.

Invariants:
    - QrRedirectError -> structured JSON with error code, message, severity
    - RequestValidationError -> field-level error details
    - Exception (catch-all) -> never leaks internal details
    - Anything escaping a /q/ scan route becomes a redirect to the unavailable page

Design Decisions:
    - Three-layer handler: domain (QrRedirectError), validation (Pydantic), catch-all (Exception)
    - Extracted from main.py to keep the app module small
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse, RedirectResponse, Response
from fastapi.exceptions import RequestValidationError

from qr_redirect.config import get_settings
from qr_redirect.core.errors import QrRedirectError, ErrorSeverity

logger = logging.getLogger(__name__)

_SCAN_PREFIX = "/q/"


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_domain_error_handler(app)
    _register_validation_error_handler(app)
    _register_generic_error_handler(app)


def _scan_fallback(request: Request) -> Response | None:
    """Scan routes answer with the unavailable page instead of JSON."""
    if request.url.path.startswith(_SCAN_PREFIX):
        return RedirectResponse(
            get_settings().unavailable_page_path,
            headers={"Cache-Control": "no-store"},
        )
    return None


def _register_domain_error_handler(app: FastAPI) -> None:

    @app.exception_handler(QrRedirectError)
    async def domain_error_handler(request: Request, exc: QrRedirectError):
        """Handle all QR Redirect domain/infrastructure errors."""
        logger.error(
            f"QrRedirectError: {exc.message}",
            extra={"error_code": exc.code, "path": request.url.path},
        )
        return _scan_fallback(request) or JSONResponse(
            status_code=exc.http_status, content=exc.to_response(),
        )


def _register_validation_error_handler(app: FastAPI) -> None:

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError,
    ):
        """Handle Pydantic validation errors."""
        logger.warning(
            f"Validation error on {request.url.path}: {exc.errors()}",
        )
        return _scan_fallback(request) or JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_build_validation_error_response(exc),
        )


def _register_generic_error_handler(app: FastAPI) -> None:

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        """Catch-all — never leaks internal details."""
        logger.error(
            f"Unhandled exception on {request.url.path}: {exc}",
            exc_info=True,
        )
        return _scan_fallback(request) or JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": {
                    "code": "INTERNAL_ERROR",
                    "message": "An unexpected error occurred",
                    "category": "internal",
                    "severity": ErrorSeverity.CRITICAL.value,
                },
            },
        )


def _build_validation_error_response(exc: RequestValidationError) -> dict:
    """Build structured validation error response."""
    return {
        "error": {
            "code": "VALIDATION_ERROR",
            "message": "Invalid request data",
            "category": "validation",
            "severity": ErrorSeverity.ERROR.value,
            "details": [
                {
                    "field": ".".join(str(loc) for loc in e["loc"]),
                    "message": e["msg"],
                    "type": e["type"],
                }
                for e in exc.errors()
            ],
        },
    }
