"""Access Policy Evaluator — decides whether a scan may proceed. Pure, no IO.

Invariants:
    - Check order is fixed: status -> expires_at -> scan limit -> PIN
      (an expired, PIN-protected link reports Unavailable, never a PIN prompt)
    - Archived and expired records both yield DenyUnavailable (caller cannot tell which)
    - Scan quota and PIN apply to LinkRecord only; ContactRecord ignores any supplied PIN
    - The lazy active -> expired transition is *requested* (expire=True), never performed here

Design Decisions:
    - Decision objects over exceptions: denials are expected control flow, not errors
    - verify injected as a callable so tests can count/observe verifier calls
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from qr_redirect.core.credentials import verify_pin
from qr_redirect.core.domain_types import (
    ContactRecord, LinkRecord, QrRecord, RecordStatus,
)


@dataclass(frozen=True)
class Allow:
    pass


@dataclass(frozen=True)
class DenyUnavailable:
    """Record cannot be served. expire=True asks the caller to mark it expired."""
    reason: str
    expire: bool = False


@dataclass(frozen=True)
class DenyNeedPin:
    pass


@dataclass(frozen=True)
class DenyWrongPin:
    pass


PolicyDecision = Allow | DenyUnavailable | DenyNeedPin | DenyWrongPin


def evaluate_access(
    record: QrRecord,
    supplied_pin: str | None,
    now: datetime,
    verify: Callable[[str, str], bool] = verify_pin,
) -> PolicyDecision:
    """Apply status, expiry, quota and PIN rules in that order."""
    if record.status != RecordStatus.ACTIVE:
        return DenyUnavailable(reason=f"status_{record.status.value}")

    match record:
        case ContactRecord():
            return Allow()
        case LinkRecord():
            return _evaluate_link(record, supplied_pin, now, verify)
        case _:
            raise TypeError(f"Unknown record type: {type(record).__name__}")


def quota_exhausted(record: LinkRecord) -> bool:
    """True when a capped link has used every scan it is allowed."""
    return (
        record.scan_limit is not None
        and record.scan_count >= record.scan_limit
    )


def _evaluate_link(
    record: LinkRecord,
    supplied_pin: str | None,
    now: datetime,
    verify: Callable[[str, str], bool],
) -> PolicyDecision:
    if record.expires_at is not None and now >= record.expires_at:
        return DenyUnavailable(reason="expires_at_passed", expire=True)
    if quota_exhausted(record):
        return DenyUnavailable(reason="scan_limit_reached", expire=True)
    if record.password_hash is not None:
        if supplied_pin is None:
            return DenyNeedPin()
        if not verify(supplied_pin, record.password_hash):
            return DenyWrongPin()
    return Allow()
