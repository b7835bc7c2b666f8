"""Domain Types — QR records as an explicit sum type plus the values around them.

Invariants:
    - QrRecord is LinkRecord | ContactRecord; kind is fixed by the class, never a nullable field
    - ContactRecord has no scan counter, scan limit or password (invalid states unrepresentable)
    - scan_limit, when present, is a positive integer; scan_count is never negative
    - password_hash holds a hex digest, never a raw PIN
    - Slugs match SLUG_PATTERN exactly (case-sensitive)

Design Decisions:
    - Frozen dataclasses over ORM objects: core logic never touches the session
      (ADR: functional core, records mapped at the store boundary)
    - str Enums: serialize to DB columns and JSON logs without custom encoders
"""

import re
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

RecordId = NewType("RecordId", UUID)
Slug = NewType("Slug", str)

SLUG_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


def is_valid_slug(value: str) -> bool:
    """True when value is a non-empty token of [A-Za-z0-9_-]."""
    return bool(value) and SLUG_PATTERN.fullmatch(value) is not None


# ─── Enums ───────────────────────────────────────────────────────

class RecordKind(str, Enum):
    """Discriminant of the record sum type — maps to DB `kind` column."""
    LINK = "link"
    CONTACT = "contact"


class RecordStatus(str, Enum):
    """Record lifecycle states. active -> expired is one-way."""
    ACTIVE = "active"
    ARCHIVED = "archived"
    EXPIRED = "expired"


# ─── Records ─────────────────────────────────────────────────────

@dataclass(frozen=True)
class ContactDetails:
    """Fixed contact bundle used to synthesize a vCard."""
    first_name: str
    last_name: str
    organization: str | None = None
    title: str | None = None
    phone: str | None = None
    email: str | None = None
    website: str | None = None
    address: str | None = None


@dataclass(frozen=True)
class LinkRecord:
    """Redirecting QR record with optional scan quota, PIN and expiry."""
    id: RecordId
    slug: Slug
    status: RecordStatus
    created_at: datetime
    owner_id: str | None
    target_url: str
    fallback_urls: tuple[str, ...] = ()
    scan_count: int = 0
    scan_limit: int | None = None
    password_hash: str | None = None
    expires_at: datetime | None = None

    def __post_init__(self):
        if self.scan_count < 0:
            raise ValueError("scan_count must be non-negative")
        if self.scan_limit is not None and self.scan_limit <= 0:
            raise ValueError("scan_limit must be a positive integer")

    @property
    def kind(self) -> RecordKind:
        return RecordKind.LINK


@dataclass(frozen=True)
class ContactRecord:
    """Contact-card QR record. Scans are logged but never counted."""
    id: RecordId
    slug: Slug
    status: RecordStatus
    created_at: datetime
    owner_id: str | None
    contact: ContactDetails

    @property
    def kind(self) -> RecordKind:
        return RecordKind.CONTACT


QrRecord = LinkRecord | ContactRecord


# ─── Scan Metadata ───────────────────────────────────────────────

@dataclass(frozen=True)
class ClientMetadata:
    """Opaque request metadata attached to a scan event."""
    user_agent: str = ""
    client_origin: str | None = None
    referrer: str | None = None
