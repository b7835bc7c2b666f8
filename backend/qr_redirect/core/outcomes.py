"""Resolve Outcomes — the five user-visible results of resolving a slug.

Invariants:
    - Every resolve call ends in exactly one Outcome variant
    - WrongPin.message never contains the supplied PIN
    - Unavailable carries an internal reason for logs only; the boundary never renders it

Design Decisions:
    - Frozen dataclasses + union alias: exhaustive `match` at the HTTP boundary
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Redirect:
    url: str


@dataclass(frozen=True)
class ContactPayload:
    """Rendered vCard document plus the slug used for its filename."""
    slug: str
    vcard: str


@dataclass(frozen=True)
class NeedPin:
    slug: str


@dataclass(frozen=True)
class WrongPin:
    slug: str
    message: str | None


@dataclass(frozen=True)
class Unavailable:
    reason: str = "unavailable"


Outcome = Redirect | ContactPayload | NeedPin | WrongPin | Unavailable
