"""Domain Types — verifies slug rules, record invariants and enum values.

Tests:
    - Slugs: [A-Za-z0-9_-]+ only, non-empty, case preserved
    - LinkRecord rejects negative counts and non-positive limits
    - ContactRecord cannot carry link-only fields
    - Enums serialize to their DB values
"""

import dataclasses

import pytest

from qr_redirect.core.domain_types import (
    ContactRecord, LinkRecord, RecordKind, RecordStatus, is_valid_slug,
)

from tests.services.fakes import make_contact, make_link


@pytest.mark.parametrize("slug", ["promo1", "event-rsvp", "A_b-9", "X"])
def test_valid_slugs(slug):
    assert is_valid_slug(slug)


@pytest.mark.parametrize(
    "slug", ["", "has space", "dot.slug", "slash/slug", "ümlaut", "q?x=1", "promo1\n"],
)
def test_invalid_slugs(slug):
    assert not is_valid_slug(slug)


def test_kind_is_fixed_by_type():
    assert make_link().kind is RecordKind.LINK
    assert make_contact().kind is RecordKind.CONTACT


def test_negative_scan_count_rejected():
    with pytest.raises(ValueError):
        make_link(scan_count=-1)


@pytest.mark.parametrize("limit", [0, -3])
def test_non_positive_scan_limit_rejected(limit):
    with pytest.raises(ValueError):
        make_link(scan_limit=limit)


def test_contact_record_has_no_link_fields():
    names = {f.name for f in dataclasses.fields(ContactRecord)}
    assert not names & {"scan_count", "scan_limit", "password_hash", "target_url"}


def test_contact_record_rejects_scan_limit():
    with pytest.raises(TypeError):
        make_contact(scan_limit=5)


def test_records_are_immutable():
    record = make_link()
    with pytest.raises(dataclasses.FrozenInstanceError):
        record.scan_count = 10  # type: ignore[misc]


def test_status_values():
    assert {s.value for s in RecordStatus} == {"active", "archived", "expired"}
    assert {k.value for k in RecordKind} == {"link", "contact"}


def test_link_record_defaults():
    record = make_link()
    assert isinstance(record, LinkRecord)
    assert record.fallback_urls == ()
    assert record.password_hash is None
