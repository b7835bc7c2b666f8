"""Access Policy — verifies check order, quota, PIN and expiry decisions.

Tests:
    - Non-active status denies before any other rule
    - Scan quota and expires_at request lazy expiry
    - PIN: missing -> NeedPin, wrong -> WrongPin, right -> Allow
    - Contact records ignore PINs and quota entirely
"""

from datetime import datetime, timedelta, timezone

import pytest

from qr_redirect.core.access_policy import (
    Allow, DenyNeedPin, DenyUnavailable, DenyWrongPin, evaluate_access,
    quota_exhausted,
)
from qr_redirect.core.credentials import hash_pin
from qr_redirect.core.domain_types import RecordStatus

from tests.services.fakes import make_contact, make_link, protected_link

NOW = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)


def test_active_unprotected_link_is_allowed():
    assert evaluate_access(make_link(), None, NOW) == Allow()


@pytest.mark.parametrize("status", [RecordStatus.ARCHIVED, RecordStatus.EXPIRED])
def test_non_active_status_is_uniformly_unavailable(status):
    decision = evaluate_access(make_link(status=status), None, NOW)
    assert isinstance(decision, DenyUnavailable)
    assert decision.expire is False


def test_status_check_does_not_reveal_which_status():
    archived = evaluate_access(make_link(status=RecordStatus.ARCHIVED), None, NOW)
    expired = evaluate_access(make_link(status=RecordStatus.EXPIRED), None, NOW)
    assert type(archived) is type(expired)


def test_quota_reached_denies_and_requests_expiry():
    decision = evaluate_access(make_link(scan_count=5, scan_limit=5), None, NOW)
    assert decision == DenyUnavailable(reason="scan_limit_reached", expire=True)


def test_quota_exceeded_also_denies():
    decision = evaluate_access(make_link(scan_count=9, scan_limit=5), None, NOW)
    assert isinstance(decision, DenyUnavailable)


def test_below_quota_is_allowed():
    assert evaluate_access(make_link(scan_count=4, scan_limit=5), None, NOW) == Allow()


def test_expires_at_in_past_denies_and_requests_expiry():
    record = make_link(expires_at=NOW - timedelta(seconds=1))
    decision = evaluate_access(record, None, NOW)
    assert decision == DenyUnavailable(reason="expires_at_passed", expire=True)


def test_expires_at_in_future_is_allowed():
    record = make_link(expires_at=NOW + timedelta(days=1))
    assert evaluate_access(record, None, NOW) == Allow()


def test_protected_link_without_pin_needs_pin():
    assert evaluate_access(protected_link("1234"), None, NOW) == DenyNeedPin()


def test_protected_link_with_wrong_pin():
    assert evaluate_access(protected_link("1234"), "0000", NOW) == DenyWrongPin()


def test_protected_link_with_empty_pin_is_wrong_not_missing():
    assert evaluate_access(protected_link("1234"), "", NOW) == DenyWrongPin()


def test_protected_link_with_right_pin_is_allowed():
    assert evaluate_access(protected_link("1234"), "1234", NOW) == Allow()


def test_expired_and_protected_reports_unavailable_not_pin_prompt():
    record = protected_link("1234", scan_count=3, scan_limit=3)
    decision = evaluate_access(record, None, NOW)
    assert isinstance(decision, DenyUnavailable)


def test_archived_and_protected_reports_unavailable():
    record = protected_link("1234", status=RecordStatus.ARCHIVED)
    assert isinstance(evaluate_access(record, "1234", NOW), DenyUnavailable)


def test_status_precedes_quota():
    record = make_link(status=RecordStatus.ARCHIVED, scan_count=5, scan_limit=5)
    decision = evaluate_access(record, None, NOW)
    assert decision.expire is False


def test_verifier_not_called_when_denied_earlier():
    calls = []

    def spy(pin, stored):
        calls.append(pin)
        return True

    record = protected_link("1234", scan_count=1, scan_limit=1)
    evaluate_access(record, "1234", NOW, verify=spy)
    assert calls == []


def test_verifier_receives_stored_hash():
    seen = []

    def spy(pin, stored):
        seen.append((pin, stored))
        return False

    evaluate_access(protected_link("1234"), "9999", NOW, verify=spy)
    assert seen == [("9999", hash_pin("1234"))]


def test_contact_record_allowed_regardless_of_pin():
    assert evaluate_access(make_contact(), None, NOW) == Allow()
    assert evaluate_access(make_contact(), "0000", NOW) == Allow()


def test_archived_contact_is_unavailable():
    record = make_contact(status=RecordStatus.ARCHIVED)
    assert isinstance(evaluate_access(record, None, NOW), DenyUnavailable)


def test_quota_exhausted_helper():
    assert quota_exhausted(make_link(scan_count=2, scan_limit=2))
    assert not quota_exhausted(make_link(scan_count=2, scan_limit=None))
