"""SQL Record Store — row mapping, exact lookup, conditional UPDATEs (in-memory SQLite).

Tests:
    - Link and contact rows map onto LinkRecord / ContactRecord
    - Slug lookup is exact and case-sensitive
    - atomic_increment_scan honours cap, status and kind
    - atomic_set_status is compare-and-set
    - Unreachable database surfaces as StoreUnavailableError
"""

import uuid
from datetime import datetime, timezone

import pytest

from qr_redirect.core.credentials import hash_pin
from qr_redirect.core.domain_types import (
    ContactRecord, LinkRecord, RecordId, RecordStatus,
)
from qr_redirect.core.errors import StoreUnavailableError
from qr_redirect.infrastructure.database import DatabaseSessionManager
from qr_redirect.infrastructure.record_store import SqlRecordStore
from qr_redirect.models.qr_record import QrRecord as QrRecordRow


async def _insert(db, **values) -> RecordId:
    values.setdefault("id", uuid.uuid4())
    values.setdefault("status", "active")
    values.setdefault("created_at", datetime(2026, 1, 1, tzinfo=timezone.utc))
    async with db.session() as session:
        session.add(QrRecordRow(**values))
        await session.commit()
    return RecordId(values["id"])


async def _link(db, slug="promo1", **values) -> RecordId:
    return await _insert(
        db, slug=slug, kind="link", target_url="https://up.example", **values,
    )


async def test_find_link_maps_all_fields(db):
    record_id = await _link(
        db,
        owner_id="2",
        fallback_urls=["https://fb1", "https://fb2"],
        scan_count=4,
        scan_limit=10,
        password_hash=hash_pin("1234"),
    )
    record = await SqlRecordStore(db).find_by_slug("promo1")

    assert isinstance(record, LinkRecord)
    assert record.id == record_id
    assert record.target_url == "https://up.example"
    assert record.fallback_urls == ("https://fb1", "https://fb2")
    assert record.scan_count == 4
    assert record.scan_limit == 10
    assert record.password_hash == hash_pin("1234")
    assert record.status is RecordStatus.ACTIVE
    assert record.created_at.tzinfo is not None


async def test_find_contact_maps_bundle(db):
    await _insert(
        db, slug="card1", kind="contact",
        contact={"first_name": "Ada", "last_name": "Lovelace", "email": "ada@example.com"},
    )
    record = await SqlRecordStore(db).find_by_slug("card1")

    assert isinstance(record, ContactRecord)
    assert record.contact.first_name == "Ada"
    assert record.contact.email == "ada@example.com"
    assert record.contact.phone is None


async def test_find_unknown_slug_returns_none(db):
    assert await SqlRecordStore(db).find_by_slug("missing") is None


async def test_find_is_case_sensitive(db):
    await _link(db, slug="Promo1")
    store = SqlRecordStore(db)
    assert await store.find_by_slug("promo1") is None
    assert await store.find_by_slug("Promo1") is not None


async def test_uncapped_increment_returns_new_count(db):
    record_id = await _link(db, scan_count=41)
    store = SqlRecordStore(db)
    assert await store.atomic_increment_scan(record_id) == 42
    assert (await store.find_by_slug("promo1")).scan_count == 42


async def test_capped_increment_stops_at_cap(db):
    record_id = await _link(db, scan_limit=2)
    store = SqlRecordStore(db)

    claims = [await store.atomic_increment_scan(record_id, cap=2) for _ in range(3)]

    assert claims == [1, 2, None]
    assert (await store.find_by_slug("promo1")).scan_count == 2


async def test_capped_increment_refused_when_not_active(db):
    record_id = await _link(db, status="expired", scan_limit=5)
    assert await SqlRecordStore(db).atomic_increment_scan(record_id, cap=5) is None


async def test_increment_never_touches_contacts(db):
    record_id = await _insert(db, slug="card1", kind="contact", contact={})
    assert await SqlRecordStore(db).atomic_increment_scan(record_id) is None


async def test_set_status_is_compare_and_set(db):
    record_id = await _link(db)
    store = SqlRecordStore(db)

    first = await store.atomic_set_status(
        record_id, RecordStatus.ACTIVE, RecordStatus.EXPIRED,
    )
    second = await store.atomic_set_status(
        record_id, RecordStatus.ACTIVE, RecordStatus.EXPIRED,
    )

    assert (first, second) == (True, False)
    assert (await store.find_by_slug("promo1")).status is RecordStatus.EXPIRED


async def test_unreachable_database_raises_store_unavailable(tmp_path):
    missing = tmp_path / "no-such-dir" / "qr.db"
    manager = DatabaseSessionManager(f"sqlite+aiosqlite:///{missing}")
    try:
        with pytest.raises(StoreUnavailableError):
            await SqlRecordStore(manager).find_by_slug("promo1")
    finally:
        await manager.dispose()
