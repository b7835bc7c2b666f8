"""Record Lookup — slug -> QrRecord | None over the RecordStore contract.

Invariants:
    - Malformed slugs are rejected before the store is touched (InvalidSlugError)
    - None means "no such slug"; store failures propagate as StoreUnavailableError
      and are never folded into None
    - No side effects
"""

from qr_redirect.core.domain_types import QrRecord, is_valid_slug
from qr_redirect.core.errors import ErrorContext, InvalidSlugError
from qr_redirect.core.repository_protocols import RecordStore


class RecordLookup:

    def __init__(self, store: RecordStore):
        self.store = store

    async def lookup(self, slug: str) -> QrRecord | None:
        if not is_valid_slug(slug):
            raise InvalidSlugError(slug, context=ErrorContext(slug=slug[:100]))
        return await self.store.find_by_slug(slug)
