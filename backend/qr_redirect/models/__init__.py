"""ORM Models — SQLAlchemy declarative models for persisted entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - QrRecord is the aggregate root; scan events reference it by record_id

Design Decisions:
    - One file per entity for locality
    - All models imported here so metadata is complete before create_all/autogenerate
"""

from qr_redirect.models.qr_record import QrRecord  # noqa: F401
from qr_redirect.models.scan_event import ScanEvent  # noqa: F401
