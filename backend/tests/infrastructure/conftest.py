"""Infrastructure fixtures — in-memory SQLite engine with the full schema.

Design Decisions:
    - StaticPool: one shared connection, so the in-memory database survives
      across the sessions DatabaseSessionManager opens per operation
    - Schema from Base.metadata (alembic not run in unit tests)
"""

import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from qr_redirect.db.base import Base
from qr_redirect.infrastructure.database import DatabaseSessionManager
import qr_redirect.models  # noqa: F401  (registers tables on Base.metadata)


@pytest.fixture
async def db():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, _):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    manager = DatabaseSessionManager.from_engine(engine)
    yield manager
    await engine.dispose()
