"""
Tests against a real database. Set DATABASE_URL to a server the tests can
create a database on to run them.
"""

import pytest

from pinpoint.db import Database
from pinpoint.db.migrations import get_applied_migrations, migrate_db
from pinpoint.locations.stores import PostgresLocationStore
from pinpoint.locations.types import Coordinate

pytestmark = [pytest.mark.asyncio, pytest.mark.postgres]


async def test_fetch(database: Database) -> None:
    rows = await database.fetch("SELECT * FROM generate_series(1, 2)")
    assert len(rows) == 2
    assert rows[0][0] == 1
    assert rows[1][0] == 2


async def test_fetchrow(database: Database) -> None:
    row = await database.fetchrow("SELECT 1, 'Hello'")
    assert row
    assert row[0] == 1
    assert row[1] == "Hello"


async def test_fetchval(database: Database) -> None:
    result: int = await database.fetchval("SELECT 1")
    assert result == 1


async def test_migrations_are_applied(database: Database) -> None:
    async with database.connection() as con:
        assert "0001_location" in await get_applied_migrations(con=con)

    assert await migrate_db(database) == []


async def test_insert(database: Database) -> None:
    store = PostgresLocationStore(database)

    record = await store.insert(Coordinate(latitude=37.7749, longitude=-122.4194))

    assert record.latitude == 37.7749
    assert record.longitude == -122.4194
    assert record.created_at.tzinfo is not None
    assert await database.fetchval("SELECT count(*) FROM location") >= 1


async def test_recent(database: Database) -> None:
    await database.execute("DELETE FROM location")
    store = PostgresLocationStore(database)

    saved = [
        await store.insert(Coordinate(latitude=i, longitude=i)) for i in range(12)
    ]

    records = await store.recent(10)
    assert len(records) == 10
    assert [record.id for record in records] == [
        record.id for record in saved[::-1][:10]
    ]

