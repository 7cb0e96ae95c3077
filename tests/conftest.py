from __future__ import annotations

import asyncio
import os
from collections.abc import AsyncIterator, Iterator

import asyncpg
import httpx
import pytest
from fastapi import FastAPI

from pinpoint.config import Settings
from pinpoint.db import Database
from pinpoint.db.migrations import migrate_db
from pinpoint.locations.dependencies import get_gateway
from pinpoint.locations.gateway import LocationGateway
from pinpoint.locations.stores import InMemoryLocationStore
from pinpoint.server import create_app

DATABASE_URL = os.environ.get("DATABASE_URL")

TEST_DATABASE = "pinpoint_test"


#################
# Location data #
#################


@pytest.fixture
def coordinate() -> dict[str, float]:
    return {"latitude": 37.7749, "longitude": -122.4194}


###########
# Gateway #
############


@pytest.fixture
def store() -> InMemoryLocationStore:
    return InMemoryLocationStore()


@pytest.fixture
async def gateway(store: InMemoryLocationStore) -> AsyncIterator[LocationGateway]:
    gateway = LocationGateway(store)
    await gateway.connect()
    try:
        yield gateway
    finally:
        await gateway.close()


########
# APIs #
########


@pytest.fixture
def settings() -> Settings:
    return Settings(storage_backend="memory")


@pytest.fixture
def app(settings: Settings, gateway: LocationGateway) -> FastAPI:
    app = create_app(settings)
    app.dependency_overrides[get_gateway] = lambda: gateway
    return app


@pytest.fixture
async def client(app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


############
# Postgres #
############


async def _setup_db() -> None:
    con = await asyncpg.connect(DATABASE_URL)
    try:
        try:
            await con.execute(f"CREATE DATABASE {TEST_DATABASE}")
        except asyncpg.exceptions.DuplicateDatabaseError:
            pass
    finally:
        await con.close()

    con = await asyncpg.connect(DATABASE_URL, database=TEST_DATABASE)
    try:
        database = Database(DATABASE_URL)
        with database.set_connection(con):
            await migrate_db(database)
    finally:
        await con.close()


async def _drop_db() -> None:
    con = await asyncpg.connect(DATABASE_URL)
    try:
        await con.execute(f"DROP DATABASE {TEST_DATABASE}")
    finally:
        await con.close()


@pytest.fixture(scope="session")
def setup_db() -> Iterator[None]:
    asyncio.run(_setup_db())
    try:
        yield
    finally:
        asyncio.run(_drop_db())


@pytest.fixture
async def _connection(setup_db: None) -> AsyncIterator[asyncpg.Connection]:
    connection = await asyncpg.connect(DATABASE_URL, database=TEST_DATABASE)
    try:
        transaction = connection.transaction()
        await transaction.start()
        try:
            yield connection
        finally:
            await transaction.rollback()
    finally:
        await connection.close()


@pytest.fixture
def database(_connection: asyncpg.Connection) -> Iterator[Database]:
    # The contextvar has to be set in a sync fixture, because async fixtures
    # are executed in a separate task which means they don't share context
    # with the test function.
    database = Database(DATABASE_URL)
    with database.set_connection(_connection):
        yield database


def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    if DATABASE_URL:
        return

    skip = pytest.mark.skip(reason="DATABASE_URL is not set")
    for item in items:
        if item.get_closest_marker("postgres"):
            item.add_marker(skip)
