"""
Storage backends for location records.

A store only persists and reads records. It does not validate coordinates;
that happens before a record is ever constructed.
"""

from datetime import UTC, datetime
from typing import ClassVar, Protocol
from uuid import uuid4

import asyncpg
import structlog

from ..config import Settings
from ..db import Database
from .types import Coordinate, LocationRecord

logger = structlog.get_logger()


class LocationStore(Protocol):
    """Protocol for backends used by the location gateway."""

    # Exceptions that mean the backend could not be reached
    unavailable_errors: ClassVar[tuple[type[Exception], ...]]

    async def connect(self) -> None: ...

    async def close(self) -> None: ...

    async def insert(self, coordinate: Coordinate) -> LocationRecord: ...

    async def recent(self, limit: int) -> list[LocationRecord]: ...

    async def ping(self) -> None: ...


class PostgresLocationStore:
    unavailable_errors = (
        OSError,
        asyncpg.exceptions.InterfaceError,
        asyncpg.exceptions.PostgresConnectionError,
        asyncpg.exceptions.CannotConnectNowError,
    )

    def __init__(self, database: Database) -> None:
        self.database = database

    async def connect(self) -> None:
        await self.database.connect()

    async def close(self) -> None:
        await self.database.disconnect()

    async def insert(self, coordinate: Coordinate) -> LocationRecord:
        row = await self.database.fetchrow(
            """
            INSERT INTO location (latitude, longitude) VALUES ($1, $2)
            RETURNING id, latitude, longitude, created_at
            """,
            coordinate.latitude,
            coordinate.longitude,
        )
        assert row is not None
        return LocationRecord(**row)

    async def recent(self, limit: int) -> list[LocationRecord]:
        rows = await self.database.fetch(
            """
            SELECT id, latitude, longitude, created_at
            FROM location
            ORDER BY created_at DESC
            LIMIT $1
            """,
            limit,
        )
        return [LocationRecord(**row) for row in rows]

    async def ping(self) -> None:
        await self.database.fetchval("SELECT 1")


class InMemoryLocationStore:
    """
    Process local store, used for development and tests.

    Like the Postgres store it refuses to serve requests until connected.
    """

    unavailable_errors = (ConnectionError,)

    def __init__(self) -> None:
        self.connected = False
        self._records: list[LocationRecord] = []

    async def connect(self) -> None:
        self.connected = True

    async def close(self) -> None:
        self.connected = False

    async def insert(self, coordinate: Coordinate) -> LocationRecord:
        self._check_connected()

        created_at = datetime.now(UTC)
        if self._records and self._records[-1].created_at > created_at:
            created_at = self._records[-1].created_at

        record = LocationRecord(
            id=uuid4(),
            latitude=coordinate.latitude,
            longitude=coordinate.longitude,
            created_at=created_at,
        )
        self._records.append(record)
        return record

    async def recent(self, limit: int) -> list[LocationRecord]:
        self._check_connected()
        # Records are kept in insertion order, so ties on created_at resolve
        # to the most recently inserted record first
        return self._records[::-1][:limit]

    async def ping(self) -> None:
        self._check_connected()

    def _check_connected(self) -> None:
        if not self.connected:
            raise ConnectionError("In-memory store is not connected")


def create_store(settings: Settings) -> LocationStore:
    if settings.storage_backend == "memory":
        logger.warning("Using in-memory location store, records are not persisted")
        return InMemoryLocationStore()
    return PostgresLocationStore(Database.from_settings(settings))
