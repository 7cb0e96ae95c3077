"""
Gateway mediating all reads and writes of location records.
"""

from collections.abc import Iterator
from contextlib import contextmanager

import structlog

from ..utils import timed
from .exceptions import StorageError, StorageUnavailable, UnknownStorageError
from .stores import LocationStore
from .types import Coordinate, LocationRecord

logger = structlog.get_logger()

DEFAULT_LIMIT = 10


class LocationGateway:
    """
    Persist validated coordinates and read back the most recent records.

    All backend failures are raised as ``StorageError``: ``StorageUnavailable``
    when the backend can't be reached and ``UnknownStorageError`` otherwise.
    Failures are never retried.
    """

    def __init__(self, store: LocationStore) -> None:
        self.store = store

    async def connect(self) -> None:
        await self.store.connect()
        logger.info("Location store connected", store=type(self.store).__name__)

    async def close(self) -> None:
        await self.store.close()
        logger.info("Location store closed", store=type(self.store).__name__)

    async def save(self, coordinate: Coordinate) -> LocationRecord:
        with self._storage_errors(), timed("Save location"):
            record = await self.store.insert(coordinate)

        logger.info(
            "Location saved",
            id=str(record.id),
            latitude=record.latitude,
            longitude=record.longitude,
        )
        return record

    async def list_recent(self, limit: int = DEFAULT_LIMIT) -> list[LocationRecord]:
        if limit < 1:
            raise ValueError(f"limit must be at least 1, got {limit}")

        with self._storage_errors(), timed("List locations"):
            return await self.store.recent(limit)

    async def ping(self) -> None:
        with self._storage_errors():
            await self.store.ping()

    @contextmanager
    def _storage_errors(self) -> Iterator[None]:
        try:
            yield
        except StorageError:
            raise
        except self.store.unavailable_errors as exc:
            raise StorageUnavailable(
                f"Location store is unavailable ({type(exc).__name__})"
            ) from exc
        except Exception as exc:
            raise UnknownStorageError(
                f"Unexpected location store error ({type(exc).__name__})"
            ) from exc
