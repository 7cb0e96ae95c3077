from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class Coordinate(BaseModel):
    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float


class LocationRecord(BaseModel):
    """
    A stored coordinate. Serialized with a camelCase ``createdAt``.
    """

    model_config = ConfigDict(frozen=True)

    id: UUID
    latitude: float
    longitude: float
    created_at: datetime = Field(serialization_alias="createdAt")


class SavedLocation(BaseModel):
    message: str
    location: LocationRecord


class ErrorResponse(BaseModel):
    error: str
    message: str | None = None
    received: Any = None
