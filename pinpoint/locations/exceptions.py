"""Exceptions raised when submitting or reading locations."""

import math
from collections.abc import Iterable
from typing import Any

_UNSET: Any = object()


class LocationError(Exception):
    """Base exception for the locations app."""

    pass


class ValidationError(LocationError):
    """
    A submitted location was rejected before reaching storage.

    ``received`` is the offending input, echoed back to the client.
    """

    def __init__(self, error: str, received: Any = _UNSET) -> None:
        super().__init__(error)
        self.error = error
        self.received = received

    def to_dict(self) -> dict[str, Any]:
        content: dict[str, Any] = {"error": self.error}
        if self.received is not _UNSET:
            content["received"] = _jsonable(self.received)
        return content


class MissingField(ValidationError):
    """One or both coordinate fields are absent or null."""

    def __init__(self, fields: Iterable[str], payload: Any) -> None:
        self.fields = tuple(fields)
        super().__init__(
            f"Missing required fields: {', '.join(self.fields)}", received=payload
        )


class OutOfRange(ValidationError):
    """A coordinate field is not a finite number or is outside its bounds."""

    def __init__(self, field: str, value: Any) -> None:
        self.field = field
        self.value = value
        super().__init__(f"Invalid {field} value", received=value)


class MalformedBody(ValidationError):
    """The request body is not a JSON object."""

    def __init__(self) -> None:
        super().__init__("Invalid JSON")


class StorageError(LocationError):
    """
    The location store failed.

    The message is safe to show to clients and never includes connection
    details; the original exception is chained as ``__cause__``.
    """

    pass


class StorageUnavailable(StorageError):
    """The storage backend could not be reached."""

    pass


class UnknownStorageError(StorageError):
    """The storage backend failed for any other reason."""

    pass


def _jsonable(value: Any) -> Any:
    # Non-finite floats have no JSON representation
    if isinstance(value, float) and not math.isfinite(value):
        if math.isnan(value):
            return "NaN"
        return "Infinity" if value > 0 else "-Infinity"
    if isinstance(value, dict):
        return {key: _jsonable(item) for key, item in value.items()}
    if isinstance(value, list | tuple):
        return [_jsonable(item) for item in value]
    return value
