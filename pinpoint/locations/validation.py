"""
Decoding and validation of submitted coordinates.

Both steps are pure and run before any storage access. Decoding turns the raw
request body into a mapping, validation turns that mapping into a
``Coordinate``.
"""

import json
import math
from collections.abc import Mapping
from typing import Any

from .exceptions import MalformedBody, MissingField, OutOfRange
from .types import Coordinate

LATITUDE_BOUNDS = (-90.0, 90.0)
LONGITUDE_BOUNDS = (-180.0, 180.0)

REQUIRED_FIELDS = ("latitude", "longitude")


def decode_body(body: bytes) -> dict[str, Any]:
    """
    Decode a request body into a JSON object.

    An empty body decodes to an empty object, so it is reported as missing
    fields rather than as malformed.
    """

    if not body.strip():
        return {}

    # Deeply nested bodies exhaust the recursion limit while decoding
    try:
        payload = json.loads(body, parse_int=_parse_int)
    except (ValueError, RecursionError) as exc:
        raise MalformedBody() from exc

    if not isinstance(payload, dict):
        raise MalformedBody()

    return payload


def _parse_int(text: str) -> int | float:
    # Integers past the int digit limit overflow to inf and fail the bounds
    # check instead of failing to decode
    try:
        return int(text)
    except ValueError:
        return float(text)


def validate(payload: Mapping[str, Any]) -> Coordinate:
    """
    Validate a submitted coordinate pair.

    Missing fields are checked first, then latitude, then longitude. Only
    the first failure is reported. Values are returned unchanged.
    """

    if missing := [field for field in REQUIRED_FIELDS if payload.get(field) is None]:
        raise MissingField(missing, payload)

    return Coordinate(
        latitude=_check_bounds("latitude", payload["latitude"], LATITUDE_BOUNDS),
        longitude=_check_bounds("longitude", payload["longitude"], LONGITUDE_BOUNDS),
    )


def _check_bounds(field: str, value: Any, bounds: tuple[float, float]) -> float:
    number = _as_finite_number(value)
    if number is None:
        raise OutOfRange(field, value)

    lower, upper = bounds
    if not lower <= number <= upper:
        raise OutOfRange(field, value)

    return number


def _as_finite_number(value: Any) -> float | None:
    # bool is a subclass of int, but true/false are not coordinates
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None

    try:
        number = float(value)
    except OverflowError:
        return None

    return number if math.isfinite(number) else None
