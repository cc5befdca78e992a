"""
Date normalization for heterogeneous stored date values.

Vehicle documents carry dates in several shapes depending on who wrote
them: store-native timestamp objects, ``{"seconds": ...}`` mappings left
over from serialization, ISO-8601 strings, display strings such as
"Dec 12, 2025", or plain datetimes. Everything is reduced to a
timezone-aware ``datetime`` so instants compare regardless of origin.
"""

import logging
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Callable, Optional

from dateutil import parser as date_parser

from .errors import InvalidDateError

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class DateKind(Enum):
    """Shapes a stored date value can take, in precedence order."""

    ABSENT = "absent"
    CONVERSION = "conversion"  # exposes to_datetime() / toDate()
    EPOCH_SECONDS = "epoch_seconds"  # exposes .seconds or {"seconds": ...}
    NATIVE = "native"
    ISO_STRING = "iso_string"  # anything handed to the generic parser


_CONVERSION_METHODS = ("to_datetime", "toDate")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _conversion_method(value: Any) -> Optional[Callable[[], Any]]:
    for name in _CONVERSION_METHODS:
        method = getattr(value, name, None)
        if callable(method):
            return method
    return None


def _epoch_seconds(value: Any) -> Optional[Any]:
    if isinstance(value, dict):
        return value.get("seconds")
    return getattr(value, "seconds", None)


def classify(value: Any) -> DateKind:
    """Determine which shape a date value has."""
    if value is None or value == "":
        return DateKind.ABSENT
    if _conversion_method(value) is not None:
        return DateKind.CONVERSION
    if _epoch_seconds(value) is not None:
        return DateKind.EPOCH_SECONDS
    if isinstance(value, (datetime, date)):
        return DateKind.NATIVE
    return DateKind.ISO_STRING


def _as_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _from_native(value: Any) -> datetime:
    if isinstance(value, datetime):
        return _as_aware(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    # Conversion methods may hand back anything; parse it generically
    return _parse(value)


def _from_epoch(value: Any) -> datetime:
    seconds = _epoch_seconds(value)
    if isinstance(value, dict):
        nanos = value.get("nanoseconds") or 0
    else:
        nanos = getattr(value, "nanoseconds", 0) or 0
    try:
        return datetime.fromtimestamp(float(seconds) + float(nanos) / 1e9, tz=timezone.utc)
    except (TypeError, ValueError, OverflowError, OSError) as e:
        raise InvalidDateError(f"Invalid epoch seconds: {seconds!r}") from e


def _parse(value: Any) -> datetime:
    """Generic parse: numbers are epoch milliseconds, strings go to dateutil."""
    if isinstance(value, (datetime, date)):
        return _from_native(value)
    if isinstance(value, bool):
        raise InvalidDateError(f"Not a date: {value!r}")
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (ValueError, OverflowError, OSError) as e:
            raise InvalidDateError(f"Invalid epoch milliseconds: {value!r}") from e
    if not isinstance(value, str):
        raise InvalidDateError(f"Not a date: {value!r}")

    text = value.strip()
    try:
        return _as_aware(date_parser.isoparse(text))
    except (ValueError, OverflowError):
        pass
    try:
        return _as_aware(date_parser.parse(text))
    except (ValueError, OverflowError) as e:
        raise InvalidDateError(f"Unparseable date: {value!r}") from e


def normalize(value: Any, clock: Clock = utc_now) -> datetime:
    """
    Convert any supported date shape into an aware datetime.

    An absent value yields ``clock()`` (now). Raises InvalidDateError when
    the generic parse fails.
    """
    kind = classify(value)
    if kind is DateKind.ABSENT:
        return clock()
    if kind is DateKind.CONVERSION:
        return _from_native(_conversion_method(value)())
    if kind is DateKind.EPOCH_SECONDS:
        return _from_epoch(value)
    if kind is DateKind.NATIVE:
        return _from_native(value)
    return _parse(value)


def normalize_or_now(value: Any, clock: Clock = utc_now) -> datetime:
    """Like normalize(), but substitutes now for unparseable input."""
    try:
        return normalize(value, clock)
    except InvalidDateError as e:
        logger.warning("Falling back to now for bad date: %s", e)
        return clock()


def optional_date(value: Any, clock: Clock = utc_now) -> Optional[datetime]:
    """Normalize a value that may legitimately be missing (returns None)."""
    if classify(value) is DateKind.ABSENT:
        return None
    return normalize_or_now(value, clock)


def format_display(value: datetime) -> str:
    """Short display label, e.g. 'Dec 12, 2025'."""
    return value.strftime("%b %d, %Y")
