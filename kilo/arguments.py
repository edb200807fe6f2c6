"""Argument encoding for query strings and URL-encoded bodies.

Arguments are a mapping from name to value. Lists and tuples expand to one
pair per element, ``None`` and :data:`~kilo.models.UNDEFINED` are dropped and
everything else is formatted as text. Percent-encoding leaves no reserved
character unescaped, so ``+`` is always sent as ``%2B`` and space as ``%20``.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from enum import Enum
from typing import Any, Iterator, Mapping, Optional, Tuple
from urllib.parse import quote

from .errors import InvalidArgumentError
from .models import UNDEFINED, Attachment

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

Arguments = Mapping[str, Any]


def to_epoch_millis(value: datetime) -> int:
    # Naive datetimes are interpreted in local time, like datetime.timestamp().
    if value.tzinfo is None:
        value = value.astimezone()
    return (value - EPOCH) // timedelta(milliseconds=1)


def from_epoch_millis(value: int) -> datetime:
    return EPOCH + timedelta(milliseconds=value)


def is_missing(value: Any) -> bool:
    return value is None or value is UNDEFINED


def format_value(value: Any) -> str:
    """Return the text form of a single argument element."""

    if isinstance(value, Enum):
        return format_value(value.value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        return str(to_epoch_millis(value))
    if isinstance(value, (date, time)):
        return value.isoformat()
    if isinstance(value, Attachment):
        return value.filename
    return str(value)


def iter_arguments(arguments: Optional[Arguments]) -> Iterator[Tuple[str, Any]]:
    """Yield ``(key, element)`` pairs in mapping order, expanding lists.

    Raises :class:`InvalidArgumentError` for an empty key, whether or not the
    value would be dropped.
    """

    if not arguments:
        return
    for key, value in arguments.items():
        if not isinstance(key, str) or not key:
            raise InvalidArgumentError(f"Invalid argument name: {key!r}")
        elements = value if isinstance(value, (list, tuple)) else (value,)
        for element in elements:
            if is_missing(element):
                continue
            yield key, element


def encode_query(arguments: Optional[Arguments]) -> str:
    return "&".join(
        f"{quote(key, safe='')}={quote(format_value(element), safe='')}"
        for key, element in iter_arguments(arguments)
    )


def encode_form(arguments: Optional[Arguments]) -> bytes:
    return encode_query(arguments).encode("ascii")


def append_query(url: str, query: str) -> str:
    if not query:
        return url
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{query}"
