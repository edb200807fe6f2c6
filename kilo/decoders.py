"""Response decoders.

A decoder is any callable ``(content: bytes, content_type: str | None) -> T``.
The proxy only calls it for 2xx responses with a non-empty body; whatever it
raises is reported to the caller as :class:`~kilo.errors.DecodeError`.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Tuple, Type, TypeVar

from pydantic import BeforeValidator, PlainSerializer, TypeAdapter
from typing_extensions import Annotated

from .arguments import from_epoch_millis, to_epoch_millis

T = TypeVar("T")

Decoder = Callable[[bytes, Optional[str]], T]

APPLICATION_JSON = "application/json"


def parse_content_type(content_type: Optional[str]) -> Tuple[str, Dict[str, str]]:
    """Split a Content-Type header into a lower-case MIME type and parameters."""

    if not content_type:
        return "", {}
    mime, _, rest = content_type.partition(";")
    params: Dict[str, str] = {}
    for item in rest.split(";"):
        name, sep, value = item.partition("=")
        if sep:
            params[name.strip().lower()] = value.strip().strip('"')
    return mime.strip().lower(), params


def is_json(content_type: Optional[str]) -> bool:
    mime, _ = parse_content_type(content_type)
    return mime.startswith(APPLICATION_JSON)


def is_text(content_type: Optional[str]) -> bool:
    mime, _ = parse_content_type(content_type)
    return mime.startswith("text/")


def charset(content_type: Optional[str], default: str = "utf-8") -> str:
    _, params = parse_content_type(content_type)
    return params.get("charset") or default


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------


def _parse_epoch_millis(value: Any) -> Any:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return from_epoch_millis(int(value))
    return value


# Datetime carried on the wire as integer milliseconds since the epoch.
EpochMillis = Annotated[
    datetime,
    BeforeValidator(_parse_epoch_millis),
    PlainSerializer(to_epoch_millis, return_type=int),
]


# ---------------------------------------------------------------------------
# Built-in decoders
# ---------------------------------------------------------------------------


def raw(content: bytes, content_type: Optional[str]) -> bytes:
    return content


def text(content: bytes, content_type: Optional[str]) -> str:
    return content.decode(charset(content_type))


def json_value(content: bytes, content_type: Optional[str]) -> Any:
    return json.loads(content)


def discard(content: bytes, content_type: Optional[str]) -> None:
    return None


def auto(content: bytes, content_type: Optional[str]) -> Any:
    """JSON for ``application/json*``, text for ``text/*``, bytes otherwise."""

    if is_json(content_type):
        return json_value(content, content_type)
    if is_text(content_type):
        return text(content, content_type)
    return raw(content, content_type)


def typed(tp: Type[T]) -> Decoder[T]:
    """Build a decoder validating JSON content against *tp*.

    *tp* is anything pydantic can validate: a ``BaseModel`` subclass, a
    dataclass, ``list[int]`` and so on. Missing required fields and type
    mismatches raise ``pydantic.ValidationError``.
    """

    adapter = TypeAdapter(tp)

    def decode(content: bytes, content_type: Optional[str]) -> T:
        return adapter.validate_json(content)

    return decode
