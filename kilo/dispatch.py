"""Request construction and response classification shared by both proxies.

Nothing in this module performs I/O except reading file attachments; the
asynchronous and blocking proxies only differ in how they send the
:class:`~kilo.models.RequestDescriptor` built here.
"""

from __future__ import annotations

import dataclasses
import json
import logging
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from pathlib import PurePath
from typing import Any, Dict, Mapping, Optional, Union
from urllib.parse import urljoin, urlsplit
from uuid import UUID

import httpx
from pydantic import BaseModel

from .arguments import Arguments, append_query, encode_form, encode_query, to_epoch_millis
from .config import ProxyConfig
from .decoders import APPLICATION_JSON, Decoder, charset, is_text
from .errors import DecodeError, InvalidArgumentError, StatusError, WebServiceError
from .models import Encoding, Method, RequestDescriptor
from .multipart import (
    OCTET_STREAM,
    encode_multipart_form_data,
    multipart_content_type,
    new_boundary,
)

logger = logging.getLogger(__name__)

APPLICATION_FORM = "application/x-www-form-urlencoded"


class _NoBody:
    def __repr__(self) -> str:
        return "NO_BODY"


# Default for ``body=``; ``None`` is a valid JSON body.
NO_BODY: Any = _NoBody()


# ---------------------------------------------------------------------------
# Request side
# ---------------------------------------------------------------------------


def merge_headers(
    defaults: Optional[Mapping[str, str]], overrides: Optional[Mapping[str, str]]
) -> Dict[str, str]:
    """Apply *overrides* on top of *defaults*, matching names case-insensitively."""

    merged: Dict[str, str] = dict(defaults or {})
    for key, value in (overrides or {}).items():
        for existing in [k for k in merged if k.lower() == key.lower()]:
            del merged[existing]
        merged[key] = value
    return merged


def resolve_url(base_url: str, path: str) -> str:
    url = urljoin(base_url, path)
    parts = urlsplit(url)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise InvalidArgumentError(f"Invalid path: {path!r}")
    return url


def to_jsonable(value: Any) -> Any:
    """Convert *value* into plain JSON types; datetimes become epoch millis."""

    if isinstance(value, BaseModel):
        return to_jsonable(value.model_dump(mode="python", by_alias=True))
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return to_jsonable(dataclasses.asdict(value))
    if isinstance(value, Enum):
        return to_jsonable(value.value)
    if isinstance(value, Mapping):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_jsonable(v) for v in value]
    if isinstance(value, datetime):
        return to_epoch_millis(value)
    if isinstance(value, (date, time)):
        return value.isoformat()
    if isinstance(value, (UUID, Decimal, PurePath)):
        return str(value)
    return value


def encode_json_body(body: Any) -> bytes:
    try:
        return json.dumps(to_jsonable(body), ensure_ascii=False).encode("utf-8")
    except (TypeError, ValueError) as exc:
        raise InvalidArgumentError(f"Body is not JSON serializable: {exc}") from exc


def build_request(
    config: ProxyConfig,
    method: Union[str, Method],
    path: str,
    *,
    headers: Optional[Mapping[str, str]] = None,
    arguments: Optional[Arguments] = None,
    content: Optional[bytes] = None,
    content_type: Optional[str] = None,
    body: Any = NO_BODY,
) -> RequestDescriptor:
    """Build the request for one call from a config snapshot.

    POST without ``content`` or ``body`` sends the arguments as the request
    body, encoded per ``config.encoding``. Every other request carries the
    arguments in the query string.
    """

    method = Method.parse(method)

    if body is not NO_BODY:
        if content is not None:
            raise InvalidArgumentError("Pass either body or content, not both")
        content = encode_json_body(body)
        content_type = APPLICATION_JSON

    url = resolve_url(config.base_url, path)
    request_headers = merge_headers(config.headers, headers)

    if method is Method.POST and content is None:
        if config.encoding is Encoding.MULTIPART_FORM_DATA:
            boundary = new_boundary()
            data = encode_multipart_form_data(arguments, boundary)
            request_content_type: Optional[str] = multipart_content_type(boundary)
        else:
            data = encode_form(arguments)
            request_content_type = APPLICATION_FORM
    else:
        url = append_query(url, encode_query(arguments))
        data = content
        request_content_type = (content_type or OCTET_STREAM) if content is not None else None

    if request_content_type is not None:
        request_headers = merge_headers(request_headers, {"Content-Type": request_content_type})

    return RequestDescriptor(
        method=method,
        url=url,
        headers=request_headers,
        content=data,
        content_type=request_content_type,
    )


# ---------------------------------------------------------------------------
# Response side
# ---------------------------------------------------------------------------


def error_message(status_code: int, content: bytes, content_type: Optional[str]) -> str:
    if is_text(content_type) and content:
        try:
            return content.decode(charset(content_type), errors="replace")
        except LookupError:
            return content.decode("utf-8", errors="replace")
    return httpx.codes.get_reason_phrase(status_code) or f"HTTP {status_code}"


def classify_response(
    status_code: int,
    content: bytes,
    content_type: Optional[str],
    decoder: Decoder[Any],
) -> Any:
    """Return the decoded 2xx body or raise the matching error."""

    if 200 <= status_code < 300:
        if not content:
            return None
        try:
            return decoder(content, content_type)
        except WebServiceError:
            raise
        except Exception as exc:
            raise DecodeError(f"Unable to decode response: {exc}") from exc

    message = error_message(status_code, content, content_type)
    logger.warning(f"Request failed with status {status_code}: {message}")
    raise StatusError(status_code, message)
