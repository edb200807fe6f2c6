"""multipart/form-data body construction."""

from __future__ import annotations

import logging
import uuid
from pathlib import Path, PurePath
from typing import Any, Optional

from .arguments import Arguments, format_value, iter_arguments
from .errors import AttachmentError
from .models import Attachment

logger = logging.getLogger(__name__)

CRLF = b"\r\n"
OCTET_STREAM = "application/octet-stream"


def new_boundary() -> str:
    return str(uuid.uuid4())


def multipart_content_type(boundary: str) -> str:
    return f"multipart/form-data; boundary={boundary}"


def _quote_header_value(value: str) -> str:
    return value.replace('"', "%22").replace("\r", "%0D").replace("\n", "%0A")


def _read_file(path: PurePath) -> bytes:
    try:
        return Path(path).read_bytes()
    except OSError as exc:
        logger.warning(f"Unable to read attachment {path}: {exc}")
        raise AttachmentError(f"Unable to read attachment {path}", str(path)) from exc


def _file_part(element: Any) -> Optional[tuple[str, str, bytes]]:
    if isinstance(element, Attachment):
        return element.filename, element.content_type, element.content
    if isinstance(element, PurePath):
        return element.name, OCTET_STREAM, _read_file(element)
    return None


def encode_multipart_form_data(arguments: Optional[Arguments], boundary: str) -> bytes:
    """Encode *arguments* as a multipart body delimited by *boundary*.

    Path and :class:`Attachment` elements become file parts carrying the raw
    bytes; every other element is sent as its formatted UTF-8 text. An
    unreadable file raises :class:`AttachmentError` before anything is sent.
    """

    delimiter = f"--{boundary}".encode("ascii")
    body = bytearray()

    for key, element in iter_arguments(arguments):
        body += delimiter + CRLF
        disposition = f'Content-Disposition: form-data; name="{_quote_header_value(key)}"'

        file_part = _file_part(element)
        if file_part is not None:
            filename, content_type, data = file_part
            disposition += f'; filename="{_quote_header_value(filename)}"'
            body += disposition.encode("utf-8") + CRLF
            body += f"Content-Type: {content_type}".encode("utf-8") + CRLF + CRLF
            body += data
        else:
            body += disposition.encode("utf-8") + CRLF + CRLF
            body += format_value(element).encode("utf-8")

        body += CRLF

    body += delimiter + b"--" + CRLF
    return bytes(body)
