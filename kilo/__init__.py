"""Client-facing exports for kilo."""

from . import decoders
from .blocking import BlockingWebServiceProxy
from .config import ProxyConfig
from .decoders import EpochMillis
from .dispatch import build_request, classify_response
from .emitter import InvocationRecord, LoggingEmitter, NoopEmitter, RequestEmitter
from .errors import (
    AttachmentError,
    DecodeError,
    InvalidArgumentError,
    InvocationCancelled,
    RequestTimeout,
    StatusError,
    TransportError,
    WebServiceError,
)
from .models import (
    UNDEFINED,
    Attachment,
    Cancelled,
    Encoding,
    Failure,
    Method,
    Outcome,
    RequestDescriptor,
    Success,
)
from .proxy import Invocation, WebServiceProxy

__all__ = [
    "WebServiceProxy",
    "BlockingWebServiceProxy",
    "Invocation",
    "ProxyConfig",
    "Method",
    "Encoding",
    "UNDEFINED",
    "Attachment",
    "RequestDescriptor",
    "Outcome",
    "Success",
    "Failure",
    "Cancelled",
    "decoders",
    "EpochMillis",
    "build_request",
    "classify_response",
    "InvocationRecord",
    "RequestEmitter",
    "NoopEmitter",
    "LoggingEmitter",
    "WebServiceError",
    "TransportError",
    "RequestTimeout",
    "InvocationCancelled",
    "StatusError",
    "DecodeError",
    "InvalidArgumentError",
    "AttachmentError",
]
