"""Utilities for recording finished invocations."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from .errors import WebServiceError
from .models import RequestDescriptor

logger = logging.getLogger(__name__)


@dataclass
class InvocationRecord:
    request: RequestDescriptor
    status_code: Optional[int]
    elapsed: float
    error: Optional[WebServiceError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class RequestEmitter(Protocol):
    def emit(self, record: InvocationRecord) -> None:  # pragma: no cover - interface
        ...


class NoopEmitter:
    def emit(self, record: InvocationRecord) -> None:  # pragma: no cover
        return None


class LoggingEmitter:
    def __init__(self, log: logging.Logger = logger, level: int = logging.INFO):
        self.log = log
        self.level = level

    def emit(self, record: InvocationRecord) -> None:
        request = record.request
        outcome = "ok" if record.ok else type(record.error).__name__
        self.log.log(
            self.level,
            f"{request.method.value} {request.url} status={record.status_code} "
            f"elapsed={record.elapsed:.3f}s outcome={outcome}",
        )


DEFAULT_EMITTER: RequestEmitter = NoopEmitter()
