from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Generic, Optional, TypeVar, Union

from .errors import InvalidArgumentError, InvocationCancelled

T = TypeVar("T")


class Method(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"

    @classmethod
    def parse(cls, value: Union[str, "Method"]) -> "Method":
        if isinstance(value, Method):
            return value
        try:
            return cls(value.upper())
        except ValueError:
            raise InvalidArgumentError(f"Unsupported method: {value!r}") from None


class Encoding(Enum):
    """Body encoding used for POST requests without explicit content."""

    APPLICATION_X_WWW_FORM_URLENCODED = "application/x-www-form-urlencoded"
    MULTIPART_FORM_DATA = "multipart/form-data"


class _Undefined:
    _instance: Optional["_Undefined"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNDEFINED"

    def __bool__(self) -> bool:
        return False


# Marker for an argument that is present in the mapping but has no value.
UNDEFINED: Any = _Undefined()


@dataclass(frozen=True)
class Attachment:
    """In-memory file content sent as a multipart file part."""

    filename: str
    content: bytes
    content_type: str = "application/octet-stream"


@dataclass
class RequestDescriptor:
    method: Method
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    content: Optional[bytes] = None
    content_type: Optional[str] = None


# ---------------------------------------------------------------------------
# Outcomes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Success(Generic[T]):
    value: T

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Failure:
    # A WebServiceError for every failure the proxy classifies itself.
    error: Exception

    def unwrap(self):
        raise self.error


@dataclass(frozen=True)
class Cancelled:
    def unwrap(self):
        raise InvocationCancelled()


Outcome = Union[Success[Any], Failure, Cancelled]
