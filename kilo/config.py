from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional

from .models import Encoding


def _optional_float(name: str) -> Optional[float]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number of seconds, got {raw!r}") from exc


@dataclass(frozen=True)
class ProxyConfig:
    """Immutable proxy settings, read once at the start of every call."""

    base_url: str
    headers: Mapping[str, str] = field(default_factory=dict)
    encoding: Encoding = Encoding.APPLICATION_X_WWW_FORM_URLENCODED
    # Deadline for the whole call, in seconds.
    timeout: Optional[float] = None
    connect_timeout: Optional[float] = None

    def __post_init__(self):
        if not self.base_url:
            raise ValueError("base_url is required")
        base_url = self.base_url
        # Relative paths resolve against the last segment otherwise.
        if not base_url.endswith("/"):
            base_url = f"{base_url}/"
        object.__setattr__(self, "base_url", base_url)
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))

    def replace(self, **changes: Any) -> "ProxyConfig":
        return dataclasses.replace(self, **changes)

    def with_headers(self, headers: Mapping[str, str]) -> "ProxyConfig":
        return self.replace(headers=headers)

    def with_encoding(self, encoding: Encoding) -> "ProxyConfig":
        return self.replace(encoding=encoding)

    @classmethod
    def from_env(cls, base_url: Optional[str] = None, **overrides: Any) -> "ProxyConfig":
        base_url = base_url or os.getenv("KILO_BASE_URL")
        if not base_url:
            raise ValueError(
                "Base URL required. Set KILO_BASE_URL env var or pass base_url parameter"
            )
        if "timeout" not in overrides:
            overrides["timeout"] = _optional_float("KILO_TIMEOUT")
        if "connect_timeout" not in overrides:
            overrides["connect_timeout"] = _optional_float("KILO_CONNECT_TIMEOUT")
        return cls(base_url=base_url, **overrides)
