from __future__ import annotations

import logging
import time
from typing import Any, Mapping, Optional, Union

import requests

from . import decoders
from .arguments import Arguments
from .config import ProxyConfig
from .decoders import Decoder
from .dispatch import NO_BODY, build_request, classify_response
from .emitter import DEFAULT_EMITTER
from .errors import RequestTimeout, TransportError, WebServiceError
from .models import Method, RequestDescriptor
from .proxy import BaseWebServiceProxy

logger = logging.getLogger(__name__)


class BlockingWebServiceProxy(BaseWebServiceProxy):
    """Synchronous counterpart of :class:`~kilo.proxy.WebServiceProxy`.

    Requests go through a ``requests.Session``; the call blocks until the
    response is decoded or an error is raised. There is no cancellation.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        base_url: Optional[str] = None,
        **kwargs: Any,
    ):
        super().__init__(base_url, **kwargs)
        self.session = session or requests.Session()

    @classmethod
    def from_env(
        cls, session: Optional[requests.Session] = None, **overrides: Any
    ) -> "BlockingWebServiceProxy":
        emitter = overrides.pop("emitter", DEFAULT_EMITTER)
        return cls(session, config=ProxyConfig.from_env(**overrides), emitter=emitter)

    def with_config(self, **changes: Any) -> "BlockingWebServiceProxy":
        return type(self)(self.session, config=self.config.replace(**changes), emitter=self.emitter)

    def invoke(
        self,
        method: Union[str, Method],
        path: str,
        *,
        headers: Optional[Mapping[str, str]] = None,
        arguments: Optional[Arguments] = None,
        content: Optional[bytes] = None,
        content_type: Optional[str] = None,
        body: Any = NO_BODY,
        decoder: Decoder[Any] = decoders.auto,
    ) -> Any:
        config = self.config
        request = build_request(
            config,
            method,
            path,
            headers=headers,
            arguments=arguments,
            content=content,
            content_type=content_type,
            body=body,
        )
        logger.debug(f"{request.method.value} {request.url}")

        started = time.monotonic()
        status_code: Optional[int] = None
        try:
            response = self._exchange(config, request)
            status_code = response.status_code
            result = classify_response(
                status_code,
                response.content,
                response.headers.get("Content-Type"),
                decoder,
            )
        except WebServiceError as exc:
            self._emit(request, status_code, started, exc)
            raise

        self._emit(request, status_code, started)
        return result

    def _exchange(self, config: ProxyConfig, request: RequestDescriptor) -> requests.Response:
        try:
            return self.session.request(
                request.method.value,
                request.url,
                headers=request.headers,
                data=request.content,
                timeout=_session_timeout(config),
            )
        except requests.Timeout as exc:
            logger.warning(f"{request.method.value} {request.url} timed out")
            raise RequestTimeout(f"Request to {request.url} timed out") from exc
        except requests.RequestException as exc:
            logger.warning(f"{request.method.value} {request.url} failed: {exc}")
            raise TransportError(f"Request to {request.url} failed: {exc}") from exc


def _session_timeout(config: ProxyConfig):
    if config.timeout is None and config.connect_timeout is None:
        return None
    connect = config.connect_timeout if config.connect_timeout is not None else config.timeout
    return (connect, config.timeout)
