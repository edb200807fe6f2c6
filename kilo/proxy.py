"""Asynchronous web service proxy built on ``httpx.AsyncClient``.

The proxy encodes arguments, issues the request through the caller's client
and decodes the response::

    async with httpx.AsyncClient() as client:
        proxy = WebServiceProxy(client, "http://localhost:8080/kilo-test/")
        values = await proxy.invoke("GET", "test/fibonacci", arguments={"count": 8})

Configuration lives in an immutable :class:`~kilo.config.ProxyConfig`.
Assigning ``proxy.headers`` or ``proxy.encoding`` swaps in a new config, and
each call reads the config exactly once when it starts.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable, Generic, Mapping, Optional, TypeVar, Union

import httpx

from . import decoders
from .arguments import Arguments
from .config import ProxyConfig
from .decoders import Decoder
from .dispatch import NO_BODY, build_request, classify_response
from .emitter import DEFAULT_EMITTER, InvocationRecord, RequestEmitter
from .errors import InvocationCancelled, RequestTimeout, TransportError, WebServiceError
from .models import (
    Cancelled,
    Encoding,
    Failure,
    Method,
    Outcome,
    RequestDescriptor,
    Success,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BaseWebServiceProxy:
    """Configuration handling shared by the asynchronous and blocking proxies."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        config: Optional[ProxyConfig] = None,
        headers: Optional[Mapping[str, str]] = None,
        encoding: Encoding = Encoding.APPLICATION_X_WWW_FORM_URLENCODED,
        timeout: Optional[float] = None,
        connect_timeout: Optional[float] = None,
        emitter: RequestEmitter = DEFAULT_EMITTER,
    ):
        if config is None:
            if not base_url:
                raise ValueError("Either base_url or config is required")
            config = ProxyConfig(
                base_url=base_url,
                headers=headers or {},
                encoding=encoding,
                timeout=timeout,
                connect_timeout=connect_timeout,
            )
        self.config = config
        self.emitter = emitter

    @property
    def base_url(self) -> str:
        return self.config.base_url

    @property
    def headers(self) -> Mapping[str, str]:
        return self.config.headers

    @headers.setter
    def headers(self, value: Mapping[str, str]) -> None:
        self.config = self.config.with_headers(value)

    @property
    def encoding(self) -> Encoding:
        return self.config.encoding

    @encoding.setter
    def encoding(self, value: Encoding) -> None:
        self.config = self.config.with_encoding(value)

    def _emit(
        self,
        request: RequestDescriptor,
        status_code: Optional[int],
        started: float,
        error: Optional[WebServiceError] = None,
    ) -> None:
        self.emitter.emit(
            InvocationRecord(
                request=request,
                status_code=status_code,
                elapsed=time.monotonic() - started,
                error=error,
            )
        )


class WebServiceProxy(BaseWebServiceProxy):
    def __init__(self, client: httpx.AsyncClient, base_url: Optional[str] = None, **kwargs: Any):
        super().__init__(base_url, **kwargs)
        self.client = client

    @classmethod
    def from_env(cls, client: httpx.AsyncClient, **overrides: Any) -> "WebServiceProxy":
        emitter = overrides.pop("emitter", DEFAULT_EMITTER)
        return cls(client, config=ProxyConfig.from_env(**overrides), emitter=emitter)

    def with_config(self, **changes: Any) -> "WebServiceProxy":
        """Return a proxy sharing this client with an updated config."""

        return type(self)(self.client, config=self.config.replace(**changes), emitter=self.emitter)

    async def invoke(
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
        """Invoke a service operation and return the decoded response.

        Args:
            method: HTTP method.
            path: Resource path, relative to the base URL.
            headers: Request-specific headers; they override the defaults.
            arguments: Query or form arguments.
            content: Raw request content.
            content_type: Type of ``content``; ``application/octet-stream`` if omitted.
            body: Value sent as ``application/json``.
            decoder: Converts a 2xx body into the result.

        Raises:
            StatusError: The server answered with a non-2xx status.
            DecodeError: The decoder rejected the response body.
            RequestTimeout: The call outlived its timeout.
            TransportError: No response was received.
            InvalidArgumentError: The request could not be built.
        """

        return await self._invoke(
            self.config,
            method,
            path,
            headers=headers,
            arguments=arguments,
            content=content,
            content_type=content_type,
            body=body,
            decoder=decoder,
        )

    def submit(
        self,
        method: Union[str, Method],
        path: str,
        *,
        callback: Optional[Callable[[Outcome], None]] = None,
        headers: Optional[Mapping[str, str]] = None,
        arguments: Optional[Arguments] = None,
        content: Optional[bytes] = None,
        content_type: Optional[str] = None,
        body: Any = NO_BODY,
        decoder: Decoder[Any] = decoders.auto,
    ) -> "Invocation":
        """Schedule a call on the running event loop and return its handle.

        ``callback`` receives the :class:`Success` or :class:`Failure` outcome
        once, on the event loop. It is never called for a cancelled invocation.
        """

        loop = asyncio.get_running_loop()
        task = loop.create_task(
            self._invoke(
                self.config,
                method,
                path,
                headers=headers,
                arguments=arguments,
                content=content,
                content_type=content_type,
                body=body,
                decoder=decoder,
            )
        )
        return Invocation(task, callback)

    async def _invoke(
        self,
        config: ProxyConfig,
        method: Union[str, Method],
        path: str,
        *,
        headers: Optional[Mapping[str, str]],
        arguments: Optional[Arguments],
        content: Optional[bytes],
        content_type: Optional[str],
        body: Any,
        decoder: Decoder[Any],
    ) -> Any:
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
            response = await self._exchange(config, request)
            status_code = response.status_code
            result = classify_response(
                status_code,
                response.content,
                response.headers.get("content-type"),
                decoder,
            )
        except WebServiceError as exc:
            self._emit(request, status_code, started, exc)
            raise
        except asyncio.CancelledError:
            logger.debug(f"{request.method.value} {request.url} cancelled")
            self._emit(request, status_code, started, InvocationCancelled())
            raise

        self._emit(request, status_code, started)
        return result

    async def _exchange(self, config: ProxyConfig, request: RequestDescriptor) -> httpx.Response:
        try:
            return await asyncio.wait_for(
                self.client.request(
                    request.method.value,
                    request.url,
                    headers=request.headers,
                    content=request.content,
                    timeout=_client_timeout(config),
                ),
                timeout=config.timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            logger.warning(f"{request.method.value} {request.url} timed out")
            raise RequestTimeout(f"Request to {request.url} timed out") from exc
        except httpx.TransportError as exc:
            logger.warning(f"{request.method.value} {request.url} failed: {exc}")
            raise TransportError(f"Request to {request.url} failed: {exc}") from exc


def _client_timeout(config: ProxyConfig):
    if config.timeout is None and config.connect_timeout is None:
        return httpx.USE_CLIENT_DEFAULT
    connect = config.connect_timeout if config.connect_timeout is not None else config.timeout
    return httpx.Timeout(config.timeout, connect=connect)


# ---------------------------------------------------------------------------
# Invocation handle
# ---------------------------------------------------------------------------


class Invocation(Generic[T]):
    """Handle for a call scheduled with :meth:`WebServiceProxy.submit`.

    Exactly one outcome is recorded per invocation. A successful
    :meth:`cancel` wins over a result produced in the same loop iteration,
    and the completion callback is then never run.
    """

    def __init__(self, task: "asyncio.Task[T]", callback: Optional[Callable[[Outcome], None]] = None):
        self._task = task
        self._callback = callback
        self._outcome: Optional[Outcome] = None
        self._cancel_requested = False
        task.add_done_callback(self._complete)

    @property
    def outcome(self) -> Optional[Outcome]:
        return self._outcome

    def done(self) -> bool:
        return self._outcome is not None

    def cancel(self) -> bool:
        """Abort the request. Returns ``False`` if the call already finished."""

        if self._outcome is not None or self._task.done():
            return False
        self._cancel_requested = True
        return self._task.cancel()

    async def wait(self) -> Outcome:
        await asyncio.wait([self._task])
        self._complete(self._task)
        return self._outcome

    async def result(self) -> T:
        outcome = await self.wait()
        return outcome.unwrap()

    def _complete(self, task: "asyncio.Task[T]") -> None:
        if self._outcome is not None:
            return
        error = None if task.cancelled() else task.exception()
        if self._cancel_requested or task.cancelled():
            self._outcome = Cancelled()
            return

        outcome: Outcome = Success(task.result()) if error is None else Failure(error)
        self._outcome = outcome
        if self._callback is not None:
            self._callback(outcome)
