"""
RPC Transport Layer.

This module contains:
- RPCTransport Protocol
- HTTPTransport (JSON over HTTP, one operation per path)
"""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Mapping
from typing import Any, Callable, Protocol, TypeVar, runtime_checkable

import httpx

from ..errors import (
    MalformedResponseError,
    RawBodyError,
    RemoteError,
    UnexpectedStatusError,
    UnknownOperationError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

Decoder = Callable[[dict[str, Any]], T]

PING_PATH = "/ping"


@runtime_checkable
class RPCTransport(Protocol):
    """Protocol for RPC transport mechanisms.

    Implementations must be safe to call from several threads at once.
    """

    def call(
        self,
        method: str,
        path: str,
        payload: Mapping[str, Any] | None = None,
        decode: Decoder[T] | None = None,
    ) -> T | None:
        """Invoke the remote operation at *path* and decode its answer."""
        ...

    def ping(self, timeout: float | None = None) -> None:
        """Check the remote endpoint is alive. Raises on failure."""
        ...

    def close(self) -> None:
        """Release connections. A later call may reconnect."""
        ...


def decode_envelope(path: str, body: bytes, decode: Decoder[T] | None = None) -> T | None:
    """Turn a raw response body into a decoded result.

    The error field is checked before anything else: a body carrying both a
    non-empty ``error`` and payload fields is always an error.
    """
    text = body.decode("utf-8", errors="replace")
    try:
        envelope = json.loads(text)
    except ValueError as exc:
        raise RawBodyError(text) from exc
    if envelope is None:
        envelope = {}
    if not isinstance(envelope, dict):
        raise RawBodyError(text)

    error = envelope.get("error")
    if error:
        raise RemoteError(error if isinstance(error, str) else json.dumps(error))

    if decode is None:
        return None
    try:
        return decode(envelope)
    except (KeyError, TypeError, ValueError, OverflowError) as exc:
        raise MalformedResponseError(path, text, str(exc)) from exc


class HTTPTransport:
    """Transport speaking JSON over HTTP to the control script.

    The underlying ``httpx.Client`` is created on first use. ``close()`` drops
    it, so calls made after the process went away fail with a connection
    error rather than a closed-client error.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._client = client
        self._owns_client = client is None
        self._lock = threading.Lock()

    def _get_client(self) -> httpx.Client:
        with self._lock:
            if self._client is None:
                self._client = httpx.Client(timeout=self._timeout)
            return self._client

    def call(
        self,
        method: str,
        path: str,
        payload: Mapping[str, Any] | None = None,
        decode: Decoder[T] | None = None,
    ) -> T | None:
        """Send *payload* as JSON to ``base_url + path`` and decode the response.

        Raises:
            httpx.TransportError: The endpoint could not be reached.
            UnknownOperationError: The remote side answered 404.
            RawBodyError: The body is not a JSON object.
            RemoteError: The body carries a non-empty ``error`` field.
            MalformedResponseError: *decode* rejected the body.
        """
        content = None
        headers = {}
        if payload is not None:
            content = json.dumps(payload).encode("utf-8")
            headers["Content-Type"] = "application/json"

        logger.debug("[PyPhantom][RPC] %s %s", method, path)
        response = self._get_client().request(
            method, self.base_url + path, content=content, headers=headers
        )
        body = response.read()

        if response.status_code == httpx.codes.NOT_FOUND:
            raise UnknownOperationError(path)
        return decode_envelope(path, body, decode)

    def ping(self, timeout: float | None = None) -> None:
        kwargs: dict[str, Any] = {}
        if timeout is not None:
            kwargs["timeout"] = timeout
        response = self._get_client().get(self.base_url + PING_PATH, **kwargs)
        response.read()
        if response.status_code != httpx.codes.OK:
            raise UnexpectedStatusError(response.status_code)

    def close(self) -> None:
        # Injected clients belong to the caller and stay open.
        if not self._owns_client:
            return
        with self._lock:
            client, self._client = self._client, None
        if client is not None:
            client.close()
