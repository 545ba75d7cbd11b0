"""
pyphantom - Drive a PhantomJS browser process from Python over a JSON RPC API.

pyphantom launches the ``phantomjs`` binary with a small control script that
exposes the browser's ``webpage`` module over HTTP. Remote pages are handed
back as ordinary Python objects whose methods translate to one request each.

Key Features:
    - Process supervision: launch, readiness polling, guaranteed teardown
    - Typed façade over every remote ``webpage`` property and method
    - Output routing of the child's stdout/stderr to files or loggers
    - Structured errors for launch, startup, protocol and remote failures

Basic Usage:
    >>> import pyphantom
    >>> with pyphantom.open_process({"port": 20202}) as process:
    ...     page = process.create_web_page()
    ...     page.open("https://example.com")
    ...     print(page.title())
    ...     page.close()
"""

from ._internal.facade import RemoteObject
from ._internal.remote_handle import RemoteRef
from ._internal.rpc_transports import HTTPTransport, RPCTransport
from ._internal.wire import JSONKind, JSONValue, json_kind
from .config import (
    DEFAULT_BIN_PATH,
    DEFAULT_HOST,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_PORT,
    DEFAULT_TIMEOUT,
    ProcessConfig,
)
from .errors import (
    InjectionFailedError,
    MalformedResponseError,
    OperationFailedError,
    PhantomError,
    ProcessLaunchError,
    ProtocolError,
    RawBodyError,
    ReadinessTimeoutError,
    RemoteError,
    UnexpectedStatusError,
    UnknownOperationError,
)
from .host import Process, open_process
from .models import (
    Cookie,
    KeyModifier,
    PaperSize,
    PaperSizeMargin,
    Position,
    Rect,
    ViewportSize,
    WebPageSettings,
)
from .webpage import WebPage

__version__ = "0.1.0"

__all__ = [
    "Process",
    "ProcessConfig",
    "open_process",
    "WebPage",
    "RemoteRef",
    "RemoteObject",
    "RPCTransport",
    "HTTPTransport",
    "JSONValue",
    "JSONKind",
    "json_kind",
    "Cookie",
    "KeyModifier",
    "PaperSize",
    "PaperSizeMargin",
    "Position",
    "Rect",
    "ViewportSize",
    "WebPageSettings",
    "PhantomError",
    "ProcessLaunchError",
    "ReadinessTimeoutError",
    "ProtocolError",
    "UnknownOperationError",
    "RawBodyError",
    "MalformedResponseError",
    "UnexpectedStatusError",
    "RemoteError",
    "OperationFailedError",
    "InjectionFailedError",
    "DEFAULT_BIN_PATH",
    "DEFAULT_HOST",
    "DEFAULT_POLL_INTERVAL",
    "DEFAULT_PORT",
    "DEFAULT_TIMEOUT",
]
