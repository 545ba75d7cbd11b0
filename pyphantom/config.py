from __future__ import annotations

import logging
import os
from typing import Any, TypedDict

logger = logging.getLogger(__name__)

DEFAULT_BIN_PATH = "phantomjs"
DEFAULT_PORT = 20202
DEFAULT_HOST = "localhost"
DEFAULT_TIMEOUT = 10.0
DEFAULT_POLL_INTERVAL = 0.3

BIN_PATH_ENV = "PYPHANTOM_BIN_PATH"


class ProcessConfig(TypedDict, total=False):
    """Configuration for a single :class:`~pyphantom.Process`.

    Every key is optional; missing keys fall back to the module defaults.
    """

    bin_path: str
    """Path to the browser binary. Defaults to ``$PYPHANTOM_BIN_PATH`` or ``phantomjs``."""

    port: int
    """Port the control script listens on."""

    host: str
    """Host used to reach the control script."""

    timeout: float
    """Seconds to wait for the control script to answer ``/ping`` after launch."""

    poll_interval: float
    """Seconds between readiness probes."""

    options: list[str]
    """Extra command-line options, appended verbatim and in order after the port."""

    stdout: Any
    """Sink for the child's standard output (``None`` inherits ours)."""

    stderr: Any
    """Sink for the child's standard error (``None`` inherits ours)."""

    work_dir: str | None
    """Directory holding the control script. A temporary one is created when unset.
    It is removed when the process closes."""

    rpc_timeout: float | None
    """Timeout applied to each RPC request, ``None`` waits indefinitely."""


def resolve_config(config: ProcessConfig | None = None) -> ProcessConfig:
    """Merge *config* over the defaults and validate the result.

    Raises:
        ValueError: If a value is out of range or of the wrong type.
    """
    resolved: ProcessConfig = {
        "bin_path": os.environ.get(BIN_PATH_ENV) or DEFAULT_BIN_PATH,
        "port": DEFAULT_PORT,
        "host": DEFAULT_HOST,
        "timeout": DEFAULT_TIMEOUT,
        "poll_interval": DEFAULT_POLL_INTERVAL,
        "options": [],
        "stdout": None,
        "stderr": None,
        "work_dir": None,
        "rpc_timeout": None,
    }
    if config:
        resolved.update(config)
    resolved["options"] = list(resolved["options"])

    if not resolved["bin_path"]:
        raise ValueError("bin_path cannot be empty")
    port = resolved["port"]
    if isinstance(port, bool) or not isinstance(port, int) or not 0 < port < 65536:
        raise ValueError(f"Invalid port {port!r}: must be an integer in 1..65535")
    if resolved["timeout"] <= 0:
        raise ValueError(f"Invalid timeout {resolved['timeout']!r}: must be positive")
    if resolved["poll_interval"] <= 0:
        raise ValueError(f"Invalid poll_interval {resolved['poll_interval']!r}: must be positive")
    for option in resolved["options"]:
        validate_option(option)

    logger.debug("Resolved process config: bin_path=%s port=%s", resolved["bin_path"], port)
    return resolved


def validate_option(option: Any) -> None:
    """Options are passed to the subprocess untouched, so they must already be strings."""
    if not isinstance(option, str):
        raise ValueError(f"Invalid option {option!r}: launch options must be strings")
