"""Host-side process supervision for pyphantom.

Starts the browser binary with the control script, waits for its RPC endpoint
and tears everything down again.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Optional

from ._internal.host import KILL_WAIT_TIMEOUT, Process
from .config import ProcessConfig

__all__ = ["Process", "open_process", "KILL_WAIT_TIMEOUT"]

logger = logging.getLogger(__name__)


@contextmanager
def open_process(config: Optional[ProcessConfig] = None) -> Iterator[Process]:
    """Open a :class:`Process` for the duration of a ``with`` block.

    The process is closed on exit even when the block raises. An error raised
    while closing is logged rather than raised if the block already failed,
    so the original exception is the one that propagates.
    """
    process = Process(config)
    process.open()
    try:
        yield process
    except BaseException:
        try:
            process.close()
        except Exception as exc:
            logger.error("[PyPhantom] Error closing process after failure: %s", exc)
        raise
    process.close()
