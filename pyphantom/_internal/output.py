"""Routing of the child's stdout/stderr into caller-supplied sinks."""

from __future__ import annotations

import io
import logging
import subprocess
import threading
from typing import IO, Any

logger = logging.getLogger(__name__)


def _usable_fileno(sink: Any) -> int | None:
    try:
        return sink.fileno()
    except (AttributeError, OSError, ValueError):
        # io.UnsupportedOperation is an OSError/ValueError subclass
        return None


class OutputPump:
    """Connects one child stream to a sink.

    Sinks with a real file descriptor (or an ``int`` such as
    ``subprocess.DEVNULL``) are handed to ``Popen`` directly and need no
    thread. Anything else with a ``write`` method, and ``logging.Logger``
    instances, get a pipe plus a daemon thread copying lines across.
    """

    def __init__(self, name: str, sink: Any) -> None:
        self.name = name
        self.sink = sink
        self._thread: threading.Thread | None = None

        if sink is None or isinstance(sink, int):
            self._popen_arg: Any = sink
            self._pumped = False
        elif isinstance(sink, logging.Logger):
            self._popen_arg = subprocess.PIPE
            self._pumped = True
        elif _usable_fileno(sink) is not None:
            if hasattr(sink, "flush"):
                sink.flush()
            self._popen_arg = sink
            self._pumped = False
        elif hasattr(sink, "write"):
            self._popen_arg = subprocess.PIPE
            self._pumped = True
        else:
            raise ValueError(f"Invalid {name} sink {sink!r}: expected a file, logger or writable object")

    @property
    def popen_arg(self) -> Any:
        """Value to pass as ``stdout=``/``stderr=`` to ``subprocess.Popen``."""
        return self._popen_arg

    def start(self, stream: IO[bytes] | None) -> None:
        """Start copying *stream* into the sink, if this pump needs a thread."""
        if not self._pumped or stream is None:
            return
        self._thread = threading.Thread(
            target=self._run, args=(stream,), name=f"pyphantom-{self.name}", daemon=True
        )
        self._thread.start()

    def _run(self, stream: IO[bytes]) -> None:
        sink = self.sink
        binary = isinstance(sink, (io.RawIOBase, io.BufferedIOBase))
        try:
            for line in iter(stream.readline, b""):
                if isinstance(sink, logging.Logger):
                    sink.info("%s", line.decode("utf-8", errors="replace").rstrip("\r\n"))
                elif binary:
                    sink.write(line)
                else:
                    sink.write(line.decode("utf-8", errors="replace"))
        except (OSError, ValueError) as exc:
            logger.warning("[PyPhantom] %s pump stopped: %s", self.name, exc)
        finally:
            stream.close()

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
