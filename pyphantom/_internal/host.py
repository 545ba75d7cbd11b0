from __future__ import annotations

import logging
import subprocess
from collections.abc import Mapping
from pathlib import Path
from types import TracebackType
from typing import TYPE_CHECKING, Any, TypeVar, cast

from typing_extensions import Self

from ..config import ProcessConfig, resolve_config, validate_option
from ..errors import ProcessLaunchError
from .environment import (
    build_launch_command,
    ensure_control_script,
    ensure_work_dir,
    remove_work_dir,
)
from .output import OutputPump
from .readiness import make_probe, wait_until_ready
from .remote_handle import RemoteRef
from .rpc_transports import Decoder, HTTPTransport, RPCTransport
from .wire import decode_ref_id

if TYPE_CHECKING:
    from ..webpage import WebPage

__all__ = ["Process", "KILL_WAIT_TIMEOUT"]

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Seconds to wait for the child to exit after it has been killed.
KILL_WAIT_TIMEOUT = 5.0


def _decode_created_ref(data: dict[str, Any]) -> str:
    ref_id = decode_ref_id(data["ref"])
    if not ref_id:
        raise ValueError("response carries no reference id")
    return ref_id


class Process:
    """Supervisor for one browser process running the pyphantom control script.

    A Process starts inert. :meth:`open` launches the binary and blocks until
    the control script answers its liveness probe; :meth:`close` kills the
    binary and removes the working directory. A Process owns at most one
    subprocess at a time, and ``open``/``close`` must not race each other:
    callers sharing an instance across threads serialize those two calls.
    RPC calls themselves are stateless and may be issued concurrently.
    """

    def __init__(self, config: ProcessConfig | None = None, *, transport: RPCTransport | None = None) -> None:
        self.config = resolve_config(config)
        self._transport: RPCTransport = transport or HTTPTransport(
            self.endpoint, timeout=self.config["rpc_timeout"]
        )
        self._proc: subprocess.Popen[bytes] | None = None
        self._path: Path | None = None
        self._pumps: list[OutputPump] = []

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    @property
    def bin_path(self) -> str:
        return self.config["bin_path"]

    @property
    def port(self) -> int:
        return self.config["port"]

    @property
    def host(self) -> str:
        return self.config["host"]

    @property
    def timeout(self) -> float:
        return self.config["timeout"]

    @property
    def poll_interval(self) -> float:
        return self.config["poll_interval"]

    @property
    def options(self) -> list[str]:
        return list(self.config["options"])

    def add_option(self, option: str) -> None:
        """Append a command-line option. Takes effect on the next :meth:`open`."""
        validate_option(option)
        self.config["options"].append(option)

    @property
    def endpoint(self) -> str:
        """Base URL of the control script's RPC API."""
        return f"http://{self.host}:{self.port}"

    @property
    def path(self) -> Path | None:
        """Working directory holding the control script, ``None`` until opened."""
        return self._path

    @property
    def transport(self) -> RPCTransport:
        return self._transport

    @property
    def pid(self) -> int | None:
        return self._proc.pid if self._proc is not None else None

    @property
    def is_running(self) -> bool:
        return self._proc is not None and self._proc.poll() is None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def open(self) -> None:
        """Start the process and wait until its RPC endpoint is ready.

        On any failure the process is torn down before the error propagates,
        so no half-started subprocess is left behind.

        Raises:
            RuntimeError: A subprocess is already owned by this instance.
            ProcessLaunchError: The binary could not be started.
            ReadinessTimeoutError: The endpoint did not come up in time.
        """
        if self._proc is not None:
            raise RuntimeError(f"Process already open (pid {self._proc.pid})")

        try:
            self._launch()
            attempts = wait_until_ready(make_probe(self._transport), self.timeout, self.poll_interval)
        except BaseException:
            try:
                self.close()
            except Exception as cleanup_exc:
                logger.error("[PyPhantom] Cleanup after failed open also failed: %s", cleanup_exc)
            raise

        logger.info("[PyPhantom] Process %s ready at %s after %d probe(s)", self.pid, self.endpoint, attempts)

    def _launch(self) -> None:
        self._path = ensure_work_dir(self.config["work_dir"])
        script_path = ensure_control_script(self._path)
        cmd = build_launch_command(self.bin_path, script_path, self.port, self.config["options"])

        stdout = OutputPump("stdout", self.config["stdout"])
        stderr = OutputPump("stderr", self.config["stderr"])

        logger.info("[PyPhantom] Launching %s", " ".join(cmd))
        try:
            proc = subprocess.Popen(
                cmd,
                cwd=str(self._path),
                stdin=subprocess.DEVNULL,
                stdout=stdout.popen_arg,
                stderr=stderr.popen_arg,
                close_fds=True,
            )
        except OSError as exc:
            raise ProcessLaunchError(cmd, str(exc)) from exc

        self._proc = proc
        stdout.start(proc.stdout)
        stderr.start(proc.stderr)
        self._pumps = [stdout, stderr]

    def close(self) -> None:
        """Kill the process and remove its working directory.

        Every step runs even if an earlier one fails; the first error is
        raised once all steps have been attempted. Closing an instance that
        was never opened, or closing twice, does nothing.
        """
        errors: list[Exception] = []

        proc, self._proc = self._proc, None
        if proc is not None:
            try:
                if proc.poll() is None:
                    proc.kill()
                proc.wait(timeout=KILL_WAIT_TIMEOUT)
                logger.info("[PyPhantom] Process %s exited with %s", proc.pid, proc.returncode)
            except Exception as exc:
                errors.append(exc)

        pumps, self._pumps = self._pumps, []
        for pump in pumps:
            pump.join(timeout=KILL_WAIT_TIMEOUT)

        try:
            self._transport.close()
        except Exception as exc:
            errors.append(exc)

        path, self._path = self._path, None
        if path is not None:
            try:
                remove_work_dir(path)
            except Exception as exc:
                errors.append(exc)

        if errors:
            for extra in errors[1:]:
                logger.warning("[PyPhantom] Additional error during close: %s", extra)
            raise errors[0]

    def __enter__(self) -> Self:
        self.open()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    # ------------------------------------------------------------------
    # RPC
    # ------------------------------------------------------------------

    def call(
        self,
        method: str,
        path: str,
        payload: Mapping[str, Any] | None = None,
        decode: Decoder[T] | None = None,
    ) -> T | None:
        """Invoke a remote operation. See :meth:`HTTPTransport.call`."""
        return self._transport.call(method, path, payload, decode)

    def ping(self) -> None:
        """Issue one liveness check; raises if the endpoint is not answering."""
        self._transport.ping(timeout=self.poll_interval)

    def create_web_page(self) -> WebPage:
        """Create a new remote web page bound to this process."""
        from ..webpage import WebPage

        ref_id = cast(str, self.call("POST", "/webpage/Create", None, _decode_created_ref))
        logger.debug("[PyPhantom] Created web page %s", ref_id)
        return WebPage(RemoteRef(self, ref_id))

    def __repr__(self) -> str:
        state = f"pid={self.pid}" if self._proc is not None else "closed"
        return f"<Process {self.bin_path} {self.endpoint} {state}>"
