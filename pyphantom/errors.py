"""Error types raised by pyphantom.

Transport failures (connection refused, DNS, read errors) are not wrapped:
they surface as the ``httpx.TransportError`` subclass that caused them.
"""

from __future__ import annotations


class PhantomError(Exception):
    """Base class for all pyphantom errors."""


class ProcessLaunchError(PhantomError):
    """Raised when the operating system refuses to start the subprocess."""

    def __init__(self, command: list[str], reason: str) -> None:
        self.command = command
        super().__init__(f"Failed to launch {command[0]!r}: {reason}")


class ReadinessTimeoutError(PhantomError, TimeoutError):
    """Raised when the process does not answer its liveness probe in time."""

    timeout: float
    attempts: int

    def __init__(self, timeout: float, attempts: int) -> None:
        """Initialize the timeout error.

        Args:
            timeout: The startup deadline that elapsed, in seconds.
            attempts: Number of probes issued before giving up.
        """
        self.timeout = timeout
        self.attempts = attempts
        super().__init__(f"timeout: process not ready after {timeout:g}s ({attempts} probes)")


class ProtocolError(PhantomError):
    """Base class for responses that violate the wire protocol."""


class UnknownOperationError(ProtocolError):
    """Raised when the remote side does not recognize the operation path."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"not found: {path}")


class RawBodyError(ProtocolError):
    """Raised when a response body is not a JSON object.

    The remote side may print diagnostics instead of JSON; the raw text is
    kept on ``body`` and included in the message.
    """

    def __init__(self, body: str) -> None:
        self.body = body
        super().__init__(f"pyphantom: {body}")


class MalformedResponseError(ProtocolError):
    """Raised when a JSON response does not have the expected shape."""

    def __init__(self, path: str, body: str, reason: str) -> None:
        self.path = path
        self.body = body
        super().__init__(f"unmarshal error: path={path}, err={reason}, body={body}")


class UnexpectedStatusError(ProtocolError):
    """Raised when the liveness endpoint answers with a non-200 status."""

    def __init__(self, status_code: int) -> None:
        self.status_code = status_code
        super().__init__(f"unexpected status: {status_code}")


class RemoteError(PhantomError):
    """Error reported by the remote process itself.

    ``str(err)`` is exactly the remote message.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class OperationFailedError(PhantomError):
    """Raised when a remote action reports failure in-band instead of via an error."""


class InjectionFailedError(OperationFailedError):
    """Raised by ``WebPage.inject_js`` when the remote side returns ``false``."""

    def __init__(self, filename: str) -> None:
        self.filename = filename
        super().__init__(f"injection failed: {filename}")
