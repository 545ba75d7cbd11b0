"""Remote object reference for objects living inside the browser process.

RemoteRef is a lightweight, non-owning handle: the process that issued the id
plus the id itself. It performs no I/O. Ids are only meaningful to the
process that issued them; once that process closes, calls through the handle
fail through the normal error channel.
"""
from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .host import Process


class RemoteRef:
    """Handle to an object in the remote process.

    Attributes:
        process: The process that issued the id. Not owned by the handle.
        id: Opaque identifier assigned by the remote side.
    """

    __slots__ = ("_process", "_id")

    def __init__(self, process: Process, ref_id: str) -> None:
        object.__setattr__(self, "_process", process)
        object.__setattr__(self, "_id", ref_id)

    @property
    def process(self) -> Process:
        return self._process

    @property
    def id(self) -> str:
        return self._id

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RemoteRef):
            return NotImplemented
        return self._process is other._process and self._id == other._id

    def __hash__(self) -> int:
        return hash((id(self._process), self._id))

    def __repr__(self) -> str:
        return f"<RemoteRef id={self._id} endpoint={self._process.endpoint}>"
