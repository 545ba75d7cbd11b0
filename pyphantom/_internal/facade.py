"""
Remote object façade base.

Every façade method is one of four call shapes, all of which POST a JSON
object carrying the façade's reference id under ``"ref"``:

1. getter  -> ``{"value": ...}`` converted to a Python type
2. setter  -> no meaningful response
3. action  -> ``{"returnValue": ...}`` or ``{"status": "success"}``
4. refs    -> nested ``{"id": ...}`` objects materialized as new façades
   bound to the same process
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Callable, ClassVar, TypeVar, cast

from ..errors import OperationFailedError
from .remote_handle import RemoteRef
from .wire import as_str, decode_ref_id

if TYPE_CHECKING:
    from .host import Process

T = TypeVar("T")
F = TypeVar("F", bound="RemoteObject")

REF_FIELD = "ref"


class RemoteObject:
    """Base class for typed wrappers around a :class:`RemoteRef`."""

    namespace: ClassVar[str] = ""

    def __init__(self, ref: RemoteRef) -> None:
        self._ref = ref

    @property
    def ref(self) -> RemoteRef:
        return self._ref

    @property
    def id(self) -> str:
        return self._ref.id

    @property
    def process(self) -> Process:
        return self._ref.process

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RemoteObject):
            return NotImplemented
        return type(self) is type(other) and self._ref == other._ref

    def __hash__(self) -> int:
        return hash((type(self), self._ref))

    def __repr__(self) -> str:
        return f"<{type(self).__name__} ref={self._ref.id}>"

    # ------------------------------------------------------------------
    # Call shapes
    # ------------------------------------------------------------------

    def _path(self, op: str) -> str:
        return f"/{self.namespace}/{op}"

    def _request(self, fields: Mapping[str, Any] | None = None) -> dict[str, Any]:
        request: dict[str, Any] = {REF_FIELD: self._ref.id}
        if fields:
            request.update(fields)
        return request

    def _call(self, op: str, fields: Mapping[str, Any] | None = None, decode: Callable[[dict[str, Any]], T] | None = None) -> T | None:
        return self._ref.process.call("POST", self._path(op), self._request(fields), decode)

    def _get(self, op: str, convert: Callable[[Any], T], field: str = "value") -> T:
        return cast(T, self._call(op, None, lambda data: convert(data.get(field))))

    def _set(self, op: str, fields: Mapping[str, Any] | None = None) -> None:
        self._call(op, fields)

    def _invoke(self, op: str, convert: Callable[[Any], T], fields: Mapping[str, Any] | None = None, field: str = "returnValue") -> T:
        return cast(T, self._call(op, fields, lambda data: convert(data.get(field))))

    def _expect_status(self, op: str, fields: Mapping[str, Any] | None = None, token: str = "success") -> None:
        status = self._call(op, fields, lambda data: as_str(data.get("status")))
        if status != token:
            raise OperationFailedError(f"{op} failed: status {status!r}")

    def _wrap(self: F, ref_id: str) -> F:
        return type(self)(RemoteRef(self._ref.process, ref_id))

    def _refs(self: F, op: str, field: str = "refs") -> list[F]:
        def decode(data: dict[str, Any]) -> list[str]:
            raw = data.get(field)
            if raw is None:
                return []
            if not isinstance(raw, list):
                raise TypeError(f"expected array of references, got {type(raw).__name__}")
            return [decode_ref_id(item) for item in raw]

        ids = cast("list[str]", self._call(op, None, decode))
        return [self._wrap(ref_id) for ref_id in ids]

    def _ref_or_none(self: F, op: str, fields: Mapping[str, Any] | None = None) -> F | None:
        ref_id = self._call(op, fields, lambda data: decode_ref_id(data.get(REF_FIELD)))
        if not ref_id:
            return None
        return self._wrap(ref_id)
