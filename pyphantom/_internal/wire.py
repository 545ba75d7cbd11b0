"""
Wire encoding helpers.

This module contains:
- Strict scalar converters used to decode ``{"value": ...}`` style payloads
- The JSONValue tagged union returned by script evaluation
- Encoders/decoders for rects, cookies, paper sizes and page settings

Field names and formats here are fixed by the control script: renaming a key
or sending ``null`` where a key should be absent changes remote behaviour.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Mapping
from datetime import datetime, timedelta, timezone
from email.utils import format_datetime, parsedate_to_datetime
from typing import Any, Union

from typing_extensions import TypeAlias

from ..models import Cookie, PaperSize, PaperSizeMargin, Rect, WebPageSettings

logger = logging.getLogger(__name__)

_MILLISECOND = timedelta(milliseconds=1)

# ---------------------------------------------------------------------------
# Scalar converters
# ---------------------------------------------------------------------------
# Absent or null values decode to the zero value; anything of the wrong JSON
# type raises TypeError, which the transport reports as a malformed response.


def as_str(value: Any) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise TypeError(f"expected string, got {type(value).__name__}")
    return value


def as_bool(value: Any) -> bool:
    if value is None:
        return False
    if not isinstance(value, bool):
        raise TypeError(f"expected boolean, got {type(value).__name__}")
    return value


def as_int(value: Any) -> int:
    if value is None:
        return 0
    if isinstance(value, bool):
        raise TypeError("expected number, got bool")
    if isinstance(value, float):
        if not value.is_integer():
            raise TypeError(f"expected integer, got {value!r}")
        return int(value)
    if not isinstance(value, int):
        raise TypeError(f"expected number, got {type(value).__name__}")
    return value


def as_float(value: Any) -> float:
    if value is None:
        return 0.0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"expected number, got {type(value).__name__}")
    return float(value)


def as_str_list(value: Any) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise TypeError(f"expected array, got {type(value).__name__}")
    return [as_str(item) for item in value]


def as_str_map(value: Any) -> dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise TypeError(f"expected object, got {type(value).__name__}")
    return {key: as_str(item) for key, item in value.items()}


def as_object(value: Any) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise TypeError(f"expected object, got {type(value).__name__}")
    return value


# ---------------------------------------------------------------------------
# Script results
# ---------------------------------------------------------------------------

JSONValue: TypeAlias = Union[None, bool, int, float, str, list["JSONValue"], dict[str, "JSONValue"]]


class JSONKind(enum.Enum):
    """The variants a :data:`JSONValue` can take."""

    NULL = "null"
    BOOLEAN = "boolean"
    NUMBER = "number"
    STRING = "string"
    ARRAY = "array"
    OBJECT = "object"


def json_kind(value: JSONValue) -> JSONKind:
    """Classify a decoded script result."""
    if value is None:
        return JSONKind.NULL
    # bool before number: bool is an int subclass
    if isinstance(value, bool):
        return JSONKind.BOOLEAN
    if isinstance(value, (int, float)):
        return JSONKind.NUMBER
    if isinstance(value, str):
        return JSONKind.STRING
    if isinstance(value, list):
        return JSONKind.ARRAY
    if isinstance(value, dict):
        return JSONKind.OBJECT
    raise TypeError(f"not a JSON value: {type(value).__name__}")


def as_json_value(value: Any) -> JSONValue:
    """Check that *value* only contains JSON variants, recursively."""
    kind = json_kind(value)
    if kind is JSONKind.ARRAY:
        for item in value:
            as_json_value(item)
    elif kind is JSONKind.OBJECT:
        for key, item in value.items():
            if not isinstance(key, str):
                raise TypeError(f"object key must be a string, got {type(key).__name__}")
            as_json_value(item)
    return value


# ---------------------------------------------------------------------------
# References
# ---------------------------------------------------------------------------


def decode_ref_id(value: Any) -> str:
    """Decode a ``{"id": "..."}`` reference object; absent means no reference."""
    return as_str(as_object(value).get("id"))


# ---------------------------------------------------------------------------
# Rects
# ---------------------------------------------------------------------------


def encode_rect(rect: Rect) -> dict[str, int]:
    return {"top": rect.top, "left": rect.left, "width": rect.width, "height": rect.height}


def decode_rect(value: Any) -> Rect:
    data = as_object(value)
    return Rect(
        top=as_int(data.get("top")),
        left=as_int(data.get("left")),
        width=as_int(data.get("width")),
        height=as_int(data.get("height")),
    )


# ---------------------------------------------------------------------------
# Cookies
# ---------------------------------------------------------------------------


def format_http_date(value: datetime) -> str:
    """Format as an RFC 7231 HTTP-date, e.g. ``Mon, 02 Jan 2006 15:04:05 GMT``.

    Naive datetimes are taken to be UTC.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return format_datetime(value.astimezone(timezone.utc), usegmt=True)


def parse_http_date(text: str) -> datetime | None:
    try:
        parsed = parsedate_to_datetime(text)
    except (TypeError, ValueError):
        logger.debug("Unparseable cookie expiry %r", text)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def encode_cookie(cookie: Cookie) -> dict[str, Any]:
    return {
        "domain": cookie.domain,
        "expires": format_http_date(cookie.expires) if cookie.expires is not None else "",
        "expiry": 0,
        "httponly": cookie.http_only,
        "name": cookie.name,
        "path": cookie.path,
        "secure": cookie.secure,
        "value": cookie.value,
    }


def decode_cookie(value: Any) -> Cookie:
    data = as_object(value)
    raw_expires = as_str(data.get("expires"))
    return Cookie(
        name=as_str(data.get("name")),
        value=as_str(data.get("value")),
        domain=as_str(data.get("domain")),
        path=as_str(data.get("path")),
        expires=parse_http_date(raw_expires) if raw_expires else None,
        raw_expires=raw_expires,
        http_only=as_bool(data.get("httponly")),
        secure=as_bool(data.get("secure")),
    )


# ---------------------------------------------------------------------------
# Paper size
# ---------------------------------------------------------------------------


def _omit_empty(fields: Mapping[str, str]) -> dict[str, str]:
    return {key: value for key, value in fields.items() if value}


def encode_paper_size(size: PaperSize) -> dict[str, Any]:
    out: dict[str, Any] = _omit_empty(
        {"width": size.width, "height": size.height, "format": size.format}
    )
    if size.margin is not None:
        out["margin"] = _omit_empty(
            {
                "top": size.margin.top,
                "bottom": size.margin.bottom,
                "left": size.margin.left,
                "right": size.margin.right,
            }
        )
    if size.orientation:
        out["orientation"] = size.orientation
    return out


def decode_paper_size(value: Any) -> PaperSize:
    data = as_object(value)
    margin = None
    if data.get("margin") is not None:
        raw = as_object(data["margin"])
        margin = PaperSizeMargin(
            top=as_str(raw.get("top")),
            bottom=as_str(raw.get("bottom")),
            left=as_str(raw.get("left")),
            right=as_str(raw.get("right")),
        )
    return PaperSize(
        width=as_str(data.get("width")),
        height=as_str(data.get("height")),
        format=as_str(data.get("format")),
        margin=margin,
        orientation=as_str(data.get("orientation")),
    )


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


def to_milliseconds(value: timedelta) -> int:
    return value // _MILLISECOND


def from_milliseconds(value: Any) -> timedelta:
    try:
        return timedelta(milliseconds=as_float(value))
    except OverflowError as exc:
        raise ValueError(f"duration out of range: {value!r} ms") from exc


def encode_settings(settings: WebPageSettings) -> dict[str, Any]:
    return {
        "javascriptEnabled": settings.javascript_enabled,
        "loadImages": settings.load_images,
        "localToRemoteUrlAccessEnabled": settings.local_to_remote_url_access_enabled,
        "userAgent": settings.user_agent,
        "username": settings.username,
        "password": settings.password,
        "XSSAuditingEnabled": settings.xss_auditing_enabled,
        "webSecurityEnabled": settings.web_security_enabled,
        "resourceTimeout": to_milliseconds(settings.resource_timeout),
    }


def decode_settings(value: Any) -> WebPageSettings:
    data = as_object(value)
    return WebPageSettings(
        javascript_enabled=as_bool(data.get("javascriptEnabled")),
        load_images=as_bool(data.get("loadImages")),
        local_to_remote_url_access_enabled=as_bool(data.get("localToRemoteUrlAccessEnabled")),
        user_agent=as_str(data.get("userAgent")),
        username=as_str(data.get("username")),
        password=as_str(data.get("password")),
        xss_auditing_enabled=as_bool(data.get("XSSAuditingEnabled")),
        web_security_enabled=as_bool(data.get("webSecurityEnabled")),
        resource_timeout=from_milliseconds(data.get("resourceTimeout")),
    )
