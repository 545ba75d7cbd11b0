"""Typed records exchanged with remote web pages."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime, timedelta


class KeyModifier(enum.IntFlag):
    """Keyboard modifiers for ``WebPage.send_keyboard_event``; combine with ``|``."""

    NONE = 0
    SHIFT = 0x02000000
    CTRL = 0x04000000
    ALT = 0x08000000
    META = 0x10000000
    KEYPAD = 0x20000000


@dataclass
class Rect:
    """Clipping rectangle used when rendering."""

    top: int = 0
    left: int = 0
    width: int = 0
    height: int = 0


@dataclass
class Position:
    """A coordinate on the page, in pixels."""

    top: int = 0
    left: int = 0


@dataclass
class ViewportSize:
    width: int = 0
    height: int = 0


@dataclass
class Cookie:
    """A cookie visible to a page.

    ``expires`` is kept timezone-aware (UTC). ``raw_expires`` holds the text
    received from the remote side, even when it could not be parsed.
    """

    name: str
    value: str = ""
    domain: str = ""
    path: str = ""
    expires: datetime | None = None
    raw_expires: str = ""
    http_only: bool = False
    secure: bool = False


@dataclass
class PaperSizeMargin:
    top: str = ""
    bottom: str = ""
    left: str = ""
    right: str = ""


@dataclass
class PaperSize:
    """Size of a page when rendered as a PDF.

    Dimensions accept "mm", "cm", "in" or "px" units ("px" when omitted).
    ``format`` is one of "A3", "A4", "A5", "Legal", "Letter", "Tabloid" and
    ``orientation`` is "portrait" or "landscape". A ``margin`` of ``None`` is
    left out of the request entirely.
    """

    width: str = ""
    height: str = ""
    format: str = ""
    margin: PaperSizeMargin | None = None
    orientation: str = ""


@dataclass
class WebPageSettings:
    """Settings applied when a page is opened.

    Only the settings in place at ``WebPage.open`` time take effect.
    """

    javascript_enabled: bool = False
    load_images: bool = False
    local_to_remote_url_access_enabled: bool = False
    user_agent: str = ""
    username: str = ""
    password: str = ""
    xss_auditing_enabled: bool = False
    web_security_enabled: bool = False
    resource_timeout: timedelta = field(default_factory=timedelta)
