"""WebPage façade: a remote page living inside the browser process.

Obtain one from :meth:`Process.create_web_page`. Pages are not closed
automatically; call :meth:`WebPage.close` (or use the page as a context
manager) to release the remote object before the process itself closes.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import timedelta
from types import TracebackType
from typing import Any

import httpx
from typing_extensions import Self

from ._internal.facade import RemoteObject
from ._internal.wire import (
    JSONValue,
    as_bool,
    as_float,
    as_int,
    as_json_value,
    as_str,
    as_str_list,
    as_str_map,
    decode_cookie,
    decode_paper_size,
    decode_rect,
    decode_settings,
    encode_cookie,
    encode_paper_size,
    encode_rect,
    encode_settings,
    to_milliseconds,
)
from .errors import InjectionFailedError
from .models import Cookie, KeyModifier, PaperSize, Position, Rect, ViewportSize, WebPageSettings


def _decode_cookies(value: Any) -> list[Cookie]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise TypeError(f"expected array of cookies, got {type(value).__name__}")
    return [decode_cookie(item) for item in value]


def _first_values(headers: Mapping[str, str] | httpx.Headers) -> dict[str, str]:
    # Only the first value of a repeated header is sent.
    if isinstance(headers, httpx.Headers):
        return {key: headers.get_list(key)[0] for key in headers.keys()}
    return dict(headers)


class WebPage(RemoteObject):
    """A page object created by ``webpage.create()`` on the remote side."""

    namespace = "webpage"

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def open(self, url: str) -> None:
        """Open *url* and wait for it to load.

        Raises:
            OperationFailedError: The page reported a status other than "success".
        """
        self._expect_status("Open", {"url": url})

    def can_go_back(self) -> bool:
        return self._get("CanGoBack", as_bool)

    def can_go_forward(self) -> bool:
        return self._get("CanGoForward", as_bool)

    def go_back(self) -> None:
        self._set("GoBack")

    def go_forward(self) -> None:
        self._set("GoForward")

    def go(self, index: int) -> None:
        """Navigate by relative history offset; negative moves back."""
        self._set("Go", {"index": index})

    def reload(self) -> None:
        self._set("Reload")

    def stop(self) -> None:
        self._set("Stop")

    def close(self) -> None:
        """Release the page and any pages it owns on the remote side."""
        self._set("Close")

    def url(self) -> str:
        return self._get("URL", as_str)

    def title(self) -> str:
        return self._get("Title", as_str)

    def navigation_locked(self) -> bool:
        return self._get("NavigationLocked", as_bool)

    def set_navigation_locked(self, value: bool) -> None:
        self._set("SetNavigationLocked", {"value": value})

    # ------------------------------------------------------------------
    # Content
    # ------------------------------------------------------------------

    def content(self) -> str:
        return self._get("Content", as_str)

    def set_content(self, content: str) -> None:
        self._set("SetContent", {"content": content})

    def set_content_and_url(self, content: str, url: str) -> None:
        self._set("SetContentAndURL", {"content": content, "url": url})

    def plain_text(self) -> str:
        return self._get("PlainText", as_str)

    def window_name(self) -> str:
        return self._get("WindowName", as_str)

    # ------------------------------------------------------------------
    # Frames
    # ------------------------------------------------------------------

    def focused_frame_name(self) -> str:
        return self._get("FocusedFrameName", as_str)

    def frame_content(self) -> str:
        return self._get("FrameContent", as_str)

    def set_frame_content(self, content: str) -> None:
        self._set("SetFrameContent", {"content": content})

    def frame_name(self) -> str:
        return self._get("FrameName", as_str)

    def frame_plain_text(self) -> str:
        return self._get("FramePlainText", as_str)

    def frame_title(self) -> str:
        return self._get("FrameTitle", as_str)

    def frame_url(self) -> str:
        return self._get("FrameURL", as_str)

    def frame_count(self) -> int:
        return self._get("FrameCount", as_int)

    def frame_names(self) -> list[str]:
        return self._get("FrameNames", as_str_list)

    def switch_to_focused_frame(self) -> None:
        self._set("SwitchToFocusedFrame")

    def switch_to_frame_name(self, name: str) -> None:
        self._set("SwitchToFrameName", {"name": name})

    def switch_to_frame_position(self, position: int) -> None:
        self._set("SwitchToFramePosition", {"position": position})

    def switch_to_main_frame(self) -> None:
        self._set("SwitchToMainFrame")

    def switch_to_parent_frame(self) -> None:
        self._set("SwitchToParentFrame")

    # ------------------------------------------------------------------
    # Owned pages
    # ------------------------------------------------------------------

    def owns_pages(self) -> bool:
        return self._get("OwnsPages", as_bool)

    def set_owns_pages(self, value: bool) -> None:
        self._set("SetOwnsPages", {"value": value})

    def page_window_names(self) -> list[str]:
        return self._get("PageWindowNames", as_str_list)

    def pages(self) -> list[WebPage]:
        """Pages opened by this page in other windows."""
        return self._refs("Pages")

    def page(self, name: str) -> WebPage | None:
        """Owned page with window name *name*, or ``None`` if there is none."""
        return self._ref_or_none("Page", {"name": name})

    # ------------------------------------------------------------------
    # Cookies & headers
    # ------------------------------------------------------------------

    def cookies(self) -> list[Cookie]:
        return self._get("Cookies", _decode_cookies)

    def set_cookies(self, cookies: Iterable[Cookie]) -> None:
        self._set("SetCookies", {"cookies": [encode_cookie(cookie) for cookie in cookies]})

    def add_cookie(self, cookie: Cookie) -> bool:
        """Add *cookie*; returns whether the remote side accepted it."""
        return self._invoke("AddCookie", as_bool, {"cookie": encode_cookie(cookie)})

    def delete_cookie(self, name: str) -> bool:
        """Delete the cookie called *name*; returns whether one was removed."""
        return self._invoke("DeleteCookie", as_bool, {"name": name})

    def clear_cookies(self) -> None:
        self._set("ClearCookies")

    def custom_headers(self) -> httpx.Headers:
        """Additional headers sent with every request the page makes."""
        return httpx.Headers(self._get("CustomHeaders", as_str_map))

    def set_custom_headers(self, headers: Mapping[str, str] | httpx.Headers) -> None:
        """Replace the custom headers. Repeated headers keep their first value only."""
        self._set("SetCustomHeaders", {"headers": _first_values(headers)})

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def clip_rect(self) -> Rect:
        return self._get("ClipRect", decode_rect)

    def set_clip_rect(self, rect: Rect) -> None:
        """Set the rendering clip; an all-zero rect renders the whole page."""
        self._set("SetClipRect", {"rect": encode_rect(rect)})

    def paper_size(self) -> PaperSize:
        return self._get("PaperSize", decode_paper_size)

    def set_paper_size(self, size: PaperSize) -> None:
        self._set("SetPaperSize", {"size": encode_paper_size(size)})

    def viewport_size(self) -> ViewportSize:
        return self._call(
            "ViewportSize",
            None,
            lambda data: ViewportSize(width=as_int(data.get("width")), height=as_int(data.get("height"))),
        )  # type: ignore[return-value]

    def set_viewport_size(self, width: int, height: int) -> None:
        self._set("SetViewportSize", {"width": width, "height": height})

    def scroll_position(self) -> Position:
        return self._call(
            "ScrollPosition",
            None,
            lambda data: Position(top=as_int(data.get("top")), left=as_int(data.get("left"))),
        )  # type: ignore[return-value]

    def set_scroll_position(self, position: Position) -> None:
        self._set("SetScrollPosition", {"top": position.top, "left": position.left})

    def zoom_factor(self) -> float:
        return self._get("ZoomFactor", as_float)

    def set_zoom_factor(self, factor: float) -> None:
        self._set("SetZoomFactor", {"value": factor})

    def render(self, filename: str, format: str, quality: int) -> None:
        """Render to *filename* on the remote side's filesystem.

        Supported formats are "PDF", "PNG", "JPEG", "BMP", "PPM" and "GIF".
        """
        self._set("Render", {"filename": filename, "format": format, "quality": quality})

    def render_base64(self, format: str) -> str:
        return self._invoke("RenderBase64", as_str, {"format": format})

    # ------------------------------------------------------------------
    # Settings & storage
    # ------------------------------------------------------------------

    def settings(self) -> WebPageSettings:
        return self._get("Settings", decode_settings, field="settings")

    def set_settings(self, settings: WebPageSettings) -> None:
        """Apply *settings*. Only settings in place when :meth:`open` runs take effect."""
        self._set("SetSettings", {"settings": encode_settings(settings)})

    def library_path(self) -> str:
        """Directory :meth:`inject_js` falls back to when resolving scripts."""
        return self._get("LibraryPath", as_str)

    def set_library_path(self, path: str) -> None:
        self._set("SetLibraryPath", {"path": path})

    def offline_storage_path(self) -> str:
        return self._get("OfflineStoragePath", as_str)

    def offline_storage_quota(self) -> int:
        return self._get("OfflineStorageQuota", as_int)

    # ------------------------------------------------------------------
    # Scripts
    # ------------------------------------------------------------------

    def evaluate(self, script: str) -> JSONValue:
        """Run a function in the page context and return its JSON result."""
        return self._invoke("Evaluate", as_json_value, {"script": script})

    def evaluate_javascript(self, script: str) -> JSONValue:
        return self._invoke("EvaluateJavaScript", as_json_value, {"script": script})

    def evaluate_async(self, script: str, delay: timedelta = timedelta()) -> None:
        """Schedule *script* to run after *delay* and return immediately."""
        self._set("EvaluateAsync", {"script": script, "delay": to_milliseconds(delay)})

    def include_js(self, url: str) -> None:
        """Include the script at *url*; returns once it has loaded."""
        self._set("IncludeJS", {"url": url})

    def inject_js(self, filename: str) -> None:
        """Inject a script from the remote side's filesystem.

        Raises:
            InjectionFailedError: The script could not be injected.
        """
        if not self._invoke("InjectJS", as_bool, {"filename": filename}):
            raise InjectionFailedError(filename)

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    def send_mouse_event(self, event_type: str, mouse_x: int, mouse_y: int, button: str = "left") -> None:
        """Send a native mouse event.

        *event_type* is "mouseup", "mousedown", "mousemove", "doubleclick" or "click".
        """
        self._set(
            "SendMouseEvent",
            {"eventType": event_type, "mouseX": mouse_x, "mouseY": mouse_y, "button": button},
        )

    def send_keyboard_event(self, event_type: str, key: str, modifier: KeyModifier | int = KeyModifier.NONE) -> None:
        """Send a native keyboard event.

        *event_type* is "keyup", "keypress" or "keydown"; combine modifiers with ``|``.
        """
        self._set("SendKeyboardEvent", {"eventType": event_type, "key": key, "modifier": int(modifier)})

    def upload_file(self, selector: str, filename: str) -> None:
        self._set("UploadFile", {"selector": selector, "filename": filename})
