"""
A WebDriver session.

Every command for a session goes through a single FIFO queue, because
several drivers drop connections or corrupt state when one session receives
parallel requests. Callers still get their own request's result back.

Most operations carry workarounds for specific drivers. They are keyed off
:class:`jsonwire.capabilities.Capabilities` flags, and several flags heal
themselves the first time a command proves them wrong.
"""

import asyncio
import base64
import math
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Union

from . import scripts
from .capabilities import Capabilities
from .constants import JWP_ELEMENT_KEY, MAX_TIMEOUT_MS, MOUSE_CLICK_SETTLE_MS, W3C_ELEMENT_KEY
from .decorators import for_command
from .element import Element
from .errors import WebDriverError, create_error, error_for_status, rename_error
from .lib.find_displayed import find_displayed
from .lib.wait_for_deleted import wait_for_deleted
from .locator import Locator, check_strategy, to_w3c_locator
from .util import parse_date, push_cookie_properties, sleep, to_execute_string

import logging
logger = logging.getLogger(__name__)


TIMEOUT_TYPES = ("script", "implicit", "page load")

_COOKIE_KEYS = ("name", "value", "path", "domain", "secure", "httpOnly", "expiry")

_INVALID_COOKIE_NAME = re.compile(r"[^A-Za-z0-9!#$%&'*+.^_`|~-]")
_INVALID_COOKIE_VALUE = re.compile(r"[^\x21\x23-\x2b\x2d-\x3a\x3c-\x5b\x5d-\x7e]")

_TIMEOUT_TYPE_MESSAGES = re.compile(
    r"Missing 'type' parameter|Unknown timeout type|Invalid timeout type specified"
)

_STRING_LOG_ENTRY = re.compile(r"\[([^\]]+)\]\s*\[([^\]]+)\]\s*(.*)")

_EXPIRED = "expires=Thu, 01 Jan 1970 00:00:00 GMT"


def _compact(data: Dict[str, Any]) -> Dict[str, Any]:
    """Drop unset (None) keys from a request body."""
    return {key: value for key, value in data.items() if value is not None}


def _element_id(element: Any) -> Any:
    return element.element_id if isinstance(element, Element) else element


class Session(Locator):
    """
    One remote browser session.

    Created by :meth:`jsonwire.server.Server.create_session`. All operations
    are coroutines.
    """

    def __init__(self, session_id: str, server, capabilities: Union[Capabilities, Dict[str, Any], None] = None):
        if not isinstance(capabilities, Capabilities):
            capabilities = Capabilities.from_wire(capabilities)
        self._session_id = session_id
        self._server = server
        self._capabilities = capabilities
        self._closed_windows = set()
        self._timeouts = {"script": 0, "implicit": 0, "page load": math.inf}
        self._moved_to_element = False
        self._last_mouse_position = {"x": 0, "y": 0}
        self._last_altitude = None
        self._next_request: Optional[asyncio.Task] = None

    def __repr__(self) -> str:
        return f"Session({self._session_id!r})"

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def server(self):
        return self._server

    @property
    def capabilities(self) -> Capabilities:
        return self._capabilities

    # ------------------------------------------------------------------
    # Request queue
    # ------------------------------------------------------------------

    def _delegate_to_server(
        self,
        method: str,
        path: str,
        data: Any = None,
        path_parts: Optional[Sequence[Any]] = None,
    ) -> "asyncio.Task":
        """
        Queue a request behind every earlier request of this session.

        Returns the request's task. Cancelling it before it reaches the
        front of the queue means it is never sent; the queue order is kept
        either way.
        """
        path = f"session/{self._session_id}" + (f"/{path}" if path else "")

        if method == "post" and data is None and self._capabilities.broken_empty_post:
            data = {}

        previous = self._next_request
        send = getattr(self._server, method)

        async def run_request():
            cancelled = False
            while previous is not None and not previous.done():
                try:
                    await asyncio.wait([previous])
                except asyncio.CancelledError:
                    cancelled = True
            if cancelled:
                raise asyncio.CancelledError()
            return await send(path, data, path_parts)

        task = asyncio.get_running_loop().create_task(run_request())
        self._next_request = task

        def clear_next_request(done_task):
            if self._next_request is done_task:
                self._next_request = None

        task.add_done_callback(clear_next_request)
        return task

    def server_get(self, path: str, data: Any = None, path_parts: Optional[Sequence[Any]] = None):
        return self._delegate_to_server("get", path, data, path_parts)

    def server_post(self, path: str, data: Any = None, path_parts: Optional[Sequence[Any]] = None):
        return self._delegate_to_server("post", path, data, path_parts)

    def server_delete(self, path: str, data: Any = None, path_parts: Optional[Sequence[Any]] = None):
        return self._delegate_to_server("delete", path, data, path_parts)

    # ------------------------------------------------------------------
    # Timeouts
    # ------------------------------------------------------------------

    async def get_timeout(self, type: str) -> float:
        """Current value of a timeout ("script", "implicit" or "page load"), in ms."""
        if self._capabilities.supports_get_timeouts:
            timeouts = await self.server_get("timeouts")
            return timeouts["pageLoad"] if type == "page load" else timeouts[type]
        return self._timeouts[type]

    async def set_timeout(self, type: str, ms: float) -> None:
        """
        Set a timeout, in ms.

        Infinity is clamped to ``2**23 - 1`` since neither JSON nor most
        drivers accept it.
        """
        if ms == math.inf:
            ms = MAX_TIMEOUT_MS

        if self._capabilities.broken_zero_timeout and ms == 0:
            ms = 1

        if isinstance(ms, float) and ms.is_integer():
            ms = int(ms)

        if self._capabilities.uses_web_driver_timeouts:
            data = {"pageLoad" if type == "page load" else type: ms}
        else:
            data = {"type": type, "ms": ms}

        try:
            await self.server_post("timeouts", data)
        except WebDriverError as error:
            # Appium only knows the per-type endpoints
            if error.name == "UnknownCommand":
                if type == "script":
                    await self.server_post("timeouts/async_script", {"ms": ms})
                elif type == "implicit":
                    await self.server_post("timeouts/implicit_wait", {"ms": ms})
                else:
                    raise
            elif not self._capabilities.uses_web_driver_timeouts and _TIMEOUT_TYPE_MESSAGES.search(error.message):
                self._capabilities.heal("uses_web_driver_timeouts", True, error.message)
                await self.set_timeout(type, ms)
                return
            else:
                raise

        self._timeouts[type] = ms

    async def get_execute_async_timeout(self) -> float:
        return await self.get_timeout("script")

    async def set_execute_async_timeout(self, ms: float) -> None:
        await self.set_timeout("script", ms)

    async def get_find_timeout(self) -> float:
        return await self.get_timeout("implicit")

    async def set_find_timeout(self, ms: float) -> None:
        await self.set_timeout("implicit", ms)

    async def get_page_load_timeout(self) -> float:
        return await self.get_timeout("page load")

    async def set_page_load_timeout(self, ms: float) -> None:
        await self.set_timeout("page load", ms)

    # ------------------------------------------------------------------
    # Windows and navigation
    # ------------------------------------------------------------------

    async def get_current_window_handle(self) -> str:
        capabilities = self._capabilities
        endpoint = "window" if capabilities.uses_web_driver_window_handle_commands else "window_handle"
        try:
            handle = await self.server_get(endpoint)
        except WebDriverError as error:
            # Edge 44 answers UnknownError instead of UnknownCommand
            if error.name.startswith("Unknown") and not capabilities.uses_web_driver_window_handle_commands:
                capabilities.heal("uses_web_driver_window_handle_commands", True, error.name)
                return await self.get_current_window_handle()
            raise

        if capabilities.broken_delete_window and handle in self._closed_windows:
            raise error_for_status(23)
        return handle

    async def get_all_window_handles(self) -> List[str]:
        capabilities = self._capabilities
        endpoint = "window/handles" if capabilities.uses_web_driver_window_handle_commands else "window_handles"
        try:
            handles = await self.server_get(endpoint)
        except WebDriverError as error:
            if error.name == "UnknownCommand" and not capabilities.uses_web_driver_window_handle_commands:
                capabilities.heal("uses_web_driver_window_handle_commands", True, error.name)
                return await self.get_all_window_handles()
            raise

        if capabilities.broken_delete_window:
            return [handle for handle in handles if handle not in self._closed_windows]
        return handles

    async def get_current_url(self) -> str:
        return await self.server_get("url")

    async def get(self, url: str) -> None:
        """Navigate the focused window/frame to ``url``."""
        self._moved_to_element = False
        if self._capabilities.broken_mouse_events:
            self._last_mouse_position = {"x": 0, "y": 0}
        await self.server_post("url", {"url": url})

    async def go_forward(self) -> None:
        await self.server_post("forward")

    async def go_back(self) -> None:
        await self.server_post("back")

    async def refresh(self) -> None:
        if self._capabilities.broken_refresh:
            await self.execute(scripts.RELOAD)
            return
        await self.server_post("refresh")

    # ------------------------------------------------------------------
    # Scripts
    # ------------------------------------------------------------------

    def _convert_to_elements(self, value: Any) -> Any:
        if isinstance(value, list):
            return [self._convert_to_elements(item) for item in value]
        if isinstance(value, dict):
            if value.get(JWP_ELEMENT_KEY) or value.get(W3C_ELEMENT_KEY):
                return Element(value, self)
            return {key: self._convert_to_elements(item) for key, item in value.items()}
        return value

    @staticmethod
    def _check_script_args(args: Any, method: str) -> None:
        if args is not None and not isinstance(args, (list, tuple)):
            raise TypeError(f"Arguments passed to {method} must be a list")

    async def execute(self, script: str, args: Optional[Sequence[Any]] = None) -> Any:
        """
        Run ``script`` synchronously in the focused window/frame.

        ``script`` is either a script body or a JavaScript function source.
        ``args`` may contain Elements; elements in the result come back as
        Elements.
        """
        self._check_script_args(args, "execute")
        capabilities = self._capabilities
        endpoint = "execute/sync" if capabilities.uses_web_driver_execute_sync else "execute"

        try:
            value = await self.server_post(endpoint, {"script": to_execute_string(script), "args": list(args or [])})
        except WebDriverError as error:
            detail = error.detail if isinstance(error.detail, dict) else {}
            if detail.get("error") == "unknown command" and not capabilities.uses_web_driver_execute_sync:
                capabilities.heal("uses_web_driver_execute_sync", True, "unknown command")
                return await self.execute(script, args)
            if error.name == "UnknownError":
                raise rename_error(error, "JavaScriptError", 17) from error
            raise

        return self._convert_to_elements(value)

    async def execute_async(self, script: str, args: Optional[Sequence[Any]] = None) -> Any:
        """
        Run ``script`` asynchronously; it receives a completion callback as
        its last argument. See :meth:`set_execute_async_timeout`.
        """
        self._check_script_args(args, "execute_async")
        capabilities = self._capabilities
        endpoint = "execute/async" if capabilities.uses_web_driver_execute_async else "execute_async"

        try:
            value = await self.server_post(endpoint, {"script": to_execute_string(script), "args": list(args or [])})
        except WebDriverError as error:
            detail = error.detail if isinstance(error.detail, dict) else {}
            if detail.get("error") == "unknown command" and not capabilities.uses_web_driver_execute_async:
                capabilities.heal("uses_web_driver_execute_async", True, "unknown command")
                return await self.execute_async(script, args)
            if error.name == "UnknownError":
                raise rename_error(error, "JavaScriptError", 17) from error
            # Safari 11 reports script timeouts as plain timeouts
            if error.name == "Timeout":
                raise rename_error(error, "ScriptTimeout", 28) from error
            raise

        return self._convert_to_elements(value)

    async def take_screenshot(self) -> bytes:
        """PNG screenshot of the focused window."""
        data = await self.server_get("screenshot")
        return base64.b64decode(data)

    # ------------------------------------------------------------------
    # Input method editors
    # ------------------------------------------------------------------

    async def get_available_ime_engines(self) -> List[str]:
        return await self.server_get("ime/available_engines")

    async def get_active_ime_engine(self) -> str:
        return await self.server_get("ime/active_engine")

    async def is_ime_activated(self) -> bool:
        return await self.server_get("ime/activated")

    async def deactivate_ime(self) -> None:
        await self.server_post("ime/deactivate")

    async def activate_ime(self, engine: str) -> None:
        await self.server_post("ime/activate", {"engine": engine})

    # ------------------------------------------------------------------
    # Frames and windows
    # ------------------------------------------------------------------

    async def switch_to_frame(self, id: Union[str, int, Element, None]) -> None:
        """
        Focus a frame: an index or name in ``window.frames``, a frame
        Element, or None for the top-level document.
        """
        capabilities = self._capabilities
        if capabilities.uses_web_driver_frame_id and isinstance(id, str):
            element = await self.find_by_id(id)
            await self.server_post("frame", {"id": element})
            return

        try:
            await self.server_post("frame", {"id": id})
        except WebDriverError as error:
            detail = error.detail if isinstance(error.detail, dict) else {}
            if capabilities.uses_web_driver_frame_id is None and (
                error.name == "NoSuchFrame"
                # geckodriver 0.24 rejects frame names with a serde message
                or re.search(r"any variant of untagged", str(detail.get("message") or ""))
            ):
                capabilities.heal("uses_web_driver_frame_id", True, error.name)
                await self.switch_to_frame(id)
                return
            raise

    async def switch_to_window(self, handle: str) -> None:
        """
        Focus a window. W3C servers want a handle from
        :meth:`get_all_window_handles`; JsonWireProtocol servers want the
        window's ``window.name``.
        """
        data = {"handle": handle} if self._capabilities.uses_handle_parameter else {"name": handle}
        await self.server_post("window", data)

    async def switch_to_parent_frame(self) -> None:
        capabilities = self._capabilities
        if capabilities.broken_parent_frame_switch:
            if capabilities.scripted_parent_frame_crashes_browser:
                raise create_error(
                    "UnsupportedOperation",
                    "Cannot use a script to switch to parent frame in this browser",
                )
            parent = await self.execute(scripts.PARENT_FRAME_ELEMENT)
            await self.switch_to_frame(parent or None)
            return

        try:
            await self.server_post("frame/parent")
        except WebDriverError as error:
            if capabilities.broken_parent_frame_switch is None:
                logger.debug(f"Error calling frame/parent: {error}")
                capabilities.heal("broken_parent_frame_switch", True, error.name)
                await self.switch_to_parent_frame()
                return
            raise

    async def _close_window_manually(self) -> None:
        handle = await self.get_current_window_handle()
        await self.execute(scripts.CLOSE_WINDOW)
        self._closed_windows.add(handle)

    async def close_current_window(self) -> None:
        """Close the focused window. Switch to another window afterwards."""
        capabilities = self._capabilities
        if capabilities.broken_delete_window:
            await self._close_window_manually()
            return

        try:
            await self.server_delete("window")
        except WebDriverError as error:
            if error.name == "UnknownCommand" and not capabilities.broken_delete_window:
                capabilities.heal("broken_delete_window", True, error.name)
                await self._close_window_manually()
                return
            raise

    async def _with_window(self, window_handle: Optional[str], operation):
        """Run ``operation`` with ``window_handle`` focused, then restore focus."""
        if window_handle is None:
            return await operation()
        original_handle = await self.get_current_window_handle()
        if original_handle == window_handle:
            return await operation()
        await self.switch_to_window(window_handle)
        try:
            return await operation()
        finally:
            await self.switch_to_window(original_handle)

    async def get_window_rect(self) -> Dict[str, float]:
        return await self.server_get("window/rect")

    async def set_window_rect(self, rect: Dict[str, float]) -> None:
        await self.server_post("window/rect", rect)

    async def set_window_size(self, width: float, height: float, window_handle: Optional[str] = None) -> None:
        """Resize a window (the focused one by default), in CSS pixels."""
        if self._capabilities.uses_web_driver_window_commands:
            async def set_size():
                # geckodriver 0.17 wants all four rect values
                position = await self.get_window_position()
                await self.set_window_rect(
                    {"x": position["x"], "y": position["y"], "width": width, "height": height}
                )
            await self._with_window(window_handle, set_size)
            return

        await self.server_post(
            "window/$0/size", {"width": width, "height": height}, [window_handle or "current"]
        )

    async def get_window_size(self, window_handle: Optional[str] = None) -> Dict[str, float]:
        if self._capabilities.uses_web_driver_window_commands:
            async def get_size():
                rect = await self.get_window_rect()
                return {"width": rect["width"], "height": rect["height"]}
            return await self._with_window(window_handle, get_size)

        size = await self.server_get("window/$0/size", None, [window_handle or "current"])
        return {"width": size["width"], "height": size["height"]}

    async def set_window_position(self, x: float, y: float, window_handle: Optional[str] = None) -> None:
        """Move a window; not part of W3C WebDriver proper."""
        if self._capabilities.uses_web_driver_window_commands:
            async def set_position():
                size = await self.get_window_size()
                await self.set_window_rect({"x": x, "y": y, "width": size["width"], "height": size["height"]})
            await self._with_window(window_handle, set_position)
            return

        await self.server_post("window/$0/position", {"x": x, "y": y}, [window_handle or "current"])

    async def get_window_position(self, window_handle: Optional[str] = None) -> Dict[str, float]:
        if self._capabilities.uses_web_driver_window_commands:
            async def get_position():
                rect = await self.get_window_rect()
                return {"x": rect["x"], "y": rect["y"]}
            return await self._with_window(window_handle, get_position)

        # geckodriver 0.19 answers with a full rect
        position = await self.server_get("window/$0/position", None, [window_handle or "current"])
        return {"x": position["x"], "y": position["y"]}

    async def maximize_window(self, window_handle: Optional[str] = None) -> None:
        if self._capabilities.uses_web_driver_window_commands:
            async def maximize():
                await self.server_post("window/maximize")
            await self._with_window(window_handle, maximize)
            return

        await self.server_post("window/$0/maximize", None, [window_handle or "current"])

    # ------------------------------------------------------------------
    # Cookies
    # ------------------------------------------------------------------

    async def get_cookies(self) -> List[Dict[str, Any]]:
        """
        Cookies visible to the current page. Unknown keys some drivers add
        are dropped; ``expiry`` is returned as an aware UTC datetime.
        """
        cookies = await self.server_get("cookie")
        result = []
        for raw in cookies or []:
            cookie = {key: raw[key] for key in _COOKIE_KEYS if key in raw}
            expiry = cookie.get("expiry")
            if isinstance(expiry, (int, float)) and not isinstance(expiry, bool):
                cookie["expiry"] = datetime.fromtimestamp(expiry, tz=timezone.utc)
            result.append(cookie)
        return result

    async def set_cookie(self, cookie: Dict[str, Any]) -> None:
        cookie = dict(cookie)
        expiry = cookie.get("expiry")
        if isinstance(expiry, str):
            expiry = parse_date(expiry)
        if isinstance(expiry, datetime):
            if expiry.tzinfo is None:
                expiry = expiry.replace(tzinfo=timezone.utc)
            cookie["expiry"] = expiry.timestamp()

        try:
            await self.server_post("cookie", {"cookie": cookie})
        except WebDriverError as error:
            # ios-driver cannot set cookies; fall back to document.cookie
            if error.name != "UnknownCommand":
                raise
            if _INVALID_COOKIE_NAME.search(str(cookie.get("name", ""))):
                raise error_for_status(25, "Invalid cookie name") from error
            if _INVALID_COOKIE_VALUE.search(str(cookie.get("value", ""))):
                raise error_for_status(25, "Invalid cookie value") from error

            cookie_to_set = [f"{cookie.get('name')}={cookie.get('value')}"]
            push_cookie_properties(cookie_to_set, cookie)
            await self.execute(scripts.SET_DOCUMENT_COOKIE, [";".join(cookie_to_set)])

    async def _expire_cookie(self, cookie: Dict[str, Any]) -> None:
        expired = [f"{cookie['name']}=", _EXPIRED]
        push_cookie_properties(expired, cookie)
        await self.execute(scripts.EXPIRE_DOCUMENT_COOKIE, [";".join(expired)])

    async def clear_cookies(self) -> None:
        if self._capabilities.broken_delete_cookie:
            for cookie in await self.get_cookies():
                await self._expire_cookie(cookie)
            return
        await self.server_delete("cookie")

    async def delete_cookie(self, name: str) -> None:
        if self._capabilities.broken_delete_cookie:
            for cookie in await self.get_cookies():
                if cookie.get("name") == name:
                    await self._expire_cookie(cookie)
                    break
            return
        await self.server_delete("cookie/$0", None, [name])

    # ------------------------------------------------------------------
    # Page content
    # ------------------------------------------------------------------

    async def get_page_source(self) -> str:
        if self._capabilities.broken_page_source:
            return await self.execute(scripts.PAGE_SOURCE)
        return await self.server_get("source")

    async def get_page_title(self) -> str:
        return await self.server_get("title")

    # ------------------------------------------------------------------
    # Finding elements
    # ------------------------------------------------------------------

    def _manual_link_text(self, using: str) -> bool:
        capabilities = self._capabilities
        return "link text" in using and bool(
            capabilities.broken_whitespace_normalization or capabilities.broken_link_text_locator
        )

    async def find(self, using: str, value: str) -> Element:
        """
        First element in the focused window/frame matching the locator.

        ``using`` is one of the strategies in :data:`jsonwire.locator.STRATEGIES`.
        See :meth:`set_find_timeout` for how long the server waits.
        """
        check_strategy(using)
        capabilities = self._capabilities
        locator = {"using": using, "value": value}
        if capabilities.uses_web_driver_locators:
            locator = to_w3c_locator(using, value)

        if self._manual_link_text(locator["using"]):
            element = await self.execute(scripts.MANUAL_FIND_BY_LINK_TEXT, [locator["using"], locator["value"]])
            if not element:
                raise error_for_status(7)
            return Element(element, self)

        try:
            element = await self.server_post("element", locator)
        except WebDriverError as error:
            if not capabilities.uses_web_driver_locators and "search strategy: 'id'" in error.message:
                capabilities.heal("uses_web_driver_locators", True, error.message)
                return await self.find(using, value)
            raise
        return Element(element, self)

    async def find_all(self, using: str, value: str) -> List[Element]:
        check_strategy(using)
        capabilities = self._capabilities
        locator = {"using": using, "value": value}
        if capabilities.uses_web_driver_locators:
            locator = to_w3c_locator(using, value)

        if self._manual_link_text(locator["using"]):
            elements = await self.execute(
                scripts.MANUAL_FIND_BY_LINK_TEXT, [locator["using"], locator["value"], True]
            )
            return [Element(element, self) for element in elements or []]

        try:
            elements = await self.server_post("elements", locator)
        except WebDriverError as error:
            if not capabilities.uses_web_driver_locators and "search strategy: 'id'" in error.message:
                capabilities.heal("uses_web_driver_locators", True, error.message)
                return await self.find_all(using, value)
            raise
        return [Element(element, self) for element in elements or []]

    @for_command(creates_context=True)
    async def get_active_element(self) -> Element:
        """
        The focused element. Like ``document.activeElement`` this is the body
        when nothing else has focus, even where the driver answers null.
        """
        capabilities = self._capabilities
        if capabilities.broken_active_element:
            return await self.execute(scripts.DOCUMENT_ACTIVE_ELEMENT)

        try:
            if capabilities.uses_web_driver_active_element:
                element = await self.server_get("element/active")
            else:
                element = await self.server_post("element/active")
        except WebDriverError as error:
            if error.name == "UnknownMethod" and not capabilities.uses_web_driver_active_element:
                capabilities.heal("uses_web_driver_active_element", True, error.name)
                return await self.get_active_element()
            raise

        if element:
            return Element(element, self)
        return await self.execute(scripts.DOCUMENT_ACTIVE_ELEMENT)

    async def find_displayed(self, using: str, value: str) -> Element:
        """First displayed match, polling until the find timeout expires."""
        return await find_displayed(self, self, using, value)

    async def wait_for_deleted(self, using: str, value: str) -> None:
        """Wait until nothing matches the locator, up to the find timeout."""
        await wait_for_deleted(self, self, using, value)

    # ------------------------------------------------------------------
    # Keyboard
    # ------------------------------------------------------------------

    async def press_keys(self, keys: Union[str, List[str]]) -> None:
        """
        Type into the focused element. Modifier keys (``selenium`` ``Keys``)
        stay pressed until typed again or released with ``Keys.NULL``.
        """
        if isinstance(keys, str):
            keys = [keys]
        if self._capabilities.broken_send_keys or self._capabilities.no_keys_command:
            await self.execute(scripts.SIMULATE_KEYS, [keys])
            return
        await self.server_post("keys", {"value": keys})

    type = press_keys

    # ------------------------------------------------------------------
    # Orientation and alerts
    # ------------------------------------------------------------------

    async def get_orientation(self) -> str:
        orientation = await self.server_get("orientation")
        return orientation.lower()

    async def set_orientation(self, orientation: str) -> None:
        await self.server_post("orientation", {"orientation": orientation.upper()})

    async def get_alert_text(self) -> str:
        return await self.server_get("alert_text")

    async def type_in_prompt(self, text: Union[str, List[str]]) -> None:
        if isinstance(text, list):
            text = "".join(text)
        await self.server_post("alert_text", {"text": text})

    async def accept_alert(self) -> None:
        await self.server_post("accept_alert")

    async def dismiss_alert(self) -> None:
        await self.server_post("dismiss_alert")

    # ------------------------------------------------------------------
    # Mouse
    # ------------------------------------------------------------------

    async def _simulate_mouse(self, **kwargs) -> Any:
        return await self.execute(
            scripts.SIMULATE_MOUSE, [dict(kwargs, position=self._last_mouse_position)]
        )

    @for_command(uses_element=True)
    async def move_mouse_to(
        self,
        element: Optional[Element] = None,
        x_offset: Optional[float] = None,
        y_offset: Optional[float] = None,
    ) -> None:
        """
        Move the mouse to an element (its centre unless offsets are given)
        or by an offset from the last position: ``move_mouse_to(10, 20)``.
        """
        if y_offset is None and x_offset is not None:
            element, x_offset, y_offset = None, element, x_offset

        capabilities = self._capabilities
        if capabilities.broken_mouse_events:
            self._last_mouse_position = await self._simulate_mouse(
                action="mousemove", element=element, xOffset=x_offset, yOffset=y_offset
            )
            return

        if element is None and not self._moved_to_element:
            # Relative moves before any element move fail or do nothing on
            # several drivers; anchor at the document origin instead
            if capabilities.broken_html_mouse_move:
                body = await self.execute(scripts.DOCUMENT_BODY)
                position = await body.get_position()
                await self.move_mouse_to(
                    body, (x_offset or 0) - position["x"], (y_offset or 0) - position["y"]
                )
            else:
                root = await self.execute(scripts.DOCUMENT_ELEMENT)
                await self.move_mouse_to(root, x_offset, y_offset)
            return

        await self.server_post(
            "moveto",
            _compact({"element": _element_id(element), "xoffset": x_offset, "yoffset": y_offset}),
        )
        self._moved_to_element = True

    async def click_mouse_button(self, button: Optional[int] = None) -> None:
        """Click at the current mouse position. 0 is primary, 1 middle, 2 secondary."""
        if self._capabilities.broken_mouse_events:
            await self._simulate_mouse(action="click", button=button)
            return

        await self.server_post("click", _compact({"button": button}))
        # ios-driver returns before the click's default action runs
        if self._capabilities.touch_enabled:
            await sleep(MOUSE_CLICK_SETTLE_MS)

    async def press_mouse_button(self, button: Optional[int] = None) -> None:
        if self._capabilities.broken_mouse_events:
            await self._simulate_mouse(action="mousedown", button=button)
            return
        await self.server_post("buttondown", _compact({"button": button}))

    async def release_mouse_button(self, button: Optional[int] = None) -> None:
        if self._capabilities.broken_mouse_events:
            await self._simulate_mouse(action="mouseup", button=button)
            return
        await self.server_post("buttonup", _compact({"button": button}))

    async def double_click(self) -> None:
        capabilities = self._capabilities
        if capabilities.broken_mouse_events:
            await self._simulate_mouse(action="dblclick", button=0)
            return

        if capabilities.broken_double_click:
            await self.press_mouse_button()
            await self.release_mouse_button()
            await self.server_post("doubleclick")
            return

        try:
            await self.server_post("doubleclick")
        except WebDriverError as error:
            if capabilities.broken_double_click is None:
                capabilities.heal("broken_double_click", True, error.name)
                await self.double_click()
                return
            raise

    # ------------------------------------------------------------------
    # Touch
    # ------------------------------------------------------------------

    @for_command(uses_element=True)
    async def tap(self, element: Element) -> None:
        await self.server_post("touch/click", {"element": _element_id(element)})

    async def press_finger(self, x: float, y: float) -> None:
        await self.server_post("touch/down", {"x": x, "y": y})

    async def release_finger(self, x: float, y: float) -> None:
        await self.server_post("touch/up", {"x": x, "y": y})

    async def move_finger(self, x: float, y: float) -> None:
        await self.server_post("touch/move", {"x": x, "y": y})

    @for_command(uses_element=True)
    async def touch_scroll(
        self,
        element: Optional[Element] = None,
        x_offset: Optional[float] = None,
        y_offset: Optional[float] = None,
    ) -> None:
        """Scroll so ``element`` (plus offsets) is at the top left, or scroll by an offset."""
        if y_offset is None and x_offset is not None:
            element, x_offset, y_offset = None, element, x_offset

        if self._capabilities.broken_touch_scroll:
            await self.execute(scripts.TOUCH_SCROLL, [element, x_offset, y_offset])
            return

        await self.server_post(
            "touch/scroll",
            _compact({"element": _element_id(element), "xoffset": x_offset, "yoffset": y_offset}),
        )

    @for_command(uses_element=True)
    async def double_tap(self, element: Optional[Element] = None) -> None:
        await self.server_post("touch/doubleclick", _compact({"element": _element_id(element)}))

    @for_command(uses_element=True)
    async def long_tap(self, element: Optional[Element] = None) -> None:
        await self.server_post("touch/longclick", _compact({"element": _element_id(element)}))

    @for_command(uses_element=True)
    async def flick_finger(self, element, x_offset=None, y_offset=None, speed=None) -> None:
        """
        Flick from ``element`` by an offset at ``speed`` px/s, or flick the
        page with ``flick_finger(xspeed, yspeed)``.
        """
        if speed is None and y_offset is None and x_offset is not None:
            await self.server_post("touch/flick", {"xspeed": element, "yspeed": x_offset})
            return

        await self.server_post(
            "touch/flick",
            _compact({
                "element": _element_id(element),
                "xoffset": x_offset,
                "yoffset": y_offset,
                "speed": speed,
            }),
        )

    # ------------------------------------------------------------------
    # Geolocation
    # ------------------------------------------------------------------

    async def get_geolocation(self) -> Dict[str, Any]:
        location = await self.server_get("location")
        # ChromeDriver ignores altitude and reports 0; report it as unsupported
        if isinstance(location, dict) and location.get("altitude") == 0 and self._last_altitude != 0:
            location["altitude"] = None
        return location

    async def set_geolocation(self, location: Dict[str, Any]) -> None:
        if location.get("altitude") is not None:
            self._last_altitude = location["altitude"]
        await self.server_post("location", {"location": location})

    # ------------------------------------------------------------------
    # Logs
    # ------------------------------------------------------------------

    async def get_logs_for(self, type: str) -> List[Dict[str, Any]]:
        """
        Log entries of ``type``; the remote end clears them once read.
        Timestamps are Unix seconds (NaN when a driver's string log has none).
        """
        logs = await self.server_post("log", {"type": type})
        if not logs or not isinstance(logs, list) or not isinstance(logs[0], str):
            return logs

        # Selendroid returns plain strings
        entries = []
        for log in logs:
            match = _STRING_LOG_ENTRY.match(log)
            if match:
                try:
                    timestamp = parse_date(match.group(1)).timestamp()
                except ValueError:
                    timestamp = math.nan
                entries.append({"timestamp": timestamp, "level": match.group(2), "message": match.group(3)})
            else:
                entries.append({"timestamp": math.nan, "level": "INFO", "message": log})
        return entries

    async def get_available_log_types(self) -> List[str]:
        fixed_log_types = self._capabilities.fixed_log_types
        if isinstance(fixed_log_types, list):
            return list(fixed_log_types)
        return await self.server_get("log/types")

    # ------------------------------------------------------------------
    # Application cache, storage and teardown
    # ------------------------------------------------------------------

    async def get_application_cache_status(self) -> int:
        """0 uncached, 1 idle, 2 checking, 3 downloading, 4 update ready, 5 obsolete."""
        return await self.server_get("application_cache/status")

    async def quit(self) -> None:
        """End the session. Queued after any pending request."""
        await self.server_delete("")
        logger.debug(f"Session {self._session_id} ended")

    async def get_local_storage_keys(self) -> List[str]:
        return await self.server_get("local_storage")

    async def set_local_storage_item(self, key: str, value: str) -> None:
        await self.server_post("local_storage", {"key": key, "value": value})

    async def clear_local_storage(self) -> None:
        await self.server_delete("local_storage")

    async def get_local_storage_item(self, key: str) -> Optional[str]:
        return await self.server_get("local_storage/key/$0", None, [key])

    async def delete_local_storage_item(self, key: str) -> None:
        await self.server_delete("local_storage/key/$0", None, [key])

    async def get_local_storage_length(self) -> int:
        return await self.server_get("local_storage/size")

    async def get_session_storage_keys(self) -> List[str]:
        return await self.server_get("session_storage")

    async def set_session_storage_item(self, key: str, value: str) -> None:
        await self.server_post("session_storage", {"key": key, "value": value})

    async def clear_session_storage(self) -> None:
        await self.server_delete("session_storage")

    async def get_session_storage_item(self, key: str) -> Optional[str]:
        return await self.server_get("session_storage/key/$0", None, [key])

    async def delete_session_storage_item(self, key: str) -> None:
        await self.server_delete("session_storage/key/$0", None, [key])

    async def get_session_storage_length(self) -> int:
        return await self.server_get("session_storage/size")


__all__ = ["Session", "TIMEOUT_TYPES"]
