"""
HTTP transport to a WebDriver / JsonWireProtocol server.

The Server sends raw requests, normalizes the many ways remote ends report
failures into :class:`jsonwire.errors.WebDriverError` subclasses, creates
sessions and fills in their capabilities (static corrections followed by
optional live probing).
"""

import asyncio
import base64
import json
import re
from typing import Any, Callable, Dict, List, Optional, Sequence, Union
from urllib.parse import quote, unquote, urljoin, urlsplit, urlunsplit

import httpx
from selenium.webdriver.common.keys import Keys

from . import scripts
from .capabilities import (
    CORRECTED,
    DETECTED,
    FILLED,
    Capabilities,
    is_android,
    is_android_emulator,
    is_chrome,
    is_firefox,
    is_internet_explorer,
    is_ios,
    is_mac,
    is_ms_edge,
    is_safari,
    is_valid_version,
    parse_version,
)
from .constants import (
    ACCEPT_HEADER,
    JSON_CONTENT_TYPE,
    MAX_REDIRECTS,
    PROBE_MOUSE_SETTLE_MS,
    PROBE_REFRESH_TIMEOUT_MS,
    REQUEST_TIMEOUT_SECS,
)
from .errors import WebDriverError, create_error
from .session import Session
from .status_codes import STATUS_CODES, lookup
from .util import sleep

import logging
logger = logging.getLogger(__name__)


_PATH_PART = re.compile(r"\$(\d)")

REMOTE_FILES_PROBE_ZIP = (
    "UEsDBAoAAAAAAD0etkYAAAAAAAAAAAAA"
    "AAAIABwAdGVzdC50eHRVVAkAA2WnXlVl"
    "p15VdXgLAAEE8gMAAATyAwAAUEsBAh4D"
    "CgAAAAAAPR62RgAAAAAAAAAAAAAAAAgA"
    "GAAAAAAAAAAAAKSBAAAAAHRlc3QudHh0"
    "VVQFAANlp15VdXgLAAEE8gMAAATyAwAA"
    "UEsFBgAAAAABAAEATgAAAEIAAAAAAA=="
)
"""A zip archive holding an empty ``test.txt``, used to probe file upload support."""

_SCALED_DIV_PAGE = (
    "<!DOCTYPE html><style>#a{width:8px;height:8px;-ms-transform:scale(0.5);"
    "-moz-transform:scale(0.5);-webkit-transform:scale(0.5);transform:scale(0.5);}"
    '</style><div id="a"></div>'
)

_SCROLL_TEST_PAGE = '<!DOCTYPE html><div id="a" style="margin: 3000px;"></div>'

_DOUBLE_CLICK_ATTEMPTS = 5


def _encode_uri_component(value: Any) -> str:
    return quote(str(value), safe="!*'()~")


def _json_default(value: Any) -> Any:
    to_json = getattr(value, "to_json", None)
    if callable(to_json):
        return to_json()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _dumps(data: Any) -> str:
    return json.dumps(data, default=_json_default, separators=(",", ":"))


def _has_error_status(status: Any) -> bool:
    if isinstance(status, str) and status.isdigit():
        status = int(status)
    return isinstance(status, (int, float)) and not isinstance(status, bool) and status > 0


def get_error_name(name: str, detail: Any) -> str:
    """
    Canonical name for an error whose numeric status told us little.

    W3C servers put the real error in ``value.error`` ("no such element");
    it is looked up in the status table and otherwise PascalCased.
    """
    if name not in ("Error", "UnknownError") or not isinstance(detail, dict):
        return name
    description = detail.get("error")
    if not description or not isinstance(description, str):
        return name
    if description in STATUS_CODES:
        return STATUS_CODES[description][0]
    if description == "javascript error":
        return "JavaScriptError"
    return "".join(word[:1].upper() + word[1:] for word in description.split(" "))


def normalize_error_payload(http_status: int, payload: Any, text: str) -> Dict[str, Any]:
    """
    Coerce a failed response into ``{"status": ..., "value": {...}}``.

    Remote ends report unsupported commands in many dialects; all of them
    end up as status 9 (UnknownCommand).
    """
    if not isinstance(payload, dict):
        data = {
            "status": 9 if http_status in (404, 501) else 13,
            "value": {"message": text},
        }
    elif not payload.get("value") and "message" in payload:
        # ios-driver puts the error at the top level
        data = {
            "status": 9
            if http_status in (404, 501) or "cannot find command" in str(payload["message"])
            else 13,
            "value": payload,
        }
    else:
        data = dict(payload)

    value = data.get("value")
    if not isinstance(value, dict):
        value = None
    message = value.get("message") if value else None
    message = message if isinstance(message, str) else None

    if http_status == 501 and data.get("status") == 13:
        data["status"] = 9

    if http_status == 500 and message == "Invalid Command":
        data["status"] = 9

    error_class = value.get("class") if value else None
    if (
        data.get("status") == 13
        and isinstance(error_class, str)
        and (
            "UnsupportedOperationException" in error_class
            or "UnsupportedCommandException" in error_class
        )
    ):
        data["status"] = 9

    if http_status == 500 and message and ("Command not found" in message or "Unknown command" in message):
        data["status"] = 9

    if http_status == 405 and message and "Invalid Command Method" in message:
        data["status"] = 9

    return data


class Server:
    """
    A remote WebDriver server.

    ``url`` may embed ``user:password@`` credentials; they are sent as HTTP
    basic auth and redacted from every error message. ``transport`` is passed
    to ``httpx.AsyncClient`` (tests use ``httpx.MockTransport``).
    """

    def __init__(
        self,
        url: str,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = REQUEST_TIMEOUT_SECS,
        fix_session_capabilities: Union[bool, str] = True,
        session_class: type = Session,
    ):
        parts = urlsplit(url)
        auth = None
        netloc = parts.netloc
        if "@" in netloc:
            userinfo, netloc = netloc.rsplit("@", 1)
            username, _, password = userinfo.partition(":")
            auth = httpx.BasicAuth(unquote(username), unquote(password))

        self.url = urlunsplit((parts.scheme, netloc, parts.path, parts.query, parts.fragment)).rstrip("/") + "/"
        self.fix_session_capabilities = fix_session_capabilities
        self.session_class = session_class
        self._has_credentials = auth is not None
        self._client = httpx.AsyncClient(
            transport=transport,
            timeout=timeout,
            auth=auth,
            follow_redirects=False,
        )

    @classmethod
    def from_env(cls, config: Optional[dict] = None, **kwargs) -> "Server":
        """Build a Server from :func:`jsonwire.config.get_env_config`."""
        from .config import get_env_config, server_url

        if config is None:
            config = get_env_config()
        kwargs.setdefault("timeout", config.get("timeout"))
        kwargs.setdefault("fix_session_capabilities", config.get("fix_session_capabilities", True))
        return cls(server_url(config), **kwargs)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "Server":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    def _sanitize(self, url: str) -> str:
        if not self._has_credentials:
            return url
        parts = urlsplit(url)
        return urlunsplit((parts.scheme, "(redacted)@" + parts.netloc, parts.path, parts.query, parts.fragment))

    # ------------------------------------------------------------------
    # Raw requests
    # ------------------------------------------------------------------

    async def _send_request(
        self,
        method: str,
        path: str,
        data: Any = None,
        path_parts: Optional[Sequence[Any]] = None,
    ) -> Any:
        """
        Send one command and return the decoded response payload.

        Raises the WebDriverError subclass matching the normalized status
        for any failure, including transport errors.
        """
        url = self.url + _PATH_PART.sub(
            lambda match: _encode_uri_component(path_parts[int(match.group(1))]), path
        )
        default_headers = {"Accept": ACCEPT_HEADER}
        headers = dict(default_headers)
        body = None
        if data is not None:
            body = _dumps(data).encode("utf-8")
            headers["Content-Type"] = JSON_CONTENT_TYPE
            headers["Content-Length"] = str(len(body))
        else:
            headers["Content-Length"] = "0"

        request_info = {"url": self._sanitize(url), "method": method, "data": data}
        prefix = f"[{method} {self._sanitize(url)}" + (f" / {_dumps(data)}" if data is not None else "") + "]"

        logger.debug(f"{method} {self._sanitize(url)}")
        try:
            response = await self._client.request(method, url, content=body, headers=headers)
            current_url = url
            redirects = 0
            while 300 <= response.status_code < 400 and response.headers.get("Location"):
                redirects += 1
                if redirects > MAX_REDIRECTS:
                    raise create_error(
                        "UnknownError",
                        f"{prefix} Too many redirects (more than {MAX_REDIRECTS})",
                        request=request_info,
                        response=response,
                    )
                location = response.headers["Location"]
                if not re.match(r"^\w+:", location):
                    location = urljoin(current_url, location)
                logger.debug(f"Following {response.status_code} redirect to {self._sanitize(location)}")
                current_url = location
                response = await self._client.get(location, headers=default_headers)
            text = response.text
        except httpx.HTTPError as error:
            raise create_error(
                "UnknownError",
                f"{prefix} {error}",
                request=request_info,
            ) from error

        payload = None
        content_type = response.headers.get("Content-Type")
        if content_type and content_type.startswith("application/json") and text:
            try:
                payload = json.loads(text)
            except ValueError as error:
                raise create_error(
                    "UnknownError",
                    f"{prefix} Invalid JSON in response: {error}",
                    request=request_info,
                    response=response,
                ) from error

        if response.status_code == 204:
            return {"status": 0, "sessionId": None, "value": None}

        if response.status_code >= 400 or (isinstance(payload, dict) and _has_error_status(payload.get("status"))):
            raise self._create_response_error(response, payload, text, prefix, request_info)

        return payload

    def _create_response_error(self, response, payload, text, prefix, request_info) -> WebDriverError:
        data = normalize_error_payload(response.status_code, payload, text)
        status = data.get("status")
        detail = data.get("value")

        name, message = "Error", ""
        known = lookup(status)
        if known:
            name, message = known

        screen = None
        if isinstance(detail, dict):
            if detail.get("message"):
                message = str(detail["message"])
            if detail.get("screen"):
                screen = base64.b64decode(detail["screen"])
                detail["screen"] = screen
            if status is None and isinstance(detail.get("error"), str):
                status = detail["error"]

        name = get_error_name(name, detail)
        return create_error(
            name,
            f"{prefix} {message}",
            status=status,
            detail=detail,
            request=request_info,
            response=response,
            screen=screen,
        )

    @staticmethod
    def _value(payload: Any) -> Any:
        return payload.get("value") if isinstance(payload, dict) else None

    async def get(self, path: str, data: Any = None, path_parts: Optional[Sequence[Any]] = None) -> Any:
        return self._value(await self._send_request("GET", path, data, path_parts))

    async def post(self, path: str, data: Any = None, path_parts: Optional[Sequence[Any]] = None) -> Any:
        return self._value(await self._send_request("POST", path, data, path_parts))

    async def delete(self, path: str, data: Any = None, path_parts: Optional[Sequence[Any]] = None) -> Any:
        return self._value(await self._send_request("DELETE", path, data, path_parts))

    # ------------------------------------------------------------------
    # Server commands
    # ------------------------------------------------------------------

    async def get_status(self) -> Any:
        return await self.get("status")

    async def get_sessions(self) -> List[Dict[str, Any]]:
        sessions = await self.get("sessions")
        if sessions and not isinstance(sessions, list):
            sessions = self._value(sessions)
        sessions = sessions or []
        for session in sessions:
            if session.get("sessionId") and not session.get("id"):
                session["id"] = session["sessionId"]
        return sessions

    async def get_session_capabilities(self, session_id: str) -> Dict[str, Any]:
        return await self.get("session/$0", None, [session_id])

    async def delete_session(self, session_id: str) -> None:
        await self.delete("session/$0", None, [session_id])

    async def create_session(
        self,
        desired_capabilities: Dict[str, Any],
        required_capabilities: Optional[Dict[str, Any]] = None,
    ) -> Session:
        """
        Start a new remote session.

        ``fixSessionCapabilities`` in the desired capabilities overrides the
        server default: True (correct and probe), False (trust the server)
        or "no-detect" (correct without probing). It is never sent.
        """
        desired = dict(desired_capabilities)
        fix = self.fix_session_capabilities
        override = desired.pop("fixSessionCapabilities", None)
        if override is not None:
            fix = override

        body = {"desiredCapabilities": desired}
        if required_capabilities is not None:
            body["requiredCapabilities"] = required_capabilities
        response = await self._send_request("POST", "session", body)

        value = self._value(response) or {}
        if value.get("sessionId") and value.get("capabilities"):
            reported = value["capabilities"]
            session_id = value["sessionId"]
        elif value.get("value") and value.get("sessionId"):
            reported = value["value"]
            session_id = value["sessionId"]
        else:
            reported = value
            session_id = response.get("sessionId")

        session = self.session_class(session_id, self, Capabilities.from_wire(reported))
        logger.debug(f"Created session {session_id}")

        for key, item in desired.items():
            if key not in session.capabilities:
                session.capabilities[key] = item

        if fix:
            try:
                await self._fill_capabilities(session, fix != "no-detect")
            except Exception:
                try:
                    await session.quit()
                except Exception as quit_error:
                    logger.debug(f"Could not quit session {session_id} after failed setup: {quit_error}")
                raise

        return session

    # ------------------------------------------------------------------
    # Capabilities
    # ------------------------------------------------------------------

    async def _fill_capabilities(self, session: Session, detect: bool = True) -> Session:
        capabilities = session.capabilities
        if capabilities.filled:
            return session
        capabilities.update(self._get_known_capabilities(session))
        capabilities.advance(CORRECTED)
        if detect:
            await self._detect_capabilities(session)
            capabilities.advance(DETECTED)
        capabilities.advance(FILLED)
        return session

    def _get_known_capabilities(self, session: Session) -> Dict[str, Any]:
        """
        Static corrections for browsers whose reported capabilities are known
        to be wrong. Returns the updates; identity fields (platform name,
        browser version) are normalized in place.
        """
        capabilities = session.capabilities
        updates: Dict[str, Any] = {}

        if is_safari(capabilities) and not capabilities.browser_version:
            version = parse_version(capabilities.version)
            if 12000 < version < 13000:
                capabilities.browser_version = "10"
            elif version > 13000:
                capabilities.browser_version = "11"

        if capabilities.platform and not capabilities.platform_name:
            capabilities.platform_name = capabilities.platform
        if capabilities.version and not capabilities.browser_version:
            capabilities.browser_version = capabilities.version

        if is_safari(capabilities):
            if is_mac(capabilities):
                if is_valid_version(capabilities, 0, 11):
                    updates.update(
                        native_events=False,
                        rotatable=False,
                        location_context_enabled=False,
                        web_storage_enabled=False,
                        application_cache_enabled=False,
                        supports_navigation_data_uris=True,
                        supports_css_transforms=True,
                        supports_execute_async=True,
                        mouse_enabled=True,
                        touch_enabled=False,
                        dynamic_viewport=True,
                        shortcut_key=Keys.COMMAND,
                        returns_from_click_immediately=False,
                        broken_delete_cookie=False,
                        broken_execute_element_return=False,
                        broken_execute_undefined_return=False,
                        broken_element_displayed_opacity=False,
                        broken_element_displayed_offscreen=False,
                        broken_submit_element=True,
                        broken_window_switch=True,
                        broken_double_click=False,
                        broken_css_transformed_size=True,
                        fixed_log_types=False,
                        broken_html_tag_name=False,
                        broken_null_get_spec_attribute=False,
                    )

                if is_valid_version(capabilities, 0, 10):
                    updates.update(
                        remote_files=False,
                        broken_active_element=True,
                        broken_execute_for_non_http_url=True,
                        broken_mouse_events=True,
                        broken_navigation=True,
                        broken_option_select=False,
                        broken_send_keys=True,
                        broken_window_position=True,
                        broken_window_size=True,
                        broken_cookies=True,
                    )

                if is_valid_version(capabilities, 10, 12):
                    updates.update(
                        broken_link_text_locator=True,
                        broken_option_select=True,
                        broken_whitespace_normalization=True,
                        broken_mouse_events=True,
                        broken_window_close=True,
                        uses_web_driver_active_element=True,
                    )

                if is_valid_version(capabilities, 12, 13):
                    updates.update(
                        uses_web_driver_element_attribute=True,
                        broken_delete_window=True,
                    )

            if is_ios(capabilities):
                updates["broken_window_switch"] = True

            return updates

        if is_firefox(capabilities):
            if is_valid_version(capabilities, 49, float("inf")):
                updates.update(
                    no_keys_command=True,
                    uses_web_driver_locators=True,
                    uses_flat_keys_array=True,
                    broken_empty_post=True,
                    broken_mouse_events=True,
                    fixed_log_types=[],
                )

            if is_valid_version(capabilities, 49, 53):
                updates["broken_window_switch"] = True

            if (
                capabilities.mouse_enabled is None
                and is_valid_version(capabilities, 49, float("inf"))
                and is_mac(capabilities)
            ):
                updates["mouse_enabled"] = True

        if is_ms_edge(capabilities):
            updates["returns_from_click_immediately"] = True

            if is_valid_version(capabilities, 0, 44.17763):
                updates["broken_click"] = True

            updates["remote_files"] = False

            if is_valid_version(capabilities, 25.10586):
                updates["broken_window_close"] = True

            if is_valid_version(capabilities, 38.14366):
                updates["broken_file_send_keys"] = True

            if is_valid_version(capabilities, 37.14316) and "handlesAlerts" not in capabilities:
                updates["handles_alerts"] = True

            if is_valid_version(capabilities, 44.17763):
                if capabilities.uses_web_driver_execute_sync is None:
                    updates["uses_web_driver_execute_sync"] = True
                if capabilities.uses_web_driver_execute_async is None:
                    updates["uses_web_driver_execute_async"] = True

            if is_valid_version(capabilities, 0, 43):
                updates["broken_delete_cookie"] = True

        if is_internet_explorer(capabilities):
            if is_valid_version(capabilities, 11):
                updates["takes_screenshot"] = True
                updates["broken_submit_element"] = True

            if is_valid_version(capabilities, 11, float("inf")):
                updates["broken_option_select"] = False

            if is_valid_version(capabilities, 9):
                updates["supports_css_transforms"] = True

            updates["scripted_parent_frame_crashes_browser"] = is_valid_version(capabilities, 0, 9)

        if capabilities.has_touch_screen is False or is_chrome(capabilities):
            updates["touch_enabled"] = False

        if is_ios(capabilities):
            updates["shortcut_key"] = None
        elif is_mac(capabilities):
            updates["shortcut_key"] = Keys.COMMAND
        else:
            updates["shortcut_key"] = Keys.CONTROL

        if is_android(capabilities) and is_android_emulator(capabilities):
            updates["broken_parent_frame_switch"] = True

        return updates

    async def _detect_capabilities(self, session: Session) -> Session:
        """
        Probe the live browser for every capability that is still unknown.

        Three groups run strictly one after another: server features,
        browser features and browser defects. Within a group each probe also
        runs on its own, since many of them navigate the same window.
        """
        capabilities = session.capabilities
        if capabilities.filled:
            return session

        def maybe_supported(error: Exception) -> bool:
            if getattr(error, "name", None) == "UnknownCommand":
                return False
            message = str(error)
            if re.search(r"\bunimplemented command\b", message):
                return False
            if re.search(r"The command .* not found", message):
                return False
            return True

        async def add_capabilities(tested: Dict[str, Callable]) -> None:
            for name, probe in tested.items():
                value = await probe()
                logger.debug(f"Detected {name}={value!r}")
                capabilities[name] = value

        async def get(page: str) -> None:
            if capabilities.supports_navigation_data_uris is not False:
                await session.get("data:text/html;charset=utf-8," + _encode_uri_component(page))
                return

            if is_internet_explorer(capabilities, 0, 10) or is_ms_edge(capabilities):
                initial_url = "about:blank"
                ie_options = capabilities.get("se:ieOptions")
                if is_internet_explorer(capabilities) and ie_options:
                    initial_url = ie_options.get("initialBrowserUrl") or initial_url
                elif capabilities.initial_browser_url:
                    initial_url = capabilities.initial_browser_url
                await session.get(initial_url)
                await session.execute(scripts.PROBE_INNER_HTML, [page.replace("<!DOCTYPE html>", "x")])
                return

            await session.get("about:blank")
            await session.execute(scripts.PROBE_DOCUMENT_WRITE, [page])

        def succeeds(make_call: Callable, on_error: Callable = lambda error: False) -> Callable:
            """Probe that is True when the call succeeds; on failure ``on_error`` decides."""
            async def probe():
                try:
                    await make_call()
                except Exception as error:
                    return on_error(error)
                return True
            return probe

        def fails(make_call: Callable) -> Callable:
            """Probe that is True (broken) when the call raises."""
            async def probe():
                try:
                    await make_call()
                except Exception:
                    return True
                return False
            return probe

        def checks(check: Callable) -> Callable:
            """Probe returning ``check()``'s result, or True (broken) when it raises."""
            async def probe():
                try:
                    return await check()
                except Exception:
                    return True
            return probe

        # --------------------------------------------------------------
        # Server features
        # --------------------------------------------------------------

        def discover_server_features() -> Dict[str, Callable]:
            tested: Dict[str, Callable] = {}

            if capabilities.remote_files is None:
                async def remote_files():
                    try:
                        filename = await session.server_post("file", {"file": REMOTE_FILES_PROBE_ZIP})
                    except Exception:
                        return False
                    return bool(filename) and "test.txt" in filename
                tested["remote_files"] = remote_files

            if capabilities.supports_session_commands is None:
                tested["supports_session_commands"] = succeeds(
                    lambda: self.get("session/$0", None, [session.session_id])
                )

            if capabilities.supports_get_timeouts is None:
                tested["supports_get_timeouts"] = succeeds(lambda: session.server_get("timeouts"))

            if capabilities.uses_web_driver_timeouts is None:
                async def uses_web_driver_timeouts():
                    try:
                        await session.server_post("timeouts", {"implicit": 1234})
                        timeouts = await session.server_get("timeouts")
                    except Exception:
                        return False
                    return isinstance(timeouts, dict) and timeouts.get("implicit") == 1234
                tested["uses_web_driver_timeouts"] = uses_web_driver_timeouts

            if capabilities.uses_web_driver_window_commands is None:
                tested["uses_web_driver_window_commands"] = succeeds(lambda: session.server_get("window/rect"))

            if capabilities.uses_handle_parameter is None:
                async def uses_handle_parameter():
                    try:
                        await session.switch_to_window("current")
                    except Exception as error:
                        return getattr(error, "name", None) == "InvalidArgument" or bool(
                            re.search(r"missing .*handle", str(error), re.IGNORECASE)
                        )
                    return False
                tested["uses_handle_parameter"] = uses_handle_parameter

            if capabilities.broken_session_list is None:
                tested["broken_session_list"] = fails(self.get_sessions)

            if capabilities.uses_web_driver_frame_id is None:
                async def uses_web_driver_frame_id():
                    await get('<!DOCTYPE html><html><body><iframe id="inlineFrame"></iframe></body></html>')
                    try:
                        await session.server_post("frame", {"id": "inlineFrame"})
                    except Exception as error:
                        return getattr(error, "name", None) == "NoSuchFrame" or bool(
                            re.search(r"any variant of untagged", str(error))
                        )
                    return False
                tested["uses_web_driver_frame_id"] = uses_web_driver_frame_id

            if capabilities.returns_from_click_immediately is None:
                async def click_toggles_checkbox():
                    await get('<!DOCTYPE html><input type="checkbox" id="c">')
                    element = await session.find_by_id("c")
                    for expected in (True, False, True):
                        await element.click()
                        if await element.is_selected() is not expected:
                            raise AssertionError("unexpected selection state")
                tested["returns_from_click_immediately"] = fails(click_toggles_checkbox)

            if capabilities.no_keys_command is None:
                tested["no_keys_command"] = fails(lambda: session.server_post("keys", {"value": ["a"]}))

            if capabilities.no_element_displayed is None:
                async def html_is_displayed():
                    element = await session.find_by_css_selector("html")
                    await element.is_displayed()
                tested["no_element_displayed"] = fails(html_is_displayed)

            return tested

        # --------------------------------------------------------------
        # Browser features
        # --------------------------------------------------------------

        def discover_features() -> Dict[str, Callable]:
            tested: Dict[str, Callable] = {}

            if is_safari(capabilities, 0, 10) and is_mac(capabilities):
                return tested

            if capabilities.rotatable is None:
                tested["rotatable"] = succeeds(session.get_orientation)

            if capabilities.location_context_enabled:
                async def location_context_enabled():
                    try:
                        await session.get_geolocation()
                    except Exception as error:
                        if "not mapped : GET_LOCATION" in str(error):
                            return False
                        if "Location must be set" in str(error):
                            try:
                                await session.set_geolocation(
                                    {"latitude": 12.1, "longitude": -22.33, "altitude": 1000.2}
                                )
                                await session.get_geolocation()
                            except Exception:
                                return False
                            return True
                        return False
                    return True
                tested["location_context_enabled"] = location_context_enabled

            if capabilities.web_storage_enabled:
                tested["web_storage_enabled"] = succeeds(session.get_local_storage_length, maybe_supported)

            if capabilities.application_cache_enabled:
                tested["application_cache_enabled"] = succeeds(
                    session.get_application_cache_status, maybe_supported
                )

            if capabilities.takes_screenshot is None:
                tested["takes_screenshot"] = succeeds(session.take_screenshot)

            if capabilities.supports_execute_async is None:
                async def supports_execute_async():
                    try:
                        return await session.execute_async(scripts.PROBE_ASYNC_CALLBACK)
                    except Exception:
                        return False
                tested["supports_execute_async"] = supports_execute_async

            if capabilities.mouse_enabled is None and not (
                is_firefox(capabilities, 49, float("inf")) and is_mac(capabilities)
            ):
                async def mouse_enabled():
                    try:
                        await get('<!DOCTYPE html><button id="clicker">Click me</button>')
                        button = await session.find_by_id("clicker")
                    except Exception:
                        return False
                    return await succeeds(button.click, maybe_supported)()
                tested["mouse_enabled"] = mouse_enabled

            if capabilities.touch_enabled is None:
                async def touch_enabled():
                    try:
                        await get('<!DOCTYPE html><button id="clicker">Click me</button>')
                        button = await session.find_by_id("clicker")
                    except Exception:
                        return False
                    return await succeeds(lambda: session.double_tap(button), maybe_supported)()
                tested["touch_enabled"] = touch_enabled

            if capabilities.dynamic_viewport is None:
                async def shrink_window():
                    size = await session.get_window_size()
                    await session.set_window_size(size["width"] - 2, size["height"] - 2)
                tested["dynamic_viewport"] = succeeds(shrink_window)

            if capabilities.supports_navigation_data_uris is None:
                async def supports_navigation_data_uris():
                    try:
                        await get("<!DOCTYPE html><title>a</title>")
                        return await session.get_page_title() == "a"
                    except Exception:
                        return False
                tested["supports_navigation_data_uris"] = supports_navigation_data_uris

            if capabilities.supports_css_transforms is None:
                async def supports_css_transforms():
                    try:
                        await get(_SCALED_DIV_PAGE)
                        return await session.execute(scripts.PROBE_CSS_TRANSFORM)
                    except Exception:
                        return False
                tested["supports_css_transforms"] = supports_css_transforms

            return tested

        # --------------------------------------------------------------
        # Browser defects
        # --------------------------------------------------------------

        def discover_defects() -> Dict[str, Callable]:
            tested: Dict[str, Callable] = {}

            if is_safari(capabilities, 0, 10) and is_mac(capabilities):
                return tested

            if capabilities.broken_active_element is None:
                async def broken_active_element():
                    try:
                        await session.get_active_element()
                    except Exception as error:
                        return getattr(error, "name", None) == "UnknownCommand"
                    return False
                tested["broken_active_element"] = broken_active_element

            if capabilities.broken_delete_cookie is None:
                if capabilities.browser_name == "selendroid":
                    async def broken_delete_cookie():
                        try:
                            await session.get("about:blank")
                            await session.clear_cookies()
                            await session.set_cookie({"name": "foo", "value": "foo"})
                            await session.delete_cookie("foo")
                            is_broken = len(await session.get_cookies()) > 0
                        except Exception:
                            is_broken = True
                        try:
                            await session.clear_cookies()
                        except Exception as error:
                            logger.debug(f"Cookie cleanup after probe failed: {error}")
                        return is_broken
                    tested["broken_delete_cookie"] = broken_delete_cookie
                else:
                    async def clear_blank_cookies():
                        await session.get("about:blank")
                        await session.clear_cookies()
                    tested["broken_delete_cookie"] = fails(clear_blank_cookies)

            if capabilities.broken_html_tag_name is None:
                async def broken_html_tag_name():
                    element = await session.find_by_tag_name("html")
                    return await element.get_tag_name() != "html"
                tested["broken_html_tag_name"] = checks(broken_html_tag_name)

            if capabilities.broken_null_get_spec_attribute is None:
                async def broken_null_get_spec_attribute():
                    element = await session.find_by_tag_name("html")
                    return await element.get_spec_attribute("nonexisting") is not None
                tested["broken_null_get_spec_attribute"] = checks(broken_null_get_spec_attribute)

            if capabilities.broken_element_serialization is None:
                async def broken_element_serialization():
                    await get('<!DOCTYPE html><div id="a"></div>')
                    element = await session.find_by_id("a")
                    return await session.execute(scripts.PROBE_ELEMENT_ID_ATTRIBUTE, [element]) != "a"
                tested["broken_element_serialization"] = checks(broken_element_serialization)

            if capabilities.broken_execute_undefined_return is None:
                async def broken_execute_undefined_return():
                    return await session.execute("return undefined;") is not None
                tested["broken_execute_undefined_return"] = checks(broken_execute_undefined_return)

            if capabilities.broken_execute_element_return is None:
                async def execute_element_return():
                    await get('<!DOCTYPE html><div id="a"></div>')
                    element = await session.execute(scripts.PROBE_GET_ELEMENT_A)
                    if element:
                        await element.get_tag_name()
                tested["broken_execute_element_return"] = fails(execute_element_return)

            if capabilities.broken_element_displayed_opacity is None:
                async def broken_element_displayed_opacity():
                    await get('<!DOCTYPE html><div id="a" style="opacity: .1;">a</div>')
                    if not await session.execute(scripts.PROBE_OPACITY_SUPPORTED):
                        return False
                    await session.execute(scripts.PROBE_SET_OPACITY_ZERO)
                    element = await session.find_by_id("a")
                    return await element.is_displayed()
                tested["broken_element_displayed_opacity"] = checks(broken_element_displayed_opacity)

            if capabilities.broken_element_displayed_offscreen is None:
                async def broken_element_displayed_offscreen():
                    await get(
                        '<!DOCTYPE html><div id="a" style="left: 0; position: absolute; top: -1000px;">a</div>'
                    )
                    element = await session.find_by_id("a")
                    return await element.is_displayed()
                tested["broken_element_displayed_offscreen"] = checks(broken_element_displayed_offscreen)

            if capabilities.broken_visible_text is None:
                async def visible_text():
                    await get(
                        '<!DOCTYPE html><div id="d">This is<span style="display:none"> really</span> great</div>'
                    )
                    element = await session.find_by_id("d")
                    if await element.get_visible_text() != "This is great":
                        raise AssertionError("Incorrect text")
                tested["broken_visible_text"] = fails(visible_text)

            if capabilities.broken_whitespace_normalization is None:
                async def whitespace_normalization():
                    await get('<!DOCTYPE html><div id="d">This is\n<br>a test\n</div>')
                    element = await session.find_by_id("d")
                    text = await element.get_visible_text()
                    if re.search(r"\r\n", text) or re.search(r"\s+$", text):
                        raise AssertionError("invalid whitespace")
                tested["broken_whitespace_normalization"] = fails(whitespace_normalization)

            if capabilities.broken_link_text_locator is None:
                async def link_text_locator():
                    await get(
                        '<!DOCTYPE html><a id="d">What a cute<span style="display:none">, '
                        'yellow</span> backpack</a><a id="e">What a cute, yellow backpack</a>'
                    )
                    element = await session.find_by_link_text("What a cute, yellow backpack")
                    if await element.get_attribute("id") != "e":
                        raise AssertionError("incorrect link was found")
                tested["broken_link_text_locator"] = fails(link_text_locator)

            if capabilities.broken_computed_styles is None:
                async def computed_styles():
                    await get('<!DOCTYPE html><style>a { background: purple }</style><a id="a1">foo</a>')
                    element = await session.find_by_id("a1")
                    if not await element.get_computed_style("background-color"):
                        raise AssertionError("empty style")
                tested["broken_computed_styles"] = fails(computed_styles)

            if capabilities.broken_option_select is None:
                async def option_select():
                    await get(
                        '<!DOCTYPE html><select id="d"><option id="o1" value="foo">foo</option>'
                        '<option id="o2" value="bar" selected>bar</option></select>'
                    )
                    await (await session.find_by_id("d")).click()
                    await (await session.find_by_id("o1")).click()
                tested["broken_option_select"] = fails(option_select)

            if capabilities.broken_page_source is None:
                tested["broken_page_source"] = fails(session.get_page_source)

            if capabilities.broken_submit_element is None:
                async def broken_submit_element():
                    await get(
                        '<!DOCTYPE html><form method="get" action="about:blank">'
                        '<input id="a" type="submit" name="a" value="a"></form>'
                    )
                    element = await session.find_by_id("a")
                    await element.submit()
                    return "a=a" not in await session.get_current_url()
                tested["broken_submit_element"] = checks(broken_submit_element)

            if capabilities.broken_window_size is None:
                tested["broken_window_size"] = fails(session.get_window_size)

            if capabilities.broken_window_maximize is None:
                async def broken_window_maximize():
                    original = await session.get_window_size()
                    await session.set_window_size(original["width"] - 10, original["height"] - 10)
                    await session.maximize_window()
                    size = await session.get_window_size()
                    return size["width"] > original["width"] and size["height"] > original["height"]
                tested["broken_window_maximize"] = checks(broken_window_maximize)

            if capabilities.fixed_log_types is None:
                async def fixed_log_types():
                    try:
                        await session.get_available_log_types()
                    except WebDriverError as error:
                        response = error.response
                        if capabilities.browser_name == "selendroid" and response is not None and not response.text:
                            return ["logcat"]
                        return []
                    except Exception:
                        return []
                    return False
                tested["fixed_log_types"] = fixed_log_types

            if capabilities.broken_zero_timeout is None:
                tested["broken_zero_timeout"] = fails(lambda: session.set_timeout("implicit", 0))

            if capabilities.broken_window_switch is None:
                async def switch_to_current_window():
                    handle = await session.get_current_window_handle()
                    await session.switch_to_window(handle)
                tested["broken_window_switch"] = fails(switch_to_current_window)

            if capabilities.broken_parent_frame_switch is None:
                tested["broken_parent_frame_switch"] = fails(session.switch_to_parent_frame)

            if capabilities.broken_element_position is None:
                async def broken_element_position():
                    await get(_SCROLL_TEST_PAGE)
                    element = await session.find_by_id("a")
                    position = await element.get_position()
                    return position["x"] != 3000 or position["y"] != 3000
                tested["broken_element_position"] = checks(broken_element_position)

            if capabilities.broken_refresh is None:
                async def broken_refresh():
                    await session.get("about:blank?1")
                    try:
                        await asyncio.wait_for(session.refresh(), PROBE_REFRESH_TIMEOUT_MS / 1000)
                    except (asyncio.TimeoutError, WebDriverError):
                        return True
                    return False
                tested["broken_refresh"] = checks(broken_refresh)

            if capabilities.broken_mouse_events is None and capabilities.mouse_enabled:
                async def broken_mouse_events():
                    await get(
                        '<!DOCTYPE html><div id="foo">foo</div>'
                        "<script>window.counter = 0; var d = document; "
                        "d.onmousemove = function () { window.counter++; };</script>"
                    )
                    element = await session.find_by_id("foo")
                    await session.move_mouse_to(element, 20, 20)
                    await sleep(PROBE_MOUSE_SETTLE_MS)
                    return not (await session.execute(scripts.PROBE_COUNTER) or 0) > 0
                tested["broken_mouse_events"] = checks(broken_mouse_events)

                if capabilities.broken_html_mouse_move is None:
                    async def html_mouse_move():
                        await get("<!DOCTYPE html><html></html>")
                        element = await session.find_by_tag_name("html")
                        await session.move_mouse_to(element, 0, 0)
                    tested["broken_html_mouse_move"] = fails(html_mouse_move)

            if capabilities.broken_double_click is None:
                async def broken_double_click():
                    if capabilities.browser_name == "internet explorer" and capabilities.browser_version == "9":
                        return False
                    for _ in range(_DOUBLE_CLICK_ATTEMPTS):
                        await get(
                            '<!DOCTYPE html><html><body><button id="clicker">Clicker</button><script>'
                            "window.counter = 0; var d = document; d.onclick = "
                            "d.onmousedown = d.onmouseup = function () { window.counter++; };"
                            "</script></body></html>"
                        )
                        element = await session.find_by_id("clicker")
                        await session.move_mouse_to(element)
                        await sleep(PROBE_MOUSE_SETTLE_MS)
                        await session.double_click()
                        counter = await session.execute(scripts.PROBE_COUNTER)
                        # A zero count is a race in the browser, not an answer
                        if counter != 0:
                            return counter != 6
                    return True
                tested["broken_double_click"] = checks(broken_double_click)

            if capabilities.touch_enabled:
                if capabilities.broken_long_tap is None:
                    async def long_tap():
                        element = await session.find_by_tag_name("body")
                        await session.long_tap(element)
                    tested["broken_long_tap"] = fails(long_tap)

                    if capabilities.broken_move_finger is None:
                        async def broken_move_finger():
                            try:
                                await session.press_finger(0, 0)
                            except Exception as error:
                                return (
                                    getattr(error, "name", None) == "UnknownCommand"
                                    or "need to specify the JS" in str(error)
                                )
                            return False
                        tested["broken_move_finger"] = broken_move_finger

                    if capabilities.broken_touch_scroll is None:
                        async def broken_touch_scroll():
                            await get(_SCROLL_TEST_PAGE)
                            await session.touch_scroll(0, 20)
                            if await session.execute("return window.scrollY !== 20;"):
                                return True
                            element = await session.find_by_id("a")
                            await session.touch_scroll(element, 0, 0)
                            return await session.execute("return window.scrollY !== 3000;")
                        tested["broken_touch_scroll"] = checks(broken_touch_scroll)

                if capabilities.broken_flick_finger is None:
                    async def broken_flick_finger():
                        await get(_SCROLL_TEST_PAGE)
                        await session.flick_finger(0, 400)
                        return await session.execute("return window.scrollY === 0;")
                    tested["broken_flick_finger"] = checks(broken_flick_finger)

            if capabilities.supports_css_transforms and capabilities.broken_css_transformed_size is None:
                async def broken_css_transformed_size():
                    await get(_SCALED_DIV_PAGE)
                    element = await session.execute(scripts.PROBE_GET_ELEMENT_A)
                    size = await element.get_size()
                    return size["width"] != 4 or size["height"] != 4
                tested["broken_css_transformed_size"] = checks(broken_css_transformed_size)

            if not is_ms_edge(capabilities) and capabilities.broken_element_enabled is None:
                async def broken_element_enabled():
                    await get('<!DOCTYPE html><input id="dis" type="text" disabled>')
                    element = await session.execute(scripts.PROBE_GET_ELEMENT_DIS)
                    return await element.is_enabled()
                tested["broken_element_enabled"] = checks(broken_element_enabled)

            return tested

        if not is_firefox(capabilities, 49, float("inf")):
            await session.get("about:blank")

        await add_capabilities(discover_server_features())
        await add_capabilities(discover_features())
        await session.get("about:blank")
        await add_capabilities(discover_defects())
        await session.get("about:blank")
        return session


__all__ = [
    "Server",
    "get_error_name",
    "normalize_error_payload",
    "REMOTE_FILES_PROBE_ZIP",
]
