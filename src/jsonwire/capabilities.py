"""
Session capabilities.

A remote end reports its capabilities when a session is created. Many of
those reports are wrong or incomplete, so the client corrects them from a
static per-browser table, optionally detects the rest by probing the live
browser, and keeps correcting them ("self-heal") when a command reveals a
flag was wrong. Every Element and Command of a session shares one
:class:`Capabilities` instance.

Phases:
    raw       -> as reported by the server
    corrected -> static per-browser corrections applied
    detected  -> live probes applied
    filled    -> final; detection never runs again
"""

import math
import re
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Iterator, List, Mapping, Optional, Union

import logging
logger = logging.getLogger(__name__)


RAW = "raw"
CORRECTED = "corrected"
DETECTED = "detected"
FILLED = "filled"

PHASES = (RAW, CORRECTED, DETECTED, FILLED)


def to_snake_case(name: str) -> str:
    """``brokenHtmlTagName`` -> ``broken_html_tag_name``."""
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


def to_camel_case(name: str) -> str:
    """``broken_html_tag_name`` -> ``brokenHtmlTagName``."""
    head, *rest = name.split("_")
    return head + "".join(word[:1].upper() + word[1:] for word in rest)


@dataclass
class Capabilities:
    """
    Capability record for one session.

    Known flags are fields (snake_case here, camelCase on the wire). A value
    of None means "unknown"; detection only probes unknown flags. Keys the
    client does not know about are kept verbatim in ``extra``.

    Attributes:
        phase: How far filling has progressed (see module docstring)
        extra: Server-reported keys with no dedicated field
    """

    # Identity
    browser_name: Optional[str] = None
    browser_version: Optional[str] = None
    version: Optional[str] = None
    platform: Optional[str] = None
    platform_name: Optional[str] = None
    platform_version: Optional[str] = None
    device_name: Optional[str] = None
    initial_browser_url: Optional[str] = None

    # Features
    application_cache_enabled: Optional[bool] = None
    dynamic_viewport: Optional[bool] = None
    handles_alerts: Optional[bool] = None
    has_touch_screen: Optional[bool] = None
    location_context_enabled: Optional[bool] = None
    mouse_enabled: Optional[bool] = None
    native_events: Optional[bool] = None
    no_element_displayed: Optional[bool] = None
    no_element_equals: Optional[bool] = None
    no_keys_command: Optional[bool] = None
    remote_files: Optional[bool] = None
    returns_from_click_immediately: Optional[bool] = None
    rotatable: Optional[bool] = None
    scripted_parent_frame_crashes_browser: Optional[bool] = None
    shortcut_key: Optional[str] = None
    supports_css_transforms: Optional[bool] = None
    supports_execute_async: Optional[bool] = None
    supports_get_timeouts: Optional[bool] = None
    supports_navigation_data_uris: Optional[bool] = None
    supports_session_commands: Optional[bool] = None
    takes_screenshot: Optional[bool] = None
    touch_enabled: Optional[bool] = None
    web_storage_enabled: Optional[bool] = None
    fixed_log_types: Optional[Union[bool, List[str]]] = None

    # Dialect
    uses_flat_keys_array: Optional[bool] = None
    uses_handle_parameter: Optional[bool] = None
    uses_web_driver_active_element: Optional[bool] = None
    uses_web_driver_element_attribute: Optional[bool] = None
    uses_web_driver_element_value: Optional[bool] = None
    uses_web_driver_execute_async: Optional[bool] = None
    uses_web_driver_execute_sync: Optional[bool] = None
    uses_web_driver_frame_id: Optional[bool] = None
    uses_web_driver_locators: Optional[bool] = None
    uses_web_driver_timeouts: Optional[bool] = None
    uses_web_driver_window_commands: Optional[bool] = None
    uses_web_driver_window_handle_commands: Optional[bool] = None

    # Defects
    broken_active_element: Optional[bool] = None
    broken_click: Optional[bool] = None
    broken_computed_styles: Optional[bool] = None
    broken_cookies: Optional[bool] = None
    broken_css_transformed_size: Optional[bool] = None
    broken_delete_cookie: Optional[bool] = None
    broken_delete_window: Optional[bool] = None
    broken_double_click: Optional[bool] = None
    broken_element_displayed_offscreen: Optional[bool] = None
    broken_element_displayed_opacity: Optional[bool] = None
    broken_element_enabled: Optional[bool] = None
    broken_element_position: Optional[bool] = None
    broken_element_property: Optional[bool] = None
    broken_element_serialization: Optional[bool] = None
    broken_empty_post: Optional[bool] = None
    broken_execute_element_return: Optional[bool] = None
    broken_execute_for_non_http_url: Optional[bool] = None
    broken_execute_undefined_return: Optional[bool] = None
    broken_file_send_keys: Optional[bool] = None
    broken_flick_finger: Optional[bool] = None
    broken_html_mouse_move: Optional[bool] = None
    broken_html_tag_name: Optional[bool] = None
    broken_link_text_locator: Optional[bool] = None
    broken_long_tap: Optional[bool] = None
    broken_mouse_events: Optional[bool] = None
    broken_move_finger: Optional[bool] = None
    broken_navigation: Optional[bool] = None
    broken_null_get_spec_attribute: Optional[bool] = None
    broken_option_select: Optional[bool] = None
    broken_page_source: Optional[bool] = None
    broken_parent_frame_switch: Optional[bool] = None
    broken_refresh: Optional[bool] = None
    broken_send_keys: Optional[bool] = None
    broken_session_list: Optional[bool] = None
    broken_submit_element: Optional[bool] = None
    broken_touch_scroll: Optional[bool] = None
    broken_visible_text: Optional[bool] = None
    broken_whitespace_normalization: Optional[bool] = None
    broken_window_close: Optional[bool] = None
    broken_window_maximize: Optional[bool] = None
    broken_window_position: Optional[bool] = None
    broken_window_size: Optional[bool] = None
    broken_window_switch: Optional[bool] = None
    broken_zero_timeout: Optional[bool] = None

    extra: Dict[str, Any] = field(default_factory=dict)
    phase: str = RAW

    # ------------------------------------------------------------------
    # Wire conversion
    # ------------------------------------------------------------------

    @classmethod
    def from_wire(cls, data: Optional[Mapping[str, Any]]) -> "Capabilities":
        """Build a record from a server capabilities object."""
        capabilities = cls()
        if data:
            capabilities.update(data)
        return capabilities

    def to_wire(self) -> Dict[str, Any]:
        """camelCase dict of every known (non-None) flag plus ``extra``."""
        wire = {
            to_camel_case(name): getattr(self, name)
            for name in _FIELD_NAMES
            if getattr(self, name) is not None
        }
        wire.update(self.extra)
        return wire

    # ------------------------------------------------------------------
    # Mapping-style access (accepts wire or Python names)
    # ------------------------------------------------------------------

    def _resolve(self, key: str) -> Optional[str]:
        if key in _FIELD_NAMES:
            return key
        snake = to_snake_case(key)
        if snake in _FIELD_NAMES:
            return snake
        return None

    def get(self, key: str, default: Any = None) -> Any:
        name = self._resolve(key)
        if name is not None:
            value = getattr(self, name)
        else:
            value = self.extra.get(key)
        return default if value is None else value

    def __getitem__(self, key: str) -> Any:
        return self.get(key)

    def __setitem__(self, key: str, value: Any) -> None:
        name = self._resolve(key)
        if name is not None:
            setattr(self, name, value)
        else:
            self.extra[key] = value

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.get(key) is not None

    def __iter__(self) -> Iterator[str]:
        return iter(self.to_wire())

    def keys(self) -> List[str]:
        return list(self.to_wire())

    def update(self, values: Mapping[str, Any]) -> None:
        for key, value in values.items():
            self[key] = value

    # ------------------------------------------------------------------
    # Phases and self-heal
    # ------------------------------------------------------------------

    @property
    def filled(self) -> bool:
        return self.phase == FILLED

    def advance(self, phase: str) -> None:
        """Move to a later phase; moving backwards is ignored."""
        if PHASES.index(phase) > PHASES.index(self.phase):
            logger.debug(f"Capabilities phase {self.phase} -> {phase}")
            self.phase = phase

    def heal(self, name: str, value: Any, reason: str = "") -> None:
        """
        Correct a flag after a command proved it wrong.

        The transition is logged so a misbehaving driver can be diagnosed
        from the logs alone.
        """
        previous = self.get(name)
        self[name] = value
        logger.info(
            f"Capability {name} healed: {previous!r} -> {value!r}"
            + (f" ({reason})" if reason else "")
        )


_FIELD_NAMES = frozenset(f.name for f in fields(Capabilities) if f.name not in ("extra", "phase"))


# ============================================================================
# Browser predicates
# ============================================================================

_LEADING_FLOAT = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def parse_version(value: Any) -> float:
    """Leading float of a version string; NaN when there is none ("11.0.1" -> 11.0)."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    if not value:
        return math.nan
    match = _LEADING_FLOAT.match(str(value))
    return float(match.group(1)) if match else math.nan


def is_valid_version(
    capabilities: Capabilities,
    min_or_exact_version: Optional[float] = None,
    max_version: Optional[float] = None,
) -> bool:
    """
    Range check on the browser version.

    With both bounds the range is [min, max). With only the first bound the
    version must match exactly. With no bounds every version matches. An
    unparseable version fails an exact check but passes a range check.
    """
    if min_or_exact_version is None:
        return True
    version = parse_version(capabilities.browser_version or capabilities.version)
    if max_version is not None:
        if version < min_or_exact_version:
            return False
        if version >= max_version:
            return False
        return True
    return version == min_or_exact_version


def _is_browser(name: str, capabilities: Capabilities, minimum=None, maximum=None) -> bool:
    if (capabilities.browser_name or "").lower() != name:
        return False
    return is_valid_version(capabilities, minimum, maximum)


def is_safari(capabilities: Capabilities, minimum=None, maximum=None) -> bool:
    return _is_browser("safari", capabilities, minimum, maximum)


def is_firefox(capabilities: Capabilities, minimum=None, maximum=None) -> bool:
    return _is_browser("firefox", capabilities, minimum, maximum)


def is_chrome(capabilities: Capabilities, minimum=None, maximum=None) -> bool:
    return _is_browser("chrome", capabilities, minimum, maximum)


def is_ms_edge(capabilities: Capabilities, minimum=None, maximum=None) -> bool:
    return _is_browser("microsoftedge", capabilities, minimum, maximum)


def is_internet_explorer(capabilities: Capabilities, minimum=None, maximum=None) -> bool:
    return _is_browser("internet explorer", capabilities, minimum, maximum)


def is_android(capabilities: Capabilities) -> bool:
    return (capabilities.browser_name or "").lower() == "android"


def is_android_emulator(capabilities: Capabilities) -> bool:
    return (capabilities.device_name or "").lower() == "android emulator"


def is_ios(capabilities: Capabilities) -> bool:
    return (capabilities.platform_name or capabilities.platform or "").lower() == "ios"


def is_mac(capabilities: Capabilities) -> bool:
    platform = capabilities.platform or capabilities.platform_name or ""
    return bool(re.search(r"mac(os)?|darwin", platform, re.IGNORECASE)) and platform.lower() != "ios"


__all__ = [
    "RAW",
    "CORRECTED",
    "DETECTED",
    "FILLED",
    "Capabilities",
    "to_snake_case",
    "to_camel_case",
    "parse_version",
    "is_valid_version",
    "is_safari",
    "is_firefox",
    "is_chrome",
    "is_ms_edge",
    "is_internet_explorer",
    "is_android",
    "is_android_emulator",
    "is_ios",
    "is_mac",
]
