"""
A DOM element in a remote session.

Elements are plain references: the remote end owns the node and every
method is a request through the owning session's queue.
"""

import base64
import io
import os
import re
import zipfile
from typing import Any, Dict, List, Optional, Union
from urllib.parse import quote

from . import scripts
from .constants import CLICK_SETTLE_MS, JWP_ELEMENT_KEY, W3C_ELEMENT_KEY
from .errors import WebDriverError, error_for_status, rename_error
from .lib.find_displayed import find_displayed
from .lib.wait_for_deleted import wait_for_deleted
from .locator import Locator, check_strategy, to_w3c_locator
from .util import normalize_whitespace, sleep

import logging
logger = logging.getLogger(__name__)


_RGB_COLOR = re.compile(r"(.*\b)rgb\((\d+,\s*\d+,\s*\d+)\)(.*)")


class Element(Locator):
    """
    Reference to a remote element.

    Accepts an element ID, a JsonWireProtocol or W3C reference dict
    (``{"ELEMENT": id}`` / ``{"element-6066-...": id}``), or another Element.
    """

    def __init__(self, element_id: Union[str, Dict[str, Any], "Element"], session):
        if isinstance(element_id, Element):
            element_id = element_id.element_id
        elif isinstance(element_id, dict):
            element_id = (
                element_id.get(JWP_ELEMENT_KEY)
                or element_id.get("elementId")
                or element_id.get(W3C_ELEMENT_KEY)
            )
        if not element_id:
            raise ValueError("An element reference needs an element ID")
        self._element_id = element_id
        self._session = session

    def __repr__(self) -> str:
        return f"Element({self._element_id!r})"

    @property
    def element_id(self) -> str:
        return self._element_id

    @property
    def session(self):
        return self._session

    def to_json(self) -> Dict[str, str]:
        """Both JsonWireProtocol and W3C reference keys, so either dialect accepts it."""
        return {JWP_ELEMENT_KEY: self._element_id, W3C_ELEMENT_KEY: self._element_id}

    def _path(self, path: str) -> str:
        return f"element/{quote(str(self._element_id), safe='')}/{path}"

    def _get(self, path: str, data: Any = None, path_parts: Optional[List[Any]] = None):
        return self._session.server_get(self._path(path), data, path_parts)

    def _post(self, path: str, data: Any = None, path_parts: Optional[List[Any]] = None):
        return self._session.server_post(self._path(path), data, path_parts)

    # ------------------------------------------------------------------
    # Finding descendants
    # ------------------------------------------------------------------

    def _locator(self, using: str, value: str) -> Dict[str, str]:
        check_strategy(using)
        if self._session.capabilities.uses_web_driver_locators:
            return to_w3c_locator(using, value)
        return {"using": using, "value": value}

    def _manual_link_text(self, using: str) -> bool:
        capabilities = self._session.capabilities
        return "link text" in using and bool(
            capabilities.broken_whitespace_normalization or capabilities.broken_link_text_locator
        )

    async def find(self, using: str, value: str) -> "Element":
        """First descendant matching the locator."""
        session = self._session
        locator = self._locator(using, value)

        if self._manual_link_text(locator["using"]):
            element = await session.execute(
                scripts.MANUAL_FIND_BY_LINK_TEXT, [locator["using"], locator["value"], False, self]
            )
            if not element:
                raise error_for_status(7)
            return Element(element, session)

        try:
            element = await self._post("element", locator)
        except WebDriverError as error:
            # geckodriver reports a missing element as an unknown command
            if error.name == "UnknownCommand" and "Unable to locate element:" in error.message:
                raise rename_error(error, "NoSuchElement", 7) from error
            raise
        return Element(element, session)

    async def find_all(self, using: str, value: str) -> List["Element"]:
        session = self._session
        locator = self._locator(using, value)

        if self._manual_link_text(locator["using"]):
            elements = await session.execute(
                scripts.MANUAL_FIND_BY_LINK_TEXT, [locator["using"], locator["value"], True, self]
            )
        else:
            elements = await self._post("elements", locator)
        return [Element(element, session) for element in elements or []]

    async def find_displayed(self, using: str, value: str) -> "Element":
        return await find_displayed(self._session, self, using, value)

    async def wait_for_deleted(self, using: str, value: str) -> None:
        await wait_for_deleted(self._session, self, using, value)

    # ------------------------------------------------------------------
    # Interaction
    # ------------------------------------------------------------------

    async def click(self) -> None:
        capabilities = self._session.capabilities
        if capabilities.broken_click:
            await self._session.execute(scripts.ELEMENT_CLICK, [self])
            return

        await self._post("click")
        # ios-driver and Edge 14316 return before the default action runs
        if capabilities.touch_enabled or capabilities.returns_from_click_immediately:
            await sleep(CLICK_SETTLE_MS)

    async def submit(self) -> None:
        if self._session.capabilities.broken_submit_element:
            await self._session.execute(scripts.ELEMENT_SUBMIT, [self])
            return
        await self._post("submit")

    async def get_visible_text(self) -> str:
        capabilities = self._session.capabilities
        if capabilities.broken_visible_text:
            return await self._session.execute(scripts.ELEMENT_INNER_TEXT, [self])

        text = await self._get("text")
        if capabilities.broken_whitespace_normalization:
            return normalize_whitespace(text)
        return text

    def _value_payload(self, keys: List[str]) -> Dict[str, Any]:
        capabilities = self._session.capabilities
        if capabilities.uses_web_driver_element_value:
            return {"text": "".join(keys)}
        if capabilities.uses_flat_keys_array:
            return {"value": list("".join(keys))}
        return {"value": keys}

    async def _upload_file(self, filename: str) -> str:
        """Send a local file to the remote end; returns its remote path."""
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
            archive.write(filename, os.path.basename(filename))
        payload = base64.b64encode(buffer.getvalue()).decode("ascii")
        logger.debug(f"Uploading {filename} to the remote end")
        return await self._session.server_post("file", {"file": payload})

    async def type(self, value: Union[str, List[str]]) -> None:
        """
        Type into the element.

        When the remote end accepts file uploads and ``value`` names an
        existing local file, the file is uploaded and its remote path typed
        instead.
        """
        capabilities = self._session.capabilities
        keys = [value] if isinstance(value, str) else list(value)

        if capabilities.remote_files:
            filename = "".join(keys)
            if filename and os.path.isfile(filename):
                keys = [await self._upload_file(filename)]

        try:
            await self._post("value", self._value_payload(keys))
        except WebDriverError as error:
            detail = error.detail if isinstance(error.detail, dict) else {}
            if detail.get("error") == "invalid argument" and not capabilities.uses_web_driver_element_value:
                capabilities.heal("uses_web_driver_element_value", True, "invalid argument")
                await self.type(value)
                return
            raise

    async def clear_value(self) -> None:
        await self._post("clear")

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    async def get_tag_name(self) -> str:
        name = await self._get("name")
        if self._session.capabilities.broken_html_tag_name:
            is_html = await self._session.execute(scripts.IS_HTML_DOCUMENT)
            return name.lower() if is_html else name
        return name

    async def is_selected(self) -> bool:
        return await self._get("selected")

    async def is_enabled(self) -> bool:
        if self._session.capabilities.broken_element_enabled:
            return await self._session.execute(scripts.ELEMENT_IS_ENABLED, [self])
        return await self._get("enabled")

    async def get_spec_attribute(self, name: str) -> Optional[str]:
        """
        Attribute value as the WebDriver draft defines it: the property for
        some names, "true" or None for boolean attributes.
        """
        value = await self._get("attribute/$0", None, [name])

        if self._session.capabilities.broken_null_get_spec_attribute and value in ("", None):
            has_attribute = await self._session.execute(scripts.ELEMENT_HAS_ATTRIBUTE, [self, name])
            value = value if has_attribute else None
        else:
            value = value or None

        # ios-driver returns booleans
        if isinstance(value, bool):
            value = "true" if value else None
        return value

    async def get_attribute(self, name: str) -> Optional[str]:
        """The literal attribute value, or None when it is absent."""
        if self._session.capabilities.uses_web_driver_element_attribute:
            return await self._get("attribute/$0", None, [name])
        return await self._session.execute(scripts.ELEMENT_GET_ATTRIBUTE, [self, name])

    async def get_property(self, name: str) -> Any:
        capabilities = self._session.capabilities
        if capabilities.broken_element_property:
            return await self._session.execute(scripts.ELEMENT_GET_PROPERTY, [self, name])

        try:
            return await self._get("property/$0", None, [name])
        except WebDriverError as error:
            capabilities.heal("broken_element_property", True, error.name)
            return await self.get_property(name)

    async def equals(self, other: Union["Element", str]) -> bool:
        """Whether ``other`` refers to the same DOM node."""
        capabilities = self._session.capabilities
        if capabilities.no_element_equals:
            return await self._session.execute(scripts.ELEMENTS_EQUAL, [self, other])

        other_id = other.element_id if isinstance(other, Element) else other
        try:
            return await self._get("equals/$0", None, [other_id])
        except WebDriverError as error:
            if not capabilities.no_element_equals and error.name in ("UnknownCommand", "UnknownError"):
                capabilities.heal("no_element_equals", True, error.name)
                return await self.equals(other)
            raise

    async def is_displayed(self) -> bool:
        capabilities = self._session.capabilities
        displayed = await self._get("displayed")
        if displayed and (
            capabilities.broken_element_displayed_opacity or capabilities.broken_element_displayed_offscreen
        ):
            return await self._session.execute(scripts.ELEMENT_IS_VISIBLE, [self])
        return displayed

    # ------------------------------------------------------------------
    # Geometry and style
    # ------------------------------------------------------------------

    async def get_position(self) -> Dict[str, float]:
        """Position relative to the top-left of the document, in CSS pixels."""
        if self._session.capabilities.broken_element_position:
            return await self._session.execute(scripts.ELEMENT_POSITION, [self])

        position = await self._get("location")
        return {"x": position["x"], "y": position["y"]}

    async def get_size(self) -> Dict[str, float]:
        if self._session.capabilities.broken_css_transformed_size:
            return await self._session.execute(scripts.ELEMENT_SIZE, [self])

        try:
            size = await self._get("size")
        except WebDriverError as error:
            if error.name != "UnknownCommand":
                raise
            size = await self._session.execute(scripts.ELEMENT_SIZE, [self])
        return {"width": size["width"], "height": size["height"]}

    async def get_computed_style(self, property_name: str) -> str:
        """
        Computed CSS value. Colours are always ``rgba(...)`` and missing
        values are empty strings.
        """
        session = self._session
        if session.capabilities.broken_computed_styles:
            value = await session.execute(scripts.ELEMENT_COMPUTED_STYLE, [self, property_name])
        else:
            try:
                value = await self._get("css/$0", None, [property_name])
            except WebDriverError as error:
                if error.name == "UnknownCommand":
                    value = await session.execute(scripts.ELEMENT_COMPUTED_STYLE, [self, property_name])
                elif error.name == "UnknownError" and "failed to parse value" in error.message:
                    value = ""
                else:
                    raise

        if value:
            value = _RGB_COLOR.sub(r"\1rgba(\2, 1)\3", value)
        return value if value is not None else ""


__all__ = ["Element"]
