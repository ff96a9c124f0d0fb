"""
Element location strategies and the ``find_by_*`` convenience mixin.

Strategy names are the wire strings Selenium's ``By`` constants already use.
"""

from typing import Dict

from selenium.webdriver.common.by import By

W3C_STRATEGIES = frozenset({
    By.CSS_SELECTOR,
    By.LINK_TEXT,
    By.PARTIAL_LINK_TEXT,
    By.XPATH,
})
"""Strategies W3C WebDriver accepts directly."""

STRATEGIES = W3C_STRATEGIES | {
    By.CLASS_NAME,
    By.ID,
    By.NAME,
    By.TAG_NAME,
}
"""Every strategy the client accepts."""


def to_w3c_locator(using: str, value: str) -> Dict[str, str]:
    """
    Translate a JsonWireProtocol locator into one a W3C server accepts.

    ``id``, ``class name``, ``name`` and ``tag name`` become CSS selectors;
    everything else passes through.
    """
    if using == By.ID:
        using, value = By.CSS_SELECTOR, f"#{value}"
    elif using == By.CLASS_NAME:
        using, value = By.CSS_SELECTOR, f".{value}"
    elif using == By.NAME:
        using, value = By.CSS_SELECTOR, f'[name="{value}"]'
    elif using == By.TAG_NAME:
        using = By.CSS_SELECTOR
    return {"using": using, "value": value}


def check_strategy(using: str) -> None:
    if using not in STRATEGIES:
        raise ValueError(f"Unsupported locator strategy {using!r}")


class Locator:
    """
    Strategy-specific shortcuts for ``find``, ``find_all``, ``find_displayed``
    and ``wait_for_deleted``.

    The host class supplies those four methods; whatever they return
    (a coroutine on Session and Element, a chained Command on Command) is
    returned unchanged.
    """

    def find_by_class_name(self, class_name: str):
        return self.find(By.CLASS_NAME, class_name)

    def find_by_css_selector(self, selector: str):
        return self.find(By.CSS_SELECTOR, selector)

    def find_by_id(self, id: str):
        return self.find(By.ID, id)

    def find_by_name(self, name: str):
        return self.find(By.NAME, name)

    def find_by_link_text(self, text: str):
        return self.find(By.LINK_TEXT, text)

    def find_by_partial_link_text(self, text: str):
        return self.find(By.PARTIAL_LINK_TEXT, text)

    def find_by_tag_name(self, tag_name: str):
        return self.find(By.TAG_NAME, tag_name)

    def find_by_xpath(self, path: str):
        return self.find(By.XPATH, path)

    def find_all_by_class_name(self, class_name: str):
        return self.find_all(By.CLASS_NAME, class_name)

    def find_all_by_css_selector(self, selector: str):
        return self.find_all(By.CSS_SELECTOR, selector)

    def find_all_by_id(self, id: str):
        return self.find_all(By.ID, id)

    def find_all_by_name(self, name: str):
        return self.find_all(By.NAME, name)

    def find_all_by_link_text(self, text: str):
        return self.find_all(By.LINK_TEXT, text)

    def find_all_by_partial_link_text(self, text: str):
        return self.find_all(By.PARTIAL_LINK_TEXT, text)

    def find_all_by_tag_name(self, tag_name: str):
        return self.find_all(By.TAG_NAME, tag_name)

    def find_all_by_xpath(self, path: str):
        return self.find_all(By.XPATH, path)

    def find_displayed_by_class_name(self, class_name: str):
        return self.find_displayed(By.CLASS_NAME, class_name)

    def find_displayed_by_css_selector(self, selector: str):
        return self.find_displayed(By.CSS_SELECTOR, selector)

    def find_displayed_by_id(self, id: str):
        return self.find_displayed(By.ID, id)

    def find_displayed_by_name(self, name: str):
        return self.find_displayed(By.NAME, name)

    def find_displayed_by_link_text(self, text: str):
        return self.find_displayed(By.LINK_TEXT, text)

    def find_displayed_by_partial_link_text(self, text: str):
        return self.find_displayed(By.PARTIAL_LINK_TEXT, text)

    def find_displayed_by_tag_name(self, tag_name: str):
        return self.find_displayed(By.TAG_NAME, tag_name)

    def find_displayed_by_xpath(self, path: str):
        return self.find_displayed(By.XPATH, path)

    def wait_for_deleted_by_class_name(self, class_name: str):
        return self.wait_for_deleted(By.CLASS_NAME, class_name)

    def wait_for_deleted_by_css_selector(self, selector: str):
        return self.wait_for_deleted(By.CSS_SELECTOR, selector)

    def wait_for_deleted_by_id(self, id: str):
        return self.wait_for_deleted(By.ID, id)

    def wait_for_deleted_by_name(self, name: str):
        return self.wait_for_deleted(By.NAME, name)

    def wait_for_deleted_by_link_text(self, text: str):
        return self.wait_for_deleted(By.LINK_TEXT, text)

    def wait_for_deleted_by_partial_link_text(self, text: str):
        return self.wait_for_deleted(By.PARTIAL_LINK_TEXT, text)

    def wait_for_deleted_by_tag_name(self, tag_name: str):
        return self.wait_for_deleted(By.TAG_NAME, tag_name)

    def wait_for_deleted_by_xpath(self, path: str):
        return self.wait_for_deleted(By.XPATH, path)


__all__ = [
    "W3C_STRATEGIES",
    "STRATEGIES",
    "to_w3c_locator",
    "check_strategy",
    "Locator",
]
