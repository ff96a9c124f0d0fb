# jsonwire/lib/find_displayed.py
import time

from ..errors import error_for_status

import logging
logger = logging.getLogger(__name__)


async def find_displayed(session, locator, using: str, value: str):
    """
    Poll ``locator.find_all`` until one of the matches is displayed.

    Gives up once the session's find (implicit) timeout has elapsed, with
    ElementNotVisible when elements matched but none was displayed and
    NoSuchElement when nothing matched.
    """
    timeout = await session.get_timeout("implicit")
    start = time.monotonic()

    while True:
        elements = await locator.find_all(using, value)
        # ChromeDriver 2.16 breaks on parallel checks; test one at a time
        for element in elements:
            if await element.is_displayed():
                return element

        elapsed_ms = (time.monotonic() - start) * 1000
        if elapsed_ms > timeout:
            logger.debug(f"No displayed element for {using}={value!r} after {elapsed_ms:.0f}ms")
            raise error_for_status(11 if elements else 7)


__all__ = ["find_displayed"]
