# jsonwire/lib/wait_for_deleted.py
import time

from ..errors import WebDriverError, error_for_status

import logging
logger = logging.getLogger(__name__)


async def wait_for_deleted(session, locator, using: str, value: str) -> None:
    """
    Poll ``locator.find`` until nothing matches.

    The implicit timeout is set to 0 while polling (so each find answers
    immediately) and restored afterwards; the original value bounds the
    wait, after which Timeout is raised.
    """
    original_timeout = await session.get_timeout("implicit")
    await session.set_timeout("implicit", 0)
    start = time.monotonic()

    try:
        while True:
            try:
                await locator.find(using, value)
            except WebDriverError as error:
                if error.name == "NoSuchElement":
                    return
                raise
            if (time.monotonic() - start) * 1000 > original_timeout:
                raise error_for_status(21)
    finally:
        try:
            await session.set_timeout("implicit", original_timeout)
        except Exception as error:
            logger.warning(f"Could not restore the implicit timeout to {original_timeout}ms: {error}")


__all__ = ["wait_for_deleted"]
