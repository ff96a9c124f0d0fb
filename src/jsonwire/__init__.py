"""
An asyncio client for the WebDriver JsonWireProtocol.

One client talks to ChromeDriver, geckodriver, Selenium Grid, Appium,
SafariDriver and the rest, even though every one of them implements the
protocol a little differently. Known differences are corrected up front
from a per-browser table, unknown ones are detected by probing the live
browser when a session starts, and the rest are corrected the first time
a command trips over them.

    async with Server("http://localhost:4444/wd/hub/") as server:
        session = await server.create_session({"browserName": "chrome"})
        command = Command(session)
        text = await command.get(url).find_by_id("greeting").get_visible_text()
        await session.quit()

Requests within a session are sent one at a time, in call order. Sessions
are independent of each other.
"""

from . import config as config
from . import errors as errors
from .capabilities import Capabilities
from .command import Command
from .element import Element
from .helpers import poll_until, poll_until_truthy
from .server import Server
from .session import Session

__all__ = [
    "config",
    "errors",
    "Capabilities",
    "Command",
    "Element",
    "Server",
    "Session",
    "poll_until",
    "poll_until_truthy",
]
