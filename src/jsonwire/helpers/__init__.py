"""
Polling helpers for use with Command chains::

    await command.get(url).poll_until("return window.ready || null;")

Both helpers run the poller inside the browser through ``execute_async``,
so one round trip covers the whole wait.
"""

from .poll_until import poll_until, poll_until_truthy

__all__ = [
    "poll_until",
    "poll_until_truthy",
]
