# jsonwire/helpers/poll_until.py
from typing import Any, Optional, Sequence, Union

from .. import scripts
from ..constants import POLL_INTERVAL_MS
from ..errors import create_error
from ..util import to_execute_string

import logging
logger = logging.getLogger(__name__)


async def poll_until(
    session,
    poller: str,
    args: Union[Sequence[Any], float, None] = None,
    timeout: Optional[float] = None,
    poll_interval: Optional[float] = None,
) -> Any:
    """
    Run ``poller`` in the browser every ``poll_interval`` ms until it returns
    something other than null/undefined, and return that value.

    ``poller`` is a script body or a JavaScript function source; ``args``
    are passed to it. ``args`` may be omitted: ``poll_until(s, js, 5000)``.
    Without ``timeout`` the session's execute-async timeout bounds the wait;
    with one, that timeout is changed for the duration of the poll and
    restored afterwards. Raises ScriptTimeout when no value arrives in time.
    """
    if isinstance(args, (int, float)) and not isinstance(args, bool):
        args, timeout, poll_interval = None, args, timeout

    args = list(args or [])
    poll_interval = poll_interval or POLL_INTERVAL_MS

    current_timeout = await session.get_execute_async_timeout()
    original_timeout = None
    if timeout is not None:
        original_timeout = current_timeout
    else:
        timeout = current_timeout

    try:
        await session.set_execute_async_timeout(timeout)
        result = await session.execute_async(
            scripts.POLL_UNTIL,
            [to_execute_string(poller), args, timeout, poll_interval],
        )
    except Exception:
        if original_timeout is not None:
            try:
                await session.set_execute_async_timeout(original_timeout)
            except Exception as error:
                logger.warning(f"Could not restore the execute-async timeout to {original_timeout}ms: {error}")
        raise

    if original_timeout is not None:
        await session.set_execute_async_timeout(original_timeout)

    if result is None:
        raise create_error("ScriptTimeout", "Polling timed out with no result")
    return result


async def poll_until_truthy(
    session,
    poller: str,
    args: Union[Sequence[Any], float, None] = None,
    timeout: Optional[float] = None,
    poll_interval: Optional[float] = None,
) -> Any:
    """Like :func:`poll_until`, but keeps polling while the result is falsy."""
    if isinstance(args, (int, float)) and not isinstance(args, bool):
        args, timeout, poll_interval = None, args, timeout

    truthy_args = [to_execute_string(poller)] + list(args or [])
    return await poll_until(session, scripts.TRUTHY_POLLER, truthy_args, timeout, poll_interval)


__all__ = ["poll_until", "poll_until_truthy"]
