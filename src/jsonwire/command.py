"""
Chainable, awaitable commands.

A Command wraps one step of a chain. Each step waits for its parent, then
runs against the parent's *context*: the element(s) the chain is currently
focused on. ``find*`` calls replace the context, ``end()`` pops it, and
element methods run once per element in it::

    command = Command(session)
    text = await command.get(url).find_by_id("greeting").get_visible_text()

    sizes = await command.find_all_by_tag_name("li").get_size()   # one per <li>

Every step is an ``asyncio.Task`` created when the step is created, so a
chain starts running as soon as it is built, and ``await`` only collects the
result.
"""

import asyncio
import inspect
from typing import Any, Callable, List, Optional, Union

from .element import Element
from .errors import CancelError, DeadlockError
from .helpers.poll_until import poll_until, poll_until_truthy
from .locator import Locator
from .session import Session
from .util import sleep

import logging
logger = logging.getLogger(__name__)


class Context(list):
    """
    The element(s) a Command chain is focused on.

    Attributes:
        is_single: The context came from a single-element operation; results
            of element methods are unwrapped instead of returned as lists
        depth: How many ``find*`` levels deep the chain is (0 at the top)
    """

    def __init__(self, items=(), is_single: bool = False, depth: Optional[int] = None):
        super().__init__(items)
        self.is_single = is_single
        self.depth = depth

    def __repr__(self) -> str:
        return f"Context({list(self)!r}, is_single={self.is_single}, depth={self.depth})"


TOP_CONTEXT = Context(is_single=True, depth=0)


def _flatten(values: List[Any]) -> List[Any]:
    flat = []
    for value in values:
        if isinstance(value, list):
            flat.extend(value)
        else:
            flat.append(value)
    return flat


def _takes_set_context(callback: Callable) -> bool:
    try:
        parameters = inspect.signature(callback).parameters.values()
    except (TypeError, ValueError):
        return False
    # optional parameters are left to their defaults
    positional = [
        p for p in parameters
        if p.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
        and p.default is inspect.Parameter.empty
    ]
    return len(positional) >= 2 or any(p.kind == inspect.Parameter.VAR_POSITIONAL for p in parameters)


class Command(Locator):
    """
    One step of a command chain.

    ``initializer`` and ``errback`` are called as ``fn(set_context, value)``
    once the parent settles (with its result or its error) and may return
    awaitables. Must be created while an event loop is running.
    """

    def __init__(
        self,
        parent_or_session: Union["Command", Session],
        initializer: Optional[Callable] = None,
        errback: Optional[Callable] = None,
    ):
        if isinstance(parent_or_session, Command):
            self._parent = parent_or_session
            self._session = parent_or_session.session
        elif isinstance(parent_or_session, Session):
            self._parent = None
            self._session = parent_or_session
        else:
            raise TypeError("A parent Command or Session must be provided to a new Command")

        self._context: Optional[Context] = None
        self._finalizer: Optional[Callable] = None
        self._finalized = False
        self._cleanup: Optional["asyncio.Task"] = None
        self._task = asyncio.get_running_loop().create_task(self._settle(initializer, errback))

    def __repr__(self) -> str:
        return f"Command(session={self._session!r}, context={self._context!r})"

    async def _settle(self, initializer, errback):
        parent = self._parent
        value, error = None, None

        if parent is not None:
            parent_task = parent._task
            await asyncio.wait([parent_task])
            node = parent
            while node is not None and node._context is None:
                node = node._parent
            self._context = node._context if node is not None else TOP_CONTEXT
            try:
                value = parent_task.result()
            except asyncio.CancelledError:
                error = CancelError("A parent command was cancelled")
            except Exception as parent_error:
                error = parent_error
        else:
            self._context = TOP_CONTEXT

        if error is None:
            if initializer is None:
                return value
            result = initializer(self._set_context, value)
        else:
            if errback is None:
                raise error
            result = errback(self._set_context, error)

        if inspect.isawaitable(result):
            result = await result
        return result

    def _set_context(self, value: Any) -> None:
        if isinstance(value, Context):
            context = value
        elif isinstance(value, list):
            context = Context(value)
        else:
            context = Context([value], is_single=True)

        # A context that already has a depth comes from end(); keep it
        if context.depth is None:
            parent_context = self._parent.context if self._parent is not None else None
            context.depth = (parent_context.depth or 0) + 1 if parent_context is not None else 0

        self._context = context

    def __await__(self):
        return self._task.__await__()

    @property
    def parent(self) -> Optional["Command"]:
        return self._parent

    @property
    def session(self) -> Session:
        return self._session

    @property
    def context(self) -> Optional[Context]:
        return self._context

    def get_unwrapped_task(self) -> "asyncio.Task":
        """The task backing this step."""
        return self._task

    # ------------------------------------------------------------------
    # Chain control
    # ------------------------------------------------------------------

    def _chain(self, run: Callable) -> "Command":
        """New child step running ``run(command, set_context)``."""
        command = None

        def initializer(set_context, value):
            return run(command, set_context)

        command = type(self)(self, initializer)
        return command

    def then(self, callback: Optional[Callable] = None, errback: Optional[Callable] = None) -> "Command":
        """
        Run ``callback(value)`` (or ``callback(value, set_context)``) when
        this step succeeds, or ``errback(error)`` when it fails.

        Returning the new step, or a chain built on it, from the callback
        would wait on itself forever; that raises DeadlockError instead.
        """
        command = None

        async def resolve(result):
            if inspect.iscoroutine(result):
                result = await result
            if isinstance(result, Command):
                node = result
                while node is not None:
                    if node is command:
                        raise DeadlockError("Deadlock: do not return this command from its own callback")
                    node = node.parent
            if inspect.isawaitable(result):
                result = await result
            return result

        def run_callback(set_context, value):
            if _takes_set_context(callback):
                return resolve(callback(value, set_context))
            return resolve(callback(value))

        def run_errback(set_context, error):
            return resolve(errback(error))

        command = type(self)(
            self,
            run_callback if callback is not None else None,
            run_errback if errback is not None else None,
        )
        return command

    def catch(self, errback: Callable) -> "Command":
        return self.then(None, errback)

    def finally_(self, callback: Callable) -> "Command":
        """
        Run ``callback()`` once this step settles, whatever the outcome,
        including cancellation. The new step passes this step's value or
        error on unchanged.
        """
        command = None

        async def finalize():
            command._finalized = True
            result = callback()
            if inspect.isawaitable(result):
                await result

        async def on_value(set_context, value):
            await finalize()
            return value

        async def on_error(set_context, error):
            await finalize()
            raise error

        command = type(self)(self, on_value, on_error)
        command._finalizer = finalize
        command._task.add_done_callback(command._finalize_cancelled)
        return command

    def _finalize_cancelled(self, task: "asyncio.Task") -> None:
        # a task cancelled before its first step never runs its coroutine
        if task.cancelled() and not self._finalized:
            self._cleanup = task.get_loop().create_task(self._finalizer())

    def cancel(self) -> "Command":
        """
        Cancel this step, including a request it is waiting on.

        A step still waiting for its parent cancels the parent as well, so
        nothing further up the chain is sent on its behalf. A ``finally_``
        step is left to run its callback and settles with CancelError.
        """
        logger.debug(f"Cancelling {self!r}")
        parent = self._parent
        if parent is not None and not parent._task.done():
            parent.cancel()
            if self._finalizer is not None:
                return self
        self._task.cancel()
        return self

    def sleep(self, ms: float) -> "Command":
        return type(self)(self, lambda set_context, value: sleep(ms))

    def end(self, num_commands_to_pop: int = 1) -> "Command":
        """Return to the context that was active before the last ``num_commands_to_pop`` finds."""
        command = None

        def pop_context(set_context, value):
            node = command
            depth = node.context.depth
            remaining = num_commands_to_pop
            while depth and remaining and node.parent is not None:
                node = node.parent
                if node.context is not None and node.context.depth is not None and node.context.depth < depth:
                    remaining -= 1
                    depth = node.context.depth
            set_context(node.context)

        command = type(self)(self, pop_context)
        return command

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _call_session_method(self, method: str, *args, **kwargs) -> "Command":
        async def run(command, set_context):
            context = command.context
            fn = getattr(command.session, method)

            if (
                getattr(fn, "uses_element", False)
                and len(context)
                and (not args or not isinstance(args[0], Element))
            ):
                if context.is_single:
                    result = await fn(context[0], *args, **kwargs)
                else:
                    result = _flatten(
                        await asyncio.gather(*(fn(element, *args, **kwargs) for element in context))
                    )
            else:
                result = await fn(*args, **kwargs)

            if getattr(fn, "creates_context", False):
                set_context(result)
            return result

        return self._chain(run)

    def _call_element_method(self, method: str, *args, **kwargs) -> "Command":
        async def run(command, set_context):
            context = command.context
            if context.is_single:
                if not context:
                    raise ValueError(f"{method} needs an element context; find an element first")
                return await getattr(context[0], method)(*args, **kwargs)
            return _flatten(
                await asyncio.gather(*(getattr(element, method)(*args, **kwargs) for element in context))
            )

        return self._chain(run)

    def _call_find_element_method(self, method: str, using: str, value: str) -> "Command":
        async def run(command, set_context):
            context = command.context
            if context and context.is_single:
                result = await getattr(context[0], method)(using, value)
            elif context:
                result = _flatten(
                    await asyncio.gather(*(getattr(element, method)(using, value) for element in context))
                )
            else:
                result = await getattr(command.session, method)(using, value)
            set_context(result)
            return result

        return self._chain(run)

    # ------------------------------------------------------------------
    # Finding
    # ------------------------------------------------------------------

    def find(self, using: str, value: str) -> "Command":
        return self._call_find_element_method("find", using, value)

    def find_all(self, using: str, value: str) -> "Command":
        return self._call_find_element_method("find_all", using, value)

    def find_displayed(self, using: str, value: str) -> "Command":
        return self._call_find_element_method("find_displayed", using, value)

    def wait_for_deleted(self, using: str, value: str) -> "Command":
        return self._call_session_method("wait_for_deleted", using, value)

    def get_active_element(self) -> "Command":
        return self._call_session_method("get_active_element")

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------

    def poll_until(self, poller: str, args=None, timeout=None, poll_interval=None) -> "Command":
        return self._chain(
            lambda command, set_context: poll_until(command.session, poller, args, timeout, poll_interval)
        )

    def poll_until_truthy(self, poller: str, args=None, timeout=None, poll_interval=None) -> "Command":
        return self._chain(
            lambda command, set_context: poll_until_truthy(command.session, poller, args, timeout, poll_interval)
        )

    # ------------------------------------------------------------------
    # Session operations
    # ------------------------------------------------------------------

    def get_timeout(self, type: str) -> "Command":
        return self._call_session_method("get_timeout", type)

    def set_timeout(self, type: str, ms: float) -> "Command":
        return self._call_session_method("set_timeout", type, ms)

    def get_execute_async_timeout(self) -> "Command":
        return self._call_session_method("get_execute_async_timeout")

    def set_execute_async_timeout(self, ms: float) -> "Command":
        return self._call_session_method("set_execute_async_timeout", ms)

    def get_find_timeout(self) -> "Command":
        return self._call_session_method("get_find_timeout")

    def set_find_timeout(self, ms: float) -> "Command":
        return self._call_session_method("set_find_timeout", ms)

    def get_page_load_timeout(self) -> "Command":
        return self._call_session_method("get_page_load_timeout")

    def set_page_load_timeout(self, ms: float) -> "Command":
        return self._call_session_method("set_page_load_timeout", ms)

    def get_current_window_handle(self) -> "Command":
        return self._call_session_method("get_current_window_handle")

    def get_all_window_handles(self) -> "Command":
        return self._call_session_method("get_all_window_handles")

    def get_current_url(self) -> "Command":
        return self._call_session_method("get_current_url")

    def get(self, url: str) -> "Command":
        return self._call_session_method("get", url)

    def go_forward(self) -> "Command":
        return self._call_session_method("go_forward")

    def go_back(self) -> "Command":
        return self._call_session_method("go_back")

    def refresh(self) -> "Command":
        return self._call_session_method("refresh")

    def execute(self, script: str, args=None) -> "Command":
        return self._call_session_method("execute", script, args)

    def execute_async(self, script: str, args=None) -> "Command":
        return self._call_session_method("execute_async", script, args)

    def take_screenshot(self) -> "Command":
        return self._call_session_method("take_screenshot")

    def get_available_ime_engines(self) -> "Command":
        return self._call_session_method("get_available_ime_engines")

    def get_active_ime_engine(self) -> "Command":
        return self._call_session_method("get_active_ime_engine")

    def is_ime_activated(self) -> "Command":
        return self._call_session_method("is_ime_activated")

    def deactivate_ime(self) -> "Command":
        return self._call_session_method("deactivate_ime")

    def activate_ime(self, engine: str) -> "Command":
        return self._call_session_method("activate_ime", engine)

    def switch_to_frame(self, id) -> "Command":
        return self._call_session_method("switch_to_frame", id)

    def switch_to_window(self, handle: str) -> "Command":
        return self._call_session_method("switch_to_window", handle)

    def switch_to_parent_frame(self) -> "Command":
        return self._call_session_method("switch_to_parent_frame")

    def close_current_window(self) -> "Command":
        return self._call_session_method("close_current_window")

    def get_window_rect(self) -> "Command":
        return self._call_session_method("get_window_rect")

    def set_window_rect(self, rect) -> "Command":
        return self._call_session_method("set_window_rect", rect)

    def set_window_size(self, width: float, height: float, window_handle: Optional[str] = None) -> "Command":
        return self._call_session_method("set_window_size", width, height, window_handle)

    def get_window_size(self, window_handle: Optional[str] = None) -> "Command":
        return self._call_session_method("get_window_size", window_handle)

    def set_window_position(self, x: float, y: float, window_handle: Optional[str] = None) -> "Command":
        return self._call_session_method("set_window_position", x, y, window_handle)

    def get_window_position(self, window_handle: Optional[str] = None) -> "Command":
        return self._call_session_method("get_window_position", window_handle)

    def maximize_window(self, window_handle: Optional[str] = None) -> "Command":
        return self._call_session_method("maximize_window", window_handle)

    def get_cookies(self) -> "Command":
        return self._call_session_method("get_cookies")

    def set_cookie(self, cookie) -> "Command":
        return self._call_session_method("set_cookie", cookie)

    def clear_cookies(self) -> "Command":
        return self._call_session_method("clear_cookies")

    def delete_cookie(self, name: str) -> "Command":
        return self._call_session_method("delete_cookie", name)

    def get_page_source(self) -> "Command":
        return self._call_session_method("get_page_source")

    def get_page_title(self) -> "Command":
        return self._call_session_method("get_page_title")

    def press_keys(self, keys) -> "Command":
        return self._call_session_method("press_keys", keys)

    def get_orientation(self) -> "Command":
        return self._call_session_method("get_orientation")

    def set_orientation(self, orientation: str) -> "Command":
        return self._call_session_method("set_orientation", orientation)

    def get_alert_text(self) -> "Command":
        return self._call_session_method("get_alert_text")

    def type_in_prompt(self, text) -> "Command":
        return self._call_session_method("type_in_prompt", text)

    def accept_alert(self) -> "Command":
        return self._call_session_method("accept_alert")

    def dismiss_alert(self) -> "Command":
        return self._call_session_method("dismiss_alert")

    def move_mouse_to(self, *args) -> "Command":
        return self._call_session_method("move_mouse_to", *args)

    def click_mouse_button(self, button: Optional[int] = None) -> "Command":
        return self._call_session_method("click_mouse_button", button)

    def press_mouse_button(self, button: Optional[int] = None) -> "Command":
        return self._call_session_method("press_mouse_button", button)

    def release_mouse_button(self, button: Optional[int] = None) -> "Command":
        return self._call_session_method("release_mouse_button", button)

    def double_click(self) -> "Command":
        return self._call_session_method("double_click")

    def tap(self, *args) -> "Command":
        return self._call_session_method("tap", *args)

    def press_finger(self, x: float, y: float) -> "Command":
        return self._call_session_method("press_finger", x, y)

    def release_finger(self, x: float, y: float) -> "Command":
        return self._call_session_method("release_finger", x, y)

    def move_finger(self, x: float, y: float) -> "Command":
        return self._call_session_method("move_finger", x, y)

    def touch_scroll(self, *args) -> "Command":
        return self._call_session_method("touch_scroll", *args)

    def double_tap(self, *args) -> "Command":
        return self._call_session_method("double_tap", *args)

    def long_tap(self, *args) -> "Command":
        return self._call_session_method("long_tap", *args)

    def flick_finger(self, *args) -> "Command":
        return self._call_session_method("flick_finger", *args)

    def get_geolocation(self) -> "Command":
        return self._call_session_method("get_geolocation")

    def set_geolocation(self, location) -> "Command":
        return self._call_session_method("set_geolocation", location)

    def get_logs_for(self, type: str) -> "Command":
        return self._call_session_method("get_logs_for", type)

    def get_available_log_types(self) -> "Command":
        return self._call_session_method("get_available_log_types")

    def get_application_cache_status(self) -> "Command":
        return self._call_session_method("get_application_cache_status")

    def quit(self) -> "Command":
        return self._call_session_method("quit")

    def get_local_storage_keys(self) -> "Command":
        return self._call_session_method("get_local_storage_keys")

    def set_local_storage_item(self, key: str, value: str) -> "Command":
        return self._call_session_method("set_local_storage_item", key, value)

    def clear_local_storage(self) -> "Command":
        return self._call_session_method("clear_local_storage")

    def get_local_storage_item(self, key: str) -> "Command":
        return self._call_session_method("get_local_storage_item", key)

    def delete_local_storage_item(self, key: str) -> "Command":
        return self._call_session_method("delete_local_storage_item", key)

    def get_local_storage_length(self) -> "Command":
        return self._call_session_method("get_local_storage_length")

    def get_session_storage_keys(self) -> "Command":
        return self._call_session_method("get_session_storage_keys")

    def set_session_storage_item(self, key: str, value: str) -> "Command":
        return self._call_session_method("set_session_storage_item", key, value)

    def clear_session_storage(self) -> "Command":
        return self._call_session_method("clear_session_storage")

    def get_session_storage_item(self, key: str) -> "Command":
        return self._call_session_method("get_session_storage_item", key)

    def delete_session_storage_item(self, key: str) -> "Command":
        return self._call_session_method("delete_session_storage_item", key)

    def get_session_storage_length(self) -> "Command":
        return self._call_session_method("get_session_storage_length")

    # ------------------------------------------------------------------
    # Element operations (run once per element in the context)
    # ------------------------------------------------------------------

    def click(self) -> "Command":
        return self._call_element_method("click")

    def submit(self) -> "Command":
        return self._call_element_method("submit")

    def get_visible_text(self) -> "Command":
        return self._call_element_method("get_visible_text")

    def type(self, value) -> "Command":
        """Type into the context element(s); use :meth:`press_keys` to type into whatever has focus."""
        return self._call_element_method("type", value)

    def get_tag_name(self) -> "Command":
        return self._call_element_method("get_tag_name")

    def clear_value(self) -> "Command":
        return self._call_element_method("clear_value")

    def is_selected(self) -> "Command":
        return self._call_element_method("is_selected")

    def is_enabled(self) -> "Command":
        return self._call_element_method("is_enabled")

    def get_spec_attribute(self, name: str) -> "Command":
        return self._call_element_method("get_spec_attribute", name)

    def get_attribute(self, name: str) -> "Command":
        return self._call_element_method("get_attribute", name)

    def get_property(self, name: str) -> "Command":
        return self._call_element_method("get_property", name)

    def equals(self, other) -> "Command":
        return self._call_element_method("equals", other)

    def is_displayed(self) -> "Command":
        return self._call_element_method("is_displayed")

    def get_position(self) -> "Command":
        return self._call_element_method("get_position")

    def get_size(self) -> "Command":
        return self._call_element_method("get_size")

    def get_computed_style(self, property_name: str) -> "Command":
        return self._call_element_method("get_computed_style", property_name)


__all__ = ["Command", "Context", "TOP_CONTEXT"]
