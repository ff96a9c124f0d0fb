# tests/test_command.py
import asyncio

import pytest

from jsonwire import Command, Element
from jsonwire.command import TOP_CONTEXT
from jsonwire.errors import CancelError, DeadlockError

from _utils import FakeWebDriver, element_ref, make_session

## We DO NOT want to use pytest-asyncio.
## Instead, use event_loop.run_until_complete()!


@pytest.fixture(scope="function")
def event_loop():
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    yield loop
    loop.close()


def page_driver():
    """A page with #greeting, and a <ul> holding three <li>."""
    driver = FakeWebDriver()
    driver.route("POST", r"session/abc/url", value=None)
    driver.route("POST", r"session/abc/element", value=element_ref("greeting"))
    driver.route("POST", r"session/abc/elements", value=[element_ref("li1"), element_ref("li2"), element_ref("li3")])
    driver.route("POST", r"session/abc/element/greeting/element", value=element_ref("inner"))
    driver.route(
        "GET", r"session/abc/element/(\w+)/text",
        lambda body, match: {"status": 0, "value": f"text of {match.group(1)}"},
    )
    driver.route("GET", r"session/abc/element/greeting/text", value="Hello")
    driver.route("POST", r"session/abc/touch/click", value=None)
    return driver


class TestChaining:
    def test_navigate_find_and_read(self, event_loop):
        driver = page_driver()
        session = make_session(driver)

        async def scenario():
            return await Command(session).get("http://example.com/").find_by_tag_name("h1").get_visible_text()

        assert event_loop.run_until_complete(scenario()) == "Hello"
        assert driver.paths() == [
            "session/abc/url",
            "session/abc/element",
            "session/abc/element/greeting/text",
        ]

    def test_root_context(self, event_loop):
        session = make_session(page_driver())

        async def scenario():
            command = Command(session)
            await command
            return command

        command = event_loop.run_until_complete(scenario())
        assert command.context is TOP_CONTEXT
        assert command.context.depth == 0
        assert command.parent is None
        assert command.session is session

    def test_find_sets_context_and_end_pops_it(self, event_loop):
        session = make_session(page_driver())

        async def scenario():
            found = Command(session).find_by_id("greeting")
            ended = found.end()
            assert await ended is None
            return found, ended

        found, ended = event_loop.run_until_complete(scenario())
        assert [element.element_id for element in found.context] == ["greeting"]
        assert found.context.is_single and found.context.depth == 1
        assert ended.context is TOP_CONTEXT

    def test_nested_find_then_end_returns_to_outer_element(self, event_loop):
        driver = page_driver()
        session = make_session(driver)

        async def scenario():
            return await Command(session).find_by_id("greeting").find_by_tag_name("span").end().get_visible_text()

        assert event_loop.run_until_complete(scenario()) == "Hello"
        assert driver.paths()[-1] == "session/abc/element/greeting/text"

    def test_element_methods_fan_out_in_order(self, event_loop):
        driver = page_driver()
        driver.route("GET", r"session/abc/element/li1/text", value="text of li1", delay=0.03)
        driver.route("GET", r"session/abc/element/li3/text", value="text of li3", delay=0.01)
        session = make_session(driver)

        async def scenario():
            return await Command(session).find_all_by_tag_name("li").get_visible_text()

        assert event_loop.run_until_complete(scenario()) == ["text of li1", "text of li2", "text of li3"]
        assert driver.paths()[1:] == [
            "session/abc/element/li1/text",
            "session/abc/element/li2/text",
            "session/abc/element/li3/text",
        ]
        assert driver.max_in_flight == 1

    def test_element_session_methods_fan_out(self, event_loop):
        driver = page_driver()
        session = make_session(driver)

        async def scenario():
            return await Command(session).find_all_by_tag_name("li").tap()

        assert event_loop.run_until_complete(scenario()) == [None, None, None]
        taps = [body for method, path, body in driver.requests if path == "session/abc/touch/click"]
        assert taps == [{"element": "li1"}, {"element": "li2"}, {"element": "li3"}]

    def test_explicit_element_argument_wins_over_context(self, event_loop):
        driver = page_driver()
        session = make_session(driver)

        async def scenario():
            await Command(session).find_by_id("greeting").tap(Element("other", session))

        event_loop.run_until_complete(scenario())
        assert driver.requests[-1][2] == {"element": "other"}

    def test_element_method_without_context(self, event_loop):
        session = make_session(page_driver())

        async def scenario():
            await Command(session).click()

        with pytest.raises(ValueError):
            event_loop.run_until_complete(scenario())

    def test_parent_must_be_command_or_session(self):
        with pytest.raises(TypeError):
            Command(object())


class TestCallbacks:
    def test_then_receives_value(self, event_loop):
        session = make_session(page_driver())

        async def scenario():
            return await Command(session).find_by_id("greeting").get_visible_text().then(lambda text: text.upper())

        assert event_loop.run_until_complete(scenario()) == "HELLO"

    def test_then_can_set_context(self, event_loop):
        driver = page_driver()
        session = make_session(driver)

        async def scenario():
            def focus(value, set_context):
                set_context(Element("li2", session))

            return await Command(session).then(focus).get_visible_text()

        assert event_loop.run_until_complete(scenario()) == "text of li2"

    def test_returned_command_is_awaited(self, event_loop):
        session = make_session(page_driver())

        async def scenario():
            command = Command(session)
            return await command.then(lambda value: command.find_by_id("greeting").get_visible_text())

        assert event_loop.run_until_complete(scenario()) == "Hello"

    def test_returning_own_command_is_a_deadlock(self, event_loop):
        session = make_session(page_driver())

        async def scenario():
            chained = Command(session).then(lambda value: chained)
            await chained

        with pytest.raises(DeadlockError):
            event_loop.run_until_complete(scenario())

    def test_returning_a_chain_built_on_own_command_is_a_deadlock(self, event_loop):
        session = make_session(page_driver())

        async def scenario():
            chained = Command(session).then(lambda value: chained.get_page_title())
            await chained

        with pytest.raises(DeadlockError):
            event_loop.run_until_complete(scenario())

    def test_optional_second_parameter_is_left_alone(self, event_loop):
        session = make_session(page_driver())

        def exclaim(value, suffix="!"):
            return value + suffix

        async def scenario():
            return await Command(session).find_by_id("greeting").get_visible_text().then(exclaim)

        assert event_loop.run_until_complete(scenario()) == "Hello!"

    def test_catch_receives_error(self, event_loop):
        driver = FakeWebDriver()
        session = make_session(driver)

        async def scenario():
            return await Command(session).find_by_id("missing").catch(lambda error: error.name)

        assert event_loop.run_until_complete(scenario()) == "UnknownCommand"

    def test_errors_skip_then_callbacks(self, event_loop):
        session = make_session(FakeWebDriver())
        called = []

        async def scenario():
            await Command(session).find_by_id("missing").then(called.append)

        with pytest.raises(Exception) as info:
            event_loop.run_until_complete(scenario())
        assert info.value.name == "UnknownCommand"
        assert called == []

    def test_finally_runs_on_success_and_failure(self, event_loop):
        session = make_session(page_driver())
        calls = []

        async def scenario():
            value = await Command(session).find_by_id("greeting").get_visible_text().finally_(lambda: calls.append("ok"))
            try:
                await Command(session).click().finally_(lambda: calls.append("failed"))
            except ValueError:
                pass
            return value

        assert event_loop.run_until_complete(scenario()) == "Hello"
        assert calls == ["ok", "failed"]

    def test_finally_leaves_earlier_children_intact(self, event_loop):
        driver = page_driver()
        driver.route("GET", r"session/abc/title", value="Example")
        session = make_session(driver)
        calls = []

        async def cleanup():
            await asyncio.sleep(0.01)
            calls.append("cleanup")

        async def scenario():
            navigation = Command(session).get("http://example.com/")
            title = navigation.get_page_title()
            cleaned = navigation.finally_(cleanup)
            assert cleaned is not navigation
            text = await title
            await cleaned
            return text

        assert event_loop.run_until_complete(scenario()) == "Example"
        assert calls == ["cleanup"]


class TestCancellation:
    def test_children_of_cancelled_command_fail(self, event_loop):
        driver = page_driver()
        driver.route("POST", r"session/abc/url", value=None, delay=0.5)
        session = make_session(driver)

        async def scenario():
            navigation = Command(session).get("http://example.com/")
            title = navigation.get_page_title()
            await asyncio.sleep(0.01)
            navigation.cancel()
            await title

        with pytest.raises(CancelError):
            event_loop.run_until_complete(scenario())

    def test_cancel_aborts_in_flight_request(self, event_loop):
        driver = page_driver()
        driver.route("POST", r"session/abc/url", value=None, delay=0.5)
        session = make_session(driver)

        async def scenario():
            navigation = Command(session).get("http://example.com/")
            title = navigation.get_page_title()
            await asyncio.sleep(0.05)
            navigation.cancel()
            with pytest.raises(CancelError):
                await title
            with pytest.raises(asyncio.CancelledError):
                await navigation

        event_loop.run_until_complete(scenario())
        assert driver.cancelled == ["session/abc/url"]
        assert driver.paths() == ["session/abc/url"]
        assert driver.in_flight == 0

    def test_finally_runs_when_cancelled_before_start(self, event_loop):
        driver = page_driver()
        session = make_session(driver)
        calls = []

        async def scenario():
            navigation = Command(session).get("http://example.com/").finally_(lambda: calls.append("cleanup"))
            navigation.cancel()
            await navigation

        with pytest.raises(CancelError):
            event_loop.run_until_complete(scenario())
        assert calls == ["cleanup"]
        assert driver.requests == []

    def test_finally_runs_when_cancelled_after_its_parent(self, event_loop):
        driver = page_driver()
        session = make_session(driver)
        calls = []

        async def scenario():
            navigation = Command(session).get("http://example.com/")
            await navigation
            cleaned = navigation.finally_(lambda: calls.append("cleanup"))
            cleaned.cancel()
            with pytest.raises(asyncio.CancelledError):
                await cleaned
            await asyncio.sleep(0.01)

        event_loop.run_until_complete(scenario())
        assert calls == ["cleanup"]
        assert driver.paths() == ["session/abc/url"]

    def test_sleep_passes_no_value(self, event_loop):
        session = make_session(page_driver())

        async def scenario():
            return await Command(session).find_by_id("greeting").sleep(1).get_visible_text()

        assert event_loop.run_until_complete(scenario()) == "Hello"
