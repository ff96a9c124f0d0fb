# tests/test_poll_until.py
import asyncio

import pytest

from jsonwire import Command, errors, poll_until, poll_until_truthy
from jsonwire import scripts
from jsonwire.util import to_execute_string

from _utils import FakeWebDriver, json_response, make_session

## We DO NOT want to use pytest-asyncio.
## Instead, use event_loop.run_until_complete()!


@pytest.fixture(scope="function")
def event_loop():
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    yield loop
    loop.close()


def poll_driver(result):
    driver = FakeWebDriver()
    driver.route("POST", r"session/abc/timeouts", value=None)
    driver.route("POST", r"session/abc/execute_async", value=result)
    return driver


def timeout_values(driver):
    return [body["ms"] for method, path, body in driver.requests if path == "session/abc/timeouts"]


class TestPollUntil:
    def test_returns_first_value_and_restores_timeout(self, event_loop):
        driver = poll_driver("ready")
        session = make_session(driver)

        result = event_loop.run_until_complete(poll_until(session, "return window.ready;", [], 5000, 10))

        assert result == "ready"
        assert timeout_values(driver) == [5000, 0]
        execute = [body for method, path, body in driver.requests if path == "session/abc/execute_async"][0]
        assert execute["script"] == to_execute_string(scripts.POLL_UNTIL)
        assert execute["args"] == ["return window.ready;", [], 5000, 10]

    def test_timeout_may_take_the_place_of_args(self, event_loop):
        driver = poll_driver(1)
        session = make_session(driver)
        event_loop.run_until_complete(poll_until(session, "return 1;", 2000))
        execute = [body for method, path, body in driver.requests if path == "session/abc/execute_async"][0]
        assert execute["args"][1:3] == [[], 2000]

    def test_no_value_is_a_script_timeout(self, event_loop):
        driver = poll_driver(None)
        session = make_session(driver)
        with pytest.raises(errors.ScriptTimeout):
            event_loop.run_until_complete(poll_until(session, "return null;", [], 100))
        assert timeout_values(driver) == [100, 0]

    def test_timeout_is_restored_after_failure(self, event_loop):
        driver = FakeWebDriver()
        driver.route("POST", r"session/abc/timeouts", value=None)
        driver.route(
            "POST", r"session/abc/execute_async",
            lambda body, match: json_response({"status": 17, "value": {"message": "bad poller"}}, 500),
        )
        session = make_session(driver)
        with pytest.raises(errors.JavaScriptError):
            event_loop.run_until_complete(poll_until(session, "return x.y;", [], 100))
        assert timeout_values(driver) == [100, 0]

    def test_truthy_poller_wraps_the_poller(self, event_loop):
        driver = poll_driver(True)
        session = make_session(driver)
        event_loop.run_until_complete(poll_until_truthy(session, "return document.readyState === 'complete';", 1000))
        execute = [body for method, path, body in driver.requests if path == "session/abc/execute_async"][0]
        assert execute["args"][0] == to_execute_string(scripts.TRUTHY_POLLER)
        assert execute["args"][1] == ["return document.readyState === 'complete';"]

    def test_from_a_command(self, event_loop):
        driver = poll_driver("done")
        session = make_session(driver)

        async def scenario():
            return await Command(session).poll_until("return window.done;", [], 500)

        assert event_loop.run_until_complete(scenario()) == "done"
