# tests/_utils.py
import re
import json
import asyncio

import httpx

from jsonwire import Server, Session

SERVER_URL = "http://webdriver.test/wd/hub/"
SESSION_ID = "abc"


def ok(value=None, session_id=SESSION_ID):
    """A successful JsonWireProtocol response body."""
    return {"status": 0, "sessionId": session_id, "value": value}


def json_response(body, status_code=200):
    return httpx.Response(
        status_code,
        content=json.dumps(body).encode("utf-8"),
        headers={"Content-Type": "application/json;charset=UTF-8"},
    )


class FakeWebDriver:
    """
    In-memory remote end for httpx.MockTransport.

    Routes are matched against the path below the hub URL (for example
    ``session/abc/url``); the last route registered for a path wins, so a
    test can override a default. A handler gets ``(body, match)`` and returns
    either an httpx.Response or a value to wrap in a success response.
    Unrouted requests get a plain-text 404. Requests abandoned by the client
    mid-flight are listed in ``cancelled``.
    """

    def __init__(self, prefix="/wd/hub/"):
        self.prefix = prefix
        self.routes = []
        self.requests = []
        self.raw_requests = []
        self.cancelled = []
        self.in_flight = 0
        self.max_in_flight = 0

    def route(self, method, pattern, handler=None, *, value=None, delay=0):
        if handler is None:
            handler = lambda body, match: ok(value)
        self.routes.append((method, re.compile(pattern), handler, delay))
        return self

    def error(self, method, pattern, status, message="", http_status=500, **extra):
        body = {"status": status, "value": dict({"message": message}, **extra)}
        return self.route(method, pattern, lambda b, m: json_response(body, http_status))

    def paths(self, method=None):
        return [path for m, path, _ in self.requests if method is None or m == method]

    async def handle(self, request):
        path = request.url.path
        if path.startswith(self.prefix):
            path = path[len(self.prefix):]
        body = json.loads(request.content) if request.content else None
        self.requests.append((request.method, path, body))
        self.raw_requests.append(request)

        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            for method, regex, handler, delay in reversed(self.routes):
                match = regex.fullmatch(path)
                if method != request.method or not match:
                    continue
                if delay:
                    await asyncio.sleep(delay)
                result = handler(body, match)
                if isinstance(result, httpx.Response):
                    return result
                return json_response(result)
            return httpx.Response(404, text="Not found", headers={"Content-Type": "text/plain"})
        except asyncio.CancelledError:
            self.cancelled.append(path)
            raise
        finally:
            self.in_flight -= 1

    def transport(self):
        return httpx.MockTransport(self.handle)


def make_server(driver, url=SERVER_URL, **kwargs):
    return Server(url, transport=driver.transport(), **kwargs)


def make_session(driver, capabilities=None, session_id=SESSION_ID):
    """A Session on a FakeWebDriver without going through create_session."""
    server = make_server(driver)
    return Session(session_id, server, capabilities or {})


def element_ref(element_id):
    return {"ELEMENT": element_id}
