"""
Global constants and configuration defaults.
No dependencies - safe to import from anywhere.

Timing values used by capability probes and defect workarounds are
heuristics around asynchronous browser behaviour that cannot be awaited
directly, so each one can be tuned from the environment.
"""

import os

# ============================================================================
# Server Configuration
# ============================================================================

DEFAULT_SERVER_URL = os.getenv("JSONWIRE_SERVER_URL", "http://localhost:4444/wd/hub/")
"""Default JsonWireProtocol endpoint."""

REQUEST_TIMEOUT_SECS = float(os.getenv("JSONWIRE_REQUEST_TIMEOUT", "0")) or None
"""HTTP timeout for a single request in seconds. 0 disables the timeout."""

ACCEPT_HEADER = "application/json,text/plain;q=0.9"
"""Sent with every request. At least FirefoxDriver 2.40.0 fails without it."""

JSON_CONTENT_TYPE = "application/json;charset=UTF-8"


# ============================================================================
# Protocol Limits
# ============================================================================

MAX_TIMEOUT_MS = 2 ** 23 - 1
"""Finite stand-in for an infinite timeout; JSON cannot encode Infinity."""

W3C_ELEMENT_KEY = "element-6066-11e4-a52e-4f735466cecf"
"""Element reference key used by W3C WebDriver."""

JWP_ELEMENT_KEY = "ELEMENT"
"""Element reference key used by JsonWireProtocol."""

MAX_REDIRECTS = 20
"""Redirects followed for one command before giving up."""


# ============================================================================
# Timing Heuristics (milliseconds)
# ============================================================================

PROBE_MOUSE_SETTLE_MS = int(os.getenv("JSONWIRE_PROBE_MOUSE_SETTLE_MS", "100"))
"""Wait after a mouse move before reading event counters during detection."""

PROBE_REFRESH_TIMEOUT_MS = int(os.getenv("JSONWIRE_PROBE_REFRESH_TIMEOUT_MS", "2000"))
"""A refresh that takes longer than this during detection is considered broken."""

CLICK_SETTLE_MS = int(os.getenv("JSONWIRE_CLICK_SETTLE_MS", "500"))
"""Wait after an element click for drivers that return before the default action."""

MOUSE_CLICK_SETTLE_MS = int(os.getenv("JSONWIRE_MOUSE_CLICK_SETTLE_MS", "300"))
"""Wait after a mouse button click on touch-enabled drivers."""

POLL_INTERVAL_MS = int(os.getenv("JSONWIRE_POLL_INTERVAL_MS", "67"))
"""Default interval between remote poller invocations."""


__all__ = [
    "DEFAULT_SERVER_URL",
    "REQUEST_TIMEOUT_SECS",
    "ACCEPT_HEADER",
    "JSON_CONTENT_TYPE",
    "MAX_TIMEOUT_MS",
    "W3C_ELEMENT_KEY",
    "JWP_ELEMENT_KEY",
    "MAX_REDIRECTS",
    "PROBE_MOUSE_SETTLE_MS",
    "PROBE_REFRESH_TIMEOUT_MS",
    "CLICK_SETTLE_MS",
    "MOUSE_CLICK_SETTLE_MS",
    "POLL_INTERVAL_MS",
]
