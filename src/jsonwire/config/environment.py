"""Environment configuration and validation."""

import os
from typing import Optional, Union
from urllib.parse import quote, urlsplit, urlunsplit

from dotenv import load_dotenv, find_dotenv

from ..constants import DEFAULT_SERVER_URL

import logging
logger = logging.getLogger(__name__)


FIX_CAPABILITIES_MODES = {
    "1": True,
    "true": True,
    "yes": True,
    "0": False,
    "false": False,
    "no": False,
    "no-detect": "no-detect",
}


def _load_dotenv() -> None:
    load_dotenv(find_dotenv(filename=".env", usecwd=True), override=False)


def parse_fix_session_capabilities(raw: Optional[str]) -> Union[bool, str]:
    """
    Parse a fixSessionCapabilities mode.

    Accepts the usual boolean spellings plus "no-detect", which applies the
    static capability table but skips live probing. An empty value means the
    default (True).
    """
    if raw is None or not raw.strip():
        return True
    key = raw.strip().lower()
    if key not in FIX_CAPABILITIES_MODES:
        raise EnvironmentError(
            f"JSONWIRE_FIX_SESSION_CAPABILITIES must be one of "
            f"{sorted(FIX_CAPABILITIES_MODES)}, got {raw!r}."
        )
    return FIX_CAPABILITIES_MODES[key]


def get_env_config() -> dict:
    """
    Read environment variables (and a .env file, if one is found) and validate them.

    Optional:   JSONWIRE_SERVER_URL (default http://localhost:4444/wd/hub/)
                JSONWIRE_USERNAME
                JSONWIRE_PASSWORD
                JSONWIRE_ACCESS_KEY (used when JSONWIRE_PASSWORD is not set)
                JSONWIRE_FIX_SESSION_CAPABILITIES (true, false or no-detect)
                JSONWIRE_REQUEST_TIMEOUT (seconds, 0 for none)

    Values already present in the process environment win over the .env file.
    """
    _load_dotenv()

    url = (os.getenv("JSONWIRE_SERVER_URL") or "").strip() or DEFAULT_SERVER_URL
    parts = urlsplit(url)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise EnvironmentError(f"JSONWIRE_SERVER_URL must be an http(s) URL, got {url!r}.")

    username = (os.getenv("JSONWIRE_USERNAME") or "").strip() or None
    password = (
        (os.getenv("JSONWIRE_PASSWORD") or "").strip()
        or (os.getenv("JSONWIRE_ACCESS_KEY") or "").strip()
        or None
    )

    timeout_env = (os.getenv("JSONWIRE_REQUEST_TIMEOUT") or "").strip()
    timeout: Optional[float] = None
    if timeout_env:
        try:
            timeout = float(timeout_env) or None
        except ValueError:
            raise EnvironmentError(f"JSONWIRE_REQUEST_TIMEOUT must be a number, got {timeout_env!r}.")

    return {
        "url": url,
        "username": username,
        "password": password,
        "fix_session_capabilities": parse_fix_session_capabilities(
            os.getenv("JSONWIRE_FIX_SESSION_CAPABILITIES")
        ),
        "timeout": timeout,
    }


def server_url(config: Optional[dict] = None) -> str:
    """
    Build the server URL from a config dict, embedding credentials as userinfo.

    Credentials are percent-encoded. A trailing slash is always present so
    command paths can be appended directly.
    """
    if config is None:
        config = get_env_config()

    parts = urlsplit(config["url"])
    netloc = parts.netloc.rsplit("@", 1)[-1]
    username = config.get("username")
    password = config.get("password")
    if username or password:
        netloc = f"{quote(username or '', safe='')}:{quote(password or '', safe='')}@{netloc}"

    path = parts.path.rstrip("/") + "/"
    return urlunsplit((parts.scheme, netloc, path, parts.query, parts.fragment))
