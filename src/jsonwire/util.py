"""Small helpers shared by Session, Element and the capability probes."""

import asyncio
import re
from datetime import datetime, timezone
from email.utils import format_datetime, parsedate_to_datetime
from typing import Any, Dict, List
from urllib.parse import quote

_FUNCTION_SOURCE = re.compile(r"^\s*(async\s+)?function\b|^\s*\([^)]*\)\s*=>|^\s*\w+\s*=>")


async def sleep(ms: float) -> None:
    """Sleep for ``ms`` milliseconds."""
    await asyncio.sleep(ms / 1000)


def to_execute_string(script: str) -> str:
    """
    Turn a JavaScript function expression into a script body for ``execute``.

    Script bodies (``"return document.title;"``) are returned unchanged.
    Function sources (``"function (a) { ... }"`` or arrow functions) are
    wrapped so the remote end invokes them with the execute arguments.
    """
    if _FUNCTION_SOURCE.match(script):
        return f"return ({script}).apply(this, arguments);"
    return script


def normalize_whitespace(text: str) -> str:
    """Collapse driver-specific whitespace in visible text the way browsers render it."""
    if text:
        text = re.sub(r"^\s+", "", text, flags=re.MULTILINE)
        text = re.sub(r"\s+$", "", text, flags=re.MULTILINE)
        text = re.sub(r"\s*\r\n\s*", "\n", text)
        text = re.sub(r" +", " ", text)
    return text


def push_cookie_properties(target: List[str], cookie: Dict[str, Any]) -> None:
    """
    Append the ``document.cookie`` attribute strings for ``cookie`` to ``target``.

    Name and value are skipped (the caller writes ``name=value`` first).
    ``expiry`` becomes an ``expires`` attribute. Boolean flags are emitted
    bare when true.
    """
    for key, value in cookie.items():
        if key in ("name", "value") or (key == "domain" and value == "http"):
            continue

        if isinstance(value, bool):
            if value:
                target.append(key)
        elif key == "expiry":
            if isinstance(value, (int, float)):
                value = datetime.fromtimestamp(value, tz=timezone.utc)
            if isinstance(value, datetime):
                if value.tzinfo is None:
                    value = value.replace(tzinfo=timezone.utc)
                value = format_datetime(value.astimezone(timezone.utc), usegmt=True)
            target.append("expires=" + quote(str(value), safe="~()*!.'"))
        elif value is not None:
            target.append(f"{key}=" + quote(str(value), safe="~()*!.'"))


def parse_date(value: str) -> datetime:
    """
    Parse an ISO 8601 or RFC 2822 date; naive results are taken as UTC.

    Raises ValueError when neither format matches.
    """
    text = value.strip()
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        try:
            parsed = parsedate_to_datetime(text)
        except (TypeError, ValueError) as error:
            raise ValueError(f"Unrecognized date {value!r}") from error
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


__all__ = [
    "sleep",
    "to_execute_string",
    "normalize_whitespace",
    "push_cookie_properties",
    "parse_date",
]
