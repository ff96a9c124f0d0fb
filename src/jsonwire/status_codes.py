"""
Status code table for the WebDriver wire protocols.

Legacy JsonWireProtocol servers report integer status codes; W3C WebDriver
servers report an error string in ``value.error``. Both map to a canonical
``(name, message)`` pair, and the name is what :class:`jsonwire.errors.WebDriverError`
exposes as ``.name``.
"""

from typing import Dict, Optional, Tuple, Union

Status = Union[int, str]

STATUS_CODES: Dict[Status, Tuple[str, str]] = {
    0: ("Success", "The command executed successfully."),
    6: ("NoSuchDriver", "A session is either terminated or not started."),
    7: (
        "NoSuchElement",
        "An element could not be located on the page using the given search parameters.",
    ),
    8: (
        "NoSuchFrame",
        "A request to switch to a frame could not be satisfied because the frame could not be found.",
    ),
    9: (
        "UnknownCommand",
        "The requested resource could not be found, or a request was received using an HTTP "
        "method that is not supported by the mapped resource.",
    ),
    10: (
        "StaleElementReference",
        "An element command failed because the referenced element is no longer attached to the DOM.",
    ),
    11: (
        "ElementNotVisible",
        "An element command could not be completed because the element is not visible on the page.",
    ),
    12: (
        "InvalidElementState",
        "An element command could not be completed because the element is in an invalid state "
        "(e.g. attempting to click a disabled element).",
    ),
    13: ("UnknownError", "An unknown server-side error occurred while processing the command."),
    15: ("ElementIsNotSelectable", "An attempt was made to select an element that cannot be selected."),
    17: ("JavaScriptError", "An error occurred while executing user supplied JavaScript."),
    19: ("XPathLookupError", "An error occurred while searching for an element by XPath."),
    21: ("Timeout", "An operation did not complete before its timeout expired."),
    23: (
        "NoSuchWindow",
        "A request to switch to a different window could not be satisfied because the window "
        "could not be found.",
    ),
    24: (
        "InvalidCookieDomain",
        "An illegal attempt was made to set a cookie under a different domain than the current page.",
    ),
    25: ("UnableToSetCookie", "A request to set a cookie's value could not be satisfied."),
    26: ("ModalDialogOpen", "A modal dialog was open, blocking this operation."),
    27: ("NoAlertOpenError", "An attempt was made to operate on a modal dialog when one was not open."),
    28: ("ScriptTimeout", "A script did not complete before its timeout expired."),
    29: ("InvalidElementCoordinates", "The coordinates provided to an interactions operation are invalid."),
    30: ("IMENotAvailable", "IME was not available."),
    31: ("IMEEngineActivationFailed", "An IME engine could not be started."),
    32: ("InvalidSelector", "Argument was an invalid selector (e.g. XPath/CSS)."),
    33: ("SessionNotCreatedException", "A new session could not be created."),
    34: ("MoveTargetOutOfBounds", "Target provided for a move action is out of bounds."),
    51: ("InvalidXPathSelector", "Argument was an invalid XPath selector."),
    52: ("InvalidXPathSelectorReturnType", "Argument was an invalid XPath selector return type."),
    405: ("MethodNotAllowed", "Method not allowed."),
    # W3C WebDriver error strings
    "element click intercepted": (
        "ElementClickIntercepted",
        "The Element Click command could not be completed because the element receiving the "
        "events is obscuring the element that was requested clicked.",
    ),
    "element not selectable": (
        "ElementNotSelectable",
        "An attempt was made to select an element that cannot be selected.",
    ),
    "element not interactable": (
        "ElementNotInteractable",
        "A command could not be completed because the element is not pointer- or keyboard interactable.",
    ),
    "insecure certificate": (
        "InsecureCertificate",
        "Navigation caused the user agent to hit a certificate warning, which is usually the "
        "result of an expired or invalid TLS certificate.",
    ),
    "invalid argument": ("InvalidArgument", "The arguments passed to a command are either invalid or malformed."),
    "invalid cookie domain": (
        "InvalidCookieDomain",
        "An illegal attempt was made to set a cookie under a different domain than the current page.",
    ),
    "invalid coordinates": (
        "InvalidElementCoordinates",
        "The coordinates provided to an interactions operation are invalid.",
    ),
    "invalid element state": (
        "InvalidElementState",
        "A command could not be completed because the element is in an invalid state.",
    ),
    "invalid selector": ("InvalidSelector", "Argument was an invalid selector."),
    "invalid session id": (
        "InvalidSessionId",
        "Occurs if the given session id is not in the list of active sessions, meaning the "
        "session either does not exist or that it's not active.",
    ),
    "javascript error": ("JavaScriptError", "An error occurred while executing user supplied JavaScript."),
    "move target out of bounds": (
        "MoveTargetOutOfBounds",
        "The target for mouse interaction is not in the browser's viewport and cannot be brought into that viewport.",
    ),
    "no such alert": ("NoAlertOpenError", "An attempt was made to operate on a modal dialog when one was not open."),
    "no such cookie": (
        "NoSuchCookie",
        "No cookie matching the given path name was found amongst the associated cookies of the "
        "current browsing context's active document.",
    ),
    "no such element": (
        "NoSuchElement",
        "An element could not be located on the page using the given search parameters.",
    ),
    "no such frame": (
        "NoSuchFrame",
        "A request to switch to a frame could not be satisfied because the frame could not be found.",
    ),
    "no such window": (
        "NoSuchWindow",
        "A request to switch to a different window could not be satisfied because the window "
        "could not be found.",
    ),
    "script timeout": ("ScriptTimeout", "A script did not complete before its timeout expired."),
    "session not created": ("SessionNotCreatedException", "A new session could not be created."),
    "stale element reference": (
        "StaleElementReference",
        "An element command failed because the referenced element is no longer attached to the DOM.",
    ),
    "timeout": ("Timeout", "An operation did not complete before its timeout expired."),
    "unable to set cookie": ("UnableToSetCookie", "A request to set a cookie's value could not be satisfied."),
    "unable to capture screen": ("UnableToCaptureScreen", "A screen capture was made impossible."),
    "unexpected alert open": ("ModalDialogOpen", "A modal dialog was open, blocking this operation."),
    "unknown command": (
        "UnknownCommand",
        "A command could not be executed because the remote end is not aware of it.",
    ),
    "unknown error": ("UnknownError", "An unknown error occurred in the remote end while processing the command."),
    "unknown method": (
        "UnknownMethod",
        "The requested command matched a known URL but did not match a method for that URL.",
    ),
    "unsupported operation": (
        "UnsupportedOperation",
        "Indicates that a command that should have executed properly cannot be supported for some reason.",
    ),
}


def lookup(status: Optional[Status]) -> Optional[Tuple[str, str]]:
    """Return the ``(name, message)`` pair for a numeric or string status, if known."""
    if status is None:
        return None
    if isinstance(status, str) and status.isdigit():
        status = int(status)
    return STATUS_CODES.get(status)


__all__ = ["STATUS_CODES", "Status", "lookup"]
