"""
Error types raised by the client.

Every protocol failure is a :class:`WebDriverError` whose ``name`` comes from
the status code table. Where Selenium defines an equivalent exception the
class also derives from it, so ``except NoSuchElementException`` written
against Selenium keeps working.
"""

from typing import Any, Dict, Optional, Type

from selenium.common import exceptions as se

from .status_codes import Status, lookup


class WebDriverError(se.WebDriverException):
    """
    A normalized WebDriver error.

    Attributes:
        name: Canonical error name (e.g. "NoSuchElement")
        status: Numeric or W3C string status reported by the server
        detail: Raw ``value`` payload from the server response
        request: ``{"url", "method", "data"}`` of the failed request
        response: The ``httpx.Response`` that produced the error, if any
    """

    name = "Error"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        status: Optional[Status] = None,
        detail: Any = None,
        request: Optional[Dict[str, Any]] = None,
        response: Any = None,
        screen: Optional[bytes] = None,
        name: Optional[str] = None,
    ):
        super().__init__(message, screen, None)
        if name is not None:
            self.name = name
        self.message = message or ""
        self.status = status
        self.detail = detail
        self.request = request
        self.response = response

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, message={self.message!r})"


class NoSuchDriver(WebDriverError, se.InvalidSessionIdException):
    name = "NoSuchDriver"


class NoSuchElement(WebDriverError, se.NoSuchElementException):
    name = "NoSuchElement"


class NoSuchFrame(WebDriverError, se.NoSuchFrameException):
    name = "NoSuchFrame"


class UnknownCommand(WebDriverError):
    name = "UnknownCommand"


class StaleElementReference(WebDriverError, se.StaleElementReferenceException):
    name = "StaleElementReference"


class ElementNotVisible(WebDriverError, se.ElementNotVisibleException):
    name = "ElementNotVisible"


class InvalidElementState(WebDriverError, se.InvalidElementStateException):
    name = "InvalidElementState"


class UnknownError(WebDriverError):
    name = "UnknownError"


class ElementIsNotSelectable(WebDriverError, se.ElementNotSelectableException):
    name = "ElementIsNotSelectable"


class JavaScriptError(WebDriverError, se.JavascriptException):
    name = "JavaScriptError"


class XPathLookupError(WebDriverError, se.InvalidSelectorException):
    name = "XPathLookupError"


class Timeout(WebDriverError, se.TimeoutException):
    name = "Timeout"


class NoSuchWindow(WebDriverError, se.NoSuchWindowException):
    name = "NoSuchWindow"


class InvalidCookieDomain(WebDriverError, se.InvalidCookieDomainException):
    name = "InvalidCookieDomain"


class UnableToSetCookie(WebDriverError, se.UnableToSetCookieException):
    name = "UnableToSetCookie"


class ModalDialogOpen(WebDriverError, se.UnexpectedAlertPresentException):
    name = "ModalDialogOpen"


class NoAlertOpenError(WebDriverError, se.NoAlertPresentException):
    name = "NoAlertOpenError"


class ScriptTimeout(WebDriverError, se.TimeoutException):
    name = "ScriptTimeout"


class InvalidElementCoordinates(WebDriverError, se.InvalidCoordinatesException):
    name = "InvalidElementCoordinates"


class IMENotAvailable(WebDriverError, se.ImeNotAvailableException):
    name = "IMENotAvailable"


class IMEEngineActivationFailed(WebDriverError, se.ImeActivationFailedException):
    name = "IMEEngineActivationFailed"


class InvalidSelector(WebDriverError, se.InvalidSelectorException):
    name = "InvalidSelector"


class SessionNotCreatedException(WebDriverError, se.SessionNotCreatedException):
    name = "SessionNotCreatedException"


class MoveTargetOutOfBounds(WebDriverError, se.MoveTargetOutOfBoundsException):
    name = "MoveTargetOutOfBounds"


class InvalidXPathSelector(WebDriverError, se.InvalidSelectorException):
    name = "InvalidXPathSelector"


class InvalidXPathSelectorReturnType(WebDriverError, se.InvalidSelectorException):
    name = "InvalidXPathSelectorReturnType"


class MethodNotAllowed(WebDriverError):
    name = "MethodNotAllowed"


class ElementClickIntercepted(WebDriverError, se.ElementClickInterceptedException):
    name = "ElementClickIntercepted"


class ElementNotSelectable(WebDriverError, se.ElementNotSelectableException):
    name = "ElementNotSelectable"


class ElementNotInteractable(WebDriverError, se.ElementNotInteractableException):
    name = "ElementNotInteractable"


class InsecureCertificate(WebDriverError, se.InsecureCertificateException):
    name = "InsecureCertificate"


class InvalidArgument(WebDriverError, se.InvalidArgumentException):
    name = "InvalidArgument"


class InvalidSessionId(WebDriverError, se.InvalidSessionIdException):
    name = "InvalidSessionId"


class NoSuchCookie(WebDriverError, se.NoSuchCookieException):
    name = "NoSuchCookie"


class UnableToCaptureScreen(WebDriverError, se.ScreenshotException):
    name = "UnableToCaptureScreen"


class UnknownMethod(WebDriverError, se.UnknownMethodException):
    name = "UnknownMethod"


class UnsupportedOperation(WebDriverError):
    name = "UnsupportedOperation"


ERROR_CLASSES: Dict[str, Type[WebDriverError]] = {
    cls.name: cls
    for cls in (
        NoSuchDriver,
        NoSuchElement,
        NoSuchFrame,
        UnknownCommand,
        StaleElementReference,
        ElementNotVisible,
        InvalidElementState,
        UnknownError,
        ElementIsNotSelectable,
        JavaScriptError,
        XPathLookupError,
        Timeout,
        NoSuchWindow,
        InvalidCookieDomain,
        UnableToSetCookie,
        ModalDialogOpen,
        NoAlertOpenError,
        ScriptTimeout,
        InvalidElementCoordinates,
        IMENotAvailable,
        IMEEngineActivationFailed,
        InvalidSelector,
        SessionNotCreatedException,
        MoveTargetOutOfBounds,
        InvalidXPathSelector,
        InvalidXPathSelectorReturnType,
        MethodNotAllowed,
        ElementClickIntercepted,
        ElementNotSelectable,
        ElementNotInteractable,
        InsecureCertificate,
        InvalidArgument,
        InvalidSessionId,
        NoSuchCookie,
        UnableToCaptureScreen,
        UnknownMethod,
        UnsupportedOperation,
    )
}


def create_error(name: str, message: Optional[str] = None, **kwargs) -> WebDriverError:
    """
    Instantiate the error class registered for ``name``.

    Names outside the table (drivers occasionally invent their own) produce a
    plain WebDriverError carrying that name.
    """
    cls = ERROR_CLASSES.get(name)
    if cls is None:
        return WebDriverError(message, name=name, **kwargs)
    return cls(message, **kwargs)


def error_for_status(status: Status, message: Optional[str] = None, **kwargs) -> WebDriverError:
    """Build an error from a status code, defaulting the message from the table."""
    name, default_message = lookup(status) or ("UnknownError", "")
    return create_error(name, message or default_message, status=status, **kwargs)


def rename_error(error: WebDriverError, name: str, status: Optional[Status] = None) -> WebDriverError:
    """Copy ``error`` into the class for ``name``, keeping its message and metadata."""
    renamed = create_error(
        name,
        error.message,
        status=error.status if status is None else status,
        detail=error.detail,
        request=error.request,
        response=error.response,
        screen=error.screen,
    )
    renamed.__cause__ = error
    return renamed


class DeadlockError(RuntimeError):
    """A Command callback returned a chain that waits on its own result."""

    name = "DeadlockError"


class CancelError(Exception):
    """A parent Command was cancelled before this Command could run."""

    name = "CancelError"


__all__ = [
    "WebDriverError",
    "ERROR_CLASSES",
    "create_error",
    "error_for_status",
    "rename_error",
    "DeadlockError",
    "CancelError",
] + sorted(ERROR_CLASSES)
