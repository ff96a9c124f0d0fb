# tests/test_errors.py
import pytest
from selenium.common.exceptions import NoSuchElementException, TimeoutException, WebDriverException

from jsonwire import errors


def test_errors_are_selenium_exceptions():
    error = errors.error_for_status(7)
    assert isinstance(error, NoSuchElementException)
    assert isinstance(error, WebDriverException)
    assert error.name == "NoSuchElement"
    assert error.status == 7

    with pytest.raises(NoSuchElementException):
        raise error


def test_status_names_and_messages():
    error = errors.error_for_status(28)
    assert isinstance(error, errors.ScriptTimeout)
    assert isinstance(error, TimeoutException)
    assert error.message == "A script did not complete before its timeout expired."
    assert str(error) == error.message


def test_unknown_status_is_unknown_error():
    assert errors.error_for_status(999).name == "UnknownError"


def test_unregistered_name_keeps_name():
    error = errors.create_error("BrandNewFailure", "x")
    assert type(error) is errors.WebDriverError
    assert error.name == "BrandNewFailure"


def test_rename_keeps_metadata():
    original = errors.create_error("UnknownError", "boom", status=13, detail={"message": "boom"})
    renamed = errors.rename_error(original, "JavaScriptError", 17)
    assert isinstance(renamed, errors.JavaScriptError)
    assert renamed.message == "boom"
    assert renamed.status == 17
    assert renamed.detail == {"message": "boom"}
    assert renamed.__cause__ is original


def test_command_errors_are_not_protocol_errors():
    assert not issubclass(errors.DeadlockError, errors.WebDriverError)
    assert not issubclass(errors.CancelError, errors.WebDriverError)
