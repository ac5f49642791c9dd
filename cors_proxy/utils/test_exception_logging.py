import logging
import sys

import httpx
import pytest

from cors_proxy.utils.exception_logging import (
    describe_exception,
    log_exception_with_details,
)


class BrokenStrException(Exception):
    """An exception that breaks when __str__ is called."""

    def __str__(self):
        raise RuntimeError("Cannot convert to string!")

    def __repr__(self):
        return "BrokenStrException(cannot convert to string)"


class MockExceptionGroup(Exception):
    """Stand-in for an exception group on interpreters without one."""

    def __init__(self, message, exceptions):
        super().__init__(message)
        self.exceptions = exceptions


def test_describe_plain_exception():
    assert describe_exception(ValueError("bad value")) == "bad value"


def test_describe_empty_message_uses_class_name():
    assert describe_exception(httpx.ReadTimeout("")) == "ReadTimeout"
    assert describe_exception(TimeoutError()) == "TimeoutError"


def test_describe_broken_str_falls_back_to_repr():
    assert (
        describe_exception(BrokenStrException())
        == "BrokenStrException(cannot convert to string)"
    )


def test_describe_group_lists_sub_exceptions():
    group = MockExceptionGroup(
        "unhandled errors", [httpx.ConnectError("refused"), httpx.ReadTimeout("")]
    )
    assert describe_exception(group) == (
        "unhandled errors (Sub-exceptions: ConnectError: refused; "
        "ReadTimeout: ReadTimeout)"
    )


@pytest.mark.skipif(sys.version_info < (3, 11), reason="ExceptionGroup needs 3.11")
def test_describe_builtin_exception_group():
    group = ExceptionGroup("task group", [ValueError("inner")])  # noqa: F821
    assert "ValueError: inner" in describe_exception(group)


def test_log_single_exception(caplog):
    logger = logging.getLogger("test_exception_logging")
    with caplog.at_level(logging.ERROR, logger="test_exception_logging"):
        log_exception_with_details(logger, "[Proxy]", httpx.ConnectError("refused"))

    assert len(caplog.records) == 1
    assert caplog.records[0].getMessage() == "[Proxy] Exception: refused"
    assert caplog.records[0].exc_info is not None


def test_log_exception_group(caplog):
    logger = logging.getLogger("test_exception_logging")
    group = MockExceptionGroup("two failures", [ValueError("a"), KeyError("b")])
    with caplog.at_level(logging.WARNING, logger="test_exception_logging"):
        log_exception_with_details(logger, "[Proxy]", group, level=logging.WARNING)

    messages = [record.getMessage() for record in caplog.records]
    assert messages[0] == "[Proxy] Exception with 2 sub-exceptions: two failures"
    assert messages[1] == "[Proxy] Sub-exception 1: ValueError: a"
    assert messages[2] == "[Proxy] Sub-exception 2: KeyError: 'b'"
    assert all(record.levelno == logging.WARNING for record in caplog.records)
