"""
Helpers for describing and logging upstream failures, including exception groups.
"""

import logging


def _safe_str(obj) -> str:
    """
    Safely convert an object to string, handling cases where __str__ or __repr__ might fail.
    """
    try:
        return str(obj)
    except Exception:
        try:
            return repr(obj)
        except Exception:
            return f"<{type(obj).__name__} object (string conversion failed)>"


def _safe_get_exceptions(exception_group) -> list:
    try:
        return list(exception_group.exceptions)
    except Exception:
        return []


def describe_exception(exception: BaseException) -> str:
    """
    Describe an exception for a client-facing error body.

    httpx timeouts frequently carry an empty message, so the exception class
    name is used whenever there is no text. Exception groups list their
    sub-exceptions.

    Args:
        exception: The exception to describe

    Returns:
        A short, non-empty description
    """
    if exception is None:
        return "None"

    text = _safe_str(exception).strip() or type(exception).__name__

    sub_exceptions = (
        _safe_get_exceptions(exception) if hasattr(exception, "exceptions") else []
    )
    if not sub_exceptions:
        return text

    parts = [f"{type(sub).__name__}: {describe_exception(sub)}" for sub in sub_exceptions]
    return f"{text} (Sub-exceptions: {'; '.join(parts)})"


def log_exception_with_details(
    logger: logging.Logger,
    prefix: str,
    exception: BaseException,
    level: int = logging.ERROR,
) -> None:
    """
    Log an exception, one record per sub-exception for exception groups.

    Args:
        logger: The logger instance to use
        prefix: Prefix for the log message (e.g., "[Proxy]")
        exception: The exception to log
        level: The logging level to use (default: ERROR)
    """
    sub_exceptions = (
        _safe_get_exceptions(exception) if hasattr(exception, "exceptions") else []
    )
    if not sub_exceptions:
        logger.log(
            level,
            f"{prefix} Exception: {describe_exception(exception)}",
            exc_info=exception,
        )
        return

    logger.log(
        level,
        f"{prefix} Exception with {len(sub_exceptions)} sub-exceptions: {_safe_str(exception)}",
    )
    for i, sub_exc in enumerate(sub_exceptions):
        logger.log(
            level,
            f"{prefix} Sub-exception {i+1}: {type(sub_exc).__name__}: {describe_exception(sub_exc)}",
            exc_info=sub_exc,
        )
