"""
Thread-scoped diagnostic mirror of the last argvault outcome.

Every public Parser operation clears the calling thread's context on entry
and records at most one fault (or the HELP_REQUESTED notice) before it
returns or raises. Nothing accumulates across calls and nothing is shared
between threads, so independent parsers used from different threads never see
each other's diagnostics.

Callers that prefer polling over exception handling can use the module
functions below (last_error_code(), last_error_message(), clear_error(), ...).
"""
import functools
import logging
import threading
from typing import NamedTuple

from .faults import FaultCode, ArgumentFault, MemoryFault, compose

logger = logging.getLogger(__name__)

_local = threading.local()


class ErrorContext(NamedTuple):
    """
    immutable snapshot of one thread's diagnostic record.
    """
    category: FaultCode = FaultCode.SUCCESS
    errno: int = 0
    location: tuple[str, int] | None = None
    argument: str | None = None
    detail: str | None = None
    message: str = ""
    occurred: bool = False

    @property
    def fatal(self):
        return self.category.fatal


_CLEAR = ErrorContext()


def current():
    """
    return the calling thread's context (SUCCESS when nothing was recorded).
    """
    return getattr(_local, "context", _CLEAR)


def clear():
    _local.context = _CLEAR


def record(outcome, /):
    """
    store a fault or notice as the calling thread's context.

    the previous record is replaced, never merged.
    """
    _local.context = ErrorContext(
        category=outcome.code,
        errno=outcome.code.errno,
        location=outcome.location,
        argument=outcome.argument,
        detail=outcome.detail,
        message=compose(outcome.code, outcome.argument, outcome.detail),
        occurred=True,
    )
    logger.debug("recorded %s", _local.context.message)
    return _local.context


def _origin(error):
    """
    (function name, line number) of the innermost frame that raised `error`.
    """
    traceback = error.__traceback__
    while traceback.tb_next is not None:
        traceback = traceback.tb_next
    return traceback.tb_frame.f_code.co_name, traceback.tb_lineno

def operation(function):
    """
    decorate a public operation with the clear-then-record contract.

    - the context is cleared on entry;
    - an ArgumentFault escaping the operation is recorded, then re-raised;
    - a MemoryError is translated into a MemoryFault naming no argument.
    """

    @functools.wraps(function)
    def wrapper(*args, **kwargs):
        clear()
        try:
            return function(*args, **kwargs)
        except ArgumentFault as fault:
            record(fault)
            raise
        except MemoryError as error:
            fault = MemoryFault("Memory allocation failed", location=_origin(error))
            record(fault)
            raise fault from error

    return wrapper


def last_error():
    return current()


def last_error_category():
    return current().category


def last_error_code():
    """
    mirrored OS error code of the last outcome (0 on success or help).
    """
    return current().errno


def last_error_message():
    """
    composed message of the last outcome, or an empty string.
    """
    return current().message


def last_error_argument():
    return current().argument or ""


def error_occurred():
    return current().occurred


def error_is_fatal():
    return current().fatal


def clear_error():
    """
    reset the calling thread's context to SUCCESS (idempotent).
    """
    clear()


__all__ = (
    "ErrorContext",
    "last_error",
    "last_error_category",
    "last_error_code",
    "last_error_message",
    "last_error_argument",
    "error_occurred",
    "error_is_fatal",
    "clear_error",
)
