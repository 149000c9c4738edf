"""
Argvault faults (errors and notices) and rendering.

Scope
- FaultCode: the fixed category taxonomy shared by every core operation, with
  fatal/non-fatal classification and the mirrored OS error code.
- ArgumentFault: base exception for fatal outcomes; one subclass per fatal
  category. A fault knows its argument name, its detail text, where it was
  raised, and how to render and surface itself.
- HelpRequested: the non-fatal notice recorded when help is shown.
- trigger(): central entry point to surface a fault (raise, or print and exit
  in shell mode).

Message template
- "[LABEL] Argument 'NAME': detail."
- the argument clause is omitted when there is no argument name, the detail
  when there is no detail text.

Integration
- Parser operations raise faults; argvault.context mirrors the last one per
  thread so callers can poll last_error_message() instead of catching.
"""
import copy
import errno
import sys
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.text import Text

from .utils import Unset, coalesce

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault categories (stable identifiers).

    SUCCESS and HELP_REQUESTED are non-fatal: the caller may continue or exit
    cleanly. Every other category is fatal: parsing stops and no value of the
    offending token is committed.
    """
    SUCCESS         = 0
    MEMORY          = 1
    SYNTAX          = 2
    TYPE            = 3
    REQUIRED        = 4
    VALIDATION      = 5
    INTERNAL        = 6
    CONFIG          = 7
    RANGE           = 8
    UNKNOWN_ARG     = 9
    DUPLICATE       = 10
    HELP_REQUESTED  = 11

    @property
    def label(self):
        """
        label used inside composed messages (e.g. "SYNTAX_ERROR").
        """
        return _LABELS[self]

    @property
    def fatal(self):
        return self not in (FaultCode.SUCCESS, FaultCode.HELP_REQUESTED)

    @property
    def errno(self):
        """
        OS error code mirrored for this category (0 when non-fatal).
        """
        return _ERRNOS.get(self, errno.EINVAL)

    def normalize(self):
        """
        return a host-normalized label for this code.

        the host application can provide a __codes__ mapping in __main__ to
        override labels; without it, the built-in label is returned.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.label))


_LABELS = {
    FaultCode.SUCCESS: "SUCCESS",
    FaultCode.MEMORY: "MEMORY_ERROR",
    FaultCode.SYNTAX: "SYNTAX_ERROR",
    FaultCode.TYPE: "TYPE_ERROR",
    FaultCode.REQUIRED: "REQUIRED_ERROR",
    FaultCode.VALIDATION: "VALIDATION_ERROR",
    FaultCode.INTERNAL: "INTERNAL_ERROR",
    FaultCode.CONFIG: "CONFIG_ERROR",
    FaultCode.RANGE: "RANGE_ERROR",
    FaultCode.UNKNOWN_ARG: "UNKNOWN_ARGUMENT",
    FaultCode.DUPLICATE: "DUPLICATE_ARGUMENT",
    FaultCode.HELP_REQUESTED: "HELP_REQUESTED",
}

_ERRNOS = {
    FaultCode.SUCCESS: 0,
    FaultCode.HELP_REQUESTED: 0,
    FaultCode.MEMORY: errno.ENOMEM,
    FaultCode.RANGE: errno.ERANGE,
    FaultCode.DUPLICATE: errno.EEXIST,
}


def compose(code, argument=None, detail=None):
    """
    build the composite message for a category, argument name and detail.

    >>> compose(FaultCode.SYNTAX, "-n", "List argument requires at least one value")
    "[SYNTAX_ERROR] Argument '-n': List argument requires at least one value."
    >>> compose(FaultCode.RANGE, None, "Size addition overflow")
    '[RANGE_ERROR] Size addition overflow.'
    """
    label = code.normalize()
    # details are stored without their final period; the template adds it
    detail = (detail or "").rstrip(". ")
    if detail:
        if argument:
            return "[%s] Argument '%s': %s." % (label, argument, detail)
        return "[%s] %s." % (label, detail)
    if argument:
        return "[%s] Argument '%s'." % (label, argument)
    return "[%s]" % label


def _palette(colorful):
    main = __import__("__main__")

    styles = defaultdict(str, {
        # header parts
        "prog-name": "bold #E6E6F0",  # near-white program name
        "code": "bold #00E5FF",  # neon cyan category label
        "error-title": "bold #FF4DA6",  # pinky title

        # body
        "error-message": "#C8C8D0",  # soft light gray message
        "argument": "bold #FFD600",  # amber argument name
        "hint-arrow": "#9CE19C dim",  # gentle green arrow
        "hint": "italic #9CE19C",  # gentle green hint text
    } | getattr(main, "__styles__", {}))

    return lambda style: styles[style] if colorful else ""


class ArgumentFault(Exception):
    """
    base class of every fatal argvault outcome.

    attributes
    - code: FaultCode of the subclass.
    - argument: offending argument name (short/long name, or the raw token), or None.
    - detail: human detail text, or None.
    - options: read-only mapping of rendering/surfacing options
      (prog, hint, colorful, shell, location, ...).
    """
    code = FaultCode.INTERNAL
    title = "internal error"

    def __init__(self, detail=Unset, /, argument=Unset, **options):
        assert isinstance(detail, str | Unset)
        self.detail = coalesce(detail)
        self.argument = coalesce(argument)
        self.options = MappingProxyType(options)
        super().__init__(self.message)

    @property
    def message(self):
        return compose(self.code, self.argument, self.detail)

    @property
    def fatal(self):
        return self.code.fatal

    @property
    def location(self):
        """
        (function name, line number) where the fault was raised, if known.
        """
        if "location" in self.options:
            return self.options["location"]
        traceback = self.__traceback__
        if traceback is None:
            return None
        while traceback.tb_next is not None:
            traceback = traceback.tb_next
        return traceback.tb_frame.f_code.co_name, traceback.tb_lineno

    def __str__(self):
        return self.message

    def __rich__(self):
        styler = _palette(self.options.get("colorful", True))

        header = Text.assemble(
            "[ ",
            Text(str(self.options.get("prog", "argvault")), styler("prog-name")),
            " — ",
            Text(self.code.normalize(), styler("code")),
            " | ",
            Text(self.title.title(), styler("error-title")),
            " ]"
        )

        message = Text(self.detail or self.message, styler("error-message"))
        if self.argument:
            message = Text.assemble(
                Text(self.argument, styler("argument")), Text(": ", styler("error-message")), message
            )

        if not self.options.get("hint"):
            return Group(header, message)
        hint = Text.assemble(Text(" → ", styler("hint-arrow")), Text(self.options["hint"], styler("hint")))
        return Group(header, message, hint)

    def __trigger__(self):
        if not self.options.get("shell", False):
            raise self
        console.print(self)
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        fault = type(self)(coalesce(self.detail, Unset), coalesce(self.argument, Unset), **{**self.options, **overrides})
        fault.__traceback__ = self.__traceback__
        fault.__cause__ = self.__cause__
        return fault


class MemoryFault(ArgumentFault):
    code = FaultCode.MEMORY
    title = "out of memory"


class SyntaxFault(ArgumentFault):
    code = FaultCode.SYNTAX
    title = "bad command line"


class TypeFault(ArgumentFault):
    code = FaultCode.TYPE
    title = "bad value"


class RequiredFault(ArgumentFault):
    code = FaultCode.REQUIRED
    title = "missing argument"


class ValidationFault(ArgumentFault):
    code = FaultCode.VALIDATION
    title = "invalid definition"


class InternalFault(ArgumentFault):
    code = FaultCode.INTERNAL
    title = "internal error"


class ConfigFault(ArgumentFault):
    code = FaultCode.CONFIG
    title = "bad configuration"


class RangeFault(ArgumentFault):
    code = FaultCode.RANGE
    title = "value out of range"


class UnknownArgumentFault(ArgumentFault):
    code = FaultCode.UNKNOWN_ARG
    title = "unknown argument"


class DuplicateFault(ArgumentFault):
    code = FaultCode.DUPLICATE
    title = "duplicate argument"


class HelpRequested:
    """
    non-fatal notice: help was rendered and parsing stopped.

    it is never raised; parse() returns an Outcome and the notice is mirrored
    into the thread's error context under FaultCode.HELP_REQUESTED.
    """
    code = FaultCode.HELP_REQUESTED
    fatal = False
    argument = None

    def __init__(self, detail, /, location=None):
        self.detail = detail
        self.location = location

    @property
    def message(self):
        return compose(self.code, None, self.detail)

    def __repr__(self):
        return "%s(%r)" % (type(self).__name__, self.detail)


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see ArgumentFault).
    - options are merged into the fault via copy.replace() before triggering.
    - in shell mode the fault is printed with rich and the process exits with
      status 1; otherwise the fault is raised.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


__all__ = (
    "FaultCode",
    "ArgumentFault",
    "MemoryFault",
    "SyntaxFault",
    "TypeFault",
    "RequiredFault",
    "ValidationFault",
    "InternalFault",
    "ConfigFault",
    "RangeFault",
    "UnknownArgumentFault",
    "DuplicateFault",
    "HelpRequested",
    "compose",
    "trigger",
)
