"""
Argvault parser: register typed options, scan argv, read values back.

What this module provides
- Parser: owns a Registry of arguments and drives the token scan.
  • Registration: add_argument() for any type (optionally with a GNU suffix),
    add_list_argument() for list types (optionally with a delimiter).
  • Parsing: parse(argv) classifies each token, converts values into the
    argument stores, then checks required arguments.
  • Accessors: typed getters for scalars, fresh caller-owned lists for list
    arguments.
  • Help: print_help()/format_help() render the registered arguments.
- Outcome: how a successful parse() ended (parsed, help requested, or no
  arguments at all).

Token grammar
- "-x VALUE", "--long VALUE"            scalar options
- "-x", "--long"                         booleans (presence means true)
- "-x V1 V2 ...", "-x V1,V2"             lists (greedy; delimiter optional)
- "--long=VALUE", "-x:VALUE"             glued form, only for arguments
                                         registered with that suffix character
- "-h", "--help", "/?" ...               help aliases (while help is installed)
Bare positional values are not supported: a token that is neither an option
nor the value of the preceding option is a syntax fault.

Failure model
- Fatal problems raise an ArgumentFault subclass and stop the scan; values
  from earlier tokens stay committed, the failing token commits nothing.
- Help and empty invocations are non-fatal: they return an Outcome and leave
  a HELP_REQUESTED notice in the thread's error context.
- With shell=True, a fatal fault is printed with the help text to stderr and
  the process exits with status 1 instead of raising.

Quick start
    from argvault import Parser, ArgType

    parser = Parser("Calculate average of a list of integers.")
    parser.add_argument("-a", "--average", ArgType.BOOL, "Display the average")
    parser.add_list_argument("-n", "--numbers", ArgType.INT_LIST, "Integers to average")
    parser.add_argument("-r", "--round", ArgType.INT, "Decimal places", default=2, suffix="=")

    parser.parse(["prog", "-n", "1", "2", "3", "-a", "--round=1"])
    parser.get_int_list("-n")   # [1, 2, 3]
"""
import enum
import logging
import re
import shlex
import sys

from rich.console import Console

from . import helper
from .arguments import Argument, Registry, is_help_alias
from .context import operation, record
from .faults import *
from .faults import console as stderr
from .utils import *
from .values import ArgType, convert, convert_element, split_delimited

logger = logging.getLogger(__name__)

console = Console()

_PREFIX = re.compile(r"[^A-Za-z0-9]*")


def _strip_prefix(text, /):
    """
    drop the leading run of non-alphanumeric characters ("-", "--", "/", ...).
    """
    return text[_PREFIX.match(text).end():]


class Outcome(enum.Enum):
    """
    how a non-fatal parse() ended.

    HELP_REQUESTED and NO_ARGUMENTS both render help and record a
    HELP_REQUESTED notice; they are kept apart so callers never need to
    inspect message text to tell them from each other.
    """
    PARSED = "parsed"
    HELP_REQUESTED = "help-requested"
    NO_ARGUMENTS = "no-arguments"


class Parser:
    """
    A flat, option-only command-line parser with typed value storage.

    Options
    - description: text shown under the usage line in help.
    - add_help: install "-h"/"--help" and recognize the help aliases. While
      installed, registering another help alias is silently skipped.
    - shell: print fatal faults (with help) to stderr and exit(1) instead of
      raising them.
    - colorful: style help and fault output.
    - console: rich Console used for help output (stdout by default).

    Not thread-safe: one parser must not be registered-into or parsed from
    several threads at once.
    """

    description = mirror("description")
    add_help = mirror("add_help")
    shell = mirror("shell")
    colorful = mirror("colorful")

    @operation
    def __init__(self, description=Unset, /, *, add_help=True, shell=False, colorful=True, console=Unset):
        if not isinstance(description, str | None | UnsetType):
            raise ConfigFault("Parser description must be a string")
        if console is not Unset and not isinstance(console, Console):
            raise ConfigFault("Parser console must be a rich Console")

        self._description = coalesce(description)
        self._add_help = bool(add_help)
        self._shell = bool(shell)
        self._colorful = bool(colorful)
        self._console = console
        self._prog = None
        self._registry = Registry()

        if self._add_help:
            self._registry.add(Argument("-h", "--help", ArgType.BOOL, "Show this help message and exit"))

    @property
    def prog(self):
        """
        program name: __prog__ from __main__ when defined, else argv[0] of the last parse.
        """
        return getattr(__import__("__main__"), "__prog__", self._prog)

    @property
    def arguments(self):
        return self._registry.arguments

    @property
    def registry(self):
        return self._registry

    def describe(self):
        """
        ordered (short, long, type, help, required) records for help formatters.
        """
        return self._registry.describe()

    def find(self, name, /):
        return self._registry.find(name)

    @operation
    def add_argument(
            self,
            short=Unset,
            long=Unset,
            /,
            type=ArgType.BOOL,
            help=Unset,
            required=False,
            default=Unset,
            *,
            suffix=Unset
    ):
        """
        register an argument of any type.

        parameters
        - short, long: names, at least one non-empty (e.g. "-r", "--round").
        - type: ArgType (or its string value, e.g. "int").
        - help: description for help output.
        - required: parse() raises RequiredFault when it was never supplied.
        - default: initial value, type-checked and deep-copied.
        - suffix: GNU glue character; "=" accepts "--round=5" and "-r=5".

        returns the new Argument, or None when a help alias was skipped.
        """
        if self._add_help and (is_help_alias(short) or is_help_alias(long)):
            logger.debug("skipping registration of help alias %r/%r", short, long)
            return None

        argument = Argument(short, long, self._resolve_type(type, short, long), help, required, default, suffix=suffix)
        return self._registry.add(argument)

    @operation
    def add_list_argument(
            self,
            short=Unset,
            long=Unset,
            /,
            type=ArgType.STRING_LIST,
            help=Unset,
            required=False,
            *,
            suffix=Unset,
            delimiter=Unset
    ):
        """
        register a list argument.

        parameters
        - type: INT_LIST, DOUBLE_LIST or STRING_LIST.
        - delimiter: splits one token into several elements ("1,2,3" with ",");
          when omitted, every token is one element.
        - suffix: GNU glue character; the glued remainder is split on the
          delimiter (a space when no delimiter is set).

        other parameters as in add_argument().
        """
        if (type := self._resolve_type(type, short, long)).is_list is False:
            raise InternalFault("Invalid list type", coalesce(short) or coalesce(long) or None)

        if self._add_help and (is_help_alias(short) or is_help_alias(long)):
            logger.debug("skipping registration of help alias %r/%r", short, long)
            return None

        argument = Argument(short, long, type, help, required, suffix=suffix, delimiter=delimiter)
        return self._registry.add(argument)

    @staticmethod
    def _resolve_type(type, short, long):
        if isinstance(type, ArgType):
            return type
        try:
            return ArgType(type)
        except ValueError:
            raise InternalFault("Unknown argument type %r" % (type,), coalesce(short) or coalesce(long) or None) from None

    @operation
    def parse(self, argv=None, /):
        """
        scan argv (argv[0] is the program name) and store the values.

        argv may be a sequence of strings or a single shell-like string, which
        is split with shlex. when omitted, sys.argv is used.

        returns an Outcome; raises an ArgumentFault subclass on fatal input
        (or prints it and exits when the parser runs in shell mode).
        """
        if argv is None:
            argv = sys.argv

        try:
            if isinstance(argv, str):
                try:
                    argv = shlex.split(argv)
                except ValueError as error:
                    raise SyntaxFault("Malformed command line: %s" % error) from None
            return self._parseargs(list(argv))
        except ArgumentFault as fault:
            if self._shell:
                self._abort(fault)
            raise

    def _parseargs(self, tokens):
        """
        the token scan.

        classification order per token (first match wins)
        1. glued form of an argument with a suffix character;
        2. help alias (only while the built-in help is installed);
        3. exact registered name.
        anything else is an unexpected value.
        """
        if not tokens:
            raise InternalFault("Invalid parser or argv")
        if not all(isinstance(token, str) for token in tokens):
            raise InternalFault("Command-line tokens must be strings")

        self._prog = tokens[0]

        if len(tokens) == 1:
            self._render_help()
            return self._notify(Outcome.NO_ARGUMENTS, "No arguments provided, showing help")

        index = 1
        while index < len(tokens):
            token = tokens[index]

            if glued := self._match_glued(token):
                argument, value = glued
                logger.debug("token %r: glued value %r for %r", token, value, argument.label)
                self._assign_glued(argument, value)
                index += 1
                continue

            if self._add_help and is_help_alias(token):
                logger.debug("token %r: help alias", token)
                self._render_help()
                return self._notify(Outcome.HELP_REQUESTED, "Help requested by user")

            if (argument := self._registry.find(token)) is None:
                raise SyntaxFault("Unexpected value (did you forget an option?)", token)

            logger.debug("token %r: %s argument %r", token, argument.type.value, argument.label)
            if argument.type is ArgType.BOOL:
                argument.store.assign(True)
                argument.mark()
                index += 1
            elif argument.type.is_list:
                index = self._consume_list(argument, tokens, index)
            else:
                index = self._consume_scalar(argument, tokens, index)

        for argument in self._registry:
            if argument.required and not argument.set:
                raise RequiredFault("Required argument not provided", argument.label)

        return Outcome.PARSED

    def _match_glued(self, token):
        """
        find the argument whose glued form `token` is, with its value text.

        the part before the argument's suffix character, without its leading
        non-alphanumeric run, must equal one of the argument's names without
        theirs: "--round=5" and "-round=5" both match "--round" with "=".
        """
        for argument in self._registry:
            if argument.suffix is None:
                continue
            if (position := token.find(argument.suffix)) <= 0:
                continue
            offset = len(token) - len(_strip_prefix(token))
            if offset >= position:
                continue
            name = token[offset:position]
            if any(_strip_prefix(candidate) == name for candidate in argument.names):
                return argument, token[position + 1:]
        return None

    def _assign_glued(self, argument, value):
        if argument.type is ArgType.BOOL:
            argument.store.assign(convert(ArgType.BOOL, value or "true", argument.label))
        elif argument.type.is_list:
            argument.store.extend(split_delimited(argument.type, value, argument.delimiter or " ", argument.label))
        else:
            argument.store.assign(convert(argument.type, value, argument.label))
        argument.mark()

    def _consume_list(self, argument, tokens, index):
        """
        greedily take list elements after tokens[index].

        stops at the end of input or at the next registered name. elements are
        staged and committed only when every consumed token converted.
        returns the index of the first unconsumed token.
        """
        delimiter = argument.delimiter
        staged = []
        cursor = index + 1

        while cursor < len(tokens) and not self._registry.is_argument(tokens[cursor]):
            value = tokens[cursor]
            if delimiter not in (None, " ") and delimiter in value:
                staged.extend(split_delimited(argument.type, value, delimiter, argument.label))
            else:
                staged.append(convert_element(argument.type, value, argument.label))
            cursor += 1

        if not staged:
            raise SyntaxFault("List argument requires at least one value", argument.label)

        argument.store.extend(staged)
        argument.mark()
        return cursor

    def _consume_scalar(self, argument, tokens, index):
        cursor = index + 1
        if cursor >= len(tokens):
            raise SyntaxFault("Option requires a value but none provided", argument.label)
        if self._registry.is_argument(tokens[cursor]):
            raise SyntaxFault("Option requires a value", argument.label)

        argument.store.assign(convert(argument.type, tokens[cursor], argument.label))
        argument.mark()
        return cursor + 1

    def _notify(self, outcome, detail):
        caller = sys._getframe(1)
        record(HelpRequested(detail, location=(caller.f_code.co_name, caller.f_lineno)))
        return outcome

    def _abort(self, fault):
        """
        shell mode: show the fault and the help text on stderr, then exit(1).
        """
        record(fault)
        self._render_help(stderr)
        trigger(fault, shell=True, prog=self.prog or "argvault", colorful=self._colorful)

    def _lookup(self, name, *types):
        if (argument := self._registry.find(name)) is None:
            raise UnknownArgumentFault("Unknown argument", name if isinstance(name, str) else repr(name))
        if types and argument.type not in types:
            raise InternalFault(
                "Argument is %s, not %s" % (argument.type.value, " or ".join(type.value for type in types)),
                argument.label
            )
        return argument

    @operation
    def get(self, name, /):
        """
        value of any argument: a scalar, or a fresh list for list arguments.
        """
        return self._lookup(name).store.snapshot()

    @operation
    def is_set(self, name, /):
        return self._lookup(name).set

    @operation
    def get_int(self, name, /):
        return self._lookup(name, ArgType.INT).store.snapshot()

    @operation
    def get_double(self, name, /):
        return self._lookup(name, ArgType.DOUBLE).store.snapshot()

    @operation
    def get_string(self, name, /):
        """
        string value, or None when neither supplied nor defaulted.
        """
        return self._lookup(name, ArgType.STRING).store.snapshot()

    @operation
    def get_bool(self, name, /):
        return self._lookup(name, ArgType.BOOL).store.snapshot()

    @operation
    def get_list_count(self, name, /):
        return len(self._lookup(name, ArgType.INT_LIST, ArgType.DOUBLE_LIST, ArgType.STRING_LIST).store)

    @operation
    def get_int_list(self, name, /):
        """
        fresh, caller-owned copy of an INT_LIST argument's elements.
        """
        return self._lookup(name, ArgType.INT_LIST).store.snapshot()

    @operation
    def get_double_list(self, name, /):
        return self._lookup(name, ArgType.DOUBLE_LIST).store.snapshot()

    @operation
    def get_string_list(self, name, /):
        return self._lookup(name, ArgType.STRING_LIST).store.snapshot()

    def _render_help(self, target=Unset):
        target = coalesce(target, coalesce(self._console, console))
        target.print(helper.render(self.describe(), self.prog, self._description, colorful=self._colorful))

    @operation
    def print_help(self, console=Unset):
        """
        print help to `console` (default: the parser's console, else stdout).
        """
        if console is not Unset and not isinstance(console, Console):
            raise ConfigFault("print_help() argument must be a rich Console")
        self._render_help(console)

    @operation
    def format_help(self, width=100):
        """
        help as plain text.
        """
        return helper.format(self.describe(), self.prog, self._description, width=width)

    def __len__(self):
        return len(self._registry)

    def __iter__(self):
        return iter(self._registry)

    def __contains__(self, name):
        return name in self._registry

    def __repr__(self):
        return "Parser(description=%r, arguments=%d, prog=%r)" % (self._description, len(self._registry), self._prog)


__all__ = (
    "Parser",
    "Outcome",
)
