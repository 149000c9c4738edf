r"""
Argvault argument definitions and the argument registry.

Overview
- Argument: one registered option. Identity is its short and/or long name;
  attributes are the declared ArgType, help text, required flag, "set" flag,
  optional GNU suffix character and optional list delimiter. Each argument
  owns exactly one value store (see argvault.values).
- Registry: the ordered collection of arguments. Registration order is the
  help/iteration order. Names are unique across the registry. Once
  HASH_THRESHOLD arguments exist, a HashIndex is built and kept in sync;
  below that, lookups scan the arguments linearly.

Introspection & representation
- ArgumentType metaclass exposes the fields listed in __introspectable__ as
  read-only properties (see utils.mirror) and provides stable
  __repr__/__rich_repr__ implementations.

Metadata (sanitized on construction)
- short/long: Unset | None | str. Empty strings count as absent; at least one
  name is required. Names cannot contain whitespace.
- type: ArgType.
- help: Unset | str (None when omitted).
- suffix/delimiter: Unset | one-character str.
- default: validated against the type and deep-copied into the store.

Validation highlights
- Missing names or a wrong-typed default are caller contract violations
  (InternalFault); malformed names, suffixes or delimiters are
  ValidationFault; a name bound to another argument is a DuplicateFault.
"""
import functools
import logging
import operator
import re
from typing import NamedTuple

from .faults import InternalFault, ValidationFault, DuplicateFault
from .hashing import HashIndex, HASH_THRESHOLD
from .utils import *
from .values import ArgType, check_default, new_store

logger = logging.getLogger(__name__)

# Spellings recognized as a help request on the command line.
HELP_ALIASES = ("-h", "-H", "--help", "--HELP", "/?", "/help", "/HELP")


def is_help_alias(name, /):
    return isinstance(name, str) and name in HELP_ALIASES


class ArgumentInfo(NamedTuple):
    """
    what a help formatter needs to know about one argument.
    """
    short: str | None
    long: str | None
    type: ArgType
    help: str | None
    required: bool


class ArgumentType(type):
    """
    Metaclass that exposes declared fields as read-only properties.

    Responsibilities
    - Install mirror() properties for all names in __introspectable__.
    - Provide stable, readable __repr__/__rich_repr__ implementations for
      diagnostics.
    """
    __introspectable__ = ()

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            """
            Return a concise, stable representation with key metadata.

            Example
            - argument(short='-n', long='--numbers', type=<ArgType.INT_LIST: 'int-list'>, ...)
            """
            return f"argument({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in type(self).__introspectable__:
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_names(metadata, /):
    """
    Internal: validate and normalize the short/long names.

    - Unset, None and "" all mean “no such name” and normalize to None.
    - At least one name must remain (InternalFault otherwise).
    - A name must be a string without whitespace (ValidationFault otherwise).
    """
    for key in ("short", "long"):
        name = coalesce(metadata[key])
        if name is not None and not isinstance(name, str):
            raise InternalFault(f"Argument {key} name must be a string")
        if name and re.search(r"\s", name):
            raise ValidationFault(f"Argument {key} name cannot contain whitespace", name)
        metadata[key] = name or None

    if not metadata["short"] and not metadata["long"]:
        raise InternalFault("Both short and long names are empty")


def _sanitize_characters(metadata, /):
    """
    Internal: validate the optional suffix and delimiter characters.
    """
    label = metadata["short"] or metadata["long"]
    for key in ("suffix", "delimiter"):
        character = coalesce(metadata[key])
        if character is not None and (not isinstance(character, str) or len(character) != 1):
            raise ValidationFault(f"Argument {key} must be a single character", label)
        metadata[key] = character

    if metadata["delimiter"] is not None and not metadata["type"].is_list:
        raise ValidationFault("Only list arguments accept a delimiter", label)


class Argument(metaclass=ArgumentType):
    """
    A registered command-line argument.

    Public fields are read-only views of sanitized metadata; the parser is the
    only writer of `set` and of the store's contents.
    """

    __introspectable__ = (
        "short",
        "long",
        "type",
        "help",
        "required",
        "set",
        "suffix",
        "delimiter",
    )

    def __init__(
            self,
            short=Unset,
            long=Unset,
            /,
            type=ArgType.BOOL,
            help=Unset,
            required=False,
            default=Unset,
            *,
            suffix=Unset,
            delimiter=Unset
    ):
        """
        Construct an argument definition with its value store.

        Parameters
        - short, long: names as typed on the command line (e.g. "-n", "--numbers").
        - type: ArgType of the stored value.
        - help: short description shown in help.
        - required: parse() fails with a RequiredFault when never supplied.
        - default: initial value (Unset → zero value of the type).
        - suffix: GNU glue character, e.g. "=" enables "--numbers=1,2".
        - delimiter: list element separator inside one token, e.g. ",".
        """
        metadata = {
            "short": short,
            "long": long,
            "type": type,
            "help": help,
            "required": bool(required),
            "suffix": suffix,
            "delimiter": delimiter,
        }
        if not isinstance(type, ArgType):
            raise InternalFault("Argument type must be an ArgType", coalesce(short) or coalesce(long) or None)
        _sanitize_names(metadata)
        _sanitize_characters(metadata)

        if not isinstance(help := metadata["help"], str | None | UnsetType):
            raise InternalFault("Argument help must be a string", metadata["short"] or metadata["long"])
        metadata["help"] = coalesce(help)

        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        self._set = False

        if default is Unset:
            default = [] if type.is_list else type.zero
        else:
            default = check_default(type, default, self.label)
        self._store = new_store(type, default)

    @property
    def label(self):
        """
        name used in messages: the short name when present, else the long one.
        """
        return self._short or self._long

    @property
    def names(self):
        return tuple(name for name in (self._short, self._long) if name)

    @property
    def store(self):
        return self._store

    def mark(self):
        """
        raise the "set" flag (a value was supplied on the command line).
        """
        self._set = True

    def info(self):
        return ArgumentInfo(self._short, self._long, self._type, self._help, self._required)


class Registry:
    """
    Ordered, name-unique collection of arguments with an auto-built index.

    Slots
    - every argument is addressed by its position in the registry; the hash
      index stores these positions, never the arguments themselves.

    Index policy
    - below HASH_THRESHOLD arguments: no index, linear scan;
    - at HASH_THRESHOLD: the index is built from every argument;
    - afterwards: each registration inserts its names into the index.
    """

    def __init__(self):
        self._arguments = []
        self._index = None

    @property
    def arguments(self):
        return tuple(self._arguments)

    @property
    def index(self):
        return self._index

    def add(self, argument, /):
        """
        append `argument`, keeping the index in sync.

        nothing is changed when a name is already taken or the index update
        fails: the registry keeps its prior state.
        """
        for name in argument.names:
            if self.find(name) is not None:
                raise DuplicateFault("Duplicate argument definition", name)

        self._arguments.append(argument)
        slot = len(self._arguments) - 1

        if self._index is not None:
            inserted = []
            try:
                for name in argument.names:
                    self._index.insert(name, slot)
                    inserted.append(name)
            except Exception:
                for name in inserted:
                    self._index.discard(name)
                self._arguments.pop()
                raise
        elif len(self._arguments) >= HASH_THRESHOLD:
            self.build_index()

        logger.debug("registered %r at slot %d", argument.label, slot)
        return argument

    def build_index(self):
        """
        build the hash index over every registered name (no-op when built).
        """
        if self._index is not None:
            return self._index

        index = HashIndex()
        for slot, argument in enumerate(self._arguments):
            for name in argument.names:
                index.insert(name, slot)
        self._index = index
        logger.debug("hash index built over %d arguments (%d keys)", len(self._arguments), len(index))
        return index

    def scan(self, name, /):
        """
        linear lookup, independent of the index.
        """
        for argument in self._arguments:
            if name in argument.names:
                return argument
        return None

    def find(self, name, /):
        """
        return the argument registered under `name`, or None.
        """
        if not isinstance(name, str) or not name:
            return None
        if self._index is None:
            return self.scan(name)
        slot = self._index.lookup(name)
        return None if slot is None else self._arguments[slot]

    def is_argument(self, name, /):
        return self.find(name) is not None

    def describe(self):
        """
        ordered ArgumentInfo records for a help formatter.
        """
        return tuple(argument.info() for argument in self._arguments)

    def __iter__(self):
        return iter(tuple(self._arguments))

    def __len__(self):
        return len(self._arguments)

    def __contains__(self, name):
        return self.is_argument(name)


__all__ = (
    "Argument",
    "ArgumentInfo",
    "Registry",
    "HELP_ALIASES",
    "is_help_alias",
)

# Remove the internal metaclass from the module namespace to avoid accidental
# exposure in docs, autocompletion, or star-imports. Not part of the public API.
del ArgumentType
