"""
Typed value storage and text conversion.

Overview
- ArgType: the declared type of an argument (three scalar kinds, bool, and
  three list kinds).
- ScalarStore / ListStore: the tagged storage cell owned by each argument.
  A scalar store holds exactly one converted value; a list store owns a
  growable list whose order is the order the elements appeared on the
  command line (or inside a delimited token).
- to_int / to_double / to_bool: strict text conversion. Failures raise
  TypeFault (malformed text) or RangeFault (well-formed but out of range).
- split_delimited: split one token on a list delimiter and convert each
  sub-field.

Conversion rules
- integers: optional sign and decimal digits only, surrounding C whitespace
  allowed, 32-bit signed range. Digit runs too long for any 32-bit value are
  refused before conversion.
- doubles: decimal notation with optional exponent, or C99 hexadecimal
  notation ("0x1p3"), surrounding C whitespace allowed; NaN/Infinity spellings
  are refused, and so are range errors: overflow, and underflow of a non-zero
  literal to zero or to a subnormal value.
- booleans: true/1/yes/on/enable/enabled and false/0/no/off/disable/disabled,
  case-insensitive.
"""
import copy
import enum
import math
import re
import sys

from .faults import TypeFault, RangeFault, SyntaxFault, InternalFault
from .utils import bounded_add

INT_MIN = -2 ** 31
INT_MAX = 2 ** 31 - 1

# decimal digits of INT_MIN, sign excluded
INT_DIGITS = 10

# C isspace() set; str.strip() would also eat unicode spaces
WHITESPACE = " \t\n\v\f\r"

# bounded scratch sizes for delimited numeric sub-fields (terminator included)
INT_FIELD_SIZE = 32
DOUBLE_FIELD_SIZE = 64
BOOL_TEXT_SIZE = 64

TRUE_SPELLINGS = frozenset({"true", "1", "yes", "on", "enable", "enabled"})
FALSE_SPELLINGS = frozenset({"false", "0", "no", "off", "disable", "disabled"})

_INTEGER = re.compile(r"[+-]?[0-9]+")
_DOUBLE = re.compile(r"[+-]?(?:(?P<digits>[0-9]+\.?[0-9]*|\.[0-9]+))(?:[eE][+-]?[0-9]+)?")
_HEXADECIMAL = re.compile(
    r"[+-]?0[xX](?P<digits>[0-9a-fA-F]+\.?[0-9a-fA-F]*|\.[0-9a-fA-F]+)(?:[pP][+-]?[0-9]+)?"
)


class ArgType(enum.Enum):
    """
    declared type of an argument.

    list kinds expose their element kind through `element`; scalar kinds
    return themselves.
    """
    INT = "int"
    DOUBLE = "double"
    STRING = "string"
    BOOL = "bool"
    INT_LIST = "int-list"
    DOUBLE_LIST = "double-list"
    STRING_LIST = "string-list"

    @property
    def is_list(self):
        return self in (ArgType.INT_LIST, ArgType.DOUBLE_LIST, ArgType.STRING_LIST)

    @property
    def element(self):
        return {
            ArgType.INT_LIST: ArgType.INT,
            ArgType.DOUBLE_LIST: ArgType.DOUBLE,
            ArgType.STRING_LIST: ArgType.STRING,
        }.get(self, self)

    @property
    def zero(self):
        """
        value a scalar store holds when no default was supplied.
        """
        return {
            ArgType.INT: 0,
            ArgType.DOUBLE: 0.0,
            ArgType.STRING: None,
            ArgType.BOOL: False,
        }.get(self)


def to_int(text, /, argument=None):
    stripped = text.strip(WHITESPACE)
    if not _INTEGER.fullmatch(stripped):
        raise TypeFault("Invalid integer value", argument)
    # leading zeros are dropped so int() only ever sees a bounded digit run
    digits = stripped.lstrip("+-").lstrip("0")
    if len(digits) > INT_DIGITS:
        raise RangeFault("Integer value out of range", argument)
    value = -int(digits or "0") if stripped.startswith("-") else int(digits or "0")
    if not INT_MIN <= value <= INT_MAX:
        raise RangeFault("Integer value out of range", argument)
    return value


def to_double(text, /, argument=None):
    stripped = text.strip(WHITESPACE)
    if match := _HEXADECIMAL.fullmatch(stripped):
        try:
            value = float.fromhex(stripped)
        except OverflowError:
            raise RangeFault("Floating-point value out of range", argument) from None
        nonzero = re.search(r"[1-9a-fA-F]", match["digits"])
    elif match := _DOUBLE.fullmatch(stripped):
        value = float(stripped)
        nonzero = re.search(r"[1-9]", match["digits"])
    else:
        raise TypeFault("Invalid floating-point value", argument)

    if math.isinf(value) or math.isnan(value):
        raise RangeFault("Floating-point value out of range", argument)
    # a non-zero literal that lands on zero or below the normal range underflowed
    if nonzero and abs(value) < sys.float_info.min:
        raise RangeFault("Floating-point value out of range", argument)
    return value


def to_bool(text, /, argument=None):
    if len(text) >= BOOL_TEXT_SIZE:
        raise RangeFault("Boolean value too long", argument)
    lowered = text.lower()
    if lowered in TRUE_SPELLINGS:
        return True
    if lowered in FALSE_SPELLINGS:
        return False
    raise TypeFault("Invalid boolean value. Use: true/false, yes/no, 1/0, on/off, enable/disable", argument)


def convert(type, text, /, argument=None):
    """
    convert one token to the (element) type of an argument.
    """
    match type.element:
        case ArgType.INT:
            return to_int(text, argument)
        case ArgType.DOUBLE:
            return to_double(text, argument)
        case ArgType.BOOL:
            return to_bool(text, argument)
        case ArgType.STRING:
            return text
    raise InternalFault("Unknown argument type", argument)


def split_delimited(type, text, delimiter, /, argument=None):
    """
    split a token on `delimiter` and convert every non-empty sub-field.

    numeric sub-fields are limited to the bounded scratch size of their kind;
    an over-long sub-field is a RangeFault, never silently truncated. returns
    the converted elements, raising SyntaxFault when none were found.
    """
    if not type.is_list:
        raise InternalFault("Invalid list argument", argument)

    elements = []
    for field in text.split(delimiter):
        if not field:
            continue
        match type.element:
            case ArgType.INT:
                if len(field) >= INT_FIELD_SIZE:
                    raise RangeFault("List value too long for integer parsing", argument)
            case ArgType.DOUBLE:
                if len(field) >= DOUBLE_FIELD_SIZE:
                    raise RangeFault("List value too long for double parsing", argument)
        elements.append(convert_element(type, field, argument))

    if not elements:
        raise SyntaxFault("List requires values", argument)
    return elements


def convert_element(type, text, /, argument=None):
    """
    convert one list element, reporting failures as an invalid list value.
    """
    try:
        return convert(type, text, argument)
    except TypeFault:
        raise TypeFault("Invalid list value", argument) from None


def check_default(type, default, /, argument=None):
    """
    validate a registration default against the declared type.

    a wrong-typed default is a caller contract violation (InternalFault);
    the accepted value is returned deep-copied and normalized (ints given for
    doubles become floats, list defaults become lists).
    """
    if type.is_list:
        if isinstance(default, str | bytes) or not hasattr(default, "__iter__"):
            raise InternalFault("List default must be an iterable of elements", argument)
        return [check_default(type.element, element, argument) for element in default]

    match type:
        case ArgType.INT:
            if isinstance(default, bool) or not isinstance(default, int):
                raise InternalFault("Default value must be an integer", argument)
            if not INT_MIN <= default <= INT_MAX:
                raise InternalFault("Default integer out of range", argument)
            return default
        case ArgType.DOUBLE:
            if isinstance(default, bool) or not isinstance(default, int | float):
                raise InternalFault("Default value must be a number", argument)
            if isinstance(default, float) and not math.isfinite(default):
                raise InternalFault("Default value must be finite", argument)
            return float(default)
        case ArgType.BOOL:
            if not isinstance(default, bool):
                raise InternalFault("Default value must be a boolean", argument)
            return default
        case ArgType.STRING:
            if default is not None and not isinstance(default, str):
                raise InternalFault("Default value must be a string", argument)
            return copy.deepcopy(default)
    raise InternalFault("Unknown argument type", argument)


class ScalarStore:
    """
    storage cell for INT, DOUBLE, STRING and BOOL arguments.

    the cell always holds a value of the declared type: the default, the
    zero value of the type, or the last value parsed.
    """
    __slots__ = ("type", "value")

    def __init__(self, type, value):
        self.type = type
        self.value = value

    def assign(self, value):
        """
        replace the held value (last writer wins).
        """
        self.value = value

    def snapshot(self):
        return self.value

    def __repr__(self):
        return "ScalarStore(%s, %r)" % (self.type.value, self.value)


class ListStore:
    """
    storage cell for list arguments.

    elements are appended in command-line order; an empty list represents
    "no elements", the store itself is never absent.
    """
    __slots__ = ("type", "elements")

    def __init__(self, type, elements=()):
        self.type = type
        self.elements = list(elements)

    def extend(self, elements):
        """
        commit a batch of already-converted elements.
        """
        bounded_add(len(self.elements), len(elements))
        self.elements.extend(elements)

    def snapshot(self):
        """
        return a fresh, caller-owned copy of the elements.
        """
        return list(self.elements)

    def __len__(self):
        return len(self.elements)

    def __repr__(self):
        return "ListStore(%s, %r)" % (self.type.value, self.elements)


def new_store(type, default, /):
    """
    build the storage cell for a freshly registered argument.
    """
    if type.is_list:
        return ListStore(type, default)
    return ScalarStore(type, default)


__all__ = (
    "ArgType",
    "ScalarStore",
    "ListStore",
    "to_int",
    "to_double",
    "to_bool",
    "convert",
    "split_delimited",
    "convert_element",
    "check_default",
)
