import builtins
import functools
import sys
from collections.abc import Sequence, Mapping, Set
from types import MappingProxyType
from typing import final


@final
class UnsetType:
    """
    Internal sentinel type for “not provided”.

    Argvault needs to tell apart an omitted parameter from a user-supplied
    falsy value: a default of 0, False, "" or None is a real default for a
    stored argument, whereas an omitted default means "use the zero value of
    the declared type".

    Typical use
    - Use Unset as a parameter default to signal “no user input”.
    - Downstream, call coalesce(value, default) to materialize a concrete value.
    """

    def __or__(self, other, /):
        """
        Support PEP 604 unions in annotations (e.g., str | UnsetType).
        """
        try:
            return type(self) | other
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        """
        Support reversed PEP 604 unions when UnsetType appears on the right.
        """
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    @functools.cache
    def __new__(cls):
        """
        Ensure a single instance for this sentinel type.
        """
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __init_subclass__(cls, **options):
        """
        Disallow subclassing to preserve sentinel semantics.
        """
        raise TypeError("type 'UnsetType' is not an acceptable base type")


def coalesce(object, default=None, /):
    """
    Resolve the Unset sentinel to a concrete default.

    Falsy values like None, 0, "" or [] are preserved as-is; only Unset is
    replaced.

    Examples
    - coalesce("-n", "--numbers") -> "-n"
    - coalesce(Unset, 0)          -> 0
    - coalesce(None, 0)           -> None
    """
    return object if object is not Unset else default


def rename(*parameters):
    """
    Set a stable __name__/__qualname__ on a callable, or return a decorator
    that will do so later.

    Forms
    - rename(callable, name) -> callable (renamed in place)
    - rename(name)           -> decorator

    Used for generated properties and wrappers so tracebacks and fault
    locations show meaningful names instead of "<lambda>" or "wrapper".
    """
    match len(parameters):
        case 2:
            callable, name = parameters
            if not builtins.callable(callable):
                raise TypeError("rename() first argument must be callable")
            if not isinstance(name, str):
                raise TypeError("rename() second argument must be a string")
            try:
                callable.__qualname__ = name
                callable.__name__ = name
            except (AttributeError, TypeError):
                raise TypeError("rename() first argument must be a updatable callable") from None
            return callable
        case 1:
            name, = parameters
            if not isinstance(name, str):
                raise TypeError("@rename() argument must be a string")

            def wrapper(callable):
                if not builtins.callable(callable):
                    raise TypeError("@rename() must be applied to a callable")
                return rename(callable, name)

            return rename(wrapper, "rename")
        case _:
            raise TypeError("rename takes 1 to 2 arguments but %d were given" % len(parameters))


def mirror(name, /):
    """
    Define a read-only property that mirrors a private backing attribute.

    The property reads "_{name}" from the instance. Containers are handed out
    as read-only snapshots (tuple / MappingProxyType / frozenset) so callers
    cannot mutate parser state through the public API.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        object = getattr(self, "_" + name)
        if isinstance(object, Sequence) and not isinstance(object, str):
            return tuple(object)
        if isinstance(object, Mapping):
            return MappingProxyType(object)
        if isinstance(object, Set):
            return frozenset(object)
        return object

    return property(getter)


def bounded_add(left, right, /, *, limit=sys.maxsize):
    """
    Add two sizes, refusing results above the platform size limit.

    Python integers never wrap, but the sizes computed here end up as
    container capacities; anything above sys.maxsize cannot be allocated and
    is reported as a RANGE fault before any container is grown.
    """
    from .faults import RangeFault

    if left < 0 or right < 0:
        raise RangeFault("Size operands cannot be negative")
    if left > limit - right:
        raise RangeFault("Size addition overflow")
    return left + right


def bounded_mul(left, right, /, *, limit=sys.maxsize):
    """
    Multiply two sizes, refusing results above the platform size limit.

    See bounded_add().
    """
    from .faults import RangeFault

    if left < 0 or right < 0:
        raise RangeFault("Size operands cannot be negative")
    if left > 0 and right > limit // left:
        raise RangeFault("Size multiplication overflow")
    return left * right


Unset = UnsetType()
"""
Internal sentinel for “not provided”.

Notes
- Singleton: there is only one Unset instance.
- Distinct from None: a string argument may legitimately default to None.
- Falsy: bool(Unset) is False.
"""


__all__ = (
    # Functions
    "coalesce",
    "rename",
    "mirror",
    "bounded_add",
    "bounded_mul",

    # Types
    "UnsetType",

    # Constants
    "Unset",
)
