"""
Arglet helpers shared by the schema and coercion layers.

- Unset: "not provided" marker for keyword defaults where None is a real value.
- coalesce(): resolve Unset to a fallback.
- rename(): stable names for the wrappers generated by the schema metaclass.
- mirror(): read-only properties over private descriptor fields.
"""
import builtins
import functools
from collections.abc import Sequence, Mapping, Set
from types import MappingProxyType
from typing import final

from rich.text import Text


@final
class UnsetType:
    """
    Type of the Unset singleton; falsy, and usable on the right of a PEP 604
    union so sanitizers can write isinstance(x, str | Unset).
    """

    def __ror__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __rich__(self):
        return Text(repr(self), style="dim")

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")


Unset = UnsetType()


def coalesce(object, default=None, /):
    # only Unset is replaced: None, 0 and "" are kept
    return default if object is Unset else object


def rename(*parameters):
    """
    rename(callable, name) sets __name__/__qualname__ and returns callable;
    rename(name) returns a decorator doing the same.
    """
    match parameters:
        case (callable, str(name)):
            if not builtins.callable(callable):
                raise TypeError("rename() first argument must be callable")
            callable.__qualname__ = callable.__name__ = name
            return callable
        case (str(name),):
            return functools.partial(_renamed, name)
        case _:
            raise TypeError("rename() takes a name, optionally preceded by a callable")


def _renamed(name, callable, /):
    if not builtins.callable(callable):
        raise TypeError("@rename() must be applied to a callable")
    return rename(callable, name)


def _freeze(object):
    if isinstance(object, Sequence) and not isinstance(object, str):
        return tuple(object)
    if isinstance(object, Mapping):
        return MappingProxyType(object)
    if isinstance(object, Set):
        return frozenset(object)
    return object


def mirror(name, /):
    """
    Read-only property over "_<name>"; containers come back as tuple,
    MappingProxyType or frozenset so registered collections stay untouched.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return _freeze(getattr(self, "_" + name))

    return property(getter)


__all__ = (
    "coalesce",
    "rename",
    "mirror",
    "UnsetType",
    "Unset",
)
