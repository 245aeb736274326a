"""
Arglet value coercion: settable destinations.

Overview
- A destination owns a value and knows how to update it from one textual
  occurrence: destination.set(text). Malformed text raises CoercionError
  carrying a short, human-readable reason; the engine wraps that reason with
  the option/argument name and the raw value.

- Kinds
  • Boolean: presence-style flag; accepts the literal vocabulary
    1/0, true/false, yes/no, on/off (case-sensitive). Empty text means True.
  • Scalar[_T]: converts the whole text with a callable (int, float, str, Path, ...).
    Empty text is a no-op and keeps the previous value.
  • Collection[_T]: parses one element per occurrence and appends/adds it, so
    repeated options accumulate in encounter order.
  • Mapping[_K, _V]: parses one "key=value" entry per occurrence.
  • Pair[_K, _V]: parses "key=value" into a 2-tuple (last occurrence wins).
  • Handler[_T]: coerces into a fresh destination each time and forwards the
    result to a callback.

- settable(hint) turns a type hint into the matching destination:
    bool → Boolean, list[int] → Collection, dict[str, int] → Mapping,
    tuple[str, int] → Pair, int → Scalar. Destinations pass through untouched.

Quick example:
    >>> from arglet.coercion import settable
    >>> numbers = settable(list[int])
    >>> numbers.set("1"); numbers.set("2")
    >>> numbers.value
    [1, 2]
"""
import functools
import typing
from abc import ABC, abstractmethod
from collections.abc import MutableMapping, MutableSequence, MutableSet

from .utils import *

TRUTHY = ("1", "true", "yes", "on")
FALSY = ("0", "false", "no", "off")


class CoercionError(ValueError):
    """
    Raised by a destination when a textual value cannot be coerced.

    The first argument is the reason, worded to be appended to a larger
    message (e.g. "can't parse 'x' as int").
    """

    @property
    def reason(self):
        return self.args[0] if self.args else ""


def is_boolean_literal(text, /):
    """
    True when text belongs to the boolean vocabulary (see TRUTHY / FALSY).
    """
    return text in TRUTHY or text in FALSY


def _boolean(text):
    if not text or text in TRUTHY:
        return True
    if text in FALSY:
        return False
    raise CoercionError('value %r is not one of "1", "0", "true", "false", "on", "off", "yes", "no"' % text)


def _typename(type):
    return getattr(type, "__name__", None) or repr(type)


def _convert(type, text, /, what="value"):
    """
    Convert a single textual token with a converter callable.

    bool uses the literal vocabulary instead of bool(str), which would make any
    non-empty string True.
    """
    if type is bool:
        return _boolean(text)
    try:
        return type(text)
    except CoercionError:
        raise
    except (ValueError, TypeError, ArithmeticError) as exception:
        raise CoercionError("can't parse %s %r as %s" % (what, text, _typename(type))) from exception


class Destination(ABC):
    """
    Base class of every settable destination.

    Contract
    - set(text) updates the held value from one textual occurrence or raises
      CoercionError.
    - value exposes the current value.
    - flag is True when the destination is boolean (this turns the owning
      option into a flag).
    """
    __slots__ = ("_value",)

    flag = False

    @property
    def value(self):
        return self._value

    @abstractmethod
    def set(self, text, /):
        raise NotImplementedError

    def __rich_repr__(self):
        yield "value", self._value

    def __repr__(self):
        return "%s(value=%r)" % (type(self).__name__, self._value)


class Boolean(Destination):
    __slots__ = ()

    flag = True

    def __init__(self, default=False):
        self._value = bool(default)

    def set(self, text, /):
        self._value = _boolean(text)


class Scalar[_T](Destination):
    """
    Single value converted by a callable; later occurrences overwrite earlier ones.
    """
    __slots__ = ("_type",)

    def __init__(self, type=str, default=None):
        if not callable(type):
            raise TypeError("scalar 'type' must be callable")
        self._type = type
        self._value = default

    def set(self, text, /):
        # empty text keeps the current (default) value
        if not text:
            return
        self._value = _convert(self._type, text)


class Collection[_T](Destination):
    """
    Growable container receiving one parsed element per occurrence.

    The factory must build a mutable sequence (append) or a mutable set (add).
    """
    __slots__ = ("_type",)

    def __init__(self, type=str, factory=list):
        if not callable(type):
            raise TypeError("collection 'type' must be callable")
        container = factory()
        if not isinstance(container, MutableSequence | MutableSet):
            raise TypeError("collection 'factory' must build a mutable sequence or set")
        self._type = type
        self._value = container

    def set(self, text, /):
        if not text:
            return
        element = _convert(self._type, text)
        if isinstance(self._value, MutableSet):
            self._value.add(element)
        else:
            self._value.append(element)


def _split(text, key, value):
    if "=" not in text:
        raise CoercionError("value %r is not key=value pair" % text)
    head, _, tail = text.partition("=")
    if not head:
        raise CoercionError("can't parse key in pair %r" % text)
    if not tail:
        raise CoercionError("can't parse value in pair %r" % text)
    return _convert(key, head, "key"), _convert(value, tail, "value")


class Mapping[_K, _V](Destination):
    __slots__ = ("_key", "_type")

    def __init__(self, key=str, value=str, factory=dict):
        if not callable(key) or not callable(value):
            raise TypeError("mapping 'key' and 'value' must be callable")
        container = factory()
        if not isinstance(container, MutableMapping):
            raise TypeError("mapping 'factory' must build a mutable mapping")
        self._key = key
        self._type = value
        self._value = container

    def set(self, text, /):
        key, value = _split(text, self._key, self._type)
        self._value[key] = value


class Pair[_K, _V](Destination):
    __slots__ = ("_first", "_second")

    def __init__(self, first=str, second=str, default=None):
        if not callable(first) or not callable(second):
            raise TypeError("pair 'first' and 'second' must be callable")
        self._first = first
        self._second = second
        self._value = default

    def set(self, text, /):
        self._value = _split(text, self._first, self._second)


class Handler[_T](Destination):
    """
    Forward every coerced occurrence to a callback.

    Each call to set() coerces the text into a fresh destination built from
    'type' (any hint accepted by settable) and then calls callback(value).
    A ValueError raised by the callback is reported as a coercion failure, so
    callbacks can validate; other exceptions propagate unchanged. Empty text
    leaves everything untouched for non-boolean types: the callback is not called.
    """
    __slots__ = ("_callback", "_type", "_flag")

    def __init__(self, callback, type=str):
        if not callable(callback):
            raise TypeError("handler 'callback' must be callable")
        if isinstance(type, Destination):
            raise TypeError("handler 'type' must be a type hint, not a destination")
        self._flag = settable(type).flag
        self._callback = callback
        self._type = type
        self._value = Unset

    @property
    def flag(self):
        return self._flag

    def set(self, text, /):
        destination = settable(self._type)
        if not text and not destination.flag:
            return
        destination.set(text)
        self._value = destination.value
        try:
            self._callback(destination.value)
        except ValueError as exception:
            raise CoercionError(str(exception)) from exception

    def __rich_repr__(self):
        yield "callback", self._callback
        yield "type", self._type


def handler(type=str, /):
    """
    Decorator building a Handler around the decorated callback.

        @handler(int)
        def on_level(level): ...
    """

    @rename("handler")
    def wrapper(callback, /):
        if not callable(callback):
            raise TypeError("@handler() must be applied to a callable")
        return Handler(callback, type)

    return wrapper


def _container(hint, abstract):
    return isinstance(hint, type) and issubclass(hint, abstract)


@functools.singledispatch
def settable(hint, /):
    """
    Resolve a type hint into a fresh destination.

    Rules
    - Destination instances are returned unchanged.
    - bool → Boolean()
    - list / list[T] / set[T] / deque[T] (mutable sequences and sets) → Collection(T)
    - dict / dict[K, V] (mutable mappings) → Mapping(K, V)
    - tuple[K, V] → Pair(K, V)
    - any other callable → Scalar(hint)

    Unparameterized containers use str elements.
    """
    origin = typing.get_origin(hint) or hint
    parameters = typing.get_args(hint)

    if hint is bool:
        return Boolean()
    if _container(origin, MutableMapping):
        return Mapping(*(parameters or (str, str)), factory=origin)
    if _container(origin, MutableSequence | MutableSet):
        return Collection(*(parameters or (str,)), factory=origin)
    if origin is tuple:
        if len(parameters) != 2 or Ellipsis in parameters:
            raise TypeError("only two-item tuple hints can be bound (e.g. tuple[str, int]), got %r" % (hint,))
        return Pair(*parameters)
    if callable(hint):
        return Scalar(hint)
    raise TypeError("cannot bind a destination for %r" % (hint,))


@settable.register
def _(hint: Destination, /):
    return hint


__all__ = (
    # Errors
    "CoercionError",

    # Destinations
    "Destination",
    "Boolean",
    "Scalar",
    "Collection",
    "Mapping",
    "Pair",
    "Handler",

    # Helpers
    "handler",
    "settable",
    "is_boolean_literal",

    # Constants
    "TRUTHY",
    "FALSY",
)
