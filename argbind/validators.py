r"""
Argbind value validators: checks run on every value once it has parsed.

Overview
- An argument lists its checks with validators=(...). The binder calls each
  one as validator(value, context) for every value that parses (once per
  element for collections) and reports a ValueError raised by the check as an
  InvalidValueError carrying the reason. Any callable with that signature can
  be used.
- The Validator classes below also tell, through accepts(descriptor), which
  value shapes they make sense for, so a schema pairing a pattern with an
  integer argument is rejected when it is resolved.

Built-in checks
- at_least(n), greater_than(n), at_most(n), less_than(n): numeric bounds.
- not_equal(value): one forbidden value, any shape.
- matches(pattern), not_matches(pattern): regular expression searched in the
  text of a string or path.
- not_empty(): strings and paths with at least one character.
- exists(kind), not_exists(kind): path looked up through the context's
  file system; kind is "file", "directory" or None for either.

Quick example:
    >>> class Options:
    ...     jobs = Named(type=int, validators=(at_least(1), at_most(64)))
    ...     name = Positional(0, type=str, validators=(not_empty(), not_matches(r"\s")))
"""
import operator
import pathlib
import re

from .contexts import derive
from .descriptors import Collection, Scalar
from .utils import *


def _shape(descriptor, /):
    """
    Internal: the Python type of single values, or Unset when it is not known.
    """
    if isinstance(descriptor, Collection):
        descriptor = descriptor.element
    if isinstance(descriptor, Scalar):
        return descriptor.type
    return Unset


def _numeric(shape, /):
    return shape is int or shape == float | int


def _textual(shape, /):
    return shape is str or shape is pathlib.PurePath


class Validator(metaclass=IntrospectableType):
    """
    Base of the built-in checks.

    Subclasses implement validate(value, context), raising ValueError with the
    reason when value is rejected, and may narrow accepts().
    """

    __introspectable__ = ()

    def accepts(self, descriptor, /):
        """
        Return whether this check applies to values read by descriptor.
        """
        return True

    def validate(self, value, /, context=Unset):
        raise NotImplementedError

    def __call__(self, value, /, context=Unset):
        self.validate(value, derive(context))


class Comparison(Validator, sealed=True):
    """
    Numeric bound: the value compared to a target with one operator.
    """

    __introspectable__ = (
        "operator",
        "target",
    )

    _reasons = {
        "<": "must be less than %r",
        "<=": "must be at most %r",
        ">": "must be greater than %r",
        ">=": "must be at least %r",
    }
    _operators = {
        "<": operator.lt,
        "<=": operator.le,
        ">": operator.gt,
        ">=": operator.ge,
    }

    def __init__(self, operator, target, /):
        if operator not in self._operators:
            raise ValueError(f"{type(self).__typename__} operator must be one of {', '.join(self._operators)}")
        if not isinstance(target, int | float) or isinstance(target, bool):
            raise TypeError(f"{type(self).__typename__} target must be a number")
        self._operator = operator
        self._target = target

    def accepts(self, descriptor, /):
        # Custom descriptors are trusted
        shape = _shape(descriptor)
        return shape is Unset or _numeric(shape)

    def validate(self, value, /, context=Unset):
        if not self._operators[self._operator](value, self._target):
            raise ValueError(self._reasons[self._operator] % self._target)


class Forbidden(Validator, sealed=True):
    """
    One value the argument may not take.
    """

    __introspectable__ = ("value",)

    def __init__(self, value, /):
        self._value = value

    def validate(self, value, /, context=Unset):
        if value == self._value:
            raise ValueError("must not be %r" % self._value)


class Pattern(Validator, sealed=True):
    """
    Regular expression searched in the text of a value, or required to be absent.
    """

    __introspectable__ = (
        "pattern",
        "negate",
    )

    def __init__(self, pattern, /, flags=0, *, negate=False):
        if not isinstance(pattern, str | re.Pattern):
            raise TypeError(f"{type(self).__typename__} pattern must be a string or a compiled pattern")
        self._pattern = re.compile(pattern, flags)
        self._negate = bool(negate)

    def accepts(self, descriptor, /):
        shape = _shape(descriptor)
        return shape is Unset or _textual(shape)

    def validate(self, value, /, context=Unset):
        found = self._pattern.search(str(value)) is not None
        if found and self._negate:
            raise ValueError("must not match %r" % self._pattern.pattern)
        if not found and not self._negate:
            raise ValueError("must match %r" % self._pattern.pattern)


class NotEmpty(Validator, sealed=True):
    def accepts(self, descriptor, /):
        shape = _shape(descriptor)
        return shape is Unset or _textual(shape)

    def validate(self, value, /, context=Unset):
        if not str(value) or isinstance(value, pathlib.PurePath) and str(value) == ".":
            raise ValueError("must not be empty")


class Existence(Validator, sealed=True):
    """
    Path that must (or must not) exist, as a file, a directory or either.

    The lookup goes through context.filesystem.kind(path), which returns
    "file", "directory" or None.
    """

    __introspectable__ = (
        "kind",
        "negate",
    )

    _names = {
        "file": "file",
        "directory": "directory",
        None: "path",
    }

    def __init__(self, kind=None, /, *, negate=False):
        if kind not in self._names:
            raise ValueError(f"{type(self).__typename__} kind must be 'file', 'directory' or None")
        self._kind = kind
        self._negate = bool(negate)

    def accepts(self, descriptor, /):
        shape = _shape(descriptor)
        return shape is Unset or _textual(shape)

    def validate(self, value, /, context=Unset):
        found = derive(context).filesystem.kind(str(value))
        present = found is not None if self._kind is None else found == self._kind
        if present and self._negate:
            raise ValueError("%s already exists" % self._names[self._kind])
        if not present and not self._negate:
            raise ValueError("%s does not exist" % self._names[self._kind])


def at_least(target, /):
    return Comparison(">=", target)


def greater_than(target, /):
    return Comparison(">", target)


def at_most(target, /):
    return Comparison("<=", target)


def less_than(target, /):
    return Comparison("<", target)


def not_equal(value, /):
    return Forbidden(value)


def matches(pattern, /, flags=0):
    return Pattern(pattern, flags)


def not_matches(pattern, /, flags=0):
    return Pattern(pattern, flags, negate=True)


def not_empty():
    return NotEmpty()


def exists(kind=None, /):
    """
    Require the path to exist; kind narrows it to "file" or "directory".
    """
    return Existence(kind)


def not_exists(kind=None, /):
    """
    Require the path not to exist; kind only rejects an existing "file" or "directory".
    """
    return Existence(kind, negate=True)


__all__ = (
    "Validator",
    "Comparison",
    "Forbidden",
    "Pattern",
    "NotEmpty",
    "Existence",
    "at_least",
    "greater_than",
    "at_most",
    "less_than",
    "not_equal",
    "matches",
    "not_matches",
    "not_empty",
    "exists",
    "not_exists",
)
