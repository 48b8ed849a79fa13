"""
Argbind utilities shared by every layer of the engine.

Contents
- Unset: the "argument not given" sentinel. Descriptors also return it from
  try_parse() for unparsable text, since None, False and 0 are all values a
  parse can legitimately produce.
- coalesce(): fall back to a default only for Unset.
- rename(): give generated functions readable __name__/__qualname__.
- mirror() / IntrospectableType: read-only records with generated
  properties, __typename__ and __repr__/__rich_repr__. Tokens, descriptors,
  definitions and outcomes are all built this way.
- ordinal(), hyphenate(), suggest(): wording helpers for faults and names.

Anything missing from __all__ is private to the package.

    >>> coalesce(Unset, 8), coalesce(0, 8)
    (8, 0)
    >>> hyphenate("OutputPath"), ordinal(3)
    ('output-path', 'third')
"""
import difflib
import functools
import operator
import re
from collections.abc import Sequence, Mapping, Set
from typing import final


@final
class UnsetType:
    """
    Type of the Unset sentinel.

    Unset stands for "no value was supplied" where None is itself a meaningful
    value (a default of None, a parse that yields None). It is falsy, prints as
    "Unset", survives copy and pickle as the same object and cannot be
    subclassed. Calling UnsetType() always hands back the one instance.
    """

    def __or__(self, other, /):
        # lets "int | Unset" read naturally in annotations
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    __ror__ = __or__

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __reduce__(self):
        return type(self), ()

    def __init_subclass__(cls, **options):
        raise TypeError(f"type {UnsetType.__name__!r} is not an acceptable base type")


Unset = UnsetType()


def coalesce(object, default=None, /):
    """
    Return object, or default when object is Unset.

    Only Unset is replaced; None, 0, "" and empty containers pass through.
    """
    return default if object is Unset else object


def rename(target, name=Unset, /):
    """
    Set __name__ and __qualname__ of a function.

    rename(function, "name") renames in place and returns the function;
    rename("name") returns a decorator doing the same. Objects whose names
    cannot be assigned (builtins, most C callables) raise TypeError.
    """
    if name is Unset:
        if not isinstance(target, str):
            raise TypeError("rename() expects a name when used as a decorator")
        return lambda function: rename(function, target)
    if not callable(target):
        raise TypeError(f"rename() cannot rename {type(target).__name__!r} objects")
    if not isinstance(name, str):
        raise TypeError("rename() name must be a string")
    try:
        target.__name__ = target.__qualname__ = name
    except (AttributeError, TypeError):
        raise TypeError(f"rename() cannot rename {target!r}") from None
    return target


def _detach(object):
    """
    Return a shallow-structured copy of nested lists, dicts and sets.

    Strings and other scalars are returned unchanged; tuples and other
    sequences come back as lists.
    """
    if isinstance(object, str):
        return object
    if isinstance(object, Mapping):
        return {key: _detach(value) for key, value in object.items()}
    if isinstance(object, Set):
        return {_detach(item) for item in object}
    if isinstance(object, Sequence):
        return [_detach(item) for item in object]
    return object


def mirror(name, /):
    """
    Build a read-only property named 'name' reading self._<name>.

    Containers are returned as fresh copies (see _detach) so callers can never
    mutate the record they came from.
    """
    if not isinstance(name, str):
        raise TypeError(f"mirror() expects an attribute name, not {type(name).__name__!r}")

    @rename(name)
    def getter(self):
        return _detach(getattr(self, f"_{name}"))

    return property(getter)


class IntrospectableType(type):
    """
    Metaclass that turns plain data holders into introspectable, read-only records.

    Responsibilities
    - Derive __typename__ from the class name (camel-case split with hyphens)
      for use in messages (e.g., "key-value", "argument-definition").
    - Expose every name listed in __introspectable__ as a read-only property
      backed by "_{name}" (see mirror()).
    - Provide stable __repr__/__rich_repr__ implementations for diagnostics.
    - Seal classes created with sealed=True against subclassing.

    Conventions
    - __displayable__ (if set) narrows which properties are shown by __rich_repr__;
      otherwise __introspectable__ is used.
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": namespace.get("__typename__", re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower()),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
                if name not in namespace and not any(hasattr(base, name) for base in bases)
            },
        )

        if "__repr__" not in namespace:
            @rename("__repr__")
            def __repr__(self):
                """
                Return a concise, stable representation with key metadata.
                """
                return f"{type(self).__typename__}({
                    ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
                })"
            self.__repr__ = __repr__

        if "__rich_repr__" not in namespace:
            @rename("__rich_repr__")
            def __rich_repr__(self):
                """
                Yield a sequence of (name, object) pairs for pretty printers.
                """
                for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                    yield name, getattr(self, name)
            self.__rich_repr__ = __rich_repr__

        if options.get("sealed", False):
            @rename("__init_subclass__")
            def __init_subclass__(cls, **options):  # NOQA: F-841
                raise TypeError(f"type {self.__name__!r} is not an acceptable base type")
            self.__init_subclass__ = classmethod(__init_subclass__)

        return self


@functools.cache
def ordinal(number, /):
    """
    Return a human-friendly ordinal label for a 1-based position.

    - 1..10 are rendered as words ("first"…"tenth") for nicer phrasing in messages.
    - Other numbers use numeric ordinals with correct English suffixes.
    """
    try:
        return {
            1: "first",
            2: "second",
            3: "third",
            4: "fourth",
            5: "fifth",
            6: "sixth",
            7: "seventh",
            8: "eighth",
            9: "ninth",
            10: "tenth",
        }[number]
    except KeyError:
        pass

    # 11th, 12th, 13th (and 111th, 112th, 113th, …)
    if 10 < number % 100 < 20:
        return f"{number}th"

    return f'{number}%s' % {1: "st", 2: "nd", 3: "rd"}.get(number % 10, "th")


@functools.cache
def hyphenate(name, /):
    """
    Convert a code symbol into a hyphenated, lower-case long name.

    Both camel-case and snake-case symbols are accepted; acronyms are kept
    together ("HTTPProxy" -> "http-proxy").

    Examples
    - hyphenate("OutputPath")   -> "output-path"
    - hyphenate("output_path")  -> "output-path"
    - hyphenate("HTTPProxy")    -> "http-proxy"
    """
    if not isinstance(name, str):
        raise TypeError("hyphenate() argument must be a string")
    name = re.sub(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])", "-", name.strip("_"))
    return re.sub(r"[_\-]+", "-", name).lower()


def suggest(word, candidates, /, *, limit=5):
    """
    Return the candidates a mistyped word most likely meant.

    Candidates that the word is a (case-insensitive) prefix of come first, in
    their given order, followed by close matches according to difflib.
    """
    candidates = list(candidates)
    lowered = {candidate.lower(): candidate for candidate in candidates}
    result = [candidate for candidate in candidates if word and candidate.lower().startswith(word.lower())]
    for match in difflib.get_close_matches(word.lower(), lowered.keys(), limit):
        if lowered[match] not in result:
            result.append(lowered[match])
    return result[:limit]


__all__ = (
    # Functions
    "coalesce",
    "rename",
    "mirror",
    "ordinal",
    "hyphenate",
    "suggest",

    # Types
    "UnsetType",
    "IntrospectableType",

    # Constants
    "Unset",
)
