r"""
Argbind type system: descriptors that parse, format and complete values.

Overview
- Descriptor: the closed family of value shapes the engine understands. Every
  variant offers the same capability set:
  • parse(text, context)     → value, raising ValueError/TypeError on bad input
  • try_parse(text, context) → value, or Unset when the text cannot be parsed
  • format(value)            → canonical text (parse(format(v)) == v)
  • complete(partial, context) → fresh, finite iterator of candidate texts
  • syntax / display_name    → help fragment such as "<int>" or "{Get | Set}"
  • zero / implicit          → value used when an argument never occurs /
                               when a named argument occurs without a value

- Variants (sealed; the family is closed)
  • Scalar: bool, integers (bounded or not), float, str, UUID, URI, path.
  • Enum: name ↔ member, case-insensitive, with per-value markers (EnumValue).
  • FlagsEnum: bitwise OR of named bits, '|'-joined textual form.
  • Tuple: fixed arity, heterogeneous elements, separator-joined.
  • Collection: homogeneous element repeated once per occurrence.
  • KeyValue: key and value joined by a single separator.
  • Custom: caller-supplied parse/format/complete functions.

- Registry / lookup(): map Python types and typing aliases (list[int],
  dict[str, int], tuple[int, str], Color, Path | None, …) to descriptors.

Numeric semantics
- Integers are written as ASCII digits with an optional sign; no thousands or
  underscore separators. Literals outside the declared range fail to parse.
- Booleans accept "true"/"false" case-insensitively, nothing else.

Quick example:
    >>> lookup(tuple[int, str]).parse("3,abc")
    (3, 'abc')
    >>> KeyValue(STRING, INTEGER).format(("retries", 3))
    'retries=3'
"""
import builtins
import enum
import itertools
import math
import os
import pathlib
import re
import types
import typing
import urllib.parse
import uuid

from .contexts import derive
from .faults import InternalInvariantError
from .utils import *


def _split(text, separator, /, *, partial=False):
    """
    Split text on separator outside double quotes.

    Returns a list of (piece, offset) pairs where offset is the index of the
    piece's first character in text. A piece that starts with a double quote
    is unquoted (doubled quotes collapse to one) and its closing quote must be
    followed by the separator or the end of the text. With partial=True an
    unterminated last piece is accepted as-is.
    """
    pieces = []
    index = 0
    length = len(text)
    while True:
        offset = index
        if index < length and text[index] == '"':
            index += 1
            piece = []
            while True:
                if index >= length:
                    if not partial:
                        raise ValueError("unterminated quoted element")
                    pieces.append(("".join(piece), offset))
                    return pieces
                if text[index] == '"':
                    if text.startswith('"', index + 1):
                        piece.append('"')
                        index += 2
                        continue
                    index += 1
                    break
                piece.append(text[index])
                index += 1
            pieces.append(("".join(piece), offset))
            if index >= length:
                return pieces
            if not text.startswith(separator, index):
                raise ValueError("closing quote must end the element")
            index += len(separator)
            continue
        end = text.find(separator, index)
        if end < 0:
            pieces.append((text[index:], offset))
            return pieces
        pieces.append((text[index:end], offset))
        index = end + len(separator)


def _enclose(text, separator, /):
    """
    Quote an element when it would not survive _split() as-is.
    """
    if separator in text or text.startswith('"'):
        return '"%s"' % text.replace('"', '""')
    return text


def _select(partial, candidates, /, *, case_sensitive=False):
    """
    Keep the candidates starting with partial, ordered case-insensitively.
    """
    if case_sensitive:
        return sorted((candidate for candidate in candidates if candidate.startswith(partial)), key=str.lower)
    return sorted(
        (candidate for candidate in candidates if candidate.lower().startswith(partial.lower())),
        key=str.lower
    )


class Descriptor(metaclass=IntrospectableType):
    """
    Base of the closed descriptor family.

    Subclassing outside this module is rejected: callers that need a shape the
    built-in variants do not cover use Custom, which the engine treats exactly
    like any other descriptor.
    """

    __introspectable__ = ("display_name",)

    def __init_subclass__(cls, **options):
        if cls.__module__ != __name__:
            raise TypeError("descriptor variants are closed; use Custom for caller-supplied shapes")
        super().__init_subclass__(**options)

    @property
    def syntax(self):
        return f"<{self._display_name}>"

    @property
    def zero(self):
        return None

    @property
    def implicit(self):
        return Unset

    def parse(self, text, /, context=Unset):
        raise NotImplementedError

    def try_parse(self, text, /, context=Unset):
        """
        Parse text, returning Unset instead of raising when it is not a valid value.
        """
        if not isinstance(text, str):
            raise TypeError(f"{type(self).__typename__} text must be a string")
        try:
            return self.parse(text, context)
        except (ValueError, TypeError, ArithmeticError, LookupError):
            return Unset

    def format(self, value, /):
        raise NotImplementedError

    def complete(self, partial, /, context=Unset):
        return iter(())


class Scalar(Descriptor, sealed=True):
    """
    Single-token value parsed by a plain function.

    Parameters
    - display_name: str, used in syntax fragments ("<int>").
    - type: the Python type of parsed values.
    - parser: Callable[[str, Context], value], raising ValueError on bad input.
    - formatter: Callable[[value], str].
    - candidates: fixed completion candidates (e.g., "false"/"true").
    - completer: Callable[[str, Context], Iterable[str]] for dynamic candidates.
    - zero: value used for an argument that never occurs.
    - implicit: value used for a named argument given without a value.
    """

    __introspectable__ = (
        "display_name",
        "type",
        "candidates",
    )

    def __init__(self, display_name, type, parser, formatter=str, *, candidates=(), completer=Unset, zero=None, implicit=Unset):
        if not isinstance(display_name, str) or not display_name:
            raise TypeError(f"{builtins.type(self).__typename__} 'display_name' must be a non-empty string")
        if not callable(parser) or not callable(formatter):
            raise TypeError(f"{builtins.type(self).__typename__} 'parser' and 'formatter' must be callable")
        if completer is not Unset and not callable(completer):
            raise TypeError(f"{builtins.type(self).__typename__} 'completer' must be callable")
        self._display_name = display_name
        self._type = type
        self._parser = parser
        self._formatter = formatter
        self._candidates = tuple(candidates)
        self._completer = completer
        self._zero = zero
        self._implicit = implicit

    @property
    def zero(self):
        return self._zero

    @property
    def implicit(self):
        return self._implicit

    def parse(self, text, /, context=Unset):
        return self._parser(text, derive(context))

    def format(self, value, /):
        if not isinstance(value, self._type):
            raise TypeError(f"{self._display_name} value expected, got {builtins.type(value).__name__}")
        return self._formatter(value)

    def complete(self, partial, /, context=Unset):
        context = derive(context)
        if self._completer is not Unset:
            return iter(self._completer(partial, context))
        return iter(_select(partial, self._candidates, case_sensitive=context.case_sensitive))


def _parse_boolean(text, context, /):
    match text.lower():
        case "true":
            return True
        case "false":
            return False
    raise ValueError(f"invalid boolean literal {text!r}")


def integer(bits=Unset, /, *, signed=True, display_name=Unset):
    """
    Build an integer Scalar, bounded to the given bit width when provided.

    Without a width, any integer literal is accepted (Python integers are unbounded).
    """
    if bits is not Unset and bits not in (8, 16, 32, 64):
        raise ValueError("integer() width must be one of 8, 16, 32 or 64")
    if bits is Unset:
        minimum, maximum = (-math.inf if signed else 0), math.inf
    elif signed:
        minimum, maximum = -(1 << (bits - 1)), (1 << (bits - 1)) - 1
    else:
        minimum, maximum = 0, (1 << bits) - 1

    def parser(text, context, /):
        if match := re.fullmatch(r"([+-]?)0[xX]([0-9a-fA-F]+)", text):
            if not context.hexadecimal:
                raise ValueError(f"hexadecimal literal {text!r} is not allowed")
            value = int(match[2], 16) * (-1 if match[1] == "-" else 1)
        elif re.fullmatch(r"[+-]?[0-9]+", text):
            value = int(text)
        else:
            raise ValueError(f"invalid integer literal {text!r}")
        if not minimum <= value <= maximum:
            raise OverflowError(f"integer literal {text!r} is out of range")
        return value

    def formatter(value, /):
        if isinstance(value, bool):
            raise TypeError("integer value expected, got bool")
        return str(value)

    return Scalar(
        coalesce(display_name, "int" if bits is Unset else f"{'' if signed else 'u'}int{bits}"),
        int,
        parser,
        formatter,
        zero=0
    )


def _parse_float(text, context, /):
    if not re.fullmatch(r"[+-]?((\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?|inf|infinity|nan)", text, re.IGNORECASE):
        raise ValueError(f"invalid floating-point literal {text!r}")
    return float(text)


def _parse_uri(text, context, /):
    result = urllib.parse.urlsplit(text)
    if not result.scheme or not (result.netloc or result.path):
        raise ValueError(f"invalid uri {text!r}")
    return result


def _complete_path(partial, context, /):
    directory, name = os.path.split(partial)
    for entry, folder in sorted(context.filesystem.entries(directory), key=lambda pair: pair[0].lower()):
        if entry.startswith(name) if context.case_sensitive else entry.lower().startswith(name.lower()):
            yield os.path.join(directory, entry) + (os.sep if folder else "")


BOOLEAN = Scalar("bool", bool, _parse_boolean, lambda value: "true" if value else "false", candidates=("false", "true"), zero=False, implicit=True)
INTEGER = integer()
INT8 = integer(8)
INT16 = integer(16)
INT32 = integer(32)
INT64 = integer(64)
UINT8 = integer(8, signed=False)
UINT16 = integer(16, signed=False)
UINT32 = integer(32, signed=False)
UINT64 = integer(64, signed=False)
FLOAT = Scalar("float", float | int, _parse_float, lambda value: repr(float(value)), zero=0.0)
STRING = Scalar("string", str, lambda text, context: text)
UUID = Scalar("uuid", uuid.UUID, lambda text, context: uuid.UUID(text))
URI = Scalar("uri", urllib.parse.SplitResult, _parse_uri, urllib.parse.urlunsplit)
PATH = Scalar("path", pathlib.PurePath, lambda text, context: pathlib.Path(text), str, completer=_complete_path)


class EnumValue(metaclass=IntrospectableType, sealed=True):
    """
    Per-member markers for Enum and FlagsEnum descriptors.

    - long_name: name used for parsing/formatting instead of the member name.
    - short_name: an additional accepted spelling.
    - disallowed: the member exists but cannot be chosen from the command line.
    - hidden: the member is accepted but not advertised (syntax, completion).
    """

    __introspectable__ = (
        "long_name",
        "short_name",
        "disallowed",
        "hidden",
        "descr",
    )

    def __init__(self, long_name=Unset, short_name=Unset, *, disallowed=False, hidden=False, descr=Unset):
        for field, value in (("long_name", long_name), ("short_name", short_name)):
            if not isinstance(value, str | Unset):
                raise TypeError(f"{type(self).__typename__} {field!r} must be a string")
            elif isinstance(value, str) and not value.strip():
                raise ValueError(f"{type(self).__typename__} {field!r} cannot be empty")
        if not isinstance(descr, str | Unset):
            raise TypeError(f"{type(self).__typename__} 'descr' must be a string")
        self._long_name = long_name
        self._short_name = short_name
        self._disallowed = bool(disallowed)
        self._hidden = bool(hidden)
        self._descr = coalesce(descr)


class Enum(Descriptor, sealed=True):
    """
    Enumeration member by (case-insensitive) name.

    Construction builds the lower-cased name map once and fails when two
    distinct members share a name or an explicit short name. Parsing accepts a
    long name, a short name, or (unless numeric is False) an integer literal
    naming a defined member; disallowed members never parse.
    """

    __introspectable__ = (
        "display_name",
        "type",
        "values",
    )

    def __init__(self, type, /, values=None, *, display_name=Unset, numeric=True):
        if not isinstance(type, builtins.type) or not issubclass(type, enum.Enum):
            raise TypeError(f"{builtins.type(self).__typename__} type must be an enum type")
        values = dict(values or {})
        for member, value in values.items():
            if not isinstance(member, type):
                raise TypeError(f"{builtins.type(self).__typename__} values keys must be members of {type.__name__}")
            if not isinstance(value, EnumValue):
                raise TypeError(f"{builtins.type(self).__typename__} values must be enum-value markers")

        self._type = type
        self._values = values
        self._display_name = coalesce(display_name, hyphenate(type.__name__))
        self._numeric = bool(numeric)
        self._names = {}
        self._long_names = {}

        def claim(name, member, kind):
            if (existing := self._names.setdefault(name.lower(), member)) is not member:
                raise ValueError(
                    f"{builtins.type(self).__typename__} {kind} {name!r} of {member.name!r} "
                    f"collides with {existing.name!r} in {type.__name__}"
                )

        for name, member in type.__members__.items():
            marker = values.get(member, EnumValue())
            if name == member.name:
                self._long_names[member] = coalesce(marker.long_name, name)
                claim(self._long_names[member], member, "name")
            else:
                # aliases are accepted spellings of their canonical member
                claim(name, member, "alias")

        for member, marker in values.items():
            if marker.short_name is not Unset:
                if marker.short_name.lower() in self._names and self._names[marker.short_name.lower()] is not member:
                    raise ValueError(
                        f"{builtins.type(self).__typename__} short name {marker.short_name!r} "
                        f"of {member.name!r} is already in use in {type.__name__}"
                    )
                self._names[marker.short_name.lower()] = member

    @property
    def zero(self):
        for member in self._long_names:
            if member.value == 0:
                return member
        return None

    def marker(self, member, /):
        return self._values.get(member, EnumValue())

    def name(self, member, /):
        """
        Return the long name a member is parsed and formatted as.
        """
        return self._long_names[self._type(member)]

    def members(self, /, *, hidden=False):
        """
        Return the members that may be chosen, in declaration order.
        """
        return [
            member for member in self._long_names
            if not self.marker(member).disallowed and (hidden or not self.marker(member).hidden)
        ]

    @property
    def syntax(self):
        return "{%s}" % " | ".join(self._long_names[member] for member in self.members())

    def parse(self, text, /, context=Unset):
        context = derive(context)
        if context.case_sensitive:
            member = next((member for member, name in self._long_names.items() if name == text), None)
            if member is None:
                member = next((member for member, value in self._values.items() if value.short_name == text), None)
        else:
            member = self._names.get(text.lower())
        if member is None:
            if not self._numeric or not re.fullmatch(r"[+-]?[0-9]+", text):
                raise ValueError(f"{text!r} is not a {self._display_name} name")
            member = self._type(int(text))
        if self.marker(member).disallowed:
            raise ValueError(f"{self._long_names.get(member, text)!r} is not an allowed {self._display_name}")
        return member

    def format(self, value, /):
        member = self._type(value)
        try:
            return self._long_names[member]
        except KeyError:
            raise ValueError(f"{member!r} has no {self._display_name} name") from None

    def complete(self, partial, /, context=Unset):
        context = derive(context)
        return iter(_select(partial, (self._long_names[member] for member in self.members()), case_sensitive=context.case_sensitive))


class FlagsEnum(Descriptor, sealed=True):
    """
    Bit-flag enumeration written as '|'-joined member names.

    Parsing ORs the pieces together; an empty text is never a valid value (the
    explicit zero-named member, e.g. "None", must be used). Formatting lists
    every set single-bit member in ascending bit order and fails for bits that
    have no name.
    """

    __introspectable__ = (
        "display_name",
        "type",
    )

    def __init__(self, type, /, values=None, *, display_name=Unset):
        if not isinstance(type, builtins.type) or not issubclass(type, enum.Flag):
            raise TypeError(f"{builtins.type(self).__typename__} type must be a bit-flag enum type")
        self._type = type
        self._enum = Enum(type, values, display_name=display_name)
        self._display_name = self._enum.display_name
        bits = {}
        for member in type.__members__.values():
            if member.value and not member.value & (member.value - 1):
                bits.setdefault(member.value, member)
        self._bits = [bits[value] for value in sorted(bits)]

    @property
    def zero(self):
        return self._type(0)

    @property
    def syntax(self):
        return self._enum.syntax + "[|...]"

    def parse(self, text, /, context=Unset):
        if not text:
            raise ValueError(f"empty {self._display_name} value")
        result = self._type(0)
        for piece in text.split("|"):
            result |= self._enum.parse(piece.strip(), context)
        return result

    def format(self, value, /):
        value = self._type(value)
        if not value.value:
            for member in self._type.__members__.values():
                if not member.value:
                    return self._enum.name(member)
            raise ValueError(f"{self._display_name} has no name for an empty value")
        residual = value.value
        names = []
        for bit in self._bits:
            if residual & bit.value:
                names.append(self._enum.name(bit))
                residual &= ~bit.value
        if residual:
            raise ValueError(f"{self._display_name} value {value.value:#x} has unnamed bits {residual:#x}")
        return "|".join(names)

    def complete(self, partial, /, context=Unset):
        last = partial.rpartition("|")[2].lstrip()
        prefix = partial[:len(partial) - len(last)]
        return (prefix + candidate for candidate in self._enum.complete(last, context))


class Tuple(Descriptor, sealed=True):
    """
    Fixed number of heterogeneous elements joined by a separator (default ",").

    Elements may be double-quoted to contain the separator. Completion offers
    candidates for element k only once elements 0..k-1 parse, and every
    candidate repeats the already-typed prefix.
    """

    __introspectable__ = (
        "display_name",
        "elements",
        "separator",
    )

    def __init__(self, *elements, separator=","):
        if not elements:
            raise TypeError(f"{type(self).__typename__} requires at least one element")
        if not all(isinstance(element, Descriptor) for element in elements):
            raise TypeError(f"{type(self).__typename__} elements must be descriptors")
        if not isinstance(separator, str) or not separator:
            raise ValueError(f"{type(self).__typename__} 'separator' must be a non-empty string")
        self._elements = elements
        self._separator = separator
        self._display_name = separator.join(element.display_name for element in elements)

    @property
    def syntax(self):
        return self._separator.join(element.syntax for element in self._elements)

    def parse(self, text, /, context=Unset):
        pieces = _split(text, self._separator)
        if len(pieces) != len(self._elements):
            raise ValueError(f"expected {len(self._elements)} elements, got {len(pieces)}")
        return tuple(element.parse(piece, context) for element, (piece, _) in zip(self._elements, pieces))

    def format(self, value, /):
        value = tuple(value)
        if len(value) != len(self._elements):
            raise ValueError(f"expected {len(self._elements)} elements, got {len(value)}")
        return self._separator.join(
            _enclose(element.format(item), self._separator) for element, item in zip(self._elements, value)
        )

    def complete(self, partial, /, context=Unset):
        try:
            pieces = _split(partial, self._separator, partial=True)
        except ValueError:
            return iter(())
        *complete, (last, offset) = pieces
        if len(complete) >= len(self._elements):
            return iter(())
        for element, (piece, _) in zip(self._elements, complete):
            if element.try_parse(piece, context) is Unset:
                return iter(())
        prefix = partial[:offset]
        element = self._elements[len(complete)]
        return (prefix + _enclose(candidate, self._separator) for candidate in element.complete(last, context))


class Collection(Descriptor, sealed=True):
    """
    Homogeneous element repeated once per occurrence.

    parse() returns the list of elements one occurrence contributes: a single
    element, or several when an element separator is configured ("a,b").
    aggregate() builds the final container (list by default; tuple, set,
    frozenset or dict of key/value pairs also work) from all occurrences in
    encounter order.
    """

    __introspectable__ = (
        "display_name",
        "element",
        "container",
        "separator",
    )

    def __init__(self, element, /, container=list, *, separator=Unset):
        if not isinstance(element, Descriptor):
            raise TypeError(f"{type(self).__typename__} element must be a descriptor")
        if isinstance(element, Collection):
            raise TypeError(f"{type(self).__typename__} element cannot be a collection")
        if not callable(container):
            raise TypeError(f"{type(self).__typename__} 'container' must be callable")
        if not isinstance(separator, str | Unset) or separator == "":
            raise ValueError(f"{type(self).__typename__} 'separator' must be a non-empty string")
        self._element = element
        self._container = container
        self._separator = separator
        self._display_name = element.display_name

    @property
    def syntax(self):
        return self._element.syntax

    @property
    def zero(self):
        return self._container()

    def parse(self, text, /, context=Unset):
        if self._separator is Unset:
            return [self._element.parse(text, context)]
        return [self._element.parse(piece, context) for piece, _ in _split(text, self._separator)]

    def format(self, value, /):
        value = list(value)
        if self._separator is Unset:
            if len(value) != 1:
                raise ValueError(f"{self._display_name} collection without separator formats one element at a time")
            return self._element.format(value[0])
        return self._separator.join(_enclose(self._element.format(item), self._separator) for item in value)

    def aggregate(self, chunks, /):
        return self._container(itertools.chain.from_iterable(chunks))

    def elements(self, value, /):
        """
        Iterate the elements of an aggregated value.
        """
        if isinstance(value, dict):
            return iter(value.items())
        return iter(value)

    def complete(self, partial, /, context=Unset):
        if self._separator is Unset:
            return self._element.complete(partial, context)
        head, separator, last = partial.rpartition(self._separator)
        return (head + separator + candidate for candidate in self._element.complete(last, context))


class KeyValue(Descriptor, sealed=True):
    """
    Key and value parsed by their own descriptors around one separator (default "=").

    The text is split at the first separator; the value may contain further separators.
    """

    __introspectable__ = (
        "display_name",
        "key",
        "value",
        "separator",
    )

    def __init__(self, key, value, /, *, separator="="):
        if not isinstance(key, Descriptor) or not isinstance(value, Descriptor):
            raise TypeError(f"{type(self).__typename__} key and value must be descriptors")
        if not isinstance(separator, str) or not separator:
            raise ValueError(f"{type(self).__typename__} 'separator' must be a non-empty string")
        self._key = key
        self._value = value
        self._separator = separator
        self._display_name = f"{key.display_name}{separator}{value.display_name}"

    @property
    def syntax(self):
        return f"{self._key.syntax}{self._separator}{self._value.syntax}"

    def parse(self, text, /, context=Unset):
        key, separator, value = text.partition(self._separator)
        if not separator:
            raise ValueError(f"missing {self._separator!r} in {text!r}")
        return self._key.parse(key, context), self._value.parse(value, context)

    def format(self, value, /):
        key, value = value
        key = self._key.format(key)
        if self._separator in key:
            raise ValueError(f"key {key!r} cannot contain the separator {self._separator!r}")
        return f"{key}{self._separator}{self._value.format(value)}"

    def complete(self, partial, /, context=Unset):
        key, separator, value = partial.partition(self._separator)
        if not separator:
            return self._key.complete(key, context)
        return (key + separator + candidate for candidate in self._value.complete(value, context))


class Custom(Descriptor, sealed=True):
    """
    Caller-supplied capability bundle.

    - parser: Callable[[str], value], raising ValueError (or TypeError) on bad input.
    - formatter: Callable[[value], str], str by default.
    - completer: Callable[[str], Iterable[str]], no candidates by default.
    """

    __introspectable__ = (
        "display_name",
    )

    def __init__(self, display_name, parser, formatter=str, completer=Unset, *, syntax=Unset, zero=None, implicit=Unset):
        if not isinstance(display_name, str) or not display_name:
            raise TypeError(f"{type(self).__typename__} 'display_name' must be a non-empty string")
        if not callable(parser) or not callable(formatter) or completer is not Unset and not callable(completer):
            raise TypeError(f"{type(self).__typename__} parser, formatter and completer must be callable")
        if not isinstance(syntax, str | Unset):
            raise TypeError(f"{type(self).__typename__} 'syntax' must be a string")
        self._display_name = display_name
        self._parser = parser
        self._formatter = formatter
        self._completer = completer
        self._syntax = syntax
        self._zero = zero
        self._implicit = implicit

    @property
    def syntax(self):
        return coalesce(self._syntax, f"<{self._display_name}>")

    @property
    def zero(self):
        return self._zero

    @property
    def implicit(self):
        return self._implicit

    def parse(self, text, /, context=Unset):
        return self._parser(text)

    def format(self, value, /):
        return self._formatter(value)

    def complete(self, partial, /, context=Unset):
        if self._completer is Unset:
            return iter(())
        return iter(list(self._completer(partial)))


class Registry:
    """
    Mapping from Python types to the descriptors that handle them.

    Registering a second descriptor for the same type is an engine defect and
    raises InternalInvariantError.
    """

    def __init__(self):
        self._descriptors = {}

    def register(self, type, descriptor, /):
        if not isinstance(type, builtins.type):
            raise TypeError("register() first argument must be a type")
        if not isinstance(descriptor, Descriptor):
            raise TypeError("register() second argument must be a descriptor")
        if self._descriptors.setdefault(type, descriptor) is not descriptor:
            raise InternalInvariantError(f"a descriptor is already registered for {type.__name__!r}")
        return descriptor

    def __contains__(self, type):
        return type in self._descriptors

    def lookup(self, annotation, /):
        """
        Resolve a descriptor, a registered type, an enum type or a typing alias.

        Raises TypeError for shapes no descriptor handles.
        """
        if isinstance(annotation, Descriptor):
            return annotation
        if isinstance(annotation, builtins.type) and not typing.get_args(annotation):
            if annotation in self._descriptors:
                return self._descriptors[annotation]
            if issubclass(annotation, enum.Flag):
                return FlagsEnum(annotation)
            if issubclass(annotation, enum.Enum):
                return Enum(annotation)
            for base in annotation.__mro__[1:]:
                if base in self._descriptors and base is not object:
                    return self._descriptors[base]

        origin = typing.get_origin(annotation)
        arguments = typing.get_args(annotation)

        if origin in (typing.Union, types.UnionType):
            remaining = [argument for argument in arguments if argument is not type(None)]
            if len(remaining) == 1:
                return self.lookup(remaining[0])
        elif origin in (list, set, frozenset) and len(arguments) == 1:
            return Collection(self.lookup(arguments[0]), origin)
        elif origin is tuple and len(arguments) == 2 and arguments[1] is Ellipsis:
            return Collection(self.lookup(arguments[0]), tuple)
        elif origin is tuple and arguments:
            return Tuple(*map(self.lookup, arguments))
        elif origin is dict and len(arguments) == 2:
            return Collection(KeyValue(self.lookup(arguments[0]), self.lookup(arguments[1])), dict)

        raise TypeError(f"no descriptor handles {annotation!r}")


registry = Registry()
registry.register(bool, BOOLEAN)
registry.register(int, INTEGER)
registry.register(float, FLOAT)
registry.register(str, STRING)
registry.register(uuid.UUID, UUID)
registry.register(urllib.parse.SplitResult, URI)
registry.register(pathlib.PurePath, PATH)


def lookup(annotation, /):
    """
    Resolve the descriptor for a type or typing alias via the default registry.
    """
    return registry.lookup(annotation)


__all__ = (
    "Descriptor",
    "Scalar",
    "EnumValue",
    "Enum",
    "FlagsEnum",
    "Tuple",
    "Collection",
    "KeyValue",
    "Custom",
    "Registry",
    "integer",
    "lookup",
    "registry",
    "BOOLEAN",
    "INTEGER",
    "INT8",
    "INT16",
    "INT32",
    "INT64",
    "UINT8",
    "UINT16",
    "UINT32",
    "UINT64",
    "FLOAT",
    "STRING",
    "UUID",
    "URI",
    "PATH",
)
