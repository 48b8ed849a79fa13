r"""
Argbind argument specifications and resolved argument definitions.

Overview
- Arity: bit flags describing how many occurrences of an argument are legal.
  • AT_MOST_ONCE (no flag), REQUIRED, MULTIPLE, UNIQUE, REST_OF_LINE
  • AT_LEAST_ONCE = REQUIRED | MULTIPLE, MULTIPLE_UNIQUE = MULTIPLE | UNIQUE

- NameStyle: how long names are generated from member identifiers.
  • ORIGINAL ("output_path"), PASCAL ("OutputPath"), HYPHENATED ("output-path")

- Specs (declarative, raw)
  • Named(...): a named argument (/Name=value, -n value, …).
  • Positional(position, ...): a positional argument with an explicit ordinal.
  Specs only carry what the schema author wrote; nothing is validated until the
  schema is resolved (see argbind.schemas.resolve_schema).

- ArgumentDefinition (resolved, immutable)
  • destination member, descriptor, arity, names, conflicts, default and
    value policies, sanitized on construction.
  • effective_default, syntax() and assign() used by the binder, the
    completion engine and the formatter.

Validation highlights
- Long names are non-empty and may not start with a digit or contain whitespace.
- Short names are a single letter.
- Defaults are type-checked against the descriptor (None is always accepted).
- UNIQUE and MULTIPLE without a collection descriptor are rejected, as is
  REST_OF_LINE on a named argument.
- Validators must be callables; built-in checks (argbind.validators) must fit
  the values the descriptor reads.

Quick example:
    >>> class Options:
    ...     output = Named(type=Path, arity=Arity.REQUIRED)
    ...     verbose = Named(type=bool, conflicts=("quiet",))
    ...     quiet = Named(type=bool)
    ...     files = Positional(0, type=list[Path], arity=Arity.REST_OF_LINE)
"""
import builtins
import enum
import re
from collections.abc import Iterable, Mapping, MutableMapping
from types import MappingProxyType

from .contexts import derive
from .descriptors import Collection, Descriptor, lookup
from .validators import Validator
from .utils import *


class Arity(enum.Flag):
    """
    Occurrence policy of an argument.

    - AT_MOST_ONCE: zero or one occurrence (the default).
    - REQUIRED: exactly one occurrence unless combined with MULTIPLE.
    - MULTIPLE: any number of occurrences, collected in encounter order.
    - UNIQUE: with MULTIPLE, two occurrences may not parse to equal values.
    - REST_OF_LINE: positional only; consumes every remaining token verbatim.
    """
    AT_MOST_ONCE = 0
    REQUIRED = 1
    MULTIPLE = 2
    UNIQUE = 4
    REST_OF_LINE = 8

    AT_LEAST_ONCE = REQUIRED | MULTIPLE
    MULTIPLE_UNIQUE = MULTIPLE | UNIQUE


class NameStyle(enum.Enum):
    ORIGINAL = "original"
    PASCAL = "pascal"
    HYPHENATED = "hyphenated"

    def generate(self, member, /):
        """
        Return the long name generated for a member identifier.
        """
        match self:
            case NameStyle.ORIGINAL:
                return member.strip("_")
            case NameStyle.PASCAL:
                return "".join(part[:1].upper() + part[1:] for part in hyphenate(member).split("-"))
            case NameStyle.HYPHENATED:
                return hyphenate(member)


class Spec(metaclass=IntrospectableType):
    """
    Raw, declarative description of one argument.

    Specs are placed as class attributes (or mapping values) of a schema source
    and resolved into ArgumentDefinition objects by resolve_schema(). The
    'type' may be a descriptor, a Python type or a typing alias; when it is left
    Unset the member's annotation is used, falling back to str.
    """

    __introspectable__ = (
        "long_name",
        "type",
        "arity",
        "default",
        "conflicts",
        "verbs",
        "empty",
        "hexadecimal",
        "descr",
        "hidden",
        "deprecated",
        "validators",
    )
    __displayable__ = (
        "long_name",
        "type",
        "arity",
        "default",
    )

    def __init__(
            self,
            long_name=Unset,
            type=Unset,
            arity=Arity.AT_MOST_ONCE,
            default=Unset,
            conflicts=(),
            verbs=Unset,
            *,
            empty=False,
            hexadecimal=False,
            descr=Unset,
            hidden=False,
            deprecated=False,
            validators=()
    ):
        self._long_name = long_name
        self._type = type
        self._arity = arity
        self._default = default
        self._conflicts = conflicts
        self._verbs = verbs
        self._empty = empty
        self._hexadecimal = hexadecimal
        self._descr = descr
        self._hidden = hidden
        self._deprecated = deprecated
        self._validators = validators

    @property
    def default(self):
        return self._default


class Named(Spec, sealed=True):
    """
    Named argument spec: Named(long_name=Unset, short_name=Unset, ...).
    """

    __introspectable__ = Spec.__introspectable__ + ("short_name",)
    __displayable__ = Spec.__displayable__ + ("short_name",)

    def __init__(self, long_name=Unset, short_name=Unset, /, type=Unset, arity=Arity.AT_MOST_ONCE, default=Unset, conflicts=(), verbs=Unset, **options):
        super().__init__(long_name, type, arity, default, conflicts, verbs, **options)
        self._short_name = short_name


class Positional(Spec, sealed=True):
    """
    Positional argument spec: Positional(position, ...).

    The long name of a positional argument is only used in messages, conflict
    sets and help syntax; positionals are never matched by name.
    """

    __introspectable__ = Spec.__introspectable__ + ("position",)
    __displayable__ = ("position",) + Spec.__displayable__

    def __init__(self, position, /, type=Unset, arity=Arity.AT_MOST_ONCE, default=Unset, conflicts=(), verbs=Unset, *, long_name=Unset, **options):
        super().__init__(long_name, type, arity, default, conflicts, verbs, **options)
        self._position = position


def _sanitize_names(cls, metadata, /):
    """
    Internal: validate member, long and short names.

    - member: non-empty string naming the destination slot.
    - long_name: letters, digits, underscores, dashes and dots, not starting
      with a digit.
    - short_name: None or a single letter.
    """
    if not isinstance(member := metadata["member"], str):
        raise TypeError(f"{cls.__typename__} 'member' must be a string")
    elif not member:
        raise ValueError(f"{cls.__typename__} 'member' cannot be empty")

    if not isinstance(long_name := metadata["long_name"], str):
        raise TypeError(f"{cls.__typename__} 'long_name' must be a string")
    elif not long_name.strip():
        raise ValueError(f"{cls.__typename__} 'long_name' of {member!r} cannot be empty")
    elif not re.fullmatch(r"[^\W\d][\w\-.]*", long_name):
        raise ValueError(f"{cls.__typename__} 'long_name' {long_name!r} is not a valid argument name")

    if not isinstance(short_name := metadata["short_name"], str | None):
        raise TypeError(f"{cls.__typename__} 'short_name' must be a string")
    elif isinstance(short_name, str) and not re.fullmatch(r"[^\W\d]", short_name):
        raise ValueError(f"{cls.__typename__} 'short_name' {short_name!r} must be a single letter")


def _sanitize_arity(cls, metadata, /):
    """
    Internal: validate the arity against the argument kind and descriptor.
    """
    if not isinstance(arity := metadata["arity"], Arity):
        raise TypeError(f"{cls.__typename__} 'arity' must be an arity")

    descriptor = metadata["descriptor"]
    positional = metadata["position"] is not Unset

    if Arity.UNIQUE in arity and Arity.MULTIPLE not in arity:
        raise ValueError(f"{cls.__typename__} {metadata['long_name']!r} cannot be unique without being multiple")
    if Arity.MULTIPLE in arity and not isinstance(descriptor, Collection):
        raise ValueError(f"{cls.__typename__} {metadata['long_name']!r} is multiple but its type is not a collection")
    if Arity.REST_OF_LINE in arity and not positional:
        raise ValueError(f"{cls.__typename__} {metadata['long_name']!r} only positional arguments can take the rest of the line")
    if Arity.REST_OF_LINE in arity and Arity.MULTIPLE in arity:
        raise ValueError(f"{cls.__typename__} {metadata['long_name']!r} cannot be both multiple and rest of line")


def _sanitize_default(cls, metadata, /):
    """
    Internal: check that an explicit default can be formatted by the descriptor.
    """
    if (default := metadata["default"]) is Unset or default is None:
        return

    descriptor = metadata["descriptor"]
    try:
        if isinstance(descriptor, Collection):
            for element in descriptor.elements(default):
                descriptor.element.format(element)
        elif Arity.REST_OF_LINE not in metadata["arity"] or not isinstance(default, str):
            descriptor.format(default)
    except (TypeError, ValueError, LookupError) as exception:
        raise ValueError(
            f"{cls.__typename__} default {default!r} of {metadata['long_name']!r} "
            f"is not a valid {descriptor.display_name} value ({exception})"
        ) from None


def _sanitize_options(cls, metadata, /):
    """
    Internal: validate conflicts, markers, descriptions and validators.
    """
    if not isinstance(conflicts := metadata["conflicts"], Iterable) or isinstance(conflicts, str):
        raise TypeError(f"{cls.__typename__} 'conflicts' must be an iterable of strings")
    conflicts = tuple(conflicts)
    if not all(isinstance(conflict, str) and conflict for conflict in conflicts):
        raise TypeError(f"{cls.__typename__} 'conflicts' must be an iterable of strings")
    metadata["conflicts"] = frozenset(conflicts)

    if not isinstance(descr := metadata["descr"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    elif isinstance(descr, str) and not (descr := descr.strip()):
        raise ValueError(f"{cls.__typename__} 'descr' cannot be empty")
    metadata["descr"] = coalesce(descr)

    if (verbs := metadata["verbs"]) is not Unset:
        if not isinstance(verbs, Mapping):
            raise TypeError(f"{cls.__typename__} 'verbs' must be a mapping")
        if Arity.MULTIPLE in metadata["arity"] or Arity.REST_OF_LINE in metadata["arity"]:
            raise ValueError(f"{cls.__typename__} {metadata['long_name']!r} verb selector must occur at most once")
        metadata["verbs"] = MappingProxyType(dict(verbs))

    if not isinstance(validators := metadata["validators"], Iterable) or isinstance(validators, str):
        raise TypeError(f"{cls.__typename__} 'validators' must be an iterable of callables")
    validators = tuple(validators)
    if not all(callable(validator) for validator in validators):
        raise TypeError(f"{cls.__typename__} 'validators' must be an iterable of callables")
    for validator in validators:
        if isinstance(validator, Validator) and not validator.accepts(metadata["descriptor"]):
            raise ValueError(
                f"{cls.__typename__} {validator!r} does not apply to "
                f"{metadata['descriptor'].display_name} values of {metadata['long_name']!r}"
            )
    metadata["validators"] = validators


class ArgumentDefinition(metaclass=IntrospectableType, sealed=True):
    """
    One resolved argument: where the value goes and how it is read.

    Instances are immutable; binding writes to the destination object only.

    Fields
    - member: name of the destination slot (attribute or mapping key).
    - descriptor: the Descriptor reading the values.
    - position: ordinal for positionals, Unset for named arguments.
    - long_name / short_name: names used on the command line (short may be None).
    - arity: Arity flags.
    - default: explicit default (Unset when none).
    - conflicts: frozenset of member names that may not be combined with this one.
    - verbs: mapping of enum members to VerbDefinition for command groups, else Unset.
    - empty / hexadecimal: per-argument parse policies.
    - descr / hidden / deprecated: help-facing markers.
    - validators: checks run on every parsed value (see argbind.validators).
    """

    __introspectable__ = (
        "member",
        "descriptor",
        "position",
        "long_name",
        "short_name",
        "arity",
        "default",
        "conflicts",
        "verbs",
        "empty",
        "hexadecimal",
        "descr",
        "hidden",
        "deprecated",
        "validators",
    )
    __displayable__ = (
        "member",
        "long_name",
        "short_name",
        "position",
        "arity",
        "descriptor",
    )

    def __init__(
            self,
            member,
            descriptor,
            /,
            *,
            long_name=Unset,
            short_name=None,
            position=Unset,
            arity=Arity.AT_MOST_ONCE,
            default=Unset,
            conflicts=(),
            verbs=Unset,
            empty=False,
            hexadecimal=False,
            descr=Unset,
            hidden=False,
            deprecated=False,
            validators=()
    ):
        if not isinstance(descriptor, Descriptor):
            raise TypeError(f"{type(self).__typename__} 'descriptor' must be a descriptor")
        if not isinstance(position, int | Unset) or isinstance(position, bool):
            raise TypeError(f"{type(self).__typename__} 'position' must be an integer")
        elif isinstance(position, int) and position < 0:
            raise ValueError(f"{type(self).__typename__} 'position' must be a non-negative integer")

        metadata = {
            "member": member,
            "descriptor": descriptor,
            "position": position,
            "long_name": coalesce(long_name, member),
            "short_name": None if position is not Unset else short_name,
            "arity": arity,
            "default": default,
            "conflicts": conflicts,
            "verbs": verbs,
            "empty": bool(empty),
            "hexadecimal": bool(hexadecimal),
            "descr": descr,
            "hidden": bool(hidden),
            "deprecated": bool(deprecated),
            "validators": validators,
        }
        _sanitize_names(type(self), metadata)
        _sanitize_arity(type(self), metadata)
        _sanitize_default(type(self), metadata)
        _sanitize_options(type(self), metadata)

        for name, object in metadata.items():
            setattr(self, "_" + name, object)

    @property
    def default(self):
        return self._default

    @property
    def conflicts(self):
        return self._conflicts

    @property
    def verbs(self):
        return self._verbs

    @property
    def named(self):
        return self._position is Unset

    @property
    def required(self):
        return Arity.REQUIRED in self._arity

    @property
    def multiple(self):
        return Arity.MULTIPLE in self._arity

    @property
    def unique(self):
        return Arity.UNIQUE in self._arity

    @property
    def rest_of_line(self):
        return Arity.REST_OF_LINE in self._arity

    @property
    def effective_default(self):
        """
        The value assigned when the argument never occurs.

        An explicit default wins; otherwise the descriptor's zero value is used,
        unless the argument is required (Unset is returned then).
        """
        if self._default is not Unset:
            return self._default
        if self.required:
            return Unset
        return self._descriptor.zero

    def context(self, context=Unset, /):
        """
        Derive the parse context for this argument from a caller context.
        """
        return derive(context, empty=self._empty, hexadecimal=self._hexadecimal)

    def label(self, prefix="/", /):
        """
        Name used in messages: '/Name' for named arguments, '<name>' for positionals.
        """
        if self.named:
            return prefix + self._long_name
        return f"<{self._long_name}>"

    def syntax(self, prefix="/", separator="=", /):
        """
        Return the help syntax fragment of this argument.

        Examples
        - [/Name=<int>]        optional named argument
        - /Name=<int>          required named argument
        - [/Verbose[=<bool>]]  named argument that may be given without a value
        - [/Tag=<string>]...   repeatable named argument
        - <path>               required positional
        - [<string>...]        rest of line
        """
        value = self._descriptor.syntax
        if self.named:
            if self._descriptor.implicit is not Unset:
                fragment = f"{prefix}{self._long_name}[{separator}{value}]"
            else:
                fragment = f"{prefix}{self._long_name}{separator}{value}"
        elif self.rest_of_line:
            fragment = f"{value}..."
        else:
            fragment = value
        if not self.required:
            fragment = f"[{fragment}]"
        if self.multiple:
            fragment += "..."
        return fragment

    def assign(self, destination, value, /):
        """
        Store value into the destination slot (attribute or mapping item).
        """
        if isinstance(destination, MutableMapping):
            destination[self._member] = value
        else:
            setattr(destination, self._member, value)

    def fetch(self, destination, /, default=Unset):
        """
        Read the destination slot back, returning default when it is missing.
        """
        if isinstance(destination, Mapping):
            return destination.get(self._member, default)
        return getattr(destination, self._member, default)


def descriptor(spec, annotation=Unset, /):
    """
    Resolve the descriptor of a spec: explicit type, then annotation, then str.
    """
    annotation = coalesce(spec.type, coalesce(annotation, builtins.str))
    return lookup(annotation)


__all__ = (
    "Arity",
    "NameStyle",
    "Spec",
    "Named",
    "Positional",
    "ArgumentDefinition",
    "descriptor",
)
