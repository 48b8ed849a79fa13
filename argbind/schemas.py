r"""
Argbind schemas: argument sets, verbs and schema resolution.

Overview
- Verb: declarative marker tying an enum member to a nested schema (or to the
  "exit" / "help" behaviors) for command-group arguments.
- VerbDefinition: a resolved verb; its nested ArgumentSetDefinition is built
  once and shared by every bind.
- Selection: the value a command-group argument receives once a verb matched
  (the member, the constructed nested destination and any unparsed remainder).
- ArgumentSetDefinition: an ordered, name-unique collection of argument
  definitions plus the set-level policy.
  • prefixes / short_prefixes: named-argument prefixes for long/short names.
  • separators: characters splitting "/Name=value".
  • answer_prefix: token prefix naming an answer file ("@"), None to disable.
  • case_sensitive: whether names are matched case-sensitively.
  • succeeding_values: whether "/Name value" takes the next token as value.
  • factory: zero-argument callable constructing a fresh destination.
- resolve_schema(source, **policy): fail-fast construction of an
  ArgumentSetDefinition from a class carrying Named/Positional specs, a
  mapping of member names to specs, or an existing definition.
- @schema(**policy): attach a resolution policy to a schema class.

Schema errors
- Any malformed metadata raises InvalidArgumentSet at resolution time; the
  offending member is carried in 'argument'. Resolution never reports through
  a sink and never defers errors to parse time.

Quick example:
    >>> class Options:
    ...     bar = Named(type=int)
    ...     baz = Named(type=str)
    >>> definition = resolve_schema(Options)
    >>> [argument.long_name for argument in definition.arguments]
    ['Bar', 'Baz']
"""
import copy
import enum
import inspect
from collections.abc import Iterable, Mapping
from types import MappingProxyType

from .arguments import ArgumentDefinition, NameStyle, Named, Positional, Spec, descriptor
from .descriptors import Enum, EnumValue
from .faults import InvalidArgumentSet
from .utils import *


class Verb(metaclass=IntrospectableType, sealed=True):
    """
    Verb marker for one enum member of a command group.

    Parameters
    - schema: schema source bound against the tokens following the verb
      (class, mapping or ArgumentSetDefinition). Unset means the verb takes no
      further arguments.
    - factory: zero-argument callable building the nested destination; the
      nested schema's own factory is used when Unset.
    - exits: the verb ends the command loop (no nested schema).
    - help: the verb asks for help; remaining tokens are kept unparsed.
    - long_name / short_name / hidden / descr: naming and help markers.
    """

    __introspectable__ = (
        "schema",
        "factory",
        "exits",
        "help",
        "long_name",
        "short_name",
        "hidden",
        "descr",
    )
    __displayable__ = (
        "schema",
        "exits",
        "help",
        "long_name",
    )

    def __init__(self, schema=Unset, /, *, factory=Unset, exits=False, help=False, long_name=Unset, short_name=Unset, hidden=False, descr=Unset):
        if factory is not Unset and not callable(factory):
            raise TypeError(f"{type(self).__typename__} 'factory' must be callable")
        if (exits or help) and schema is not Unset:
            raise ValueError(f"{type(self).__typename__} exit and help verbs cannot have a schema")
        if exits and help:
            raise ValueError(f"{type(self).__typename__} cannot both exit and ask for help")
        self._schema = schema
        self._factory = factory
        self._exits = bool(exits)
        self._help = bool(help)
        self._long_name = long_name
        self._short_name = short_name
        self._hidden = bool(hidden)
        self._descr = descr

    @property
    def schema(self):
        return self._schema


class VerbDefinition(metaclass=IntrospectableType, sealed=True):
    """
    Resolved verb of a command group.

    The nested definition is resolved eagerly, except for self-referential
    schemas, which resolve on first access (and are then cached).
    """

    __introspectable__ = (
        "member",
        "source",
        "exits",
        "help",
        "descr",
    )

    def __init__(self, member, /, *, source=Unset, definition=Unset, factory=Unset, exits=False, help=False, policy=None, descr=None):
        if not isinstance(member, enum.Enum):
            raise TypeError(f"{type(self).__typename__} 'member' must be an enum member")
        self._member = member
        self._source = source
        self._definition = definition
        self._factory = factory
        self._exits = bool(exits)
        self._help = bool(help)
        self._policy = dict(policy or {})
        self._descr = descr

    @property
    def member(self):
        return self._member

    @property
    def source(self):
        return self._source

    @property
    def definition(self):
        """
        The nested ArgumentSetDefinition, or None for verbs without a schema.
        """
        if self._definition is Unset:
            self._definition = None if self._source is Unset else resolve_schema(self._source, **self._policy)
        return self._definition

    @property
    def factory(self):
        if self._factory is not Unset:
            return self._factory
        if self.definition is None:
            return Unset
        return self.definition.factory


class Selection(metaclass=IntrospectableType, sealed=True):
    """
    Value bound to a command-group argument.

    - verb: the selected enum member.
    - command: the nested destination populated from the remaining tokens
      (None for verbs without a schema).
    - remainder: raw tokens left unparsed (help verbs only).
    """

    __introspectable__ = (
        "verb",
        "command",
        "remainder",
    )

    def __init__(self, verb, command=None, remainder=()):
        self._verb = verb
        self._command = command
        self._remainder = tuple(remainder)

    @property
    def command(self):
        return self._command

    @property
    def remainder(self):
        return self._remainder

    def __eq__(self, other):
        if not isinstance(other, Selection):
            return NotImplemented
        return (self._verb, self._command, self._remainder) == (other._verb, other._command, other._remainder)

    __hash__ = None


def _sanitize_strings(name, value, /, *, empty=False):
    """
    Internal: validate a policy field holding a collection of non-empty strings.
    """
    if isinstance(value, str) or not isinstance(value, Iterable):
        raise InvalidArgumentSet(f"argument set {name!r} must be an iterable of strings")
    value = tuple(dict.fromkeys(value))
    if not all(isinstance(item, str) and item and not item.isspace() for item in value):
        raise InvalidArgumentSet(f"argument set {name!r} must contain non-empty strings")
    if not value and not empty:
        raise InvalidArgumentSet(f"argument set {name!r} cannot be empty")
    return value


class ArgumentSetDefinition(metaclass=IntrospectableType, sealed=True):
    """
    Ordered, name-unique collection of argument definitions plus set-level policy.

    Construction validates the whole set and raises InvalidArgumentSet for:
    - empty prefix or separator sets (or empty/whitespace members),
    - duplicate members, long names (case-insensitive) or short names,
    - conflict sets naming unknown or self arguments,
    - positional ordinals that are not 0..n-1, rest-of-line or repeatable
      positionals that are not last, and required positionals after optional ones.

    Conflicts are made symmetric: if A lists B, B conflicts with A as well.
    """

    __introspectable__ = (
        "arguments",
        "prefixes",
        "short_prefixes",
        "separators",
        "answer_prefix",
        "case_sensitive",
        "succeeding_values",
        "factory",
        "name",
    )
    __displayable__ = (
        "name",
        "arguments",
        "prefixes",
        "separators",
        "answer_prefix",
    )

    def __init__(
            self,
            arguments,
            /,
            *,
            prefixes=("/", "-"),
            short_prefixes=Unset,
            separators=("=", ":"),
            answer_prefix="@",
            case_sensitive=False,
            succeeding_values=False,
            factory=Unset,
            name=Unset
    ):
        arguments = tuple(arguments)
        if not all(isinstance(argument, ArgumentDefinition) for argument in arguments):
            raise InvalidArgumentSet("argument set members must be argument definitions")

        self._arguments = arguments
        self._prefixes = _sanitize_strings("prefixes", prefixes)
        self._short_prefixes = _sanitize_strings("short_prefixes", coalesce(short_prefixes, self._prefixes), empty=True)
        self._separators = _sanitize_strings("separators", separators)
        if answer_prefix is not None and (not isinstance(answer_prefix, str) or not answer_prefix.strip()):
            raise InvalidArgumentSet("argument set 'answer_prefix' must be a non-empty string or None")
        self._answer_prefix = answer_prefix
        self._case_sensitive = bool(case_sensitive)
        self._succeeding_values = bool(succeeding_values)
        if factory is not Unset and not callable(factory):
            raise InvalidArgumentSet("argument set 'factory' must be callable")
        self._factory = factory
        self._name = coalesce(name, getattr(factory, "__name__", None))

        self._members = {}
        self._long_names = {}
        self._short_names = {}
        for argument in arguments:
            if self._members.setdefault(argument.member, argument) is not argument:
                raise InvalidArgumentSet(f"member {argument.member!r} is declared more than once", argument=argument.member)
            if self._long_names.setdefault(argument.long_name.lower(), argument) is not argument:
                raise InvalidArgumentSet(
                    f"long name {argument.long_name!r} of {argument.member!r} is already "
                    f"used by {self._long_names[argument.long_name.lower()].member!r}",
                    argument=argument.member
                )
        for argument in self.named:
            if argument.short_name is None:
                continue
            if self._short_names.setdefault(self.fold(argument.short_name), argument) is not argument:
                raise InvalidArgumentSet(
                    f"short name {argument.short_name!r} of {argument.member!r} is already "
                    f"used by {self._short_names[self.fold(argument.short_name)].member!r}",
                    argument=argument.member
                )
            if set(self._short_prefixes) & set(self._prefixes) and self._long_names.get(argument.short_name.lower(), argument) is not argument:
                raise InvalidArgumentSet(
                    f"short name {argument.short_name!r} of {argument.member!r} is ambiguous with a long name",
                    argument=argument.member
                )

        conflicts = {argument.member: set() for argument in arguments}
        for argument in arguments:
            for reference in argument.conflicts:
                peer = self._members.get(reference) or self._long_names.get(reference.lower())
                if peer is None:
                    raise InvalidArgumentSet(
                        f"{argument.member!r} conflicts with unknown argument {reference!r}",
                        argument=argument.member
                    )
                if peer is argument:
                    raise InvalidArgumentSet(f"{argument.member!r} cannot conflict with itself", argument=argument.member)
                conflicts[argument.member].add(peer.member)
                conflicts[peer.member].add(argument.member)
        self._conflicts = MappingProxyType({member: frozenset(peers) for member, peers in conflicts.items()})

        self._positionals = tuple(sorted((argument for argument in arguments if not argument.named), key=lambda argument: argument.position))
        for index, argument in enumerate(self._positionals):
            if argument.position != index:
                raise InvalidArgumentSet(
                    f"positional {argument.member!r} has position {argument.position}, expected {index}",
                    argument=argument.member
                )
            if (argument.multiple or argument.rest_of_line) and index != len(self._positionals) - 1:
                raise InvalidArgumentSet(
                    f"positional {argument.member!r} consumes every remaining value and must be last",
                    argument=argument.member
                )
            if argument.required and index and not self._positionals[index - 1].required:
                raise InvalidArgumentSet(
                    f"required positional {argument.member!r} cannot follow an optional one",
                    argument=argument.member
                )

    @property
    def arguments(self):
        return self._arguments

    @property
    def prefixes(self):
        return self._prefixes

    @property
    def short_prefixes(self):
        return self._short_prefixes

    @property
    def separators(self):
        return self._separators

    @property
    def factory(self):
        return self._factory

    @property
    def named(self):
        return tuple(argument for argument in self._arguments if argument.named)

    @property
    def positionals(self):
        return self._positionals

    def fold(self, name, /):
        """
        Normalize a name for lookups according to the case policy.
        """
        return name if self._case_sensitive else name.lower()

    def member(self, member, /):
        return self._members[member]

    def long(self, name, /):
        """
        Return the named argument with the given long name, or None.
        """
        argument = self._long_names.get(name.lower())
        if argument is None or not argument.named:
            return None
        if self._case_sensitive and argument.long_name != name:
            return None
        return argument

    def short(self, name, /):
        """
        Return the named argument with the given short name, or None.
        """
        return self._short_names.get(self.fold(name))

    def conflicts(self, argument, /):
        """
        Return the definitions the given argument may not be combined with.
        """
        return tuple(self._members[member] for member in self._conflicts[argument.member])

    def syntax(self):
        """
        Return the help syntax fragments of all visible arguments, named ones first.
        """
        prefix = self._prefixes[0]
        separator = self._separators[0]
        return [
            argument.syntax(prefix, separator)
            for argument in self.named + self._positionals
            if not argument.hidden
        ]

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self._arguments, **{
            "prefixes": self._prefixes,
            "short_prefixes": self._short_prefixes,
            "separators": self._separators,
            "answer_prefix": self._answer_prefix,
            "case_sensitive": self._case_sensitive,
            "succeeding_values": self._succeeding_values,
            "factory": self._factory,
            "name": self._name,
        } | overrides)


_POLICY = (
    "prefixes",
    "short_prefixes",
    "separators",
    "answer_prefix",
    "case_sensitive",
    "succeeding_values",
    "factory",
    "name",
)

_NAMING = (
    "style",
    "abbreviate",
)


def _members(source, /):
    """
    Internal: collect (member, spec) pairs and annotations of a class, bases first.
    """
    specs = {}
    annotations = {}
    for klass in reversed(source.__mro__):
        if klass is object:
            continue
        try:
            annotations |= inspect.get_annotations(klass, eval_str=True)
        except Exception as exception:
            raise InvalidArgumentSet(f"annotations of {klass.__name__!r} cannot be evaluated ({exception})") from exception
        for member, value in vars(klass).items():
            if isinstance(value, Spec):
                specs[member] = value
            elif member in specs:
                # a plain override in a subclass removes the inherited argument
                del specs[member]
    return list(specs.items()), annotations


def _verbs(spec, target, policy, trail, /):
    """
    Internal: build the enum descriptor and verb definitions of a command group.
    """
    enum_type = target.type if isinstance(target, Enum) else target
    if not isinstance(enum_type, type) or not issubclass(enum_type, enum.Enum):
        raise TypeError("command groups must be typed with an enum")

    values = {}
    definitions = {}
    nested = {name: value for name, value in policy.items() if name != "factory"}
    for verb_member in enum_type:
        verb = spec.verbs.get(verb_member, Unset)
        if verb is Unset:
            values[verb_member] = EnumValue(disallowed=True, hidden=True)
            continue
        if not isinstance(verb, Verb):
            verb = Verb(verb)
        values[verb_member] = EnumValue(verb.long_name, verb.short_name, hidden=verb.hidden, descr=verb.descr)
        definition = Unset
        if verb.schema is not Unset and not any(verb.schema is source for source in trail):
            definition = _resolve(verb.schema, nested, trail)
        definitions[verb_member] = VerbDefinition(
            verb_member,
            source=verb.schema,
            definition=definition,
            factory=verb.factory,
            exits=verb.exits,
            help=verb.help,
            policy=nested,
            descr=coalesce(verb.descr)
        )
    for key in spec.verbs:
        if key not in definitions:
            raise ValueError(f"verb key {key!r} is not a member of {enum_type.__name__}")
    # verbs are chosen by name, never by member value
    return Enum(enum_type, values, numeric=False), definitions


def _definitions(items, annotations, policy, trail, /):
    """
    Internal: turn (member, spec) pairs into ArgumentDefinition objects.

    Long names are generated by the naming style when not explicit. Short names
    are abbreviated to the first letter of the long name when not explicit,
    unless the letter is already taken (explicit names win, then first come).
    """
    style = policy.get("style", NameStyle.PASCAL)
    if not isinstance(style, NameStyle):
        raise InvalidArgumentSet("argument set 'style' must be a name style")
    abbreviate = policy.get("abbreviate", True)

    names = {}
    taken = set()
    for member, spec in items:
        if not isinstance(member, str):
            raise InvalidArgumentSet(f"argument members must be strings, got {member!r}")
        if not isinstance(spec, Spec):
            raise InvalidArgumentSet(f"argument {member!r} must be declared with Named or Positional", argument=member)
        names[member] = coalesce(spec.long_name, style.generate(member))
        if isinstance(spec, Named) and isinstance(spec.short_name, str):
            taken.add(spec.short_name.lower())
    taken |= {name.lower() for name in names.values() if isinstance(name, str) and len(name) == 1}

    definitions = []
    for member, spec in items:
        short_name = None
        if isinstance(spec, Named):
            short_name = spec.short_name
            if short_name is Unset:
                short_name = None
                candidate = names[member][:1].lower() if isinstance(names[member], str) else ""
                if abbreviate and candidate.isalpha() and candidate not in taken:
                    taken.add(short_name := candidate)
        try:
            target = descriptor(spec, annotations.get(member, Unset))
            verbs = Unset
            if spec.verbs is not Unset:
                if not isinstance(spec.verbs, Mapping):
                    raise TypeError("'verbs' must be a mapping of enum members to verbs")
                target, verbs = _verbs(spec, target, policy, trail)
            definitions.append(ArgumentDefinition(
                member,
                target,
                long_name=names[member],
                short_name=short_name,
                position=spec.position if isinstance(spec, Positional) else Unset,
                arity=spec.arity,
                default=spec.default,
                conflicts=spec.conflicts,
                verbs=verbs,
                empty=spec.empty,
                hexadecimal=spec.hexadecimal,
                descr=spec.descr,
                hidden=spec.hidden,
                deprecated=spec.deprecated,
                validators=spec.validators
            ))
        except (TypeError, ValueError) as exception:
            raise InvalidArgumentSet(f"argument {member!r}: {exception}", argument=member) from exception
    return definitions


def _resolve(source, policy, trail, /):
    """
    Internal: resolve a schema source with an inherited policy.
    """
    if isinstance(source, ArgumentSetDefinition):
        overrides = {name: value for name, value in policy.items() if name in _POLICY}
        return copy.replace(source, **overrides) if overrides else source

    if isinstance(source, type):
        policy = policy | getattr(source, "__policy__", {})
        try:
            key = frozenset(policy.items())
            cached = source.__dict__.get("__schemas__", {}).get(key)
        except TypeError:
            key = cached = None
        if cached is not None:
            return cached
        items, annotations = _members(source)
        factory = source
    elif isinstance(source, Mapping):
        key = None
        items, annotations = list(source.items()), {}
        factory = dict
    else:
        raise TypeError("resolve_schema() argument must be a class, a mapping or an argument set definition")

    unknown = set(policy) - set(_POLICY) - set(_NAMING)
    if unknown:
        raise InvalidArgumentSet(f"unknown argument set policy {sorted(unknown)!r}")

    definition = ArgumentSetDefinition(
        _definitions(items, annotations, policy, trail + (source,)),
        **{"factory": factory} | {name: value for name, value in policy.items() if name in _POLICY}
    )

    if key is not None:
        if "__schemas__" not in source.__dict__:
            source.__schemas__ = {}
        source.__schemas__[key] = definition
    return definition


def resolve_schema(source, /, **policy):
    """
    Resolve a schema source into an ArgumentSetDefinition.

    Parameters
    - source: a class whose attributes are Named/Positional specs (member
      annotations provide the types), a mapping of member names to specs (the
      destination is then a dict), or an ArgumentSetDefinition.
    - policy: keyword-only overrides of the set-level policy ('prefixes',
      'short_prefixes', 'separators', 'answer_prefix', 'case_sensitive',
      'succeeding_values', 'factory', 'name') and of the naming policy
      ('style', 'abbreviate'). A @schema(...) policy on the class wins over
      these, so nested verb schemas can keep their own conventions.

    Raises
    - InvalidArgumentSet: for any malformed metadata.
    - TypeError: when source is none of the accepted shapes.

    Resolved class schemas are cached on the class per policy, so resolving the
    same class again returns the same (immutable) definition.
    """
    return _resolve(source, policy, ())


def schema(**policy):
    """
    Class decorator attaching a resolution policy to a schema class.

    Example:
        >>> @schema(prefixes=("--",), short_prefixes=("-",), style=NameStyle.HYPHENATED)
        ... class Options:
        ...     output_path = Named(type=Path)
    """
    unknown = set(policy) - set(_POLICY) - set(_NAMING)
    if unknown:
        raise TypeError(f"schema() got unknown policy {sorted(unknown)!r}")

    def wrapper(source, /):
        if not isinstance(source, type):
            raise TypeError("@schema() must be applied to a class")
        source.__policy__ = dict(policy)
        return source

    return wrapper


__all__ = (
    "Verb",
    "VerbDefinition",
    "Selection",
    "ArgumentSetDefinition",
    "resolve_schema",
    "schema",
)
