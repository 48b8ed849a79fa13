r"""
Argbind binding engine: tokens in, populated destination (or faults) out.

Overview
- bind(source, tokens, destination=Unset, *, sink, context, max_depth)
  • Resolves the schema, scans the tokens once left to right and returns a
    ParseOutcome. Parse errors never escape: they are collected, handed to the
    optional sink as soon as they are found, and carried by the outcome.
- parse(source, tokens=Unset, **options)
  • Convenience wrapper: bind, then unwrap the outcome (raise BindExit, or in
    shell mode print the faults and exit).
- ParseOutcome: success flag, destination and the ordered fault list.

Scan rules
- A token starting with a configured prefix followed by a known long (or
  short) name is a named occurrence; "/Name=value" and "/Name:value" carry an
  inline value, "/Name" alone uses the descriptor's implicit value (booleans)
  or, when the set allows it, the succeeding token.
- Any other token goes to the next unconsumed positional, in ordinal order. A
  repeatable positional keeps every further positional token; a rest-of-line
  positional starts at its first positional token and from there takes all
  remaining tokens verbatim, named-looking ones included.
- Every parsed value goes through the argument's validators; a rejected
  value is reported as InvalidValueError and not stored.
- "@file" splices the tokenized, non-comment lines of the file in place of the
  token. Unreadable files, undecodable files and cycles abort the whole bind.
- A command-group value selects a verb; the remaining tokens are bound against
  the verb's nested schema into a destination built by its zero-argument
  factory, up to max_depth levels deep.

After the scan every argument is finalized in definition order: collected
values (or effective defaults) are assigned to the destination, missing
required arguments are reported, and setter failures are reported instead of
propagated.

Quick example:
    >>> class Options:
    ...     count = Named(type=int)
    ...     name = Positional(0, type=str, arity=Arity.REQUIRED)
    >>> outcome = bind(Options, "/Count=3 hello")
    >>> outcome.success, outcome.destination.count, outcome.destination.name
    (True, 3, 'hello')
"""
import copy
import inspect
import re
import sys
from collections import deque

from .contexts import derive
from .descriptors import Collection
from .faults import *
from .schemas import ArgumentSetDefinition, Selection, resolve_schema
from .tokens import join, tokenize
from .utils import *

MAX_DEPTH = 32


class ParseOutcome(metaclass=IntrospectableType, sealed=True):
    """
    Result of one bind.

    - success: True when no BindException was reported (warnings are allowed).
    - destination: the populated object; do not trust it when success is False.
    - faults: every reported fault, in order.
    """

    __introspectable__ = (
        "success",
        "destination",
        "faults",
    )

    def __init__(self, destination, faults, /):
        self._destination = destination
        self._faults = tuple(faults)

    @property
    def destination(self):
        return self._destination

    @property
    def faults(self):
        return self._faults

    @property
    def exceptions(self):
        return tuple(fault for fault in self._faults if isinstance(fault, BindException))

    @property
    def warnings(self):
        return tuple(fault for fault in self._faults if isinstance(fault, BindWarning))

    @property
    def success(self):
        return not self.exceptions

    def __bool__(self):
        return self.success

    def unwrap(self, **options):
        """
        Return the destination, surfacing warnings and raising BindExit on failure.

        Options (shell, fancy, colorful, prog, …) are forwarded to trigger();
        in shell mode faults are printed and the process exits with status 1.
        """
        for warning in self.warnings:
            trigger(warning, **options)
        if exceptions := self.exceptions:
            trigger(BindExit(exceptions), **options)
        return self._destination


def recognize(definition, text, /):
    """
    Split a named-shaped token against an argument set.

    Returns None when the token is not named-shaped (no configured prefix
    followed by a name), otherwise (argument, prefix, name, separator, value):
    - argument is None when no long or short name matches,
    - separator and value are None when no inline value was written.

    Long names are tried before short names, longest prefix first.
    """
    prefixes = sorted(
        {(prefix, "long") for prefix in definition.prefixes} |
        {(prefix, "short") for prefix in definition.short_prefixes},
        key=lambda pair: (-len(pair[0]), pair[1])
    )
    unknown = None
    for prefix, kind in prefixes:
        if not text.startswith(prefix) or len(text) == len(prefix):
            continue
        rest = text[len(prefix):]
        splits = [(position, separator) for separator in definition.separators if (position := rest.find(separator)) > 0]
        if splits:
            position, separator = min(splits)
            name, value = rest[:position], rest[position + len(separator):]
        else:
            name, separator, value = rest, None, None
        if not re.fullmatch(r"[^\W\d][\w\-.]*", name):
            continue
        argument = definition.long(name) if kind == "long" else definition.short(name)
        if argument is not None:
            return argument, prefix, name, separator, value
        if unknown is None:
            unknown = None, prefix, name, separator, value
    return unknown


def constructible(factory, /):
    """
    Return why factory cannot build a destination without arguments, or None.
    """
    if factory is Unset or not callable(factory):
        return "no factory is available"
    try:
        inspect.signature(factory).bind()
    except TypeError:
        return f"{getattr(factory, '__name__', factory)!r} cannot be called without arguments"
    except ValueError:
        pass  # no signature available (some builtins)
    return None


def _construct(factory, /):
    """
    Internal: build a destination with a zero-argument factory.

    Returns (destination, reason); destination is Unset when construction
    is not possible and reason then says why.
    """
    if (reason := constructible(factory)) is not None:
        return Unset, reason
    try:
        return factory(), None
    except Exception as exception:
        return Unset, f"{getattr(factory, '__name__', factory)!r} failed ({exception})"


class _Binder:
    """
    One level of binding: one argument set, one destination.

    Nested verb levels get their own binder sharing the fault list and sink.
    """

    def __init__(self, definition, destination, faults, sink, context, depth, max_depth):
        self._definition = definition
        self._destination = destination
        self._faults = faults
        self._sink = sink
        self._context = derive(context, destination=destination, case_sensitive=definition.case_sensitive)
        self._depth = depth
        self._max_depth = max_depth
        self._occurrences = {}
        self._positionals = deque(definition.positionals)
        self.aborted = False

    def report(self, fault, /):
        self._faults.append(fault)
        if self._sink is not Unset:
            self._sink(fault)

    def abort(self, stream, /):
        self.aborted = True
        stream.clear()

    def run(self, stream, /):
        """
        Consume entries of the (text, index, chain) stream until it is empty.
        """
        answer = self._definition.answer_prefix

        while stream and not self.aborted:
            text, index, chain = stream.popleft()

            if answer is not None and text.startswith(answer) and len(text) > len(answer):
                self._splice(text[len(answer):], index, chain, stream)
                continue

            match recognize(self._definition, text):
                case None:
                    self._positional(text, index, chain, stream)
                case (None, _, name, _, _):
                    self._unknown(text, name, index)
                case (argument, prefix, name, _, value):
                    self._named(argument, prefix + name, value, index, stream)

    def _unknown(self, text, name, index, /):
        prefix = self._definition.prefixes[0]
        suggestions = suggest(
            name,
            [argument.long_name for argument in self._definition.named if not argument.hidden]
        )
        try:
            hint = "did you mean %r?" % (prefix + suggestions[0])
        except IndexError:
            hint = "check the spelling or remove the token"
        self.report(UnrecognizedTokenError(
            "unknown argument %r at %s position" % (text, ordinal(index)),
            title="unknown argument",
            code=FaultCode.UNRECOGNIZED_TOKEN,
            hint=hint,
            input=text,
            index=index,
            suggestions=[prefix + suggestion for suggestion in suggestions],
            docs=getdoc(FaultCode.UNRECOGNIZED_TOKEN)
        ))

    def _named(self, argument, input, value, index, stream, /):
        if value is None:
            implicit = argument.descriptor.implicit
            if implicit is not Unset:
                return self._store(argument, implicit, input, index, stream)
            if self._definition.succeeding_values and stream:
                value, index, _ = stream.popleft()
            else:
                return self.report(MissingValueError(
                    "argument %r at %s position requires a value" % (input, ordinal(index)),
                    title="missing value",
                    code=FaultCode.MISSING_VALUE,
                    hint="write it as %s%s%s" % (input, self._definition.separators[0], argument.descriptor.syntax),
                    input=input,
                    index=index,
                    argument=argument,
                    docs=getdoc(FaultCode.MISSING_VALUE)
                ))
        self._accept(argument, value, input, index, stream)

    def _positional(self, text, index, chain, stream, /):
        if not self._positionals:
            return self.report(UnexpectedPositionalError(
                "unexpected value %r at %s position" % (text, ordinal(index)),
                title="unexpected value",
                code=FaultCode.UNEXPECTED_POSITIONAL,
                hint="remove it, or quote it if it belongs to the previous argument",
                input=text,
                index=index,
                docs=getdoc(FaultCode.UNEXPECTED_POSITIONAL)
            ))
        argument = self._positionals[0]
        if argument.rest_of_line:
            # from here on every token belongs to this argument, named-looking or not
            self._positionals.popleft()
            return self._rest(argument, [(text, index, chain), *stream], stream)
        if not argument.multiple:
            self._positionals.popleft()
        self._accept(argument, text, argument.label(), index, stream)

    def _rest(self, argument, entries, stream, /):
        """
        Bind every remaining entry verbatim to a rest-of-line positional.
        """
        stream.clear()
        if isinstance(argument.descriptor, Collection):
            for text, index, _ in entries:
                self._accept(argument, text, argument.label(), index, stream)
        else:
            self._accept(argument, join([text for text, _, _ in entries]), argument.label(), entries[0][1], stream)

    def _splice(self, path, index, chain, stream, /):
        filesystem = self._context.filesystem
        try:
            identity = filesystem.resolve(path)
            if identity in chain:
                self.report(AnswerFileError(
                    "answer file %r at %s position includes itself" % (path, ordinal(index)),
                    title="answer file cycle",
                    code=FaultCode.ANSWER_FILE_CYCLE,
                    hint="remove the reference to %r from the answer files it includes" % path,
                    input=path,
                    index=index,
                    chain=chain,
                    docs=getdoc(FaultCode.ANSWER_FILE_CYCLE)
                ))
                return self.abort(stream)
            texts = []
            for line in filesystem.read(path):
                if not (line := line.strip()) or line.startswith("#"):
                    continue
                texts.extend(map(str, tokenize(line)))
        except (OSError, UnicodeDecodeError, TokenizeError) as exception:
            self.report(AnswerFileError(
                "answer file %r at %s position cannot be read" % (path, ordinal(index)),
                title="unreadable answer file",
                code=FaultCode.ANSWER_FILE,
                hint=str(getattr(exception, "strerror", None) or exception),
                input=path,
                index=index,
                exception=exception,
                docs=getdoc(FaultCode.ANSWER_FILE)
            ))
            return self.abort(stream)
        stream.extendleft(reversed([(text, index, chain + (identity,)) for text in texts]))

    def _accept(self, argument, text, input, index, stream, /):
        """
        Parse one raw value of an argument and record it.
        """
        if text == "" and not argument.empty:
            return self.report(EmptyValueError(
                "empty value for %r at %s position" % (input, ordinal(index)),
                title="empty value",
                code=FaultCode.EMPTY_VALUE,
                hint="provide a %s value" % argument.descriptor.display_name,
                input=input,
                index=index,
                argument=argument,
                docs=getdoc(FaultCode.EMPTY_VALUE)
            ))

        try:
            value = argument.descriptor.try_parse(text, argument.context(self._context))
        except Exception:
            # caller-supplied parsers may raise anything
            value = Unset

        if value is Unset and argument.verbs is not Unset:
            suggestions = suggest(text, list(argument.descriptor.complete("", self._context)))
            self.report(UnrecognizedVerbError(
                "unrecognized verb %r at %s position" % (text, ordinal(index)),
                title="unrecognized verb",
                code=FaultCode.UNRECOGNIZED_VERB,
                hint="did you mean %r?" % suggestions[0] if suggestions else "use one of %s" % argument.descriptor.syntax,
                input=text,
                index=index,
                argument=argument,
                suggestions=suggestions,
                docs=getdoc(FaultCode.UNRECOGNIZED_VERB)
            ))
            # the tokens after an unknown verb belong to no known schema
            return stream.clear()

        if value is Unset:
            return self.report(TypeConversionError(
                "cannot convert %r to %s for %r at %s position" % (text, argument.descriptor.syntax, input, ordinal(index)),
                title="invalid value",
                code=FaultCode.TYPE_CONVERSION,
                hint="expected %s" % argument.descriptor.syntax,
                input=input,
                value=text,
                index=index,
                argument=argument,
                docs=getdoc(FaultCode.TYPE_CONVERSION)
            ))

        context = argument.context(self._context)
        elements = value if isinstance(argument.descriptor, Collection) else [value]
        for validator in argument.validators:
            for element in elements:
                try:
                    validator(element, context)
                except ValueError as exception:
                    return self.report(InvalidValueError(
                        "invalid value %r for %r at %s position: %s" % (text, input, ordinal(index), exception),
                        title="invalid value",
                        code=FaultCode.INVALID_VALUE,
                        hint="the value %s" % exception,
                        input=input,
                        value=text,
                        index=index,
                        argument=argument,
                        reason=str(exception),
                        docs=getdoc(FaultCode.INVALID_VALUE)
                    ))

        self._store(argument, value, input, index, stream)

    def _store(self, argument, value, input, index, stream, /):
        """
        Record a parsed value, enforcing duplicates, conflicts and uniqueness.
        """
        occurrences = self._occurrences.get(argument.member)
        repeatable = argument.multiple or argument.rest_of_line and isinstance(argument.descriptor, Collection)

        if occurrences is not None and not repeatable:
            return self.report(DuplicatedArgumentError(
                "%r at %s position was already given" % (input, ordinal(index)),
                title="duplicated argument",
                code=FaultCode.DUPLICATED_ARGUMENT,
                hint="give %r only once" % input,
                input=input,
                index=index,
                argument=argument,
                docs=getdoc(FaultCode.DUPLICATED_ARGUMENT)
            ))

        if occurrences is None:
            for peer in self._definition.conflicts(argument):
                if peer.member in self._occurrences:
                    self.report(ConflictingArgumentsError(
                        "%r at %s position cannot be combined with %r" % (input, ordinal(index), peer.label(self._definition.prefixes[0])),
                        title="conflicting arguments",
                        code=FaultCode.CONFLICTING_ARGUMENTS,
                        hint="keep only one of them",
                        input=input,
                        index=index,
                        argument=argument,
                        conflict=peer,
                        docs=getdoc(FaultCode.CONFLICTING_ARGUMENTS)
                    ))
            if argument.deprecated:
                self.report(DeprecatedArgumentWarning(
                    "%r at %s position is deprecated" % (input, ordinal(index)),
                    title="deprecated argument",
                    code=FaultCode.DEPRECATED_ARGUMENT,
                    hint="it may be removed in a future version",
                    input=input,
                    index=index,
                    argument=argument,
                    docs=getdoc(FaultCode.DEPRECATED_ARGUMENT)
                ))
            occurrences = self._occurrences[argument.member] = []

        if argument.unique:
            seen = [element for chunk in occurrences for element in chunk]
            for element in value:
                if element in seen:
                    return self.report(DuplicateUniqueValueError(
                        "value %r for %r at %s position was already given" % (argument.descriptor.element.format(element), input, ordinal(index)),
                        title="duplicate value",
                        code=FaultCode.DUPLICATE_UNIQUE_VALUE,
                        hint="each value of %r may appear only once" % input,
                        input=input,
                        index=index,
                        argument=argument,
                        docs=getdoc(FaultCode.DUPLICATE_UNIQUE_VALUE)
                    ))
                seen.append(element)

        occurrences.append(value)

        if argument.verbs is not Unset:
            occurrences[-1] = self._dispatch(argument, value, index, stream)

    def _dispatch(self, argument, member, index, stream, /):
        """
        Bind the remaining stream against the selected verb and return its Selection.
        """
        verb = argument.verbs[member]

        if verb.help:
            remainder = [text for text, _, _ in stream]
            stream.clear()
            return Selection(member, None, remainder)

        if self._depth + 1 > self._max_depth:
            self.report(NestingDepthError(
                "verb %r at %s position nests deeper than %d levels" % (
                    argument.descriptor.format(member), ordinal(index), self._max_depth
                ),
                title="nesting too deep",
                code=FaultCode.NESTING_TOO_DEEP,
                hint="check the schema for verbs that select themselves",
                index=index,
                argument=argument,
                docs=getdoc(FaultCode.NESTING_TOO_DEEP)
            ))
            self.abort(stream)
            return Selection(member)

        definition = verb.definition
        if definition is None:
            definition = ArgumentSetDefinition(
                (),
                prefixes=self._definition.prefixes,
                short_prefixes=self._definition.short_prefixes,
                separators=self._definition.separators,
                answer_prefix=self._definition.answer_prefix,
                case_sensitive=self._definition.case_sensitive
            )
            destination = None
        else:
            destination, reason = _construct(verb.factory)
            if destination is Unset:
                self.report(MissingConstructorError(
                    "verb %r at %s position cannot be constructed: %s" % (
                        argument.descriptor.format(member), ordinal(index), reason
                    ),
                    title="missing constructor",
                    code=FaultCode.MISSING_CONSTRUCTOR,
                    hint="give the verb type (or its factory) a constructor without required parameters",
                    index=index,
                    argument=argument,
                    docs=getdoc(FaultCode.MISSING_CONSTRUCTOR)
                ))
                stream.clear()
                return Selection(member)

        nested = _Binder(definition, destination, self._faults, self._sink, self._context, self._depth + 1, self._max_depth)
        nested.run(stream)
        if nested.aborted:
            self.aborted = True
        else:
            nested.finalize()
        return Selection(member, destination)

    def finalize(self):
        """
        Assign collected values and effective defaults in definition order.
        """
        if self.aborted:
            return
        prefix = self._definition.prefixes[0]
        for argument in self._definition.arguments:
            occurrences = self._occurrences.get(argument.member)
            if occurrences:
                if isinstance(argument.descriptor, Collection):
                    value = argument.descriptor.aggregate(occurrences)
                else:
                    value = occurrences[0]
            elif occurrences is not None:
                # every occurrence was rejected and has been reported already
                continue
            elif argument.required:
                self.report(MissingRequiredError(
                    "missing required %s %r" % (
                        "argument" if argument.named else "positional value",
                        argument.label(prefix)
                    ),
                    title="missing required argument",
                    code=FaultCode.MISSING_REQUIRED,
                    hint="add %s" % argument.syntax(prefix, self._definition.separators[0]),
                    argument=argument,
                    docs=getdoc(FaultCode.MISSING_REQUIRED)
                ))
                continue
            else:
                value = copy.copy(argument.effective_default)

            try:
                argument.assign(self._destination, value)
            except Exception as exception:
                self.report(FinalizeError(
                    "cannot store the value of %r: %s" % (argument.label(prefix), exception),
                    title="finalize failure",
                    code=FaultCode.FINALIZE_FAILURE,
                    hint="check the destination's setter for %r" % argument.member,
                    argument=argument,
                    exception=exception,
                    docs=getdoc(FaultCode.FINALIZE_FAILURE)
                ))


def bind(source, tokens, destination=Unset, /, *, sink=Unset, context=Unset, max_depth=MAX_DEPTH):
    """
    Bind tokens to a destination according to a schema.

    Parameters
    - source: schema source accepted by resolve_schema() (class, mapping or
      ArgumentSetDefinition).
    - tokens: a raw line (tokenized first; TokenizeError propagates) or an
      iterable of strings/Token objects, e.g. sys.argv[1:].
    - destination: object to populate; built with the schema factory when Unset.
    - sink: callable receiving every fault as soon as it is reported
      (see faults.reporter()).
    - context: base Context (file system, …) for parsing and answer files.
    - max_depth: maximum number of nested verb levels.

    Returns
    - ParseOutcome; parse errors are reported, never raised.

    Raises
    - InvalidArgumentSet: when the schema itself is invalid.
    - TokenizeError: when a raw line cannot be tokenized.
    """
    definition = resolve_schema(source)
    if sink is not Unset and not callable(sink):
        raise TypeError("bind() 'sink' must be callable")
    if not isinstance(max_depth, int) or max_depth < 0:
        raise ValueError("bind() 'max_depth' must be a non-negative integer")
    if isinstance(tokens, str):
        tokens = tokenize(tokens)
    tokens = [str(token) for token in tokens]

    faults = []
    if destination is Unset:
        destination, reason = _construct(definition.factory)
        if destination is Unset:
            fault = MissingConstructorError(
                "destination cannot be constructed: %s" % reason,
                title="missing constructor",
                code=FaultCode.MISSING_CONSTRUCTOR,
                hint="pass a destination or give the schema a factory",
                docs=getdoc(FaultCode.MISSING_CONSTRUCTOR)
            )
            faults.append(fault)
            if sink is not Unset:
                sink(fault)
            return ParseOutcome(None, faults)

    binder = _Binder(definition, destination, faults, sink, context, 0, max_depth)
    binder.run(deque((text, index, ()) for index, text in enumerate(tokens, 1)))
    binder.finalize()
    return ParseOutcome(destination, faults)


def parse(source, tokens=Unset, /, *, context=Unset, max_depth=MAX_DEPTH, shell=True, **options):
    """
    Bind and unwrap in one step.

    Tokens default to sys.argv[1:]. In shell mode (the default) faults are
    rendered on stderr and the process exits with status 1 on failure;
    otherwise BindExit is raised. Remaining options go to trigger().
    """
    tokens = coalesce(tokens, sys.argv[1:])
    outcome = bind(source, tokens, context=context, max_depth=max_depth)
    return outcome.unwrap(shell=shell, **options)


__all__ = (
    "ParseOutcome",
    "MAX_DEPTH",
    "recognize",
    "constructible",
    "bind",
    "parse",
)
