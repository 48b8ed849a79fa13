r"""
Argbind formatting: the inverse of binding, and help syntax.

Overview
- unparse(source, destination): tokens that bind back to an equal destination.
  • named arguments first (in definition order), then positionals, then the
    tokens of the selected verb, named or positional (its name, then its own
    unparse), since a verb takes every token after it.
  • ValueError when a positional text would read back as a named argument or
    an answer file, or when more than one verb is selected.
  • values equal to the argument's effective default are omitted.
  • booleans whose value is the implicit one are written as a bare "/Name".
  • repeatable arguments emit one token per element.
- serialize(source, destination): unparse() joined into one quoted line.
- usage(source, prog=Unset): one-line syntax summary built from each
  argument's syntax fragment (layout and coloring are left to the caller).

Quick example:
    >>> class Options:
    ...     count = Named(type=int)
    ...     verbose = Named(type=bool)
    ...     name = Positional(0, type=str)
    >>> serialize(Options, bind(Options, ["/Count=3", "/Verbose", "a b"]).destination)
    '/Count=3 /Verbose "a b"'
"""
from .descriptors import Collection
from .binding import recognize
from .schemas import Selection, resolve_schema
from .tokens import join, tokenize
from .utils import *


def _values(argument, value, /):
    """
    Internal: format one bound value into the texts it was parsed from.
    """
    descriptor = argument.descriptor
    if isinstance(descriptor, Collection):
        if argument.multiple or argument.rest_of_line:
            return [descriptor.format([element]) for element in descriptor.elements(value)]
        return [descriptor.format(list(descriptor.elements(value)))]
    if argument.rest_of_line:
        return [str(token) for token in tokenize(value)]
    return [descriptor.format(value)]


def _ambiguous(definition, text, /):
    """
    Internal: whether a positional text would be read back as something else.
    """
    answer = definition.answer_prefix
    if answer is not None and text.startswith(answer) and len(text) > len(answer):
        return True
    return recognize(definition, text) is not None


def _unparse(definition, destination, /):
    prefix = definition.prefixes[0]
    separator = definition.separators[0]
    tokens = []
    tail = []

    def selection(argument, value, /):
        verb = argument.verbs[value.verb]
        texts = [argument.descriptor.format(value.verb)]
        if verb.definition is not None and value.command is not None:
            texts.extend(_unparse(verb.definition, value.command))
        texts.extend(value.remainder)
        return texts

    def select(texts, /):
        # a selected verb binds every token after it, so only one can be written
        if tail:
            raise ValueError("only one verb can be written back per argument set")
        tail.extend(texts)

    for argument in definition.named:
        value = argument.fetch(destination)
        if value is Unset or value is None or not argument.required and value == argument.effective_default:
            continue
        if isinstance(value, Selection):
            head, *rest = selection(argument, value)
            select([prefix + argument.long_name + separator + head, *rest])
        elif argument.descriptor.implicit is not Unset and value == argument.descriptor.implicit:
            tokens.append(prefix + argument.long_name)
        else:
            tokens.extend(prefix + argument.long_name + separator + text for text in _values(argument, value))

    # positionals are emitted up to the last one holding a non-default value
    positionals = []
    for argument in definition.positionals:
        value = argument.fetch(destination)
        if value is Unset or value is None:
            break
        positionals.append((argument, value))
    while positionals and not positionals[-1][0].required and positionals[-1][1] == positionals[-1][0].effective_default:
        positionals.pop()

    for argument, value in positionals:
        if isinstance(value, Selection):
            select(selection(argument, value))
            break
        texts = _values(argument, value)
        # after its first token a rest-of-line argument takes everything verbatim
        checked = texts[:1] if argument.rest_of_line else texts
        for text in checked:
            if _ambiguous(definition, text):
                raise ValueError(
                    f"positional value {text!r} of {argument.member!r} would be read back "
                    f"as a named argument or an answer file"
                )
        tokens.extend(texts)

    return tokens + tail


def unparse(source, destination, /):
    """
    Return the list of tokens that bind back to destination.

    Raises ValueError/TypeError when a value cannot be formatted by its descriptor,
    and ValueError when the tokens would not bind back (see the module notes).
    """
    return _unparse(resolve_schema(source), destination)


def serialize(source, destination, /):
    """
    Return unparse() as a single line, quoting tokens where needed.
    """
    return join(unparse(source, destination))


def usage(source, /, prog=Unset):
    """
    Return the one-line syntax summary of a schema, e.g. "tool [/Count=<int>] <name>".
    """
    fragments = resolve_schema(source).syntax()
    if prog is not Unset:
        fragments.insert(0, prog)
    return " ".join(fragments)


__all__ = (
    "unparse",
    "serialize",
    "usage",
)
