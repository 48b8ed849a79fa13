r"""
Argbind completion engine: candidate continuations for a token at a cursor.

Overview
- complete(source, tokens, index, *, context)
  • Validates the cursor right away (0 <= index <= len(tokens), IndexError
    otherwise) and returns a lazy, finite iterator over candidate tokens for
    the token at 'index'. index == len(tokens) completes a new, empty token.

Candidates
- Name prefix ("/ba", "-", ""): long names (after a long prefix) or short
  names (after a short-only prefix) of named arguments that can still occur,
  case-insensitively filtered and ordered. Hidden arguments are never offered.
- Name plus separator ("/Mode=", "/Mode:fa"): the argument's value
  candidates, each repeated with the typed "/Mode=" head.
- Positional slot: the candidates of the next unconsumed positional.
- Answer file ("@dir/fi"): file-system paths.
- Verbs: once a command-group value selects a verb whose destination could be
  built (zero-argument factory), the following tokens complete against the
  verb's nested schema, as the binder would bind them.

The preceding tokens are only read, never bound: no destination is built and
no answer file is opened.
"""
import itertools
from collections import deque

from .binding import MAX_DEPTH, constructible, recognize
from .contexts import derive
from .descriptors import PATH
from .schemas import resolve_schema
from .tokens import tokenize
from .utils import *


def _names(definition, token, consumed, /):
    """
    Internal: complete a (possibly empty) name prefix into named-argument tokens.
    """
    prefixes = sorted(
        {(prefix, "long") for prefix in definition.prefixes} |
        {(prefix, "short") for prefix in definition.short_prefixes},
        key=lambda pair: (-len(pair[0]), pair[1])
    )
    if not token:
        prefix, kind = definition.prefixes[0], "long"
    else:
        try:
            prefix, kind = next(pair for pair in prefixes if token.startswith(pair[0]))
        except StopIteration:
            return []
    partial = token[len(prefix):]

    candidates = set()
    for argument in definition.named:
        if argument.hidden or argument.member in consumed and not argument.multiple:
            continue
        name = argument.long_name if kind == "long" else argument.short_name
        if name is None:
            continue
        if definition.fold(name).startswith(definition.fold(partial)):
            candidates.add(prefix + name)
    return sorted(candidates, key=lambda candidate: (candidate.lower(), candidate))


def _candidates(definition, texts, index, context, depth, /):
    """
    Internal: generate candidates for texts[index] against one argument set.
    """
    if index == len(texts):
        texts = [*texts, ""]
    context = derive(context, case_sensitive=definition.case_sensitive)
    answer = definition.answer_prefix

    consumed = set()
    positionals = deque(definition.positionals)
    pending = None
    rest = False

    for position, text in enumerate(texts[:index]):
        if pending is not None:
            pending = None
            continue
        if answer is not None and text.startswith(answer) and len(text) > len(answer):
            continue

        match recognize(definition, text):
            case None:
                if not positionals:
                    continue
                argument = positionals[0]
                if argument.rest_of_line:
                    rest = True
                    break
                if not argument.multiple:
                    positionals.popleft()
                value = text
            case (None, _, _, _, _):
                continue
            case (argument, _, _, _, value):
                if value is None:
                    if argument.descriptor.implicit is not Unset:
                        consumed.add(argument.member)
                        continue
                    if not definition.succeeding_values:
                        continue
                    pending = argument
                    value = texts[position + 1] if position + 1 < index else Unset
                    if value is Unset:
                        consumed.add(argument.member)
                        continue

        consumed.add(argument.member)
        if argument.verbs is Unset:
            continue

        member = argument.descriptor.try_parse(value, argument.context(context))
        if member is Unset:
            return
        verb = argument.verbs[member]
        if verb.help or verb.definition is None or depth >= MAX_DEPTH:
            return
        if constructible(verb.factory) is not None:
            return
        start = position + (2 if pending is not None else 1)
        yield from _candidates(verb.definition, texts[start:], index - start, context, depth + 1)
        return

    token = texts[index]

    if pending is not None:
        yield from pending.descriptor.complete(token, pending.context(context))
        return

    if rest:
        yield from positionals[0].descriptor.complete(token, positionals[0].context(context))
        return

    if answer is not None and token.startswith(answer):
        yield from (answer + candidate for candidate in PATH.complete(token[len(answer):], context))
        return

    match recognize(definition, token):
        case (argument, prefix, name, separator, value) if argument is not None and separator is not None:
            head = prefix + name + separator
            yield from (head + candidate for candidate in argument.descriptor.complete(value, argument.context(context)))
            return

    positional = positionals[0] if positionals else None

    if not token:
        if positional is not None and not positional.hidden:
            yield from positional.descriptor.complete("", positional.context(context))
        yield from _names(definition, token, consumed)
        return

    if any(token.startswith(prefix) for prefix in itertools.chain(definition.prefixes, definition.short_prefixes)):
        names = _names(definition, token, consumed)
        if names or positional is None:
            yield from names
            return

    if positional is not None:
        yield from positional.descriptor.complete(token, positional.context(context))


def complete(source, tokens, index, /, *, context=Unset):
    """
    Return an iterator over completions of tokens[index].

    Parameters
    - source: schema source accepted by resolve_schema().
    - tokens: a sequence of strings or Token objects, or a raw line (tokenized
      leniently, so an unterminated quote in the last token is allowed).
    - index: cursor token index, 0 <= index <= len(tokens).
    - context: base Context (file system for path candidates, …).

    Raises (immediately, not on iteration)
    - InvalidArgumentSet: when the schema is invalid.
    - IndexError: when index is out of range.
    - TypeError: when index is not an integer.
    """
    definition = resolve_schema(source)
    if isinstance(tokens, str):
        tokens = tokenize(tokens, partial=True)
    texts = [str(token) for token in tokens]
    if not isinstance(index, int) or isinstance(index, bool):
        raise TypeError("complete() 'index' must be an integer")
    if not 0 <= index <= len(texts):
        raise IndexError(f"complete() index {index} is out of range for {len(texts)} tokens")
    return _candidates(definition, texts, index, derive(context), 0)


__all__ = (
    "complete",
)
