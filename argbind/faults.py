"""
Argbind faults: what can go wrong, and how it is shown.

Three tiers
- InvalidArgumentSet: the schema itself is unusable. Raised once by
  resolve_schema() and never routed through a sink.
- BindException / BindWarning subclasses: problems with one invocation. The
  binder reports them to a sink and keeps scanning, so one run surfaces as
  many of them as it safely can. BindExit groups the errors when a caller
  unwraps a failed outcome.
- InternalInvariantError: the engine broke its own rules (for instance a
  descriptor registered twice for one type).

TokenizeError sits apart: tokenize() raises it for an unterminated or
misplaced quote, before any binding starts.

Rendering
- Every fault renders itself through rich: a "[ prog — code | Title ]" header,
  the message, and an optional "→ hint" line. fancy=True draws a panel,
  colorful=False drops the styles.
- Host hooks, looked up on __main__: __styles__ (style overrides), __prog__
  (program name), __codes__ (relabel codes), __docs__ (per-code docs).

Delivery
- trigger(fault, **options) raises errors, warns warnings, or in shell mode
  prints them (and exits with status 1 for BindExit).
- reporter(**options) returns a sink printing each fault as it is reported.
"""
import copy
import inspect
import os
import sys
import warnings
from abc import ABC
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    Stable numeric identifiers for every reported fault.

    101xx are tokenizer problems, 111xx are parse errors (routing 0x, values
    1x, occurrences 2x, answer files 3x, finalization 4x) and 12xxx are
    warnings. Hosts can show other labels through a __codes__ mapping.
    """
    # tokenizer
    UNTERMINATED_QUOTE          = 10101
    MISPLACED_QUOTE             = 10102

    # routing
    UNRECOGNIZED_TOKEN          = 11101
    UNEXPECTED_POSITIONAL       = 11102
    UNRECOGNIZED_VERB           = 11103
    MISSING_CONSTRUCTOR         = 11104
    NESTING_TOO_DEEP            = 11105

    # values
    TYPE_CONVERSION             = 11111
    MISSING_VALUE               = 11112
    EMPTY_VALUE                 = 11113
    INVALID_VALUE               = 11114

    # occurrences
    MISSING_REQUIRED            = 11121
    DUPLICATED_ARGUMENT         = 11122
    DUPLICATE_UNIQUE_VALUE      = 11123
    CONFLICTING_ARGUMENTS       = 11124

    # answer files
    ANSWER_FILE                 = 11131
    ANSWER_FILE_CYCLE           = 11132

    # finalization
    FINALIZE_FAILURE            = 11141

    # warnings
    DEPRECATED_ARGUMENT         = 12112

    def normalize(self):
        """
        Return the label shown for this code: the host's __codes__ entry, or the number.
        """
        labels = getattr(__import__("__main__"), "__codes__", {})
        return str(labels.get(self, self.value))


_ERROR_PALETTE = {
    "prog-name": "bold #ECEFF4",
    "code": "bold #88C0D0",
    "title": "bold #BF616A",
    "message": "#D8DEE9",
    "hint-arrow": "dim #A3BE8C",
    "hint": "italic #A3BE8C",
}

_WARNING_PALETTE = _ERROR_PALETTE | {
    "code": "bold #EBCB8B",
    "title": "bold #D08770",
}

_EXIT_PALETTE = {
    "prog-name": "bold #ECEFF4",
    "title": "bold #BF616A",
}


def _program(options, /):
    main = __import__("__main__")
    return getattr(main, "__prog__", options.get("prog", os.path.basename(sys.argv[0]) or "argbind"))


def _styler(options, palette, /):
    """
    Return a function turning a fragment into Text styled from palette (plus host overrides).
    """
    styles = defaultdict(str, palette | getattr(__import__("__main__"), "__styles__", {}))
    colorful = options.get("colorful", True)

    def style(fragment, name=""):
        if isinstance(fragment, Text):
            return fragment if colorful else Text(fragment.plain)
        if not fragment:
            return Text("")
        return Text(str(fragment), styles[name] if colorful else "")

    return style


class _Fault:
    """
    Behavior shared by BindException and BindWarning: message, options, rendering, copying.
    """

    _palette = _ERROR_PALETTE

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    @property
    def code(self):
        return self.options.get("code")

    def __str__(self):
        return str(self.message)

    def __rich__(self):
        style = _styler(self.options, self._palette)
        code = self.options.get("code")

        header = Text.assemble(
            "[ ",
            style(_program(self.options), "prog-name"),
            " — ",
            style(code.normalize() if code else "", "code"),
            " | ",
            style(self.options.get("title", "").title(), "title"),
            " ]"
        )
        body = [style(self.message, "message")]
        if hint := self.options.get("hint"):
            body.append(Text.assemble(style(" → ", "hint-arrow"), style(hint, "hint")))

        if not self.options.get("fancy", False):
            return Group(header, *body)

        ratio = self.options.get("ratio")
        width = int((console.width - 4) * ratio) if ratio else None
        return Panel(Group(*body), title=header, title_align="left", width=width)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **self.options | overrides)


class BindException(_Fault, Exception):
    def __trigger__(self) -> None:
        if self.options.get("shell", False):
            console.print(self)
        else:
            raise self from None


class UnrecognizedTokenError(BindException): ...
class UnexpectedPositionalError(UnrecognizedTokenError): ...
class TypeConversionError(BindException): ...
class MissingValueError(TypeConversionError): ...
class EmptyValueError(TypeConversionError): ...
class InvalidValueError(TypeConversionError): ...
class ArityViolationError(BindException): ...
class MissingRequiredError(ArityViolationError): ...
class DuplicatedArgumentError(ArityViolationError): ...
class DuplicateUniqueValueError(BindException): ...
class ConflictingArgumentsError(BindException): ...
class UnrecognizedVerbError(BindException): ...
class MissingConstructorError(BindException): ...
class NestingDepthError(BindException): ...
class AnswerFileError(BindException): ...
class FinalizeError(BindException): ...


class BindWarning(_Fault, ABC, Warning):
    _palette = _WARNING_PALETTE

    def __trigger__(self) -> None:
        if self.options.get("shell", False):
            console.print(self)
        else:
            warnings.warn(self, stacklevel=len(inspect.stack()))


class DeprecatedArgumentWarning(BindWarning): ...


class BindExit(ExceptionGroup[BindException]):
    """
    All errors of a failed bind, raised (or printed, in shell mode) at once.

    Options given to the group (shell, fancy, colorful, prog) are passed down
    to every member when it is rendered.
    """

    def __new__(cls, exceptions, **options):
        return super().__new__(cls, "bad exit", tuple(exceptions))

    def __init__(self, exceptions, **options):
        super().__init__("bad exit", tuple(exceptions))
        self.options = MappingProxyType(options)

    def __rich__(self):
        style = _styler(self.options, _EXIT_PALETTE)
        header = Text.assemble(
            "[ ",
            style(_program(self.options), "prog-name"),
            " — ",
            style(self.message.title(), "title"),
            " ]"
        )
        members = [copy.replace(exception, ratio=2/3, **self.options) for exception in self.exceptions]
        if self.options.get("fancy", False):
            return Panel(Group(*members), title=header, title_align="left")
        return Group(header, *members)

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.exceptions, **self.options | overrides)


class InvalidArgumentSet(Exception):
    """
    The schema cannot be used: raised by resolve_schema(), never reported to a sink.

    'argument' is the member the problem belongs to, when there is one.
    """
    def __init__(self, message, /, *, argument=Unset):
        super().__init__(message)
        self.message = message
        self.argument = argument


class TokenizeError(ValueError):
    """
    tokenize() could not split 'line'; 'index' is the 0-based offset of the problem.
    """
    def __init__(self, message, /, *, line, index, code):
        super().__init__(message)
        self.message = message
        self.line = line
        self.index = index
        self.code = code


class InternalInvariantError(RuntimeError):
    """
    The engine broke one of its own invariants; a bug, not bad input.
    """


def trigger(fault, /, **options):
    """
    Deliver a fault after merging options into it.

    Errors are raised and warnings go through the warnings module, unless
    shell=True, in which case both are printed on the console (and BindExit
    ends the process with status 1).
    """
    for name in ("__trigger__", "__replace__"):
        if not callable(getattr(fault, name, None)):
            raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


def reporter(**options):
    """
    Return a sink for bind() that prints each fault, with options merged in, as it arrives.
    """
    def sink(fault, /):
        console.print(copy.replace(fault, **options))
    return sink


def getdoc(code, /):
    """
    Return the host's documentation for code from a __docs__ mapping on __main__, or None.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    return getattr(__import__("__main__"), "__docs__", {}).get(code)


__all__ = (
    "BindException",
    "UnrecognizedTokenError",
    "UnexpectedPositionalError",
    "TypeConversionError",
    "MissingValueError",
    "EmptyValueError",
    "InvalidValueError",
    "ArityViolationError",
    "MissingRequiredError",
    "DuplicatedArgumentError",
    "DuplicateUniqueValueError",
    "ConflictingArgumentsError",
    "UnrecognizedVerbError",
    "MissingConstructorError",
    "NestingDepthError",
    "AnswerFileError",
    "FinalizeError",
    "BindWarning",
    "DeprecatedArgumentWarning",
    "BindExit",
    "InvalidArgumentSet",
    "TokenizeError",
    "InternalInvariantError",
    "FaultCode",
    "trigger",
    "reporter",
    "getdoc",
)
