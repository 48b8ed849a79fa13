r'''
Argbind tokenizer: quote-aware splitting of a raw input line.

Overview
- Token: an immutable view over the source line. It carries the unquoted
  contents, whether the token started and ended with a quote, and the four
  offsets (inner/outer start, inner/outer end) into the original line.
- tokenize(line): split a line into tokens, raising TokenizeError for input
  that cannot be split.
- quote(text) / join(texts): the inverse direction, producing a line that
  tokenizes back to the given texts.

Rules
- Tokens are separated by runs of whitespace outside quotes.
- A double quote at the very start of a token opens a quoted region in which
  whitespace is literal; the region ends at the next lone double quote, which
  must be followed by whitespace or the end of the line.
- Inside a quoted region a doubled quote ("") stands for one literal quote.
  This is the only escaping rule; backslashes are ordinary characters.
- A quote that appears in the middle of an unquoted token is an ordinary character.
- An unterminated quoted region is an error, unless partial input is allowed
  (used by completion, where the last token may still be in progress).
- An empty or all-whitespace line produces no tokens.

Quick example:
    >>> [str(token) for token in tokenize('a "b c" d')]
    ['a', 'b c', 'd']
    >>> join(['a', 'b c', 'say "hi"'])
    'a "b c" "say ""hi"""'
'''
from .faults import FaultCode, TokenizeError
from .utils import *


class Token(metaclass=IntrospectableType, sealed=True):
    """
    Immutable view over one recognized token of a source line.

    Offsets are 0-based indices into 'line'; 'inner' offsets delimit the
    contents between the quotes, 'outer' offsets include them. The contents
    are the unquoted text, with doubled quotes collapsed, so they are not
    necessarily equal to line[inner_start:inner_end].

    Invariant
    - outer_length == inner_length + starts_with_quote + ends_with_quote
    """

    __introspectable__ = (
        "contents",
        "line",
        "starts_with_quote",
        "ends_with_quote",
        "inner_start",
        "inner_end",
    )
    __displayable__ = (
        "contents",
        "starts_with_quote",
        "ends_with_quote",
        "inner_start",
        "inner_end",
    )

    def __init__(self, contents, line, inner_start, inner_end, /, *, starts_with_quote=False, ends_with_quote=False):
        if not isinstance(contents, str) or not isinstance(line, str):
            raise TypeError(f"{type(self).__typename__} contents and line must be strings")
        if not 0 <= inner_start <= inner_end <= len(line):
            raise ValueError(f"{type(self).__typename__} offsets must lie within the line")
        if starts_with_quote and inner_start < 1 or ends_with_quote and inner_end >= len(line):
            raise ValueError(f"{type(self).__typename__} quotes must lie within the line")
        self._contents = contents
        self._line = line
        self._inner_start = inner_start
        self._inner_end = inner_end
        self._starts_with_quote = bool(starts_with_quote)
        self._ends_with_quote = bool(ends_with_quote)

    @property
    def inner_length(self):
        return self._inner_end - self._inner_start

    @property
    def outer_start(self):
        return self._inner_start - self._starts_with_quote

    @property
    def outer_end(self):
        return self._inner_end + self._ends_with_quote

    @property
    def outer_length(self):
        return self.outer_end - self.outer_start

    def __str__(self):
        return self._contents

    def __eq__(self, other):
        if not isinstance(other, Token):
            return NotImplemented
        return (
            self._contents == other._contents and
            self._line == other._line and
            self._inner_start == other._inner_start and
            self._inner_end == other._inner_end and
            self._starts_with_quote == other._starts_with_quote and
            self._ends_with_quote == other._ends_with_quote
        )

    def __hash__(self):
        return hash((self._contents, self._line, self._inner_start, self._inner_end))


def tokenize(line, /, *, partial=False, quotes='"'):
    """
    Split a raw input line into a list of Token objects.

    Parameters
    - line: str
      the raw line to split.
    - partial: bool (keyword-only)
      tolerate an unterminated quoted region (or a misplaced closing quote) in
      the last token; the token is then reported with ends_with_quote=False.
    - quotes: str (keyword-only)
      characters that open a quoted region; defaults to the double quote only.

    Raises
    - TypeError: when line is not a string.
    - TokenizeError: for an unterminated quoted region, or a closing quote
      that is not followed by whitespace or the end of the line.
    """
    if not isinstance(line, str):
        raise TypeError("tokenize() argument must be a string")
    if not isinstance(quotes, str):
        raise TypeError("tokenize() 'quotes' must be a string")

    tokens = []
    index = 0
    length = len(line)

    while index < length:
        if line[index].isspace():
            index += 1
            continue

        if line[index] not in quotes:
            # unquoted token: runs until the next whitespace, quotes are literal
            start = index
            while index < length and not line[index].isspace():
                index += 1
            tokens.append(Token(line[start:index], line, start, index))
            continue

        quote = line[index]
        start = index = index + 1
        contents = []
        while True:
            if index >= length:
                if not partial:
                    raise TokenizeError(
                        "unterminated quoted token from offset %d" % (start - 1),
                        line=line,
                        index=start - 1,
                        code=FaultCode.UNTERMINATED_QUOTE
                    )
                tokens.append(Token("".join(contents), line, start, length, starts_with_quote=True))
                break
            if line[index] != quote:
                contents.append(line[index])
                index += 1
                continue
            if index + 1 < length and line[index + 1] == quote:
                # doubled quote inside a quoted region: one literal quote
                contents.append(quote)
                index += 2
                continue
            if index + 1 < length and not line[index + 1].isspace():
                if not partial:
                    raise TokenizeError(
                        "closing quote at offset %d must end the token" % index,
                        line=line,
                        index=index,
                        code=FaultCode.MISPLACED_QUOTE
                    )
                # keep scanning: the closing quote is taken literally in partial mode
                contents.append(line[index])
                index += 1
                continue
            tokens.append(Token("".join(contents), line, start, index, starts_with_quote=True, ends_with_quote=True))
            index += 1
            break

    return tokens


def quote(text, /):
    """
    Return text as it must be written on a line to tokenize back to itself.

    Texts without whitespace that do not start with a quote are returned
    unchanged; everything else is wrapped in double quotes with inner quotes doubled.
    """
    if not isinstance(text, str):
        raise TypeError("quote() argument must be a string")
    if text and not text.startswith('"') and not any(char.isspace() for char in text):
        return text
    return '"%s"' % text.replace('"', '""')


def join(texts, /):
    """
    Join texts into one line, quoting each one where needed.
    """
    return " ".join(map(quote, texts))


__all__ = (
    "Token",
    "tokenize",
    "quote",
    "join",
)
