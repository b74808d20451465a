"""
lexer.py
========
Splits a signature source buffer into word tokens.

Rules:
    - blanks (space, tab, \\n, \\r) separate tokens and are dropped
    - '#' starts a comment that runs to the end of the line
    - '=', ',', '[' and ']' are single character tokens
    - a '"' starts a quoted run kept verbatim (quotes included) up to the
      next unescaped '"'; a backslash keeps the following character
    - any other word runs until a blank or one of '=', ',', ']'

next_token() is the primitive used by both compiler passes: it returns
the token text and the position where the next scan starts. The end of
the buffer is reported as an empty token with the position at len(buffer).
"""

from typing import Iterator, NamedTuple, Tuple

BLANKS = frozenset(" \t\n\r")
COMMENT = "#"
QUOTE = '"'
ESCAPE = "\\"
PUNCTUATION = frozenset("=,[]")
WORD_TERMINATORS = frozenset("=,]")


class Token(NamedTuple):
    text: str
    offset: int
    line: int


def _skip_comment(buffer: str, position: int) -> int:
    end = buffer.find("\n", position)
    return len(buffer) if end == -1 else end


def skip_blanks(buffer: str, position: int) -> int:
    """Advance past blanks and comments. Returns the first significant position."""
    size = len(buffer)
    while position < size:
        c = buffer[position]
        if c in BLANKS:
            position += 1
        elif c == COMMENT:
            position = _skip_comment(buffer, position)
        else:
            break
    return position


def _scan_quoted(buffer: str, position: int) -> int:
    # position points at the opening quote
    size = len(buffer)
    position += 1
    while position < size:
        c = buffer[position]
        if c == ESCAPE:
            position += 2
            continue
        if c == QUOTE:
            return position + 1
        position += 1
    return size


def next_token(buffer: str, position: int = 0) -> Tuple[str, int]:
    """
    Read the token starting at or after position.

    :param buffer: the whole signature source
    :param position: where scanning starts
    :return: (token, new_position); ("", len(buffer)) once the buffer is exhausted
    """
    size = len(buffer)
    start = skip_blanks(buffer, position)
    if start >= size:
        return "", size

    if buffer[start] in PUNCTUATION:
        return buffer[start], start + 1

    end = start
    while end < size and buffer[end] not in BLANKS:
        if buffer[end] == QUOTE:
            end = _scan_quoted(buffer, end)
            break
        end += 1
        if end < size and buffer[end] in WORD_TERMINATORS:
            break

    return buffer[start:end], end


def line_of(buffer: str, offset: int) -> int:
    """1-based line number of offset inside buffer."""
    return buffer.count("\n", 0, offset) + 1


def tokenize(buffer: str, position: int = 0) -> Iterator[Token]:
    """Yield every token of buffer from position on, with its offset and line."""
    size = len(buffer)
    line = line_of(buffer, position)
    while True:
        start = skip_blanks(buffer, position)
        if start >= size:
            return
        line += buffer.count("\n", position, start)
        text, position = next_token(buffer, start)
        yield Token(text, start, line)
        line += text.count("\n")
