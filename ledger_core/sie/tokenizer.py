"""
SIE Line Tokenizer

An SIE line is a #TAG followed by positional fields separated by
spaces or tabs. Two constructs are atomic:

- "quoted fields", which may contain whitespace; \\" is a literal quote
- {object lists}, e.g. {1 "100" 6 "P12"}, which may contain quoted
  strings (and so braces inside quotes)

An unterminated quote or object list is a structural error.
"""

from typing import NamedTuple

from ledger_core.errors import MalformedSIE


WORD = "word"
QUOTED = "quoted"
OBJECTS = "objects"

_WHITESPACE = " \t"


class Token(NamedTuple):
    value: str
    kind: str

    @property
    def is_objects(self) -> bool:
        return self.kind == OBJECTS


def _read_quoted(line: str, pos: int, line_number: int) -> tuple[str, int]:
    """Read a quoted field starting after the opening quote."""
    chars = []
    while pos < len(line):
        char = line[pos]
        if char == "\\" and pos + 1 < len(line) and line[pos + 1] == '"':
            chars.append('"')
            pos += 2
            continue
        if char == '"':
            return "".join(chars), pos + 1
        chars.append(char)
        pos += 1
    raise MalformedSIE(line_number, "unterminated quoted field", line)


def _read_objects(line: str, pos: int, line_number: int) -> tuple[str, int]:
    """Read an object list starting after the opening brace."""
    start = pos
    while pos < len(line):
        char = line[pos]
        if char == '"':
            _, pos = _read_quoted(line, pos + 1, line_number)
            continue
        if char == "}":
            return line[start:pos].strip(), pos + 1
        pos += 1
    raise MalformedSIE(line_number, "unterminated object list", line)


def tokenize(line: str, line_number: int) -> list[Token]:
    """
    Split one SIE line into tokens.

    Object list tokens carry the text between the braces.

    Raises:
        MalformedSIE: Unterminated quote or object list.
    """
    tokens: list[Token] = []
    pos = 0
    length = len(line)

    while pos < length:
        char = line[pos]
        if char in _WHITESPACE:
            pos += 1
        elif char == '"':
            value, pos = _read_quoted(line, pos + 1, line_number)
            tokens.append(Token(value, QUOTED))
        elif char == "{":
            value, pos = _read_objects(line, pos + 1, line_number)
            tokens.append(Token(value, OBJECTS))
        else:
            start = pos
            while pos < length and line[pos] not in _WHITESPACE:
                pos += 1
            tokens.append(Token(line[start:pos], WORD))

    return tokens
