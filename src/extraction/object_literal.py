# src/extraction/object_literal.py — v1
"""Restricted parser for JS/TS object literals.

Accepts only literal data: objects, arrays, strings, numbers, true/false,
null/undefined. Identifiers are allowed as object keys but never as values,
so nothing is ever evaluated. Comments and trailing commas are tolerated.

    >>> parse_object_literal("{ greeting: 'hi', count: 2, }")
    {'greeting': 'hi', 'count': 2}
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any

from transnorm.core.errors import ParseError

_PUNCTUATION = "{}[]:,"
_IDENT_RE = re.compile(r"[A-Za-z_$][\w$]*")
_NUMBER_RE = re.compile(
    r"""
    [+-]?
    (?:
        0[xX][0-9a-fA-F](?:_?[0-9a-fA-F])*
      | 0[oO][0-7](?:_?[0-7])*
      | 0[bB][01](?:_?[01])*
      | (?:\d(?:_?\d)*(?:\.(?:\d(?:_?\d)*)?)? | \.\d(?:_?\d)*)
        (?:[eE][+-]?\d(?:_?\d)*)?
    )
    """,
    re.VERBOSE,
)
_SIGNED_WORD_RE = re.compile(r"[+-](Infinity|NaN)\b")
_SIMPLE_ESCAPES = {
    "n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f", "v": "\v", "0": "\0",
}
_LINE_TERMINATORS = "\n\r\u2028\u2029"

_WORD_VALUES: dict[str, Any] = {
    "true": True,
    "false": False,
    "null": None,
    "undefined": None,
    "Infinity": math.inf,
    "NaN": math.nan,
}


@dataclass
class Token:
    kind: str  # "punct", "string", "number", "ident", "eof"
    value: Any
    pos: int


class _Tokenizer:
    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0

    def tokens(self) -> list[Token]:
        result: list[Token] = []
        while True:
            tok = self._next()
            result.append(tok)
            if tok.kind == "eof":
                return result

    def _error(self, message: str, pos: int | None = None) -> ParseError:
        at = self.pos if pos is None else pos
        return ParseError(f"{message} at offset {at}")

    def _skip_trivia(self) -> None:
        text = self.text
        while self.pos < len(text):
            ch = text[self.pos]
            if ch.isspace() or ch == "\ufeff":
                self.pos += 1
            elif text.startswith("//", self.pos):
                end = self.pos + 2
                while end < len(text) and text[end] not in _LINE_TERMINATORS:
                    end += 1
                self.pos = end
            elif text.startswith("/*", self.pos):
                end = text.find("*/", self.pos + 2)
                if end == -1:
                    raise self._error("unterminated block comment")
                self.pos = end + 2
            else:
                return

    def _next(self) -> Token:
        self._skip_trivia()
        text = self.text
        start = self.pos
        if start >= len(text):
            return Token("eof", None, start)

        ch = text[start]
        if ch in _PUNCTUATION:
            self.pos += 1
            return Token("punct", ch, start)
        if ch in "'\"`":
            return Token("string", self._read_string(ch), start)

        signed = _SIGNED_WORD_RE.match(text, start)
        if signed:
            self.pos = signed.end()
            value = _WORD_VALUES[signed.group(1)]
            return Token("number", -value if ch == "-" else value, start)

        number = _NUMBER_RE.match(text, start)
        if number and (ch.isdigit() or ch in "+-."):
            self.pos = number.end()
            if self.pos < len(text) and (text[self.pos].isalnum() or text[self.pos] in "_$"):
                raise self._error("invalid numeric literal", start)
            return Token("number", _to_number(number.group(0)), start)

        ident = _IDENT_RE.match(text, start)
        if ident:
            self.pos = ident.end()
            return Token("ident", ident.group(0), start)

        raise self._error(f"unexpected character {ch!r}")

    def _read_string(self, quote: str) -> str:
        text = self.text
        start = self.pos
        self.pos += 1
        chars: list[str] = []
        while True:
            if self.pos >= len(text):
                raise self._error("unterminated string", start)
            ch = text[self.pos]
            if ch == quote:
                self.pos += 1
                return "".join(chars)
            if ch == "\\":
                chars.append(self._read_escape())
                continue
            if quote == "`" and text.startswith("${", self.pos):
                raise self._error("template interpolation is not a literal")
            if quote != "`" and ch in "\n\r":
                raise self._error("unterminated string", start)
            chars.append(ch)
            self.pos += 1

    def _read_escape(self) -> str:
        text = self.text
        self.pos += 1  # backslash
        if self.pos >= len(text):
            raise self._error("unterminated escape")
        ch = text[self.pos]
        self.pos += 1
        if ch in _SIMPLE_ESCAPES:
            return _SIMPLE_ESCAPES[ch]
        if ch == "x":
            return self._read_hex(2)
        if ch == "u":
            if text.startswith("{", self.pos):
                end = text.find("}", self.pos)
                if end == -1:
                    raise self._error("unterminated unicode escape")
                digits = text[self.pos + 1:end]
                self.pos = end + 1
                return _code_point(digits, self)
            return self._read_hex(4)
        if ch == "\r" and text.startswith("\n", self.pos):
            self.pos += 1
            return ""
        if ch in _LINE_TERMINATORS:
            return ""
        return ch

    def _read_hex(self, length: int) -> str:
        digits = self.text[self.pos:self.pos + length]
        if len(digits) != length:
            raise self._error("truncated hex escape")
        self.pos += length
        return _code_point(digits, self)


def _code_point(digits: str, tokenizer: _Tokenizer) -> str:
    try:
        return chr(int(digits, 16))
    except ValueError as e:
        raise tokenizer._error(f"invalid escape digits {digits!r}") from e


def _to_number(literal: str) -> int | float:
    sign = -1 if literal.startswith("-") else 1
    body = literal.lstrip("+-").replace("_", "")
    prefix = body[:2].lower()
    if prefix == "0x":
        return sign * int(body[2:], 16)
    if prefix == "0o":
        return sign * int(body[2:], 8)
    if prefix == "0b":
        return sign * int(body[2:], 2)
    if any(c in body for c in ".eE"):
        return sign * float(body)
    return sign * int(body)


class _Parser:
    def __init__(self, tokens: list[Token]) -> None:
        self.tokens = tokens
        self.index = 0

    @property
    def current(self) -> Token:
        return self.tokens[self.index]

    def advance(self) -> Token:
        tok = self.tokens[self.index]
        if tok.kind != "eof":
            self.index += 1
        return tok

    def expect(self, punct: str) -> None:
        tok = self.advance()
        if tok.kind != "punct" or tok.value != punct:
            raise _unexpected(tok, f"expected {punct!r}")

    def is_punct(self, punct: str) -> bool:
        tok = self.current
        return tok.kind == "punct" and tok.value == punct

    def parse_value(self) -> Any:
        tok = self.current
        if tok.kind == "punct" and tok.value == "{":
            return self.parse_object()
        if tok.kind == "punct" and tok.value == "[":
            return self.parse_array()
        if tok.kind in ("string", "number"):
            self.advance()
            return tok.value
        if tok.kind == "ident" and tok.value in _WORD_VALUES:
            self.advance()
            return _WORD_VALUES[tok.value]
        raise _unexpected(tok, "expected a literal value")

    def parse_object(self) -> dict[str, Any]:
        self.expect("{")
        result: dict[str, Any] = {}
        while not self.is_punct("}"):
            key = self.parse_key()
            self.expect(":")
            result[key] = self.parse_value()
            if not self.is_punct(","):
                break
            self.advance()
        self.expect("}")
        return result

    def parse_key(self) -> str:
        tok = self.advance()
        if tok.kind in ("string", "ident"):
            return tok.value
        if tok.kind == "number":
            return display_number(tok.value)
        raise _unexpected(tok, "expected an object key")

    def parse_array(self) -> list[Any]:
        self.expect("[")
        items: list[Any] = []
        while not self.is_punct("]"):
            items.append(self.parse_value())
            if not self.is_punct(","):
                break
            self.advance()
        self.expect("]")
        return items


def _unexpected(tok: Token, message: str) -> ParseError:
    found = "end of input" if tok.kind == "eof" else repr(tok.value)
    return ParseError(f"{message}, found {found} at offset {tok.pos}")


def display_number(value: int | float) -> str:
    """Render a number the way JS String() does for the common cases."""
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer() and abs(value) < 1e21:
            return str(int(value))
    return str(value)


def parse_literal(text: str) -> Any:
    """Parse a single literal value of any kind.

    Raises:
        ParseError: If text is not exactly one literal.
    """
    parser = _Parser(_Tokenizer(text).tokens())
    try:
        value = parser.parse_value()
    except RecursionError as e:
        raise ParseError("literal nested too deeply") from e
    if parser.current.kind != "eof":
        raise _unexpected(parser.current, "expected end of input")
    return value


def parse_object_literal(text: str) -> dict[str, Any]:
    """Parse text that must be a single object literal.

    Raises:
        ParseError: If text is not an object literal.
    """
    value = parse_literal(text)
    if not isinstance(value, dict):
        raise ParseError(f"expected an object literal, got {type(value).__name__}")
    return value
