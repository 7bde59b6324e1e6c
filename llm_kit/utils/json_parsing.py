"""
JSON parsing utilities for LLM Kit

``safe_parse_json`` is the strict parser used once a generated object is
complete. ``parse_partial_json`` is the tolerant parser used while the object
is still streaming: it repairs a truncated prefix by closing whatever is open
and returns the deepest value representable from the text read so far.
"""

import json
import re
from dataclasses import dataclass
from typing import Any, List, Literal, Optional

PartialParseState = Literal["undefined-input", "successful-parse", "repaired-parse", "failed-parse"]


@dataclass(frozen=True)
class ParseResult:
    success: bool
    value: Any = None
    error: Optional[Exception] = None


@dataclass(frozen=True)
class PartialJson:
    value: Any
    state: PartialParseState

    @property
    def has_value(self) -> bool:
        return self.state in ("successful-parse", "repaired-parse")


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Invalid JSON literal: {name}")


def strict_loads(text: str) -> Any:
    """
    Parse text as RFC 8259 JSON

    Unlike ``json.loads`` this rejects the NaN/Infinity extensions.
    """
    return json.loads(text, parse_constant=_reject_constant)


def safe_parse_json(text: str) -> ParseResult:
    """
    Parse text as strict JSON without raising

    Args:
        text: Raw text produced by a model

    Returns:
        ParseResult carrying either the value or the parser error
    """
    try:
        return ParseResult(success=True, value=strict_loads(text))
    except (ValueError, TypeError, RecursionError) as e:
        return ParseResult(success=False, error=e)


def try_parse_json(text: Optional[str]) -> bool:
    if text is None:
        return False
    return safe_parse_json(text).success


def parse_partial_json(text: Optional[str]) -> PartialJson:
    """
    Tolerantly parse a possibly incomplete JSON document

    Args:
        text: A prefix of a JSON document

    Returns:
        PartialJson with the parsed value and how it was obtained. The value is
        only meaningful when ``has_value`` is true.
    """
    if text is None or not text.strip():
        return PartialJson(None, "undefined-input")

    strict = safe_parse_json(text)
    if strict.success:
        return PartialJson(strict.value, "successful-parse")

    try:
        value = _PartialParser(text).parse()
    except (_Truncated, _Malformed, RecursionError):
        return PartialJson(None, "failed-parse")
    return PartialJson(value, "repaired-parse")


# ---- tolerant parser -----------------------------------------------------------

_WHITESPACE = " \t\n\r"
_NUMBER = re.compile(r"-?(?:0|[1-9][0-9]*)(?:\.[0-9]+)?(?:[eE][+-]?[0-9]+)?")
_NUMBER_CHARS = re.compile(r"[-+0-9.eE]*")
_LITERALS = (("true", True), ("false", False), ("null", None))
# deeper documents are reported as failed parses
MAX_PARTIAL_DEPTH = 200


class _Truncated(Exception):
    """Input ended before a value produced anything usable."""


class _Malformed(Exception):
    """Input is not a prefix of any JSON document."""


class _PartialParser:
    def __init__(self, text: str):
        self.text = text
        self.pos = 0
        self.depth = 0
        self.truncated = False

    def parse(self) -> Any:
        value = self._value()
        if not self.truncated:
            self._skip_whitespace()
            if self.pos < len(self.text):
                raise _Malformed(self.pos)
        return value

    def _skip_whitespace(self) -> None:
        while self.pos < len(self.text) and self.text[self.pos] in _WHITESPACE:
            self.pos += 1

    def _at_end(self) -> bool:
        self._skip_whitespace()
        if self.pos >= len(self.text):
            self.truncated = True
            return True
        return False

    def _value(self) -> Any:
        self._skip_whitespace()
        if self.pos >= len(self.text):
            raise _Truncated()
        ch = self.text[self.pos]
        if ch == "{" or ch == "[":
            self.depth += 1
            if self.depth > MAX_PARTIAL_DEPTH:
                raise _Malformed(self.pos)
            try:
                return self._object() if ch == "{" else self._array()
            finally:
                self.depth -= 1
        if ch == '"':
            return self._string()
        if ch == "-" or ch.isdigit():
            return self._number()
        return self._literal()

    def _object(self) -> dict:
        self.pos += 1
        result: dict = {}
        if self._at_end():
            return result
        if self.text[self.pos] == "}":
            self.pos += 1
            return result
        while True:
            if self._at_end():
                return result
            if self.text[self.pos] != '"':
                raise _Malformed(self.pos)
            key = self._string()
            # incomplete key: drop the member
            if self.truncated or self._at_end():
                return result
            if self.text[self.pos] != ":":
                raise _Malformed(self.pos)
            self.pos += 1
            try:
                value = self._value()
            except _Truncated:
                self.truncated = True
                return result
            result[key] = value
            if self.truncated or self._at_end():
                return result
            ch = self.text[self.pos]
            self.pos += 1
            if ch == "}":
                return result
            if ch != ",":
                raise _Malformed(self.pos - 1)

    def _array(self) -> list:
        self.pos += 1
        result: List[Any] = []
        if self._at_end():
            return result
        if self.text[self.pos] == "]":
            self.pos += 1
            return result
        while True:
            try:
                value = self._value()
            except _Truncated:
                self.truncated = True
                return result
            result.append(value)
            if self.truncated or self._at_end():
                return result
            ch = self.text[self.pos]
            self.pos += 1
            if ch == "]":
                return result
            if ch != ",":
                raise _Malformed(self.pos - 1)

    def _string(self) -> str:
        start = self.pos
        i = start + 1
        end = len(self.text)
        while i < end:
            ch = self.text[i]
            if ch == '"':
                self.pos = i + 1
                return self._decode_string(self.text[start:self.pos])
            if ch == "\\":
                if i + 1 >= end:
                    break
                if self.text[i + 1] == "u":
                    if i + 6 > end:
                        break
                    i += 6
                    continue
                i += 2
                continue
            i += 1

        # unterminated: keep only complete escape sequences
        body = self.text[start + 1:min(i, end)]
        body = _drop_dangling_high_surrogate(body)
        self.pos = end
        self.truncated = True
        return self._decode_string('"' + body + '"')

    @staticmethod
    def _decode_string(literal: str) -> str:
        try:
            return json.loads(literal)
        except ValueError as e:
            raise _Malformed(str(e)) from e

    def _number(self) -> Any:
        start = self.pos
        span = _NUMBER_CHARS.match(self.text, start).group(0)
        self.pos = start + len(span)

        if self.pos < len(self.text):
            if _NUMBER.fullmatch(span) is None:
                raise _Malformed(start)
            return strict_loads(span)

        # the number runs to the end of the input and may still be growing
        self.truncated = True
        match = _NUMBER.match(span)
        if match is None:
            raise _Truncated()
        if match.end() != len(span) and not _is_number_prefix(span):
            raise _Malformed(start)
        return strict_loads(match.group(0))

    def _literal(self) -> Any:
        rest = self.text[self.pos:]
        for word, value in _LITERALS:
            if rest.startswith(word):
                self.pos += len(word)
                return value
            if word.startswith(rest):
                self.pos = len(self.text)
                self.truncated = True
                return value
        raise _Malformed(self.pos)


_NUMBER_PREFIX = re.compile(r"-?(?:0|[1-9][0-9]*)?(?:\.[0-9]*)?(?:[eE][+-]?[0-9]*)?")


def _is_number_prefix(span: str) -> bool:
    return _NUMBER_PREFIX.fullmatch(span) is not None


_HIGH_SURROGATE_ESCAPE = re.compile(r"\\u[dD][89abAB][0-9a-fA-F]{2}$")


def _drop_dangling_high_surrogate(body: str) -> str:
    match = _HIGH_SURROGATE_ESCAPE.search(body)
    if match is None:
        return body
    # an escaped backslash before it means it is literal text, not an escape
    backslashes = len(body[:match.start()]) - len(body[:match.start()].rstrip("\\"))
    if backslashes % 2:
        return body
    return body[:match.start()]


# ---- structural equality -------------------------------------------------------

def is_deep_equal_data(left: Any, right: Any) -> bool:
    """
    Structural equality for JSON-like data

    Booleans never compare equal to numbers, which plain ``==`` would allow.
    """
    if left is right:
        return True
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if isinstance(left, dict):
        if not isinstance(right, dict) or left.keys() != right.keys():
            return False
        return all(is_deep_equal_data(left[key], right[key]) for key in left)
    if isinstance(left, (list, tuple)):
        if not isinstance(right, (list, tuple)) or len(left) != len(right):
            return False
        return all(is_deep_equal_data(a, b) for a, b in zip(left, right))
    if left is None or right is None:
        return False
    if type(left) is not type(right) and not (
        isinstance(left, (int, float)) and isinstance(right, (int, float))
    ):
        return False
    return left == right
