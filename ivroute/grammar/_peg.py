"""Backtracking cursor used by the hand-written grammar parsers.

The cursor remembers the farthest offset at which any alternative failed and
what was expected there, so a failed parse reports the most useful location
instead of the last alternative tried.
"""

from __future__ import annotations

import re
from decimal import Decimal
from typing import Pattern, Union

from ..errors import GrammarSyntaxError, SourcePosition, SourceSpan

__all__ = ["Cursor", "INTEGER", "describe_expected", "describe_found", "number_source"]

_WHITESPACE = " \t\n\r"


def describe_expected(expected: list[str]) -> str:
    unique = sorted(set(expected))
    if not unique:
        return "nothing"
    if len(unique) == 1:
        return unique[0]
    if len(unique) == 2:
        return f"{unique[0]} or {unique[1]}"
    return f"{', '.join(unique[:-1])}, or {unique[-1]}"


def describe_found(found: str | None) -> str:
    if found is None:
        return "end of input"
    return '"' + found.replace("\\", "\\\\").replace('"', '\\"') + '"'


class Cursor:
    """Position in a source string plus the farthest-failure bookkeeping."""

    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0
        self._fail_pos = 0
        self._expected: list[str] = []

    @property
    def at_end(self) -> bool:
        return self.pos >= len(self.text)

    def peek(self) -> str | None:
        return None if self.at_end else self.text[self.pos]

    def expect(self, description: str) -> None:
        """Record that *description* was expected at the current position."""

        if self.pos < self._fail_pos:
            return
        if self.pos > self._fail_pos:
            self._fail_pos = self.pos
            self._expected = []
        self._expected.append(description)

    def skip_whitespace(self) -> None:
        while not self.at_end and self.text[self.pos] in _WHITESPACE:
            self.pos += 1

    def literal(self, token: str) -> str | None:
        if self.text.startswith(token, self.pos):
            self.pos += len(token)
            return token
        self.expect(f'"{token}"')
        return None

    def one_of(self, *tokens: str) -> str | None:
        for token in tokens:
            matched = self.literal(token)
            if matched is not None:
                return matched
        return None

    def pattern(self, regex: Pattern[str], description: str) -> str | None:
        match = regex.match(self.text, self.pos)
        if match is None:
            self.expect(description)
            return None
        self.pos = match.end()
        return match.group(0)

    def position(self, offset: int) -> SourcePosition:
        before = self.text[:offset]
        line = before.count("\n") + 1
        column = offset - (before.rfind("\n") + 1) + 1
        return SourcePosition(offset=offset, line=line, column=column)

    def span(self, start: int, end: int) -> SourceSpan:
        return SourceSpan(self.position(start), self.position(end))

    def syntax_error(self) -> GrammarSyntaxError:
        """Build the error for the farthest failure seen so far."""

        offset = self._fail_pos
        found = self.text[offset] if offset < len(self.text) else None
        expected = tuple(sorted(set(self._expected)))
        message = (
            f"Expected {describe_expected(list(expected))} but {describe_found(found)} found."
        )
        end = offset + 1 if found is not None else offset
        return GrammarSyntaxError(
            message,
            expected=expected,
            found=found,
            location=self.span(offset, end),
        )

    def error_here(self, message: str, start: int, expected: str) -> GrammarSyntaxError:
        found = self.text[start:self.pos] or None
        return GrammarSyntaxError(
            message,
            expected=(expected,),
            found=found,
            location=self.span(start, max(self.pos, start)),
        )


INTEGER = re.compile(r"[0-9]+")


def number_source(value: Union[int, float]) -> str:
    """Positional literal for *value*; the grammars accept no exponent form."""

    if isinstance(value, int):
        return str(value)
    text = format(Decimal(repr(value)), "f")
    return text if "." in text else f"{text}.0"
