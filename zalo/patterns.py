"""Regex patterns as found in grammars, compiled lazily."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Optional

import regex

from zalo.errors import TokenizeRegexError

CapturePos = Optional[tuple[int, int]]

_ESCAPED = frozenset("-\\{}*+?|^$.,[]()#")

_FLAGS = regex.MULTILINE | regex.V0

_UNSET = object()


def escape_regexp_characters(value: str) -> str:
    """Escape the characters that are special in a regex."""
    return "".join(
        f"\\{c}" if c in _ESCAPED or c.isspace() else c for c in value
    )


def resolve_backreferences(
    pattern: str, input: str, captures_pos: Sequence[CapturePos]
) -> str:
    """Replace ``\\N`` in ``pattern`` with the escaped text of capture N."""
    captures = [input[c[0]:c[1]] if c is not None else "" for c in captures_pos]

    out: list[str] = []
    chars = iter(enumerate(pattern))
    length = len(pattern)
    position = 0
    while position < length:
        c = pattern[position]
        position += 1
        if c != "\\":
            out.append(c)
            continue
        end = position
        while end < length and pattern[end] in "0123456789":
            end += 1
        digits = pattern[position:end]
        position = end
        if digits:
            index = int(digits)
            captured = captures[index] if index < len(captures) else ""
            out.append(escape_regexp_characters(captured))
        else:
            out.append(c)
    del chars
    return "".join(out)


def transform_z_anchor(pattern: str) -> str:
    """Turn ``\\z`` into an end anchor that does not match after a final newline."""
    return (
        pattern.replace("\\\\z", "___TEMP___")
        .replace("\\z", "$(?!\\n)(?<!\\n)")
        .replace("___TEMP___", "\\\\z")
    )


class Regex:
    """A grammar regex whose compilation is deferred until first use."""

    __slots__ = ("pattern", "_compiled")

    def __init__(self, pattern: str) -> None:
        self.pattern = transform_z_anchor(pattern)
        self._compiled: object = _UNSET

    def compiled(self) -> regex.Pattern | None:
        """Return the compiled regex, or None if the pattern does not compile."""
        if self._compiled is _UNSET:
            try:
                self._compiled = regex.compile(self.pattern, _FLAGS)
            except regex.error:
                self._compiled = None
        return self._compiled  # type: ignore[return-value]

    def validate(self) -> None:
        """Raise TokenizeRegexError if the pattern does not compile."""
        try:
            regex.compile(self.pattern, _FLAGS)
        except regex.error as exc:
            raise TokenizeRegexError(f"{self.pattern}: {exc}") from exc

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Regex):
            return NotImplemented
        return self.pattern == other.pattern

    def __hash__(self) -> int:
        return hash(self.pattern)

    def __repr__(self) -> str:
        return self.pattern