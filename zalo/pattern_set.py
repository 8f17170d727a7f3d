"""A set of regexes searched together, the earliest match winning."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

import regex

from zalo.errors import TokenizeRegexError
from zalo.patterns import CapturePos

_FLAGS = regex.MULTILINE | regex.V0


@dataclass
class PatternSetMatch:
    """The winning match of a pattern set search."""

    rule_ref: Any
    start: int
    end: int
    capture_pos: list[CapturePos] = field(default_factory=list)


class PatternSet:
    """Patterns tied to rule references, compiled lazily on first search."""

    def __init__(self, items: Iterable[tuple[Any, str]] = ()) -> None:
        pairs = list(items)
        self.rule_refs: list[Any] = [rule_ref for rule_ref, _ in pairs]
        self.patterns: list[str] = [pattern for _, pattern in pairs]
        self._compiled: list[regex.Pattern | None] = [None] * len(pairs)

    def __len__(self) -> int:
        return len(self.patterns)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PatternSet):
            return NotImplemented
        return self.patterns == other.patterns and self.rule_refs == other.rule_refs

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return "\n".join(
            f"  - {rule_ref!r}: {pattern}"
            for pattern, rule_ref in zip(self.patterns, self.rule_refs)
        )

    def update(self, index: int, pat: str) -> bool:
        """Replace the pattern at ``index``; return whether it changed."""
        if self.patterns[index] == pat:
            return False
        self.patterns[index] = pat
        self._compiled[index] = None
        return True

    def update_front(self, pat: str) -> bool:
        """Replace the first pattern; return whether it changed."""
        return self.update(0, pat)

    def update_last(self, pat: str) -> bool:
        """Replace the last pattern; return whether it changed."""
        return self.update(len(self.patterns) - 1, pat)

    def _compile(self) -> list[regex.Pattern]:
        for index, compiled in enumerate(self._compiled):
            if compiled is not None:
                continue
            pattern = self.patterns[index]
            try:
                self._compiled[index] = regex.compile(pattern, _FLAGS)
            except regex.error as exc:
                raise TokenizeRegexError(
                    f"Failed to compile pattern set with {len(self.patterns)} patterns: "
                    f"[{index}] {self.rule_refs[index]!r}: {pattern!r}: {exc}"
                ) from exc
        return self._compiled  # type: ignore[return-value]

    def find_at(self, text: str, pos: int) -> PatternSetMatch | None:
        """Find the match that starts earliest at or after ``pos``.

        Patterns see the whole text, so lookbehinds can look before ``pos``.
        On a tie the pattern listed first wins. Raises TokenizeRegexError if a
        pattern does not compile.
        """
        if not self.patterns or pos > len(text):
            return None

        best = None
        best_index = 0
        for index, pattern in enumerate(self._compile()):
            found = pattern.search(text, pos)
            if found is None:
                continue
            if best is None or found.start() < best.start():
                best, best_index = found, index
                if found.start() == pos:
                    break

        if best is None:
            return None

        capture_pos: list[CapturePos] = []
        for group in range(best.re.groups + 1):
            start, end = best.span(group)
            capture_pos.append(None if start < 0 else (start, end))

        return PatternSetMatch(
            rule_ref=self.rule_refs[best_index],
            start=best.start(),
            end=best.end(),
            capture_pos=capture_pos,
        )