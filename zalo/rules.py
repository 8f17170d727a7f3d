"""Compiled grammar rules and the references that tie them together."""

from __future__ import annotations

import re
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from typing import Optional

from zalo.injections import split_scopes
from zalo.patterns import CapturePos

_CAPTURING_NAME = re.compile(r"\$(\d+)|\$\{(\d+):/(downcase|upcase)\}", re.ASCII)

_REPOSITORY_STACK_CAPACITY = 8

ROOT_RULE_ID = 0
END_RULE_ID = 0xFFFF
TEMP_RULE_ID = 0xFFFF - 1


@dataclass(frozen=True)
class GlobalRuleRef:
    """A rule reference valid across the whole registry: grammar id and rule id."""

    grammar: int
    rule: int


NO_OP_GLOBAL_RULE_REF = GlobalRuleRef(grammar=0xFFFF - 1, rule=TEMP_RULE_ID)
BASE_GLOBAL_RULE_REF = GlobalRuleRef(grammar=0xFFFF - 2, rule=ROOT_RULE_ID)
PRE_CROSS_LINKING_RULE_REF = GlobalRuleRef(grammar=0xFFFF - 3, rule=TEMP_RULE_ID)


def has_captures(pat: str | None) -> bool:
    """True when a scope name refers to regex captures such as ``$1``."""
    return pat is not None and _CAPTURING_NAME.search(pat) is not None


def has_backreferences(pattern: str) -> bool:
    """True when a regex holds a backreference ``\\1`` to ``\\9``."""
    return any(f"\\{i}" in pattern for i in range(1, 10))


def replace_captures(
    original_name: str, text: str, captures_pos: Sequence[CapturePos]
) -> str:
    """Substitute ``$N`` and ``${N:/downcase}``-style references with captured text.

    Leading dots of the captured text are removed. A capture that did not
    participate becomes empty; a reference past the last capture is kept as is.
    """

    def substitute(found: re.Match[str]) -> str:
        digits = found.group(1) or found.group(2) or "0"
        index = int(digits)
        command = found.group(3)
        if index >= len(captures_pos):
            return found.group(0)
        span = captures_pos[index]
        if span is None:
            return ""
        result = text[span[0]:span[1]].lstrip(".")
        if command == "downcase":
            return result.lower()
        if command == "upcase":
            return result.upper()
        return result

    return _CAPTURING_NAME.sub(substitute, original_name)


@dataclass(frozen=True)
class RepositoryStack:
    """The repositories visible from a rule, innermost last. Holds at most 8."""

    ids: tuple[int, ...] = ()

    def push(self, repo_id: int) -> RepositoryStack:
        """Return a new stack with ``repo_id`` on top."""
        if len(self.ids) >= _REPOSITORY_STACK_CAPACITY:
            raise IndexError("repository stack is full")
        return RepositoryStack(self.ids + (repo_id,))

    def pop(self) -> tuple[int, RepositoryStack]:
        """Return the top repository id and the stack without it."""
        if not self.ids:
            raise IndexError("pop from an empty repository stack")
        return self.ids[-1], RepositoryStack(self.ids[:-1])

    def __iter__(self) -> Iterator[int]:
        return iter(self.ids)

    def __len__(self) -> int:
        return len(self.ids)


def _resolve(
    name: str | None, is_capturing: bool, text: str, captures_pos: Sequence[CapturePos]
) -> str | None:
    if name is None:
        return None
    if is_capturing:
        return replace_captures(name, text, captures_pos)
    return name


class Rule:
    """Behaviour shared by every compiled rule kind."""

    name: Optional[str] = None
    name_is_capturing: bool = False
    scopes: Sequence[str] = ()
    content_name: Optional[str] = None
    content_name_is_capturing: bool = False
    content_scopes: Sequence[str] = ()
    patterns: Sequence[GlobalRuleRef] = ()
    repository_stack: RepositoryStack = RepositoryStack()
    apply_end_pattern_last: bool = False
    end_has_backrefs: bool = False

    def resolve_name(self, text: str, captures_pos: Sequence[CapturePos]) -> str | None:
        """The scope name with capture references filled in from the match."""
        return _resolve(self.name, self.name_is_capturing, text, captures_pos)

    def resolve_content_name(
        self, text: str, captures_pos: Sequence[CapturePos]
    ) -> str | None:
        """The content scope name with capture references filled in."""
        return _resolve(
            self.content_name, self.content_name_is_capturing, text, captures_pos
        )

    def name_scopes(self, text: str, captures_pos: Sequence[CapturePos]) -> list[str]:
        """Scopes of the name, precompiled or computed from the captures."""
        if self.name_is_capturing:
            name = self.resolve_name(text, captures_pos)
            return split_scopes(name) if name is not None else []
        return list(self.scopes)

    def resolved_content_scopes(
        self, text: str, captures_pos: Sequence[CapturePos]
    ) -> list[str]:
        """Scopes of the content name, precompiled or computed from the captures."""
        if self.content_name_is_capturing:
            name = self.resolve_content_name(text, captures_pos)
            return split_scopes(name) if name is not None else []
        return list(self.content_scopes)

    def has_patterns(self) -> bool:
        """True when the rule has nested patterns."""
        return bool(self.patterns)

    def has_only_missing_patterns(self) -> bool:
        """True when the rule has patterns and every one of them is unresolved."""
        return bool(self.patterns) and all(
            p == NO_OP_GLOBAL_RULE_REF for p in self.patterns
        )

    def replace_pattern(self, position: int, rule_ref: GlobalRuleRef) -> None:
        """Point the pattern at ``position`` to ``rule_ref``; no-op without patterns."""
        if isinstance(self.patterns, list) and self.patterns:
            self.patterns[position] = rule_ref


@dataclass(frozen=True)
class NoopRule(Rule):
    """A rule removed at compile time because it could never match anything."""


@dataclass(kw_only=True)
class MatchRule(Rule):
    """A single regex match, or a scope-only rule when it has no regex."""

    id: GlobalRuleRef
    name: Optional[str] = None
    name_is_capturing: bool = False
    scopes: list[str] = field(default_factory=list)
    regex_id: Optional[int] = None
    captures: list[Optional[GlobalRuleRef]] = field(default_factory=list)
    repository_stack: RepositoryStack = field(default_factory=RepositoryStack)


@dataclass(kw_only=True)
class IncludeOnlyRule(Rule):
    """A rule that only groups other patterns."""

    id: GlobalRuleRef
    name: Optional[str] = None
    name_is_capturing: bool = False
    scopes: list[str] = field(default_factory=list)
    content_name: Optional[str] = None
    content_name_is_capturing: bool = False
    content_scopes: list[str] = field(default_factory=list)
    repository_stack: RepositoryStack = field(default_factory=RepositoryStack)
    patterns: list[GlobalRuleRef] = field(default_factory=list)


@dataclass(kw_only=True)
class BeginEndRule(Rule):
    """A region opened by a ``begin`` regex and closed by an ``end`` regex."""

    id: GlobalRuleRef
    begin: int
    end: int
    name: Optional[str] = None
    name_is_capturing: bool = False
    scopes: list[str] = field(default_factory=list)
    content_name: Optional[str] = None
    content_name_is_capturing: bool = False
    content_scopes: list[str] = field(default_factory=list)
    begin_captures: list[Optional[GlobalRuleRef]] = field(default_factory=list)
    end_has_backrefs: bool = False
    end_captures: list[Optional[GlobalRuleRef]] = field(default_factory=list)
    apply_end_pattern_last: bool = False
    patterns: list[GlobalRuleRef] = field(default_factory=list)
    repository_stack: RepositoryStack = field(default_factory=RepositoryStack)


@dataclass(kw_only=True)
class BeginWhileRule(Rule):
    """A region opened by ``begin`` that lasts while each line matches ``while``."""

    id: GlobalRuleRef
    begin: int
    while_: int
    name: Optional[str] = None
    name_is_capturing: bool = False
    scopes: list[str] = field(default_factory=list)
    content_name: Optional[str] = None
    content_name_is_capturing: bool = False
    content_scopes: list[str] = field(default_factory=list)
    begin_captures: list[Optional[GlobalRuleRef]] = field(default_factory=list)
    while_has_backrefs: bool = False
    while_captures: list[Optional[GlobalRuleRef]] = field(default_factory=list)
    patterns: list[GlobalRuleRef] = field(default_factory=list)
    repository_stack: RepositoryStack = field(default_factory=RepositoryStack)

    @property
    def end_has_backrefs(self) -> bool:  # type: ignore[override]
        return self.while_has_backrefs