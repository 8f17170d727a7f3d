"""Injection selectors: parsing and matching against scope stacks."""

from __future__ import annotations

import enum
import re
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Union

_SELECTOR_PART = re.compile(r"([LR]:|[\w.:]+[\w\*.:\-]*|[,|\-()])")

_IDENTIFIER_CHARS = frozenset(
    "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789_.:-*"
)


class InjectionPrecedence(enum.Enum):
    """Where an injection goes relative to the grammar's own patterns.

    Only LEFT changes anything; RIGHT behaves like no prefix at all.
    """

    LEFT = "L"
    RIGHT = "R"


def split_scopes(name: str) -> list[str]:
    """Split a space separated scope name into its scopes."""
    return name.split()


def is_scope_prefix(prefix: str, scope: str) -> bool:
    """True when ``prefix`` equals ``scope`` or is a dotted-part prefix of it."""
    return scope == prefix or scope.startswith(prefix + ".")


@dataclass(frozen=True)
class ScopeMatcher:
    """Matches when any scope of the stack starts with this scope."""

    scope: str

    def matches(self, scope_stack: Sequence[str]) -> bool:
        return any(is_scope_prefix(self.scope, item) for item in scope_stack)

    def __str__(self) -> str:
        return self.scope


@dataclass(frozen=True)
class AndMatcher:
    """All matchers must succeed; plain scopes must appear in order."""

    matchers: tuple[Matcher, ...]

    def matches(self, scope_stack: Sequence[str]) -> bool:
        start = 0
        for matcher in self.matchers:
            if isinstance(matcher, ScopeMatcher):
                found = next(
                    (
                        index
                        for index in range(start, len(scope_stack))
                        if is_scope_prefix(matcher.scope, scope_stack[index])
                    ),
                    None,
                )
                if found is None:
                    return False
                start = found + 1
            elif not matcher.matches(scope_stack):
                return False
        return True

    def __str__(self) -> str:
        return " ".join(str(m) for m in self.matchers)


@dataclass(frozen=True)
class OrMatcher:
    """Any of the matchers may succeed."""

    matchers: tuple[Matcher, ...]

    def matches(self, scope_stack: Sequence[str]) -> bool:
        return any(m.matches(scope_stack) for m in self.matchers)

    def __str__(self) -> str:
        if len(self.matchers) == 1:
            return str(self.matchers[0])
        return "(" + " | ".join(str(m) for m in self.matchers) + ")"


@dataclass(frozen=True)
class NotMatcher:
    """Succeeds when the inner matcher does not."""

    matcher: Matcher

    def matches(self, scope_stack: Sequence[str]) -> bool:
        return not self.matcher.matches(scope_stack)

    def __str__(self) -> str:
        return f"-{self.matcher}"


Matcher = Union[ScopeMatcher, AndMatcher, OrMatcher, NotMatcher]


@dataclass(frozen=True)
class CompiledInjectionMatcher:
    """One selector of an injection, with its optional precedence prefix."""

    matcher: Matcher
    priority: InjectionPrecedence | None = None

    def matches(self, scope_stack: Sequence[str]) -> bool:
        """True when the selector applies to the scope stack."""
        return self.matcher.matches(scope_stack)

    def precedence(self) -> InjectionPrecedence:
        """The precedence, RIGHT when no prefix was given."""
        return self.priority or InjectionPrecedence.RIGHT

    def __str__(self) -> str:
        if self.priority is None:
            return str(self.matcher)
        return f"{self.priority.value}:{self.matcher}"

    def __repr__(self) -> str:
        return f'"{self}"'


def _is_identifier(part: str) -> bool:
    if not part or part == "-":
        return False
    return all(c in _IDENTIFIER_CHARS for c in part)


def _scope_of(part: str) -> str:
    wildcard = part.find(".*")
    base = part[:wildcard].rstrip(".") if wildcard >= 0 else part
    scopes = split_scopes(base)
    return scopes[0] if scopes else base


class _Parser:
    def __init__(self, parts: list[str]) -> None:
        self.parts = parts
        self.position = 0

    def peek(self) -> str | None:
        if self.position < len(self.parts):
            return self.parts[self.position]
        return None

    def inner_expression(self) -> Matcher:
        alternatives: list[Matcher] = []
        while (matcher := self.conjunction()) is not None:
            if matcher not in alternatives:
                alternatives.append(matcher)
            if self.peek() in ("|", ","):
                self.position += 1
            else:
                break
        if len(alternatives) == 1:
            return alternatives[0]
        return OrMatcher(tuple(alternatives))

    def operand(self) -> Matcher | None:
        current = self.peek()
        if current is None:
            return None
        if current == "-":
            self.position += 1
            negated = self.operand()
            return NotMatcher(negated) if negated is not None else None
        if current == "(":
            self.position += 1
            inner = self.inner_expression()
            if self.peek() == ")":
                self.position += 1
            return inner

        scopes: list[str] = []
        while (part := self.peek()) is not None and _is_identifier(part):
            scope = _scope_of(part)
            if scope not in scopes:
                scopes.append(scope)
            self.position += 1
        if not scopes:
            return None
        if len(scopes) == 1:
            return ScopeMatcher(scopes[0])
        return AndMatcher(tuple(ScopeMatcher(s) for s in scopes))

    def conjunction(self) -> Matcher | None:
        matchers: list[Matcher] = []
        while (matcher := self.operand()) is not None:
            matchers.append(matcher)
        if not matchers:
            return None
        if len(matchers) == 1:
            return matchers[0]
        return AndMatcher(tuple(matchers))


def parse_injection_selector(selector: str) -> list[CompiledInjectionMatcher]:
    """Parse an injection selector into its comma separated matchers."""
    selector = selector.strip()
    if not selector:
        return []

    parts = [m.group(0) for m in _SELECTOR_PART.finditer(selector) if m.group(0)]
    parser = _Parser(parts)
    result: list[CompiledInjectionMatcher] = []
    priority: InjectionPrecedence | None = None

    while (part := parser.peek()) is not None:
        if part == "L:":
            priority = InjectionPrecedence.LEFT
            parser.position += 1
            continue
        if part == "R:":
            priority = InjectionPrecedence.RIGHT
            parser.position += 1
            continue

        matcher = parser.conjunction()
        if matcher is None:
            break
        result.append(CompiledInjectionMatcher(matcher, priority))
        priority = None
        if parser.peek() == ",":
            parser.position += 1
        else:
            break

    return result