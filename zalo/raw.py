"""TextMate grammars as they are written in JSON, before compilation."""

from __future__ import annotations

import enum
import json
import os
import re
from dataclasses import dataclass, field
from typing import Any

from zalo.errors import JsonError

_INDEX = re.compile(r"\+?[0-9]+")


class ReferenceKind(enum.Enum):
    """What an ``include`` points at."""

    SELF = "self"
    BASE = "base"
    LOCAL = "local"
    OTHER_COMPLETE = "other_complete"
    OTHER_SPECIFIC = "other_specific"


@dataclass(frozen=True)
class Reference:
    """A parsed ``include`` value.

    ``scope`` holds the grammar scope for references to other grammars and
    ``rule`` holds the repository entry for local and specific references.
    """

    kind: ReferenceKind
    scope: str = ""
    rule: str = ""

    def is_local(self) -> bool:
        """True when the reference names an entry of the grammar's own repository."""
        return self.kind is ReferenceKind.LOCAL


def parse_reference(value: str) -> Reference:
    """Parse ``$self``, ``$base``, ``#rule``, ``scope`` or ``scope#rule``."""
    if value == "$self":
        return Reference(ReferenceKind.SELF)
    if value == "$base":
        return Reference(ReferenceKind.BASE)
    if value.startswith("#"):
        return Reference(ReferenceKind.LOCAL, rule=value[1:])
    if "#" in value:
        scope, _, rule = value.partition("#")
        return Reference(ReferenceKind.OTHER_SPECIFIC, scope=scope, rule=rule)
    return Reference(ReferenceKind.OTHER_COMPLETE, scope=value)


@dataclass
class RawRule:
    """Any TextMate rule; it is split into its precise kind when compiled."""

    include: Reference | None = None
    name: str | None = None
    content_name: str | None = None
    match_: str | None = None
    captures: dict[int, RawRule] = field(default_factory=dict)
    begin: str | None = None
    begin_captures: dict[int, RawRule] = field(default_factory=dict)
    end: str | None = None
    end_captures: dict[int, RawRule] = field(default_factory=dict)
    while_: str | None = None
    while_captures: dict[int, RawRule] = field(default_factory=dict)
    patterns: list[RawRule] = field(default_factory=list)
    repository: dict[str, RawRule] = field(default_factory=dict)
    apply_end_pattern_last: bool = False


@dataclass
class RawGrammar:
    """A complete TextMate grammar as loaded from JSON."""

    name: str
    scope_name: str
    display_name: str | None = None
    file_types: list[str] = field(default_factory=list)
    repository: dict[str, RawRule] = field(default_factory=dict)
    patterns: list[RawRule] = field(default_factory=list)
    injections: dict[str, RawRule] = field(default_factory=dict)
    injection_selector: str | None = None
    inject_to: list[str] = field(default_factory=list)


def _invalid(message: str) -> JsonError:
    return JsonError(ValueError(message))


def _type_name(value: Any) -> str:
    return "null" if value is None else type(value).__name__


def _optional_str(data: dict[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is None or isinstance(value, str):
        return value
    raise _invalid(f"invalid type for `{key}`: expected a string, got {_type_name(value)}")


def _required_str(data: dict[str, Any], key: str) -> str:
    if key not in data:
        raise _invalid(f"missing field `{key}`")
    value = data[key]
    if not isinstance(value, str):
        raise _invalid(f"invalid type for `{key}`: expected a string, got {_type_name(value)}")
    return value


def _list(data: dict[str, Any], key: str) -> list[Any]:
    value = data.get(key, [])
    if not isinstance(value, list):
        raise _invalid(f"invalid type for `{key}`: expected a list, got {_type_name(value)}")
    return value


def _str_list(data: dict[str, Any], key: str) -> list[str]:
    values = _list(data, key)
    for value in values:
        if not isinstance(value, str):
            raise _invalid(f"invalid item in `{key}`: expected a string, got {_type_name(value)}")
    return list(values)


def _bool_or_number(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        if value == 0:
            return False
        if value == 1:
            return True
        raise _invalid(f"expected bool, 0, or 1, got {value}")
    raise _invalid(f"expected bool, 0, or 1, got {_type_name(value)}")


def parse_captures(data: Any) -> dict[int, RawRule]:
    """Parse a captures object or array into rules keyed by group number.

    Keys that are not numbers are skipped; a value that cannot be read at all
    gives no captures.
    """
    try:
        if isinstance(data, dict):
            parsed = {key: parse_rule(value) for key, value in data.items()}
            out = {
                int(key): rule
                for key, rule in parsed.items()
                if isinstance(key, str) and _INDEX.fullmatch(key)
            }
        elif isinstance(data, list):
            out = {index: parse_rule(value) for index, value in enumerate(data)}
        else:
            return {}
    except JsonError:
        return {}
    return dict(sorted(out.items()))


def parse_rule(data: Any) -> RawRule:
    """Parse one rule object."""
    if not isinstance(data, dict):
        raise _invalid(f"expected a rule object, got {_type_name(data)}")
    include = _optional_str(data, "include")
    return RawRule(
        include=parse_reference(include) if include is not None else None,
        name=_optional_str(data, "name"),
        content_name=_optional_str(data, "contentName"),
        match_=_optional_str(data, "match"),
        captures=parse_captures(data.get("captures")),
        begin=_optional_str(data, "begin"),
        begin_captures=parse_captures(data.get("beginCaptures")),
        end=_optional_str(data, "end"),
        end_captures=parse_captures(data.get("endCaptures")),
        while_=_optional_str(data, "while"),
        while_captures=parse_captures(data.get("whileCaptures")),
        patterns=[parse_rule(item) for item in _list(data, "patterns")],
        repository=parse_repository(data.get("repository", {})),
        apply_end_pattern_last=_bool_or_number(data.get("applyEndPatternLast", False)),
    )


def parse_repository(data: Any) -> dict[str, RawRule]:
    """Parse a repository whose values are single rules or lists of rules.

    Empty rules (``{}``) are dropped from each entry's patterns.
    """
    if not isinstance(data, dict):
        raise _invalid(f"expected a repository object, got {_type_name(data)}")
    empty = RawRule()
    result: dict[str, RawRule] = {}
    for key, value in data.items():
        if isinstance(value, list):
            rule = RawRule(patterns=[parse_rule(item) for item in value])
        elif isinstance(value, dict):
            rule = parse_rule(value)
        else:
            raise _invalid(f"invalid repository entry `{key}`: got {_type_name(value)}")
        rule.patterns = [pattern for pattern in rule.patterns if pattern != empty]
        result[key] = rule
    return dict(sorted(result.items()))


def raw_grammar_from_dict(data: Any) -> RawGrammar:
    """Build a grammar from decoded JSON."""
    if not isinstance(data, dict):
        raise _invalid(f"expected a grammar object, got {_type_name(data)}")
    injections = data.get("injections", {})
    if not isinstance(injections, dict):
        raise _invalid(f"invalid type for `injections`: got {_type_name(injections)}")
    return RawGrammar(
        name=_required_str(data, "name"),
        scope_name=_required_str(data, "scopeName"),
        display_name=_optional_str(data, "displayName"),
        file_types=_str_list(data, "fileTypes"),
        repository=parse_repository(data.get("repository", {})),
        patterns=[parse_rule(item) for item in _list(data, "patterns")],
        injections=dict(
            sorted((key, parse_rule(value)) for key, value in injections.items())
        ),
        injection_selector=_optional_str(data, "injectionSelector"),
        inject_to=_str_list(data, "injectTo"),
    )


def load_raw_grammar(path: str | os.PathLike[str]) -> RawGrammar:
    """Read a grammar from a JSON file."""
    with open(path, encoding="utf-8") as handle:
        try:
            data = json.load(handle)
        except ValueError as exc:
            raise JsonError(exc) from exc
    return raw_grammar_from_dict(data)