"""Compilation of raw TextMate grammars into flat, linked rule tables."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Optional

from zalo.injections import (
    CompiledInjectionMatcher,
    parse_injection_selector,
    split_scopes,
)
from zalo.patterns import Regex
from zalo.raw import RawGrammar, RawRule, Reference, ReferenceKind
from zalo.rules import (
    BASE_GLOBAL_RULE_REF,
    NO_OP_GLOBAL_RULE_REF,
    PRE_CROSS_LINKING_RULE_REF,
    ROOT_RULE_ID,
    TEMP_RULE_ID,
    BeginEndRule,
    BeginWhileRule,
    GlobalRuleRef,
    IncludeOnlyRule,
    MatchRule,
    NoopRule,
    RepositoryStack,
    Rule,
    has_backreferences,
    has_captures,
)

# vscode-textmate uses this for a missing or empty ``end`` pattern.
_DEFAULT_END_PATTERN = "\uffff"


@dataclass(frozen=True)
class _RefToReplace:
    rule_id: int
    index: int
    reference: Reference


def _scopes_from_name(name: Optional[str], name_is_capturing: bool) -> list[str]:
    if name_is_capturing or name is None:
        return []
    return split_scopes(name)


@dataclass
class CompiledGrammar:
    """A grammar whose rules, regexes and repositories live in flat lists.

    Rules refer to each other through ``GlobalRuleRef`` values so that one
    grammar can point into another once the registry links them.
    """

    id: int
    name: str
    scope_name: str
    scope: str
    display_name: Optional[str] = None
    file_types: list[str] = field(default_factory=list)
    regexes: list[Regex] = field(default_factory=list)
    rules: list[Rule] = field(default_factory=list)
    repositories: list[dict[str, int]] = field(default_factory=list)
    injections: list[tuple[list[CompiledInjectionMatcher], GlobalRuleRef]] = field(
        default_factory=list
    )
    # Only set for grammars meant to be injected into others.
    injection_selector: list[CompiledInjectionMatcher] = field(default_factory=list)
    inject_to: list[str] = field(default_factory=list)
    _references: list[_RefToReplace] = field(default_factory=list, repr=False)

    # ----------------------------------------------------------------- compile

    def _compile_rule(self, raw: RawRule, stack: RepositoryStack) -> int:
        local_id = len(self.rules)
        global_id = GlobalRuleRef(self.id, local_id)
        # Reserve the slot so nested rules get later ids.
        self.rules.append(NoopRule())

        rule: Rule
        if raw.match_ is not None:
            # Empty match patterns are filtered out, as vscode-textmate does.
            rule = NoopRule() if not raw.match_ else self._compile_match(raw, global_id, stack)
        elif raw.begin is not None:
            if raw.while_ is not None:
                rule = self._compile_begin_while(raw, global_id, stack)
            else:
                rule = self._compile_begin_end(raw, global_id, stack)
        else:
            rule = self._compile_group(raw, global_id, stack)

        self.rules[local_id] = rule
        return local_id

    def _compile_match(
        self, raw: RawRule, global_id: GlobalRuleRef, stack: RepositoryStack
    ) -> MatchRule:
        name_is_capturing = has_captures(raw.name)
        scopes = _scopes_from_name(raw.name, name_is_capturing)
        regex_id, _ = self._compile_regex(raw.match_ or "")
        captures = self._compile_captures(raw.captures, stack)
        return MatchRule(
            id=global_id,
            name=raw.name,
            name_is_capturing=name_is_capturing,
            scopes=scopes,
            regex_id=regex_id,
            captures=captures,
            repository_stack=stack,
        )

    def _compile_begin_while(
        self, raw: RawRule, global_id: GlobalRuleRef, stack: RepositoryStack
    ) -> BeginWhileRule:
        while_id, while_has_backrefs = self._compile_regex(raw.while_ or "")
        patterns = self._compile_patterns(global_id.rule, raw.patterns, stack)
        name_is_capturing = has_captures(raw.name)
        content_name_is_capturing = has_captures(raw.content_name)
        begin_id, _ = self._compile_regex(raw.begin or "")
        begin_captures = self._compile_captures(raw.begin_captures or raw.captures, stack)
        while_captures = self._compile_captures(raw.while_captures or raw.captures, stack)
        return BeginWhileRule(
            id=global_id,
            name=raw.name,
            name_is_capturing=name_is_capturing,
            scopes=_scopes_from_name(raw.name, name_is_capturing),
            content_name=raw.content_name,
            content_name_is_capturing=content_name_is_capturing,
            content_scopes=_scopes_from_name(raw.content_name, content_name_is_capturing),
            begin=begin_id,
            begin_captures=begin_captures,
            while_=while_id,
            while_has_backrefs=while_has_backrefs,
            while_captures=while_captures,
            patterns=patterns,
            repository_stack=stack,
        )

    def _compile_begin_end(
        self, raw: RawRule, global_id: GlobalRuleRef, stack: RepositoryStack
    ) -> BeginEndRule:
        end_pattern = raw.end or _DEFAULT_END_PATTERN
        end_id, end_has_backrefs = self._compile_regex(end_pattern)
        patterns = self._compile_patterns(global_id.rule, raw.patterns, stack)
        name_is_capturing = has_captures(raw.name)
        content_name_is_capturing = has_captures(raw.content_name)
        begin_id, _ = self._compile_regex(raw.begin or "")
        begin_captures = self._compile_captures(raw.begin_captures or raw.captures, stack)
        end_captures = self._compile_captures(raw.end_captures or raw.captures, stack)
        return BeginEndRule(
            id=global_id,
            name=raw.name,
            name_is_capturing=name_is_capturing,
            scopes=_scopes_from_name(raw.name, name_is_capturing),
            content_name=raw.content_name,
            content_name_is_capturing=content_name_is_capturing,
            content_scopes=_scopes_from_name(raw.content_name, content_name_is_capturing),
            begin=begin_id,
            begin_captures=begin_captures,
            end=end_id,
            end_has_backrefs=end_has_backrefs,
            end_captures=end_captures,
            apply_end_pattern_last=raw.apply_end_pattern_last,
            patterns=patterns,
            repository_stack=stack,
        )

    def _compile_group(
        self, raw: RawRule, global_id: GlobalRuleRef, stack: RepositoryStack
    ) -> Rule:
        if raw.repository:
            repo_id = self._compile_repository(raw.repository, stack)
            stack = stack.push(repo_id)

        if raw.name is not None and not raw.patterns and raw.include is None:
            # A rule that only assigns a scope, typically a capture.
            name_is_capturing = has_captures(raw.name)
            return MatchRule(
                id=global_id,
                name=raw.name,
                name_is_capturing=name_is_capturing,
                scopes=_scopes_from_name(raw.name, name_is_capturing),
                regex_id=None,
                captures=[],
                repository_stack=stack,
            )

        # Without patterns an include becomes the only pattern; with patterns
        # the include is ignored.
        patterns = raw.patterns
        if not patterns and raw.include is not None:
            patterns = [RawRule(include=raw.include)]
        if not patterns:
            return NoopRule()

        compiled_patterns = self._compile_patterns(global_id.rule, patterns, stack)
        name_is_capturing = has_captures(raw.name)
        content_name_is_capturing = has_captures(raw.content_name)
        return IncludeOnlyRule(
            id=global_id,
            name=raw.name,
            name_is_capturing=name_is_capturing,
            scopes=_scopes_from_name(raw.name, name_is_capturing),
            content_name=raw.content_name,
            content_name_is_capturing=content_name_is_capturing,
            content_scopes=_scopes_from_name(raw.content_name, content_name_is_capturing),
            repository_stack=stack,
            patterns=compiled_patterns,
        )

    def _compile_regex(self, pattern: str) -> tuple[int, bool]:
        regex_id = len(self.regexes)
        self.regexes.append(Regex(pattern))
        return regex_id, has_backreferences(pattern)

    def _compile_repository(
        self, raw_repository: Mapping[str, RawRule], stack: RepositoryStack
    ) -> int:
        repo_id = len(self.repositories)
        self.repositories.append({})
        inner_stack = stack.push(repo_id)
        entries = {
            name: self._compile_rule(raw_rule, inner_stack)
            for name, raw_rule in sorted(raw_repository.items())
        }
        self.repositories[repo_id] = entries
        return repo_id

    def _compile_captures(
        self, captures: Mapping[int, RawRule], stack: RepositoryStack
    ) -> list[Optional[GlobalRuleRef]]:
        if not captures:
            return []
        out: list[Optional[GlobalRuleRef]] = [None] * (max(captures) + 1)
        for key, raw_rule in sorted(captures.items()):
            out[key] = GlobalRuleRef(self.id, self._compile_rule(raw_rule, stack))
        return out

    def _compile_patterns(
        self, rule_id: int, raw_rules: Sequence[RawRule], stack: RepositoryStack
    ) -> list[GlobalRuleRef]:
        out: list[GlobalRuleRef] = []
        for index, raw_rule in enumerate(raw_rules):
            reference = raw_rule.include
            if reference is None:
                out.append(GlobalRuleRef(self.id, self._compile_rule(raw_rule, stack)))
                continue
            # Anything else next to an include is ignored.
            if reference.kind is ReferenceKind.BASE:
                out.append(BASE_GLOBAL_RULE_REF)
            elif reference.kind is ReferenceKind.SELF:
                out.append(GlobalRuleRef(self.id, ROOT_RULE_ID))
            elif reference.kind is ReferenceKind.LOCAL:
                out.append(GlobalRuleRef(self.id, TEMP_RULE_ID))
                self._references.append(_RefToReplace(rule_id, index, reference))
            else:
                out.append(PRE_CROSS_LINKING_RULE_REF)
                self._references.append(_RefToReplace(rule_id, index, reference))
        return out

    # ------------------------------------------------------------------ link

    def _resolve_local_references(self) -> None:
        local = [r for r in self._references if r.reference.is_local()]
        self._references = [r for r in self._references if not r.reference.is_local()]

        for rep in local:
            rule = self.rules[rep.rule_id]
            target = next(
                (
                    self.repositories[repo_id][rep.reference.rule]
                    for repo_id in reversed(rule.repository_stack.ids)
                    if rep.reference.rule in self.repositories[repo_id]
                ),
                None,
            )
            if target is None:
                rule.replace_pattern(rep.index, NO_OP_GLOBAL_RULE_REF)
            else:
                rule.replace_pattern(rep.index, GlobalRuleRef(self.id, target))

        self.remove_empty_rules()

    def resolve_external_references(
        self,
        grammar_mapping: Mapping[str, int],
        grammars: Sequence[CompiledGrammar],
    ) -> None:
        """Point includes of other grammars at their rules.

        ``grammar_mapping`` maps scope names to grammar ids, which index
        ``grammars``. Unknown grammars or repository entries become no-ops.
        """
        references, self._references = self._references, []

        for rep in references:
            rule = self.rules[rep.rule_id]
            reference = rep.reference
            if reference.kind is ReferenceKind.OTHER_COMPLETE:
                repo_name: Optional[str] = None
            elif reference.kind is ReferenceKind.OTHER_SPECIFIC:
                repo_name = reference.rule
            else:
                continue

            grammar_id = grammar_mapping.get(reference.scope)
            if grammar_id is None or not 0 <= grammar_id < len(grammars):
                rule.replace_pattern(rep.index, NO_OP_GLOBAL_RULE_REF)
                continue

            if repo_name is None:
                rule.replace_pattern(rep.index, GlobalRuleRef(grammar_id, ROOT_RULE_ID))
                continue

            target = next(
                (
                    repo[repo_name]
                    for repo in grammars[grammar_id].repositories
                    if repo_name in repo
                ),
                None,
            )
            if target is None:
                rule.replace_pattern(rep.index, NO_OP_GLOBAL_RULE_REF)
            else:
                rule.replace_pattern(rep.index, GlobalRuleRef(grammar_id, target))

        self.remove_empty_rules()

    def remove_empty_rules(self) -> None:
        """Turn rules whose patterns can never match into no-ops, until stable."""
        while True:
            empty: list[int] = []
            for index, rule in enumerate(self.rules):
                if isinstance(rule, (NoopRule, MatchRule)):
                    continue
                if rule.has_only_missing_patterns():
                    empty.append(index)
                    continue
                patterns = rule.patterns
                if not patterns:
                    continue
                num_noop = 0
                for pattern in patterns:
                    if pattern.rule == TEMP_RULE_ID or pattern.grammar != self.id:
                        break
                    if isinstance(self.rules[pattern.rule], NoopRule):
                        num_noop += 1
                if num_noop == len(patterns):
                    empty.append(index)

            if not empty:
                break
            for index in empty:
                self.rules[index] = NoopRule()


def compile_grammar(raw: RawGrammar, grammar_id: int) -> CompiledGrammar:
    """Compile a raw grammar, resolving the includes local to it."""
    scopes = split_scopes(raw.scope_name)
    grammar = CompiledGrammar(
        id=grammar_id,
        name=raw.name,
        scope_name=raw.scope_name,
        scope=scopes[0] if scopes else raw.scope_name,
        display_name=raw.display_name,
        file_types=list(raw.file_types),
        injection_selector=(
            parse_injection_selector(raw.injection_selector)
            if raw.injection_selector is not None
            else []
        ),
        inject_to=list(raw.inject_to),
    )

    root = RawRule(patterns=raw.patterns, repository=raw.repository)
    root_id = grammar._compile_rule(root, RepositoryStack())
    assert root_id == ROOT_RULE_ID

    for selector, raw_rule in sorted(raw.injections.items()):
        matchers = parse_injection_selector(selector)
        stack = RepositoryStack()
        if grammar.repositories:
            stack = stack.push(0)
        rule_id = grammar._compile_rule(raw_rule, stack)
        grammar.injections.append((matchers, GlobalRuleRef(grammar_id, rule_id)))

    grammar._resolve_local_references()
    return grammar