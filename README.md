# zalo

Building blocks for a code highlighter that reads TextMate grammars and aims
to produce the same tokens as VSCode.

## What is in the package

- `zalo.raw`: loads TextMate JSON grammars into `RawGrammar` and `RawRule`
  values (`load_raw_grammar`, `raw_grammar_from_dict`, `parse_rule`,
  `parse_captures`, `parse_repository`). `include` values become `Reference`
  objects through `parse_reference` (`$self`, `$base`, `#rule`, `scope`,
  `scope#rule`).
- `zalo.grammar`: `compile_grammar` turns a raw grammar into a
  `CompiledGrammar` with flat lists of rules, regexes and repositories.
  Local includes are resolved during compilation;
  `CompiledGrammar.resolve_external_references` resolves includes of other
  grammars, and `remove_empty_rules` turns rules that can never match into
  no-ops.
- `zalo.rules`: the compiled rule kinds (`MatchRule`, `IncludeOnlyRule`,
  `BeginEndRule`, `BeginWhileRule`, `NoopRule`), `GlobalRuleRef`,
  `RepositoryStack`, and helpers for scope names that refer to captures
  (`has_captures`, `replace_captures`, `has_backreferences`).
- `zalo.injections`: parses injection selectors such as
  `L:text.html -comment` into `CompiledInjectionMatcher` values and matches
  them against scope stacks.
- `zalo.patterns`: `Regex`, a lazily compiled pattern with `\z` rewritten as
  an end anchor that does not match after a final newline;
  `resolve_backreferences` and `escape_regexp_characters`.
- `zalo.pattern_set`: `PatternSet`, several patterns searched together, the
  earliest match winning and the first listed pattern winning a tie.
- `zalo.markdown_fence`: `parse_markdown_fence` reads Markdown code fence
  info strings into a `ParsedFence` holding the language, a `RenderOptions`,
  extra classes and unknown `key=value` pairs. The module also holds
  `PLAIN_GRAMMAR_NAME` and `ZALO_CSS`, the CSS for a line number gutter.
- `zalo.customization`: `normalize_language` maps aliases such as `js` or
  `rs` to grammar names; `shorten_identifier` gives short CSS class names for
  scope parts.
- `zalo.errors`: every exception derives from `ZaloError`.

## Installation

```
pip install .
```

## Examples

Parse a code fence:

```python
from zalo.markdown_fence import parse_markdown_fence

fence = parse_markdown_fence("rs linenos linenostart=10 hl_lines=1-3,5 name=demo", None)
fence.lang                        # "rust"
fence.options.show_line_numbers   # True
fence.options.line_number_start   # 10
fence.options.highlight_lines     # [(1, 3), (5, 5)]
fence.rest["name"]                # "demo"
```

Match an injection selector against a scope stack:

```python
from zalo.injections import parse_injection_selector

matchers = parse_injection_selector("L:text.html -comment")
any(m.matches(["text.html"]) for m in matchers)                   # True
any(m.matches(["text.html", "comment.block"]) for m in matchers)  # False
```

Compile a grammar loaded from disk:

```python
from zalo.raw import load_raw_grammar
from zalo.grammar import compile_grammar

raw = load_raw_grammar("javascript.json")
grammar = compile_grammar(raw, 0)
grammar.rules[0]   # the root rule
```

Search several patterns at once:

```python
from zalo.pattern_set import PatternSet

patterns = PatternSet([("number", r"\d+"), ("word", r"[a-z]+")])
found = patterns.find_at("x 42", 0)
found.rule_ref, found.start, found.end   # ("word", 0, 1)
```

Scope-derived CSS class names:

```python
from zalo.customization import shorten_identifier

shorten_identifier("keyword", "g-")  # "k"
shorten_identifier("foo", "g-")      # "g-foo"
```

## What the package does not do

The package stops at grammars. It has no registry of grammars and themes, no
theme loading, no tokenizer that runs the compiled rules over text, and no
HTML or terminal output: nothing here highlights a piece of code from start
to finish. `RenderOptions` and `ZALO_CSS` describe rendering but nothing in
the package renders. Some exceptions in `zalo.errors`, such as
`ThemeNotFoundError` and `UnlinkedGrammarsError`, are defined but nothing in
the package raises them.

## Running the tests

```
pip install -e ".[test]"
pytest
```