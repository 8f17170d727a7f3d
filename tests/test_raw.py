import json

import pytest

from zalo.errors import JsonError
from zalo.raw import (
    RawGrammar,
    RawRule,
    Reference,
    ReferenceKind,
    load_raw_grammar,
    parse_captures,
    parse_reference,
    parse_repository,
    parse_rule,
    raw_grammar_from_dict,
)


def local(name):
    return Reference(ReferenceKind.LOCAL, rule=name)


def complete(scope):
    return Reference(ReferenceKind.OTHER_COMPLETE, scope=scope)


def specific(scope, rule):
    return Reference(ReferenceKind.OTHER_SPECIFIC, scope=scope, rule=rule)


@pytest.mark.parametrize(
    "value, expected",
    [
        ("#value", local("value")),
        ("#expressions", local("expressions")),
        ("#comments", local("comments")),
        ("#objectkey", local("objectkey")),
        ("#stringcontent", local("stringcontent")),
        ("#blocks.tell", local("blocks.tell")),
        ("#blocks.repeat", local("blocks.repeat")),
        ("#emmydoc.type", local("emmydoc.type")),
        ("#built-in.constant", local("built-in.constant")),
        ("#attributes.considering-ignoring", local("attributes.considering-ignoring")),
        ("#comments.nested", local("comments.nested")),
        ("$self", Reference(ReferenceKind.SELF)),
        ("$base", Reference(ReferenceKind.BASE)),
        ("source.js", complete("source.js")),
        ("source.java", complete("source.java")),
        ("source.json", complete("source.json")),
        ("text.html.basic", complete("text.html.basic")),
        ("source.tsx", complete("source.tsx")),
        ("source.css", complete("source.css")),
        (
            "source.tsx#template-substitution-element",
            specific("source.tsx", "template-substitution-element"),
        ),
        ("source.ts#expression", specific("source.ts", "expression")),
        (
            "text.html.basic#core-minus-invalid",
            specific("text.html.basic", "core-minus-invalid"),
        ),
        ("source.css#property-names", specific("source.css", "property-names")),
        ("source.json#value", specific("source.json", "value")),
        ("", complete("")),
        ("simple", complete("simple")),
    ],
)
def test_parse_reference(value, expected):
    assert parse_reference(value) == expected


def test_is_local():
    assert parse_reference("#value").is_local()
    assert not parse_reference("source.js#value").is_local()
    assert not parse_reference("$self").is_local()


def test_captures_object_skips_non_numeric_keys():
    captures = parse_captures({"2": {"name": "b"}, "1": {"name": "a"}, "x": {"name": "c"}})
    assert list(captures) == [1, 2]
    assert captures[1].name == "a"
    assert captures[2].name == "b"


def test_captures_array_uses_positions():
    captures = parse_captures([{"name": "whole"}, {"name": "first"}])
    assert captures == {0: RawRule(name="whole"), 1: RawRule(name="first")}


@pytest.mark.parametrize("data", [None, "", 3, {"1": "not a rule"}, [{"name": 5}]])
def test_unreadable_captures_are_empty(data):
    assert parse_captures(data) == {}


def test_parse_rule_fields():
    rule = parse_rule(
        {
            "name": "string.quoted",
            "contentName": "inner",
            "begin": '"',
            "end": '"',
            "beginCaptures": {"0": {"name": "punctuation.begin"}},
            "patterns": [{"include": "#escape"}],
            "applyEndPatternLast": 1,
        }
    )
    assert rule.name == "string.quoted"
    assert rule.content_name == "inner"
    assert rule.begin == '"'
    assert rule.end == '"'
    assert rule.begin_captures == {0: RawRule(name="punctuation.begin")}
    assert rule.patterns == [RawRule(include=local("escape"))]
    assert rule.apply_end_pattern_last is True


def test_parse_rule_match_and_while():
    rule = parse_rule({"match": "\\d+", "while": "^\\s"})
    assert rule.match_ == "\\d+"
    assert rule.while_ == "^\\s"


@pytest.mark.parametrize("value, expected", [(True, True), (False, False), (0, False), (1, True)])
def test_apply_end_pattern_last_accepts_bool_or_number(value, expected):
    assert parse_rule({"applyEndPatternLast": value}).apply_end_pattern_last is expected


@pytest.mark.parametrize("value", [2, "yes", None])
def test_apply_end_pattern_last_rejects_other_values(value):
    with pytest.raises(JsonError):
        parse_rule({"applyEndPatternLast": value})


def test_rule_with_wrong_type_is_rejected():
    with pytest.raises(JsonError):
        parse_rule({"name": 3})
    with pytest.raises(JsonError):
        parse_rule(["not", "a", "rule"])


def test_repository_list_becomes_patterns():
    repository = parse_repository({"items": [{"match": "a"}, {"match": "b"}]})
    assert repository["items"].patterns == [RawRule(match_="a"), RawRule(match_="b")]


def test_repository_drops_empty_patterns():
    repository = parse_repository(
        {"comment-block": {"begin": "#-", "end": "-#", "name": "comment", "patterns": [{}]}}
    )
    assert repository["comment-block"].patterns == []
    assert repository["comment-block"].begin == "#-"


def test_repository_is_sorted_by_name():
    repository = parse_repository({"b": {"match": "b"}, "a": {"match": "a"}})
    assert list(repository) == ["a", "b"]


def test_repository_rejects_scalar_entries():
    with pytest.raises(JsonError):
        parse_repository({"a": "oops"})


def test_raw_grammar_from_dict():
    grammar = raw_grammar_from_dict(
        {
            "name": "Example",
            "scopeName": "source.example",
            "fileTypes": ["ex"],
            "patterns": [{"include": "#main"}],
            "repository": {"main": {"match": "x", "name": "keyword"}},
            "injections": {"L:source.example": {"patterns": [{"match": "y"}]}},
            "injectionSelector": "L:text.html",
            "injectTo": ["text.html"],
        }
    )
    assert isinstance(grammar, RawGrammar)
    assert grammar.name == "Example"
    assert grammar.scope_name == "source.example"
    assert grammar.display_name is None
    assert grammar.file_types == ["ex"]
    assert grammar.patterns == [RawRule(include=local("main"))]
    assert grammar.repository["main"] == RawRule(match_="x", name="keyword")
    assert grammar.injections["L:source.example"].patterns == [RawRule(match_="y")]
    assert grammar.injection_selector == "L:text.html"
    assert grammar.inject_to == ["text.html"]


@pytest.mark.parametrize("data", [{"scopeName": "source.x"}, {"name": "X"}])
def test_raw_grammar_requires_name_and_scope(data):
    with pytest.raises(JsonError):
        raw_grammar_from_dict(data)


def test_load_raw_grammar(tmp_path):
    path = tmp_path / "grammar.json"
    path.write_text(json.dumps({"name": "Demo", "scopeName": "source.demo"}), encoding="utf-8")
    grammar = load_raw_grammar(path)
    assert grammar.name == "Demo"
    assert grammar.scope_name == "source.demo"


def test_load_raw_grammar_bad_json(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(JsonError):
        load_raw_grammar(path)


def test_load_raw_grammar_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_raw_grammar(tmp_path / "missing.json")