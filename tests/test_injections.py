import pytest

from zalo.injections import (
    AndMatcher,
    CompiledInjectionMatcher,
    InjectionPrecedence,
    NotMatcher,
    OrMatcher,
    ScopeMatcher,
    is_scope_prefix,
    parse_injection_selector,
    split_scopes,
)

SVELTE = (
    "L:(meta.script.svelte | meta.style.svelte) (meta.lang.js | meta.lang.javascript)"
    " - (meta source)"
)


@pytest.mark.parametrize(
    "selector, scopes, expected",
    [
        ("text.html", ["text.html"], True),
        ("text.html", ["text.html.markdown"], True),
        ("text.html", ["source.js"], False),
        ("text.html", ["source.js", "text.html"], True),
        ("comment", ["comment.line.double-slash"], True),
        ("text.html meta.tag", ["text.html", "meta.tag"], True),
        ("text.html meta.tag", ["text.html", "meta.function", "meta.tag"], True),
        ("text.html meta.tag", ["text.html"], False),
        ("text.html meta.tag", ["meta.tag"], False),
        ("text.html meta.tag", ["meta.tag", "text.html"], False),
        ("source.js comment", ["source.js", "meta.function", "comment.line"], True),
        ("text.html -comment", ["text.html"], True),
        ("text.html -comment", ["text.html", "comment.block"], False),
        ("text.html -comment", ["source.js"], False),
        ("comment -comment.block", ["comment.line"], True),
        ("comment -comment.block", ["comment.block"], False),
        ("(meta.script | meta.style)", ["meta.script"], True),
        ("(meta.script | meta.style)", ["meta.style"], True),
        ("(meta.script | meta.style)", ["meta.tag"], False),
        ("(source.js | source.ts) comment", ["source.js", "comment.line"], True),
        ("(source.js | source.ts) comment", ["source.py", "comment.line"], False),
        (SVELTE, ["meta.script.svelte", "meta.lang.js"], True),
        (SVELTE, ["meta.style.svelte", "meta.lang.javascript"], True),
        (
            SVELTE,
            ["meta.script.svelte", "meta.lang.js", "meta.embedded", "source.js"],
            False,
        ),
        (SVELTE, ["meta.tag", "meta.lang.js"], False),
        ("L:text.html", ["text.html"], True),
        ("R:text.html", ["text.html"], True),
        ("L:source.js -comment", ["source.js"], True),
        ("R:source.js -comment", ["source.js", "comment.block"], False),
        ("L:text.html.markdown", ["text.html.markdown"], True),
        ("L:text.html -comment", ["text.html"], True),
        ("L:text.html -comment", ["text.html", "comment.line"], False),
        ("L:meta.decorator.ts -comment -text.html", ["meta.decorator.ts"], True),
        (
            "L:meta.decorator.ts -comment -text.html",
            ["meta.decorator.ts", "comment.block"],
            False,
        ),
        (
            "L:meta.decorator.ts -comment -text.html",
            ["meta.decorator.ts", "text.html"],
            False,
        ),
        ("text.html", [], False),
    ],
)
def test_can_match_scopes(selector, scopes, expected):
    matchers = parse_injection_selector(selector)
    assert any(m.matches(scopes) for m in matchers) is expected


def test_simple_left_selector_structure():
    result = parse_injection_selector("L:text.html -comment")
    assert result == [
        CompiledInjectionMatcher(
            AndMatcher((ScopeMatcher("text.html"), NotMatcher(ScopeMatcher("comment")))),
            InjectionPrecedence.LEFT,
        )
    ]
    assert repr(result) == '["L:text.html -comment"]'


def test_plain_selector_has_right_precedence():
    result = parse_injection_selector("text.html")
    assert result == [CompiledInjectionMatcher(ScopeMatcher("text.html"), None)]
    assert result[0].precedence() is InjectionPrecedence.RIGHT


def test_left_precedence():
    result = parse_injection_selector("L:text.html.markdown")
    assert result[0].precedence() is InjectionPrecedence.LEFT


def test_comma_group_becomes_or():
    result = parse_injection_selector("L:(source.ts, source.js, source.coffee)")
    assert len(result) == 1
    assert result[0].matcher == OrMatcher(
        (
            ScopeMatcher("source.ts"),
            ScopeMatcher("source.js"),
            ScopeMatcher("source.coffee"),
        )
    )
    assert str(result[0]) == "L:(source.ts | source.js | source.coffee)"


def test_wildcards_truncated_and_deduplicated():
    result = parse_injection_selector(
        "R:text.html - (comment.block, text.html meta.embedded, meta.tag.*.*.html, "
        "meta.tag.*.*.*.html, meta.tag.*.*.*.*.html)"
    )
    assert len(result) == 1
    assert (
        str(result[0])
        == "R:text.html -(comment.block | text.html meta.embedded | meta.tag)"
    )


def test_multiple_top_level_selectors():
    result = parse_injection_selector(
        "L:source.css -comment, L:source.postcss -comment, "
        "L:source.sass -comment, L:source.stylus -comment"
    )
    assert [str(m) for m in result] == [
        "L:source.css -comment",
        "L:source.postcss -comment",
        "L:source.sass -comment",
        "L:source.stylus -comment",
    ]


def test_top_level_duplicates_are_kept():
    selector = (
        "L:source.js -comment -string, L:source.js -comment -string, "
        "L:source.jsx -comment -string,  L:source.js.jsx -comment -string, "
        "L:source.ts -comment -string, L:source.tsx -comment -string, "
        "L:source.rescript -comment -string, L:source.vue -comment -string, "
        "L:source.svelte -comment -string, L:source.php -comment -string, "
        "L:source.rescript -comment -string"
    )
    result = parse_injection_selector(selector)
    assert len(result) == 11
    assert result[0] == result[1]
    assert all(m.precedence() is InjectionPrecedence.LEFT for m in result)


def test_blade_selector_mixes_priorities():
    result = parse_injection_selector(
        "text.html.php.blade - (meta.embedded | meta.tag | comment.block.blade), "
        "L:(text.html.php.blade meta.tag - (comment.block.blade | meta.embedded.block.blade)), "
        "L:(source.js.embedded.html - (comment.block.blade | meta.embedded.block.blade))"
    )
    assert [m.priority for m in result] == [
        None,
        InjectionPrecedence.LEFT,
        InjectionPrecedence.LEFT,
    ]
    assert str(result[0]) == (
        "text.html.php.blade -(meta.embedded | meta.tag | comment.block.blade)"
    )


def test_empty_selector():
    assert parse_injection_selector("   ") == []


def test_unparseable_selector_gives_nothing():
    assert parse_injection_selector(")") == []


def test_split_scopes():
    assert split_scopes("source.js  meta.tag") == ["source.js", "meta.tag"]
    assert split_scopes("") == []


@pytest.mark.parametrize(
    "prefix, scope, expected",
    [
        ("text.html", "text.html", True),
        ("text.html", "text.html.markdown", True),
        ("text.htm", "text.html", False),
        ("text.html.markdown", "text.html", False),
    ],
)
def test_is_scope_prefix(prefix, scope, expected):
    assert is_scope_prefix(prefix, scope) is expected


def test_or_and_not_matchers_directly():
    matcher = NotMatcher(OrMatcher((ScopeMatcher("comment"), ScopeMatcher("string"))))
    assert matcher.matches(["source.js"]) is True
    assert matcher.matches(["source.js", "string.quoted"]) is False
    assert str(matcher) == "-(comment | string)"