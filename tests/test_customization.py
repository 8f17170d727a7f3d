import pytest

from zalo.customization import normalize_language, shorten_identifier


@pytest.mark.parametrize(
    "alias, expected",
    [
        ("plain", "text"),
        ("htm", "html"),
        ("cshtml", "razor"),
        ("js", "javascript"),
        ("cjs", "javascript"),
        ("mjs", "javascript"),
        ("cs", "csharp"),
        ("yml", "yaml"),
        ("py", "python"),
        ("sh", "bash"),
        ("zsh", "bash"),
        ("shellscript", "bash"),
        ("ps1", "powershell"),
        ("ts", "typescript"),
        ("mts", "typescript"),
        ("regexp", "regex"),
        ("rs", "rust"),
    ],
)
def test_normalize_known_aliases(alias, expected):
    assert normalize_language(alias) == expected


@pytest.mark.parametrize("name", ["rust", "javascript", "haskell", ""])
def test_normalize_unknown_is_identity(name):
    assert normalize_language(name) == name


@pytest.mark.parametrize(
    "identifier, expected",
    [
        ("keyword", "k"),
        ("control", "G"),
        ("comment", "c"),
        ("invalid", "I"),
        ("illegal", "I"),
        ("string", "s"),
        ("text", "s"),
        ("assignment", "_A"),
        ("deleted", "_d"),
        ("character", "C_"),
        ("option", "O_"),
        ("pseudo-element", "O_"),
        ("arrow", "a_"),
        ("javascript", "J-"),
        ("yaml", "y-"),
        ("vue", "v-"),
    ],
)
def test_shorten_known_identifiers(identifier, expected):
    assert shorten_identifier(identifier, "g-") == expected


@pytest.mark.parametrize("identifier", ["rust", "foo", "control-flow"])
def test_shorten_unknown_gets_prefix(identifier):
    assert shorten_identifier(identifier, "g-") == "g-" + identifier
    assert shorten_identifier(identifier, "") == identifier


def test_shortened_identifiers_ignore_prefix():
    assert shorten_identifier("keyword", "a-") == shorten_identifier("keyword", "b-")


def test_shortened_identifiers_do_not_start_with_z():
    words = ["keyword", "comment", "storage", "punctuation", "variable", "directive"]
    assert not any(shorten_identifier(w, "x").startswith("z") for w in words)