"""Exceptions raised while loading assets and highlighting code."""

from __future__ import annotations


class ZaloError(Exception):
    """Base class for every error raised by this package."""


class JsonError(ZaloError):
    """A grammar or a theme could not be parsed as JSON."""

    def __init__(self, source: Exception) -> None:
        super().__init__(f"JSON parsing error: {source}")
        self.source = source


class InvalidHexColorError(ZaloError):
    """A theme holds a colour that is not a valid hex colour."""

    def __init__(self, value: str, reason: str) -> None:
        super().__init__(f"invalid hex color '{value}': {reason}")
        self.value = value
        self.reason = reason


class GrammarNotFoundError(ZaloError):
    """Highlighting was requested with a grammar the registry does not know."""

    def __init__(self, name: str) -> None:
        super().__init__(f"grammar '{name}' not found")
        self.name = name


class ThemeNotFoundError(ZaloError):
    """Highlighting was requested with a theme the registry does not know."""

    def __init__(self, name: str) -> None:
        super().__init__(f"theme '{name}' not found")
        self.name = name


class TokenizeRegexError(ZaloError):
    """A regex built while tokenizing failed to compile."""

    def __init__(self, message: str) -> None:
        super().__init__(f"regex compilation error: {message}")
        self.message = message


class UnlinkedGrammarsError(ZaloError):
    """Content was highlighted before the grammars were linked."""

    def __init__(self) -> None:
        super().__init__("grammars are unlinked, call `registry.link_grammars()`")


class ReplacingGrammarPostLinkingError(ZaloError):
    """A grammar was replaced after the grammars were linked."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Tried to replace grammar `{name}` after linking")
        self.name = name