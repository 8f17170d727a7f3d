"""Render options and parsing of markdown code fence parameters."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from zalo.customization import LanguageNormalizer, normalize_language

PLAIN_GRAMMAR_NAME = "text"

ZALO_CSS = """.z-l {
  display: inline-block;
  min-height: 1lh;
  width: 100%;
}
.z-ln {
  display: inline-block;
  user-select: none;
  margin-right: 0.4em;
  padding: 0.4em;
  min-width: 3ch;
  text-align: right;
  opacity: 0.8;
}
"""

LineRange = tuple[int, int]

_UNSIGNED = re.compile(r"\+?[0-9]+")


@dataclass
class RenderOptions:
    """How highlighted code should be rendered.

    Line ranges are 1-based and inclusive at both ends.
    """

    show_line_numbers: bool = False
    line_number_start: int = 1
    highlight_lines: list[LineRange] = field(default_factory=list)
    hide_lines: list[LineRange] = field(default_factory=list)


@dataclass
class ParsedFence:
    """The parameters of a markdown code block."""

    lang: str = PLAIN_GRAMMAR_NAME
    options: RenderOptions = field(default_factory=RenderOptions)
    rest: dict[str, str] = field(default_factory=dict)
    classes: list[str] = field(default_factory=list)
    injected: bool = False


def _parse_unsigned(text: str) -> int | None:
    if _UNSIGNED.fullmatch(text) is None:
        return None
    return int(text)


def _parse_range(text: str) -> LineRange | None:
    start_text, dash, end_text = text.partition("-")
    start = _parse_unsigned(start_text)
    if start is None:
        return None
    if not dash:
        return (start, start)
    end = _parse_unsigned(end_text)
    if end is None:
        return None
    return (min(start, end), max(start, end))


def _parse_ranges(text: str) -> list[LineRange]:
    return [r for r in map(_parse_range, text.split(",")) if r is not None]


def parse_markdown_fence(
    fence: str, normalizer: LanguageNormalizer | None = None
) -> ParsedFence:
    """Parse fence parameters such as ``rust linenos linenostart=10 hl_lines=1-3,5``.

    Elements are separated by spaces. The first bare word is the language,
    later bare words are classes, ``key=value`` pairs that are not known
    options end up in ``rest``.
    """
    if not fence.strip():
        return ParsedFence()

    normalize = normalizer or normalize_language
    language: str | None = None
    options = RenderOptions()
    rest: dict[str, str] = {}
    classes: list[str] = []

    for raw_token in fence.split(" "):
        token = raw_token.strip()
        if not token:
            continue

        parts = token.split("=")
        key = parts[0].strip()
        value = parts[1] if len(parts) > 1 else None

        if key == "linenostart":
            start = _parse_unsigned(value) if value is not None else None
            if start is not None:
                options.line_number_start = start
        elif key == "linenos":
            options.show_line_numbers = True
        elif key == "hl_lines":
            if value is not None:
                options.highlight_lines.extend(_parse_ranges(value))
        elif key == "hide_lines":
            if value is not None:
                options.hide_lines.extend(_parse_ranges(value))
        elif value is not None:
            rest[key] = value.strip()
        elif language is None:
            language = normalize(key)
        else:
            classes.append(key)

    return ParsedFence(
        lang=language or "",
        options=options,
        rest=rest,
        classes=classes,
        injected="injected" in classes,
    )