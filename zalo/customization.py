"""Language name normalisation and CSS class shortening."""

from __future__ import annotations

from typing import Callable

IdentifierShortener = Callable[[str, str], str]
LanguageNormalizer = Callable[[str], str]

_LANGUAGE_ALIASES: dict[str, str] = {
    "plain": "text",
    "htm": "html",
    "cshtml": "razor",
    "js": "javascript",
    "cjs": "javascript",
    "mjs": "javascript",
    "cs": "csharp",
    "yml": "yaml",
    "py": "python",
    "shellscript": "bash",
    "sh": "bash",
    "shell": "bash",
    "zsh": "bash",
    "ps1": "powershell",
    "ts": "typescript",
    "cts": "typescript",
    "mts": "typescript",
    "regexp": "regex",
    "rs": "rust",
}

_SHORT_IDENTIFIERS: dict[str, str] = {
    # Uppercase single-letter shortcuts
    "anchor": "A",
    "builtin": "B",
    "constant": "C",
    "delimiter": "D",
    "embedded": "E",
    "function-call": "F",
    "control": "G",
    "html": "H",
    "invalid": "I",
    "illegal": "I",
    "property-name": "J",
    "key-value": "K",
    "link": "L",
    "modifier": "M",
    "numeric": "N",
    "other": "O",
    "parenthesis": "P",
    "quantifier": "Q",
    "storage": "R",
    "support": "S",
    "type": "T",
    "using": "U",
    "value": "V",
    "double": "W",
    "class": "X",
    "accessor": "Y",
    "separator": "Z",
    # Lowercase single-letter shortcuts ("z" is reserved)
    "attribute-name": "a",
    "boolean": "b",
    "comment": "c",
    "definition": "d",
    "entity": "e",
    "function": "f",
    "group": "g",
    "header": "h",
    "heading": "h",
    "identifier": "i",
    "json": "j",
    "keyword": "k",
    "language": "l",
    "meta": "m",
    "name": "n",
    "operator": "o",
    "punctuation": "p",
    "quote": "q",
    "quoted": "q",
    "regexp": "r",
    "string": "s",
    "text": "s",
    "tag": "t",
    "unit": "u",
    "variable": "v",
    "readwrite": "w",
    "xml": "x",
    "directive": "y",
    # Uppercase underscore shortcuts
    "assignment": "_A",
    "begin": "_B",
    "character-class": "_C",
    "diff": "_D",
    "end": "_E",
    "id": "_I",
    "or": "_O",
    "primitive": "_P",
    "url": "_U",
    "source": "_S",
    # Lowercase underscore shortcuts
    "attribute": "_a",
    "deleted": "_d",
    "escape": "_e",
    "font-name": "_f",
    "inserted": "_i",
    "key": "_k",
    "logical": "_l",
    "markup": "_m",
    "negation": "_n",
    "component": "_p",
    "object": "_o",
    "range": "_r",
    "set": "_s",
    "typeparameters": "_t",
    # Uppercase suffix underscore shortcuts
    "character": "C_",
    "deprecated": "D_",
    "error": "E_",
    "member": "M_",
    "new": "N_",
    "pseudo-element": "O_",
    "option": "O_",
    "percentage": "P_",
    "preprocessor": "R_",
    "section": "S_",
    "unrecognized": "U_",
    "unimplemented": "U_",
    "property-value": "V_",
    "pseudo-class": "X_",
    # Lowercase suffix underscore shortcuts
    "arrow": "a_",
    "color": "c_",
    "expression": "e_",
    "inherited-class": "i_",
    "media": "m_",
    "namespace": "n_",
    "object-literal": "o_",
    "parameter": "p_",
    "rgb-value": "r_",
    "single": "s_",
    "template-expression": "t_",
    "vendored": "v_",
    # Languages
    "js": "J-",
    "javascript": "J-",
    "bash": "b-",
    "shell": "b-",
    "css": "c-",
    "graphql": "g-",
    "ini": "i-",
    "python": "p-",
    "tsx": "t-",
    "yml": "y-",
    "yaml": "y-",
    "vue": "v-",
}


def normalize_language(language: str) -> str:
    """Map a common language alias to the grammar name it stands for."""
    return _LANGUAGE_ALIASES.get(language, language)


def shorten_identifier(identifier: str, prefix: str) -> str:
    """Return the short CSS class for a scope part, or the prefixed part itself."""
    short = _SHORT_IDENTIFIERS.get(identifier)
    if short is not None:
        return short
    return f"{prefix}{identifier}"