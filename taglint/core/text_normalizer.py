"""
Text Normalizer — Blanks out Java comments and string/char literals.

Pattern tiers run on the normalized text so that a keyword inside a comment
or a literal does not produce a tag.

A single left-to-right scan decides which construct starts first, so `//`
inside a string literal is not a comment and a quote inside a comment does
not open a literal. Literals pair quotes the simple way: a backslash consumes
the next character and nothing else is special (no text blocks, no unicode
escapes).
"""

from __future__ import annotations

import re

_NORMALIZE_RE = re.compile(
    r"(?P<block>/\*.*?\*/)"
    r"|(?P<line>//[^\n]*)"
    r'|(?P<dquote>"(?:[^"\\]|\\.)*")'
    r"|(?P<squote>'(?:[^'\\]|\\.)*')",
    re.DOTALL,
)

_REPLACEMENTS = {
    "block": " ",
    "line": " ",
    "dquote": '""',
    "squote": "''",
}


def strip_comments_and_strings(source: str) -> str:
    """Return source with comments blanked and literals emptied."""
    if not source:
        return ""
    return _NORMALIZE_RE.sub(lambda m: _REPLACEMENTS[m.lastgroup], source)
