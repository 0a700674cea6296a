"""
Block Extractor — Balanced-brace block isolation for contextual tags.

Used to cut the body of `finally` blocks and loops out of the source so that
patterns can be tested against the block alone.
"""

from __future__ import annotations

import re

_FINALLY_RE = re.compile(r"\}\s*finally\s*\{")

# Headers may nest parentheses: `while (rs.next())`.
_LOOP_KEYWORD_RES = (
    re.compile(r"\bfor\s*\("),
    re.compile(r"\bwhile\s*\("),
)
_DO_RE = re.compile(r"\bdo\s*\{")
_BODY_OPEN_RE = re.compile(r"\s*\{")


def extract_block(text: str, start_index: int) -> tuple[str, int] | None:
    """
    Return the body of the block whose opening brace sits just before start_index.

    Args:
        text: Source text.
        start_index: Index of the first character after an unmatched '{'.

    Returns:
        (body, close_index) where close_index is the position of the matching
        '}', or None when the text ends before the block is closed.
    """
    depth = 1
    i = start_index
    length = len(text)

    while i < length:
        ch = text[i]
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start_index:i], i
        i += 1

    return None


def _matching_paren(text: str, start_index: int) -> int | None:
    """Index of the ')' closing the '(' just before start_index, or None."""
    depth = 1
    for i in range(start_index, len(text)):
        ch = text[i]
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0:
                return i
    return None


def _blocks_from(text: str, starts: list[int]) -> list[str]:
    blocks: list[str] = []
    for start in starts:
        extracted = extract_block(text, start)
        if extracted is not None:
            blocks.append(extracted[0])
    return blocks


def finally_blocks(text: str) -> list[str]:
    """Bodies of every `} finally {` block, in source order."""
    return _blocks_from(text, [m.end() for m in _FINALLY_RE.finditer(text)])


def _loop_body_starts(text: str, keyword: re.Pattern[str]) -> list[int]:
    starts: list[int] = []
    for match in keyword.finditer(text):
        close = _matching_paren(text, match.end())
        if close is None:
            continue
        brace = _BODY_OPEN_RE.match(text, close + 1)
        # `} while (x);` closing a do loop has no body of its own
        if brace is not None:
            starts.append(brace.end())
    return starts


def loop_blocks(text: str) -> list[str]:
    """Bodies of every braced for/while/do loop (for loops first, then while, then do)."""
    blocks: list[str] = []
    for keyword in _LOOP_KEYWORD_RES:
        blocks.extend(_blocks_from(text, _loop_body_starts(text, keyword)))
    blocks.extend(_blocks_from(text, [m.end() for m in _DO_RE.finditer(text)]))
    return blocks
