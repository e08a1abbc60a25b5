"""Turn markdown-flavoured model output into plain text for chat bubbles and Telegram."""
from __future__ import annotations

import re
from typing import Iterable, List

_FENCED_BLOCK = re.compile(r"```[\s\S]*?```")
_INLINE_CODE = re.compile(r"`([^`]*)`")
_BOLD = re.compile(r"\*\*([^*\n]+)\*\*")
_ITALIC = re.compile(r"\*(?!\s)([^*\n]+?)(?<!\s)\*")
_UNDERSCORE = re.compile(r"_(?!\s)([^_\n]+?)(?<!\s)_")
_HEADING = re.compile(r"^#{1,6}\s+", re.MULTILINE)
_BULLET = re.compile(r"^[ \t]*[-*•·‣∙◦✔️✓]+[ \t]+", re.MULTILINE)
_NUMBERED = re.compile(r"^[ \t]*\d+[).][ \t]+", re.MULTILINE)
_STRAY_GLYPHS = re.compile(r"[•◆◦▪︎▸►–—]+")
_TRAILING_SPACE = re.compile(r"[ \t]+$", re.MULTILINE)
_EXCESS_NEWLINES = re.compile(r"\n{3,}")

_LIST_MARKER = re.compile(r"^\s*(?:(?:[-*•·‣∙◦✔️✓]+|\d+[).])\s*)+")
_WHITESPACE_RUN = re.compile(r"\s{2,}")


def _single_pass(text: str) -> str:
    text = _FENCED_BLOCK.sub("", text)
    text = _INLINE_CODE.sub(r"\1", text)
    text = _BOLD.sub(r"\1", text)
    text = _ITALIC.sub(r"\1", text)
    text = _UNDERSCORE.sub(r"\1", text)
    text = _HEADING.sub("", text)
    text = _BULLET.sub("", text)
    text = _NUMBERED.sub("", text)
    text = _STRAY_GLYPHS.sub(" ", text)
    text = _TRAILING_SPACE.sub("", text)
    text = _EXCESS_NEWLINES.sub("\n\n", text)
    return text.strip()


def normalize_text(text: str | None) -> str:
    """Strip fences, emphasis, headings and list markers.

    A single pass can expose new markup (``***x***`` unwraps to ``*x*``), so the
    pass is repeated until nothing changes. Every pass removes characters or
    swaps a glyph for a space, so the loop terminates, and the result is a fixed
    point: ``normalize_text(normalize_text(x)) == normalize_text(x)``.
    """
    if not text:
        return ""
    current = text
    while True:
        cleaned = _single_pass(current)
        if cleaned == current:
            return cleaned
        current = cleaned


def sanitize_list_lines(lines: Iterable[str]) -> List[str]:
    """Drop the leading bullet or number of each line, squeeze spaces, skip blanks."""
    items: List[str] = []
    for line in lines:
        item = _LIST_MARKER.sub("", line)
        item = _WHITESPACE_RUN.sub(" ", item).strip()
        if item:
            items.append(item)
    return items
