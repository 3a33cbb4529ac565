from __future__ import annotations

import re
from collections.abc import Sequence

_LIST_MARKER_RE = re.compile(r"^(?:[-*•]+|\d+[.)]|\(\d+\))\s*")
_SENTENCE_BREAK_RE = re.compile(r"(?<=[.!?])\s+(?=[A-Z0-9\"'(])")
_ABBREVIATIONS = frozenset(
    {
        "co", "corp", "dr", "e.g", "etc", "i.e", "inc", "jr", "ltd",
        "mr", "mrs", "ms", "prof", "sr", "st", "u.k", "u.s", "vs",
    },
)
_QUOTES = "\"'`"


def parse_keyword_list(text: str | None) -> list[str]:
    if text is None:
        return []

    items = _extract_marked_items(text)
    if items:
        return normalize_keyword_values(_split_all_segments(items))

    return normalize_keyword_values(_split_all_segments(_content_lines(text)))


def normalize_keyword_values(items: Sequence[str]) -> list[str]:
    out: list[str] = []
    seen: set[str] = set()
    for raw in items:
        value = _clean_item(raw)
        if not value:
            continue
        key = value.casefold()
        if key in seen:
            continue
        seen.add(key)
        out.append(value)
    return out


def split_list_lines(text: str | None, *, limit: int | None = None) -> list[str]:
    """One entry per non-empty line, with bullet and numbering markers removed."""
    if text is None:
        return []
    lines: list[str] = []
    for raw in text.splitlines():
        line = _LIST_MARKER_RE.sub("", raw.strip()).strip()
        if line:
            lines.append(line)
    if limit is not None:
        return lines[:limit]
    return lines


def first_sentences(text: str | None, *, limit: int) -> str:
    if text is None:
        return ""
    collapsed = " ".join(text.split())
    sentences: list[str] = []
    for piece in _SENTENCE_BREAK_RE.split(collapsed):
        if sentences and _ends_with_abbreviation(sentences[-1]):
            sentences[-1] = f"{sentences[-1]} {piece}"
        elif piece:
            sentences.append(piece)
    return " ".join(sentences[:limit])


def _ends_with_abbreviation(sentence: str) -> bool:
    last_word = sentence.rsplit(" ", 1)[-1]
    if not last_word.endswith("."):
        return False
    token = last_word.rstrip(".").lstrip("(\"'")
    return token.lower() in _ABBREVIATIONS or (len(token) == 1 and token.isupper())


def _extract_marked_items(text: str) -> list[str]:
    items: list[str] = []
    for text_line in text.splitlines():
        stripped = text_line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        if not _LIST_MARKER_RE.match(stripped):
            continue
        item = _LIST_MARKER_RE.sub("", stripped).strip()
        if item:
            items.append(item)
    return items


def _content_lines(text: str) -> list[str]:
    return [line.strip() for line in text.splitlines() if line.strip() and not line.strip().startswith("#")]


def _split_all_segments(lines: Sequence[str]) -> list[str]:
    segments: list[str] = []
    for line in lines:
        segments.extend(part.strip() for part in re.split(r"[;,|]", line) if part.strip())
    return segments


def _clean_item(raw: str) -> str:
    value = raw.strip().strip(_QUOTES).strip()
    return value.rstrip(".").strip()
