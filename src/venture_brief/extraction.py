from __future__ import annotations

import datetime as dt
import json
import math
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from pydantic import ValidationError

from venture_brief.domain.models import (
    ExtractionRequest,
    ExtractionResult,
    KeywordEntry,
    NewsArticle,
    RecordSchema,
    ResearchPaper,
    ValidatedRecord,
)

DEFAULT_NEWS_SCORE = 0.8
DEFAULT_KEYWORD_SCORE = 0.75
NO_DESCRIPTION = "No description available"
DEFAULT_NEWS_SOURCE = "Industry News"
DEFAULT_AUTHORS = "Authors not specified"

_WRAPPER_KEYS = ("articles", "papers", "results", "keywords", "items", "data")
_SCORE_KEYS = ("relevanceScore", "relevance_score", "relevance", "score", "confidence")

Projector = Callable[[Any, int, str, dt.date], ValidatedRecord | None]


class StructuredExtractor:
    """Pulls a JSON payload out of free-form model text and projects it onto record models.

    Extraction never raises: every miss is reported as an empty result with a
    diagnostic reason.
    """

    def __init__(self, *, today: Callable[[], dt.date] | None = None) -> None:
        self._today = today or dt.date.today

    def extract(
        self,
        raw: str,
        schema: RecordSchema,
        max_records: int,
        *,
        query: str = "",
    ) -> ExtractionResult[Any]:
        if max_records < 1:
            raise ValueError("max_records must be >= 1")

        payloads = _json_payloads(raw)
        if not payloads:
            return ExtractionResult.empty("no JSON container found")

        miss_reason: str | None = None
        for payload in payloads:
            result = self._extract_payload(payload, schema, max_records, query=query)
            if not result.is_empty:
                return result
            miss_reason = miss_reason or result.miss_reason
        return ExtractionResult.empty(miss_reason or "no JSON container found")

    def extract_request(self, request: ExtractionRequest, raw: str) -> ExtractionResult[Any]:
        return self.extract(raw, request.target_schema, request.max_records, query=request.domain_query)

    def _extract_payload(
        self,
        payload: str,
        schema: RecordSchema,
        max_records: int,
        *,
        query: str,
    ) -> ExtractionResult[Any]:
        try:
            parsed = json.loads(payload)
        except json.JSONDecodeError as exc:
            return ExtractionResult.empty(f"invalid JSON: {exc.msg}")

        candidates = _candidate_elements(parsed)
        if not candidates:
            return ExtractionResult.empty("JSON payload holds no candidate records")

        project = _PROJECTORS[schema]
        today = self._today()
        records: list[ValidatedRecord] = []
        for index, candidate in enumerate(candidates, start=1):
            record = project(candidate, index, query.strip(), today)
            if record is None:
                continue
            records.append(record)
            if len(records) >= max_records:
                break

        if not records:
            return ExtractionResult.empty(f"all {len(candidates)} candidate records were dropped")
        return ExtractionResult(records=tuple(records))


def extract(raw: str, schema: RecordSchema, max_records: int, *, query: str = "") -> ExtractionResult[Any]:
    return StructuredExtractor().extract(raw, schema, max_records, query=query)


def _json_payloads(raw: str) -> list[str]:
    """Bracket-delimited slices of ``raw``, the container that opens first leading."""
    spans: list[tuple[int, int]] = []
    for opening, closing in (("[", "]"), ("{", "}")):
        start = raw.find(opening)
        end = raw.rfind(closing)
        if start != -1 and end > start:
            spans.append((start, end))
    return [raw[start : end + 1] for start, end in sorted(spans)]


def _candidate_elements(parsed: Any) -> list[Any]:
    if isinstance(parsed, list):
        return parsed
    if isinstance(parsed, Mapping):
        for key in _WRAPPER_KEYS:
            wrapped = parsed.get(key)
            if isinstance(wrapped, list):
                return wrapped
        return [parsed]
    return []


def _project_news(candidate: Any, index: int, query: str, today: dt.date) -> NewsArticle | None:
    if not isinstance(candidate, Mapping):
        return None
    title = _text(candidate, "title", "headline")
    snippet = _text(candidate, "snippet", "description", "summary")
    if title is None and snippet is None:
        return None

    try:
        return NewsArticle(
            title=title or f"Industry News: {query}".strip(),
            url=_text(candidate, "url", "link") or "#",
            snippet=snippet or NO_DESCRIPTION,
            source=_text(candidate, "source", "publisher") or DEFAULT_NEWS_SOURCE,
            date=_parse_date(candidate.get("date"), fallback=today),
            relevance_score=_score(candidate, default=DEFAULT_NEWS_SCORE),
        )
    except ValidationError:
        return None


def _project_paper(candidate: Any, index: int, query: str, today: dt.date) -> ResearchPaper | None:
    if not isinstance(candidate, Mapping):
        return None
    title = _text(candidate, "title")
    description = _text(candidate, "description", "abstract", "summary")
    if title is None and description is None:
        return None

    try:
        return ResearchPaper(
            paper_id=_identifier(candidate.get("id", candidate.get("paper_id"))) or f"ai-paper-{index}",
            title=title or f"Research on {query}".strip(),
            description=description or NO_DESCRIPTION,
            authors=_authors(candidate.get("authors")) or DEFAULT_AUTHORS,
            doi=_text(candidate, "doi"),
            url=_text(candidate, "url", "link") or "#",
            year=_parse_year(candidate.get("year"), fallback=today.year),
            subjects=_subjects(candidate.get("subjects")) or [query or "General Research"],
        )
    except ValidationError:
        return None


def _project_keyword(candidate: Any, index: int, query: str, today: dt.date) -> KeywordEntry | None:
    if isinstance(candidate, str):
        term = candidate.strip()
        if not term:
            return None
        return KeywordEntry(term=term)
    if not isinstance(candidate, Mapping):
        return None
    term = _text(candidate, "keyword", "term", "name")
    if term is None:
        return None
    try:
        return KeywordEntry(term=term, relevance_score=_score(candidate, default=DEFAULT_KEYWORD_SCORE))
    except ValidationError:
        return None


_PROJECTORS: dict[RecordSchema, Projector] = {
    RecordSchema.news_article: _project_news,
    RecordSchema.research_paper: _project_paper,
    RecordSchema.keyword: _project_keyword,
}


def _text(candidate: Mapping[str, Any], *keys: str) -> str | None:
    for key in keys:
        value = candidate.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def _identifier(value: object) -> str | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _authors(value: object) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    if isinstance(value, Sequence) and not isinstance(value, str):
        names = [item.strip() for item in value if isinstance(item, str) and item.strip()]
        if names:
            return ", ".join(names)
    return None


def _subjects(value: object) -> list[str]:
    if isinstance(value, str) and value.strip():
        return [value.strip()]
    if isinstance(value, Sequence) and not isinstance(value, str):
        return [item.strip() for item in value if isinstance(item, str) and item.strip()]
    return []


def _score(candidate: Mapping[str, Any], *, default: float) -> float:
    for key in _SCORE_KEYS:
        if key not in candidate:
            continue
        parsed = _coerce_float(candidate[key])
        if parsed is not None:
            return min(1.0, max(0.0, parsed))
    return default


def _coerce_float(value: object) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return number


def _parse_date(value: object, *, fallback: dt.date) -> dt.date:
    if not isinstance(value, str):
        return fallback
    try:
        return dt.date.fromisoformat(value.strip()[:10])
    except ValueError:
        return fallback


def _parse_year(value: object, *, fallback: int) -> int:
    if isinstance(value, bool):
        return fallback
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return fallback
