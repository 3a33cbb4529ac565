from __future__ import annotations

import datetime as dt

import pytest
from pydantic import ValidationError

from venture_brief.domain import (
    AnalysisResult,
    CompletionResult,
    ExtractionRequest,
    ExtractionResult,
    KeywordEntry,
    NewsArticle,
    RecordSchema,
    ResearchResult,
    RetrievalContext,
)


def test_news_article_requires_non_blank_text() -> None:
    with pytest.raises(ValidationError):
        NewsArticle(title="  ", snippet="Body", source="Wire", date=dt.date(2025, 1, 1))


def test_scores_are_bounded() -> None:
    with pytest.raises(ValidationError):
        KeywordEntry(term="AI", relevance_score=1.5)


def test_unknown_fields_rejected() -> None:
    with pytest.raises(ValidationError):
        KeywordEntry.model_validate({"term": "AI", "weight": 3})


def test_assignment_is_validated() -> None:
    entry = KeywordEntry(term="AI")
    with pytest.raises(ValidationError):
        entry.relevance_score = -0.1


def test_extraction_request_requires_positive_max_records() -> None:
    with pytest.raises(ValueError):
        ExtractionRequest(domain_query="solar", target_schema=RecordSchema.keyword, max_records=0)


def test_extraction_and_completion_results() -> None:
    empty: ExtractionResult[KeywordEntry] = ExtractionResult.empty("invalid JSON")
    assert empty.is_empty
    assert empty.miss_reason == "invalid JSON"

    assert CompletionResult(text="hi").ok
    assert not CompletionResult(text=None, error="down").ok


def test_research_result_requires_papers() -> None:
    with pytest.raises(ValidationError):
        ResearchResult(query="solar", papers=[])


def test_retrieval_context_topic_prefers_industry() -> None:
    assert RetrievalContext(title="EcoPack", industry=" packaging ").topic() == "packaging"
    assert RetrievalContext(title="EcoPack").topic() == "EcoPack"
    assert RetrievalContext().topic() == ""


def test_analysis_result_accepts_partial_camel_case() -> None:
    analysis = AnalysisResult.model_validate(
        {"qualityScore": 6.5, "industryNews": {"marketTrends": ["Reuse"]}, "chartData": [1, 2]},
    )

    assert analysis.quality_score == 6.5
    assert analysis.industry_news.market_trends == ["Reuse"]
    assert analysis.frameworks.bcg.category == "question-mark"
