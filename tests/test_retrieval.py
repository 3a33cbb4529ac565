from __future__ import annotations

import asyncio
import datetime as dt
import json
import random

import pytest

from venture_brief.completion_client import CompletionError
from venture_brief.domain.models import RetrievalContext
from venture_brief.fallback import FallbackSynthesizer
from venture_brief.retrieval import RetrievalPipeline
from venture_brief.settings import ConfigurationError, MissingCredentialError

_TODAY = dt.date(2025, 3, 14)


class FakeCompletionClient:
    """Test double that returns scripted completions (or raises scripted errors)."""

    def __init__(self, responses: list[str | Exception]) -> None:
        self._responses = list(responses)
        self._pos = 0
        self.prompts: list[str] = []
        self.models: list[str | None] = []

    async def complete(self, prompt_text: str, *, model: str | None = None) -> str:
        self.prompts.append(prompt_text)
        self.models.append(model)
        if self._pos >= len(self._responses):
            raise IndexError(f"FakeCompletionClient exhausted after {self._pos} calls")
        response = self._responses[self._pos]
        self._pos += 1
        if isinstance(response, Exception):
            raise response
        return response


def _pipeline(client: FakeCompletionClient, **kwargs: object) -> RetrievalPipeline:
    return RetrievalPipeline(
        client,
        synthesizer=FallbackSynthesizer(rng=random.Random(1), today=lambda: _TODAY),
        today=lambda: _TODAY,
        **kwargs,  # type: ignore[arg-type]
    )


def _context() -> RetrievalContext:
    return RetrievalContext(
        title="EcoPack",
        description="Compostable shipping materials for online retailers",
        key_features=["home compostable", "custom branding"],
        industry="sustainable packaging",
        idea="A marketplace for compostable mailers.",
    )


def _articles(count: int) -> str:
    return json.dumps(
        [
            {
                "title": f"Packaging story {i}",
                "url": f"https://news.test/{i}",
                "snippet": f"Snippet {i}",
                "source": "Packaging Dive",
                "date": "2025-02-01",
                "relevanceScore": 0.9,
            }
            for i in range(1, count + 1)
        ],
    )


def test_extract_keywords_parses_comma_list_and_caps() -> None:
    client = FakeCompletionClient([", ".join(f"term {i}" for i in range(1, 11))])

    keywords = asyncio.run(_pipeline(client).extract_keywords(_context()))

    assert keywords.terms == [f"term {i}" for i in range(1, 9)]
    assert "Key Features: home compostable, custom branding" in client.prompts[0]
    assert "Industry Context: sustainable packaging" in client.prompts[0]


def test_extract_keywords_prefers_json_arrays() -> None:
    client = FakeCompletionClient(['["compostable mailers", {"keyword": "e-commerce", "relevance": 0.9}]'])

    keywords = asyncio.run(_pipeline(client).extract_keywords(_context()))

    assert keywords.terms == ["compostable mailers", "e-commerce"]
    assert keywords.keywords[1].relevance_score == 0.9


def test_extract_keywords_falls_back_on_provider_failure() -> None:
    client = FakeCompletionClient([CompletionError("Anthropic API error (529): Overloaded")])

    keywords = asyncio.run(_pipeline(client).extract_keywords(_context()))

    assert len(keywords.terms) == 6
    assert keywords.terms[0] == "EcoPack sustainable packaging"


def test_fetch_news_articles_returns_extracted_records() -> None:
    client = FakeCompletionClient([_articles(10)])

    articles = asyncio.run(_pipeline(client).fetch_news_articles(_context(), ["compostable", "mailers"]))

    assert [article.title for article in articles] == [f"Packaging story {i}" for i in range(1, 9)]
    prompt = client.prompts[0]
    assert "related to these topics: compostable, mailers" in prompt
    assert '"date": "2025-03-14"' in prompt
    assert "Find 5-8 relevant articles" in prompt


def test_fetch_news_articles_plain_prose_uses_smart_fallback() -> None:
    client = FakeCompletionClient(["I'm sorry, I can't browse the web for current news."])

    articles = asyncio.run(_pipeline(client).fetch_news_articles(_context(), ["compostable mailers"]))

    assert len(articles) == 5
    for article in articles:
        assert article.title and article.snippet and article.source
        assert article.date <= _TODAY
    assert "compostable mailers" in articles[0].title


def test_list_market_trends_strips_markers_and_caps() -> None:
    text = "\n".join(f"{i}. Trend number {i}" for i in range(1, 10))
    client = FakeCompletionClient([text])

    trends = asyncio.run(_pipeline(client).list_market_trends(["compostable"]))

    assert trends == [f"Trend number {i}" for i in range(1, 8)]
    assert "identify 5-7 current market trends" in client.prompts[0]


def test_list_market_trends_empty_text_falls_back() -> None:
    client = FakeCompletionClient(["   \n  "])

    trends = asyncio.run(_pipeline(client).list_market_trends(["compostable"]))

    assert len(trends) == 5
    assert all("compostable" in trend for trend in trends)


def test_summarize_competitive_landscape_keeps_three_sentences() -> None:
    client = FakeCompletionClient(["Leaders exist. Challengers grow. Niches remain. Margins are thin."])

    summary = asyncio.run(_pipeline(client).summarize_competitive_landscape(_context(), ["compostable"]))

    assert summary == "Leaders exist. Challengers grow. Niches remain."


def test_fetch_industry_news_is_total_under_provider_failures() -> None:
    client = FakeCompletionClient([CompletionError("down")] * 4)

    result = asyncio.run(_pipeline(client).fetch_industry_news(_context()))

    assert len(result.industry_keywords) == 6
    assert len(result.articles) == 5
    assert len(result.market_trends) == 5
    assert "EcoPack" in result.competitive_landscape
    assert len(client.prompts) == 4


def test_fetch_industry_news_chains_keywords_into_later_prompts() -> None:
    client = FakeCompletionClient(
        [
            "compostable mailers, green logistics",
            _articles(2),
            "- Reusable packaging\n- Plastic taxes",
            "Large converters lead the market. Startups focus on D2C brands.",
        ],
    )

    result = asyncio.run(_pipeline(client).fetch_industry_news(_context()))

    assert result.industry_keywords == ["compostable mailers", "green logistics"]
    assert [article.title for article in result.articles] == ["Packaging story 1", "Packaging story 2"]
    assert result.market_trends == ["Reusable packaging", "Plastic taxes"]
    assert result.competitive_landscape == "Large converters lead the market. Startups focus on D2C brands."
    assert "compostable mailers, green logistics" in client.prompts[1]
    assert "Industry Keywords: compostable mailers, green logistics" in client.prompts[3]


def test_search_research_papers_caps_results() -> None:
    papers = [{"title": f"Paper {i}", "description": f"About {i}"} for i in range(1, 13)]
    client = FakeCompletionClient([json.dumps(papers)])

    result = asyncio.run(_pipeline(client).search_research_papers("  graph neural networks "))

    assert result.query == "graph neural networks"
    assert result.count == 10
    assert result.papers[0].paper_id == "ai-paper-1"
    assert 'related to "graph neural networks"' in client.prompts[0]
    assert '"year": 2025' in client.prompts[0]


def test_search_research_papers_malformed_output_uses_smart_fallback() -> None:
    client = FakeCompletionClient(['[{"title": "unterminated'])

    result = asyncio.run(_pipeline(client).search_research_papers("graph neural networks"))

    assert result.count == 4
    assert result.papers[0].authors == "Dr. Sarah Chen, Prof. Michael Kumar, Dr. Elena Rodriguez"


def test_missing_credential_propagates() -> None:
    client = FakeCompletionClient([MissingCredentialError("Anthropic API key not configured.")])

    with pytest.raises(ConfigurationError, match="not configured"):
        asyncio.run(_pipeline(client).search_research_papers("solar"))


def test_model_is_passed_to_client() -> None:
    client = FakeCompletionClient(["a, b"])

    asyncio.run(_pipeline(client, model="claude-test").extract_keywords(_context()))

    assert client.models == ["claude-test"]
