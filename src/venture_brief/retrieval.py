from __future__ import annotations

import datetime as dt
from collections.abc import Callable, Sequence
from typing import Any

import typer

from venture_brief.completion_client import CompletionError, TextCompletionClient
from venture_brief.domain.models import (
    CompletionResult,
    ExtractionRequest,
    ExtractionResult,
    KeywordEntry,
    KeywordList,
    NewsArticle,
    NewsResult,
    RecordSchema,
    ResearchPaper,
    ResearchResult,
    RetrievalContext,
)
from venture_brief.extraction import StructuredExtractor
from venture_brief.fallback import (
    FallbackSynthesizer,
    fallback_competitive_landscape,
    fallback_market_trends,
)
from venture_brief.keyword_parsing import first_sentences, parse_keyword_list, split_list_lines
from venture_brief.prompting import (
    PromptRenderer,
    PromptRenderResult,
    default_prompt_renderer,
    render_competitive_prompt,
    render_keywords_prompt,
    render_news_prompt,
    render_research_prompt,
    render_trends_prompt,
)

_LANDSCAPE_SENTENCES = 3


class RetrievalPipeline:
    """Prompt, complete, extract and fall back for every retrieval the service offers.

    Provider failures are absorbed here and answered from the fallback
    synthesizer; a missing credential is the one error that escapes.
    """

    def __init__(
        self,
        client: TextCompletionClient,
        *,
        renderer: PromptRenderer | None = None,
        synthesizer: FallbackSynthesizer | None = None,
        extractor: StructuredExtractor | None = None,
        model: str | None = None,
        max_articles: int = 8,
        max_papers: int = 10,
        max_keywords: int = 8,
        max_trends: int = 7,
        today: Callable[[], dt.date] | None = None,
    ) -> None:
        self._client = client
        self._renderer = renderer or default_prompt_renderer()
        self._today = today or dt.date.today
        self._synthesizer = synthesizer or FallbackSynthesizer(today=self._today)
        self._extractor = extractor or StructuredExtractor(today=self._today)
        self._model = model
        self._max_articles = max_articles
        self._max_papers = max_papers
        self._max_keywords = max_keywords
        self._max_trends = max_trends

    async def extract_keywords(self, context: RetrievalContext) -> KeywordList:
        prompt = render_keywords_prompt(renderer=self._renderer, context=context)
        typer.echo("  Extracting industry keywords...", err=True)
        completion = await self._complete(prompt)

        query = " ".join(part for part in (context.title.strip(), context.industry.strip()) if part)
        entries: list[KeywordEntry] = []
        if completion.ok and completion.text is not None:
            request = ExtractionRequest(
                domain_query=query,
                target_schema=RecordSchema.keyword,
                max_records=self._max_keywords,
            )
            extracted = self._extractor.extract_request(request, completion.text)
            if extracted.is_empty:
                entries = [KeywordEntry(term=term) for term in parse_keyword_list(completion.text)]
            else:
                entries = list(extracted.records)

        if not entries:
            entries = list(self._fallback(query, RecordSchema.keyword, reason=_miss_reason(completion)))
        return KeywordList(keywords=entries[: self._max_keywords])

    async def fetch_news_articles(self, context: RetrievalContext, keywords: Sequence[str]) -> list[NewsArticle]:
        prompt = render_news_prompt(
            renderer=self._renderer,
            context=context,
            keywords=keywords,
            today=self._today(),
            max_count=self._max_articles,
        )
        typer.echo("  Searching industry news...", err=True)
        completion = await self._complete(prompt)

        query = context.topic() or next((keyword for keyword in keywords if keyword.strip()), "")
        extracted = self._extract(completion, query=query, schema=RecordSchema.news_article, limit=self._max_articles)
        if not extracted.is_empty:
            return list(extracted.records)
        reason = extracted.miss_reason or _miss_reason(completion)
        return list(self._fallback(query, RecordSchema.news_article, reason=reason, keywords=keywords))

    async def list_market_trends(self, keywords: Sequence[str]) -> list[str]:
        prompt = render_trends_prompt(renderer=self._renderer, keywords=keywords, max_count=self._max_trends)
        typer.echo("  Listing market trends...", err=True)
        completion = await self._complete(prompt)

        trends = split_list_lines(completion.text, limit=self._max_trends) if completion.ok else []
        if trends:
            return trends
        typer.echo(f"  Using fallback market trends ({_miss_reason(completion)})", err=True)
        return fallback_market_trends(keywords)[: self._max_trends]

    async def summarize_competitive_landscape(self, context: RetrievalContext, keywords: Sequence[str]) -> str:
        prompt = render_competitive_prompt(renderer=self._renderer, context=context, keywords=keywords)
        typer.echo("  Summarizing competitive landscape...", err=True)
        completion = await self._complete(prompt)

        summary = first_sentences(completion.text, limit=_LANDSCAPE_SENTENCES) if completion.ok else ""
        if summary:
            return summary
        typer.echo(f"  Using fallback competitive landscape ({_miss_reason(completion)})", err=True)
        return fallback_competitive_landscape(context, keywords)

    async def fetch_industry_news(self, context: RetrievalContext) -> NewsResult:
        keywords = (await self.extract_keywords(context)).terms
        articles = await self.fetch_news_articles(context, keywords)
        trends = await self.list_market_trends(keywords)
        landscape = await self.summarize_competitive_landscape(context, keywords)
        return NewsResult(
            articles=articles,
            industry_keywords=keywords,
            market_trends=trends,
            competitive_landscape=landscape,
        )

    async def search_research_papers(self, query: str) -> ResearchResult:
        query = query.strip()
        prompt = render_research_prompt(
            renderer=self._renderer,
            query=query,
            year=self._today().year,
            max_count=self._max_papers,
        )
        typer.echo(f"  Searching research papers for {query!r}...", err=True)
        completion = await self._complete(prompt)

        extracted = self._extract(completion, query=query, schema=RecordSchema.research_paper, limit=self._max_papers)
        if extracted.is_empty:
            reason = extracted.miss_reason or _miss_reason(completion)
            papers: list[ResearchPaper] = list(self._fallback(query, RecordSchema.research_paper, reason=reason))
        else:
            papers = list(extracted.records)
        return ResearchResult(query=query, papers=papers[: self._max_papers])

    async def _complete(self, prompt: PromptRenderResult) -> CompletionResult:
        try:
            text = await self._client.complete(prompt.text, model=self._model)
        except CompletionError as exc:
            return CompletionResult(text=None, error=str(exc))
        return CompletionResult(text=text)

    def _extract(
        self,
        completion: CompletionResult,
        *,
        query: str,
        schema: RecordSchema,
        limit: int,
    ) -> ExtractionResult[Any]:
        if not completion.ok or completion.text is None:
            return ExtractionResult.empty(_miss_reason(completion))
        request = ExtractionRequest(domain_query=query, target_schema=schema, max_records=limit)
        return self._extractor.extract_request(request, completion.text)

    def _fallback(
        self,
        query: str,
        schema: RecordSchema,
        *,
        reason: str,
        keywords: Sequence[str] | None = None,
    ) -> tuple[Any, ...]:
        outcome = self._synthesizer.synthesize_with_tier(query, schema, keywords=keywords)
        typer.echo(f"  Using {outcome.tier} fallback for {schema} ({reason})", err=True)
        return outcome.records


def _miss_reason(completion: CompletionResult) -> str:
    if completion.error:
        return completion.error
    return "no usable records in completion"
