from __future__ import annotations

import asyncio
import json
from collections.abc import Coroutine
from pathlib import Path
from typing import Any, TypeVar

import typer

from venture_brief.completion_client import build_completion_client
from venture_brief.domain.models import RetrievalContext
from venture_brief.entrypoints.web import news_json, paper_json
from venture_brief.retrieval import RetrievalPipeline
from venture_brief.settings import ConfigurationError, load_settings

T = TypeVar("T")


def _build_pipeline(config: Path | None) -> RetrievalPipeline:
    try:
        settings = load_settings(path=config)
    except ConfigurationError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    return RetrievalPipeline(build_completion_client(settings.completion))


def _run(coro: Coroutine[Any, Any, T]) -> T:
    try:
        return asyncio.run(coro)
    except ConfigurationError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc


def _emit(data: Any) -> None:
    typer.echo(json.dumps(data, indent=2, ensure_ascii=False))


def run_keywords(*, context: RetrievalContext, config: Path | None) -> None:
    pipeline = _build_pipeline(config)
    keywords = _run(pipeline.extract_keywords(context))
    _emit([entry.model_dump(mode="json") for entry in keywords.keywords])


def run_news(*, context: RetrievalContext, config: Path | None) -> None:
    pipeline = _build_pipeline(config)
    result = _run(pipeline.fetch_industry_news(context))
    _emit(news_json(result))


def run_research(*, query: str, config: Path | None) -> None:
    if not query.strip():
        raise typer.BadParameter("query must not be empty")
    pipeline = _build_pipeline(config)
    result = _run(pipeline.search_research_papers(query))
    _emit({"success": True, "data": [paper_json(paper) for paper in result.papers], "count": result.count})
