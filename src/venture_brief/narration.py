from __future__ import annotations

import math

import typer

from venture_brief.completion_client import TextCompletionClient
from venture_brief.domain.analysis import AnalysisResult, SummaryScript, SummaryType
from venture_brief.prompting import (
    PromptRenderer,
    default_prompt_renderer,
    format_score,
    render_summary_prompt,
)

WORDS_PER_MINUTE = 150
NOT_SPECIFIED = "Not specified"


class ScriptGenerationError(RuntimeError):
    pass


def estimate_duration_seconds(script: str) -> int:
    """Spoken length of ``script`` at 150 words per minute, rounded up to whole seconds."""
    words = len(script.split())
    return math.ceil(words / WORDS_PER_MINUTE * 60)


def extract_key_points(analysis: AnalysisResult, summary_type: SummaryType) -> tuple[str, ...]:
    frameworks = analysis.frameworks
    points = [
        f"Overall Quality Score: {format_score(analysis.quality_score)}/10",
        f"BCG Classification: {frameworks.bcg.category.replace('-', ' ', 1).upper()}",
    ]
    if summary_type is SummaryType.detailed:
        metrics = frameworks.metrics
        points.extend(
            [
                f"Desirability: {format_score(metrics.desirability)}/10",
                f"Viability: {format_score(metrics.viability)}/10",
                f"Feasibility: {format_score(metrics.feasibility)}/10",
            ],
        )
        points.extend(f"✓ {pro}" for pro in analysis.pros[:2])
        points.extend(f"⚠ {con}" for con in analysis.cons[:2])
    else:
        points.extend(
            [
                f"Top Strength: {analysis.pros[0] if analysis.pros else NOT_SPECIFIED}",
                f"Key Challenge: {analysis.cons[0] if analysis.cons else NOT_SPECIFIED}",
                f"Market Keywords: {', '.join(analysis.industry_news.industry_keywords[:3])}",
            ],
        )
    return tuple(points)


class ScriptGenerator:
    def __init__(
        self,
        client: TextCompletionClient,
        *,
        renderer: PromptRenderer | None = None,
        model: str | None = None,
    ) -> None:
        self._client = client
        self._renderer = renderer or default_prompt_renderer()
        self._model = model

    async def generate(
        self,
        analysis: AnalysisResult,
        title: str,
        summary_type: SummaryType = SummaryType.executive,
    ) -> SummaryScript:
        prompt = render_summary_prompt(
            renderer=self._renderer,
            analysis=analysis,
            title=title,
            summary_type=summary_type,
        )
        typer.echo(f"  Writing {summary_type} narration script...", err=True)
        text = (await self._client.complete(prompt.text, model=self._model)).strip()
        if not text:
            raise ScriptGenerationError("Completion returned an empty narration script")
        return SummaryScript(
            text=text,
            estimated_duration_seconds=estimate_duration_seconds(text),
            key_points=extract_key_points(analysis, summary_type),
        )
