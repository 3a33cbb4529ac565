from __future__ import annotations

import asyncio
import json
from pathlib import Path

import typer
from pydantic import ValidationError

from venture_brief.audio_summary import AudioSummaryOrchestrator, OrchestratorState
from venture_brief.completion_client import CompletionError, build_completion_client
from venture_brief.domain.analysis import AnalysisResult, SummaryType, Voice
from venture_brief.narration import ScriptGenerationError, ScriptGenerator
from venture_brief.settings import ConfigurationError, load_settings
from venture_brief.speech_client import ElevenLabsClient


def _load_analysis(path: Path) -> AnalysisResult:
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise typer.BadParameter(f"Invalid JSON at {path}: {exc}") from exc
    if isinstance(raw, dict) and isinstance(raw.get("analysisResult"), dict):
        raw = raw["analysisResult"]
    try:
        return AnalysisResult.model_validate(raw)
    except ValidationError as exc:
        raise typer.BadParameter(f"Invalid analysis document at {path}: {exc}") from exc


def run_narrate(
    *,
    analysis_path: Path,
    title: str,
    summary_type: SummaryType,
    voice: Voice,
    output_dir: Path,
    script_only: bool,
    config: Path | None,
) -> None:
    analysis = _load_analysis(analysis_path)
    try:
        settings = load_settings(path=config)
    except ConfigurationError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    generator = ScriptGenerator(build_completion_client(settings.completion))
    if script_only:
        try:
            script = asyncio.run(generator.generate(analysis, title, summary_type))
        except (ConfigurationError, CompletionError, ScriptGenerationError) as exc:
            typer.echo(f"Error: {exc}", err=True)
            raise typer.Exit(code=1) from exc
        typer.echo(script.text)
        typer.echo(f"Estimated duration: {script.estimated_duration_seconds}s", err=True)
        return

    with AudioSummaryOrchestrator(
        generator,
        ElevenLabsClient(settings.speech),
        speech_model=settings.speech.model,
    ) as orchestrator:
        try:
            snapshot = asyncio.run(orchestrator.generate(analysis, title, summary_type, voice))
        except ConfigurationError as exc:
            typer.echo(f"Error: {exc}", err=True)
            raise typer.Exit(code=1) from exc

        if snapshot.state is OrchestratorState.failed:
            typer.echo(f"Error: {snapshot.failure_reason}", err=True)
            if snapshot.hint:
                typer.echo(f"Hint: {snapshot.hint}", err=True)
            raise typer.Exit(code=1)

        path = orchestrator.download(output_dir)

    if snapshot.script is not None:
        for point in snapshot.script.key_points:
            typer.echo(f"  {point}", err=True)
        typer.echo(f"Estimated duration: {snapshot.script.estimated_duration_seconds}s", err=True)
    typer.echo(str(path))
