from pathlib import Path
from typing import Annotated

import typer

from venture_brief.domain.analysis import SummaryType, Voice

app = typer.Typer(add_completion=False)

ConfigOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        dir_okay=False,
        help="Config YAML (default: $VENTURE_BRIEF_CONFIG or ~/.config/venture-brief/config.yaml).",
    ),
]


@app.command()
def version() -> None:
    """Print version."""
    from venture_brief import __version__

    typer.echo(__version__)


@app.command()
def serve(
    *,
    host: Annotated[str, typer.Option(help="Interface to bind.")] = "127.0.0.1",
    port: Annotated[int, typer.Option(min=1, max=65535, help="Port to listen on.")] = 8000,
    config: ConfigOption = None,
) -> None:
    """Serve the HTTP API (industry news, research search, analysis summary, text-to-speech)."""
    from venture_brief.entrypoints.web import run_server
    from venture_brief.settings import ConfigurationError, load_settings

    try:
        settings = load_settings(path=config)
    except ConfigurationError as exc:
        raise typer.BadParameter(str(exc)) from exc
    run_server(settings=settings, host=host, port=port)


@app.command()
def keywords(
    *,
    title: Annotated[str, typer.Option(help="Startup idea title.")],
    description: Annotated[str, typer.Option(help="Short description of the idea.")] = "",
    feature: Annotated[
        list[str] | None,
        typer.Option("--feature", "-f", help="Key feature (repeatable)."),
    ] = None,
    industry: Annotated[str, typer.Option(help="Industry context.")] = "",
    idea: Annotated[str, typer.Option(help="Full idea text.")] = "",
    config: ConfigOption = None,
) -> None:
    """Extract industry keywords for a startup idea as JSON."""
    from venture_brief.domain.models import RetrievalContext
    from venture_brief.entrypoints.retrieve import run_keywords

    context = RetrievalContext(
        title=title,
        description=description,
        key_features=list(feature or []),
        industry=industry,
        idea=idea,
    )
    run_keywords(context=context, config=config)


@app.command()
def news(
    *,
    title: Annotated[str, typer.Option(help="Startup idea title.")],
    description: Annotated[str, typer.Option(help="Short description of the idea.")] = "",
    feature: Annotated[
        list[str] | None,
        typer.Option("--feature", "-f", help="Key feature (repeatable)."),
    ] = None,
    industry: Annotated[str, typer.Option(help="Industry context.")] = "",
    idea: Annotated[str, typer.Option(help="Full idea text.")] = "",
    config: ConfigOption = None,
) -> None:
    """Gather keywords, news articles, market trends and a competitive landscape as JSON."""
    from venture_brief.domain.models import RetrievalContext
    from venture_brief.entrypoints.retrieve import run_news

    context = RetrievalContext(
        title=title,
        description=description,
        key_features=list(feature or []),
        industry=industry,
        idea=idea,
    )
    run_news(context=context, config=config)


@app.command()
def research(
    query: Annotated[str, typer.Argument(help="Research topic to search for.")],
    *,
    config: ConfigOption = None,
) -> None:
    """Search research papers on a topic as JSON."""
    from venture_brief.entrypoints.retrieve import run_research

    run_research(query=query, config=config)


@app.command()
def narrate(
    *,
    analysis: Annotated[
        Path,
        typer.Option(
            exists=True,
            dir_okay=False,
            help="Analysis JSON document (the analysisResult object, or a wrapper holding it).",
        ),
    ],
    title: Annotated[str, typer.Option(help="Idea title spoken in the summary and used for the file name.")],
    summary_type: Annotated[
        SummaryType,
        typer.Option("--summary-type", "-t", help="Summary length."),
    ] = SummaryType.executive,
    voice: Annotated[Voice, typer.Option(help="Narrator voice.")] = Voice.rachel,
    output_dir: Annotated[
        Path,
        typer.Option(file_okay=False, help="Directory to write the MP3 into."),
    ] = Path("."),
    script_only: Annotated[
        bool,
        typer.Option(help="Print the narration script without synthesizing audio."),
    ] = False,
    config: ConfigOption = None,
) -> None:
    """Write a narrated MP3 summary of an analysis."""
    from venture_brief.entrypoints.narrate import run_narrate

    run_narrate(
        analysis_path=analysis,
        title=title,
        summary_type=summary_type,
        voice=voice,
        output_dir=output_dir,
        script_only=script_only,
        config=config,
    )


def main() -> None:
    app()
