from __future__ import annotations

import json
from typing import Any

import uvicorn
from pydantic import ValidationError
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from venture_brief.completion_client import CompletionError, build_completion_client
from venture_brief.domain.analysis import AnalysisResult, SummaryType, Voice
from venture_brief.domain.models import NewsArticle, NewsResult, ResearchPaper, RetrievalContext
from venture_brief.narration import ScriptGenerationError, ScriptGenerator
from venture_brief.retrieval import RetrievalPipeline
from venture_brief.settings import ConfigurationError, Settings
from venture_brief.speech_client import ElevenLabsClient, SpeechSynthesisClient, SpeechSynthesisError


def article_json(article: NewsArticle) -> dict[str, Any]:
    return {
        "title": article.title,
        "url": article.url,
        "snippet": article.snippet,
        "source": article.source,
        "date": article.date.isoformat(),
        "relevanceScore": article.relevance_score,
    }


def paper_json(paper: ResearchPaper) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": paper.paper_id,
        "title": paper.title,
        "description": paper.description,
        "authors": paper.authors,
        "url": paper.url,
        "year": paper.year,
        "subjects": list(paper.subjects),
    }
    if paper.doi:
        data["doi"] = paper.doi
    return data


def news_json(result: NewsResult) -> dict[str, Any]:
    return {
        "articles": [article_json(article) for article in result.articles],
        "industryKeywords": list(result.industry_keywords),
        "marketTrends": list(result.market_trends),
        "competitiveLandscape": result.competitive_landscape,
    }


def _optional_str(payload: dict[str, Any], key: str) -> str:
    value = payload.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"{key} must be a string")
    return value


def _parse_voice(value: object) -> Voice:
    if isinstance(value, str):
        try:
            return Voice(value)
        except ValueError:
            pass
    return Voice.rachel


class _VentureApi:
    def __init__(
        self,
        *,
        pipeline: RetrievalPipeline,
        script_generator: ScriptGenerator,
        speech_client: SpeechSynthesisClient,
        speech_model: str | None,
    ) -> None:
        self.pipeline = pipeline
        self.script_generator = script_generator
        self.speech_client = speech_client
        self.speech_model = speech_model

    async def _parse_json_object(self, request: Request) -> tuple[dict[str, Any] | None, Response | None]:
        raw = await request.body()
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError:
            return None, JSONResponse({"error": "Invalid JSON"}, status_code=400)
        if not isinstance(payload, dict):
            return None, JSONResponse({"error": "Expected JSON object"}, status_code=400)
        return payload, None

    async def reject_get(self, _request: Request) -> Response:
        return JSONResponse({"error": "GET method not allowed. Use POST with a JSON body."}, status_code=405)

    async def handle_industry_news(self, request: Request) -> Response:
        payload, error_response = await self._parse_json_object(request)
        if error_response is not None:
            return error_response
        assert payload is not None

        key_features = payload.get("keyFeatures") or []
        try:
            if not isinstance(key_features, list) or not all(isinstance(item, str) for item in key_features):
                raise ValueError("keyFeatures must be a list of strings")
            context = RetrievalContext(
                title=_optional_str(payload, "title"),
                description=_optional_str(payload, "description"),
                key_features=key_features,
                industry=_optional_str(payload, "industry"),
                idea=_optional_str(payload, "idea"),
            )
        except (ValueError, ValidationError) as exc:
            return JSONResponse({"error": str(exc)}, status_code=400)

        try:
            result = await self.pipeline.fetch_industry_news(context)
        except ConfigurationError as exc:
            return JSONResponse({"error": str(exc)}, status_code=500)
        return JSONResponse(news_json(result))

    async def handle_research_search(self, request: Request) -> Response:
        payload, error_response = await self._parse_json_object(request)
        if error_response is not None:
            return error_response
        assert payload is not None

        query = payload.get("query")
        if not isinstance(query, str) or not query.strip():
            return JSONResponse({"error": "Query parameter is required"}, status_code=400)

        try:
            result = await self.pipeline.search_research_papers(query)
        except ConfigurationError as exc:
            return JSONResponse(
                {"error": "Failed to search research database", "details": str(exc)},
                status_code=500,
            )
        return JSONResponse(
            {
                "success": True,
                "data": [paper_json(paper) for paper in result.papers],
                "count": result.count,
            },
        )

    async def handle_analysis_summary(self, request: Request) -> Response:
        payload, error_response = await self._parse_json_object(request)
        if error_response is not None:
            return error_response
        assert payload is not None

        raw_analysis = payload.get("analysisResult")
        title = payload.get("ideaTitle")
        if not isinstance(raw_analysis, dict) or not isinstance(title, str) or not title.strip():
            return JSONResponse({"error": "Missing required fields"}, status_code=400)
        try:
            analysis = AnalysisResult.model_validate(raw_analysis)
            summary_type = SummaryType(payload.get("summaryType") or SummaryType.executive)
        except (ValueError, ValidationError) as exc:
            return JSONResponse({"error": str(exc)}, status_code=400)

        try:
            script = await self.script_generator.generate(analysis, title.strip(), summary_type)
        except ConfigurationError as exc:
            return JSONResponse({"error": str(exc)}, status_code=500)
        except (CompletionError, ScriptGenerationError) as exc:
            return JSONResponse(
                {"error": "Failed to generate audio summary", "details": str(exc)},
                status_code=500,
            )
        return JSONResponse(
            {
                "audioScript": script.text,
                "estimatedDuration": script.estimated_duration_seconds,
                "keyPoints": list(script.key_points),
            },
        )

    async def handle_text_to_speech(self, request: Request) -> Response:
        payload, error_response = await self._parse_json_object(request)
        if error_response is not None:
            return error_response
        assert payload is not None

        text = payload.get("text")
        if not isinstance(text, str) or not text.strip():
            return JSONResponse({"error": "Text content is required"}, status_code=400)
        model = payload.get("model")
        if model is not None and (not isinstance(model, str) or not model.strip()):
            return JSONResponse({"error": "model must be a non-empty string"}, status_code=400)

        try:
            audio = await self.speech_client.synthesize(
                text,
                voice=_parse_voice(payload.get("voice")),
                model=model or self.speech_model,
            )
        except ConfigurationError as exc:
            return JSONResponse({"error": str(exc)}, status_code=500)
        except SpeechSynthesisError as exc:
            return JSONResponse({"error": str(exc)}, status_code=exc.status_code or 502)

        data = audio.read()
        audio.release()
        return Response(
            content=data,
            media_type=audio.content_type,
            headers={"Content-Length": str(len(data))},
        )


def create_app(
    *,
    pipeline: RetrievalPipeline,
    script_generator: ScriptGenerator,
    speech_client: SpeechSynthesisClient,
    speech_model: str | None = None,
) -> Starlette:
    api = _VentureApi(
        pipeline=pipeline,
        script_generator=script_generator,
        speech_client=speech_client,
        speech_model=speech_model,
    )

    routes = [
        Route("/api/industry-news", api.handle_industry_news, methods=["POST"]),
        Route("/api/industry-news", api.reject_get, methods=["GET"]),
        Route("/api/research/search", api.handle_research_search, methods=["POST"]),
        Route("/api/research/search", api.reject_get, methods=["GET"]),
        Route("/api/analysis-summary", api.handle_analysis_summary, methods=["POST"]),
        Route("/api/analysis-summary", api.reject_get, methods=["GET"]),
        Route("/api/text-to-speech", api.handle_text_to_speech, methods=["POST"]),
        Route("/api/text-to-speech", api.reject_get, methods=["GET"]),
    ]

    return Starlette(routes=routes)


def create_app_from_settings(settings: Settings) -> Starlette:
    client = build_completion_client(settings.completion)
    return create_app(
        pipeline=RetrievalPipeline(client),
        script_generator=ScriptGenerator(client),
        speech_client=ElevenLabsClient(settings.speech),
        speech_model=settings.speech.model,
    )


def run_server(*, settings: Settings, host: str, port: int) -> None:
    """Serve the HTTP API until interrupted."""
    app = create_app_from_settings(settings)
    config = uvicorn.Config(app=app, host=host, port=port, access_log=False, log_level="info")
    server = uvicorn.Server(config=config)
    server.run()
