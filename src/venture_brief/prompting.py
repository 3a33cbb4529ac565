from __future__ import annotations

import datetime as dt
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from hashlib import sha256
from typing import Any

from venture_brief.domain.analysis import AnalysisResult, SummaryType
from venture_brief.domain.models import RetrievalContext


@dataclass(frozen=True)
class PromptTemplate:
    name: str
    template: str
    description: str | None = None


@dataclass(frozen=True)
class PromptRenderResult:
    prompt_id: str
    template: str
    text: str
    context: dict[str, str]

    def to_json_data(self) -> dict[str, Any]:
        return {
            "version": 1,
            "prompt_id": self.prompt_id,
            "template": self.template,
            "context": dict(self.context),
            "prompt_text": self.text,
        }


class PromptRegistry:
    def __init__(self, templates: Sequence[PromptTemplate]) -> None:
        self._templates = {template.name: template for template in templates}

    def get(self, name: str) -> PromptTemplate:
        if name not in self._templates:
            raise KeyError(f"Unknown prompt template: {name}")
        return self._templates[name]

    def names(self) -> tuple[str, ...]:
        return tuple(sorted(self._templates))


class PromptRenderer:
    def __init__(self, registry: PromptRegistry) -> None:
        self._registry = registry

    def render(self, *, name: str, context: Mapping[str, object]) -> PromptRenderResult:
        template = self._registry.get(name)
        context_str = {key: str(value) for key, value in context.items()}
        text = template.template.format_map(context_str).rstrip() + "\n"
        return PromptRenderResult(
            prompt_id=_prompt_ref(template.name, text),
            template=template.name,
            text=text,
            context=context_str,
        )


_KEYWORDS_TEMPLATE = """Extract 5-8 key industry keywords and search terms from this startup idea that would be useful for finding relevant news and market information:

Title: {title}
Description: {description}
Key Features: {key_features}
Industry Context: {industry}
Full Idea: {idea}

Return only comma-separated keywords, no explanations.
"""


_NEWS_TEMPLATE = """Search for recent news articles related to these topics: {keywords}

Context: This is for a startup called "{title}" - {description}

Please find real, recent news articles (from the last 6 months) that are relevant to this industry/topic.

For each article, provide:
- Title (exact headline from the news source)
- URL (actual news article URL)
- Snippet (brief summary or excerpt)
- Source (news publication name)
- Date (publication date in YYYY-MM-DD format)
- Relevance score (0.0 to 1.0 based on how relevant it is)

Return as a JSON array with exactly this structure:
[
  {{
    "title": "Real article title",
    "url": "https://real-news-url.com",
    "snippet": "Brief summary of the article content",
    "source": "News Source Name",
    "date": "{example_date}",
    "relevanceScore": 0.85
  }}
]

Find {min_count}-{max_count} relevant articles. Focus on industry news, market trends, funding news, regulatory changes, or technology developments.
"""


_TRENDS_TEMPLATE = """Based on these industry keywords: {keywords}, identify {min_count}-{max_count} current market trends that would be relevant to a startup in this space. Focus on technology trends, user behavior changes, market dynamics, and emerging opportunities.

Return one trend per line, no numbering and no introduction.
"""


_COMPETITIVE_TEMPLATE = """Provide a brief competitive landscape analysis for a startup with these characteristics:

Title: {title}
Description: {description}
Industry Keywords: {keywords}

Include information about market leaders, emerging players, and competitive dynamics. Keep it concise (2-3 sentences).
"""


_RESEARCH_TEMPLATE = """Search for academic research papers related to "{query}".

Please provide a JSON array of research papers with the following structure for each paper:
{{
  "id": "unique_id",
  "title": "Paper title",
  "description": "Brief description or abstract",
  "authors": "Author names",
  "url": "URL to the paper",
  "year": {example_year},
  "subjects": ["subject1", "subject2"]
}}

Focus on finding real, current research papers from reputable sources like arXiv, IEEE, PubMed, ResearchGate, or academic journals. Include papers from the last 3 years if possible.

Return exactly {min_count}-{max_count} papers as a valid JSON array. Make sure the JSON is properly formatted.
"""


_SUMMARY_QUICK_TEMPLATE = """Create a concise 60-90 second audio summary for the startup idea analysis of "{title}".

Analysis Data:
- Quality Score: {quality_score}/10
- Summary: {summary}
- Top Strengths: {top_strengths}
- Key Challenges: {key_challenges}
- BCG Category: {bcg_category}
- Industry Keywords: {industry_keywords}

Create a natural, conversational audio script that sounds engaging when read aloud. Use a professional but friendly tone. Include brief pauses marked with [PAUSE]. Start with a greeting and the idea name.
"""


_SUMMARY_EXECUTIVE_TEMPLATE = """Create an executive summary audio script (2-3 minutes) for the startup idea analysis of "{title}".

Key Analysis Points:
- Overall Quality Score: {quality_score}/10
- Summary: {summary}
- Top 3 Strengths: {top_strengths}
- Top 3 Challenges: {key_challenges}
- BCG Category: {bcg_category} - {bcg_reasoning}
- Key Metrics: Desirability {desirability}/10, Viability {viability}/10
- Market Position: {competitive_landscape}
- Top Recommendations: {improvements}
- Elevator Pitch: {elevator_pitch}

Create a professional executive briefing that sounds natural when spoken. Use clear, confident language appropriate for stakeholders. Include [PAUSE] markers for emphasis.
"""


_SUMMARY_DETAILED_TEMPLATE = """Create a comprehensive 4-6 minute audio summary for the startup idea analysis of "{title}".

Complete Analysis Data:
- Quality Score: {quality_score}/10
- Summary: {summary}
- Evaluation: {evaluation}

SWOT Analysis:
- Strengths: {swot_strengths}
- Weaknesses: {swot_weaknesses}
- Opportunities: {swot_opportunities}
- Threats: {swot_threats}

Metrics:
- Desirability: {desirability}/10
- Viability: {viability}/10
- Feasibility: {feasibility}/10
- Sustainability: {sustainability}/10

BCG Matrix: {bcg_category} ({bcg_reasoning})

Industry News: {competitive_landscape}
Market Trends: {market_trends}

Recommendations: {improvements}

Create a well-structured, natural audio script with clear sections. Use professional language but keep it engaging. Include [PAUSE] markers for natural breaks.
"""


_DEFAULT_TEMPLATES = (
    PromptTemplate(name="keywords", template=_KEYWORDS_TEMPLATE, description="Comma-separated industry keywords."),
    PromptTemplate(name="news_articles", template=_NEWS_TEMPLATE, description="JSON array of news articles."),
    PromptTemplate(name="market_trends", template=_TRENDS_TEMPLATE, description="One market trend per line."),
    PromptTemplate(
        name="competitive_landscape",
        template=_COMPETITIVE_TEMPLATE,
        description="Two or three sentences on competitors.",
    ),
    PromptTemplate(name="research_papers", template=_RESEARCH_TEMPLATE, description="JSON array of papers."),
    PromptTemplate(name="summary_quick", template=_SUMMARY_QUICK_TEMPLATE, description="60-90 second narration."),
    PromptTemplate(
        name="summary_executive",
        template=_SUMMARY_EXECUTIVE_TEMPLATE,
        description="2-3 minute executive narration.",
    ),
    PromptTemplate(
        name="summary_detailed",
        template=_SUMMARY_DETAILED_TEMPLATE,
        description="4-6 minute detailed narration.",
    ),
)


def default_prompt_registry() -> PromptRegistry:
    return PromptRegistry(_DEFAULT_TEMPLATES)


def default_prompt_renderer() -> PromptRenderer:
    return PromptRenderer(default_prompt_registry())


def render_keywords_prompt(*, renderer: PromptRenderer, context: RetrievalContext) -> PromptRenderResult:
    return renderer.render(name="keywords", context=context.prompt_fields())


def render_news_prompt(
    *,
    renderer: PromptRenderer,
    context: RetrievalContext,
    keywords: Sequence[str],
    today: dt.date,
    min_count: int = 5,
    max_count: int = 8,
) -> PromptRenderResult:
    return renderer.render(
        name="news_articles",
        context={
            "keywords": ", ".join(keywords),
            "title": context.title,
            "description": context.description,
            "example_date": today.isoformat(),
            "min_count": min_count,
            "max_count": max_count,
        },
    )


def render_trends_prompt(
    *,
    renderer: PromptRenderer,
    keywords: Sequence[str],
    min_count: int = 5,
    max_count: int = 7,
) -> PromptRenderResult:
    return renderer.render(
        name="market_trends",
        context={"keywords": ", ".join(keywords), "min_count": min_count, "max_count": max_count},
    )


def render_competitive_prompt(
    *,
    renderer: PromptRenderer,
    context: RetrievalContext,
    keywords: Sequence[str],
) -> PromptRenderResult:
    return renderer.render(
        name="competitive_landscape",
        context={"title": context.title, "description": context.description, "keywords": ", ".join(keywords)},
    )


def render_research_prompt(
    *,
    renderer: PromptRenderer,
    query: str,
    year: int,
    min_count: int = 8,
    max_count: int = 10,
) -> PromptRenderResult:
    return renderer.render(
        name="research_papers",
        context={"query": query, "example_year": year, "min_count": min_count, "max_count": max_count},
    )


def render_summary_prompt(
    *,
    renderer: PromptRenderer,
    analysis: AnalysisResult,
    title: str,
    summary_type: SummaryType,
) -> PromptRenderResult:
    frameworks = analysis.frameworks
    news = analysis.industry_news
    recommendations = analysis.recommendations
    if summary_type is SummaryType.quick:
        context: dict[str, object] = {
            "title": title,
            "quality_score": format_score(analysis.quality_score),
            "summary": analysis.summary,
            "top_strengths": ", ".join(analysis.pros[:2]),
            "key_challenges": ", ".join(analysis.cons[:2]),
            "bcg_category": frameworks.bcg.category,
            "industry_keywords": ", ".join(news.industry_keywords[:3]),
        }
    elif summary_type is SummaryType.detailed:
        context = {
            "title": title,
            "quality_score": format_score(analysis.quality_score),
            "summary": analysis.summary,
            "evaluation": analysis.evaluation,
            "swot_strengths": ", ".join(frameworks.swot.strengths),
            "swot_weaknesses": ", ".join(frameworks.swot.weaknesses),
            "swot_opportunities": ", ".join(frameworks.swot.opportunities),
            "swot_threats": ", ".join(frameworks.swot.threats),
            "desirability": format_score(frameworks.metrics.desirability),
            "viability": format_score(frameworks.metrics.viability),
            "feasibility": format_score(frameworks.metrics.feasibility),
            "sustainability": format_score(frameworks.metrics.sustainability),
            "bcg_category": frameworks.bcg.category,
            "bcg_reasoning": frameworks.bcg.reasoning,
            "competitive_landscape": news.competitive_landscape,
            "market_trends": "; ".join(news.market_trends[:3]),
            "improvements": "; ".join(recommendations.improvements[:3]),
        }
    else:
        context = {
            "title": title,
            "quality_score": format_score(analysis.quality_score),
            "summary": analysis.summary,
            "top_strengths": "; ".join(analysis.pros[:3]),
            "key_challenges": "; ".join(analysis.cons[:3]),
            "bcg_category": frameworks.bcg.category,
            "bcg_reasoning": frameworks.bcg.reasoning,
            "desirability": format_score(frameworks.metrics.desirability),
            "viability": format_score(frameworks.metrics.viability),
            "competitive_landscape": news.competitive_landscape,
            "improvements": "; ".join(recommendations.improvements[:2]),
            "elevator_pitch": recommendations.elevator_pitch,
        }
    return renderer.render(name=f"summary_{summary_type.value}", context=context)


def format_score(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return f"{value:g}"


_SAFE_REF_RE = re.compile(r"[^a-zA-Z0-9._-]+")


def _prompt_ref(template: str, text: str) -> str:
    digest = sha256(f"{template}\n{text}".encode()).hexdigest()
    safe_template = _safe_ref_token(template)
    return f"{safe_template}_{digest[:12]}"


def _safe_ref_token(value: str) -> str:
    cleaned = _SAFE_REF_RE.sub("_", value).strip("._-")
    if not cleaned:
        raise ValueError("prompt template name cannot be empty after sanitization")
    return cleaned
