from __future__ import annotations

from enum import StrEnum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class SummaryType(StrEnum):
    quick = "quick"
    executive = "executive"
    detailed = "detailed"


class Voice(StrEnum):
    rachel = "Rachel"
    drew = "Drew"
    clyde = "Clyde"
    bella = "Bella"


class AnalysisModel(BaseModel):
    """Lenient base for analysis documents posted by the front-end (camelCase, partial)."""

    model_config = ConfigDict(extra="ignore", alias_generator=to_camel, populate_by_name=True)


class Swot(AnalysisModel):
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    opportunities: list[str] = Field(default_factory=list)
    threats: list[str] = Field(default_factory=list)


class Metrics(AnalysisModel):
    desirability: float = 0
    viability: float = 0
    feasibility: float = 0
    sustainability: float = 0


class BcgPosition(AnalysisModel):
    category: str = "question-mark"
    reasoning: str = ""


class Frameworks(AnalysisModel):
    swot: Swot = Field(default_factory=Swot)
    metrics: Metrics = Field(default_factory=Metrics)
    bcg: BcgPosition = Field(default_factory=BcgPosition)


class IndustryNewsDigest(AnalysisModel):
    industry_keywords: list[str] = Field(default_factory=list)
    market_trends: list[str] = Field(default_factory=list)
    competitive_landscape: str = ""


class Recommendations(AnalysisModel):
    improvements: list[str] = Field(default_factory=list)
    elevator_pitch: str = ""


class AnalysisResult(AnalysisModel):
    quality_score: float = 0
    summary: str = ""
    evaluation: str = ""
    pros: list[str] = Field(default_factory=list)
    cons: list[str] = Field(default_factory=list)
    frameworks: Frameworks = Field(default_factory=Frameworks)
    industry_news: IndustryNewsDigest = Field(default_factory=IndustryNewsDigest)
    recommendations: Recommendations = Field(default_factory=Recommendations)


class SummaryScript(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    text: Annotated[str, Field(min_length=1)]
    estimated_duration_seconds: Annotated[int, Field(ge=0)]
    key_points: tuple[str, ...] = ()
