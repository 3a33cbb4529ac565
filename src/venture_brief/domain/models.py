from __future__ import annotations

import datetime as dt
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Annotated, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

NonEmptyStr = Annotated[str, Field(min_length=1)]
Score = Annotated[float, Field(ge=0.0, le=1.0)]


class DomainModel(BaseModel):
    model_config = ConfigDict(extra="forbid", validate_assignment=True)


class RecordSchema(StrEnum):
    news_article = "news_article"
    research_paper = "research_paper"
    keyword = "keyword"


class FallbackTier(StrEnum):
    smart = "smart"
    generic = "generic"


def _require_text(value: str) -> str:
    stripped = value.strip()
    if not stripped:
        raise ValueError("must be non-empty after stripping whitespace")
    return stripped


class NewsArticle(DomainModel):
    title: NonEmptyStr
    url: NonEmptyStr = "#"
    snippet: NonEmptyStr
    source: NonEmptyStr
    date: dt.date
    relevance_score: Score = 0.8

    @field_validator("title", "snippet", "source")
    @classmethod
    def _strip_required(cls, value: str) -> str:
        return _require_text(value)


class ResearchPaper(DomainModel):
    paper_id: NonEmptyStr
    title: NonEmptyStr
    description: NonEmptyStr
    authors: NonEmptyStr
    doi: str | None = None
    url: NonEmptyStr = "#"
    year: int
    subjects: Annotated[list[str], Field(min_length=1)]

    @field_validator("title", "description", "authors")
    @classmethod
    def _strip_required(cls, value: str) -> str:
        return _require_text(value)


class KeywordEntry(DomainModel):
    term: NonEmptyStr
    relevance_score: Score = 0.75

    @field_validator("term")
    @classmethod
    def _strip_term(cls, value: str) -> str:
        return _require_text(value)


ValidatedRecord = NewsArticle | ResearchPaper | KeywordEntry

R = TypeVar("R", NewsArticle, ResearchPaper, KeywordEntry)


@dataclass(frozen=True)
class ExtractionRequest:
    """Inputs of one extraction; built per retrieval call and never reused."""

    domain_query: str
    target_schema: RecordSchema
    max_records: int
    context_fields: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.max_records < 1:
            raise ValueError("max_records must be >= 1")


@dataclass(frozen=True)
class ExtractionResult(Generic[R]):
    records: tuple[R, ...]
    miss_reason: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.records

    @classmethod
    def empty(cls, reason: str) -> ExtractionResult[R]:
        return cls(records=(), miss_reason=reason)


@dataclass(frozen=True)
class CompletionResult:
    text: str | None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.text is not None


class RetrievalContext(DomainModel):
    title: str = ""
    description: str = ""
    key_features: list[str] = Field(default_factory=list)
    industry: str = ""
    idea: str = ""

    def prompt_fields(self) -> dict[str, str]:
        return {
            "title": self.title,
            "description": self.description,
            "key_features": ", ".join(self.key_features),
            "industry": self.industry,
            "idea": self.idea,
        }

    def topic(self) -> str:
        for candidate in (self.industry, self.title, self.idea, self.description):
            if candidate.strip():
                return candidate.strip()
        return ""


class KeywordList(DomainModel):
    keywords: Annotated[list[KeywordEntry], Field(min_length=1)]

    @property
    def terms(self) -> list[str]:
        return [entry.term for entry in self.keywords]


class NewsResult(DomainModel):
    articles: Annotated[list[NewsArticle], Field(min_length=1)]
    industry_keywords: Annotated[list[str], Field(min_length=1)]
    market_trends: Annotated[list[str], Field(min_length=1)]
    competitive_landscape: NonEmptyStr


class ResearchResult(DomainModel):
    query: str
    papers: Annotated[list[ResearchPaper], Field(min_length=1)]

    @property
    def count(self) -> int:
        return len(self.papers)
