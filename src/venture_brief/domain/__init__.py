"""Core domain models for venture-brief."""

from venture_brief.domain.analysis import (
    AnalysisResult,
    SummaryScript,
    SummaryType,
    Voice,
)
from venture_brief.domain.models import (
    CompletionResult,
    ExtractionRequest,
    ExtractionResult,
    FallbackTier,
    KeywordEntry,
    KeywordList,
    NewsArticle,
    NewsResult,
    RecordSchema,
    ResearchPaper,
    ResearchResult,
    RetrievalContext,
    ValidatedRecord,
)

__all__ = [
    "AnalysisResult",
    "CompletionResult",
    "ExtractionRequest",
    "ExtractionResult",
    "FallbackTier",
    "KeywordEntry",
    "KeywordList",
    "NewsArticle",
    "NewsResult",
    "RecordSchema",
    "ResearchPaper",
    "ResearchResult",
    "RetrievalContext",
    "SummaryScript",
    "SummaryType",
    "ValidatedRecord",
    "Voice",
]
