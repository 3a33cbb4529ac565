from __future__ import annotations

import asyncio
from typing import Any

import pytest

from venture_brief.domain.analysis import AnalysisResult, SummaryType
from venture_brief.narration import (
    ScriptGenerationError,
    ScriptGenerator,
    estimate_duration_seconds,
    extract_key_points,
)


class FakeCompletionClient:
    def __init__(self, response: str) -> None:
        self._response = response
        self.prompts: list[str] = []

    async def complete(self, prompt_text: str, *, model: str | None = None) -> str:
        self.prompts.append(prompt_text)
        return self._response


def _analysis(**overrides: Any) -> AnalysisResult:
    payload: dict[str, Any] = {
        "qualityScore": 7.5,
        "summary": "A marketplace for compostable mailers.",
        "evaluation": "Strong demand, thin margins.",
        "pros": ["Regulatory tailwinds", "Clear buyer", "Recurring orders"],
        "cons": ["Commodity pricing", "Supplier risk", "Long sales cycles"],
        "frameworks": {
            "swot": {"strengths": ["Brand"], "weaknesses": ["Scale"], "opportunities": ["EU rules"], "threats": ["Incumbents"]},
            "metrics": {"desirability": 8, "viability": 6, "feasibility": 7, "sustainability": 9},
            "bcg": {"category": "question-mark", "reasoning": "High growth, low share"},
        },
        "industryNews": {
            "industryKeywords": ["compostable", "e-commerce", "packaging", "logistics"],
            "marketTrends": ["Plastic taxes", "D2C growth"],
            "competitiveLandscape": "Incumbent converters dominate.",
        },
        "recommendations": {"improvements": ["Pilot with Shopify brands"], "elevatorPitch": "Mailers that vanish."},
        "unknownField": "ignored",
    }
    payload.update(overrides)
    return AnalysisResult.model_validate(payload)


def test_estimate_duration_seconds() -> None:
    assert estimate_duration_seconds("") == 0
    assert estimate_duration_seconds(" ".join(["word"] * 150)) == 60
    assert estimate_duration_seconds(" ".join(["word"] * 151)) == 61
    assert estimate_duration_seconds("Hello [PAUSE] world") == 2


def test_key_points_for_executive_summary() -> None:
    assert extract_key_points(_analysis(), SummaryType.executive) == (
        "Overall Quality Score: 7.5/10",
        "BCG Classification: QUESTION MARK",
        "Top Strength: Regulatory tailwinds",
        "Key Challenge: Commodity pricing",
        "Market Keywords: compostable, e-commerce, packaging",
    )


def test_key_points_for_detailed_summary() -> None:
    assert extract_key_points(_analysis(), SummaryType.detailed) == (
        "Overall Quality Score: 7.5/10",
        "BCG Classification: QUESTION MARK",
        "Desirability: 8/10",
        "Viability: 6/10",
        "Feasibility: 7/10",
        "✓ Regulatory tailwinds",
        "✓ Clear buyer",
        "⚠ Commodity pricing",
        "⚠ Supplier risk",
    )


def test_key_points_with_missing_pros_and_cons() -> None:
    points = extract_key_points(AnalysisResult(), SummaryType.quick)

    assert "Top Strength: Not specified" in points
    assert "Key Challenge: Not specified" in points
    assert points[1] == "BCG Classification: QUESTION MARK"


@pytest.mark.parametrize(
    ("summary_type", "marker"),
    [
        (SummaryType.quick, "concise 60-90 second audio summary"),
        (SummaryType.executive, "- Top 3 Strengths: Regulatory tailwinds; Clear buyer; Recurring orders"),
        (SummaryType.detailed, "- Threats: Incumbents"),
    ],
)
def test_script_generator_prompt_per_summary_type(summary_type: SummaryType, marker: str) -> None:
    client = FakeCompletionClient("Welcome to the EcoPack briefing. [PAUSE] Let's dive in.")

    script = asyncio.run(ScriptGenerator(client).generate(_analysis(), "EcoPack", summary_type))

    assert marker in client.prompts[0]
    assert 'analysis of "EcoPack"' in client.prompts[0]
    assert script.text == "Welcome to the EcoPack briefing. [PAUSE] Let's dive in."
    assert script.estimated_duration_seconds == estimate_duration_seconds(script.text)
    assert script.key_points == extract_key_points(_analysis(), summary_type)


def test_script_generator_rejects_blank_completion() -> None:
    client = FakeCompletionClient("  \n ")

    with pytest.raises(ScriptGenerationError):
        asyncio.run(ScriptGenerator(client).generate(_analysis(), "EcoPack"))
