from __future__ import annotations

from venture_brief.keyword_parsing import (
    first_sentences,
    normalize_keyword_values,
    parse_keyword_list,
    split_list_lines,
)


def test_parse_keyword_list_splits_commas() -> None:
    assert parse_keyword_list("AI logistics, route optimization, last-mile delivery") == [
        "AI logistics",
        "route optimization",
        "last-mile delivery",
    ]


def test_parse_keyword_list_supports_bullets_and_numbering() -> None:
    text = "Keywords:\n- AI\n* fleet telematics\n3. freight\n4) SaaS\n"
    assert parse_keyword_list(text) == ["AI", "fleet telematics", "freight", "SaaS"]


def test_parse_keyword_list_splits_bullet_items_with_separators() -> None:
    assert parse_keyword_list("- AI, ML\n- SaaS; B2B") == ["AI", "ML", "SaaS", "B2B"]


def test_parse_keyword_list_one_per_line() -> None:
    assert parse_keyword_list("fintech\n\nembedded finance\n") == ["fintech", "embedded finance"]


def test_parse_keyword_list_handles_none() -> None:
    assert parse_keyword_list(None) == []


def test_normalize_keyword_values_dedupes_and_strips_quotes() -> None:
    assert normalize_keyword_values(['"AI"', "ai", " ML. ", "", "'SaaS'"]) == ["AI", "ML", "SaaS"]


def test_split_list_lines_strips_markers_and_caps() -> None:
    text = "1. Remote-first teams\n\n- Usage-based pricing\n* Vertical AI copilots\n2) Embedded payments"
    assert split_list_lines(text) == [
        "Remote-first teams",
        "Usage-based pricing",
        "Vertical AI copilots",
        "Embedded payments",
    ]
    assert split_list_lines(text, limit=2) == ["Remote-first teams", "Usage-based pricing"]
    assert split_list_lines(None) == []


def test_first_sentences_keeps_requested_count() -> None:
    text = "Incumbents dominate.  Startups chip away!\nPricing pressure grows? Margins thin. Extra."
    assert first_sentences(text, limit=3) == "Incumbents dominate. Startups chip away! Pricing pressure grows?"


def test_first_sentences_without_terminal_punctuation() -> None:
    assert first_sentences("A crowded but fragmented market", limit=3) == "A crowded but fragmented market"
    assert first_sentences("   ", limit=3) == ""


def test_first_sentences_skips_abbreviations() -> None:
    text = "Dr. Chen founded GreenWrap Inc. in 2019. Acme Corp. leads in the U.S. Market. Startups follow. Extra."
    assert first_sentences(text, limit=3) == (
        "Dr. Chen founded GreenWrap Inc. in 2019. Acme Corp. leads in the U.S. Market. Startups follow."
    )
