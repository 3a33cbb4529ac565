"""LLM-backed market research with deterministic fallbacks and narrated summaries."""

__version__ = "0.1.0"
