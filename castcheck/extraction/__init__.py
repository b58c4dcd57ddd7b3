"""Extraction providers: document in, ExtractionResult out."""
from castcheck.extraction.base import (
    ExtractionOutcome,
    ExtractionProvider,
    ExtractionUsage,
    parse_extraction_json,
)
from castcheck.extraction.json_provider import JsonExtractionProvider
from castcheck.extraction.openai_provider import OpenAIExtractionProvider
from castcheck.extraction.registry import get_extraction_provider

__all__ = [
    "ExtractionOutcome",
    "ExtractionProvider",
    "ExtractionUsage",
    "JsonExtractionProvider",
    "OpenAIExtractionProvider",
    "get_extraction_provider",
    "parse_extraction_json",
]
