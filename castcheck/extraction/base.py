"""
Extraction provider contract.

A provider turns an uploaded document into an ExtractionResult. The
verification engine never sees the provider; it only consumes the result.
"""
import json
import re
from dataclasses import dataclass, field
from typing import Optional, Protocol, runtime_checkable

import structlog
from pydantic import ValidationError

from castcheck.exceptions import InvalidExtractionPayloadError
from castcheck.schemas.extraction import ExtractionResult

logger = structlog.get_logger(__name__)

_FENCE_OPEN = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"\s*```$")
_OUTERMOST_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


@dataclass
class ExtractionUsage:
    """Model usage for one extraction call."""
    model: str = ""
    input_tokens: int = 0
    output_tokens: int = 0
    duration_ms: float = 0.0


@dataclass
class ExtractionOutcome:
    """An extraction result together with how it was produced."""
    result: ExtractionResult
    provider: str
    usage: ExtractionUsage = field(default_factory=ExtractionUsage)


@runtime_checkable
class ExtractionProvider(Protocol):
    """Anything that can turn document bytes into an ExtractionResult."""

    name: str

    def extract(self, content: bytes, filename: Optional[str] = None) -> ExtractionOutcome:
        ...


def parse_extraction_json(text: str) -> ExtractionResult:
    """
    Parse model or file output into an ExtractionResult.

    Tolerates a markdown code fence around the JSON and prose before or
    after the outermost object.

    Raises:
        InvalidExtractionPayloadError: No JSON object found, invalid JSON,
            or the object does not match the extraction schema.
    """
    payload = _FENCE_CLOSE.sub("", _FENCE_OPEN.sub("", text.strip())).strip()

    match = _OUTERMOST_OBJECT.search(payload)
    if match is None:
        raise InvalidExtractionPayloadError("No JSON object found in extraction output")

    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        logger.warning("extraction_json_invalid", error=str(e))
        raise InvalidExtractionPayloadError(
            "Extraction output is not valid JSON", errors=[str(e)]
        ) from e

    try:
        return ExtractionResult.model_validate(data)
    except ValidationError as e:
        logger.warning("extraction_schema_invalid", error_count=e.error_count())
        raise InvalidExtractionPayloadError(
            errors=e.errors(include_url=False, include_context=False)
        ) from e
