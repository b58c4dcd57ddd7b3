"""
Pass-through provider for documents that are already extracted JSON.
"""
import time
from typing import Optional

import structlog

from castcheck.exceptions import UnsupportedDocumentError
from castcheck.extraction.base import (
    ExtractionOutcome,
    ExtractionUsage,
    parse_extraction_json,
)

logger = structlog.get_logger(__name__)


class JsonExtractionProvider:
    """Reads an ExtractionResult straight from a UTF-8 JSON document."""

    name = "json"

    def extract(self, content: bytes, filename: Optional[str] = None) -> ExtractionOutcome:
        start_time = time.time()

        try:
            text = content.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise UnsupportedDocumentError(
                "JSON extraction document must be UTF-8 text",
                details={"filename": filename},
            ) from e

        result = parse_extraction_json(text)
        duration_ms = (time.time() - start_time) * 1000

        logger.info(
            "extraction_loaded",
            provider=self.name,
            filename=filename,
            company=result.company_name,
        )
        return ExtractionOutcome(
            result=result,
            provider=self.name,
            usage=ExtractionUsage(model="none", duration_ms=round(duration_ms, 2)),
        )
