"""
LLM extraction provider.

Reads the PDF text layer with pdfplumber and asks an OpenAI chat model to
return the extraction JSON. The model only transcribes figures and
relationships; all arithmetic happens later in the verification engine.
"""
import io
import time
from typing import Optional

import pdfplumber
import structlog
from openai import OpenAI, OpenAIError

from castcheck.config import get_settings
from castcheck.exceptions import (
    ConfigurationError,
    ExternalServiceError,
    UnsupportedDocumentError,
)
from castcheck.extraction.base import (
    ExtractionOutcome,
    ExtractionUsage,
    parse_extraction_json,
)

logger = structlog.get_logger(__name__)

PDF_MAGIC = b"%PDF"


class OpenAIExtractionProvider:
    """
    Extraction via an OpenAI chat completion in JSON mode.

    One request per document, no retries. Token usage is reported on the
    outcome so the caller can cost the job.
    """

    name = "openai"
    MAX_TOKENS = 16384
    TEMPERATURE = 0.0

    SYSTEM_PROMPT = """You are a financial data extraction assistant for Malaysian financial statements. Extract numbers and relationships EXACTLY as they appear in the document.

Rules:
1. Extract only. Do not add up numbers, verify totals, round, or perform any arithmetic.
2. "1,234,567" is 1234567. A bracketed number "(1,234)" is negative: -1234. "-" or blank is 0.
3. If the column header says RM'000, multiply every number by 1000.
4. Report each total with the components printed above it as a casting relationship.
5. Report each roll-forward note (opening, additions, deductions, closing) as a movement. Deductions are positive magnitudes.
6. Link each note total to the statement line it supports as a cross-reference, with mappingConfidence 0-100 and mappingType total_to_total, component_to_component, component_to_total or uncertain. Set isExpenseOrDeduction when the note shows a positive figure that the statement brackets.
7. Tag every record with columnSource (e.g. "group_current", "company_current") when the document has several columns.
8. Flag anything you are unsure about in warnings with type AMBIGUOUS_AMOUNT, UNCLEAR_RELATIONSHIP, POSSIBLE_OCR_ERROR, MISSING_DATA or CONFLICTING_VALUES.

Return ONLY one JSON object with the keys: companyName, financialYearEnd, reportingCurrency, statements, castingRelationships, movements, crossReferences, warnings.
Statements carry statementType (SOFP, SOCI, SOCE, SCF, NOTE), title, pageNumbers and, for the SOFP, totalAssets, totalLiabilities and totalEquity as {"current": number, "prior": number}.
Casting relationships carry totalLabel, totalAmount, section, componentLabels, componentAmounts, pageNumber.
Movements carry accountName, noteRef, opening, additions [{description, amount}], deductions [{description, amount}], statedClosing.
Cross-references carry noteRef, noteDescription, noteTotal, statementLineItem, statementAmount, statementType."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        client: Optional[OpenAI] = None,
    ):
        """
        Initialize the provider.

        Args:
            api_key: OpenAI API key (defaults to CASTCHECK_OPENAI_API_KEY).
            model: Chat model name (defaults to CASTCHECK_OPENAI_MODEL).
            client: Preconfigured client, mainly for tests.
        """
        settings = get_settings()
        self.model = model or settings.openai_model
        api_key = api_key or settings.openai_api_key

        if client is not None:
            self._client = client
        elif api_key:
            self._client = OpenAI(api_key=api_key)
        else:
            raise ConfigurationError(
                "OpenAI extraction requires CASTCHECK_OPENAI_API_KEY",
                details={"provider": self.name},
            )

        logger.info("extraction_provider_initialized", provider=self.name, model=self.model)

    def read_pdf_text(self, content: bytes) -> str:
        """Text layer of every page, separated by page markers."""
        if not content.startswith(PDF_MAGIC):
            raise UnsupportedDocumentError("Document is not a PDF")

        pages = []
        try:
            with pdfplumber.open(io.BytesIO(content)) as pdf:
                for page_num, page in enumerate(pdf.pages, start=1):
                    text = page.extract_text() or ""
                    if text.strip():
                        pages.append(f"--- Page {page_num} ---\n{text}")
        except Exception as e:
            logger.error("pdf_read_failed", error=str(e))
            raise UnsupportedDocumentError("PDF could not be read") from e

        if not pages:
            raise UnsupportedDocumentError(
                "PDF has no text layer; scanned documents are not supported"
            )
        return "\n\n".join(pages)

    def extract(self, content: bytes, filename: Optional[str] = None) -> ExtractionOutcome:
        start_time = time.time()
        document_text = self.read_pdf_text(content)

        try:
            response = self._client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": self.SYSTEM_PROMPT},
                    {"role": "user", "content": f"Extract the financial statements below.\n\n{document_text}"},
                ],
                max_tokens=self.MAX_TOKENS,
                temperature=self.TEMPERATURE,
                response_format={"type": "json_object"},
            )
        except OpenAIError as e:
            logger.error("extraction_request_failed", provider=self.name, error=str(e))
            raise ExternalServiceError("openai", f"Extraction request failed: {e}") from e

        content_text = response.choices[0].message.content or ""
        result = parse_extraction_json(content_text)

        usage = ExtractionUsage(
            model=self.model,
            input_tokens=response.usage.prompt_tokens if response.usage else 0,
            output_tokens=response.usage.completion_tokens if response.usage else 0,
            duration_ms=round((time.time() - start_time) * 1000, 2),
        )

        logger.info(
            "extraction_complete",
            provider=self.name,
            filename=filename,
            company=result.company_name,
            input_tokens=usage.input_tokens,
            output_tokens=usage.output_tokens,
            duration_ms=usage.duration_ms,
        )
        return ExtractionOutcome(result=result, provider=self.name, usage=usage)
