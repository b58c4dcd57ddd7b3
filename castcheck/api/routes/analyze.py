"""
Analyze API route.

Upload a document, extract it with the configured provider, verify it and
return the dashboard. Every job is recorded to the analytics sink after the
response is sent.
"""
import time
import uuid
from typing import Optional

import structlog
from fastapi import APIRouter, BackgroundTasks, File, Form, UploadFile
from fastapi.concurrency import run_in_threadpool

from castcheck.config import get_settings
from castcheck.exceptions import CastCheckError, FileTooLargeError, InvalidFileTypeError
from castcheck.extraction import get_extraction_provider
from castcheck.extraction.base import ExtractionProvider
from castcheck.schemas.dashboard import AnalyzeResponse
from castcheck.services.analytics import JobAnalytics, get_analytics_sink
from castcheck.verification_engine import VerificationOptions, run_verification, to_dashboard

logger = structlog.get_logger(__name__)

router = APIRouter()

ACCEPTED_TYPES = {
    "openai": {
        "extensions": (".pdf",),
        "content_types": {"application/pdf", "application/x-pdf"},
    },
    "json": {
        "extensions": (".json",),
        "content_types": {"application/json", "text/json", "text/plain"},
    },
}


def validate_upload(file: UploadFile, provider: ExtractionProvider) -> None:
    """
    Validate that the uploaded file suits the extraction provider.

    Raises:
        InvalidFileTypeError: Wrong extension or content type.
    """
    accepted = ACCEPTED_TYPES.get(provider.name)
    if accepted is None:
        return

    filename = file.filename or ""
    if not filename.lower().endswith(accepted["extensions"]):
        raise InvalidFileTypeError(filename, list(accepted["extensions"]))

    if file.content_type and file.content_type not in accepted["content_types"] \
            and file.content_type != "application/octet-stream":
        raise InvalidFileTypeError(filename, sorted(accepted["content_types"]))


async def record_failure(
    request_id: str,
    filename: str,
    size: int,
    provider: str,
    start_time: float,
    error: CastCheckError,
) -> None:
    job = JobAnalytics(
        request_id=request_id,
        file_name=filename,
        file_size_bytes=size,
        model="",
        provider=provider,
        total_duration_ms=round((time.time() - start_time) * 1000, 2),
        status="error",
        error_message=f"{error.error_code}: {error.message}",
    )
    # Awaited here: background tasks do not run once the request raises
    await get_analytics_sink().record(job)


@router.post(
    "/analyze",
    response_model=AnalyzeResponse,
    response_model_by_alias=True,
    summary="Extract and verify a financial statement document",
    description=(
        "Upload a financial statement PDF (or an extraction JSON for the json "
        "provider). The document is extracted, every arithmetic check is run "
        "by code, and the audit dashboard is returned."
    ),
)
async def analyze_document(
    background_tasks: BackgroundTasks,
    file: UploadFile = File(..., description="Document to analyze"),
    provider: Optional[str] = Form(None, description="Extraction provider override"),
) -> AnalyzeResponse:
    start_time = time.time()
    request_id = str(uuid.uuid4())
    settings = get_settings()

    extractor = get_extraction_provider(provider)
    validate_upload(file, extractor)

    content = await file.read()
    filename = file.filename or "document"
    if len(content) > settings.max_upload_size_bytes:
        raise FileTooLargeError(len(content), settings.max_upload_size_bytes)

    logger.info(
        "analysis_started",
        request_id=request_id,
        filename=filename,
        size=len(content),
        provider=extractor.name,
    )

    try:
        outcome = await run_in_threadpool(extractor.extract, content, filename)
    except CastCheckError as e:
        await record_failure(request_id, filename, len(content), extractor.name, start_time, e)
        raise

    verification = await run_in_threadpool(
        run_verification, outcome.result, VerificationOptions.from_settings()
    )
    dashboard = to_dashboard(outcome.result, verification)
    total_duration_ms = round((time.time() - start_time) * 1000, 2)

    job = JobAnalytics.priced(
        request_id=request_id,
        file_name=filename,
        file_size_bytes=len(content),
        model=outcome.usage.model,
        provider=outcome.provider,
        input_tokens=outcome.usage.input_tokens,
        output_tokens=outcome.usage.output_tokens,
        extraction_duration_ms=outcome.usage.duration_ms,
        total_duration_ms=total_duration_ms,
        total_checks=verification.kpi.total_checks,
        discrepancies_found=verification.kpi.exceptions_count,
    )
    background_tasks.add_task(get_analytics_sink().record, job)

    logger.info(
        "analysis_complete",
        request_id=request_id,
        total_checks=verification.kpi.total_checks,
        exceptions=verification.kpi.exceptions_count,
        duration_ms=total_duration_ms,
    )

    return AnalyzeResponse(
        request_id=request_id,
        provider=outcome.provider,
        processing_time_ms=total_duration_ms,
        dashboard=dashboard,
    )
