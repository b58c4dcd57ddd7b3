"""
Verification API routes.

Run the verification engine on an already-extracted ExtractionResult.
"""
from typing import Any, Dict, Literal

import structlog
from fastapi import APIRouter, Query
from fastapi.concurrency import run_in_threadpool

from castcheck.schemas.dashboard import AuditDashboard, ColumnDashboardResponse
from castcheck.schemas.extraction import ExtractionResult
from castcheck.verification_engine import (
    VerificationOptions,
    run_column_verification,
    run_verification,
    to_dashboard,
)

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.post(
    "/verify",
    response_model=None,
    responses={200: {"model": AuditDashboard, "description": "Dashboard payload (default format)"}},
    summary="Verify extracted financial statements",
    description=(
        "Run casting, balance sheet, movement and cross-reference checks on an "
        "ExtractionResult. Returns the dashboard payload, or the full "
        "verification result with format=full."
    ),
)
async def verify_extraction(
    extraction: ExtractionResult,
    format: Literal["dashboard", "full"] = Query("dashboard", description="Response shape"),
) -> Dict[str, Any]:
    options = VerificationOptions.from_settings()
    verification = await run_in_threadpool(run_verification, extraction, options)

    if format == "full":
        return verification.to_dict()
    return to_dashboard(extraction, verification).model_dump(mode="json", by_alias=True)


@router.post(
    "/verify/columns",
    response_model=ColumnDashboardResponse,
    response_model_by_alias=True,
    summary="Verify each reporting column separately",
    description=(
        "Group records by columnSource (Group/Company, current/prior) and "
        "verify each group on its own."
    ),
)
async def verify_columns(extraction: ExtractionResult) -> ColumnDashboardResponse:
    options = VerificationOptions.from_settings()
    results = await run_in_threadpool(run_column_verification, extraction, options)

    logger.info("column_verification_complete", columns=list(results))
    return ColumnDashboardResponse(
        columns={
            column: to_dashboard(extraction, verification)
            for column, verification in results.items()
        }
    )
