"""
Orchestrator for the CastCheck verification engine.

Single-pass pipeline over one ExtractionResult:
Step 1: Vertical casting
Step 2: Balance sheet equation (only if the SOFP totals were extracted)
Step 3: Movement reconciliations
Step 4: Note-to-statement cross-references
Step 5: Exception synthesis
Step 6: KPI aggregation
Step 7: Audit conclusion

Steps 1-4 read disjoint parts of the input and may run concurrently. One bad
record degrades to one review item or one exception; it never aborts the run.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

import structlog

from castcheck.config import Settings, get_settings
from castcheck.exceptions import InvariantViolationError
from castcheck.middleware.logging import log_performance
from castcheck.schemas.extraction import ExtractionResult
from castcheck.verification_engine.arithmetic import (
    DEFAULT_THRESHOLDS,
    SeverityThresholds,
    calculate_pass_rate,
)
from castcheck.verification_engine.checks import (
    DEFAULT_MAPPING_CONFIDENCE_THRESHOLD,
    verify_all_castings,
    verify_all_cross_references,
    verify_all_movements,
    verify_statements,
)
from castcheck.verification_engine.conclusion import (
    generate_conclusion_items,
    generate_conclusion_note,
    generate_conclusion_summary,
)
from castcheck.verification_engine.exception_synthesis import ExceptionSynthesizer
from castcheck.verification_engine.models import (
    Severity,
    VerificationException,
    VerificationKPI,
    VerificationResult,
    VerificationStatus,
)

logger = structlog.get_logger(__name__)

DEFAULT_COLUMN = "current"

_SETTINGS_FIELDS = Settings.model_fields


@dataclass
class VerificationOptions:
    """Policy knobs for a verification run."""
    # Falls back to the extraction's reporting currency, then settings
    currency_symbol: Optional[str] = None
    thresholds: SeverityThresholds = field(default_factory=lambda: DEFAULT_THRESHOLDS)
    sign_aware_cross_references: bool = _SETTINGS_FIELDS["sign_aware_cross_references"].default
    mapping_confidence_threshold: float = DEFAULT_MAPPING_CONFIDENCE_THRESHOLD
    strict_invariants: bool = _SETTINGS_FIELDS["strict_invariants"].default
    parallel: bool = _SETTINGS_FIELDS["parallel_verification"].default

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "VerificationOptions":
        settings = settings or get_settings()
        return cls(
            thresholds=SeverityThresholds.from_settings(settings),
            sign_aware_cross_references=settings.sign_aware_cross_references,
            mapping_confidence_threshold=settings.mapping_confidence_threshold,
            strict_invariants=settings.strict_invariants,
            parallel=settings.parallel_verification,
        )


@log_performance("verification")
def run_verification(
    extraction: ExtractionResult,
    options: Optional[VerificationOptions] = None,
) -> VerificationResult:
    """
    Main entry point for the verification engine.

    Args:
        extraction: Structured data produced by any extraction provider.
        options: Verification policy; defaults to the current settings.

    Returns:
        VerificationResult with every check, exception, KPI and conclusion.
    """
    options = options or VerificationOptions.from_settings()
    symbol = (
        options.currency_symbol
        or extraction.reporting_currency
        or get_settings().currency_symbol
    )

    logger.info(
        "verification_started",
        company=extraction.company_name,
        castings=len(extraction.casting_relationships),
        movements=len(extraction.movements),
        cross_references=len(extraction.cross_references),
        statements=len(extraction.statements),
        rejected_records=len(extraction.rejected_records),
    )

    # =================================================================
    # Steps 1-4: CHECKS
    # =================================================================
    steps = {
        "castings": lambda: verify_all_castings(extraction.casting_relationships),
        "balance_sheet": lambda: verify_statements(extraction.statements),
        "movements": lambda: verify_all_movements(extraction.movements),
        "cross_references": lambda: verify_all_cross_references(
            extraction.cross_references,
            sign_aware=options.sign_aware_cross_references,
            mapping_confidence_threshold=options.mapping_confidence_threshold,
            currency_symbol=symbol,
        ),
    }
    if options.parallel:
        with ThreadPoolExecutor(max_workers=len(steps)) as pool:
            futures = {name: pool.submit(step) for name, step in steps.items()}
            outputs = {name: future.result() for name, future in futures.items()}
    else:
        outputs = {name: step() for name, step in steps.items()}

    casting_results, casting_review = outputs["castings"]
    balance_sheet_result = outputs["balance_sheet"]
    movement_results, movement_review = outputs["movements"]
    cross_reference_results, cross_reference_review = outputs["cross_references"]

    all_results = (
        list(casting_results)
        + ([balance_sheet_result] if balance_sheet_result else [])
        + list(movement_results)
        + list(cross_reference_results)
    )
    for result in all_results:
        _check_status_invariant(result, options.strict_invariants)

    # =================================================================
    # Step 5: EXCEPTIONS
    # =================================================================
    synthesizer = ExceptionSynthesizer(currency_symbol=symbol, thresholds=options.thresholds)
    exceptions = synthesizer.synthesize(
        casting_results,
        balance_sheet_result,
        movement_results,
        cross_reference_results,
    )
    _check_exception_coverage(all_results, exceptions, options.strict_invariants)

    # =================================================================
    # Step 6: KPIs
    # =================================================================
    kpi = _aggregate_kpis(all_results, exceptions)

    # =================================================================
    # Step 7: CONCLUSION
    # =================================================================
    result = VerificationResult(
        kpi=kpi,
        casting_results=tuple(casting_results),
        balance_sheet_result=balance_sheet_result,
        movement_results=tuple(movement_results),
        cross_reference_results=tuple(cross_reference_results),
        exceptions=tuple(exceptions),
        needs_human_review=tuple(
            list(extraction.warnings)
            + list(extraction.rejected_records)
            + casting_review + movement_review + cross_reference_review
        ),
        conclusion_summary=generate_conclusion_summary(exceptions, kpi.total_checks, kpi.passed),
        conclusion_items=tuple(generate_conclusion_items(exceptions, symbol)),
        conclusion_note=generate_conclusion_note(
            balance_sheet_result, kpi.passed, kpi.total_checks, symbol
        ),
        verified_at=datetime.now(timezone.utc).isoformat(),
        currency_symbol=symbol,
    )

    logger.info(
        "verification_completed",
        company=extraction.company_name,
        total_checks=kpi.total_checks,
        passed=kpi.passed,
        failed=kpi.failed,
        exceptions=kpi.exceptions_count,
        high_severity=kpi.high_severity,
        review_items=len(result.needs_human_review),
    )

    return result


def run_column_verification(
    extraction: ExtractionResult,
    options: Optional[VerificationOptions] = None,
) -> Dict[str, VerificationResult]:
    """
    Verify each reporting column (Group/Company, current/prior) separately.

    Records are grouped by their ``column_source`` tag (untagged records
    belong to ``"current"``) and the orchestrator runs once per group.
    Extraction warnings are document-level and go to every column.
    """
    columns: List[str] = []

    def column_of(record) -> str:
        column = record.column_source or DEFAULT_COLUMN
        if column not in columns:
            columns.append(column)
        return column

    for collection in (
        extraction.casting_relationships,
        extraction.statements,
        extraction.movements,
        extraction.cross_references,
    ):
        for record in collection:
            column_of(record)

    if not columns:
        columns.append(DEFAULT_COLUMN)

    def subset(records: Sequence) -> list:
        return [r for r in records if (r.column_source or DEFAULT_COLUMN) == column]

    results: Dict[str, VerificationResult] = {}
    for column in columns:
        column_extraction = extraction.model_copy(update={
            "casting_relationships": subset(extraction.casting_relationships),
            "statements": subset(extraction.statements),
            "movements": subset(extraction.movements),
            "cross_references": subset(extraction.cross_references),
        })
        logger.info("column_verification", column=column)
        results[column] = run_verification(column_extraction, options)

    return results


def _check_status_invariant(result, strict: bool) -> None:
    """status == pass must coincide exactly with variance == 0."""
    passed = result.status == VerificationStatus.PASS
    if passed == (result.variance == 0):
        return
    if strict:
        raise InvariantViolationError(result.id, result.status.value, result.variance)
    logger.error(
        "status_variance_mismatch",
        check_id=result.id,
        status=result.status.value,
        variance=result.variance,
    )


def _check_exception_coverage(
    results: Sequence,
    exceptions: Sequence[VerificationException],
    strict: bool,
) -> None:
    """Exactly the non-passing checks must have an exception."""
    failing_ids = [r.id for r in results if r.status != VerificationStatus.PASS]
    exception_ids = [e.related_check_id for e in exceptions]
    if failing_ids == exception_ids:
        return
    if strict:
        raise InvariantViolationError(
            ",".join(sorted(set(failing_ids) ^ set(exception_ids))) or "exceptions",
            "exception_mismatch",
            float(len(failing_ids) - len(exception_ids)),
        )
    logger.error(
        "exception_coverage_mismatch",
        failing=failing_ids,
        exceptions=exception_ids,
    )


def _aggregate_kpis(
    results: Sequence,
    exceptions: Sequence[VerificationException],
) -> VerificationKPI:
    total = len(results)
    passed = sum(1 for r in results if r.status == VerificationStatus.PASS)

    return VerificationKPI(
        total_checks=total,
        passed=passed,
        failed=sum(1 for r in results if r.status == VerificationStatus.FAIL),
        warnings=sum(1 for r in results if r.status == VerificationStatus.WARNING),
        needs_review=sum(1 for r in results if r.status == VerificationStatus.NEEDS_REVIEW),
        pass_rate=calculate_pass_rate(passed, total),
        exceptions_count=len(exceptions),
        high_severity=sum(1 for e in exceptions if e.severity == Severity.HIGH),
        medium_severity=sum(1 for e in exceptions if e.severity == Severity.MEDIUM),
        low_severity=sum(1 for e in exceptions if e.severity == Severity.LOW),
    )
