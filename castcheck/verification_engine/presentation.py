"""
Adapter from VerificationResult to the audit dashboard payload.

Pure mapping: no arithmetic is redone here. Amounts are formatted with the
run's currency symbol and each row keeps its raw variance for sorting.
"""

from datetime import datetime
from typing import Optional

from castcheck.schemas.dashboard import (
    AuditDashboard,
    ConclusionItemResponse,
    CrossReferenceRow,
    DashboardKPI,
    DescribedValue,
    ExceptionRow,
    HorizontalCastingRow,
    NamedValue,
    VerticalCastingRow,
)
from castcheck.schemas.extraction import ExtractionResult
from castcheck.verification_engine.arithmetic import format_currency
from castcheck.verification_engine.models import (
    CastingVerificationResult,
    CrossReferenceVerificationResult,
    MovementVerificationResult,
    VerificationException,
    VerificationResult,
    VerificationStatus,
)

REPORT_DATE_FORMAT = "%d %B %Y %H:%M"


def _row_status(status: VerificationStatus) -> str:
    return "pass" if status == VerificationStatus.PASS else "fail"


def _vertical_row(result: CastingVerificationResult, symbol: str) -> VerticalCastingRow:
    return VerticalCastingRow(
        section=result.section,
        description=result.description,
        components=[
            NamedValue(name=c.label, value=format_currency(c.amount, symbol))
            for c in result.components
        ],
        calculated=format_currency(result.calculated_total, symbol),
        stated=format_currency(result.stated_total, symbol),
        variance=format_currency(result.variance, symbol),
        variance_amount=result.variance,
        status=_row_status(result.status),
    )


def _horizontal_row(result: MovementVerificationResult, symbol: str) -> HorizontalCastingRow:
    return HorizontalCastingRow(
        account=result.account_name,
        opening=format_currency(result.opening, symbol),
        additions=[
            DescribedValue(description=f"+ {a.description}", value=format_currency(a.amount, symbol))
            for a in result.additions
        ],
        deductions=[
            DescribedValue(description=f"- {d.description}", value=format_currency(d.amount, symbol))
            for d in result.deductions
        ],
        calculated_closing=format_currency(result.calculated_closing, symbol),
        stated_closing=format_currency(result.stated_closing, symbol),
        variance=format_currency(result.variance, symbol),
        variance_amount=result.variance,
        status=_row_status(result.status),
    )


def _cross_reference_row(result: CrossReferenceVerificationResult, symbol: str) -> CrossReferenceRow:
    return CrossReferenceRow(
        note_ref=result.note_ref,
        note_description=result.note_description,
        line_item=result.statement_line_item or result.note_description,
        per_note=format_currency(result.note_amount, symbol),
        per_statement=format_currency(result.statement_amount, symbol),
        variance=format_currency(result.variance, symbol),
        variance_amount=result.variance,
        status=_row_status(result.status),
        sign_explanation=result.sign_explanation,
    )


def _exception_row(exc: VerificationException, symbol: str) -> ExceptionRow:
    return ExceptionRow(
        id=exc.id,
        type=exc.type.value,
        location=exc.location,
        description=exc.description,
        per_statement=format_currency(exc.stated_amount, symbol),
        per_calculation=format_currency(exc.calculated_amount, symbol),
        difference=format_currency(exc.difference, symbol),
        severity=exc.severity.value,
        recommendation=exc.recommendation,
    )


def to_dashboard(
    extraction: ExtractionResult,
    verification: VerificationResult,
    report_date: Optional[datetime] = None,
) -> AuditDashboard:
    """
    Build the dashboard payload for one verification run.

    Args:
        extraction: The input the run was made on (company metadata).
        verification: Output of run_verification.
        report_date: Timestamp printed on the report; defaults to now.

    Returns:
        AuditDashboard ready to serialize with ``by_alias=True``.
    """
    symbol = verification.currency_symbol
    report_date = report_date or datetime.now()
    kpi = verification.kpi

    movements_passed = sum(
        1 for r in verification.movement_results if r.status == VerificationStatus.PASS
    )

    return AuditDashboard(
        company_name=extraction.company_name,
        report_date=report_date.strftime(REPORT_DATE_FORMAT),
        financial_year_end=extraction.financial_year_end,
        kpi=DashboardKPI(
            tests_passed=kpi.passed,
            tests_failed=kpi.failed,
            total_tests=kpi.total_checks,
            exceptions_found=kpi.exceptions_count,
            high_severity=kpi.high_severity,
            medium_severity=kpi.medium_severity,
            low_severity=kpi.low_severity,
            pass_rate=kpi.pass_rate,
            horizontal_checks=f"{movements_passed}/{len(verification.movement_results)}",
        ),
        conclusion_summary=verification.conclusion_summary,
        conclusion_items=[
            ConclusionItemResponse(
                priority=item.priority.value,
                note=item.note,
                description=item.description,
            )
            for item in verification.conclusion_items
        ],
        conclusion_note=verification.conclusion_note,
        vertical_casting=[_vertical_row(r, symbol) for r in verification.casting_results],
        horizontal_casting=[_horizontal_row(r, symbol) for r in verification.movement_results],
        cross_reference_checks=[
            _cross_reference_row(r, symbol) for r in verification.cross_reference_results
        ],
        exceptions=[_exception_row(e, symbol) for e in verification.exceptions],
        warnings=list(verification.needs_human_review),
    )
