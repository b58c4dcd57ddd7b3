"""
Pydantic schemas for the audit dashboard payload.

The dashboard is a flat, display-ready view of one verification run: every
amount is preformatted text, and the numeric variance is kept alongside for
sorting and colouring. Keys serialize as camelCase.
"""
from typing import Dict, List, Literal, Optional

from pydantic import Field

from castcheck.schemas.extraction import CamelModel, ExtractionWarning

Priority = Literal["high", "medium", "low"]
RowStatus = Literal["pass", "fail"]


class DashboardKPI(CamelModel):
    tests_passed: int = Field(..., description="Checks that passed")
    tests_failed: int = Field(..., description="Checks that failed")
    total_tests: int = Field(..., description="Checks performed")
    exceptions_found: int = Field(..., description="Exceptions raised")
    high_severity: int = 0
    medium_severity: int = 0
    low_severity: int = 0
    pass_rate: int = Field(..., description="Whole-number pass percentage")
    horizontal_checks: str = Field(..., description="Movement checks passed, e.g. '3/4'")


class ConclusionItemResponse(CamelModel):
    priority: Priority
    note: str
    description: str


class NamedValue(CamelModel):
    name: str
    value: str


class DescribedValue(CamelModel):
    description: str
    value: str


class VerticalCastingRow(CamelModel):
    """One casting check as displayed."""

    section: str
    description: str
    components: List[NamedValue]
    calculated: str
    stated: str
    variance: str
    variance_amount: float
    status: RowStatus


class HorizontalCastingRow(CamelModel):
    """One movement reconciliation as displayed."""

    account: str
    opening: str
    additions: List[DescribedValue]
    deductions: List[DescribedValue]
    calculated_closing: str
    stated_closing: str
    variance: str
    variance_amount: float
    status: RowStatus


class CrossReferenceRow(CamelModel):
    note_ref: str
    note_description: str
    line_item: str
    per_note: str
    per_statement: str
    variance: str
    variance_amount: float
    status: RowStatus
    sign_explanation: Optional[str] = None


class ExceptionRow(CamelModel):
    id: int
    type: str
    location: str
    description: str
    per_statement: str
    per_calculation: str
    difference: str
    severity: Priority
    recommendation: str


class AuditDashboard(CamelModel):
    """Response model for a verification run in dashboard shape."""

    company_name: str
    report_date: str
    financial_year_end: str
    kpi: DashboardKPI
    conclusion_summary: str
    conclusion_items: List[ConclusionItemResponse]
    conclusion_note: str
    vertical_casting: List[VerticalCastingRow]
    horizontal_casting: List[HorizontalCastingRow]
    cross_reference_checks: List[CrossReferenceRow]
    exceptions: List[ExceptionRow]
    warnings: List[ExtractionWarning]


class ColumnDashboardResponse(CamelModel):
    """Dashboards keyed by reporting column."""

    columns: Dict[str, AuditDashboard] = Field(..., description="Column name to dashboard")


class AnalyzeResponse(CamelModel):
    """Response model for the analyze (extract then verify) endpoint."""

    success: bool = True
    request_id: str = Field(..., description="Identifier for this analysis job")
    provider: str = Field(..., description="Extraction provider used")
    processing_time_ms: float = Field(..., description="Total processing time in milliseconds")
    dashboard: AuditDashboard
