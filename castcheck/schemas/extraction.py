"""
Pydantic schemas for the extraction contract.

An ExtractionResult is what any extraction provider (LLM vision call, tool
calling, pre-extracted JSON) must emit. Keys are camelCase on the wire;
snake_case is accepted as well. Every collection defaults to empty so a
partial payload still verifies, and a single record that fails validation is
set aside as a review item rather than rejecting the whole document.
"""
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model with camelCase aliases and finite-number validation."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        allow_inf_nan=False,
        extra="ignore",
    )


class StatementType(str, Enum):
    """Statement types found in Malaysian financial statements."""
    SOFP = "SOFP"  # Statement of Financial Position
    SOCI = "SOCI"  # Statement of Comprehensive Income
    SOCE = "SOCE"  # Statement of Changes in Equity
    SCF = "SCF"    # Statement of Cash Flows
    NOTE = "NOTE"  # Notes to the Financial Statements


class SignConvention(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"


class MappingType(str, Enum):
    """How a note amount was tied to a statement line."""
    TOTAL_TO_TOTAL = "total_to_total"
    COMPONENT_TO_COMPONENT = "component_to_component"
    COMPONENT_TO_TOTAL = "component_to_total"
    UNCERTAIN = "uncertain"


class WarningType(str, Enum):
    AMBIGUOUS_AMOUNT = "AMBIGUOUS_AMOUNT"
    UNCLEAR_RELATIONSHIP = "UNCLEAR_RELATIONSHIP"
    POSSIBLE_OCR_ERROR = "POSSIBLE_OCR_ERROR"
    MISSING_DATA = "MISSING_DATA"
    CONFLICTING_VALUES = "CONFLICTING_VALUES"


class AmountPair(CamelModel):
    """Current year amount with optional prior year comparative."""
    current: Optional[float] = None
    prior: Optional[float] = None


class Period(CamelModel):
    current: str = ""
    prior: Optional[str] = None


class ExtractedLineItem(CamelModel):
    label: str
    note_ref: Optional[str] = None
    current: Optional[float] = None
    prior: Optional[float] = None
    is_subtotal: bool = False
    is_total: bool = False
    indent: Optional[int] = None
    page_number: Optional[int] = None


class ExtractedSection(CamelModel):
    name: str
    items: List[ExtractedLineItem] = Field(default_factory=list)
    subtotal: Optional[AmountPair] = None


class ExtractedStatement(CamelModel):
    """A complete extracted primary statement or note."""
    statement_type: StatementType
    title: str = ""
    page_numbers: List[int] = Field(default_factory=list)
    period: Period = Field(default_factory=Period)
    currency: str = ""
    sections: List[ExtractedSection] = Field(default_factory=list)
    column_source: Optional[str] = None

    # SOFP
    total_assets: Optional[AmountPair] = None
    total_liabilities: Optional[AmountPair] = None
    total_equity: Optional[AmountPair] = None

    # SOCI
    revenue: Optional[AmountPair] = None
    profit_before_tax: Optional[AmountPair] = None
    profit_after_tax: Optional[AmountPair] = None
    total_comprehensive_income: Optional[AmountPair] = None


class ExtractedCastingRelationship(CamelModel):
    """Components claimed to sum to a stated total."""
    total_label: Optional[str] = None
    total_amount: Optional[float] = None
    section: Optional[str] = None
    component_labels: List[Optional[str]] = Field(default_factory=list)
    component_amounts: List[Optional[float]] = Field(default_factory=list)
    page_number: Optional[int] = None
    column_source: Optional[str] = None


class MovementLine(CamelModel):
    description: Optional[str] = None
    amount: Optional[float] = None


class ExtractedMovement(CamelModel):
    """Roll-forward schedule: opening + additions - deductions = closing."""
    account_name: Optional[str] = None
    note_ref: Optional[str] = None
    opening: Optional[float] = None
    additions: List[MovementLine] = Field(default_factory=list)
    # Deduction amounts are positive magnitudes; they are subtracted.
    deductions: List[MovementLine] = Field(default_factory=list)
    stated_closing: Optional[float] = None
    page_number: Optional[int] = None
    column_source: Optional[str] = None


class ExtractedCrossReference(CamelModel):
    """A note total tied to the statement line it supports."""
    note_ref: Optional[str] = None
    note_description: Optional[str] = None
    note_total: Optional[float] = None
    statement_line_item: Optional[str] = None
    statement_amount: Optional[float] = None
    statement_type: StatementType = StatementType.SOFP
    page_number_note: Optional[int] = None
    page_number_statement: Optional[int] = None
    column_source: Optional[str] = None

    is_expense_or_deduction: Optional[bool] = None
    sign_convention_note: Optional[SignConvention] = None
    sign_convention_statement: Optional[SignConvention] = None

    mapping_confidence: Optional[float] = Field(None, ge=0, le=100)
    mapping_type: Optional[MappingType] = None


class ExtractionWarning(CamelModel):
    """Extraction-time uncertainty, passed through to the report untouched."""
    type: WarningType
    location: str = ""
    description: str = ""
    confidence: float = 0.0
    suggested_value: Optional[float] = None
    page_number: Optional[int] = None


class ExtractionResult(CamelModel):
    """Complete extraction output consumed by the verification engine."""
    company_name: str = ""
    financial_year_end: str = ""
    reporting_currency: str = ""
    extracted_at: Optional[str] = None
    overall_confidence: Optional[float] = None

    statements: List[ExtractedStatement] = Field(default_factory=list)
    movements: List[ExtractedMovement] = Field(default_factory=list)
    cross_references: List[ExtractedCrossReference] = Field(default_factory=list)
    casting_relationships: List[ExtractedCastingRelationship] = Field(default_factory=list)
    warnings: List[ExtractionWarning] = Field(default_factory=list)
    # Records set aside during validation; filled in by the validator below
    rejected_records: List[ExtractionWarning] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def set_aside_invalid_records(cls, data: Any) -> Any:
        """Drop records that fail validation and report each one instead."""
        if not isinstance(data, dict):
            return data

        data = dict(data)
        rejected: List[ExtractionWarning] = []
        for field_name, record_model in _RECORD_COLLECTIONS:
            for key in (to_camel(field_name), field_name):
                records = data.get(key)
                if not isinstance(records, list):
                    continue
                kept = []
                for index, record in enumerate(records):
                    try:
                        record_model.model_validate(record)
                    except ValidationError as e:
                        rejected.append(_rejection_warning(key, index, record, e))
                        continue
                    kept.append(record)
                data[key] = kept

        data.pop("rejectedRecords", None)
        data["rejected_records"] = rejected
        return data


_RECORD_COLLECTIONS = (
    ("statements", ExtractedStatement),
    ("movements", ExtractedMovement),
    ("cross_references", ExtractedCrossReference),
    ("casting_relationships", ExtractedCastingRelationship),
    ("warnings", ExtractionWarning),
)


def _rejection_warning(key: str, index: int, record: Any, error: ValidationError) -> ExtractionWarning:
    first = error.errors()[0]
    field_path = ".".join(str(part) for part in first["loc"]) or "record"
    warning_type = (
        WarningType.MISSING_DATA if first["type"] == "missing"
        else WarningType.CONFLICTING_VALUES
    )
    page_number = None
    if isinstance(record, dict):
        page = record.get("pageNumber", record.get("page_number"))
        if isinstance(page, int) and not isinstance(page, bool):
            page_number = page
    return ExtractionWarning(
        type=warning_type,
        location=f"{key}[{index}]",
        description=(
            f"Record not verified: {field_path} {first['msg'].lower()} "
            f"({error.error_count()} validation error(s))"
        ),
        page_number=page_number,
    )
