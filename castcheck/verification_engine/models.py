"""
Result model for the CastCheck verification engine.

Every check produces one immutable result record. Records are created fresh
on each run and never mutated afterwards; collections are tuples.

Contract shared by all check results:
    status == VerificationStatus.PASS  <=>  variance == 0
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from castcheck.schemas.extraction import ExtractionWarning, StatementType


class VerificationStatus(str, Enum):
    """Outcome of a single check."""
    PASS = "pass"
    FAIL = "fail"
    WARNING = "warning"
    NEEDS_REVIEW = "needs_review"


class Severity(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class CheckType(str, Enum):
    VERTICAL = "vertical"
    HORIZONTAL = "horizontal"
    CROSS_REFERENCE = "cross_reference"
    BALANCE_EQUATION = "balance_equation"


class ExceptionType(str, Enum):
    """Closed set of exception tags shown in the report."""
    CASTING_ERROR = "Casting Error"
    BALANCE_SHEET_IMBALANCE = "Balance Sheet Imbalance"
    MOVEMENT_RECONCILIATION_ERROR = "Movement Reconciliation Error"
    CROSS_REFERENCE_MISMATCH = "Cross Reference Mismatch"
    REQUIRES_HUMAN_REVIEW = "Requires Human Review"


VERIFIED_BY = "code"
VERIFICATION_METHOD = "deterministic_code"


# =============================================================================
# Check Results
# =============================================================================

@dataclass(frozen=True)
class CastingComponent:
    label: str
    amount: float


@dataclass(frozen=True)
class CastingVerificationResult:
    """Vertical casting: components summed against a stated total."""
    id: str
    section: str
    description: str
    components: Tuple[CastingComponent, ...]
    calculated_total: float
    stated_total: float
    variance: float
    variance_percentage: float
    status: VerificationStatus
    # Labels and amounts arrived with different lengths
    is_malformed: bool = False
    check_type: CheckType = CheckType.VERTICAL
    verified_by: str = VERIFIED_BY


@dataclass(frozen=True)
class BalanceSheetVerificationResult:
    """Assets = Liabilities + Equity for the current reporting column."""
    id: str
    total_assets: float
    total_liabilities: float
    total_equity: float
    calculated_liabilities_plus_equity: float
    variance: float
    variance_percentage: float
    status: VerificationStatus
    check_type: CheckType = CheckType.BALANCE_EQUATION
    verified_by: str = VERIFIED_BY


@dataclass(frozen=True)
class MovementEntry:
    description: str
    amount: float


@dataclass(frozen=True)
class MovementVerificationResult:
    """Horizontal casting: opening + additions - deductions = closing."""
    id: str
    account_name: str
    opening: float
    additions: Tuple[MovementEntry, ...]
    deductions: Tuple[MovementEntry, ...]
    total_additions: float
    total_deductions: float
    calculated_closing: float
    stated_closing: float
    variance: float
    variance_percentage: float
    status: VerificationStatus
    note_ref: Optional[str] = None
    check_type: CheckType = CheckType.HORIZONTAL
    verified_by: str = VERIFIED_BY


@dataclass(frozen=True)
class CrossReferenceVerificationResult:
    """A note total compared with its statement line amount."""
    id: str
    note_ref: str
    note_description: str
    statement_line_item: str
    statement_type: StatementType
    note_amount: float
    statement_amount: float
    variance: float
    status: VerificationStatus
    # Variance of the signed amounts, before any sign-convention handling
    raw_variance: float = 0.0
    # Variance of the magnitudes
    absolute_variance: float = 0.0
    is_sign_difference_only: bool = False
    sign_explanation: Optional[str] = None
    mapping_confidence: Optional[float] = None
    mapping_type: Optional[str] = None
    is_possible_wrong_mapping: bool = False
    check_type: CheckType = CheckType.CROSS_REFERENCE
    verified_by: str = VERIFIED_BY


# =============================================================================
# Exceptions, KPIs and Conclusion
# =============================================================================

@dataclass(frozen=True)
class VerificationException:
    """A reportable finding raised from one non-passing check."""
    id: int
    type: ExceptionType
    location: str
    description: str
    stated_amount: float
    calculated_amount: float
    difference: float
    severity: Severity
    recommendation: str
    related_check_id: str


@dataclass(frozen=True)
class VerificationKPI:
    total_checks: int = 0
    passed: int = 0
    failed: int = 0
    warnings: int = 0
    needs_review: int = 0
    pass_rate: int = 100
    exceptions_count: int = 0
    high_severity: int = 0
    medium_severity: int = 0
    low_severity: int = 0


@dataclass(frozen=True)
class ConclusionItem:
    priority: Severity
    note: str
    description: str


@dataclass(frozen=True)
class VerificationResult:
    """Everything one orchestrator run produced."""
    kpi: VerificationKPI
    casting_results: Tuple[CastingVerificationResult, ...]
    balance_sheet_result: Optional[BalanceSheetVerificationResult]
    movement_results: Tuple[MovementVerificationResult, ...]
    cross_reference_results: Tuple[CrossReferenceVerificationResult, ...]
    exceptions: Tuple[VerificationException, ...]
    needs_human_review: Tuple[ExtractionWarning, ...]
    conclusion_summary: str
    conclusion_items: Tuple[ConclusionItem, ...]
    conclusion_note: str
    verified_at: str
    currency_symbol: str = "RM"
    verification_method: str = field(default=VERIFICATION_METHOD)

    def all_results(self) -> Tuple[Any, ...]:
        """All check results in exception-numbering order."""
        balance = (self.balance_sheet_result,) if self.balance_sheet_result else ()
        return (
            self.casting_results
            + balance
            + self.movement_results
            + self.cross_reference_results
        )

    def to_dict(self) -> Dict[str, Any]:
        """Plain-JSON representation (enums become their values)."""
        data = asdict(self)
        data["needs_human_review"] = [
            w.model_dump(mode="json", by_alias=True) for w in self.needs_human_review
        ]
        return _enum_values(data)


def _enum_values(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: _enum_values(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_enum_values(v) for v in value]
    return value
