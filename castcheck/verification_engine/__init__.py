"""
CastCheck verification engine.

Deterministic arithmetic checks over an extracted set of financial
statements: vertical casting, the balance sheet equation, movement
reconciliations and note-to-statement cross-references.
"""

from castcheck.verification_engine.arithmetic import (
    SeverityThresholds,
    calculate_pass_rate,
    calculate_variance,
    calculate_variance_percentage,
    determine_severity,
    determine_status,
    format_currency,
    precise_sum,
)
from castcheck.verification_engine.exception_synthesis import ExceptionSynthesizer
from castcheck.verification_engine.models import (
    BalanceSheetVerificationResult,
    CastingVerificationResult,
    CrossReferenceVerificationResult,
    ExceptionType,
    MovementVerificationResult,
    Severity,
    VerificationException,
    VerificationKPI,
    VerificationResult,
    VerificationStatus,
)
from castcheck.verification_engine.orchestrator import (
    VerificationOptions,
    run_column_verification,
    run_verification,
)
from castcheck.verification_engine.presentation import to_dashboard

__all__ = [
    # Orchestration
    "run_verification",
    "run_column_verification",
    "VerificationOptions",
    "to_dashboard",
    "ExceptionSynthesizer",
    # Primitives
    "SeverityThresholds",
    "calculate_pass_rate",
    "calculate_variance",
    "calculate_variance_percentage",
    "determine_severity",
    "determine_status",
    "format_currency",
    "precise_sum",
    # Models
    "BalanceSheetVerificationResult",
    "CastingVerificationResult",
    "CrossReferenceVerificationResult",
    "ExceptionType",
    "MovementVerificationResult",
    "Severity",
    "VerificationException",
    "VerificationKPI",
    "VerificationResult",
    "VerificationStatus",
]

__version__ = "1.0.0"
