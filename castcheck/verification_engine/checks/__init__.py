"""Individual arithmetic checks. Each module is pure and independent of the others."""
from castcheck.verification_engine.checks.balance_sheet import (
    verify_balance_sheet,
    verify_statements,
)
from castcheck.verification_engine.checks.casting import verify_all_castings, verify_casting
from castcheck.verification_engine.checks.cross_reference import (
    DEFAULT_MAPPING_CONFIDENCE_THRESHOLD,
    verify_all_cross_references,
    verify_cross_reference,
)
from castcheck.verification_engine.checks.movement import verify_all_movements, verify_movement

__all__ = [
    "DEFAULT_MAPPING_CONFIDENCE_THRESHOLD",
    "verify_casting",
    "verify_all_castings",
    "verify_balance_sheet",
    "verify_statements",
    "verify_movement",
    "verify_all_movements",
    "verify_cross_reference",
    "verify_all_cross_references",
]
