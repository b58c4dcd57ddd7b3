"""
Horizontal casting: Opening + Additions - Deductions = Closing.
"""

from typing import List, Sequence, Tuple

from castcheck.schemas.extraction import (
    ExtractedMovement,
    ExtractionWarning,
    MovementLine,
    WarningType,
)
from castcheck.verification_engine.arithmetic import (
    calculate_variance,
    calculate_variance_percentage,
    determine_status,
    precise_sum,
)
from castcheck.verification_engine.models import (
    MovementEntry,
    MovementVerificationResult,
)


def account_name_of(movement: ExtractedMovement) -> str:
    """Account name, falling back to the note reference."""
    if movement.account_name:
        return movement.account_name
    if movement.note_ref:
        return movement.note_ref
    return "Unnamed account"


def _entries(lines: Sequence[MovementLine], kind: str) -> Tuple[MovementEntry, ...]:
    return tuple(
        MovementEntry(line.description or f"{kind} {position}", line.amount)
        for position, line in enumerate(lines, start=1)
    )


def verify_movement(
    movement: ExtractedMovement,
    check_id: str = "mov_001",
) -> MovementVerificationResult:
    """
    Verify a movement reconciliation.

    Deduction amounts are positive magnitudes and are subtracted. The
    opening and stated closing balances and every line amount must be
    present.
    """
    additions = _entries(movement.additions, "Addition")
    deductions = _entries(movement.deductions, "Deduction")

    total_additions = precise_sum(a.amount for a in additions)
    total_deductions = precise_sum(d.amount for d in deductions)
    calculated_closing = precise_sum([movement.opening, total_additions, -total_deductions])

    variance = calculate_variance(calculated_closing, movement.stated_closing)

    return MovementVerificationResult(
        id=check_id,
        account_name=account_name_of(movement),
        opening=movement.opening,
        additions=additions,
        deductions=deductions,
        total_additions=total_additions,
        total_deductions=total_deductions,
        calculated_closing=calculated_closing,
        stated_closing=movement.stated_closing,
        variance=variance,
        variance_percentage=calculate_variance_percentage(variance, movement.stated_closing),
        status=determine_status(variance),
        note_ref=movement.note_ref,
    )


def missing_amounts(movement: ExtractedMovement) -> List[str]:
    """Names of the required amounts the extraction left blank."""
    missing = [
        name for name, value in
        (("opening balance", movement.opening), ("stated closing balance", movement.stated_closing))
        if value is None
    ]
    for kind, lines in (("addition", movement.additions), ("deduction", movement.deductions)):
        missing.extend(
            f"{kind} {position} amount"
            for position, line in enumerate(lines, start=1)
            if line.amount is None
        )
    return missing


def verify_all_movements(
    movements: Sequence[ExtractedMovement],
) -> Tuple[List[MovementVerificationResult], List[ExtractionWarning]]:
    """Verify each movement independently; incomplete ones become review items."""
    results: List[MovementVerificationResult] = []
    review_items: List[ExtractionWarning] = []

    for movement in movements:
        missing = missing_amounts(movement)
        if missing:
            account = account_name_of(movement)
            review_items.append(ExtractionWarning(
                type=WarningType.MISSING_DATA,
                location=movement.note_ref or account,
                description=f"{account}: {' and '.join(missing)} missing, movement not verified",
                page_number=movement.page_number,
            ))
            continue

        results.append(verify_movement(movement, check_id=f"mov_{len(results) + 1:03d}"))

    return results, review_items
