"""
Cross-reference: does the note total agree with the statement line?

Notes usually show expenses and deductions as positive figures while the
primary statement brackets them. In sign-aware mode such a record is
compared on magnitudes, so a pure presentation difference passes with an
explanation instead of reporting twice the amount as a variance.

Sign-aware comparison applies when the record is flagged as an expense or
deduction, or declares different sign conventions for note and statement,
and the two amounts carry opposite signs.
"""

from typing import List, Optional, Sequence, Tuple

from castcheck.config import Settings
from castcheck.schemas.extraction import (
    ExtractedCrossReference,
    ExtractionWarning,
    MappingType,
    WarningType,
)
from castcheck.verification_engine.arithmetic import (
    calculate_variance,
    determine_status,
    format_currency,
)
from castcheck.verification_engine.models import (
    CrossReferenceVerificationResult,
    VerificationStatus,
)

DEFAULT_MAPPING_CONFIDENCE_THRESHOLD: float = Settings.model_fields["mapping_confidence_threshold"].default


def uses_divergent_sign_convention(cross_ref: ExtractedCrossReference) -> bool:
    """True if note and statement are expected to present opposite signs."""
    if cross_ref.is_expense_or_deduction:
        return True
    note_sign = cross_ref.sign_convention_note
    statement_sign = cross_ref.sign_convention_statement
    return note_sign is not None and statement_sign is not None and note_sign != statement_sign


def note_description_of(cross_ref: ExtractedCrossReference) -> str:
    """Note description, falling back to the statement line or note reference."""
    if cross_ref.note_description:
        return cross_ref.note_description
    if cross_ref.statement_line_item:
        return cross_ref.statement_line_item
    if cross_ref.note_ref:
        return cross_ref.note_ref
    return "Unreferenced note"


def _opposite_signs(a: float, b: float) -> bool:
    return a != 0 and b != 0 and (a < 0) != (b < 0)


def verify_cross_reference(
    cross_ref: ExtractedCrossReference,
    check_id: str = "xref_001",
    sign_aware: bool = True,
    mapping_confidence_threshold: float = DEFAULT_MAPPING_CONFIDENCE_THRESHOLD,
    currency_symbol: str = "RM",
) -> CrossReferenceVerificationResult:
    """
    Compare a note total with the statement amount.

    Args:
        cross_ref: Extracted note-to-statement tie. Both amounts must be present.
        check_id: Identifier carried into any exception raised from this check.
        sign_aware: Compare magnitudes for expense/deduction sign conventions.
        mapping_confidence_threshold: Below this (0-100) a failing tie is
            flagged as a possible wrong mapping.
        currency_symbol: Used in the sign explanation text.

    Returns:
        CrossReferenceVerificationResult
    """
    note_amount = cross_ref.note_total
    statement_amount = cross_ref.statement_amount

    raw_variance = calculate_variance(note_amount, statement_amount)
    absolute_variance = calculate_variance(abs(note_amount), abs(statement_amount))

    sign_mode = (
        sign_aware
        and uses_divergent_sign_convention(cross_ref)
        and _opposite_signs(note_amount, statement_amount)
    )
    variance = absolute_variance if sign_mode else raw_variance
    status = determine_status(variance)

    is_sign_difference_only = sign_mode and absolute_variance == 0
    sign_explanation = None
    if is_sign_difference_only:
        sign_explanation = (
            f"Note presents {format_currency(note_amount, currency_symbol)} and the statement "
            f"presents {format_currency(statement_amount, currency_symbol)}; the amounts agree "
            f"and differ only by the expense sign convention."
        )

    is_possible_wrong_mapping = status != VerificationStatus.PASS and (
        cross_ref.mapping_type == MappingType.UNCERTAIN
        or (
            cross_ref.mapping_confidence is not None
            and cross_ref.mapping_confidence < mapping_confidence_threshold
        )
    )

    return CrossReferenceVerificationResult(
        id=check_id,
        note_ref=cross_ref.note_ref or "",
        note_description=note_description_of(cross_ref),
        statement_line_item=cross_ref.statement_line_item or "",
        statement_type=cross_ref.statement_type,
        note_amount=note_amount,
        statement_amount=statement_amount,
        variance=variance,
        status=status,
        raw_variance=raw_variance,
        absolute_variance=absolute_variance,
        is_sign_difference_only=is_sign_difference_only,
        sign_explanation=sign_explanation,
        mapping_confidence=cross_ref.mapping_confidence,
        mapping_type=cross_ref.mapping_type.value if cross_ref.mapping_type else None,
        is_possible_wrong_mapping=is_possible_wrong_mapping,
    )


def verify_all_cross_references(
    cross_references: Sequence[ExtractedCrossReference],
    sign_aware: bool = True,
    mapping_confidence_threshold: float = DEFAULT_MAPPING_CONFIDENCE_THRESHOLD,
    currency_symbol: str = "RM",
) -> Tuple[List[CrossReferenceVerificationResult], List[ExtractionWarning]]:
    """Verify every cross-reference; ties missing an amount become review items."""
    results: List[CrossReferenceVerificationResult] = []
    review_items: List[ExtractionWarning] = []

    for cross_ref in cross_references:
        missing: Optional[str] = None
        if cross_ref.note_total is None:
            missing = "note total"
        elif cross_ref.statement_amount is None:
            missing = "statement amount"

        if missing:
            review_items.append(ExtractionWarning(
                type=WarningType.MISSING_DATA,
                location=cross_ref.note_ref or note_description_of(cross_ref),
                description=f"{note_description_of(cross_ref)}: {missing} missing, cross-reference not verified",
                page_number=cross_ref.page_number_note,
            ))
            continue

        results.append(verify_cross_reference(
            cross_ref,
            check_id=f"xref_{len(results) + 1:03d}",
            sign_aware=sign_aware,
            mapping_confidence_threshold=mapping_confidence_threshold,
            currency_symbol=currency_symbol,
        ))

    return results, review_items
