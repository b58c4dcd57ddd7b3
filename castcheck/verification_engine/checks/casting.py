"""
Vertical casting: do the components add up to the stated total?
"""

from itertools import zip_longest
from typing import List, Sequence, Tuple

import structlog

from castcheck.schemas.extraction import (
    ExtractedCastingRelationship,
    ExtractionWarning,
    WarningType,
)
from castcheck.verification_engine.arithmetic import (
    calculate_variance,
    calculate_variance_percentage,
    determine_status,
    precise_sum,
)
from castcheck.verification_engine.models import (
    CastingComponent,
    CastingVerificationResult,
)

logger = structlog.get_logger(__name__)


def verify_casting(
    section: str,
    description: str,
    components: Sequence[CastingComponent],
    stated_total: float,
    check_id: str = "cast_001",
    is_malformed: bool = False,
) -> CastingVerificationResult:
    """
    Verify that components add up to a stated total.

    Args:
        section: Statement section or note the total belongs to.
        description: Human-readable description of the check.
        components: Ordered component lines.
        stated_total: Total as printed in the document.
        check_id: Identifier carried into any exception raised from this check.
        is_malformed: Mark the record as built from inconsistent input.

    Returns:
        CastingVerificationResult with the full component breakdown.
    """
    calculated_total = precise_sum(c.amount for c in components)
    variance = calculate_variance(calculated_total, stated_total)

    return CastingVerificationResult(
        id=check_id,
        section=section,
        description=description,
        components=tuple(components),
        calculated_total=calculated_total,
        stated_total=stated_total,
        variance=variance,
        variance_percentage=calculate_variance_percentage(variance, stated_total),
        status=determine_status(variance),
        is_malformed=is_malformed,
    )


def build_components(
    relationship: ExtractedCastingRelationship,
) -> Tuple[List[CastingComponent], bool]:
    """
    Pair component labels with amounts.

    Returns the components and whether the record was malformed (arrays of
    different length or null amounts). Missing amounts count as zero and
    missing or blank labels are numbered.
    """
    labels = relationship.component_labels
    amounts = relationship.component_amounts
    malformed = len(labels) != len(amounts)

    components = []
    for position, (label, amount) in enumerate(zip_longest(labels, amounts), start=1):
        if amount is None:
            malformed = True
            amount = 0.0
        components.append(CastingComponent(
            label=label or f"Component {position}",
            amount=amount,
        ))
    return components, malformed


def total_label_of(relationship: ExtractedCastingRelationship) -> str:
    """Label of the stated total, falling back to its section."""
    return relationship.total_label or relationship.section or "Unlabelled total"


def verify_all_castings(
    relationships: Sequence[ExtractedCastingRelationship],
) -> Tuple[List[CastingVerificationResult], List[ExtractionWarning]]:
    """
    Verify every casting relationship from an extraction.

    Returns:
        (results, review_items). Records without a stated total are skipped
        and reported as review items instead.
    """
    results: List[CastingVerificationResult] = []
    review_items: List[ExtractionWarning] = []

    for relationship in relationships:
        total_label = total_label_of(relationship)
        location = relationship.section or total_label

        if relationship.total_amount is None:
            review_items.append(ExtractionWarning(
                type=WarningType.MISSING_DATA,
                location=location,
                description=f"{total_label}: stated total missing, casting not verified",
                page_number=relationship.page_number,
            ))
            continue

        components, malformed = build_components(relationship)
        if malformed:
            logger.warning(
                "casting_record_malformed",
                total_label=total_label,
                labels=len(relationship.component_labels),
                amounts=len(relationship.component_amounts),
            )
            n_labels = len(relationship.component_labels)
            n_amounts = len(relationship.component_amounts)
            if n_labels != n_amounts:
                problem = f"{n_labels} component labels but {n_amounts} amounts"
            else:
                problem = "blank component amounts counted as zero"
            review_items.append(ExtractionWarning(
                type=WarningType.CONFLICTING_VALUES,
                location=location,
                description=f"{total_label}: {problem}",
                page_number=relationship.page_number,
            ))

        results.append(verify_casting(
            relationship.section or "",
            f"{total_label} calculation",
            components,
            relationship.total_amount,
            check_id=f"cast_{len(results) + 1:03d}",
            is_malformed=malformed,
        ))

    return results, review_items
