"""
Turns failing check results into numbered, severity-tagged exceptions.

Ids form one sequence starting at 1, assigned in the order castings,
balance sheet, movements, cross-references. Every description states the
stated amount, the calculated amount and the difference so a finding reads
on its own without the detail tables.
"""

from typing import Callable, List, Optional, Sequence

from castcheck.verification_engine.arithmetic import (
    DEFAULT_THRESHOLDS,
    SeverityThresholds,
    determine_severity,
    format_currency,
)
from castcheck.verification_engine.models import (
    BalanceSheetVerificationResult,
    CastingVerificationResult,
    CrossReferenceVerificationResult,
    ExceptionType,
    MovementVerificationResult,
    Severity,
    VerificationException,
    VerificationStatus,
)

RECOMMENDATIONS = {
    ExceptionType.CASTING_ERROR:
        "Verify the arithmetic in the source document and correct if necessary.",
    ExceptionType.BALANCE_SHEET_IMBALANCE:
        "Urgent: Balance sheet must balance. Review all totals for errors.",
    ExceptionType.MOVEMENT_RECONCILIATION_ERROR:
        "Review the movement schedule and verify all additions and deductions are captured.",
    ExceptionType.CROSS_REFERENCE_MISMATCH:
        "Verify that the note total agrees with the statement line item. "
        "May be a presentation or disclosure error.",
    ExceptionType.REQUIRES_HUMAN_REVIEW:
        "Extracted data is incomplete or ambiguous. Confirm the figures against "
        "the source document before concluding.",
}


class ExceptionSynthesizer:
    """
    Builds VerificationException records for one verification run.

    Holds only the currency symbol and severity thresholds; numbering is
    done per call to ``synthesize``.
    """

    def __init__(
        self,
        currency_symbol: str = "RM",
        thresholds: SeverityThresholds = DEFAULT_THRESHOLDS,
    ):
        self.currency_symbol = currency_symbol
        self.thresholds = thresholds

    def _fmt(self, amount: float) -> str:
        return format_currency(amount, self.currency_symbol)

    def synthesize(
        self,
        casting_results: Sequence[CastingVerificationResult],
        balance_sheet_result: Optional[BalanceSheetVerificationResult],
        movement_results: Sequence[MovementVerificationResult],
        cross_reference_results: Sequence[CrossReferenceVerificationResult],
    ) -> List[VerificationException]:
        """One exception per non-passing result, numbered globally."""
        exceptions: List[VerificationException] = []

        def collect(results: Sequence, convert: Callable) -> None:
            for result in results:
                if result.status == VerificationStatus.PASS:
                    continue
                exceptions.append(convert(result, len(exceptions) + 1))

        collect(casting_results, self.casting_exception)
        if balance_sheet_result is not None:
            collect([balance_sheet_result], self.balance_sheet_exception)
        collect(movement_results, self.movement_exception)
        collect(cross_reference_results, self.cross_reference_exception)

        return exceptions

    def casting_exception(
        self, result: CastingVerificationResult, exception_id: int
    ) -> VerificationException:
        exc_type = (
            ExceptionType.REQUIRES_HUMAN_REVIEW if result.is_malformed
            else ExceptionType.CASTING_ERROR
        )
        description = (
            f"{result.description}: Components sum to {self._fmt(result.calculated_total)} "
            f"but stated as {self._fmt(result.stated_total)}, "
            f"a difference of {self._fmt(result.variance)}"
        )
        if result.is_malformed:
            description += " (component labels and amounts did not line up in the extraction)"

        return VerificationException(
            id=exception_id,
            type=exc_type,
            location=result.section or result.description,
            description=description,
            stated_amount=result.stated_total,
            calculated_amount=result.calculated_total,
            difference=result.variance,
            severity=determine_severity(result.variance, self.thresholds),
            recommendation=RECOMMENDATIONS[exc_type],
            related_check_id=result.id,
        )

    def balance_sheet_exception(
        self, result: BalanceSheetVerificationResult, exception_id: int
    ) -> VerificationException:
        description = (
            f"Balance sheet does not balance: Assets {self._fmt(result.total_assets)} "
            f"≠ Liabilities {self._fmt(result.total_liabilities)} "
            f"+ Equity {self._fmt(result.total_equity)} "
            f"= {self._fmt(result.calculated_liabilities_plus_equity)}, "
            f"a difference of {self._fmt(result.variance)}"
        )
        return VerificationException(
            id=exception_id,
            type=ExceptionType.BALANCE_SHEET_IMBALANCE,
            location="Statement of Financial Position",
            description=description,
            stated_amount=result.total_assets,
            calculated_amount=result.calculated_liabilities_plus_equity,
            difference=result.variance,
            # An imbalance is material whatever its size
            severity=Severity.HIGH,
            recommendation=RECOMMENDATIONS[ExceptionType.BALANCE_SHEET_IMBALANCE],
            related_check_id=result.id,
        )

    def movement_exception(
        self, result: MovementVerificationResult, exception_id: int
    ) -> VerificationException:
        description = (
            f"Movement does not reconcile: Opening {self._fmt(result.opening)} "
            f"+ Additions {self._fmt(result.total_additions)} "
            f"- Deductions {self._fmt(result.total_deductions)} "
            f"= {self._fmt(result.calculated_closing)}, "
            f"but stated closing is {self._fmt(result.stated_closing)}, "
            f"a difference of {self._fmt(result.variance)}"
        )
        return VerificationException(
            id=exception_id,
            type=ExceptionType.MOVEMENT_RECONCILIATION_ERROR,
            location=f"{result.account_name} Movement",
            description=description,
            stated_amount=result.stated_closing,
            calculated_amount=result.calculated_closing,
            difference=result.variance,
            severity=determine_severity(result.variance, self.thresholds),
            recommendation=RECOMMENDATIONS[ExceptionType.MOVEMENT_RECONCILIATION_ERROR],
            related_check_id=result.id,
        )

    def cross_reference_exception(
        self, result: CrossReferenceVerificationResult, exception_id: int
    ) -> VerificationException:
        exc_type = (
            ExceptionType.REQUIRES_HUMAN_REVIEW if result.is_possible_wrong_mapping
            else ExceptionType.CROSS_REFERENCE_MISMATCH
        )
        description = (
            f"{result.note_description}: Note shows {self._fmt(result.note_amount)} "
            f"but statement shows {self._fmt(result.statement_amount)}, "
            f"a difference of {self._fmt(result.variance)}"
        )
        if result.is_possible_wrong_mapping:
            confidence = (
                f"{result.mapping_confidence:g}%" if result.mapping_confidence is not None
                else "unknown"
            )
            description += (
                f" (note may be tied to the wrong statement line; "
                f"mapping confidence {confidence})"
            )

        return VerificationException(
            id=exception_id,
            type=exc_type,
            location=result.note_ref or result.note_description,
            description=description,
            stated_amount=result.statement_amount,
            calculated_amount=result.note_amount,
            difference=result.variance,
            severity=determine_severity(result.variance, self.thresholds),
            recommendation=RECOMMENDATIONS[exc_type],
            related_check_id=result.id,
        )
