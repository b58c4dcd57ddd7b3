"""
Audit conclusion text built from verification outcomes.
"""

from typing import List, Optional, Sequence

from castcheck.verification_engine.arithmetic import format_currency
from castcheck.verification_engine.models import (
    BalanceSheetVerificationResult,
    ConclusionItem,
    Severity,
    VerificationException,
    VerificationStatus,
)

SEVERITY_ORDER = {Severity.HIGH: 0, Severity.MEDIUM: 1, Severity.LOW: 2}


def pluralize(count: int, singular: str, plural: Optional[str] = None) -> str:
    """``pluralize(1, "check")`` -> ``"1 check"``; ``pluralize(2, "check")`` -> ``"2 checks"``."""
    word = singular if count == 1 else (plural or f"{singular}s")
    return f"{count} {word}"


def generate_conclusion_summary(
    exceptions: Sequence[VerificationException],
    total_checks: int,
    passed: int,
) -> str:
    if not exceptions:
        if total_checks == 0:
            return "No casting checks could be performed on the extracted data."
        return (
            f"The financial statements cast correctly with no exceptions. "
            f"All {pluralize(total_checks, 'check')} passed."
        )

    counts = {severity: 0 for severity in SEVERITY_ORDER}
    for exc in exceptions:
        counts[exc.severity] += 1
    parts = [f"{counts[s]} {s.value}" for s in SEVERITY_ORDER if counts[s]]

    return (
        f"The financial statements cast correctly subject to "
        f"{pluralize(len(exceptions), 'exception')} ({', '.join(parts)} severity). "
        f"{passed}/{total_checks} checks passed."
    )


def generate_conclusion_items(
    exceptions: Sequence[VerificationException],
    currency_symbol: str = "RM",
) -> List[ConclusionItem]:
    """One item per exception, high priority first; ties keep exception order."""
    ordered = sorted(exceptions, key=lambda e: SEVERITY_ORDER[e.severity])
    return [
        ConclusionItem(
            priority=exc.severity,
            note=exc.location,
            description=(
                f"Stated {format_currency(exc.stated_amount, currency_symbol)} "
                f"vs Calculated {format_currency(exc.calculated_amount, currency_symbol)} "
                f"→ Δ {format_currency(exc.difference, currency_symbol)}"
            ),
        )
        for exc in ordered
    ]


def generate_conclusion_note(
    balance_sheet_result: Optional[BalanceSheetVerificationResult],
    passed: int,
    total_checks: int,
    currency_symbol: str = "RM",
) -> str:
    parts = []

    if balance_sheet_result is not None:
        if balance_sheet_result.status == VerificationStatus.PASS:
            parts.append("Balance Sheet balances correctly (Assets = Liabilities + Equity).")
        else:
            parts.append(
                f"WARNING: Balance Sheet does not balance - variance of "
                f"{format_currency(balance_sheet_result.variance, currency_symbol)}."
            )
    else:
        parts.append("Balance Sheet equation not checked: statement of financial position totals were not extracted.")

    if passed == total_checks:
        parts.append("All arithmetic has been verified by deterministic code.")
    else:
        parts.append(f"{passed} of {total_checks} checks passed. Exceptions should be investigated.")

    return " ".join(parts)
