"""
Balance sheet equation: Assets = Liabilities + Equity.

Only the current-year column is checked; prior-year closing equity already
folds into the current-year movements.
"""

from typing import Optional, Sequence, Tuple

import structlog

from castcheck.schemas.extraction import ExtractedStatement, StatementType
from castcheck.verification_engine.arithmetic import (
    calculate_variance,
    calculate_variance_percentage,
    determine_status,
    precise_sum,
)
from castcheck.verification_engine.models import BalanceSheetVerificationResult

logger = structlog.get_logger(__name__)


def verify_balance_sheet(
    total_assets: float,
    total_liabilities: float,
    total_equity: float,
    check_id: str = "bs_001",
) -> BalanceSheetVerificationResult:
    """Verify total assets against liabilities plus equity."""
    calculated = precise_sum([total_liabilities, total_equity])
    variance = calculate_variance(total_assets, calculated)

    return BalanceSheetVerificationResult(
        id=check_id,
        total_assets=total_assets,
        total_liabilities=total_liabilities,
        total_equity=total_equity,
        calculated_liabilities_plus_equity=calculated,
        variance=variance,
        variance_percentage=calculate_variance_percentage(variance, total_assets),
        status=determine_status(variance),
    )


def find_balance_sheet_totals(
    statements: Sequence[ExtractedStatement],
) -> Optional[Tuple[float, float, float]]:
    """
    Current-year (assets, liabilities, equity) from the SOFP, if complete.

    Returns None when there is no SOFP or any of the three totals is absent.
    """
    sofps = [s for s in statements if s.statement_type == StatementType.SOFP]
    if not sofps:
        return None
    if len(sofps) > 1:
        logger.warning("multiple_sofp_statements", count=len(sofps), using=sofps[0].title)

    sofp = sofps[0]
    pairs = (sofp.total_assets, sofp.total_liabilities, sofp.total_equity)
    if any(pair is None or pair.current is None for pair in pairs):
        logger.info("balance_sheet_check_skipped", reason="incomplete_sofp_totals")
        return None

    return tuple(pair.current for pair in pairs)


def verify_statements(
    statements: Sequence[ExtractedStatement],
) -> Optional[BalanceSheetVerificationResult]:
    """Run the balance sheet check if the extraction supports it."""
    totals = find_balance_sheet_totals(statements)
    if totals is None:
        return None
    return verify_balance_sheet(*totals)
