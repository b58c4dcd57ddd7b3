"""
Numeric primitives for the verification engine.

All money arithmetic goes through integer cents so that correct statements
never show a spurious variance from binary floating point. The pass
threshold is exactly zero: any variance of one cent or more fails.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Union

from castcheck.config import Settings
from castcheck.verification_engine.models import Severity, VerificationStatus

Number = Union[int, float, Decimal]

_CENT = Decimal("0.01")
_ONE = Decimal("1")


@dataclass(frozen=True)
class SeverityThresholds:
    """Variance magnitudes (base currency units) that escalate severity."""
    high: float = Settings.model_fields["severity_high_threshold"].default
    medium: float = Settings.model_fields["severity_medium_threshold"].default

    @classmethod
    def from_settings(cls, settings: Settings) -> "SeverityThresholds":
        return cls(
            high=settings.severity_high_threshold,
            medium=settings.severity_medium_threshold,
        )


DEFAULT_THRESHOLDS = SeverityThresholds()


def _to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() keeps the shortest repr, so 0.1 stays 0.1 rather than its binary expansion
    return Decimal(str(value))


def to_cents(value: Number) -> int:
    """Round a currency amount to whole cents (half away from zero)."""
    return int((_to_decimal(value) * 100).quantize(_ONE, rounding=ROUND_HALF_UP))


def precise_sum(values: Iterable[Number]) -> float:
    """Sum currency amounts exactly at cent precision."""
    total_cents = sum(to_cents(v) for v in values)
    return total_cents / 100


def calculate_variance(calculated: Number, stated: Number) -> float:
    """Absolute difference between two amounts, rounded to the cent."""
    cents = to_cents(_to_decimal(calculated) - _to_decimal(stated))
    return abs(cents) / 100


def calculate_variance_percentage(variance: Number, stated: Number) -> float:
    """
    Variance as a percentage of the stated amount, rounded to 2 dp.

    A zero stated amount yields 0 when there is no variance and 100 otherwise.
    """
    stated_dec = _to_decimal(stated)
    variance_dec = _to_decimal(variance)
    if stated_dec == 0:
        return 0.0 if variance_dec == 0 else 100.0
    pct = variance_dec / abs(stated_dec) * 100
    return float(pct.quantize(_CENT, rounding=ROUND_HALF_UP))


def determine_status(variance: Number) -> VerificationStatus:
    """Any non-zero variance, however small, is a failure."""
    if variance == 0:
        return VerificationStatus.PASS
    return VerificationStatus.FAIL


def determine_severity(
    variance: Number,
    thresholds: SeverityThresholds = DEFAULT_THRESHOLDS,
) -> Severity:
    """Map a variance magnitude to a severity band."""
    magnitude = abs(variance)
    if magnitude >= thresholds.high:
        return Severity.HIGH
    if magnitude >= thresholds.medium:
        return Severity.MEDIUM
    return Severity.LOW


def calculate_pass_rate(passed: int, total: int) -> int:
    """Whole-number pass percentage; 100 when nothing was checked."""
    if total == 0:
        return 100
    rate = Decimal(passed) * 100 / Decimal(total)
    return int(rate.quantize(_ONE, rounding=ROUND_HALF_UP))


def format_currency(amount: Number, symbol: str = "RM") -> str:
    """
    Format an amount the way financial statements print it.

    Whole amounts print without decimals; anything with a cent part keeps
    both decimal places so a sub-unit variance never reads as zero.

    ``format_currency(1234567)``  -> ``"RM 1,234,567"``
    ``format_currency(-1500)``    -> ``"(RM 1,500)"``
    ``format_currency(0.4)``      -> ``"RM 0.40"``
    """
    cents = abs(_to_decimal(amount)).quantize(_CENT, rounding=ROUND_HALF_UP)
    if cents == cents.to_integral_value():
        number = f"{int(cents):,}"
    else:
        number = f"{cents:,.2f}"
    formatted = f"{symbol} {number}" if symbol else number
    if amount < 0 and cents:
        return f"({formatted})"
    return formatted
