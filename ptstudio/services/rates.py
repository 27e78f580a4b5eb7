"""
Trainer fee calculation.

Rules:
- Percentage rate: fee = round(unit_price * fraction)
- Fixed rate: fee = amount, whatever the unit price
- No rate for the branch: fee = unit_price * 50%

The rate is resolved when a session is booked (or its trainer changes, or
the trainer's rate is propagated) and stored on the session together with
the fee, so later settlement does not depend on the current rate.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from ptstudio.models.rate import FixedRate, PercentageRate, Rate

# Applied when a trainer has no rate configured for the program's branch
FALLBACK_RATE = PercentageRate(Decimal("0.5"))

# Fee differences at or below this are treated as unchanged
FEE_TOLERANCE = Decimal("0.01")

WON = Decimal("1")


@dataclass(frozen=True)
class FeeQuote:
    """A computed trainer fee and the rate it was computed with."""

    fee: Decimal
    rate: Rate


def round_won(amount: Decimal) -> Decimal:
    """Round half up to a whole won."""
    return Decimal(amount).quantize(WON, rounding=ROUND_HALF_UP)


def unit_price_for(total_amount: Decimal, total_sessions: int) -> Decimal:
    """Price of one session of a program; 0 when it has no sessions."""
    if total_sessions <= 0:
        return Decimal("0")
    return round_won(Decimal(total_amount) / total_sessions)


def resolve_rate(trainer, branch_id: int) -> Optional[Rate]:
    """Return the trainer's rate at a branch, or None if none is configured."""
    return trainer.branch_rates.get(branch_id)


def compute_fee(unit_price: Decimal, rate: Optional[Rate]) -> FeeQuote:
    """Compute the trainer fee for one session.

    Args:
        unit_price: The program's per-session price
        rate: The trainer's branch rate, or None when missing

    Returns:
        FeeQuote with the fee and the rate to store on the session
    """
    unit_price = Decimal(unit_price)

    if rate is None:
        return FeeQuote(fee=unit_price * FALLBACK_RATE.fraction, rate=FALLBACK_RATE)

    if isinstance(rate, FixedRate):
        return FeeQuote(fee=Decimal(rate.amount), rate=rate)

    return FeeQuote(fee=round_won(unit_price * rate.fraction), rate=rate)


def quote_session(trainer, program) -> FeeQuote:
    """Fee for a session of `program` taught by `trainer`."""
    return compute_fee(program.unit_price, resolve_rate(trainer, program.branch_id))


def fee_changed(stored_fee: Decimal, stored_rate: Rate, quote: FeeQuote) -> bool:
    """Whether a stored fee/rate pair differs from a fresh quote."""
    if abs(Decimal(stored_fee) - quote.fee) > FEE_TOLERANCE:
        return True
    return stored_rate != quote.rate
