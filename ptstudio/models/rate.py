"""
Trainer compensation rates.

A rate is either a fraction of the program's unit price or a fixed amount
per session. The same variant is stored on a trainer's branch assignment and
copied onto every session priced with it.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional, Union


class RateType(str, Enum):
    """How a trainer is paid for a session."""
    PERCENTAGE = "percentage"
    FIXED = "fixed"


@dataclass(frozen=True)
class PercentageRate:
    """Fraction of the unit price (0.4 = 40%)."""

    fraction: Decimal

    type = RateType.PERCENTAGE

    @property
    def value(self) -> Decimal:
        return self.fraction


@dataclass(frozen=True)
class FixedRate:
    """Fixed amount per session, independent of the unit price."""

    amount: Decimal

    type = RateType.FIXED

    @property
    def value(self) -> Decimal:
        return self.amount


Rate = Union[PercentageRate, FixedRate]


def make_rate(rate_type, value) -> Rate:
    """Build a rate from its stored (type, value) pair."""
    value = Decimal(str(value))
    if RateType(rate_type) == RateType.FIXED:
        return FixedRate(value)
    return PercentageRate(value)


def rate_from_columns(rate_type, value) -> Optional[Rate]:
    """Like make_rate, but None when either column is empty."""
    if rate_type is None or value is None:
        return None
    return make_rate(rate_type, value)
