"""Fixed-point money helpers.

All amounts are ``Decimal`` with two fractional digits, rounded half-up.
Currency is carried as a tag; nothing here converts between currencies.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from rfpdesk.core.errors import ValidationError
from rfpdesk.db.enums import Currency

CENT = Decimal("0.01")
HUNDRED = Decimal("100")
ZERO = Decimal("0.00")


def to_decimal(value, field: str = "amount") -> Decimal:
    """Convert user input to Decimal without going through binary floats."""
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field} must be a number")
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            raise ValidationError(f"{field} must be a number, got {value!r}") from None
    if not result.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    return result


def round_money(value: Decimal) -> Decimal:
    """Quantize to cents, half-up."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def multiply(a: Decimal | int, b: Decimal | int) -> Decimal:
    """Multiply and round to cents immediately."""
    return round_money(Decimal(a) * Decimal(b))


def percentage_of(amount: Decimal, rate: Decimal) -> Decimal:
    """``amount * rate / 100`` rounded to cents."""
    return round_money(amount * rate / HUNDRED)


def format_amount(amount: Decimal) -> str:
    return f"{round_money(amount):,.2f}"


@dataclass(frozen=True)
class Money:
    amount: Decimal
    currency: Currency

    def __post_init__(self):
        object.__setattr__(self, "amount", round_money(to_decimal(self.amount)))

    def __add__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        if other.currency != self.currency:
            raise ValidationError(
                f"Cannot add {other.currency.value} to {self.currency.value}"
            )
        return Money(self.amount + other.amount, self.currency)

    @classmethod
    def zero(cls, currency: Currency) -> Money:
        return cls(ZERO, currency)

    def __str__(self) -> str:
        return f"{self.currency.value} {format_amount(self.amount)}"
