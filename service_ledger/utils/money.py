# service_ledger/utils/money.py

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import List, Union

from service_ledger.config import DEFAULT_CURRENCY, CURRENCY_SYMBOLS
from service_ledger.exceptions import ValidationError

# Number of decimal places of the minor unit, per ISO 4217 code.
MINOR_UNIT_EXPONENTS = {"INR": 2, "USD": 2, "EUR": 2, "JPY": 0}


def minor_unit_exponent(currency: str) -> int:
    return MINOR_UNIT_EXPONENTS.get(currency, 2)


@dataclass(frozen=True)
class Money:
    """
    An amount of money held as an integer count of minor units (paise for INR).
    Arithmetic never leaves the integers, so sums and splits are exact.
    """
    minor_units: int
    currency: str = DEFAULT_CURRENCY

    def __post_init__(self):
        # bool is an int subclass but never a valid amount
        if isinstance(self.minor_units, bool) or not isinstance(self.minor_units, int):
            raise ValidationError(f"Money must be built from integer minor units, got {self.minor_units!r}.")
        if not self.currency or len(self.currency) != 3:
            raise ValidationError(f"Invalid currency code: {self.currency!r}.")

    @classmethod
    def zero(cls, currency: str = DEFAULT_CURRENCY) -> "Money":
        return cls(0, currency)

    @classmethod
    def from_major(cls, value: Union[str, int, Decimal], currency: str = DEFAULT_CURRENCY) -> "Money":
        """Parses a major-unit amount such as "1250.50". Floats are refused."""
        if isinstance(value, float):
            raise ValidationError("Amounts must not be given as binary floating point; pass a string or Decimal.")
        try:
            amount_dec = Decimal(str(value).strip().replace(",", ""))
        except (InvalidOperation, TypeError):
            raise ValidationError(f"Invalid money amount: {value!r}.")
        if not amount_dec.is_finite():
            raise ValidationError(f"Invalid money amount: {value!r}.")

        scaled = amount_dec.scaleb(minor_unit_exponent(currency))
        if scaled != scaled.to_integral_value():
            raise ValidationError(f"Amount {value} has more precision than the {currency} minor unit.")
        return cls(int(scaled), currency)

    def to_decimal(self) -> Decimal:
        return Decimal(self.minor_units).scaleb(-minor_unit_exponent(self.currency))

    def _check_currency(self, other: "Money"):
        if not isinstance(other, Money):
            raise TypeError(f"Cannot combine Money with {type(other).__name__}.")
        if other.currency != self.currency:
            raise ValidationError(f"Currency mismatch: {self.currency} vs {other.currency}.")

    def __add__(self, other: "Money") -> "Money":
        self._check_currency(other)
        return Money(self.minor_units + other.minor_units, self.currency)

    def __sub__(self, other: "Money") -> "Money":
        self._check_currency(other)
        return Money(self.minor_units - other.minor_units, self.currency)

    def __lt__(self, other: "Money") -> bool:
        self._check_currency(other)
        return self.minor_units < other.minor_units

    def __le__(self, other: "Money") -> bool:
        self._check_currency(other)
        return self.minor_units <= other.minor_units

    def __gt__(self, other: "Money") -> bool:
        self._check_currency(other)
        return self.minor_units > other.minor_units

    def __ge__(self, other: "Money") -> bool:
        self._check_currency(other)
        return self.minor_units >= other.minor_units

    def is_negative(self) -> bool:
        return self.minor_units < 0

    def allocate(self, parts: int) -> List["Money"]:
        """
        Splits the amount into `parts` integer shares. The remainder of the
        integer division goes one minor unit at a time to the first shares,
        so the shares always add back up to the original amount.
        """
        if parts <= 0:
            raise ValidationError(f"Cannot allocate money into {parts} parts.")
        if self.minor_units < 0:
            raise ValidationError("Cannot allocate a negative amount.")
        base, remainder = divmod(self.minor_units, parts)
        return [Money(base + (1 if i < remainder else 0), self.currency) for i in range(parts)]

    def format(self) -> str:
        symbol = CURRENCY_SYMBOLS.get(self.currency, self.currency + " ")
        places = minor_unit_exponent(self.currency)
        value = self.to_decimal()
        sign = "-" if value < 0 else ""
        return f"{sign}{symbol}{abs(value):,.{places}f}"

    def __str__(self) -> str:
        return self.format()


def sum_money(amounts, currency: str = DEFAULT_CURRENCY) -> Money:
    total = Money.zero(currency)
    for amount in amounts:
        total = total + amount
    return total
