"""Domain primitives that enforce validity at creation time."""

from dataclasses import dataclass
from typing import Self
from uuid import UUID

# Currencies whose smallest unit is the whole unit.
ZERO_DECIMAL_CURRENCIES = frozenset(
    {"BIF", "CLP", "DJF", "GNF", "JPY", "KMF", "KRW", "MGA", "PYG", "RWF", "UGX", "VND", "VUV", "XAF", "XOF", "XPF"}
)


@dataclass(frozen=True)
class EventId:
    """Unique identifier for an Event."""

    value: UUID

    @classmethod
    def from_string(cls, value: str) -> Self:
        return cls(value=UUID(str(value)))

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class Money:
    """Amount in the currency's smallest unit.

    JPY has no minor unit, so 3000 means 3000 yen; USD 3000 means $30.00.
    """

    amount: int
    currency: str

    def __post_init__(self) -> None:
        if isinstance(self.amount, bool) or not isinstance(self.amount, int):
            raise ValueError("Money amount must be an integer in minor units")
        if self.amount < 0:
            raise ValueError("Money amount cannot be negative")
        if not self.currency or len(self.currency) != 3:
            raise ValueError("Currency must be a 3-letter ISO code")
        object.__setattr__(self, "currency", self.currency.upper())

    @property
    def is_zero(self) -> bool:
        return self.amount == 0

    @property
    def is_zero_decimal(self) -> bool:
        return self.currency in ZERO_DECIMAL_CURRENCIES

    def __str__(self) -> str:
        return f"{self.amount} {self.currency}"


@dataclass(frozen=True)
class Capacity:
    """Maximum participants; ``None`` means unlimited."""

    limit: int | None

    def __post_init__(self) -> None:
        if self.limit is not None and self.limit < 0:
            raise ValueError("Capacity cannot be negative")

    @property
    def unlimited(self) -> bool:
        return self.limit is None

    def has_room(self, attending: int) -> bool:
        return self.limit is None or attending < self.limit
