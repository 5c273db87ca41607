from enum import Enum
from typing import Iterator, List, Tuple

from pydantic import BaseModel, Field

from core.models.base import new_id, utcnow


class Currency(str, Enum):
    """The four independent denominations. There is no implicit conversion between them."""
    PLATINUM = "platinum"
    GOLD = "gold"
    SILVER = "silver"
    COPPER = "copper"


class CurrencyAmount(BaseModel):
    """Signed per-denomination counters. Persisted balances keep every field >= 0."""
    platinum: int = 0
    gold: int = 0
    silver: int = 0
    copper: int = 0

    @classmethod
    def of(cls, currency: Currency, value: int) -> "CurrencyAmount":
        return cls(**{currency.value: value})

    def get(self, currency: Currency) -> int:
        return getattr(self, currency.value)

    def items(self) -> Iterator[Tuple[Currency, int]]:
        for currency in Currency:
            yield currency, self.get(currency)

    def is_zero(self) -> bool:
        return all(value == 0 for _, value in self.items())

    def balance(self) -> "CurrencyAmount":
        """Plain amount copy, dropping anything a subclass carries."""
        return CurrencyAmount(**{c.value: v for c, v in self.items()})


class BankTransaction(BaseModel):
    id: str = Field(default_factory=lambda: f"txn-{new_id()}")
    date: str = Field(default_factory=lambda: utcnow().isoformat())
    reason: str
    amount: CurrencyAmount


class BankAccount(CurrencyAmount):
    """A balance plus its posting history, newest entry first."""
    history: List[BankTransaction] = Field(default_factory=list)
