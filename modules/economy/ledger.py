"""
Currency arithmetic over the four denominations.

Denominations are independent counters: nothing here borrows from or
converts between them except ``exchange_convert``, which is only used to
quote exchange offers.
"""

import math
from fractions import Fraction
from typing import Dict, Optional, Union

from core.errors import InsufficientFunds, InvalidCurrency
from core.models.currency import BankAccount, BankTransaction, Currency, CurrencyAmount

# 1 platinum = 100 gold = 10 000 silver = 1 000 000 copper
EXCHANGE_RATES: Dict[Currency, Dict[Currency, float]] = {
    Currency.PLATINUM: {Currency.PLATINUM: 1, Currency.GOLD: 100, Currency.SILVER: 10_000, Currency.COPPER: 1_000_000},
    Currency.GOLD: {Currency.PLATINUM: 0.01, Currency.GOLD: 1, Currency.SILVER: 100, Currency.COPPER: 10_000},
    Currency.SILVER: {Currency.PLATINUM: 0.0001, Currency.GOLD: 0.01, Currency.SILVER: 1, Currency.COPPER: 100},
    Currency.COPPER: {Currency.PLATINUM: 0.000001, Currency.GOLD: 0.0001, Currency.SILVER: 0.01, Currency.COPPER: 1},
}

EXCHANGE_PRECISION = 6

SHORT_NAMES = {
    Currency.PLATINUM: "pp",
    Currency.GOLD: "gp",
    Currency.SILVER: "sp",
    Currency.COPPER: "cp",
}


def parse_currency(key: Union[str, Currency]) -> Currency:
    if isinstance(key, Currency):
        return key
    try:
        return Currency(str(key).strip().lower())
    except ValueError:
        raise InvalidCurrency(str(key))


def add(a: CurrencyAmount, b: CurrencyAmount) -> CurrencyAmount:
    return CurrencyAmount(**{c.value: a.get(c) + b.get(c) for c in Currency})


def negate(amount: CurrencyAmount) -> CurrencyAmount:
    return scale(amount, -1)


def scale(amount: CurrencyAmount, factor: int) -> CurrencyAmount:
    return CurrencyAmount(**{c.value: amount.get(c) * factor for c in Currency})


def scale_ceil(amount: CurrencyAmount, ratio: Fraction) -> CurrencyAmount:
    """Multiply by an exact ratio, rounding each denomination up."""
    return CurrencyAmount(**{c.value: math.ceil(amount.get(c) * ratio) for c in Currency})


def apply_delta(balance: CurrencyAmount, delta: CurrencyAmount) -> CurrencyAmount:
    """Signed change to a balance. No denomination may end below zero."""
    result = add(balance, delta)
    short = [c.value for c, value in result.items() if value < 0]
    if short:
        raise InsufficientFunds(f"Insufficient funds: not enough {', '.join(short)}.")
    return result


def subtract(a: CurrencyAmount, b: CurrencyAmount) -> CurrencyAmount:
    return apply_delta(a, negate(b))


def is_affordable(balance: CurrencyAmount, price: CurrencyAmount) -> bool:
    """
    True if the balance covers every positive component of the price.
    Components <= 0 mean the seller pays and never block a purchase.
    """
    return all(balance.get(c) >= value for c, value in price.items() if value > 0)


def payout(price: CurrencyAmount) -> CurrencyAmount:
    """The part of a signed price the seller pays out (absolute value of negative components)."""
    return CurrencyAmount(**{c.value: -value if value < 0 else 0 for c, value in price.items()})


def post(account: BankAccount, delta: CurrencyAmount, reason: str) -> BankAccount:
    """Apply ``delta`` to the account in place and prepend a history entry."""
    new_balance = apply_delta(account, delta)
    for currency, value in new_balance.items():
        setattr(account, currency.value, value)
    account.history.insert(0, BankTransaction(reason=reason, amount=delta.balance()))
    return account


def exchange_convert(
        amount: Union[int, float],
        from_currency: Currency,
        to_currency: Currency,
        rates: Optional[Dict[Currency, Dict[Currency, float]]] = None,
) -> float:
    """Convert at the static rate, rounded to a fixed precision so repeated conversions do not drift."""
    rates = rates or EXCHANGE_RATES
    try:
        rate = rates[from_currency][to_currency]
    except KeyError:
        raise InvalidCurrency(f"{from_currency}->{to_currency}")
    return round(amount * rate, EXCHANGE_PRECISION)


def quote_exchange(amount: int, from_currency: Currency, to_currency: Currency) -> int:
    """Whole-coin amount suggested for an exchange offer (rounded down)."""
    return math.floor(exchange_convert(amount, from_currency, to_currency))


def format_amount(amount: CurrencyAmount) -> str:
    parts = [f"{value:,} {SHORT_NAMES[c]}" for c, value in amount.items() if value != 0]
    return " ".join(parts) if parts else "0"
