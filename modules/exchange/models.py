from pydantic import Field

from core.models.base import MongoModel
from core.models.currency import Currency, CurrencyAmount


class ExchangeRequest(MongoModel):
    """An open offer. The offered coins are already escrowed; the document is deleted on accept or cancel."""
    creator_user_id: str = Field(...)
    creator_name: str = Field(default="")
    creator_character_id: str = Field(...)
    creator_character_name: str = Field(default="")

    from_currency: Currency
    from_amount: int = Field(..., gt=0)
    to_currency: Currency
    to_amount: int = Field(..., gt=0)

    def offered(self) -> CurrencyAmount:
        return CurrencyAmount.of(self.from_currency, self.from_amount)

    def wanted(self) -> CurrencyAmount:
        return CurrencyAmount.of(self.to_currency, self.to_amount)
