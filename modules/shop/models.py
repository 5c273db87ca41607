from typing import List, Optional

from pydantic import BaseModel, Field

from core.models.base import MongoModel, new_id
from core.models.currency import BankAccount, CurrencyAmount

UNLIMITED = -1


class ShopItem(BaseModel):
    id: str = Field(default_factory=new_id)
    name: str = Field(min_length=1, max_length=100)
    description: str = Field(default="")
    image: Optional[str] = Field(default=None, description="Optional image to show in embed")

    # Pricing. A negative component means the shop pays the buyer.
    price: CurrencyAmount = Field(default_factory=CurrencyAmount)

    # Stock. None or -1 is unlimited, 0 is sold out.
    quantity: Optional[int] = Field(default=None, ge=UNLIMITED)
    restock_quantity: int = Field(default=10, ge=1, description="Stock after a restock")
    purchase_count: int = Field(default=0, ge=0)

    # Where the item lands in the buyer's inventory
    inventory_tag: Optional[str] = None

    # Gating
    is_hidden: bool = False
    is_single_purchase: bool = False
    excluded_races: List[str] = Field(default_factory=list)
    required_document: Optional[str] = None

    @property
    def is_unlimited(self) -> bool:
        return self.quantity is None or self.quantity == UNLIMITED


class Shop(MongoModel):
    title: str = Field(min_length=1, max_length=100)
    description: str = Field(default="")
    image: Optional[str] = None

    owner_user_id: Optional[str] = None
    owner_character_id: Optional[str] = None
    owner_character_name: Optional[str] = None

    # The till
    bank_account: BankAccount = Field(default_factory=BankAccount)
    items: List[ShopItem] = Field(default_factory=list)
    default_item_category: Optional[str] = None
    purchase_count: int = Field(default=0, ge=0)

    def get_item(self, item_id: str) -> Optional[ShopItem]:
        for item in self.items:
            if item.id == item_id:
                return item
        return None
