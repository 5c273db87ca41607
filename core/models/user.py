from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from core.models.base import MongoModel, new_id
from core.models.currency import BankAccount


class InventoryItem(BaseModel):
    """One stack: an item id plus a quantity counter."""
    id: str
    name: str
    quantity: int = Field(default=1, ge=0)
    description: Optional[str] = None
    image: Optional[str] = None

    # Flags carried over from the shop listing
    is_hidden: bool = False
    is_single_purchase: bool = False
    required_document: Optional[str] = None
    excluded_races: List[str] = Field(default_factory=list)


class Character(BaseModel):
    id: str = Field(default_factory=new_id)
    name: str
    race: str = ""
    bank_account: BankAccount = Field(default_factory=BankAccount)
    inventory: Dict[str, List[InventoryItem]] = Field(default_factory=dict)


class User(MongoModel):
    """Owning aggregate. Characters are embedded and only change through a rewrite of this document."""
    name: str = Field(default="Unknown")
    characters: List[Character] = Field(default_factory=list)

    def get_character(self, character_id: str) -> Optional[Character]:
        for character in self.characters:
            if character.id == character_id:
                return character
        return None
