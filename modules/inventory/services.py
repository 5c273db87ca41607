from typing import Dict, List, Optional

from core.errors import InsufficientQuantity, InvalidQuantity
from core.models.user import InventoryItem

Inventory = Dict[str, List[InventoryItem]]

INGREDIENTS = "ingredients"
POTIONS = "potions"
DOCUMENTS = "documents"
OTHER = "other"


def find_stack(inventory: Inventory, category: str, item_id: str) -> Optional[InventoryItem]:
    """Locate the stack for ``item_id`` within a category, or None."""
    for stack in inventory.get(category, []):
        if stack.id == item_id:
            return stack
    return None


def total_quantity(inventory: Inventory, category: str, item_id: str) -> int:
    stack = find_stack(inventory, category, item_id)
    return stack.quantity if stack else 0


def add_to_stack(inventory: Inventory, category: str, item: InventoryItem, qty: int) -> InventoryItem:
    """Merge ``qty`` into the stack with the same id, or append a new stack."""
    if qty < 1:
        raise InvalidQuantity("Quantity must be at least 1.")

    stack = find_stack(inventory, category, item.id)
    if stack:
        stack.quantity += qty
        return stack

    stack = item.model_copy(update={"quantity": qty}, deep=True)
    inventory.setdefault(category, []).append(stack)
    return stack


def remove_from_stack(inventory: Inventory, category: str, item_id: str, qty: int) -> int:
    """Take ``qty`` off a stack, dropping the stack once empty. Returns what is left."""
    if qty < 1:
        raise InvalidQuantity("Quantity must be at least 1.")

    stack = find_stack(inventory, category, item_id)
    available = stack.quantity if stack else 0
    if available < qty:
        raise InsufficientQuantity(item_id, qty, available)

    stack.quantity -= qty
    if stack.quantity == 0:
        inventory[category] = [s for s in inventory[category] if s.id != item_id]
    return stack.quantity


def owns_item(inventory: Inventory, item_id: str, name: str = None) -> bool:
    """Whether any category holds a non-empty stack with this id (or name)."""
    for stacks in inventory.values():
        for stack in stacks:
            if stack.quantity > 0 and (stack.id == item_id or (name is not None and stack.name == name)):
                return True
    return False


def prune_empty(inventory: Inventory) -> Inventory:
    for category, stacks in inventory.items():
        inventory[category] = [s for s in stacks if s.quantity > 0]
    return inventory
