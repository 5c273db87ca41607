"""Error taxonomy for the economy core.

Every failure raised by a service is a ``GameError`` subclass. The ``code``
class attribute is the wire-level status returned by the callable layer and
the message is shown to the player as-is.
"""

class GameError(Exception):
    """Base error for all economy operations."""
    code = "internal"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


# --- Taxonomy ---

class Unauthenticated(GameError):
    code = "unauthenticated"

    def __init__(self, message: str = "The function must be called while authenticated."):
        super().__init__(message)


class PermissionDenied(GameError):
    code = "permission-denied"


class InvalidArgument(GameError):
    code = "invalid-argument"


class NotFound(GameError):
    code = "not-found"


class FailedPrecondition(GameError):
    code = "failed-precondition"


class Internal(GameError):
    code = "internal"


# --- Invalid arguments ---

class InvalidCurrency(InvalidArgument):
    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Unknown currency '{key}'.")


class InvalidQuantity(InvalidArgument):
    pass


# --- Missing entities ---

class UserNotFound(NotFound):
    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__("User not found.")


class CharacterNotFound(NotFound):
    def __init__(self, character_id: str):
        self.character_id = character_id
        super().__init__("Character not found.")


class ShopNotFound(NotFound):
    def __init__(self, shop_id: str):
        self.shop_id = shop_id
        super().__init__("Shop not found.")


class ItemNotFound(NotFound):
    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__("Item not found.")


class RequestNotFound(NotFound):
    def __init__(self, request_id: str):
        self.request_id = request_id
        super().__init__("Exchange request is no longer open.")


class RecipeNotFound(NotFound):
    def __init__(self):
        super().__init__("No recipe matches these ingredients.")


# --- Failed preconditions ---

class HeatOutOfRange(FailedPrecondition):
    def __init__(self, heat_level: int, min_heat: int, max_heat: int):
        self.heat_level = heat_level
        self.min_heat = min_heat
        self.max_heat = max_heat
        super().__init__(f"Heat level {heat_level} is outside the recipe range {min_heat}-{max_heat}.")


class InsufficientIngredient(FailedPrecondition):
    def __init__(self, ingredient_id: str, name: str = None):
        self.ingredient_id = ingredient_id
        super().__init__(f"Not enough of ingredient: {name or ingredient_id}")


class InsufficientQuantity(FailedPrecondition):
    def __init__(self, item_id: str, requested: int, available: int):
        self.item_id = item_id
        self.requested = requested
        self.available = available
        super().__init__(f"Cannot remove {requested} of '{item_id}', only {available} held.")


class InsufficientFunds(FailedPrecondition):
    def __init__(self, message: str = "Insufficient funds."):
        super().__init__(message)


class InsufficientTillFunds(FailedPrecondition):
    def __init__(self, message: str = "The shop till cannot cover this."):
        super().__init__(message)


class InsufficientStock(FailedPrecondition):
    def __init__(self, requested: int, available: int):
        self.requested = requested
        self.available = available
        super().__init__(f"Not enough stock: requested {requested}, {available} left.")


class AlreadyOwned(FailedPrecondition):
    def __init__(self, item_name: str):
        super().__init__(f"'{item_name}' can only be bought once and is already owned.")


class RaceExcluded(FailedPrecondition):
    def __init__(self, race: str):
        super().__init__(f"This item is not sold to the race '{race}'.")


class MissingDocument(FailedPrecondition):
    def __init__(self, document: str):
        self.document = document
        super().__init__(f"Purchase requires the document '{document}'.")


class NotRestockable(FailedPrecondition):
    def __init__(self):
        super().__init__("Only sold-out items can be restocked.")


class NothingToWithdraw(FailedPrecondition):
    def __init__(self):
        super().__init__("The shop till is empty.")


class ShopHasNoOwner(FailedPrecondition):
    def __init__(self):
        super().__init__("This shop has no owner character.")


# --- Internal ---

class CatalogError(Internal):
    pass
