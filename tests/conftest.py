import os
import tempfile

# Settings are read at import time
os.environ.setdefault("DISCORD_TOKEN", "test-token")
os.environ.setdefault("MONGO_URI", "mongodb://localhost:27017")
os.environ.setdefault("OWNER_ID", "1")
os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("RETRY_BACKOFF", "0")
os.environ.setdefault("LOG_FILE", os.path.join(tempfile.gettempdir(), "rp-economy-tests.log"))

import pytest

from core.database import Database, SHOPS, USERS
from core.models.currency import BankAccount
from core.models.user import Character, InventoryItem, User
from core.stores import MemoryDocumentStore
from modules.shop.models import Shop


@pytest.fixture
def store():
    store = MemoryDocumentStore()
    Database.use_store(store)
    yield store
    Database.use_store(None)


@pytest.fixture
def make_character():
    def _make(character_id="char-1", name="Mira", race="human", bank=None, **inventory):
        """Inventory as ``category=[(item_id, qty), ...]``."""
        return Character(
            id=character_id,
            name=name,
            race=race,
            bank_account=BankAccount(**(bank or {})),
            inventory={
                category: [InventoryItem(id=item_id, name=item_id, quantity=qty) for item_id, qty in stacks]
                for category, stacks in inventory.items()
            },
        )
    return _make


@pytest.fixture
def add_user(store):
    async def _add(user_id="user-1", *characters, name="Player"):
        user = User(_id=user_id, name=name, characters=list(characters))
        await store.put(USERS, user.id, user.to_mongo())
        return user
    return _add


@pytest.fixture
def get_user(store):
    async def _get(user_id="user-1") -> User:
        snapshot = await store.read(USERS, user_id)
        return User(**snapshot.data)
    return _get


@pytest.fixture
def add_shop(store):
    async def _add(shop: Shop) -> Shop:
        await store.put(SHOPS, shop.id, shop.to_mongo())
        return shop
    return _add


@pytest.fixture
def get_shop(store):
    async def _get(shop_id) -> Shop:
        snapshot = await store.read(SHOPS, shop_id)
        return Shop(**snapshot.data)
    return _get
