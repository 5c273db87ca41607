import asyncio

from core.database import Database, SHOPS
from core.transactions import DocumentStore
from modules.alchemy.data import default_catalog
from modules.shop.data import SEED_SHOPS


async def seed_shops(store: DocumentStore) -> int:
    """Insert the demo shops that are not in the store yet. Returns how many were added."""
    existing = {doc["_id"] for doc in await store.list(SHOPS)}
    added = 0
    for shop in SEED_SHOPS:
        if shop.id in existing:
            print(f"Shop {shop.id} already exists. Skipping.")
            continue
        await store.put(SHOPS, shop.id, shop.to_mongo())
        added += 1
    return added


async def seed():
    print("Connecting to DB...")
    await Database.connect()

    duplicates = default_catalog().duplicate_component_sets()
    if duplicates:
        print(f"Warning: recipes with identical ingredients, only the first of each is brewable: {duplicates}")

    print("Seeding Shops...")
    added = await seed_shops(Database.store())

    print(f"Seeding Complete! Added {added} shop(s).")
    await Database.close()

if __name__ == "__main__":
    asyncio.run(seed())
