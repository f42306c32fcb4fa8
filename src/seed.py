"""Seed the inventory collection from a JSON file.

The file holds ``{"items": [...]}`` where each entry matches
:class:`~src.services.inventory_store.InventoryItem`.  Invalid entries are
skipped with a warning.

Usage:
    uv run python -m src.seed                       # data/inventory.json
    uv run python -m src.seed --path items.json --force
"""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from pydantic import ValidationError

from src.config import INVENTORY_SEED_PATH
from src.services.inventory_store import ChromaInventoryStore, InventoryItem

logger = logging.getLogger(__name__)


def load_items(path: str | Path) -> list[InventoryItem]:
    """Read and validate inventory items from *path*."""
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    items: list[InventoryItem] = []
    for raw in data.get("items", []):
        try:
            items.append(InventoryItem.model_validate(raw))
        except ValidationError as e:
            logger.warning("Skipping invalid item %s: %s", raw.get("item_id", "unknown"), e)
    return items


def seed_inventory(store: ChromaInventoryStore, path: str | Path, *, force: bool = False) -> int:
    """Load *path* into *store*.  Returns the number of items written.

    A populated collection is left untouched unless *force* is set, in
    which case it is cleared first.
    """
    existing = store.count()
    if existing and not force:
        logger.info("Inventory already holds %d items; use --force to rebuild", existing)
        return 0
    if force and existing:
        store.clear()

    items = load_items(path)
    logger.info("Loaded %d items from %s", len(items), path)
    return store.upsert_items(items)


def main():
    parser = argparse.ArgumentParser(description="Seed the inventory vector store")
    parser.add_argument("--path", default=INVENTORY_SEED_PATH, help="Inventory JSON file")
    parser.add_argument("--force", action="store_true", help="Clear and rebuild the collection")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    )
    written = seed_inventory(ChromaInventoryStore.from_settings(), args.path, force=args.force)
    print(f"Seeded {written} inventory items.")


if __name__ == "__main__":
    main()
