"""Tests for inventory seeding."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from src.seed import load_items, seed_inventory

_SAMPLE = Path(__file__).resolve().parent.parent / "data" / "inventory.json"


@pytest.fixture
def inventory_file(tmp_path):
    path = tmp_path / "inventory.json"
    path.write_text(json.dumps({
        "items": [
            {"item_id": "A", "item_name": "Blue Sofa", "categories": ["sofa"], "price": 10},
            {"item_id": "B", "item_description": "missing a name"},
            {"item_id": "C", "item_name": "Oak Table"},
        ]
    }))
    return path


@pytest.fixture
def store():
    s = MagicMock()
    s.count.return_value = 0
    s.upsert_items.side_effect = lambda items: len(items)
    return s


class TestLoadItems:
    def test_invalid_items_skipped(self, inventory_file):
        items = load_items(inventory_file)
        assert [i.item_id for i in items] == ["A", "C"]

    def test_shipped_sample_inventory_is_valid(self):
        items = load_items(_SAMPLE)
        assert len(items) == 10
        assert sum("blue" in i.categories for i in items) == 2


class TestSeedInventory:
    def test_seeds_empty_collection(self, store, inventory_file):
        assert seed_inventory(store, inventory_file) == 2
        store.clear.assert_not_called()

    def test_populated_collection_left_alone(self, store, inventory_file):
        store.count.return_value = 5
        assert seed_inventory(store, inventory_file) == 0
        store.upsert_items.assert_not_called()

    def test_force_clears_first(self, store, inventory_file):
        store.count.return_value = 5
        assert seed_inventory(store, inventory_file, force=True) == 2
        store.clear.assert_called_once()
