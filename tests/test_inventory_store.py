"""Tests for the ChromaDB inventory store (collection mocked)."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from src.services.inventory_store import ChromaInventoryStore, InventoryItem

_RECORDS = {
    "ids": ["SOF-001", "TBL-001", "SOF-002"],
    "documents": [
        "Harbor Sofa\nNavy velvet",
        "Oakridge Table\nWhite oak",
        "Lagoon Loveseat\nSky linen",
    ],
    "metadatas": [
        {"item_name": "Harbor Sofa", "item_description": "Navy velvet", "categories": "sofa, blue"},
        {"item_name": "Oakridge Table", "item_description": "White oak", "categories": "table"},
        {"item_name": "Lagoon Loveseat", "item_description": "Sky linen", "categories": "sofa, Blue", "price": 849.0},
    ],
}


@pytest.fixture
def collection():
    col = MagicMock()
    col.get.return_value = _RECORDS
    return col


class TestSimilaritySearch:
    def test_converts_distances_to_scores(self, collection):
        collection.query.return_value = {
            "ids": [["SOF-001", "SOF-002"]],
            "metadatas": [[_RECORDS["metadatas"][0], _RECORDS["metadatas"][2]]],
            "distances": [[0.1, 0.25]],
        }
        store = ChromaInventoryStore(collection)

        items = store.similarity_search("blue sofa", 5)

        collection.query.assert_called_once_with(
            query_texts=["blue sofa"],
            n_results=5,
            include=["metadatas", "distances"],
        )
        assert [i.item_id for i in items] == ["SOF-001", "SOF-002"]
        assert items[0].score == pytest.approx(0.9)
        assert items[1].score == pytest.approx(0.75)
        assert items[0].categories == ["sofa", "blue"]
        assert items[1].price == 849.0

    def test_empty_query_result(self, collection):
        collection.query.return_value = {"ids": [[]], "metadatas": [[]], "distances": [[]]}
        assert ChromaInventoryStore(collection).similarity_search("x", 3) == []


class TestTextSearch:
    def test_case_insensitive_across_fields(self, collection):
        items = ChromaInventoryStore(collection).text_search("BLUE", 10)
        assert [i.item_id for i in items] == ["SOF-001", "SOF-002"]
        assert all(i.score is None for i in items)

    def test_matches_description(self, collection):
        items = ChromaInventoryStore(collection).text_search("white oak", 10)
        assert [i.item_id for i in items] == ["TBL-001"]

    def test_respects_limit(self, collection):
        items = ChromaInventoryStore(collection).text_search("sofa", 1)
        assert len(items) == 1

    def test_query_is_literal_not_regex(self, collection):
        assert ChromaInventoryStore(collection).text_search(".*", 10) == []

    def test_blank_query_matches_nothing(self, collection):
        assert ChromaInventoryStore(collection).text_search("   ", 10) == []
        collection.get.assert_not_called()


class TestWrites:
    def test_count_delegates(self, collection):
        collection.count.return_value = 7
        assert ChromaInventoryStore(collection).count() == 7

    def test_upsert_flattens_categories_and_omits_missing_price(self, collection):
        items = [
            InventoryItem(item_id="A", item_name="Chair", categories=["chair", "dining room"]),
            InventoryItem(item_id="B", item_name="Bed", price=999.0),
        ]

        written = ChromaInventoryStore(collection).upsert_items(items)

        assert written == 2
        kwargs = collection.upsert.call_args.kwargs
        assert kwargs["ids"] == ["A", "B"]
        assert kwargs["metadatas"][0]["categories"] == "chair, dining room"
        assert "price" not in kwargs["metadatas"][0]
        assert kwargs["metadatas"][1]["price"] == 999.0
        assert "Categories: chair, dining room" in kwargs["documents"][0]

    def test_upsert_nothing(self, collection):
        assert ChromaInventoryStore(collection).upsert_items([]) == 0
        collection.upsert.assert_not_called()

    def test_clear_deletes_existing_ids(self, collection):
        collection.get.return_value = {"ids": ["A", "B"]}
        ChromaInventoryStore(collection).clear()
        collection.delete.assert_called_once_with(ids=["A", "B"])
