"""Tests for the ``item_lookup`` search policy."""

from __future__ import annotations

import json

import pytest

from src.services.inventory_store import SearchItem
from src.tools.inventory import (
    EMPTY_INVENTORY,
    SEARCH_FAILED,
    TOOL_NAME,
    InventoryLookup,
    ToolResult,
)


def _item(item_id: str, name: str, score: float | None = None) -> SearchItem:
    return SearchItem(
        item_id=item_id,
        item_name=name,
        item_description=f"{name} description",
        categories=["sofa"],
        score=score,
    )


class TestLookup:
    @pytest.mark.asyncio
    async def test_empty_inventory_skips_search(self, inventory):
        inventory.count.return_value = 0

        result = await InventoryLookup(inventory).lookup("blue sofa")

        assert result.error == EMPTY_INVENTORY
        assert result.count == 0
        assert result.results == []
        inventory.similarity_search.assert_not_called()
        inventory.text_search.assert_not_called()

    @pytest.mark.asyncio
    async def test_vector_results_returned_as_is(self, inventory):
        items = [_item("SOF-001", "Harbor Sofa", 0.91), _item("SOF-002", "Lagoon Loveseat", 0.84)]
        inventory.similarity_search.return_value = items

        result = await InventoryLookup(inventory).lookup("blue sofa", n=5)

        assert result.search_type == "vector"
        assert result.count == 2
        assert [r.item_id for r in result.results] == ["SOF-001", "SOF-002"]
        inventory.similarity_search.assert_called_once_with("blue sofa", 5)
        inventory.text_search.assert_not_called()

    @pytest.mark.asyncio
    async def test_falls_back_to_text_search_on_zero_vector_hits(self, inventory):
        inventory.text_search.return_value = [_item("SOF-003", "Canyon Sectional")]

        result = await InventoryLookup(inventory).lookup("sectional", n=3)

        assert result.search_type == "text"
        assert result.count == 1
        assert result.error is None
        inventory.text_search.assert_called_once_with("sectional", 3)

    @pytest.mark.asyncio
    async def test_low_scores_do_not_trigger_fallback(self, inventory):
        inventory.similarity_search.return_value = [_item("SOF-001", "Harbor Sofa", 0.01)]

        result = await InventoryLookup(inventory).lookup("anything")

        assert result.search_type == "vector"
        inventory.text_search.assert_not_called()

    @pytest.mark.asyncio
    async def test_no_results_anywhere(self, inventory):
        result = await InventoryLookup(inventory).lookup("spaceship")

        assert result.search_type == "text"
        assert result.count == 0
        assert result.error is None
        assert result.message

    @pytest.mark.asyncio
    async def test_provider_failure_becomes_error_result(self, inventory):
        inventory.similarity_search.side_effect = ConnectionError("chroma down")

        result = await InventoryLookup(inventory).lookup("sofa")

        assert result.error == SEARCH_FAILED
        assert "chroma down" in result.details
        assert result.count == 0

    @pytest.mark.asyncio
    async def test_count_failure_becomes_error_result(self, inventory):
        inventory.count.side_effect = RuntimeError("bad query")

        result = await InventoryLookup(inventory).lookup("sofa")

        assert result.error == SEARCH_FAILED

    @pytest.mark.asyncio
    @pytest.mark.parametrize("vector_hits", [0, 1, 4])
    async def test_count_matches_results(self, inventory, vector_hits):
        inventory.similarity_search.return_value = [
            _item(f"X-{i}", f"Item {i}", 0.5) for i in range(vector_hits)
        ]
        inventory.text_search.return_value = [_item("T-1", "Text hit")]

        result = await InventoryLookup(inventory).lookup("item")

        assert result.search_type in ("vector", "text")
        assert result.count == len(result.results)


class TestToolResultSerialisation:
    def test_uses_camel_case_search_type_and_drops_nulls(self):
        payload = json.loads(
            ToolResult(query="sofa", results=[_item("A", "A")], count=1, search_type="text").to_content()
        )
        assert payload["searchType"] == "text"
        assert "error" not in payload
        assert "score" not in payload["results"][0]


class TestAsTool:
    def test_tool_metadata(self, inventory):
        tool = InventoryLookup(inventory).as_tool()
        assert tool.name == TOOL_NAME
        assert set(tool.args) == {"query", "n"}

    @pytest.mark.asyncio
    async def test_default_result_count_is_ten(self, inventory):
        inventory.similarity_search.return_value = [_item("SOF-001", "Harbor Sofa", 0.9)]
        tool = InventoryLookup(inventory).as_tool()

        content = await tool.ainvoke({"query": "sofa"})

        inventory.similarity_search.assert_called_once_with("sofa", 10)
        payload = json.loads(content)
        assert payload["searchType"] == "vector"
        assert payload["count"] == 1
        assert payload["results"][0]["item_name"] == "Harbor Sofa"

    @pytest.mark.asyncio
    async def test_large_result_count_still_searches(self, inventory):
        inventory.similarity_search.return_value = [_item("SOF-001", "Harbor Sofa", 0.9)]
        tool = InventoryLookup(inventory).as_tool()

        content = await tool.ainvoke({"query": "sofa", "n": 100})

        inventory.similarity_search.assert_called_once_with("sofa", 100)
        payload = json.loads(content)
        assert payload["searchType"] == "vector"
        assert "error" not in payload
