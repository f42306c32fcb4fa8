"""``item_lookup``: the inventory search tool exposed to the model.

Search policy:
  1. Empty collection → ``error="EmptyInventory"``, no search attempted.
  2. Semantic similarity search for up to ``n`` items → ``searchType="vector"``.
  3. Only if that returns nothing, a case-insensitive substring match over
     name / description / categories → ``searchType="text"``.

Provider failures never escape: they come back as ``error="SearchFailed"`` so
the model can apologise instead of the whole turn failing.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Literal

from langchain_core.tools import StructuredTool
from pydantic import BaseModel, ConfigDict, Field

from src.services.inventory_store import ChromaInventoryStore, SearchItem
from src.services.metrics import metrics

logger = logging.getLogger(__name__)

TOOL_NAME = "item_lookup"
DEFAULT_RESULTS = 10

EMPTY_INVENTORY = "EmptyInventory"
SEARCH_FAILED = "SearchFailed"


class ItemLookupInput(BaseModel):
    """Arguments the model may pass to ``item_lookup``."""

    query: str = Field(..., min_length=1, description="The search query")
    n: int = Field(DEFAULT_RESULTS, ge=1, description="Number of results to return")


class ToolResult(BaseModel):
    """Payload serialised into the tool message content."""

    model_config = ConfigDict(populate_by_name=True)

    query: str
    results: list[SearchItem] = Field(default_factory=list)
    count: int = 0
    search_type: Literal["vector", "text"] | None = Field(default=None, alias="searchType")
    error: str | None = None
    message: str | None = None
    details: str | None = None

    def to_content(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)


class InventoryLookup:
    """Runs the vector-then-text search policy against an inventory store."""

    def __init__(self, store: ChromaInventoryStore) -> None:
        self._store = store

    async def lookup(self, query: str, n: int = DEFAULT_RESULTS) -> ToolResult:
        try:
            result = await self._search(query, n)
        except Exception as exc:
            logger.exception("Inventory lookup failed for query %r", query)
            result = ToolResult(
                query=query,
                error=SEARCH_FAILED,
                message="Failed to search inventory",
                details=str(exc),
            )

        logger.info(
            "tool_call tool=%s query=%r n=%d search_type=%s count=%d error=%s",
            TOOL_NAME, query, n, result.search_type, result.count, result.error,
        )
        metrics.record_tool_call(TOOL_NAME, result.count, result.search_type, result.error)
        return result

    async def _search(self, query: str, n: int) -> ToolResult:
        total = await asyncio.to_thread(self._store.count)
        if total == 0:
            return ToolResult(
                query=query,
                error=EMPTY_INVENTORY,
                message="The inventory database appears to be empty",
            )

        with metrics.timed("chroma", "similarity_search"):
            items = await asyncio.to_thread(self._store.similarity_search, query, n)
        if items:
            return ToolResult(query=query, results=items, count=len(items), search_type="vector")

        logger.info("Vector search returned no results for %r, trying text search", query)
        with metrics.timed("chroma", "text_search"):
            items = await asyncio.to_thread(self._store.text_search, query, n)
        result = ToolResult(query=query, results=items, count=len(items), search_type="text")
        if not items:
            result.message = "No matching items found"
        return result

    def as_tool(self) -> StructuredTool:
        """Wrap :meth:`lookup` as a LangChain tool returning JSON text."""

        async def item_lookup(query: str, n: int = DEFAULT_RESULTS) -> str:
            return (await self.lookup(query, n)).to_content()

        return StructuredTool.from_function(
            coroutine=item_lookup,
            name=TOOL_NAME,
            description=(
                "Gathers furniture item details from the inventory database. "
                "Use it whenever the customer asks about furniture items."
            ),
            args_schema=ItemLookupInput,
        )
