"""ChromaDB-backed inventory store.

Each inventory item is one Chroma record:

* ``id``       : the item id
* ``document`` : the text that gets embedded (name, description, categories)
* ``metadata`` : ``item_name``, ``item_description``, ``categories`` (comma
  joined, Chroma metadata can't hold lists) and optional ``price``

Semantic ranking and scoring are owned by Chroma; this class only converts
its column-oriented results into :class:`SearchItem` records.
"""

from __future__ import annotations

import logging
from typing import Any

import chromadb
from chromadb.config import Settings
from pydantic import BaseModel, Field

from src.config import CHROMA_PERSIST_DIR, INVENTORY_COLLECTION

logger = logging.getLogger(__name__)

_COLLECTION_METADATA = {"hnsw:space": "cosine"}


class InventoryItem(BaseModel):
    """One furniture item as stored in the inventory."""

    item_id: str = Field(..., min_length=1)
    item_name: str = Field(..., min_length=1)
    item_description: str = ""
    categories: list[str] = Field(default_factory=list)
    price: float | None = Field(default=None, ge=0)

    def embedding_text(self) -> str:
        parts = [self.item_name, self.item_description]
        if self.categories:
            parts.append("Categories: " + ", ".join(self.categories))
        return "\n".join(p for p in parts if p)


class SearchItem(InventoryItem):
    """An inventory item returned by a search.  ``score`` is set for vector hits."""

    score: float | None = None


def _to_metadata(item: InventoryItem) -> dict[str, Any]:
    metadata: dict[str, Any] = {
        "item_name": item.item_name,
        "item_description": item.item_description,
        "categories": ", ".join(item.categories),
    }
    if item.price is not None:
        metadata["price"] = item.price
    return metadata


def _from_record(item_id: str, metadata: dict[str, Any] | None, score: float | None = None) -> SearchItem:
    metadata = metadata or {}
    raw_categories = metadata.get("categories") or ""
    return SearchItem(
        item_id=item_id,
        item_name=metadata.get("item_name") or item_id,
        item_description=metadata.get("item_description") or "",
        categories=[c.strip() for c in raw_categories.split(",") if c.strip()],
        price=metadata.get("price"),
        score=score,
    )


class ChromaInventoryStore:
    """Inventory search provider over a single Chroma collection."""

    def __init__(self, collection, client=None) -> None:
        self._collection = collection
        self._client = client

    @classmethod
    def from_settings(
        cls,
        persist_directory: str | None = None,
        collection_name: str | None = None,
        *,
        embedding_function=None,
    ) -> ChromaInventoryStore:
        """Open (or create) the persistent inventory collection.

        When *embedding_function* is ``None`` Chroma's default local
        embedding model is used.
        """
        client = chromadb.PersistentClient(
            path=persist_directory or CHROMA_PERSIST_DIR,
            settings=Settings(anonymized_telemetry=False),
        )
        kwargs: dict[str, Any] = {"metadata": _COLLECTION_METADATA}
        if embedding_function is not None:
            kwargs["embedding_function"] = embedding_function
        collection = client.get_or_create_collection(
            name=collection_name or INVENTORY_COLLECTION, **kwargs,
        )
        return cls(collection, client)

    # ── Queries ──────────────────────────────────────────────────────

    def count(self) -> int:
        return self._collection.count()

    def similarity_search(self, query: str, n: int) -> list[SearchItem]:
        """Top-*n* semantic matches, best first, with ``score = 1 - distance``."""
        results = self._collection.query(
            query_texts=[query],
            n_results=n,
            include=["metadatas", "distances"],
        )
        ids = (results.get("ids") or [[]])[0]
        metadatas = (results.get("metadatas") or [[]])[0] or []
        distances = (results.get("distances") or [[]])[0] or []

        items = []
        for i, item_id in enumerate(ids):
            metadata = metadatas[i] if i < len(metadatas) else None
            score = 1 - distances[i] if i < len(distances) else None
            items.append(_from_record(item_id, metadata, score))
        return items

    def text_search(self, query: str, n: int) -> list[SearchItem]:
        """Case-insensitive literal substring match over the item's text fields."""
        needle = query.strip().lower()
        if not needle:
            return []

        records = self._collection.get(include=["documents", "metadatas"])
        ids = records.get("ids") or []
        documents = records.get("documents") or []
        metadatas = records.get("metadatas") or []

        matches: list[SearchItem] = []
        for i, item_id in enumerate(ids):
            metadata = (metadatas[i] if i < len(metadatas) else None) or {}
            document = (documents[i] if i < len(documents) else None) or ""
            haystacks = (
                metadata.get("item_name") or "",
                metadata.get("item_description") or "",
                metadata.get("categories") or "",
                document,
            )
            if any(needle in h.lower() for h in haystacks):
                matches.append(_from_record(item_id, metadata))
                if len(matches) >= n:
                    break
        return matches

    # ── Writes ───────────────────────────────────────────────────────

    def upsert_items(self, items: list[InventoryItem]) -> int:
        if not items:
            return 0
        self._collection.upsert(
            ids=[item.item_id for item in items],
            documents=[item.embedding_text() for item in items],
            metadatas=[_to_metadata(item) for item in items],
        )
        logger.info("Upserted %d inventory items", len(items))
        return len(items)

    def clear(self) -> None:
        """Delete every record in the collection."""
        existing = self._collection.get(include=[]).get("ids") or []
        if existing:
            self._collection.delete(ids=existing)
        logger.info("Cleared %d inventory items", len(existing))
