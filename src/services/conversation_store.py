"""Per-thread message history on top of a LangGraph key-value store.

Each thread is one store item under the ``("threads",)`` namespace whose value
is ``{"messages": [...]}`` in LangChain's ``messages_to_dict`` format.  The
store is append-only from the agent's point of view: ``append`` reads the
current list, concatenates and writes it back.

Two backends are supported:

* ``memory``  : ``InMemoryStore`` (default, lost on restart)
* ``postgres``: ``PostgresStore`` (requires the ``postgres`` extra and
  ``DATABASE_URL``)

Concurrent turns on the *same* thread are not serialised here; the caller is
expected to send one request per thread at a time.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from langchain_core.messages import BaseMessage, messages_from_dict, messages_to_dict
from langgraph.store.base import BaseStore
from langgraph.store.memory import InMemoryStore

from src.config import CONVERSATION_STORE_BACKEND, DATABASE_URL

logger = logging.getLogger(__name__)

THREADS_NAMESPACE = ("threads",)


class ConversationStore:
    """Load / append message history keyed by thread id."""

    def __init__(self, store: BaseStore | None = None, *, connection=None) -> None:
        self._store = store or InMemoryStore()
        self._connection = connection

    def _load_sync(self, thread_id: str) -> list[BaseMessage]:
        item = self._store.get(THREADS_NAMESPACE, thread_id)
        if item is None:
            return []
        return messages_from_dict(item.value.get("messages", []))

    def _append_sync(self, thread_id: str, messages: Sequence[BaseMessage]) -> None:
        item = self._store.get(THREADS_NAMESPACE, thread_id)
        stored = list(item.value.get("messages", [])) if item is not None else []
        stored.extend(messages_to_dict(list(messages)))
        self._store.put(THREADS_NAMESPACE, thread_id, {"messages": stored})
        logger.debug(
            "Thread %s: appended %d messages (total %d)", thread_id, len(messages), len(stored),
        )

    async def load(self, thread_id: str) -> list[BaseMessage]:
        """Return the thread's messages in insertion order (empty if unknown)."""
        return await asyncio.to_thread(self._load_sync, thread_id)

    async def append(self, thread_id: str, messages: Sequence[BaseMessage]) -> None:
        """Append *messages* to the thread, creating it on first use."""
        if not messages:
            return
        await asyncio.to_thread(self._append_sync, thread_id, messages)

    def close(self) -> None:
        if self._connection is not None:
            self._connection.close()
            self._connection = None


def create_conversation_store(
    backend: str | None = None,
    database_url: str | None = None,
) -> ConversationStore:
    """Build the conversation store selected by ``CONVERSATION_STORE_BACKEND``."""
    backend = (backend or CONVERSATION_STORE_BACKEND).lower()
    if backend == "memory":
        return ConversationStore(InMemoryStore())

    if backend == "postgres":
        url = database_url or DATABASE_URL
        if not url:
            raise ValueError("DATABASE_URL must be set when CONVERSATION_STORE_BACKEND=postgres")
        try:
            from langgraph.store.postgres import PostgresStore  # noqa: PLC0415
            from psycopg import Connection  # noqa: PLC0415
            from psycopg.rows import dict_row  # noqa: PLC0415
        except ImportError as exc:
            raise RuntimeError(
                "Postgres conversation store requested but its dependencies are missing. "
                'Install the postgres extra, e.g. `pip install ".[postgres]"`.'
            ) from exc

        conn = Connection.connect(url, autocommit=True, prepare_threshold=0, row_factory=dict_row)
        store = PostgresStore(conn)
        store.setup()
        logger.info("Conversation store: postgres")
        return ConversationStore(store, connection=conn)

    raise ValueError(f"Unknown conversation store backend: {backend!r}")
