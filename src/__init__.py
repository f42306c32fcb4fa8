"""Inventory Chat Agent: a furniture store customer-support assistant.

Architecture Overview
=====================

A chat widget posts user messages to a FastAPI backend.  Each message is one
*turn* of :class:`~src.agent.InventoryAgent`:

1. Load the thread's history from the conversation store.
2. Ask the Anthropic model (tools bound) for the next action.
3. If the model requests ``item_lookup``, search the inventory and feed the
   JSON result back; repeat until the model answers or the cycle bound is hit.
4. Persist the turn's messages and return the reply with the thread id.

Key Design Decisions
--------------------
- **Explicit loop**: the tool/answer cycle is a plain ``async`` loop over a
  message accumulator, with the model response classified as
  ``FinalAnswer`` or ``ToolCalls``.
- **Inventory search**: ChromaDB similarity search first; a case-insensitive
  substring search only when the vector search returns nothing.
- **Resilience**: model calls are retried with exponential backoff on rate
  limits only.  Tool failures become structured tool results, never
  exceptions.
- **Memory**: per-thread history lives in a LangGraph store (in-memory by
  default, Postgres optionally).

Package Structure
-----------------
- ``src/agent.py``: agent loop and assembly
- ``src/errors.py``: error taxonomy and provider error translation
- ``src/config.py``: configuration from environment variables
- ``src/prompts.py``: system prompt
- ``src/server.py``: FastAPI application
- ``src/main.py``: CLI chat interface
- ``src/seed.py``: inventory seeding CLI
- ``src/services/``: inventory store, conversation store, retry, metrics
- ``src/tools/``: the ``item_lookup`` LangChain tool
- ``src/api/``: FastAPI routes and Pydantic schemas
"""
