"""Centralized configuration for the inventory chat agent.

Secret resolution order (per variable):
  1. Environment variable / ``.env`` file  (local dev)
  2. AWS SSM Parameter Store SecureString  (when ``AWS_EXECUTION_ENV`` is set)

SSM paths follow the convention ``/inventory-chat-agent/<VARIABLE_NAME>``.
"""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

_SSM_PREFIX = "/inventory-chat-agent"
_ON_AWS = bool(os.getenv("AWS_EXECUTION_ENV"))


# ── Secret resolution ────────────────────────────────────────────────

def _get_ssm_parameter(name: str) -> str | None:
    """Fetch a SecureString from SSM, or ``None`` when it can't be read."""
    try:
        import boto3  # noqa: PLC0415  (only needed on AWS)

        ssm = boto3.client("ssm")
        resp = ssm.get_parameter(Name=f"{_SSM_PREFIX}/{name}", WithDecryption=True)
        return resp["Parameter"]["Value"]
    except Exception:
        logger.debug("SSM lookup for %s failed", name)
        return None


def _require_env(name: str) -> str:
    """Return a config value from env-var or SSM, or raise a clear error."""
    value = os.getenv(name)
    if value and not value.startswith("your_"):
        return value

    if _ON_AWS:
        ssm_value = _get_ssm_parameter(name)
        if ssm_value:
            return ssm_value

    raise OSError(
        f"Missing required configuration: {name}. "
        f"Set it in .env (local) or SSM Parameter Store {_SSM_PREFIX}/{name} (AWS)."
    )


# ── LLM ─────────────────────────────────────────────────────────────
def anthropic_api_key() -> str:
    """Resolved on first use so the seeding CLI runs without model credentials."""
    return _require_env("ANTHROPIC_API_KEY")


MODEL_NAME: str = os.getenv("MODEL_NAME", "claude-sonnet-4-5")
MODEL_TEMPERATURE: float = float(os.getenv("MODEL_TEMPERATURE", "0"))

# ── Agent loop / retries ────────────────────────────────────────────
AGENT_MAX_CYCLES: int = int(os.getenv("AGENT_MAX_CYCLES", "15"))
LLM_MAX_ATTEMPTS: int = int(os.getenv("LLM_MAX_ATTEMPTS", "3"))
RETRY_BASE_DELAY_SECONDS: float = float(os.getenv("RETRY_BASE_DELAY_SECONDS", "1.0"))
RETRY_MAX_DELAY_SECONDS: float = float(os.getenv("RETRY_MAX_DELAY_SECONDS", "30.0"))

# ── Inventory (ChromaDB) ────────────────────────────────────────────
CHROMA_PERSIST_DIR: str = os.getenv("CHROMA_PERSIST_DIR", "./chroma_data")
INVENTORY_COLLECTION: str = os.getenv("INVENTORY_COLLECTION", "items")
INVENTORY_SEED_PATH: str = os.getenv("INVENTORY_SEED_PATH", "data/inventory.json")

# ── Conversation store ──────────────────────────────────────────────
CONVERSATION_STORE_BACKEND: str = os.getenv("CONVERSATION_STORE_BACKEND", "memory").lower()
DATABASE_URL: str | None = os.getenv("DATABASE_URL")

# ── Server ──────────────────────────────────────────────────────────
SERVER_HOST: str = os.getenv("SERVER_HOST", "0.0.0.0")
SERVER_PORT: int = int(os.getenv("SERVER_PORT", "8000"))
CORS_ORIGINS: list[str] = os.getenv(
    "CORS_ORIGINS",
    "http://localhost:3000,http://localhost:5173",
).split(",")
