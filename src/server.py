"""HTTP entry point: the chat widget talks to this app.

    uvicorn src.server:app --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

import logging
import uuid
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from src.agent import create_inventory_agent
from src.api.routes import router
from src.config import CORS_ORIGINS, SERVER_HOST, SERVER_PORT

SERVICE_NAME = "Inventory Chat Agent"
VERSION = "1.0.0"

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(application: FastAPI):
    agent = create_inventory_agent()
    application.state.agent = agent
    logger.info("%s %s accepting chat turns", SERVICE_NAME, VERSION)
    try:
        yield
    finally:
        agent.conversations.close()
        logger.info("Conversation store closed")


app = FastAPI(
    title=SERVICE_NAME,
    description="Furniture store assistant that answers from the inventory database.",
    version=VERSION,
    lifespan=lifespan,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)
app.include_router(router, prefix="/api")


@app.middleware("http")
async def tag_request(request: Request, call_next) -> Response:
    """Echo or mint ``X-Request-ID`` so widget errors can be matched to logs."""
    rid = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    request.state.request_id = rid
    logger.info("[%s] %s %s", rid, request.method, request.url.path)
    response = await call_next(request)
    response.headers["X-Request-ID"] = rid
    return response


@app.get("/")
async def root():
    return {
        "service": SERVICE_NAME,
        "version": VERSION,
        "chat": "/api/chat",
        "health": "/api/health",
        "docs": "/docs",
    }


def main():
    logger.info("Serving %s on %s:%d", SERVICE_NAME, SERVER_HOST, SERVER_PORT)
    uvicorn.run("src.server:app", host=SERVER_HOST, port=SERVER_PORT)


if __name__ == "__main__":
    main()
