"""
Health check HTTP server (FastAPI), served by uvicorn inside the bot's event
loop so a hosting platform's keep-alive probe has something to hit.
"""

from __future__ import annotations

import contextlib

import uvicorn
from fastapi import FastAPI
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

import config
from app.session_store import SessionStore
from logger import setup_logger


logger = setup_logger(__name__, config.LOG_FILE, config.LOG_LEVEL)


class HealthResponse(BaseModel):
    ok: bool
    sessions: int = 0


def create_app(store: SessionStore) -> FastAPI:
    app = FastAPI(title="Catan Score Bot", version="1.0.0")

    @app.get("/", response_class=PlainTextResponse)
    def root() -> str:
        return "Catan Bot is running!"

    @app.get("/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        return HealthResponse(ok=True, sessions=store.active_count())

    return app


class EmbeddedServer(uvicorn.Server):
    """uvicorn without its own signal handling; discord.py owns shutdown."""

    @contextlib.contextmanager
    def capture_signals(self):
        yield

    def install_signal_handlers(self) -> None:
        pass


async def serve(app: FastAPI, host: str, port: int) -> None:
    server = EmbeddedServer(uvicorn.Config(app, host=host, port=port, log_level="warning"))
    logger.info(f"Health check server running on port {port}")
    await server.serve()
