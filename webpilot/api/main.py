"""
FastAPI Application - Main entry point.
Provides the REST API for running browser agent goals.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Callable

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..core.config import settings
from ..core.logging_setup import configure_logging
from ..core.models import now_ms
from ..agents.orchestrator import BrowserAgent
from ..memory.history_store import HistoryStore

from .routes import agent


logger = logging.getLogger(__name__)

AgentFactory = Callable[[HistoryStore | None], Any]


def default_agent_factory(history_store: HistoryStore | None) -> BrowserAgent:
    """One agent (and so one policy guard) per request."""
    return BrowserAgent(history_store=history_store)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.
    Initializes and cleans up resources.
    """
    configure_logging(settings.log_level)

    history_store: HistoryStore | None = None
    if settings.memory_enabled:
        logger.info("Initializing history store at %s", settings.database_path)
        history_store = HistoryStore(settings.database_path)
        await history_store.initialize()

    app.state.history_store = history_store

    logger.info("webpilot API ready")

    yield

    logger.info("Shutting down...")
    if history_store:
        await history_store.close()
    app.state.history_store = None


def create_app(agent_factory: AgentFactory | None = None) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        agent_factory: Builds the agent for each run request from the
            history store (defaults to a configured BrowserAgent)

    Returns:
        Configured FastAPI app
    """
    app = FastAPI(
        title="webpilot",
        description=(
            "Goal-driven browser agent. Runs a natural-language goal through "
            "the loop: Observe → Plan → Guard → Act → Record → Repeat"
        ),
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.state.agent_factory = agent_factory or default_agent_factory
    app.state.history_store = None
    app.state.active_runs = {}

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(agent.router, prefix="/agent", tags=["Agent"])

    @app.get("/health", tags=["Health"])
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "ok",
            "timestamp": now_ms(),
            "activeRuns": len(app.state.active_runs),
            "history": "connected" if app.state.history_store else "disabled",
        }

    return app
