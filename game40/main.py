"""FastAPI main application."""

import contextlib
import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pymongo.errors import PyMongoError

from game40.api.game_handler import game_handler
from game40.api.routes import router
from game40.config import settings
from game40.repositories.game_repository import (
    BaseGameRepository,
    InMemoryGameRepository,
    MongoGameRepository,
)
from game40.services.publisher_service import PublisherService

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    datefmt="%H:%M:%S",
    stream=sys.stdout,
)
logging.getLogger("game40").setLevel(settings.log_level.upper())
logger = logging.getLogger(__name__)


async def create_repository() -> BaseGameRepository:
    """Connect to MongoDB when enabled, otherwise keep games in memory."""
    if settings.use_mongodb:
        repository = MongoGameRepository()
        try:
            await repository.connect()
        except (ConnectionError, TimeoutError, OSError, PyMongoError):
            logger.warning("MongoDB not available, keeping games in memory")
        else:
            return repository
    return InMemoryGameRepository()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Lifespan context manager for startup and shutdown events.

    Handles:
    - Repository selection (MongoDB or in-memory)
    - Redis relay setup
    - Cleanup on shutdown
    """
    app.state.game_repository = await create_repository()

    app.state.publisher_service = None
    if settings.use_redis:
        publisher = PublisherService()
        await publisher.connect()
        if publisher.is_connected:
            await publisher.start_subscriber(game_handler.relay_message)
            app.state.publisher_service = publisher

    game_handler.set_services(
        repository=app.state.game_repository,
        publisher=app.state.publisher_service,
    )

    yield

    with contextlib.suppress(Exception):
        await app.state.game_repository.disconnect()

    if app.state.publisher_service:
        with contextlib.suppress(Exception):
            await app.state.publisher_service.close()


app = FastAPI(
    title="Game 40 API",
    description="Multiplayer accumulate-to-40 elimination card game",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url, "http://localhost:3000", "http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)


@app.get("/health")
async def health() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


def main() -> None:
    """Run the application."""
    uvicorn.run(
        "game40.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.environment == "development",
        log_level="info",
    )


if __name__ == "__main__":
    main()
