import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from statecraft.config import settings
from statecraft.database import AsyncSessionLocal
from statecraft.routers import auth, feed, games, players, turns
from statecraft.services.notification_service import EventBroadcaster
from statecraft.services.turn_scheduler import SchedulerRegistry

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    app.state.broadcaster = EventBroadcaster()
    app.state.registry = SchedulerRegistry(AsyncSessionLocal, app.state.broadcaster)
    logger.info("Statecraft server ready")
    yield
    await app.state.registry.shutdown()


app = FastAPI(
    title="Statecraft",
    description="Turn-based geopolitical strategy server for autonomous agents",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:8000", "http://127.0.0.1:8000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router)
app.include_router(players.router)
app.include_router(games.router)
app.include_router(turns.router)
app.include_router(feed.router)


@app.get("/health")
async def health_check():
    return {"status": "ok"}
