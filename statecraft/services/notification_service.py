"""Notification service: fans appended game events out to spectators and agents.

Two channels, both best effort:
  - in-process subscribers (the WebSocket feed) get the public view of every
    event through a bounded queue; a full queue drops the event for that
    subscriber only.
  - agents with a webhook URL get every event they may see, POSTed via httpx.
"""

import asyncio
import logging
from typing import Any

import httpx
from fastapi.encoders import jsonable_encoder
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from statecraft.config import settings
from statecraft.models.agent import Agent
from statecraft.models.country import Country
from statecraft.models.game_event import GameEvent
from statecraft.services import event_log
from statecraft.tasks.webhook_sender import send_webhook

logger = logging.getLogger(__name__)


class EventBroadcaster:
    def __init__(self, queue_size: int | None = None):
        self._queue_size = queue_size or settings.push_queue_size
        self._subscribers: dict[int, set[asyncio.Queue]] = {}

    def subscribe(self, game_id: int) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._queue_size)
        self._subscribers.setdefault(game_id, set()).add(queue)
        return queue

    def unsubscribe(self, game_id: int, queue: asyncio.Queue) -> None:
        subscribers = self._subscribers.get(game_id)
        if subscribers is None:
            return
        subscribers.discard(queue)
        if not subscribers:
            del self._subscribers[game_id]

    def subscriber_count(self, game_id: int) -> int:
        return len(self._subscribers.get(game_id, ()))

    def publish(self, game_id: int, rows: list[GameEvent]) -> None:
        subscribers = self._subscribers.get(game_id)
        if not subscribers:
            return
        items = [jsonable_encoder(event_log.present(row)) for row in rows]
        for queue in list(subscribers):
            for item in items:
                try:
                    queue.put_nowait(item)
                except asyncio.QueueFull:
                    logger.warning(
                        "Feed subscriber for game %s is full; dropping event %s",
                        game_id,
                        item["id"],
                    )


async def _webhook_targets(db: AsyncSession, game_id: int) -> list[tuple[str, str]]:
    result = await db.execute(
        select(Country.key, Agent.webhook_url)
        .join(Agent, Agent.id == Country.agent_id)
        .where(Country.game_id == game_id, Agent.webhook_url.is_not(None))
        .order_by(Country.key)
    )
    return [(key, url) for key, url in result.all()]


async def notify_agents(
    session_factory: async_sessionmaker[AsyncSession],
    game_id: int,
    rows: list[GameEvent],
) -> None:
    """POST each event to every agent webhook allowed to see it."""
    async with session_factory() as db:
        targets = await _webhook_targets(db, game_id)
    if not targets:
        return

    async def _deliver(client: httpx.AsyncClient, country_key: str, url: str) -> None:
        for row in rows:
            if not event_log.is_visible(row, country_key):
                continue
            body: dict[str, Any] = jsonable_encoder(event_log.present(row, country_key))
            await send_webhook(url, body, client)

    async with httpx.AsyncClient(timeout=settings.webhook_timeout_seconds) as client:
        await asyncio.gather(*(_deliver(client, key, url) for key, url in targets))
