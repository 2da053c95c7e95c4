"""Spectator and agent feed: the ordered event log over HTTP and a live WebSocket push."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect, status
from sqlalchemy.ext.asyncio import AsyncSession

from statecraft.database import get_db
from statecraft.dependencies import get_optional_agent
from statecraft.models.agent import Agent
from statecraft.schemas.turn import EventResponse
from statecraft.services import event_log, game_service
from statecraft.services.notification_service import EventBroadcaster

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/games", tags=["feed"])


@router.get("/{game_id}/events", response_model=list[EventResponse])
async def get_events(
    game_id: int,
    turn: int | None = None,
    from_turn: int | None = None,
    to_turn: int | None = None,
    event_type: str | None = Query(default=None, alias="type"),
    db: AsyncSession = Depends(get_db),
    agent: Agent | None = Depends(get_optional_agent),
):
    if await game_service.get_game(db, game_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Game not found")

    viewer = None
    if agent is not None:
        country = await game_service.get_country_for_agent(db, game_id, agent.id)
        viewer = country.key if country else None
    rows = await event_log.list_events(
        db, game_id, turn=turn, from_turn=from_turn, to_turn=to_turn, event_type=event_type
    )
    return [event_log.present(row, viewer) for row in rows]


@router.websocket("/{game_id}/feed")
async def feed(websocket: WebSocket, game_id: int):
    broadcaster: EventBroadcaster = websocket.app.state.broadcaster
    await websocket.accept()
    queue = broadcaster.subscribe(game_id)
    logger.info("Feed subscriber joined game %s (%d open)", game_id, broadcaster.subscriber_count(game_id))
    try:
        while True:
            await websocket.send_json(await queue.get())
    except WebSocketDisconnect:
        pass
    finally:
        broadcaster.unsubscribe(game_id, queue)
