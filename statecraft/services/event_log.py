"""Append-only game event log.

Rows are written in the same transaction as the state change they describe
and never updated afterwards. Reads return rows in append order; events with
``visible_to`` set are redacted for everyone not on that list.
"""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from statecraft.engine.actions import BROADCAST
from statecraft.engine.events import BaseEvent, parse_event
from statecraft.models.game_event import GameEvent


def to_row(game_id: int, turn: int, phase: str | None, event: BaseEvent) -> GameEvent:
    return GameEvent(
        game_id=game_id,
        turn=turn,
        phase=phase,
        event_type=event.type,  # type: ignore[attr-defined]
        payload=event.model_dump(mode="json"),
        icon=event.icon,
        description=event.describe(),
        visible_to=list(event.visible_to) if event.visible_to is not None else None,
        created_at=datetime.now(timezone.utc),
    )


async def append_events(
    db: AsyncSession,
    game_id: int,
    turn: int,
    phase: str | None,
    events: list[BaseEvent],
) -> list[GameEvent]:
    """Stage events for insertion and flush so their ids reflect append order."""
    rows = [to_row(game_id, turn, phase, event) for event in events]
    db.add_all(rows)
    await db.flush()
    return rows


async def list_events(
    db: AsyncSession,
    game_id: int,
    *,
    turn: int | None = None,
    from_turn: int | None = None,
    to_turn: int | None = None,
    event_type: str | None = None,
) -> list[GameEvent]:
    query = select(GameEvent).where(GameEvent.game_id == game_id)
    if turn is not None:
        query = query.where(GameEvent.turn == turn)
    if from_turn is not None:
        query = query.where(GameEvent.turn >= from_turn)
    if to_turn is not None:
        query = query.where(GameEvent.turn <= to_turn)
    if event_type is not None:
        query = query.where(GameEvent.event_type == event_type)
    result = await db.execute(query.order_by(GameEvent.id))
    return list(result.scalars().all())


async def inbox(
    db: AsyncSession, game_id: int, country_key: str, *, turn: int | None = None
) -> list[GameEvent]:
    """Messages delivered to a country: broadcasts plus private messages addressed to it."""
    rows = await list_events(db, game_id, turn=turn, event_type="message_sent")
    return [
        row
        for row in rows
        if row.payload["sender_id"] != country_key
        and row.payload["recipient"] in (BROADCAST, country_key)
    ]


def is_visible(row: GameEvent, viewer: str | None) -> bool:
    return row.visible_to is None or (viewer is not None and viewer in row.visible_to)


def present(row: GameEvent, viewer: str | None = None) -> dict[str, Any]:
    """Feed representation of a row, redacting private detail the viewer may not see."""
    visible = is_visible(row, viewer)
    payload = row.payload if visible else parse_event(row.payload).public_payload()
    return {
        "id": row.id,
        "game_id": row.game_id,
        "turn": row.turn,
        "phase": row.phase,
        "event_type": row.event_type,
        "payload": payload,
        "icon": row.icon,
        "description": row.description,
        "is_private": row.visible_to is not None,
        "created_at": row.created_at,
    }


async def load_event_log(db: AsyncSession, game_id: int) -> list[BaseEvent]:
    """The full typed log, in order, as used for replay."""
    return [parse_event(row.payload) for row in await list_events(db, game_id)]
