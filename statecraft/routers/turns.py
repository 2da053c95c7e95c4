from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from statecraft.database import get_db
from statecraft.dependencies import get_current_agent, get_registry
from statecraft.models.agent import Agent
from statecraft.schemas.turn import EventResponse, PhaseResponse, SubmitRequest, SubmitResponse
from statecraft.services import event_log, game_service
from statecraft.services.turn_scheduler import RejectReason, SchedulerRegistry, SubmissionRejected

router = APIRouter(prefix="/games", tags=["turns"])


@router.get("/{game_id}/turn", response_model=PhaseResponse)
async def get_turn(
    game_id: int,
    db: AsyncSession = Depends(get_db),
    registry: SchedulerRegistry = Depends(get_registry),
):
    if await game_service.get_game(db, game_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Game not found")
    scheduler = await registry.get(game_id)
    return await scheduler.current_phase()


@router.post("/{game_id}/submit", response_model=SubmitResponse)
async def submit(
    game_id: int,
    body: SubmitRequest,
    db: AsyncSession = Depends(get_db),
    current_agent: Agent = Depends(get_current_agent),
    registry: SchedulerRegistry = Depends(get_registry),
):
    if await game_service.get_game(db, game_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Game not found")
    country = await game_service.get_country_for_agent(db, game_id, current_agent.id)
    if country is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"reason": RejectReason.not_in_game.value, "message": "You are not a player in this game"},
        )

    scheduler = await registry.get(game_id)
    try:
        result = await scheduler.submit(country.key, body.phase, body.payload)
    except SubmissionRejected as e:
        code = (
            status.HTTP_409_CONFLICT
            if e.reason == RejectReason.duplicate_submission
            else status.HTTP_400_BAD_REQUEST
        )
        raise HTTPException(status_code=code, detail={"reason": e.reason.value, "message": e.message})
    return result


@router.get("/{game_id}/inbox", response_model=list[EventResponse])
async def get_inbox(
    game_id: int,
    turn: int | None = None,
    db: AsyncSession = Depends(get_db),
    current_agent: Agent = Depends(get_current_agent),
):
    country = await game_service.get_country_for_agent(db, game_id, current_agent.id)
    if country is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="You are not a player in this game"
        )
    rows = await event_log.inbox(db, game_id, country.key, turn=turn)
    return [event_log.present(row, country.key) for row in rows]
