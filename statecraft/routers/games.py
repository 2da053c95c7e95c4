from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from statecraft.data.roster import list_countries
from statecraft.database import get_db
from statecraft.dependencies import get_current_agent, get_registry, require_admin
from statecraft.models.agent import Agent
from statecraft.models.game import Game, GameStatus
from statecraft.schemas.game import (
    CountryResponse,
    EndGame,
    GameCreate,
    GameResponse,
    JoinGame,
    LeaderboardResponse,
    PactResponse,
    RosterCountry,
    RosterProvince,
    WarResponse,
)
from statecraft.services import game_service
from statecraft.services.turn_scheduler import SchedulerRegistry

router = APIRouter(prefix="/games", tags=["games"])


async def _get_game_or_404(db: AsyncSession, game_id: int) -> Game:
    game = await game_service.get_game(db, game_id)
    if game is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Game not found")
    return game


async def _game_response(db: AsyncSession, game: Game) -> GameResponse:
    countries = await game_service.get_countries(db, game.id)
    response = GameResponse.model_validate(game)
    response.countries = [CountryResponse.model_validate(c) for c in countries]
    return response


@router.get("/roster", response_model=list[RosterCountry])
async def get_roster():
    return [
        RosterCountry(
            key=c.key,
            name=c.name,
            military=c.military,
            naval=c.naval,
            money=c.money,
            tech=c.tech,
            stability=c.stability,
            provinces=[
                RosterProvince(
                    key=p.key,
                    name=p.name,
                    terrain=p.terrain,
                    gdp_value=p.gdp_value,
                    is_capital=p.is_capital,
                )
                for p in c.provinces
            ],
        )
        for c in list_countries()
    ]


@router.get("", response_model=list[GameResponse])
async def list_games(
    status_filter: GameStatus | None = Query(default=None, alias="status"),
    db: AsyncSession = Depends(get_db),
):
    return [await _game_response(db, game) for game in await game_service.list_games(db, status_filter)]


@router.post(
    "",
    response_model=GameResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def create_new_game(
    body: GameCreate,
    db: AsyncSession = Depends(get_db),
    registry: SchedulerRegistry = Depends(get_registry),
):
    try:
        game = await game_service.create_game(db, **body.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    registry.open(game.id)
    return await _game_response(db, game)


@router.get("/{game_id}", response_model=GameResponse)
async def get_game_info(game_id: int, db: AsyncSession = Depends(get_db)):
    game = await _get_game_or_404(db, game_id)
    return await _game_response(db, game)


@router.post("/{game_id}/join", response_model=CountryResponse)
async def join(
    game_id: int,
    body: JoinGame,
    db: AsyncSession = Depends(get_db),
    current_agent: Agent = Depends(get_current_agent),
):
    game = await _get_game_or_404(db, game_id)
    try:
        country = await game_service.join_game(db, game, current_agent, body.country)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return country


@router.post("/{game_id}/start", response_model=GameResponse, dependencies=[Depends(require_admin)])
async def start(
    game_id: int,
    db: AsyncSession = Depends(get_db),
    registry: SchedulerRegistry = Depends(get_registry),
):
    await _get_game_or_404(db, game_id)
    scheduler = await registry.get(game_id)
    try:
        await scheduler.start()
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return await _game_response(db, await _get_game_or_404(db, game_id))


@router.post("/{game_id}/end", response_model=GameResponse, dependencies=[Depends(require_admin)])
async def end(
    game_id: int,
    body: EndGame | None = None,
    db: AsyncSession = Depends(get_db),
    registry: SchedulerRegistry = Depends(get_registry),
):
    await _get_game_or_404(db, game_id)
    scheduler = await registry.get(game_id)
    try:
        await scheduler.end_game(body.reason if body else "admin")
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    await registry.close(game_id)
    return await _game_response(db, await _get_game_or_404(db, game_id))


@router.post("/{game_id}/resume", response_model=GameResponse, dependencies=[Depends(require_admin)])
async def resume(
    game_id: int,
    db: AsyncSession = Depends(get_db),
    registry: SchedulerRegistry = Depends(get_registry),
):
    await _get_game_or_404(db, game_id)
    scheduler = await registry.get(game_id)
    try:
        await scheduler.resume()
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return await _game_response(db, await _get_game_or_404(db, game_id))


@router.get("/{game_id}/leaderboard", response_model=LeaderboardResponse)
async def get_leaderboard(game_id: int, db: AsyncSession = Depends(get_db)):
    game = await _get_game_or_404(db, game_id)
    board = await game_service.leaderboard(db, game_id)
    return LeaderboardResponse(
        game_id=game.id,
        turn=game.current_turn,
        world_tension=game.world_tension,
        countries=[CountryResponse.model_validate(c) for c in board.countries],
        pacts=[PactResponse.model_validate(p) for p in board.pacts],
        wars=[WarResponse.model_validate(w) for w in board.wars],
    )
