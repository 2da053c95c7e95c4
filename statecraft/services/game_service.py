import logging
import random
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from statecraft.config import settings
from statecraft.data.roster import get_country_data, list_countries
from statecraft.engine.actions import TARGETLESS_ACTIONS, ActionType
from statecraft.engine.resolvers.win_conditions import placements
from statecraft.engine.rules import DEFAULT_RULES, GameRules
from statecraft.engine.world import WorldState
from statecraft.models.agent import Agent
from statecraft.models.country import Country
from statecraft.models.game import Game, GameStatus
from statecraft.models.pact import Pact
from statecraft.models.war import War
from statecraft.services import world_store

logger = logging.getLogger(__name__)

ELO_WIN = 25
ELO_MAX_LOSS = 15


@dataclass
class Leaderboard:
    countries: list[Country]
    pacts: list[Pact]
    wars: list[War]


async def create_game(
    db: AsyncSession,
    name: str,
    *,
    min_players: int | None = None,
    max_players: int | None = None,
    max_turns: int | None = None,
    phase_deadline_seconds: int | None = None,
    fallback_action: str | None = None,
    seed: int | None = None,
    rules: GameRules = DEFAULT_RULES,
) -> Game:
    roster_size = len(list_countries())
    min_players = min_players or settings.default_min_players
    max_players = max_players or roster_size
    fallback = fallback_action or settings.default_fallback_action

    try:
        fallback_type = ActionType(fallback)
    except ValueError:
        raise ValueError(f"Unknown fallback action {fallback!r}") from None
    if fallback_type not in TARGETLESS_ACTIONS:
        raise ValueError("The fallback action must not need a target")
    if not 2 <= min_players <= max_players <= roster_size:
        raise ValueError(f"Player limits must satisfy 2 <= min <= max <= {roster_size}")

    game = Game(
        name=name,
        status=GameStatus.lobby,
        current_turn=0,
        min_players=min_players,
        max_players=max_players,
        max_turns=max_turns or settings.default_max_turns,
        phase_deadline_seconds=phase_deadline_seconds or settings.default_phase_deadline_seconds,
        fallback_action=fallback_type.value,
        seed=seed if seed is not None else random.randrange(2**31),
    )
    db.add(game)
    await db.flush()  # game.id is needed for the roster rows

    await world_store.seed_world(db, game, rules)
    await db.commit()
    await db.refresh(game)
    logger.info("Created game %s (%s), seed %s", game.id, game.name, game.seed)
    return game


async def get_game(db: AsyncSession, game_id: int) -> Game | None:
    # The scheduler commits through its own sessions, so always re-read the row
    result = await db.execute(
        select(Game).where(Game.id == game_id).execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def list_games(db: AsyncSession, status: GameStatus | None = None) -> list[Game]:
    query = select(Game).execution_options(populate_existing=True)
    if status is not None:
        query = query.where(Game.status == status)
    result = await db.execute(query.order_by(Game.created_at.desc(), Game.id.desc()))
    return list(result.scalars().all())


async def get_countries(db: AsyncSession, game_id: int) -> list[Country]:
    result = await db.execute(
        select(Country)
        .where(Country.game_id == game_id)
        .order_by(Country.key)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def get_country_for_agent(db: AsyncSession, game_id: int, agent_id: int) -> Country | None:
    result = await db.execute(
        select(Country)
        .where(Country.game_id == game_id, Country.agent_id == agent_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def join_game(db: AsyncSession, game: Game, agent: Agent, country_key: str) -> Country:
    if game.status != GameStatus.lobby:
        raise ValueError("Game has already started")
    try:
        get_country_data(country_key)
    except KeyError:
        raise ValueError(f"Unknown country {country_key!r}") from None
    if await get_country_for_agent(db, game.id, agent.id) is not None:
        raise ValueError("Already joined this game")

    countries = await get_countries(db, game.id)
    if sum(1 for c in countries if c.agent_id is not None) >= game.max_players:
        raise ValueError("Game is full")
    country = next((c for c in countries if c.key == country_key), None)
    if country is None:
        raise ValueError(f"Country {country_key!r} is not part of this game")
    if country.agent_id is not None:
        raise ValueError(f"Country {country_key!r} is already taken")

    country.agent_id = agent.id
    await db.commit()
    logger.info("Agent %s joined game %s as %s", agent.agent_name, game.id, country_key)
    return country


async def leaderboard(db: AsyncSession, game_id: int) -> Leaderboard:
    countries = sorted(
        await get_countries(db, game_id),
        key=lambda c: (c.is_eliminated, -c.territory, -c.money, c.key),
    )
    pacts = await db.execute(
        select(Pact)
        .where(Pact.game_id == game_id, Pact.dissolved_turn.is_(None))
        .order_by(Pact.key)
        .execution_options(populate_existing=True)
    )
    wars = await db.execute(
        select(War)
        .where(War.game_id == game_id, War.is_active.is_(True))
        .order_by(War.key)
        .execution_options(populate_existing=True)
    )
    return Leaderboard(countries, list(pacts.scalars().all()), list(wars.scalars().all()))


def elo_change(place: int, won: bool) -> int:
    """Rating change for finishing at ``place`` (0 is first)."""
    if won:
        return ELO_WIN
    return max(-ELO_MAX_LOSS, 10 - place * 5)


async def record_results(db: AsyncSession, world: WorldState) -> None:
    """Credit a finished game to every agent that played it. Does not commit."""
    order = placements(world)
    agent_ids = [world.countries[cid].agent_id for cid in order]
    result = await db.execute(
        select(Agent).where(Agent.id.in_([a for a in agent_ids if a is not None]))
    )
    agents = {a.id: a for a in result.scalars().all()}
    for place, (country_id, agent_id) in enumerate(zip(order, agent_ids)):
        agent = agents.get(agent_id)
        if agent is None:
            continue
        won = country_id == world.winner_id
        agent.games_played += 1
        if won:
            agent.games_won += 1
        agent.elo = max(0, agent.elo + elo_change(place, won))
    logger.info("Recorded results for %d agents: %s", len(agents), ", ".join(order))
