"""Moves world state between the database rows and the in-memory engine model."""

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from statecraft.data.roster import BORDERS, list_countries
from statecraft.engine.rules import DEFAULT_RULES, GameRules
from statecraft.engine.world import (
    CountryState,
    PactState,
    ProvinceState,
    UltimatumState,
    WarState,
    WorldState,
    build_adjacency,
)
from statecraft.models.country import Country
from statecraft.models.game import Game, GameStatus
from statecraft.models.pact import Pact, PactKind
from statecraft.models.province import Province
from statecraft.models.ultimatum import Ultimatum, UltimatumStatus
from statecraft.models.war import War

COUNTRY_FIELDS = (
    "territory", "military", "naval", "gdp", "money", "tech", "stability", "spy_tokens",
    "supply_penalty", "forced_neutral_turn", "is_eliminated", "elimination_cause",
    "eliminated_turn", "annexed_by",
)
PROVINCE_FIELDS = ("troops",)


async def seed_world(db: AsyncSession, game: Game, rules: GameRules = DEFAULT_RULES) -> None:
    """Create the roster's countries and provinces for a new game (not committed)."""
    for data in list_countries():
        capital = next(p for p in data.provinces if p.is_capital)
        db.add(
            Country(
                game_id=game.id,
                key=data.key,
                name=data.name,
                territory=len(data.provinces),
                military=data.military,
                naval=data.naval,
                gdp=sum(p.gdp_value for p in data.provinces),
                money=data.money,
                tech=data.tech,
                stability=data.stability,
                spy_tokens=rules.spy_tokens_start,
                capital_province_key=capital.key,
            )
        )
        for province in data.provinces:
            db.add(
                Province(
                    game_id=game.id,
                    key=province.key,
                    name=province.name,
                    owner_key=data.key,
                    original_owner_key=data.key,
                    terrain=province.terrain,
                    gdp_value=province.gdp_value,
                    population=province.population,
                    troops=province.troops,
                    is_capital=province.is_capital,
                )
            )


async def remove_unclaimed(db: AsyncSession, game: Game) -> list[str]:
    """Drop countries nobody joined, along with their provinces. Only valid before turn 1."""
    if game.status != GameStatus.lobby:
        raise ValueError("Unclaimed countries can only be removed before the game starts")
    result = await db.execute(
        select(Country.key).where(Country.game_id == game.id, Country.agent_id.is_(None))
    )
    keys = sorted(result.scalars().all())
    if keys:
        await db.execute(
            delete(Province).where(Province.game_id == game.id, Province.owner_key.in_(keys))
        )
        await db.execute(
            delete(Country).where(Country.game_id == game.id, Country.key.in_(keys))
        )
    return keys


async def _rows(db: AsyncSession, model, game_id: int) -> list:
    result = await db.execute(
        select(model).where(model.game_id == game_id).execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def load_world(db: AsyncSession, game: Game) -> WorldState:
    countries = {
        c.key: CountryState(
            id=c.key,
            name=c.name,
            agent_id=c.agent_id,
            capital_province_id=c.capital_province_key,
            **{name: getattr(c, name) for name in COUNTRY_FIELDS},
        )
        for c in await _rows(db, Country, game.id)
    }
    provinces = {
        p.key: ProvinceState(
            id=p.key,
            name=p.name,
            owner_id=p.owner_key,
            original_owner_id=p.original_owner_key,
            terrain=p.terrain,
            gdp_value=p.gdp_value,
            population=p.population,
            troops=p.troops,
            is_capital=p.is_capital,
        )
        for p in await _rows(db, Province, game.id)
    }
    adjacency = {
        pid: {n for n in neighbours if n in provinces}
        for pid, neighbours in build_adjacency(BORDERS).items()
        if pid in provinces
    }
    pacts = {
        p.key: PactState(
            id=p.key,
            kind=p.kind.value,
            name=p.name,
            abbreviation=p.abbreviation,
            color=p.color,
            members=list(p.members),
            formed_turn=p.formed_turn,
            dissolved_turn=p.dissolved_turn,
        )
        for p in await _rows(db, Pact, game.id)
    }
    wars = {
        w.key: WarState(
            id=w.key,
            attacker_id=w.attacker_key,
            defender_id=w.defender_key,
            start_turn=w.start_turn,
            is_active=w.is_active,
            end_turn=w.end_turn,
        )
        for w in await _rows(db, War, game.id)
    }
    ultimatums = {
        u.key: UltimatumState(
            id=u.key,
            sender_id=u.sender_key,
            target_id=u.target_key,
            demand=u.demand,
            issued_turn=u.issued_turn,
            expires_turn=u.expires_turn,
            amount=u.amount,
            province_id=u.province_key,
            status=u.status.value,
        )
        for u in await _rows(db, Ultimatum, game.id)
    }
    return WorldState(
        countries=countries,
        provinces=provinces,
        adjacency=adjacency,
        pacts=pacts,
        wars=wars,
        ultimatums=ultimatums,
        turn=game.current_turn,
        status="ended" if game.status == GameStatus.ended else "active",
        winner_id=game.winner_country_key,
        end_reason=game.end_reason,
        world_tension=game.world_tension,
        coalition_warned=game.coalition_warned,
        map_provinces=sum(len(data.provinces) for data in list_countries()),
    )


async def save_world(db: AsyncSession, game: Game, world: WorldState) -> None:
    """Write the world back onto the game's rows (not committed)."""
    for row in await _rows(db, Country, game.id):
        state = world.countries[row.key]
        for name in COUNTRY_FIELDS:
            setattr(row, name, getattr(state, name))

    for row in await _rows(db, Province, game.id):
        state = world.provinces[row.key]
        row.owner_key = state.owner_id
        row.troops = state.troops

    existing_pacts = {p.key: p for p in await _rows(db, Pact, game.id)}
    for key, pact in world.pacts.items():
        row = existing_pacts.get(key)
        if row is None:
            row = Pact(game_id=game.id, key=key, kind=PactKind(pact.kind), formed_turn=pact.formed_turn)
            db.add(row)
        row.name = pact.name
        row.abbreviation = pact.abbreviation
        row.color = pact.color
        row.members = list(pact.members)
        row.dissolved_turn = pact.dissolved_turn

    existing_wars = {w.key: w for w in await _rows(db, War, game.id)}
    for key, war in world.wars.items():
        row = existing_wars.get(key)
        if row is None:
            row = War(
                game_id=game.id,
                key=key,
                attacker_key=war.attacker_id,
                defender_key=war.defender_id,
                start_turn=war.start_turn,
            )
            db.add(row)
        row.is_active = war.is_active
        row.end_turn = war.end_turn

    existing_ultimatums = {u.key: u for u in await _rows(db, Ultimatum, game.id)}
    for key, ultimatum in world.ultimatums.items():
        row = existing_ultimatums.get(key)
        if row is None:
            row = Ultimatum(
                game_id=game.id,
                key=key,
                sender_key=ultimatum.sender_id,
                target_key=ultimatum.target_id,
                demand=ultimatum.demand,
                amount=ultimatum.amount,
                province_key=ultimatum.province_id,
                issued_turn=ultimatum.issued_turn,
                expires_turn=ultimatum.expires_turn,
            )
            db.add(row)
        row.status = UltimatumStatus(ultimatum.status)

    game.world_tension = world.world_tension
    game.coalition_warned = world.coalition_warned
    game.winner_country_key = world.winner_id
    game.end_reason = world.end_reason
