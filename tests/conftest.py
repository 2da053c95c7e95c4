import os
import tempfile

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from statecraft.database import get_db
from statecraft.engine.world import CountryState, ProvinceState, WorldState, build_adjacency
from statecraft.main import app
from statecraft.models.base import Base
from statecraft.services.notification_service import EventBroadcaster
from statecraft.services.turn_scheduler import SchedulerRegistry


@pytest.fixture
async def db_engine():
    db_fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(db_fd)
    test_db_url = f"sqlite+aiosqlite:///{db_path}"
    engine = create_async_engine(test_db_url, connect_args={"check_same_thread": False})
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def session_factory(db_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory) -> AsyncSession:
    async with session_factory() as session:
        yield session


@pytest.fixture
def broadcaster() -> EventBroadcaster:
    return EventBroadcaster(queue_size=1000)


@pytest.fixture
async def registry(session_factory, broadcaster) -> SchedulerRegistry:
    registry = SchedulerRegistry(session_factory, broadcaster)
    yield registry
    await registry.shutdown()


@pytest.fixture
async def client() -> AsyncClient:
    """HTTP client that does NOT override the DB (for endpoints that don't need DB)."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def db_client(db_session: AsyncSession, registry, broadcaster) -> AsyncClient:
    """HTTP client with the DB dependency and scheduler registry pointed at the test SQLite DB."""

    async def override_get_db():
        yield db_session

    # ASGITransport does not run the lifespan, so attach the per-app state here
    app.state.registry = registry
    app.state.broadcaster = broadcaster
    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


# ---- in-memory worlds -------------------------------------------------------

def make_country(cid: str, **overrides) -> CountryState:
    values = dict(
        name=cid.title(),
        military=30,
        naval=5,
        gdp=60,
        money=100,
        tech=3,
        stability=6,
        spy_tokens=2,
        capital_province_id=f"{cid}_0",
    )
    values.update(overrides)
    return CountryState(id=cid, **values)


def make_world(
    layout: dict[str, int],
    borders: list[tuple[str, str]] | None = None,
    *,
    troops: int = 3,
    terrain: str = "plains",
    turn: int = 1,
    **country_overrides,
) -> WorldState:
    """World with ``layout[cid]`` provinces per country named ``{cid}_{i}``.

    Each country's own provinces form a chain from its capital ``{cid}_0``;
    ``borders`` adds extra province adjacencies.
    """
    countries = {}
    provinces = {}
    pairs: list[tuple[str, str]] = list(borders or [])
    for cid, count in layout.items():
        countries[cid] = make_country(cid, territory=count, **country_overrides.get(cid, {}))
        for i in range(count):
            pid = f"{cid}_{i}"
            provinces[pid] = ProvinceState(
                id=pid,
                name=pid,
                owner_id=cid,
                original_owner_id=cid,
                terrain=terrain,
                gdp_value=20,
                population=1000,
                troops=troops,
                is_capital=i == 0,
            )
            if i:
                pairs.append((f"{cid}_{i - 1}", pid))
        if count == 0:
            countries[cid].capital_province_id = None
    return WorldState(
        countries=countries,
        provinces=provinces,
        adjacency=build_adjacency(pairs),
        turn=turn,
    )
