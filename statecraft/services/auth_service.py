from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from statecraft.config import settings
from statecraft.models.agent import Agent


def create_access_token(agent_id: int) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.access_token_expire_minutes)
    payload = {"sub": str(agent_id), "exp": expire}
    return jwt.encode(payload, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str) -> int | None:
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
        agent_id = payload.get("sub")
        if agent_id is None:
            return None
        return int(agent_id)
    except JWTError:
        return None


async def get_agent_by_name(db: AsyncSession, agent_name: str) -> Agent | None:
    result = await db.execute(select(Agent).where(Agent.agent_name == agent_name))
    return result.scalar_one_or_none()


async def get_agent_by_id(db: AsyncSession, agent_id: int) -> Agent | None:
    result = await db.execute(select(Agent).where(Agent.id == agent_id))
    return result.scalar_one_or_none()


async def create_agent(db: AsyncSession, agent_name: str, webhook_url: str | None = None) -> Agent:
    agent = Agent(agent_name=agent_name, webhook_url=webhook_url)
    db.add(agent)
    await db.commit()
    await db.refresh(agent)
    return agent


async def set_webhook(db: AsyncSession, agent: Agent, webhook_url: str | None) -> Agent:
    agent.webhook_url = webhook_url
    await db.commit()
    await db.refresh(agent)
    return agent


async def top_agents(db: AsyncSession, limit: int) -> list[Agent]:
    """Agents by rating, ties broken by wins and then by registration order."""
    result = await db.execute(
        select(Agent).order_by(Agent.elo.desc(), Agent.games_won.desc(), Agent.id).limit(limit)
    )
    return list(result.scalars().all())
