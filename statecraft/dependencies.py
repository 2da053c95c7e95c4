from fastapi import Depends, Header, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from statecraft.config import settings
from statecraft.database import get_db
from statecraft.models.agent import Agent
from statecraft.services.auth_service import decode_access_token, get_agent_by_id
from statecraft.services.turn_scheduler import SchedulerRegistry

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_agent(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> Agent:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise credentials_exception
    agent_id = decode_access_token(credentials.credentials)
    if agent_id is None:
        raise credentials_exception
    agent = await get_agent_by_id(db, agent_id)
    if agent is None:
        raise credentials_exception
    return agent


async def get_optional_agent(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> Agent | None:
    """The calling agent when a valid token is sent; spectators get None."""
    if credentials is None:
        return None
    agent_id = decode_access_token(credentials.credentials)
    if agent_id is None:
        return None
    return await get_agent_by_id(db, agent_id)


async def require_admin(x_admin_key: str | None = Header(default=None)) -> None:
    if x_admin_key != settings.admin_api_key:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin key required")


def get_registry(request: Request) -> SchedulerRegistry:
    return request.app.state.registry
