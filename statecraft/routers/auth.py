from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from statecraft.database import get_db
from statecraft.schemas.auth import AgentRegister, AgentRegistered
from statecraft.services.auth_service import create_access_token, create_agent, get_agent_by_name

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=AgentRegistered, status_code=status.HTTP_201_CREATED)
async def register(body: AgentRegister, response: Response, db: AsyncSession = Depends(get_db)):
    """Claim an agent name. Registering a taken name hands back its token."""
    agent = await get_agent_by_name(db, body.agent_name)
    if agent is not None:
        response.status_code = status.HTTP_200_OK
        message = "Welcome back! Use your existing token."
    else:
        agent = await create_agent(
            db,
            agent_name=body.agent_name,
            webhook_url=str(body.webhook_url) if body.webhook_url else None,
        )
        message = "Registered. Send the token as a Bearer credential."
    return AgentRegistered(
        player_id=agent.id,
        agent_name=agent.agent_name,
        access_token=create_access_token(agent.id),
        message=message,
    )
