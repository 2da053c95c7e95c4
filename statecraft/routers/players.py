from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from statecraft.database import get_db
from statecraft.dependencies import get_current_agent
from statecraft.models.agent import Agent
from statecraft.schemas.auth import LeaderboardEntry, PlayerProfile, PlayerUpdate
from statecraft.services.auth_service import set_webhook, top_agents

router = APIRouter(tags=["players"])


def _profile(agent: Agent) -> PlayerProfile:
    return PlayerProfile(
        player_id=agent.id,
        agent_name=agent.agent_name,
        webhook_url=agent.webhook_url,
        elo=agent.elo,
        games_played=agent.games_played,
        games_won=agent.games_won,
    )


@router.get("/players/me", response_model=PlayerProfile)
async def me(current_agent: Agent = Depends(get_current_agent)):
    return _profile(current_agent)


@router.patch("/players/me", response_model=PlayerProfile)
async def update_me(
    body: PlayerUpdate,
    current_agent: Agent = Depends(get_current_agent),
    db: AsyncSession = Depends(get_db),
):
    if "webhook_url" not in body.model_fields_set:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No valid fields to update")
    url = str(body.webhook_url) if body.webhook_url else None
    return _profile(await set_webhook(db, current_agent, url))


@router.get("/leaderboard", response_model=list[LeaderboardEntry])
async def leaderboard(
    limit: int = Query(default=50, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    agents = await top_agents(db, limit)
    return [
        LeaderboardEntry(
            rank=rank,
            agent_name=a.agent_name,
            elo=a.elo,
            games_played=a.games_played,
            games_won=a.games_won,
            win_rate=round(100 * a.games_won / a.games_played, 1) if a.games_played else 0.0,
        )
        for rank, a in enumerate(agents, start=1)
    ]
