"""
Agent statistics routes.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.models.agent import Agent
from app.schemas.agent import AgentStatisticsResponse, AgentRecalculationResponse
from app.services import agent_stats_service
from app.services.reconciliation_service import unit_of_work

router = APIRouter(prefix="/agents", tags=["agents"])


@router.get("/{agent_id}/statistics", response_model=AgentStatisticsResponse)
async def get_agent_statistics(
    agent_id: int,
    db: Session = Depends(get_db)
):
    """Get an agent's lifetime commission and trip count."""
    agent = db.query(Agent).filter(Agent.id == agent_id).first()
    if not agent:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Agent not found"
        )
    return agent


@router.post("/recalculate-statistics", response_model=AgentRecalculationResponse)
async def recalculate_agent_statistics(
    db: Session = Depends(get_db)
):
    """Rebuild every agent's lifetime statistics from the per-trip summaries."""
    with unit_of_work(None, "agent statistics", db):
        count = agent_stats_service.recalculate_all_agent_statistics(db)
        db.commit()
    return AgentRecalculationResponse(
        message="Agent statistics recalculated successfully",
        agents_updated=count
    )
