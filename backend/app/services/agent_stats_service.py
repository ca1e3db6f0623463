"""
Agent statistics service: per-trip agent summaries and agent lifetime totals.

Lifetime totals are rebuilt from the per-trip summaries on every run, so
recomputing the same trip any number of times never inflates them.
"""
import logging
from decimal import Decimal
from typing import Iterable, List, Optional, Set
from sqlalchemy.orm import Session
from app.core.utils import ZERO, to_decimal, quantize_money
from app.models.agent import Agent, AgentCustomerAssignment
from app.models.trip import TripAgent
from app.models.sharing import TripAgentSummary, TripCustomerStats
from app.services.sharing_service import AgentShare

logger = logging.getLogger(__name__)


def update_trip_agent_summaries(
    trip_id: int,
    agent_breakdown: List[AgentShare],
    customer_stats: List[TripCustomerStats],
    db: Session
) -> Set[int]:
    """
    Upsert one summary row per agent in the breakdown and drop stale ones.

    Returns the ids of every agent whose summary was written or removed.
    """
    stats_by_customer = {s.customer_id: s for s in customer_stats}
    assignments = db.query(AgentCustomerAssignment).filter(
        AgentCustomerAssignment.trip_id == trip_id
    ).all()
    existing = {
        s.agent_id: s
        for s in db.query(TripAgentSummary).filter(TripAgentSummary.trip_id == trip_id).all()
    }

    touched: Set[int] = set()
    for share in agent_breakdown:
        customer_rows = [
            stats_by_customer[a.customer_id]
            for a in assignments
            if a.agent_id == share.agent_id and a.customer_id in stats_by_customer
        ]
        summary = existing.pop(share.agent_id, None)
        if summary is None:
            summary = TripAgentSummary(trip_id=trip_id, agent_id=share.agent_id)
            db.add(summary)

        summary.customer_count = len(customer_rows)
        summary.total_win_loss = quantize_money(
            sum((to_decimal(r.total_win) - to_decimal(r.total_loss) for r in customer_rows), ZERO)
        )
        summary.total_profit = quantize_money(sum((to_decimal(r.net_result) for r in customer_rows), ZERO))
        summary.total_commission = quantize_money(share.share_amount)
        touched.add(share.agent_id)

    # Agents that dropped out of the breakdown no longer earn on this trip
    for agent_id, summary in existing.items():
        logger.info(f"Removing stale summary for agent {agent_id} in trip {trip_id}")
        db.delete(summary)
        touched.add(agent_id)

    db.flush()
    return touched


def recalculate_agent_statistics(agent_id: int, db: Session) -> Optional[Agent]:
    """Rebuild an agent's lifetime commission and trip count. Unknown agent is a no-op."""
    agent = db.query(Agent).filter(Agent.id == agent_id).first()
    if not agent:
        logger.debug(f"Agent {agent_id} not found, skipping statistics")
        return None

    summaries = db.query(TripAgentSummary).filter(TripAgentSummary.agent_id == agent_id).all()
    trip_rows = db.query(TripAgent.trip_id).filter(TripAgent.agent_id == agent_id).all()
    trip_ids = {row.trip_id for row in trip_rows} | {s.trip_id for s in summaries}

    total_commission: Decimal = sum((to_decimal(s.total_commission) for s in summaries), ZERO)
    agent.total_commission = quantize_money(total_commission)
    agent.total_trips = len(trip_ids)
    db.flush()

    logger.debug(
        f"Agent {agent_id} statistics: total_commission={agent.total_commission}, "
        f"total_trips={agent.total_trips}"
    )
    return agent


def update_agent_statistics(
    trip_id: int,
    agent_breakdown: List[AgentShare],
    customer_stats: List[TripCustomerStats],
    db: Session
) -> List[int]:
    """Refresh the trip's agent summaries, then every affected agent's lifetime totals."""
    touched = update_trip_agent_summaries(trip_id, agent_breakdown, customer_stats, db)
    trip_agents = db.query(TripAgent.agent_id).filter(TripAgent.trip_id == trip_id).all()
    agent_ids = sorted(touched | {row.agent_id for row in trip_agents})

    refresh_agents(agent_ids, db)
    return agent_ids


def refresh_agents(agent_ids: Iterable[int], db: Session) -> None:
    for agent_id in agent_ids:
        recalculate_agent_statistics(agent_id, db)


def recalculate_all_agent_statistics(db: Session) -> int:
    """Maintenance pass over every agent. Returns the number of agents refreshed."""
    agent_ids = [row.id for row in db.query(Agent.id).order_by(Agent.id).all()]
    refresh_agents(agent_ids, db)
    logger.info(f"Recalculated statistics for {len(agent_ids)} agents")
    return len(agent_ids)
