"""
Pydantic schemas for Agent statistics.
"""
from pydantic import BaseModel
from decimal import Decimal


class AgentStatisticsResponse(BaseModel):
    """Schema for an agent's lifetime statistics."""
    id: int
    name: str
    commission_rate: Decimal
    total_commission: Decimal
    total_trips: int

    class Config:
        from_attributes = True


class AgentRecalculationResponse(BaseModel):
    """Schema for the all-agents maintenance recalculation."""
    message: str
    agents_updated: int
