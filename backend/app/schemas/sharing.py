"""
Pydantic schemas for reconciliation results.
"""
from pydantic import BaseModel
from typing import List, Dict, Optional
from datetime import datetime
from decimal import Decimal


class CustomerStatsResponse(BaseModel):
    """Schema for one customer's stats on a trip."""
    trip_id: int
    customer_id: int
    total_buy_in: Decimal
    total_cash_out: Decimal
    total_win: Decimal
    total_loss: Decimal
    net_result: Decimal  # Customer perspective: positive = customer ahead
    rolling_amount: Decimal
    commission_earned: Decimal  # Rolling commission on this customer
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CustomerStatsUpdate(BaseModel):
    """Schema for manually editing a customer's stats."""
    total_buy_in: Optional[Decimal] = None
    total_cash_out: Optional[Decimal] = None
    total_win: Optional[Decimal] = None
    total_loss: Optional[Decimal] = None
    rolling_amount: Optional[Decimal] = None


class AgentBreakdownItem(BaseModel):
    """Schema for one agent's share of a trip."""
    agent_id: int
    commission_rate: Optional[Decimal] = None  # None when the agent has customers at different rates
    share_amount: Decimal


class TripSharingResponse(BaseModel):
    """Schema for trip sharing response."""
    trip_id: int
    total_win_loss: Decimal  # House perspective: positive = house won
    total_expenses: Decimal
    total_rolling: Decimal
    total_rolling_commission: Decimal
    total_buy_in: Decimal
    total_buy_out: Decimal
    net_cash_flow: Decimal
    net_result: Decimal
    total_agent_share: Decimal
    company_share: Decimal
    agent_share_percentage: Decimal
    company_share_percentage: Decimal
    agent_breakdown: List[AgentBreakdownItem] = []
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TripStatsResponse(BaseModel):
    """Schema for trip totals (customer perspective)."""
    trip_id: int
    customer_count: int
    total_win: Decimal
    total_loss: Decimal
    total_buy_in: Decimal
    total_cash_out: Decimal
    total_rolling: Decimal
    net_profit: Decimal

    class Config:
        from_attributes = True


class TripRecalculationResponse(BaseModel):
    """Schema for a full trip recalculation."""
    stats: TripStatsResponse
    sharing: TripSharingResponse


class TransactionSummaryItem(BaseModel):
    """Schema for completed transactions of one type."""
    count: int
    total: Decimal


class TripStatisticsResponse(TripStatsResponse):
    """Schema for the trip statistics report."""
    trip_name: str
    profit_margin: Decimal  # net_profit / total_buy_in, in percent
    transaction_summary: Dict[str, TransactionSummaryItem]


class CustomerProfitItem(BaseModel):
    """Schema for one customer's contribution to an agent's commission."""
    customer_id: int
    customer_name: str
    commission_rate: Optional[Decimal] = None  # None when the agent has customers at different rates
    net_result: Decimal
    rolling_amount: Decimal
    agent_commission: Decimal
    rolling_commission: Decimal
    buy_in: Decimal
    cash_out: Decimal


class AgentProfitResponse(BaseModel):
    """Schema for an agent's profit on a trip."""
    agent_id: int
    agent_name: str
    agent_email: str
    customers: List[CustomerProfitItem]
    total_agent_commission: Decimal
    total_rolling_commission: Decimal
    total_customer_net: Decimal
