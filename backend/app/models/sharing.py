"""
Derived reconciliation models: per-customer trip stats, trip sharing and agent summaries.
"""
from sqlalchemy import Column, Numeric, ForeignKey, Integer, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from app.db.base import BaseModel


class TripCustomerStats(BaseModel):
    """One customer's totals for one trip."""
    __tablename__ = "trip_customer_stats"
    __table_args__ = (UniqueConstraint("trip_id", "customer_id", name="uq_trip_customer_stats"),)

    trip_id = Column(Integer, ForeignKey("trips.id"), nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    total_buy_in = Column(Numeric(15, 2), nullable=False, default=0)
    total_cash_out = Column(Numeric(15, 2), nullable=False, default=0)
    total_win = Column(Numeric(15, 2), nullable=False, default=0)
    total_loss = Column(Numeric(15, 2), nullable=False, default=0)
    net_result = Column(Numeric(15, 2), nullable=False, default=0)  # (cash_out + win) - (buy_in + loss)
    rolling_amount = Column(Numeric(15, 2), nullable=False, default=0)
    commission_earned = Column(Numeric(15, 2), nullable=False, default=0)  # Rolling commission on this customer


class TripSharing(BaseModel):
    """Profit sharing result for a trip, one row per trip."""
    __tablename__ = "trip_sharing"

    trip_id = Column(Integer, ForeignKey("trips.id"), nullable=False, unique=True, index=True)
    total_win_loss = Column(Numeric(15, 2), nullable=False, default=0)
    total_expenses = Column(Numeric(15, 2), nullable=False, default=0)
    total_rolling = Column(Numeric(15, 2), nullable=False, default=0)
    total_rolling_commission = Column(Numeric(15, 2), nullable=False, default=0)
    total_buy_in = Column(Numeric(15, 2), nullable=False, default=0)
    total_buy_out = Column(Numeric(15, 2), nullable=False, default=0)
    net_cash_flow = Column(Numeric(15, 2), nullable=False, default=0)
    net_result = Column(Numeric(15, 2), nullable=False, default=0)  # House P&L after commissions and costs
    total_agent_share = Column(Numeric(15, 2), nullable=False, default=0)
    company_share = Column(Numeric(15, 2), nullable=False, default=0)
    agent_share_percentage = Column(Numeric(5, 2), nullable=False, default=0)
    company_share_percentage = Column(Numeric(5, 2), nullable=False, default=0)
    agent_breakdown = Column(JSON, nullable=False, default=list)  # [{agent_id, commission_rate, share_amount}]

    # Relationships
    trip = relationship("Trip", back_populates="sharing")


class TripAgentSummary(BaseModel):
    """What one agent was credited with on one trip."""
    __tablename__ = "trip_agent_summary"
    __table_args__ = (UniqueConstraint("trip_id", "agent_id", name="uq_trip_agent_summary"),)

    trip_id = Column(Integer, ForeignKey("trips.id"), nullable=False, index=True)
    agent_id = Column(Integer, ForeignKey("agents.id"), nullable=False, index=True)
    customer_count = Column(Integer, nullable=False, default=0)
    total_win_loss = Column(Numeric(15, 2), nullable=False, default=0)
    total_profit = Column(Numeric(15, 2), nullable=False, default=0)
    total_commission = Column(Numeric(15, 2), nullable=False, default=0)
