"""
Agent models: the agent record and its per-trip customer assignments.
"""
from sqlalchemy import Column, String, Numeric, Integer, ForeignKey, Boolean, UniqueConstraint
from sqlalchemy.orm import relationship
from app.db.base import BaseModel


class Agent(BaseModel):
    """Agent who brings customers to trips and shares in their results."""
    __tablename__ = "agents"

    name = Column(String(100), nullable=False)
    email = Column(String(100), nullable=True, index=True)
    is_active = Column(Boolean, default=True, nullable=False)
    commission_rate = Column(Numeric(5, 2), nullable=False, default=0)  # Standing rate in percent (0-100)

    # Lifetime statistics, maintained by the reconciliation engine
    total_commission = Column(Numeric(15, 2), nullable=False, default=0)
    total_trips = Column(Integer, nullable=False, default=0)

    # Relationships
    customers = relationship("Customer", back_populates="agent")
    trips = relationship("TripAgent", back_populates="agent", cascade="all, delete-orphan")


class AgentCustomerAssignment(BaseModel):
    """Commission rate an agent earns on one customer for one trip."""
    __tablename__ = "trip_agent_customers"
    __table_args__ = (
        UniqueConstraint("trip_id", "agent_id", "customer_id", name="uq_trip_agent_customer"),
    )

    trip_id = Column(Integer, ForeignKey("trips.id"), nullable=False, index=True)
    agent_id = Column(Integer, ForeignKey("agents.id"), nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    commission_rate = Column(Numeric(5, 2), nullable=False, default=0)  # Percent, editable per trip
