"""
Trip model for junket trip management.
"""
from sqlalchemy import Column, String, Numeric, Enum as SQLEnum, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import relationship
from app.db.base import BaseModel
import enum


class TripStatus(str, enum.Enum):
    """Trip status enumeration."""
    PLANNED = "planned"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Trip(BaseModel):
    """Trip model representing one junket trip."""
    __tablename__ = "trips"

    trip_name = Column(String(200), nullable=False)
    status = Column(SQLEnum(TripStatus), default=TripStatus.PLANNED, nullable=False)
    total_budget = Column(Numeric(15, 2), nullable=False, default=0)

    # Derived by the reconciliation engine
    total_win = Column(Numeric(15, 2), nullable=False, default=0)
    total_loss = Column(Numeric(15, 2), nullable=False, default=0)
    net_profit = Column(Numeric(15, 2), nullable=False, default=0)  # Customer perspective: positive = customers won

    # Relationships
    customers = relationship("TripCustomer", back_populates="trip", cascade="all, delete-orphan")
    agents = relationship("TripAgent", back_populates="trip", cascade="all, delete-orphan")
    expenses = relationship("TripExpense", back_populates="trip", cascade="all, delete-orphan")
    sharing = relationship("TripSharing", back_populates="trip", uselist=False, cascade="all, delete-orphan")


class TripCustomer(BaseModel):
    """Junction table for the customers taking part in a trip."""
    __tablename__ = "trip_customers"
    __table_args__ = (UniqueConstraint("trip_id", "customer_id", name="uq_trip_customer"),)

    trip_id = Column(Integer, ForeignKey("trips.id"), nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)

    # Relationships
    trip = relationship("Trip", back_populates="customers")
    customer = relationship("Customer", back_populates="trips")


class TripAgent(BaseModel):
    """Junction table for the agents working a trip."""
    __tablename__ = "trip_agents"
    __table_args__ = (UniqueConstraint("trip_id", "agent_id", name="uq_trip_agent"),)

    trip_id = Column(Integer, ForeignKey("trips.id"), nullable=False, index=True)
    agent_id = Column(Integer, ForeignKey("agents.id"), nullable=False, index=True)

    # Relationships
    trip = relationship("Trip", back_populates="agents")
    agent = relationship("Agent", back_populates="trips")
