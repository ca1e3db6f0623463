"""
Customer model for junket players.
"""
from sqlalchemy import Column, String, Numeric, Boolean, ForeignKey, Integer
from sqlalchemy.orm import relationship
from app.db.base import BaseModel


class Customer(BaseModel):
    """Customer model with an optional home agent."""
    __tablename__ = "customers"

    name = Column(String(100), nullable=False)
    email = Column(String(100), nullable=True, index=True)
    vip_level = Column(String(20), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    agent_id = Column(Integer, ForeignKey("agents.id"), nullable=True, index=True)  # Home agent

    # Lifetime totals, summed over every trip stats row of this customer
    total_rolling = Column(Numeric(15, 2), nullable=False, default=0)
    total_win_loss = Column(Numeric(15, 2), nullable=False, default=0)
    total_buy_in = Column(Numeric(15, 2), nullable=False, default=0)
    total_buy_out = Column(Numeric(15, 2), nullable=False, default=0)

    # Relationships
    agent = relationship("Agent", back_populates="customers")
    trips = relationship("TripCustomer", back_populates="customer", cascade="all, delete-orphan")
