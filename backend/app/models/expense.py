"""
Expense model for trip running costs.
"""
from sqlalchemy import Column, String, Numeric, Date, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship
from app.db.base import BaseModel


class TripExpense(BaseModel):
    """Expense model representing a single cost booked against a trip."""
    __tablename__ = "trip_expenses"

    trip_id = Column(Integer, ForeignKey("trips.id"), nullable=False, index=True)
    expense_type = Column(String(50), nullable=False)  # flight, hotel, meal, ... (every type counts)
    amount = Column(Numeric(15, 2), nullable=False)
    description = Column(Text, nullable=True)
    expense_date = Column(Date, nullable=True, index=True)

    # Relationships
    trip = relationship("Trip", back_populates="expenses")
