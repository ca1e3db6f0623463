"""
Pydantic schemas for trip expenses.
"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import date, datetime
from decimal import Decimal


class ExpenseBase(BaseModel):
    """Base expense schema."""
    expense_type: str
    amount: Decimal
    description: Optional[str] = None
    expense_date: Optional[date] = None


class ExpenseCreate(ExpenseBase):
    """Schema for expense creation."""
    amount: Decimal = Field(gt=0)


class ExpenseUpdate(BaseModel):
    """Schema for expense update."""
    expense_type: Optional[str] = None
    amount: Optional[Decimal] = Field(default=None, gt=0)
    description: Optional[str] = None
    expense_date: Optional[date] = None


class ExpenseResponse(ExpenseBase):
    """Schema for expense response."""
    id: int
    trip_id: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
