"""
Pydantic schemas for trip roster and ledger mutations.
"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from decimal import Decimal
from app.models.ledger import TransactionType, TransactionStatus


class TripCustomerAdd(BaseModel):
    """Schema for adding a customer to a trip."""
    customer_id: int


class TripAgentAdd(BaseModel):
    """Schema for adding an agent to a trip."""
    agent_id: int


class CommissionRateUpdate(BaseModel):
    """Schema for changing an agent's rate on one customer for one trip."""
    customer_id: int
    commission_rate: Decimal = Field(ge=0, le=100)  # Percent


class AssignmentResponse(BaseModel):
    """Schema for an agent-customer assignment."""
    trip_id: int
    agent_id: int
    customer_id: int
    commission_rate: Decimal

    class Config:
        from_attributes = True


class TransactionCreate(BaseModel):
    """Schema for booking a transaction."""
    customer_id: int
    amount: Decimal = Field(gt=0)
    transaction_type: TransactionType
    status: TransactionStatus = TransactionStatus.COMPLETED
    agent_id: Optional[int] = None
    venue: Optional[str] = None


class TransactionResponse(BaseModel):
    """Schema for transaction response."""
    id: int
    trip_id: int
    customer_id: int
    agent_id: Optional[int] = None
    amount: Decimal
    transaction_type: TransactionType
    status: TransactionStatus
    venue: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class RollingRecordCreate(BaseModel):
    """Schema for booking a rolling record."""
    customer_id: int
    rolling_amount: Decimal = Field(gt=0)
    verified: bool = True
    game_type: Optional[str] = None


class RollingRecordResponse(BaseModel):
    """Schema for rolling record response."""
    id: int
    trip_id: int
    customer_id: int
    rolling_amount: Decimal
    verified: bool
    game_type: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
