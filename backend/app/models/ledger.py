"""
Ledger models: cash transactions and rolling (chip turnover) records.
"""
from sqlalchemy import Column, String, Numeric, Boolean, Enum as SQLEnum, ForeignKey, Integer
from app.db.base import BaseModel
import enum


class TransactionType(str, enum.Enum):
    """Transaction type enumeration."""
    BUY_IN = "buy-in"
    CASH_OUT = "cash-out"
    WIN = "win"
    LOSS = "loss"
    ROLLING = "rolling"
    COMMISSION = "commission"
    OTHER = "other"


class TransactionStatus(str, enum.Enum):
    """Transaction status enumeration."""
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Transaction(BaseModel):
    """Money movement for one customer during a trip."""
    __tablename__ = "transactions"

    trip_id = Column(Integer, ForeignKey("trips.id"), nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    agent_id = Column(Integer, ForeignKey("agents.id"), nullable=True, index=True)
    amount = Column(Numeric(15, 2), nullable=False)
    # values_callable stores "buy-in" rather than the member name "BUY_IN"
    transaction_type = Column(
        SQLEnum(TransactionType, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    status = Column(
        SQLEnum(TransactionStatus, values_callable=lambda e: [m.value for m in e]),
        default=TransactionStatus.COMPLETED,
        nullable=False,
        index=True,
    )
    venue = Column(String(100), nullable=True)


class RollingRecord(BaseModel):
    """Chip turnover recorded for a customer; only verified rows count."""
    __tablename__ = "rolling_records"

    trip_id = Column(Integer, ForeignKey("trips.id"), nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    rolling_amount = Column(Numeric(15, 2), nullable=False)
    verified = Column(Boolean, default=False, nullable=False)
    game_type = Column(String(50), nullable=True)
