"""Models package - Import all models for SQLAlchemy registration."""
from app.models.agent import Agent, AgentCustomerAssignment
from app.models.customer import Customer
from app.models.trip import Trip, TripCustomer, TripAgent, TripStatus
from app.models.expense import TripExpense
from app.models.ledger import Transaction, TransactionType, TransactionStatus, RollingRecord
from app.models.sharing import TripCustomerStats, TripSharing, TripAgentSummary

__all__ = [
    "Agent",
    "AgentCustomerAssignment",
    "Customer",
    "Trip",
    "TripCustomer",
    "TripAgent",
    "TripStatus",
    "TripExpense",
    "Transaction",
    "TransactionType",
    "TransactionStatus",
    "RollingRecord",
    "TripCustomerStats",
    "TripSharing",
    "TripAgentSummary",
]
