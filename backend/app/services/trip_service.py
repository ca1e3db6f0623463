"""
Trip service: roster, ledger and expense mutations.

Every mutation here ends by running the recalculation cascade in the same
unit of work, so the derived rows are committed together with the change.
"""
import logging
from datetime import date
from decimal import Decimal
from typing import Optional
from sqlalchemy.orm import Session
from app.core.utils import to_decimal
from app.models.agent import Agent, AgentCustomerAssignment
from app.models.customer import Customer
from app.models.expense import TripExpense
from app.models.ledger import Transaction, TransactionType, TransactionStatus, RollingRecord
from app.models.sharing import TripCustomerStats
from app.models.trip import Trip, TripCustomer, TripAgent
from app.services import customer_stats_service
from app.services.customer_stats_service import CustomerStatsValue
from app.services.reconciliation_service import (
    TripRecomputation, run_cascade, get_trip_customer_ids, is_on_trip, unit_of_work
)

logger = logging.getLogger(__name__)


def get_trip_or_error(trip_id: int, db: Session) -> Trip:
    trip = db.query(Trip).filter(Trip.id == trip_id).first()
    if not trip:
        raise ValueError("Trip not found")
    return trip


def _require_customer_on_trip(trip_id: int, customer_id: int, db: Session) -> None:
    if not is_on_trip(trip_id, customer_id, db):
        raise ValueError("Customer not found in this trip")


def _ensure_trip_agent(trip_id: int, agent_id: int, db: Session) -> None:
    existing = db.query(TripAgent).filter(
        TripAgent.trip_id == trip_id,
        TripAgent.agent_id == agent_id
    ).first()
    if not existing:
        db.add(TripAgent(trip_id=trip_id, agent_id=agent_id))
        db.flush()


def _ensure_assignment(trip_id: int, customer: Customer, db: Session) -> bool:
    """
    Link a customer's home agent to them on this trip at the agent's standing rate.

    Returns True when a new assignment was created. An existing assignment keeps
    its (possibly edited) rate.
    """
    if not customer.agent_id:
        return False
    agent = db.query(Agent).filter(Agent.id == customer.agent_id).first()
    if not agent:
        logger.warning(f"Customer {customer.id} has unknown home agent {customer.agent_id}")
        return False

    _ensure_trip_agent(trip_id, agent.id, db)
    existing = db.query(AgentCustomerAssignment).filter(
        AgentCustomerAssignment.trip_id == trip_id,
        AgentCustomerAssignment.agent_id == agent.id,
        AgentCustomerAssignment.customer_id == customer.id
    ).first()
    if existing:
        return False

    db.add(AgentCustomerAssignment(
        trip_id=trip_id,
        agent_id=agent.id,
        customer_id=customer.id,
        commission_rate=to_decimal(agent.commission_rate)
    ))
    db.flush()
    logger.info(f"Assigned agent {agent.id} to customer {customer.id} in trip {trip_id}")
    return True


def _create_missing_assignments(trip_id: int, db: Session, agent_id: Optional[int] = None) -> int:
    query = db.query(Customer).join(TripCustomer, TripCustomer.customer_id == Customer.id).filter(
        TripCustomer.trip_id == trip_id,
        Customer.agent_id.isnot(None)
    )
    if agent_id is not None:
        query = query.filter(Customer.agent_id == agent_id)
    return sum(1 for customer in query.all() if _ensure_assignment(trip_id, customer, db))


def recalculate_trip(trip_id: int, db: Session) -> TripRecomputation:
    """
    Full recalculation of a trip.

    Rostered customers whose home agent was set after they joined get their
    assignment first, so the agent's share is part of the result.
    """
    get_trip_or_error(trip_id, db)
    with unit_of_work(trip_id, "agent assignments", db):
        created = _create_missing_assignments(trip_id, db)
        if created:
            logger.info(f"Backfilled {created} agent assignments in trip {trip_id}")
        return run_cascade(trip_id, db, customer_ids=get_trip_customer_ids(trip_id, db))


# Roster

def add_customer_to_trip(trip_id: int, customer_id: int, db: Session) -> TripCustomerStats:
    """Put a customer on the trip with zeroed stats and their home agent assigned."""
    get_trip_or_error(trip_id, db)
    customer = db.query(Customer).filter(Customer.id == customer_id).first()
    if not customer:
        raise ValueError("Customer not found")
    if is_on_trip(trip_id, customer_id, db):
        raise ValueError("Customer already in trip")

    with unit_of_work(trip_id, "trip roster", db):
        db.add(TripCustomer(trip_id=trip_id, customer_id=customer_id))
        customer_stats_service.save_customer_stats(
            CustomerStatsValue(trip_id=trip_id, customer_id=customer_id), db
        )
        _ensure_assignment(trip_id, customer, db)

        run_cascade(trip_id, db, customer_ids=[customer_id])
        return customer_stats_service.get_stored_stats(trip_id, customer_id, db)


def remove_customer_from_trip(trip_id: int, customer_id: int, db: Session) -> None:
    """Take a customer off the trip, dropping their stats row and assignments."""
    _require_customer_on_trip(trip_id, customer_id, db)

    with unit_of_work(trip_id, "trip roster", db):
        db.query(TripCustomer).filter(
            TripCustomer.trip_id == trip_id,
            TripCustomer.customer_id == customer_id
        ).delete(synchronize_session=False)
        db.query(TripCustomerStats).filter(
            TripCustomerStats.trip_id == trip_id,
            TripCustomerStats.customer_id == customer_id
        ).delete(synchronize_session=False)
        db.query(AgentCustomerAssignment).filter(
            AgentCustomerAssignment.trip_id == trip_id,
            AgentCustomerAssignment.customer_id == customer_id
        ).delete(synchronize_session=False)
        db.flush()
        db.expire_all()

        run_cascade(trip_id, db, customer_ids=[customer_id], refresh_from_ledger=False)


def add_agent_to_trip(trip_id: int, agent_id: int, db: Session) -> TripAgent:
    """Put an agent on the trip and assign them to their rostered customers."""
    get_trip_or_error(trip_id, db)
    if not db.query(Agent).filter(Agent.id == agent_id).first():
        raise ValueError("Agent not found")
    if db.query(TripAgent).filter(TripAgent.trip_id == trip_id, TripAgent.agent_id == agent_id).first():
        raise ValueError("Agent already in trip")

    with unit_of_work(trip_id, "trip agents", db):
        trip_agent = TripAgent(trip_id=trip_id, agent_id=agent_id)
        db.add(trip_agent)
        db.flush()
        _create_missing_assignments(trip_id, db, agent_id=agent_id)

        run_cascade(trip_id, db, customer_ids=get_trip_customer_ids(trip_id, db))
        return trip_agent


def remove_agent_from_trip(trip_id: int, agent_id: int, db: Session) -> None:
    """Take an agent off the trip together with all of their assignments on it."""
    trip_agent = db.query(TripAgent).filter(
        TripAgent.trip_id == trip_id,
        TripAgent.agent_id == agent_id
    ).first()
    if not trip_agent:
        raise ValueError("Agent not found in this trip")

    with unit_of_work(trip_id, "trip agents", db):
        db.query(AgentCustomerAssignment).filter(
            AgentCustomerAssignment.trip_id == trip_id,
            AgentCustomerAssignment.agent_id == agent_id
        ).delete(synchronize_session=False)
        db.delete(trip_agent)
        db.flush()

        run_cascade(trip_id, db, customer_ids=get_trip_customer_ids(trip_id, db))


def update_commission_rate(
    trip_id: int,
    agent_id: int,
    customer_id: int,
    commission_rate: Decimal,
    db: Session
) -> AgentCustomerAssignment:
    """Change the rate an agent earns on one customer for this trip only."""
    rate = to_decimal(commission_rate)
    if rate < 0 or rate > 100:
        raise ValueError("Commission rate must be between 0 and 100")

    assignment = db.query(AgentCustomerAssignment).filter(
        AgentCustomerAssignment.trip_id == trip_id,
        AgentCustomerAssignment.agent_id == agent_id,
        AgentCustomerAssignment.customer_id == customer_id
    ).first()
    if not assignment:
        raise ValueError("Agent is not assigned to this customer in this trip")

    with unit_of_work(trip_id, "commission rate", db):
        assignment.commission_rate = rate
        db.flush()

        run_cascade(trip_id, db)
        return assignment


# Ledger

def record_transaction(
    trip_id: int,
    customer_id: int,
    amount: Decimal,
    transaction_type: TransactionType,
    status: TransactionStatus = TransactionStatus.COMPLETED,
    agent_id: Optional[int] = None,
    venue: Optional[str] = None,
    db: Session = None
) -> Transaction:
    """Book a transaction for a rostered customer and recalculate."""
    _require_customer_on_trip(trip_id, customer_id, db)
    if to_decimal(amount) <= 0:
        raise ValueError("Amount must be positive")

    if agent_id is not None and not db.query(Agent).filter(Agent.id == agent_id).first():
        logger.warning(f"Transaction references unknown agent {agent_id}, leaving it unset")
        agent_id = None
    if agent_id is None:
        customer = db.query(Customer).filter(Customer.id == customer_id).first()
        if customer and customer.agent_id and db.query(Agent).filter(Agent.id == customer.agent_id).first():
            agent_id = customer.agent_id

    with unit_of_work(trip_id, "transaction", db):
        transaction = Transaction(
            trip_id=trip_id,
            customer_id=customer_id,
            agent_id=agent_id,
            amount=to_decimal(amount),
            transaction_type=transaction_type,
            status=status,
            venue=venue
        )
        db.add(transaction)
        db.flush()

        run_cascade(trip_id, db, customer_ids=[customer_id])
        return transaction


def record_rolling(
    trip_id: int,
    customer_id: int,
    rolling_amount: Decimal,
    verified: bool = True,
    game_type: Optional[str] = None,
    db: Session = None
) -> RollingRecord:
    """Book a rolling record for a rostered customer and recalculate."""
    _require_customer_on_trip(trip_id, customer_id, db)
    if to_decimal(rolling_amount) <= 0:
        raise ValueError("Rolling amount must be positive")

    with unit_of_work(trip_id, "rolling record", db):
        record = RollingRecord(
            trip_id=trip_id,
            customer_id=customer_id,
            rolling_amount=to_decimal(rolling_amount),
            verified=verified,
            game_type=game_type
        )
        db.add(record)
        db.flush()

        run_cascade(trip_id, db, customer_ids=[customer_id])
        return record


def update_customer_stats(
    trip_id: int,
    customer_id: int,
    total_buy_in=None,
    total_cash_out=None,
    total_win=None,
    total_loss=None,
    rolling_amount=None,
    db: Session = None
) -> TripCustomerStats:
    """Store manually edited stats for a customer; the ledger is not re-read for them."""
    _require_customer_on_trip(trip_id, customer_id, db)
    with unit_of_work(trip_id, "customer stats", db):
        customer_stats_service.apply_manual_stats(
            trip_id, customer_id,
            total_buy_in=total_buy_in,
            total_cash_out=total_cash_out,
            total_win=total_win,
            total_loss=total_loss,
            rolling_amount=rolling_amount,
            db=db
        )
        run_cascade(trip_id, db, customer_ids=[customer_id], refresh_from_ledger=False)
        return customer_stats_service.get_stored_stats(trip_id, customer_id, db)


# Expenses

def add_expense(
    trip_id: int,
    expense_type: str,
    amount: Decimal,
    description: Optional[str] = None,
    expense_date: Optional[date] = None,
    db: Session = None
) -> TripExpense:
    """Book a cost against the trip and recalculate."""
    get_trip_or_error(trip_id, db)
    if to_decimal(amount) <= 0:
        raise ValueError("Amount must be positive")

    with unit_of_work(trip_id, "trip expenses", db):
        expense = TripExpense(
            trip_id=trip_id,
            expense_type=expense_type,
            amount=to_decimal(amount),
            description=description,
            expense_date=expense_date or date.today()
        )
        db.add(expense)
        db.flush()

        run_cascade(trip_id, db)
        return expense


def _get_expense_or_error(trip_id: int, expense_id: int, db: Session) -> TripExpense:
    expense = db.query(TripExpense).filter(
        TripExpense.id == expense_id,
        TripExpense.trip_id == trip_id
    ).first()
    if not expense:
        raise ValueError("Expense not found")
    return expense


def update_expense(trip_id: int, expense_id: int, db: Session, **changes) -> TripExpense:
    """Apply the given (non-None) field changes to an expense and recalculate."""
    expense = _get_expense_or_error(trip_id, expense_id, db)
    if changes.get("amount") is not None and to_decimal(changes["amount"]) <= 0:
        raise ValueError("Amount must be positive")

    with unit_of_work(trip_id, "trip expenses", db):
        for name in ("expense_type", "amount", "description", "expense_date"):
            if changes.get(name) is not None:
                setattr(expense, name, changes[name])
        db.flush()

        run_cascade(trip_id, db)
        return expense


def delete_expense(trip_id: int, expense_id: int, db: Session) -> None:
    """Remove an expense and recalculate."""
    expense = _get_expense_or_error(trip_id, expense_id, db)
    with unit_of_work(trip_id, "trip expenses", db):
        db.delete(expense)
        db.flush()

        run_cascade(trip_id, db)
