"""
Customer stats service: one customer's buy-in, cash-out, win/loss and rolling totals for a trip.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Dict, Optional
from sqlalchemy.orm import Session
from app.core.config import settings
from app.core.utils import ZERO, to_decimal, quantize_money
from app.models.customer import Customer
from app.models.ledger import Transaction, TransactionStatus, TransactionType, RollingRecord
from app.models.sharing import TripCustomerStats

logger = logging.getLogger(__name__)

# Transaction types that feed a stats bucket; the rest are ignored
TYPE_BUCKETS = {
    TransactionType.BUY_IN: "total_buy_in",
    TransactionType.CASH_OUT: "total_cash_out",
    TransactionType.WIN: "total_win",
    TransactionType.LOSS: "total_loss",
}


@dataclass
class CustomerStatsValue:
    """Unsaved per-customer trip stats."""
    trip_id: int
    customer_id: int
    total_buy_in: Decimal = ZERO
    total_cash_out: Decimal = ZERO
    total_win: Decimal = ZERO
    total_loss: Decimal = ZERO
    rolling_amount: Decimal = ZERO

    @property
    def net_result(self) -> Decimal:
        """Customer perspective: positive means the customer is ahead."""
        return (self.total_cash_out + self.total_win) - (self.total_buy_in + self.total_loss)

    @property
    def commission_earned(self) -> Decimal:
        """Rolling commission the house takes on this customer's turnover."""
        return self.rolling_amount * settings.ROLLING_COMMISSION_RATE / Decimal(100)


def net_result(total_buy_in, total_cash_out, total_win, total_loss) -> Decimal:
    """(cash_out + win) - (buy_in + loss)."""
    return (to_decimal(total_cash_out) + to_decimal(total_win)) - (
        to_decimal(total_buy_in) + to_decimal(total_loss)
    )


def get_stored_stats(trip_id: int, customer_id: int, db: Session) -> Optional[TripCustomerStats]:
    """Return the persisted stats row for (trip, customer), if any."""
    return db.query(TripCustomerStats).filter(
        TripCustomerStats.trip_id == trip_id,
        TripCustomerStats.customer_id == customer_id
    ).first()


def calculate_customer_stats(trip_id: int, customer_id: int, db: Session) -> CustomerStatsValue:
    """
    Calculate a customer's stats for a trip from the ledger.

    Only completed transactions and verified rolling records count. When the
    ledger holds no verified rolling for the pair, the stored rolling amount is
    kept so manually entered figures survive a recomputation; the stored
    totals are kept the same way when there are no completed transactions.
    An unknown trip or customer simply yields zeros.
    """
    value = CustomerStatsValue(trip_id=trip_id, customer_id=customer_id)

    transactions = db.query(Transaction).filter(
        Transaction.trip_id == trip_id,
        Transaction.customer_id == customer_id,
        Transaction.status == TransactionStatus.COMPLETED
    ).all()

    buckets: Dict[str, Decimal] = {name: ZERO for name in TYPE_BUCKETS.values()}
    for transaction in transactions:
        bucket = TYPE_BUCKETS.get(transaction.transaction_type)
        if bucket is None:
            logger.debug(
                f"Ignoring {transaction.transaction_type} transaction {transaction.id} "
                f"for customer {customer_id} in trip {trip_id}"
            )
            continue
        buckets[bucket] += to_decimal(transaction.amount)

    rolling_records = db.query(RollingRecord).filter(
        RollingRecord.trip_id == trip_id,
        RollingRecord.customer_id == customer_id,
        RollingRecord.verified.is_(True)
    ).all()
    rolling_amount = sum((to_decimal(r.rolling_amount) for r in rolling_records), ZERO)

    if not rolling_records:
        stored = get_stored_stats(trip_id, customer_id, db)
        if stored is not None:
            rolling_amount = to_decimal(stored.rolling_amount)
            if not transactions:
                buckets = {name: to_decimal(getattr(stored, name)) for name in buckets}
                logger.debug(f"Reusing stored totals for customer {customer_id} in trip {trip_id}")

    value.total_buy_in = buckets["total_buy_in"]
    value.total_cash_out = buckets["total_cash_out"]
    value.total_win = buckets["total_win"]
    value.total_loss = buckets["total_loss"]
    value.rolling_amount = rolling_amount
    return value


def save_customer_stats(value: CustomerStatsValue, db: Session) -> TripCustomerStats:
    """Upsert the stats row for (trip, customer). Flushes, never commits."""
    row = get_stored_stats(value.trip_id, value.customer_id, db)
    if row is None:
        row = TripCustomerStats(trip_id=value.trip_id, customer_id=value.customer_id)
        db.add(row)

    row.total_buy_in = quantize_money(value.total_buy_in)
    row.total_cash_out = quantize_money(value.total_cash_out)
    row.total_win = quantize_money(value.total_win)
    row.total_loss = quantize_money(value.total_loss)
    row.net_result = quantize_money(value.net_result)
    row.rolling_amount = quantize_money(value.rolling_amount)
    row.commission_earned = quantize_money(value.commission_earned)
    row.updated_at = datetime.utcnow()
    db.flush()
    return row


def apply_manual_stats(
    trip_id: int,
    customer_id: int,
    total_buy_in=None,
    total_cash_out=None,
    total_win=None,
    total_loss=None,
    rolling_amount=None,
    db: Session = None
) -> TripCustomerStats:
    """
    Store manually entered totals for a customer.

    Fields left as None keep their stored value. Net result and rolling
    commission are always re-derived so the row stays consistent.
    """
    stored = get_stored_stats(trip_id, customer_id, db)
    value = CustomerStatsValue(trip_id=trip_id, customer_id=customer_id)
    if stored is not None:
        value.total_buy_in = to_decimal(stored.total_buy_in)
        value.total_cash_out = to_decimal(stored.total_cash_out)
        value.total_win = to_decimal(stored.total_win)
        value.total_loss = to_decimal(stored.total_loss)
        value.rolling_amount = to_decimal(stored.rolling_amount)

    if total_buy_in is not None:
        value.total_buy_in = to_decimal(total_buy_in)
    if total_cash_out is not None:
        value.total_cash_out = to_decimal(total_cash_out)
    if total_win is not None:
        value.total_win = to_decimal(total_win)
    if total_loss is not None:
        value.total_loss = to_decimal(total_loss)
    if rolling_amount is not None:
        value.rolling_amount = to_decimal(rolling_amount)

    return save_customer_stats(value, db)


def sync_customer_totals(customer_id: int, db: Session) -> Optional[Customer]:
    """Recompute a customer's lifetime totals from all of their trip stats rows."""
    customer = db.query(Customer).filter(Customer.id == customer_id).first()
    if not customer:
        logger.debug(f"Customer {customer_id} not found, skipping lifetime totals")
        return None

    rows = db.query(TripCustomerStats).filter(TripCustomerStats.customer_id == customer_id).all()
    customer.total_rolling = sum((to_decimal(r.rolling_amount) for r in rows), ZERO)
    customer.total_win_loss = sum((to_decimal(r.net_result) for r in rows), ZERO)
    customer.total_buy_in = sum((to_decimal(r.total_buy_in) for r in rows), ZERO)
    customer.total_buy_out = sum((to_decimal(r.total_cash_out) for r in rows), ZERO)
    db.flush()
    return customer
