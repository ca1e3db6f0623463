"""
Trip stats service: trip-level totals summed over every customer's stats row.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List
from sqlalchemy.orm import Session
from app.core.utils import ZERO, CENT, to_decimal, quantize_money
from app.models.trip import Trip
from app.models.ledger import Transaction, TransactionStatus, TransactionType
from app.models.sharing import TripCustomerStats
from app.services.customer_stats_service import net_result

logger = logging.getLogger(__name__)


@dataclass
class TripStatsValue:
    """Trip totals from the customers' perspective."""
    trip_id: int
    total_win: Decimal = ZERO
    total_loss: Decimal = ZERO
    total_buy_in: Decimal = ZERO
    total_cash_out: Decimal = ZERO
    total_rolling: Decimal = ZERO
    customer_count: int = 0

    @property
    def net_profit(self) -> Decimal:
        """Positive when customers collectively won, negative when the house won."""
        return net_result(self.total_buy_in, self.total_cash_out, self.total_win, self.total_loss)

    @property
    def has_customers(self) -> bool:
        return self.customer_count > 0


def get_trip_customer_stats(trip_id: int, db: Session) -> List[TripCustomerStats]:
    """All persisted customer stats rows of a trip."""
    return db.query(TripCustomerStats).filter(
        TripCustomerStats.trip_id == trip_id
    ).order_by(TripCustomerStats.customer_id).all()


def summarize_customer_stats(trip_id: int, rows: List[TripCustomerStats]) -> TripStatsValue:
    """Sum customer stats rows into trip totals. No rows is a valid all-zero trip."""
    stats = TripStatsValue(trip_id=trip_id, customer_count=len(rows))
    for row in rows:
        stats.total_win += to_decimal(row.total_win)
        stats.total_loss += to_decimal(row.total_loss)
        stats.total_buy_in += to_decimal(row.total_buy_in)
        stats.total_cash_out += to_decimal(row.total_cash_out)
        stats.total_rolling += to_decimal(row.rolling_amount)
    return stats


def calculate_trip_stats(trip_id: int, db: Session) -> TripStatsValue:
    """Calculate trip totals from the stored customer stats rows."""
    return summarize_customer_stats(trip_id, get_trip_customer_stats(trip_id, db))


def save_trip_stats(stats: TripStatsValue, db: Session) -> None:
    """Write the engine-owned financial fields on the trip. Flushes, never commits."""
    trip = db.query(Trip).filter(Trip.id == stats.trip_id).first()
    if not trip:
        logger.warning(f"Trip {stats.trip_id} not found, trip totals not stored")
        return

    trip.total_win = quantize_money(stats.total_win)
    trip.total_loss = quantize_money(stats.total_loss)
    trip.net_profit = quantize_money(stats.net_profit)
    db.flush()


def profit_margin(stats: TripStatsValue) -> Decimal:
    """Net profit as a percentage of buy-in, 0 when nothing was bought in."""
    if stats.total_buy_in <= 0:
        return ZERO
    return (stats.net_profit / stats.total_buy_in * Decimal(100)).quantize(CENT, rounding=ROUND_HALF_UP)


def trip_statistics(trip_id: int, db: Session) -> dict:
    """
    Win/loss statistics for a trip with a per-type transaction summary.

    Totals come from the stored customer stats; the summary counts completed
    transactions only.
    """
    trip = db.query(Trip).filter(Trip.id == trip_id).first()
    if not trip:
        raise ValueError("Trip not found")

    stats = calculate_trip_stats(trip_id, db)
    summary: Dict[str, dict] = {t.value: {"count": 0, "total": ZERO} for t in TransactionType}
    transactions = db.query(Transaction).filter(
        Transaction.trip_id == trip_id,
        Transaction.status == TransactionStatus.COMPLETED
    ).all()
    for transaction in transactions:
        entry = summary[TransactionType(transaction.transaction_type).value]
        entry["count"] += 1
        entry["total"] += to_decimal(transaction.amount)

    return {
        "trip_id": trip.id,
        "trip_name": trip.trip_name,
        "customer_count": stats.customer_count,
        "total_win": stats.total_win,
        "total_loss": stats.total_loss,
        "total_buy_in": stats.total_buy_in,
        "total_cash_out": stats.total_cash_out,
        "total_rolling": stats.total_rolling,
        "net_profit": stats.net_profit,
        "profit_margin": profit_margin(stats),
        "transaction_summary": summary,
    }
