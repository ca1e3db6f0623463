"""
Reconciliation service: runs the recalculation cascade for a trip.

customer stats -> trip totals -> sharing -> agent statistics

Each cascade is one unit of work: every stage flushes into the caller's
session and a single commit closes it. A datastore failure rolls the whole
cascade back and raises PersistenceError, leaving every derived row at its
previous value. Nothing is incremental; every stage re-derives from the
ledger, so running a cascade again heals any stale row.
"""
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from app.core.exceptions import PersistenceError
from app.models.trip import Trip, TripCustomer
from app.models.sharing import TripCustomerStats, TripSharing
from app.services import customer_stats_service, trip_stats_service, sharing_service, agent_stats_service
from app.services.trip_stats_service import TripStatsValue

logger = logging.getLogger(__name__)


@dataclass
class TripRecomputation:
    """Everything one cascade produced for a trip."""
    trip_id: int
    stats: TripStatsValue
    sharing: TripSharing
    customer_stats: List[TripCustomerStats] = field(default_factory=list)


def get_trip_customer_ids(trip_id: int, db: Session) -> List[int]:
    """Customers on the roster plus any customer that already has a stats row."""
    roster = db.query(TripCustomer.customer_id).filter(TripCustomer.trip_id == trip_id).all()
    with_stats = db.query(TripCustomerStats.customer_id).filter(
        TripCustomerStats.trip_id == trip_id
    ).all()
    return sorted({row.customer_id for row in roster} | {row.customer_id for row in with_stats})


def is_on_trip(trip_id: int, customer_id: int, db: Session) -> bool:
    return db.query(TripCustomer).filter(
        TripCustomer.trip_id == trip_id,
        TripCustomer.customer_id == customer_id
    ).first() is not None


def run_cascade(
    trip_id: int,
    db: Session,
    customer_ids: Iterable[int] = (),
    refresh_from_ledger: bool = True
) -> TripRecomputation:
    """
    Recalculate and persist every derived row of a trip, then commit.

    ``customer_ids`` are the customers touched by the triggering mutation. With
    ``refresh_from_ledger`` their stats are rebuilt from transactions and
    rolling records; without it (manual edits, removals) their stored rows are
    taken as they are. Their lifetime totals are re-synced either way.
    """
    customer_ids = list(customer_ids)
    trip = db.query(Trip).filter(Trip.id == trip_id).first()
    if not trip:
        logger.warning(f"Trip {trip_id} not found, returning zero figures without saving")
        return _zero_recomputation(trip_id, db)

    stage = "customer stats"
    try:
        if refresh_from_ledger:
            for customer_id in customer_ids:
                value = customer_stats_service.calculate_customer_stats(trip_id, customer_id, db)
                customer_stats_service.save_customer_stats(value, db)
        for customer_id in customer_ids:
            customer_stats_service.sync_customer_totals(customer_id, db)

        stage = "trip totals"
        customer_rows = trip_stats_service.get_trip_customer_stats(trip_id, db)
        trip_stats = trip_stats_service.summarize_customer_stats(trip_id, customer_rows)
        trip_stats_service.save_trip_stats(trip_stats, db)

        stage = "trip sharing"
        sharing_value = sharing_service.calculate_sharing(trip_id, customer_rows, trip_stats, db)
        sharing_row = sharing_service.save_sharing(sharing_value, db)

        stage = "agent statistics"
        agent_stats_service.update_agent_statistics(
            trip_id, sharing_value.agent_breakdown, customer_rows, db
        )

        stage = "commit"
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Recalculation of trip {trip_id} failed at {stage}: {e}", exc_info=True)
        raise PersistenceError(stage, trip_id) from e

    db.refresh(sharing_row)
    logger.info(
        f"Recalculated trip {trip_id}: {trip_stats.customer_count} customers, "
        f"net_profit={trip_stats.net_profit}, company_share={sharing_row.company_share}"
    )
    return TripRecomputation(
        trip_id=trip_id,
        stats=trip_stats,
        sharing=sharing_row,
        customer_stats=customer_rows
    )


def _zero_recomputation(trip_id: int, db: Session) -> TripRecomputation:
    """Figures for an unknown trip: nothing on the ledger, nothing written."""
    stats = TripStatsValue(trip_id=trip_id)
    value = sharing_service.calculate_sharing(trip_id, [], stats, db)
    sharing = sharing_service.apply_sharing(TripSharing(trip_id=trip_id), value)
    return TripRecomputation(trip_id=trip_id, stats=stats, sharing=sharing)


def _zero_stats(trip_id: int, customer_id: int) -> TripCustomerStats:
    """Unsaved all-zero stats row."""
    return TripCustomerStats(
        trip_id=trip_id, customer_id=customer_id,
        total_buy_in=0, total_cash_out=0, total_win=0, total_loss=0,
        net_result=0, rolling_amount=0, commission_earned=0
    )


def recompute_customer(trip_id: int, customer_id: int, db: Session) -> TripCustomerStats:
    """
    Recalculate one customer's stats and cascade through the trip.

    A customer that is not (or no longer) on the trip gets a zeroed, unsaved
    stats row and nothing else is touched.
    """
    if not is_on_trip(trip_id, customer_id, db) and \
            customer_stats_service.get_stored_stats(trip_id, customer_id, db) is None:
        logger.info(f"Customer {customer_id} is not on trip {trip_id}, nothing to recalculate")
        return _zero_stats(trip_id, customer_id)

    run_cascade(trip_id, db, customer_ids=[customer_id])
    stats = customer_stats_service.get_stored_stats(trip_id, customer_id, db)
    return stats if stats is not None else _zero_stats(trip_id, customer_id)


def recompute_trip(trip_id: int, db: Session) -> TripRecomputation:
    """Recalculate every customer of the trip and the rest of the cascade."""
    return run_cascade(trip_id, db, customer_ids=get_trip_customer_ids(trip_id, db))


def get_sharing(trip_id: int, db: Session) -> TripSharing:
    """Current sharing figures of a trip, recalculated first so they are fresh."""
    return recompute_trip(trip_id, db).sharing


@contextmanager
def unit_of_work(trip_id: Optional[int], stage: str, db: Session) -> Iterator[None]:
    """
    Guard a mutation that writes before (or instead of) running a cascade.

    A datastore failure inside the block rolls the session back and surfaces
    as PersistenceError; a PersistenceError from a nested cascade passes through.
    """
    try:
        yield
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Writing {stage} for trip {trip_id} failed: {e}", exc_info=True)
        raise PersistenceError(stage, trip_id) from e
