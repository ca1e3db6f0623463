"""
Tests for trip totals and the statistics report.
"""
import pytest
from decimal import Decimal
from app.models.ledger import TransactionType, TransactionStatus
from app.services import trip_service, trip_stats_service
from app.services.trip_stats_service import TripStatsValue, profit_margin


def _two_customer_trip(db, make_trip, make_customer):
    trip = make_trip()
    loser = make_customer("Customer Park")
    winner = make_customer("Customer Choi")
    for customer in (loser, winner):
        trip_service.add_customer_to_trip(trip.id, customer.id, db)
    trip_service.update_customer_stats(
        trip.id, loser.id, total_buy_in=Decimal("1000"), total_cash_out=Decimal("700"), db=db
    )
    trip_service.update_customer_stats(
        trip.id, winner.id, total_buy_in=Decimal("500"), total_cash_out=Decimal("600"), db=db
    )
    return trip


def test_trip_totals_sum_customer_stats(db, make_trip, make_customer):
    trip = _two_customer_trip(db, make_trip, make_customer)

    stats = trip_stats_service.calculate_trip_stats(trip.id, db)
    assert stats.customer_count == 2
    assert stats.total_buy_in == Decimal("1500")
    assert stats.total_cash_out == Decimal("1300")
    assert stats.net_profit == Decimal("-200")

    db.refresh(trip)
    assert trip.net_profit == Decimal("-200")


def test_trip_without_customers_is_all_zero(db, make_trip):
    trip = make_trip()
    stats = trip_stats_service.calculate_trip_stats(trip.id, db)
    assert stats.customer_count == 0
    assert not stats.has_customers
    assert stats.net_profit == Decimal("0")


def test_profit_margin():
    stats = TripStatsValue(trip_id=1, total_buy_in=Decimal("3000"), total_cash_out=Decimal("2000"))
    assert profit_margin(stats) == Decimal("-33.33")
    assert profit_margin(TripStatsValue(trip_id=1)) == Decimal("0")


def test_trip_statistics_report(db, make_trip, make_customer):
    trip = make_trip()
    customer = make_customer()
    trip_service.add_customer_to_trip(trip.id, customer.id, db)
    trip_service.record_transaction(trip.id, customer.id, Decimal("1000"), TransactionType.BUY_IN, db=db)
    trip_service.record_transaction(trip.id, customer.id, Decimal("500"), TransactionType.BUY_IN, db=db)
    trip_service.record_transaction(trip.id, customer.id, Decimal("900"), TransactionType.CASH_OUT, db=db)
    trip_service.record_transaction(
        trip.id, customer.id, Decimal("100"), TransactionType.CASH_OUT,
        status=TransactionStatus.PENDING, db=db
    )

    report = trip_stats_service.trip_statistics(trip.id, db)
    assert report["trip_name"] == "Macau Spring Trip"
    assert report["customer_count"] == 1
    assert report["net_profit"] == Decimal("-600")
    assert report["profit_margin"] == Decimal("-40.00")
    assert report["transaction_summary"]["buy-in"] == {"count": 2, "total": Decimal("1500")}
    assert report["transaction_summary"]["cash-out"] == {"count": 1, "total": Decimal("900")}
    assert report["transaction_summary"]["win"]["count"] == 0


def test_trip_statistics_unknown_trip(db):
    with pytest.raises(ValueError, match="Trip not found"):
        trip_stats_service.trip_statistics(404, db)
