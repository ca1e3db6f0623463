"""
Tests for agent lifetime statistics.
"""
from decimal import Decimal
from app.models.sharing import TripAgentSummary
from app.services import agent_stats_service, reconciliation_service, trip_service


def _losing_customer_trip(db, trip, customer, loss):
    trip_service.add_customer_to_trip(trip.id, customer.id, db)
    trip_service.update_customer_stats(trip.id, customer.id, total_loss=Decimal(loss), db=db)


def test_repeated_recalculation_does_not_inflate_totals(db, make_trip, make_agent, make_customer):
    trip = make_trip()
    agent = make_agent(commission_rate="10")
    customer = make_customer(agent=agent)
    _losing_customer_trip(db, trip, customer, "1000")

    for _ in range(3):
        reconciliation_service.recompute_trip(trip.id, db)
        reconciliation_service.get_sharing(trip.id, db)

    db.refresh(agent)
    assert agent.total_commission == Decimal("100")
    assert agent.total_trips == 1


def test_totals_span_trips(db, make_trip, make_agent, make_customer):
    agent = make_agent(commission_rate="10")
    customer = make_customer(agent=agent)
    _losing_customer_trip(db, make_trip("Macau"), customer, "1000")
    _losing_customer_trip(db, make_trip("Jeju"), customer, "500")

    db.refresh(agent)
    assert agent.total_commission == Decimal("150")
    assert agent.total_trips == 2


def test_trip_summary_per_agent(db, make_trip, make_agent, make_customer):
    trip = make_trip()
    agent = make_agent(commission_rate="10")
    first = make_customer("Customer Park", agent=agent)
    second = make_customer("Customer Choi", agent=agent)
    _losing_customer_trip(db, trip, first, "1000")
    trip_service.add_customer_to_trip(trip.id, second.id, db)
    trip_service.update_customer_stats(trip.id, second.id, total_win=Decimal("400"), db=db)

    summary = db.query(TripAgentSummary).filter(
        TripAgentSummary.trip_id == trip.id,
        TripAgentSummary.agent_id == agent.id
    ).one()
    assert summary.customer_count == 2
    assert summary.total_win_loss == Decimal("-600")
    assert summary.total_profit == Decimal("-600")
    assert summary.total_commission == Decimal("60")


def test_removed_customer_drops_agent_commission(db, make_trip, make_agent, make_customer):
    trip = make_trip()
    agent = make_agent(commission_rate="10")
    customer = make_customer(agent=agent)
    _losing_customer_trip(db, trip, customer, "1000")

    trip_service.remove_customer_from_trip(trip.id, customer.id, db)

    db.refresh(agent)
    assert agent.total_commission == Decimal("0")
    # The agent is still on the trip roster
    assert agent.total_trips == 1
    assert db.query(TripAgentSummary).filter(TripAgentSummary.trip_id == trip.id).count() == 0


def test_removed_agent_loses_trip(db, make_trip, make_agent, make_customer):
    trip = make_trip()
    agent = make_agent(commission_rate="10")
    customer = make_customer(agent=agent)
    _losing_customer_trip(db, trip, customer, "1000")

    trip_service.remove_agent_from_trip(trip.id, agent.id, db)

    db.refresh(agent)
    assert agent.total_commission == Decimal("0")
    assert agent.total_trips == 0


def test_recalculate_all_agents(db, make_trip, make_agent, make_customer):
    trip = make_trip()
    agent = make_agent(commission_rate="10")
    make_agent("Agent Jung", commission_rate="5")
    customer = make_customer(agent=agent)
    _losing_customer_trip(db, trip, customer, "1000")

    agent.total_commission = Decimal("99999")
    db.commit()

    assert agent_stats_service.recalculate_all_agent_statistics(db) == 2
    db.commit()
    db.refresh(agent)
    assert agent.total_commission == Decimal("100")


def test_unknown_agent_is_ignored(db):
    assert agent_stats_service.recalculate_agent_statistics(404, db) is None
