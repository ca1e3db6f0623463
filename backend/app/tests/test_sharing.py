"""
Tests for trip profit sharing.
"""
from decimal import Decimal
from app.models.agent import AgentCustomerAssignment
from app.models.ledger import TransactionType
from app.models.sharing import TripSharing
from app.services import reconciliation_service, sharing_service, trip_service
from app.services.sharing_service import agent_commission, rolling_commission, share_percentages


def test_agent_commission_signs():
    # Customer lost 300: house won, agent is paid
    assert agent_commission(Decimal("-300"), Decimal("10")) == Decimal("30")
    # Customer won 500: house lost, agent bears their cut
    assert agent_commission(Decimal("500"), Decimal("10")) == Decimal("-50")
    assert agent_commission(Decimal("0"), Decimal("10")) == Decimal("0")
    assert agent_commission(Decimal("-300"), Decimal("0")) == Decimal("0")


def test_rolling_commission_default_rate():
    assert rolling_commission(Decimal("2000")) == Decimal("28")
    assert rolling_commission(Decimal("2000"), Decimal("2")) == Decimal("40")
    assert rolling_commission(None) == Decimal("0")


def test_share_percentages_sum_to_hundred():
    agent_pct, company_pct = share_percentages(Decimal("50"), Decimal("-422"))
    assert agent_pct == Decimal("10.59")
    assert company_pct == Decimal("89.41")
    assert agent_pct + company_pct == Decimal("100")

    agent_pct, company_pct = share_percentages(Decimal("1"), Decimal("2"))
    assert agent_pct == Decimal("33.33")
    assert agent_pct + company_pct == Decimal("100")


def test_share_percentages_nothing_to_split():
    assert share_percentages(Decimal("0"), Decimal("0")) == (Decimal("0"), Decimal("0"))


def test_winning_customer_with_agent(db, make_trip, make_agent, make_customer):
    trip = make_trip()
    agent = make_agent(commission_rate="10")
    customer = make_customer(agent=agent)
    trip_service.add_customer_to_trip(trip.id, customer.id, db)
    trip_service.record_transaction(trip.id, customer.id, Decimal("1000"), TransactionType.BUY_IN, db=db)
    trip_service.record_transaction(trip.id, customer.id, Decimal("1500"), TransactionType.CASH_OUT, db=db)
    trip_service.record_rolling(trip.id, customer.id, Decimal("2000"), db=db)

    sharing = reconciliation_service.get_sharing(trip.id, db)

    assert sharing.total_win_loss == Decimal("-500")
    assert sharing.total_rolling == Decimal("2000")
    assert sharing.total_rolling_commission == Decimal("28")
    assert sharing.total_agent_share == Decimal("-50")
    assert sharing.company_share == Decimal("-422")
    assert sharing.net_result == Decimal("-528")
    assert sharing.total_buy_in == Decimal("1000")
    assert sharing.total_buy_out == Decimal("1500")
    assert sharing.net_cash_flow == Decimal("500")
    assert sharing.agent_share_percentage == Decimal("10.59")
    assert sharing.company_share_percentage == Decimal("89.41")
    assert sharing.agent_breakdown == [
        {"agent_id": agent.id, "commission_rate": 10.0, "share_amount": -50.0}
    ]


def test_house_perspective_win_loss(db, make_trip, make_customer):
    trip = make_trip()
    loser = make_customer("Customer Park")
    winner = make_customer("Customer Choi")
    for customer in (loser, winner):
        trip_service.add_customer_to_trip(trip.id, customer.id, db)
    trip_service.update_customer_stats(trip.id, loser.id, total_buy_in=Decimal("300"), db=db)
    trip_service.update_customer_stats(trip.id, winner.id, total_win=Decimal("100"), db=db)

    result = reconciliation_service.recompute_trip(trip.id, db)

    assert result.stats.net_profit == Decimal("-200")
    assert result.sharing.total_win_loss == Decimal("200")
    assert result.sharing.total_agent_share == Decimal("0")
    assert result.sharing.company_share == Decimal("200")
    assert result.sharing.agent_share_percentage == Decimal("0")
    assert result.sharing.company_share_percentage == Decimal("100")
    assert result.sharing.agent_breakdown == []


def test_agent_paid_on_losing_customer(db, make_trip, make_agent, make_customer):
    trip = make_trip()
    agent = make_agent(commission_rate="20")
    customer = make_customer(agent=agent)
    trip_service.add_customer_to_trip(trip.id, customer.id, db)
    trip_service.record_transaction(trip.id, customer.id, Decimal("5000"), TransactionType.LOSS, db=db)

    sharing = reconciliation_service.get_sharing(trip.id, db)

    assert sharing.total_win_loss == Decimal("5000")
    assert sharing.total_agent_share == Decimal("1000")
    assert sharing.company_share == Decimal("4000")
    assert sharing.agent_share_percentage == Decimal("20.00")
    assert sharing.company_share_percentage == Decimal("80.00")


def test_expenses_reduce_company_share(db, make_trip, make_customer):
    trip = make_trip()
    customer = make_customer()
    trip_service.add_customer_to_trip(trip.id, customer.id, db)
    trip_service.update_customer_stats(trip.id, customer.id, total_loss=Decimal("1000"), db=db)
    trip_service.add_expense(trip.id, "hotel", Decimal("150"), db=db)
    trip_service.add_expense(trip.id, "flight", Decimal("250"), db=db)

    sharing = reconciliation_service.get_sharing(trip.id, db)

    assert sharing.total_expenses == Decimal("400")
    assert sharing.net_result == Decimal("600")
    assert sharing.company_share == Decimal("600")


def test_zero_customer_trip_only_carries_expenses(db, make_trip):
    trip = make_trip()
    trip_service.add_expense(trip.id, "hotel", Decimal("300"), db=db)

    sharing = reconciliation_service.get_sharing(trip.id, db)

    assert sharing.total_win_loss == Decimal("0")
    assert sharing.net_cash_flow == Decimal("0")
    assert sharing.net_result == Decimal("-300")
    assert sharing.total_expenses == Decimal("300")
    assert sharing.company_share == Decimal("-300")
    assert sharing.agent_share_percentage + sharing.company_share_percentage == Decimal("100")


def test_empty_trip_sharing_is_zero(db, make_trip):
    trip = make_trip()

    sharing = reconciliation_service.get_sharing(trip.id, db)

    assert sharing.net_result == Decimal("0")
    assert sharing.company_share == Decimal("0")
    assert sharing.agent_share_percentage == Decimal("0")
    assert sharing.company_share_percentage == Decimal("0")


def test_per_trip_rate_override(db, make_trip, make_agent, make_customer):
    trip = make_trip()
    agent = make_agent(commission_rate="10")
    customer = make_customer(agent=agent)
    trip_service.add_customer_to_trip(trip.id, customer.id, db)
    trip_service.update_customer_stats(trip.id, customer.id, total_loss=Decimal("1000"), db=db)

    trip_service.update_commission_rate(trip.id, agent.id, customer.id, Decimal("15"), db)
    sharing = reconciliation_service.get_sharing(trip.id, db)

    assert sharing.total_agent_share == Decimal("150")
    db.refresh(agent)
    assert agent.commission_rate == Decimal("10")


def test_assignment_without_stats_counts_zero(db, make_trip, make_agent, make_customer):
    trip = make_trip()
    paid_agent = make_agent("Agent Kim", commission_rate="10")
    stray_agent = make_agent("Agent Jung", commission_rate="10")
    rostered = make_customer("Customer Park", agent=paid_agent)
    absent = make_customer("Customer Choi")
    trip_service.add_customer_to_trip(trip.id, rostered.id, db)
    trip_service.update_customer_stats(trip.id, rostered.id, total_loss=Decimal("1000"), db=db)

    # Assignment for a customer that never joined the trip, so has no stats row
    db.add(AgentCustomerAssignment(
        trip_id=trip.id, agent_id=stray_agent.id, customer_id=absent.id, commission_rate=Decimal("10")
    ))
    db.commit()

    sharing = reconciliation_service.get_sharing(trip.id, db)

    assert sharing.total_agent_share == Decimal("100")
    assert [item["agent_id"] for item in sharing.agent_breakdown] == [paid_agent.id]
    assert sharing.company_share == Decimal("900")
    assert db.query(TripSharing).filter(TripSharing.trip_id == trip.id).count() == 1


def test_only_stray_assignment_leaves_breakdown_empty(db, make_trip, make_agent, make_customer):
    trip = make_trip()
    agent = make_agent()
    absent = make_customer()
    db.add(AgentCustomerAssignment(
        trip_id=trip.id, agent_id=agent.id, customer_id=absent.id, commission_rate=Decimal("10")
    ))
    db.commit()

    sharing = reconciliation_service.get_sharing(trip.id, db)

    assert sharing.total_agent_share == Decimal("0")
    assert sharing.agent_breakdown == []


def test_mixed_rates_leave_breakdown_rate_unset(db, make_trip, make_agent, make_customer):
    trip = make_trip()
    agent = make_agent(commission_rate="10")
    first = make_customer("Customer Park", agent=agent)
    second = make_customer("Customer Choi", agent=agent)
    for customer in (first, second):
        trip_service.add_customer_to_trip(trip.id, customer.id, db)
        trip_service.update_customer_stats(trip.id, customer.id, total_loss=Decimal("1000"), db=db)

    sharing = reconciliation_service.get_sharing(trip.id, db)
    assert sharing.agent_breakdown[0]["commission_rate"] == 10.0

    trip_service.update_commission_rate(trip.id, agent.id, second.id, Decimal("20"), db)
    sharing = reconciliation_service.get_sharing(trip.id, db)

    assert sharing.agent_breakdown == [
        {"agent_id": agent.id, "commission_rate": None, "share_amount": 300.0}
    ]


def test_profit_report_totals_match_breakdown(db, make_trip, make_agent, make_customer):
    trip = make_trip()
    agent = make_agent(commission_rate="12.5")
    first = make_customer("Customer Park", agent=agent)
    second = make_customer("Customer Choi", agent=agent)
    for customer in (first, second):
        trip_service.add_customer_to_trip(trip.id, customer.id, db)
        trip_service.update_customer_stats(trip.id, customer.id, total_loss=Decimal("1.01"), db=db)

    sharing = reconciliation_service.get_sharing(trip.id, db)
    report = sharing_service.agent_profit_report(trip.id, db)

    # Each customer rounds to 0.13 on its own; the agent total is rounded once
    assert [c["agent_commission"] for c in report[0]["customers"]] == [Decimal("0.13"), Decimal("0.13")]
    assert report[0]["total_agent_commission"] == Decimal("0.25")
    assert sharing.agent_breakdown[0]["share_amount"] == 0.25
    assert sharing.total_agent_share == Decimal("0.25")
