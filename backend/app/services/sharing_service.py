"""
Sharing service: agent commission, rolling commission and company share for a trip.

Sign conventions
----------------
Customer stats and trip ``net_profit`` are from the customer's perspective
(positive = customers won). Sharing figures are from the house's perspective:
``house_win_loss = -net_profit``. An agent is paid a cut of what the house
wins from their customers and bears the same cut of what the house loses.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional, Tuple
from sqlalchemy.orm import Session
from app.core.config import settings
from app.core.utils import ZERO, CENT, to_decimal, quantize_money
from app.models.agent import Agent, AgentCustomerAssignment
from app.models.customer import Customer
from app.models.expense import TripExpense
from app.models.sharing import TripCustomerStats, TripSharing
from app.services.trip_stats_service import TripStatsValue

logger = logging.getLogger(__name__)

HUNDRED = Decimal(100)


@dataclass
class AgentShare:
    """
    One agent's accumulated commission on a trip.

    ``commission_rate`` is the rate shared by all of the agent's customers on
    the trip, or None when their per-trip rates differ.
    """
    agent_id: int
    commission_rate: Optional[Decimal]
    share_amount: Decimal = ZERO

    def to_json(self) -> dict:
        return {
            "agent_id": self.agent_id,
            "commission_rate": float(self.commission_rate) if self.commission_rate is not None else None,
            "share_amount": float(quantize_money(self.share_amount)),
        }


@dataclass
class SharingValue:
    """Unsaved trip sharing figures."""
    trip_id: int
    has_customers: bool = False
    house_win_loss: Decimal = ZERO
    total_expenses: Decimal = ZERO
    total_rolling: Decimal = ZERO
    total_rolling_commission: Decimal = ZERO
    total_buy_in: Decimal = ZERO
    total_buy_out: Decimal = ZERO
    net_cash_flow: Decimal = ZERO
    net_result: Decimal = ZERO
    total_agent_share: Decimal = ZERO
    company_share: Decimal = ZERO
    agent_share_percentage: Decimal = ZERO
    company_share_percentage: Decimal = ZERO
    agent_breakdown: List[AgentShare] = field(default_factory=list)


def rolling_commission(rolling_amount, rate: Optional[Decimal] = None) -> Decimal:
    """House take on rolling volume at the configured flat percentage."""
    if rate is None:
        rate = settings.ROLLING_COMMISSION_RATE
    return to_decimal(rolling_amount) * to_decimal(rate) / HUNDRED


def agent_commission(customer_net_result, commission_rate) -> Decimal:
    """
    Commission an agent earns on one customer.

    Customer lost (house won): the agent is paid rate% of the loss.
    Customer won (house lost): the agent bears rate% of the win, so the
    commission is negative. Break-even pays nothing.
    """
    net = to_decimal(customer_net_result)
    amount = abs(net) * to_decimal(commission_rate) / HUNDRED
    if net < 0:
        return amount
    if net > 0:
        return -amount
    return ZERO


def share_percentages(agent_share, company_share) -> Tuple[Decimal, Decimal]:
    """
    Split of the agent and company share magnitudes, in percent.

    Both are 0 when there is nothing to split. Otherwise the agent figure is
    rounded half up to 2 places and the company gets the remainder, so the
    pair always sums to exactly 100. Direction lives in the raw amounts.
    """
    agent_abs = abs(to_decimal(agent_share))
    company_abs = abs(to_decimal(company_share))
    total_amount = agent_abs + company_abs
    if total_amount == 0:
        return ZERO, ZERO

    agent_pct = (agent_abs / total_amount * HUNDRED).quantize(CENT, rounding=ROUND_HALF_UP)
    return agent_pct, HUNDRED - agent_pct


def get_total_expenses(trip_id: int, db: Session) -> Decimal:
    """Sum of every expense booked on the trip, whatever its type."""
    expenses = db.query(TripExpense).filter(TripExpense.trip_id == trip_id).all()
    return sum((to_decimal(e.amount) for e in expenses), ZERO)


def calculate_agent_breakdown(
    trip_id: int,
    customer_stats: List[TripCustomerStats],
    db: Session
) -> List[AgentShare]:
    """Accumulate per-agent commission over the trip's agent-customer assignments."""
    stats_by_customer: Dict[int, TripCustomerStats] = {s.customer_id: s for s in customer_stats}
    assignments = db.query(AgentCustomerAssignment).filter(
        AgentCustomerAssignment.trip_id == trip_id
    ).order_by(AgentCustomerAssignment.agent_id, AgentCustomerAssignment.customer_id).all()

    breakdown: Dict[int, AgentShare] = {}
    for assignment in assignments:
        customer_stat = stats_by_customer.get(assignment.customer_id)
        if customer_stat is None:
            logger.warning(
                f"Agent {assignment.agent_id} is assigned customer {assignment.customer_id} "
                f"in trip {trip_id} but the customer has no stats; counting zero"
            )
            continue

        rate = to_decimal(assignment.commission_rate)
        commission = agent_commission(customer_stat.net_result, rate)
        share = breakdown.get(assignment.agent_id)
        if share is None:
            share = AgentShare(agent_id=assignment.agent_id, commission_rate=rate)
            breakdown[assignment.agent_id] = share
        elif share.commission_rate is not None and share.commission_rate != rate:
            share.commission_rate = None
        share.share_amount += commission

    return [breakdown[agent_id] for agent_id in sorted(breakdown)]


def calculate_sharing(
    trip_id: int,
    customer_stats: List[TripCustomerStats],
    trip_stats: TripStatsValue,
    db: Session
) -> SharingValue:
    """
    Calculate the trip's profit sharing from current customer stats and totals.

    Missing agents, rates or stats rows count as zero; this always produces a
    value. Expenses count even when the trip has no customers.
    """
    value = SharingValue(trip_id=trip_id, has_customers=trip_stats.has_customers)

    value.total_expenses = get_total_expenses(trip_id, db)
    value.total_rolling = sum((to_decimal(s.rolling_amount) for s in customer_stats), ZERO)
    value.total_rolling_commission = rolling_commission(value.total_rolling)

    value.agent_breakdown = calculate_agent_breakdown(trip_id, customer_stats, db)
    value.total_agent_share = sum((a.share_amount for a in value.agent_breakdown), ZERO)

    if value.has_customers:
        value.house_win_loss = -trip_stats.net_profit
        value.total_buy_in = trip_stats.total_buy_in
        value.total_buy_out = trip_stats.total_cash_out
        value.net_cash_flow = trip_stats.total_cash_out - trip_stats.total_buy_in
        value.net_result = value.house_win_loss - value.total_rolling_commission - value.total_expenses
    else:
        value.net_result = -value.total_expenses

    value.company_share = (
        value.house_win_loss
        - value.total_agent_share
        + value.total_rolling_commission
        - value.total_expenses
    )
    value.agent_share_percentage, value.company_share_percentage = share_percentages(
        value.total_agent_share, value.company_share
    )

    logger.info(
        f"Trip {trip_id} sharing: house_win_loss={value.house_win_loss}, "
        f"agent_share={value.total_agent_share}, company_share={value.company_share}, "
        f"net_result={value.net_result}"
    )
    return value


def get_sharing_row(trip_id: int, db: Session) -> Optional[TripSharing]:
    return db.query(TripSharing).filter(TripSharing.trip_id == trip_id).first()


def save_sharing(value: SharingValue, db: Session) -> TripSharing:
    """Upsert the single sharing row of the trip. Flushes, never commits."""
    row = get_sharing_row(value.trip_id, db)
    if row is None:
        row = TripSharing(trip_id=value.trip_id)
        db.add(row)

    apply_sharing(row, value)
    db.flush()
    return row


def apply_sharing(row: TripSharing, value: SharingValue) -> TripSharing:
    """Copy calculated figures onto a sharing row, rounded to cents."""
    row.total_win_loss = quantize_money(value.house_win_loss)
    row.total_expenses = quantize_money(value.total_expenses)
    row.total_rolling = quantize_money(value.total_rolling)
    row.total_rolling_commission = quantize_money(value.total_rolling_commission)
    row.total_buy_in = quantize_money(value.total_buy_in)
    row.total_buy_out = quantize_money(value.total_buy_out)
    row.net_cash_flow = quantize_money(value.net_cash_flow)
    row.net_result = quantize_money(value.net_result)
    row.total_agent_share = quantize_money(value.total_agent_share)
    row.company_share = quantize_money(value.company_share)
    row.agent_share_percentage = value.agent_share_percentage
    row.company_share_percentage = value.company_share_percentage
    row.agent_breakdown = [share.to_json() for share in value.agent_breakdown]
    row.updated_at = datetime.utcnow()
    return row


def agent_profit_report(trip_id: int, db: Session) -> List[dict]:
    """
    Per-agent view of the commission each assigned customer produced on a trip.

    Read only; uses the stored customer stats rows.
    """
    assignments = db.query(AgentCustomerAssignment).filter(
        AgentCustomerAssignment.trip_id == trip_id
    ).order_by(AgentCustomerAssignment.agent_id, AgentCustomerAssignment.customer_id).all()
    if not assignments:
        return []

    agent_ids = {a.agent_id for a in assignments}
    customer_ids = {a.customer_id for a in assignments}
    agent_map = {a.id: a for a in db.query(Agent).filter(Agent.id.in_(agent_ids)).all()}
    customer_map = {c.id: c for c in db.query(Customer).filter(Customer.id.in_(customer_ids)).all()}
    stats_map = {
        s.customer_id: s
        for s in db.query(TripCustomerStats).filter(TripCustomerStats.trip_id == trip_id).all()
    }

    report: Dict[int, dict] = {}
    for assignment in assignments:
        agent = agent_map.get(assignment.agent_id)
        customer = customer_map.get(assignment.customer_id)
        stats = stats_map.get(assignment.customer_id)

        customer_net = to_decimal(stats.net_result) if stats else ZERO
        rolling_amount = to_decimal(stats.rolling_amount) if stats else ZERO
        commission = agent_commission(customer_net, assignment.commission_rate)
        rolling = rolling_commission(rolling_amount)

        entry = report.setdefault(assignment.agent_id, {
            "agent_id": assignment.agent_id,
            "agent_name": agent.name if agent else "Unknown Agent",
            "agent_email": (agent.email or "") if agent else "",
            "customers": [],
            "total_agent_commission": ZERO,
            "total_rolling_commission": ZERO,
            "total_customer_net": ZERO,
        })
        entry["customers"].append({
            "customer_id": assignment.customer_id,
            "customer_name": customer.name if customer else "Unknown Customer",
            "commission_rate": to_decimal(assignment.commission_rate),
            "net_result": customer_net,
            "rolling_amount": rolling_amount,
            "agent_commission": quantize_money(commission),
            "rolling_commission": quantize_money(rolling),
            "buy_in": to_decimal(stats.total_buy_in) if stats else ZERO,
            "cash_out": to_decimal(stats.total_cash_out) if stats else ZERO,
        })
        entry["total_agent_commission"] += commission
        entry["total_rolling_commission"] += rolling
        entry["total_customer_net"] += customer_net

    # Round the totals once so they match the stored breakdown
    for entry in report.values():
        entry["total_agent_commission"] = quantize_money(entry["total_agent_commission"])
        entry["total_rolling_commission"] = quantize_money(entry["total_rolling_commission"])
    return list(report.values())
