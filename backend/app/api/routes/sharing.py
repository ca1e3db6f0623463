"""
Trip reconciliation routes: recalculation, sharing, statistics and customer stats.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List
from app.db.session import get_db
from app.models.sharing import TripCustomerStats
from app.schemas.sharing import (
    CustomerStatsResponse, CustomerStatsUpdate, TripSharingResponse, TripStatsResponse,
    TripRecalculationResponse, TripStatisticsResponse, AgentProfitResponse
)
from app.services import reconciliation_service, sharing_service, trip_service, trip_stats_service
from app.services.customer_stats_service import get_stored_stats
from app.api.routes.trips import check_trip_exists, raise_http_error

router = APIRouter(prefix="/trips", tags=["sharing"])


@router.post("/{trip_id}/recalculate", response_model=TripRecalculationResponse)
async def recalculate_trip(
    trip_id: int,
    db: Session = Depends(get_db)
):
    """Recalculate the whole trip, backfilling missing agent assignments first."""
    check_trip_exists(trip_id, db)
    result = trip_service.recalculate_trip(trip_id, db)
    return TripRecalculationResponse(
        stats=TripStatsResponse.model_validate(result.stats),
        sharing=TripSharingResponse.model_validate(result.sharing)
    )


@router.post("/{trip_id}/customers/{customer_id}/recalculate", response_model=CustomerStatsResponse)
async def recalculate_customer(
    trip_id: int,
    customer_id: int,
    db: Session = Depends(get_db)
):
    """Recalculate one customer's stats and cascade through the trip."""
    check_trip_exists(trip_id, db)
    return reconciliation_service.recompute_customer(trip_id, customer_id, db)


@router.get("/{trip_id}/sharing", response_model=TripSharingResponse)
async def get_trip_sharing(
    trip_id: int,
    db: Session = Depends(get_db)
):
    """Get trip sharing, always recalculated first."""
    check_trip_exists(trip_id, db)
    return reconciliation_service.get_sharing(trip_id, db)


@router.get("/{trip_id}/statistics", response_model=TripStatisticsResponse)
async def get_trip_statistics(
    trip_id: int,
    db: Session = Depends(get_db)
):
    """Get win/loss statistics and a transaction summary for the trip."""
    try:
        return trip_stats_service.trip_statistics(trip_id, db)
    except ValueError as e:
        raise_http_error(e)


@router.get("/{trip_id}/customer-stats", response_model=List[CustomerStatsResponse])
async def list_customer_stats(
    trip_id: int,
    db: Session = Depends(get_db)
):
    """Get all customer stats of the trip, biggest winners first."""
    check_trip_exists(trip_id, db)
    return db.query(TripCustomerStats).filter(
        TripCustomerStats.trip_id == trip_id
    ).order_by(TripCustomerStats.net_result.desc()).all()


@router.get("/{trip_id}/customers/{customer_id}/stats", response_model=CustomerStatsResponse)
async def get_customer_stats(
    trip_id: int,
    customer_id: int,
    db: Session = Depends(get_db)
):
    """Get one customer's stats for the trip."""
    check_trip_exists(trip_id, db)
    stats = get_stored_stats(trip_id, customer_id, db)
    if not stats:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Customer stats not found"
        )
    return stats


@router.put("/{trip_id}/customers/{customer_id}/stats", response_model=CustomerStatsResponse)
async def update_customer_stats(
    trip_id: int,
    customer_id: int,
    payload: CustomerStatsUpdate,
    db: Session = Depends(get_db)
):
    """Manually edit a customer's stats; trip totals and sharing follow."""
    check_trip_exists(trip_id, db)
    try:
        return trip_service.update_customer_stats(trip_id, customer_id, db=db, **payload.model_dump())
    except ValueError as e:
        raise_http_error(e)


@router.get("/{trip_id}/agents/profits", response_model=List[AgentProfitResponse])
async def get_agent_profits(
    trip_id: int,
    db: Session = Depends(get_db)
):
    """Get each agent's commission from their customers in this trip."""
    check_trip_exists(trip_id, db)
    return sharing_service.agent_profit_report(trip_id, db)
