"""
Trip roster and ledger routes.

Every mutation here recalculates the trip before responding.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.models.trip import Trip
from app.core.utils import format_response
from app.schemas.sharing import CustomerStatsResponse
from app.schemas.trip import (
    TripCustomerAdd, TripAgentAdd, CommissionRateUpdate, AssignmentResponse,
    TransactionCreate, TransactionResponse, RollingRecordCreate, RollingRecordResponse
)
from app.services import trip_service

router = APIRouter(prefix="/trips", tags=["trips"])


def check_trip_exists(trip_id: int, db: Session) -> Trip:
    """Return the trip or raise 404."""
    trip = db.query(Trip).filter(Trip.id == trip_id).first()
    if not trip:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Trip not found"
        )
    return trip


def raise_http_error(error: ValueError):
    """Translate a service-level ValueError into an HTTP error."""
    message = str(error)
    if "not found" in message.lower():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=message)
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)


@router.post("/{trip_id}/customers", response_model=CustomerStatsResponse, status_code=status.HTTP_201_CREATED)
async def add_customer(
    trip_id: int,
    payload: TripCustomerAdd,
    db: Session = Depends(get_db)
):
    """Add a customer to the trip."""
    check_trip_exists(trip_id, db)
    try:
        return trip_service.add_customer_to_trip(trip_id, payload.customer_id, db)
    except ValueError as e:
        raise_http_error(e)


@router.delete("/{trip_id}/customers/{customer_id}")
async def remove_customer(
    trip_id: int,
    customer_id: int,
    db: Session = Depends(get_db)
):
    """Remove a customer from the trip."""
    check_trip_exists(trip_id, db)
    try:
        trip_service.remove_customer_from_trip(trip_id, customer_id, db)
    except ValueError as e:
        raise_http_error(e)
    return {"message": "Customer removed from trip successfully"}


@router.post("/{trip_id}/agents", status_code=status.HTTP_201_CREATED)
async def add_agent(
    trip_id: int,
    payload: TripAgentAdd,
    db: Session = Depends(get_db)
):
    """Add an agent to the trip."""
    check_trip_exists(trip_id, db)
    try:
        trip_service.add_agent_to_trip(trip_id, payload.agent_id, db)
    except ValueError as e:
        raise_http_error(e)
    return format_response({"trip_id": trip_id, "agent_id": payload.agent_id}, "Agent added to trip successfully")


@router.delete("/{trip_id}/agents/{agent_id}")
async def remove_agent(
    trip_id: int,
    agent_id: int,
    db: Session = Depends(get_db)
):
    """Remove an agent and their assignments from the trip."""
    check_trip_exists(trip_id, db)
    try:
        trip_service.remove_agent_from_trip(trip_id, agent_id, db)
    except ValueError as e:
        raise_http_error(e)
    return {"message": "Agent removed from trip successfully"}


@router.put("/{trip_id}/agents/{agent_id}/commission", response_model=AssignmentResponse)
async def update_commission_rate(
    trip_id: int,
    agent_id: int,
    payload: CommissionRateUpdate,
    db: Session = Depends(get_db)
):
    """Update an agent's commission rate for one customer in this trip."""
    check_trip_exists(trip_id, db)
    try:
        return trip_service.update_commission_rate(
            trip_id, agent_id, payload.customer_id, payload.commission_rate, db
        )
    except ValueError as e:
        raise_http_error(e)


@router.post("/{trip_id}/transactions", response_model=TransactionResponse, status_code=status.HTTP_201_CREATED)
async def add_transaction(
    trip_id: int,
    payload: TransactionCreate,
    db: Session = Depends(get_db)
):
    """Book a transaction for a customer on the trip."""
    check_trip_exists(trip_id, db)
    try:
        return trip_service.record_transaction(
            trip_id,
            payload.customer_id,
            payload.amount,
            payload.transaction_type,
            status=payload.status,
            agent_id=payload.agent_id,
            venue=payload.venue,
            db=db
        )
    except ValueError as e:
        raise_http_error(e)


@router.post("/{trip_id}/rolling-records", response_model=RollingRecordResponse, status_code=status.HTTP_201_CREATED)
async def add_rolling_record(
    trip_id: int,
    payload: RollingRecordCreate,
    db: Session = Depends(get_db)
):
    """Book a rolling record for a customer on the trip."""
    check_trip_exists(trip_id, db)
    try:
        return trip_service.record_rolling(
            trip_id,
            payload.customer_id,
            payload.rolling_amount,
            verified=payload.verified,
            game_type=payload.game_type,
            db=db
        )
    except ValueError as e:
        raise_http_error(e)
