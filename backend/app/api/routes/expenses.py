"""
Trip expense routes. Every change recalculates the trip's sharing.
"""
import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List
from app.db.session import get_db
from app.models.expense import TripExpense
from app.schemas.expense import ExpenseCreate, ExpenseUpdate, ExpenseResponse
from app.services import trip_service
from app.api.routes.trips import check_trip_exists, raise_http_error

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/trips/{trip_id}/expenses", tags=["expenses"])


@router.get("", response_model=List[ExpenseResponse])
async def list_expenses(
    trip_id: int,
    db: Session = Depends(get_db)
):
    """Get all expenses of the trip, newest first."""
    check_trip_exists(trip_id, db)
    return db.query(TripExpense).filter(
        TripExpense.trip_id == trip_id
    ).order_by(TripExpense.expense_date.desc(), TripExpense.id.desc()).all()


@router.post("", response_model=ExpenseResponse, status_code=status.HTTP_201_CREATED)
async def create_expense(
    trip_id: int,
    expense_data: ExpenseCreate,
    db: Session = Depends(get_db)
):
    """Add an expense to the trip."""
    check_trip_exists(trip_id, db)
    try:
        expense = trip_service.add_expense(
            trip_id,
            expense_data.expense_type,
            expense_data.amount,
            description=expense_data.description,
            expense_date=expense_data.expense_date,
            db=db
        )
    except ValueError as e:
        raise_http_error(e)
    logger.info(f"Added {expense.expense_type} expense {expense.id} to trip {trip_id}")
    return expense


@router.put("/{expense_id}", response_model=ExpenseResponse)
async def update_expense(
    trip_id: int,
    expense_id: int,
    expense_data: ExpenseUpdate,
    db: Session = Depends(get_db)
):
    """Update an expense."""
    check_trip_exists(trip_id, db)
    try:
        return trip_service.update_expense(trip_id, expense_id, db, **expense_data.model_dump(exclude_unset=True))
    except ValueError as e:
        raise_http_error(e)


@router.delete("/{expense_id}")
async def delete_expense(
    trip_id: int,
    expense_id: int,
    db: Session = Depends(get_db)
):
    """Delete an expense."""
    check_trip_exists(trip_id, db)
    try:
        trip_service.delete_expense(trip_id, expense_id, db)
    except ValueError as e:
        raise_http_error(e)
    return {"message": "Expense deleted successfully"}
