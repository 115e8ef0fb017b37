"""
Customer subscriptions, orders and meal calendar router
"""
import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload, selectinload
from mealservice.api.auth import get_current_user
from mealservice.core.database import get_db
from mealservice.models.order import Order, OrderItem, OrderRead
from mealservice.models.subscription import MealSelection, Subscription, SubscriptionRead
from mealservice.models.user import User
from mealservice.services.schedule import build_week, week_start

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["customer"])

CALENDAR_LOAD_ERROR = "Failed to load meal calendar"

def _naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value

def load_subscriptions(db: Session, user_id: str) -> List[SubscriptionRead]:
    subscriptions = (
        db.query(Subscription)
        .options(
            joinedload(Subscription.restaurant),
            selectinload(Subscription.meal_selections).joinedload(MealSelection.menu_item),
        )
        .filter(Subscription.user_id == user_id)
        .order_by(Subscription.start_date)
        .all()
    )
    return [SubscriptionRead.model_validate(s) for s in subscriptions]

def load_orders(
    db: Session,
    user_id: str,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> List[OrderRead]:
    """Caller's orders whose effective date falls in [start, end)"""
    effective = func.coalesce(Order.delivery_date, Order.scheduled_date, Order.created_at)
    query = (
        db.query(Order)
        .options(
            joinedload(Order.restaurant),
            selectinload(Order.items).joinedload(OrderItem.menu_item),
        )
        .filter(Order.user_id == user_id)
    )

    if start:
        query = query.filter(effective >= start)

    if end:
        query = query.filter(effective < end)

    orders = query.order_by(effective).all()
    return [OrderRead.model_validate(o) for o in orders]

@router.get("/subscriptions")
async def list_subscriptions(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> Any:
    """List the caller's subscriptions"""
    return {"data": load_subscriptions(db, current_user.id)}

@router.get("/orders")
async def list_orders(
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> Any:
    """List the caller's orders in an optional date window"""
    start, end = _naive_utc(start_date), _naive_utc(end_date)

    if start and end and end < start:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="endDate must not precede startDate"
        )

    return {"data": load_orders(db, current_user.id, start, end)}

@router.get("/calendar")
async def get_meal_calendar(
    reference: Optional[date] = Query(None, alias="date"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> Any:
    """Weekly meal calendar built from subscriptions and one-time orders"""
    reference = reference or date.today()
    start = datetime.combine(week_start(reference), time.min)
    end = start + timedelta(days=7)

    # Both sources must load before anything is shown
    try:
        subscriptions = load_subscriptions(db, current_user.id)
        orders = load_orders(db, current_user.id, start, end)
    except Exception as e:
        logger.error(f"Meal calendar load failed for user {current_user.id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=CALENDAR_LOAD_ERROR
        )

    return {"data": build_week(reference, subscriptions, orders)}
