"""
Admin users, orders and subscriptions router
"""
import logging
from typing import Any
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session, joinedload, selectinload
from mealservice.api.auth import get_current_admin
from mealservice.core.config import settings
from mealservice.core.database import get_db
from mealservice.models.order import Order, OrderItem, OrderRead, OrderStatusUpdate
from mealservice.models.subscription import (
    MealSelection, Subscription, SubscriptionRead, SubscriptionStatusUpdate
)
from mealservice.models.user import User, UserAdminUpdate, UserRead
from mealservice.policy import (
    ASSIGNABLE_ROLES, OrderStatus, SubscriptionStatus, UserRole,
    is_terminal_subscription, policy_table
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])

MAX_LIST_LIMIT = 200

def _parse(enum_cls, value: str, label: str):
    try:
        return enum_cls(value)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {label}: {value}"
        )

def _not_found(label: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"{label} not found"
    )

@router.get("/policy")
async def get_policy(
    admin: User = Depends(get_current_admin)
) -> Any:
    """Roles, statuses and colors every admin table renders from"""
    return {"data": policy_table()}

# Users

@router.get("/users")
async def list_users(
    limit: int = Query(settings.ADMIN_LIST_LIMIT, ge=1, le=MAX_LIST_LIMIT),
    admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db)
) -> Any:
    """List users, newest first"""
    users = db.query(User).order_by(User.created_at.desc()).limit(limit).all()
    return {"data": {"items": [UserRead.model_validate(u) for u in users]}}

@router.patch("/users/{user_id}")
async def update_user(
    user_id: str,
    user_update: UserAdminUpdate,
    admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db)
) -> Any:
    """Change a user's role or active flag"""
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise _not_found("User")

    update_data = user_update.model_dump(exclude_unset=True)
    if not update_data:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Nothing to update"
        )

    if update_data.get("role") is not None:
        if user.role == UserRole.ADMIN:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Admin roles cannot be changed"
            )
        role = _parse(UserRole, update_data["role"], "role")
        if role not in ASSIGNABLE_ROLES:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Invalid role: {role.value}"
            )
        user.role = role

    if update_data.get("is_active") is not None:
        user.is_active = update_data["is_active"]

    db.commit()
    db.refresh(user)
    logger.info(f"Admin {admin.id} updated user {user.id}: {update_data}")
    return {"data": UserRead.model_validate(user)}

# Orders

@router.get("/orders")
async def list_orders(
    limit: int = Query(settings.ADMIN_LIST_LIMIT, ge=1, le=MAX_LIST_LIMIT),
    admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db)
) -> Any:
    """List orders with customer, restaurant and items, newest first"""
    orders = (
        db.query(Order)
        .options(
            joinedload(Order.user),
            joinedload(Order.restaurant),
            selectinload(Order.items).joinedload(OrderItem.menu_item),
        )
        .order_by(Order.created_at.desc())
        .limit(limit)
        .all()
    )
    return {"data": {"items": [OrderRead.model_validate(o) for o in orders]}}

@router.patch("/orders/{order_id}/status")
async def update_order_status(
    order_id: str,
    status_update: OrderStatusUpdate,
    admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db)
) -> Any:
    """Move an order to another status"""
    new_status = _parse(OrderStatus, status_update.status, "order status")

    order = db.query(Order).filter(Order.id == order_id).first()
    if not order:
        raise _not_found("Order")

    old_status = order.status
    order.status = new_status
    db.commit()
    db.refresh(order)

    logger.info(f"Order {order.id} status changed from {old_status.value} to {new_status.value}")
    return {"data": OrderRead.model_validate(order)}

# Subscriptions

@router.get("/subscriptions")
async def list_subscriptions(
    limit: int = Query(settings.ADMIN_LIST_LIMIT, ge=1, le=MAX_LIST_LIMIT),
    admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db)
) -> Any:
    """List subscriptions with their owners, newest first"""
    subscriptions = (
        db.query(Subscription)
        .options(
            joinedload(Subscription.user),
            joinedload(Subscription.restaurant),
            selectinload(Subscription.meal_selections).joinedload(MealSelection.menu_item),
        )
        .order_by(Subscription.created_at.desc())
        .limit(limit)
        .all()
    )
    return {"data": {"items": [SubscriptionRead.model_validate(s) for s in subscriptions]}}

@router.patch("/subscriptions/{subscription_id}")
async def update_subscription_status(
    subscription_id: str,
    status_update: SubscriptionStatusUpdate,
    admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db)
) -> Any:
    """Pause, resume, cancel or expire a subscription"""
    new_status = _parse(SubscriptionStatus, status_update.status, "subscription status")

    subscription = db.query(Subscription).filter(Subscription.id == subscription_id).first()
    if not subscription:
        raise _not_found("Subscription")

    if subscription.status != new_status and is_terminal_subscription(subscription.status):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Subscription is {subscription.status.value} and can no longer change"
        )

    old_status = subscription.status
    subscription.status = new_status
    db.commit()
    db.refresh(subscription)

    logger.info(f"Subscription {subscription.id} status changed from {old_status.value} to {new_status.value}")
    return {"data": SubscriptionRead.model_validate(subscription)}
