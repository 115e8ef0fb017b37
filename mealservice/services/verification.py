"""
Payment verification and order materialization
"""
import json
import logging
from datetime import datetime, time
from typing import List, Optional
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from mealservice.core.config import settings
from mealservice.models.order import Order, OrderItem, OrderRead
from mealservice.models.payment import CartItem, CheckoutRecord, VerifyResponse
from mealservice.policy import (
    CheckoutState, CheckoutType, MealSlot, OrderStatus, PaymentMethod, PaymentStatus
)
from mealservice.services.checkout import GUEST_USER, CheckoutValidationError, UNSUPPORTED_TYPE
from mealservice.services.payments import PaymentGatewayError, PaymentService

logger = logging.getLogger(__name__)

PAID = "paid"

class PaymentNotVerifiedError(Exception):
    """The processor does not report the session as paid"""

class OrderMaterializationError(Exception):
    """Orders for a paid cart could not be written"""

def delivery_datetime(item: CartItem) -> datetime:
    """Item date at its explicit hour, else the meal slot's delivery hour"""
    if item.hour is not None:
        hour = item.hour
    elif item.meal_type == MealSlot.DINNER:
        hour = settings.DINNER_HOUR
    else:
        hour = settings.LUNCH_HOUR
    return datetime.combine(item.date, time(hour=hour))

def order_total(item: CartItem) -> float:
    return item.price * item.quantity + settings.DELIVERY_FEE

def build_order(item: CartItem, user_id: Optional[str], address: dict, session_id: str) -> Order:
    scheduled = delivery_datetime(item)
    return Order(
        user_id=user_id,
        restaurant_id=item.restaurant_id,
        status=OrderStatus.PENDING,
        meal_type=item.meal_type.value,
        total=order_total(item),
        payment_method=PaymentMethod.CARD,
        payment_status=PaymentStatus.PAID,
        checkout_session_id=session_id,
        delivery_address=address,
        delivery_date=scheduled,
        scheduled_date=scheduled,
        items=[OrderItem(
            menu_item_id=item.menu_item_id,
            name=item.name,
            quantity=item.quantity,
            price=item.price,
            meal_type=item.meal_type.value,
        )],
    )

def _metadata_user(metadata: dict) -> Optional[str]:
    user_id = metadata.get("user_id")
    return None if not user_id or user_id == GUEST_USER else user_id

def _find_record(db: Session, session_id: str) -> Optional[CheckoutRecord]:
    return db.query(CheckoutRecord).filter(CheckoutRecord.session_id == session_id).first()

def _record_from_session(session: dict) -> CheckoutRecord:
    """Rebuild the record for a session opened outside this service"""
    metadata = session['metadata']
    amount = metadata.get("amount")
    if amount is None and session.get('amount_total') is not None:
        amount = session['amount_total'] / 100
    return CheckoutRecord(
        session_id=session['id'],
        type=metadata.get("type"),
        user_id=_metadata_user(metadata),
        amount=float(amount) if amount is not None else None,
        cart=[],
        status=CheckoutState.PENDING,
    )

def _existing_orders(db: Session, session_id: str) -> List[Order]:
    return (
        db.query(Order)
        .filter(Order.checkout_session_id == session_id)
        .order_by(Order.delivery_date)
        .all()
    )

def _delivery_address(metadata: dict, record: CheckoutRecord) -> dict:
    raw = metadata.get("delivery_address")
    if raw:
        try:
            return json.loads(raw) or {}
        except ValueError:
            logger.warning(f"Unreadable delivery address in session metadata: {raw!r}")
    return record.delivery_address or {}

def _confirm_recharge(db: Session, record: CheckoutRecord) -> VerifyResponse:
    already_processed = record.status == CheckoutState.FULFILLED
    if record.status == CheckoutState.PENDING:
        record.status = CheckoutState.PAID
        record.paid_at = datetime.utcnow()
    db.commit()

    logger.info(f"Recharge session {record.session_id} confirmed for {record.amount}")
    return VerifyResponse(
        type=CheckoutType.RECHARGE.value,
        session_id=record.session_id,
        amount=record.amount,
        already_processed=already_processed,
    )

def _already_fulfilled(db: Session, session_id: str) -> VerifyResponse:
    orders = _existing_orders(db, session_id)
    logger.info(f"Session {session_id} already fulfilled with {len(orders)} orders")
    return VerifyResponse(
        type=CheckoutType.CART_CHECKOUT.value,
        session_id=session_id,
        already_processed=True,
        orders=[OrderRead.model_validate(o) for o in orders],
    )

def _claim_record(db: Session, session_id: str, now: datetime) -> bool:
    """Move the record to fulfilled unless another verification already did"""
    claimed = db.query(CheckoutRecord).filter(
        CheckoutRecord.session_id == session_id,
        CheckoutRecord.status != CheckoutState.FULFILLED,
    ).update(
        {
            CheckoutRecord.status: CheckoutState.FULFILLED,
            CheckoutRecord.paid_at: func.coalesce(CheckoutRecord.paid_at, now),
            CheckoutRecord.fulfilled_at: now,
        },
        synchronize_session=False,
    )
    return claimed > 0

def _materialize_orders(
    db: Session,
    record: CheckoutRecord,
    metadata: dict,
    items: Optional[List[CartItem]],
) -> VerifyResponse:
    session_id = record.session_id

    if record.status == CheckoutState.FULFILLED:
        return _already_fulfilled(db, session_id)

    # The cart stored at checkout is what was charged; request items only
    # fill in for sessions opened outside this service
    stored = [CartItem.model_validate(raw) for raw in record.cart or []]
    cart = stored or items or []
    if not cart:
        db.rollback()
        raise CheckoutValidationError("Cart items are required to create orders")

    address = _delivery_address(metadata, record)
    user_id = _metadata_user(metadata) or record.user_id

    # One transaction for every order of the session
    try:
        db.flush()
        if not _claim_record(db, session_id, datetime.utcnow()):
            db.rollback()
            return _already_fulfilled(db, session_id)

        orders = [build_order(item, user_id, address, session_id) for item in cart]
        db.add_all(orders)
        db.commit()
    except IntegrityError:
        # A concurrent verification inserted the record for this session first
        db.rollback()
        existing = _find_record(db, session_id)
        if existing is not None and existing.status == CheckoutState.FULFILLED:
            return _already_fulfilled(db, session_id)
        logger.error(f"Integrity error while creating orders for session {session_id}")
        raise OrderMaterializationError("Failed to create orders")
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Order creation failed for session {session_id}: {e}")
        raise OrderMaterializationError("Failed to create orders") from e

    for order in orders:
        db.refresh(order)

    logger.info(f"Created {len(orders)} orders for session {session_id}")
    return VerifyResponse(
        type=CheckoutType.CART_CHECKOUT.value,
        session_id=session_id,
        orders=[OrderRead.model_validate(o) for o in orders],
    )

def verify_session(
    db: Session,
    gateway: PaymentService,
    session_id: str,
    items: Optional[List[CartItem]] = None,
) -> VerifyResponse:
    """Confirm payment for a session and act on its checkout type"""
    session = gateway.retrieve_session(session_id)
    if 'error' in session:
        raise PaymentGatewayError(session['error'])

    if session.get('payment_status') != PAID:
        logger.info(f"Session {session_id} not paid: {session.get('payment_status')}")
        raise PaymentNotVerifiedError("Payment not verified")

    metadata = session.get('metadata') or {}
    session['id'] = session.get('id') or session_id
    session['metadata'] = metadata

    record = _find_record(db, session_id)
    if record is None:
        record = _record_from_session(session)
        db.add(record)

    checkout_type = metadata.get("type") or record.type
    if checkout_type == CheckoutType.RECHARGE.value:
        return _confirm_recharge(db, record)
    if checkout_type == CheckoutType.CART_CHECKOUT.value:
        return _materialize_orders(db, record, metadata, items)

    db.rollback()
    raise CheckoutValidationError(UNSUPPORTED_TYPE)
