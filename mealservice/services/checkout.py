"""
Checkout session builder

Turns a cart or a wallet recharge into a hosted payment session and keeps a
server-side record of it, keyed by the processor's session id, so the return
page can be reconciled without the client resending anything.
"""
import json
import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional
from sqlalchemy.orm import Session
from mealservice.core.config import settings
from mealservice.models.payment import CartItem, CheckoutRecord, CheckoutRequest
from mealservice.models.user import User
from mealservice.policy import CheckoutType
from mealservice.services.payments import PaymentGatewayError, PaymentService

logger = logging.getLogger(__name__)

GUEST_USER = "guest"

MISSING_TYPE = "Checkout type is required"
EMPTY_CART = "Cart is empty"
MISSING_AMOUNT = "A positive recharge amount is required"
UNSUPPORTED_TYPE = "Unsupported checkout type"
RECHARGE_LOGIN_REQUIRED = "Sign in to recharge your wallet"

class CheckoutValidationError(ValueError):
    """A checkout request is missing something it needs"""

class CheckoutAuthenticationError(Exception):
    """The checkout type needs an authenticated user"""

def to_subunits(amount: float) -> int:
    """Decimal currency amount to integer subunits, rounding half up"""
    return int((Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))

def validate_checkout(request: CheckoutRequest) -> CheckoutType:
    if not request.type:
        raise CheckoutValidationError(MISSING_TYPE)

    try:
        checkout_type = CheckoutType(request.type)
    except ValueError:
        raise CheckoutValidationError(UNSUPPORTED_TYPE)

    if checkout_type == CheckoutType.CART_CHECKOUT and not request.items:
        raise CheckoutValidationError(EMPTY_CART)

    if checkout_type == CheckoutType.RECHARGE and (request.amount is None or request.amount <= 0):
        raise CheckoutValidationError(MISSING_AMOUNT)

    return checkout_type

def describe_item(item: CartItem) -> str:
    day = item.day.title() if item.day else item.date.strftime("%A")
    return f"{day} {item.meal_type.value} ({item.date.isoformat()})"

def _line_item(name: str, unit_amount: int, quantity: int = 1, description: Optional[str] = None) -> Dict[str, Any]:
    product_data = {"name": name}
    if description:
        product_data["description"] = description
    return {
        "price_data": {
            "currency": settings.PAYMENT_CURRENCY,
            "product_data": product_data,
            "unit_amount": unit_amount,
        },
        "quantity": quantity,
    }

def build_line_items(checkout_type: CheckoutType, request: CheckoutRequest) -> List[Dict[str, Any]]:
    if checkout_type == CheckoutType.RECHARGE:
        return [_line_item(
            "Wallet Recharge",
            to_subunits(request.amount),
            description="Adding funds to your wallet",
        )]

    line_items = [
        _line_item(item.name, to_subunits(item.price), item.quantity, describe_item(item))
        for item in request.items
    ]
    line_items.append(_line_item("Delivery Fee", to_subunits(settings.DELIVERY_FEE)))
    return line_items

def build_metadata(checkout_type: CheckoutType, request: CheckoutRequest, user: Optional[User]) -> Dict[str, str]:
    metadata = {
        "user_id": user.id if user else GUEST_USER,
        "type": checkout_type.value,
    }
    if checkout_type == CheckoutType.CART_CHECKOUT:
        metadata["delivery_address"] = json.dumps(request.delivery_address or {})
    else:
        metadata["amount"] = str(request.amount)
    return metadata

def redirect_urls() -> Dict[str, str]:
    # Stripe fills in {CHECKOUT_SESSION_ID} on redirect
    return {
        "success_url": f"{settings.CLIENT_URL}/success?session_id={{CHECKOUT_SESSION_ID}}",
        "cancel_url": f"{settings.CLIENT_URL}/cancel",
    }

def create_checkout(
    db: Session,
    gateway: PaymentService,
    request: CheckoutRequest,
    user: Optional[User] = None,
) -> Dict[str, str]:
    """Open a processor session for the request and record it"""
    checkout_type = validate_checkout(request)
    if checkout_type == CheckoutType.RECHARGE and user is None:
        raise CheckoutAuthenticationError(RECHARGE_LOGIN_REQUIRED)

    result = gateway.create_checkout_session(
        line_items=build_line_items(checkout_type, request),
        metadata=build_metadata(checkout_type, request, user),
        **redirect_urls(),
    )
    if 'error' in result:
        raise PaymentGatewayError(result['error'])

    record = CheckoutRecord(
        session_id=result['id'],
        type=checkout_type.value,
        user_id=user.id if user else None,
        amount=request.amount if checkout_type == CheckoutType.RECHARGE else None,
        cart=[item.model_dump(mode="json") for item in request.items or []],
        delivery_address=request.delivery_address,
    )
    db.add(record)
    db.commit()

    logger.info(f"Created {checkout_type.value} session {result['id']} for user {user.id if user else GUEST_USER}")
    return {'id': result['id'], 'url': result['url']}
