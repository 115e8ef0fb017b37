"""
Status and role policy shared by every admin screen and endpoint
"""
import enum
from typing import Any, Dict, List

class UserRole(str, enum.Enum):
    CUSTOMER = "customer"
    RESTAURANT = "restaurant"
    DELIVERY_STAFF = "deliveryStaff"
    ADMIN = "admin"

class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

class SubscriptionStatus(str, enum.Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    CANCELLED = "cancelled"
    EXPIRED = "expired"

class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    REFUNDED = "refunded"

class PaymentMethod(str, enum.Enum):
    CARD = "card"
    WALLET = "wallet"
    CASH = "cash"

class MealSlot(str, enum.Enum):
    LUNCH = "lunch"
    DINNER = "dinner"

class CheckoutType(str, enum.Enum):
    CART_CHECKOUT = "cart_checkout"
    RECHARGE = "recharge"

class CheckoutState(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    FULFILLED = "fulfilled"

# Roles an admin may hand out from the users table
ASSIGNABLE_ROLES = [UserRole.CUSTOMER, UserRole.RESTAURANT, UserRole.DELIVERY_STAFF]

# Order statuses that place a meal on the customer calendar
SCHEDULED_ORDER_STATUSES = {OrderStatus.PENDING, OrderStatus.ACCEPTED, OrderStatus.COMPLETED}

# Subscription statuses whose selections show up on the calendar
VISIBLE_SUBSCRIPTION_STATUSES = {SubscriptionStatus.ACTIVE, SubscriptionStatus.PAUSED}

TERMINAL_SUBSCRIPTION_STATUSES = {SubscriptionStatus.CANCELLED, SubscriptionStatus.EXPIRED}

DEFAULT_COLOR = "gray"

STATUS_COLORS: Dict[str, Dict[str, str]] = {
    "subscription": {
        SubscriptionStatus.ACTIVE.value: "green",
        SubscriptionStatus.PAUSED.value: "yellow",
        SubscriptionStatus.CANCELLED.value: "red",
        SubscriptionStatus.EXPIRED.value: "gray",
    },
    "order": {
        OrderStatus.PENDING.value: "yellow",
        OrderStatus.ACCEPTED.value: "blue",
        OrderStatus.COMPLETED.value: "gray",
        OrderStatus.CANCELLED.value: "red",
    },
    "user": {
        "active": "green",
        "disabled": "red",
    },
}

def _raw(value) -> str:
    return getattr(value, "value", value)

def status_color(kind: str, value: str) -> str:
    """Display color for a status value, gray when unknown"""
    return STATUS_COLORS.get(kind, {}).get(_raw(value), DEFAULT_COLOR)

def is_visible_subscription(status: str) -> bool:
    return _raw(status) in {s.value for s in VISIBLE_SUBSCRIPTION_STATUSES}

def is_scheduled_order(status: str) -> bool:
    return _raw(status) in {s.value for s in SCHEDULED_ORDER_STATUSES}

def is_terminal_subscription(status: str) -> bool:
    return _raw(status) in {s.value for s in TERMINAL_SUBSCRIPTION_STATUSES}

def _values(members) -> List[str]:
    return [m.value for m in members]

def policy_table() -> Dict[str, Any]:
    """Everything an admin view needs to render selects and badges"""
    return {
        "roles": _values(ASSIGNABLE_ROLES),
        "order_statuses": _values(OrderStatus),
        "subscription_statuses": _values(SubscriptionStatus),
        "terminal_subscription_statuses": sorted(_values(TERMINAL_SUBSCRIPTION_STATUSES)),
        "meal_slots": _values(MealSlot),
        "checkout_types": _values(CheckoutType),
        "colors": STATUS_COLORS,
    }
