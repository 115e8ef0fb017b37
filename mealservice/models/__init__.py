from mealservice.models.user import User
from mealservice.models.food import Restaurant, MenuItem
from mealservice.models.subscription import Subscription, MealSelection
from mealservice.models.order import Order, OrderItem
from mealservice.models.payment import CheckoutRecord, WalletTransaction

__all__ = [
    "User",
    "Restaurant",
    "MenuItem",
    "Subscription",
    "MealSelection",
    "Order",
    "OrderItem",
    "CheckoutRecord",
    "WalletTransaction",
]
