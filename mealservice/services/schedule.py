"""
Weekly meal calendar aggregation

Merges recurring subscription meal selections and one-time orders into a
per-day, per-meal-slot view of one calendar week. Weeks start on Sunday.
Everything here is pure: callers load subscriptions and orders first and
hand the already-fetched collections in.
"""
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional, Tuple, Union
from pydantic import BaseModel
from mealservice.models.food import MenuItemSummary
from mealservice.models.order import OrderRead
from mealservice.models.subscription import SubscriptionRead
from mealservice.policy import MealSlot, is_scheduled_order, is_visible_subscription

DAYS = ["sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday"]
DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]

FALLBACK_IMAGE = "https://images.pexels.com/photos/1640777/pexels-photo-1640777.jpeg?auto=compress&cs=tinysrgb&w=800"
UNKNOWN_RESTAURANT = "Unknown"

# Schemas

class MealEntry(BaseModel):
    """One meal shown in a calendar cell"""
    source: str  # subscription, order
    subscription_id: Optional[str] = None
    order_id: Optional[str] = None
    menu_item_id: Optional[str] = None
    menu_item: Optional[MenuItemSummary] = None
    restaurant_name: str = UNKNOWN_RESTAURANT
    restaurant_image: str = FALLBACK_IMAGE
    meal_type: str = MealSlot.LUNCH.value
    quantity: int = 1
    price: float = 0.0
    status: str
    order_status: Optional[str] = None

class DayView(BaseModel):
    day: str
    day_name: str
    date: date
    lunch: List[MealEntry] = []
    dinner: List[MealEntry] = []
    total_meals: int = 0

class WeekView(BaseModel):
    week_start: date
    week_end: date
    days: List[DayView]
    has_any_meals: bool = False

# Week arithmetic

def _as_date(value: Union[date, datetime]) -> date:
    return value.date() if isinstance(value, datetime) else value

def day_index(value: Union[date, datetime]) -> int:
    """Weekday index with Sunday as 0"""
    return (_as_date(value).weekday() + 1) % 7

def week_start(value: Union[date, datetime]) -> date:
    """The Sunday on or before ``value``"""
    d = _as_date(value)
    return d - timedelta(days=day_index(d))

def week_dates(reference: Union[date, datetime]) -> List[Tuple[str, date, str]]:
    """(day, date, day_name) for the seven days of the reference week"""
    start = week_start(reference)
    return [(DAYS[i], start + timedelta(days=i), DAY_NAMES[i]) for i in range(7)]

def weeks_between(earlier: date, later: date) -> int:
    """Whole weeks from the week of ``earlier`` to the week of ``later``"""
    return (week_start(later) - week_start(earlier)).days // 7

# Per-day entries

def _enum_value(value) -> Optional[str]:
    return getattr(value, "value", value)

def subscription_meals_for_day(
    subscriptions: Iterable[SubscriptionRead], day: str, target: date
) -> List[MealEntry]:
    meals = []

    for sub in subscriptions:
        if not is_visible_subscription(sub.status):
            continue

        start = _as_date(sub.start_date)
        end = _as_date(sub.end_date) if sub.end_date else None

        for selection in sub.meal_selections:
            if selection.day != day:
                continue
            if target < start:
                continue
            if end and target > end:
                continue
            # Repeating plans never recur backwards past their first week
            if sub.is_repeating and weeks_between(start, target) < 0:
                continue

            restaurant = sub.restaurant
            meals.append(MealEntry(
                source="subscription",
                subscription_id=sub.id,
                menu_item_id=selection.menu_item_id,
                menu_item=selection.menu_item,
                restaurant_name=restaurant.name if restaurant and restaurant.name else UNKNOWN_RESTAURANT,
                restaurant_image=restaurant.image_url if restaurant and restaurant.image_url else FALLBACK_IMAGE,
                meal_type=selection.meal_type,
                quantity=selection.quantity or 1,
                price=selection.menu_item.price if selection.menu_item else 0.0,
                status=_enum_value(sub.status),
            ))

    return meals

def order_effective_date(order: OrderRead) -> Optional[date]:
    """Delivery date, else scheduled date, else creation date"""
    moment = order.delivery_date or order.scheduled_date or order.created_at
    return _as_date(moment) if moment else None

def order_meals_for_day(orders: Iterable[OrderRead], target: date) -> List[MealEntry]:
    meals = []

    for order in orders:
        if order_effective_date(order) != target:
            continue
        if not is_scheduled_order(order.status):
            continue

        restaurant = order.restaurant
        for item in order.items:
            item_slot = item.meal_type or (item.menu_item.meal_type if item.menu_item else None)
            meals.append(MealEntry(
                source="order",
                order_id=order.id,
                menu_item_id=item.menu_item_id,
                menu_item=item.menu_item,
                restaurant_name=restaurant.name if restaurant and restaurant.name else UNKNOWN_RESTAURANT,
                restaurant_image=restaurant.image_url if restaurant and restaurant.image_url else FALLBACK_IMAGE,
                meal_type=item_slot or order.meal_type or MealSlot.LUNCH.value,
                quantity=item.quantity or 1,
                price=item.price or 0.0,
                status="active",
                order_status=_enum_value(order.status),
            ))

    return meals

def meals_for_day(
    subscriptions: Iterable[SubscriptionRead],
    orders: Iterable[OrderRead],
    day: str,
    target: date,
) -> List[MealEntry]:
    """Subscription meals followed by order meals, in source order"""
    return subscription_meals_for_day(subscriptions, day, target) + order_meals_for_day(orders, target)

def partition_by_slot(meals: Iterable[MealEntry]) -> Dict[str, List[MealEntry]]:
    slots: Dict[str, List[MealEntry]] = {slot.value: [] for slot in MealSlot}
    for meal in meals:
        # Unknown slots have no calendar row
        if meal.meal_type in slots:
            slots[meal.meal_type].append(meal)
    return slots

def build_week(
    reference: Union[date, datetime],
    subscriptions: List[SubscriptionRead],
    orders: List[OrderRead],
) -> WeekView:
    days = []
    for day, target, day_name in week_dates(reference):
        meals = meals_for_day(subscriptions, orders, day, target)
        slots = partition_by_slot(meals)
        days.append(DayView(
            day=day,
            day_name=day_name,
            date=target,
            lunch=slots[MealSlot.LUNCH.value],
            dinner=slots[MealSlot.DINNER.value],
            total_meals=len(meals),
        ))

    has_any_meals = bool(orders) or any(is_visible_subscription(s.status) for s in subscriptions)

    return WeekView(
        week_start=days[0].date,
        week_end=days[-1].date,
        days=days,
        has_any_meals=has_any_meals,
    )
