import pytest

from mealservice.policy import (
    OrderStatus,
    SubscriptionStatus,
    UserRole,
    is_scheduled_order,
    is_terminal_subscription,
    is_visible_subscription,
    policy_table,
    status_color,
)

@pytest.mark.parametrize("status,visible", [
    ("active", True),
    (SubscriptionStatus.PAUSED, True),
    ("cancelled", False),
    (SubscriptionStatus.EXPIRED, False),
])
def test_visible_subscriptions(status, visible):
    assert is_visible_subscription(status) is visible

def test_cancelled_orders_are_not_scheduled():
    assert is_scheduled_order(OrderStatus.COMPLETED)
    assert not is_scheduled_order("cancelled")

def test_terminal_subscriptions():
    assert is_terminal_subscription("expired")
    assert not is_terminal_subscription(SubscriptionStatus.ACTIVE)

def test_status_colors():
    assert status_color("subscription", SubscriptionStatus.PAUSED) == "yellow"
    assert status_color("order", "accepted") == "blue"
    assert status_color("order", "lost") == "gray"

def test_admin_is_never_assignable():
    assert UserRole.ADMIN.value not in policy_table()["roles"]
