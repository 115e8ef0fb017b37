from datetime import datetime

from mealservice.api import customer as customer_api
from mealservice.models.order import Order, OrderItem
from mealservice.models.subscription import MealSelection, Subscription
from mealservice.policy import OrderStatus, SubscriptionStatus
from tests.conftest import auth_headers, make_user

def add_order(db, user, delivery_date, status=OrderStatus.PENDING, meal_type="lunch", menu_item=None, restaurant=None):
    order = Order(
        user_id=user.id,
        restaurant_id=restaurant.id if restaurant else None,
        status=status,
        meal_type=meal_type,
        total=280.0,
        delivery_address={"city": "Dhaka"},
        delivery_date=delivery_date,
        items=[OrderItem(
            menu_item_id=menu_item.id if menu_item else None,
            name="Chicken Biryani",
            quantity=1,
            price=250.0,
            meal_type=meal_type,
        )],
    )
    db.add(order)
    db.commit()
    return order

def add_subscription(db, user, restaurant=None, menu_item=None, status=SubscriptionStatus.ACTIVE):
    subscription = Subscription(
        user_id=user.id,
        restaurant_id=restaurant.id if restaurant else None,
        status=status,
        plan_type="weekly",
        start_date=datetime(2026, 10, 1),
        is_repeating=True,
        meal_selections=[
            MealSelection(position=0, day="monday", meal_type="lunch", menu_item_id=menu_item.id if menu_item else None),
            MealSelection(position=1, day="thursday", meal_type="dinner"),
        ],
    )
    db.add(subscription)
    db.commit()
    return subscription

def test_subscriptions_are_scoped_to_caller(client, db, customer):
    mine = add_subscription(db, customer)
    add_subscription(db, make_user(db, name="Other"))

    response = client.get("/api/subscriptions", headers=auth_headers(customer))

    assert response.status_code == 200
    data = response.json()["data"]
    assert [s["id"] for s in data] == [mine.id]
    assert [m["day"] for m in data[0]["meal_selections"]] == ["monday", "thursday"]

def test_orders_window(client, db, customer):
    inside = add_order(db, customer, datetime(2026, 10, 20, 13, 0))
    add_order(db, customer, datetime(2026, 10, 25, 13, 0))
    add_order(db, customer, datetime(2026, 10, 17, 20, 0))

    response = client.get(
        "/api/orders",
        params={"startDate": "2026-10-18T00:00:00", "endDate": "2026-10-25T00:00:00"},
        headers=auth_headers(customer),
    )

    assert response.status_code == 200
    assert [o["id"] for o in response.json()["data"]] == [inside.id]

def test_orders_window_accepts_utc_offsets(client, db, customer):
    inside = add_order(db, customer, datetime(2026, 10, 20, 13, 0))

    response = client.get(
        "/api/orders",
        params={"startDate": "2026-10-18T00:00:00Z", "endDate": "2026-10-25T00:00:00Z"},
        headers=auth_headers(customer),
    )

    assert [o["id"] for o in response.json()["data"]] == [inside.id]

def test_orders_window_must_be_ordered(client, customer):
    response = client.get(
        "/api/orders",
        params={"startDate": "2026-10-25T00:00:00", "endDate": "2026-10-18T00:00:00"},
        headers=auth_headers(customer),
    )
    assert response.status_code == 400

def test_calendar_merges_subscriptions_and_orders(client, db, customer, restaurant, menu_item):
    add_subscription(db, customer, restaurant, menu_item)
    add_order(db, customer, datetime(2026, 10, 21, 20, 0), meal_type="dinner", restaurant=restaurant)
    add_order(db, customer, datetime(2026, 10, 21, 13, 0), status=OrderStatus.CANCELLED)

    response = client.get("/api/calendar", params={"date": "2026-10-21"}, headers=auth_headers(customer))

    assert response.status_code == 200
    week = response.json()["data"]
    assert week["week_start"] == "2026-10-18"
    assert week["week_end"] == "2026-10-24"
    assert week["has_any_meals"] is True

    days = {d["day"]: d for d in week["days"]}
    monday_lunch = days["monday"]["lunch"]
    assert len(monday_lunch) == 1
    assert monday_lunch[0]["source"] == "subscription"
    assert monday_lunch[0]["restaurant_name"] == restaurant.name
    assert monday_lunch[0]["menu_item"]["name"] == menu_item.name
    assert monday_lunch[0]["price"] == menu_item.price

    assert [m["source"] for m in days["thursday"]["dinner"]] == ["subscription"]

    wednesday = days["wednesday"]
    assert wednesday["lunch"] == []
    assert [m["order_status"] for m in wednesday["dinner"]] == ["pending"]
    assert wednesday["total_meals"] == 1

def test_calendar_hides_everything_when_a_source_fails(client, db, customer, monkeypatch):
    add_subscription(db, customer)

    def broken_orders(*args, **kwargs):
        raise RuntimeError("orders collection unavailable")

    monkeypatch.setattr(customer_api, "load_orders", broken_orders)

    response = client.get("/api/calendar", params={"date": "2026-10-21"}, headers=auth_headers(customer))

    assert response.status_code == 500
    assert response.json() == {"detail": "Failed to load meal calendar"}

def test_customer_endpoints_require_login(client):
    assert client.get("/api/subscriptions").status_code == 401
    assert client.get("/api/orders").status_code == 401
    assert client.get("/api/calendar").status_code == 401
