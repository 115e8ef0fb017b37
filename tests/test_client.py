from datetime import date, datetime
from unittest.mock import Mock

import pytest
import requests

from mealservice.client import (
    MANUAL_SUPPORT_MESSAGE,
    ApiError,
    CalendarLoadError,
    MealCalendar,
    MealServiceClient,
    RechargeSyncError,
)
from mealservice.models.order import OrderRead
from mealservice.models.subscription import SubscriptionRead
from mealservice.policy import OrderStatus, SubscriptionStatus

WEDNESDAY = date(2026, 10, 21)

def subscription():
    return SubscriptionRead(
        id="s1",
        user_id="u1",
        status=SubscriptionStatus.ACTIVE,
        start_date=datetime(2026, 10, 1),
        is_repeating=True,
        meal_selections=[{"day": "monday", "meal_type": "lunch"}],
    )

def order():
    return OrderRead(
        id="o1",
        status=OrderStatus.PENDING,
        total=280.0,
        delivery_date=datetime(2026, 10, 21, 20, 0),
        items=[{"name": "Beef Tehari", "meal_type": "dinner", "price": 250.0}],
    )

def http_error(status_code, body):
    response = Mock(status_code=status_code)
    response.json.return_value = body
    return requests.HTTPError(f"{status_code} Error", response=response)

def client_with_response(error=None, body=None):
    response = Mock()
    response.json.return_value = body
    if error is not None:
        response.raise_for_status.side_effect = error
    session = Mock(headers={})
    session.request.return_value = response
    return MealServiceClient("http://api.test/", token="abc", session=session), session

class TestMealCalendar:
    def test_refresh_builds_the_selected_week(self):
        api = Mock(spec=MealServiceClient)
        api.get_subscriptions.return_value = [subscription()]
        api.get_orders.return_value = [order()]
        calendar = MealCalendar(api, selected=WEDNESDAY)

        view = calendar.refresh()

        assert view is calendar.view
        assert view.week_start == date(2026, 10, 18)
        days = {d.day: d for d in view.days}
        assert [m.source for m in days["monday"].lunch] == ["subscription"]
        assert [m.order_id for m in days["wednesday"].dinner] == ["o1"]
        api.get_orders.assert_called_once_with(datetime(2026, 10, 18), datetime(2026, 10, 25))

    def test_failed_source_keeps_previous_view(self):
        api = Mock(spec=MealServiceClient)
        api.get_subscriptions.return_value = [subscription()]
        api.get_orders.return_value = []
        calendar = MealCalendar(api, selected=WEDNESDAY)
        previous = calendar.refresh()

        api.get_orders.side_effect = ApiError("Failed to load orders", 500)
        with pytest.raises(CalendarLoadError) as excinfo:
            calendar.refresh()

        assert excinfo.value.status_code == 500
        assert calendar.view is previous

    def test_stale_response_is_discarded(self):
        api = Mock(spec=MealServiceClient)
        api.get_subscriptions.return_value = [subscription()]
        calendar = MealCalendar(api, selected=WEDNESDAY)

        def orders_after_navigation(start, end):
            calendar.next_week()
            return [order()]

        api.get_orders.side_effect = orders_after_navigation

        assert calendar.refresh() is None
        assert calendar.view is None
        assert calendar.selected_week == date(2026, 10, 25)

    def test_navigation(self):
        calendar = MealCalendar(Mock(spec=MealServiceClient), selected=WEDNESDAY, today=lambda: date(2026, 10, 19))

        calendar.next_week()
        assert calendar.selected_week == date(2026, 10, 25)
        calendar.prev_week()
        calendar.prev_week()
        assert calendar.selected_week == date(2026, 10, 11)
        calendar.go_to_today()
        assert calendar.selected == date(2026, 10, 19)

class TestMealServiceClient:
    def test_token_and_base_url(self):
        api, session = client_with_response(body={"data": []})

        assert api.get_subscriptions() == []

        assert session.headers["Authorization"] == "Bearer abc"
        args, kwargs = session.request.call_args
        assert args == ("GET", "http://api.test/api/subscriptions")
        assert kwargs["timeout"] == 10

    def test_server_detail_becomes_error_message(self):
        api, _ = client_with_response(error=http_error(400, {"detail": "Cart is empty"}))

        with pytest.raises(ApiError) as excinfo:
            api.create_checkout_session({"type": "cart_checkout", "items": []})

        assert excinfo.value.message == "Cart is empty"
        assert excinfo.value.status_code == 400

    def test_connection_failure(self):
        session = Mock()
        session.request.side_effect = requests.ConnectionError("connection refused")
        api = MealServiceClient("http://api.test", session=session)

        with pytest.raises(ApiError) as excinfo:
            api.get_calendar(WEDNESDAY)

        assert excinfo.value.status_code is None
        assert "connection refused" in excinfo.value.message

class TestFinalizeCheckout:
    def test_cart_checkout_skips_wallet(self):
        api = MealServiceClient("http://api.test", session=Mock())
        api.verify_payment = Mock(return_value={"success": True, "type": "cart_checkout", "orders": []})
        api.apply_recharge = Mock()

        result = api.finalize_checkout("cs_test_1")

        assert result["type"] == "cart_checkout"
        api.apply_recharge.assert_not_called()

    def test_recharge_applies_wallet_credit(self):
        api = MealServiceClient("http://api.test", session=Mock())
        api.verify_payment = Mock(return_value={"success": True, "type": "recharge", "amount": 500})
        api.apply_recharge = Mock(return_value={"balance": 500.0, "amount": 500.0, "already_applied": False})

        result = api.finalize_checkout("cs_test_1")

        assert result["wallet"]["balance"] == 500.0
        api.apply_recharge.assert_called_once_with("cs_test_1")

    def test_wallet_failure_asks_for_manual_support(self):
        api = MealServiceClient("http://api.test", session=Mock())
        api.verify_payment = Mock(return_value={"success": True, "type": "recharge", "amount": 500})
        api.apply_recharge = Mock(side_effect=ApiError("Failed to update wallet", 500))

        with pytest.raises(RechargeSyncError) as excinfo:
            api.finalize_checkout("cs_test_1")

        assert excinfo.value.message == MANUAL_SUPPORT_MESSAGE
        assert excinfo.value.session_id == "cs_test_1"
        assert excinfo.value.cause.status_code == 500
