"""
HTTP client for the meal service API

Used by front-end integrations and operator scripts. ``MealCalendar`` keeps
the weekly calendar consistent while the user moves between weeks, and
``MealServiceClient.finalize_checkout`` drives the payment return page.
"""
import logging
from datetime import date, datetime, time, timedelta
from typing import Any, Callable, Dict, List, Optional
import requests
from mealservice.models.order import OrderRead
from mealservice.models.subscription import SubscriptionRead
from mealservice.policy import CheckoutType
from mealservice.services.schedule import WeekView, build_week, week_start

logger = logging.getLogger(__name__)

MANUAL_SUPPORT_MESSAGE = (
    "The payment was successful, but we couldn't update your wallet automatically. "
    "Please contact support with your payment reference."
)

class ApiError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

class CalendarLoadError(ApiError):
    """Either calendar source failed, so nothing from this refresh is shown"""

class RechargeSyncError(ApiError):
    """Payment went through but the wallet credit did not"""

    def __init__(self, session_id: str, cause: ApiError):
        super().__init__(MANUAL_SUPPORT_MESSAGE, cause.status_code)
        self.session_id = session_id
        self.cause = cause

def _error_message(exc: requests.RequestException, fallback: str) -> str:
    response = exc.response
    if response is not None:
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            detail = body.get("detail") or body.get("message")
            if isinstance(detail, str) and detail:
                return detail
    return str(exc) or fallback

class MealServiceClient:
    def __init__(self, base_url: str, token: Optional[str] = None,
                 session: Optional[requests.Session] = None, timeout: float = 10):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"

    def _request(self, method: str, path: str, fallback: str, **kwargs) -> Any:
        try:
            response = self.session.request(method, f"{self.base_url}{path}", timeout=self.timeout, **kwargs)
            response.raise_for_status()
            return response.json()
        except requests.RequestException as e:
            status_code = e.response.status_code if e.response is not None else None
            message = _error_message(e, fallback)
            logger.warning(f"{method} {path} failed: {message}")
            raise ApiError(message, status_code) from e

    # Customer

    def get_subscriptions(self) -> List[SubscriptionRead]:
        body = self._request("GET", "/api/subscriptions", "Failed to load subscriptions")
        return [SubscriptionRead.model_validate(s) for s in body.get("data") or []]

    def get_orders(self, start: datetime, end: datetime) -> List[OrderRead]:
        params = {"startDate": start.isoformat(), "endDate": end.isoformat()}
        body = self._request("GET", "/api/orders", "Failed to load orders", params=params)
        return [OrderRead.model_validate(o) for o in body.get("data") or []]

    def get_calendar(self, reference: date) -> WeekView:
        body = self._request("GET", "/api/calendar", "Failed to load meal calendar",
                             params={"date": reference.isoformat()})
        return WeekView.model_validate(body["data"])

    # Payments

    def create_checkout_session(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/api/payment/create-checkout-session",
                             "Failed to start checkout", json=payload)

    def verify_payment(self, session_id: str, items: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
        payload = {"session_id": session_id}
        if items:
            payload["items"] = items
        return self._request("POST", "/api/payment/verify", "Failed to verify payment", json=payload)

    def apply_recharge(self, session_id: str) -> Dict[str, Any]:
        return self._request("POST", "/api/wallet/recharge", "Failed to update wallet",
                             json={"session_id": session_id})

    def finalize_checkout(self, session_id: str, items: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
        """Verify a returned session and, for recharges, apply the wallet credit

        A failed credit is not retried: ``RechargeSyncError`` carries the
        manual-support message the return page shows instead.
        """
        result = self.verify_payment(session_id, items)
        if result.get("type") != CheckoutType.RECHARGE.value:
            return result

        try:
            wallet = self.apply_recharge(session_id)
        except ApiError as e:
            logger.error(f"Wallet sync failed for session {session_id}: {e.message}")
            raise RechargeSyncError(session_id, e)

        result["wallet"] = wallet
        return result

    # Admin tables

    def get_policy(self) -> Dict[str, Any]:
        return self._request("GET", "/api/admin/policy", "Failed to load policy")["data"]

    def list_users(self, limit: int = 50) -> List[Dict[str, Any]]:
        body = self._request("GET", "/api/admin/users", "Failed to load users", params={"limit": limit})
        return body["data"].get("items") or []

    def update_user(self, user_id: str, **changes) -> Dict[str, Any]:
        return self._request("PATCH", f"/api/admin/users/{user_id}", "Failed to update user", json=changes)["data"]

    def list_orders(self, limit: int = 50) -> List[Dict[str, Any]]:
        body = self._request("GET", "/api/admin/orders", "Failed to load orders", params={"limit": limit})
        return body["data"].get("items") or []

    def update_order_status(self, order_id: str, status: str) -> Dict[str, Any]:
        return self._request("PATCH", f"/api/admin/orders/{order_id}/status", "Failed to update order",
                             json={"status": status})["data"]

    def list_subscriptions(self, limit: int = 50) -> List[Dict[str, Any]]:
        body = self._request("GET", "/api/admin/subscriptions", "Failed to load subscriptions",
                             params={"limit": limit})
        return body["data"].get("items") or []

    def update_subscription_status(self, subscription_id: str, status: str) -> Dict[str, Any]:
        return self._request("PATCH", f"/api/admin/subscriptions/{subscription_id}",
                             "Failed to update subscription", json={"status": status})["data"]

class MealCalendar:
    """Week-by-week calendar state over the customer endpoints"""

    def __init__(self, client: MealServiceClient, selected: Optional[date] = None,
                 today: Callable[[], date] = date.today):
        self.client = client
        self._today = today
        self.selected = selected or today()
        self.view: Optional[WeekView] = None

    @property
    def selected_week(self) -> date:
        return week_start(self.selected)

    def next_week(self):
        self.selected = self.selected + timedelta(days=7)

    def prev_week(self):
        self.selected = self.selected - timedelta(days=7)

    def go_to_today(self):
        self.selected = self._today()

    def refresh(self) -> Optional[WeekView]:
        """Load both sources for the selected week

        Returns None when the selection moved to another week while the
        requests were in flight; that response is dropped.
        """
        requested = self.selected_week
        start = datetime.combine(requested, time.min)
        end = start + timedelta(days=7)

        try:
            subscriptions = self.client.get_subscriptions()
            orders = self.client.get_orders(start, end)
        except ApiError as e:
            raise CalendarLoadError(f"Failed to load meal calendar: {e.message}", e.status_code) from e
        except ValueError as e:
            # Malformed payload from either source
            raise CalendarLoadError(f"Failed to load meal calendar: {e}") from e

        if self.selected_week != requested:
            logger.debug(f"Dropping calendar response for week of {requested}")
            return None

        self.view = build_week(requested, subscriptions, orders)
        return self.view
