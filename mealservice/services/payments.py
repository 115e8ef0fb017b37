"""
Stripe gateway used by checkout and verification
"""
import logging
from typing import Any, Dict, List
import stripe
from mealservice.core.config import settings

logger = logging.getLogger(__name__)

class PaymentGatewayError(Exception):
    """The payment processor rejected a call or could not be reached"""

class PaymentService:
    def __init__(self, secret_key: str = None):
        self.stripe_secret_key = secret_key if secret_key is not None else settings.STRIPE_SECRET_KEY
        if self.stripe_secret_key:
            stripe.api_key = self.stripe_secret_key

    def create_checkout_session(
        self,
        line_items: List[Dict[str, Any]],
        metadata: Dict[str, str],
        success_url: str,
        cancel_url: str,
    ) -> Dict:
        """Create a hosted Stripe checkout session"""
        try:
            if not self.stripe_secret_key:
                return {'error': 'Stripe not configured'}

            session = stripe.checkout.Session.create(
                payment_method_types=['card'],
                line_items=line_items,
                mode='payment',
                metadata=metadata,
                success_url=success_url,
                cancel_url=cancel_url,
            )

            return {
                'id': session.id,
                'url': session.url,
            }
        except stripe.StripeError as e:
            logger.error(f"Checkout session creation error: {e}")
            return {'error': e.user_message or str(e)}

    def retrieve_session(self, session_id: str) -> Dict:
        """Fetch a checkout session and its payment status"""
        try:
            if not self.stripe_secret_key:
                return {'error': 'Stripe not configured'}

            session = stripe.checkout.Session.retrieve(session_id)
            raw = session.to_dict()

            return {
                'id': raw.get('id'),
                'payment_status': raw.get('payment_status'),
                'amount_total': raw.get('amount_total'),
                'currency': raw.get('currency'),
                'metadata': dict(raw.get('metadata') or {}),
            }
        except stripe.StripeError as e:
            logger.error(f"Checkout session retrieval error: {e}")
            return {'error': e.user_message or str(e)}

def get_payment_gateway() -> PaymentService:
    """FastAPI dependency returning the configured gateway"""
    return PaymentService()
