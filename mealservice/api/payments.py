"""
Payment API router
"""
import logging
from typing import Any, Optional
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from mealservice.api.auth import get_optional_user
from mealservice.core.database import get_db
from mealservice.models.payment import CheckoutRequest, CheckoutResponse, VerifyRequest, VerifyResponse
from mealservice.models.user import User
from mealservice.services.checkout import (
    CheckoutAuthenticationError, CheckoutValidationError, create_checkout
)
from mealservice.services.payments import PaymentGatewayError, PaymentService, get_payment_gateway
from mealservice.services.verification import (
    OrderMaterializationError, PaymentNotVerifiedError, verify_session
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/payment", tags=["payments"])

@router.post("/create-checkout-session", response_model=CheckoutResponse)
async def create_checkout_session(
    checkout: CheckoutRequest,
    current_user: Optional[User] = Depends(get_optional_user),
    gateway: PaymentService = Depends(get_payment_gateway),
    db: Session = Depends(get_db)
) -> Any:
    """Create a hosted checkout session for a cart or a wallet recharge"""
    try:
        return create_checkout(db, gateway, checkout, current_user)
    except CheckoutAuthenticationError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )
    except CheckoutValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except PaymentGatewayError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e)
        )
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Could not record checkout session: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to record checkout session"
        )

@router.post("/verify", response_model=VerifyResponse)
async def verify_payment(
    verification: VerifyRequest,
    gateway: PaymentService = Depends(get_payment_gateway),
    db: Session = Depends(get_db)
) -> Any:
    """Confirm a returned session and create its orders or confirm its recharge"""
    try:
        return verify_session(db, gateway, verification.session_id, verification.items)
    except PaymentNotVerifiedError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except CheckoutValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except (PaymentGatewayError, OrderMaterializationError) as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e)
        )
