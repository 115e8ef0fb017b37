"""
Wallet API router
"""
import logging
from datetime import datetime
from typing import Any
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from mealservice.api.auth import get_current_user
from mealservice.core.database import get_db
from mealservice.models.payment import (
    CheckoutRecord, WalletRechargeRequest, WalletRechargeResponse, WalletTransaction
)
from mealservice.models.user import User
from mealservice.policy import CheckoutState, CheckoutType

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/wallet", tags=["wallet"])

@router.post("/recharge", response_model=WalletRechargeResponse)
async def apply_recharge(
    recharge: WalletRechargeRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> Any:
    """Credit a verified recharge session to the caller's wallet"""
    record = db.query(CheckoutRecord).filter(
        CheckoutRecord.session_id == recharge.session_id
    ).first()

    if not record or record.type != CheckoutType.RECHARGE.value:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Recharge session not found"
        )

    # Owner-less recharges were never tied to a wallet and cannot be claimed
    if record.user_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Recharge session belongs to another user"
        )

    if record.status == CheckoutState.FULFILLED:
        return WalletRechargeResponse(
            balance=current_user.wallet_balance or 0.0,
            amount=record.amount or 0.0,
            already_applied=True,
        )

    if record.status != CheckoutState.PAID:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Recharge payment has not been verified"
        )

    if not record.amount or record.amount <= 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Recharge amount is missing"
        )

    amount = record.amount
    try:
        # Only the request that moves the record out of paid credits the wallet
        claimed = db.query(CheckoutRecord).filter(
            CheckoutRecord.session_id == record.session_id,
            CheckoutRecord.status == CheckoutState.PAID,
        ).update(
            {CheckoutRecord.status: CheckoutState.FULFILLED, CheckoutRecord.fulfilled_at: datetime.utcnow()},
            synchronize_session=False,
        )
        if not claimed:
            db.rollback()
            db.refresh(current_user)
            return WalletRechargeResponse(
                balance=current_user.wallet_balance or 0.0,
                amount=amount,
                already_applied=True,
            )

        current_user.wallet_balance = (current_user.wallet_balance or 0.0) + amount
        db.add(WalletTransaction(
            user_id=current_user.id,
            amount=amount,
            method="stripe",
            checkout_session_id=record.session_id,
        ))
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Wallet recharge failed for session {record.session_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update wallet"
        )

    db.refresh(current_user)
    logger.info(f"Credited {amount} to wallet of user {current_user.id}")

    return WalletRechargeResponse(
        balance=current_user.wallet_balance,
        amount=amount,
    )
