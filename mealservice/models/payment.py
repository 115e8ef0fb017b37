"""
Checkout, verification and wallet data models
"""
from datetime import datetime, date as Date
from typing import Optional, List, Dict, Any
from sqlalchemy import Column, Integer, String, DateTime, Float, JSON, ForeignKey, Enum
from sqlalchemy.orm import relationship
from pydantic import BaseModel, Field
from mealservice.core.database import Base
from mealservice.models.order import OrderRead
from mealservice.models.user import enum_values
from mealservice.policy import CheckoutState, MealSlot

# Database Models

class CheckoutRecord(Base):
    """Server-side record of a processor checkout session"""
    __tablename__ = "checkout_records"

    id = Column(Integer, primary_key=True, autoincrement=True)
    session_id = Column(String(255), unique=True, index=True, nullable=False)
    type = Column(String(30), nullable=False)  # cart_checkout, recharge
    user_id = Column(String(50), ForeignKey("users.id"))
    amount = Column(Float)
    cart = Column(JSON, default=list)
    delivery_address = Column(JSON)
    status = Column(Enum(CheckoutState, values_callable=enum_values), default=CheckoutState.PENDING, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    paid_at = Column(DateTime)
    fulfilled_at = Column(DateTime)

class WalletTransaction(Base):
    """Wallet credit applied from a confirmed recharge"""
    __tablename__ = "wallet_transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(50), ForeignKey("users.id"), nullable=False)
    amount = Column(Float, nullable=False)
    method = Column(String(20), default="stripe")
    checkout_session_id = Column(String(255), unique=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    user = relationship("User", back_populates="wallet_transactions")

# Pydantic Models for API

class CartItem(BaseModel):
    menu_item_id: Optional[str] = None
    restaurant_id: Optional[str] = None
    name: str
    price: float
    quantity: int = Field(default=1, ge=1)
    date: Date
    day: Optional[str] = None
    meal_type: MealSlot = MealSlot.LUNCH
    hour: Optional[int] = Field(default=None, ge=0, le=23)

class CheckoutRequest(BaseModel):
    type: Optional[str] = None
    items: Optional[List[CartItem]] = None
    delivery_address: Optional[Dict[str, Any]] = None
    amount: Optional[float] = None

class CheckoutResponse(BaseModel):
    id: str
    url: str

class VerifyRequest(BaseModel):
    session_id: str
    items: Optional[List[CartItem]] = None

class VerifyResponse(BaseModel):
    success: bool = True
    type: str
    session_id: str
    already_processed: bool = False
    orders: List[OrderRead] = []
    amount: Optional[float] = None

class WalletRechargeRequest(BaseModel):
    session_id: str

class WalletRechargeResponse(BaseModel):
    balance: float
    amount: float
    already_applied: bool = False
