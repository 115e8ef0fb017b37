"""
User data models and API schemas
"""
import uuid
from datetime import datetime
from typing import Optional
from sqlalchemy import Column, String, Boolean, DateTime, Float, Enum
from sqlalchemy.orm import relationship
from pydantic import BaseModel, ConfigDict
from mealservice.core.database import Base
from mealservice.policy import UserRole

def new_id() -> str:
    return uuid.uuid4().hex

def enum_values(enum_cls):
    return [member.value for member in enum_cls]

# Database Models

class User(Base):
    """User database model"""
    __tablename__ = "users"

    id = Column(String(50), primary_key=True, index=True, default=new_id)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    role = Column(Enum(UserRole, values_callable=enum_values), default=UserRole.CUSTOMER, nullable=False)
    is_active = Column(Boolean, default=True)
    wallet_balance = Column(Float, default=0.0)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    orders = relationship("Order", back_populates="user")
    subscriptions = relationship("Subscription", back_populates="user")
    wallet_transactions = relationship("WalletTransaction", back_populates="user")

# Pydantic Models for API

class UserSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: Optional[str] = None

class UserRead(UserSummary):
    role: UserRole
    is_active: bool
    wallet_balance: float = 0.0
    created_at: Optional[datetime] = None

class UserAdminUpdate(BaseModel):
    role: Optional[str] = None
    is_active: Optional[bool] = None
