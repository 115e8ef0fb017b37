"""
Meal subscription data models and API schemas
"""
from datetime import datetime
from typing import Optional, List
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Enum
from sqlalchemy.orm import relationship
from pydantic import BaseModel, ConfigDict
from mealservice.core.database import Base
from mealservice.models.food import MenuItemSummary, RestaurantSummary
from mealservice.models.user import UserSummary, enum_values, new_id
from mealservice.policy import SubscriptionStatus

# Database Models

class Subscription(Base):
    """Subscription database model"""
    __tablename__ = "subscriptions"

    id = Column(String(50), primary_key=True, index=True, default=new_id)
    user_id = Column(String(50), ForeignKey("users.id"), nullable=False, index=True)
    restaurant_id = Column(String(50), ForeignKey("restaurants.id"))

    status = Column(
        Enum(SubscriptionStatus, values_callable=enum_values),
        default=SubscriptionStatus.ACTIVE,
        nullable=False,
    )
    plan_type = Column(String(20), default="weekly")  # weekly, monthly
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime)
    is_repeating = Column(Boolean, default=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    user = relationship("User", back_populates="subscriptions")
    restaurant = relationship("Restaurant")
    meal_selections = relationship(
        "MealSelection",
        back_populates="subscription",
        cascade="all, delete-orphan",
        order_by="MealSelection.position",
    )

class MealSelection(Base):
    """One weekday/meal slot pick inside a subscription"""
    __tablename__ = "meal_selections"

    id = Column(Integer, primary_key=True, autoincrement=True)
    subscription_id = Column(String(50), ForeignKey("subscriptions.id"), nullable=False)
    menu_item_id = Column(String(50), ForeignKey("menu_items.id"))
    position = Column(Integer, default=0)
    day = Column(String(10), nullable=False)  # sunday .. saturday
    meal_type = Column(String(20), nullable=False)  # lunch, dinner
    quantity = Column(Integer, default=1)

    # Relationships
    subscription = relationship("Subscription", back_populates="meal_selections")
    menu_item = relationship("MenuItem")

# Pydantic Models for API

class MealSelectionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    day: str
    meal_type: str
    quantity: int = 1
    menu_item_id: Optional[str] = None
    menu_item: Optional[MenuItemSummary] = None

class SubscriptionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    user: Optional[UserSummary] = None
    restaurant: Optional[RestaurantSummary] = None
    status: SubscriptionStatus
    plan_type: Optional[str] = None
    start_date: datetime
    end_date: Optional[datetime] = None
    is_repeating: bool = False
    meal_selections: List[MealSelectionRead] = []
    created_at: Optional[datetime] = None

class SubscriptionStatusUpdate(BaseModel):
    status: str
