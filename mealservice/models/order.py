"""
Order management data models and API schemas
"""
from datetime import datetime
from typing import Optional, List, Dict, Any
from sqlalchemy import Column, Integer, String, DateTime, Float, JSON, ForeignKey, Enum
from sqlalchemy.orm import relationship
from pydantic import BaseModel, ConfigDict
from mealservice.core.database import Base
from mealservice.models.food import MenuItemSummary, RestaurantSummary
from mealservice.models.user import UserSummary, enum_values, new_id
from mealservice.policy import OrderStatus, PaymentStatus, PaymentMethod

# Database Models

class Order(Base):
    """Order database model"""
    __tablename__ = "orders"

    id = Column(String(50), primary_key=True, index=True, default=new_id)
    user_id = Column(String(50), ForeignKey("users.id"), index=True)
    restaurant_id = Column(String(50), ForeignKey("restaurants.id"))

    # Order details
    status = Column(Enum(OrderStatus, values_callable=enum_values), default=OrderStatus.PENDING, nullable=False)
    meal_type = Column(String(20))  # lunch, dinner
    total = Column(Float, nullable=False)

    # Payment
    payment_method = Column(Enum(PaymentMethod, values_callable=enum_values), default=PaymentMethod.CARD)
    payment_status = Column(Enum(PaymentStatus, values_callable=enum_values), default=PaymentStatus.PENDING)
    checkout_session_id = Column(String(255), index=True)  # External payment session ID

    # Delivery details
    delivery_address = Column(JSON, nullable=False)  # Full address object
    delivery_date = Column(DateTime)
    scheduled_date = Column(DateTime)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    user = relationship("User", back_populates="orders")
    restaurant = relationship("Restaurant")
    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")

class OrderItem(Base):
    """Order item database model"""
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(String(50), ForeignKey("orders.id"), nullable=False)
    menu_item_id = Column(String(50), ForeignKey("menu_items.id"))

    name = Column(String(255))
    quantity = Column(Integer, nullable=False, default=1)
    price = Column(Float, nullable=False)
    meal_type = Column(String(20))

    # Relationships
    order = relationship("Order", back_populates="items")
    menu_item = relationship("MenuItem")

# Pydantic Models for API

class OrderItemRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    menu_item_id: Optional[str] = None
    menu_item: Optional[MenuItemSummary] = None
    name: Optional[str] = None
    quantity: Optional[int] = 1
    price: Optional[float] = 0.0
    meal_type: Optional[str] = None

class OrderRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: Optional[str] = None
    user: Optional[UserSummary] = None
    restaurant_id: Optional[str] = None
    restaurant: Optional[RestaurantSummary] = None
    status: OrderStatus
    meal_type: Optional[str] = None
    total: float
    payment_method: Optional[PaymentMethod] = None
    payment_status: Optional[PaymentStatus] = None
    checkout_session_id: Optional[str] = None
    delivery_address: Dict[str, Any] = {}
    delivery_date: Optional[datetime] = None
    scheduled_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    items: List[OrderItemRead] = []

class OrderStatusUpdate(BaseModel):
    status: str
