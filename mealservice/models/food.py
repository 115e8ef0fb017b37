"""
Restaurant and menu data models
"""
from datetime import datetime
from typing import Optional
from sqlalchemy import Column, String, Boolean, DateTime, Float, Integer, Text, ForeignKey
from sqlalchemy.orm import relationship
from pydantic import BaseModel, ConfigDict
from mealservice.core.database import Base
from mealservice.models.user import new_id

# Database Models

class Restaurant(Base):
    """Restaurant database model"""
    __tablename__ = "restaurants"

    id = Column(String(50), primary_key=True, index=True, default=new_id)
    name = Column(String(255), nullable=False)
    image_url = Column(String(500))
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    menu_items = relationship("MenuItem", back_populates="restaurant", cascade="all, delete-orphan")

class MenuItem(Base):
    """Menu item database model"""
    __tablename__ = "menu_items"

    id = Column(String(50), primary_key=True, index=True, default=new_id)
    restaurant_id = Column(String(50), ForeignKey("restaurants.id"), nullable=False)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    price = Column(Float, nullable=False)
    image_url = Column(String(500))
    meal_type = Column(String(20))  # lunch, dinner
    calories = Column(Integer)
    is_available = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    restaurant = relationship("Restaurant", back_populates="menu_items")

# Pydantic Models for API

class RestaurantSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    image_url: Optional[str] = None

class MenuItemSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: Optional[str] = None
    price: float = 0.0
    image_url: Optional[str] = None
    meal_type: Optional[str] = None
    calories: Optional[int] = None
