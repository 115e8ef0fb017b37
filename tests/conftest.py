from datetime import datetime, timedelta
from itertools import count
from typing import Any, Dict, List

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import mealservice.models  # noqa: F401
from mealservice.core.database import Base, get_db
from mealservice.core.security import create_access_token
from mealservice.main import app
from mealservice.models.food import MenuItem, Restaurant
from mealservice.models.user import User
from mealservice.policy import UserRole
from mealservice.services.payments import get_payment_gateway

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

class FakeGateway:
    """Stands in for Stripe: records sessions it opens and serves them back"""

    def __init__(self):
        self._ids = count(1)
        self.created: List[Dict[str, Any]] = []
        self.sessions: Dict[str, Dict[str, Any]] = {}
        self.create_error = None
        self.retrieve_error = None

    def create_checkout_session(self, line_items, metadata, success_url, cancel_url):
        if self.create_error:
            return {'error': self.create_error}
        session_id = f"cs_test_{next(self._ids)}"
        call = {
            'id': session_id,
            'line_items': line_items,
            'metadata': dict(metadata),
            'success_url': success_url,
            'cancel_url': cancel_url,
        }
        self.created.append(call)
        self.sessions[session_id] = {
            'id': session_id,
            'payment_status': 'unpaid',
            'amount_total': sum(li['price_data']['unit_amount'] * li['quantity'] for li in line_items),
            'metadata': dict(metadata),
        }
        return {'id': session_id, 'url': f"https://checkout.stripe.test/{session_id}"}

    def retrieve_session(self, session_id):
        if self.retrieve_error:
            return {'error': self.retrieve_error}
        session = self.sessions.get(session_id)
        if session is None:
            return {'error': f"No such checkout.session: '{session_id}'"}
        return dict(session, metadata=dict(session['metadata']))

    def mark_paid(self, session_id):
        self.sessions[session_id]['payment_status'] = 'paid'

    def add_session(self, session_id, metadata, payment_status='paid', amount_total=None):
        self.sessions[session_id] = {
            'id': session_id,
            'payment_status': payment_status,
            'amount_total': amount_total,
            'metadata': metadata,
        }

@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)

@pytest.fixture
def gateway():
    return FakeGateway()

@pytest.fixture
def client(db, gateway):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()

_emails = count(1)

def make_user(db, role=UserRole.CUSTOMER, name="Test User", created_at=None, **fields):
    user = User(
        name=name,
        email=f"user{next(_emails)}@example.com",
        role=role,
        created_at=created_at or datetime.utcnow(),
        **fields,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user

def auth_headers(user):
    token = create_access_token({"sub": user.id}, expires_delta=timedelta(minutes=5))
    return {"Authorization": f"Bearer {token}"}

@pytest.fixture
def customer(db):
    return make_user(db, name="Rahim Customer")

@pytest.fixture
def admin(db):
    return make_user(db, role=UserRole.ADMIN, name="Admin")

@pytest.fixture
def restaurant(db):
    restaurant = Restaurant(name="Dhaba House", image_url="https://img.example.com/dhaba.jpg")
    db.add(restaurant)
    db.commit()
    db.refresh(restaurant)
    return restaurant

@pytest.fixture
def menu_item(db, restaurant):
    item = MenuItem(
        restaurant_id=restaurant.id,
        name="Chicken Biryani",
        description="Kacchi style",
        price=250.0,
        meal_type="lunch",
        calories=780,
    )
    db.add(item)
    db.commit()
    db.refresh(item)
    return item
