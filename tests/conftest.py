"""
Pytest configuration and shared fixtures for testing the Scraply API.
"""
import os

# Keep the application's own engine off disk; tests bind their own below
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("RATE_LIMIT", "10000/minute")

from datetime import date, datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from scraply.database import Base
from scraply.main import app, limiter
from scraply.deps import get_db, get_password_hash
from scraply.circuit_breaker import assistant_circuit_breaker, prediction_circuit_breaker
from scraply import models


# Use an in-memory SQLite database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(autouse=True)
def isolate_shared_state():
    """
    Disable rate limiting and start every test with closed circuit breakers.
    """
    limiter.enabled = False
    assistant_circuit_breaker.close()
    prediction_circuit_breaker.close()
    yield
    assistant_circuit_breaker.close()
    prediction_circuit_breaker.close()


@pytest.fixture(scope="function")
def db_session():
    """
    Create a fresh database session for each test.
    """
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """
    Create a test client with the test database.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def make_user(db_session, username, email, password, role):
    user = models.User(
        username=username,
        full_name=username.title(),
        phone_number="9800000000",
        email=email,
        hashed_password=get_password_hash(password),
        role=role,
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def admin_user(db_session):
    """
    Create an admin user for testing.
    """
    return make_user(db_session, "admin", "admin@example.com", "adminpass123", "admin")


@pytest.fixture
def regular_user(db_session):
    """
    Create a regular user for testing.
    """
    return make_user(db_session, "regularuser", "regular@example.com", "regularpass123", "user")


@pytest.fixture
def other_user(db_session):
    """
    Create a second regular user for ownership checks.
    """
    return make_user(db_session, "otheruser", "other@example.com", "otherpass123", "user")


def login(client, email, password):
    response = client.post("/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response.json()["data"]["token"]


@pytest.fixture
def admin_token(client, admin_user):
    """
    Get an admin authentication token.
    """
    return login(client, "admin@example.com", "adminpass123")


@pytest.fixture
def regular_token(client, regular_user):
    """
    Get a regular user authentication token.
    """
    return login(client, "regular@example.com", "regularpass123")


@pytest.fixture
def other_token(client, other_user):
    return login(client, "other@example.com", "otherpass123")


@pytest.fixture
def sample_facility(db_session):
    facility = models.Facility(
        name="Green Cycle Hub",
        capacity="500 kg",
        lon=77.5946,
        lat=12.9716,
        contact="080-1234567",
        time="9:00 AM - 6:00 PM",
        verified=True,
    )
    db_session.add(facility)
    db_session.commit()
    db_session.refresh(facility)
    return facility


@pytest.fixture
def sample_booking(db_session, regular_user, sample_facility):
    """
    Create a pending booking owned by the regular user.
    """
    booking = models.Booking(
        user_id=regular_user.id,
        user_email=regular_user.email,
        recycle_item="Samsung Galaxy S10",
        recycle_item_price=2500.0,
        facility=sample_facility.name,
        pickup_date=date(2030, 1, 15),
        pickup_time="10:30",
        full_name="Regular User",
        address="12 MG Road, Bengaluru",
        phone="9800000000",
        book_status="pending",
    )
    db_session.add(booking)
    db_session.commit()
    db_session.refresh(booking)
    return booking


@pytest.fixture
def sample_blog(db_session):
    blog = models.BlogPost(
        title="Why e-waste matters",
        content="Old phones contain gold, copper and lithium.",
        author="Scraply Team",
        featured=True,
    )
    db_session.add(blog)
    db_session.commit()
    db_session.refresh(blog)
    return blog


@pytest.fixture
def make_popup(db_session):
    """
    Factory for popups with explicit priority, pages and creation time.
    """
    def _make(title, priority=1, target_pages=None, is_active=True, frequency=24, created_at=None):
        popup = models.Popup(
            title=title,
            content=f"{title} content",
            detail_content=f"{title} details",
            priority=priority,
            target_pages=target_pages or ["all"],
            is_active=is_active,
            frequency=frequency,
            created_at=created_at or datetime(2025, 1, 1, 12, 0, 0),
        )
        db_session.add(popup)
        db_session.commit()
        db_session.refresh(popup)
        return popup

    return _make


def get_auth_header(token: str) -> dict:
    """
    Helper function to create authorization header.
    """
    return {"Authorization": f"Bearer {token}"}
