"""
Pytest configuration and fixtures
"""
import os

# Settings are read at import time
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["SCHEDULER_ENABLED"] = "False"
os.environ["BUSINESS_TIMEZONE"] = "UTC"
os.environ["TWILIO_ACCOUNT_SID"] = ""
os.environ["TWILIO_AUTH_TOKEN"] = ""
os.environ["SMTP_HOST"] = ""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from catering.database import Base, engine, get_db, SessionLocal
from catering.models import Booking, BookingItem
from catering.schemas.booking import BookingCreate


@pytest.fixture(scope="session")
def test_engine():
    """Shared in-memory database engine"""
    yield engine


@pytest.fixture(scope="function")
def test_db_session(test_engine):
    """Create test database session with fresh tables"""
    Base.metadata.create_all(bind=test_engine)
    session = SessionLocal()

    yield session

    # Cleanup
    session.close()
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def client(test_db_session):
    """Test client wired to the test session"""
    from catering.main import app

    def override_get_db():
        yield test_db_session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def booking_payload(**overrides) -> dict:
    """Valid booking request body"""
    payload = {
        "order_source": {
            "source_type": "menu",
            "source_id": "menu-1",
            "source_name": "Wedding Banquet",
            "location_id": "loc-1",
            "location_name": "Parramatta",
            "service_id": "svc-1",
            "service_name": "Functions",
            "base_price": 45,
        },
        "customer_details": {
            "name": "Jane Citizen",
            "email": "Jane@Example.com",
            "phone": "+61400000000",
            "dietary_requirements": ["vegetarian"],
            "spice_level": "mild",
        },
        "people_count": 40,
        "selected_items": [
            {
                "name": "Butter Chicken",
                "total_price": 400,
                "category": "mains",
                "type": "included",
            },
            {
                "name": "Gulab Jamun",
                "total_price": 120,
                "category": "desserts",
                "type": "selected",
            },
        ],
        "pricing": {"base_price": 1800, "items_price": 520, "total": 2320},
        "delivery_type": "Pickup",
        "delivery_date": (datetime.now(timezone.utc).replace(tzinfo=None) + timedelta(days=5)).isoformat(),
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def make_booking(test_db_session):
    """Factory inserting a booking row directly"""
    counter = {"n": 0}

    def _make(**fields) -> Booking:
        counter["n"] += 1
        now = datetime.now(timezone.utc).replace(tzinfo=None)
        values = {
            "booking_reference": f"BK000000{counter['n']:03d}",
            "source_type": "menu",
            "source_id": "menu-1",
            "source_name": "Wedding Banquet",
            "location_id": "loc-1",
            "location_name": "Parramatta",
            "service_id": "svc-1",
            "service_name": "Functions",
            "customer_name": f"Customer {counter['n']}",
            "customer_email": f"customer{counter['n']}@example.com",
            "customer_phone": "+61400000000",
            "dietary_requirements": [],
            "spice_level": "medium",
            "people_count": 10,
            "delivery_type": "Pickup",
            "delivery_date": now + timedelta(days=3),
            "pricing_total": 500.0,
            "status": "pending",
            "payment_status": "pending",
            "order_date": now - timedelta(days=1),
        }
        items = fields.pop("items", [{"name": "Samosa", "total_price": 50.0, "category": "entree", "type": "included"}])
        values.update(fields)
        booking = Booking(**values)
        booking.selected_items = [BookingItem(**item) for item in items]
        test_db_session.add(booking)
        test_db_session.commit()
        test_db_session.refresh(booking)
        return booking

    return _make


@pytest.fixture
def booking_create():
    """Validated BookingCreate model"""
    return BookingCreate(**booking_payload())


# Test markers
def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "slow: Slow tests")
