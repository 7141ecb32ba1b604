import hashlib
import hmac
import os
from datetime import date, timedelta

# Settings are read at import time, so they must be in place before the app loads
os.environ["DATABASE_URL"] = "sqlite:///./out/tests.db"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["RAZORPAY_KEY_ID"] = "rzp_test_key"
os.environ["RAZORPAY_KEY_SECRET"] = "rzp_test_secret"
os.environ["BOOKING_SWEEPER_ENABLED"] = "false"
os.environ["ADMIN_EMAIL"] = "admin@example.com"
os.environ["LOG_DIR"] = "./out/logs"
os.environ.pop("SMTP_HOST", None)
os.environ.pop("REDIS_URL", None)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import text

if not os.path.exists("./out"):
    os.makedirs("./out")

from app.main import app
from app.db.session import Base, SessionLocal, engine, get_db
from app.core.jwt import create_access_token
from app.models.user import User
from app.models.venue import Venue
from app.models.booking import Booking
from app.models.rating import Rating  # noqa: F401
from app.models.enums import BookingStatus, PaymentStatus, UserRole, VenueStatus
from app.services.notifications import get_notifier
from app.utils.razorpay_client import get_payment_gateway, razorpay_client

RAZORPAY_SECRET = os.environ["RAZORPAY_KEY_SECRET"]

Base.metadata.create_all(bind=engine)


def override_get_db():
    try:
        db = SessionLocal()
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db

test_client = TestClient(app)


# ---------------------------------------------------------------------
# Test doubles
# ---------------------------------------------------------------------
class RecordingNotifier:
    """Stands in for the email notifier and remembers every send."""

    def __init__(self):
        self.sent = []

    def send(self, template, recipient, data):
        self.sent.append((template, recipient, data))
        return True

    def templates(self):
        return [template for template, _, _ in self.sent]


class FakeOrders:
    def __init__(self):
        self.created = []
        self.error = None

    def create(self, options):
        if self.error is not None:
            raise self.error
        self.created.append(options)
        return {
            "id": f"order_test_{len(self.created)}",
            "amount": options["amount"],
            "currency": options["currency"],
        }


class FakeGateway:
    """Order creation is faked; signature checks use the real SDK utility."""

    def __init__(self):
        self.order = FakeOrders()
        self.utility = razorpay_client.utility


def sign(order_id, payment_id, secret=RAZORPAY_SECRET):
    return hmac.new(
        secret.encode(), f"{order_id}|{payment_id}".encode(), hashlib.sha256
    ).hexdigest()


# ---------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------
@pytest.fixture(autouse=True)
def clear_db():
    """Clear all data from all tables after each test"""
    yield
    with engine.connect() as conn:
        trans = conn.begin()
        conn.execute(text("PRAGMA foreign_keys = OFF"))
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())
        conn.execute(text("PRAGMA foreign_keys = ON"))
        trans.commit()


@pytest.fixture
def test_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def notifier():
    recorder = RecordingNotifier()
    app.dependency_overrides[get_notifier] = lambda: recorder
    yield recorder
    app.dependency_overrides.pop(get_notifier, None)


@pytest.fixture
def gateway():
    fake = FakeGateway()
    app.dependency_overrides[get_payment_gateway] = lambda: fake
    yield fake
    app.dependency_overrides.pop(get_payment_gateway, None)


def _make_user(db, name, email, role):
    user = User(name=name, email=email, phone="9999999999", password_hash="not-used", role=role)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def _headers(user):
    token = create_access_token({"sub": user.email, "role": user.role.value})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def customer(test_db):
    return _make_user(test_db, "Asha Rao", "asha@example.com", UserRole.CUSTOMER)


@pytest.fixture
def other_customer(test_db):
    return _make_user(test_db, "Vikram Shah", "vikram@example.com", UserRole.CUSTOMER)


@pytest.fixture
def owner(test_db):
    return _make_user(test_db, "Meera Iyer", "meera@example.com", UserRole.VENUE_OWNER)


@pytest.fixture
def customer_headers(customer):
    return _headers(customer)


@pytest.fixture
def other_customer_headers(other_customer):
    return _headers(other_customer)


@pytest.fixture
def owner_headers(owner):
    return _headers(owner)


@pytest.fixture
def venue(test_db, owner):
    venue = Venue(
        owner_id=owner.id,
        name="Lotus Banquet Hall",
        description="Air conditioned hall with garden",
        location="Bengaluru",
        capacity=200,
        price_per_day=50000,
        status=VenueStatus.ACTIVE,
    )
    test_db.add(venue)
    test_db.commit()
    test_db.refresh(venue)
    return venue


@pytest.fixture
def make_booking(test_db, customer, venue):
    """Insert a booking directly, bypassing the API."""

    def _make(**overrides):
        values = dict(
            venue_id=venue.id,
            customer_id=customer.id,
            customer_name=customer.name,
            customer_email=customer.email,
            customer_phone=customer.phone,
            event_date=date.today() + timedelta(days=30),
            event_type="Wedding",
            guest_count=120,
            number_of_days=2,
            amount=100000,
            payment_amount=129800,
            status=BookingStatus.PENDING,
            payment_status=PaymentStatus.PENDING,
        )
        values.update(overrides)
        booking = Booking(**values)
        test_db.add(booking)
        test_db.commit()
        test_db.refresh(booking)
        return booking

    return _make


@pytest.fixture
def client():
    return test_client


@pytest.fixture
def signer():
    return sign
