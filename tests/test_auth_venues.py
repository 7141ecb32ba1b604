from datetime import date, timedelta

from app.core.jwt import create_access_token
from app.models.booking import Booking, BookingDateTiming
from app.models.enums import BookingStatus, PaymentStatus, UserRole, VenueStatus
from app.models.rating import Rating
from app.models.user import User
from app.models.venue import Venue
from app.schemas.user import UserOut


def test_register_and_login(client):
    register = client.post(
        "/auth/register",
        json={
            "name": "Ravi Kumar",
            "email": "ravi@example.com",
            "password": "secret123",
            "role": "venue_owner",
        },
    )
    assert register.status_code == 201

    login = client.post("/auth/login", json={"email": "ravi@example.com", "password": "secret123"})
    assert login.status_code == 200
    token = login.json()["access_token"]
    assert login.json()["role"] == "venue_owner"

    me = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["email"] == "ravi@example.com"


def test_duplicate_registration(client, customer):
    response = client.post(
        "/auth/register",
        json={"name": "Asha", "email": customer.email, "password": "secret123"},
    )
    assert response.status_code == 400
    assert response.json() == {"error": "User already exists"}


def test_wrong_password(client):
    client.post(
        "/auth/register",
        json={"name": "Ravi", "email": "ravi@example.com", "password": "secret123"},
    )
    response = client.post("/auth/login", json={"email": "ravi@example.com", "password": "nope"})
    assert response.status_code == 401


def test_bad_token_is_rejected(client):
    response = client.get("/auth/me", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401
    assert response.json() == {"error": "Invalid or expired token"}


def test_owner_creates_and_toggles_venue(client, owner_headers):
    created = client.post(
        "/venues/",
        json={
            "name": "Sunrise Lawns",
            "location": "Mysuru",
            "capacity": 300,
            "price_per_day": 75000,
        },
        headers=owner_headers,
    )
    assert created.status_code == 201
    venue_id = created.json()["id"]
    assert created.json()["status"] == VenueStatus.ACTIVE.value

    toggled = client.put(f"/venues/{venue_id}/toggle-active", headers=owner_headers)
    assert toggled.status_code == 200
    assert toggled.json()["status"] == "inactive"


def test_customer_cannot_create_venue(client, customer_headers):
    response = client.post(
        "/venues/",
        json={"name": "X", "location": "Y", "capacity": 10, "price_per_day": 100},
        headers=customer_headers,
    )
    assert response.status_code == 403
    assert response.json() == {"error": "Venue owners only"}


def register_and_login(client, email, password="secret123", role="customer"):
    client.post(
        "/auth/register",
        json={"name": "Ravi Kumar", "email": email, "password": password, "role": role},
    )
    token = client.post("/auth/login", json={"email": email, "password": password}).json()["access_token"]
    return {"Authorization": f"Bearer {token}"}


def stranger_owner_headers(test_db):
    stranger = User(
        name="Other Owner", email="other.owner@example.com",
        password_hash="not-used", role=UserRole.VENUE_OWNER,
    )
    test_db.add(stranger)
    test_db.commit()
    token = create_access_token({"sub": stranger.email, "role": "venue_owner"})
    return {"Authorization": f"Bearer {token}"}


def test_user_out_reads_orm_user(customer):
    out = UserOut.model_validate(customer)

    assert out.email == customer.email
    assert out.role == UserRole.CUSTOMER


# =====================================================================
# VENUE UPDATE
# =====================================================================
def test_owner_updates_venue(client, owner_headers, venue):
    response = client.put(
        f"/venues/{venue.id}",
        json={"price_per_day": 60000, "description": "Air conditioned hall"},
        headers=owner_headers,
    )

    assert response.status_code == 200
    assert response.json()["message"] == "Venue updated successfully"
    updated = response.json()["venue"]
    assert updated["price_per_day"] == 60000
    assert updated["description"] == "Air conditioned hall"
    assert updated["name"] == "Lotus Banquet Hall"
    assert updated["capacity"] == 200


def test_update_rejects_non_positive_price(client, owner_headers, venue):
    response = client.put(f"/venues/{venue.id}", json={"price_per_day": 0}, headers=owner_headers)

    assert response.status_code == 400


def test_other_owner_cannot_update_or_delete(client, venue, test_db):
    headers = stranger_owner_headers(test_db)

    update = client.put(f"/venues/{venue.id}", json={"name": "Mine now"}, headers=headers)
    delete = client.delete(f"/venues/{venue.id}", headers=headers)

    assert update.status_code == 404
    assert update.json() == {"error": "Venue not found or access denied"}
    assert delete.status_code == 404
    test_db.expire_all()
    assert test_db.get(Venue, venue.id).name == "Lotus Banquet Hall"


def test_price_change_after_inquiry_reaches_payment_order(
    client, customer_headers, owner_headers, venue, gateway, notifier, test_db
):
    created = client.post(
        "/bookings/",
        json={
            "venue_id": venue.id,
            "event_date": (date.today() + timedelta(days=40)).isoformat(),
            "event_type": "Wedding",
            "guest_count": 100,
            "number_of_days": 2,
            "customer_name": "Asha Rao",
            "customer_email": "asha@example.com",
        },
        headers=customer_headers,
    )
    assert created.json()["payment_amount"] == 129800
    booking_id = created.json()["booking_id"]

    client.put(f"/venues/{venue.id}", json={"price_per_day": 60000}, headers=owner_headers)
    accepted = client.put(
        f"/bookings/{booking_id}/status", json={"status": "confirmed"}, headers=owner_headers
    )
    assert accepted.status_code == 200

    order = client.post(
        "/payments/create-order", json={"booking_id": booking_id}, headers=customer_headers
    )

    assert order.status_code == 200
    assert order.json()["order"]["amount"] == 15576000
    test_db.expire_all()
    assert test_db.get(Booking, booking_id).payment_amount == 155760


# =====================================================================
# VENUE DELETE
# =====================================================================
def test_delete_venue_removes_bookings_and_ratings(client, owner, owner_headers, venue, make_booking, test_db):
    event_day = date.today() - timedelta(days=3)
    booking = make_booking(
        event_date=event_day,
        status=BookingStatus.CONFIRMED,
        payment_status=PaymentStatus.COMPLETED,
        dates_timings=[BookingDateTiming(date=event_day)],
    )
    test_db.add(Rating(
        venue_id=venue.id, user_id=booking.customer_id, booking_id=booking.id,
        rating=5, feedback="Great", user_name="Asha",
    ))
    kept_venue = Venue(
        owner_id=owner.id, name="Sunrise Lawns", location="Mysuru",
        capacity=300, price_per_day=75000, status=VenueStatus.ACTIVE,
    )
    test_db.add(kept_venue)
    test_db.commit()
    kept_booking = make_booking(venue_id=kept_venue.id)
    venue_id = venue.id

    response = client.delete(f"/venues/{venue_id}", headers=owner_headers)

    assert response.status_code == 200
    assert response.json() == {"message": "Venue deleted successfully"}

    test_db.expire_all()
    assert test_db.query(Venue).filter(Venue.id == venue_id).first() is None
    assert test_db.query(Booking).filter(Booking.venue_id == venue_id).count() == 0
    assert test_db.query(BookingDateTiming).count() == 0
    assert test_db.query(Rating).count() == 0
    assert test_db.get(Booking, kept_booking.id) is not None

    assert client.get(f"/venues/{venue_id}").status_code == 404


def test_customer_cannot_delete_venue(client, customer_headers, venue):
    response = client.delete(f"/venues/{venue.id}", headers=customer_headers)

    assert response.status_code == 403


# =====================================================================
# ACCOUNT DELETE
# =====================================================================
def test_delete_account_removes_user_data(client, venue, test_db):
    headers = register_and_login(client, "ravi@example.com")
    user = test_db.query(User).filter(User.email == "ravi@example.com").first()
    test_db.add(Booking(
        venue_id=venue.id, customer_id=user.id, customer_name=user.name,
        customer_email=user.email, event_date=date.today() + timedelta(days=20),
        guest_count=50, amount=50000, payment_amount=64900,
        status=BookingStatus.PENDING, payment_status=PaymentStatus.NOT_REQUIRED,
    ))
    test_db.commit()

    response = client.post("/auth/delete-account", json={"password": "secret123"}, headers=headers)

    assert response.status_code == 200
    assert response.json() == {"message": "Account deleted successfully"}
    test_db.expire_all()
    assert test_db.query(User).filter(User.email == "ravi@example.com").first() is None
    assert test_db.query(Booking).count() == 0

    login = client.post("/auth/login", json={"email": "ravi@example.com", "password": "secret123"})
    assert login.status_code == 401


def test_delete_account_needs_correct_password(client, test_db):
    headers = register_and_login(client, "ravi@example.com")

    missing = client.post("/auth/delete-account", json={}, headers=headers)
    wrong = client.post("/auth/delete-account", json={"password": "nope"}, headers=headers)

    assert missing.status_code == 400
    assert missing.json() == {"error": "Password is required to delete account"}
    assert wrong.status_code == 401
    assert wrong.json() == {"error": "Invalid password. Account deletion cancelled."}
    assert test_db.query(User).filter(User.email == "ravi@example.com").first() is not None
