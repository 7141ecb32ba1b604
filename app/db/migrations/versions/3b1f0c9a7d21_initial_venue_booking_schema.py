"""Initial venue booking schema

Revision ID: 3b1f0c9a7d21
Revises:
Create Date: 2026-10-17 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


revision = "3b1f0c9a7d21"
down_revision = None
branch_labels = None
depends_on = None


user_role_enum = sa.Enum("CUSTOMER", "VENUE_OWNER", name="userrole")
venue_status_enum = sa.Enum("ACTIVE", "INACTIVE", name="venuestatus")
booking_status_enum = sa.Enum("PENDING", "CONFIRMED", "CANCELLED", name="bookingstatus")
payment_status_enum = sa.Enum(
    "NOT_REQUIRED", "PENDING", "COMPLETED", "FAILED", name="paymentstatus"
)


def upgrade():
    # 1️⃣ Users
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("phone", sa.String(), nullable=True),
        sa.Column("password_hash", sa.String(), nullable=False),
        sa.Column("role", user_role_enum, nullable=False),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    # 2️⃣ Venues
    op.create_table(
        "venues",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "owner_id", sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("location", sa.String(), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False),
        sa.Column("price_per_day", sa.Float(), nullable=False),
        sa.Column("status", venue_status_enum, nullable=False),
        sa.Column("total_bookings", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("rating", sa.Float(), nullable=False, server_default="0"),
    )
    op.create_index("ix_venues_id", "venues", ["id"])

    # 3️⃣ Bookings
    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "venue_id", sa.Integer(),
            sa.ForeignKey("venues.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column(
            "customer_id", sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("customer_name", sa.String(), nullable=False),
        sa.Column("customer_email", sa.String(), nullable=False),
        sa.Column("customer_phone", sa.String(), nullable=True),
        sa.Column("event_date", sa.Date(), nullable=False),
        sa.Column("event_type", sa.String(), nullable=True),
        sa.Column("guest_count", sa.Integer(), nullable=False),
        sa.Column("number_of_days", sa.Integer(), nullable=True),
        sa.Column("special_requirements", sa.String(), nullable=True),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("payment_amount", sa.Integer(), nullable=True),
        sa.Column("status", booking_status_enum, nullable=False, server_default="PENDING"),
        sa.Column("payment_status", payment_status_enum, nullable=False, server_default="PENDING"),
        sa.Column("cancellation_reason", sa.String(), nullable=True),
        sa.Column("payment_deadline", sa.DateTime(), nullable=True),
        sa.Column("payment_initiated_at", sa.DateTime(), nullable=True),
        sa.Column("payment_completed_at", sa.DateTime(), nullable=True),
        sa.Column("payment_error_description", sa.String(), nullable=True),
        sa.Column("razorpay_order_id", sa.String(), nullable=True),
        sa.Column("razorpay_payment_id", sa.String(), nullable=True),
        sa.Column("payment_reminder_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_payment_reminder_sent_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_bookings_id", "bookings", ["id"])
    op.create_index("ix_bookings_event_date", "bookings", ["event_date"])
    op.create_index("ix_bookings_razorpay_order_id", "bookings", ["razorpay_order_id"])
    op.create_index("ix_bookings_deadline_status", "bookings", ["payment_deadline", "status"])
    op.create_index(
        "ix_bookings_status_payment_reminder",
        "bookings",
        ["status", "payment_status", "last_payment_reminder_sent_at"],
    )

    # 4️⃣ Booking schedule entries
    op.create_table(
        "booking_date_timings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "booking_id", sa.Integer(),
            sa.ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=True),
        sa.Column("end_time", sa.Time(), nullable=True),
    )
    op.create_index("ix_booking_date_timings_id", "booking_date_timings", ["id"])

    # 5️⃣ Ratings
    op.create_table(
        "ratings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "venue_id", sa.Integer(),
            sa.ForeignKey("venues.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column(
            "user_id", sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column(
            "booking_id", sa.Integer(),
            sa.ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("feedback", sa.String(), nullable=False, server_default=""),
        sa.Column("user_name", sa.String(), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint(
            "venue_id", "user_id", "booking_id", name="uq_rating_venue_user_booking"
        ),
    )
    op.create_index("ix_ratings_id", "ratings", ["id"])
    op.create_index("ix_ratings_venue_id", "ratings", ["venue_id"])
    op.create_index("ix_ratings_user_id", "ratings", ["user_id"])
    op.create_index("ix_ratings_booking_id", "ratings", ["booking_id"])


def downgrade():
    op.drop_table("ratings")
    op.drop_table("booking_date_timings")
    op.drop_table("bookings")
    op.drop_table("venues")
    op.drop_table("users")

    bind = op.get_bind()
    payment_status_enum.drop(bind, checkfirst=True)
    booking_status_enum.drop(bind, checkfirst=True)
    venue_status_enum.drop(bind, checkfirst=True)
    user_role_enum.drop(bind, checkfirst=True)
