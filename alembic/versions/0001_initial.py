"""initial

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-17

"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None

TagList = postgresql.ARRAY(sa.Text()).with_variant(sa.JSON(), "sqlite")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("username", sa.String(length=80), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=True),
        sa.Column("last_name", sa.String(length=100), nullable=True),
        sa.Column("email_verified", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("stripe_customer_id", sa.String(length=120), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "cruises",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("destination", sa.String(length=120), nullable=False),
        sa.Column("image_url", sa.String(length=512), nullable=False, server_default=""),
        sa.Column("cruise_line", sa.String(length=120), nullable=False),
        sa.Column("ship_name", sa.String(length=120), nullable=False),
        sa.Column("departure_port", sa.String(length=120), nullable=False),
        sa.Column("departure_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("return_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("duration", sa.Integer(), nullable=False),
        sa.Column("price_per_person", sa.Float(), nullable=False),
        sa.Column("sale_price", sa.Float(), nullable=True),
        sa.Column("is_best_seller", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("is_special_offer", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("amenities", TagList, nullable=False),
        sa.Column("cabin_types", TagList, nullable=False),
    )
    op.create_index("ix_cruises_destination", "cruises", ["destination"])
    op.create_index("ix_cruises_cruise_line", "cruises", ["cruise_line"])
    op.create_index("ix_cruises_departure_date", "cruises", ["departure_date"])

    op.create_table(
        "bookings",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("user_id", sa.String(length=36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("cruise_id", sa.String(length=36), sa.ForeignKey("cruises.id"), nullable=False),
        sa.Column("booking_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("departure_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("return_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("number_of_guests", sa.Integer(), nullable=False),
        sa.Column("cabin_type", sa.String(length=60), nullable=False),
        sa.Column("total_price", sa.Float(), nullable=False),
        sa.Column("payment_status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("stripe_payment_intent_id", sa.String(length=120), nullable=True),
        sa.Column("stripe_client_secret", sa.String(length=255), nullable=True),
        sa.Column("special_requests", sa.Text(), nullable=True),
        sa.Column("contact_email", sa.String(length=320), nullable=False),
        sa.Column("contact_phone", sa.String(length=40), nullable=True),
    )
    op.create_index("ix_bookings_user_id", "bookings", ["user_id"])
    op.create_index("ix_bookings_cruise_id", "bookings", ["cruise_id"])
    op.create_index("ix_bookings_stripe_payment_intent_id", "bookings", ["stripe_payment_intent_id"])

    op.create_table(
        "passengers",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("booking_id", sa.String(length=36), sa.ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("date_of_birth", sa.String(length=20), nullable=False),
        sa.Column("citizenship", sa.String(length=80), nullable=False),
        sa.Column("passport_number", sa.String(length=80), nullable=True),
    )
    op.create_index("ix_passengers_booking_id", "passengers", ["booking_id"])

    op.create_table(
        "reviews",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("user_id", sa.String(length=36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("cruise_id", sa.String(length=36), sa.ForeignKey("cruises.id"), nullable=False),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("comment", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("rating BETWEEN 1 AND 5", name="ck_reviews_rating_range"),
    )
    op.create_index("ix_reviews_user_id", "reviews", ["user_id"])
    op.create_index("ix_reviews_cruise_id", "reviews", ["cruise_id"])


def downgrade() -> None:
    op.drop_table("reviews")
    op.drop_table("passengers")
    op.drop_table("bookings")
    op.drop_table("cruises")
    op.drop_table("users")
