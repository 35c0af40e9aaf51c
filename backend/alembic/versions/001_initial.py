"""
Initial migration - Create all tables

Revision ID: 001_initial
Create Date: 2026-10-19 00:00:00.000000
"""

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# Revision identifiers
revision = "001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create all tables"""

    # Create users table
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("username", sa.String(100), nullable=False, unique=True),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("phone_number", sa.String(20)),
        sa.Column("role", sa.Enum("user", "owner", "admin", name="userrole"), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("wallet_balance", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("reward_points", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("wallet_balance >= 0", name="ck_users_wallet_balance_non_negative"),
        sa.CheckConstraint("reward_points >= 0", name="ck_users_reward_points_non_negative"),
    )

    # Create indexes for users
    op.create_index("ix_users_email", "users", ["email"])
    op.create_index("ix_users_username", "users", ["username"])
    op.create_index("ix_users_role", "users", ["role"])

    # Create facilities table
    op.create_table(
        "facilities",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("owner_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("address", sa.Text()),
        sa.Column("city", sa.String(100)),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true()),
        sa.Column("created_at", sa.DateTime()),
        sa.Column("updated_at", sa.DateTime()),
    )
    op.create_index("ix_facilities_owner_id", "facilities", ["owner_id"])

    # Create courts table
    op.create_table(
        "courts",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("facility_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("facilities.id"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column(
            "sport_type",
            sa.Enum(
                "basketball",
                "football",
                "tennis",
                "volleyball",
                "badminton",
                "swimming",
                "cricket",
                "table_tennis",
                name="sporttype",
            ),
            nullable=False,
        ),
        sa.Column("price_per_hour", sa.Numeric(8, 2), nullable=False),
        sa.Column("operating_hours_start", sa.String(5), nullable=False, server_default="06:00"),
        sa.Column("operating_hours_end", sa.String(5), nullable=False, server_default="22:00"),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true()),
        sa.Column("created_at", sa.DateTime()),
        sa.Column("updated_at", sa.DateTime()),
    )
    op.create_index("ix_courts_facility_id", "courts", ["facility_id"])

    # Create coupons table
    op.create_table(
        "coupons",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("facility_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("facilities.id"), nullable=True),
        sa.Column("code", sa.String(50), nullable=False, unique=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("discount_type", sa.Enum("percentage", "fixed", name="discounttype"), nullable=False),
        sa.Column("discount_value", sa.Numeric(8, 2), nullable=False),
        sa.Column("min_amount", sa.Numeric(8, 2)),
        sa.Column("max_discount", sa.Numeric(8, 2)),
        sa.Column("valid_from", sa.DateTime(), nullable=False),
        sa.Column("valid_until", sa.DateTime(), nullable=False),
        sa.Column("usage_limit", sa.Integer()),
        sa.Column("used_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime()),
        sa.CheckConstraint("discount_value > 0", name="ck_coupons_discount_value_positive"),
        sa.CheckConstraint("used_count >= 0", name="ck_coupons_used_count_non_negative"),
    )
    op.create_index("ix_coupons_code", "coupons", ["code"])
    op.create_index("ix_coupons_facility_id", "coupons", ["facility_id"])

    # Create bookings table
    op.create_table(
        "bookings",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("court_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("courts.id"), nullable=False),
        sa.Column("coupon_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("coupons.id"), nullable=True),
        sa.Column("booking_date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.String(5), nullable=False),
        sa.Column("end_time", sa.String(5), nullable=False),
        sa.Column("total_amount", sa.Numeric(8, 2), nullable=False),
        sa.Column("discount_amount", sa.Numeric(8, 2), nullable=False, server_default="0"),
        sa.Column("final_amount", sa.Numeric(8, 2), nullable=False),
        sa.Column(
            "status",
            sa.Enum("pending", "confirmed", "cancelled", "completed", "rejected", name="bookingstatus"),
            nullable=False,
        ),
        sa.Column("payment_method", sa.Enum("wallet", "stripe", "upi", name="paymentmethod"), nullable=False),
        sa.Column("payment_intent_id", sa.String(255), unique=True),
        sa.Column("reward_points_earned", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("reward_points_redeemed", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("notes", sa.Text()),
        sa.Column("status_changed_by", postgresql.UUID(as_uuid=True)),
        sa.Column("cancellation_reason", sa.Text()),
        sa.Column("cancelled_at", sa.DateTime()),
        sa.Column("cancelled_by", sa.String(20)),
        sa.Column("created_at", sa.DateTime()),
        sa.Column("updated_at", sa.DateTime()),
        sa.CheckConstraint("discount_amount >= 0", name="ck_bookings_discount_non_negative"),
        sa.CheckConstraint("final_amount >= 0", name="ck_bookings_final_non_negative"),
        sa.CheckConstraint("start_time < end_time", name="ck_bookings_time_order"),
    )

    # Create indexes for bookings
    op.create_index("ix_bookings_user_id", "bookings", ["user_id"])
    op.create_index("ix_bookings_court_id", "bookings", ["court_id"])
    op.create_index("ix_bookings_booking_date", "bookings", ["booking_date"])
    op.create_index("ix_bookings_status", "bookings", ["status"])

    # Create court_slot_claims table
    op.create_table(
        "court_slot_claims",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "booking_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("bookings.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("court_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("courts.id"), nullable=False),
        sa.Column("slot_date", sa.Date(), nullable=False),
        sa.Column("slot_start", sa.String(5), nullable=False),
        sa.UniqueConstraint("court_id", "slot_date", "slot_start", name="uq_court_slot_claim"),
    )
    op.create_index("ix_court_slot_claims_booking_id", "court_slot_claims", ["booking_id"])

    # Create wallet_transactions table
    op.create_table(
        "wallet_transactions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("sequence", sa.Integer(), nullable=False),
        sa.Column("type", sa.Enum("credit", "debit", name="transactiontype"), nullable=False),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("reference_id", sa.String(100)),
        sa.Column("balance_after", sa.Numeric(10, 2), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("amount > 0", name="ck_wallet_transactions_amount_positive"),
        sa.CheckConstraint("balance_after >= 0", name="ck_wallet_transactions_balance_non_negative"),
        sa.UniqueConstraint("user_id", "sequence", name="uq_wallet_transactions_user_sequence"),
    )
    op.create_index("ix_wallet_transactions_user_id", "wallet_transactions", ["user_id"])
    op.create_index("ix_wallet_transactions_reference_id", "wallet_transactions", ["reference_id"])
    op.create_index("ix_wallet_transactions_created_at", "wallet_transactions", ["created_at"])

    # Create notifications table
    op.create_table(
        "notifications",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("booking_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("bookings.id")),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id")),
        sa.Column(
            "notification_type",
            sa.Enum(
                "booking_confirmation",
                "booking_pending",
                "booking_rejected",
                "booking_cancellation",
                name="notificationtype",
            ),
            nullable=False,
        ),
        sa.Column("channel", sa.Enum("whatsapp", "sms", name="notificationchannel"), nullable=False),
        sa.Column(
            "status",
            sa.Enum("pending", "sent", "failed", "skipped", name="notificationstatus"),
        ),
        sa.Column("recipient_phone", sa.String(30)),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("provider", sa.String(50)),
        sa.Column("provider_message_id", sa.String(100)),
        sa.Column("error_message", sa.Text()),
        sa.Column("sent_at", sa.DateTime()),
        sa.Column("created_at", sa.DateTime()),
    )
    op.create_index("ix_notifications_booking_id", "notifications", ["booking_id"])
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])
    op.create_index("ix_notifications_notification_type", "notifications", ["notification_type"])
    op.create_index("ix_notifications_status", "notifications", ["status"])


def downgrade() -> None:
    """Drop all tables"""
    op.drop_table("notifications")
    op.drop_table("wallet_transactions")
    op.drop_table("court_slot_claims")
    op.drop_table("bookings")
    op.drop_table("coupons")
    op.drop_table("courts")
    op.drop_table("facilities")
    op.drop_table("users")

    # Drop enums
    op.execute("DROP TYPE IF EXISTS notificationstatus")
    op.execute("DROP TYPE IF EXISTS notificationchannel")
    op.execute("DROP TYPE IF EXISTS notificationtype")
    op.execute("DROP TYPE IF EXISTS transactiontype")
    op.execute("DROP TYPE IF EXISTS paymentmethod")
    op.execute("DROP TYPE IF EXISTS bookingstatus")
    op.execute("DROP TYPE IF EXISTS discounttype")
    op.execute("DROP TYPE IF EXISTS sporttype")
    op.execute("DROP TYPE IF EXISTS userrole")
