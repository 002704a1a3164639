"""Initial schema for MatLinks

Revision ID: 20260101_000000
Revises: None
Create Date: 2026-01-01 00:00:00.000000

Creates every MatLinks table:
- Gyms, locations, class types and weekly class schedules
- Member profiles (keyed by the Supabase auth user id) and check-ins
- Membership plans, promotions and promotion redemptions
- Stripe mirrors: subscriptions, cancellations, payments, payment history
- Failed payments with their retry attempts, and dunning notifications

Revision format: YYYYMMDD_HHMMSS_description

"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "20260101_000000"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    """Create all tables."""

    # Create gyms table
    op.create_table(
        "gyms",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("logo_url", sa.String(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )

    # Create locations table
    op.create_table(
        "locations",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("gym_id", sa.Integer(), nullable=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("address", sa.String(), nullable=True),
        sa.Column("city", sa.String(), nullable=True),
        sa.Column("state", sa.String(), nullable=True),
        sa.Column("postal_code", sa.String(), nullable=True),
        sa.Column("phone", sa.String(), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["gym_id"], ["gyms.id"]),
        sa.Index("ix_locations_gym_id", "gym_id"),
    )

    # Create membership_plans table
    op.create_table(
        "membership_plans",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("price", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("interval", sa.String(16), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("stripe_price_id", sa.String(), nullable=True),
        sa.Column("stripe_product_id", sa.String(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )

    # Create profiles table
    op.create_table(
        "profiles",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("full_name", sa.String(), nullable=True),
        sa.Column("phone", sa.String(), nullable=True),
        sa.Column("role", sa.String(16), nullable=False, server_default="student"),
        sa.Column("primary_location_id", sa.Integer(), nullable=True),
        sa.Column("current_gym_id", sa.Integer(), nullable=True),
        sa.Column("current_location_id", sa.Integer(), nullable=True),
        sa.Column("current_plan_id", sa.Integer(), nullable=True),
        sa.Column("stripe_customer_id", sa.String(), nullable=True),
        sa.Column("stripe_subscription_id", sa.String(), nullable=True),
        sa.Column("subscription_status", sa.String(32), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["primary_location_id"], ["locations.id"]),
        sa.ForeignKeyConstraint(["current_gym_id"], ["gyms.id"]),
        sa.ForeignKeyConstraint(["current_location_id"], ["locations.id"]),
        sa.ForeignKeyConstraint(["current_plan_id"], ["membership_plans.id"]),
        sa.Index("ix_profiles_email", "email", unique=True),
        sa.Index("ix_profiles_stripe_customer_id", "stripe_customer_id"),
        sa.Index("ix_profiles_stripe_subscription_id", "stripe_subscription_id"),
    )

    # Create class_types table
    op.create_table(
        "class_types",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("difficulty_level", sa.String(), nullable=True),
        sa.Column("duration_minutes", sa.Integer(), nullable=True),
        sa.Column("default_capacity", sa.Integer(), nullable=True),
        sa.Column("color", sa.String(16), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )

    # Create class_schedules table
    op.create_table(
        "class_schedules",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("class_type_id", sa.Integer(), nullable=False),
        sa.Column("location_id", sa.Integer(), nullable=False),
        sa.Column("instructor_id", sa.String(64), nullable=True),
        sa.Column("day_of_week", sa.Integer(), nullable=False),
        sa.Column("start_time", sa.String(5), nullable=False),
        sa.Column("end_time", sa.String(5), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["class_type_id"], ["class_types.id"]),
        sa.ForeignKeyConstraint(["location_id"], ["locations.id"]),
        sa.ForeignKeyConstraint(["instructor_id"], ["profiles.id"]),
        sa.CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_class_schedules_day_of_week"),
        sa.Index("ix_class_schedules_class_type_id", "class_type_id"),
        sa.Index("ix_class_schedules_location_id", "location_id"),
    )

    # Create promotions table
    op.create_table(
        "promotions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("code", sa.String(64), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("discount_type", sa.String(16), nullable=False),
        sa.Column("discount_value", sa.Integer(), nullable=False),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("max_uses", sa.Integer(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("current_uses", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_promotions_code", "code", unique=True),
    )

    # Create promotion_redemptions table
    op.create_table(
        "promotion_redemptions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("promotion_id", sa.Integer(), nullable=False),
        sa.Column("profile_id", sa.String(64), nullable=False),
        sa.Column("membership_plan_id", sa.Integer(), nullable=True),
        sa.Column("discount_amount", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("redeemed_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["promotion_id"], ["promotions.id"]),
        sa.ForeignKeyConstraint(["profile_id"], ["profiles.id"]),
        sa.ForeignKeyConstraint(["membership_plan_id"], ["membership_plans.id"]),
        sa.Index("ix_promotion_redemptions_promotion_id", "promotion_id"),
        sa.Index("ix_promotion_redemptions_profile_id", "profile_id"),
    )

    # Create subscriptions table
    op.create_table(
        "subscriptions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("profile_id", sa.String(64), nullable=False),
        sa.Column("membership_plan_id", sa.Integer(), nullable=True),
        sa.Column("stripe_subscription_id", sa.String(), nullable=False),
        sa.Column("stripe_customer_id", sa.String(), nullable=True),
        sa.Column("status", sa.String(32), nullable=False, server_default="incomplete"),
        sa.Column("current_period_start", sa.DateTime(timezone=True), nullable=True),
        sa.Column("current_period_end", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancel_at_period_end", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("canceled_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["profile_id"], ["profiles.id"]),
        sa.ForeignKeyConstraint(["membership_plan_id"], ["membership_plans.id"]),
        sa.Index("ix_subscriptions_profile_id", "profile_id"),
        sa.Index("ix_subscriptions_stripe_subscription_id", "stripe_subscription_id", unique=True),
        sa.Index("ix_subscriptions_stripe_customer_id", "stripe_customer_id"),
    )

    # Create subscription_cancellations table
    op.create_table(
        "subscription_cancellations",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("profile_id", sa.String(64), nullable=False),
        sa.Column("subscription_id", sa.String(), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("immediate", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("canceled_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["profile_id"], ["profiles.id"]),
        sa.Index("ix_subscription_cancellations_profile_id", "profile_id"),
        sa.Index("ix_subscription_cancellations_subscription_id", "subscription_id"),
    )

    # Create payment_history table
    op.create_table(
        "payment_history",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=True),
        sa.Column("stripe_customer_id", sa.String(), nullable=True),
        sa.Column("stripe_invoice_id", sa.String(), nullable=True),
        sa.Column("amount_paid", sa.Integer(), nullable=False),
        sa.Column("period_start", sa.DateTime(timezone=True), nullable=True),
        sa.Column("period_end", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", sa.String(32), nullable=False, server_default="paid"),
        sa.Column("payment_method", sa.String(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("receipt_number", sa.String(), nullable=True),
        sa.Column("is_manual", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["profiles.id"]),
        sa.Index("ix_payment_history_user_id", "user_id"),
        sa.Index("ix_payment_history_stripe_customer_id", "stripe_customer_id"),
        sa.Index("ix_payment_history_stripe_invoice_id", "stripe_invoice_id"),
        sa.Index("ix_payment_history_created_at", "created_at"),
    )

    # Create payments table
    op.create_table(
        "payments",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("profile_id", sa.String(64), nullable=True),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False, server_default="usd"),
        sa.Column("status", sa.String(16), nullable=False, server_default="pending"),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("payment_intent_id", sa.String(), nullable=True),
        sa.Column("stripe_customer_id", sa.String(), nullable=True),
        sa.Column("subscription_id", sa.String(), nullable=True),
        sa.Column("payment_method_id", sa.String(), nullable=True),
        sa.Column("failure_reason", sa.Text(), nullable=True),
        sa.Column("transaction_id", sa.String(), nullable=True),
        sa.Column("last_retry_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["profile_id"], ["profiles.id"]),
        sa.Index("ix_payments_profile_id", "profile_id"),
        sa.Index("ix_payments_payment_intent_id", "payment_intent_id"),
    )

    # Create failed_payments table
    op.create_table(
        "failed_payments",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("customer_id", sa.String(), nullable=False),
        sa.Column("subscription_id", sa.String(), nullable=True),
        sa.Column("invoice_id", sa.String(), nullable=False),
        sa.Column("payment_intent_id", sa.String(), nullable=True),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False, server_default="usd"),
        sa.Column("failure_type", sa.String(32), nullable=False, server_default="unknown"),
        sa.Column("failure_message", sa.Text(), nullable=True),
        sa.Column("retry_attempts", sa.JSON(), nullable=False),
        sa.Column("final_status", sa.String(16), nullable=True),
        sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_failed_payments_customer_id", "customer_id"),
        sa.Index("ix_failed_payments_subscription_id", "subscription_id"),
        sa.Index("ix_failed_payments_invoice_id", "invoice_id"),
    )

    # Create pending_subscription_cancellations table
    op.create_table(
        "pending_subscription_cancellations",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("subscription_id", sa.String(), nullable=False),
        sa.Column("profile_id", sa.String(), nullable=True),
        sa.Column("failed_payment_id", sa.String(), nullable=True),
        sa.Column("scheduled_for", sa.DateTime(timezone=True), nullable=False),
        sa.Column("reason", sa.String(64), nullable=False, server_default="payment_failure"),
        sa.Column("status", sa.String(16), nullable=False, server_default="pending"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["profile_id"], ["profiles.id"]),
        sa.ForeignKeyConstraint(["failed_payment_id"], ["failed_payments.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_pending_subscription_cancellations_subscription_id", "subscription_id"),
        sa.Index("ix_pending_subscription_cancellations_profile_id", "profile_id"),
    )

    # Create dunning_notifications table
    op.create_table(
        "dunning_notifications",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("failed_payment_id", sa.String(), nullable=False),
        sa.Column("customer_id", sa.String(), nullable=False),
        sa.Column("subscription_id", sa.String(), nullable=True),
        sa.Column("stage", sa.String(32), nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default="pending"),
        sa.Column("scheduled_for", sa.DateTime(timezone=True), nullable=False),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("email_subject", sa.String(), nullable=True),
        sa.Column("email_content", sa.Text(), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["failed_payment_id"], ["failed_payments.id"]),
        sa.Index("ix_dunning_notifications_failed_payment_id", "failed_payment_id"),
        sa.Index("ix_dunning_notifications_customer_id", "customer_id"),
        sa.Index("ix_dunning_notifications_status", "status"),
        sa.Index("ix_dunning_notifications_scheduled_for", "scheduled_for"),
    )

    # Create check_ins table
    op.create_table(
        "check_ins",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("profile_id", sa.String(64), nullable=False),
        sa.Column("location_id", sa.Integer(), nullable=False),
        sa.Column("class_schedule_id", sa.Integer(), nullable=True),
        sa.Column("method", sa.String(16), nullable=False, server_default="MOBILE"),
        sa.Column("checked_in_by", sa.String(64), nullable=True),
        sa.Column("checked_in_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["profile_id"], ["profiles.id"]),
        sa.ForeignKeyConstraint(["location_id"], ["locations.id"]),
        sa.ForeignKeyConstraint(["class_schedule_id"], ["class_schedules.id"]),
        sa.Index("ix_check_ins_profile_id", "profile_id"),
        sa.Index("ix_check_ins_location_id", "location_id"),
        sa.Index("ix_check_ins_checked_in_at", "checked_in_at"),
    )


def downgrade() -> None:
    """Drop all tables created in upgrade."""
    op.drop_table("check_ins")
    op.drop_table("dunning_notifications")
    op.drop_table("pending_subscription_cancellations")
    op.drop_table("failed_payments")
    op.drop_table("payments")
    op.drop_table("payment_history")
    op.drop_table("subscription_cancellations")
    op.drop_table("subscriptions")
    op.drop_table("promotion_redemptions")
    op.drop_table("promotions")
    op.drop_table("class_schedules")
    op.drop_table("class_types")
    op.drop_table("profiles")
    op.drop_table("membership_plans")
    op.drop_table("locations")
    op.drop_table("gyms")
