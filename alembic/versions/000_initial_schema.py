"""Initial database schema

Revision ID: 000_initial_schema
Revises:
Create Date: 2026-10-19

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "000_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create partners, commissions, coupons, clicks, customer history and events."""

    # Partners table
    op.create_table(
        "partners",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("company_name", sa.String(255), nullable=True),
        sa.Column("website", sa.String(500), nullable=True),
        sa.Column("status", sa.Enum("active", "pending", "inactive", name="partnerstatus"), nullable=False),
        sa.Column("commission_rate", sa.Numeric(10, 2), nullable=False),
        sa.Column("commission_type", sa.Enum("percentage", "fixed", name="commissiontype"), nullable=False),
        sa.Column("referral_code", sa.String(64), nullable=False),
        sa.Column("new_customers_only", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("commission_period_months", sa.Integer(), server_default="12", nullable=False),
        sa.Column("require_coupon_usage", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("click_count", sa.Integer(), server_default="0", nullable=False),
        sa.Column("conversion_count", sa.Integer(), server_default="0", nullable=False),
        sa.Column("total_revenue", sa.Numeric(12, 2), server_default="0", nullable=False),
        sa.Column("total_commissions", sa.Numeric(12, 2), server_default="0", nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_partners_email", "partners", ["email"], unique=True)
    op.create_index("ix_partners_referral_code", "partners", ["referral_code"], unique=True)
    op.create_index("ix_partners_status", "partners", ["status"])

    # Commissions table
    op.create_table(
        "commissions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("partner_id", sa.Integer(), sa.ForeignKey("partners.id", ondelete="CASCADE"), nullable=False),
        sa.Column("order_id", sa.String(255), nullable=False),
        sa.Column("customer_email", sa.String(255), nullable=False),
        sa.Column("order_value", sa.Numeric(12, 2), nullable=False),
        sa.Column("commission_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("commission_rate", sa.Numeric(10, 2), nullable=False),
        sa.Column(
            "commission_type",
            postgresql.ENUM("percentage", "fixed", name="commissiontype", create_type=False),
            nullable=False,
        ),
        sa.Column("coupon_code", sa.String(64), nullable=True),
        sa.Column("coupon_discount", sa.Numeric(12, 2), server_default="0", nullable=False),
        sa.Column("coupon_value_used", sa.Numeric(12, 2), server_default="0", nullable=False),
        sa.Column("coupon_value_required", sa.Numeric(12, 2), server_default="0", nullable=False),
        sa.Column(
            "status",
            sa.Enum("pending", "approved", "paid", "refunded", "blocked", name="commissionstatus"),
            nullable=False,
        ),
        sa.Column("status_reason", sa.String(255), nullable=True),
        sa.Column("is_new_customer", sa.Boolean(), nullable=False),
        sa.Column("customer_first_order_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("commission_valid_until", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("partner_id", "order_id", name="uq_commissions_partner_order"),
    )
    op.create_index("ix_commissions_partner_id", "commissions", ["partner_id"])
    op.create_index("ix_commissions_order_id", "commissions", ["order_id"])
    op.create_index("ix_commissions_customer_email", "commissions", ["customer_email"])
    op.create_index("ix_commissions_status", "commissions", ["status"])

    # Coupons table
    op.create_table(
        "coupons",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("code", sa.String(64), nullable=False),
        sa.Column("partner_id", sa.Integer(), sa.ForeignKey("partners.id", ondelete="CASCADE"), nullable=False),
        sa.Column("discount_type", sa.Enum("percentage", "fixed", name="discounttype"), nullable=False),
        sa.Column("discount_value", sa.Numeric(12, 2), nullable=False),
        sa.Column("usage_limit", sa.Integer(), nullable=True),
        sa.Column("usage_count", sa.Integer(), server_default="0", nullable=False),
        sa.Column("status", sa.Enum("active", "inactive", "expired", name="couponstatus"), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_coupons_code", "coupons", ["code"], unique=True)
    op.create_index("ix_coupons_partner_id", "coupons", ["partner_id"])

    # Clicks table
    op.create_table(
        "clicks",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("partner_id", sa.Integer(), sa.ForeignKey("partners.id", ondelete="CASCADE"), nullable=False),
        sa.Column("ip_address", sa.String(45), nullable=True),
        sa.Column("user_agent", sa.String(500), nullable=True),
        sa.Column("referrer", sa.String(1000), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_clicks_partner_id", "clicks", ["partner_id"])
    op.create_index("ix_clicks_created_at", "clicks", ["created_at"])

    # Customer history table (one row per email across all partners)
    op.create_table(
        "customer_history",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("customer_email", sa.String(255), nullable=False),
        sa.Column("first_order_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("first_order_id", sa.String(255), nullable=False),
        sa.Column(
            "first_partner_id",
            sa.Integer(),
            sa.ForeignKey("partners.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("total_orders", sa.Integer(), nullable=False),
        sa.Column("total_spent", sa.Numeric(14, 2), nullable=False),
        sa.Column("last_order_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_customer_history_customer_email", "customer_history", ["customer_email"], unique=True)

    # System events table
    op.create_table(
        "system_events",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "event_type",
            sa.Enum(
                "commission_processed",
                "commission_blocked",
                "commission_approved",
                "coupon_usage_applied",
                name="systemeventtype",
            ),
            nullable=False,
        ),
        sa.Column("severity", sa.Enum("info", "warning", "error", name="eventseverity"), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("target_type", sa.String(50), nullable=True),
        sa.Column("target_id", sa.Integer(), nullable=True),
        sa.Column("event_metadata", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_system_events_event_type", "system_events", ["event_type"])
    op.create_index("ix_system_events_created_at", "system_events", ["created_at"])


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table("system_events")
    op.drop_table("customer_history")
    op.drop_table("clicks")
    op.drop_table("coupons")
    op.drop_table("commissions")
    op.drop_table("partners")

    op.execute("DROP TYPE IF EXISTS eventseverity")
    op.execute("DROP TYPE IF EXISTS systemeventtype")
    op.execute("DROP TYPE IF EXISTS couponstatus")
    op.execute("DROP TYPE IF EXISTS discounttype")
    op.execute("DROP TYPE IF EXISTS commissionstatus")
    op.execute("DROP TYPE IF EXISTS commissiontype")
    op.execute("DROP TYPE IF EXISTS partnerstatus")
