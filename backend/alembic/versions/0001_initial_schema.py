"""Initial marketplace schema: listings, bookings, expenses and commissions.

Revision ID: 0001
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

_ENUMS: dict[str, tuple[str, ...]] = {
    "userrole": ("ADMIN", "HOST", "GUEST"),
    "userstatus": ("ACTIVE", "SUSPENDED"),
    "vehicletype": (
        "ECONOMY",
        "COMPACT",
        "MID_SIZE",
        "FULL_SIZE",
        "LUXURY",
        "SUV",
        "MINIVAN",
        "MOTORCYCLE",
        "BICYCLE",
    ),
    "commissionscope": ("PROPERTY", "VEHICLE", "FLIGHT"),
    "bookingstatus": ("PENDING", "CONFIRMED", "ACTIVE", "COMPLETED", "CANCELLED"),
    "bookingchannel": ("ONLINE", "DIRECT"),
    "paymentmethod": ("CASH", "CARD", "MOBILE_MONEY", "BANK_TRANSFER"),
    "ledgerdomain": ("VEHICLES", "ATTRACTIONS"),
}


def _enum(name: str) -> sa.types.TypeEngine:
    values = _ENUMS[name]
    return sa.Enum(*values, name=name).with_variant(
        postgresql.ENUM(*values, name=name, create_type=False), "postgresql"
    )


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        for name, values in _ENUMS.items():
            postgresql.ENUM(*values, name=name).create(bind, checkfirst=True)

    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("email", sa.String(320), nullable=False, unique=True),
        sa.Column("first_name", sa.String(120), nullable=False),
        sa.Column("last_name", sa.String(120), nullable=False),
        sa.Column("phone_number", sa.String(32)),
        sa.Column("role", _enum("userrole"), nullable=False),
        sa.Column("status", _enum("userstatus"), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "commission_settings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("base_rate", sa.Numeric(5, 2), nullable=False),
        sa.Column("premium_rate", sa.Numeric(5, 2), nullable=False),
        sa.Column("featured_rate", sa.Numeric(5, 2), nullable=False),
        sa.Column("enforcement_paused", sa.Boolean(), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "commission_levels",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("key", sa.String(64), nullable=False, unique=True),
        sa.Column("description", sa.String(512)),
        sa.Column("direct_rate", sa.Numeric(5, 2), nullable=False),
        sa.Column("online_rate", sa.Numeric(5, 2), nullable=False),
        sa.Column("is_premium", sa.Boolean(), nullable=False),
        sa.Column("is_default", sa.Boolean(), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False),
        sa.Column("sort_order", sa.Integer(), nullable=False),
        sa.Column("scope", _enum("commissionscope"), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "vehicles",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "owner_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("vehicle_type", _enum("vehicletype"), nullable=False),
        sa.Column("price_per_day", sa.Numeric(14, 2), nullable=False),
        sa.Column("price_per_week", sa.Numeric(14, 2)),
        sa.Column("price_per_month", sa.Numeric(14, 2)),
        sa.Column("currency", sa.String(8), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column(
            "commission_level_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("commission_levels.id", ondelete="SET NULL"),
        ),
        *_timestamps(),
    )
    op.create_index("ix_vehicles_owner_id", "vehicles", ["owner_id"])

    op.create_table(
        "attractions",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "owner_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("price_per_ticket", sa.Numeric(14, 2), nullable=False),
        sa.Column("currency", sa.String(8), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False),
        sa.Column("operating_days", sa.JSON()),
        sa.Column("time_slots", sa.JSON()),
        sa.Column("commission_rate", sa.Numeric(5, 2), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_attractions_owner_id", "attractions", ["owner_id"])

    op.create_table(
        "vehicle_bookings",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "vehicle_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("vehicles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "guest_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("pickup_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("return_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("pickup_location", sa.String(255), nullable=False),
        sa.Column("return_location", sa.String(255)),
        sa.Column("number_of_days", sa.Integer(), nullable=False),
        sa.Column("total_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("rate_snapshot", sa.JSON()),
        sa.Column("status", _enum("bookingstatus"), nullable=False),
        sa.Column("channel", _enum("bookingchannel"), nullable=False),
        sa.Column("final_agreed_amount", sa.Numeric(14, 2)),
        sa.Column("commission_rate", sa.Numeric(5, 2)),
        sa.Column("commission_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("commission_paid", sa.Boolean(), nullable=False),
        sa.Column("payment_method", _enum("paymentmethod")),
        sa.Column("with_driver", sa.Boolean(), nullable=False),
        sa.Column("contact_phone", sa.String(32)),
        sa.Column("special_requests", sa.String(1024)),
        sa.Column("guest_name", sa.String(255)),
        sa.Column("guest_email", sa.String(320)),
        sa.Column("mileage_at_pickup", sa.Integer()),
        sa.Column("mileage_at_return", sa.Integer()),
        *_timestamps(),
    )
    op.create_index("ix_vehicle_bookings_vehicle_id", "vehicle_bookings", ["vehicle_id"])

    op.create_table(
        "attraction_bookings",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "attraction_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("attractions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "guest_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("confirmation_code", sa.String(16), nullable=False),
        sa.Column("visit_date", sa.Date(), nullable=False),
        sa.Column("time_slot", sa.String(64)),
        sa.Column("number_of_people", sa.Integer(), nullable=False),
        sa.Column("unit_price", sa.Numeric(14, 2), nullable=False),
        sa.Column("total_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("status", _enum("bookingstatus"), nullable=False),
        sa.Column("commission_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("commission_paid", sa.Boolean(), nullable=False),
        sa.Column("payment_method", _enum("paymentmethod")),
        sa.Column("contact_phone", sa.String(32)),
        sa.Column("special_requests", sa.String(1024)),
        *_timestamps(),
    )
    op.create_index(
        "ix_attraction_bookings_attraction_id", "attraction_bookings", ["attraction_id"]
    )
    op.create_index(
        "ix_attraction_bookings_confirmation_code",
        "attraction_bookings",
        ["confirmation_code"],
    )

    op.create_table(
        "expenses",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "owner_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("domain", _enum("ledgerdomain"), nullable=False),
        sa.Column("resource_id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("incurred_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("category", sa.String(64), nullable=False),
        sa.Column("note", sa.String(1024), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_expenses_owner_id", "expenses", ["owner_id"])
    op.create_index("ix_expenses_resource_id", "expenses", ["resource_id"])


def downgrade() -> None:
    for table in (
        "expenses",
        "attraction_bookings",
        "vehicle_bookings",
        "attractions",
        "vehicles",
        "commission_levels",
        "commission_settings",
        "users",
    ):
        op.drop_table(table)

    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        for name, values in _ENUMS.items():
            postgresql.ENUM(*values, name=name).drop(bind, checkfirst=True)
