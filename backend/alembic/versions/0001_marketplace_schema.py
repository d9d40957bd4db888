"""Companies, listings, availability blocks and bookings.

Revision ID: 0001
Revises:
Create Date: 2026-10-18
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

_LISTING_KIND = postgresql.ENUM("VEHICLE", "DRIVER", name="listingkind", create_type=False)
_LISTING_STATUS = postgresql.ENUM(
    "ACTIVE", "SUSPENDED", "REMOVED", name="listingstatus", create_type=False
)
_VEHICLE_TYPE = postgresql.ENUM(
    "PALLET_8",
    "PALLET_18",
    "PALLET_21",
    "TRAILER",
    "VAN",
    "TRUCK",
    "OTHER",
    name="vehicletype",
    create_type=False,
)
_FUEL_TYPE = postgresql.ENUM(
    "ELECTRIC",
    "BIOGAS",
    "DIESEL",
    "GAS",
    "HYDROGEN",
    "HYBRID",
    name="fueltype",
    create_type=False,
)
_BOOKING_STATUS = postgresql.ENUM(
    "PENDING",
    "ACCEPTED",
    "ACTIVE",
    "COMPLETED",
    "CLOSED",
    "CANCELLED",
    "DECLINED",
    "EXPIRED",
    "DISPUTED",
    name="bookingstatus",
    create_type=False,
)
_ENUMS = (_LISTING_KIND, _LISTING_STATUS, _VEHICLE_TYPE, _FUEL_TYPE, _BOOKING_STATUS)


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


def _listing_columns() -> list[sa.Column]:
    return [
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "company_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("companies.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("status", _LISTING_STATUS, nullable=False, index=True),
        sa.Column("hourly_rate", sa.Numeric(10, 2)),
        sa.Column("daily_rate", sa.Numeric(10, 2)),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("status_reason", sa.String(length=1024)),
        sa.Column("status_changed_by", sa.Uuid(as_uuid=True)),
        sa.Column("status_changed_at", sa.DateTime(timezone=True)),
    ]


def upgrade() -> None:
    bind = op.get_bind()
    for enum_type in _ENUMS:
        enum_type.create(bind, checkfirst=True)

    op.create_table(
        "companies",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("organization_number", sa.String(length=32), unique=True),
        sa.Column("city", sa.String(length=120)),
        sa.Column("fylke", sa.String(length=120), index=True),
        sa.Column("kommune", sa.String(length=120), index=True),
        sa.Column("verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("suspended", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("aggregated_rating", sa.Numeric(3, 2)),
        *_timestamps(),
    )

    op.create_table(
        "vehicle_listings",
        *_listing_columns(),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("vehicle_type", _VEHICLE_TYPE, nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False),
        sa.Column("fuel_type", _FUEL_TYPE, nullable=False),
        sa.Column("city", sa.String(length=120), nullable=False),
        sa.Column("fylke", sa.String(length=120), nullable=False, index=True),
        sa.Column("kommune", sa.String(length=120), nullable=False, index=True),
        sa.Column("latitude", sa.Float()),
        sa.Column("longitude", sa.Float()),
        sa.Column("deposit", sa.Numeric(10, 2)),
        sa.Column("with_driver", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("with_driver_cost", sa.Numeric(10, 2)),
        sa.Column("without_driver", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("photos", sa.JSON(), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "driver_listings",
        *_listing_columns(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("license_class", sa.String(length=32), nullable=False),
        sa.Column("languages", sa.JSON(), nullable=False),
        sa.Column("background_summary", sa.Text()),
        sa.Column("license_document_path", sa.String(length=1024)),
        sa.Column("verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("verified_at", sa.DateTime(timezone=True)),
        sa.Column("verified_by", sa.Uuid(as_uuid=True)),
        sa.Column("aggregated_rating", sa.Numeric(3, 2)),
        *_timestamps(),
    )

    for table in ("availability_blocks", "recurring_blocks"):
        columns = [
            sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
            sa.Column("listing_kind", _LISTING_KIND, nullable=False),
            sa.Column("listing_id", sa.Uuid(as_uuid=True), nullable=False),
        ]
        if table == "recurring_blocks":
            columns += [
                sa.Column("days_of_week", sa.JSON(), nullable=False),
                sa.Column("start_date", sa.Date(), nullable=False),
                sa.Column("end_date", sa.Date()),
            ]
        else:
            columns += [
                sa.Column("start_date", sa.Date(), nullable=False),
                sa.Column("end_date", sa.Date(), nullable=False),
                sa.CheckConstraint("start_date <= end_date", name="date_order"),
            ]
        op.create_table(
            table,
            *columns,
            sa.Column("reason", sa.String(length=255)),
            sa.Column("created_by", sa.Uuid(as_uuid=True)),
            *_timestamps(),
        )
        op.create_index(f"ix_{table}_listing", table, ["listing_kind", "listing_id"])

    op.create_table(
        "bookings",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("booking_number", sa.String(length=32), nullable=False, unique=True),
        sa.Column(
            "renter_company_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("companies.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "provider_company_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("companies.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "vehicle_listing_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("vehicle_listings.id", ondelete="SET NULL"),
            index=True,
        ),
        sa.Column(
            "driver_listing_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("driver_listings.id", ondelete="SET NULL"),
            index=True,
        ),
        sa.Column("status", _BOOKING_STATUS, nullable=False, index=True),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("duration_hours", sa.Integer()),
        sa.Column("duration_days", sa.Integer()),
        sa.Column("expires_at", sa.DateTime(timezone=True)),
        sa.CheckConstraint("start_date <= end_date", name="date_order"),
        *_timestamps(),
    )

    if bind.dialect.name != "postgresql":
        return
    # At most one confirmed booking per listing per overlapping closed date range.
    op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")
    for column in ("vehicle_listing_id", "driver_listing_id"):
        op.execute(
            f"""
            ALTER TABLE bookings
            ADD CONSTRAINT ex_bookings_{column}_confirmed_overlap
            EXCLUDE USING gist (
                {column} WITH =,
                daterange(start_date, end_date, '[]') WITH &&
            )
            WHERE ({column} IS NOT NULL AND status IN ('ACCEPTED', 'ACTIVE'))
            """
        )


def downgrade() -> None:
    bind = op.get_bind()
    op.drop_table("bookings")
    op.drop_index("ix_recurring_blocks_listing", table_name="recurring_blocks")
    op.drop_table("recurring_blocks")
    op.drop_index("ix_availability_blocks_listing", table_name="availability_blocks")
    op.drop_table("availability_blocks")
    op.drop_table("driver_listings")
    op.drop_table("vehicle_listings")
    op.drop_table("companies")
    for enum_type in reversed(_ENUMS):
        enum_type.drop(bind, checkfirst=True)
