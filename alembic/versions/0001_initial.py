"""initial

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19

"""

from alembic import op
import sqlalchemy as sa

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None

def upgrade() -> None:
    op.create_table(
        "trains",
        sa.Column("train_id", sa.String(length=40), primary_key=True),
        sa.Column("name", sa.String(length=80), nullable=True),
        sa.Column("type", sa.String(length=50), nullable=True),
        sa.Column("first_station", sa.String(length=70), nullable=True),
        sa.Column("last_station", sa.String(length=70), nullable=True),
        sa.Column("departure_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("arrival_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("travel_duration", sa.Interval(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_trains_type", "trains", ["type"])

    op.create_table(
        "passengers",
        sa.Column("passenger_id", sa.String(length=5), primary_key=True),
        sa.Column("first_name", sa.String(length=80), nullable=True),
        sa.Column("last_name", sa.String(length=80), nullable=True),
        sa.Column("date_of_birth", sa.Date(), nullable=True),
        sa.Column("age", sa.Integer(), nullable=True),
        sa.Column("train_id", sa.String(length=40), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_passengers_train_id", "passengers", ["train_id"])

    op.create_table(
        "bookings",
        sa.Column("booking_no", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("passenger_id", sa.String(length=5), nullable=False),
        sa.Column("booking_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("total_amount", sa.Numeric(10, 2), nullable=False),
    )
    op.create_index("ix_bookings_passenger_id", "bookings", ["passenger_id"])
    op.create_index("ix_bookings_booking_date", "bookings", ["booking_date"])

def downgrade() -> None:
    op.drop_table("bookings")
    op.drop_table("passengers")
    op.drop_table("trains")
