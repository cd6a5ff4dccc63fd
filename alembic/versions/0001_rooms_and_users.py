"""rooms, time slots and users

Revision ID: 0001
Revises:
Create Date: 2026-10-18 12:00:00
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

ROOM_STATUSES = ("free", "occupied", "reserved", "maintenance")


def existing_room_status():
    # rooms already created the PostgreSQL type
    return sa.Enum(*ROOM_STATUSES, name="room_status").with_variant(
        postgresql.ENUM(*ROOM_STATUSES, name="room_status", create_type=False), "postgresql"
    )


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("username", sa.String(50), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password", sa.String(255), nullable=False),
        sa.Column("firstName", sa.String(100), nullable=False),
        sa.Column("lastName", sa.String(100), nullable=False),
        sa.Column("role", sa.Enum("student", "admin", name="rolename"), nullable=False),
        sa.Column("isActive", sa.Boolean(), nullable=False),
        sa.Column("createdAt", sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updatedAt", sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_username", "users", ["username"], unique=True)
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "rooms",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("roomNumber", sa.String(20), nullable=False),
        sa.Column("floor", sa.Integer(), nullable=False),
        sa.Column("building", sa.String(150), nullable=False),
        sa.Column("type", sa.String(100), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False),
        sa.Column("equipment", sa.String(500), nullable=False),
        sa.Column("currentStatus", sa.Enum(*ROOM_STATUSES, name="room_status"), nullable=False),
        sa.Column("lastUpdated", sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updatedById", sa.Integer(), nullable=True),
        sa.Column("createdAt", sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updatedAt", sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_rooms_id", "rooms", ["id"])
    op.create_index("ix_rooms_roomNumber", "rooms", ["roomNumber"], unique=True)
    op.create_index("ix_rooms_floor", "rooms", ["floor"])

    op.create_table(
        "time_slots",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("roomId", sa.Integer(), sa.ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False),
        sa.Column("startTime", sa.String(5), nullable=False),
        sa.Column("endTime", sa.String(5), nullable=False),
        sa.Column("status", existing_room_status(), nullable=False),
        sa.Column("reservedById", sa.Integer(), nullable=True),
        sa.Column("purpose", sa.String(500), nullable=False),
        sa.UniqueConstraint("roomId", "startTime", "endTime", name="uq_time_slots_room_interval"),
    )
    op.create_index("ix_time_slots_id", "time_slots", ["id"])
    op.create_index("ix_time_slots_roomId", "time_slots", ["roomId"])


def downgrade() -> None:
    op.drop_table("time_slots")
    op.drop_table("rooms")
    op.drop_table("users")
    sa.Enum(name="room_status").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="rolename").drop(op.get_bind(), checkfirst=True)
