# backend/alembic/versions/001_initial_schema.py
"""Initial schema - users, availability, bookings, packages, attendance

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19 00:00:00.000000

Roles and statuses are VARCHAR with CHECK constraints rather than native
ENUM types. IDs are ULIDs generated by the Python models.
"""
from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the booking schema."""
    op.create_table(
        "users",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, server_default="student"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("role IN ('admin', 'teacher', 'student')", name="ck_users_role"),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "availability",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("teacher_id", sa.String(26), nullable=False),
        sa.Column("day_of_week", sa.Integer(), nullable=False),
        sa.Column("start_time", sa.String(5), nullable=False),
        sa.Column("end_time", sa.String(5), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["teacher_id"], ["users.id"], ondelete="CASCADE"),
        sa.CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_availability_day_of_week"),
    )
    op.create_index(
        "idx_availability_teacher_day",
        "availability",
        ["teacher_id", "day_of_week", "is_active"],
    )

    op.create_table(
        "bookings",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("student_id", sa.String(26), nullable=False),
        sa.Column("teacher_id", sa.String(26), nullable=False),
        sa.Column("topic_id", sa.String(64), nullable=False),
        sa.Column("scheduled_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="SCHEDULED"),
        sa.Column("attended_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_by_id", sa.String(26), nullable=True),
        sa.Column("cancellation_reason", sa.Text(), nullable=True),
        sa.Column("external_event_ref", sa.String(255), nullable=True),
        sa.Column("join_link", sa.String(512), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["student_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["teacher_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["cancelled_by_id"], ["users.id"]),
        sa.CheckConstraint(
            "status IN ('SCHEDULED', 'COMPLETED', 'CANCELLED')", name="ck_bookings_status"
        ),
    )
    op.create_index("ix_bookings_id", "bookings", ["id"])
    op.create_index("ix_bookings_status", "bookings", ["status"])
    op.create_index("idx_bookings_teacher_scheduled", "bookings", ["teacher_id", "scheduled_at"])
    op.create_index("idx_bookings_student_status", "bookings", ["student_id", "status"])
    # One live seat per student per slot; cancelled rows free the seat
    op.create_index(
        "uq_bookings_student_slot_active",
        "bookings",
        ["teacher_id", "scheduled_at", "student_id"],
        unique=True,
        postgresql_where=sa.text("status <> 'CANCELLED'"),
        sqlite_where=sa.text("status <> 'CANCELLED'"),
    )

    op.create_table(
        "packages",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("user_id", sa.String(26), nullable=False),
        sa.Column("total_lessons", sa.Integer(), nullable=False),
        sa.Column("used_lessons", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("remaining_lessons", sa.Integer(), nullable=False),
        sa.Column("valid_from", sa.DateTime(timezone=True), nullable=False),
        sa.Column("valid_until", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.CheckConstraint("total_lessons >= 0", name="ck_packages_total_non_negative"),
    )
    op.create_index("idx_packages_user_valid_until", "packages", ["user_id", "valid_until"])

    op.create_table(
        "attendance_logs",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("booking_id", sa.String(26), nullable=False),
        sa.Column("student_id", sa.String(26), nullable=False),
        sa.Column("action", sa.String(20), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("recorded_by", sa.String(26), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["booking_id"], ["bookings.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["student_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["recorded_by"], ["users.id"]),
        sa.CheckConstraint(
            "action IN ('joined', 'left', 'rejoined')", name="ck_attendance_logs_action"
        ),
    )
    op.create_index(
        "idx_attendance_logs_booking_timestamp", "attendance_logs", ["booking_id", "timestamp"]
    )
    op.create_index(
        "idx_attendance_logs_student_timestamp", "attendance_logs", ["student_id", "timestamp"]
    )

    op.create_table(
        "student_stats",
        sa.Column("student_id", sa.String(26), nullable=False),
        sa.Column("total_classes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("attended_classes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("attendance_rate", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True
        ),
        sa.PrimaryKeyConstraint("student_id"),
        sa.ForeignKeyConstraint(["student_id"], ["users.id"], ondelete="CASCADE"),
    )


def downgrade() -> None:
    """Drop the booking schema."""
    op.drop_table("student_stats")
    op.drop_index("idx_attendance_logs_student_timestamp", table_name="attendance_logs")
    op.drop_index("idx_attendance_logs_booking_timestamp", table_name="attendance_logs")
    op.drop_table("attendance_logs")
    op.drop_index("idx_packages_user_valid_until", table_name="packages")
    op.drop_table("packages")
    op.drop_index("uq_bookings_student_slot_active", table_name="bookings")
    op.drop_index("idx_bookings_student_status", table_name="bookings")
    op.drop_index("idx_bookings_teacher_scheduled", table_name="bookings")
    op.drop_index("ix_bookings_status", table_name="bookings")
    op.drop_index("ix_bookings_id", table_name="bookings")
    op.drop_table("bookings")
    op.drop_index("idx_availability_teacher_day", table_name="availability")
    op.drop_table("availability")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_index("ix_users_id", table_name="users")
    op.drop_table("users")
