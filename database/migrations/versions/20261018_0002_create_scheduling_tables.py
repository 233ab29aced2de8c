"""create units, time slots, schedules and enrollments

Revision ID: 20261018_0002
Revises: 20261018_0001
Create Date: 2026-10-18 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261018_0002"
down_revision = "20261018_0001"
branch_labels = None
depends_on = None


enrollment_status_enum = sa.Enum(
    "PENDING", "APPROVED", "WAITLISTED", "REJECTED", "WITHDRAWN", name="enrollment_status"
)
ACTIVE_ONLY_SQLITE = sa.text("is_active = 1")
ACTIVE_ONLY_POSTGRES = sa.text("is_active")


def upgrade() -> None:
    op.create_table(
        "units",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("unit_code", sa.String(length=50), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("credits", sa.Integer(), nullable=False, server_default="3"),
        sa.Column("capacity", sa.Integer(), nullable=False, server_default="30"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_units_unit_code", "units", ["unit_code"], unique=True)

    op.create_table(
        "time_slots",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("start_time", sa.DateTime(), nullable=False),
        sa.Column("end_time", sa.DateTime(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_time_slots_start_time", "time_slots", ["start_time"])

    op.create_table(
        "schedules",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("unit_id", sa.Integer(), sa.ForeignKey("units.id"), nullable=False),
        sa.Column("time_slot_id", sa.Integer(), sa.ForeignKey("time_slots.id"), nullable=False),
        sa.Column("day_id", sa.Integer(), sa.ForeignKey("days.id"), nullable=False),
        sa.Column("semester", sa.String(length=50), nullable=False),
        sa.Column("academic_year", sa.Integer(), nullable=False),
        sa.Column("tutor_name", sa.String(length=200), nullable=True),
        sa.Column("location", sa.String(length=200), nullable=True),
        sa.Column("max_capacity", sa.Integer(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_schedules_unit_id", "schedules", ["unit_id"])
    op.create_index("ix_schedules_time_slot_id", "schedules", ["time_slot_id"])
    op.create_index("ix_schedules_day_id", "schedules", ["day_id"])
    op.create_index(
        "uq_schedules_active_occupancy",
        "schedules",
        ["time_slot_id", "day_id", "semester", "academic_year"],
        unique=True,
        sqlite_where=ACTIVE_ONLY_SQLITE,
        postgresql_where=ACTIVE_ONLY_POSTGRES,
    )
    op.create_index(
        "uq_schedules_active_unit_combination",
        "schedules",
        ["unit_id", "time_slot_id", "day_id", "semester", "academic_year"],
        unique=True,
        sqlite_where=ACTIVE_ONLY_SQLITE,
        postgresql_where=ACTIVE_ONLY_POSTGRES,
    )

    op.create_table(
        "student_profiles",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True, unique=True),
        sa.Column("student_id", sa.String(length=50), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False, server_default=""),
        sa.Column("program", sa.String(length=200), nullable=True),
        sa.Column("year_level", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_student_profiles_student_id", "student_profiles", ["student_id"], unique=True)

    op.create_table(
        "enrollments",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("schedule_id", sa.Integer(), sa.ForeignKey("schedules.id"), nullable=False),
        sa.Column("student_profile_id", sa.Integer(), sa.ForeignKey("student_profiles.id"), nullable=False),
        sa.Column("status", enrollment_status_enum, nullable=False, server_default="PENDING"),
        sa.Column("enrolled_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_enrollments_schedule_id", "enrollments", ["schedule_id"])
    op.create_index("ix_enrollments_student_profile_id", "enrollments", ["student_profile_id"])
    op.create_index("ix_enrollments_status", "enrollments", ["status"])


def downgrade() -> None:
    op.drop_index("ix_enrollments_status", table_name="enrollments")
    op.drop_index("ix_enrollments_student_profile_id", table_name="enrollments")
    op.drop_index("ix_enrollments_schedule_id", table_name="enrollments")
    op.drop_table("enrollments")
    enrollment_status_enum.drop(op.get_bind(), checkfirst=True)

    op.drop_index("ix_student_profiles_student_id", table_name="student_profiles")
    op.drop_table("student_profiles")

    op.drop_index("uq_schedules_active_unit_combination", table_name="schedules")
    op.drop_index("uq_schedules_active_occupancy", table_name="schedules")
    op.drop_index("ix_schedules_day_id", table_name="schedules")
    op.drop_index("ix_schedules_time_slot_id", table_name="schedules")
    op.drop_index("ix_schedules_unit_id", table_name="schedules")
    op.drop_table("schedules")

    op.drop_index("ix_time_slots_start_time", table_name="time_slots")
    op.drop_table("time_slots")

    op.drop_index("ix_units_unit_code", table_name="units")
    op.drop_table("units")
