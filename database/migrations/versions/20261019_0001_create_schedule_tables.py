"""create schedule tables

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "teachers",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("department", sa.String(length=200), nullable=True),
    )
    op.create_index("ix_teachers_name", "teachers", ["name"])

    op.create_table(
        "student_groups",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("department", sa.String(length=200), nullable=True),
        sa.Column("year_level", sa.Integer(), nullable=True),
    )
    op.create_index("ix_student_groups_name", "student_groups", ["name"])

    op.create_table(
        "courses",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("code", sa.String(length=200), nullable=False),
        sa.Column("department", sa.String(length=200), nullable=True),
        sa.Column("duration", sa.Integer(), nullable=False, server_default="1"),
    )
    op.create_index("ix_courses_code", "courses", ["code"], unique=True)

    op.create_table(
        "classes",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("course_id", sa.String(length=36), sa.ForeignKey("courses.id", ondelete="CASCADE"), nullable=False),
        sa.Column("teacher_id", sa.String(length=36), sa.ForeignKey("teachers.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "student_group_id",
            sa.String(length=36),
            sa.ForeignKey("student_groups.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("day", sa.String(length=20), nullable=False),
        sa.Column("start_time", sa.String(length=5), nullable=False),
        sa.Column("end_time", sa.String(length=5), nullable=False),
        sa.Column("has_conflict", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("meeting_link", sa.String(length=500), nullable=True),
    )
    op.create_index("ix_classes_day", "classes", ["day"])

    op.create_table(
        "teacher_availabilities",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("teacher", sa.String(length=200), nullable=False),
        sa.Column("day", sa.String(length=20), nullable=False),
        sa.Column("start_time", sa.String(length=16), nullable=False),
        sa.Column("end_time", sa.String(length=16), nullable=False),
    )
    op.create_index("ix_teacher_availabilities_teacher", "teacher_availabilities", ["teacher"])


def downgrade() -> None:
    op.drop_index("ix_teacher_availabilities_teacher", table_name="teacher_availabilities")
    op.drop_table("teacher_availabilities")
    op.drop_index("ix_classes_day", table_name="classes")
    op.drop_table("classes")
    op.drop_index("ix_courses_code", table_name="courses")
    op.drop_table("courses")
    op.drop_index("ix_student_groups_name", table_name="student_groups")
    op.drop_table("student_groups")
    op.drop_index("ix_teachers_name", table_name="teachers")
    op.drop_table("teachers")
