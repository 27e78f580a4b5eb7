"""Initial database schema

Revision ID: 000_initial_schema
Revises:
Create Date: 2026-10-19

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy import inspect
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "000_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _table_exists(table: str) -> bool:
    bind = op.get_bind()
    insp = inspect(bind)
    return table in insp.get_table_names()


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    """Create all studio tables."""

    if not _table_exists("branches"):
        op.create_table(
            "branches",
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column("name", sa.String(100), unique=True, nullable=False),
            *_timestamps(),
        )

    if not _table_exists("trainers"):
        op.create_table(
            "trainers",
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column("name", sa.String(100), nullable=False),
            sa.Column("is_active", sa.Boolean(), server_default="true", nullable=False),
            sa.Column("color", sa.String(20), nullable=False),
            sa.Column("photo_url", sa.String(500), nullable=True),
            *_timestamps(),
        )

    if not _table_exists("trainer_branches"):
        op.create_table(
            "trainer_branches",
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column(
                "trainer_id",
                sa.Integer(),
                sa.ForeignKey("trainers.id", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.Column("branch_id", sa.Integer(), sa.ForeignKey("branches.id"), nullable=False),
            sa.Column("rate_type", sa.Enum("percentage", "fixed", name="ratetype"), nullable=True),
            sa.Column("rate_value", sa.Numeric(12, 4), nullable=True),
            sa.UniqueConstraint("trainer_id", "branch_id", name="uq_trainer_branch"),
        )
        op.create_index("ix_trainer_branches_trainer_id", "trainer_branches", ["trainer_id"])
        op.create_index("ix_trainer_branches_branch_id", "trainer_branches", ["branch_id"])

    if not _table_exists("members"):
        op.create_table(
            "members",
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column("name", sa.String(100), nullable=False),
            sa.Column("contact", sa.String(50), nullable=False, server_default=""),
            sa.Column("branch_id", sa.Integer(), sa.ForeignKey("branches.id"), nullable=False),
            sa.Column(
                "referrer_id",
                sa.Integer(),
                sa.ForeignKey("members.id", ondelete="SET NULL"),
                nullable=True,
            ),
            sa.Column(
                "assigned_trainer_id",
                sa.Integer(),
                sa.ForeignKey("trainers.id", ondelete="SET NULL"),
                nullable=True,
            ),
            sa.Column("exercise_goals", sa.JSON(), nullable=False),
            sa.Column("motivation", sa.Text(), nullable=True),
            sa.Column("medical_history", sa.Text(), nullable=True),
            sa.Column("exercise_experience", sa.String(20), nullable=True),
            sa.Column("preferred_time", sa.JSON(), nullable=False),
            sa.Column("occupation", sa.String(100), nullable=True),
            sa.Column("memo", sa.Text(), nullable=True),
            *_timestamps(),
        )
        op.create_index("ix_members_name", "members", ["name"])
        op.create_index("ix_members_branch_id", "members", ["branch_id"])
        op.create_index("ix_members_assigned_trainer_id", "members", ["assigned_trainer_id"])

    if not _table_exists("programs"):
        op.create_table(
            "programs",
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column("member_ids", sa.JSON(), nullable=False),
            sa.Column("program_name", sa.String(200), nullable=False),
            sa.Column("registration_type", sa.Enum("신규", "재등록", name="registrationtype"), nullable=False),
            sa.Column("registration_date", sa.Date(), nullable=False),
            sa.Column("payment_date", sa.Date(), nullable=False),
            sa.Column("total_amount", sa.Numeric(12, 2), nullable=False),
            sa.Column("total_sessions", sa.Integer(), nullable=False),
            sa.Column("unit_price", sa.Numeric(12, 2), nullable=False),
            sa.Column("fixed_trainer_fee", sa.Numeric(12, 2), nullable=True),
            sa.Column("session_fees", sa.JSON(), nullable=True),
            sa.Column("completed_sessions", sa.Integer(), server_default="0", nullable=False),
            sa.Column("status", sa.Enum("유효", "정지", "만료", name="programstatus"), nullable=False),
            sa.Column("trainer_ids", sa.JSON(), nullable=False),
            sa.Column("session_trainers", sa.JSON(), nullable=True),
            sa.Column("branch_id", sa.Integer(), sa.ForeignKey("branches.id"), nullable=False),
            sa.Column("default_session_duration", sa.Integer(), server_default="50", nullable=False),
            sa.Column("memo", sa.Text(), nullable=True),
            *_timestamps(),
        )
        op.create_index("ix_programs_status", "programs", ["status"])
        op.create_index("ix_programs_branch_id", "programs", ["branch_id"])

    if not _table_exists("sessions"):
        op.create_table(
            "sessions",
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column(
                "program_id",
                sa.Integer(),
                sa.ForeignKey("programs.id", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.Column("session_number", sa.Integer(), nullable=False),
            sa.Column("trainer_id", sa.Integer(), sa.ForeignKey("trainers.id"), nullable=False),
            sa.Column("date", sa.Date(), nullable=False),
            sa.Column("start_time", sa.Time(), nullable=False),
            sa.Column("duration", sa.Integer(), nullable=False),
            sa.Column("status", sa.Enum("booked", "completed", name="sessionstatus"), nullable=False),
            sa.Column("attended_member_ids", sa.JSON(), nullable=False),
            sa.Column("trainer_fee", sa.Numeric(12, 2), nullable=False),
            sa.Column(
                "rate_type",
                postgresql.ENUM("percentage", "fixed", name="ratetype", create_type=False),
                nullable=False,
            ),
            sa.Column("rate_value", sa.Numeric(12, 4), nullable=False),
            sa.Column("session_fee", sa.Numeric(12, 2), nullable=True),
            sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
            *_timestamps(),
        )
        op.create_index("ix_sessions_program_id", "sessions", ["program_id"])
        op.create_index("ix_sessions_trainer_id", "sessions", ["trainer_id"])
        op.create_index("ix_sessions_date", "sessions", ["date"])
        op.create_index("ix_sessions_status", "sessions", ["status"])

    if not _table_exists("program_presets"):
        op.create_table(
            "program_presets",
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column("name", sa.String(200), nullable=False),
            sa.Column("total_amount", sa.Numeric(12, 2), nullable=False),
            sa.Column("total_sessions", sa.Integer(), nullable=False),
            sa.Column("branch_id", sa.Integer(), sa.ForeignKey("branches.id"), nullable=True),
            sa.Column("default_session_duration", sa.Integer(), nullable=True),
            sa.Column("fixed_trainer_fee", sa.Numeric(12, 2), nullable=True),
            sa.Column("session_fees", sa.JSON(), nullable=True),
            *_timestamps(),
        )
        op.create_index("ix_program_presets_branch_id", "program_presets", ["branch_id"])

    if not _table_exists("users"):
        op.create_table(
            "users",
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column("email", sa.String(255), nullable=False),
            sa.Column("password_hash", sa.String(255), nullable=False),
            sa.Column("name", sa.String(100), nullable=True),
            sa.Column(
                "role",
                sa.Enum("admin", "manager", "trainer", "unassigned", name="userrole"),
                nullable=False,
            ),
            sa.Column("assigned_branch_ids", sa.JSON(), nullable=False),
            sa.Column(
                "trainer_profile_id",
                sa.Integer(),
                sa.ForeignKey("trainers.id", ondelete="SET NULL"),
                nullable=True,
            ),
            sa.Column("is_active", sa.Boolean(), server_default="true", nullable=False),
            sa.Column("last_active_at", sa.DateTime(timezone=True), nullable=True),
            *_timestamps(),
        )
        op.create_index("ix_users_email", "users", ["email"], unique=True)

    if not _table_exists("audit_logs"):
        op.create_table(
            "audit_logs",
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column(
                "user_id",
                sa.Integer(),
                sa.ForeignKey("users.id", ondelete="SET NULL"),
                nullable=True,
            ),
            sa.Column("user_name", sa.String(100), nullable=False),
            sa.Column("action", sa.Enum("생성", "수정", "삭제", name="auditaction"), nullable=False),
            sa.Column(
                "entity_type",
                sa.Enum("프로그램", "강사", "사용자", "프리셋", "지점", "회원", name="auditentity"),
                nullable=False,
            ),
            sa.Column("entity_name", sa.String(200), nullable=False),
            sa.Column("details", sa.Text(), nullable=False, server_default=""),
            sa.Column(
                "branch_id",
                sa.Integer(),
                sa.ForeignKey("branches.id", ondelete="SET NULL"),
                nullable=True,
            ),
            sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        )
        op.create_index("ix_audit_logs_user_id", "audit_logs", ["user_id"])
        op.create_index("ix_audit_logs_action", "audit_logs", ["action"])
        op.create_index("ix_audit_logs_branch_id", "audit_logs", ["branch_id"])
        op.create_index("ix_audit_logs_created_at", "audit_logs", ["created_at"])


def downgrade() -> None:
    """Drop all studio tables."""
    op.drop_table("audit_logs")
    op.drop_table("users")
    op.drop_table("program_presets")
    op.drop_table("sessions")
    op.drop_table("programs")
    op.drop_table("members")
    op.drop_table("trainer_branches")
    op.drop_table("trainers")
    op.drop_table("branches")

    for enum_name in (
        "auditentity",
        "auditaction",
        "userrole",
        "sessionstatus",
        "programstatus",
        "registrationtype",
        "ratetype",
    ):
        sa.Enum(name=enum_name).drop(op.get_bind(), checkfirst=True)
