"""Create users and student_subjects tables.

Tables may already exist: app startup runs Base.metadata.create_all before
Alembic, so each table is only created when missing.

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    inspector = sa.inspect(op.get_bind())

    if not inspector.has_table("users"):
        op.create_table(
            "users",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("email", sa.String(), nullable=False),
            sa.Column("hashed_password", sa.String(), nullable=False),
            sa.Column("first_name", sa.String(), nullable=False),
            sa.Column("last_name", sa.String(), nullable=False),
            sa.Column("trial_ends_at", sa.Date(), nullable=True),
            sa.Column("is_subscribed", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("stripe_customer_id", sa.String(), nullable=True),
            sa.Column("stripe_subscription_id", sa.String(), nullable=True, unique=True),
            sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        )
        op.create_index("ix_users_id", "users", ["id"])
        op.create_index("ix_users_email", "users", ["email"], unique=True)
        op.create_index("ix_users_stripe_customer_id", "users", ["stripe_customer_id"], unique=True)

    if not inspector.has_table("student_subjects"):
        op.create_table(
            "student_subjects",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column(
                "user_id",
                sa.Integer(),
                sa.ForeignKey("users.id", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.Column("child_name", sa.String(), nullable=False),
            sa.Column("subject", sa.String(), nullable=False),
            sa.Column("grade", sa.Integer(), nullable=False),
            sa.Column("last_question_date", sa.Date(), nullable=True),
            sa.Column("preferred_email_time", sa.String(), nullable=False, server_default="09:00 AM"),
        )
        op.create_index("ix_student_subjects_id", "student_subjects", ["id"])
        op.create_index("ix_student_subjects_user_id", "student_subjects", ["user_id"])


def downgrade() -> None:
    op.drop_table("student_subjects")
    op.drop_table("users")
