"""create token ledger and promotion tables

Revision ID: 3f9c1e7a2b40
Revises: 
Create Date: 2026-10-19 09:30:00.000000
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "3f9c1e7a2b40"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "wallets",
        sa.Column("user_id", sa.String(length=36), primary_key=True),
        sa.Column("balance", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_action", sa.String(length=255)),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime()),
        sa.CheckConstraint("balance >= 0", name="ck_wallets_balance_nonneg"),
    )

    op.create_table(
        "token_transactions",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("user_id", sa.String(length=36), sa.ForeignKey("wallets.user_id"), nullable=False),
        sa.Column("description", sa.String(length=255), nullable=False),
        sa.Column("tokens_in", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("tokens_out", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("reference", sa.String(length=100), unique=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_token_transactions_user_id", "token_transactions", ["user_id"])
    op.create_index("ix_token_transactions_created_at", "token_transactions", ["created_at"])

    op.create_table(
        "jobs",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("employer_id", sa.String(length=36), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("promotion_tag", sa.String(length=20), nullable=False, server_default="none"),
        sa.Column("promotion_expires_at", sa.DateTime()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_jobs_employer_id", "jobs", ["employer_id"])

    op.create_table(
        "profiles",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("display_name", sa.String(length=150)),
        sa.Column("promotion_tag", sa.String(length=20), nullable=False, server_default="none"),
        sa.Column("promotion_expires_at", sa.DateTime()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "job_applications",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("job_id", sa.String(length=36), sa.ForeignKey("jobs.id"), nullable=False),
        sa.Column("applicant_id", sa.String(length=36), nullable=False),
        sa.Column("cover_letter", sa.Text()),
        sa.Column("bid_amount", sa.Integer()),
        sa.Column("tokens_spent", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("job_id", "applicant_id", name="uq_job_applications_job_applicant"),
    )
    op.create_index("ix_job_applications_job_id", "job_applications", ["job_id"])
    op.create_index("ix_job_applications_applicant_id", "job_applications", ["applicant_id"])

    op.create_table(
        "payment_receipts",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("reference", sa.String(length=100), nullable=False, unique=True),
        sa.Column("event", sa.String(length=50), nullable=False),
        sa.Column("user_id", sa.String(length=36)),
        sa.Column("amount_minor", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("tokens", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="received"),
        sa.Column("attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_error", sa.Text()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("applied_at", sa.DateTime()),
    )
    op.create_index("ix_payment_receipts_user_id", "payment_receipts", ["user_id"])


def downgrade() -> None:
    op.drop_index("ix_payment_receipts_user_id", table_name="payment_receipts")
    op.drop_table("payment_receipts")

    op.drop_index("ix_job_applications_applicant_id", table_name="job_applications")
    op.drop_index("ix_job_applications_job_id", table_name="job_applications")
    op.drop_table("job_applications")

    op.drop_table("profiles")

    op.drop_index("ix_jobs_employer_id", table_name="jobs")
    op.drop_table("jobs")

    op.drop_index("ix_token_transactions_created_at", table_name="token_transactions")
    op.drop_index("ix_token_transactions_user_id", table_name="token_transactions")
    op.drop_table("token_transactions")

    op.drop_table("wallets")
