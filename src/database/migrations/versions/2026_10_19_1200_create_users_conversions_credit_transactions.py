"""create users, conversions and credit_transactions

Revision ID: 4c1e2b7d9a10
Revises:
Create Date: 2026-10-19 12:00:00.000000

"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "4c1e2b7d9a10"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column(
            "auth_user_id",
            sa.String(),
            nullable=False,
            comment="Identity provider subject",
        ),
        sa.Column("email", sa.String(), nullable=True),
        sa.Column("credits_balance", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "credits_balance >= 0", name="ck_users_credits_non_negative"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("auth_user_id"),
    )

    op.create_table(
        "conversions",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=True),
        sa.Column("anonymous_id", sa.String(), nullable=True),
        sa.Column("file_name", sa.String(), nullable=True),
        sa.Column("vendor", sa.String(), nullable=False),
        sa.Column("invoice_number", sa.String(), nullable=False),
        sa.Column("invoice_date", sa.String(), nullable=False),
        sa.Column("currency", sa.String(), nullable=False),
        sa.Column("subtotal", sa.Numeric(12, 2, asdecimal=False), nullable=True),
        sa.Column("tax_total", sa.Numeric(12, 2, asdecimal=False), nullable=True),
        sa.Column("shipping", sa.Numeric(12, 2, asdecimal=False), nullable=True),
        sa.Column("total", sa.Numeric(12, 2, asdecimal=False), nullable=True),
        sa.Column("extracted_data", sa.JSON(), nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "(user_id IS NULL) <> (anonymous_id IS NULL)",
            name="ck_conversions_single_owner",
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_conversions_user_id"), "conversions", ["user_id"], unique=False
    )
    op.create_index(
        op.f("ix_conversions_anonymous_id"),
        "conversions",
        ["anonymous_id"],
        unique=False,
    )
    op.create_index(
        op.f("ix_conversions_created_at"), "conversions", ["created_at"], unique=False
    )

    op.create_table(
        "credit_transactions",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("transaction_type", sa.String(), nullable=False),
        sa.Column("stripe_payment_id", sa.String(), nullable=True),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("stripe_payment_id"),
    )
    op.create_index(
        op.f("ix_credit_transactions_user_id"),
        "credit_transactions",
        ["user_id"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index(
        op.f("ix_credit_transactions_user_id"), table_name="credit_transactions"
    )
    op.drop_table("credit_transactions")
    op.drop_index(op.f("ix_conversions_created_at"), table_name="conversions")
    op.drop_index(op.f("ix_conversions_anonymous_id"), table_name="conversions")
    op.drop_index(op.f("ix_conversions_user_id"), table_name="conversions")
    op.drop_table("conversions")
    op.drop_table("users")
