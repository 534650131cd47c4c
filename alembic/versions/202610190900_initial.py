"""initial budgets schema

Revision ID: 202610190900
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


revision = "202610190900"
down_revision = None
branch_labels = None
depends_on = None


budget_period = sa.Enum("weekly", "monthly", "yearly", name="budgetperiod")
template_type = sa.Enum(
    "custom", "50-30-20", "zero-based", "envelope", name="templatetype"
)
template_kind = sa.Enum("system", "custom", name="templatekind")
category_group = sa.Enum(
    "Essential", "Non-essential", "Savings", "Income", "Other", name="categorygroup"
)
transaction_type = sa.Enum("income", "expense", name="transactiontype")


def upgrade() -> None:
    op.create_table(
        "budgets",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("total_budget_cents", sa.Integer(), nullable=False),
        sa.Column("period", budget_period, nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column(
            "notifications_enabled", sa.Boolean(), nullable=False, server_default="1"
        ),
        sa.Column(
            "email_notifications", sa.Boolean(), nullable=False, server_default="0"
        ),
        sa.Column("weekly_digest", sa.Boolean(), nullable=False, server_default="0"),
        sa.Column("threshold_alerts", sa.Boolean(), nullable=False, server_default="1"),
        sa.Column(
            "previous_budget_id",
            sa.Integer(),
            sa.ForeignKey("budgets.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "template_type", template_type, nullable=False, server_default="custom"
        ),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("total_budget_cents >= 0", name="ck_budget_total_positive"),
        sa.CheckConstraint("end_date >= start_date", name="ck_budget_window_ordered"),
    )
    op.create_index("ix_budgets_user_start", "budgets", ["user_id", "start_date"])

    op.create_table(
        "budget_categories",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "budget_id",
            sa.Integer(),
            sa.ForeignKey("budgets.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column(
            "parent_id",
            sa.Integer(),
            sa.ForeignKey("budget_categories.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("limit_cents", sa.Integer(), nullable=False),
        sa.Column("spent_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("color", sa.String(length=9), nullable=False),
        sa.Column("group", category_group, nullable=False),
        sa.Column("alert_threshold", sa.Integer(), nullable=False, server_default="80"),
        sa.Column("is_subcategory", sa.Boolean(), nullable=False, server_default="0"),
        sa.CheckConstraint(
            "limit_cents >= 0", name="ck_budget_category_limit_positive"
        ),
        sa.CheckConstraint(
            "spent_cents >= 0", name="ck_budget_category_spent_positive"
        ),
        sa.CheckConstraint(
            "alert_threshold >= 0 AND alert_threshold <= 100",
            name="ck_budget_category_threshold_range",
        ),
        sa.CheckConstraint(
            "(budget_id IS NULL) <> (parent_id IS NULL)",
            name="ck_budget_category_single_owner",
        ),
    )
    op.create_index(
        "ix_budget_categories_budget", "budget_categories", ["budget_id", "position"]
    )
    op.create_index(
        "ix_budget_categories_parent", "budget_categories", ["parent_id", "position"]
    )

    op.create_table(
        "budget_templates",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("kind", template_kind, nullable=False),
        sa.Column(
            "template_type", template_type, nullable=False, server_default="custom"
        ),
        sa.Column("is_public", sa.Boolean(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint(
            "(kind = 'system' AND user_id IS NULL) OR (kind = 'custom' AND user_id IS NOT NULL)",
            name="ck_budget_template_owner",
        ),
    )
    op.create_index("ix_budget_templates_user", "budget_templates", ["user_id"])

    op.create_table(
        "template_categories",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "template_id",
            sa.Integer(),
            sa.ForeignKey("budget_templates.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("percentage", sa.Float(), nullable=False),
        sa.Column("group", category_group, nullable=False),
        sa.Column("color", sa.String(length=9), nullable=False),
        sa.CheckConstraint(
            "percentage >= 0 AND percentage <= 100",
            name="ck_template_category_percentage_range",
        ),
    )

    op.create_table(
        "template_subcategories",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "template_category_id",
            sa.Integer(),
            sa.ForeignKey("template_categories.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("percentage", sa.Float(), nullable=False),
        sa.Column("color", sa.String(length=9), nullable=True),
        sa.CheckConstraint(
            "percentage >= 0 AND percentage <= 100",
            name="ck_template_subcategory_percentage_range",
        ),
    )

    op.create_table(
        "transactions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("description", sa.String(length=200), nullable=False),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.Column("type", transaction_type, nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_transactions_user_date", "transactions", ["user_id", "date"])
    op.create_index(
        "ix_transactions_user_type_date", "transactions", ["user_id", "type", "date"]
    )


def downgrade() -> None:
    op.drop_index("ix_transactions_user_type_date", table_name="transactions")
    op.drop_index("ix_transactions_user_date", table_name="transactions")
    op.drop_table("transactions")
    op.drop_table("template_subcategories")
    op.drop_table("template_categories")
    op.drop_index("ix_budget_templates_user", table_name="budget_templates")
    op.drop_table("budget_templates")
    op.drop_index("ix_budget_categories_parent", table_name="budget_categories")
    op.drop_index("ix_budget_categories_budget", table_name="budget_categories")
    op.drop_table("budget_categories")
    op.drop_index("ix_budgets_user_start", table_name="budgets")
    op.drop_table("budgets")
