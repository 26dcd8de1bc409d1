"""ledger tables with running balance columns

Revision ID: 20261017_0001
Revises:
Create Date: 2026-10-17 09:00:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "20261017_0001"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

warehouse_enum = sa.Enum("GURH", "REWA", "FACTORY", name="warehouse")
bucket_type_enum = sa.Enum(
    "TATA_G",
    "TATA_W",
    "TATA_HP",
    "AL_10_LTR",
    "AL",
    "BB",
    "ES",
    "MH",
    "MH_10_LTR",
    "TATA_10_LTR",
    "IBC_TANK",
    "ECO",
    "INDIAN_OIL_20L",
    "FREE_DEF",
    name="buckettype",
)
action_type_enum = sa.Enum("STOCK", "SELL", name="actiontype")
stock_type_enum = sa.Enum(
    "ADD_UREA",
    "PRODUCE_BATCH",
    "SELL_FREE_DEF",
    "FILL_BUCKETS",
    "SELL_BUCKETS",
    name="stocktransactiontype",
)
stock_category_enum = sa.Enum("UREA", "FREE_DEF", "FINISHED_GOODS", name="stockcategory")
stock_unit_enum = sa.Enum("KG", "LITERS", "BAGS", name="stockunit")
expense_account_enum = sa.Enum(
    "CASH",
    "SHIWAM_TRIPATHI",
    "ICICI",
    "CC_CANARA",
    "CANARA_CURRENT",
    "SAWALIYA_SETH_MOTORS",
    "VINAY",
    "SACHIN",
    name="expenseaccount",
)
transaction_type_enum = sa.Enum("INCOME", "EXPENSE", name="transactiontype")


def upgrade() -> None:
    op.create_table(
        "inventory_transactions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("date", sa.DateTime(), nullable=False),
        sa.Column("warehouse", warehouse_enum, nullable=False),
        sa.Column("bucket_type", bucket_type_enum, nullable=False),
        sa.Column("action", action_type_enum, nullable=False),
        sa.Column("quantity", sa.Float(), nullable=False),
        sa.Column("buyer_seller", sa.String(length=160), nullable=False),
        sa.Column("running_total", sa.Float(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_inventory_transactions_id"), "inventory_transactions", ["id"], unique=False)
    op.create_index(op.f("ix_inventory_transactions_date"), "inventory_transactions", ["date"], unique=False)
    op.create_index(
        "ix_inventory_transactions_stream_order",
        "inventory_transactions",
        ["bucket_type", "warehouse", "date", "created_at"],
        unique=False,
    )

    op.create_table(
        "stock_transactions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("date", sa.DateTime(), nullable=False),
        sa.Column("type", stock_type_enum, nullable=False),
        sa.Column("category", stock_category_enum, nullable=False),
        sa.Column("quantity", sa.Float(), nullable=False),
        sa.Column("unit", stock_unit_enum, nullable=False),
        sa.Column("description", sa.String(length=255), nullable=True),
        sa.Column("running_total", sa.Float(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_stock_transactions_id"), "stock_transactions", ["id"], unique=False)
    op.create_index(op.f("ix_stock_transactions_date"), "stock_transactions", ["date"], unique=False)
    op.create_index(op.f("ix_stock_transactions_type"), "stock_transactions", ["type"], unique=False)
    op.create_index(
        "ix_stock_transactions_stream_order",
        "stock_transactions",
        ["category", "date", "created_at"],
        unique=False,
    )

    op.create_table(
        "expense_transactions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("date", sa.DateTime(), nullable=False),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("account", expense_account_enum, nullable=False),
        sa.Column("type", transaction_type_enum, nullable=False),
        sa.Column("name", sa.String(length=160), nullable=False),
        sa.Column("name_key", sa.String(length=160), nullable=False),
        sa.Column("running_balance", sa.Float(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_expense_transactions_id"), "expense_transactions", ["id"], unique=False)
    op.create_index(op.f("ix_expense_transactions_date"), "expense_transactions", ["date"], unique=False)
    op.create_index(op.f("ix_expense_transactions_account"), "expense_transactions", ["account"], unique=False)
    op.create_index(op.f("ix_expense_transactions_type"), "expense_transactions", ["type"], unique=False)
    op.create_index(
        "ix_expense_transactions_stream_order",
        "expense_transactions",
        ["name_key", "date", "created_at"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_expense_transactions_stream_order", table_name="expense_transactions")
    op.drop_index(op.f("ix_expense_transactions_type"), table_name="expense_transactions")
    op.drop_index(op.f("ix_expense_transactions_account"), table_name="expense_transactions")
    op.drop_index(op.f("ix_expense_transactions_date"), table_name="expense_transactions")
    op.drop_index(op.f("ix_expense_transactions_id"), table_name="expense_transactions")
    op.drop_table("expense_transactions")

    op.drop_index("ix_stock_transactions_stream_order", table_name="stock_transactions")
    op.drop_index(op.f("ix_stock_transactions_type"), table_name="stock_transactions")
    op.drop_index(op.f("ix_stock_transactions_date"), table_name="stock_transactions")
    op.drop_index(op.f("ix_stock_transactions_id"), table_name="stock_transactions")
    op.drop_table("stock_transactions")

    op.drop_index("ix_inventory_transactions_stream_order", table_name="inventory_transactions")
    op.drop_index(op.f("ix_inventory_transactions_date"), table_name="inventory_transactions")
    op.drop_index(op.f("ix_inventory_transactions_id"), table_name="inventory_transactions")
    op.drop_table("inventory_transactions")

    bind = op.get_bind()
    for enum in (
        transaction_type_enum,
        expense_account_enum,
        stock_unit_enum,
        stock_category_enum,
        stock_type_enum,
        action_type_enum,
        bucket_type_enum,
        warehouse_enum,
    ):
        enum.drop(bind, checkfirst=True)
