from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, Enum as SQLEnum, Float, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.database import Base


class Warehouse(str, Enum):
    GURH = "GURH"
    REWA = "REWA"
    FACTORY = "FACTORY"


class BucketType(str, Enum):
    TATA_G = "TATA_G"
    TATA_W = "TATA_W"
    TATA_HP = "TATA_HP"
    AL_10_LTR = "AL_10_LTR"
    AL = "AL"
    BB = "BB"
    ES = "ES"
    MH = "MH"
    MH_10_LTR = "MH_10_LTR"
    TATA_10_LTR = "TATA_10_LTR"
    IBC_TANK = "IBC_TANK"
    ECO = "ECO"
    INDIAN_OIL_20L = "INDIAN_OIL_20L"
    FREE_DEF = "FREE_DEF"


class ActionType(str, Enum):
    STOCK = "STOCK"
    SELL = "SELL"


class StockTransactionType(str, Enum):
    ADD_UREA = "ADD_UREA"
    PRODUCE_BATCH = "PRODUCE_BATCH"
    SELL_FREE_DEF = "SELL_FREE_DEF"
    FILL_BUCKETS = "FILL_BUCKETS"
    SELL_BUCKETS = "SELL_BUCKETS"


class StockCategory(str, Enum):
    UREA = "UREA"
    FREE_DEF = "FREE_DEF"
    FINISHED_GOODS = "FINISHED_GOODS"


class StockUnit(str, Enum):
    KG = "KG"
    LITERS = "LITERS"
    BAGS = "BAGS"


class ExpenseAccount(str, Enum):
    CASH = "CASH"
    SHIWAM_TRIPATHI = "SHIWAM_TRIPATHI"
    ICICI = "ICICI"
    CC_CANARA = "CC_CANARA"
    CANARA_CURRENT = "CANARA_CURRENT"
    SAWALIYA_SETH_MOTORS = "SAWALIYA_SETH_MOTORS"
    VINAY = "VINAY"
    SACHIN = "SACHIN"


class TransactionType(str, Enum):
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


# Liters per bucket; zero for containers that are not sold as product.
BUCKET_SIZES: dict[BucketType, int] = {
    BucketType.TATA_G: 20,
    BucketType.TATA_W: 20,
    BucketType.TATA_HP: 20,
    BucketType.AL_10_LTR: 10,
    BucketType.AL: 20,
    BucketType.BB: 20,
    BucketType.ES: 20,
    BucketType.MH: 20,
    BucketType.MH_10_LTR: 10,
    BucketType.TATA_10_LTR: 10,
    BucketType.IBC_TANK: 0,
    BucketType.ECO: 20,
    BucketType.INDIAN_OIL_20L: 20,
    BucketType.FREE_DEF: 0,
}

UREA_PER_BATCH_KG = 360
LITERS_PER_BATCH = 1000
KG_PER_BAG = 45


class InventoryTransaction(Base):
    __tablename__ = "inventory_transactions"
    __table_args__ = (
        Index("ix_inventory_transactions_stream_order", "bucket_type", "warehouse", "date", "created_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    date: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    warehouse: Mapped[Warehouse] = mapped_column(SQLEnum(Warehouse), nullable=False)
    bucket_type: Mapped[BucketType] = mapped_column(SQLEnum(BucketType), nullable=False)
    action: Mapped[ActionType] = mapped_column(SQLEnum(ActionType), nullable=False)
    quantity: Mapped[float] = mapped_column(Float, nullable=False)
    buyer_seller: Mapped[str] = mapped_column(String(160), nullable=False)
    running_total: Mapped[float] = mapped_column(Float, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )


class StockTransaction(Base):
    __tablename__ = "stock_transactions"
    __table_args__ = (Index("ix_stock_transactions_stream_order", "category", "date", "created_at"),)

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    date: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    type: Mapped[StockTransactionType] = mapped_column(SQLEnum(StockTransactionType), nullable=False, index=True)
    category: Mapped[StockCategory] = mapped_column(SQLEnum(StockCategory), nullable=False)
    quantity: Mapped[float] = mapped_column(Float, nullable=False)
    unit: Mapped[StockUnit] = mapped_column(SQLEnum(StockUnit), nullable=False)
    description: Mapped[str | None] = mapped_column(String(255), nullable=True)
    running_total: Mapped[float] = mapped_column(Float, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )


class ExpenseTransaction(Base):
    __tablename__ = "expense_transactions"
    __table_args__ = (Index("ix_expense_transactions_stream_order", "name_key", "date", "created_at"),)

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    date: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    account: Mapped[ExpenseAccount] = mapped_column(SQLEnum(ExpenseAccount), nullable=False, index=True)
    type: Mapped[TransactionType] = mapped_column(SQLEnum(TransactionType), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(160), nullable=False)
    name_key: Mapped[str] = mapped_column(String(160), nullable=False)
    running_balance: Mapped[float] = mapped_column(Float, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )
