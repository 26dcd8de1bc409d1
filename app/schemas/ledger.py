from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from app.models.ledger import (
    ActionType,
    BucketType,
    ExpenseAccount,
    StockCategory,
    StockTransactionType,
    StockUnit,
    TransactionType,
    Warehouse,
)

ReportStatus = Literal["consistent", "updated", "partial"]


def to_naive_utc(value: datetime | None) -> datetime | None:
    """Columns are naive UTC; convert offset-carrying input before it is stored or compared."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class LedgerWrite(BaseModel):
    @field_validator("date", check_fields=False)
    @classmethod
    def normalize_date(cls, value: datetime | None) -> datetime | None:
        return to_naive_utc(value)


class InventoryCreate(LedgerWrite):
    date: datetime
    warehouse: Warehouse
    bucket_type: BucketType
    action: ActionType
    quantity: float = Field(gt=0)
    buyer_seller: str = Field(min_length=1, max_length=160)
    force_oversell: bool = False


class InventoryUpdate(LedgerWrite):
    date: datetime | None = None
    warehouse: Warehouse | None = None
    bucket_type: BucketType | None = None
    action: ActionType | None = None
    quantity: float | None = Field(default=None, gt=0)
    buyer_seller: str | None = Field(default=None, min_length=1, max_length=160)


class InventoryTransactionOut(BaseModel):
    id: int
    date: datetime
    warehouse: Warehouse
    bucket_type: BucketType
    action: ActionType
    quantity: float
    buyer_seller: str
    running_total: float
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class InventorySummaryRow(BaseModel):
    bucket_type: BucketType
    gurh: float
    rewa: float
    total: float


class InventoryListOut(BaseModel):
    transactions: list[InventoryTransactionOut]
    summary: list[InventorySummaryRow]


class StockCreate(LedgerWrite):
    date: datetime
    type: StockTransactionType
    category: StockCategory
    quantity: float
    unit: StockUnit
    description: str | None = Field(default=None, max_length=255)
    batch_count: int | None = Field(default=None, ge=1)


class StockUpdate(LedgerWrite):
    date: datetime | None = None
    type: StockTransactionType | None = None
    category: StockCategory | None = None
    quantity: float | None = None
    unit: StockUnit | None = None
    description: str | None = Field(default=None, max_length=255)


class StockTransactionOut(BaseModel):
    id: int
    date: datetime
    type: StockTransactionType
    category: StockCategory
    quantity: float
    unit: StockUnit
    description: str | None
    running_total: float
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class StockSummaryOut(BaseModel):
    urea_kg: float
    urea_bags: float
    urea_cans_produce_l: float
    free_def: float
    buckets_in_liters: float
    finished_goods: float


class StockListOut(BaseModel):
    transactions: list[StockTransactionOut]
    summary: StockSummaryOut


class ExpenseCreate(LedgerWrite):
    date: datetime
    amount: float = Field(gt=0)
    account: ExpenseAccount
    type: TransactionType
    name: str = Field(min_length=1, max_length=160)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("name must not be blank")
        return cleaned


class ExpenseUpdate(LedgerWrite):
    date: datetime | None = None
    amount: float | None = Field(default=None, gt=0)
    account: ExpenseAccount | None = None
    type: TransactionType | None = None
    name: str | None = Field(default=None, min_length=1, max_length=160)


class ExpenseTransactionOut(BaseModel):
    id: int
    date: datetime
    amount: float
    account: ExpenseAccount
    type: TransactionType
    name: str
    running_balance: float
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class PaginationOut(BaseModel):
    total: int
    page: int
    limit: int
    total_pages: int


class ExpenseListOut(BaseModel):
    transactions: list[ExpenseTransactionOut]
    pagination: PaginationOut
    unique_names: list[str]


class StatementOut(BaseModel):
    name: str
    transactions: list[ExpenseTransactionOut]
    total_balance: float
    closing_balance: float


class RowFailureOut(BaseModel):
    id: int
    reason: str

    model_config = {"from_attributes": True}


class ReconcileReportOut(BaseModel):
    ledger: str
    stream_key: str
    status: ReportStatus
    examined: int
    updated: int
    failed: int
    failures: list[RowFailureOut]
    final_balance: float
    logs: list[str]

    model_config = {"from_attributes": True}


class MaintenanceReportOut(BaseModel):
    ledger: str
    status: ReportStatus
    message: str
    examined: int
    updated: int
    failed: int
    final_balances: dict[str, float]
    errors: dict[str, str]
    streams: list[ReconcileReportOut]
    logs: list[str]


class DriftedRowOut(BaseModel):
    id: int
    occurred_at: datetime
    signed_quantity: float
    old_balance: float
    new_balance: float
    delta: float

    model_config = {"from_attributes": True}


class DriftReportOut(BaseModel):
    ledger: str
    stream_key: str
    examined: int
    final_balance: float
    drifted: list[DriftedRowOut]


class DeleteRecordedAfter(BaseModel):
    after_timestamp: datetime

    @field_validator("after_timestamp")
    @classmethod
    def normalize_timestamp(cls, value: datetime) -> datetime:
        return to_naive_utc(value)


class DeleteRecordedAfterOut(BaseModel):
    message: str
    deleted: dict[str, int]
    reports: list[MaintenanceReportOut]
