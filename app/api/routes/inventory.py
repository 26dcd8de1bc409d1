import logging
from datetime import date as date_type, datetime, time

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.api.deps import CurrentSession, require_admin, require_permission
from app.db.database import get_db
from app.ledger import current_balance
from app.models.ledger import (
    BUCKET_SIZES,
    ActionType,
    BucketType,
    InventoryTransaction,
    StockCategory,
    StockTransaction,
    StockTransactionType,
    StockUnit,
    Warehouse,
)
from app.schemas.ledger import (
    InventoryCreate,
    InventoryListOut,
    InventorySummaryRow,
    InventoryTransactionOut,
    InventoryUpdate,
)
from app.services.ledgers import get_store, reconcile_streams, record_transaction

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/inventory", tags=["Inventory"])

SUMMARY_WAREHOUSES = (Warehouse.GURH, Warehouse.REWA)


def _signed_quantity(action: ActionType, quantity: float) -> float:
    magnitude = abs(quantity)
    return -magnitude if action == ActionType.SELL else magnitude


def _inventory_summary(db: Session) -> list[InventorySummaryRow]:
    inventory_store = get_store(db, "inventory")
    stock_store = get_store(db, "stock")
    rows: list[InventorySummaryRow] = []
    for bucket_type in BucketType:
        if bucket_type == BucketType.FREE_DEF:
            # Loose Free DEF lives on the stock board, not in a warehouse.
            total = current_balance(stock_store, StockCategory.FREE_DEF)
            rows.append(InventorySummaryRow(bucket_type=bucket_type, gurh=0, rewa=0, total=total))
            continue
        gurh, rewa = (current_balance(inventory_store, (bucket_type, warehouse)) for warehouse in SUMMARY_WAREHOUSES)
        rows.append(InventorySummaryRow(bucket_type=bucket_type, gurh=gurh, rewa=rewa, total=gurh + rewa))
    return rows


def _linked_stock_row(db: Session, transaction: InventoryTransaction) -> StockTransaction | None:
    if transaction.action != ActionType.SELL:
        return None
    if transaction.bucket_type == BucketType.FREE_DEF:
        stock_type = StockTransactionType.SELL_FREE_DEF
        liters = -abs(transaction.quantity)
    else:
        bucket_size = BUCKET_SIZES[transaction.bucket_type]
        if bucket_size <= 0:
            return None
        stock_type = StockTransactionType.SELL_BUCKETS
        liters = -abs(transaction.quantity) * bucket_size
    return db.scalar(
        select(StockTransaction)
        .where(
            StockTransaction.date == transaction.date,
            StockTransaction.type == stock_type,
            StockTransaction.category == StockCategory.FREE_DEF,
            StockTransaction.quantity == liters,
        )
        .order_by(StockTransaction.created_at.asc(), StockTransaction.id.asc())
        .limit(1)
    )


@router.post("", response_model=InventoryTransactionOut, status_code=status.HTTP_201_CREATED)
def create_inventory_transaction(
    payload: InventoryCreate,
    current: CurrentSession = Depends(require_permission("inventory:write")),
    db: Session = Depends(get_db),
):
    store = get_store(db, "inventory")
    current_stock = current_balance(store, (payload.bucket_type, payload.warehouse))

    if payload.action == ActionType.SELL and payload.quantity > current_stock and not payload.force_oversell:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "message": (
                    f"Selling {payload.quantity:g} but only {current_stock:g} available in stock. "
                    f"This will result in negative inventory ({current_stock - payload.quantity:g})."
                ),
                "requires_confirmation": True,
                "current_stock": current_stock,
                "requested_quantity": payload.quantity,
                "shortfall": payload.quantity - current_stock,
            },
        )

    transaction = InventoryTransaction(
        date=payload.date,
        warehouse=payload.warehouse,
        bucket_type=payload.bucket_type,
        action=payload.action,
        quantity=_signed_quantity(payload.action, payload.quantity),
        buyer_seller=payload.buyer_seller.strip(),
    )
    transaction, _ = record_transaction(db, "inventory", transaction)

    bucket_size = BUCKET_SIZES[payload.bucket_type]
    if payload.action == ActionType.SELL and bucket_size > 0:
        liters = payload.quantity * bucket_size
        record_transaction(
            db,
            "stock",
            StockTransaction(
                date=payload.date,
                type=StockTransactionType.SELL_BUCKETS,
                category=StockCategory.FREE_DEF,
                quantity=-liters,
                unit=StockUnit.LITERS,
                description=(
                    f"Sold {payload.quantity:g}x {payload.bucket_type.value} ({liters:g}L) "
                    f"to {transaction.buyer_seller}"
                ),
            ),
        )

    logger.info("Inventory %s recorded by %s: row %s", payload.action.value, current.role.value, transaction.id)
    return transaction


@router.get("", response_model=InventoryListOut)
def list_inventory_transactions(
    date: date_type | None = Query(default=None),
    warehouse: Warehouse | None = None,
    bucket_type: BucketType | None = None,
    _: CurrentSession = Depends(require_permission("inventory:view")),
    db: Session = Depends(get_db),
):
    query = select(InventoryTransaction).order_by(
        InventoryTransaction.date.desc(),
        InventoryTransaction.created_at.desc(),
        InventoryTransaction.id.desc(),
    )
    if date is not None:
        query = query.where(
            InventoryTransaction.date >= datetime.combine(date, time.min),
            InventoryTransaction.date <= datetime.combine(date, time.max),
        )
    if warehouse is not None:
        query = query.where(InventoryTransaction.warehouse == warehouse)
    if bucket_type is not None:
        query = query.where(InventoryTransaction.bucket_type == bucket_type)

    return InventoryListOut(
        transactions=list(db.scalars(query).all()),
        summary=_inventory_summary(db),
    )


@router.patch("/{transaction_id}", response_model=InventoryTransactionOut)
def update_inventory_transaction(
    transaction_id: int,
    payload: InventoryUpdate,
    _: CurrentSession = Depends(require_admin),
    db: Session = Depends(get_db),
):
    transaction = db.get(InventoryTransaction, transaction_id)
    if not transaction:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Transaction not found")

    old_stream = (transaction.bucket_type, transaction.warehouse)

    if payload.date is not None:
        transaction.date = payload.date
    if payload.warehouse is not None:
        transaction.warehouse = payload.warehouse
    if payload.bucket_type is not None:
        transaction.bucket_type = payload.bucket_type
    if payload.action is not None:
        transaction.action = payload.action
    if payload.buyer_seller is not None:
        transaction.buyer_seller = payload.buyer_seller.strip()
    magnitude = payload.quantity if payload.quantity is not None else abs(transaction.quantity)
    transaction.quantity = _signed_quantity(transaction.action, magnitude)

    db.commit()

    new_stream = (transaction.bucket_type, transaction.warehouse)
    reconcile_streams(db, "inventory", [new_stream, old_stream])
    db.refresh(transaction)
    return transaction


@router.delete("/{transaction_id}", response_model=InventoryTransactionOut)
def delete_inventory_transaction(
    transaction_id: int,
    _: CurrentSession = Depends(require_admin),
    db: Session = Depends(get_db),
):
    transaction = db.get(InventoryTransaction, transaction_id)
    if not transaction:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Transaction not found")

    result = InventoryTransactionOut.model_validate(transaction)
    stream = (transaction.bucket_type, transaction.warehouse)

    linked = _linked_stock_row(db, transaction)
    linked_category = linked.category if linked is not None else None

    # The sale and its Free DEF draw go together or not at all.
    if linked is not None:
        db.delete(linked)
    db.delete(transaction)
    db.commit()

    reconcile_streams(db, "inventory", [stream])
    if linked_category is not None:
        reconcile_streams(db, "stock", [linked_category])
    return result
