import math
from datetime import date as date_type, datetime, time

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.api.deps import ROLE_PERMISSIONS, CurrentSession, require_admin, require_permission
from app.db.database import get_db
from app.ledger import current_balance
from app.models.ledger import (
    BUCKET_SIZES,
    KG_PER_BAG,
    LITERS_PER_BATCH,
    UREA_PER_BATCH_KG,
    ActionType,
    BucketType,
    InventoryTransaction,
    StockCategory,
    StockTransaction,
    StockTransactionType,
    StockUnit,
    Warehouse,
)
from app.schemas.ledger import StockCreate, StockListOut, StockSummaryOut, StockTransactionOut, StockUpdate
from app.services.ledgers import get_store, reconcile_streams, record_transaction

router = APIRouter(prefix="/stock", tags=["Stock"])

PRODUCTION_TYPES = {StockTransactionType.ADD_UREA, StockTransactionType.PRODUCE_BATCH}


def _plural(count: int) -> str:
    return "" if count == 1 else "es"


def _insufficient(message: str, current_stock: float) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={"message": message, "current_stock": current_stock},
    )


def _stock_summary(db: Session) -> StockSummaryOut:
    stock_store = get_store(db, "stock")
    inventory_store = get_store(db, "inventory")
    urea_kg = current_balance(stock_store, StockCategory.UREA)
    free_def = current_balance(stock_store, StockCategory.FREE_DEF)

    buckets_in_liters = 0.0
    for bucket_type, bucket_size in BUCKET_SIZES.items():
        if bucket_size == 0:
            continue
        buckets = sum(
            current_balance(inventory_store, (bucket_type, warehouse))
            for warehouse in (Warehouse.GURH, Warehouse.REWA)
        )
        buckets_in_liters += buckets * bucket_size

    return StockSummaryOut(
        urea_kg=urea_kg,
        urea_bags=round(urea_kg / KG_PER_BAG, 2),
        urea_cans_produce_l=math.floor(urea_kg / UREA_PER_BATCH_KG) * LITERS_PER_BATCH,
        free_def=free_def,
        buckets_in_liters=buckets_in_liters,
        finished_goods=free_def,
    )


def _produce_batch(db: Session, payload: StockCreate) -> list[StockTransaction]:
    batches = payload.batch_count or 1
    urea_needed = UREA_PER_BATCH_KG * batches
    liters_produced = LITERS_PER_BATCH * batches

    urea_stock = current_balance(get_store(db, "stock"), StockCategory.UREA)
    if urea_stock < urea_needed:
        raise _insufficient(
            f"Insufficient Urea. Need {urea_needed}kg for {batches} batch{_plural(batches)}, have {urea_stock:g}kg",
            urea_stock,
        )

    urea_row, _ = record_transaction(
        db,
        "stock",
        StockTransaction(
            date=payload.date,
            type=StockTransactionType.PRODUCE_BATCH,
            category=StockCategory.UREA,
            quantity=-urea_needed,
            unit=StockUnit.KG,
            description=f"Production: {batches} batch{_plural(batches)} (-{urea_needed}kg Urea)",
        ),
    )
    free_def_row, _ = record_transaction(
        db,
        "stock",
        StockTransaction(
            date=payload.date,
            type=StockTransactionType.PRODUCE_BATCH,
            category=StockCategory.FREE_DEF,
            quantity=liters_produced,
            unit=StockUnit.LITERS,
            description=f"Production: {batches} batch{_plural(batches)} (+{liters_produced}L Free DEF)",
        ),
    )
    return [urea_row, free_def_row]


def _draw_free_def(db: Session, payload: StockCreate) -> list[StockTransaction]:
    liters = abs(payload.quantity)
    free_def_stock = current_balance(get_store(db, "stock"), StockCategory.FREE_DEF)
    if free_def_stock < liters:
        raise _insufficient(f"Insufficient Free DEF. Need {liters:g}L, have {free_def_stock:g}L", free_def_stock)

    verb = "Filled" if payload.type == StockTransactionType.FILL_BUCKETS else "Sold"
    row, _ = record_transaction(
        db,
        "stock",
        StockTransaction(
            date=payload.date,
            type=payload.type,
            category=StockCategory.FREE_DEF,
            quantity=-liters,
            unit=StockUnit.LITERS,
            description=payload.description or f"{verb} buckets: -{liters:g}L",
        ),
    )
    return [row]


def _sell_free_def(db: Session, payload: StockCreate) -> list[StockTransaction]:
    free_def_stock = current_balance(get_store(db, "stock"), payload.category)
    if payload.quantity < 0 and free_def_stock < abs(payload.quantity):
        raise _insufficient(
            f"Insufficient Free DEF. Trying to sell {abs(payload.quantity):g}L, have {free_def_stock:g}L",
            free_def_stock,
        )

    stock_row, _ = record_transaction(
        db,
        "stock",
        StockTransaction(
            date=payload.date,
            type=payload.type,
            category=payload.category,
            quantity=payload.quantity,
            unit=payload.unit,
            description=payload.description,
        ),
    )
    buyer = (payload.description or "").split(" to ")[-1].strip() or "Customer"
    record_transaction(
        db,
        "inventory",
        InventoryTransaction(
            date=payload.date,
            warehouse=Warehouse.FACTORY,
            bucket_type=BucketType.FREE_DEF,
            action=ActionType.SELL,
            quantity=-abs(payload.quantity),
            buyer_seller=buyer,
        ),
    )
    return [stock_row]


@router.post("", response_model=list[StockTransactionOut], status_code=status.HTTP_201_CREATED)
def create_stock_transaction(
    payload: StockCreate,
    current: CurrentSession = Depends(require_permission("stock:write")),
    db: Session = Depends(get_db),
):
    if payload.type in PRODUCTION_TYPES and "stock:produce" not in ROLE_PERMISSIONS.get(current.role, set()):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied. Only admins and expense managers can perform this action.",
        )

    if payload.type == StockTransactionType.PRODUCE_BATCH:
        return _produce_batch(db, payload)
    if payload.type in (StockTransactionType.FILL_BUCKETS, StockTransactionType.SELL_BUCKETS):
        return _draw_free_def(db, payload)
    if payload.type == StockTransactionType.SELL_FREE_DEF:
        return _sell_free_def(db, payload)

    row, _ = record_transaction(
        db,
        "stock",
        StockTransaction(
            date=payload.date,
            type=payload.type,
            category=payload.category,
            quantity=payload.quantity,
            unit=payload.unit,
            description=payload.description,
        ),
    )
    return [row]


@router.get("", response_model=StockListOut)
def list_stock_transactions(
    date: date_type | None = Query(default=None),
    category: StockCategory | None = None,
    _: CurrentSession = Depends(require_permission("stock:view")),
    db: Session = Depends(get_db),
):
    query = select(StockTransaction).order_by(
        StockTransaction.date.desc(),
        StockTransaction.created_at.desc(),
        StockTransaction.id.desc(),
    )
    if date is not None:
        query = query.where(
            StockTransaction.date >= datetime.combine(date, time.min),
            StockTransaction.date <= datetime.combine(date, time.max),
        )
    if category is not None:
        query = query.where(StockTransaction.category == category)

    return StockListOut(transactions=list(db.scalars(query).all()), summary=_stock_summary(db))


@router.patch("/{transaction_id}", response_model=StockTransactionOut)
def update_stock_transaction(
    transaction_id: int,
    payload: StockUpdate,
    _: CurrentSession = Depends(require_admin),
    db: Session = Depends(get_db),
):
    transaction = db.get(StockTransaction, transaction_id)
    if not transaction:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Transaction not found")

    old_category = transaction.category

    if payload.date is not None:
        transaction.date = payload.date
    if payload.type is not None:
        transaction.type = payload.type
    if payload.category is not None:
        transaction.category = payload.category
    if payload.quantity is not None:
        transaction.quantity = payload.quantity
    if payload.unit is not None:
        transaction.unit = payload.unit
    if payload.description is not None:
        transaction.description = payload.description.strip() or None

    db.commit()
    reconcile_streams(db, "stock", [transaction.category, old_category])
    db.refresh(transaction)
    return transaction


@router.delete("/{transaction_id}", response_model=StockTransactionOut)
def delete_stock_transaction(
    transaction_id: int,
    _: CurrentSession = Depends(require_admin),
    db: Session = Depends(get_db),
):
    transaction = db.get(StockTransaction, transaction_id)
    if not transaction:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Transaction not found")

    result = StockTransactionOut.model_validate(transaction)
    category = transaction.category
    db.delete(transaction)
    db.commit()
    reconcile_streams(db, "stock", [category])
    return result
