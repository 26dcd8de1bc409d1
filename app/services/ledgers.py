import logging
from collections.abc import Iterable
from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.config import settings
from app.ledger import (
    INVENTORY_STREAMS,
    STATEMENT_STREAMS,
    STOCK_STREAMS,
    MaintenanceReport,
    ReconcileReport,
    Reconciler,
    SqlAlchemyLedgerStore,
    UnknownStreamKey,
    append_with_balance,
    is_backdated,
)
from app.ledger.types import StreamKey, StreamSpec
from app.models.ledger import ExpenseTransaction, InventoryTransaction, StockTransaction

logger = logging.getLogger(__name__)

LEDGERS: dict[str, tuple[type, StreamSpec]] = {
    INVENTORY_STREAMS.name: (InventoryTransaction, INVENTORY_STREAMS),
    STOCK_STREAMS.name: (StockTransaction, STOCK_STREAMS),
    STATEMENT_STREAMS.name: (ExpenseTransaction, STATEMENT_STREAMS),
}


def get_store(db: Session, ledger: str) -> SqlAlchemyLedgerStore:
    binding = LEDGERS.get(ledger.strip().lower())
    if binding is None:
        raise UnknownStreamKey(ledger)
    model, spec = binding
    return SqlAlchemyLedgerStore(db, model, spec)


def get_reconciler(db: Session, ledger: str) -> Reconciler:
    return Reconciler(get_store(db, ledger), tolerance=settings.drift_tolerance)


def record_transaction(db: Session, ledger: str, record: Any) -> tuple[Any, ReconcileReport | None]:
    """Append ``record`` to its stream, replaying the stream if it was backdated."""
    store = get_store(db, ledger)
    backdated = is_backdated(store, record)
    stored = append_with_balance(store, record)
    if not backdated:
        return stored, None

    stream_key = store.spec.stream_key(stored)
    logger.info("Backdated %s row %s, reconciling %s", ledger, stored.id, store.spec.format_key(stream_key))
    report = Reconciler(store, tolerance=settings.drift_tolerance).reconcile(stream_key)
    db.refresh(stored)
    return stored, report


def reconcile_streams(db: Session, ledger: str, stream_keys: Iterable[StreamKey]) -> MaintenanceReport:
    report = get_reconciler(db, ledger).reconcile_many(stream_keys)
    # Balances were rewritten with bulk UPDATEs; drop stale identity-map state.
    db.expire_all()
    return report


def reconcile_ledger(db: Session, ledger: str) -> MaintenanceReport:
    report = get_reconciler(db, ledger).reconcile_all()
    db.expire_all()
    return report


def reconcile_everything(db: Session) -> list[MaintenanceReport]:
    return [reconcile_ledger(db, ledger) for ledger in LEDGERS]


def delete_recorded_after(db: Session, cutoff: datetime) -> tuple[dict[str, int], list[MaintenanceReport]]:
    """Delete every row recorded at or after ``cutoff`` in one commit, then repair the streams they left."""
    deleted: dict[str, int] = {}
    affected: dict[str, set] = {}
    for ledger, (model, spec) in LEDGERS.items():
        rows = db.scalars(select(model).where(model.created_at >= cutoff)).all()
        deleted[ledger] = len(rows)
        affected[ledger] = {spec.stream_key(row) for row in rows}
        for row in rows:
            db.delete(row)
    db.commit()
    logger.info("Deleted rows recorded after %s: %s", cutoff.isoformat(), deleted)

    reports: list[MaintenanceReport] = []
    for ledger, stream_keys in affected.items():
        if stream_keys:
            spec = LEDGERS[ledger][1]
            reports.append(reconcile_streams(db, ledger, sorted(stream_keys, key=spec.format_key)))
    return deleted, reports
