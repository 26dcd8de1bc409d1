from app.ledger.errors import FetchFailure, LedgerError, RowUpdateFailure, UnknownStreamKey
from app.ledger.incremental import append_with_balance, current_balance, is_backdated
from app.ledger.partition import (
    INVENTORY_STREAMS,
    STATEMENT_STREAMS,
    STOCK_STREAMS,
    get_stream_spec,
    normalize_name,
    parse_stream_key,
)
from app.ledger.reconcile import Reconciler
from app.ledger.replay import DEFAULT_DRIFT_TOLERANCE, canonical_order, replay, replay_entries
from app.ledger.store import LedgerStore, SqlAlchemyLedgerStore
from app.ledger.types import (
    DriftedRow,
    LedgerEntry,
    MaintenanceReport,
    ReconcileReport,
    ReplayResult,
    RowFailure,
    StreamSpec,
)

__all__ = [
    "DEFAULT_DRIFT_TOLERANCE",
    "DriftedRow",
    "FetchFailure",
    "INVENTORY_STREAMS",
    "LedgerEntry",
    "LedgerError",
    "LedgerStore",
    "MaintenanceReport",
    "ReconcileReport",
    "Reconciler",
    "ReplayResult",
    "RowFailure",
    "RowUpdateFailure",
    "STATEMENT_STREAMS",
    "STOCK_STREAMS",
    "SqlAlchemyLedgerStore",
    "StreamSpec",
    "UnknownStreamKey",
    "append_with_balance",
    "canonical_order",
    "current_balance",
    "get_stream_spec",
    "is_backdated",
    "normalize_name",
    "parse_stream_key",
    "replay",
    "replay_entries",
]
