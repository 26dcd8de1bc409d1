import logging
from collections.abc import Iterable

from app.ledger.errors import FetchFailure, RowUpdateFailure
from app.ledger.replay import DEFAULT_DRIFT_TOLERANCE, replay
from app.ledger.store import LedgerStore
from app.ledger.types import DriftedRow, MaintenanceReport, ReconcileReport, RowFailure, StreamKey

logger = logging.getLogger(__name__)


def format_update_line(row: DriftedRow) -> str:
    return (
        f"  {row.occurred_at:%Y-%m-%d} #{row.id}: {row.signed_quantity:+.2f} "
        f"→ running {row.old_balance:.2f} → {row.new_balance:.2f} ({row.delta:+.2f})"
    )


class Reconciler:
    """Writes replayed balances back to a store, one row at a time.

    Only rows whose stored balance drifted are touched, so running it again
    on an unchanged stream is a no-op. A row that fails to update is reported
    and left for the next run.
    """

    def __init__(self, store: LedgerStore, tolerance: float = DEFAULT_DRIFT_TOLERANCE) -> None:
        self.store = store
        self.tolerance = tolerance

    @property
    def ledger(self) -> str:
        return self.store.spec.name

    def reconcile(self, stream_key: StreamKey) -> ReconcileReport:
        label = self.store.spec.format_key(stream_key)
        result = replay(self.store, stream_key, self.tolerance)
        report = ReconcileReport(
            ledger=self.ledger,
            stream_key=label,
            examined=result.examined,
            final_balance=result.final_balance,
        )
        report.logs.append(f"{label}: {result.examined} transactions, {len(result.drifted)} drifted")

        for row in result.drifted:
            try:
                self.store.update_balance(row.id, row.new_balance)
            except RowUpdateFailure as exc:
                report.failures.append(RowFailure(id=row.id, reason=exc.reason))
                report.logs.append(f"  failed #{row.id}: {exc.reason}")
                logger.warning("Running balance update failed for %s row %s: %s", self.ledger, row.id, exc.reason)
                continue
            report.updated += 1
            report.logs.append(format_update_line(row))

        report.logs.append(f"{label}: final balance {result.final_balance:.2f}")
        logger.info(
            "Reconciled %s stream %s: examined=%s updated=%s failed=%s balance=%.2f",
            self.ledger,
            label,
            report.examined,
            report.updated,
            report.failed,
            report.final_balance,
        )
        return report

    def reconcile_many(self, stream_keys: Iterable[StreamKey]) -> MaintenanceReport:
        report = MaintenanceReport(ledger=self.ledger)
        seen: set = set()
        for stream_key in stream_keys:
            if stream_key in seen:
                continue
            seen.add(stream_key)
            try:
                report.streams.append(self.reconcile(stream_key))
            except FetchFailure as exc:
                label = self.store.spec.format_key(stream_key)
                report.errors[label] = exc.reason
                logger.error("Skipping %s stream %s: %s", self.ledger, label, exc.reason)
        return report

    def reconcile_all(self) -> MaintenanceReport:
        return self.reconcile_many(self.store.known_stream_keys())
