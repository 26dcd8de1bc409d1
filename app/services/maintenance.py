import logging

from sqlalchemy.orm import Session

from app.ledger import LedgerError, MaintenanceReport
from app.services.ledgers import LEDGERS, reconcile_ledger

logger = logging.getLogger(__name__)


def run_scheduled_maintenance(db: Session) -> list[MaintenanceReport]:
    """Reconcile every stream of every ledger; one unreadable ledger does not stop the rest."""
    reports: list[MaintenanceReport] = []
    for ledger in LEDGERS:
        try:
            report = reconcile_ledger(db, ledger)
        except LedgerError as exc:
            logger.error("Scheduled maintenance skipped %s: %s", ledger, exc)
            continue
        reports.append(report)
        if report.status != "consistent":
            logger.info(
                "Scheduled maintenance on %s: status=%s updated=%s failed=%s",
                ledger,
                report.status,
                report.updated,
                report.failed,
            )
    return reports
