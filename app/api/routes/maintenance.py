from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.api.deps import CurrentSession, require_admin
from app.core.config import settings
from app.db.database import get_db
from app.ledger import FetchFailure, MaintenanceReport, UnknownStreamKey, parse_stream_key, replay
from app.ledger.store import SqlAlchemyLedgerStore
from app.schemas.ledger import (
    DeleteRecordedAfter,
    DeleteRecordedAfterOut,
    DriftedRowOut,
    DriftReportOut,
    MaintenanceReportOut,
    ReconcileReportOut,
)
from app.services.ledgers import (
    LEDGERS,
    delete_recorded_after,
    get_reconciler,
    get_store,
    reconcile_everything,
)

router = APIRouter(prefix="/admin/ledgers", tags=["Maintenance"])


def _summary_message(report: MaintenanceReport) -> str:
    if report.status == "consistent":
        return "All running totals were already correct. No updates needed."
    message = f"Updated {report.updated} transactions"
    if report.failed:
        message += f", {report.failed} failed; retry needed"
    if report.errors:
        message += f", {len(report.errors)} streams could not be read"
    return message


def _report_out(report: MaintenanceReport) -> MaintenanceReportOut:
    return MaintenanceReportOut(
        ledger=report.ledger,
        status=report.status,
        message=_summary_message(report),
        examined=report.examined,
        updated=report.updated,
        failed=report.failed,
        final_balances=report.final_balances,
        errors=report.errors,
        streams=[ReconcileReportOut.model_validate(stream) for stream in report.streams],
        logs=report.logs,
    )


def _resolve_store(db: Session, ledger: str) -> SqlAlchemyLedgerStore:
    try:
        return get_store(db, ledger)
    except UnknownStreamKey as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


def _resolve_streams(store: SqlAlchemyLedgerStore, stream: str | None) -> list:
    try:
        if stream is not None:
            return [parse_stream_key(store.spec, stream)]
        return store.known_stream_keys()
    except UnknownStreamKey as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except FetchFailure as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))


@router.get("", response_model=list[str])
def list_ledgers(_: CurrentSession = Depends(require_admin)):
    return sorted(LEDGERS)


@router.get("/{ledger}/streams", response_model=list[str])
def list_streams(
    ledger: str,
    _: CurrentSession = Depends(require_admin),
    db: Session = Depends(get_db),
):
    store = _resolve_store(db, ledger)
    return [store.spec.format_key(key) for key in _resolve_streams(store, None)]


@router.get("/{ledger}/drift", response_model=list[DriftReportOut])
def inspect_drift(
    ledger: str,
    stream: str | None = None,
    _: CurrentSession = Depends(require_admin),
    db: Session = Depends(get_db),
):
    store = _resolve_store(db, ledger)
    results: list[DriftReportOut] = []
    for stream_key in _resolve_streams(store, stream):
        try:
            result = replay(store, stream_key, settings.drift_tolerance)
        except FetchFailure as exc:
            raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))
        results.append(
            DriftReportOut(
                ledger=store.spec.name,
                stream_key=store.spec.format_key(stream_key),
                examined=result.examined,
                final_balance=result.final_balance,
                drifted=[DriftedRowOut.model_validate(row) for row in result.drifted],
            )
        )
    return results


@router.post("/{ledger}/reconcile", response_model=MaintenanceReportOut)
def reconcile_ledger_streams(
    ledger: str,
    stream: str | None = None,
    _: CurrentSession = Depends(require_admin),
    db: Session = Depends(get_db),
):
    store = _resolve_store(db, ledger)
    reconciler = get_reconciler(db, store.spec.name)

    if stream is None:
        try:
            report = reconciler.reconcile_all()
        except FetchFailure as exc:
            raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))
    else:
        (stream_key,) = _resolve_streams(store, stream)
        try:
            stream_report = reconciler.reconcile(stream_key)
        except FetchFailure as exc:
            raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))
        report = MaintenanceReport(ledger=store.spec.name, streams=[stream_report])

    db.expire_all()
    return _report_out(report)


@router.post("/reconcile", response_model=list[MaintenanceReportOut])
def reconcile_all_ledgers(
    _: CurrentSession = Depends(require_admin),
    db: Session = Depends(get_db),
):
    try:
        reports = reconcile_everything(db)
    except FetchFailure as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))
    return [_report_out(report) for report in reports]


@router.post("/delete-transactions", response_model=DeleteRecordedAfterOut)
def delete_transactions_recorded_after(
    payload: DeleteRecordedAfter,
    _: CurrentSession = Depends(require_admin),
    db: Session = Depends(get_db),
):
    deleted, reports = delete_recorded_after(db, payload.after_timestamp)
    return DeleteRecordedAfterOut(
        message=f"Deleted {sum(deleted.values())} transactions recorded after {payload.after_timestamp.isoformat()}",
        deleted=deleted,
        reports=[_report_out(report) for report in reports],
    )
