from datetime import datetime

from sqlalchemy import text

from app.models.ledger import StockCategory, StockTransaction, StockTransactionType, StockUnit
from app.services.ledgers import record_transaction
from app.services.maintenance import run_scheduled_maintenance


def _urea(day: int, kg: float) -> StockTransaction:
    return StockTransaction(
        date=datetime(2024, 1, day),
        type=StockTransactionType.ADD_UREA,
        category=StockCategory.UREA,
        quantity=kg,
        unit=StockUnit.KG,
    )


def test_scheduled_pass_repairs_every_ledger(db):
    record_transaction(db, "stock", _urea(1, 360.0))
    record_transaction(db, "stock", _urea(2, 90.0))
    db.execute(text("UPDATE stock_transactions SET running_total = 0"))
    db.commit()

    reports = run_scheduled_maintenance(db)

    by_ledger = {report.ledger: report for report in reports}
    assert sorted(by_ledger) == ["inventory", "statements", "stock"]
    assert by_ledger["stock"].updated == 2
    assert by_ledger["inventory"].status == "consistent"
    assert all(report.status == "consistent" for report in run_scheduled_maintenance(db))


def test_unreadable_ledger_does_not_stop_the_pass(db, caplog):
    db.execute(text("DROP TABLE inventory_transactions"))
    db.commit()
    record_transaction(db, "stock", _urea(1, 45.0))

    reports = run_scheduled_maintenance(db)

    assert [report.ledger for report in reports] == ["stock", "statements"]
    assert "Scheduled maintenance skipped inventory" in caplog.text
