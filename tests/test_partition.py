from types import SimpleNamespace

import pytest

from app.ledger import (
    INVENTORY_STREAMS,
    STATEMENT_STREAMS,
    STOCK_STREAMS,
    UnknownStreamKey,
    get_stream_spec,
    normalize_name,
    parse_stream_key,
)
from app.models.ledger import BucketType, StockCategory, TransactionType, Warehouse
from tests.helpers.fake_store import day


def test_inventory_stream_key_is_bucket_and_warehouse():
    record = SimpleNamespace(bucket_type=BucketType.AL, warehouse=Warehouse.REWA)

    key = INVENTORY_STREAMS.stream_key(record)

    assert key == (BucketType.AL, Warehouse.REWA)
    assert INVENTORY_STREAMS.format_key(key) == "AL:REWA"


def test_inventory_key_round_trips_through_text():
    assert parse_stream_key(INVENTORY_STREAMS, " tata_g:gurh ") == (BucketType.TATA_G, Warehouse.GURH)


@pytest.mark.parametrize("raw", ["TATA_G", "TATA_G:MUMBAI", "NOPE:GURH", ""])
def test_inventory_key_rejects_garbage(raw):
    with pytest.raises(UnknownStreamKey) as exc_info:
        parse_stream_key(INVENTORY_STREAMS, raw)

    assert exc_info.value.ledger == "inventory"
    assert exc_info.value.raw_key == raw


def test_stock_stream_key_is_category():
    assert parse_stream_key(STOCK_STREAMS, "free_def") == StockCategory.FREE_DEF
    with pytest.raises(UnknownStreamKey):
        parse_stream_key(STOCK_STREAMS, "GRAVEL")


def test_statement_key_normalizes_name():
    assert normalize_name("  Ram   Kumar ") == "ram kumar"
    assert parse_stream_key(STATEMENT_STREAMS, "RAM kumar") == "ram kumar"
    with pytest.raises(UnknownStreamKey):
        parse_stream_key(STATEMENT_STREAMS, "   ")


def test_statement_signed_amount_follows_type():
    income = SimpleNamespace(
        id=1,
        name_key="ram",
        date=day(1),
        created_at=day(1),
        amount=100.0,
        type=TransactionType.INCOME,
        running_balance=100.0,
    )
    expense = SimpleNamespace(**{**vars(income), "id": 2, "type": TransactionType.EXPENSE})

    assert STATEMENT_STREAMS.to_entry(income).signed_quantity == 100.0
    assert STATEMENT_STREAMS.to_entry(expense).signed_quantity == -100.0
    assert STATEMENT_STREAMS.to_entry(expense).stream_key == "ram"


def test_get_stream_spec():
    assert get_stream_spec("Inventory") is INVENTORY_STREAMS
    with pytest.raises(UnknownStreamKey, match="Unknown ledger: payroll"):
        get_stream_spec("payroll")
