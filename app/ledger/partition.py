from typing import Any

from app.ledger.errors import UnknownStreamKey
from app.ledger.types import StreamKey, StreamSpec
from app.models.ledger import BucketType, StockCategory, TransactionType, Warehouse


def normalize_name(name: str) -> str:
    return " ".join(name.split()).lower()


def _parse_inventory_key(raw: str) -> tuple[BucketType, Warehouse]:
    bucket, sep, warehouse = raw.strip().upper().partition(":")
    if not sep:
        raise ValueError("expected BUCKET_TYPE:WAREHOUSE")
    return BucketType(bucket.strip()), Warehouse(warehouse.strip())


def _parse_stock_key(raw: str) -> StockCategory:
    return StockCategory(raw.strip().upper())


def _parse_statement_key(raw: str) -> str:
    key = normalize_name(raw)
    if not key:
        raise ValueError("empty counterparty name")
    return key


def _expense_signed_amount(record: Any) -> float:
    amount = abs(float(record.amount))
    return amount if record.type == TransactionType.INCOME else -amount


INVENTORY_STREAMS = StreamSpec(
    name="inventory",
    key_fields=("bucket_type", "warehouse"),
    signed_quantity=lambda record: record.quantity,
    parse_key=_parse_inventory_key,
)

STOCK_STREAMS = StreamSpec(
    name="stock",
    key_fields=("category",),
    signed_quantity=lambda record: record.quantity,
    parse_key=_parse_stock_key,
)

STATEMENT_STREAMS = StreamSpec(
    name="statements",
    key_fields=("name_key",),
    signed_quantity=_expense_signed_amount,
    parse_key=_parse_statement_key,
    balance_field="running_balance",
)

STREAM_SPECS: dict[str, StreamSpec] = {
    spec.name: spec for spec in (INVENTORY_STREAMS, STOCK_STREAMS, STATEMENT_STREAMS)
}


def get_stream_spec(ledger: str) -> StreamSpec:
    spec = STREAM_SPECS.get(ledger.strip().lower())
    if spec is None:
        raise UnknownStreamKey(ledger)
    return spec


def parse_stream_key(spec: StreamSpec, raw: str) -> StreamKey:
    try:
        return spec.parse_key(raw)
    except (ValueError, KeyError) as exc:
        raise UnknownStreamKey(spec.name, raw) from exc
