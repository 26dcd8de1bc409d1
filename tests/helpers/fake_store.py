"""In-memory ledger store for exercising the engine without a database."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from app.ledger import FetchFailure, LedgerEntry, RowUpdateFailure, StreamSpec

T0 = datetime(2024, 1, 1, 9, 0, 0)


@dataclass
class Row:
    id: int | None
    stream: str
    date: datetime
    quantity: float
    running_total: float = 0.0
    created_at: datetime | None = None


FAKE_STREAMS = StreamSpec(
    name="fake",
    key_fields=("stream",),
    signed_quantity=lambda row: row.quantity,
    parse_key=str,
)


def day(n: int) -> datetime:
    """Midnight of January ``n``, 2024."""
    return datetime(2024, 1, n)


class FakeLedgerStore:
    """Dict-backed store that records every balance write.

    ``failing_ids`` makes ``update_balance`` raise for those rows and
    ``unreadable_streams`` makes fetches for those keys raise.
    """

    def __init__(self, spec: StreamSpec = FAKE_STREAMS) -> None:
        self.spec = spec
        self.rows: dict[int, Row] = {}
        self.writes: list[tuple[int, float]] = []
        self.failing_ids: set[int] = set()
        self.unreadable_streams: set[str] = set()
        self._next_id = 1
        self._clock = T0

    def add(self, stream: str, date: datetime, quantity: float, running_total: float = 0.0) -> Row:
        """Seed a row as-is, without computing its balance."""
        return self._store(Row(id=None, stream=stream, date=date, quantity=quantity, running_total=running_total))

    def add_chain(self, stream: str, quantities: list[float], start_day: int = 1, step: int = 4) -> list[Row]:
        """Seed consistent rows on successive dates."""
        rows = []
        balance = 0.0
        for index, quantity in enumerate(quantities):
            balance += quantity
            rows.append(self.add(stream, day(start_day + index * step), quantity, balance))
        return rows

    def _store(self, row: Row) -> Row:
        row.id = self._next_id
        self._next_id += 1
        if row.created_at is None:
            self._clock += timedelta(seconds=1)
            row.created_at = self._clock
        self.rows[row.id] = row
        return row

    def ordered(self, stream: str) -> list[Row]:
        return sorted(
            (row for row in self.rows.values() if row.stream == stream),
            key=lambda row: (row.date, row.created_at, row.id),
        )

    def balances(self, stream: str) -> list[float]:
        return [row.running_total for row in self.ordered(stream)]

    def fetch_all_by_stream(self, stream_key: str) -> list[LedgerEntry]:
        if stream_key in self.unreadable_streams:
            raise FetchFailure(stream_key, "connection reset")
        # Insertion order; sorting is left to the replay.
        return [self.spec.to_entry(row) for row in self.rows.values() if row.stream == stream_key]

    def fetch_tail_by_stream(self, stream_key: str) -> LedgerEntry | None:
        entries = self.fetch_all_by_stream(stream_key)
        if not entries:
            return None
        return max(entries, key=lambda entry: (entry.occurred_at, entry.recorded_at, entry.id))

    def update_balance(self, entry_id: Any, new_balance: float) -> None:
        if entry_id in self.failing_ids:
            raise RowUpdateFailure(entry_id, "lock timeout")
        if entry_id not in self.rows:
            raise RowUpdateFailure(entry_id, "row no longer exists")
        self.rows[entry_id].running_total = new_balance
        self.writes.append((entry_id, new_balance))

    def insert(self, record: Row) -> Row:
        return self._store(record)

    def known_stream_keys(self) -> list[str]:
        return sorted({row.stream for row in self.rows.values()})
