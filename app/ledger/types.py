from collections.abc import Callable, Hashable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Literal

StreamKey = Hashable
ReportStatus = Literal["consistent", "updated", "partial"]


@dataclass(frozen=True)
class LedgerEntry:
    """Engine view of one ledger row."""

    id: Any
    stream_key: StreamKey
    occurred_at: datetime
    recorded_at: datetime
    signed_quantity: float
    running_balance: float


def _key_part(value: Any) -> str:
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def format_stream_key(key: StreamKey) -> str:
    if isinstance(key, tuple):
        return ":".join(_key_part(part) for part in key)
    return _key_part(key)


@dataclass(frozen=True)
class StreamSpec:
    """Binds the generic engine to one kind of ledger row.

    ``key_fields`` names the record attributes whose values form the stream
    key (a scalar for one field, a tuple otherwise). ``signed_quantity``
    returns the row's normalized delta. ``parse_key`` turns an operator
    supplied string back into a key and raises ``ValueError`` on garbage.
    """

    name: str
    key_fields: tuple[str, ...]
    signed_quantity: Callable[[Any], float]
    parse_key: Callable[[str], StreamKey]
    balance_field: str = "running_total"
    occurred_field: str = "date"
    recorded_field: str = "created_at"

    def stream_key(self, record: Any) -> StreamKey:
        values = tuple(getattr(record, name) for name in self.key_fields)
        if len(values) == 1:
            return values[0]
        return values

    def key_values(self, key: StreamKey) -> tuple:
        if len(self.key_fields) == 1:
            return (key,)
        return tuple(key)

    def key_from_values(self, values: tuple) -> StreamKey:
        if len(self.key_fields) == 1:
            return values[0]
        return tuple(values)

    def format_key(self, key: StreamKey) -> str:
        return format_stream_key(key)

    def to_entry(self, record: Any) -> LedgerEntry:
        return LedgerEntry(
            id=record.id,
            stream_key=self.stream_key(record),
            occurred_at=getattr(record, self.occurred_field),
            recorded_at=getattr(record, self.recorded_field),
            signed_quantity=float(self.signed_quantity(record)),
            running_balance=float(getattr(record, self.balance_field) or 0.0),
        )


@dataclass(frozen=True)
class DriftedRow:
    id: Any
    occurred_at: datetime
    signed_quantity: float
    old_balance: float
    new_balance: float

    @property
    def delta(self) -> float:
        return self.new_balance - self.old_balance


@dataclass
class ReplayResult:
    stream_key: StreamKey
    drifted: list[DriftedRow]
    final_balance: float
    examined: int

    @property
    def is_consistent(self) -> bool:
        return not self.drifted


@dataclass(frozen=True)
class RowFailure:
    id: Any
    reason: str


@dataclass
class ReconcileReport:
    ledger: str
    stream_key: str
    examined: int = 0
    updated: int = 0
    failures: list[RowFailure] = field(default_factory=list)
    final_balance: float = 0.0
    logs: list[str] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return len(self.failures)

    @property
    def status(self) -> ReportStatus:
        if self.failures:
            return "partial"
        if self.updated:
            return "updated"
        return "consistent"


@dataclass
class MaintenanceReport:
    ledger: str
    streams: list[ReconcileReport] = field(default_factory=list)
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def examined(self) -> int:
        return sum(report.examined for report in self.streams)

    @property
    def updated(self) -> int:
        return sum(report.updated for report in self.streams)

    @property
    def failed(self) -> int:
        return sum(report.failed for report in self.streams)

    @property
    def final_balances(self) -> dict[str, float]:
        return {report.stream_key: report.final_balance for report in self.streams}

    @property
    def logs(self) -> list[str]:
        lines: list[str] = []
        for report in self.streams:
            lines.extend(report.logs)
        for stream, reason in self.errors.items():
            lines.append(f"{stream}: fetch failed, {reason}")
        return lines

    @property
    def status(self) -> ReportStatus:
        if self.errors or self.failed:
            return "partial"
        if self.updated:
            return "updated"
        return "consistent"
