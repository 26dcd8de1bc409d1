"""Chronological replay of a single balance stream.

Rows are ordered by the date the caller gave them and then by the time the
server recorded them, so two entries on the same day keep insertion order.
Replay never writes; it only reports which stored balances disagree with the
recomputed ones.
"""

from app.ledger.store import LedgerStore
from app.ledger.types import DriftedRow, LedgerEntry, ReplayResult, StreamKey

DEFAULT_DRIFT_TOLERANCE = 0.01


def canonical_order(entry: LedgerEntry) -> tuple:
    return (entry.occurred_at, entry.recorded_at)


def replay_entries(
    stream_key: StreamKey,
    entries: list[LedgerEntry],
    tolerance: float = DEFAULT_DRIFT_TOLERANCE,
) -> ReplayResult:
    # sorted() is stable, so rows with identical keys keep fetch order.
    ordered = sorted(entries, key=canonical_order)
    balance = 0.0
    drifted: list[DriftedRow] = []
    for entry in ordered:
        balance += entry.signed_quantity
        if abs(balance - entry.running_balance) > tolerance:
            drifted.append(
                DriftedRow(
                    id=entry.id,
                    occurred_at=entry.occurred_at,
                    signed_quantity=entry.signed_quantity,
                    old_balance=entry.running_balance,
                    new_balance=balance,
                )
            )
    return ReplayResult(
        stream_key=stream_key,
        drifted=drifted,
        final_balance=balance,
        examined=len(ordered),
    )


def replay(
    store: LedgerStore,
    stream_key: StreamKey,
    tolerance: float = DEFAULT_DRIFT_TOLERANCE,
) -> ReplayResult:
    entries = store.fetch_all_by_stream(stream_key)
    return replay_entries(stream_key, entries, tolerance)
