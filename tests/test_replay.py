from datetime import datetime

import pytest

from app.ledger import DEFAULT_DRIFT_TOLERANCE, FetchFailure, LedgerEntry, replay, replay_entries
from tests.helpers.fake_store import day


def _entry(entry_id, occurred_at, recorded_at, quantity, balance):
    return LedgerEntry(
        id=entry_id,
        stream_key="s",
        occurred_at=occurred_at,
        recorded_at=recorded_at,
        signed_quantity=quantity,
        running_balance=balance,
    )


def test_default_tolerance_is_one_cent():
    assert DEFAULT_DRIFT_TOLERANCE == 0.01


def test_empty_stream_is_consistent():
    result = replay_entries("s", [])

    assert result.is_consistent
    assert result.final_balance == 0.0
    assert result.examined == 0


def test_single_entry_balance_equals_its_quantity():
    result = replay_entries("s", [_entry(1, day(1), day(1), 4.0, 0.0)])

    assert result.final_balance == 4.0
    assert [(row.id, row.old_balance, row.new_balance) for row in result.drifted] == [(1, 0.0, 4.0)]


def test_orders_by_occurred_then_recorded():
    second_on_fifth = _entry("b", day(5), datetime(2024, 1, 9, 12, 0, 2), 2.0, 0.0)
    first_on_fifth = _entry("a", day(5), datetime(2024, 1, 9, 12, 0, 1), 1.0, 0.0)
    third = _entry("c", day(3), datetime(2024, 1, 9, 12, 0, 3), 10.0, 0.0)

    result = replay_entries("s", [second_on_fifth, first_on_fifth, third])

    assert [row.id for row in result.drifted] == ["c", "a", "b"]
    assert [row.new_balance for row in result.drifted] == [10.0, 11.0, 13.0]


def test_identical_sort_keys_keep_fetch_order():
    stamp = day(2)
    rows = [_entry(7, stamp, stamp, 1.0, 0.0), _entry(3, stamp, stamp, 2.0, 0.0)]

    result = replay_entries("s", rows)

    assert [row.id for row in result.drifted] == [7, 3]


@pytest.mark.parametrize(
    ("stored", "drifted"),
    [(10.005, False), (9.995, False), (10.02, True), (9.98, True)],
)
def test_drift_tolerance_boundary(stored, drifted):
    result = replay_entries("s", [_entry(1, day(1), day(1), 10.0, stored)])

    assert (not result.is_consistent) is drifted


def test_tolerance_can_be_widened():
    result = replay_entries("s", [_entry(1, day(1), day(1), 10.0, 10.5)], tolerance=1.0)

    assert result.is_consistent


def test_final_balance_is_sum_of_quantities():
    quantities = [10.0, -3.0, 2.5, -0.5, 7.0]
    entries = [_entry(i, day(i + 1), day(i + 1), q, 0.0) for i, q in enumerate(quantities)]

    result = replay_entries("s", entries)

    assert result.final_balance == pytest.approx(sum(quantities))
    assert result.examined == len(quantities)


def test_drift_report_carries_old_and_new_balance():
    entries = [
        _entry(1, day(1), day(1), 10.0, 10.0),
        _entry(2, day(2), day(2), 5.0, 20.0),
    ]

    (row,) = replay_entries("s", entries).drifted

    assert row.id == 2
    assert row.old_balance == 20.0
    assert row.new_balance == 15.0
    assert row.delta == -5.0


def test_replay_reads_through_store_without_writing(store):
    store.add_chain("a", [10.0, 5.0])
    store.add("a", day(20), 1.0, running_total=0.0)

    result = replay(store, "a")

    assert [row.new_balance for row in result.drifted] == [16.0]
    assert store.writes == []


def test_replay_propagates_fetch_failure(store):
    store.unreadable_streams.add("a")

    with pytest.raises(FetchFailure):
        replay(store, "a")
