import gc
import threading

from app.ledger import append_with_balance, current_balance, is_backdated
from app.ledger.incremental import _stream_locks, stream_lock
from tests.helpers.fake_store import Row, day


def test_first_row_starts_from_zero(store):
    stored = append_with_balance(store, Row(id=None, stream="a", date=day(1), quantity=12.0))

    assert stored.running_total == 12.0
    assert current_balance(store, "a") == 12.0


def test_append_adds_to_tail_balance(store):
    store.add_chain("a", [10.0, 5.0])

    stored = append_with_balance(store, Row(id=None, stream="a", date=day(20), quantity=-4.0))

    assert stored.running_total == 11.0
    assert store.balances("a") == [10.0, 15.0, 11.0]


def test_append_reads_only_its_own_stream(store):
    store.add_chain("a", [100.0])

    stored = append_with_balance(store, Row(id=None, stream="b", date=day(2), quantity=1.0))

    assert stored.running_total == 1.0


def test_negative_balance_is_allowed(store):
    stored = append_with_balance(store, Row(id=None, stream="a", date=day(1), quantity=-5.0))

    assert stored.running_total == -5.0


def test_is_backdated_compares_against_tail_date(store):
    store.add_chain("a", [1.0, 1.0])

    assert is_backdated(store, Row(id=None, stream="a", date=day(2), quantity=1.0))
    assert not is_backdated(store, Row(id=None, stream="a", date=day(5), quantity=1.0))
    assert not is_backdated(store, Row(id=None, stream="a", date=day(30), quantity=1.0))
    assert not is_backdated(store, Row(id=None, stream="empty", date=day(1), quantity=1.0))


def test_concurrent_appends_to_one_stream_do_not_lose_updates(store):
    threads = [
        threading.Thread(
            target=append_with_balance,
            args=(store, Row(id=None, stream="a", date=day(1), quantity=1.0)),
        )
        for _ in range(20)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sorted(store.balances("a")) == [float(n) for n in range(1, 21)]


def test_stream_lock_does_not_block_other_streams():
    with stream_lock("fake", "a"):
        acquired = []

        def other_stream():
            with stream_lock("fake", "b"):
                acquired.append(True)

        worker = threading.Thread(target=other_stream)
        worker.start()
        worker.join(timeout=2)

    assert acquired == [True]


def test_stream_lock_registry_releases_idle_streams():
    key = ("statements", "one-off counterparty")

    with stream_lock(*key):
        assert key in _stream_locks
    gc.collect()

    assert key not in _stream_locks
