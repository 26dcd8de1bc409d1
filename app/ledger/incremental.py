import threading
import weakref
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from app.ledger.store import LedgerStore
from app.ledger.types import StreamKey


class _StreamLock:
    __slots__ = ("lock", "__weakref__")

    def __init__(self) -> None:
        self.lock = threading.Lock()


_registry_lock = threading.Lock()
# Entries disappear once no caller holds the lock, so one-off streams do not pile up.
_stream_locks: "weakref.WeakValueDictionary[tuple[str, StreamKey], _StreamLock]" = weakref.WeakValueDictionary()


@contextmanager
def stream_lock(ledger: str, stream_key: StreamKey) -> Iterator[None]:
    key = (ledger, stream_key)
    with _registry_lock:
        entry = _stream_locks.get(key)
        if entry is None:
            entry = _StreamLock()
            _stream_locks[key] = entry
    with entry.lock:
        yield


def current_balance(store: LedgerStore, stream_key: StreamKey) -> float:
    tail = store.fetch_tail_by_stream(stream_key)
    return tail.running_balance if tail else 0.0


def is_backdated(store: LedgerStore, record: Any) -> bool:
    """True when ``record`` would land before the current tail of its stream."""
    spec = store.spec
    tail = store.fetch_tail_by_stream(spec.stream_key(record))
    if tail is None:
        return False
    return getattr(record, spec.occurred_field) < tail.occurred_at


def append_with_balance(store: LedgerStore, record: Any) -> Any:
    """Store ``record`` with its balance computed from the stream tail.

    Correct only for appends at the tail. A backdated record leaves it and
    every later row wrong until the stream is reconciled.
    """
    spec = store.spec
    stream_key = spec.stream_key(record)
    with stream_lock(spec.name, stream_key):
        previous = current_balance(store, stream_key)
        setattr(record, spec.balance_field, previous + float(spec.signed_quantity(record)))
        return store.insert(record)
