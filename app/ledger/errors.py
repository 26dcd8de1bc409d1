from typing import Any


class LedgerError(Exception):
    """Base class for running-balance engine failures."""


class FetchFailure(LedgerError):
    def __init__(self, stream_key: Any, reason: str) -> None:
        self.stream_key = stream_key
        self.reason = reason
        super().__init__(f"Could not fetch transactions for stream {stream_key!r}: {reason}")


class RowUpdateFailure(LedgerError):
    def __init__(self, entry_id: Any, reason: str) -> None:
        self.entry_id = entry_id
        self.reason = reason
        super().__init__(f"Could not update running balance of row {entry_id}: {reason}")


class UnknownStreamKey(LedgerError):
    def __init__(self, ledger: str, raw_key: str | None = None) -> None:
        self.ledger = ledger
        self.raw_key = raw_key
        if raw_key is None:
            message = f"Unknown ledger: {ledger}"
        else:
            message = f"Unknown stream key for {ledger}: {raw_key!r}"
        super().__init__(message)
