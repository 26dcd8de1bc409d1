import logging
from typing import Any, Protocol

from sqlalchemy import and_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.ledger.errors import FetchFailure, RowUpdateFailure
from app.ledger.types import LedgerEntry, StreamKey, StreamSpec

logger = logging.getLogger(__name__)


class LedgerStore(Protocol):
    spec: StreamSpec

    def fetch_all_by_stream(self, stream_key: StreamKey) -> list[LedgerEntry]: ...

    def fetch_tail_by_stream(self, stream_key: StreamKey) -> LedgerEntry | None: ...

    def update_balance(self, entry_id: Any, new_balance: float) -> None: ...

    def insert(self, record: Any) -> Any: ...

    def known_stream_keys(self) -> list[StreamKey]: ...


class SqlAlchemyLedgerStore:
    """Ledger store over one ORM model; every write commits on its own.

    Balance writes bypass the identity map, so reads always repopulate rows
    already loaded in the session.
    """

    def __init__(self, db: Session, model: type, spec: StreamSpec) -> None:
        self.db = db
        self.model = model
        self.spec = spec

    def _column(self, name: str):
        return getattr(self.model, name)

    def _stream_clause(self, stream_key: StreamKey):
        values = self.spec.key_values(stream_key)
        return and_(*(self._column(name) == value for name, value in zip(self.spec.key_fields, values)))

    def _canonical_order(self, descending: bool = False) -> list:
        columns = [
            self._column(self.spec.occurred_field),
            self._column(self.spec.recorded_field),
            self.model.id,
        ]
        if descending:
            return [column.desc() for column in columns]
        return [column.asc() for column in columns]

    def fetch_all_by_stream(self, stream_key: StreamKey) -> list[LedgerEntry]:
        query = (
            select(self.model)
            .where(self._stream_clause(stream_key))
            .order_by(*self._canonical_order())
            .execution_options(populate_existing=True)
        )
        try:
            records = self.db.scalars(query).all()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise FetchFailure(self.spec.format_key(stream_key), str(exc)) from exc
        return [self.spec.to_entry(record) for record in records]

    def fetch_tail_by_stream(self, stream_key: StreamKey) -> LedgerEntry | None:
        query = (
            select(self.model)
            .where(self._stream_clause(stream_key))
            .order_by(*self._canonical_order(descending=True))
            .limit(1)
            .execution_options(populate_existing=True)
        )
        try:
            record = self.db.scalar(query)
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise FetchFailure(self.spec.format_key(stream_key), str(exc)) from exc
        if record is None:
            return None
        return self.spec.to_entry(record)

    def update_balance(self, entry_id: Any, new_balance: float) -> None:
        values: dict[str, Any] = {self.spec.balance_field: new_balance}
        if hasattr(self.model, "updated_at"):
            # Keep updated_at untouched; only the derived column moves.
            values["updated_at"] = self.model.updated_at
        statement = update(self.model).where(self.model.id == entry_id).values(values)
        try:
            result = self.db.execute(statement, execution_options={"synchronize_session": False})
            if result.rowcount == 0:
                self.db.rollback()
                raise RowUpdateFailure(entry_id, "row no longer exists")
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise RowUpdateFailure(entry_id, str(exc)) from exc

    def insert(self, record: Any) -> Any:
        self.db.add(record)
        self.db.commit()
        self.db.refresh(record)
        logger.debug(
            "Inserted %s row %s with running balance %s",
            self.spec.name,
            record.id,
            getattr(record, self.spec.balance_field),
        )
        return record

    def known_stream_keys(self) -> list[StreamKey]:
        columns = [self._column(name) for name in self.spec.key_fields]
        query = select(*columns).distinct()
        try:
            rows = self.db.execute(query).all()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise FetchFailure(self.spec.name, str(exc)) from exc
        keys = [self.spec.key_from_values(tuple(row)) for row in rows]
        return sorted(keys, key=self.spec.format_key)
