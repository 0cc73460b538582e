"""
app/repositories/batch_writer.py

Batched persistence of canonical records under an explicit write policy.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any, Callable, Protocol

from sqlalchemy import delete, func, insert, select, tuple_
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.ingestion import WriteOutcome, WritePolicy
from app.errors import ConfigurationError

logger = logging.getLogger(__name__)

_DEFAULT_BATCH_SIZE = 500
_UPSERT_INSERTS: dict[str, Callable[..., Any]] = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}
_IMMUTABLE_COLUMNS = {"id", "created_at"}


class WritableRecord(Protocol):
    @property
    def natural_key(self) -> tuple[str, ...]:
        ...

    def to_payload(self) -> dict[str, Any]:
        ...


class BatchWriter:
    """
    Commits records in capped batches.

    UPSERT inserts or updates in place on ``natural_key``; APPEND always
    inserts. Each batch commits on its own, or runs in a savepoint when the
    session already has a transaction open (the caller then commits). A
    failed batch is rolled back, counted as errored and never retried here.
    """

    def __init__(
        self,
        session: Session,
        model: type[Any],
        *,
        policy: str,
        natural_key: Sequence[str],
        batch_size: int = _DEFAULT_BATCH_SIZE,
    ) -> None:
        if policy not in {WritePolicy.UPSERT, WritePolicy.APPEND}:
            raise ConfigurationError(f"Unknown write policy: {policy}")
        if policy == WritePolicy.UPSERT and not natural_key:
            raise ConfigurationError("UPSERT policy requires a natural key.")
        self._session = session
        self._model = model
        self._policy = policy
        self._natural_key = tuple(natural_key)
        self._batch_size = max(1, batch_size)

    @property
    def policy(self) -> str:
        return self._policy

    def write(self, records: Sequence[WritableRecord]) -> WriteOutcome:
        outcome = WriteOutcome()
        for start in range(0, len(records), self._batch_size):
            batch = records[start : start + self._batch_size]
            outcome = outcome + self._write_batch(batch)
        return outcome

    def delete_matching(self, **filters: Any) -> int:
        """
        Delete rows whose columns equal ``filters``; used to replace a wage
        year before appending it again.
        """

        if not filters:
            raise ConfigurationError("Refusing to delete without filters.")
        stmt = delete(self._model)
        for column_name, value in filters.items():
            stmt = stmt.where(getattr(self._model, column_name) == value)
        with self._transaction_context():
            result = self._session.execute(stmt)
        deleted = result.rowcount or 0
        logger.info(
            "Rows deleted table=%s filters=%s deleted=%s",
            self._model.__tablename__,
            filters,
            deleted,
        )
        return deleted

    def _write_batch(self, batch: Sequence[WritableRecord]) -> WriteOutcome:
        if not batch:
            return WriteOutcome()

        payloads = [record.to_payload() for record in batch]
        try:
            with self._transaction_context():
                if self._policy == WritePolicy.UPSERT:
                    deduped = self._deduplicate_payloads(payloads)
                    existing = self._count_existing(deduped)
                    self._session.execute(self._upsert_statement(deduped))
                    updated = existing + (len(payloads) - len(deduped))
                else:
                    self._session.execute(insert(self._model).values(payloads))
                    updated = 0
        except SQLAlchemyError as exc:
            logger.warning(
                "Batch write failed table=%s policy=%s batch_size=%s error=%s",
                self._model.__tablename__,
                self._policy,
                len(batch),
                exc,
            )
            return WriteOutcome(errored=len(batch), failed_batches=1)

        return WriteOutcome(written=len(batch), updated=updated)

    def _upsert_statement(self, payloads: Sequence[dict[str, Any]]) -> Any:
        dialect_name = self._session.get_bind().dialect.name
        dialect_insert = _UPSERT_INSERTS.get(dialect_name)
        if dialect_insert is None:
            raise ConfigurationError(f"Upsert is not supported for dialect {dialect_name}.")

        stmt = dialect_insert(self._model).values(list(payloads))
        update_columns = {
            column.name: stmt.excluded[column.name]
            for column in self._model.__table__.columns
            if column.name not in self._natural_key
            and column.name not in _IMMUTABLE_COLUMNS
            and column.name in payloads[0]
        }
        if "updated_at" in self._model.__table__.columns:
            update_columns["updated_at"] = func.now()
        return stmt.on_conflict_do_update(index_elements=list(self._natural_key), set_=update_columns)

    def _count_existing(self, payloads: Sequence[dict[str, Any]]) -> int:
        keys = [tuple(payload[column] for column in self._natural_key) for payload in payloads]
        columns = [getattr(self._model, column) for column in self._natural_key]
        if len(columns) == 1:
            condition = columns[0].in_([key[0] for key in keys])
        else:
            condition = tuple_(*columns).in_(keys)
        stmt = select(func.count()).select_from(self._model).where(condition)
        return int(self._session.scalar(stmt) or 0)

    def _deduplicate_payloads(
        self,
        payloads: Sequence[dict[str, Any]],
    ) -> list[dict[str, Any]]:
        # Last occurrence wins, keeping first-seen key order.
        latest: dict[tuple[Any, ...], dict[str, Any]] = {}
        for payload in payloads:
            key = tuple(payload[column] for column in self._natural_key)
            latest[key] = payload
        return list(latest.values())

    def _transaction_context(self) -> Any:
        if self._session.in_transaction():
            return self._session.begin_nested()
        return self._session.begin()
