"""Key-value persistence adapters."""

from __future__ import annotations

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from sms_ledger.db.models.key_value_entry import KeyValueEntry
from sms_ledger.db.session import session_scope
from sms_ledger.domain.errors import StorageError, compose_error_message


class SqlAlchemyKeyValueStore:
    """Key-value store persisted in the ``key_value_entries`` table.

    Each call runs in its own transaction so a completed ``set`` is durable
    before the caller moves on.
    """

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def get(self, key: str) -> str | None:
        statement = select(KeyValueEntry.value).where(KeyValueEntry.key == key)
        try:
            with session_scope(self._session_factory) as session:
                return session.scalar(statement)
        except SQLAlchemyError as exc:
            raise _storage_error("read", key) from exc

    def set(self, key: str, value: str) -> None:
        try:
            with session_scope(self._session_factory) as session:
                entry = session.get(KeyValueEntry, key)
                if entry is None:
                    session.add(KeyValueEntry(key=key, value=value))
                else:
                    entry.value = value
        except SQLAlchemyError as exc:
            raise _storage_error("write", key) from exc

    def remove(self, key: str) -> None:
        statement = delete(KeyValueEntry).where(KeyValueEntry.key == key)
        try:
            with session_scope(self._session_factory) as session:
                session.execute(statement)
        except SQLAlchemyError as exc:
            raise _storage_error("delete", key) from exc


class InMemoryKeyValueStore:
    """Process-local key-value store used by tests and dry runs."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        self.values[key] = value

    def remove(self, key: str) -> None:
        self.values.pop(key, None)


def _storage_error(operation: str, key: str) -> StorageError:
    return StorageError(
        message=compose_error_message(
            cause=f"Failed to {operation} ledger key '{key}'.",
            action="Verify the database is reachable and retry.",
        ),
        details={"key": key, "operation": operation},
    )
