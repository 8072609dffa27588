"""Persistent ordered list of extracted transactions."""

from __future__ import annotations

from collections.abc import Sequence

from pydantic import ValidationError

from sms_ledger.application.ports.collaborators import KeyValueStore
from sms_ledger.application.schemas.transactions import (
    TRANSACTION_LIST_ADAPTER,
    TransactionRecord,
)
from sms_ledger.domain.errors import StorageError, compose_error_message

TRANSACTIONS_KEY = "transactions"


class TransactionStore:
    """Append-only transaction list serialized as one JSON document."""

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    def list(self) -> list[TransactionRecord]:
        raw_value = self._store.get(TRANSACTIONS_KEY)
        if raw_value is None:
            return []
        try:
            return TRANSACTION_LIST_ADAPTER.validate_json(raw_value)
        except ValidationError as exc:
            raise StorageError(
                message=compose_error_message(
                    cause="Stored transactions are not a valid record list.",
                    action="Clear the ledger and run a full load again.",
                ),
                details={"key": TRANSACTIONS_KEY, "errors": exc.error_count()},
            ) from exc

    def is_empty(self) -> bool:
        return not self.list()

    def append(self, records: Sequence[TransactionRecord]) -> list[TransactionRecord]:
        """Append records in order with a single write; return the full list."""
        existing = self.list()
        if not records:
            return existing

        known_ids = {record.id for record in existing}
        for record in records:
            if record.id in known_ids:
                raise StorageError(
                    message=compose_error_message(
                        cause=f"Transaction id '{record.id}' already exists.",
                        action="Retry the sync to generate fresh ids.",
                    ),
                    details={"id": record.id},
                )
            known_ids.add(record.id)

        updated = [*existing, *records]
        self._store.set(
            TRANSACTIONS_KEY,
            TRANSACTION_LIST_ADAPTER.dump_json(updated, by_alias=True).decode("utf-8"),
        )
        return updated

    def clear(self) -> None:
        self._store.remove(TRANSACTIONS_KEY)
