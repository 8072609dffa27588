"""Persistent "last processed time" cursor."""

from __future__ import annotations

from sms_ledger.application.ports.collaborators import KeyValueStore
from sms_ledger.domain.errors import StorageError, compose_error_message

WATERMARK_KEY = "last_processed_time"


class WatermarkStore:
    """Monotonic epoch-millis cursor over already-considered messages."""

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    def get(self) -> int:
        """Return the stored watermark, ``0`` when none was saved yet."""
        raw_value = self._store.get(WATERMARK_KEY)
        if raw_value is None:
            return 0
        try:
            return int(raw_value)
        except ValueError as exc:
            raise StorageError(
                message=compose_error_message(
                    cause=f"Stored watermark {raw_value!r} is not an integer.",
                    action="Clear the ledger to reset the watermark.",
                ),
                details={"key": WATERMARK_KEY},
            ) from exc

    def advance(self, timestamp: int) -> int:
        """Move the watermark forward to ``timestamp``; never moves it back."""
        current = self.get()
        if timestamp <= current:
            return current
        self._store.set(WATERMARK_KEY, str(timestamp))
        return timestamp

    def reset(self) -> None:
        self._store.remove(WATERMARK_KEY)
