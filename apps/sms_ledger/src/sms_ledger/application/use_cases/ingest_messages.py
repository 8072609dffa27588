"""Incremental ingestion of inbox messages into the transaction ledger."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterator, Sequence
from secrets import token_hex

from sms_ledger.application.ports.collaborators import MessageSource
from sms_ledger.application.schemas.transactions import (
    RawMessage,
    Summary,
    TransactionRecord,
)
from sms_ledger.application.services.extraction_client import ExtractionClient
from sms_ledger.application.services.summary_service import summarize
from sms_ledger.domain.errors import LedgerNotEmptyError
from sms_ledger.domain.message_filter import is_candidate
from sms_ledger.infrastructure.stores.transaction_store import TransactionStore
from sms_ledger.infrastructure.stores.watermark_store import WatermarkStore

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 5


def current_time_millis() -> int:
    """Return the wall clock as epoch milliseconds."""
    return time.time_ns() // 1_000_000


def chunked(
    messages: Sequence[RawMessage], size: int
) -> Iterator[Sequence[RawMessage]]:
    """Yield consecutive slices of at most ``size`` messages."""
    if size < 1:
        raise ValueError("Chunk size must be at least 1")
    for start in range(0, len(messages), size):
        yield messages[start : start + size]


def build_record_id(message: RawMessage, position: int) -> str:
    """Build a record id from the message timestamp and batch position."""
    return f"{message.timestamp}-{position}-{token_hex(4)}"


class IngestionPipeline:
    """Fetch, filter, extract, append and advance the watermark.

    Every public mutating operation runs under one lock, so a foreground
    refresh and a background tick never read the same watermark.
    """

    def __init__(
        self,
        *,
        message_source: MessageSource,
        extraction_client: ExtractionClient,
        transaction_store: TransactionStore,
        watermark_store: WatermarkStore,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        now_provider: Callable[[], int] | None = None,
    ) -> None:
        if chunk_size < 1:
            raise ValueError("Chunk size must be at least 1")
        self._message_source = message_source
        self._extraction_client = extraction_client
        self._transaction_store = transaction_store
        self._watermark_store = watermark_store
        self._chunk_size = chunk_size
        self._now_provider = now_provider or current_time_millis
        self._lock = threading.Lock()
        self._last_summary: Summary | None = None

    @property
    def last_summary(self) -> Summary | None:
        """Summary recomputed by the most recent cycle that added records."""
        return self._last_summary

    def sync_since(self, watermark: int | None = None) -> list[TransactionRecord]:
        """Process messages in ``[watermark, now)`` and return new records.

        The stored watermark wins over an older ``watermark`` argument, so an
        already-advanced window is never processed twice.
        """
        with self._lock:
            stored = self._watermark_store.get()
            lower = stored if watermark is None else max(watermark, stored)
            return self._run_cycle(lower)

    def load_all(self) -> list[TransactionRecord]:
        """Process the entire inbox history, ``[0, now)``.

        Only valid on an empty ledger; rescanning would store every
        transaction a second time under new ids.
        """
        with self._lock:
            stored = self._transaction_store.list()
            if stored:
                raise LedgerNotEmptyError(details={"transactions": len(stored)})
            return self._run_cycle(0)

    def refresh(self) -> list[TransactionRecord]:
        """Foreground trigger: full load on first run, catch-up afterwards."""
        with self._lock:
            stored = self._watermark_store.get()
            if stored == 0 and self._transaction_store.is_empty():
                return self._run_cycle(0)
            return self._run_cycle(stored)

    def clear_all(self) -> None:
        """Delete every record and reset the watermark to zero."""
        with self._lock:
            self._transaction_store.clear()
            self._watermark_store.reset()
            self._last_summary = None
            logger.info("Ledger cleared; next sync rescans the full history")

    def transactions(self) -> list[TransactionRecord]:
        return self._transaction_store.list()

    def summary(self) -> Summary:
        return summarize(self._transaction_store.list())

    def watermark(self) -> int:
        return self._watermark_store.get()

    def _run_cycle(self, lower: int) -> list[TransactionRecord]:
        now = self._now_provider()
        logger.info("Sync cycle started for window [%s, %s)", lower, now)

        fetched = self._message_source.list(min_date=lower, max_date=now)
        batch = [message for message in fetched if lower <= message.timestamp < now]

        records = self.process_batch(batch)
        if records:
            updated = self._transaction_store.append(records)
            self._last_summary = summarize(updated)
            logger.info(
                "Stored %s new transactions; totals debit=%s credit=%s net=%s",
                len(records),
                self._last_summary.debit,
                self._last_summary.credit,
                self._last_summary.total,
            )

        advanced_to = self._watermark_store.advance(now)
        logger.info(
            "Sync cycle finished: %s messages fetched, %s transactions, "
            "watermark=%s",
            len(batch),
            len(records),
            advanced_to,
        )
        return records

    def process_batch(
        self, messages: Sequence[RawMessage]
    ) -> list[TransactionRecord]:
        """Extract records from ``messages`` chunk by chunk, in order."""
        records: list[TransactionRecord] = []
        position = 0
        for chunk_index, chunk in enumerate(chunked(messages, self._chunk_size)):
            chunk_records: list[TransactionRecord] = []
            for message in chunk:
                record = self._extract_record(message, position)
                position += 1
                if record is not None:
                    chunk_records.append(record)
            logger.debug(
                "Chunk %s: %s of %s messages produced transactions",
                chunk_index,
                len(chunk_records),
                len(chunk),
            )
            records.extend(chunk_records)
        return records

    def _extract_record(
        self, message: RawMessage, position: int
    ) -> TransactionRecord | None:
        if not is_candidate(message.body):
            return None

        fields = self._extraction_client.extract(message.body)
        if fields is None:
            return None

        return TransactionRecord(
            id=build_record_id(message, position),
            amount=fields.amount,
            type=fields.type,
            payment_method=fields.payment_method,
            merchant=fields.merchant,
            date=fields.date,
            original_message=message.body,
            timestamp=message.timestamp,
        )
