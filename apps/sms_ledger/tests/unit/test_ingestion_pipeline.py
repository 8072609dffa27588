from __future__ import annotations

import json
import threading
from collections.abc import Callable
from typing import Any

import pytest

from sms_ledger.application.schemas.transactions import (
    RawMessage,
    TransactionRecord,
    TransactionType,
)
from sms_ledger.application.use_cases.ingest_messages import (
    IngestionPipeline,
    chunked,
)
from sms_ledger.domain.errors import (
    LedgerNotEmptyError,
    MessageSourceError,
    StorageError,
)

NOW = 1_700_000_000_000


def _spent(timestamp: int, amount: int) -> RawMessage:
    return RawMessage(
        timestamp=timestamp,
        body=f"INR {amount}.00 spent on ICICI Bank Card XX2002 at Store {amount}",
    )


def _fields(records: list[TransactionRecord]) -> list[tuple[str, str, int]]:
    return [
        (record.amount, record.original_message, record.timestamp)
        for record in records
    ]


def test_sync_since_processes_half_open_window_and_advances_watermark(
    make_pipeline: Callable[..., Any],
) -> None:
    harness = make_pipeline(
        [_spent(NOW - 10, 100), _spent(NOW - 5, 200), _spent(NOW, 300)],
    )

    records = harness.pipeline.sync_since(NOW - 5)

    assert [record.amount for record in records] == ["200.00"]
    assert harness.source.calls == [(NOW - 5, NOW)]
    assert harness.watermark_store.get() == NOW
    assert harness.transaction_store.list() == records


def test_second_sync_only_processes_messages_after_advanced_watermark(
    make_pipeline: Callable[..., Any],
) -> None:
    harness = make_pipeline(
        [_spent(1_000, 10), _spent(2_000, 20), _spent(3_000, 30)]
    )
    harness.clock.now = 2_500

    first = harness.pipeline.sync_since(0)
    harness.clock.now = 5_000
    second = harness.pipeline.sync_since(2_500)

    assert [record.timestamp for record in first] == [1_000, 2_000]
    assert [record.timestamp for record in second] == [3_000]
    assert len(harness.engine.bodies) == 3


def test_stale_watermark_argument_does_not_reprocess_advanced_window(
    make_pipeline: Callable[..., Any],
) -> None:
    harness = make_pipeline([_spent(1_000, 10)], now=2_000)
    harness.pipeline.sync_since(0)
    harness.clock.now = 3_000

    records = harness.pipeline.sync_since(0)

    assert records == []
    assert harness.source.calls[-1] == (2_000, 3_000)
    assert len(harness.engine.bodies) == 1


def test_boundary_message_is_processed_exactly_once_across_windows(
    make_pipeline: Callable[..., Any],
) -> None:
    harness = make_pipeline([_spent(2_000, 10)], now=2_000)

    first = harness.pipeline.sync_since()
    harness.clock.now = 4_000
    second = harness.pipeline.sync_since()

    assert first == []
    assert [record.timestamp for record in second] == [2_000]
    assert harness.engine.bodies == [_spent(2_000, 10).body]


def test_filtered_out_and_empty_batches_still_advance_watermark(
    make_pipeline: Callable[..., Any],
) -> None:
    harness = make_pipeline(
        [RawMessage(timestamp=10, body="Your OTP is 482913. Do not share it.")],
        now=500,
    )

    assert harness.pipeline.sync_since() == []
    assert harness.engine.bodies == []
    assert harness.watermark_store.get() == 500

    harness.clock.now = 900
    assert harness.pipeline.sync_since() == []
    assert harness.watermark_store.get() == 900


def test_malformed_output_for_one_message_keeps_the_rest(
    make_pipeline: Callable[..., Any],
) -> None:
    messages = [_spent(1, 100), _spent(2, 200), _spent(3, 300)]

    def responder(body: str) -> str:
        if "Store 200" in body:
            return "Sorry, I could not parse that message."
        amount = body.split()[1]
        return json.dumps(
            {
                "amount": amount,
                "type": "debit",
                "payment_method": "Credit Card",
                "merchant": "Store",
                "date": None,
            }
        )

    harness = make_pipeline(messages, responder=responder, now=10)

    records = harness.pipeline.sync_since()

    assert [record.amount for record in records] == ["100.00", "300.00"]
    assert [record.timestamp for record in records] == [1, 3]
    assert harness.watermark_store.get() == 10


def test_chunking_does_not_change_output_order(
    make_pipeline: Callable[..., Any],
) -> None:
    messages = [_spent(index + 1, (index + 1) * 10) for index in range(12)]
    chunked_run = make_pipeline(messages, chunk_size=5, now=100)
    single_run = make_pipeline(messages, chunk_size=12, now=100)

    chunked_records = chunked_run.pipeline.sync_since()
    single_records = single_run.pipeline.sync_since()

    assert len(chunked_records) == 12
    assert _fields(chunked_records) == _fields(single_records)
    assert [record.timestamp for record in chunked_records] == list(range(1, 13))


def test_chunked_splits_into_fixed_size_groups() -> None:
    messages = [RawMessage(timestamp=index, body="x") for index in range(12)]

    sizes = [len(chunk) for chunk in chunked(messages, 5)]

    assert sizes == [5, 5, 2]
    with pytest.raises(ValueError):
        list(chunked(messages, 0))


def test_records_carry_original_message_and_unique_ids(
    make_pipeline: Callable[..., Any],
) -> None:
    messages = [
        RawMessage(timestamp=7, body="Rs.719.00 spent at DREAMPLUG"),
        RawMessage(timestamp=7, body="INR 367 credited to your card as refund"),
    ]
    harness = make_pipeline(messages, now=10)

    records = harness.pipeline.sync_since()

    assert [record.type for record in records] == [
        TransactionType.DEBIT,
        TransactionType.CREDIT,
    ]
    assert records[0].original_message == messages[0].body
    assert records[0].id.startswith("7-0-")
    assert records[1].id.startswith("7-1-")
    assert len({record.id for record in records}) == 2


def test_source_error_propagates_without_advancing_watermark(
    make_pipeline: Callable[..., Any],
) -> None:
    harness = make_pipeline([_spent(1, 10)], now=10)
    harness.source.error = MessageSourceError()

    with pytest.raises(MessageSourceError):
        harness.pipeline.sync_since()

    assert harness.watermark_store.get() == 0
    assert harness.transaction_store.list() == []


def test_storage_failure_on_append_leaves_watermark_untouched(
    make_pipeline: Callable[..., Any],
) -> None:
    harness = make_pipeline([_spent(1, 10)], now=10)

    def failing_set(key: str, value: str) -> None:
        raise StorageError(details={"key": key})

    harness.store.set = failing_set  # type: ignore[method-assign]

    with pytest.raises(StorageError):
        harness.pipeline.sync_since()

    assert harness.watermark_store.get() == 0


def test_append_happens_before_watermark_advance(
    make_pipeline: Callable[..., Any],
) -> None:
    harness = make_pipeline([_spent(1, 10)], now=10)
    writes: list[str] = []
    original_set = harness.store.set

    def recording_set(key: str, value: str) -> None:
        writes.append(key)
        original_set(key, value)

    harness.store.set = recording_set  # type: ignore[method-assign]

    harness.pipeline.sync_since()

    assert writes == ["transactions", "last_processed_time"]


def test_summary_is_recomputed_after_append(
    make_pipeline: Callable[..., Any],
) -> None:
    harness = make_pipeline(
        [
            RawMessage(timestamp=1, body="INR 500 spent at Store"),
            RawMessage(timestamp=2, body="INR 200 credited to account"),
        ],
        now=10,
    )

    harness.pipeline.sync_since()

    summary = harness.pipeline.last_summary
    assert summary is not None
    assert str(summary.debit) == "500.00"
    assert str(summary.credit) == "200.00"
    assert str(summary.total) == "-300.00"
    assert harness.pipeline.summary() == summary


def test_clear_all_is_idempotent_and_load_all_reproduces_records(
    make_pipeline: Callable[..., Any],
) -> None:
    messages = [_spent(1, 10), _spent(2, 20), _spent(3, 30)]
    harness = make_pipeline(messages, now=10)
    initial = harness.pipeline.load_all()

    harness.pipeline.clear_all()
    harness.pipeline.clear_all()

    assert harness.transaction_store.list() == []
    assert harness.watermark_store.get() == 0
    assert harness.pipeline.last_summary is None

    reloaded = harness.pipeline.load_all()
    assert _fields(reloaded) == _fields(initial)
    assert _fields(harness.transaction_store.list()) == _fields(initial)


def test_load_all_refuses_non_empty_ledger(
    make_pipeline: Callable[..., Any],
) -> None:
    harness = make_pipeline([_spent(1, 10), _spent(2, 20)], now=10)
    harness.pipeline.refresh()
    harness.clock.now = 20

    with pytest.raises(LedgerNotEmptyError) as exc_info:
        harness.pipeline.load_all()

    assert exc_info.value.status_code == 409
    assert exc_info.value.details == {"transactions": 2}
    assert len(harness.transaction_store.list()) == 2
    assert harness.watermark_store.get() == 10
    assert harness.source.calls == [(0, 10)]


def test_refresh_loads_full_history_on_first_run_then_catches_up(
    make_pipeline: Callable[..., Any],
) -> None:
    harness = make_pipeline([_spent(1, 10)], now=10)

    first = harness.pipeline.refresh()
    harness.source.messages.append(_spent(15, 20))
    harness.clock.now = 20
    second = harness.pipeline.refresh()

    assert harness.source.calls == [(0, 10), (10, 20)]
    assert [record.timestamp for record in first] == [1]
    assert [record.timestamp for record in second] == [15]


def test_concurrent_syncs_never_overlap_windows(
    make_pipeline: Callable[..., Any],
) -> None:
    harness = make_pipeline([_spent(1, 10), _spent(2, 20)], now=10)
    pipeline: IngestionPipeline = harness.pipeline
    barrier = threading.Barrier(4)
    results: list[list[TransactionRecord]] = []
    results_lock = threading.Lock()

    def worker() -> None:
        barrier.wait()
        records = pipeline.sync_since(0)
        with results_lock:
            results.append(records)

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=5)

    assert sum(len(records) for records in results) == 2
    assert len(harness.engine.bodies) == 2
    assert len(harness.transaction_store.list()) == 2


def test_rejects_invalid_chunk_size(make_pipeline: Callable[..., Any]) -> None:
    with pytest.raises(ValueError):
        make_pipeline(chunk_size=0)
