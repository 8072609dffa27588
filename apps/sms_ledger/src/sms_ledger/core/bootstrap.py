"""Wiring of the ingestion pipeline from application settings."""

from __future__ import annotations

from dataclasses import dataclass

from sms_ledger.application.ports.collaborators import (
    InferenceEngine,
    KeyValueStore,
    MessageSource,
)
from sms_ledger.application.services.background_scheduler import (
    BackgroundScheduler,
)
from sms_ledger.application.services.extraction_client import ExtractionClient
from sms_ledger.application.use_cases.ingest_messages import IngestionPipeline
from sms_ledger.core.settings import Settings
from sms_ledger.db.session import (
    create_db_engine,
    create_schema,
    create_session_factory,
)
from sms_ledger.infrastructure.llm.http_inference import HttpInferenceEngine
from sms_ledger.infrastructure.sources.json_inbox import JsonInboxMessageSource
from sms_ledger.infrastructure.stores.transaction_store import TransactionStore
from sms_ledger.infrastructure.stores.watermark_store import WatermarkStore
from sms_ledger.repositories.key_value_repository import SqlAlchemyKeyValueStore


@dataclass(slots=True, frozen=True)
class LedgerServices:
    """Pipeline and scheduler sharing one set of stores."""

    pipeline: IngestionPipeline
    scheduler: BackgroundScheduler


def build_key_value_store(settings: Settings) -> SqlAlchemyKeyValueStore:
    """Create the database-backed store, creating tables when missing."""

    engine = create_db_engine(settings)
    create_schema(engine)
    return SqlAlchemyKeyValueStore(create_session_factory(engine))


def build_services(
    settings: Settings,
    *,
    message_source: MessageSource | None = None,
    inference_engine: InferenceEngine | None = None,
    key_value_store: KeyValueStore | None = None,
) -> LedgerServices:
    """Build the pipeline and its scheduler; collaborators may be overridden."""

    source = message_source or JsonInboxMessageSource(settings.inbox_path)
    engine = inference_engine or HttpInferenceEngine(
        base_url=settings.inference_base_url,
        model=settings.inference_model,
        max_tokens=settings.inference_max_tokens,
        timeout_seconds=settings.inference_timeout_seconds,
    )
    store = key_value_store or build_key_value_store(settings)

    pipeline = IngestionPipeline(
        message_source=source,
        extraction_client=ExtractionClient(engine),
        transaction_store=TransactionStore(store),
        watermark_store=WatermarkStore(store),
        chunk_size=settings.sync_chunk_size,
    )
    scheduler = BackgroundScheduler(
        pipeline,
        interval_seconds=settings.sync_interval_seconds,
    )
    return LedgerServices(pipeline=pipeline, scheduler=scheduler)
