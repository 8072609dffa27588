from __future__ import annotations

import json
import re
from collections.abc import Callable, Generator
from dataclasses import dataclass, field

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from sms_ledger.api.app import create_app
from sms_ledger.api.dependencies import get_pipeline, get_scheduler
from sms_ledger.application.ports.collaborators import (
    ErrorCallback,
    PartialCallback,
)
from sms_ledger.application.schemas.transactions import RawMessage
from sms_ledger.application.services.background_scheduler import (
    BackgroundScheduler,
)
from sms_ledger.application.services.extraction_client import ExtractionClient
from sms_ledger.application.use_cases.ingest_messages import IngestionPipeline
from sms_ledger.db.base import Base, import_orm_models
from sms_ledger.infrastructure.stores.transaction_store import TransactionStore
from sms_ledger.infrastructure.stores.watermark_store import WatermarkStore
from sms_ledger.repositories.key_value_repository import InMemoryKeyValueStore

Responder = Callable[[str], str]

_PROMPT_BODY = re.compile(r"Now parse this SMS:\n(.*)<end_of_turn>", re.DOTALL)
_AMOUNT = re.compile(r"(\d[\d,]*(?:\.\d+)?)")


def body_from_prompt(prompt: str) -> str:
    match = _PROMPT_BODY.search(prompt)
    assert match is not None
    return match.group(1)


def echo_amount_responder(body: str) -> str:
    amount_match = _AMOUNT.search(body)
    amount = amount_match.group(1).replace(",", "") if amount_match else ""
    lowered = body.lower()
    transaction_type = (
        "credit" if "credited" in lowered or "refund" in lowered else "debit"
    )
    return json.dumps(
        {
            "amount": amount,
            "type": transaction_type,
            "payment_method": "UPI",
            "merchant": "Shop",
            "date": "01-01-24",
        }
    )


@dataclass
class FakeMessageSource:
    messages: list[RawMessage] = field(default_factory=list)
    error: Exception | None = None
    calls: list[tuple[int | None, int | None]] = field(default_factory=list)

    def list(
        self,
        *,
        min_date: int | None = None,
        max_date: int | None = None,
        index_from: int = 0,
    ) -> list[RawMessage]:
        self.calls.append((min_date, max_date))
        if self.error is not None:
            raise self.error
        selected = [
            message
            for message in self.messages
            if (min_date is None or message.timestamp >= min_date)
            and (max_date is None or message.timestamp < max_date)
        ]
        return sorted(selected, key=lambda message: message.timestamp)[index_from:]


@dataclass
class StubInferenceEngine:
    responder: Responder = echo_amount_responder
    bodies: list[str] = field(default_factory=list)

    def generate_response(
        self,
        prompt: str,
        on_partial: PartialCallback,
        on_error: ErrorCallback,
    ) -> str:
        body = body_from_prompt(prompt)
        self.bodies.append(body)
        response = self.responder(body)
        on_partial(response[:10])
        return response


@dataclass
class FakeClock:
    now: int = 1_700_000_000_000

    def __call__(self) -> int:
        return self.now


@dataclass
class PipelineHarness:
    pipeline: IngestionPipeline
    source: FakeMessageSource
    engine: StubInferenceEngine
    store: InMemoryKeyValueStore
    clock: FakeClock
    transaction_store: TransactionStore
    watermark_store: WatermarkStore


PipelineFactory = Callable[..., PipelineHarness]


@pytest.fixture
def make_pipeline() -> PipelineFactory:
    def factory(
        messages: list[RawMessage] | None = None,
        *,
        responder: Responder = echo_amount_responder,
        chunk_size: int = 5,
        now: int = 1_700_000_000_000,
        store: InMemoryKeyValueStore | None = None,
    ) -> PipelineHarness:
        source = FakeMessageSource(messages=list(messages or []))
        engine = StubInferenceEngine(responder=responder)
        key_value_store = store if store is not None else InMemoryKeyValueStore()
        clock = FakeClock(now=now)
        transaction_store = TransactionStore(key_value_store)
        watermark_store = WatermarkStore(key_value_store)
        pipeline = IngestionPipeline(
            message_source=source,
            extraction_client=ExtractionClient(engine),
            transaction_store=transaction_store,
            watermark_store=watermark_store,
            chunk_size=chunk_size,
            now_provider=clock,
        )
        return PipelineHarness(
            pipeline=pipeline,
            source=source,
            engine=engine,
            store=key_value_store,
            clock=clock,
            transaction_store=transaction_store,
            watermark_store=watermark_store,
        )

    return factory


@pytest.fixture
def sqlite_session_factory() -> Generator[sessionmaker[Session], None, None]:
    import_orm_models()
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    factory = sessionmaker(
        bind=engine,
        class_=Session,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
    )
    try:
        yield factory
    finally:
        Base.metadata.drop_all(engine)


@pytest.fixture
def stub_engine() -> StubInferenceEngine:
    return StubInferenceEngine()


@pytest.fixture
def pipeline_harness(make_pipeline: PipelineFactory) -> PipelineHarness:
    return make_pipeline()


@pytest.fixture
def scheduler(pipeline_harness: PipelineHarness) -> BackgroundScheduler:
    return BackgroundScheduler(pipeline_harness.pipeline, interval_seconds=60)


@pytest.fixture
def client(
    pipeline_harness: PipelineHarness,
    scheduler: BackgroundScheduler,
) -> Generator[TestClient, None, None]:
    app = create_app()
    app.dependency_overrides[get_pipeline] = lambda: pipeline_harness.pipeline
    app.dependency_overrides[get_scheduler] = lambda: scheduler
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        scheduler.stop(wait=True, timeout=5)
