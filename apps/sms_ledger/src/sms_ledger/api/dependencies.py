"""API dependency providers."""

from __future__ import annotations

from functools import lru_cache

from sms_ledger.application.services.background_scheduler import (
    BackgroundScheduler,
)
from sms_ledger.application.use_cases.ingest_messages import IngestionPipeline
from sms_ledger.core.bootstrap import LedgerServices, build_services
from sms_ledger.core.settings import get_settings


@lru_cache(maxsize=1)
def get_ledger_services() -> LedgerServices:
    """Build the process-wide pipeline so every trigger shares one lock."""

    return build_services(get_settings())


def get_pipeline() -> IngestionPipeline:
    """Return the shared ingestion pipeline."""

    return get_ledger_services().pipeline


def get_scheduler() -> BackgroundScheduler:
    """Return the shared background scheduler."""

    return get_ledger_services().scheduler
