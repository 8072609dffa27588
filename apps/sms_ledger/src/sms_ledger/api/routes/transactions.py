"""Transaction ledger routes."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status

from sms_ledger.api.dependencies import get_pipeline
from sms_ledger.api.schemas import SummaryResponse, SyncResponse
from sms_ledger.application.schemas.transactions import TransactionRecord
from sms_ledger.application.use_cases.ingest_messages import IngestionPipeline

router = APIRouter(tags=["Transactions"])

PipelineDependency = Annotated[IngestionPipeline, Depends(get_pipeline)]


@router.get("/transactions", response_model=list[TransactionRecord])
def list_transactions(pipeline: PipelineDependency) -> list[TransactionRecord]:
    """Return stored transactions in arrival order."""

    return pipeline.transactions()


@router.delete("/transactions", status_code=status.HTTP_204_NO_CONTENT)
def clear_transactions(pipeline: PipelineDependency) -> Response:
    """Delete every transaction and reset the watermark."""

    pipeline.clear_all()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/summary", response_model=SummaryResponse)
def get_summary(pipeline: PipelineDependency) -> SummaryResponse:
    """Return debit, credit and net totals."""

    return SummaryResponse.from_summary(pipeline.summary())


@router.post("/sync", response_model=SyncResponse)
def sync_messages(pipeline: PipelineDependency) -> SyncResponse:
    """Catch up on new messages, or load the full history on first run."""

    new_records = pipeline.refresh()
    return SyncResponse(
        new_records=new_records,
        watermark=pipeline.watermark(),
        summary=SummaryResponse.from_summary(pipeline.summary()),
    )
