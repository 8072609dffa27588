"""API response schemas."""

from __future__ import annotations

from pydantic import BaseModel, Field

from sms_ledger.application.schemas.transactions import Summary, TransactionRecord
from sms_ledger.domain.money import format_money

MONEY_PATTERN = r"^-?[0-9]+\.[0-9]{2}$"


class SummaryResponse(BaseModel):
    """Running totals rendered as two-decimal strings."""

    total: str = Field(pattern=MONEY_PATTERN)
    debit: str = Field(pattern=MONEY_PATTERN)
    credit: str = Field(pattern=MONEY_PATTERN)

    @classmethod
    def from_summary(cls, summary: Summary) -> SummaryResponse:
        return cls(
            total=format_money(summary.total),
            debit=format_money(summary.debit),
            credit=format_money(summary.credit),
        )


class SyncResponse(BaseModel):
    """Outcome of one foreground sync."""

    new_records: list[TransactionRecord]
    watermark: int = Field(ge=0)
    summary: SummaryResponse


class SchedulerStatusResponse(BaseModel):
    """Background scheduler state."""

    state: str
    interval_seconds: float
    iterations: int = Field(ge=0)
    failures: int = Field(ge=0)
