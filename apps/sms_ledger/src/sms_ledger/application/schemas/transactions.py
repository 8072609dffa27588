"""Schemas and enums for the message ingestion pipeline."""

from __future__ import annotations

from decimal import Decimal
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class TransactionType(StrEnum):
    """Direction of money movement reported by a notification."""

    DEBIT = "debit"
    CREDIT = "credit"


class RawMessage(BaseModel):
    """One inbox message as returned by the message source."""

    model_config = ConfigDict(frozen=True)

    timestamp: int = Field(ge=0, description="Epoch milliseconds")
    body: str


class TransactionFields(BaseModel):
    """Structured fields extracted from one message body."""

    model_config = ConfigDict(frozen=True)

    amount: str = Field(min_length=1)
    type: TransactionType
    payment_method: str | None = None
    merchant: str | None = None
    date: str | None = None


class TransactionRecord(BaseModel):
    """Persisted transaction derived from a single message."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    amount: str
    type: TransactionType
    payment_method: str | None = None
    merchant: str | None = None
    date: str | None = None
    original_message: str = Field(alias="originalMessage")
    timestamp: int


class Summary(BaseModel):
    """Running totals over the stored transactions."""

    model_config = ConfigDict(frozen=True)

    total: Decimal
    debit: Decimal
    credit: Decimal


TRANSACTION_LIST_ADAPTER = TypeAdapter(list[TransactionRecord])
