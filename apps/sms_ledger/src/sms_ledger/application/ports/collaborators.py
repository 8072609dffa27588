"""Ports for the external collaborators of the ingestion core."""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol

from sms_ledger.application.schemas.transactions import RawMessage

PartialCallback = Callable[[str], None]
ErrorCallback = Callable[[Exception], None]


class MessageSource(Protocol):
    """Port for querying the inbox in a time range."""

    def list(
        self,
        *,
        min_date: int | None = None,
        max_date: int | None = None,
        index_from: int = 0,
    ) -> list[RawMessage]:
        """Return messages with ``min_date <= timestamp < max_date``.

        Results are ordered by ascending timestamp. ``None`` bounds are open.
        """


class InferenceEngine(Protocol):
    """Port for a text-in/text-out language model."""

    def generate_response(
        self,
        prompt: str,
        on_partial: PartialCallback,
        on_error: ErrorCallback,
    ) -> str:
        """Generate a completion for ``prompt`` and return the final text."""


class KeyValueStore(Protocol):
    """Port for durable string key-value persistence."""

    def get(self, key: str) -> str | None:
        """Return the stored value or ``None`` when the key is absent."""

    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""

    def remove(self, key: str) -> None:
        """Delete ``key``; missing keys are ignored."""
