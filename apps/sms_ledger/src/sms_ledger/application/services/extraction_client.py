"""Transaction extraction backed by a text-in/text-out inference engine."""

from __future__ import annotations

import json
import logging
from typing import Any

from sms_ledger.application.ports.collaborators import InferenceEngine
from sms_ledger.application.prompts import build_extraction_prompt
from sms_ledger.application.schemas.transactions import (
    TransactionFields,
    TransactionType,
)

logger = logging.getLogger(__name__)

REQUIRED_KEYS = ("amount", "type", "payment_method", "merchant", "date")


class ExtractionRejectedError(ValueError):
    """Raised internally when model output cannot become a transaction."""


class ExtractionClient:
    """Turns one message body into structured transaction fields."""

    def __init__(self, engine: InferenceEngine) -> None:
        self._engine = engine

    def extract(self, body: str) -> TransactionFields | None:
        """Extract transaction fields, or ``None`` when extraction fails.

        Engine failures and malformed output are logged and swallowed so
        one bad message never aborts a batch.
        """
        prompt = build_extraction_prompt(body)
        reported_errors: list[Exception] = []

        try:
            response = self._engine.generate_response(
                prompt,
                self._log_partial,
                reported_errors.append,
            )
        except Exception as exc:
            logger.warning("Inference call failed: %s", exc)
            return None

        if reported_errors:
            logger.warning(
                "Inference engine reported an error: %s", reported_errors[0]
            )
            return None

        try:
            return parse_transaction_fields(response)
        except ExtractionRejectedError as exc:
            logger.warning("Discarding model output: %s", exc)
            return None

    @staticmethod
    def _log_partial(partial: str) -> None:
        logger.debug("Partial inference output: %s", partial)


def parse_transaction_fields(text: str) -> TransactionFields:
    """Parse the model's final text into validated transaction fields."""

    if not isinstance(text, str):
        raise ExtractionRejectedError(
            f"engine returned {type(text).__name__} instead of text"
        )
    payload = _extract_payload(text)
    missing = [key for key in REQUIRED_KEYS if key not in payload]
    if missing:
        raise ExtractionRejectedError(f"missing keys: {', '.join(missing)}")

    amount = _optional_string(payload["amount"])
    if amount is None:
        raise ExtractionRejectedError("amount is empty")

    raw_type = _optional_string(payload["type"])
    try:
        transaction_type = TransactionType((raw_type or "").lower())
    except ValueError as exc:
        raise ExtractionRejectedError(f"unknown type {raw_type!r}") from exc

    return TransactionFields(
        amount=amount,
        type=transaction_type,
        payment_method=_optional_string(payload["payment_method"]),
        merchant=_optional_string(payload["merchant"]),
        date=_optional_string(payload["date"]),
    )


def _extract_payload(text: str) -> dict[str, Any]:
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end < start:
        raise ExtractionRejectedError("response does not contain a JSON object")

    try:
        parsed = json.loads(text[start : end + 1])
    except json.JSONDecodeError as exc:
        raise ExtractionRejectedError(f"invalid JSON: {exc.msg}") from exc

    if not isinstance(parsed, dict):
        raise ExtractionRejectedError("JSON output is not an object")
    return parsed


def _optional_string(value: Any) -> str | None:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        value = str(value)
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped or None
