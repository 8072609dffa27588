"""Message source reading an exported SMS inbox file."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from sms_ledger.application.schemas.transactions import RawMessage
from sms_ledger.domain.errors import (
    MessagePermissionError,
    MessageSourceError,
    compose_error_message,
)


class JsonInboxMessageSource:
    """Serves messages from a JSON array of ``{timestamp, body}`` objects.

    Android SMS exports name the timestamp ``date``; both keys are accepted.
    """

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def list(
        self,
        *,
        min_date: int | None = None,
        max_date: int | None = None,
        index_from: int = 0,
    ) -> list[RawMessage]:
        messages = [
            message
            for message in self._read_messages()
            if (min_date is None or message.timestamp >= min_date)
            and (max_date is None or message.timestamp < max_date)
        ]
        messages.sort(key=lambda message: message.timestamp)
        return messages[index_from:]

    def _read_messages(self) -> list[RawMessage]:
        try:
            content = self._path.read_text(encoding="utf-8")
        except PermissionError as exc:
            raise MessagePermissionError(details={"path": str(self._path)}) from exc
        except OSError as exc:
            raise MessageSourceError(
                message=compose_error_message(
                    cause=f"Inbox file {self._path} could not be read.",
                    action="Export the inbox again or fix SMS_INBOX_PATH.",
                ),
                details={"path": str(self._path)},
            ) from exc

        try:
            payload = json.loads(content)
        except json.JSONDecodeError as exc:
            raise self._invalid_inbox(f"invalid JSON at line {exc.lineno}") from exc

        if not isinstance(payload, list):
            raise self._invalid_inbox("top-level value must be an array")

        try:
            return [self._parse_item(item) for item in payload]
        except (ValidationError, TypeError) as exc:
            raise self._invalid_inbox("items must have a timestamp and body") from exc

    @staticmethod
    def _parse_item(item: Any) -> RawMessage:
        if not isinstance(item, dict):
            raise TypeError("inbox item is not an object")
        timestamp = item.get("timestamp", item.get("date"))
        return RawMessage.model_validate(
            {"timestamp": timestamp, "body": item.get("body")}
        )

    def _invalid_inbox(self, reason: str) -> MessageSourceError:
        return MessageSourceError(
            message=compose_error_message(
                cause=f"Inbox file {self._path} is malformed: {reason}.",
                action="Export the inbox again as a JSON array of messages.",
            ),
            details={"path": str(self._path)},
        )
