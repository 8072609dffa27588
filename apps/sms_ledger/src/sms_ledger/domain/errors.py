"""Domain exceptions used across ingestion, persistence and API layers."""

from __future__ import annotations

from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any


def compose_error_message(*, cause: str, action: str) -> str:
    """Build a user-facing error message with cause and corrective action."""

    return f"Cause: {cause} Action: {action}"


@dataclass(slots=True)
class DomainError(Exception):
    """Base exception for predictable domain failures."""

    code: str
    message: str
    status_code: int
    details: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return self.message


class MessageSourceError(DomainError):
    """Raised when the message source cannot be queried."""

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
        *,
        code: str = "MESSAGE_SOURCE_UNAVAILABLE",
        status_code: int = HTTPStatus.BAD_GATEWAY,
    ) -> None:
        super().__init__(
            code=code,
            message=message
            or compose_error_message(
                cause="The message inbox could not be read.",
                action="Check the inbox location and retry the sync.",
            ),
            status_code=status_code,
            details=details or {},
        )


class MessagePermissionError(MessageSourceError):
    """Raised when access to the message source is denied."""

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message
            or compose_error_message(
                cause="Permission to read messages was denied.",
                action="Grant read access to the inbox before syncing.",
            ),
            details=details,
            code="MESSAGE_PERMISSION_DENIED",
            status_code=HTTPStatus.FORBIDDEN,
        )


class StorageError(DomainError):
    """Raised when persisted ledger state cannot be read or written."""

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            code="STORAGE_UNAVAILABLE",
            message=message
            or compose_error_message(
                cause="Ledger storage could not be read or written.",
                action="Verify the database is reachable and retry.",
            ),
            status_code=HTTPStatus.SERVICE_UNAVAILABLE,
            details=details or {},
        )


class InferenceError(DomainError):
    """Raised by inference adapters when a generation request fails."""

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            code="INFERENCE_FAILED",
            message=message
            or compose_error_message(
                cause="The inference engine did not return a response.",
                action="Check that the model server is running.",
            ),
            status_code=HTTPStatus.BAD_GATEWAY,
            details=details or {},
        )


class LedgerNotEmptyError(DomainError):
    """Raised when a full history load targets a ledger that has records."""

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            code="LEDGER_NOT_EMPTY",
            message=message
            or compose_error_message(
                cause="The ledger already holds transactions.",
                action="Run sync to catch up, or clear the ledger first.",
            ),
            status_code=HTTPStatus.CONFLICT,
            details=details or {},
        )
