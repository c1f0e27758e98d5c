"""Upsert error types and duplicate-key classification."""

from __future__ import annotations

from typing import Sequence

DEFAULT_DUPLICATE_KEY_MARKERS: tuple[str, ...] = ("ORA-00001",)


class UpsertError(Exception):
    """Base class for errors raised by the upsert orchestrator itself."""


class InvalidBindParamsError(UpsertError, TypeError):
    """Raised when bind params are positional instead of a named mapping."""

    def __init__(self, message: str | None = None):
        super().__init__(
            message or "Positional bind params are not supported, use named bind params."
        )


class NoRowsUpdatedError(UpsertError, RuntimeError):
    """Raised when the fallback update matched no row."""

    def __init__(self, message: str = "No rows updated."):
        super().__init__(message)


def error_message(error: BaseException) -> str:
    message = getattr(error, "message", None)
    if isinstance(message, str) and message:
        return message
    return str(error)


def is_duplicate_key_error(error: BaseException, markers: Sequence[str]) -> bool:
    """Return whether `error` reports a unique/primary key violation.

    Detection is a substring match of the error message against driver
    specific markers, e.g. `ORA-00001` or `UNIQUE constraint failed`.
    """

    message = error_message(error)
    if not message:
        return False
    return any(marker and marker in message for marker in markers)
