"""Error kinds and exceptions raised by the snapshot store and scheduler."""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Structured failure categories reported back to the host."""

    SOURCE_MISSING = "source_missing"
    DESTINATION_UNWRITABLE = "destination_unwritable"
    NOT_CONFIGURED = "not_configured"
    DELETE_FAILED = "delete_failed"
    ENUMERATION_FAILED = "enumeration_failed"
    SKIPPED = "skipped"
    UNEXPECTED = "unexpected"


class BackupError(Exception):
    """Base class carrying an :class:`ErrorKind` and a diagnostic string."""

    kind: ErrorKind = ErrorKind.UNEXPECTED

    def __init__(self, detail: str, *, kind: Optional[ErrorKind] = None) -> None:
        super().__init__(detail)
        self.detail = detail
        if kind is not None:
            self.kind = kind


class SourceMissingError(BackupError):
    kind = ErrorKind.SOURCE_MISSING


class DestinationUnwritableError(BackupError):
    kind = ErrorKind.DESTINATION_UNWRITABLE


class NotConfiguredError(BackupError):
    kind = ErrorKind.NOT_CONFIGURED


class DeleteFailedError(BackupError):
    """Raised when a snapshot could not be fully removed."""

    kind = ErrorKind.DELETE_FAILED

    def __init__(self, detail: str, *, name: Optional[str] = None) -> None:
        super().__init__(detail)
        self.name = name


class EnumerationFailedError(BackupError):
    kind = ErrorKind.ENUMERATION_FAILED


__all__ = [
    "BackupError",
    "DeleteFailedError",
    "DestinationUnwritableError",
    "EnumerationFailedError",
    "ErrorKind",
    "NotConfiguredError",
    "SourceMissingError",
]
