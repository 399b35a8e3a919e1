"""Exception classes shared by the study assistant components."""

from __future__ import annotations


def format_size(num_bytes: int) -> str:
    if num_bytes >= 1024 * 1024 and num_bytes % (1024 * 1024) == 0:
        return f"{num_bytes // (1024 * 1024)}MB"
    if num_bytes >= 1024 and num_bytes % 1024 == 0:
        return f"{num_bytes // 1024}KB"
    return f"{num_bytes} bytes"


class StudyBankError(Exception):
    """Base exception carrying a user-visible message."""

    def __init__(self, message: str, detail: str | None = None) -> None:
        self.message = message
        self.detail = detail
        super().__init__(message)


class ValidationError(StudyBankError):
    """Raised when a required input is empty."""


class SizeLimitError(StudyBankError):
    """Raised when an uploaded file exceeds the payload cap."""

    def __init__(self, name: str, size: int, limit: int) -> None:
        self.name = name
        self.size = size
        self.limit = limit
        super().__init__(
            message=f'File "{name}" is too large (>{format_size(limit)}). '
            "Please compress it or split it.",
            detail=f"{size} bytes exceeds the {limit} byte limit",
        )


class ServiceError(StudyBankError):
    """Raised when the model service fails or returns unusable output."""


__all__ = ["ServiceError", "SizeLimitError", "StudyBankError", "ValidationError", "format_size"]
