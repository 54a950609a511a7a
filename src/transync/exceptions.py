"""Custom exceptions for transync."""

from __future__ import annotations


class SyncError(Exception):
    """Base exception for all transync errors."""

    pass


class ParseError(SyncError):
    """Raised when a document cannot be split into its required parts."""

    def __init__(self, message: str, line: int | None = None) -> None:
        self.line = line
        super().__init__(message)


class TranslationError(SyncError):
    """Base exception for translation capability failures."""

    pass


class AuthenticationError(TranslationError):
    """Raised when the translation API rejects credentials (401/403)."""

    pass


class RateLimitError(TranslationError):
    """Raised when the translation API throttles requests (429)."""

    pass


class BadRequestError(TranslationError):
    """Raised when the translation API rejects the request body (400)."""

    pass


class APIError(TranslationError):
    """Raised for other translation API errors."""

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class TranslationConnectionError(TranslationError):
    """Raised when the translation API cannot be reached."""

    pass


class ApplyError(SyncError):
    """Raised when a patch batch cannot be applied.

    The target document is left unchanged.
    """

    def __init__(self, message: str, applied: int = 0) -> None:
        self.applied = applied
        super().__init__(message)
