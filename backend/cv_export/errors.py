"""Exception taxonomy for the export endpoints.

Request-level failures derive from :class:`ExportError` and carry the HTTP
status and the public message that ends up in the ``{"error": ...}`` body.
Row-level signing failures use :class:`SignedUrlError`, which is recorded in
the CSV instead of failing the request.
"""

from __future__ import annotations


class ExportError(Exception):
    """A failure that ends the export request with a JSON error body."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class AuthorizationError(ExportError):
    """Missing or wrong export secret."""

    status_code = 403

    def __init__(self, message: str = "Forbidden") -> None:
        super().__init__(message)


class ExportValidationError(ExportError):
    """A required query parameter is empty after normalization."""

    status_code = 400


class FetchError(ExportError):
    """The backing store query failed or returned rows of an unexpected shape."""

    status_code = 500


class SignedUrlError(Exception):
    """Object storage could not produce a signed URL for one file."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message
