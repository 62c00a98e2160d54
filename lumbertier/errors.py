"""
Exception taxonomy shared by the cache, the upstream client and the lineup draft.

Every error carries the HTTP status the read API answers with, so the FastAPI
handlers in ``contest.api_server`` can map them without a lookup table.
"""

from typing import Optional


class LumberTierError(Exception):
    """Base exception with HTTP status code."""

    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class TransientFetchError(LumberTierError):
    """Network or backend failure. Recoverable by retrying; never cached."""

    status_code = 502


class NotFoundError(LumberTierError):
    """Requested entity does not exist upstream."""

    status_code = 404


class ValidationError(LumberTierError, ValueError):
    """Request rejected locally before any network call."""

    status_code = 400


class SubmissionRejected(LumberTierError):
    """Upstream answered a lineup submission with a non-success status."""

    def __init__(self, message: str, status_code: int):
        super().__init__(message, status_code=status_code)
