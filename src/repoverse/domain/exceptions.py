"""Domain exception hierarchy.

Only the "whole fetch" errors cross the acquisition boundary; the interface
layer translates them into HTTP responses.  Per-repository detail failures
are absorbed by the enrichment scheduler.
"""

from __future__ import annotations


class RepoverseError(Exception):
    """Base exception for the entire application."""

    code = "REPOVERSE_ERROR"


# ── Whole-fetch errors (surfaced to the caller) ─────────────────────────────


class RateLimitExceededError(RepoverseError):
    """The remote API budget is exhausted (403 with zero remaining, or 429)."""

    code = "RATE_LIMIT_EXCEEDED"

    def __init__(self, message: str, reset_epoch: int = 0) -> None:
        super().__init__(message)
        self.reset_epoch = reset_epoch


class UserNotFoundError(RepoverseError):
    """The requested user does not exist (404 on the repository list)."""

    code = "USER_NOT_FOUND"


class RepositoryFetchError(RepoverseError):
    """The repository list could not be fetched for any other reason."""

    code = "FETCH_ERROR"


# ── Absorbed errors ─────────────────────────────────────────────────────────


class DetailFetchError(RepoverseError):
    """A single enrichment request failed; the record keeps its estimate."""

    code = "DETAIL_FETCH_PARTIAL_FAILURE"
