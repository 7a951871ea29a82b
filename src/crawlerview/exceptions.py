"""Exceptions raised by the fetch and retry layers."""

from typing import Optional


class FetchError(Exception):
    """Base class for failures of one logical fetch.

    ``category`` keys into the network error explanation table. ``attempts``
    is filled in by the retry coordinator with the trace recorded so far.
    """

    category = "network"
    retryable = True

    def __init__(self, message: str, url: Optional[str] = None, category: Optional[str] = None):
        self.message = message
        self.url = url
        if category is not None:
            self.category = category
        self.attempts: tuple = ()
        super().__init__(message)


class NetworkError(FetchError):
    """DNS failure, refused or reset connection, or another socket error."""


class FetchTimeoutError(FetchError):
    """Raised when an attempt exceeds its deadline."""

    category = "timeout"


class TooManyRedirectsError(FetchError):
    """Raised when a fetch would follow more redirects than allowed."""

    category = "redirects"
    retryable = False

    def __init__(self, message: str, url: Optional[str] = None, redirect_count: int = 0):
        self.redirect_count = redirect_count
        super().__init__(message, url=url)


class InvalidRedirectError(FetchError):
    """Raised when a redirect Location header is not a usable URL."""

    category = "invalid_redirect"
    retryable = False


class DecompressionError(FetchError):
    """Raised when a compressed body cannot be decoded."""

    category = "decompression"


class RetryCancelledError(FetchError):
    """Raised when a pending backoff wait is cancelled."""

    category = "cancelled"
    retryable = False
