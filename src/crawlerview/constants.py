# src/crawlerview/constants.py
"""Centralized constants for the crawler accessibility checker.

This module contains magic numbers and fixed values that are used across
multiple modules. For user-configurable values, see config.py.
"""

# =============================================================================
# Fetcher Constants
# =============================================================================

# Per-attempt timeout in seconds (connection + full body read)
DEFAULT_REQUEST_TIMEOUT_SECONDS = 10.0

# Maximum number of redirects followed by a single logical fetch
MAX_REDIRECTS = 5

# Status codes followed as redirects when a Location header is present
REDIRECT_STATUS_CODES = frozenset({301, 302, 307, 308})

# Size of chunks read from the raw response body
READ_CHUNK_SIZE = 16 * 1024

ACCEPT_HEADER = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"
ACCEPT_LANGUAGE_HEADER = "en-US,en;q=0.9"
ACCEPT_ENCODING_HEADER = "gzip, deflate, br"


# =============================================================================
# Retry Constants
# =============================================================================

# Default maximum attempts for one identity
DEFAULT_MAX_RETRIES = 3

# Base for exponential backoff calculation
EXPONENTIAL_BACKOFF_BASE = 2

# Delay before the second attempt, doubled for each further attempt
INITIAL_BACKOFF_DELAY_SECONDS = 1.0


# =============================================================================
# Analyzer Constants
# =============================================================================

# Body text must be longer than this to count as real content
MIN_CONTENT_LENGTH = 200

# Noscript text shorter than this is flagged as minimal
MIN_NOSCRIPT_LENGTH = 100

# Points subtracted from 100 for each failed signal
SCORE_WEIGHTS = {
    "content": 30,
    "noscript": 10,
    "structuredData": 15,
    "metaTags": 20,
    "h1": 10,
    "loadingState": 15,
}

MAX_SCORE = 100
MIN_SCORE = 0

# Maximum characters kept for title/description/h1 excerpts
MAX_EXCERPT_LENGTH = 300


# =============================================================================
# robots.txt Constants
# =============================================================================

ROBOTS_TXT_PATH = "/robots.txt"

# Agent tokens checked for a blanket "Disallow: /"
WATCHED_ROBOTS_AGENTS = ("GPTBot", "Claude-Web")
