"""CrawlerView: test how AI and search crawlers see a web page."""

__version__ = "0.1.0"

from typing import Optional

from crawlerview.analyzer import AccessibilityAnalyzer, analyze_html
from crawlerview.fetcher import ResilientFetcher
from crawlerview.retry import RetryCoordinator
from crawlerview.robots import RobotsChecker
from crawlerview.orchestrator import SessionOrchestrator
from crawlerview.identities import AI_CRAWLERS, IdentityRegistry, default_registry
from crawlerview.models import (
    CrawlerIdentity,
    RedirectHop,
    FetchResult,
    AttemptOutcome,
    RetryAttempt,
    RetryOutcome,
    AnalysisResult,
    CrawlerError,
    RobotsCheckResult,
    SessionResult,
)
from crawlerview.exceptions import (
    FetchError,
    NetworkError,
    FetchTimeoutError,
    TooManyRedirectsError,
    InvalidRedirectError,
    DecompressionError,
    RetryCancelledError,
)
from crawlerview.config import Config


def run_session(url: str, config: Optional[Config] = None) -> SessionResult:
    """Evaluate ``url`` with the default crawler identities."""
    return SessionOrchestrator(config=config).run_session(url)


__all__ = [
    # Core
    "AccessibilityAnalyzer",
    "analyze_html",
    "ResilientFetcher",
    "RetryCoordinator",
    "RobotsChecker",
    "SessionOrchestrator",
    "run_session",
    # Identities
    "AI_CRAWLERS",
    "IdentityRegistry",
    "default_registry",
    # Models
    "CrawlerIdentity",
    "RedirectHop",
    "FetchResult",
    "AttemptOutcome",
    "RetryAttempt",
    "RetryOutcome",
    "AnalysisResult",
    "CrawlerError",
    "RobotsCheckResult",
    "SessionResult",
    # Errors
    "FetchError",
    "NetworkError",
    "FetchTimeoutError",
    "TooManyRedirectsError",
    "InvalidRedirectError",
    "DecompressionError",
    "RetryCancelledError",
    "Config",
]
