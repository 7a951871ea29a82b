"""Session orchestrator: robots.txt check plus one fetch and analysis per crawler identity."""

import logging
from dataclasses import replace
from datetime import datetime
from typing import Callable, Mapping, Optional

from crawlerview.analyzer import AccessibilityAnalyzer
from crawlerview.config import Config, default_config
from crawlerview.exceptions import FetchError
from crawlerview.explanations import (
    NETWORK_ERROR_EXPLANATIONS,
    STATUS_EXPLANATIONS,
    explain_error,
    explain_status,
    get_score_range,
)
from crawlerview.fetcher import ResilientFetcher
from crawlerview.identities import IdentityRegistry, default_registry
from crawlerview.models import (
    CrawlerError,
    CrawlerIdentity,
    CrawlerOutcome,
    RobotsCheckResult,
    SessionResult,
)
from crawlerview.retry import RetryCoordinator
from crawlerview.robots import RobotsChecker

logger = logging.getLogger(__name__)


class SessionOrchestrator:
    """Runs one accessibility session.

    Identities are processed strictly one at a time in registration order.
    Create one orchestrator per session; instances hold no cross-session state
    beyond the read-only registry and tables they were built with.
    """

    def __init__(
        self,
        registry: Optional[IdentityRegistry] = None,
        config: Optional[Config] = None,
        fetcher: Optional[ResilientFetcher] = None,
        retry: Optional[RetryCoordinator] = None,
        analyzer: Optional[AccessibilityAnalyzer] = None,
        robots_checker: Optional[RobotsChecker] = None,
        status_explanations: Mapping[int, str] = STATUS_EXPLANATIONS,
        error_explanations: Mapping[str, str] = NETWORK_ERROR_EXPLANATIONS,
    ):
        """Initialize the orchestrator.

        Args:
            registry: Crawler identities to test (defaults to the AI crawler set)
            config: Timeouts and retry settings
            fetcher: Fetcher shared by the robots check and the retry coordinator
            retry: Retry coordinator (built around ``fetcher`` if None)
            analyzer: HTML analyzer (default weights if None)
            robots_checker: robots.txt checker (uses the registry's first identity if None)
            status_explanations: HTTP status -> one-line explanation for error outcomes
            error_explanations: Network error category -> one-line explanation
        """
        self.registry = registry or default_registry
        self.config = config or default_config
        self.fetcher = fetcher or ResilientFetcher(
            timeout=self.config.timeout,
            max_redirects=self.config.max_redirects,
        )
        self.retry = retry or RetryCoordinator(
            self.fetcher,
            max_retries=self.config.max_retries,
            backoff_base=self.config.backoff_base,
        )
        self.analyzer = analyzer or AccessibilityAnalyzer()
        self.robots_checker = robots_checker or RobotsChecker(self.fetcher, self.registry.primary)
        self.status_explanations = status_explanations
        self.error_explanations = error_explanations

    def cancel(self) -> None:
        """Interrupt any pending retry backoff."""
        self.retry.cancel()

    def run_session(
        self,
        url: str,
        on_result: Optional[Callable[[CrawlerOutcome], None]] = None,
        on_robots: Optional[Callable[[RobotsCheckResult], None]] = None,
    ) -> SessionResult:
        """Evaluate ``url`` for every registered identity.

        Args:
            url: Page to test
            on_result: Called with each identity's outcome as soon as it completes
            on_robots: Called with the robots.txt result before any identity runs

        Returns:
            SessionResult with outcomes in registration order
        """
        logger.info(f"Starting crawler accessibility session for {url}")
        started_at = datetime.now()

        robots = self.robots_checker.check(url)
        if on_robots is not None:
            on_robots(robots)

        outcomes: list[CrawlerOutcome] = []
        for identity in self.registry:
            outcome = self._test_identity(url, identity)
            outcomes.append(outcome)
            if on_result is not None:
                on_result(outcome)

        average = self.average_score(outcomes)
        session = SessionResult(
            url=url,
            robots=robots,
            crawlers=outcomes,
            average_score=average,
            score_range=get_score_range(average)["key"],
            started_at=started_at,
            finished_at=datetime.now(),
        )

        logger.info(
            f"Session complete for {url}: average {average:.1f}/100 "
            f"({len(session.successful)} analyzed, {len(session.failed)} failed)"
        )
        return session

    @staticmethod
    def average_score(outcomes: list[CrawlerOutcome]) -> float:
        """Mean score over analyzed identities only; errored identities are left out."""
        scores = [outcome.score for outcome in outcomes if not outcome.is_error]
        if not scores:
            return 0.0
        return sum(scores) / len(scores)

    def _test_identity(self, url: str, identity: CrawlerIdentity) -> CrawlerOutcome:
        logger.info(f"Testing as {identity.name}")
        try:
            retry_outcome = self.retry.fetch_with_retry(url, identity.user_agent)
        except FetchError as e:
            logger.warning(f"{identity.name}: {e.message}")
            return CrawlerError(
                crawler=identity.name,
                error=e.message,
                explanation=explain_error(e.category, self.error_explanations),
                attempts=list(e.attempts),
            )

        response = retry_outcome.result
        if response.status_code != 200:
            logger.warning(f"{identity.name}: HTTP {response.status_code} for {response.final_url}")
            return CrawlerError(
                crawler=identity.name,
                error=f"HTTP {response.status_code}",
                status_code=response.status_code,
                explanation=explain_status(response.status_code, self.status_explanations),
                attempts=list(retry_outcome.attempts),
            )

        analysis = replace(
            self.analyzer.analyze(response.text, identity.name),
            final_url=response.final_url,
            redirect_chain=list(response.redirect_chain),
            attempts=list(retry_outcome.attempts),
        )

        logger.info(f"{identity.name}: score {analysis.score}/100, {len(analysis.issues)} issue(s)")
        return analysis
