"""Tests for the session orchestrator."""

from unittest.mock import Mock, patch

import pytest
import requests

from crawlerview.config import Config
from crawlerview.exceptions import NetworkError, TooManyRedirectsError
from crawlerview.fetcher import ResilientFetcher
from crawlerview.identities import AI_CRAWLERS, IdentityRegistry, default_registry
from crawlerview.models import (
    AnalysisResult,
    AttemptOutcome,
    CrawlerError,
    FetchResult,
    RedirectHop,
    RetryAttempt,
    RetryOutcome,
    RobotsCheckResult,
)
from crawlerview.orchestrator import SessionOrchestrator
from crawlerview.retry import RetryCoordinator

URL = "https://example.com/"


def ok_outcome(html, status_code=200, final_url=URL, redirect_chain=()):
    result = FetchResult(
        status_code=status_code,
        headers={},
        text=html,
        final_url=final_url,
        redirect_chain=redirect_chain,
    )
    outcome = AttemptOutcome.SUCCESS if status_code < 400 else AttemptOutcome.HTTP_ERROR
    return RetryOutcome(result=result, attempts=(RetryAttempt(1, outcome, status_code=status_code),))


def network_error(message="Connection refused", category="refused", attempts=3):
    error = NetworkError(message, url=URL, category=category)
    error.attempts = tuple(
        RetryAttempt(n, AttemptOutcome.NETWORK_ERROR, message=message)
        for n in range(1, attempts + 1)
    )
    return error


@pytest.fixture
def robots_checker():
    checker = Mock()
    checker.check.return_value = RobotsCheckResult(url=URL + "robots.txt", accessible=True, content="")
    return checker


@pytest.fixture
def retry():
    return Mock()


@pytest.fixture
def orchestrator(retry, robots_checker):
    return SessionOrchestrator(retry=retry, robots_checker=robots_checker, fetcher=Mock())


class TestRunSession:
    """Per-identity processing."""

    def test_identities_run_in_registration_order(self, orchestrator, retry, page_builder):
        """Results and fetches follow the registry order."""
        retry.fetch_with_retry.return_value = ok_outcome(page_builder())
        seen = []

        session = orchestrator.run_session(URL, on_result=seen.append)

        assert [c.crawler for c in session.crawlers] == ["GPTBot", "ClaudeBot", "GoogleBot", "BingBot"]
        assert seen == session.crawlers
        user_agents = [call.args[1] for call in retry.fetch_with_retry.call_args_list]
        assert user_agents == [identity.user_agent for identity in AI_CRAWLERS]

    def test_robots_callback_fires_first(self, orchestrator, retry, robots_checker, page_builder):
        """The robots.txt result is delivered before any identity result."""
        retry.fetch_with_retry.return_value = ok_outcome(page_builder())
        events = []

        session = orchestrator.run_session(
            URL,
            on_result=lambda outcome: events.append(outcome.crawler),
            on_robots=lambda robots: events.append("robots"),
        )

        assert events[0] == "robots"
        assert len(events) == 5
        assert session.robots is robots_checker.check.return_value
        robots_checker.check.assert_called_once_with(URL)

    def test_all_perfect(self, orchestrator, retry, page_builder):
        """Four perfect pages average 100."""
        retry.fetch_with_retry.return_value = ok_outcome(page_builder())

        session = orchestrator.run_session(URL)

        assert session.average_score == 100
        assert session.score_range == "excellent"
        assert session.failed == []
        assert session.finished_at is not None

    def test_average_excludes_errors(self, orchestrator, retry, page_builder):
        """Errored identities neither count nor drag the average down."""
        retry.fetch_with_retry.side_effect = [
            ok_outcome(page_builder()),
            network_error(),
            ok_outcome(page_builder(title=None)),
            ok_outcome("Forbidden", status_code=403),
        ]

        session = orchestrator.run_session(URL)

        assert session.average_score == 90
        assert [c.is_error for c in session.crawlers] == [False, True, False, True]
        assert len(session.successful) == 2
        assert session.score_range == "excellent"

    def test_no_successes_average_zero(self, orchestrator, retry):
        """Every identity failing yields an average of 0."""
        retry.fetch_with_retry.side_effect = network_error()

        session = orchestrator.run_session(URL)

        assert session.average_score == 0
        assert session.score_range == "poor"
        assert all(isinstance(c, CrawlerError) for c in session.crawlers)

    def test_http_error_outcome(self, orchestrator, retry):
        """A delivered error status becomes a CrawlerError with an explanation."""
        retry.fetch_with_retry.return_value = ok_outcome("missing", status_code=404)

        session = orchestrator.run_session(URL)

        error = session.crawlers[0]
        assert isinstance(error, CrawlerError)
        assert error.error == "HTTP 404"
        assert error.status_code == 404
        assert error.explanation == "Page not found"
        assert error.score == 0
        assert len(error.attempts) == 1

    def test_fetch_error_outcome(self, orchestrator, retry):
        """A terminal fetch failure keeps its message and attempt trace."""
        retry.fetch_with_retry.side_effect = network_error()

        session = orchestrator.run_session(URL)

        error = session.crawlers[0]
        assert error.error == "Connection refused"
        assert error.status_code is None
        assert "refused" in error.explanation.lower()
        assert len(error.attempts) == 3

    def test_redirect_error_explanation(self, orchestrator, retry):
        """Redirect loops are explained as such."""
        retry.fetch_with_retry.side_effect = TooManyRedirectsError("Too many redirects (5)", redirect_count=5)

        session = orchestrator.run_session(URL)

        assert "redirect" in session.crawlers[0].explanation.lower()

    def test_fetch_diagnostics_attached(self, orchestrator, retry, page_builder):
        """Final URL, redirect chain and attempts ride along with the analysis."""
        hop = RedirectHop("http://example.com/", URL, 301)
        retry.fetch_with_retry.return_value = ok_outcome(page_builder(), redirect_chain=(hop,))

        session = orchestrator.run_session("http://example.com/")

        result = session.crawlers[0]
        assert isinstance(result, AnalysisResult)
        assert result.final_url == URL
        assert result.redirect_chain == [hop]
        assert len(result.attempts) == 1

    def test_custom_registry(self, retry, robots_checker, page_builder):
        """Only the configured identities are tested."""
        registry = IdentityRegistry({"OnlyBot": "OnlyBot/1.0"})
        retry.fetch_with_retry.return_value = ok_outcome(page_builder())
        orchestrator = SessionOrchestrator(
            registry=registry, retry=retry, robots_checker=robots_checker, fetcher=Mock()
        )

        session = orchestrator.run_session(URL)

        assert [c.crawler for c in session.crawlers] == ["OnlyBot"]

    def test_custom_explanation_tables(self, retry, robots_checker):
        """Injected tables replace the built-in explanations."""
        retry.fetch_with_retry.side_effect = [
            ok_outcome("gone", status_code=410),
            network_error(category="dns"),
        ]
        orchestrator = SessionOrchestrator(
            registry=IdentityRegistry({"A": "a/1", "B": "b/1"}),
            retry=retry,
            robots_checker=robots_checker,
            fetcher=Mock(),
            status_explanations={410: "Removed for good"},
            error_explanations={"dns": "Check the hostname", "network": "Network trouble"},
        )

        session = orchestrator.run_session(URL)

        assert [c.explanation for c in session.crawlers] == ["Removed for good", "Check the hostname"]

    def test_cancel_delegates_to_retry(self, orchestrator, retry):
        """cancel() interrupts the retry coordinator."""
        orchestrator.cancel()

        retry.cancel.assert_called_once_with()


class TestAverageScore:
    """Average score helper."""

    def test_empty(self):
        assert SessionOrchestrator.average_score([]) == 0.0

    def test_mixed(self):
        outcomes = [
            AnalysisResult(crawler="A", score=80),
            CrawlerError(crawler="B", error="HTTP 500"),
            AnalysisResult(crawler="C", score=55),
        ]

        assert SessionOrchestrator.average_score(outcomes) == 67.5


class TestDefaults:
    """Construction from configuration."""

    def test_builds_components_from_config(self):
        """Config values reach the fetcher and retry coordinator."""
        config = Config(timeout=3.0, max_retries=2, max_redirects=4, backoff_base=0.5)

        orchestrator = SessionOrchestrator(config=config)

        assert orchestrator.registry is default_registry
        assert orchestrator.fetcher.timeout == 3.0
        assert orchestrator.fetcher.max_redirects == 4
        assert orchestrator.retry.max_retries == 2
        assert orchestrator.retry.backoff_base == 0.5
        assert orchestrator.robots_checker.identity.name == "GPTBot"


class TestEndToEnd:
    """Real fetcher, retry and analyzer over a fake HTTP session."""

    def test_full_session(self, make_session, make_response, no_wait, page_builder):
        """robots.txt, redirects and analysis all flow into one session result."""
        session = make_session({
            "http://example.com/robots.txt": make_response(
                body="User-agent: GPTBot\nDisallow: /\nSitemap: https://example.com/sitemap.xml\n"
            ),
            "http://example.com/": make_response(301, headers={"Location": URL}),
            URL: make_response(body=page_builder(h1=None)),
        })
        fetcher = ResilientFetcher(session=session)
        retry = RetryCoordinator(fetcher, wait=no_wait)

        result = SessionOrchestrator(fetcher=fetcher, retry=retry).run_session("http://example.com/")

        assert result.robots.accessible is True
        assert result.robots.issues == ["GPTBot is blocked in robots.txt"]
        assert result.robots.sitemaps == ["https://example.com/sitemap.xml"]
        assert [c.score for c in result.crawlers] == [90, 90, 90, 90]
        assert result.crawlers[0].redirect_chain == [RedirectHop("http://example.com/", URL, 301)]
        assert result.average_score == 90
        assert no_wait.delays == []

    def test_flaky_identity_recovers(self, make_session, make_response, no_wait, page_builder):
        """A transient failure costs one backoff and no score."""
        session = make_session({
            "https://example.com/robots.txt": make_response(404),
            URL: [
                requests.exceptions.ConnectionError("Connection reset by peer"),
                make_response(body=page_builder()),
            ],
        })
        fetcher = ResilientFetcher(session=session)
        retry = RetryCoordinator(fetcher, wait=no_wait)

        result = SessionOrchestrator(fetcher=fetcher, retry=retry).run_session(URL)

        assert result.robots.accessible is False
        assert result.average_score == 100
        assert len(result.crawlers[0].attempts) == 2
        assert no_wait.delays == [1.0]

    def test_json_serializable(self, make_session, make_response, no_wait, page_builder):
        """to_dict output contains plain data only."""
        import json

        session = make_session({
            "https://example.com/robots.txt": make_response(404),
            URL: make_response(body=page_builder()),
        })
        fetcher = ResilientFetcher(session=session)
        retry = RetryCoordinator(fetcher, wait=no_wait)

        data = SessionOrchestrator(fetcher=fetcher, retry=retry).run_session(URL).to_dict()

        rendered = json.loads(json.dumps(data))
        assert rendered["robots_txt"]["error"] == "robots.txt returned status 404"
        assert len(rendered["crawlers"]) == 4
        assert rendered["crawlers"][0]["attempts"][0]["outcome"] == "success"


    def test_unparsable_redirect_does_not_abort_session(self, make_session, make_response, no_wait):
        """A broken Location becomes per-identity errors and an inaccessible robots.txt."""
        session = make_session({
            "https://example.com/robots.txt": make_response(302, headers={"Location": "http://[::1"}),
            URL: make_response(302, headers={"Location": "http://[::1"}),
        })
        fetcher = ResilientFetcher(session=session)
        retry = RetryCoordinator(fetcher, wait=no_wait)

        result = SessionOrchestrator(fetcher=fetcher, retry=retry).run_session(URL)

        assert result.robots.accessible is False
        assert result.robots.error == "Invalid redirect location: http://[::1"
        assert len(result.crawlers) == 4
        assert all(isinstance(c, CrawlerError) for c in result.crawlers)
        assert result.crawlers[0].error == "Invalid redirect location: http://[::1"
        assert "not a valid URL" in result.crawlers[0].explanation
        assert len(result.crawlers[0].attempts) == 1
        assert no_wait.delays == []
        assert result.average_score == 0


class TestPackageShortcut:
    """crawlerview.run_session convenience wrapper."""

    def test_delegates_to_orchestrator(self):
        import crawlerview

        config = Config(max_retries=1)
        with patch("crawlerview.SessionOrchestrator") as mock_cls:
            result = crawlerview.run_session(URL, config)

        mock_cls.assert_called_once_with(config=config)
        mock_cls.return_value.run_session.assert_called_once_with(URL)
        assert result is mock_cls.return_value.run_session.return_value
