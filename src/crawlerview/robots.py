"""
robots.txt Checker

Fetches robots.txt for the target origin and looks for directives that
block AI crawlers. The scan is deliberately loose text matching: an agent
line followed anywhere later in the file by ``Disallow: /`` counts as a
block, regardless of group boundaries.
"""

import logging
import re
from typing import Iterable, Optional
from urllib.parse import urljoin, urlparse

from crawlerview.constants import ROBOTS_TXT_PATH, WATCHED_ROBOTS_AGENTS
from crawlerview.exceptions import FetchError
from crawlerview.fetcher import ResilientFetcher
from crawlerview.models import CrawlerIdentity, RobotsCheckResult

logger = logging.getLogger(__name__)

WILDCARD_BLOCK_ISSUE = "All bots may be blocked (User-agent: * with Disallow)"


def _block_pattern(agent: str) -> re.Pattern:
    return re.compile(
        rf"User-agent:\s*{re.escape(agent)}[\s\S]*?Disallow:\s*/",
        re.IGNORECASE,
    )


def robots_url_for(base_url: str) -> str:
    """Resolve /robots.txt against the origin of ``base_url``."""
    parsed = urlparse(base_url)
    origin = f"{parsed.scheme}://{parsed.netloc}"
    return urljoin(origin, ROBOTS_TXT_PATH)


def find_blocking_directives(
    robots_txt: str, agents: Iterable[str] = WATCHED_ROBOTS_AGENTS
) -> list[str]:
    """Return one issue per watched agent (then the wildcard) that appears blocked."""
    issues = []
    for agent in agents:
        if _block_pattern(agent).search(robots_txt):
            issues.append(f"{agent} is blocked in robots.txt")
    if _block_pattern("*").search(robots_txt):
        issues.append(WILDCARD_BLOCK_ISSUE)
    return issues


def find_sitemaps(robots_txt: str) -> list[str]:
    """Extract Sitemap URLs in file order."""
    sitemaps = []
    for line in robots_txt.splitlines():
        line = line.strip()

        # Skip comments and empty lines
        if not line or line.startswith('#'):
            continue

        if line.lower().startswith('sitemap:'):
            sitemap_url = line.split(':', 1)[1].strip()
            if sitemap_url:
                sitemaps.append(sitemap_url)
    return sitemaps


class RobotsChecker:
    """Fetch and inspect robots.txt with a single fixed identity."""

    def __init__(
        self,
        fetcher: ResilientFetcher,
        identity: CrawlerIdentity,
        watched_agents: Optional[Iterable[str]] = None,
    ):
        """
        Initialize checker.

        Args:
            fetcher: Fetcher used for the single robots.txt request
            identity: Identity whose User-Agent is sent
            watched_agents: Agent tokens checked for blocks
        """
        self.fetcher = fetcher
        self.identity = identity
        self.watched_agents = tuple(watched_agents or WATCHED_ROBOTS_AGENTS)

    def check(self, base_url: str) -> RobotsCheckResult:
        """Fetch robots.txt for the origin of ``base_url`` and scan it.

        Never raises for fetch failures; they are reported as inaccessible.
        """
        robots_url = robots_url_for(base_url)
        result = RobotsCheckResult(url=robots_url)

        try:
            response = self.fetcher.fetch(robots_url, self.identity.user_agent)
        except FetchError as e:
            logger.info(f"robots.txt not reachable at {robots_url}: {e.message}")
            result.error = e.message
            return result

        if response.status_code != 200:
            result.error = f"robots.txt returned status {response.status_code}"
            logger.info(result.error)
            return result

        result.accessible = True
        result.content = response.text
        result.issues = find_blocking_directives(response.text, self.watched_agents)
        result.sitemaps = find_sitemaps(response.text)

        if result.issues:
            logger.info(f"robots.txt issues: {'; '.join(result.issues)}")

        return result
