"""Data models for crawler accessibility sessions."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Union


@dataclass(frozen=True)
class CrawlerIdentity:
    """A simulated crawler: a unique name and the User-Agent it sends."""

    name: str
    user_agent: str


@dataclass(frozen=True)
class RedirectHop:
    """One redirect followed by the fetcher."""

    from_url: str
    to_url: str
    status: int

    def to_dict(self) -> dict:
        return {"from": self.from_url, "to": self.to_url, "status": self.status}


@dataclass(frozen=True)
class FetchResult:
    """Outcome of one logical GET after redirects and decompression."""

    status_code: int
    headers: dict[str, str]
    text: str
    final_url: str
    redirect_chain: tuple[RedirectHop, ...] = ()
    elapsed: float = 0.0

    @property
    def was_redirected(self) -> bool:
        return bool(self.redirect_chain)


class AttemptOutcome(str, Enum):
    """How a single fetch attempt ended."""

    SUCCESS = "success"
    HTTP_ERROR = "http_error"
    NETWORK_ERROR = "network_error"


@dataclass(frozen=True)
class RetryAttempt:
    """Record of one attempt made by the retry coordinator."""

    attempt: int
    outcome: AttemptOutcome
    status_code: Optional[int] = None
    message: Optional[str] = None
    elapsed: float = 0.0
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict:
        return {
            "attempt": self.attempt,
            "outcome": self.outcome.value,
            "status_code": self.status_code,
            "message": self.message,
            "elapsed": round(self.elapsed, 3),
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class RetryOutcome:
    """Last fetch result together with the full attempt trace."""

    result: FetchResult
    attempts: tuple[RetryAttempt, ...]


@dataclass
class AnalysisResult:
    """Signals, issues and score extracted from one crawler's view of a page."""

    crawler: str
    has_content: bool = False
    content_length: int = 0
    has_noscript: bool = False
    noscript_length: int = 0
    has_structured_data: bool = False
    structured_data_count: int = 0
    invalid_structured_data_count: int = 0
    structured_data_types: list[str] = field(default_factory=list)
    has_title: bool = False
    has_description: bool = False
    has_meta_tags: bool = False
    has_h1: bool = False
    has_loading_state: bool = False
    issues: list[str] = field(default_factory=list)
    score: int = 0

    # Excerpts
    title: Optional[str] = None
    description: Optional[str] = None
    h1: Optional[str] = None

    # Fetch diagnostics, attached by the orchestrator
    final_url: Optional[str] = None
    redirect_chain: list[RedirectHop] = field(default_factory=list)
    attempts: list[RetryAttempt] = field(default_factory=list)

    @property
    def is_error(self) -> bool:
        return False

    def to_dict(self) -> dict:
        return {
            "crawler": self.crawler,
            "score": self.score,
            "has_content": self.has_content,
            "content_length": self.content_length,
            "has_noscript": self.has_noscript,
            "noscript_length": self.noscript_length,
            "has_structured_data": self.has_structured_data,
            "structured_data_count": self.structured_data_count,
            "invalid_structured_data_count": self.invalid_structured_data_count,
            "structured_data_types": list(self.structured_data_types),
            "has_title": self.has_title,
            "has_description": self.has_description,
            "has_meta_tags": self.has_meta_tags,
            "has_h1": self.has_h1,
            "has_loading_state": self.has_loading_state,
            "issues": list(self.issues),
            "title": self.title,
            "description": self.description,
            "h1": self.h1,
            "final_url": self.final_url,
            "redirect_chain": [hop.to_dict() for hop in self.redirect_chain],
            "attempts": [attempt.to_dict() for attempt in self.attempts],
        }


@dataclass
class CrawlerError:
    """Outcome for an identity whose page could not be analyzed."""

    crawler: str
    error: str
    status_code: Optional[int] = None
    explanation: Optional[str] = None
    attempts: list[RetryAttempt] = field(default_factory=list)
    score: int = 0

    @property
    def is_error(self) -> bool:
        return True

    def to_dict(self) -> dict:
        return {
            "crawler": self.crawler,
            "error": self.error,
            "status_code": self.status_code,
            "explanation": self.explanation,
            "score": self.score,
            "attempts": [attempt.to_dict() for attempt in self.attempts],
        }


CrawlerOutcome = Union[AnalysisResult, CrawlerError]


@dataclass
class RobotsCheckResult:
    """Result of fetching and scanning robots.txt."""

    url: str
    accessible: bool = False
    content: Optional[str] = None
    error: Optional[str] = None
    issues: list[str] = field(default_factory=list)
    sitemaps: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "url": self.url,
            "accessible": self.accessible,
            "content": self.content,
            "error": self.error,
            "issues": list(self.issues),
            "sitemaps": list(self.sitemaps),
        }


@dataclass
class SessionResult:
    """Complete evaluation of one URL across all crawler identities."""

    url: str
    robots: RobotsCheckResult
    crawlers: list[CrawlerOutcome] = field(default_factory=list)
    average_score: float = 0.0
    score_range: Optional[str] = None
    started_at: datetime = field(default_factory=datetime.now)
    finished_at: Optional[datetime] = None

    @property
    def successful(self) -> list[AnalysisResult]:
        return [c for c in self.crawlers if not c.is_error]

    @property
    def failed(self) -> list[CrawlerError]:
        return [c for c in self.crawlers if c.is_error]

    def to_dict(self) -> dict:
        return {
            "url": self.url,
            "robots_txt": self.robots.to_dict(),
            "crawlers": [c.to_dict() for c in self.crawlers],
            "average_score": self.average_score,
            "score_range": self.score_range,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
        }
