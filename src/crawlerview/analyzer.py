"""HTML signal analyzer for AI crawler accessibility.

Signals are found with targeted patterns over the raw markup rather than a
full DOM parse, so truncated or malformed documents still produce a result.
BeautifulSoup is used only to pull readable excerpts (title, description,
first h1) once a signal is known to be present.
"""

import json
import logging
import re
from typing import Any, Optional

from bs4 import BeautifulSoup

from crawlerview.constants import (
    MAX_EXCERPT_LENGTH,
    MAX_SCORE,
    MIN_CONTENT_LENGTH,
    MIN_NOSCRIPT_LENGTH,
    MIN_SCORE,
    SCORE_WEIGHTS,
)
from crawlerview.models import AnalysisResult

logger = logging.getLogger(__name__)

_BODY_RE = re.compile(r"<body[^>]*>([\s\S]*?)</body>", re.IGNORECASE)
_SCRIPT_BLOCK_RE = re.compile(r"<script[^>]*>[\s\S]*?</script>", re.IGNORECASE)
_STYLE_BLOCK_RE = re.compile(r"<style[^>]*>[\s\S]*?</style>", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]+>")
_WHITESPACE_RE = re.compile(r"\s+")
_NOSCRIPT_RE = re.compile(r"<noscript[^>]*>([\s\S]*?)</noscript>", re.IGNORECASE)
_JSON_LD_RE = re.compile(
    r'<script type="application/ld\+json"[^>]*>([\s\S]*?)</script>', re.IGNORECASE
)
_TITLE_RE = re.compile(r"<title[^>]*>")
_DESCRIPTION_RE = re.compile(r'<meta\s+name="description"', re.IGNORECASE)
_H1_RE = re.compile(r"<h1[^>]*>")

# Client-side rendering markers, checked in order; first match wins
LOADING_PATTERNS = (
    re.compile(r'class="[^"]*loading[^"]*"', re.IGNORECASE),
    re.compile(r'class="[^"]*spinner[^"]*"', re.IGNORECASE),
    re.compile(r'aria-busy="true"', re.IGNORECASE),
    re.compile(r"Loading\.\.\.", re.IGNORECASE),
)

ISSUE_NO_BODY = "No <body> tag found - invalid HTML"
ISSUE_NOSCRIPT_MINIMAL = "Noscript content is minimal - provide more fallback content"
ISSUE_NO_NOSCRIPT = "No <noscript> fallback - AI without JS support may not see content"
ISSUE_NO_STRUCTURED_DATA = "No structured data (JSON-LD) found - missing rich snippet opportunity"
ISSUE_NO_TITLE = "Missing <title> tag - critical for AI understanding"
ISSUE_NO_DESCRIPTION = "Missing meta description - AI may not understand page purpose"
ISSUE_NO_H1 = "No <h1> heading - missing primary topic indicator"
ISSUE_LOADING_STATE = "Loading state detected in HTML - page may be client-side rendered only"


def _strip_tags(fragment: str) -> str:
    return _TAG_RE.sub("", fragment)


def extract_body_text(html: str) -> Optional[str]:
    """Visible text of the first <body>, or None when there is no body element."""
    match = _BODY_RE.search(html)
    if not match:
        return None
    text = _SCRIPT_BLOCK_RE.sub("", match.group(1))
    text = _STYLE_BLOCK_RE.sub("", text)
    text = _strip_tags(text)
    return _WHITESPACE_RE.sub(" ", text).strip()


def calculate_score(result: AnalysisResult, weights: Optional[dict[str, int]] = None) -> int:
    """Subtract the fixed weight of every failed signal from 100, floored at 0."""
    weights = weights or SCORE_WEIGHTS
    score = MAX_SCORE
    if not result.has_content:
        score -= weights["content"]
    if not result.has_noscript:
        score -= weights["noscript"]
    if not result.has_structured_data:
        score -= weights["structuredData"]
    if not result.has_meta_tags:
        score -= weights["metaTags"]
    if not result.has_h1:
        score -= weights["h1"]
    if result.has_loading_state:
        score -= weights["loadingState"]
    return max(MIN_SCORE, min(MAX_SCORE, score))


def _extract_types_from_jsonld(data: Any, types: list[str]) -> None:
    """Recursively collect @type values from a parsed JSON-LD document."""
    if isinstance(data, dict):
        type_val = data.get('@type')
        if isinstance(type_val, str):
            if type_val not in types:
                types.append(type_val)
        elif isinstance(type_val, list):
            for t in type_val:
                if isinstance(t, str) and t not in types:
                    types.append(t)

        # Nested objects, including @graph
        for value in data.values():
            if isinstance(value, (dict, list)):
                _extract_types_from_jsonld(value, types)

    elif isinstance(data, list):
        for item in data:
            _extract_types_from_jsonld(item, types)


def _truncate(text: Optional[str]) -> Optional[str]:
    if text is None:
        return None
    return text[:MAX_EXCERPT_LENGTH]


class AccessibilityAnalyzer:
    """Scores how much of a page a non-rendering crawler can understand."""

    def __init__(self, weights: Optional[dict[str, int]] = None):
        self.weights = dict(weights or SCORE_WEIGHTS)

    def analyze(self, html: str, crawler_name: str) -> AnalysisResult:
        """Extract signals from ``html`` and score them.

        Args:
            html: Raw HTML as served to the crawler
            crawler_name: Identity the page was fetched as

        Returns:
            AnalysisResult with signals, ordered issues and a 0-100 score
        """
        html = html or ""
        result = AnalysisResult(crawler=crawler_name)

        self._check_content(html, result)
        self._check_noscript(html, result)
        self._check_structured_data(html, result)
        self._check_meta(html, result)
        self._check_h1(html, result)
        self._check_loading_state(html, result)
        self._extract_excerpts(html, result)

        result.score = calculate_score(result, self.weights)
        return result

    def _check_content(self, html: str, result: AnalysisResult) -> None:
        text = extract_body_text(html)
        if text is None:
            result.issues.append(ISSUE_NO_BODY)
            return

        result.content_length = len(text)
        result.has_content = len(text) > MIN_CONTENT_LENGTH
        if not result.has_content:
            result.issues.append(
                f"Very little text content ({len(text)} chars) - AI may not understand page"
            )

    def _check_noscript(self, html: str, result: AnalysisResult) -> None:
        match = _NOSCRIPT_RE.search(html)
        if not match:
            result.issues.append(ISSUE_NO_NOSCRIPT)
            return

        result.has_noscript = True
        result.noscript_length = len(_strip_tags(match.group(1)).strip())
        if result.noscript_length < MIN_NOSCRIPT_LENGTH:
            result.issues.append(ISSUE_NOSCRIPT_MINIMAL)

    def _check_structured_data(self, html: str, result: AnalysisResult) -> None:
        blocks = _JSON_LD_RE.findall(html)
        if not blocks:
            result.issues.append(ISSUE_NO_STRUCTURED_DATA)
            return

        result.has_structured_data = True
        result.structured_data_count = len(blocks)

        for block in blocks:
            try:
                data = json.loads(block.strip())
            except ValueError:
                result.invalid_structured_data_count += 1
                continue
            _extract_types_from_jsonld(data, result.structured_data_types)

    def _check_meta(self, html: str, result: AnalysisResult) -> None:
        result.has_title = bool(_TITLE_RE.search(html))
        result.has_description = bool(_DESCRIPTION_RE.search(html))
        result.has_meta_tags = result.has_title and result.has_description

        if not result.has_title:
            result.issues.append(ISSUE_NO_TITLE)
        if not result.has_description:
            result.issues.append(ISSUE_NO_DESCRIPTION)

    def _check_h1(self, html: str, result: AnalysisResult) -> None:
        result.has_h1 = bool(_H1_RE.search(html))
        if not result.has_h1:
            result.issues.append(ISSUE_NO_H1)

    def _check_loading_state(self, html: str, result: AnalysisResult) -> None:
        for pattern in LOADING_PATTERNS:
            if pattern.search(html):
                result.has_loading_state = True
                result.issues.append(ISSUE_LOADING_STATE)
                break

    def _extract_excerpts(self, html: str, result: AnalysisResult) -> None:
        if not (result.has_title or result.has_description or result.has_h1):
            return

        try:
            soup = BeautifulSoup(html, "html.parser")
        except Exception as e:
            # Excerpts are optional; signals and score are already set
            logger.debug(f"Excerpt extraction failed for {result.crawler}: {e}")
            return

        if result.has_title:
            title = soup.find("title")
            result.title = _truncate(title.get_text(" ", strip=True)) if title else None

        if result.has_description:
            description_tag = soup.find("meta", attrs={"name": "description"})
            description = description_tag.get("content") if description_tag else None
            result.description = _truncate(description.strip()) if description else None

        if result.has_h1:
            h1 = soup.find("h1")
            result.h1 = _truncate(h1.get_text(" ", strip=True)) if h1 else None


_default_analyzer = AccessibilityAnalyzer()


def analyze_html(html: str, crawler_name: str) -> AnalysisResult:
    """Analyze HTML with the default weights."""
    return _default_analyzer.analyze(html, crawler_name)
