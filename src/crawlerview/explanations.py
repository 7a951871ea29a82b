"""Score explanations, fix recommendations and error descriptions.

Static, read-only lookup tables used to annotate results. Nothing here
affects scoring; the weights themselves live in constants.SCORE_WEIGHTS.
"""

from types import MappingProxyType
from typing import Mapping, Optional

from crawlerview.constants import SCORE_WEIGHTS
from crawlerview.models import AnalysisResult


CRAWLER_INFO = MappingProxyType({
    "GPTBot": {
        "name": "GPTBot (OpenAI)",
        "description": "OpenAI's web crawler that collects content to train and improve AI models like ChatGPT",
        "documentation": "https://platform.openai.com/docs/gptbot",
    },
    "ClaudeBot": {
        "name": "ClaudeBot (Anthropic)",
        "description": "Anthropic's web crawler that collects content for AI model training and web search",
        "documentation": "https://support.claude.com/en/articles/8896518",
    },
    "GoogleBot": {
        "name": "Googlebot (Google)",
        "description": "Google's primary crawler for search indexing",
        "documentation": "https://developers.google.com/search/docs/crawling-indexing/overview-google-crawlers",
    },
    "BingBot": {
        "name": "BingBot (Microsoft Bing)",
        "description": "Microsoft's web crawler for Bing search engine indexing",
        "documentation": "https://www.bing.com/webmasters/help/which-crawlers-does-bing-use-8c184ec0",
    },
})


SCORING_EXPLANATIONS = MappingProxyType({
    "content": {
        "title": "Content Accessibility",
        "weight": -SCORE_WEIGHTS["content"],
        "why": (
            "AI crawlers need sufficient text content to understand what your page is about. "
            "Pages with less than 200 characters of text provide little value for AI understanding "
            "and search indexing."
        ),
        "impact": "Missing or insufficient content is the most critical issue. AI crawlers cannot understand your page without adequate text.",
        "fix": [
            "Add descriptive, meaningful text content (minimum 200 characters)",
            "Use server-side rendering (SSR) or static site generation (SSG) so content is in the initial HTML",
            "Avoid client-side-only rendering that requires JavaScript to display content",
        ],
    },
    "noscript": {
        "title": "Noscript Fallback",
        "weight": -SCORE_WEIGHTS["noscript"],
        "why": "Some AI crawlers do not execute JavaScript. The <noscript> tag provides fallback content for them.",
        "impact": "Crawlers without full JavaScript support may miss your content.",
        "fix": [
            "Add <noscript> tags with meaningful fallback content",
            "Ensure noscript content is substantial (minimum 100 characters)",
            "Provide actual content rather than a 'JavaScript required' notice",
        ],
    },
    "structuredData": {
        "title": "Structured Data (JSON-LD)",
        "weight": -SCORE_WEIGHTS["structuredData"],
        "why": "Structured data helps AI crawlers understand the semantic meaning of your content using Schema.org vocabulary.",
        "impact": "Missing structured data loses rich snippet opportunities and makes content harder to categorize.",
        "fix": [
            "Add a <script type=\"application/ld+json\"> block describing the page",
            "Pick the most specific Schema.org type (Article, Product, FAQPage, Organization...)",
            "Validate with Google's Rich Results Test",
        ],
    },
    "metaTags": {
        "title": "Meta Tags (Title & Description)",
        "weight": -SCORE_WEIGHTS["metaTags"],
        "why": "Title and meta description give crawlers a concise summary of page content and purpose.",
        "impact": "Missing meta tags severely impact discoverability.",
        "fix": [
            "Add a unique, descriptive <title> (50-60 characters)",
            "Add <meta name=\"description\"> with a 150-160 character summary",
        ],
    },
    "h1": {
        "title": "H1 Heading",
        "weight": -SCORE_WEIGHTS["h1"],
        "why": "The H1 tag identifies the primary topic of the page.",
        "impact": "Crawlers cannot easily identify your page's primary focus.",
        "fix": [
            "Add exactly one <h1> describing the main topic",
            "Render the heading in the initial HTML, not with JavaScript",
        ],
    },
    "loadingState": {
        "title": "Loading State Detected",
        "weight": -SCORE_WEIGHTS["loadingState"],
        "why": "Spinners and 'Loading...' text in the served HTML mean real content arrives only after JavaScript runs.",
        "impact": "Crawlers that do not render JavaScript see a placeholder instead of your content.",
        "fix": [
            "Server-render or prerender the page so content replaces the loading placeholder",
            "Use a prerendering service for bots if SSR is not an option",
        ],
    },
})


SCORE_RANGES = (
    {
        "key": "excellent",
        "min": 80,
        "label": "EXCELLENT",
        "verdict": "Your page is highly accessible to AI crawlers. Content is well-structured, complete, and optimized for AI understanding.",
    },
    {
        "key": "good",
        "min": 60,
        "label": "GOOD",
        "verdict": "Your page is accessible to AI crawlers but has room for improvement. Address the issues below to maximize AI visibility.",
    },
    {
        "key": "fair",
        "min": 40,
        "label": "FAIR",
        "verdict": "Your page has several accessibility issues that limit AI crawler understanding. Multiple improvements are needed.",
    },
    {
        "key": "poor",
        "min": 0,
        "label": "POOR",
        "verdict": "Your page has critical accessibility problems. AI crawlers likely cannot properly understand or index your content.",
    },
)


STATUS_EXPLANATIONS = MappingProxyType({
    301: "Permanent redirect without a usable Location header",
    302: "Temporary redirect without a usable Location header",
    304: "Not modified; the server sent no content to analyze",
    400: "Bad request; the server rejected the request as malformed",
    401: "Authentication required; crawlers cannot log in",
    403: "Forbidden; the server or a firewall is blocking this crawler",
    404: "Page not found",
    405: "Method not allowed for GET requests",
    410: "Page permanently removed",
    429: "Rate limited; the server is throttling this crawler",
    451: "Unavailable for legal reasons",
    500: "Internal server error",
    502: "Bad gateway; an upstream server failed",
    503: "Service unavailable; the site may be down or blocking bots",
    504: "Gateway timeout; an upstream server did not respond in time",
})

NETWORK_ERROR_EXPLANATIONS = MappingProxyType({
    "dns": "Domain name could not be resolved; check the URL spelling and DNS records",
    "refused": "Connection refused; nothing is listening on that host and port",
    "reset": "Connection reset by the server; a firewall may be dropping crawler traffic",
    "timeout": "The server did not respond within the time limit",
    "redirects": "Redirect loop or chain too long; crawlers give up after 5 redirects",
    "invalid_redirect": "The server redirected to a Location that is not a valid URL",
    "decompression": "The response body could not be decompressed",
    "cancelled": "The check was cancelled before it finished",
    "network": "Network error while contacting the server",
})


def explain_status(status_code: int, table: Mapping[int, str] = STATUS_EXPLANATIONS) -> str:
    """One-line explanation of an HTTP status code."""
    if status_code in table:
        return table[status_code]
    if 400 <= status_code < 500:
        return "Client error; the server refused to serve this crawler"
    if status_code >= 500:
        return "Server error; the site failed to produce the page"
    return f"Unexpected HTTP status {status_code}"


def explain_error(
    category: Optional[str], table: Mapping[str, str] = NETWORK_ERROR_EXPLANATIONS
) -> str:
    """One-line explanation of a network error category."""
    fallback = table.get("network", NETWORK_ERROR_EXPLANATIONS["network"])
    return table.get(category or "network", fallback)


def get_score_range(score: float) -> dict:
    """Score range entry (excellent/good/fair/poor) for a 0-100 score."""
    for score_range in SCORE_RANGES:
        if score >= score_range["min"]:
            return score_range
    return SCORE_RANGES[-1]


def issue_types_for(result: AnalysisResult) -> list[str]:
    """Explanation keys for every failed signal of an analysis result."""
    types = []
    if not result.has_content:
        types.append("content")
    if not result.has_noscript:
        types.append("noscript")
    if not result.has_structured_data:
        types.append("structuredData")
    if not result.has_meta_tags:
        types.append("metaTags")
    if not result.has_h1:
        types.append("h1")
    if result.has_loading_state:
        types.append("loadingState")
    return types
