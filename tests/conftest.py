"""Shared fakes for tests that must never touch the network."""

import pytest
from requests.structures import CaseInsensitiveDict


class FakeRaw:
    """Stands in for urllib3's raw response; can be streamed more than once."""

    def __init__(self, body: bytes, error: Exception = None):
        self.body = body
        self.error = error
        self.decode_content_requested = []

    def stream(self, amt, decode_content=None):
        self.decode_content_requested.append(decode_content)
        for i in range(0, len(self.body), amt):
            yield self.body[i:i + amt]
        if self.error is not None:
            raise self.error


class FakeResponse:
    """Minimal requests.Response used by the fetcher."""

    def __init__(self, status_code=200, body=b"", headers=None, raw_error=None):
        if isinstance(body, str):
            body = body.encode("utf-8")
        self.status_code = status_code
        self.headers = CaseInsensitiveDict(headers or {})
        self.raw = FakeRaw(body, raw_error)
        self.closed = False

    def close(self):
        self.closed = True


class FakeSession:
    """requests.Session replacement that serves canned responses by URL.

    A route value may be a response, an exception to raise, or a list of
    either (consumed in order, the last entry repeating).
    """

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.calls = []

    @property
    def requested_urls(self):
        return [url for url, _ in self.calls]

    def get(self, url, **kwargs):
        self.calls.append((url, kwargs))
        outcome = self.routes.get(url)
        if outcome is None:
            raise AssertionError(f"Unexpected request to {url}")
        if isinstance(outcome, list):
            outcome = outcome.pop(0) if len(outcome) > 1 else outcome[0]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


@pytest.fixture
def make_response():
    """Factory for FakeResponse objects."""
    return FakeResponse


@pytest.fixture
def make_session():
    """Factory for FakeSession objects."""
    return FakeSession


@pytest.fixture
def no_wait():
    """Backoff wait that records delays instead of sleeping."""
    delays = []

    def wait(delay):
        delays.append(delay)
        return False

    wait.delays = delays
    return wait


FILLER = (
    "Crawler accessibility matters because answer engines read the served HTML "
    "rather than the rendered page, so every important sentence should already be "
    "present in the markup that the server returns for the very first request made."
)


def build_page(
    body_text=FILLER,
    noscript="Fallback summary for readers without JavaScript. " * 3,
    title="Crawler Guide",
    description="How AI crawlers read pages",
    h1="Crawler Guide",
    json_ld='{"@context": "https://schema.org", "@type": "Article", "headline": "Crawler Guide"}',
    extra_body="",
):
    """Assemble an HTML document; pass None to leave a part out."""
    head = []
    if title is not None:
        head.append(f"<title>{title}</title>")
    if description is not None:
        head.append(f'<meta name="description" content="{description}">')
    if json_ld is not None:
        head.append(f'<script type="application/ld+json">{json_ld}</script>')

    body = []
    if h1 is not None:
        body.append(f"<h1>{h1}</h1>")
    if body_text:
        body.append(f"<p>{body_text}</p>")
    if noscript is not None:
        body.append(f"<noscript><p>{noscript}</p></noscript>")
    body.append(extra_body)

    return (
        "<!DOCTYPE html><html><head>"
        + "".join(head)
        + "</head><body>"
        + "".join(body)
        + "</body></html>"
    )


@pytest.fixture
def page_builder():
    """The build_page helper, exposed as a fixture."""
    return build_page
