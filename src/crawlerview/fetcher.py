"""Single-attempt HTTP fetcher with manual redirect and compression handling."""

import gzip
import logging
import socket
import threading
import time
import zlib
from http.cookiejar import DefaultCookiePolicy
from typing import Optional
from urllib.parse import urljoin

import brotli
import requests
import urllib3

from crawlerview.constants import (
    ACCEPT_ENCODING_HEADER,
    ACCEPT_HEADER,
    ACCEPT_LANGUAGE_HEADER,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    MAX_REDIRECTS,
    READ_CHUNK_SIZE,
    REDIRECT_STATUS_CODES,
)
from crawlerview.exceptions import (
    DecompressionError,
    FetchTimeoutError,
    InvalidRedirectError,
    NetworkError,
    TooManyRedirectsError,
)
from crawlerview.models import FetchResult, RedirectHop

logger = logging.getLogger(__name__)

# Substrings of socket error messages, checked in order
_NETWORK_ERROR_MARKERS = (
    ("dns", (
        "name or service not known",
        "nodename nor servname",
        "temporary failure in name resolution",
        "no address associated",
        "getaddrinfo",
        "nameresolutionerror",
        "failed to resolve",
    )),
    ("refused", ("connection refused", "actively refused", "econnrefused")),
    ("reset", ("connection reset", "econnreset", "connection aborted", "remotedisconnected")),
)


def classify_network_error(exc: BaseException) -> str:
    """Map a socket-level failure to an explanation category.

    Returns one of ``dns``, ``refused``, ``reset`` or ``network``.
    """
    text = f"{type(exc).__name__}: {exc}".lower()
    for category, markers in _NETWORK_ERROR_MARKERS:
        if any(marker in text for marker in markers):
            return category
    return "network"


def decompress_body(body: bytes, content_encoding: Optional[str]) -> bytes:
    """Undo the content coding named by the Content-Encoding header.

    Only ``gzip``, ``deflate`` and ``br`` are decoded. Any other value, or no
    header at all, returns the bytes unchanged.

    Raises:
        DecompressionError: If the body is not valid for its declared coding.
    """
    encoding = (content_encoding or "").strip().lower()

    try:
        if encoding == "gzip":
            return gzip.decompress(body)
        if encoding == "deflate":
            return zlib.decompress(body)
        if encoding == "br":
            return brotli.decompress(body)
    except (OSError, EOFError, zlib.error, brotli.error) as e:
        raise DecompressionError(f"Decompression error: {e}") from e

    return body


class ResilientFetcher:
    """Performs one logical GET: follows redirects, decodes compression, enforces a deadline."""

    def __init__(
        self,
        timeout: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
        max_redirects: int = MAX_REDIRECTS,
        session: Optional[requests.Session] = None,
    ):
        """Initialize the fetcher.

        Args:
            timeout: Seconds allowed for one attempt, including every redirect hop
                and the full body read
            max_redirects: Maximum redirects followed before giving up
            session: Optional requests session (a new one is created if None)
        """
        self.timeout = timeout
        self.max_redirects = max_redirects
        if session is None:
            session = requests.Session()
            # Cookies set for one identity must not leak into the next
            session.cookies.set_policy(DefaultCookiePolicy(allowed_domains=[]))
        self.session = session

    @staticmethod
    def build_headers(user_agent: str) -> dict[str, str]:
        return {
            "User-Agent": user_agent,
            "Accept": ACCEPT_HEADER,
            "Accept-Language": ACCEPT_LANGUAGE_HEADER,
            "Accept-Encoding": ACCEPT_ENCODING_HEADER,
        }

    def fetch(self, url: str, user_agent: str) -> FetchResult:
        """Fetch a URL as the given User-Agent.

        Args:
            url: Absolute http(s) URL
            user_agent: User-Agent header value

        Returns:
            FetchResult for the final (non-redirect) response

        Raises:
            NetworkError: Connection-level failure
            FetchTimeoutError: The attempt ran past its deadline
            TooManyRedirectsError: More than ``max_redirects`` redirects
            InvalidRedirectError: A redirect Location that cannot be parsed as a URL
            DecompressionError: Malformed compressed body
        """
        started = time.monotonic()
        deadline = started + self.timeout
        headers = self.build_headers(user_agent)
        redirect_chain: list[RedirectHop] = []
        current_url = url

        while True:
            if len(redirect_chain) >= self.max_redirects:
                raise TooManyRedirectsError(
                    f"Too many redirects ({len(redirect_chain)})",
                    url=current_url,
                    redirect_count=len(redirect_chain),
                )

            response = self._send(current_url, headers, deadline)
            try:
                location = response.headers.get("Location")
                if response.status_code in REDIRECT_STATUS_CODES and location:
                    # Relative targets resolve against the URL that answered
                    target = self._resolve_redirect(current_url, location)
                    redirect_chain.append(RedirectHop(current_url, target, response.status_code))
                    logger.debug(f"{response.status_code} redirect: {current_url} -> {target}")
                    current_url = target
                    continue

                raw_body = self._read_body(response, current_url, deadline)
                response_headers = {k.lower(): v for k, v in response.headers.items()}
                status_code = response.status_code
            finally:
                response.close()

            body = decompress_body(raw_body, response_headers.get("content-encoding"))
            text = body.decode("utf-8", errors="replace")

            elapsed = time.monotonic() - started
            logger.debug(
                f"Fetched {current_url} ({status_code}, {len(body)} bytes, "
                f"{len(redirect_chain)} redirects, {elapsed:.2f}s)"
            )
            return FetchResult(
                status_code=status_code,
                headers=response_headers,
                text=text,
                final_url=current_url,
                redirect_chain=tuple(redirect_chain),
                elapsed=elapsed,
            )

    def _remaining(self, deadline: float, url: str) -> float:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise FetchTimeoutError("Request timeout", url=url)
        return remaining

    def _send(self, url: str, headers: dict[str, str], deadline: float) -> requests.Response:
        remaining = self._remaining(deadline, url)
        try:
            return self.session.get(
                url,
                headers=headers,
                timeout=(remaining, remaining),
                allow_redirects=False,
                stream=True,
            )
        except requests.exceptions.Timeout as e:
            raise FetchTimeoutError("Request timeout", url=url) from e
        except requests.exceptions.ConnectionError as e:
            raise NetworkError(str(e), url=url, category=classify_network_error(e)) from e
        except requests.exceptions.RequestException as e:
            raise NetworkError(str(e), url=url) from e

    @staticmethod
    def _resolve_redirect(current_url: str, location: str) -> str:
        try:
            return urljoin(current_url, location)
        except ValueError as e:
            raise InvalidRedirectError(
                f"Invalid redirect location: {location}", url=current_url
            ) from e

    def _read_body(self, response: requests.Response, url: str, deadline: float) -> bytes:
        """Read the undecoded body, aborting the connection once the deadline passes.

        A server that trickles bytes never trips the socket read timeout, so a
        watchdog shuts the connection down at the deadline and unblocks the read.
        """
        expired = threading.Event()

        def abort():
            expired.set()
            logger.debug(f"Deadline reached while reading {url}; closing connection")
            _shutdown_connection(response)

        watchdog = threading.Timer(self._remaining(deadline, url), abort)
        watchdog.daemon = True
        watchdog.start()

        chunks = []
        try:
            for chunk in response.raw.stream(READ_CHUNK_SIZE, decode_content=False):
                chunks.append(chunk)
                self._remaining(deadline, url)
        except urllib3.exceptions.TimeoutError as e:
            raise FetchTimeoutError("Request timeout", url=url) from e
        except (urllib3.exceptions.HTTPError, OSError) as e:
            if expired.is_set():
                raise FetchTimeoutError("Request timeout", url=url) from e
            raise NetworkError(str(e), url=url, category=classify_network_error(e)) from e
        except Exception as e:
            # Reads on a connection closed underneath us fail in assorted ways
            if expired.is_set():
                raise FetchTimeoutError("Request timeout", url=url) from e
            raise
        finally:
            watchdog.cancel()

        if expired.is_set():
            raise FetchTimeoutError("Request timeout", url=url)
        return b"".join(chunks)


def _shutdown_connection(response: requests.Response) -> None:
    """Unblock a pending read on ``response`` and release its connection."""
    connection = getattr(response.raw, "connection", None)
    sock = getattr(connection, "sock", None)
    if sock is not None:
        try:
            sock.shutdown(socket.SHUT_RDWR)
        except OSError as e:
            logger.debug(f"Socket shutdown failed: {e}")
    response.close()
