"""Feed retrieval for the feed aggregator."""

import threading
import time

import requests

from .exceptions import FetchError
from .logging_config import create_execution_logger

DEFAULT_TIMEOUT_MS = 15_000
CHUNK_SIZE = 64 * 1024

USER_AGENT = "feed-aggregator/1.0 (marketplace safety news RSS aggregator)"
ACCEPT = "application/rss+xml, application/atom+xml, application/xml, text/xml, */*"


class FeedFetcher:
    """Downloads raw feed documents over HTTP(S).

    Each worker thread gets its own ``requests.Session`` unless one is
    injected. The timeout bounds the whole download, body included.
    """

    def __init__(
        self,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        session: requests.Session | None = None,
        execution_id: str | None = None,
    ):
        """Initialize FeedFetcher with configuration.

        Args:
            timeout_ms: Per-request timeout in milliseconds
            session: Optional preconfigured session shared by all threads
                (tests inject a mock)
            execution_id: Execution ID for logging context
        """
        self.timeout_ms = timeout_ms
        self.logger = create_execution_logger("fetcher", execution_id)
        self._shared_session = session
        self._local = threading.local()
        if session is not None:
            self._configure(session)

        self.logger.debug("FeedFetcher initialized", timeout_ms=timeout_ms)

    @staticmethod
    def _configure(session: requests.Session) -> requests.Session:
        session.headers.update({"User-Agent": USER_AGENT, "Accept": ACCEPT})
        return session

    @property
    def session(self) -> requests.Session:
        """Session for the calling thread."""
        if self._shared_session is not None:
            return self._shared_session
        session = getattr(self._local, "session", None)
        if session is None:
            session = self._configure(requests.Session())
            self._local.session = session
        return session

    @property
    def timeout(self) -> float:
        """Timeout in seconds, as requests expects it."""
        return self.timeout_ms / 1000

    def fetch(self, url: str) -> bytes:
        """Download a single feed.

        Args:
            url: Feed URL

        Returns:
            Raw response body

        Raises:
            FetchError: On timeout, network failure or a non-2xx status
        """
        deadline = time.monotonic() + self.timeout
        try:
            response = self.session.get(url, timeout=self.timeout, stream=True)
            try:
                if not 200 <= response.status_code < 300:
                    raise FetchError(url, f"HTTP {response.status_code}")

                chunks = []
                for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                    chunks.append(chunk)
                    if time.monotonic() > deadline:
                        raise FetchError(url, f"timed out after {self.timeout_ms} ms")
            finally:
                response.close()
        except requests.Timeout as e:
            raise FetchError(url, f"timed out after {self.timeout_ms} ms") from e
        except requests.RequestException as e:
            raise FetchError(url, str(e)) from e

        content = b"".join(chunks)
        self.logger.debug(
            "Feed downloaded successfully",
            feed_url=url,
            status_code=response.status_code,
            content_length=len(content),
        )
        return content
