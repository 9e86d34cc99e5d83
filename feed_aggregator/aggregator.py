"""Bucket aggregation: fetch, extract, filter, deduplicate, rank and cap."""

from collections.abc import Callable, Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime

from .dates import EPOCH, format_instant, parse_instant
from .extract import extract
from .fetcher import FeedFetcher
from .logging_config import create_execution_logger
from .models import FeedSource, Item, RawCandidate
from .relevance import RelevanceFilter

MAX_ITEMS_PER_BUCKET = 80
DEFAULT_FETCH_WORKERS = 4

Extractor = Callable[[str | bytes, str], list[RawCandidate]]


def is_valid(candidate: RawCandidate) -> bool:
    """A candidate needs a title and a validated URL to become an Item."""
    return bool(candidate.title) and bool(candidate.url)


def to_item(candidate: RawCandidate, now_iso: str) -> Item:
    """Build an Item, substituting the run instant for a missing date."""
    return Item(
        title=candidate.title,
        source=candidate.source_name,
        url=candidate.url,
        published_at=candidate.published_at_raw or now_iso,
    )


def deduplicate(items: Iterable[Item]) -> list[Item]:
    """Remove items whose URL was already seen.

    Keeps the first occurrence and preserves input order.
    """
    seen: set[str] = set()
    out: list[Item] = []
    for item in items:
        if item.url in seen:
            continue
        seen.add(item.url)
        out.append(item)
    return out


def sort_key(item: Item) -> datetime:
    """Timestamp used for ranking; unparseable values rank as the epoch."""
    return parse_instant(item.published_at) or EPOCH


def rank(items: Iterable[Item]) -> list[Item]:
    """Sort newest first. Ties keep their pool order."""
    return sorted(items, key=sort_key, reverse=True)


class Aggregator:
    """Builds one bucket's item collection from its feed sources."""

    def __init__(
        self,
        fetcher: FeedFetcher,
        relevance_filter: RelevanceFilter | None = None,
        max_items: int = MAX_ITEMS_PER_BUCKET,
        max_workers: int = DEFAULT_FETCH_WORKERS,
        bucket: str = "",
        execution_id: str | None = None,
        extractor: Extractor = extract,
    ):
        """Initialize the aggregator.

        Args:
            fetcher: Feed fetcher shared by all sources of the bucket
            relevance_filter: Filter deciding which candidates are kept
            max_items: Bucket capacity
            max_workers: Number of feeds fetched concurrently
            bucket: Bucket name for logging context
            execution_id: Execution ID for logging context
            extractor: Function turning raw feed content into candidates
        """
        self.fetcher = fetcher
        self.relevance_filter = relevance_filter or RelevanceFilter()
        self.max_items = max_items
        self.max_workers = max(1, max_workers)
        self.bucket = bucket
        self.extractor = extractor
        self.logger = create_execution_logger(
            "aggregator", execution_id, bucket=bucket
        )

    def aggregate(
        self, sources: Sequence[FeedSource], now: datetime | None = None
    ) -> list[Item]:
        """Aggregate a bucket's sources into its final, capped item list.

        Args:
            sources: Ordered feed sources of the bucket
            now: Instant of the aggregation run, used for undated items

        Returns:
            At most ``max_items`` items, unique by URL, newest first
        """
        now_iso = format_instant(now or datetime.now(UTC))
        self.logger.log_execution_start(feed_count=len(sources))

        pool, feeds_failed = self.collect(sources)
        valid = [c for c in pool if is_valid(c)]
        relevant = [c for c in valid if self.relevance_filter.is_relevant(c.search_text)]
        unique = deduplicate(to_item(c, now_iso) for c in relevant)
        items = rank(unique)[: self.max_items]

        self.logger.log_metrics(
            {
                "feeds_ok": len(sources) - feeds_failed,
                "feeds_failed": feeds_failed,
                "candidates": len(pool),
                "valid": len(valid),
                "relevant": len(relevant),
                "duplicates": len(relevant) - len(unique),
                "written": len(items),
            }
        )
        self.logger.log_execution_end(success=True, items_count=len(items))
        return items

    def collect(
        self, sources: Sequence[FeedSource]
    ) -> tuple[list[RawCandidate], int]:
        """Fetch and extract every source, pooling results in source order.

        Returns:
            The candidate pool and the number of sources that failed
        """
        if not sources:
            return [], 0

        workers = min(self.max_workers, len(sources))
        with ThreadPoolExecutor(
            max_workers=workers, thread_name_prefix=f"fetch-{self.bucket or 'bucket'}"
        ) as executor:
            # map() yields in submission order regardless of completion order
            results = list(executor.map(self.process_source, sources))

        pool: list[RawCandidate] = []
        failed = 0
        for ok, candidates in results:
            if not ok:
                failed += 1
            pool.extend(candidates)
        return pool, failed

    def process_source(self, source: FeedSource) -> tuple[bool, list[RawCandidate]]:
        """Fetch and extract one source.

        Returns:
            Whether the attempt succeeded, and its candidates (empty on failure)
        """
        self.logger.debug(
            f"Fetching feed: {source.url}", feed_url=source.url, topic=source.topic
        )
        try:
            content = self.fetcher.fetch(source.url)
            candidates = self.extractor(content, source.url)
        except Exception as e:
            self.logger.log_feed_failure(source.url, str(e), source.topic)
            return False, []

        source_name = candidates[0].source_name if candidates else "-"
        self.logger.log_feed_processing(
            source.url, len(candidates), source_name, source.topic
        )
        return True, candidates
