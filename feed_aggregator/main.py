"""Command-line entry point for the feed aggregator."""

import argparse
import sys
from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime

from .aggregator import Aggregator
from .config import BUCKETS, Config
from .exceptions import ConfigError
from .fetcher import FeedFetcher
from .logging_config import (
    create_execution_logger,
    new_execution_id,
    setup_structured_logging,
)
from .models import Item
from .relevance import DEFAULT_KEYWORDS, RelevanceFilter
from .storage import BucketWriter


def run(config: Config, now: datetime | None = None, execution_id: str | None = None) -> int:
    """Aggregate both buckets and write their files.

    Args:
        config: Loaded configuration
        now: Instant of the run, shared by both buckets
        execution_id: Execution ID for logging context

    Returns:
        Process exit code: 0 on success, 1 on configuration or fatal errors
    """
    execution_id = execution_id or new_execution_id()
    main_logger = create_execution_logger("main", execution_id)
    main_logger.log_execution_start(sources_file=str(config.sources_file))

    try:
        sources = config.load_sources()
    except ConfigError as e:
        main_logger.error(f"Configuration error: {e}", error=str(e))
        main_logger.log_execution_end(success=False, error=str(e))
        return 1

    now = now or datetime.now(UTC)
    relevance_filter = RelevanceFilter(DEFAULT_KEYWORDS)

    def aggregate_bucket(bucket: str) -> list[Item]:
        aggregator = Aggregator(
            fetcher=FeedFetcher(
                timeout_ms=config.request_timeout_ms, execution_id=execution_id
            ),
            relevance_filter=relevance_filter,
            max_items=config.max_items_per_bucket,
            max_workers=config.fetch_workers,
            bucket=bucket,
            execution_id=execution_id,
        )
        return aggregator.aggregate(sources[bucket], now=now)

    try:
        with ThreadPoolExecutor(max_workers=len(BUCKETS), thread_name_prefix="bucket") as executor:
            results = dict(zip(BUCKETS, executor.map(aggregate_bucket, BUCKETS)))

        writer = BucketWriter(config.output_dir, execution_id=execution_id)
        for bucket in BUCKETS:
            writer.save(bucket, results[bucket])

    except Exception as e:
        error_msg = f"Aggregation failed: {e}"
        main_logger.error(error_msg, error=str(e))
        main_logger.log_execution_end(success=False, error=error_msg)
        return 1

    main_logger.log_metrics({bucket: len(items) for bucket, items in results.items()})
    main_logger.log_execution_end(success=True)
    return 0


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="feed-aggregator",
        description="Aggregate marketplace safety news feeds into cz.json and intl.json.",
    )
    parser.add_argument("--sources", help="path to the sources JSON file")
    parser.add_argument("--output-dir", help="directory for the bucket JSON files")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    execution_id = new_execution_id()

    try:
        config = Config(
            sources_file=args.sources,
            output_dir=args.output_dir,
            execution_id=execution_id,
        )
    except ConfigError as e:
        setup_structured_logging()
        create_execution_logger("main", execution_id).error(
            f"Configuration error: {e}", error=str(e)
        )
        return 1

    setup_structured_logging(config.log_level)
    return run(config, execution_id=execution_id)


if __name__ == "__main__":
    sys.exit(main())
