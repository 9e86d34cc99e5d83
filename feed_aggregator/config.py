"""Configuration management for the feed aggregator."""

import json
import os
from pathlib import Path
from typing import Any

from .aggregator import DEFAULT_FETCH_WORKERS, MAX_ITEMS_PER_BUCKET
from .exceptions import ConfigError
from .fetcher import DEFAULT_TIMEOUT_MS
from .logging_config import create_execution_logger
from .models import FeedSource

BUCKETS = ("cz", "intl")


class Config:
    """Main configuration manager."""

    # Default sources file path
    SOURCES_FILE = "sources.json"
    OUTPUT_DIR = "data"

    def __init__(
        self,
        sources_file: str | None = None,
        output_dir: str | None = None,
        execution_id: str | None = None,
    ):
        """Initialize configuration from environment variables.

        Explicit arguments take precedence over the environment.

        Raises:
            ConfigError: If a numeric setting is not a valid integer
        """
        self.sources_file = Path(
            sources_file or os.getenv("FEED_SOURCES_FILE", self.SOURCES_FILE)
        )
        self.output_dir = Path(output_dir or os.getenv("OUTPUT_DIR", self.OUTPUT_DIR))
        self.request_timeout_ms = _int_env("REQUEST_TIMEOUT_MS", DEFAULT_TIMEOUT_MS)
        self.max_items_per_bucket = _int_env("MAX_ITEMS_PER_BUCKET", MAX_ITEMS_PER_BUCKET)
        self.fetch_workers = _int_env("FETCH_WORKERS", DEFAULT_FETCH_WORKERS)
        self.log_level = os.getenv("LOG_LEVEL", "INFO")
        self.logger = create_execution_logger("config", execution_id)

    def load_sources(self) -> dict[str, list[FeedSource]]:
        """Read the per-bucket feed lists from the sources file.

        Returns:
            Mapping of bucket name to its ordered feed sources

        Raises:
            ConfigError: If the file is missing, unreadable, not a JSON
                object, or lists no feeds at all
        """
        if not self.sources_file.exists():
            raise ConfigError(f"Sources file not found: {self.sources_file}")

        try:
            with open(self.sources_file, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in sources file: {e}") from e
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigError(f"Error reading sources file: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError("Sources file must contain a JSON object")

        sources = {bucket: self._parse_bucket(bucket, data.get(bucket)) for bucket in BUCKETS}

        if not any(sources.values()):
            raise ConfigError(
                f"Sources file lists no feeds ({', '.join(BUCKETS)} are both empty)"
            )

        self.logger.info(
            "Sources loaded",
            metrics={bucket: len(feeds) for bucket, feeds in sources.items()},
        )
        return sources

    def _parse_bucket(self, bucket: str, entries: Any) -> list[FeedSource]:
        if entries is None:
            return []
        if not isinstance(entries, list):
            self.logger.warning(
                f"Skip bucket {bucket}: expected a list of feeds", bucket=bucket
            )
            return []

        feeds = []
        for index, entry in enumerate(entries):
            source = parse_source_entry(entry)
            if source is None:
                self.logger.warning(
                    f"Skip: invalid feed entry #{index} (missing URL)", bucket=bucket
                )
                continue
            feeds.append(source)
        return feeds


def parse_source_entry(entry: Any) -> FeedSource | None:
    """Parse a bare URL string or a ``{"url", "topic"}`` object.

    The legacy key ``rss`` is accepted in place of ``url``.
    """
    if isinstance(entry, str):
        url = entry.strip()
        return FeedSource(url=url) if url else None

    if not isinstance(entry, dict):
        return None

    url = entry.get("url") or entry.get("rss")
    if not isinstance(url, str) or not url.strip():
        return None

    topic = entry.get("topic")
    if not isinstance(topic, str) or not topic.strip():
        topic = None
    return FeedSource(url=url.strip(), topic=topic.strip() if topic else None)


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from e
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {value}")
    return value
