"""Data models for the feed aggregator."""

from dataclasses import dataclass


@dataclass(frozen=True)
class FeedSource:
    """A configured feed URL with an optional operator-facing topic label."""

    url: str
    topic: str | None = None


@dataclass(frozen=True)
class RawCandidate:
    """A feed entry as recovered by the extractor, before validation."""

    title: str
    source_name: str
    url: str
    published_at_raw: str  # ISO-8601 or "" when the feed date is unusable
    search_text: str


@dataclass(frozen=True)
class Item:
    """A validated item as written to a bucket file."""

    title: str
    source: str
    url: str
    published_at: str

    def to_dict(self) -> dict[str, str]:
        """Serialize with the keys the static page reads."""
        return {
            "title": self.title,
            "source": self.source,
            "url": self.url,
            "publishedAt": self.published_at,
        }
