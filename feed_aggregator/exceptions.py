"""Error taxonomy for the feed aggregator."""


class AggregatorError(Exception):
    """Base class for aggregator errors."""


class ConfigError(AggregatorError):
    """Raised when the source configuration is missing, unreadable or empty."""


class FetchError(AggregatorError):
    """Raised when a single feed cannot be retrieved."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to fetch feed {url}: {reason}")
