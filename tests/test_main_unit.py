"""Unit tests for the command-line entry point."""

import json
import logging
import os
from datetime import UTC, datetime
from unittest.mock import patch

import pytest

from feed_aggregator.config import Config
from feed_aggregator.exceptions import FetchError
from feed_aggregator.main import main, run

NOW = datetime(2025, 5, 5, 12, 0, tzinfo=UTC)

CZ_FEED = """<rss><channel><title>Zprávy</title>
<item><title>Temu a padělky</title><link>https://cz.example/1</link>
<pubDate>Mon, 01 Jan 2024 10:00:00 GMT</pubDate></item>
<item><title>Počasí</title><link>https://cz.example/2</link></item>
</channel></rss>"""

INTL_FEED = """<feed xmlns="http://www.w3.org/2005/Atom"><title>World</title>
<entry><title>Shein recall</title><link href="https://intl.example/1"/>
<updated>not-a-date</updated></entry>
</feed>"""

FEEDS = {
    "https://cz.example/rss": CZ_FEED,
    "https://down.example/rss": FetchError("https://down.example/rss", "HTTP 503"),
    "https://intl.example/atom": INTL_FEED,
}


def fake_fetch(url):
    response = FEEDS[url]
    if isinstance(response, Exception):
        raise response
    return response


def make_config(tmp_path, sources):
    path = tmp_path / "sources.json"
    path.write_text(json.dumps(sources), encoding="utf-8")
    with patch.dict(os.environ, {}, clear=True):
        return Config(sources_file=str(path), output_dir=str(tmp_path / "data"))


def read_bucket(tmp_path, bucket):
    return json.loads((tmp_path / "data" / f"{bucket}.json").read_text(encoding="utf-8"))


SOURCES = {
    "cz": [
        {"url": "https://down.example/rss", "topic": "Offline"},
        {"url": "https://cz.example/rss", "topic": "Zprávy"},
    ],
    "intl": ["https://intl.example/atom"],
}


class TestRunUnit:
    """Unit tests for run()."""

    def test_successful_run_writes_both_buckets(self, tmp_path):
        config = make_config(tmp_path, SOURCES)

        with patch("feed_aggregator.main.FeedFetcher") as mock_fetcher_class:
            mock_fetcher_class.return_value.fetch.side_effect = fake_fetch
            exit_code = run(config, now=NOW)

        assert exit_code == 0
        assert read_bucket(tmp_path, "cz") == [
            {
                "title": "Temu a padělky",
                "source": "Zprávy",
                "url": "https://cz.example/1",
                "publishedAt": "2024-01-01T10:00:00.000Z",
            }
        ]
        assert read_bucket(tmp_path, "intl") == [
            {
                "title": "Shein recall",
                "source": "World",
                "url": "https://intl.example/1",
                "publishedAt": "2025-05-05T12:00:00.000Z",
            }
        ]

    def test_one_log_line_per_feed_attempt(self, tmp_path, caplog):
        config = make_config(tmp_path, SOURCES)
        caplog.set_level(logging.INFO, logger="feed_aggregator")

        with patch("feed_aggregator.main.FeedFetcher") as mock_fetcher_class:
            mock_fetcher_class.return_value.fetch.side_effect = fake_fetch
            run(config, now=NOW)

        attempts = [
            r
            for r in caplog.records
            if r.getMessage().startswith(("Parsed feed", "Failed feed"))
        ]
        assert sorted(r.feed_url for r in attempts) == sorted(FEEDS)

        failure = next(r for r in attempts if r.feed_url == "https://down.example/rss")
        assert failure.levelno == logging.ERROR
        assert "HTTP 503" in failure.getMessage()
        assert failure.topic == "Offline"
        assert failure.bucket == "cz"

    def test_empty_configuration_exits_non_zero(self, tmp_path):
        config = make_config(tmp_path, {"cz": [], "intl": []})

        assert run(config) == 1
        assert not (tmp_path / "data").exists()

    def test_missing_sources_file_exits_non_zero(self, tmp_path):
        with patch.dict(os.environ, {}, clear=True):
            config = Config(sources_file=str(tmp_path / "missing.json"))

        assert run(config) == 1

    def test_unexpected_failure_exits_non_zero(self, tmp_path):
        config = make_config(tmp_path, SOURCES)

        with (
            patch("feed_aggregator.main.FeedFetcher") as mock_fetcher_class,
            patch("feed_aggregator.main.BucketWriter") as mock_writer_class,
        ):
            mock_fetcher_class.return_value.fetch.side_effect = fake_fetch
            mock_writer_class.return_value.save.side_effect = OSError("disk full")
            assert run(config, now=NOW) == 1

    def test_all_feeds_failing_still_exits_zero(self, tmp_path):
        config = make_config(tmp_path, {"cz": ["https://down.example/rss"], "intl": []})

        with patch("feed_aggregator.main.FeedFetcher") as mock_fetcher_class:
            mock_fetcher_class.return_value.fetch.side_effect = fake_fetch
            assert run(config, now=NOW) == 0

        assert read_bucket(tmp_path, "cz") == []
        assert read_bucket(tmp_path, "intl") == []


class TestMainUnit:
    """Unit tests for the console script."""

    @pytest.fixture(autouse=True)
    def restore_logging(self):
        root_logger = logging.getLogger()
        package_logger = logging.getLogger("feed_aggregator")
        original_level = root_logger.level
        original_package_level = package_logger.level
        original_handlers = root_logger.handlers[:]
        yield
        root_logger.handlers[:] = original_handlers
        root_logger.setLevel(original_level)
        package_logger.setLevel(original_package_level)

    def test_cli_overrides(self, tmp_path):
        sources = tmp_path / "feeds.json"
        sources.write_text(json.dumps(SOURCES), encoding="utf-8")
        output_dir = tmp_path / "site"

        with (
            patch.dict(os.environ, {}, clear=True),
            patch("feed_aggregator.main.FeedFetcher") as mock_fetcher_class,
        ):
            mock_fetcher_class.return_value.fetch.side_effect = fake_fetch
            exit_code = main(["--sources", str(sources), "--output-dir", str(output_dir)])

        assert exit_code == 0
        assert (output_dir / "cz.json").exists()
        assert (output_dir / "intl.json").exists()

    def test_cli_missing_sources(self, tmp_path):
        with patch.dict(os.environ, {}, clear=True):
            assert main(["--sources", str(tmp_path / "nope.json")]) == 1

    def test_cli_invalid_environment(self, tmp_path):
        with patch.dict(os.environ, {"FETCH_WORKERS": "many"}, clear=True):
            assert main(["--sources", str(tmp_path / "nope.json")]) == 1
