"""RSS/Atom entry extraction for the feed aggregator."""

import re
from collections.abc import Callable, Iterator
from html.entities import name2codepoint
from urllib.parse import urlparse

from bs4 import BeautifulSoup, Tag

from .dates import to_iso
from .models import RawCandidate
from .text import normalize

UNKNOWN_SOURCE = "unknown source"

# Entities every XML parser knows; all other named references need a DTD
_XML_ENTITIES = frozenset({"amp", "lt", "gt", "quot", "apos"})
_ENTITY_REF = re.compile(r"(<!\[CDATA\[.*?\]\]>)|&([A-Za-z][A-Za-z0-9]*);", re.DOTALL)
_ENTITY_REF_BYTES = re.compile(rb"(<!\[CDATA\[.*?\]\]>)|&([A-Za-z][A-Za-z0-9]*);", re.DOTALL)

FieldExtractor = Callable[[Tag], str]


def qualified_name(tag: Tag) -> str:
    """Return the lower-cased tag name including its namespace prefix."""
    name = tag.name or ""
    if tag.prefix:
        name = f"{tag.prefix}:{name}"
    return name.lower()


def child_tags(node: Tag, name: str) -> Iterator[Tag]:
    """Yield direct children of ``node`` whose qualified name is ``name``."""
    wanted = name.lower()
    for child in node.find_all(True, recursive=False):
        if qualified_name(child) == wanted:
            yield child


def child_text(name: str) -> FieldExtractor:
    """Build an extractor returning the text of the first ``name`` child."""

    def extract(node: Tag) -> str:
        for child in child_tags(node, name):
            return child.get_text(" ")
        return ""

    return extract


def _attr(tag: Tag, name: str) -> str:
    value = tag.get(name)
    if isinstance(value, list):
        value = " ".join(value)
    return (value or "").strip()


def link_href(rel: str | None = None) -> FieldExtractor:
    """Build an extractor returning the href of the first matching link child.

    Args:
        rel: Required value of the ``rel`` attribute, or None for any link
    """

    def extract(node: Tag) -> str:
        for child in child_tags(node, "link"):
            href = _attr(child, "href")
            if not href:
                continue
            if rel is None or _attr(child, "rel").lower() == rel:
                return href
        return ""

    return extract


def first_match(node: Tag, extractors: tuple[FieldExtractor, ...]) -> str:
    """Run extractors in priority order and return the first non-empty value."""
    for extractor in extractors:
        value = extractor(node)
        if value and value.strip():
            return value
    return ""


def safe_url(raw: str) -> str:
    """Return ``raw`` stripped, with a lower-case scheme, when it is an
    absolute HTTP(S) URL, else "".
    """
    if not raw:
        return ""
    url = raw.strip()
    scheme, sep, rest = url.partition("://")
    if not sep or scheme.lower() not in ("http", "https"):
        return ""
    return f"{scheme.lower()}://{rest}"


class FeedEntry:
    """A single feed entry, exposing the fields the aggregator needs.

    Subclasses declare the element name they wrap and, per field, a
    prioritized tuple of extractor functions.
    """

    tag_name = ""
    title_fields: tuple[FieldExtractor, ...] = ()
    link_fields: tuple[FieldExtractor, ...] = ()
    timestamp_fields: tuple[FieldExtractor, ...] = ()
    snippet_fields: tuple[FieldExtractor, ...] = ()

    def __init__(self, node: Tag):
        self.node = node

    @classmethod
    def find_all(cls, soup: BeautifulSoup) -> list["FeedEntry"]:
        """Wrap every element of this entry type found in the document."""
        return [cls(node) for node in soup.find_all(_named(cls.tag_name))]

    def title(self) -> str:
        return normalize(first_match(self.node, self.title_fields))

    def link(self) -> str:
        return safe_url(normalize(first_match(self.node, self.link_fields)))

    def timestamp(self) -> str:
        return to_iso(normalize(first_match(self.node, self.timestamp_fields)))

    def snippet(self) -> str:
        return normalize(first_match(self.node, self.snippet_fields))

    def to_candidate(self, source_name: str) -> RawCandidate:
        title = self.title()
        return RawCandidate(
            title=title,
            source_name=source_name,
            url=self.link(),
            published_at_raw=self.timestamp(),
            search_text=f"{title} {self.snippet()}".strip(),
        )


class RssItem(FeedEntry):
    """RSS 2.0 / RDF ``<item>``."""

    tag_name = "item"
    title_fields = (child_text("title"),)
    link_fields = (child_text("link"),)
    # "date" catches dc:date when the feed never declares the dc prefix
    timestamp_fields = (child_text("pubDate"), child_text("dc:date"), child_text("date"))
    snippet_fields = (child_text("description"), child_text("content:encoded"))


class AtomEntry(FeedEntry):
    """Atom ``<entry>``."""

    tag_name = "entry"
    title_fields = (child_text("title"),)
    link_fields = (link_href("alternate"), link_href())
    timestamp_fields = (child_text("published"), child_text("updated"))
    snippet_fields = (child_text("summary"), child_text("content"))


def _named(name: str) -> Callable[[Tag], bool]:
    wanted = name.lower()
    return lambda tag: qualified_name(tag) == wanted


def _has_element(soup: BeautifulSoup, name: str) -> bool:
    return soup.find(_named(name)) is not None


def guess_source_name(soup: BeautifulSoup, feed_url: str) -> str:
    """Derive a human-readable source name for the whole feed.

    Uses the channel/feed title, then the feed URL host without "www.".
    """
    for container in ("channel", "feed"):
        node = soup.find(_named(container))
        if node is not None:
            title = normalize(child_text("title")(node))
            if title:
                return title

    try:
        host = urlparse(feed_url).hostname or ""
    except ValueError:
        return UNKNOWN_SOURCE
    if not host:
        return UNKNOWN_SOURCE
    return host[4:] if host.startswith("www.") else host


def numeric_entities(content: str | bytes) -> str | bytes:
    """Rewrite HTML named entities (``&nbsp;``, ``&hellip;``) as numeric
    references so the XML parser keeps them. CDATA sections are left alone.
    """

    def replace(match):
        cdata, name = match.group(1), match.group(2)
        if cdata is not None:
            return cdata
        if isinstance(name, bytes):
            key = name.decode("ascii")
            if key in _XML_ENTITIES or key not in name2codepoint:
                return match.group(0)
            return f"&#{name2codepoint[key]};".encode("ascii")
        if name in _XML_ENTITIES or name not in name2codepoint:
            return match.group(0)
        return f"&#{name2codepoint[name]};"

    pattern = _ENTITY_REF_BYTES if isinstance(content, bytes) else _ENTITY_REF
    return pattern.sub(replace, content)


def _candidates(
    entry_type: type[FeedEntry], soup: BeautifulSoup, source_name: str
) -> list[RawCandidate]:
    return [entry.to_candidate(source_name) for entry in entry_type.find_all(soup)]


def extract(content: str | bytes, feed_url: str) -> list[RawCandidate]:
    """Extract candidate items from raw RSS or Atom content.

    The feed is RSS if it has an ``rss`` or ``channel`` element, Atom if it
    has a ``feed`` element and at least one ``entry``. Otherwise both entry
    types are tried and the larger result wins, RSS on a tie.

    Args:
        content: Raw feed document
        feed_url: URL the document was fetched from

    Returns:
        Candidates in document order; empty when nothing can be recovered
    """
    if not content:
        return []

    try:
        soup = BeautifulSoup(numeric_entities(content), "xml")
    except Exception:
        return []

    source_name = guess_source_name(soup, feed_url)

    if _has_element(soup, "rss") or _has_element(soup, "channel"):
        return _candidates(RssItem, soup, source_name)
    if _has_element(soup, "feed") and _has_element(soup, "entry"):
        return _candidates(AtomEntry, soup, source_name)

    rss = _candidates(RssItem, soup, source_name)
    atom = _candidates(AtomEntry, soup, source_name)
    return rss if len(rss) >= len(atom) else atom
