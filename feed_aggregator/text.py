"""Text normalization for feed fields."""

import re

_CDATA_OPEN = re.compile(r"^<!\[CDATA\[")
_CDATA_CLOSE = re.compile(r"\]\]>\Z")
_TAG = re.compile(r"<[^>]*>")
_WHITESPACE = re.compile(r"\s+")

# Order matters: "&amp;" first, as in the feeds we read.
_ENTITIES = (
    ("&amp;", "&"),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&#39;", "'"),
    ("&#x27;", "'"),
    ("&#x2F;", "/"),
)


def strip_cdata(text: str) -> str:
    """Remove a leading CDATA open marker and a trailing close marker."""
    return _CDATA_CLOSE.sub("", _CDATA_OPEN.sub("", text))


def decode_entities(text: str) -> str:
    """Decode the fixed set of HTML/XML entities seen in feed markup."""
    for entity, char in _ENTITIES:
        text = text.replace(entity, char)
    return text


def strip_tags(text: str) -> str:
    """Replace every markup tag with a single space."""
    return _TAG.sub(" ", text)


def _normalize_once(text: str) -> str:
    text = strip_tags(decode_entities(strip_cdata(text)))
    return _WHITESPACE.sub(" ", text).strip()


def normalize(raw: str | None) -> str:
    """Turn a raw feed field into plain, single-spaced text.

    Steps: strip CDATA markers, decode entities, strip tags, collapse
    whitespace, trim. The steps are repeated until the text is stable, so
    escaped markup such as ``&amp;lt;b&amp;gt;`` is fully removed and the
    result is a fixed point of this function.

    Args:
        raw: Raw text, possibly None

    Returns:
        Normalized text, empty string for empty input
    """
    if not raw:
        return ""

    text = str(raw)
    while True:
        cleaned = _normalize_once(text)
        if cleaned == text:
            return cleaned
        text = cleaned
