"""Keyword-based relevance filter for marketplace safety news."""

from collections.abc import Iterable
from dataclasses import dataclass


def _lowered(keywords: Iterable[str]) -> tuple[str, ...]:
    return tuple(k.lower() for k in keywords if k and k.strip())


@dataclass(frozen=True)
class KeywordSet:
    """Immutable three-tier keyword configuration.

    brand: marketplace/brand names, enough on their own
    context: marketplace and e-commerce vocabulary
    topic: safety, counterfeit and consumer-protection vocabulary
    """

    brand: tuple[str, ...]
    context: tuple[str, ...]
    topic: tuple[str, ...]

    @classmethod
    def of(
        cls,
        brand: Iterable[str] = (),
        context: Iterable[str] = (),
        topic: Iterable[str] = (),
    ) -> "KeywordSet":
        """Build a keyword set, lower-casing terms and dropping blanks."""
        return cls(brand=_lowered(brand), context=_lowered(context), topic=_lowered(topic))


DEFAULT_KEYWORDS = KeywordSet.of(
    brand=(
        "temu",
        "shein",
        "aliexpress",
        "ali express",
        "alibaba",
        "wish",
    ),
    context=(
        "marketplace",
        "online marketplace",
        "e-shop",
        "eshop",
        "online shop",
        "online shopping",
        "ultra-fast fashion",
        "fast fashion",
    ),
    topic=(
        "padělek",
        "padělky",
        "counterfeit",
        "product safety",
        "unsafe",
        "bezpečnost výrobků",
        "nebezpečný výrobek",
        "consumer protection",
        "ochrana spotřebitele",
        "toxic",
        "toxický",
        "hazardous",
        "recall",
        "stahování z trhu",
    ),
)


def _contains_any(text: str, keywords: Iterable[str]) -> bool:
    return any(k in text for k in keywords)


class RelevanceFilter:
    """Decides whether a candidate's text is in-domain."""

    def __init__(self, keywords: KeywordSet = DEFAULT_KEYWORDS):
        self.keywords = keywords

    def is_relevant(self, search_text: str) -> bool:
        """Return True for a brand match, or a topic match with marketplace context.

        Topic or context alone is not enough.
        """
        text = (search_text or "").lower()

        if _contains_any(text, self.keywords.brand):
            return True

        return _contains_any(text, self.keywords.topic) and _contains_any(
            text, self.keywords.context
        )
