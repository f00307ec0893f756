# memeboard/scraper/extractor.py
"""
Heuristic field extraction for OP.GG summoner pages.

Every field is looked up through an ordered list of locator functions
``(node) -> Optional[str]``; the first non-empty result wins. The site's
markup changes often, so when no match-list structure is recognised the
whole page text is scanned for K/D/A triples instead.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Sequence, Tuple

from bs4 import BeautifulSoup, Tag

from memeboard.models import MatchRecord, ProfileFields
from memeboard.thresholds import (
    KDA_PATTERN,
    MATCH_ITEM_SELECTORS,
    MATCH_SPACING_MINUTES,
    MAX_FALLBACK_MATCHES,
    MAX_MATCHES,
    RESULT_DEFEAT,
    RESULT_VICTORY,
    UNKNOWN,
)

LOGGER = logging.getLogger(__name__)

SLASH_SPACING = re.compile(r"\s*/\s*")

Locator = Callable[[Tag], Optional[str]]


def parse_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    text = " ".join(value.split())
    return text or None


def _text(node: Optional[Tag], separator: str = " ") -> Optional[str]:
    if node is None:
        return None
    return _clean(node.get_text(separator, strip=True))


def _by_selector(selector: str, separator: str = " ") -> Locator:
    def locate(node: Tag) -> Optional[str]:
        return _text(node.select_one(selector), separator)

    locate.__name__ = f"select({selector})"
    return locate


def _anchored(node: Tag, needle: str, name: str = "div") -> List[Tag]:
    """Elements whose own text (not a descendant's) contains ``needle``."""
    return [
        el for el in node.find_all(name)
        if el.find(string=lambda s: s is not None and needle in s, recursive=False)
    ]


def _level_after_label(node: Tag) -> Optional[str]:
    for label in _anchored(node, "Level"):
        value = _text(label.find_next_sibling())
        if value:
            return value
    return None


def _rank_in_label_block(node: Tag) -> Optional[str]:
    for label in _anchored(node, "Rank"):
        parent = label.parent
        if parent is None:
            continue
        blocks = parent.find_all("div")
        if blocks:
            value = _text(blocks[-1])
            if value:
                return value
    return None


def _first_percentage(node: Tag) -> Optional[str]:
    for el in _anchored(node, "%"):
        value = _text(el)
        if value:
            return value
    return None


def _first_image_alt(node: Tag) -> Optional[str]:
    img = node.select_one("img[alt]")
    return _clean(img.get("alt")) if img else None


def _first_slashed_text(node: Tag) -> Optional[str]:
    found = node.find(string=lambda s: s is not None and "/" in s)
    return _clean(str(found)) if found else None


def _normalize_kda(value: str) -> str:
    """'7 / 2 / 5' -> '7/2/5' so the calculator reads what the page shows."""
    return SLASH_SPACING.sub("/", value)


def _result_from_class(node: Tag) -> Optional[str]:
    classes = node.get("class") or []
    if "win" in classes:
        return RESULT_VICTORY
    if "lose" in classes:
        return RESULT_DEFEAT
    return None


LEVEL_LOCATORS: Tuple[Locator, ...] = (
    _by_selector('[data-testid="summoner-level"]'),
    _by_selector(".summoner-level"),
    _level_after_label,
)

RANK_LOCATORS: Tuple[Locator, ...] = (
    _by_selector('[data-testid="tier"]'),
    _by_selector(".tier"),
    _rank_in_label_block,
)

WINRATE_LOCATORS: Tuple[Locator, ...] = (
    _by_selector('[data-testid="winrate"]'),
    _by_selector(".winrate"),
    _first_percentage,
)

CHAMPION_LOCATORS: Tuple[Locator, ...] = (
    _by_selector(".champion-name"),
    _by_selector('[data-testid="champion-name"]'),
    _first_image_alt,
)

KDA_LOCATORS: Tuple[Locator, ...] = (
    _by_selector(".kda", separator=""),
    _by_selector('[data-testid="kda"]', separator=""),
    _first_slashed_text,
)

RESULT_LOCATORS: Tuple[Locator, ...] = (
    _by_selector(".result"),
    _by_selector('[data-testid="result"]'),
    _result_from_class,
)


def first_match(locators: Sequence[Locator], node: Tag) -> Optional[str]:
    """Run locators in priority order and return the first non-empty value."""
    for locator in locators:
        try:
            value = locator(node)
        except Exception as exc:
            LOGGER.debug("Locator %s failed: %s", getattr(locator, "__name__", locator), exc)
            continue
        if value:
            return value
    return None


class ProfileExtractor:
    """Pull level, rank, winrate and recent matches out of a profile page."""

    def __init__(
        self,
        match_selectors: Sequence[str] = MATCH_ITEM_SELECTORS,
        max_matches: int = MAX_MATCHES,
        max_fallback_matches: int = MAX_FALLBACK_MATCHES,
        spacing_minutes: int = MATCH_SPACING_MINUTES,
    ):
        self.match_selectors = tuple(match_selectors)
        self.max_matches = max_matches
        self.max_fallback_matches = max_fallback_matches
        self.spacing = timedelta(minutes=spacing_minutes)

    def extract(self, soup: BeautifulSoup, captured_at: datetime) -> ProfileFields:
        level = first_match(LEVEL_LOCATORS, soup)
        rank = first_match(RANK_LOCATORS, soup)
        winrate = first_match(WINRATE_LOCATORS, soup)

        matches = self.extract_matches(soup, captured_at)
        used_fallback = False
        if not matches:
            LOGGER.info("No structured matches found, scanning page text for K/D/A")
            matches = self.scan_kda_text(soup, captured_at)
            used_fallback = True

        return ProfileFields(
            level=level,
            rank=rank,
            winrate=winrate,
            matches=tuple(matches),
            used_fallback=used_fallback,
        )

    def extract_matches(self, soup: BeautifulSoup, captured_at: datetime) -> List[MatchRecord]:
        """First selector with at least one accepted match wins; no union."""
        for selector in self.match_selectors:
            try:
                items = soup.select(selector)
            except Exception as exc:
                LOGGER.debug("Match selector %s failed: %s", selector, exc)
                continue

            matches: List[MatchRecord] = []
            for index, item in enumerate(items[:self.max_matches]):
                match = self._parse_match_item(item, captured_at - index * self.spacing)
                if match is not None:
                    matches.append(match)

            if matches:
                LOGGER.debug("Selector %s yielded %d matches", selector, len(matches))
                return matches
        return []

    def scan_kda_text(self, soup: BeautifulSoup, captured_at: datetime) -> List[MatchRecord]:
        matches: List[MatchRecord] = []
        for found in KDA_PATTERN.finditer(soup.get_text(" ")):
            if len(matches) >= self.max_fallback_matches:
                break
            kills, deaths, assists = found.groups()
            matches.append(
                MatchRecord(
                    champion=UNKNOWN,
                    kda=f"{kills}/{deaths}/{assists}",
                    result=UNKNOWN,
                    timestamp=captured_at - len(matches) * self.spacing,
                )
            )
        return matches

    def _parse_match_item(self, item: Tag, timestamp: datetime) -> Optional[MatchRecord]:
        champion = first_match(CHAMPION_LOCATORS, item)
        kda = first_match(KDA_LOCATORS, item)
        if not champion or not kda:
            return None
        kda = _normalize_kda(kda)
        result = first_match(RESULT_LOCATORS, item) or UNKNOWN
        return MatchRecord(champion=champion, kda=kda, result=result, timestamp=timestamp)


def extract_profile(html: str, captured_at: datetime) -> ProfileFields:
    return ProfileExtractor().extract(parse_html(html), captured_at)
