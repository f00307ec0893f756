# memeboard/scraper/core.py

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence, Union
from urllib.error import HTTPError, URLError
from urllib.parse import quote
from urllib.request import HTTPRedirectHandler, Request, build_opener

from memeboard.models import PlayerIdentity, PlayerRecord
from memeboard.thresholds import BATCH_DELAY_SECONDS, MAX_REDIRECTS, REQUEST_TIMEOUT_SECONDS
from .extractor import ProfileExtractor, parse_html

LOGGER = logging.getLogger(__name__)

PlayerRef = Union[str, PlayerIdentity]


class ScrapeError(Exception):
    """Raised when a profile page cannot be downloaded or read."""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _summoner_name(player: PlayerRef) -> str:
    return player.summoner_name if isinstance(player, PlayerIdentity) else str(player)


class OPGGScraper:
    """Scrape OP.GG summoner pages one at a time, politely."""

    BASE_URL = "https://www.op.gg/lol/summoners"
    HEADERS = {
        "User-Agent": (
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
            "AppleWebKit/537.36 (KHTML, like Gecko) "
            "Chrome/120.0.0.0 Safari/537.36"
        ),
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.5",
        "Connection": "keep-alive",
        "Upgrade-Insecure-Requests": "1",
    }

    def __init__(
        self,
        region: str = "na",
        base_url: str = BASE_URL,
        timeout_seconds: float = REQUEST_TIMEOUT_SECONDS,
        max_redirects: int = MAX_REDIRECTS,
        delay_seconds: float = BATCH_DELAY_SECONDS,
        extractor: Optional[ProfileExtractor] = None,
        sleep: Callable[[float], None] = time.sleep,
        now: Callable[[], datetime] = _utcnow,
    ):
        self.region = region
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.max_redirects = max_redirects
        self.delay_seconds = delay_seconds
        self.extractor = extractor or ProfileExtractor()
        self._sleep = sleep
        self._now = now

    def get_profile_url(self, summoner_name: str) -> str:
        return f"{self.base_url}/{self.region}/{quote(summoner_name, safe='')}"

    def _build_opener(self):
        redirects = HTTPRedirectHandler()
        redirects.max_redirections = self.max_redirects
        return build_opener(redirects)

    def _get_html(self, url: str) -> str:
        req = Request(url, headers=self.HEADERS, method="GET")
        try:
            with self._build_opener().open(req, timeout=self.timeout_seconds) as resp:
                charset = resp.headers.get_content_charset() or "utf-8"
                return resp.read().decode(charset, errors="replace")
        except HTTPError as exc:
            raise ScrapeError(f"HTTP {exc.code} from {url}") from exc
        except URLError as exc:
            raise ScrapeError(f"Request to {url} failed: {exc.reason}") from exc
        except (TimeoutError, OSError) as exc:
            raise ScrapeError(f"Request to {url} failed: {exc}") from exc

    def scrape_player_stats(self, player: PlayerRef) -> PlayerRecord:
        """Fetch and parse one profile. Failures come back as error records."""
        summoner_name = _summoner_name(player)
        url = self.get_profile_url(summoner_name)
        LOGGER.info("Scraping %s from %s", summoner_name, url)

        try:
            html = self._get_html(url)
            captured_at = self._now()
            fields = self.extractor.extract(parse_html(html), captured_at)
        except Exception as exc:
            LOGGER.error("Error scraping %s: %s", summoner_name, exc)
            return PlayerRecord.failed(summoner_name, str(exc), self._now(), scraped_from=url)

        if fields.used_fallback:
            LOGGER.warning("No match list found for %s, used text fallback", summoner_name)
        LOGGER.info("Scraped %s: %d matches found", summoner_name, len(fields.matches))
        return PlayerRecord.from_fields(summoner_name, fields, captured_at, scraped_from=url)

    def scrape_multiple_players(self, players: Sequence[PlayerRef]) -> List[PlayerRecord]:
        """Scrape players sequentially with a fixed pause between requests."""
        LOGGER.info("Starting to scrape %d players", len(players))
        results: List[PlayerRecord] = []

        for i, player in enumerate(players):
            summoner_name = _summoner_name(player)
            LOGGER.info("Progress: %d/%d - %s", i + 1, len(players), summoner_name)
            try:
                results.append(self.scrape_player_stats(player))
            except Exception as exc:
                LOGGER.error("Failed to scrape %s: %s", summoner_name, exc)
                results.append(PlayerRecord.failed(summoner_name, str(exc), self._now()))

            if i < len(players) - 1:
                self._sleep(self.delay_seconds)

        LOGGER.info("Scraping complete, %d players processed", len(results))
        return results
