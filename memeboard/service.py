# memeboard/service.py

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Optional, Sequence

from memeboard.cache import SlidingWindowRateLimiter, SnapshotCache
from memeboard.calculator import MemeStatsCalculator
from memeboard.models import AggregateSnapshot, PlayerIdentity, PlayerRecord
from memeboard.scraper import OPGGScraper

LOGGER = logging.getLogger(__name__)

SOURCE = "OP.GG Scraping"
STALE_WARNING = "Using stale data due to scraping error"


class StatsUnavailableError(Exception):
    """Raised when a refresh fails and there is no earlier snapshot to fall back on."""


class LeaderboardService:
    """Owns the friend list, the cache and the rate limiter for one process."""

    def __init__(
        self,
        friends: Sequence[PlayerIdentity],
        scraper: Optional[OPGGScraper] = None,
        calculator: Optional[MemeStatsCalculator] = None,
        cache: Optional[SnapshotCache] = None,
        limiter: Optional[SlidingWindowRateLimiter] = None,
    ):
        self.friends = tuple(friends)
        self.scraper = scraper or OPGGScraper()
        self.calculator = calculator or MemeStatsCalculator()
        self.cache = cache or SnapshotCache()
        self.limiter = limiter or SlidingWindowRateLimiter()
        self._refresh_lock = threading.Lock()

    def display_name(self, summoner_name: str) -> str:
        for friend in self.friends:
            if friend.summoner_name == summoner_name:
                return friend.label
        return summoner_name

    def refresh(self) -> AggregateSnapshot:
        """Scrape everyone, aggregate and cache. One refresh at a time."""
        with self._refresh_lock:
            return self._scrape_and_cache()

    def _scrape_and_cache(self) -> AggregateSnapshot:
        # caller holds _refresh_lock
        records = self.scraper.scrape_multiple_players(self.friends)
        snapshot = self.calculator.aggregate(records)
        self.cache.set(snapshot)
        LOGGER.info("Fresh data cached for %d players", snapshot.player_count)
        return snapshot

    def _cached_payload(self) -> Optional[Dict[str, Any]]:
        cached = self.cache.get_if_fresh()
        if cached is None:
            return None
        LOGGER.info("Returning cached data")
        age_minutes = round((self.cache.age_seconds() or 0) / 60)
        return {**self.build_payload(cached), "cached": True, "cacheAge": age_minutes}

    def get_stats(self) -> Dict[str, Any]:
        payload = self._cached_payload()
        if payload is not None:
            return payload

        with self._refresh_lock:
            # Another request may have refreshed while this one waited.
            payload = self._cached_payload()
            if payload is not None:
                return payload

            LOGGER.info("Cache is stale or empty, fetching fresh data")
            try:
                snapshot = self._scrape_and_cache()
            except Exception as exc:
                LOGGER.exception("Stats refresh failed")
                stale = self.cache.get_any()
                if stale is None:
                    raise StatsUnavailableError(str(exc)) from exc
                return {
                    **self.build_payload(stale),
                    "cached": True,
                    "warning": STALE_WARNING,
                    "error": str(exc),
                }
        return {**self.build_payload(snapshot), "cached": False, "cacheAge": 0}

    def scrape_fresh(self) -> Dict[str, Any]:
        LOGGER.info("Forcing fresh scrape")
        snapshot = self.refresh()
        return {
            **self.build_payload(snapshot),
            "message": "Fresh data scraped successfully!",
            "cached": False,
        }

    def scrape_player(self, summoner_name: str) -> PlayerRecord:
        return self.scraper.scrape_player_stats(summoner_name)

    def build_payload(self, snapshot: AggregateSnapshot) -> Dict[str, Any]:
        players: Dict[str, Dict[str, Any]] = {}
        for name in snapshot.stats:
            record = snapshot.players[name]
            players[name] = {
                "display_name": self.display_name(name),
                "summoner_name": name,
                "rank": record.rank,
                "level": record.level,
                "winrate": self.calculator.parse_winrate(record.winrate),
            }

        return {
            "players": players,
            "stats": self.calculator.leaderboard_stats(snapshot),
            "rawData": [record.to_dict() for record in snapshot.players.values()],
            "lastUpdate": snapshot.generated_at.isoformat() if snapshot.generated_at else None,
            "source": SOURCE,
            "playerCount": snapshot.player_count,
        }
