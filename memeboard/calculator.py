# memeboard/calculator.py

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

from memeboard.models import AggregateSnapshot, DerivedStats, MatchRecord, PlayerRecord
from memeboard.thresholds import (
    DEATH_RATE_FLOOR,
    DEATH_RATE_TIERS,
    KDA_FLOOR,
    KDA_PATTERN,
    KDA_TIERS,
    LEADERBOARD_METRICS,
    MIN_DEATHS_DIVISOR,
    UNKNOWN,
    WIN_MARKERS,
)

LOGGER = logging.getLogger(__name__)

PERCENT_PATTERN = re.compile(r"(\d+)%")


class MemeStatsCalculator:
    """Turn raw scrape records into averages, ratios and joke tiers."""

    def __init__(
        self,
        death_tiers: Sequence[Tuple[float, str]] = DEATH_RATE_TIERS,
        death_floor: str = DEATH_RATE_FLOOR,
        kda_tiers: Sequence[Tuple[float, str]] = KDA_TIERS,
        kda_floor: str = KDA_FLOOR,
    ):
        self.death_tiers = tuple(death_tiers)
        self.death_floor = death_floor
        self.kda_tiers = tuple(kda_tiers)
        self.kda_floor = kda_floor

    @staticmethod
    def parse_kda(kda: str) -> Optional[Tuple[int, int, int]]:
        found = KDA_PATTERN.search(kda or "")
        if not found:
            return None
        kills, deaths, assists = (int(part) for part in found.groups())
        return kills, deaths, assists

    @staticmethod
    def parse_winrate(winrate_text: str) -> int:
        """'58% WR' -> 58; anything without digits before a % -> 0."""
        found = PERCENT_PATTERN.search(winrate_text or "")
        return int(found.group(1)) if found else 0

    @staticmethod
    def is_win(result: str) -> bool:
        lowered = (result or "").lower()
        return any(marker in lowered for marker in WIN_MARKERS)

    @staticmethod
    def calc_kda_ratio(avg_kills: float, avg_deaths: float, avg_assists: float) -> float:
        return round((avg_kills + avg_assists) / max(avg_deaths, MIN_DEATHS_DIVISOR), 2)

    @staticmethod
    def calc_champion_variety(matches: Sequence[MatchRecord]) -> int:
        return len({m.champion for m in matches if m.champion != UNKNOWN})

    @staticmethod
    def _bucket(value: float, tiers: Sequence[Tuple[float, str]], floor: str) -> str:
        for threshold, label in tiers:
            if value > threshold:
                return label
        return floor

    def death_rate_category(self, average_deaths: float) -> str:
        return self._bucket(average_deaths, self.death_tiers, self.death_floor)

    def kda_category(self, kda_ratio: float) -> str:
        return self._bucket(kda_ratio, self.kda_tiers, self.kda_floor)

    def calculate_player(self, record: PlayerRecord) -> DerivedStats:
        """Derived stats for a single successful record."""
        text_winrate = self.parse_winrate(record.winrate)
        matches = list(record.matches)

        parsed: List[Tuple[MatchRecord, Tuple[int, int, int]]] = []
        for match in matches:
            kda = self.parse_kda(match.kda)
            if kda is not None:
                parsed.append((match, kda))

        if not parsed:
            return DerivedStats(winrate=float(text_winrate), recent_matches=len(matches))

        count = len(parsed)
        avg_kills = sum(k for _, (k, _d, _a) in parsed) / count
        avg_deaths = sum(d for _, (_k, d, _a) in parsed) / count
        avg_assists = sum(a for _, (_k, _d, a) in parsed) / count

        wins = sum(1 for match, _ in parsed if self.is_win(match.result))
        winrate = round(wins / count * 100, 2) if wins > 0 else float(text_winrate)

        return DerivedStats(
            average_kills=round(avg_kills, 2),
            average_deaths=round(avg_deaths, 2),
            average_assists=round(avg_assists, 2),
            kda_ratio=self.calc_kda_ratio(avg_kills, avg_deaths, avg_assists),
            winrate=winrate,
            total_games=len(matches),
            champion_variety=self.calc_champion_variety(matches),
            recent_matches=len(matches),
        )

    def aggregate(
        self,
        records: Sequence[PlayerRecord],
        generated_at: Optional[datetime] = None,
    ) -> AggregateSnapshot:
        """
        Build a fresh snapshot from one batch of records.

        Failed records stay in ``players`` so callers can show them, but
        never reach the stats or category maps.
        """
        snapshot = AggregateSnapshot(generated_at=generated_at or datetime.now(timezone.utc))

        for record in records:
            snapshot.players[record.summoner_name] = record
            if not record.ok:
                LOGGER.warning("Skipping %s due to error: %s", record.summoner_name, record.error)
                continue

            stats = self.calculate_player(record)
            LOGGER.debug("Processed %d matches for %s", stats.recent_matches, record.summoner_name)
            snapshot.stats[record.summoner_name] = stats
            snapshot.death_rate_category[record.summoner_name] = self.death_rate_category(stats.average_deaths)
            snapshot.kda_category[record.summoner_name] = self.kda_category(stats.kda_ratio)

        return snapshot

    @staticmethod
    def leaderboard_stats(snapshot: AggregateSnapshot) -> Dict[str, Dict[str, Any]]:
        """One mapping per metric, plus both category maps, keyed by player."""
        board: Dict[str, Dict[str, Any]] = {}
        for metric in LEADERBOARD_METRICS:
            board[metric] = {
                name: getattr(stats, metric) for name, stats in snapshot.stats.items()
            }
        board["death_rate_category"] = dict(snapshot.death_rate_category)
        board["kda_category"] = dict(snapshot.kda_category)
        return board
