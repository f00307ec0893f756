# memeboard/models.py

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from memeboard.thresholds import ERROR, UNKNOWN, UNRANKED, ZERO_WINRATE


@dataclass(frozen=True)
class PlayerIdentity:
    """A tracked profile key plus the nickname shown on the leaderboard."""

    summoner_name: str
    display_name: Optional[str] = None

    @property
    def label(self) -> str:
        return self.display_name or self.summoner_name


@dataclass(frozen=True)
class MatchRecord:
    champion: str
    kda: str
    result: str = UNKNOWN
    timestamp: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "champion": self.champion,
            "kda": self.kda,
            "result": self.result,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }


@dataclass(frozen=True)
class ProfileFields:
    """
    Raw extractor output for one profile page.

    None means the field was not found on the page; sentinels are only
    applied when a PlayerRecord is built from it.
    """

    level: Optional[str] = None
    rank: Optional[str] = None
    winrate: Optional[str] = None
    matches: Tuple[MatchRecord, ...] = ()
    used_fallback: bool = False


@dataclass(frozen=True)
class PlayerRecord:
    """
    One scrape attempt for one player.

    A failed attempt carries ``error`` and display sentinels in the text
    fields; callers must branch on ``ok``, never on the sentinel text.
    """

    summoner_name: str
    level: str
    rank: str
    winrate: str
    matches: Tuple[MatchRecord, ...]
    last_update: datetime
    scraped_from: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def from_fields(
        cls,
        summoner_name: str,
        fields: ProfileFields,
        last_update: datetime,
        scraped_from: Optional[str] = None,
    ) -> "PlayerRecord":
        return cls(
            summoner_name=summoner_name,
            level=fields.level or UNKNOWN,
            rank=fields.rank or UNRANKED,
            winrate=fields.winrate or ZERO_WINRATE,
            matches=tuple(fields.matches),
            last_update=last_update,
            scraped_from=scraped_from,
        )

    @classmethod
    def failed(
        cls,
        summoner_name: str,
        error: str,
        last_update: datetime,
        scraped_from: Optional[str] = None,
    ) -> "PlayerRecord":
        return cls(
            summoner_name=summoner_name,
            level=ERROR,
            rank=ERROR,
            winrate=ZERO_WINRATE,
            matches=(),
            last_update=last_update,
            scraped_from=scraped_from,
            error=error or "Unknown error",
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "summonerName": self.summoner_name,
            "level": self.level,
            "rank": self.rank,
            "winrate": self.winrate,
            "recentMatches": [m.to_dict() for m in self.matches],
            "lastUpdate": self.last_update.isoformat(),
        }
        if self.scraped_from:
            data["scrapedFrom"] = self.scraped_from
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass(frozen=True)
class DerivedStats:
    average_kills: float = 0.0
    average_deaths: float = 0.0
    average_assists: float = 0.0
    kda_ratio: float = 0.0
    winrate: float = 0.0
    total_games: int = 0
    champion_variety: int = 0
    recent_matches: int = 0


@dataclass
class AggregateSnapshot:
    """Everything one aggregation run produces; the unit that gets cached."""

    players: Dict[str, PlayerRecord] = field(default_factory=dict)
    stats: Dict[str, DerivedStats] = field(default_factory=dict)
    death_rate_category: Dict[str, str] = field(default_factory=dict)
    kda_category: Dict[str, str] = field(default_factory=dict)
    generated_at: Optional[datetime] = None

    @property
    def player_count(self) -> int:
        return len(self.stats)
