# tests/helpers.py

import os
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional, Tuple

from memeboard.models import MatchRecord, PlayerIdentity, PlayerRecord

FIXED_NOW = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)
FIXTURES_DIR = os.path.join(os.path.dirname(__file__), "fixtures")


def read_fixture(filename: str) -> str:
    with open(os.path.join(FIXTURES_DIR, filename), "r", encoding="utf-8") as f:
        return f.read()


def make_matches(rows: Iterable[Tuple[str, str, str]]) -> Tuple[MatchRecord, ...]:
    """Build matches from (champion, kda, result) rows, newest first."""
    return tuple(
        MatchRecord(champion=champ, kda=kda, result=result, timestamp=FIXED_NOW - timedelta(minutes=30 * i))
        for i, (champ, kda, result) in enumerate(rows)
    )


def make_record(summoner_name: str, rows: Iterable[Tuple[str, str, str]] = (),
                winrate: str = "50%", level: str = "100", rank: str = "Gold 4",
                error: Optional[str] = None) -> PlayerRecord:
    """Synthetic scrape result; pass ``error`` for a failed attempt."""
    if error is not None:
        return PlayerRecord.failed(summoner_name, error, FIXED_NOW)
    return PlayerRecord(
        summoner_name=summoner_name,
        level=level,
        rank=rank,
        winrate=winrate,
        matches=make_matches(rows),
        last_update=FIXED_NOW,
        scraped_from=f"https://www.op.gg/lol/summoners/na/{summoner_name}",
    )


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


FRIENDS = (
    PlayerIdentity("Feeder-NA1", "Death Factory CEO"),
    PlayerIdentity("Smurf-NA1", "Mid lane FREAK"),
    PlayerIdentity("Broken-NA1", "Throwing Krugs"),
)


class FakeScraper:
    """Stands in for OPGGScraper; counts how often a batch was requested."""

    def __init__(self):
        self.batches = 0
        self.fail_with = None

    def scrape_multiple_players(self, players):
        self.batches += 1
        if self.fail_with:
            raise self.fail_with
        return [
            make_record("Feeder-NA1", [("Yasuo", "2/12/3", "Defeat"), ("Yone", "1/10/6", "Victory")], winrate="31%"),
            make_record("Smurf-NA1", [("Ahri", "12/1/9", "Victory")], level="412", rank="Challenger"),
            make_record("Broken-NA1", error="HTTP 503"),
        ]

    def scrape_player_stats(self, player):
        return make_record(str(player), [("Lux", "1/1/1", "Victory")])
