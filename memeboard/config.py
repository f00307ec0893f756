# memeboard/config.py
"""Runtime settings. Values come from the environment (optionally a .env file)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Tuple

from dotenv import load_dotenv

from memeboard.models import PlayerIdentity

PROJECT_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(dotenv_path=PROJECT_ROOT / ".env")

# The friend group being roasted. Keys are OP.GG "Name-TAG" riot ids.
FRIEND_GROUP: Tuple[PlayerIdentity, ...] = (
    PlayerIdentity("sugarandolive128-NA1", "las begas"),
    PlayerIdentity("TheRat-Na11", "Smelliest Clown"),
    PlayerIdentity("SchmoneSchwolf-7324", "Death Factory CEO"),
    PlayerIdentity("Saladsensei-NA1", "Elite500 of NA"),
    PlayerIdentity("Pablo-CEO", "Raptors for Breakfast"),
    PlayerIdentity("GROWYRHAIROUT-FUNNY", "Chime Minister"),
    PlayerIdentity("Crane-C9LOL", "Mixed Bobby Fischer"),
    PlayerIdentity("Salverz-NA1", "Throwing Krugs"),
    PlayerIdentity("Willow-flwrs", "Mid lane FREAK"),
)

DEV_ORIGINS = ("http://localhost:3000", "http://127.0.0.1:3000")


def _split_csv(raw: str) -> List[str]:
    return [part.strip() for part in raw.split(",") if part.strip()]


@dataclass
class Settings:
    port: int = 3001
    environment: str = "development"
    region: str = "na"
    frontend_url: str = ""
    extra_origins: List[str] = field(default_factory=list)
    friends: Tuple[PlayerIdentity, ...] = FRIEND_GROUP

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def cors_origins(self) -> List[str]:
        if not self.is_production:
            return list(DEV_ORIGINS)
        origins = [self.frontend_url] if self.frontend_url else []
        return origins + [o for o in self.extra_origins if o not in origins]

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            port=int(os.environ.get("PORT", "3001")),
            environment=os.environ.get("APP_ENV", "development").strip().lower(),
            region=os.environ.get("OPGG_REGION", "na").strip().lower() or "na",
            frontend_url=os.environ.get("FRONTEND_URL", "").strip(),
            extra_origins=_split_csv(os.environ.get("CORS_EXTRA_ORIGINS", "")),
        )
