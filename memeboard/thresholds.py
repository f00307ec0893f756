# memeboard/thresholds.py
"""Policy constants for scraping, aggregation and tiering."""

import re

# --- Sentinels ---
UNKNOWN = "Unknown"
UNRANKED = "Unranked"
ZERO_WINRATE = "0%"
ERROR = "Error"

RESULT_VICTORY = "Victory"
RESULT_DEFEAT = "Defeat"
WIN_MARKERS = ("victory", "win")

# --- Parsing ---
KDA_PATTERN = re.compile(r"(\d+)/(\d+)/(\d+)")

# --- Extraction limits ---
MAX_MATCHES = 20
MAX_FALLBACK_MATCHES = 10
MATCH_SPACING_MINUTES = 30

MATCH_ITEM_SELECTORS = (
    ".game-item",
    '[data-testid="game-item"]',
    ".GameItemWrap",
    ".match-item",
)

# --- Fetching ---
REQUEST_TIMEOUT_SECONDS = 15
MAX_REDIRECTS = 5
BATCH_DELAY_SECONDS = 3.0

# --- Cache / rate limit ---
CACHE_DURATION_SECONDS = 15 * 60
RATE_LIMIT_WINDOW_SECONDS = 60
RATE_LIMIT_MAX_REQUESTS = 10

# --- Aggregation ---
MIN_DEATHS_DIVISOR = 0.1

# Ordered (threshold, label); a value must be strictly greater than the
# threshold to land in that tier. The last label is the floor.
DEATH_RATE_TIERS = (
    (8, "Professional Feeder 💀"),
    (6, "Casual Inter 😵"),
    (4, "Risky Player ⚡"),
    (2, "Decent Human 😐"),
)
DEATH_RATE_FLOOR = "KDA Player 😎"

KDA_TIERS = (
    (3, "Smurf Alert 🚨"),
    (2, "Actually Good 👍"),
    (1.5, "Decent Player 👌"),
    (1, "Needs Improvement 📈"),
)
KDA_FLOOR = "Questionable Choices 🤔"

LEADERBOARD_METRICS = (
    "average_deaths",
    "average_kills",
    "average_assists",
    "kda_ratio",
    "winrate",
    "champion_variety",
    "total_games",
)
