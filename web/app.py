import asyncio
from datetime import datetime, timezone
import logging
import os
import sys
import time

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from memeboard import __version__
from memeboard.config import Settings
from memeboard.scraper import OPGGScraper
from memeboard.service import LeaderboardService, StatsUnavailableError

LOGGER = logging.getLogger(__name__)

RETRY_AFTER_SECONDS = 60


class RateLimitExceeded(Exception):
    pass


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _client_key(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def create_app(service: LeaderboardService | None = None, settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings.from_env()
    if service is None:
        service = LeaderboardService(settings.friends, scraper=OPGGScraper(region=settings.region))
    started_at = time.monotonic()

    app = FastAPI(title="League Friend Group Leaderboard API", version=__version__)
    app.state.service = service
    app.state.settings = settings
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def rate_limit(request: Request) -> None:
        if not service.limiter.is_within_budget(_client_key(request)):
            raise RateLimitExceeded()

    def last_update_iso() -> str | None:
        snapshot = service.cache.get_any()
        if snapshot is None or snapshot.generated_at is None:
            return None
        return snapshot.generated_at.isoformat()

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
        return JSONResponse(
            status_code=429,
            content={
                "error": "Too many requests. Please wait a minute before trying again.",
                "retryAfter": RETRY_AFTER_SECONDS,
            },
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        LOGGER.exception("Unhandled error")
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "message": str(exc), "timestamp": _now_iso()},
        )

    @app.get("/")
    async def root() -> dict:
        return {
            "message": "League of Legends Friend Group Leaderboard API",
            "version": __version__,
            "status": "Ready to roast your friends!",
            "endpoints": {
                "/api/stats": "Get leaderboard stats (cached)",
                "/api/scrape-fresh": "Force fresh scrape (rate limited)",
                "/api/players": "Get player list",
                "/api/player/{summoner_name}": "Scrape a single player (rate limited)",
                "/health": "Health check",
            },
        }

    @app.get("/api/test")
    async def api_test() -> dict:
        return {
            "message": "Backend is working!",
            "timestamp": _now_iso(),
            "mode": "OP.GG Scraping",
            "friendCount": len(service.friends),
            "cacheStatus": "Empty" if service.cache.is_empty else "Available",
        }

    @app.get("/api/players")
    async def list_players() -> dict:
        return {
            "players": [
                {"summoner_name": f.summoner_name, "display_name": f.label} for f in service.friends
            ],
            "totalPlayers": len(service.friends),
            "lastUpdate": last_update_iso(),
        }

    @app.get("/api/stats")
    async def stats():
        try:
            return await asyncio.to_thread(service.get_stats)
        except StatsUnavailableError as e:
            return JSONResponse(
                status_code=500,
                content={
                    "error": "Failed to fetch stats",
                    "details": str(e),
                    "suggestion": "Try again in a few minutes",
                },
            )

    @app.post("/api/scrape-fresh", dependencies=[Depends(rate_limit)])
    async def scrape_fresh():
        try:
            return await asyncio.to_thread(service.scrape_fresh)
        except Exception as e:
            LOGGER.exception("Fresh scrape failed")
            return JSONResponse(
                status_code=500,
                content={"error": "Failed to scrape fresh data", "details": str(e)},
            )

    @app.get("/api/player/{summoner_name}", dependencies=[Depends(rate_limit)])
    async def player(summoner_name: str) -> dict:
        LOGGER.info("Fetching individual data for %s", summoner_name)
        record = await asyncio.to_thread(service.scrape_player, summoner_name)
        return record.to_dict()

    @app.get("/health")
    async def health() -> dict:
        return {
            "status": "OK",
            "timestamp": _now_iso(),
            "uptime": round(time.monotonic() - started_at, 3),
            "cacheStatus": "Empty" if service.cache.is_empty else "Available",
            "lastUpdate": last_update_iso() or "Never",
            "playerCount": len(service.friends),
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    current = app.state.settings
    print(f"Starting leaderboard API on port {current.port}")
    print(f"Tracking {len(app.state.service.friends)} players")
    print(f"CORS enabled for: {', '.join(current.cors_origins) or '(none)'}")
    uvicorn.run(app, host="0.0.0.0", port=current.port)
