# main.py

import argparse
import logging

from memeboard.calculator import MemeStatsCalculator
from memeboard.config import Settings
from memeboard.scraper import OPGGScraper
from memeboard.service import LeaderboardService
from memeboard.thresholds import LEADERBOARD_METRICS
from memeboard.ui import TerminalUI


def _safe_print(message: str) -> None:
    """Print with ASCII fallback for restricted terminal encodings."""
    try:
        print(message)
    except UnicodeEncodeError:
        print(message.encode("ascii", errors="replace").decode("ascii"))


def _build_service(settings: Settings) -> LeaderboardService:
    return LeaderboardService(
        settings.friends,
        scraper=OPGGScraper(region=settings.region),
        calculator=MemeStatsCalculator(),
    )


def cmd_scrape(args: argparse.Namespace, settings: Settings) -> int:
    service = _build_service(settings)
    payload = service.scrape_fresh()
    ui = TerminalUI()
    try:
        ui.show_leaderboard(payload, sort_by=args.sort_by, descending=not args.ascending)
    except UnicodeEncodeError:
        _safe_print("Leaderboard contains characters this terminal cannot show; try a UTF-8 console.")
    return 0


def cmd_player(args: argparse.Namespace, settings: Settings) -> int:
    scraper = OPGGScraper(region=settings.region)
    record = scraper.scrape_player_stats(args.summoner_name)
    TerminalUI().show_player(record)
    return 0 if record.ok else 1


def cmd_serve(args: argparse.Namespace, settings: Settings) -> int:
    import uvicorn

    from web.app import create_app

    _safe_print(f"Starting leaderboard API on port {args.port or settings.port}")
    uvicorn.run(create_app(settings=settings), host=args.host, port=args.port or settings.port)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="League friend-group meme leaderboard")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    scrape = sub.add_parser("scrape", help="Scrape every friend and print the leaderboard")
    scrape.add_argument("--sort-by", choices=LEADERBOARD_METRICS, default="average_deaths")
    scrape.add_argument("--ascending", action="store_true")
    scrape.set_defaults(func=cmd_scrape)

    player = sub.add_parser("player", help="Scrape a single summoner")
    player.add_argument("summoner_name")
    player.set_defaults(func=cmd_player)

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=None)
    serve.set_defaults(func=cmd_serve)
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return args.func(args, Settings.from_env())


if __name__ == '__main__':
    raise SystemExit(main())
