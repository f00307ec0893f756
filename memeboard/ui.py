# memeboard/ui.py

from typing import Any, Dict, List

from memeboard.models import PlayerRecord


class TerminalUI:
    """Plain-text rendering of the leaderboard for the CLI."""

    @staticmethod
    def _format_metric(value: Any, decimals: int = 2) -> str:
        if value is None:
            return 'N/A'
        if isinstance(value, float):
            return f'{value:.{decimals}f}'
        return str(value)

    @staticmethod
    def sorted_rows(payload: Dict[str, Any], sort_by: str, descending: bool = True) -> List[Dict[str, Any]]:
        """Rows for every scored player, ordered by one metric."""
        stats = payload.get('stats', {})
        metric = stats.get(sort_by, {})
        rows = []
        for name, info in payload.get('players', {}).items():
            rows.append({
                'summoner_name': name,
                'display_name': info.get('display_name', name),
                'value': metric.get(name, 0),
                'death_rate_category': stats.get('death_rate_category', {}).get(name, ''),
                'kda_category': stats.get('kda_category', {}).get(name, ''),
            })
        rows.sort(key=lambda r: (r['value'], r['summoner_name']), reverse=descending)
        return rows

    def show_leaderboard(self, payload: Dict[str, Any], sort_by: str = 'average_deaths', descending: bool = True):
        print("\n" + "=" * 70)
        print(f"LEADERBOARD - {sort_by} ({payload.get('playerCount', 0)} players)")
        print("=" * 70)
        print(f"{'#':<4}{'Player':<26}{sort_by:<18}{'Tier'}")
        print("-" * 70)
        for i, row in enumerate(self.sorted_rows(payload, sort_by, descending), 1):
            print(f"{i:<4}{row['display_name'][:25]:<26}{self._format_metric(row['value']):<18}"
                  f"{row['death_rate_category']} / {row['kda_category']}")
        print("-" * 70)

        failed = [r for r in payload.get('rawData', []) if r.get('error')]
        for raw in failed:
            print(f"  skipped {raw['summonerName']}: {raw['error']}")
        if payload.get('lastUpdate'):
            print(f"Last update: {payload['lastUpdate']}")
        print("=" * 70)

    def show_player(self, record: PlayerRecord):
        print("\n" + "=" * 50)
        print(f"PLAYER: {record.summoner_name}")
        print("=" * 50)
        if not record.ok:
            self.show_error(record.error)
            return
        print(f"Level:   {record.level}")
        print(f"Rank:    {record.rank}")
        print(f"Winrate: {record.winrate}")
        print("-" * 50)
        for match in record.matches:
            print(f"  {match.champion:<16}{match.kda:<12}{match.result}")
        if not record.matches:
            print("  No recent matches found")
        print("=" * 50)

    def show_error(self, message: str):
        """Display error message."""
        print(f"\nERROR: {message}\n")
