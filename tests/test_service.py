# tests/test_service.py

import threading
import time
import unittest

from memeboard.cache import SnapshotCache
from memeboard.service import STALE_WARNING, LeaderboardService, StatsUnavailableError
from memeboard.ui import TerminalUI
from tests.helpers import FRIENDS, FakeClock, FakeScraper


class TestLeaderboardService(unittest.TestCase):

    def setUp(self):
        self.clock = FakeClock()
        self.scraper = FakeScraper()
        self.service = LeaderboardService(
            FRIENDS,
            scraper=self.scraper,
            cache=SnapshotCache(max_age_seconds=900, clock=self.clock),
        )

    def test_first_call_scrapes(self):
        payload = self.service.get_stats()
        self.assertFalse(payload["cached"])
        self.assertEqual(payload["cacheAge"], 0)
        self.assertEqual(self.scraper.batches, 1)

    def test_second_call_served_from_cache(self):
        self.service.get_stats()
        self.clock.advance(180)
        payload = self.service.get_stats()
        self.assertTrue(payload["cached"])
        self.assertEqual(payload["cacheAge"], 3)
        self.assertEqual(self.scraper.batches, 1)

    def test_expired_cache_rescrapes(self):
        self.service.get_stats()
        self.clock.advance(901)
        payload = self.service.get_stats()
        self.assertFalse(payload["cached"])
        self.assertEqual(self.scraper.batches, 2)

    def test_payload_shape(self):
        payload = self.service.get_stats()
        self.assertEqual(payload["source"], "OP.GG Scraping")
        self.assertEqual(payload["playerCount"], 2)
        self.assertIsNotNone(payload["lastUpdate"])
        self.assertEqual(set(payload["players"]), {"Feeder-NA1", "Smurf-NA1"})
        self.assertEqual(payload["players"]["Smurf-NA1"]["display_name"], "Mid lane FREAK")
        self.assertEqual(payload["players"]["Smurf-NA1"]["rank"], "Challenger")
        self.assertEqual(payload["players"]["Feeder-NA1"]["winrate"], 31)
        self.assertIn("kda_category", payload["stats"])
        self.assertEqual(payload["stats"]["average_deaths"]["Feeder-NA1"], 11.0)
        self.assertEqual(len(payload["rawData"]), 3)
        broken = [r for r in payload["rawData"] if r["summonerName"] == "Broken-NA1"][0]
        self.assertEqual(broken["error"], "HTTP 503")

    def test_stale_snapshot_served_on_refresh_error(self):
        self.service.get_stats()
        self.clock.advance(1000)
        self.scraper.fail_with = RuntimeError("site down")

        payload = self.service.get_stats()
        self.assertTrue(payload["cached"])
        self.assertEqual(payload["warning"], STALE_WARNING)
        self.assertEqual(payload["error"], "site down")
        self.assertEqual(payload["playerCount"], 2)

    def test_error_without_snapshot_raises(self):
        self.scraper.fail_with = RuntimeError("site down")
        with self.assertRaises(StatsUnavailableError):
            self.service.get_stats()

    def test_scrape_fresh_bypasses_cache(self):
        self.service.get_stats()
        payload = self.service.scrape_fresh()
        self.assertFalse(payload["cached"])
        self.assertEqual(payload["message"], "Fresh data scraped successfully!")
        self.assertEqual(self.scraper.batches, 2)

    def test_scrape_fresh_propagates_errors(self):
        self.scraper.fail_with = RuntimeError("site down")
        with self.assertRaises(RuntimeError):
            self.service.scrape_fresh()

    def test_concurrent_cold_requests_scrape_once(self):
        real_batch = self.scraper.scrape_multiple_players

        def slow_batch(players):
            time.sleep(0.2)
            return real_batch(players)

        self.scraper.scrape_multiple_players = slow_batch
        start = threading.Barrier(3)
        results = []

        def request():
            start.wait()
            results.append(self.service.get_stats())

        workers = [threading.Thread(target=request) for _ in range(3)]
        for worker in workers:
            worker.start()
        for worker in workers:
            worker.join(timeout=10)

        self.assertEqual(self.scraper.batches, 1)
        self.assertEqual(len(results), 3)
        self.assertEqual(sorted(p["cached"] for p in results), [False, True, True])

    def test_display_name_falls_back_to_key(self):
        self.assertEqual(self.service.display_name("Stranger-NA1"), "Stranger-NA1")

    def test_sorted_rows(self):
        payload = self.service.get_stats()
        rows = TerminalUI.sorted_rows(payload, "average_deaths")
        self.assertEqual([r["summoner_name"] for r in rows], ["Feeder-NA1", "Smurf-NA1"])
        rows = TerminalUI.sorted_rows(payload, "kda_ratio")
        self.assertEqual(rows[0]["display_name"], "Mid lane FREAK")
        rows = TerminalUI.sorted_rows(payload, "kda_ratio", descending=False)
        self.assertEqual(rows[0]["summoner_name"], "Feeder-NA1")


if __name__ == '__main__':
    unittest.main()
