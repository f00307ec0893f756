# memeboard/scraper/__init__.py
"""
Web scraping module for OP.GG summoner pages.

Plain HTTP fetch + BeautifulSoup with cascading selector fallbacks.
"""

from .extractor import ProfileExtractor, extract_profile, parse_html
from .core import OPGGScraper, ScrapeError

__all__ = [
    'ProfileExtractor',
    'extract_profile',
    'parse_html',
    'OPGGScraper',
    'ScrapeError',
]
