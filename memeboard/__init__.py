# memeboard/__init__.py
"""Friend-group League of Legends meme leaderboard."""

__version__ = "1.0.0"
