"""
LumberTier Golf: cached tournament data, live fantasy leaderboard and tiered lineup drafts.
"""

__version__ = '1.0.0'
