"""
Configuration constants for the LumberTier Golf fantasy client and read API.
"""

import os

# ===== UPSTREAM API =====

# LumberTier backend (tournaments, players, leaderboard, lineup submission)
API_BASE_URL = os.getenv('LTG_API_URL', 'https://ltg-backend.onrender.com').rstrip('/')

REQUEST_TIMEOUT = 10        # seconds per HTTP request
MAX_RETRIES = 3             # attempts per GET before giving up
RETRY_BACKOFF_SECONDS = 1   # doubled on every retry (1s, 2s, 4s)

# ===== CACHE =====

# TTLs in seconds. Tournament metadata and player profiles change rarely;
# search results are cheap to recompute and staleness is more visible.
DEFAULT_CACHE_TTL = 120
TOURNAMENT_TTL = 300
PLAYER_TTL = 300
RESEARCH_TTL = 300
PLAYER_SEARCH_TTL = 60
LEADERBOARD_TTL = 15

# Player search limits
SEARCH_DEFAULT_LIMIT = 20
SEARCH_MAX_LIMIT = 50

# ===== LEADERBOARD =====

LEADERBOARD_POLL_INTERVAL = 60  # seconds between live refreshes

LEADERBOARD_SORT_KEYS = ['rank', 'total', 'tiebreaker', 'entry_id']
SORT_DIRECTIONS = ['asc', 'desc']

# Golf scoring display
EVEN_SCORE = 'E'
UNKNOWN_VALUE = '—'
MISSING_STAT = '–'
ANONYMOUS_USER = 'Anonymous'

# ===== LINEUP =====

# Tiers in display order; every lineup takes one player per populated tier
TIER_ORDER = ['A', 'B', 'C', 'D']
UNTIERED_LABEL = 'U'
PICKS_SEPARATOR = ' · '

# Research table sort columns
RESEARCH_SORT_KEYS = ['last8_avg', 'last4_trend', 'cuts_made', 'top10s', 'top25s', 'name']

# Fuzzy name matching (fuzzywuzzy token_sort_ratio, 0-100)
PLAYER_MATCH_THRESHOLD = 90

# ===== LOCAL STATE =====

# Durable client-local storage (one JSON file per key)
LOCAL_STATE_DIR = os.getenv('LTG_STATE_DIR', 'data/local_state')
DRAFT_KEY_PREFIX = 'ltg_lineup_draft_'
SESSION_KEY = 'ltg_session'
DRAFT_RECORD_VERSION = 1

# Optional bearer credential supplied through the environment
SESSION_TOKEN = os.getenv('LTG_SESSION_TOKEN')

# ===== READ API SERVER =====

API_HOST = '127.0.0.1'
API_PORT = 8000
CORS_ORIGINS = os.getenv('CORS_ORIGINS', '*').split(',')

# ===== LOGGING =====

LOG_LEVEL = 'INFO'
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
