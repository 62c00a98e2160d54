"""
Cached reads of tournament, player and leaderboard data.

Each entity gets its own cache key scheme and TTL; all fetches go through the
ReadThroughResolver so concurrent requests for one key share a single upstream call.
"""

import logging
from typing import Dict, List

from .. import config
from ..cache import ReadThroughResolver, cache_key, normalize_search_term
from ..errors import ValidationError
from .models import LeaderboardSnapshot, TournamentResearchSnapshot

logger = logging.getLogger(__name__)


class TournamentDataService:
    """Read-through access to the upstream API."""

    def __init__(self, client, resolver: ReadThroughResolver):
        """
        Args:
            client: Upstream client (see api_client.LtgApiClient)
            resolver: Resolver wrapping the process cache
        """
        self.client = client
        self.resolver = resolver

    @property
    def cache(self):
        return self.resolver.cache

    def list_tournaments(self) -> List[Dict]:
        """Every tournament the backend lists, in backend order."""
        return self.resolver.resolve(
            cache_key('tournament-list'),
            config.TOURNAMENT_TTL,
            self.client.fetch_tournaments
        )

    def get_tournament(self, tournament_id: str) -> Dict:
        return self.resolver.resolve(
            cache_key('tournament', tournament_id),
            config.TOURNAMENT_TTL,
            lambda: self.client.fetch_tournament(tournament_id)
        )

    def get_research(self, tournament_id: str) -> TournamentResearchSnapshot:
        return self.resolver.resolve(
            cache_key('tournament-research', tournament_id),
            config.RESEARCH_TTL,
            lambda: self.client.fetch_research(tournament_id)
        )

    def get_player(self, player_id: str) -> Dict:
        return self.resolver.resolve(
            cache_key('player', player_id),
            config.PLAYER_TTL,
            lambda: self.client.fetch_player(player_id)
        )

    def search_players(self, query: str, limit: int = config.SEARCH_DEFAULT_LIMIT) -> List[Dict]:
        """
        Search players by name.

        Raises:
            ValidationError: Empty query or limit outside 1..SEARCH_MAX_LIMIT
        """
        term = normalize_search_term(query or '')
        if not term:
            raise ValidationError("Search query must not be empty")
        if not 1 <= limit <= config.SEARCH_MAX_LIMIT:
            raise ValidationError(f"limit must be between 1 and {config.SEARCH_MAX_LIMIT}")

        return self.resolver.resolve(
            cache_key('player-search', term, limit),
            config.PLAYER_SEARCH_TTL,
            lambda: self.client.search_players(term, limit)
        )

    def get_leaderboard(self, tournament_id: str) -> LeaderboardSnapshot:
        return self.resolver.resolve(
            cache_key('leaderboard', tournament_id),
            config.LEADERBOARD_TTL,
            lambda: self.client.fetch_leaderboard(tournament_id)
        )

    def invalidate_tournament(self, tournament_id: str) -> None:
        """Drop every cached view of one tournament, and the tournament list."""
        for key in (
            cache_key('tournament-list'),
            cache_key('tournament', tournament_id),
            cache_key('tournament-research', tournament_id),
            cache_key('leaderboard', tournament_id),
        ):
            self.cache.delete(key)
        logger.info(f"Invalidated cached data for tournament {tournament_id}")
