"""
FastAPI read API in front of the tournament data cache.

Serves cached tournament, player and research data plus a locally ranked
leaderboard. The cache lives on the app instance: it is created with the app
and dies with the serving process.
"""

import logging
from typing import Optional

from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__, config
from ..cache import ReadThroughResolver, TTLCache
from ..errors import LumberTierError
from .api_serializers import (
    CacheClearedResponse,
    LeaderboardResponse,
    ResearchResponse,
    serialize_leaderboard,
    serialize_research,
)
from .leaderboard import sort_entries
from .research import filter_player_form
from .tournament_service import TournamentDataService

logger = logging.getLogger(__name__)


def build_default_service() -> TournamentDataService:
    """Upstream client + fresh process cache."""
    from ..api_client import LtgApiClient

    resolver = ReadThroughResolver(TTLCache(default_ttl=config.DEFAULT_CACHE_TTL))
    return TournamentDataService(LtgApiClient(), resolver)


def register_error_handlers(app: FastAPI) -> None:
    """Map the error taxonomy onto JSON error responses."""

    @app.exception_handler(LumberTierError)
    async def handle_lumbertier_error(_request: Request, exc: LumberTierError):
        if exc.status_code >= 500:
            logger.error(f"Upstream failure: {exc}")
        return JSONResponse({"error": exc.message}, status_code=exc.status_code)

    @app.exception_handler(Exception)
    async def handle_unexpected(_request: Request, exc: Exception):
        logger.exception(f"Unhandled error: {exc}")
        return JSONResponse({"error": "Internal server error"}, status_code=500)


def create_app(service: Optional[TournamentDataService] = None) -> FastAPI:
    """
    Build the read API.

    Args:
        service: Data service to serve from (default: upstream client with a new cache)
    """
    app = FastAPI(
        title="LumberTier Golf Read API",
        description="Cached tournament data and ranked fantasy leaderboards",
        version=__version__
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    app.state.service = service or build_default_service()

    def get_service(request: Request) -> TournamentDataService:
        return request.app.state.service

    @app.get("/health")
    def health_check():
        return {
            "status": "ok",
            "service": "LumberTier Golf Read API",
            "version": __version__
        }

    @app.get("/tournaments")
    def list_tournaments(request: Request):
        """Tournament listing (cached for TOURNAMENT_TTL)."""
        return get_service(request).list_tournaments()

    @app.get("/tournament/{tournament_id}")
    def get_tournament(tournament_id: str, request: Request):
        """Tournament metadata (cached for TOURNAMENT_TTL)."""
        return get_service(request).get_tournament(tournament_id)

    @app.get("/tournament/{tournament_id}/research", response_model=ResearchResponse)
    def get_research(
        tournament_id: str,
        request: Request,
        q: Optional[str] = Query(None, description="Player name contains"),
        tier: Optional[str] = Query(None, description="Tier filter (A-D or 'all')"),
        sort: str = Query('last8_avg', description="Sort column"),
        direction: str = Query('desc', description="'asc' or 'desc'")
    ):
        """Field strength and player form, filtered and sorted."""
        snapshot = get_service(request).get_research(tournament_id)
        players_df = filter_player_form(
            snapshot, query=q, tier=tier, sort_key=sort, direction=direction
        )
        return serialize_research(snapshot, players_df)

    @app.get("/player/search")
    def search_players(
        request: Request,
        q: str = Query(..., description="Player name"),
        limit: int = Query(config.SEARCH_DEFAULT_LIMIT, ge=1, le=config.SEARCH_MAX_LIMIT)
    ):
        return get_service(request).search_players(q, limit)

    @app.get("/player/{player_id}")
    def get_player(player_id: str, request: Request):
        return get_service(request).get_player(player_id)

    @app.get("/leaderboard/{tournament_id}", response_model=LeaderboardResponse)
    def get_leaderboard(
        tournament_id: str,
        request: Request,
        sort: str = Query('rank', description="rank | total | tiebreaker | entry_id"),
        direction: str = Query('asc', description="'asc' or 'desc'")
    ):
        """Leaderboard ranked locally; missing values last, ties in backend order."""
        snapshot = get_service(request).get_leaderboard(tournament_id)
        entries = sort_entries(snapshot.entries, sort, direction)
        logger.info(
            f"Returned leaderboard {tournament_id}: {len(entries)} entries "
            f"(sort={sort}, direction={direction})"
        )
        return serialize_leaderboard(snapshot, entries, sort, direction)

    @app.delete("/cache", response_model=CacheClearedResponse)
    def clear_cache(request: Request):
        get_service(request).cache.clear()
        return CacheClearedResponse(success=True, message="Cache cleared")

    @app.delete("/cache/tournament/{tournament_id}", response_model=CacheClearedResponse)
    def invalidate_tournament(tournament_id: str, request: Request):
        get_service(request).invalidate_tournament(tournament_id)
        return CacheClearedResponse(
            success=True,
            message=f"Cache cleared for tournament {tournament_id}"
        )

    @app.on_event("shutdown")
    async def shutdown_event():
        client = getattr(app.state.service, 'client', None)
        if client is not None and hasattr(client, 'close'):
            client.close()
        logger.info("Read API server shutting down")

    return app
