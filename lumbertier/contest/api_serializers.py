"""
API serializers for the read API.

Transforms cached snapshots and ranked leaderboard entries into response models.
"""

from typing import Any, Dict, List, Optional

import pandas as pd
from pydantic import BaseModel, Field

from .leaderboard import leaderboard_rows
from .models import LeaderboardEntry, LeaderboardSnapshot, TournamentResearchSnapshot


# ========== Leaderboard ==========

class LeaderboardRowResponse(BaseModel):
    """One ranked entry with display strings."""
    entry_id: str
    user_name: str = Field(description="Name, else email, else 'Anonymous'")
    user_email: Optional[str] = None
    rank: Optional[int] = None
    total: Optional[float] = None
    tiebreaker: Optional[float] = None
    picks: Dict[str, str] = Field(default_factory=dict, description="Tier -> player_id")
    rank_display: str
    score_display: str = Field(description="'E' for even, '+N'/'-N' otherwise, '—' if unknown")
    tiebreaker_display: str
    picks_display: str = Field(description="Picks in tier order A-D")


class LeaderboardResponse(BaseModel):
    """Response for GET /leaderboard/{tournament_id}."""
    tournament_id: str
    updated_at: Optional[str] = Field(None, description="ISO-8601 timestamp of the backend update")
    sort: str
    direction: str
    entries: List[LeaderboardRowResponse]


# ========== Research ==========

class PlayerFormResponse(BaseModel):
    """One player's recent form."""
    player_id: str
    name: str
    tier: str
    last8_avg: Optional[float] = None
    last4_trend: Optional[float] = None
    cuts_made: Optional[int] = None
    top10s: Optional[int] = None
    top25s: Optional[int] = None


class ResearchResponse(BaseModel):
    """Response for GET /tournament/{tournament_id}/research."""
    tournament_id: str
    meta: Dict[str, Any]
    field_strength: Dict[str, Any]
    players: List[PlayerFormResponse] = Field(description="Filtered and sorted player form")


# ========== Cache admin ==========

class CacheClearedResponse(BaseModel):
    success: bool
    message: str


# ========== Serializer Functions ==========

def serialize_leaderboard(
    snapshot: LeaderboardSnapshot,
    entries: List[LeaderboardEntry],
    sort_key: str,
    direction: str
) -> LeaderboardResponse:
    """
    Build the leaderboard response.

    Args:
        snapshot: Snapshot the entries came from (for id and timestamp)
        entries: Entries already in display order
        sort_key: Sort key applied
        direction: Direction applied
    """
    return LeaderboardResponse(
        tournament_id=snapshot.tournament_id,
        updated_at=snapshot.updated_at.isoformat() if snapshot.updated_at else None,
        sort=sort_key,
        direction=direction,
        entries=[LeaderboardRowResponse(**row) for row in leaderboard_rows(entries)]
    )


def serialize_research(
    snapshot: TournamentResearchSnapshot,
    players_df: pd.DataFrame
) -> ResearchResponse:
    """
    Build the research response from a filtered player-form DataFrame.

    NaN cells (missing stats) become None.
    """
    records = players_df.astype(object).where(pd.notna(players_df), None).to_dict('records')

    return ResearchResponse(
        tournament_id=snapshot.tournament_id,
        meta=dict(snapshot.meta),
        field_strength=dict(snapshot.field_strength),
        players=[PlayerFormResponse(**record) for record in records]
    )
