"""
Fantasy contest subsystem: tournament research, live leaderboard and lineup drafts.

This package provides cached tournament reads, a locally ranked leaderboard that
refreshes on a timer, and a lineup draft that survives restarts until submitted.
"""

from .models import (
    EntrantUser,
    LeaderboardEntry,
    LeaderboardSnapshot,
    LineupDraft,
    PlayerForm,
    TournamentResearchSnapshot,
)
from .leaderboard import format_picks, format_score, sort_entries
from .leaderboard_poller import LeaderboardPoller, LeaderboardView
from .lineup_draft import DraftStatus, DraftStore, LineupDraftMachine, SessionCredentialStore
from .local_store import LocalStore
from .tournament_service import TournamentDataService

__all__ = [
    'EntrantUser',
    'LeaderboardEntry',
    'LeaderboardSnapshot',
    'LineupDraft',
    'PlayerForm',
    'TournamentResearchSnapshot',
    'format_picks',
    'format_score',
    'sort_entries',
    'LeaderboardPoller',
    'LeaderboardView',
    'DraftStatus',
    'DraftStore',
    'LineupDraftMachine',
    'SessionCredentialStore',
    'LocalStore',
    'TournamentDataService',
]
