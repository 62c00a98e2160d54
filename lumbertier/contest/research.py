"""
Player-form research table for a tournament field.

Turns a TournamentResearchSnapshot into a filterable, sortable DataFrame and
groups the field by tier for lineup building.
"""

import logging
from typing import Dict, Iterable, List, Optional

import pandas as pd

from .. import config
from ..errors import ValidationError
from .models import PlayerForm, TournamentResearchSnapshot, is_missing

logger = logging.getLogger(__name__)

PLAYER_FORM_COLUMNS = [
    'player_id', 'name', 'tier', 'last8_avg', 'last4_trend',
    'cuts_made', 'top10s', 'top25s'
]


def player_form_frame(snapshot: TournamentResearchSnapshot) -> pd.DataFrame:
    """One row per player in the field, columns as PLAYER_FORM_COLUMNS."""
    records = [player.to_dict() for player in snapshot.player_form]
    return pd.DataFrame(records, columns=PLAYER_FORM_COLUMNS)


def filter_player_form(
    snapshot: TournamentResearchSnapshot,
    query: Optional[str] = None,
    tier: Optional[str] = None,
    sort_key: str = 'last8_avg',
    direction: str = 'desc'
) -> pd.DataFrame:
    """
    Filter and sort the research table.

    Args:
        snapshot: Research snapshot for the tournament
        query: Case-insensitive substring of the player name
        tier: Tier label to keep (None or 'all' keeps every tier)
        sort_key: Column from config.RESEARCH_SORT_KEYS
        direction: 'asc' or 'desc'

    Returns:
        Filtered DataFrame; rows with a missing sort value come last and
        equal values keep field order

    Raises:
        ValidationError: Unknown sort key or direction
    """
    if sort_key not in config.RESEARCH_SORT_KEYS:
        raise ValidationError(
            f"Unsupported sort key: {sort_key}. Supported: {config.RESEARCH_SORT_KEYS}"
        )
    if direction not in config.SORT_DIRECTIONS:
        raise ValidationError(
            f"Unsupported direction: {direction}. Supported: {config.SORT_DIRECTIONS}"
        )

    df = player_form_frame(snapshot)

    if tier and tier.lower() != 'all':
        df = df[df['tier'] == tier.upper()]

    if query:
        df = df[df['name'].str.lower().str.contains(query.strip().lower(), regex=False)]

    df = df.sort_values(
        by=sort_key,
        ascending=(direction == 'asc'),
        kind='stable',
        na_position='last'
    )

    logger.debug(
        f"Research table {snapshot.tournament_id}: {len(df)} of "
        f"{len(snapshot.player_form)} players (tier={tier}, query={query!r})"
    )
    return df.reset_index(drop=True)


def group_by_tier(player_form: Iterable[PlayerForm]) -> Dict[str, List[PlayerForm]]:
    """
    Group players by tier label.

    Returns:
        Ordered dict: A, B, C, D first (those present), then any other labels
        alphabetically; players keep field order within a tier
    """
    by_tier: Dict[str, List[PlayerForm]] = {}
    for player in player_form:
        by_tier.setdefault(player.tier, []).append(player)

    def tier_position(label: str):
        if label in config.TIER_ORDER:
            return (0, config.TIER_ORDER.index(label), label)
        return (1, 0, label)

    return {label: by_tier[label] for label in sorted(by_tier, key=tier_position)}


def format_stat(value) -> str:
    """One decimal for floats, plain str otherwise, '–' when missing."""
    if is_missing(value):
        return config.MISSING_STAT
    if isinstance(value, float):
        return f"{value:.1f}"
    return str(value)
