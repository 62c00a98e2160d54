"""
Leaderboard ordering and display formatting.

The display order is computed locally and never trusts the order the backend
sent: entries are sorted by the chosen field, entries with a missing value go
last whatever the direction, and ties keep their input order.
"""

import logging
from pathlib import Path
from typing import Iterable, List, Mapping, Optional

import pandas as pd

from .. import config
from ..errors import ValidationError
from .models import LeaderboardEntry, is_missing

logger = logging.getLogger(__name__)


def sort_entries(
    entries: Iterable[LeaderboardEntry],
    sort_key: str = 'rank',
    direction: str = 'asc'
) -> List[LeaderboardEntry]:
    """
    Sort leaderboard entries for display.

    Args:
        entries: Entries in backend order
        sort_key: One of 'rank', 'total', 'tiebreaker', 'entry_id'
        direction: 'asc' or 'desc'

    Returns:
        New list; defined values ordered by direction, then missing values,
        each group keeping input order among equal values

    Raises:
        ValidationError: Unknown sort key or direction
    """
    if sort_key not in config.LEADERBOARD_SORT_KEYS:
        raise ValidationError(
            f"Unsupported sort key: {sort_key}. Supported: {config.LEADERBOARD_SORT_KEYS}"
        )
    if direction not in config.SORT_DIRECTIONS:
        raise ValidationError(
            f"Unsupported direction: {direction}. Supported: {config.SORT_DIRECTIONS}"
        )

    defined = []
    missing = []
    for entry in entries:
        if is_missing(getattr(entry, sort_key)):
            missing.append(entry)
        else:
            defined.append(entry)

    # sorted() is stable in both directions: reverse=True keeps equal items in input order
    defined = sorted(
        defined,
        key=lambda e: getattr(e, sort_key),
        reverse=(direction == 'desc')
    )
    return defined + missing


def format_score(total: Optional[float]) -> str:
    """
    Render a to-par total the golf way.

    0 -> 'E', 3 -> '+3', -2 -> '-2', missing -> '—'
    """
    if is_missing(total):
        return config.UNKNOWN_VALUE
    if total == 0:
        return config.EVEN_SCORE
    return format(total, '+g')


def format_picks(picks: Optional[Mapping[str, str]]) -> str:
    """Render picks in fixed tier order, skipping empty tiers: 'A:p1 · C:p3'."""
    if picks is None:
        return config.UNKNOWN_VALUE
    return config.PICKS_SEPARATOR.join(
        f"{tier}:{picks[tier]}" for tier in config.TIER_ORDER if picks.get(tier)
    )


def format_optional(value) -> str:
    """Rank/tiebreaker cell: the value itself, or '—' when missing."""
    return config.UNKNOWN_VALUE if is_missing(value) else str(value)


def leaderboard_rows(entries: Iterable[LeaderboardEntry]) -> List[dict]:
    """
    Convert entries to display rows.

    Returns:
        List of dicts with raw values plus their formatted counterparts
    """
    rows = []
    for entry in entries:
        rows.append({
            'entry_id': entry.entry_id,
            'user_name': entry.user.display_name(),
            'user_email': entry.user.email,
            'rank': entry.rank,
            'total': entry.total,
            'tiebreaker': entry.tiebreaker,
            'picks': dict(entry.picks),
            'rank_display': format_optional(entry.rank),
            'score_display': format_score(entry.total),
            'tiebreaker_display': format_optional(entry.tiebreaker),
            'picks_display': format_picks(entry.picks)
        })
    return rows


def leaderboard_frame(entries: Iterable[LeaderboardEntry]) -> pd.DataFrame:
    """Display rows as a DataFrame, one column per tier instead of a picks dict."""
    rows = leaderboard_rows(entries)
    for row in rows:
        picks = row.pop('picks')
        for tier in config.TIER_ORDER:
            row[f'pick_{tier}'] = picks.get(tier)
    return pd.DataFrame(rows)


def export_to_csv(entries: Iterable[LeaderboardEntry], output_path: Path) -> None:
    """
    Export a (sorted) leaderboard to CSV.

    Args:
        entries: Entries in the order they should appear
        output_path: Path for CSV output
    """
    df = leaderboard_frame(entries)
    if df.empty:
        logger.warning("No leaderboard entries to export")
        return

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(output_path, index=False)

    logger.info(f"Exported {len(df)} leaderboard entries to {output_path}")
