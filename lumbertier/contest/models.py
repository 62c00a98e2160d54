"""
Core data structures for tournaments, player form, leaderboards and lineup drafts.

Snapshots returned through the cache are shared by every caller until they
expire, so they are frozen: sequences are tuples and mappings are read-only views.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from .. import config


def _frozen_mapping(data: Optional[Mapping]) -> Mapping:
    return MappingProxyType(dict(data or {}))


def _parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp (trailing 'Z' allowed); None if unparseable."""
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace('Z', '+00:00'))
    except ValueError:
        return None


def is_missing(value: Any) -> bool:
    """True for None and NaN, the two ways upstream reports an unknown number."""
    return value is None or (isinstance(value, float) and math.isnan(value))


@dataclass(frozen=True)
class PlayerForm:
    """Recent form of one golfer in a tournament field."""

    player_id: str
    name: str
    tier: str = config.UNTIERED_LABEL     # A-D, 'U' when upstream gave none
    last8_avg: Optional[float] = None     # Average points over last 8 events
    last4_trend: Optional[float] = None   # Trend over last 4 events
    cuts_made: Optional[int] = None
    top10s: Optional[int] = None
    top25s: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            'player_id': self.player_id,
            'name': self.name,
            'tier': self.tier,
            'last8_avg': self.last8_avg,
            'last4_trend': self.last4_trend,
            'cuts_made': self.cuts_made,
            'top10s': self.top10s,
            'top25s': self.top25s
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'PlayerForm':
        return cls(
            player_id=str(data['player_id']),
            name=data.get('name') or str(data['player_id']),
            tier=(data.get('tier') or config.UNTIERED_LABEL).upper(),
            last8_avg=data.get('last8_avg'),
            last4_trend=data.get('last4_trend'),
            cuts_made=data.get('cuts_made'),
            top10s=data.get('top10s'),
            top25s=data.get('top25s')
        )


@dataclass(frozen=True)
class TournamentResearchSnapshot:
    """Tournament metadata, field strength and the form of every player in the field."""

    tournament_id: str
    meta: Mapping = field(default_factory=dict)
    field_strength: Mapping = field(default_factory=dict)
    player_form: Tuple[PlayerForm, ...] = ()

    def players_by_id(self) -> Dict[str, PlayerForm]:
        return {player.player_id: player for player in self.player_form}

    def to_dict(self) -> dict:
        return {
            'tournament_id': self.tournament_id,
            'meta': dict(self.meta),
            'field_strength': dict(self.field_strength),
            'player_form': [player.to_dict() for player in self.player_form]
        }

    @classmethod
    def from_dict(cls, tournament_id: str, data: dict) -> 'TournamentResearchSnapshot':
        """Build from the upstream research payload (snake_case keys)."""
        return cls(
            tournament_id=str(tournament_id),
            meta=_frozen_mapping(data.get('meta')),
            field_strength=_frozen_mapping(data.get('field_strength')),
            player_form=tuple(
                PlayerForm.from_dict(p) for p in data.get('player_form') or []
            )
        )


@dataclass(frozen=True)
class EntrantUser:
    """Owner of a leaderboard entry."""

    name: Optional[str] = None
    email: Optional[str] = None

    def display_name(self) -> str:
        return self.name or self.email or config.ANONYMOUS_USER


@dataclass(frozen=True)
class LeaderboardEntry:
    """One submitted lineup as scored by the backend. Read-only per refresh."""

    entry_id: str
    user: EntrantUser = field(default_factory=EntrantUser)
    total: Optional[float] = None       # Strokes relative to par, lower is better
    rank: Optional[int] = None
    tiebreaker: Optional[float] = None
    picks: Mapping = field(default_factory=dict)  # tier -> player_id

    def to_dict(self) -> dict:
        return {
            'entry_id': self.entry_id,
            'user': {'name': self.user.name, 'email': self.user.email},
            'total': self.total,
            'rank': self.rank,
            'tiebreaker': self.tiebreaker,
            'picks': dict(self.picks)
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'LeaderboardEntry':
        user = data.get('user') or {}
        return cls(
            entry_id=str(data['entry_id']),
            user=EntrantUser(name=user.get('name'), email=user.get('email')),
            total=data.get('total'),
            rank=data.get('rank'),
            tiebreaker=data.get('tiebreaker'),
            picks=_frozen_mapping(data.get('picks'))
        )


@dataclass(frozen=True)
class LeaderboardSnapshot:
    """Full entry set returned by one leaderboard fetch."""

    tournament_id: str
    entries: Tuple[LeaderboardEntry, ...] = ()
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            'tournament_id': self.tournament_id,
            'entries': [entry.to_dict() for entry in self.entries],
            'updated_at': self.updated_at.isoformat() if self.updated_at else None
        }

    @classmethod
    def from_dict(cls, tournament_id: str, data: dict) -> 'LeaderboardSnapshot':
        """
        Build from the upstream payload.

        Accepts ``{"ok": true, "leaderboard": [...], "updated_at": ...}`` and the
        ``entries`` alias used by older backends.
        """
        raw_entries = data.get('leaderboard')
        if raw_entries is None:
            raw_entries = data.get('entries') or []
        return cls(
            tournament_id=str(tournament_id),
            entries=tuple(LeaderboardEntry.from_dict(e) for e in raw_entries),
            updated_at=_parse_timestamp(data.get('updated_at'))
        )


@dataclass
class LineupDraft:
    """In-progress tier -> player selection for one tournament."""

    tournament_id: str
    picks: Dict[str, str] = field(default_factory=dict)

    def to_record(self) -> dict:
        """Persisted form; the version field allows the format to evolve."""
        return {
            'version': config.DRAFT_RECORD_VERSION,
            'tournament_id': self.tournament_id,
            'picks': dict(self.picks)
        }

    @classmethod
    def from_record(cls, tournament_id: str, record: Any) -> 'LineupDraft':
        """
        Restore from a persisted record.

        Records written before versioning are a bare tier -> player mapping.

        Raises:
            ValueError: If the record is neither format
        """
        if not isinstance(record, dict):
            raise ValueError(f"Draft record must be an object, got {type(record).__name__}")

        if 'version' in record:
            version = record['version']
            if version != config.DRAFT_RECORD_VERSION:
                raise ValueError(f"Unsupported draft record version: {version}")
            picks = record.get('picks') or {}
        else:
            picks = record

        return cls(
            tournament_id=str(tournament_id),
            picks={str(tier): str(player_id) for tier, player_id in picks.items()}
        )
