"""
Pytest configuration and shared fixtures for LumberTier tests.

Provides a manual clock for cache expiry, a fake interval-timer factory that
advances simulated time, a temporary local store and canned upstream payloads.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Optional

import pytest

from lumbertier.contest.local_store import LocalStore
from lumbertier.contest.models import LeaderboardSnapshot, TournamentResearchSnapshot
from lumbertier.errors import NotFoundError


class ManualClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeTimer:
    """IntervalTimer stand-in driven by FakeTimerFactory.advance()."""

    def __init__(self, interval: float, callback: Callable[[], None]):
        self.interval = interval
        self.callback = callback
        self.remaining = interval
        self.started = False
        self.cancelled = False

    @property
    def active(self) -> bool:
        return self.started and not self.cancelled

    def start(self) -> None:
        self.started = True
        self.remaining = self.interval

    def cancel(self) -> None:
        self.cancelled = True


class FakeTimerFactory:
    """Creates FakeTimers and advances simulated time across all of them."""

    def __init__(self):
        self.timers: List[FakeTimer] = []

    def __call__(self, interval: float, callback: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(interval, callback)
        self.timers.append(timer)
        return timer

    @property
    def active_timers(self) -> List[FakeTimer]:
        return [t for t in self.timers if t.active]

    def advance(self, seconds: float, step: float = 1.0) -> None:
        elapsed = 0.0
        while elapsed < seconds:
            tick = min(step, seconds - elapsed)
            elapsed += tick
            for timer in list(self.active_timers):
                timer.remaining -= tick
                if timer.remaining <= 0:
                    timer.remaining += timer.interval
                    timer.callback()


class FakeUpstream:
    """In-memory upstream client recording every call."""

    def __init__(
        self,
        research: Optional[Dict[str, dict]] = None,
        leaderboards: Optional[Dict[str, dict]] = None
    ):
        self.research = research or {}
        self.leaderboards = leaderboards or {}
        self.tournaments: Dict[str, dict] = {}
        self.players: Dict[str, dict] = {}
        self.calls: List[tuple] = []
        self.submissions: List[tuple] = []
        self.fail_with: Optional[Exception] = None
        self.submit_error: Optional[Exception] = None

    def _maybe_fail(self):
        if self.fail_with is not None:
            raise self.fail_with

    def fetch_tournaments(self):
        self.calls.append(('tournaments',))
        self._maybe_fail()
        return list(self.tournaments.values())

    def fetch_tournament(self, tournament_id):
        self.calls.append(('tournament', tournament_id))
        self._maybe_fail()
        if tournament_id not in self.tournaments:
            raise NotFoundError(f"Not found: /api/tournament/{tournament_id}")
        return self.tournaments[tournament_id]

    def fetch_research(self, tournament_id):
        self.calls.append(('research', tournament_id))
        self._maybe_fail()
        if tournament_id not in self.research:
            raise NotFoundError(f"Not found: /api/tournament/{tournament_id}/research")
        return TournamentResearchSnapshot.from_dict(tournament_id, self.research[tournament_id])

    def fetch_player(self, player_id):
        self.calls.append(('player', player_id))
        self._maybe_fail()
        if player_id not in self.players:
            raise NotFoundError(f"Not found: /api/player/{player_id}")
        return self.players[player_id]

    def search_players(self, query, limit=20):
        self.calls.append(('search', query, limit))
        self._maybe_fail()
        return [p for p in self.players.values() if query in p['name'].lower()][:limit]

    def fetch_leaderboard(self, tournament_id):
        self.calls.append(('leaderboard', tournament_id))
        self._maybe_fail()
        return LeaderboardSnapshot.from_dict(tournament_id, self.leaderboards[tournament_id])

    def submit_lineup(self, tournament_id, picks, credential=None):
        self.submissions.append((tournament_id, dict(picks), credential))
        if self.submit_error is not None:
            raise self.submit_error
        return {'ok': True, 'entry_id': 'e-new'}

    def close(self):
        pass


RESEARCH_PAYLOAD = {
    'meta': {'name': 'Demo Open', 'tour': 'PGA'},
    'field_strength': {'metric': 72, 'method': 'rank-based-v1'},
    'player_form': [
        {'player_id': 'p1', 'name': 'Scottie Scheffler', 'tier': 'A', 'last8_avg': 33.4,
         'last4_trend': 0.7, 'cuts_made': 7, 'top10s': 3, 'top25s': 6},
        {'player_id': 'p2', 'name': 'Rory McIlroy', 'tier': 'a', 'last8_avg': 35.1,
         'last4_trend': 1.2, 'cuts_made': 8, 'top10s': 5, 'top25s': 7},
        {'player_id': 'p3', 'name': 'Tommy Fleetwood', 'tier': 'B', 'last8_avg': 31.9,
         'last4_trend': -0.2, 'cuts_made': 6, 'top10s': 2, 'top25s': 4},
        {'player_id': 'p4', 'name': 'Sungjae Im', 'tier': 'C', 'last8_avg': None,
         'last4_trend': None, 'cuts_made': 5, 'top10s': 1, 'top25s': 3},
        {'player_id': 'p5', 'name': 'Min Woo Lee', 'tier': 'C', 'last8_avg': 29.0,
         'last4_trend': 0.1, 'cuts_made': 5, 'top10s': 0, 'top25s': 2},
    ],
}

LEADERBOARD_PAYLOAD = {
    'ok': True,
    'leaderboard': [
        {'entry_id': 'e1', 'user': {'name': 'Alice', 'email': 'alice@example.com'},
         'total': -12, 'rank': 2, 'tiebreaker': 68, 'picks': {'B': 'p3', 'A': 'p1'}},
        {'entry_id': 'e2', 'user': {'email': 'bob@example.com'},
         'total': 0, 'rank': 1, 'tiebreaker': 70, 'picks': {'A': 'p2', 'C': 'p5'}},
        {'entry_id': 'e3', 'user': None,
         'total': None, 'rank': None, 'tiebreaker': None, 'picks': {}},
    ],
    'updated_at': '2025-10-12T20:15:00Z',
}


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def timer_factory() -> FakeTimerFactory:
    return FakeTimerFactory()


@pytest.fixture
def local_store(tmp_path) -> LocalStore:
    return LocalStore(tmp_path / 'local_state')


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream(
        research={'42': RESEARCH_PAYLOAD},
        leaderboards={'42': LEADERBOARD_PAYLOAD}
    )


@pytest.fixture
def research_snapshot() -> TournamentResearchSnapshot:
    return TournamentResearchSnapshot.from_dict('42', RESEARCH_PAYLOAD)
