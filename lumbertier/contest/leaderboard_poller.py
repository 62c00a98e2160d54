"""
Live leaderboard refresh.

The LeaderboardPoller keeps the last successfully fetched leaderboard and
re-fetches it on a fixed interval:
- Every successful fetch replaces the whole entry set (no diffing)
- A failed fetch keeps the last good entries and raises an error flag
- pause() cancels the timer; resume() starts a fresh countdown
- refresh_now() fetches immediately without touching the timer
"""

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterator, List, Optional

from .. import config
from .interval_timer import IntervalTimer
from .leaderboard import sort_entries
from .models import LeaderboardEntry, LeaderboardSnapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LeaderboardView:
    """What a caller renders: sorted entries plus freshness indicators."""

    entries: List[LeaderboardEntry]
    updated_at: Optional[datetime]
    error: Optional[str]
    polling: bool
    loaded: bool = False  # at least one fetch ever succeeded

    @property
    def has_data(self) -> bool:
        return self.loaded

    @property
    def is_stale(self) -> bool:
        """Showing last known good data after a failed refresh."""
        return self.error is not None and self.has_data


class LeaderboardPoller:
    """Polls one tournament's leaderboard and serves sorted views of it."""

    def __init__(
        self,
        tournament_id: str,
        fetch_leaderboard: Callable[[str], LeaderboardSnapshot],
        interval: float = config.LEADERBOARD_POLL_INTERVAL,
        timer_factory: Callable[[float, Callable[[], None]], IntervalTimer] = IntervalTimer,
        on_update: Optional[Callable[[LeaderboardSnapshot], None]] = None
    ):
        """
        Initialize the poller (no fetch, no timer yet).

        Args:
            tournament_id: Tournament to follow
            fetch_leaderboard: Callable returning a LeaderboardSnapshot for an id
            interval: Seconds between automatic refreshes
            timer_factory: Builds a startable/cancellable repeating timer
            on_update: Optional callback after every successful refresh
        """
        self.tournament_id = tournament_id
        self.interval = interval
        self._fetch = fetch_leaderboard
        self._timer_factory = timer_factory
        self._on_update = on_update

        self._lock = threading.Lock()
        self._snapshot: Optional[LeaderboardSnapshot] = None
        self._error: Optional[str] = None
        self._timer = None

        # Counters for status reporting
        self.refresh_count = 0
        self.failure_count = 0

    # ----- refresh -----

    def refresh_now(self) -> bool:
        """
        Fetch the leaderboard immediately.

        Never raises: a failure is recorded in ``error`` and the previous
        entries stay in place. Errors from ``on_update`` are logged only.

        Returns:
            True if the fetch succeeded
        """
        try:
            snapshot = self._fetch(self.tournament_id)
        except Exception as e:
            with self._lock:
                self._error = str(e) or type(e).__name__
                self.failure_count += 1
            logger.error(f"Leaderboard refresh failed for tournament {self.tournament_id}: {e}")
            return False

        with self._lock:
            self._snapshot = snapshot
            self._error = None
            self.refresh_count += 1

        logger.debug(
            f"Refreshed leaderboard {self.tournament_id}: {len(snapshot.entries)} entries"
        )

        if self._on_update:
            try:
                self._on_update(snapshot)
            except Exception:
                logger.exception(
                    f"Leaderboard update callback failed for tournament {self.tournament_id}"
                )
        return True

    def _on_tick(self) -> None:
        self.refresh_now()

    # ----- timer control -----

    @property
    def is_polling(self) -> bool:
        with self._lock:
            return self._timer is not None

    def pause(self) -> None:
        """Stop automatic refreshes; no tick fires after this returns."""
        with self._lock:
            timer, self._timer = self._timer, None
        if timer is not None:
            timer.cancel()
            logger.info(f"Paused leaderboard polling for tournament {self.tournament_id}")

    def resume(self) -> None:
        """Start automatic refreshes with a full interval before the first tick."""
        timer = self._timer_factory(self.interval, self._on_tick)
        # Single swap: concurrent resume() calls each cancel whatever they displaced
        with self._lock:
            previous, self._timer = self._timer, timer
        if previous is not None:
            previous.cancel()
        timer.start()
        logger.info(
            f"Polling leaderboard for tournament {self.tournament_id} "
            f"every {self.interval}s"
        )

    def start(self) -> bool:
        """Initial fetch followed by automatic refreshes."""
        ok = self.refresh_now()
        self.resume()
        return ok

    def close(self) -> None:
        self.pause()

    @contextmanager
    def polling(self) -> Iterator['LeaderboardPoller']:
        """Resume for the duration of the block; the timer is cancelled on every exit path."""
        self.resume()
        try:
            yield self
        finally:
            self.pause()

    def __enter__(self) -> 'LeaderboardPoller':
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ----- read API -----

    @property
    def snapshot(self) -> Optional[LeaderboardSnapshot]:
        with self._lock:
            return self._snapshot

    @property
    def error(self) -> Optional[str]:
        with self._lock:
            return self._error

    def view(self, sort_key: str = 'rank', direction: str = 'asc') -> LeaderboardView:
        """
        Current sorted entries plus last-updated timestamp and error flag.

        Raises:
            ValidationError: Unknown sort key or direction
        """
        with self._lock:
            snapshot, error, polling = self._snapshot, self._error, self._timer is not None

        entries = list(snapshot.entries) if snapshot else []
        return LeaderboardView(
            entries=sort_entries(entries, sort_key, direction),
            updated_at=snapshot.updated_at if snapshot else None,
            error=error,
            polling=polling,
            loaded=snapshot is not None
        )
