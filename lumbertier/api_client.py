"""
HTTP client for the upstream LumberTier API.

Integrates with endpoints:
- /api/tournaments: tournament listing
- /api/tournament/{id} and /api/tournament/{id}/research: event metadata and player form
- /api/player/{id} and /api/player/search: player profiles
- /api/leaderboard/{id}: fantasy leaderboard entries
- /api/lineup/submit: lineup submission
"""

import logging
import time
from typing import Any, Dict, List, Optional

import requests

from . import config
from .contest.models import LeaderboardSnapshot, TournamentResearchSnapshot
from .errors import NotFoundError, SubmissionRejected, TransientFetchError

logger = logging.getLogger(__name__)


class LtgApiClient:
    """Client for reading tournament data and submitting lineups."""

    def __init__(
        self,
        base_url: str = config.API_BASE_URL,
        timeout: float = config.REQUEST_TIMEOUT,
        max_retries: int = config.MAX_RETRIES,
        backoff_seconds: float = config.RETRY_BACKOFF_SECONDS,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize the client.

        Args:
            base_url: Backend root URL (without trailing slash)
            timeout: Request timeout in seconds
            max_retries: Attempts per GET request
            backoff_seconds: First retry delay, doubled on each further attempt
            session: Optional pre-configured session (connection pooling)
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.backoff_seconds = backoff_seconds
        self.session = session or requests.Session()

    def fetch_tournaments(self) -> List[Dict]:
        """
        All listed tournaments.

        The backend answers with either a bare list or ``{"tournaments": [...]}``.
        """
        data = self._get_json("/api/tournaments")
        if isinstance(data, dict):
            data = data.get('tournaments')
        if not isinstance(data, list):
            raise TransientFetchError(
                f"Unexpected tournament list payload: {type(data).__name__}"
            )
        logger.debug(f"Fetched {len(data)} tournaments")
        return data

    def fetch_tournament(self, tournament_id: str) -> Dict:
        """Tournament metadata (name, tour, course, dates, status)."""
        return self._get_json(f"/api/tournament/{tournament_id}")

    def fetch_research(self, tournament_id: str) -> TournamentResearchSnapshot:
        """Field strength and player form for a tournament."""
        data = self._get_json(f"/api/tournament/{tournament_id}/research")
        snapshot = TournamentResearchSnapshot.from_dict(tournament_id, data)
        logger.debug(
            f"Fetched research for tournament {tournament_id}: "
            f"{len(snapshot.player_form)} players"
        )
        return snapshot

    def fetch_player(self, player_id: str) -> Dict:
        """Player profile (name, country, hand, world rank)."""
        return self._get_json(f"/api/player/{player_id}")

    def search_players(self, query: str, limit: int = config.SEARCH_DEFAULT_LIMIT) -> List[Dict]:
        """Players whose name matches ``query``, best world rank first."""
        data = self._get_json("/api/player/search", params={'q': query, 'limit': limit})
        if not isinstance(data, list):
            raise TransientFetchError(
                f"Unexpected player search payload: {type(data).__name__}"
            )
        return data

    def fetch_leaderboard(self, tournament_id: str) -> LeaderboardSnapshot:
        """Current leaderboard entries and their last-updated timestamp."""
        data = self._get_json(f"/api/leaderboard/{tournament_id}")
        snapshot = LeaderboardSnapshot.from_dict(tournament_id, data)
        logger.debug(
            f"Fetched leaderboard for tournament {tournament_id}: "
            f"{len(snapshot.entries)} entries"
        )
        return snapshot

    def submit_lineup(
        self,
        tournament_id: str,
        picks: Dict[str, str],
        credential: Optional[str] = None
    ) -> Dict:
        """
        Submit a complete lineup.

        Not retried: a retry is the caller's decision.

        Args:
            tournament_id: Tournament the lineup is for
            picks: Mapping of tier label -> player_id
            credential: Optional bearer token

        Returns:
            Parsed response body ({} when the body is not JSON)

        Raises:
            SubmissionRejected: Backend answered with a non-success status
            TransientFetchError: Transport failure
        """
        url = f"{self.base_url}/api/lineup/submit"
        headers = {'Content-Type': 'application/json'}
        if credential:
            headers['Authorization'] = f'Bearer {credential}'

        payload = {'tournament_id': tournament_id, 'picks': dict(picks)}

        try:
            response = self.session.post(
                url,
                json=payload,
                headers=headers,
                timeout=self.timeout
            )
        except requests.RequestException as e:
            logger.error(f"Lineup submission failed for tournament {tournament_id}: {e}")
            raise TransientFetchError(f"Submit failed: {e}") from e

        if not response.ok:
            text = (response.text or '').strip()
            message = text or f"Submit failed ({response.status_code})"
            logger.warning(
                f"Lineup submission rejected for tournament {tournament_id}: "
                f"{response.status_code} {message}"
            )
            raise SubmissionRejected(message, status_code=response.status_code)

        logger.info(f"Submitted lineup for tournament {tournament_id}: {payload['picks']}")

        try:
            return response.json()
        except ValueError:
            return {}

    def _get_json(self, path: str, params: Optional[Dict] = None) -> Any:
        """
        GET a JSON resource with retries.

        Args:
            path: Path below base_url
            params: Query parameters

        Returns:
            Parsed JSON body

        Raises:
            NotFoundError: 404 or an empty (null) body; never retried
            TransientFetchError: After all retries are exhausted
        """
        url = f"{self.base_url}{path}"

        for attempt in range(1, self.max_retries + 1):
            try:
                logger.debug(f"GET {url} (attempt {attempt}/{self.max_retries})")
                response = self.session.get(url, params=params, timeout=self.timeout)

                if response.status_code == 404:
                    raise NotFoundError(f"Not found: {path}")

                response.raise_for_status()
                data = response.json()

                if data is None:
                    raise NotFoundError(f"Not found: {path}")
                return data

            except NotFoundError:
                raise

            except (requests.RequestException, ValueError) as e:
                logger.warning(f"Request failed (attempt {attempt}/{self.max_retries}): {e}")
                if attempt == self.max_retries:
                    raise TransientFetchError(f"GET {path} failed: {e}") from e
                time.sleep(self.backoff_seconds * 2 ** (attempt - 1))

    def close(self) -> None:
        """Close the HTTP session."""
        self.session.close()
