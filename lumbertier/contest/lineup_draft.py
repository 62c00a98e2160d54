"""
Lineup draft state machine.

A LineupDraftMachine tracks one user's tier picks for one tournament:
- Every pick change is written to local storage before it takes effect
- A persisted draft is restored as soon as the machine is created
- Completeness is recomputed after every change (one pick per populated tier)
- Submission clears the draft on success and leaves it untouched on failure

States: EMPTY → DRAFTING → COMPLETE → SUBMITTING → SUBMITTED | SUBMIT_FAILED
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional

from .. import config
from ..errors import LumberTierError, ValidationError
from .local_store import LocalStore
from .models import LineupDraft, PlayerForm
from .research import group_by_tier

logger = logging.getLogger(__name__)


class DraftStatus(str, Enum):
    EMPTY = 'empty'
    DRAFTING = 'drafting'
    COMPLETE = 'complete'
    SUBMITTING = 'submitting'
    SUBMITTED = 'submitted'
    SUBMIT_FAILED = 'submit_failed'


@dataclass
class SubmissionOutcome:
    """Result of one submit() call."""

    ok: bool
    picks: Dict[str, str]
    response: Dict = field(default_factory=dict)
    error: Optional[str] = None
    status_code: Optional[int] = None


class DraftStore:
    """Persists one LineupDraft per tournament id in a LocalStore."""

    def __init__(self, local_store: LocalStore):
        self.local_store = local_store

    @staticmethod
    def key_for(tournament_id: str) -> str:
        return f"{config.DRAFT_KEY_PREFIX}{tournament_id}"

    def load(self, tournament_id: str) -> Optional[LineupDraft]:
        """
        Load the persisted draft for a tournament.

        Returns:
            LineupDraft, or None if there is none or it cannot be parsed
        """
        record = self.local_store.read(self.key_for(tournament_id))
        if record is None:
            return None
        try:
            return LineupDraft.from_record(tournament_id, record)
        except ValueError as e:
            logger.error(f"Ignoring unreadable draft for tournament {tournament_id}: {e}")
            return None

    def save(self, draft: LineupDraft) -> None:
        self.local_store.write(self.key_for(draft.tournament_id), draft.to_record())

    def delete(self, tournament_id: str) -> None:
        self.local_store.remove(self.key_for(tournament_id))


class SessionCredentialStore:
    """Bearer token held locally after sign-in."""

    def __init__(self, local_store: LocalStore):
        self.local_store = local_store

    def get(self) -> Optional[str]:
        token = self.local_store.read(config.SESSION_KEY)
        if token:
            return str(token)
        return config.SESSION_TOKEN

    def set(self, token: str) -> None:
        self.local_store.write(config.SESSION_KEY, token)

    def clear(self) -> None:
        self.local_store.remove(config.SESSION_KEY)


class LineupDraftMachine:
    """Selection, persistence and submission lifecycle of one lineup draft."""

    def __init__(
        self,
        tournament_id: str,
        store: DraftStore,
        submit_lineup: Callable[[str, Dict[str, str], Optional[str]], Dict],
        credential_provider: Optional[Callable[[], Optional[str]]] = None,
        player_form: Optional[Iterable[PlayerForm]] = None
    ):
        """
        Initialize the machine and restore any persisted draft.

        Args:
            tournament_id: Tournament the lineup is for
            store: Durable draft storage
            submit_lineup: Callable(tournament_id, picks, credential) -> response dict;
                raises SubmissionRejected / TransientFetchError on failure
            credential_provider: Returns the bearer token if one is held locally
            player_form: Tournament field; may be attached later with set_player_form()
        """
        self.tournament_id = str(tournament_id)
        self.store = store
        self._submit_lineup = submit_lineup
        self._credential_provider = credential_provider or (lambda: None)

        self._eligible: Dict[str, List[PlayerForm]] = {}
        self._picks: Dict[str, str] = {}
        self.status = DraftStatus.EMPTY
        self.last_error: Optional[str] = None

        # Restore before any player list is attached
        draft = self.store.load(self.tournament_id)
        if draft is not None:
            self._picks = dict(draft.picks)
            logger.info(
                f"Restored lineup draft for tournament {self.tournament_id}: {self._picks}"
            )

        if player_form is not None:
            self.set_player_form(player_form)
        else:
            self._recompute_status()

    # ----- field -----

    def set_player_form(self, player_form: Iterable[PlayerForm]) -> None:
        """
        Attach the tournament field; tiers with no players do not need a pick.

        Restored picks whose player is no longer in that tier are dropped.
        """
        self._eligible = group_by_tier(player_form)

        stale = {
            tier: player_id for tier, player_id in self._picks.items()
            if player_id not in {p.player_id for p in self._eligible.get(tier, [])}
        }
        if stale and self._eligible and self.status != DraftStatus.SUBMITTING:
            logger.warning(
                f"Dropping picks no longer in the field for tournament {self.tournament_id}: {stale}"
            )
            picks = {tier: pid for tier, pid in self._picks.items() if tier not in stale}
            if picks:
                self._persist(picks)
            else:
                self.store.delete(self.tournament_id)
                self._picks = {}
        self._recompute_status()

    @property
    def eligible_tiers(self) -> List[str]:
        return [tier for tier, players in self._eligible.items() if players]

    def players_in_tier(self, tier: str) -> List[PlayerForm]:
        return list(self._eligible.get(tier.upper(), []))

    # ----- picks -----

    @property
    def picks(self) -> Dict[str, str]:
        return dict(self._picks)

    def is_complete(self) -> bool:
        """Every tier with at least one eligible player has a pick."""
        tiers = self.eligible_tiers
        return bool(tiers) and all(self._picks.get(tier) for tier in tiers)

    def select(self, tier: str, player_id: str) -> DraftStatus:
        """
        Pick ``player_id`` for ``tier``, replacing any earlier pick in that tier.

        Raises:
            ValidationError: Draft is submitting/submitted, or the player is not
                in that tier of the field
        """
        self._ensure_editable()
        tier = tier.upper()
        player_id = str(player_id)

        if self._eligible:
            if player_id not in {p.player_id for p in self._eligible.get(tier, [])}:
                raise ValidationError(f"Player {player_id} is not eligible for tier {tier}")

        picks = dict(self._picks)
        picks[tier] = player_id
        self._persist(picks)

        logger.debug(f"Tournament {self.tournament_id}: picked {tier}:{player_id}")
        return self.status

    def unselect(self, tier: str) -> DraftStatus:
        self._ensure_editable()
        tier = tier.upper()
        if tier not in self._picks:
            return self.status

        picks = dict(self._picks)
        del picks[tier]
        if picks:
            self._persist(picks)
        else:
            self.store.delete(self.tournament_id)
            self._picks = {}
            self._recompute_status()
        return self.status

    def clear_draft(self) -> None:
        """Discard the draft (persisted and in memory) and return to EMPTY."""
        if self.status == DraftStatus.SUBMITTING:
            raise ValidationError("Cannot clear a draft while it is being submitted")

        self.store.delete(self.tournament_id)
        self._picks = {}
        self.last_error = None
        self.status = DraftStatus.EMPTY
        logger.info(f"Cleared lineup draft for tournament {self.tournament_id}")

    # ----- submission -----

    def submit(self) -> SubmissionOutcome:
        """
        Submit the complete lineup.

        Returns:
            SubmissionOutcome; on failure the draft is exactly as before the call

        Raises:
            ValidationError: Draft is not complete (no network call is made)
        """
        if self.status not in (DraftStatus.COMPLETE, DraftStatus.SUBMIT_FAILED) \
                or not self.is_complete():
            raise ValidationError(
                f"Lineup is not complete: need one pick for each of tiers "
                f"{self.eligible_tiers}, have {sorted(self._picks)}"
            )

        picks = dict(self._picks)
        self.status = DraftStatus.SUBMITTING
        self.last_error = None

        try:
            response = self._submit_lineup(self.tournament_id, picks, self._credential_provider())
        except LumberTierError as e:
            self.status = DraftStatus.SUBMIT_FAILED
            self.last_error = e.message
            logger.warning(f"Lineup submission failed for tournament {self.tournament_id}: {e}")
            return SubmissionOutcome(
                ok=False,
                picks=picks,
                error=e.message,
                status_code=e.status_code
            )
        except Exception as e:
            self.status = DraftStatus.SUBMIT_FAILED
            self.last_error = str(e)
            raise

        self.store.delete(self.tournament_id)
        self._picks = {}
        self.status = DraftStatus.SUBMITTED
        logger.info(f"Lineup submitted for tournament {self.tournament_id}: {picks}")

        return SubmissionOutcome(ok=True, picks=picks, response=response or {})

    # ----- internals -----

    def _ensure_editable(self) -> None:
        if self.status == DraftStatus.SUBMITTING:
            raise ValidationError("Draft is being submitted")
        if self.status == DraftStatus.SUBMITTED:
            raise ValidationError(
                f"Lineup for tournament {self.tournament_id} was already submitted"
            )

    def _persist(self, picks: Dict[str, str]) -> None:
        # Durable write first; in-memory state changes only after it succeeds
        self.store.save(LineupDraft(tournament_id=self.tournament_id, picks=picks))
        self._picks = picks
        self._recompute_status()

    def _recompute_status(self) -> None:
        if self.status in (DraftStatus.SUBMITTING, DraftStatus.SUBMITTED):
            return
        if not self._picks:
            self.status = DraftStatus.EMPTY
        elif self.is_complete():
            self.status = DraftStatus.COMPLETE
        else:
            self.status = DraftStatus.DRAFTING
