"""
Match a typed player name to a player in the tournament field.
"""

import logging
from typing import Optional, Sequence

from fuzzywuzzy import fuzz, process

from .. import config
from .models import PlayerForm

logger = logging.getLogger(__name__)


def match_player(
    query: str,
    candidates: Sequence[PlayerForm],
    threshold: int = config.PLAYER_MATCH_THRESHOLD
) -> Optional[PlayerForm]:
    """
    Find the player a user meant.

    Tries, in order: exact player_id, case-insensitive exact name, then fuzzy
    name match (token_sort_ratio, robust to "Last First" ordering).

    Args:
        query: Player id or (approximate) name
        candidates: Players to choose from, e.g. one tier of the field
        threshold: Minimum fuzzy score (0-100) to accept

    Returns:
        Matched PlayerForm or None if nothing is confident enough
    """
    query = query.strip()
    if not query or not candidates:
        return None

    for player in candidates:
        if player.player_id == query:
            return player

    lowered = query.lower()
    for player in candidates:
        if player.name.lower() == lowered:
            return player

    names = [player.name for player in candidates]
    match_result = process.extractOne(query, names, scorer=fuzz.token_sort_ratio)

    if match_result is None:
        logger.warning(f"No fuzzy match found for: {query}")
        return None

    matched_name, score = match_result[0], match_result[1]

    if score < threshold:
        logger.warning(f"Low confidence match for '{query}' → '{matched_name}' ({score}%)")
        return None

    player = candidates[names.index(matched_name)]
    logger.debug(f"Matched: '{query}' → '{matched_name}' (ID: {player.player_id}, {score}%)")
    return player
