"""
Result entry and bracket state for team brackets.

Every function here returns new data; the match list passed in is never
modified. A snapshot is always recomputed from the full match list.
"""
import logging
from datetime import datetime
from typing import Dict, List, Optional

from .elimination import advance_into
from .errors import InvalidResultError
from .models import occupants

logger = logging.getLogger(__name__)

FINISHED_STATUSES = ('completed', 'bye')


def _find_index(matches: List[Dict], match_id: str) -> int:
    for index, match in enumerate(matches):
        if match['id'] == match_id:
            return index
    return -1


def update_match_result(matches: List[Dict], match_id: str, winner: str, score: str,
                        completed_at: Optional[str] = None) -> List[Dict]:
    """
    Record a result and move the winner into the match it feeds.

    Returns the input list itself when `match_id` is unknown, so callers can
    detect "nothing happened" with an identity check. Submitting the same
    result twice changes nothing further; submitting a different winner
    swaps the advanced competitor as long as the next match is unplayed.

    Raises InvalidResultError for a match still waiting for an opponent or
    a winner who is not playing in it. Changing the winner once the fed
    match has been played is rejected the same way.
    """
    index = _find_index(matches, match_id)
    if index == -1:
        logger.debug("update_match_result: no match %s", match_id)
        return matches

    match = matches[index]
    if len(occupants(match)) < 2:
        raise InvalidResultError(f"Match {match_id} is not playable yet")
    if winner not in occupants(match):
        raise InvalidResultError(f"{winner} is not playing in match {match_id}")

    previous_winner = match['winner']
    next_id = match.get('next_match_id')
    next_index = _find_index(matches, next_id) if next_id else -1
    if (previous_winner is not None and previous_winner != winner and next_index != -1
            and matches[next_index]['status'] == 'completed'):
        raise InvalidResultError(f"Match {next_id} is already played; {match_id} can no longer change winner")

    updated_matches = list(matches)
    updated_matches[index] = dict(
        match,
        competitors=list(match['competitors']),
        winner=winner,
        score=score,
        status='completed',
        completed_at=completed_at or datetime.now().isoformat(),
    )

    if next_index != -1:
        next_match = dict(updated_matches[next_index], competitors=list(updated_matches[next_index]['competitors']))
        if winner in next_match['competitors']:
            pass
        elif (previous_winner is not None and previous_winner in next_match['competitors']
              and next_match['status'] != 'completed'):
            position = next_match['competitors'].index(previous_winner)
            next_match['competitors'][position] = winner
            logger.info("Match %s winner corrected: %s replaces %s in %s", match_id, winner, previous_winner, next_id)
        elif not advance_into(next_match, winner):
            logger.warning("Match %s is full; %s not advanced", next_id, winner)
        updated_matches[next_index] = next_match

    return updated_matches


def get_round_matches(matches: List[Dict], round_number: int) -> List[Dict]:
    """Matches of one round, ordered by match number."""
    return sorted((m for m in matches if m['round'] == round_number), key=lambda m: m['match_number'])


def get_competitor_path(matches: List[Dict], competitor_id: str) -> List[Dict]:
    """Completed matches a competitor has played, in round order."""
    played = [
        m for m in matches
        if competitor_id in m['competitors'] and m['status'] == 'completed'
    ]
    return sorted(played, key=lambda m: m['round'])


def get_bracket_summary(matches: List[Dict]) -> Dict:
    """
    Snapshot of bracket state derived from the match list.

    current_round is the lowest round still holding an unfinished match, or
    rounds + 1 once everything is complete. The winner is reported only for
    a complete bracket whose last round is a single match.
    """
    if not matches:
        return {
            'rounds': 0,
            'matches_by_round': {},
            'total_matches': 0,
            'completed_matches': 0,
            'current_round': None,
            'is_complete': False,
            'winner': None,
        }

    rounds = max(m['round'] for m in matches)
    matches_by_round = {r: get_round_matches(matches, r) for r in range(1, rounds + 1)}
    total_matches = len(matches)
    completed_matches = sum(1 for m in matches if m['status'] in FINISHED_STATUSES)
    is_complete = completed_matches == total_matches

    if is_complete:
        current_round = rounds + 1
    else:
        current_round = min(m['round'] for m in matches if m['status'] not in FINISHED_STATUSES)

    winner = None
    final_round = matches_by_round.get(rounds, [])
    if is_complete and len(final_round) == 1:
        winner = final_round[0]['winner']

    return {
        'rounds': rounds,
        'matches_by_round': matches_by_round,
        'total_matches': total_matches,
        'completed_matches': completed_matches,
        'current_round': current_round,
        'is_complete': is_complete,
        'winner': winner,
    }
