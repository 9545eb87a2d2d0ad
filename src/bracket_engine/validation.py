"""
Advisory checks for player-pool brackets.

Warnings are plain data. Nothing here blocks an assignment; deciding whether
an 'error' warning needs confirmation is up to the caller.
"""
from typing import Dict, List, Optional, Tuple

# Maximum distance (in UTR points) from the pool/round average before a
# placement is flagged. Fixed, not configurable.
RATING_IMBALANCE_THRESHOLD = 3

SAME_SCHOOL_ROUND1 = 'same_school_round1'
UTR_IMBALANCE = 'utr_imbalance'


def make_warning(warning_type: str, message: str, slot_ids: List[str], severity: str) -> Dict:
    return {
        'type': warning_type,
        'message': message,
        'slot_ids': slot_ids,
        'severity': severity,
    }


def _round_one_match_for_slot(slot: Dict, all_matches: List[Dict]) -> Optional[Dict]:
    for match in all_matches:
        if match['round'] != 1 or match['pool_side'] != slot['pool_side']:
            continue
        if slot['id'] in match.get('slot_ids', []):
            return match
    return None


def validate_slot_change(slot: Dict, candidate, all_slots: List[Dict], all_matches: List[Dict],
                         round_number: int) -> List[Dict]:
    """
    Check what would happen if `candidate` were placed in `slot`.

    Round 1 placements against an opponent from the same school produce an
    'error' warning. A candidate rated more than RATING_IMBALANCE_THRESHOLD
    away from the average of the other occupied slots in that pool and round
    produces a 'warning'. Unrated candidates skip the rating check.
    """
    warnings = []

    if round_number == 1:
        match = _round_one_match_for_slot(slot, all_matches)
        if match is not None:
            other = 1 - match['slot_ids'].index(slot['id'])
            opponent_id = match['competitors'][other]
            opponent_school = match['schools'][other]
            if opponent_id is not None and opponent_id != candidate.id and opponent_school == candidate.school:
                warnings.append(make_warning(
                    SAME_SCHOOL_ROUND1,
                    f"Warning: Same school match in round 1 ({candidate.school})",
                    [slot['id']],
                    'error',
                ))

    ratings = [
        s['rating'] for s in all_slots
        if s['id'] != slot['id'] and s['pool_side'] == slot['pool_side'] and s['round'] == round_number
        and s['player_id'] is not None and s['rating'] is not None
    ]
    if ratings and candidate.rating is not None:
        average = sum(ratings) / len(ratings)
        if abs(candidate.rating - average) > RATING_IMBALANCE_THRESHOLD:
            warnings.append(make_warning(
                UTR_IMBALANCE,
                f"Warning: Significant UTR difference ({candidate.rating:.1f} vs pool avg {average:.1f})",
                [slot['id']],
                'warning',
            ))

    return warnings


def find_same_school_pairings(matches: List[Dict]) -> List[Dict]:
    """Warnings for every round 1 match whose two players share a school."""
    warnings = []
    for match in matches:
        if match['round'] != 1 or match['status'] == 'bye':
            continue
        first, second = match.get('schools', [None, None])
        if first is not None and first == second:
            warnings.append(make_warning(
                SAME_SCHOOL_ROUND1,
                f"Warning: Same school match in round 1 ({first})",
                list(match.get('slot_ids', [])),
                'error',
            ))
    return warnings


def find_slot_conflicts(slots: List[Dict]) -> List[Tuple[int, str]]:
    """(round, player_id) for every player placed in more than one slot of a round."""
    seen = set()
    conflicts = set()
    for slot in slots:
        if slot['player_id'] is None:
            continue
        key = (slot['round'], slot['player_id'])
        if key in seen:
            conflicts.add(key)
        seen.add(key)
    return sorted(conflicts)
