"""
Two-pool brackets for individual player tournaments.

Players are grouped by school, schools are dealt alternately into pool A and
pool B (strongest school first) and each pool runs its own knockout. Round 1
is drawn at random inside each pool; later rounds are filled slot by slot as
winners come in, and a match is opened as soon as both of its slots are
occupied.

Bracket layout::

    {
        'tournament_id': ...,
        'pool_a': {'rounds': [{'round': 1, 'slots': [...], 'matches': [...]}, ...]},
        'pool_b': {'rounds': [...]},
        'is_locked': False,
        'total_players': n,
    }
"""
import copy
import logging
import math
import random
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from .errors import BracketError, BracketLockedError, InvalidResultError, SlotConflictError
from .models import POOL_SIDES, new_match, new_slot, occupants
from .seeding import check_unique_ids
from .validation import find_slot_conflicts

logger = logging.getLogger(__name__)

FINISHED_STATUSES = ('completed', 'bye')


def _is_rated(player) -> bool:
    rating = player.rating
    if rating is None or isinstance(rating, bool) or not isinstance(rating, (int, float)):
        return False
    return not math.isnan(rating)


def _average_rating(players: List) -> float:
    ratings = [p.rating for p in players if _is_rated(p)]
    if not ratings:
        return 0.0
    return sum(ratings) / len(ratings)


def calculate_school_average_rating(players: List, school: str) -> float:
    """Average rating of a school's rated players (0.0 when none are rated)."""
    return _average_rating([p for p in players if p.school == school])


def group_by_school(players: List) -> List[Dict]:
    """
    Group players by school, in order of first appearance.

    Unrated players stay in their school's group but do not count towards
    its average rating.
    """
    schools = {}
    for player in players:
        schools.setdefault(player.school, []).append(player)

    return [
        {
            'school': school,
            'players': school_players,
            'average_rating': _average_rating(school_players),
            'total_players': len(school_players),
        }
        for school, school_players in schools.items()
    ]


def sort_schools_by_rating(school_groups: List[Dict], descending: bool = True) -> List[Dict]:
    return sorted(school_groups, key=lambda group: group['average_rating'], reverse=descending)


def build_two_pools(school_groups: List[Dict]) -> Dict:
    """
    Deal schools alternately into pool A and pool B, strongest first.

    Schools are never split here, so strong and weak schools interleave
    across the two halves. This is a heuristic, not an optimal balance.
    """
    pool_a, pool_b = [], []
    pool_a_schools, pool_b_schools = [], []

    for index, group in enumerate(sort_schools_by_rating(school_groups)):
        if index % 2 == 0:
            pool_a.extend(group['players'])
            pool_a_schools.append(group['school'])
        else:
            pool_b.extend(group['players'])
            pool_b_schools.append(group['school'])

    return {
        'pool_a': pool_a,
        'pool_b': pool_b,
        'pool_a_schools': pool_a_schools,
        'pool_b_schools': pool_b_schools,
    }


def resolve_same_school_conflicts(pool_a: List, pool_b: List, pool_a_schools: List[str],
                                  pool_b_schools: List[str]) -> Tuple[List, List]:
    """
    Move players between pools for schools that appear in both.

    For each such school, when one pool holds strictly more of its players
    (and more than one), one of them moves to the other pool. One pass only.
    """
    conflict_schools = [school for school in pool_a_schools if school in pool_b_schools]
    if not conflict_schools:
        return pool_a, pool_b

    new_pool_a = list(pool_a)
    new_pool_b = list(pool_b)

    for school in conflict_schools:
        a_players = [p for p in new_pool_a if p.school == school]
        b_players = [p for p in new_pool_b if p.school == school]
        if not a_players or not b_players:
            continue
        if len(a_players) > len(b_players) and len(a_players) > 1:
            new_pool_a.remove(a_players[0])
            new_pool_b.append(a_players[0])
            logger.debug("Moved %s (%s) from pool A to pool B", a_players[0].id, school)
        elif len(b_players) > len(a_players) and len(b_players) > 1:
            new_pool_b.remove(b_players[0])
            new_pool_a.append(b_players[0])
            logger.debug("Moved %s (%s) from pool B to pool A", b_players[0].id, school)

    return new_pool_a, new_pool_b


def shuffle_pool(pool: List, rng: Optional[random.Random] = None) -> List:
    """Fisher-Yates shuffle of a copy of `pool`. Pass a seeded rng for repeatable draws."""
    shuffled = list(pool)
    rng = rng if rng is not None else random.Random()
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randrange(i + 1)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def _pool_key(pool_side: str) -> str:
    if pool_side not in POOL_SIDES:
        raise BracketError(f"Unknown pool side: {pool_side}")
    return 'pool_a' if pool_side == 'A' else 'pool_b'


def slot_id_for(tournament_id: str, pool_side: str, round_number: int, slot_number: int) -> str:
    return f"{tournament_id}-slot-{pool_side}-{round_number}-{slot_number}"


def _new_pool_match(tournament_id: str, pool_side: str, round_number: int, match_number: int,
                    slots: List[Dict]) -> Dict:
    match = new_match(
        f"{tournament_id}-match-{pool_side}-{round_number}-{match_number}",
        round_number,
        match_number,
        [s['player_id'] for s in slots],
        pool_side=pool_side,
    )
    match['slot_ids'] = [s['id'] for s in slots] + [None] * (2 - len(slots))
    match['schools'] = [s['school'] for s in slots] + [None] * (2 - len(slots))
    match['same_school'] = False
    if len(slots) == 1:
        match['status'] = 'bye'
        match['is_bye'] = True
        match['winner'] = slots[0]['player_id']
    return match


def pair_players_for_round_one(pool: List, pool_side: str, tournament_id: str,
                               avoid_same_school: bool = True,
                               rng: Optional[random.Random] = None) -> Tuple[List[Dict], List[Dict]]:
    """
    Draw round 1 of one pool: shuffle, then pair neighbours.

    A leftover player gets a bye. Same-school pairs are still created as
    pending matches; with avoid_same_school they are marked `same_school`
    so the caller can warn about them.
    """
    shuffled = shuffle_pool(pool, rng)
    matches = []
    slots = []

    for i in range(0, len(shuffled), 2):
        match_number = i // 2 + 1
        pair = [
            new_slot(slot_id_for(tournament_id, pool_side, 1, i + offset + 1), 1, i + offset + 1, pool_side, player)
            for offset, player in enumerate(shuffled[i:i + 2])
        ]
        slots.extend(pair)
        match = _new_pool_match(tournament_id, pool_side, 1, match_number, pair)
        if len(pair) == 2 and avoid_same_school and pair[0]['school'] == pair[1]['school']:
            match['same_school'] = True
        matches.append(match)

    return matches, slots


def create_empty_round_slots(tournament_id: str, round_number: int, pool_side: str, count: int) -> List[Dict]:
    return [
        new_slot(slot_id_for(tournament_id, pool_side, round_number, i), round_number, i, pool_side)
        for i in range(1, count + 1)
    ]


def _rounds_needed(largest_pool: int) -> int:
    if largest_pool <= 1:
        return 1
    return math.ceil(math.log2(largest_pool))


def _find_round(pool: Dict, round_number: int) -> Optional[Dict]:
    for round_data in pool['rounds']:
        if round_data['round'] == round_number:
            return round_data
    return None


def _open_match(pool: Dict, tournament_id: str, pool_side: str, round_number: int, slot: Dict) -> None:
    """Create the match for `slot` once its partner slot is filled (or give it a bye)."""
    round_data = _find_round(pool, round_number)
    slot_number = slot['slot_number']
    partner_number = slot_number + 1 if slot_number % 2 == 1 else slot_number - 1
    partner = next((s for s in round_data['slots'] if s['slot_number'] == partner_number), None)
    match_number = (slot_number + 1) // 2

    if any(m['match_number'] == match_number for m in round_data['matches']):
        return

    if partner is None:
        if _find_round(pool, round_number + 1) is None:
            # Last round with a single slot: it holds the pool champion.
            return
        bye = _new_pool_match(tournament_id, pool_side, round_number, match_number, [slot])
        round_data['matches'].append(bye)
        _place_winner(pool, tournament_id, pool_side, round_number, slot)
    elif partner['player_id'] is not None:
        pair = sorted([slot, partner], key=lambda s: s['slot_number'])
        round_data['matches'].append(_new_pool_match(tournament_id, pool_side, round_number, match_number, pair))


def _place_winner(pool: Dict, tournament_id: str, pool_side: str, round_number: int, entrant: Dict) -> bool:
    """Put `entrant` into the first empty slot of the next round of the same pool."""
    next_round = _find_round(pool, round_number + 1)
    if next_round is None:
        return False
    empty = next((s for s in next_round['slots'] if s['player_id'] is None), None)
    if empty is None:
        return False
    empty['player_id'] = entrant['player_id']
    empty['school'] = entrant['school']
    empty['rating'] = entrant['rating']
    _open_match(pool, tournament_id, pool_side, round_number + 1, empty)
    return True


def _build_pool(players: List, pool_side: str, tournament_id: str, rounds_needed: int,
                avoid_same_school: bool, rng: random.Random) -> Dict:
    matches, slots = pair_players_for_round_one(players, pool_side, tournament_id, avoid_same_school, rng)
    rounds = [{'round': 1, 'slots': slots, 'matches': matches}]
    for round_number in range(2, rounds_needed + 1):
        count = math.ceil(len(players) / 2 ** (round_number - 1))
        rounds.append({
            'round': round_number,
            'slots': create_empty_round_slots(tournament_id, round_number, pool_side, count),
            'matches': [],
        })

    pool = {'rounds': rounds}
    for match in matches:
        if match['status'] == 'bye':
            bye_slot = next(s for s in slots if s['id'] == match['slot_ids'][0])
            _place_winner(pool, tournament_id, pool_side, 1, bye_slot)
    return pool


def generate_initial_bracket(players: List, tournament_id: str, avoid_same_school: bool = True,
                             rng: Optional[random.Random] = None) -> Dict:
    """
    Build the two-pool bracket for a player tournament.

    Duplicate player ids are rejected. Both pools get the same number of
    rounds, enough for the larger pool.
    """
    check_unique_ids(players)
    rng = rng if rng is not None else random.Random()

    pools = build_two_pools(group_by_school(players))
    pool_a, pool_b = pools['pool_a'], pools['pool_b']
    if avoid_same_school:
        pool_a, pool_b = resolve_same_school_conflicts(
            pool_a, pool_b, pools['pool_a_schools'], pools['pool_b_schools'])

    rounds_needed = _rounds_needed(max(len(pool_a), len(pool_b)))
    bracket = {
        'tournament_id': tournament_id,
        'pool_a': _build_pool(pool_a, 'A', tournament_id, rounds_needed, avoid_same_school, rng),
        'pool_b': _build_pool(pool_b, 'B', tournament_id, rounds_needed, avoid_same_school, rng),
        'is_locked': False,
        'locked_at': None,
        'locked_by': None,
        'total_players': len(players),
    }
    logger.info("Generated two-pool bracket %s: %d players (A=%d, B=%d), %d rounds",
                tournament_id, len(players), len(pool_a), len(pool_b), rounds_needed)
    return bracket


def all_slots(bracket: Dict) -> List[Dict]:
    return [s for key in ('pool_a', 'pool_b') for r in bracket[key]['rounds'] for s in r['slots']]


def all_matches(bracket: Dict) -> List[Dict]:
    return [m for key in ('pool_a', 'pool_b') for r in bracket[key]['rounds'] for m in r['matches']]


def _locate_match(bracket: Dict, match_id: str) -> Optional[Tuple[str, Dict]]:
    for key in ('pool_a', 'pool_b'):
        for round_data in bracket[key]['rounds']:
            for match in round_data['matches']:
                if match['id'] == match_id:
                    return key, match
    return None


def _locate_slot(bracket: Dict, slot_id: str) -> Optional[Tuple[str, Dict, Dict]]:
    for key in ('pool_a', 'pool_b'):
        for round_data in bracket[key]['rounds']:
            for slot in round_data['slots']:
                if slot['id'] == slot_id:
                    return key, round_data, slot
    return None


def progress_winner(bracket: Dict, match_id: str, winner_id: str, score: Optional[str] = None,
                    completed_at: Optional[str] = None) -> Dict:
    """
    Record a pool match result and move the winner on.

    The winner (with school and rating) goes to the first empty slot of the
    next round in the same pool. When that round has no empty slot, or the
    match is unknown, `bracket` itself is returned unchanged. A result for
    the last round of a pool just completes the match.
    """
    located = _locate_match(bracket, match_id)
    if located is None:
        return bracket
    key, match = located

    if winner_id not in occupants(match):
        raise InvalidResultError(f"{winner_id} is not playing in match {match_id}")
    if match['status'] in FINISHED_STATUSES:
        if match['winner'] == winner_id:
            return bracket
        raise InvalidResultError(f"Match {match_id} already has a result")

    next_round = _find_round(bracket[key], match['round'] + 1)
    if next_round is not None and all(s['player_id'] is not None for s in next_round['slots']):
        logger.debug("progress_winner: round %d of %s is full", match['round'] + 1, key)
        return bracket

    updated = copy.deepcopy(bracket)
    pool = updated[key]
    round_data = _find_round(pool, match['round'])
    target = next(m for m in round_data['matches'] if m['id'] == match_id)
    target['winner'] = winner_id
    target['score'] = score
    target['status'] = 'completed'
    target['completed_at'] = completed_at or datetime.now().isoformat()

    position = target['competitors'].index(winner_id)
    source = next(s for s in round_data['slots'] if s['id'] == target['slot_ids'][position])
    if next_round is None:
        logger.info("Pool %s decided: %s", match['pool_side'], winner_id)
    else:
        _place_winner(pool, updated['tournament_id'], match['pool_side'], match['round'], source)
    return updated


def get_pool_champion(bracket: Dict, pool_side: str) -> Optional[str]:
    """Winner of a pool, or None while the pool is still being played."""
    rounds = bracket[_pool_key(pool_side)]['rounds']
    if not rounds:
        return None
    last = rounds[-1]
    if len(last['slots']) == 1:
        return last['slots'][0]['player_id']
    if len(last['slots']) == 2 and len(last['matches']) == 1:
        final = last['matches'][0]
        if final['status'] in FINISHED_STATUSES:
            return final['winner']
    return None


def assign_slot(bracket: Dict, slot_id: str, player) -> Dict:
    """
    Manually place `player` (or None to clear) into a slot before locking.

    Unknown slots leave the bracket unchanged. Locked slots and slots whose
    match already has a result raise BracketLockedError. Filling a later
    round slot opens its match as soon as the partner slot is occupied.
    """
    located = _locate_slot(bracket, slot_id)
    if located is None:
        return bracket
    key, round_data, slot = located

    if bracket['is_locked'] or slot['is_locked']:
        raise BracketLockedError(f"Slot {slot_id} is locked")
    match = next((m for m in round_data['matches'] if slot_id in m.get('slot_ids', [])), None)
    if match is not None and match['status'] in FINISHED_STATUSES:
        raise BracketLockedError(f"Slot {slot_id} belongs to a finished match")

    updated = copy.deepcopy(bracket)
    _, round_data, slot = _locate_slot(updated, slot_id)
    slot['player_id'] = player.id if player is not None else None
    slot['school'] = player.school if player is not None else None
    slot['rating'] = player.rating if player is not None else None

    if match is None:
        if player is not None:
            _open_match(updated[key], updated['tournament_id'], slot['pool_side'], slot['round'], slot)
    else:
        target = next(m for m in round_data['matches'] if m['id'] == match['id'])
        position = target['slot_ids'].index(slot_id)
        target['competitors'][position] = slot['player_id']
        target['schools'][position] = slot['school']
        target['same_school'] = (target['schools'][0] is not None
                                 and target['schools'][0] == target['schools'][1])
    return updated


def lock_bracket(bracket: Dict, locked_by: Optional[str] = None) -> Dict:
    """
    Lock every slot against manual edits.

    Refuses (SlotConflictError) while any player sits in two slots of the
    same round.
    """
    conflicts = find_slot_conflicts(all_slots(bracket))
    if conflicts:
        raise SlotConflictError(conflicts)

    updated = copy.deepcopy(bracket)
    updated['is_locked'] = True
    updated['locked_at'] = datetime.now().isoformat()
    updated['locked_by'] = locked_by
    for slot in all_slots(updated):
        slot['is_locked'] = True
    return updated


def unlock_bracket(bracket: Dict) -> Dict:
    updated = copy.deepcopy(bracket)
    updated['is_locked'] = False
    updated['locked_at'] = None
    updated['locked_by'] = None
    for slot in all_slots(updated):
        slot['is_locked'] = False
    return updated
