"""
Single elimination bracket generation and linking.
"""
import logging
import math
from typing import Dict, List

from .models import new_match

logger = logging.getLogger(__name__)


def get_round_name(competitors_in_round: int) -> str:
    """Get the name of a round based on how many competitors it starts with."""
    if competitors_in_round == 2:
        return "Final"
    elif competitors_in_round == 4:
        return "Semifinal"
    elif competitors_in_round == 8:
        return "Quarterfinal"
    else:
        return f"Round of {competitors_in_round}"


def calculate_bracket_size(num_competitors: int) -> int:
    """Calculate the bracket size (next power of 2)."""
    if num_competitors <= 0:
        return 0
    return 2 ** math.ceil(math.log2(num_competitors))


def calculate_byes(num_competitors: int) -> int:
    """Calculate number of byes needed."""
    return calculate_bracket_size(num_competitors) - num_competitors


def calculate_total_rounds(num_competitors: int) -> int:
    bracket_size = calculate_bracket_size(num_competitors)
    if bracket_size < 2:
        return 0
    return int(math.log2(bracket_size))


def match_id_for(tournament_id: str, round_number: int, match_number: int) -> str:
    return f"{tournament_id}-{round_number}-{match_number}"


def create_first_round(seeded: List, tournament_id: str) -> List[Dict]:
    """
    Build round 1 from competitors already sorted by seed.

    The top `byes` seeds sit alone in a bye match and advance immediately;
    everyone else is paired with the next entry in seed order.
    """
    num_competitors = len(seeded)
    bracket_size = calculate_bracket_size(num_competitors)
    byes = calculate_byes(num_competitors)

    matches = []
    for i in range(bracket_size // 2):
        match_number = i + 1
        if i < byes:
            entrant = seeded[i].id
            match = new_match(match_id_for(tournament_id, 1, match_number), 1, match_number, [entrant, None])
            match['is_bye'] = True
            match['status'] = 'completed'
            match['winner'] = entrant
        else:
            index = byes + 2 * (i - byes)
            pair = [seeded[index].id, seeded[index + 1].id]
            match = new_match(match_id_for(tournament_id, 1, match_number), 1, match_number, pair)
        matches.append(match)

    logger.debug("Round 1: %d matches, %d byes", len(matches), byes)
    return matches


def link_bracket_matches(matches: List[Dict], total_rounds: int) -> None:
    """
    Point every match at the match its winner feeds.

    Match i of round r feeds match i // 2 of round r + 1. Links are set
    once at generation and never recomputed.
    """
    for round_number in range(1, total_rounds):
        current_round = [m for m in matches if m['round'] == round_number]
        next_round = [m for m in matches if m['round'] == round_number + 1]
        for index, match in enumerate(current_round):
            next_index = index // 2
            if next_index < len(next_round):
                match['next_match_id'] = next_round[next_index]['id']


def advance_into(next_match: Dict, winner: str) -> bool:
    """Place a winner in the first empty position of a match. Returns False when full."""
    for position, occupant in enumerate(next_match['competitors']):
        if occupant is None:
            next_match['competitors'][position] = winner
            return True
    return False


def generate_single_elimination(seeded: List, tournament_id: str) -> List[Dict]:
    """
    Generate every round of a single elimination bracket.

    Rounds after the first start empty and halve in size; bye winners are
    placed into round 2 straight away.
    """
    if len(seeded) < 2:
        return []

    bracket_size = calculate_bracket_size(len(seeded))
    total_rounds = calculate_total_rounds(len(seeded))

    matches = create_first_round(seeded, tournament_id)
    matches_in_round = bracket_size // 2
    for round_number in range(2, total_rounds + 1):
        matches_in_round //= 2
        for i in range(matches_in_round):
            matches.append(new_match(match_id_for(tournament_id, round_number, i + 1), round_number, i + 1))

    link_bracket_matches(matches, total_rounds)

    by_id = {m['id']: m for m in matches}
    for match in matches:
        if match['is_bye'] and match['next_match_id']:
            advance_into(by_id[match['next_match_id']], match['winner'])

    logger.info("Generated single elimination bracket %s: %d competitors, %d rounds, %d matches",
                tournament_id, len(seeded), total_rounds, len(matches))
    return matches
