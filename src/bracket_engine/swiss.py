"""
Swiss system pairing.

Each round pairs competitors with similar running scores. A round is only
paired once every match of the previous round has a result.
"""
import logging
import math
from typing import Dict, List, Optional

from .models import new_match

logger = logging.getLogger(__name__)


def default_swiss_rounds(num_competitors: int) -> int:
    if num_competitors < 2:
        return 0
    return math.ceil(math.log2(num_competitors))


def calculate_swiss_score(competitor_id: str, matches: List[Dict]) -> float:
    """Wins divided by games played so far (0 before the first game)."""
    wins = 0
    games_played = 0
    for match in matches:
        if competitor_id not in match['competitors'] or match['status'] != 'completed':
            continue
        games_played += 1
        if match['winner'] == competitor_id:
            wins += 1
    return wins / games_played if games_played > 0 else 0.0


def generate_swiss_round(competitors: List, matches: List[Dict], round_number: int,
                         tournament_id: str) -> List[Dict]:
    """
    Pair one Swiss round from the results in `matches`.

    Competitors are ordered by score (stable, so seed order breaks ties)
    and paired consecutively; with an odd count the last one sits out.
    """
    ranked = sorted(competitors, key=lambda c: calculate_swiss_score(c.id, matches), reverse=True)
    match_number = len(matches) + 1
    round_matches = []
    for i in range(0, len(ranked) - 1, 2):
        round_matches.append(new_match(
            f"{tournament_id}-swiss-{round_number}-{match_number}",
            round_number,
            match_number,
            [ranked[i].id, ranked[i + 1].id],
        ))
        match_number += 1
    if len(ranked) % 2 == 1:
        logger.debug("Swiss round %d: %s sits out", round_number, ranked[-1].id)
    return round_matches


def generate_swiss(seeded: List, tournament_id: str) -> List[Dict]:
    """Pair the opening round of a Swiss event."""
    if len(seeded) < 2:
        return []
    return generate_swiss_round(seeded, [], 1, tournament_id)


def advance_swiss_round(matches: List[Dict], competitors: List,
                        num_rounds: Optional[int] = None,
                        tournament_id: Optional[str] = None) -> List[Dict]:
    """
    Append the next Swiss round once the current one is finished.

    Returns `matches` itself (unchanged) while any match is unfinished or
    when all rounds have been played.
    """
    if not matches:
        return matches
    if num_rounds is None:
        num_rounds = default_swiss_rounds(len(competitors))
    if any(m['status'] != 'completed' for m in matches):
        return matches

    last_round = max(m['round'] for m in matches)
    if last_round >= num_rounds:
        return matches

    if tournament_id is None:
        tournament_id = matches[0]['id'].split('-swiss-')[0]
    next_round = generate_swiss_round(competitors, matches, last_round + 1, tournament_id)
    logger.info("Paired Swiss round %d: %d matches", last_round + 1, len(next_round))
    return list(matches) + next_round
