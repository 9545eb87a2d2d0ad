"""
Format dispatch and round robin generation.
"""
import logging
from itertools import combinations
from typing import Dict, List

from .elimination import generate_single_elimination
from .errors import UnknownFormatError
from .models import new_match
from .seeding import seed_competitors
from .swiss import generate_swiss

logger = logging.getLogger(__name__)

SINGLE_ELIMINATION = 'single_elimination'
DOUBLE_ELIMINATION = 'double_elimination'
ROUND_ROBIN = 'round_robin'
SWISS = 'swiss'

FORMATS = (SINGLE_ELIMINATION, DOUBLE_ELIMINATION, ROUND_ROBIN, SWISS)


def generate_round_robin(competitors: List, tournament_id: str) -> List[Dict]:
    """Every competitor plays every other competitor once, all in round 1."""
    matches = []
    for match_number, (first, second) in enumerate(combinations(competitors, 2), start=1):
        matches.append(new_match(f"{tournament_id}-rr-{match_number}", 1, match_number, [first.id, second.id]))
    return matches


def generate_bracket(bracket_format: str, competitors: List, tournament_id: str = 'bracket') -> List[Dict]:
    """
    Generate the opening match list for a tournament.

    Competitors are seeded first (duplicate ids are rejected). Fewer than two
    competitors yields an empty list.
    """
    if bracket_format not in FORMATS:
        raise UnknownFormatError(bracket_format)

    seeded = seed_competitors(competitors)
    if len(seeded) < 2:
        return []

    if bracket_format == SINGLE_ELIMINATION:
        return generate_single_elimination(seeded, tournament_id)
    if bracket_format == DOUBLE_ELIMINATION:
        # No losers bracket yet; play it as single elimination.
        logger.warning("Double elimination requested for %s; generating single elimination", tournament_id)
        return generate_single_elimination(seeded, tournament_id)
    if bracket_format == ROUND_ROBIN:
        return generate_round_robin(seeded, tournament_id)
    return generate_swiss(seeded, tournament_id)
