"""
Strength scores and seed ordering for bracket competitors.
"""
import logging
from typing import List

from .errors import DuplicateCompetitorError
from .models import Player, Team

logger = logging.getLogger(__name__)

# Games needed before a season record counts at full weight.
RELIABILITY_GAMES = 10


def calculate_team_strength(team: Team) -> float:
    """
    Strength from a team's season record.

    Win percentage is scaled by min(games/10, 1) so a 1-0 team cannot
    outrank a 15-3 team on a tiny sample.
    """
    total_games = team.wins + team.losses
    if total_games == 0:
        return 0.0
    win_pct = team.wins / total_games
    reliability = min(total_games / RELIABILITY_GAMES, 1.0)
    return win_pct * reliability


def calculate_player_strength(player: Player) -> float:
    """A player's strength is their rating; unrated players sort last."""
    if player.rating is None:
        return 0.0
    return float(player.rating)


def competitor_strength(competitor) -> float:
    if isinstance(competitor, Team):
        return calculate_team_strength(competitor)
    return calculate_player_strength(competitor)


def check_unique_ids(competitors: List) -> None:
    """Reject competitor lists that name the same id twice."""
    seen = set()
    duplicates = set()
    for competitor in competitors:
        if competitor.id in seen:
            duplicates.add(competitor.id)
        seen.add(competitor.id)
    if duplicates:
        raise DuplicateCompetitorError(duplicates)


def has_explicit_seeds(competitors: List) -> bool:
    return bool(competitors) and all(c.seed is not None for c in competitors)


def seed_competitors(competitors: List) -> List:
    """
    Order competitors from strongest to weakest.

    Explicit seeds are used only when every competitor has one; otherwise
    computed strength decides. Python's sort is stable, so ties keep their
    input order.
    """
    check_unique_ids(competitors)
    if has_explicit_seeds(competitors):
        logger.debug("Seeding %d competitors by explicit seed", len(competitors))
        return sorted(competitors, key=lambda c: c.seed)
    logger.debug("Seeding %d competitors by computed strength", len(competitors))
    return sorted(competitors, key=competitor_strength, reverse=True)
