"""
Dual meets between two schools.

A team match is made of individual position matches (1st singles, 2nd
singles, ... doubles lines). Each position won is one point for its side;
the side with more points wins the team match, and an even split is a tie.
"""
import logging
from datetime import datetime
from typing import Dict, List, Optional

from .errors import BracketError, InvalidResultError

logger = logging.getLogger(__name__)

TEAM_LEVELS = ('varsity', 'jv', 'freshman')

# (division, number of positions) in lineup order.
STANDARD_LINEUP = (
    ('boys_singles', 6),
    ('girls_singles', 6),
    ('boys_doubles', 3),
    ('girls_doubles', 3),
    ('mixed_doubles', 1),
)


def is_doubles(division: str) -> bool:
    return division.endswith('doubles')


def filter_players_by_division(players: List, division: str) -> List:
    """Drop players whose gender does not fit the division."""
    if division.startswith('boys'):
        return [p for p in players if p.gender == 'male']
    if division.startswith('girls'):
        return [p for p in players if p.gender == 'female']
    return list(players)


def players_for_position(players: List, division: str, position: int) -> List[str]:
    """
    Player ids for one line of a division, strongest players on line 1.

    Singles line N takes the Nth best rated player; doubles line N takes the
    Nth pair.
    """
    ranked = sorted(filter_players_by_division(players, division),
                    key=lambda p: p.rating or 0, reverse=True)
    if is_doubles(division):
        pair = ranked[2 * (position - 1):2 * position]
        return [p.id for p in pair]
    if position <= len(ranked):
        return [ranked[position - 1].id]
    return []


def create_position_matches(team_match_id: str, lineup=STANDARD_LINEUP) -> List[Dict]:
    positions = []
    for division, count in lineup:
        for position in range(1, count + 1):
            positions.append({
                'id': f"{team_match_id}-{division.replace('_', '-')}-{position}",
                'team_match_id': team_match_id,
                'division': division,
                'position': position,
                'home_players': [],
                'away_players': [],
                'winner': None,
                'score': None,
                'status': 'pending',
                'completed_at': None,
            })
    return positions


def create_team_match(tournament_id: str, home_team, away_team, level: str,
                      match_date: Optional[str] = None, lineup=STANDARD_LINEUP) -> Dict:
    """Create a scheduled team match with one pending match per lineup position."""
    if level not in TEAM_LEVELS:
        raise BracketError(f"Unknown team level: {level}")
    team_match_id = f"{tournament_id}-{home_team.id}-{away_team.id}-{level}"
    return {
        'id': team_match_id,
        'tournament_id': tournament_id,
        'home_team': home_team.id,
        'away_team': away_team.id,
        'level': level,
        'match_date': match_date,
        'status': 'scheduled',
        'home_score': 0,
        'away_score': 0,
        'winner': None,
        'positions': create_position_matches(team_match_id, lineup),
        'completed_at': None,
    }


def assign_players_to_team_match(team_match: Dict, home_players: List, away_players: List) -> Dict:
    """Fill every position with players from each roster."""
    positions = []
    for match in team_match['positions']:
        positions.append(dict(
            match,
            home_players=players_for_position(home_players, match['division'], match['position']),
            away_players=players_for_position(away_players, match['division'], match['position']),
        ))
    return dict(team_match, positions=positions)


def tally_positions(positions: List[Dict]) -> Dict:
    home_wins = sum(1 for m in positions if m['winner'] == 'home')
    away_wins = sum(1 for m in positions if m['winner'] == 'away')
    if home_wins > away_wins:
        winner = 'home'
    elif away_wins > home_wins:
        winner = 'away'
    else:
        winner = 'tie'
    return {
        'home_wins': home_wins,
        'away_wins': away_wins,
        'total_positions': len(positions),
        'winner': winner,
    }


def update_position_result(team_match: Dict, position_id: str, winner: str, score: str,
                           completed_at: Optional[str] = None) -> Dict:
    """
    Record one position result and recompute the team score.

    The team match is completed only once every position has a result.
    Returns `team_match` itself when `position_id` is unknown.
    """
    if winner not in ('home', 'away'):
        raise InvalidResultError(f"Position winner must be 'home' or 'away', got {winner!r}")
    if not any(m['id'] == position_id for m in team_match['positions']):
        return team_match

    now = completed_at or datetime.now().isoformat()
    positions = [
        dict(m, winner=winner, score=score, status='completed', completed_at=now) if m['id'] == position_id else m
        for m in team_match['positions']
    ]

    tally = tally_positions(positions)
    is_complete = all(m['status'] == 'completed' for m in positions)
    if is_complete:
        status = 'completed'
        logger.info("Team match %s completed: %d-%d (%s)", team_match['id'],
                    tally['home_wins'], tally['away_wins'], tally['winner'])
    else:
        status = 'in_progress'

    return dict(
        team_match,
        positions=positions,
        home_score=tally['home_wins'],
        away_score=tally['away_wins'],
        winner=tally['winner'] if is_complete else None,
        status=status,
        completed_at=now if is_complete else team_match['completed_at'],
    )


def get_team_match_result(team_match: Dict) -> Dict:
    """Current score of a team match; the winner is 'tie' on an even split."""
    result = tally_positions(team_match['positions'])
    result['team_match_id'] = team_match['id']
    return result


def get_matches_by_division(team_match: Dict, division: str) -> List[Dict]:
    return sorted((m for m in team_match['positions'] if m['division'] == division),
                  key=lambda m: m['position'])
