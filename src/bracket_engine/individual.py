"""
Individual tournaments between schools.

For every division and lineup position each school meets every other school
once. A won match is a point for the winner's school. Results are entered
with update_individual_result, naming the division, position and schools.
"""
from itertools import combinations
from typing import Dict, List, Optional

from .models import new_match
from .progression import update_match_result
from .standings import win_percentage
from .team_match import players_for_position


def generate_individual_bracket(tournament_id: str, teams: List, divisions: List[str],
                                positions_per_division: int = 6) -> List[Dict]:
    """Round robin of schools for each division and position, all in round 1."""
    matches = []
    match_number = 1
    for division in divisions:
        for position in range(1, positions_per_division + 1):
            for home, away in combinations(teams, 2):
                match = new_match(f"{tournament_id}-{division}-{position}-{match_number}",
                                  1, match_number, [home.id, away.id])
                match['division'] = division
                match['position'] = position
                match['home_players'] = []
                match['away_players'] = []
                matches.append(match)
                match_number += 1
    return matches


def assign_players_to_matches(matches: List[Dict], team_players: Dict[str, List]) -> List[Dict]:
    """Fill each match with the players holding that position on each school's roster."""
    assigned = []
    for match in matches:
        home_id, away_id = match['competitors']
        assigned.append(dict(
            match,
            home_players=players_for_position(team_players.get(home_id, []), match['division'], match['position']),
            away_players=players_for_position(team_players.get(away_id, []), match['division'], match['position']),
        ))
    return assigned


def find_individual_match(matches: List[Dict], division: str, position: int,
                          school_a: str, school_b: str) -> Optional[Dict]:
    """The match between two schools at one division and position, in either order."""
    pair = {school_a, school_b}
    for match in matches:
        if match['division'] == division and match['position'] == position and set(match['competitors']) == pair:
            return match
    return None


def update_individual_result(matches: List[Dict], division: str, position: int, home_team_id: str,
                             away_team_id: str, winner: str, score: str,
                             completed_at: Optional[str] = None) -> List[Dict]:
    """
    Record the result of one division/position match between two schools.

    `winner` is the winning school's id. Returns `matches` itself when no
    such match exists; a winner from neither school raises InvalidResultError.
    """
    match = find_individual_match(matches, division, position, home_team_id, away_team_id)
    if match is None:
        return matches
    return update_match_result(matches, match['id'], winner, score, completed_at)


def calculate_school_scores(matches: List[Dict]) -> Dict[str, int]:
    """Matches won per school, counting every school that has played."""
    scores = {}
    for match in matches:
        if match['status'] != 'completed':
            continue
        for school_id in match['competitors']:
            scores.setdefault(school_id, 0)
        if match['winner'] is not None:
            scores[match['winner']] += 1
    return scores


def get_school_standings(matches: List[Dict], teams: List) -> List[Dict]:
    """School table sorted by matches won, then win percentage."""
    scores = calculate_school_scores(matches)
    rows = []
    for team in teams:
        wins = scores.get(team.id, 0)
        total = sum(1 for m in matches if team.id in m['competitors'] and m['status'] == 'completed')
        rows.append({
            'competitor_id': team.id,
            'name': team.name,
            'wins': wins,
            'losses': total - wins,
            'games_played': total,
            'win_percentage': win_percentage(wins, total),
        })
    return sorted(rows, key=lambda row: (-row['wins'], -row['win_percentage']))


def get_division_matches(matches: List[Dict], division: str) -> List[Dict]:
    return sorted((m for m in matches if m['division'] == division), key=lambda m: m['position'])


def get_individual_summary(matches: List[Dict]) -> Dict:
    divisions = []
    for match in matches:
        if match['division'] not in divisions:
            divisions.append(match['division'])
    completed = sum(1 for m in matches if m['status'] == 'completed')
    return {
        'divisions': divisions,
        'total_matches': len(matches),
        'completed_matches': completed,
        'current_round': 1,
        'is_complete': completed == len(matches),
        'school_scores': calculate_school_scores(matches),
    }
