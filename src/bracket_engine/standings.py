"""
Standings derived from match lists.

Standings are never stored; they are recomputed from the matches each time.
"""
from typing import Dict, List


def win_percentage(wins: int, games: int) -> float:
    return wins / games if games > 0 else 0.0


def _rank(rows: List[Dict]) -> List[Dict]:
    # Stable sort: equal rows keep input order.
    return sorted(rows, key=lambda row: (-row['win_percentage'], -row['wins']))


def calculate_standings(matches: List[Dict], competitors: List) -> List[Dict]:
    """
    Win/loss table for a bracket (round robin, Swiss or elimination).

    Only completed matches count; byes are not games.
    Sorted by win percentage, then wins.
    """
    rows = []
    for competitor in competitors:
        played = [
            m for m in matches
            if competitor.id in m['competitors'] and m['status'] == 'completed' and not m.get('is_bye')
        ]
        wins = sum(1 for m in played if m['winner'] == competitor.id)
        games_played = len(played)
        rows.append({
            'competitor_id': competitor.id,
            'name': competitor.name,
            'wins': wins,
            'losses': games_played - wins,
            'ties': 0,
            'win_percentage': win_percentage(wins, games_played),
            'games_played': games_played,
        })
    return _rank(rows)


def calculate_team_standings(team_matches: List[Dict]) -> List[Dict]:
    """
    Standings per (team, level) from completed team matches.

    win_percentage = wins / (wins + losses + ties).
    """
    stats = {}
    for match in team_matches:
        if match['status'] != 'completed':
            continue
        for side, team_id in (('home', match['home_team']), ('away', match['away_team'])):
            key = (team_id, match['level'])
            if key not in stats:
                stats[key] = {
                    'competitor_id': team_id,
                    'level': match['level'],
                    'wins': 0,
                    'losses': 0,
                    'ties': 0,
                }
            row = stats[key]
            if match['winner'] == side:
                row['wins'] += 1
            elif match['winner'] in ('home', 'away'):
                row['losses'] += 1
            else:
                row['ties'] += 1

    rows = []
    for row in stats.values():
        games_played = row['wins'] + row['losses'] + row['ties']
        row['games_played'] = games_played
        row['win_percentage'] = win_percentage(row['wins'], games_played)
        rows.append(row)
    return _rank(rows)
