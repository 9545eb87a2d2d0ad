"""
Competitor models and the plain-dict records the engine passes around.

Teams and players are handed to the engine already validated and are treated
as read-only. Matches and slots are plain dicts so the host can dump them to
YAML without conversion.
"""
from typing import Dict, List, Optional


POOL_SIDES = ('A', 'B')


class Team:
    def __init__(self, id, name, school=None, wins=0, losses=0, seed=None, level=None):
        self.id = id
        self.name = name
        self.school = school if school is not None else name
        self.wins = wins
        self.losses = losses
        self.seed = seed
        self.level = level

    @property
    def games_played(self):
        return self.wins + self.losses

    def to_dict(self):
        return {
            'kind': 'team',
            'id': self.id,
            'name': self.name,
            'school': self.school,
            'wins': self.wins,
            'losses': self.losses,
            'seed': self.seed,
            'level': self.level,
        }

    def __repr__(self):
        return f"Team(id={self.id}, name={self.name}, record={self.wins}-{self.losses}, seed={self.seed})"


class Player:
    def __init__(self, id, name, school, rating=None, seed=None, gender=None):
        self.id = id
        self.name = name
        self.school = school
        self.rating = rating  # UTR; None when the player is unrated
        self.seed = seed
        self.gender = gender

    def to_dict(self):
        return {
            'kind': 'player',
            'id': self.id,
            'name': self.name,
            'school': self.school,
            'rating': self.rating,
            'seed': self.seed,
            'gender': self.gender,
        }

    def __repr__(self):
        return f"Player(id={self.id}, name={self.name}, school={self.school}, rating={self.rating})"


def competitor_from_dict(data: Dict):
    """Build a Team or Player from a dict (as loaded from YAML or JSON)."""
    fields = {k: v for k, v in data.items() if k != 'kind'}
    if data.get('kind') == 'player' or 'rating' in data:
        fields.pop('wins', None)
        fields.pop('losses', None)
        fields.pop('level', None)
        return Player(**fields)
    fields.pop('rating', None)
    fields.pop('gender', None)
    return Team(**fields)


def new_match(match_id: str, round_number: int, match_number: int,
              competitors: Optional[List[Optional[str]]] = None,
              pool_side: Optional[str] = None, status: str = 'pending') -> Dict:
    """Create a match record with both competitor positions (empty when None)."""
    competitors = list(competitors) if competitors else []
    while len(competitors) < 2:
        competitors.append(None)
    return {
        'id': match_id,
        'round': round_number,
        'match_number': match_number,
        'pool_side': pool_side,
        'competitors': competitors,
        'winner': None,
        'score': None,
        'status': status,
        'is_bye': False,
        'next_match_id': None,
        'completed_at': None,
    }


def new_slot(slot_id: str, round_number: int, slot_number: int, pool_side: str,
             player=None) -> Dict:
    """Create a bracket slot, optionally occupied by a player."""
    return {
        'id': slot_id,
        'round': round_number,
        'slot_number': slot_number,
        'pool_side': pool_side,
        'player_id': player.id if player is not None else None,
        'school': player.school if player is not None else None,
        'rating': player.rating if player is not None else None,
        'is_locked': False,
    }


def occupants(match: Dict) -> List[str]:
    """Competitor ids actually present in a match."""
    return [c for c in match['competitors'] if c is not None]
