"""
Tests for competitor models and match/slot records.
"""
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from bracket_engine.models import (
    Team, Player, competitor_from_dict, new_match, new_slot, occupants,
)


class TestTeam:
    def test_school_defaults_to_name(self):
        """A team without a school is its own school."""
        team = Team(id='t1', name='Lincoln')
        assert team.school == 'Lincoln'

    def test_games_played(self):
        team = Team(id='t1', name='Lincoln', wins=7, losses=3)
        assert team.games_played == 10

    def test_to_dict_round_trips(self):
        """to_dict output rebuilds an equivalent team."""
        team = Team(id='t1', name='Lincoln', wins=4, losses=1, seed=2, level='varsity')
        rebuilt = competitor_from_dict(team.to_dict())
        assert isinstance(rebuilt, Team)
        assert (rebuilt.id, rebuilt.wins, rebuilt.losses, rebuilt.seed, rebuilt.level) == ('t1', 4, 1, 2, 'varsity')

    def test_repr(self):
        team = Team(id='t1', name='Lincoln', wins=4, losses=1)
        assert 'record=4-1' in repr(team)


class TestPlayer:
    def test_unrated_player(self):
        player = Player(id='p1', name='Ana', school='Lincoln')
        assert player.rating is None

    def test_from_dict_with_rating_is_player(self):
        """A dict carrying a rating becomes a Player even without a kind."""
        player = competitor_from_dict({'id': 'p1', 'name': 'Ana', 'school': 'Lincoln', 'rating': 9.5})
        assert isinstance(player, Player)
        assert player.rating == 9.5

    def test_from_dict_with_kind_player(self):
        player = competitor_from_dict({'kind': 'player', 'id': 'p1', 'name': 'Ana', 'school': 'Lincoln'})
        assert isinstance(player, Player)
        assert player.rating is None

    def test_from_dict_rejects_unknown_fields(self):
        with pytest.raises(TypeError):
            competitor_from_dict({'id': 'p1', 'name': 'Ana', 'nickname': 'A'})


class TestMatchRecords:
    def test_new_match_pads_competitors(self):
        """Matches always have exactly two competitor positions."""
        match = new_match('m1', 2, 1)
        assert match['competitors'] == [None, None]
        assert match['status'] == 'pending'
        assert match['winner'] is None
        assert match['next_match_id'] is None

    def test_new_match_copies_competitor_list(self):
        pair = ['a', 'b']
        match = new_match('m1', 1, 1, pair)
        match['competitors'][0] = 'c'
        assert pair == ['a', 'b']

    def test_occupants_skips_empty_positions(self):
        match = new_match('m1', 2, 1, ['a'])
        assert occupants(match) == ['a']

    def test_new_slot_copies_player_fields(self):
        player = Player(id='p1', name='Ana', school='Lincoln', rating=10.0)
        slot = new_slot('s1', 1, 1, 'A', player)
        assert slot['player_id'] == 'p1'
        assert slot['school'] == 'Lincoln'
        assert slot['rating'] == 10.0
        assert slot['is_locked'] is False

    def test_empty_slot(self):
        slot = new_slot('s1', 2, 3, 'B')
        assert slot['player_id'] is None
        assert slot['school'] is None
