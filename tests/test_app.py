"""
Tests for the Flask JSON host.
"""
import os
import pytest
import sys
import yaml

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

import app as app_module


TEAMS = [
    {'id': 'A', 'name': 'Aces', 'wins': 15, 'losses': 0},
    {'id': 'B', 'name': 'Baseliners', 'wins': 12, 'losses': 3},
    {'id': 'C', 'name': 'Volleyers', 'wins': 9, 'losses': 6},
    {'id': 'D', 'name': 'Drop Shots', 'wins': 6, 'losses': 9},
    {'id': 'E', 'name': 'Lobbers', 'wins': 3, 'losses': 12},
]

PLAYERS = [
    {'id': 'L1', 'name': 'Lena', 'school': 'Lincoln', 'rating': 12.0},
    {'id': 'L2', 'name': 'Liam', 'school': 'Lincoln', 'rating': 11.0},
    {'id': 'L3', 'name': 'Lucy', 'school': 'Lincoln', 'rating': 10.0},
    {'id': 'R1', 'name': 'Rosa', 'school': 'Roosevelt', 'rating': 9.0},
    {'id': 'R2', 'name': 'Ravi', 'school': 'Roosevelt', 'rating': 8.0},
    {'id': 'J1', 'name': 'Jack', 'school': 'Jefferson', 'rating': 7.0},
    {'id': 'J2', 'name': 'June', 'school': 'Jefferson', 'rating': 6.0},
    {'id': 'J3', 'name': 'Jude', 'school': 'Jefferson', 'rating': None},
    {'id': 'M1', 'name': 'Mia', 'school': 'Madison', 'rating': 5.0},
]


def find(matches, match_id):
    return next(m for m in matches if m['id'] == match_id)


class TestSettings:
    def test_defaults(self, client):
        response = client.get('/api/tournaments/spring-open/settings')
        assert response.status_code == 200
        assert response.get_json() == app_module.get_default_settings()

    def test_update_persists(self, client, tmp_path):
        response = client.post('/api/tournaments/spring-open/settings', json={'format': 'swiss', 'swiss_rounds': 4})
        assert response.status_code == 200
        path = tmp_path / 'tournaments' / 'spring-open' / 'settings.yaml'
        with open(path) as f:
            saved = yaml.safe_load(f)
        assert saved['format'] == 'swiss'
        assert saved['swiss_rounds'] == 4
        assert client.get('/api/tournaments/spring-open/settings').get_json()['format'] == 'swiss'

    def test_unknown_format_rejected(self, client):
        response = client.post('/api/tournaments/spring-open/settings', json={'format': 'ladder'})
        assert response.status_code == 400

    def test_invalid_slug(self, client):
        response = client.get('/api/tournaments/Spring%20Open/settings')
        assert response.status_code == 400


class TestTeamBracket:
    def test_generate(self, client):
        response = client.post('/api/tournaments/spring-open/bracket', json={'competitors': TEAMS})
        assert response.status_code == 201
        data = response.get_json()
        assert data['total_matches'] == 7
        assert data['completed_matches'] == 3
        assert data['current_round'] == 1

    def test_generate_requires_competitors(self, client):
        response = client.post('/api/tournaments/spring-open/bracket', json={})
        assert response.status_code == 400

    def test_duplicate_ids_rejected(self, client):
        response = client.post('/api/tournaments/spring-open/bracket', json={'competitors': TEAMS + TEAMS[:1]})
        assert response.status_code == 400
        assert 'Duplicate' in response.get_json()['error']

    def test_bracket_persists(self, client):
        client.post('/api/tournaments/spring-open/bracket', json={'competitors': TEAMS})
        data = client.get('/api/tournaments/spring-open/bracket').get_json()
        assert len(data['matches']) == 7

    def test_submit_result_advances_winner(self, client):
        client.post('/api/tournaments/spring-open/bracket', json={'competitors': TEAMS})
        response = client.post('/api/tournaments/spring-open/results',
                               json={'match_id': 'spring-open-1-4', 'winner': 'D', 'score': '6-3, 6-4'})
        assert response.status_code == 200
        matches = response.get_json()['matches']
        assert find(matches, 'spring-open-2-2')['competitors'] == ['C', 'D']
        saved = client.get('/api/tournaments/spring-open/bracket').get_json()['matches']
        assert find(saved, 'spring-open-1-4')['winner'] == 'D'

    def test_unknown_match(self, client):
        client.post('/api/tournaments/spring-open/bracket', json={'competitors': TEAMS})
        response = client.post('/api/tournaments/spring-open/results', json={'match_id': 'nope', 'winner': 'D'})
        assert response.status_code == 404

    def test_invalid_winner(self, client):
        client.post('/api/tournaments/spring-open/bracket', json={'competitors': TEAMS})
        response = client.post('/api/tournaments/spring-open/results',
                               json={'match_id': 'spring-open-1-4', 'winner': 'A'})
        assert response.status_code == 400

    def test_standings(self, client):
        client.post('/api/tournaments/spring-open/bracket', json={'competitors': TEAMS[:3], 'format': 'round_robin'})
        client.post('/api/tournaments/spring-open/results', json={'match_id': 'spring-open-rr-1', 'winner': 'A'})
        standings = client.get('/api/tournaments/spring-open/standings').get_json()
        assert standings[0]['competitor_id'] == 'A'
        assert standings[0]['wins'] == 1


class TestSwissRounds:
    def test_next_round_waits_for_results(self, client):
        client.post('/api/tournaments/spring-open/bracket', json={'competitors': TEAMS, 'format': 'swiss'})
        response = client.post('/api/tournaments/spring-open/swiss/next-round')
        assert response.status_code == 409

    def test_next_round(self, client):
        client.post('/api/tournaments/spring-open/bracket', json={'competitors': TEAMS, 'format': 'swiss'})
        client.post('/api/tournaments/spring-open/results', json={'match_id': 'spring-open-swiss-1-1', 'winner': 'A'})
        client.post('/api/tournaments/spring-open/results', json={'match_id': 'spring-open-swiss-1-2', 'winner': 'D'})
        response = client.post('/api/tournaments/spring-open/swiss/next-round')
        assert response.status_code == 200
        round_two = [m for m in response.get_json()['matches'] if m['round'] == 2]
        assert [m['competitors'] for m in round_two] == [['A', 'D'], ['B', 'C']]

    def test_not_swiss(self, client):
        client.post('/api/tournaments/spring-open/bracket', json={'competitors': TEAMS})
        response = client.post('/api/tournaments/spring-open/swiss/next-round')
        assert response.status_code == 400


@pytest.fixture
def player_bracket(client):
    client.post('/api/tournaments/county/settings', json={'random_seed': 5})
    response = client.post('/api/tournaments/county/players-bracket', json={'players': PLAYERS})
    assert response.status_code == 201
    return response.get_json()['bracket']


class TestPlayerBracket:
    def test_generate(self, player_bracket):
        assert player_bracket['total_players'] == 9
        assert len(player_bracket['pool_a']['rounds'][0]['slots']) == 6

    def test_seeded_draw_is_repeatable(self, client, player_bracket):
        again = client.post('/api/tournaments/county/players-bracket', json={'players': PLAYERS}).get_json()
        assert again['bracket'] == player_bracket

    def test_get_before_generate(self, client):
        assert client.get('/api/tournaments/county/players-bracket').status_code == 404

    def test_result_and_champion_keys(self, client, player_bracket):
        match = player_bracket['pool_b']['rounds'][0]['matches'][0]
        response = client.post('/api/tournaments/county/players-bracket/results',
                               json={'match_id': match['id'], 'winner': match['competitors'][0]})
        assert response.status_code == 200
        data = response.get_json()
        assert data['bracket']['pool_b']['rounds'][1]['slots'][1]['player_id'] == match['competitors'][0]
        assert data['champions'] == {'A': None, 'B': None}

    def test_repeat_result_conflict(self, client, player_bracket):
        match = player_bracket['pool_b']['rounds'][0]['matches'][0]
        payload = {'match_id': match['id'], 'winner': match['competitors'][0]}
        client.post('/api/tournaments/county/players-bracket/results', json=payload)
        response = client.post('/api/tournaments/county/players-bracket/results', json=payload)
        assert response.status_code == 409

    def test_result_unknown_match(self, client, player_bracket):
        response = client.post('/api/tournaments/county/players-bracket/results',
                               json={'match_id': 'nope', 'winner': 'L1'})
        assert response.status_code == 404

    def test_same_school_change_needs_confirmation(self, client, player_bracket):
        """A same-school round 1 placement is refused until confirmed."""
        match = player_bracket['pool_a']['rounds'][0]['matches'][0]
        opponent_school = match['schools'][1]
        candidate = next(p for p in PLAYERS
                         if p['school'] == opponent_school and p['id'] not in match['competitors'])
        payload = {'slot_id': match['slot_ids'][0], 'player_id': candidate['id']}

        response = client.post('/api/tournaments/county/players-bracket/slots', json=payload)
        assert response.status_code == 409
        data = response.get_json()
        assert data['applied'] is False
        assert data['warnings'][0]['type'] == 'same_school_round1'

        response = client.post('/api/tournaments/county/players-bracket/slots', json=dict(payload, confirm=True))
        assert response.status_code == 200
        changed = response.get_json()['bracket']['pool_a']['rounds'][0]['matches'][0]
        assert changed['competitors'][0] == candidate['id']

    def test_unknown_slot(self, client, player_bracket):
        response = client.post('/api/tournaments/county/players-bracket/slots',
                               json={'slot_id': 'nope', 'player_id': 'L1'})
        assert response.status_code == 404

    def test_lock_blocks_slot_changes(self, client, player_bracket):
        response = client.post('/api/tournaments/county/players-bracket/lock', json={'locked_by': 'director'})
        assert response.status_code == 200
        assert response.get_json()['bracket']['is_locked'] is True

        slot_id = player_bracket['pool_a']['rounds'][0]['slots'][0]['id']
        response = client.post('/api/tournaments/county/players-bracket/slots',
                               json={'slot_id': slot_id, 'player_id': None})
        assert response.status_code == 400

        response = client.post('/api/tournaments/county/players-bracket/unlock')
        assert response.get_json()['bracket']['is_locked'] is False
