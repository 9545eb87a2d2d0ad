"""
Flask JSON host for the bracket engine.

Each tournament lives in its own directory under DATA_DIR. Every request that
changes a bracket runs load -> engine -> save under that tournament's file
lock, so two result submissions can never overwrite each other.
"""
import os
import re
import random
import yaml
from filelock import FileLock, Timeout
from flask import Flask, request, jsonify

from bracket_engine.errors import BracketError
from bracket_engine.formats import FORMATS, SWISS, generate_bracket
from bracket_engine.models import competitor_from_dict
from bracket_engine.player_pools import (
    all_matches,
    all_slots,
    assign_slot,
    generate_initial_bracket,
    get_pool_champion,
    lock_bracket,
    progress_winner,
    unlock_bracket,
)
from bracket_engine.progression import get_bracket_summary, update_match_result
from bracket_engine.seeding import seed_competitors
from bracket_engine.standings import calculate_standings
from bracket_engine.swiss import advance_swiss_round
from bracket_engine.validation import find_same_school_pairings, validate_slot_change

app = Flask(__name__)

BASE_DIR = os.path.dirname(os.path.dirname(__file__))
DATA_DIR = os.environ.get('TOURNAMENT_DATA_DIR', os.path.join(BASE_DIR, 'data'))
LOCK_TIMEOUT_SECONDS = 10

SLUG_PATTERN = re.compile(r'^[a-z0-9][a-z0-9_-]*$')


def get_default_settings():
    """Settings used when a tournament has no settings.yaml (or leaves keys out)."""
    return {
        'format': 'single_elimination',
        'swiss_rounds': None,
        'avoid_same_school': True,
        'random_seed': None,
    }


def _tournament_dir(slug: str) -> str:
    return os.path.join(DATA_DIR, 'tournaments', slug)


def _file_path(slug: str, filename: str) -> str:
    return os.path.join(_tournament_dir(slug), filename)


def _tournament_lock(slug: str) -> FileLock:
    os.makedirs(_tournament_dir(slug), exist_ok=True)
    return FileLock(_file_path(slug, '.lock'), timeout=LOCK_TIMEOUT_SECONDS)


def _load_yaml(slug: str, filename: str, default):
    path = _file_path(slug, filename)
    if not os.path.exists(path):
        return default
    with open(path, 'r', encoding='utf-8') as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            app.logger.warning(f'Failed to parse {path}: {e}')
            return default
    return data if data is not None else default


def _save_yaml(slug: str, filename: str, data):
    os.makedirs(_tournament_dir(slug), exist_ok=True)
    with open(_file_path(slug, filename), 'w', encoding='utf-8') as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False)


def load_settings(slug: str) -> dict:
    settings = get_default_settings()
    settings.update(_load_yaml(slug, 'settings.yaml', {}))
    return settings


def save_settings(slug: str, settings: dict):
    _save_yaml(slug, 'settings.yaml', settings)


def load_competitors(slug: str) -> list:
    return [competitor_from_dict(c) for c in _load_yaml(slug, 'competitors.yaml', [])]


def save_competitors(slug: str, competitors: list):
    _save_yaml(slug, 'competitors.yaml', [c.to_dict() for c in competitors])


def load_matches(slug: str) -> list:
    return _load_yaml(slug, 'bracket.yaml', {}).get('matches', [])


def save_matches(slug: str, matches: list, bracket_format: str):
    _save_yaml(slug, 'bracket.yaml', {'format': bracket_format, 'matches': matches})


def load_bracket_format(slug: str) -> str:
    return _load_yaml(slug, 'bracket.yaml', {}).get('format')


def load_player_bracket(slug: str):
    return _load_yaml(slug, 'players_bracket.yaml', None)


def save_player_bracket(slug: str, bracket: dict):
    _save_yaml(slug, 'players_bracket.yaml', bracket)


def _rng_for(settings: dict) -> random.Random:
    return random.Random(settings['random_seed']) if settings.get('random_seed') is not None else random.Random()


def _bracket_response(matches: list):
    summary = get_bracket_summary(matches)
    summary['matches'] = matches
    return summary


def _player_bracket_response(bracket: dict):
    return {
        'bracket': bracket,
        'warnings': find_same_school_pairings(all_matches(bracket)),
        'champions': {
            'A': get_pool_champion(bracket, 'A'),
            'B': get_pool_champion(bracket, 'B'),
        },
    }


@app.errorhandler(BracketError)
def handle_bracket_error(e):
    return jsonify({'error': str(e)}), 400


@app.errorhandler(Timeout)
def handle_lock_timeout(e):
    app.logger.warning(f'Tournament lock timed out: {e}')
    return jsonify({'error': 'Tournament is busy, try again'}), 503


@app.before_request
def reject_bad_slug():
    slug = (request.view_args or {}).get('slug')
    if slug is not None and not SLUG_PATTERN.match(slug):
        return jsonify({'error': f'Invalid tournament name: {slug}'}), 400


@app.route('/api/tournaments/<slug>/settings', methods=['GET', 'POST'])
def api_settings(slug):
    """Read or update tournament settings."""
    if request.method == 'GET':
        return jsonify(load_settings(slug))

    data = request.get_json() or {}
    with _tournament_lock(slug):
        settings = load_settings(slug)
        for key in get_default_settings():
            if key in data:
                settings[key] = data[key]
        if settings['format'] not in FORMATS:
            return jsonify({'error': f"Unknown bracket format: {settings['format']}"}), 400
        save_settings(slug, settings)
    return jsonify(settings)


@app.route('/api/tournaments/<slug>/bracket', methods=['GET'])
def api_get_bracket(slug):
    return jsonify(_bracket_response(load_matches(slug)))


@app.route('/api/tournaments/<slug>/bracket', methods=['POST'])
def api_generate_bracket(slug):
    """Generate a bracket from the posted competitors."""
    data = request.get_json() or {}
    raw_competitors = data.get('competitors')
    if not isinstance(raw_competitors, list):
        return jsonify({'error': 'Missing competitors list'}), 400

    try:
        competitors = [competitor_from_dict(c) for c in raw_competitors]
    except TypeError as e:
        return jsonify({'error': f'Invalid competitor: {e}'}), 400

    with _tournament_lock(slug):
        settings = load_settings(slug)
        bracket_format = data.get('format', settings['format'])
        matches = generate_bracket(bracket_format, competitors, tournament_id=slug)
        save_competitors(slug, seed_competitors(competitors))
        save_matches(slug, matches, bracket_format)

    app.logger.info(f'Generated {bracket_format} bracket for {slug}: {len(matches)} matches')
    return jsonify(_bracket_response(matches)), 201


@app.route('/api/tournaments/<slug>/results', methods=['POST'])
def api_submit_result(slug):
    """Record a match result and advance the winner."""
    data = request.get_json() or {}
    match_id = data.get('match_id')
    winner = data.get('winner')
    if not match_id or not winner:
        return jsonify({'error': 'Missing match_id or winner'}), 400

    with _tournament_lock(slug):
        matches = load_matches(slug)
        updated = update_match_result(matches, match_id, winner, data.get('score', ''))
        if updated is matches:
            return jsonify({'error': f'Match not found: {match_id}'}), 404
        save_matches(slug, updated, load_bracket_format(slug))

    return jsonify(_bracket_response(updated))


@app.route('/api/tournaments/<slug>/swiss/next-round', methods=['POST'])
def api_next_swiss_round(slug):
    """Pair the next Swiss round once the current one is finished."""
    with _tournament_lock(slug):
        if load_bracket_format(slug) != SWISS:
            return jsonify({'error': 'Tournament is not a Swiss event'}), 400
        matches = load_matches(slug)
        settings = load_settings(slug)
        updated = advance_swiss_round(matches, load_competitors(slug), settings['swiss_rounds'], tournament_id=slug)
        if updated is matches:
            return jsonify({'error': 'Current round is not finished or all rounds are played'}), 409
        save_matches(slug, updated, SWISS)

    return jsonify(_bracket_response(updated))


@app.route('/api/tournaments/<slug>/standings', methods=['GET'])
def api_standings(slug):
    return jsonify(calculate_standings(load_matches(slug), load_competitors(slug)))


@app.route('/api/tournaments/<slug>/players-bracket', methods=['GET'])
def api_get_player_bracket(slug):
    bracket = load_player_bracket(slug)
    if bracket is None:
        return jsonify({'error': 'No player bracket yet'}), 404
    return jsonify(_player_bracket_response(bracket))


@app.route('/api/tournaments/<slug>/players-bracket', methods=['POST'])
def api_generate_player_bracket(slug):
    """Split players into two school-balanced pools and draw round 1."""
    data = request.get_json() or {}
    raw_players = data.get('players')
    if not isinstance(raw_players, list):
        return jsonify({'error': 'Missing players list'}), 400

    try:
        players = [competitor_from_dict(dict(p, kind='player')) for p in raw_players]
    except TypeError as e:
        return jsonify({'error': f'Invalid player: {e}'}), 400

    with _tournament_lock(slug):
        settings = load_settings(slug)
        avoid_same_school = data.get('avoid_same_school', settings['avoid_same_school'])
        bracket = generate_initial_bracket(players, slug, avoid_same_school, rng=_rng_for(settings))
        save_competitors(slug, players)
        save_player_bracket(slug, bracket)

    return jsonify(_player_bracket_response(bracket)), 201


@app.route('/api/tournaments/<slug>/players-bracket/results', methods=['POST'])
def api_player_result(slug):
    """Record a pool match result and fill the next round."""
    data = request.get_json() or {}
    match_id = data.get('match_id')
    winner = data.get('winner')
    if not match_id or not winner:
        return jsonify({'error': 'Missing match_id or winner'}), 400

    with _tournament_lock(slug):
        bracket = load_player_bracket(slug)
        if bracket is None or not any(m['id'] == match_id for m in all_matches(bracket)):
            return jsonify({'error': f'Match not found: {match_id}'}), 404
        updated = progress_winner(bracket, match_id, winner, data.get('score'))
        if updated is bracket:
            return jsonify({'error': 'Result already recorded or no open slot in the next round'}), 409
        save_player_bracket(slug, updated)

    return jsonify(_player_bracket_response(updated))


@app.route('/api/tournaments/<slug>/players-bracket/slots', methods=['POST'])
def api_change_slot(slug):
    """
    Move a player into a slot.

    Warnings are always returned. When any of them is an error (same school
    in round 1) the change is only applied with "confirm": true.
    """
    data = request.get_json() or {}
    slot_id = data.get('slot_id')
    player_id = data.get('player_id')
    if not slot_id:
        return jsonify({'error': 'Missing slot_id'}), 400

    with _tournament_lock(slug):
        bracket = load_player_bracket(slug)
        if bracket is None:
            return jsonify({'error': 'No player bracket yet'}), 404
        slots = all_slots(bracket)
        slot = next((s for s in slots if s['id'] == slot_id), None)
        if slot is None:
            return jsonify({'error': f'Slot not found: {slot_id}'}), 404

        player = None
        warnings = []
        if player_id is not None:
            player = next((p for p in load_competitors(slug) if p.id == player_id), None)
            if player is None:
                return jsonify({'error': f'Unknown player: {player_id}'}), 404
            warnings = validate_slot_change(slot, player, slots, all_matches(bracket), slot['round'])

        if any(w['severity'] == 'error' for w in warnings) and not data.get('confirm'):
            return jsonify({'applied': False, 'warnings': warnings}), 409

        updated = assign_slot(bracket, slot_id, player)
        save_player_bracket(slug, updated)

    return jsonify({'applied': True, 'warnings': warnings, 'bracket': updated})


@app.route('/api/tournaments/<slug>/players-bracket/lock', methods=['POST'])
def api_lock_player_bracket(slug):
    data = request.get_json(silent=True) or {}
    with _tournament_lock(slug):
        bracket = load_player_bracket(slug)
        if bracket is None:
            return jsonify({'error': 'No player bracket yet'}), 404
        updated = lock_bracket(bracket, data.get('locked_by'))
        save_player_bracket(slug, updated)
    app.logger.info(f'Locked player bracket for {slug}')
    return jsonify(_player_bracket_response(updated))


@app.route('/api/tournaments/<slug>/players-bracket/unlock', methods=['POST'])
def api_unlock_player_bracket(slug):
    with _tournament_lock(slug):
        bracket = load_player_bracket(slug)
        if bracket is None:
            return jsonify({'error': 'No player bracket yet'}), 404
        updated = unlock_bracket(bracket)
        save_player_bracket(slug, updated)
    return jsonify(_player_bracket_response(updated))


if __name__ == '__main__':
    app.run(debug=True)
