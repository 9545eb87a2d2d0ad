import argparse
import logging
import os
import yaml
from bracket_engine.elimination import get_round_name
from bracket_engine.formats import DOUBLE_ELIMINATION, FORMATS, SINGLE_ELIMINATION, generate_bracket
from bracket_engine.models import competitor_from_dict
from bracket_engine.progression import get_bracket_summary


def load_competitors(file_path):
    with open(file_path, mode='r', encoding='utf-8') as file:
        data = yaml.safe_load(file) or []
    return [competitor_from_dict(entry) for entry in data]


def format_bracket(matches, competitors, bracket_format=None):
    """
    Render a match list as text, one '# Round N' block per round.

    Elimination brackets also name each round ('# Round 3 (Final)').
    """
    names = {c.id: c.name for c in competitors}
    summary = get_bracket_summary(matches)
    lines = []
    for round_number, round_matches in summary['matches_by_round'].items():
        if lines:
            lines.append('')
        if bracket_format in (SINGLE_ELIMINATION, DOUBLE_ELIMINATION):
            lines.append(f"# Round {round_number} ({get_round_name(2 * len(round_matches))})")
        else:
            lines.append(f"# Round {round_number}")
        for match in round_matches:
            first, second = (names.get(c, c) if c else 'TBD' for c in match['competitors'])
            if match['is_bye']:
                lines.append(f"{first} (bye)")
            else:
                lines.append(f"{first} vs {second}")
    return lines


def main():
    script_dir = os.path.dirname(__file__)
    base_dir = os.path.dirname(script_dir)

    parser = argparse.ArgumentParser(description='Generate a tournament bracket from a competitors file.')
    parser.add_argument('competitors_file', nargs='?', default=os.path.join(base_dir, 'data', 'competitors.yaml'),
                        help='YAML list of teams or players')
    parser.add_argument('--format', default='single_elimination', choices=FORMATS, help='Bracket format')
    parser.add_argument('--tournament-id', default='bracket', help='Prefix for generated match ids')
    parser.add_argument('--verbose', action='store_true', help='Log seeding and pairing decisions')
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    competitors = load_competitors(args.competitors_file)
    if len(competitors) < 2:
        print("Need at least two competitors to build a bracket.")
        return

    matches = generate_bracket(args.format, competitors, tournament_id=args.tournament_id)
    for line in format_bracket(matches, competitors, args.format):
        print(line)


if __name__ == '__main__':
    main()
