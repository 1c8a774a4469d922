# Command line entry point: build a bracket from a YAML participants file

import argparse
import logging
import sys
import yaml
from brackets.elimination import round_titles
from brackets.engine import create_bracket
from brackets.errors import BracketError, InvalidInputError
from brackets.models import FORMATS, PARTICIPANT_KINDS, ROUND_ROBIN, SINGLE_ELIMINATION


def load_participants(file_path):
    """
    Read participants from YAML.

    Accepts a list of names, or a list of mappings with id, name and
    optional avatarRef. Bare names get ids p1, p2, ...
    """
    with open(file_path, mode='r', encoding='utf-8') as file:
        data = yaml.safe_load(file) or []
    if not isinstance(data, list):
        raise InvalidInputError(f"{file_path} must hold a list of participants")
    participants = []
    for index, entry in enumerate(data, start=1):
        if isinstance(entry, dict):
            participants.append(entry)
        else:
            participants.append({'id': f'p{index}', 'name': str(entry)})
    return participants


def format_bracket(graph):
    """Plain-text listing of a bracket, one match per line."""
    lines = [f"{graph.name} ({graph.format}, {len(graph.participants)} {graph.participant_kind}s, {graph.pits} pits)"]

    if graph.format == ROUND_ROBIN:
        for match in graph.matches:
            lines.append(f"  {match.id}: {match.slot_a.name} vs {match.slot_b.name}")
        return "\n".join(lines)

    titles = round_titles(len(graph.winner_rounds)) if graph.format == SINGLE_ELIMINATION else None
    for index, round_nodes in enumerate(graph.winner_rounds):
        lines.append(f"# {titles[index] if titles else f'Winners Round {index + 1}'}")
        for node in round_nodes:
            lines.append(f"  {node.match_label}: {node.slot_a.name} vs {node.slot_b.name}")
    for index, round_nodes in enumerate(graph.loser_rounds or []):
        lines.append(f"# Losers Round {index + 1}")
        for node in round_nodes:
            lines.append(f"  {node.match_label}: {node.slot_a.name} vs {node.slot_b.name}")
    return "\n".join(lines)


def main(argv=None):
    parser = argparse.ArgumentParser(description='Build a tournament bracket from a participants file.')
    parser.add_argument('participants_file', help='YAML list of participant names or {id, name} mappings')
    parser.add_argument('--format', choices=FORMATS, default=SINGLE_ELIMINATION)
    parser.add_argument('--kind', choices=PARTICIPANT_KINDS, default='team')
    parser.add_argument('--name', default='Tournament')
    parser.add_argument('--pits', type=int, default=1)
    parser.add_argument('--output', help='Write the bracket as YAML to this file')
    parser.add_argument('--verbose', action='store_true')
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(levelname)s %(name)s: %(message)s')

    try:
        participants = load_participants(args.participants_file)
        graph = create_bracket(args.name, participants, args.format,
                               participant_kind=args.kind, pits=args.pits)
    except (OSError, yaml.YAMLError) as e:
        print(f"Error: cannot read {args.participants_file}: {e}", file=sys.stderr)
        return 1
    except BracketError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    print(format_bracket(graph))

    if args.output:
        with open(args.output, 'w', encoding='utf-8') as f:
            yaml.dump(graph.to_dict(), f, default_flow_style=False, sort_keys=False)
    return 0


if __name__ == '__main__':
    sys.exit(main())
