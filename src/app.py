"""
Flask web application for League Brackets.
"""
import os
import logging
from flask import Flask, request, jsonify, abort
from brackets.engine import (
    bracket_summary,
    create_bracket,
    list_playable_nodes,
    list_resolved_nodes,
    list_unresolved_nodes,
)
from brackets.errors import BracketError
from brackets.models import ROUND_ROBIN
from brackets.round_robin import calculate_standings
from brackets.storage import BracketRepository, YamlFileStore

app = Flask(__name__)

BASE_DIR = os.path.dirname(os.path.dirname(__file__))
DATA_DIR = os.environ.get('BRACKET_DATA_DIR', os.path.join(BASE_DIR, 'data'))
LOCK_TIMEOUT = float(os.environ.get('BRACKET_LOCK_TIMEOUT', '10'))
DEFAULT_PITS = int(os.environ.get('BRACKET_DEFAULT_PITS', '1'))

if os.environ.get('BRACKET_LOG_LEVEL'):
    app.logger.setLevel(os.environ['BRACKET_LOG_LEVEL'].upper())
    logging.getLogger('brackets').setLevel(os.environ['BRACKET_LOG_LEVEL'].upper())

MATCH_FILTERS = {
    'unresolved': list_unresolved_nodes,
    'resolved': list_resolved_nodes,
    'playable': list_playable_nodes,
}


def get_repository() -> BracketRepository:
    """Repository over the configured data directory."""
    return BracketRepository(YamlFileStore(DATA_DIR, lock_timeout=LOCK_TIMEOUT))


def load_bracket_or_404(bracket_id: str):
    try:
        graph = get_repository().load(bracket_id)
    except ValueError:
        abort(404)
    if graph is None:
        abort(404)
    return graph


@app.errorhandler(BracketError)
def handle_bracket_error(e):
    if e.status_code >= 500:
        app.logger.error(f'Bracket integrity failure: {e.message}')
    else:
        app.logger.warning(f'Rejected request: {e.message}')
    return jsonify({'error': e.message}), e.status_code


@app.errorhandler(404)
def handle_not_found(e):
    return jsonify({'error': 'Not found'}), 404


@app.route('/api/brackets', methods=['GET'])
def api_list_brackets():
    """List stored brackets, optionally for one league."""
    league_id = request.args.get('leagueId')
    brackets = get_repository().list_brackets(league_id)
    return jsonify([bracket_summary(b) for b in brackets])


@app.route('/api/brackets', methods=['POST'])
def api_create_bracket():
    """API endpoint to create a bracket."""
    data = request.get_json(silent=True) or {}

    name = data.get('name')
    if not name:
        return jsonify({'error': 'Missing bracket name'}), 400

    graph = create_bracket(
        name,
        data.get('participants', []),
        data.get('format'),
        participant_kind=data.get('participantKind', 'team'),
        pits=data.get('pits', DEFAULT_PITS),
        league_id=data.get('leagueId'),
    )
    get_repository().save(graph)
    app.logger.info(f'Created bracket {graph.id} ({graph.format}, {len(graph.participants)} participants)')
    return jsonify(graph.to_dict()), 201


@app.route('/api/brackets/<bracket_id>', methods=['GET'])
def api_get_bracket(bracket_id):
    return jsonify(load_bracket_or_404(bracket_id).to_dict())


@app.route('/api/brackets/<bracket_id>', methods=['DELETE'])
def api_delete_bracket(bracket_id):
    """Delete a bracket. Deleting a missing bracket is a 404."""
    load_bracket_or_404(bracket_id)
    get_repository().delete(bracket_id)
    app.logger.info(f'Deleted bracket {bracket_id}')
    return jsonify({'success': True})


@app.route('/api/brackets/<bracket_id>/results', methods=['POST'])
def api_record_result(bracket_id):
    """
    API endpoint to save a match result.

    Body: ``{"matchId": ..., "scoreA": int|null, "scoreB": int|null}``.
    Results for the same bracket are applied one at a time under its lock.
    """
    data = request.get_json(silent=True) or {}
    match_id = data.get('matchId')
    if not match_id:
        return jsonify({'error': 'Missing matchId'}), 400

    load_bracket_or_404(bracket_id)
    graph = get_repository().submit_result(bracket_id, match_id, data.get('scoreA'), data.get('scoreB'))
    if graph is None:
        abort(404)
    return jsonify(graph.to_dict())


@app.route('/api/brackets/<bracket_id>/matches', methods=['GET'])
def api_list_matches(bracket_id):
    """Matches filtered by status: unresolved (default), resolved or playable."""
    status = request.args.get('status', 'unresolved')
    if status not in MATCH_FILTERS:
        return jsonify({'error': f'Unknown status {status}'}), 400
    graph = load_bracket_or_404(bracket_id)
    return jsonify([n.to_dict() for n in MATCH_FILTERS[status](graph)])


@app.route('/api/brackets/<bracket_id>/standings', methods=['GET'])
def api_standings(bracket_id):
    graph = load_bracket_or_404(bracket_id)
    if graph.format != ROUND_ROBIN:
        return jsonify({'error': 'Standings are only available for round-robin brackets'}), 400
    return jsonify(calculate_standings(graph))


if __name__ == '__main__':
    app.run(debug=True, port=5000)
