from flask import Blueprint, request, jsonify
from backend.auth_utils import admin_required
from backend.services.bracket import create_match, list_matches, resolve_match
from backend.services.errors import InvalidArgument, TournamentError, error_response

matches_bp = Blueprint('matches', __name__)


@matches_bp.route('', methods=['GET'])
def get_matches():
    raw_round_id = request.args.get('round_id', request.args.get('roundId'))
    try:
        matches = list_matches(raw_round_id)
    except TournamentError as exc:
        return error_response(exc)
    return jsonify({
        'success': True,
        'count': len(matches),
        'matches': [m.to_dict() for m in matches],
    })


@matches_bp.route('', methods=['POST'])
@admin_required
def post_match():
    data = request.get_json(silent=True) or {}
    try:
        if not isinstance(data, dict):
            raise InvalidArgument('Invalid JSON payload')
        match = create_match(
            data.get('round_id'), data.get('player1_id'), data.get('player2_id'),
        )
    except TournamentError as exc:
        return error_response(exc)
    return jsonify({
        'success': True,
        'message': 'Match created successfully.',
        'match': match.to_dict(include_round=True),
    }), 201


@matches_bp.route('/<match_id>', methods=['PATCH'])
@admin_required
def patch_match(match_id):
    """Mark the winner of a match."""
    data = request.get_json(silent=True) or {}
    try:
        if not isinstance(data, dict):
            raise InvalidArgument('Invalid JSON payload')
        match, round_completed, champion_id = resolve_match(match_id, data.get('winner_id'))
    except TournamentError as exc:
        return error_response(exc)
    return jsonify({
        'success': True,
        'message': 'Winner marked successfully.',
        'match': match.to_dict(),
        'round_completed': round_completed,
        'champion_id': champion_id,
    })
