from flask import Blueprint, request, jsonify
from backend.auth_utils import admin_required, is_admin_request
from backend.services.bracket import list_players
from backend.services.errors import TournamentError, error_response
from backend.services.registration import register_player, remove_player

players_bp = Blueprint('players', __name__)


@players_bp.route('/register', methods=['POST'])
def register():
    data = request.get_json(silent=True)
    try:
        player = register_player(data)
    except TournamentError as exc:
        return error_response(exc)
    return jsonify({
        'success': True,
        'message': 'Registration successful!',
        'player_id': player.id,
    }), 201


@players_bp.route('/players', methods=['GET'])
def get_players():
    """List participants, newest first, optionally filtered by status."""
    status = (request.args.get('status') or '').strip().lower()
    try:
        players = list_players(status or None)
    except TournamentError as exc:
        return error_response(exc)
    include_contact = is_admin_request()
    return jsonify({
        'success': True,
        'count': len(players),
        'players': [p.to_dict(include_contact=include_contact) for p in players],
    })


@players_bp.route('/players/<int:player_id>', methods=['DELETE'])
@admin_required
def delete_player(player_id):
    try:
        remove_player(player_id)
    except TournamentError as exc:
        return error_response(exc)
    return jsonify({'success': True, 'message': 'Player removed.'})
