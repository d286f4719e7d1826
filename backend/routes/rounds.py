from flask import Blueprint, request, jsonify
from backend.auth_utils import admin_required
from backend.services.bracket import (
    create_round, eligible_status_for_round, get_round, list_players,
    list_rounds, round_summary,
)
from backend.services.errors import InvalidArgument, TournamentError, error_response

rounds_bp = Blueprint('rounds', __name__)


def _coerce_optional_bool(raw_value):
    if raw_value is None:
        return None
    if isinstance(raw_value, bool):
        return raw_value
    if isinstance(raw_value, (int, float)):
        return raw_value == 1
    return str(raw_value).strip().lower() in {'1', 'true', 'yes', 'on'}


@rounds_bp.route('', methods=['GET'])
def get_rounds():
    rounds = list_rounds()
    return jsonify({
        'success': True,
        'count': len(rounds),
        'rounds': [r.to_dict() for r in rounds],
    })


@rounds_bp.route('', methods=['POST'])
@admin_required
def post_round():
    data = request.get_json(silent=True) or {}
    try:
        if not isinstance(data, dict):
            raise InvalidArgument('Invalid JSON payload')
        round_ = create_round(data.get('name'), _coerce_optional_bool(data.get('is_final')))
    except TournamentError as exc:
        return error_response(exc)
    return jsonify({
        'success': True,
        'message': 'Round created successfully.',
        'round': round_.to_dict(),
    }), 201


@rounds_bp.route('/<round_id>', methods=['GET'])
def get_round_detail(round_id):
    try:
        round_ = get_round(round_id)
    except TournamentError as exc:
        return error_response(exc)
    return jsonify({'success': True, 'round': round_summary(round_)})


@rounds_bp.route('/<round_id>/eligible-players', methods=['GET'])
def get_eligible_players(round_id):
    """Players who may be drawn into a new match of this round."""
    try:
        round_ = get_round(round_id)
        status = eligible_status_for_round(round_)
        players = list_players(status)
    except TournamentError as exc:
        return error_response(exc)
    return jsonify({
        'success': True,
        'status': status,
        'count': len(players),
        'players': [p.to_dict() for p in players],
    })
