from flask import Blueprint, jsonify
from backend.services.bracket import bracket_snapshot

bracket_bp = Blueprint('bracket', __name__)


@bracket_bp.route('', methods=['GET'])
def get_bracket():
    """Public live bracket: every round with its ordered matches."""
    return jsonify({'success': True, **bracket_snapshot()})
