from flask import Blueprint, request, jsonify, current_app
from backend.auth_utils import admin_password_matches, admin_required, generate_admin_token
from backend.services.bracket import dashboard_stats

admin_bp = Blueprint('admin', __name__)


@admin_bp.route('/login', methods=['POST'])
def login():
    data = request.get_json(silent=True) or {}
    password = data.get('password') if isinstance(data, dict) else None
    if not password or not isinstance(password, str):
        return jsonify({'success': False, 'error': 'Password is required.'}), 400

    if not current_app.config.get('ADMIN_PASS'):
        current_app.logger.error('ADMIN_PASS is not configured')
        return jsonify({
            'success': False, 'error': 'Server misconfiguration. Contact admin.',
        }), 500

    if not admin_password_matches(password):
        return jsonify({'success': False, 'error': 'Incorrect password.'}), 401

    return jsonify({
        'success': True,
        'message': 'Authenticated.',
        'token': generate_admin_token(),
        'expires_in_hours': current_app.config.get('ADMIN_TOKEN_HOURS', 2),
    })


@admin_bp.route('/logout', methods=['POST'])
def logout():
    # Tokens are stateless; the client discards its copy.
    return jsonify({'success': True, 'message': 'Logged out.'})


@admin_bp.route('/stats', methods=['GET'])
@admin_required
def stats():
    return jsonify({'success': True, 'stats': dashboard_stats()})
