import hmac
from functools import wraps
from flask import request, jsonify, current_app
import jwt

_ADMIN_SUBJECT = 'championship-admin'


def generate_admin_token():
    """Generate a short-lived JWT for the shared admin session."""
    from datetime import datetime, timedelta, timezone
    payload = {
        'sub': _ADMIN_SUBJECT,
        'role': 'admin',
        'exp': datetime.now(timezone.utc) + timedelta(
            hours=current_app.config.get('ADMIN_TOKEN_HOURS', 2)
        ),
    }
    return jwt.encode(payload, current_app.config['SECRET_KEY'], algorithm='HS256')


def admin_password_matches(candidate):
    expected = str(current_app.config.get('ADMIN_PASS') or '')
    provided = str(candidate or '')
    if not expected or not provided:
        return False
    return hmac.compare_digest(expected.encode('utf-8'), provided.encode('utf-8'))


def _normalize_bearer_token(raw_token):
    token = str(raw_token or '').strip()
    if token.startswith('Bearer '):
        token = token.split(' ', 1)[1].strip()
    return token


def _decode_admin_token(token):
    normalized = _normalize_bearer_token(token)
    if not normalized:
        return False, 'Admin authentication required'
    try:
        payload = jwt.decode(
            normalized, current_app.config['SECRET_KEY'], algorithms=['HS256']
        )
    except jwt.ExpiredSignatureError:
        return False, 'Token expired'
    except jwt.InvalidTokenError:
        return False, 'Invalid token'
    if payload.get('sub') != _ADMIN_SUBJECT or payload.get('role') != 'admin':
        return False, 'Invalid token'
    return True, None


def is_admin_request():
    ok, _ = _decode_admin_token(request.headers.get('Authorization', ''))
    return ok


def admin_required(f):
    """Decorator to require an admin bearer token on a route."""
    @wraps(f)
    def decorated(*args, **kwargs):
        ok, error = _decode_admin_token(request.headers.get('Authorization', ''))
        if not ok:
            return jsonify({'success': False, 'error': error}), 401
        return f(*args, **kwargs)
    return decorated
