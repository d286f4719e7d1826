"""Error taxonomy shared by championship services and routes."""
from flask import jsonify


class TournamentError(Exception):
    """Base error carrying an HTTP status, a message, and optional field errors."""
    status_code = 400

    def __init__(self, message, errors=None, status_code=None):
        super().__init__(message)
        self.message = message
        self.errors = dict(errors or {})
        if status_code is not None:
            self.status_code = status_code


class InvalidArgument(TournamentError):
    status_code = 422


class NotFound(TournamentError):
    status_code = 404


class Conflict(TournamentError):
    status_code = 409


def field_error(cls, field, message, status_code=None):
    return cls(message, errors={field: message}, status_code=status_code)


def error_response(exc):
    payload = {'success': False, 'error': exc.message}
    if exc.errors:
        payload['errors'] = exc.errors
    return jsonify(payload), exc.status_code


def parse_id(raw_value):
    """Return a positive integer id, or None when the value is missing or malformed."""
    if raw_value is None or isinstance(raw_value, bool):
        return None
    try:
        value = int(str(raw_value).strip())
    except (TypeError, ValueError):
        return None
    return value if value > 0 else None
