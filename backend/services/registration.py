"""Player registration validation and persistence."""
import re
from flask import current_app
from sqlalchemy.exc import IntegrityError
from backend.app import db
from backend.models import Match, Player, PLAYER_GENDERS, PLAYER_GRADES
from backend.services.errors import Conflict, InvalidArgument, NotFound, field_error
from backend.time_utils import parse_iso_date

MOBILE_PATTERN = re.compile(r'^[6-9]\d{9}$')
MIN_AGE = 1
MAX_AGE = 18
_DUPLICATE_MOBILE = 'This mobile number is already registered.'


def _parse_age(raw_value, errors):
    if raw_value is None or (isinstance(raw_value, str) and not raw_value.strip()):
        errors['age'] = 'Age is required.'
        return None
    if isinstance(raw_value, bool):
        errors['age'] = 'Enter a valid age.'
        return None
    try:
        age = float(raw_value)
    except (TypeError, ValueError):
        errors['age'] = 'Enter a valid age.'
        return None
    if age != age or age < MIN_AGE or not age.is_integer():
        errors['age'] = 'Enter a valid age.'
        return None
    if age > MAX_AGE:
        errors['age'] = 'Age must be less than 19 to participate.'
        return None
    return int(age)


def validate_registration(data):
    """Return cleaned player fields, or raise InvalidArgument with a field-keyed map."""
    if not isinstance(data, dict):
        raise InvalidArgument('Invalid JSON payload')

    errors = {}
    full_name = str(data.get('full_name') or data.get('fullName') or '').strip()
    if not full_name:
        errors['full_name'] = 'Full name is required.'

    age = _parse_age(data.get('age'), errors)

    gender = str(data.get('gender') or '').strip()
    if not gender:
        errors['gender'] = 'Gender is required.'
    elif gender not in PLAYER_GENDERS:
        errors['gender'] = 'Gender must be Male, Female, or Other.'

    raw_dob = data.get('dob')
    dob = parse_iso_date(raw_dob)
    if not str(raw_dob or '').strip():
        errors['dob'] = 'Date of birth is required.'
    elif dob is None:
        errors['dob'] = 'Enter a valid date of birth.'

    grade = str(data.get('grade') or data.get('class') or '').strip()
    if not grade:
        errors['grade'] = 'Class is required.'
    elif grade not in PLAYER_GRADES:
        errors['grade'] = 'Select a valid class.'

    mobile = str(data.get('mobile') or '').strip()
    if not mobile:
        errors['mobile'] = 'Mobile number is required.'
    elif not MOBILE_PATTERN.match(mobile):
        errors['mobile'] = 'Enter a valid 10-digit Indian mobile number.'

    if errors:
        raise InvalidArgument('Please correct the highlighted fields.', errors=errors)

    school_name = str(data.get('school_name') or data.get('schoolName') or '').strip()[:300]
    return {
        'full_name': full_name[:200],
        'age': age,
        'gender': gender,
        'dob': dob,
        'grade': grade,
        'school_name': school_name,
        'mobile': mobile,
    }


def register_player(data):
    fields = validate_registration(data)
    if Player.query.filter_by(mobile=fields['mobile']).first():
        raise field_error(Conflict, 'mobile', _DUPLICATE_MOBILE)

    player = Player(status='registered', **fields)
    db.session.add(player)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise field_error(Conflict, 'mobile', _DUPLICATE_MOBILE)
    current_app.logger.info('Registered player %s (%s)', player.id, player.full_name)
    return player


def remove_player(player_id):
    """Delete a player who has not been drawn into any match."""
    player = db.session.get(Player, player_id)
    if not player:
        raise NotFound('Player not found.')

    in_match = Match.query.filter(
        (Match.player1_id == player_id) | (Match.player2_id == player_id)
    ).first()
    if in_match:
        raise Conflict('Player is already part of a match and cannot be removed.')

    db.session.delete(player)
    db.session.commit()
    current_app.logger.info('Removed player %s', player_id)
