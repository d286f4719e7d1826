"""Round and match lifecycle: creation, winner resolution, and round progression."""
from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from backend.app import db, socketio
from backend.models import Match, Player, Round, pairing_key_for, PLAYER_STATUSES
from backend.services.errors import (
    Conflict, InvalidArgument, NotFound, field_error, parse_id,
)
from backend.services.status import is_terminal, transition
from backend.time_utils import utcnow_naive

_DUPLICATE_PAIRING = 'This player pairing already exists in the selected round.'


def emit_bracket_update(round_id=None, reason=''):
    socketio.emit('bracket_update', {
        'round_id': round_id,
        'reason': reason,
        'updated_at': utcnow_naive().isoformat(),
    })


def _final_round_name():
    return current_app.config.get('FINAL_ROUND_NAME', 'Final')


# ── Rounds ───────────────────────────────────────────────────────────


def create_round(name, is_final=None):
    name = str(name or '').strip()
    if not name:
        raise field_error(InvalidArgument, 'name', 'Round name is required.')
    name = name[:120]
    name_key = name.lower()

    existing = Round.query.filter_by(name_key=name_key).first()
    if existing:
        raise field_error(
            Conflict, 'name', f'A round named "{existing.name}" already exists.'
        )

    if is_final is None:
        is_final = name == _final_round_name()

    round_ = Round(name=name, name_key=name_key, status='ongoing', is_final=bool(is_final))
    db.session.add(round_)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise field_error(Conflict, 'name', 'A round with this name already exists.')

    current_app.logger.info('Created round %s "%s" (final=%s)', round_.id, name, round_.is_final)
    emit_bracket_update(round_.id, 'round_created')
    return round_


def get_round(raw_round_id):
    round_id = parse_id(raw_round_id)
    if not round_id:
        raise InvalidArgument('Invalid round ID.', status_code=400)
    round_ = db.session.get(Round, round_id)
    if not round_:
        raise NotFound('Round not found.')
    return round_


def list_rounds():
    return Round.query.order_by(Round.created_at.asc(), Round.id.asc()).all()


def round_summary(round_):
    total = Match.query.filter_by(round_id=round_.id).count()
    pending = Match.query.filter_by(round_id=round_.id, status='pending').count()
    data = round_.to_dict()
    data['total_matches'] = total
    data['pending_matches'] = pending
    data['completed_matches'] = total - pending
    return data


def eligible_status_for_round(round_):
    first_round_name = current_app.config.get('FIRST_ROUND_NAME', 'Round 1')
    return 'registered' if round_.name.strip() == first_round_name else 'qualified'


def list_players(status=None):
    query = Player.query
    if status:
        if status not in PLAYER_STATUSES:
            raise InvalidArgument('Invalid status filter.', status_code=400)
        query = query.filter(Player.status == status)
    return query.order_by(Player.created_at.desc(), Player.id.desc()).all()


# ── Matches ──────────────────────────────────────────────────────────


def list_matches(raw_round_id):
    if raw_round_id is None or not str(raw_round_id).strip():
        raise InvalidArgument('round_id query parameter is required.', status_code=400)
    round_id = parse_id(raw_round_id)
    if not round_id:
        raise InvalidArgument('Invalid round_id format.', status_code=400)
    return Match.query.filter_by(round_id=round_id).order_by(
        Match.match_number.asc(), Match.id.asc(),
    ).all()


def _validate_match_ids(raw_round_id, raw_player1_id, raw_player2_id):
    errors = {}
    parsed = {}
    labels = (
        ('round_id', raw_round_id, 'Round ID'),
        ('player1_id', raw_player1_id, 'Player 1'),
        ('player2_id', raw_player2_id, 'Player 2'),
    )
    for field, raw_value, label in labels:
        if raw_value is None or str(raw_value).strip() == '':
            errors[field] = f'{label} is required.'
            continue
        value = parse_id(raw_value)
        if not value:
            errors[field] = f'Invalid {label.removesuffix(" ID")} ID.'
            continue
        parsed[field] = value
    if errors:
        raise InvalidArgument('Please correct the highlighted fields.', errors=errors)
    return parsed['round_id'], parsed['player1_id'], parsed['player2_id']


def create_match(raw_round_id, raw_player1_id, raw_player2_id):
    round_id, player1_id, player2_id = _validate_match_ids(
        raw_round_id, raw_player1_id, raw_player2_id,
    )
    if player1_id == player2_id:
        raise field_error(
            InvalidArgument, 'player2_id',
            'Player 1 and Player 2 cannot be the same person.',
        )

    round_ = db.session.get(Round, round_id)
    if not round_:
        raise field_error(NotFound, 'round_id', 'Round not found.')
    if round_.status == 'completed':
        raise field_error(Conflict, 'round_id', 'This round is already completed.')

    player1 = db.session.get(Player, player1_id)
    if not player1:
        raise field_error(NotFound, 'player1_id', 'Player 1 not found.')
    player2 = db.session.get(Player, player2_id)
    if not player2:
        raise field_error(NotFound, 'player2_id', 'Player 2 not found.')
    for field, label, player in (
        ('player1_id', 'Player 1', player1), ('player2_id', 'Player 2', player2),
    ):
        if is_terminal('player', player.status):
            raise field_error(
                Conflict, field, f'{label} is already {player.status} and cannot play.',
            )

    pairing_key = pairing_key_for(player1_id, player2_id)
    duplicate = Match.query.filter_by(round_id=round_id, pairing_key=pairing_key).first()
    if duplicate:
        raise field_error(Conflict, 'player2_id', _DUPLICATE_PAIRING)

    for field, label, player_id in (
        ('player1_id', 'Player 1', player1_id), ('player2_id', 'Player 2', player2_id),
    ):
        already_drawn = Match.query.filter(
            Match.round_id == round_id,
            (Match.player1_id == player_id) | (Match.player2_id == player_id),
        ).first()
        if already_drawn:
            raise field_error(
                Conflict, field, f'{label} already has a match in this round.',
            )

    existing_count = Match.query.filter_by(round_id=round_id).count()
    match = Match(
        round_id=round_id,
        player1_id=player1_id,
        player2_id=player2_id,
        winner_id=None,
        match_number=existing_count + 1,
        status='pending',
        pairing_key=pairing_key,
    )
    db.session.add(match)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise field_error(Conflict, 'player2_id', _DUPLICATE_PAIRING)

    emit_bracket_update(round_id, 'match_created')
    return match


def resolve_match(raw_match_id, raw_winner_id):
    """Record the winner of a pending match and progress player and round state.

    All writes happen in one transaction. The match row is claimed with a
    conditional update on ``status = 'pending'`` so a second resolution of the
    same match fails with Conflict even under concurrent requests. When no
    pending match remains in the round, the round is closed and, for the final
    round, the winner is crowned champion.

    Returns ``(match, round_completed, champion_id)``.
    """
    match_id = parse_id(raw_match_id)
    if not match_id:
        raise InvalidArgument('Invalid match ID.', status_code=400)
    winner_id = parse_id(raw_winner_id)
    if not winner_id:
        raise InvalidArgument('Invalid winner ID.')

    match = db.session.get(Match, match_id)
    if not match:
        raise NotFound('Match not found.')
    if match.status == 'completed':
        raise Conflict('Match already completed.')
    if winner_id not in match.player_ids():
        raise InvalidArgument('Winner must belong to this match.')

    loser_id = match.player2_id if winner_id == match.player1_id else match.player1_id
    winner = db.session.get(Player, winner_id)
    loser = db.session.get(Player, loser_id)
    if not winner or not loser:
        raise NotFound('Player not found.')

    round_completed = False
    champion_id = None
    try:
        now = utcnow_naive()
        claimed = Match.query.filter_by(id=match.id, status='pending').update(
            {
                'status': transition('match', 'pending', 'completed'),
                'winner_id': winner_id,
                'completed_at': now,
            },
            synchronize_session=False,
        )
        if claimed != 1:
            raise Conflict('Match already completed.')

        winner.status = transition('player', winner.status, 'qualified')
        loser.status = transition('player', loser.status, 'eliminated')
        db.session.flush()

        remaining_pending = Match.query.filter_by(
            round_id=match.round_id, status='pending',
        ).count()
        if remaining_pending == 0:
            round_ = db.session.get(Round, match.round_id)
            round_.status = transition('round', round_.status, 'completed')
            if round_.completed_at is None:
                round_.completed_at = now
            round_completed = True
            if round_.is_final:
                winner.status = transition('player', winner.status, 'champion')
                champion_id = winner.id
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    db.session.refresh(match)
    if round_completed:
        current_app.logger.info('Round %s completed', match.round_id)
    if champion_id:
        current_app.logger.info('Player %s declared champion', champion_id)
    emit_bracket_update(match.round_id, 'match_resolved')
    return match, round_completed, champion_id


# ── Bracket & stats ──────────────────────────────────────────────────


def bracket_snapshot():
    rounds = []
    for round_ in list_rounds():
        matches = Match.query.filter_by(round_id=round_.id).order_by(
            Match.match_number.asc(), Match.id.asc(),
        ).all()
        data = round_.to_dict()
        data['matches'] = [match.to_dict() for match in matches]
        rounds.append(data)
    champion = Player.query.filter_by(status='champion').order_by(Player.id.asc()).first()
    return {
        'rounds': rounds,
        'champion': champion.to_dict() if champion else None,
    }


def dashboard_stats():
    total_players = Player.query.count()
    total_rounds = Round.query.count()
    total_matches = Match.query.count()
    completed_matches = Match.query.filter_by(status='completed').count()
    status_rows = db.session.query(Player.status, func.count(Player.id)).group_by(
        Player.status,
    ).all()
    players_by_status = {status: 0 for status in PLAYER_STATUSES}
    for status, count in status_rows:
        players_by_status[status] = count
    completion = round(completed_matches * 100 / total_matches) if total_matches else 0
    return {
        'total_players': total_players,
        'total_rounds': total_rounds,
        'total_matches': total_matches,
        'completed_matches': completed_matches,
        'completion_percent': completion,
        'players_by_status': players_by_status,
    }
