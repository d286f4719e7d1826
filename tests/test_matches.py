"""Tests for match creation and listing."""
import json

import pytest

from backend.app import db
from backend.models import Match


def _create_round(client, headers, name='Round 1'):
    res = client.post('/api/rounds', json={'name': name}, headers=headers)
    return json.loads(res.data)['round']['id']


def _create_match(client, headers, round_id, player1_id, player2_id):
    return client.post('/api/matches', json={
        'round_id': round_id, 'player1_id': player1_id, 'player2_id': player2_id,
    }, headers=headers)


def test_create_match(client, admin_headers, make_player):
    round_id = _create_round(client, admin_headers)
    p1 = make_player(full_name='Aarav').id
    p2 = make_player(full_name='Diya').id

    res = _create_match(client, admin_headers, round_id, p1, p2)
    assert res.status_code == 201
    match = json.loads(res.data)['match']
    assert match['match_number'] == 1
    assert match['status'] == 'pending'
    assert match['winner_id'] is None
    assert match['player1']['full_name'] == 'Aarav'
    assert match['player2']['full_name'] == 'Diya'
    assert match['round'] == {'id': round_id, 'name': 'Round 1', 'status': 'ongoing'}


def test_create_match_requires_admin(client, admin_headers, make_player):
    round_id = _create_round(client, admin_headers)
    res = _create_match(client, {}, round_id, make_player().id, make_player().id)
    assert res.status_code == 401


def test_match_numbers_are_sequential_within_round(client, admin_headers, make_player):
    round_one = _create_round(client, admin_headers, 'Round 1')
    round_two = _create_round(client, admin_headers, 'Round 2')
    players = [make_player().id for _ in range(6)]

    numbers = []
    for i in range(0, 6, 2):
        res = _create_match(client, admin_headers, round_one, players[i], players[i + 1])
        numbers.append(json.loads(res.data)['match']['match_number'])
    assert numbers == [1, 2, 3]

    res = _create_match(client, admin_headers, round_two, players[0], players[2])
    assert json.loads(res.data)['match']['match_number'] == 1


def test_create_match_same_player_is_invalid(client, admin_headers, make_player):
    round_id = _create_round(client, admin_headers)
    p1 = make_player().id

    res = _create_match(client, admin_headers, round_id, p1, p1)
    assert res.status_code == 422
    assert 'player2_id' in json.loads(res.data)['errors']


def test_create_match_same_player_is_invalid_even_for_missing_round(client, admin_headers, make_player):
    p1 = make_player().id
    res = _create_match(client, admin_headers, 9999, p1, p1)
    assert res.status_code == 422


def test_create_match_missing_and_malformed_ids(client, admin_headers):
    res = client.post('/api/matches', json={}, headers=admin_headers)
    assert res.status_code == 422
    errors = json.loads(res.data)['errors']
    assert set(errors) == {'round_id', 'player1_id', 'player2_id'}

    res = _create_match(client, admin_headers, 'abc', -1, 'x1')
    assert res.status_code == 422
    errors = json.loads(res.data)['errors']
    assert errors['round_id'] == 'Invalid Round ID.'
    assert errors['player1_id'] == 'Invalid Player 1 ID.'


def test_create_match_unknown_round_and_players(client, admin_headers, make_player):
    round_id = _create_round(client, admin_headers)
    p1 = make_player().id

    res = _create_match(client, admin_headers, 9999, p1, 8888)
    assert res.status_code == 404
    assert 'round_id' in json.loads(res.data)['errors']

    res = _create_match(client, admin_headers, round_id, 8888, p1)
    assert res.status_code == 404
    assert 'player1_id' in json.loads(res.data)['errors']

    res = _create_match(client, admin_headers, round_id, p1, 8888)
    assert res.status_code == 404
    assert 'player2_id' in json.loads(res.data)['errors']


def test_duplicate_pairing_rejected_in_either_order(client, admin_headers, make_player):
    round_id = _create_round(client, admin_headers)
    p1, p2 = make_player().id, make_player().id

    assert _create_match(client, admin_headers, round_id, p1, p2).status_code == 201
    again = _create_match(client, admin_headers, round_id, p1, p2)
    assert again.status_code == 409
    assert 'player2_id' in json.loads(again.data)['errors']

    reversed_ = _create_match(client, admin_headers, round_id, p2, p1)
    assert reversed_.status_code == 409
    assert Match.query.filter_by(round_id=round_id).count() == 1


def test_same_pairing_allowed_in_different_round(client, admin_headers, make_player):
    round_one = _create_round(client, admin_headers, 'Round 1')
    round_two = _create_round(client, admin_headers, 'Round 2')
    p1, p2 = make_player().id, make_player().id

    assert _create_match(client, admin_headers, round_one, p1, p2).status_code == 201
    assert _create_match(client, admin_headers, round_two, p2, p1).status_code == 201


def test_pairing_unique_constraint_backs_the_precheck(app, make_player):
    from sqlalchemy.exc import IntegrityError
    from backend.models import Round, pairing_key_for

    round_ = Round(name='Round 1', name_key='round 1', status='ongoing')
    db.session.add(round_)
    db.session.commit()
    p1, p2 = make_player().id, make_player().id

    db.session.add(Match(
        round_id=round_.id, player1_id=p1, player2_id=p2, match_number=1,
        pairing_key=pairing_key_for(p1, p2),
    ))
    db.session.commit()
    db.session.add(Match(
        round_id=round_.id, player1_id=p2, player2_id=p1, match_number=2,
        pairing_key=pairing_key_for(p2, p1),
    ))
    with pytest.raises(IntegrityError):
        db.session.commit()
    db.session.rollback()


def test_create_match_in_completed_round_is_conflict(client, admin_headers, make_player):
    round_id = _create_round(client, admin_headers)
    p1, p2, p3 = make_player().id, make_player().id, make_player().id
    match_id = json.loads(_create_match(client, admin_headers, round_id, p1, p2).data)['match']['id']
    client.patch(f'/api/matches/{match_id}', json={'winner_id': p1}, headers=admin_headers)

    res = _create_match(client, admin_headers, round_id, p1, p3)
    assert res.status_code == 409


def test_list_matches_for_round(client, admin_headers, make_player):
    round_id = _create_round(client, admin_headers)
    players = [make_player().id for _ in range(4)]
    _create_match(client, admin_headers, round_id, players[0], players[1])
    _create_match(client, admin_headers, round_id, players[2], players[3])

    res = client.get(f'/api/matches?round_id={round_id}')
    assert res.status_code == 200
    data = json.loads(res.data)
    assert data['count'] == 2
    assert [m['match_number'] for m in data['matches']] == [1, 2]
    assert data['matches'][0]['player1']['school_name'] == 'Test School'


def test_list_matches_validates_round_id(client):
    assert client.get('/api/matches').status_code == 400
    assert client.get('/api/matches?round_id=abc').status_code == 400
    empty = client.get('/api/matches?round_id=42')
    assert empty.status_code == 200
    assert json.loads(empty.data)['matches'] == []


def test_create_match_rejects_finished_players(client, admin_headers, make_player):
    round_id = _create_round(client, admin_headers)
    active = make_player().id
    out = make_player(status='eliminated').id
    winner = make_player(status='champion').id

    res = _create_match(client, admin_headers, round_id, out, active)
    assert res.status_code == 409
    assert 'player1_id' in json.loads(res.data)['errors']

    res = _create_match(client, admin_headers, round_id, active, winner)
    assert res.status_code == 409
    assert 'player2_id' in json.loads(res.data)['errors']
    assert Match.query.filter_by(round_id=round_id).count() == 0


def test_create_match_rejects_player_already_drawn_in_round(client, admin_headers, make_player):
    round_id = _create_round(client, admin_headers)
    p1, p2, p3 = make_player().id, make_player().id, make_player().id
    assert _create_match(client, admin_headers, round_id, p1, p2).status_code == 201

    res = _create_match(client, admin_headers, round_id, p3, p2)
    assert res.status_code == 409
    assert json.loads(res.data)['errors']['player2_id'] == 'Player 2 already has a match in this round.'
