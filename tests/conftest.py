import itertools
from datetime import date

import pytest
from backend.app import create_app, db


@pytest.fixture
def app():
    app = create_app('testing')
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin_headers(client):
    """Log in with the shared admin password and return auth headers."""
    res = client.post('/api/admin/login', json={'password': 'test-admin-pass'})
    token = res.get_json()['token']
    return {'Authorization': f'Bearer {token}', 'Content-Type': 'application/json'}


@pytest.fixture
def make_player(app):
    """Factory creating players directly in the database."""
    from backend.models import Player
    counter = itertools.count(1)

    def _make(full_name=None, status='registered', **overrides):
        n = next(counter)
        fields = {
            'full_name': full_name or f'Player {n}',
            'age': 12, 'gender': 'Male', 'dob': date(2013, 1, 1),
            'grade': 'Class 7', 'school_name': 'Test School',
            'mobile': f'9{n:09d}', 'status': status,
        }
        fields.update(overrides)
        player = Player(**fields)
        db.session.add(player)
        db.session.commit()
        return player

    return _make
