from backend.app import db
from backend.time_utils import utcnow_naive

PLAYER_GENDERS = ('Male', 'Female', 'Other')
PLAYER_GRADES = (
    'Class 2', 'Class 3', 'Class 4', 'Class 5', 'Class 6', 'Class 7',
    'Class 8', 'Class 9', 'Class 10', 'Class 11', 'Class 12', '12 Passout',
)
PLAYER_STATUSES = ('registered', 'qualified', 'eliminated', 'champion')


def pairing_key_for(player1_id, player2_id):
    """Order-independent key for a player pairing."""
    low, high = sorted((int(player1_id), int(player2_id)))
    return f'{low}:{high}'


class Player(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    full_name = db.Column(db.String(200), nullable=False)
    age = db.Column(db.Integer, nullable=False)
    gender = db.Column(db.String(10), nullable=False)
    dob = db.Column(db.Date, nullable=False)
    grade = db.Column(db.String(20), nullable=False)
    school_name = db.Column(db.String(300), default='')
    mobile = db.Column(db.String(10), unique=True, nullable=False)
    status = db.Column(db.String(20), default='registered', nullable=False)
    # registered, qualified, eliminated, champion
    created_at = db.Column(db.DateTime, default=lambda: utcnow_naive())

    __table_args__ = (
        db.CheckConstraint('age >= 1 AND age <= 18', name='ck_player_age_range'),
        db.Index('ix_player_status_created', 'status', 'created_at'),
    )

    def to_dict(self, include_contact=False):
        data = {
            'id': self.id, 'full_name': self.full_name, 'age': self.age,
            'gender': self.gender, 'grade': self.grade,
            'school_name': self.school_name, 'status': self.status,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
        if include_contact:
            data['dob'] = self.dob.isoformat() if self.dob else None
            data['mobile'] = self.mobile
        return data

    def to_brief_dict(self):
        return {
            'id': self.id, 'full_name': self.full_name,
            'grade': self.grade, 'school_name': self.school_name,
        }


class Round(db.Model):
    """One knockout stage; owns its matches."""
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    # Lower-cased name; backs case-insensitive uniqueness at the storage layer.
    name_key = db.Column(db.String(120), unique=True, nullable=False)
    status = db.Column(db.String(20), default='ongoing', nullable=False)
    # upcoming, ongoing, completed
    is_final = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, default=lambda: utcnow_naive())
    completed_at = db.Column(db.DateTime, nullable=True)

    matches = db.relationship(
        'Match',
        backref='round',
        lazy='select',
        cascade='all, delete-orphan',
        order_by='Match.match_number',
    )

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'status': self.status,
            'is_final': self.is_final,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'completed_at': self.completed_at.isoformat() if self.completed_at else None,
        }


class Match(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    round_id = db.Column(db.Integer, db.ForeignKey('round.id'), nullable=False, index=True)
    player1_id = db.Column(db.Integer, db.ForeignKey('player.id'), nullable=False)
    player2_id = db.Column(db.Integer, db.ForeignKey('player.id'), nullable=False)
    winner_id = db.Column(db.Integer, db.ForeignKey('player.id'), nullable=True)
    match_number = db.Column(db.Integer, nullable=False)
    status = db.Column(db.String(20), default='pending', nullable=False)  # pending, completed
    pairing_key = db.Column(db.String(40), nullable=False)
    created_at = db.Column(db.DateTime, default=lambda: utcnow_naive())
    completed_at = db.Column(db.DateTime, nullable=True)

    __table_args__ = (
        db.UniqueConstraint('round_id', 'pairing_key', name='uq_match_round_pairing'),
        db.CheckConstraint('player1_id != player2_id', name='ck_match_distinct_players'),
        db.CheckConstraint('match_number >= 1', name='ck_match_number_positive'),
        db.Index('ix_match_round_status', 'round_id', 'status'),
    )

    player1 = db.relationship('Player', foreign_keys=[player1_id])
    player2 = db.relationship('Player', foreign_keys=[player2_id])
    winner = db.relationship('Player', foreign_keys=[winner_id])

    def player_ids(self):
        return (self.player1_id, self.player2_id)

    def to_dict(self, include_round=False):
        data = {
            'id': self.id,
            'round_id': self.round_id,
            'match_number': self.match_number,
            'status': self.status,
            'player1_id': self.player1_id,
            'player2_id': self.player2_id,
            'winner_id': self.winner_id,
            'player1': self.player1.to_brief_dict() if self.player1 else None,
            'player2': self.player2.to_brief_dict() if self.player2 else None,
            'winner': (
                {'id': self.winner.id, 'full_name': self.winner.full_name}
                if self.winner else None
            ),
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'completed_at': self.completed_at.isoformat() if self.completed_at else None,
        }
        if include_round:
            data['round'] = (
                {'id': self.round.id, 'name': self.round.name, 'status': self.round.status}
                if self.round else None
            )
        return data
