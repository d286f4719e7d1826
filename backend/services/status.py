"""Status state machines for players, rounds, and matches."""
from backend.services.errors import Conflict

PLAYER_TRANSITIONS = {
    'registered': {'qualified', 'eliminated'},
    'qualified': {'qualified', 'eliminated', 'champion'},
    # Losing again keeps an eliminated player eliminated.
    'eliminated': {'eliminated'},
    'champion': set(),
}

# completed -> completed keeps concurrent round closure idempotent.
ROUND_TRANSITIONS = {
    'upcoming': {'ongoing'},
    'ongoing': {'completed'},
    'completed': {'completed'},
}

MATCH_TRANSITIONS = {
    'pending': {'completed'},
    'completed': set(),
}

MACHINES = {
    'player': PLAYER_TRANSITIONS,
    'round': ROUND_TRANSITIONS,
    'match': MATCH_TRANSITIONS,
}


class IllegalTransition(Conflict):
    def __init__(self, machine, current, target):
        super().__init__(f'Cannot move {machine} from "{current}" to "{target}".')
        self.machine = machine
        self.current = current
        self.target = target


def can_transition(machine, current, target):
    return target in MACHINES[machine].get(current, set())


def transition(machine, current, target):
    """Return ``target`` if the move is legal for ``machine``, else raise."""
    if not can_transition(machine, current, target):
        raise IllegalTransition(machine, current, target)
    return target


def is_terminal(machine, status):
    allowed = MACHINES[machine].get(status, set())
    return not (allowed - {status})
