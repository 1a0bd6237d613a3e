import json
import logging
from typing import Dict

from .exceptions import MalformedSnapshotError
from .fsa_model import EPSILON, FiniteAutomaton, State, Transition, is_blank_symbol

logger = logging.getLogger(__name__)

# Keys of a state entry the engine interprets; everything else is presentation metadata
STATE_KEYS = ('id', 'isInitial', 'isFinal')


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_snapshot(snapshot) -> Dict:
    """
    Validates an automaton snapshot before it is loaded.

    Checks the schema (``states`` and ``transitions`` lists, integer ids, boolean
    flags, non-blank symbols) and referential integrity (unique ids, transitions
    between existing states, a ``currentStateId`` above every id in use).

    Args:
        snapshot: The decoded JSON value

    Returns:
        Dict: Validation result with 'valid' boolean and optional 'error' message
    """
    if not isinstance(snapshot, dict):
        return {'valid': False, 'error': 'Snapshot must be an object'}

    for key in ('states', 'transitions'):
        if key not in snapshot:
            return {'valid': False, 'error': f'Missing required key: {key}'}
        if not isinstance(snapshot[key], list):
            return {'valid': False, 'error': f'{key} must be a list'}

    state_ids = set()
    for entry in snapshot['states']:
        if not isinstance(entry, dict):
            return {'valid': False, 'error': 'Each state must be an object'}
        if not _is_int(entry.get('id')) or entry['id'] < 0:
            return {'valid': False, 'error': f"State id must be a non-negative integer, got {entry.get('id')!r}"}
        if entry['id'] in state_ids:
            return {'valid': False, 'error': f"Duplicate state id {entry['id']}"}
        for flag in ('isInitial', 'isFinal'):
            if not isinstance(entry.get(flag), bool):
                return {'valid': False, 'error': f"State {entry['id']}: {flag} must be a boolean"}
        state_ids.add(entry['id'])

    for entry in snapshot['transitions']:
        if not isinstance(entry, dict):
            return {'valid': False, 'error': 'Each transition must be an object'}
        for endpoint in ('from', 'to'):
            if not _is_int(entry.get(endpoint)) or entry[endpoint] not in state_ids:
                return {'valid': False, 'error': f"Transition references unknown state {entry.get(endpoint)!r}"}
        if is_blank_symbol(entry.get('symbol')):
            return {'valid': False, 'error': f"Transition symbol must be a non-blank string, got {entry.get('symbol')!r}"}

    alphabet = snapshot.get('alphabet', [])
    if not isinstance(alphabet, list) or not all(isinstance(symbol, str) for symbol in alphabet):
        return {'valid': False, 'error': 'alphabet must be a list of strings'}

    if 'currentStateId' in snapshot:
        counter = snapshot['currentStateId']
        if not _is_int(counter):
            return {'valid': False, 'error': 'currentStateId must be an integer'}
        if counter < 0:
            return {'valid': False, 'error': 'currentStateId must be a non-negative integer'}
        if state_ids and counter <= max(state_ids):
            return {'valid': False, 'error': f'currentStateId {counter} would reuse an existing state id'}

    return {'valid': True}


def automaton_from_snapshot(snapshot) -> FiniteAutomaton:
    """
    Builds an automaton from a snapshot dictionary.

    The whole snapshot is validated first; nothing is built from a snapshot that
    fails validation. The stored alphabet is not trusted; the loaded automaton
    derives its own from the transitions.

    Raises:
        MalformedSnapshotError: If the snapshot fails validation
    """
    validation = validate_snapshot(snapshot)
    if not validation['valid']:
        raise MalformedSnapshotError(validation['error'])

    states = [
        State(
            id=entry['id'],
            is_initial=entry['isInitial'],
            is_final=entry['isFinal'],
            metadata={key: value for key, value in entry.items() if key not in STATE_KEYS}
        )
        for entry in snapshot['states']
    ]
    transitions = [
        Transition(entry['from'], entry['to'], entry['symbol'])
        for entry in snapshot['transitions']
    ]
    next_state_id = snapshot.get('currentStateId', max((s.id for s in states), default=-1) + 1)

    automaton = FiniteAutomaton.from_parts(states, transitions, next_state_id)

    stored_alphabet = snapshot.get('alphabet')
    if stored_alphabet is not None and set(stored_alphabet) - {EPSILON} != set(automaton.alphabet):
        logger.debug("Snapshot alphabet %r differs from derived alphabet %r",
                     stored_alphabet, automaton.alphabet)

    return automaton


def automaton_to_snapshot(automaton: FiniteAutomaton) -> Dict:
    """Serialises an automaton to the snapshot schema. Coordinates default to 0 when absent."""
    states = []
    for state in automaton.states:
        entry = {
            'id': state.id,
            'x': state.metadata.get('x', 0),
            'y': state.metadata.get('y', 0),
            'isInitial': state.is_initial,
            'isFinal': state.is_final,
        }
        for key, value in state.metadata.items():
            entry.setdefault(key, value)
        states.append(entry)

    return {
        'states': states,
        'transitions': [
            {'from': t.source, 'to': t.target, 'symbol': t.symbol}
            for t in automaton.transitions
        ],
        'alphabet': automaton.alphabet,
        'currentStateId': automaton.next_state_id
    }


def loads_automaton(data: str) -> FiniteAutomaton:
    """Parse a JSON document into an automaton."""
    try:
        snapshot = json.loads(data)
    except json.JSONDecodeError as e:
        raise MalformedSnapshotError(f'invalid JSON: {e.msg}') from e
    return automaton_from_snapshot(snapshot)


def dumps_automaton(automaton: FiniteAutomaton, indent: int = 2) -> str:
    return json.dumps(automaton_to_snapshot(automaton), indent=indent, ensure_ascii=False)
