from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, NamedTuple, Optional

from .exceptions import RejectedTransitionError, UnknownStateError

# Reserved symbol for epsilon (empty-string) moves
EPSILON = 'ε'


@dataclass(frozen=True)
class State:
    """
    A state of a finite automaton.

    ``metadata`` holds presentation data supplied by an editor (x, y, radius, ...).
    The engine copies it around but never reads it.
    """
    id: int
    is_initial: bool = False
    is_final: bool = False
    metadata: Dict = field(default_factory=dict, compare=False, hash=False)

    @property
    def label(self) -> str:
        return f"q{self.id}"


class Transition(NamedTuple):
    source: int
    target: int
    symbol: str

    @property
    def is_epsilon(self) -> bool:
        return self.symbol == EPSILON


def is_blank_symbol(symbol) -> bool:
    """A symbol is blank if it is not a string or contains only whitespace."""
    return not isinstance(symbol, str) or symbol.strip() == ''


class FiniteAutomaton:
    """
    Mutable finite automaton: states keyed by id, an ordered list of transitions
    and a derived alphabet.

    State ids come from a monotonically increasing counter, so an id is never
    reused after its state is deleted. Every transition references existing states.
    """

    def __init__(self):
        self._states: Dict[int, State] = {}
        self._transitions: List[Transition] = []
        self._next_state_id = 0

    def __repr__(self):
        return (f"FiniteAutomaton(states={[s.label for s in self._states.values()]}, "
                f"transitions={len(self._transitions)})")

    @staticmethod
    def _detached(state: State) -> State:
        return replace(state, metadata=dict(state.metadata))

    @property
    def states(self) -> List[State]:
        """Copies of the stored states; editing their metadata does not touch the automaton."""
        return [self._detached(state) for state in self._states.values()]

    @property
    def transitions(self) -> List[Transition]:
        return list(self._transitions)

    @property
    def alphabet(self) -> List[str]:
        """
        Distinct non-epsilon symbols in order of first appearance.

        Computed from the transition list on every access so it can never drift
        out of sync with it.
        """
        symbols = []
        seen = set()
        for transition in self._transitions:
            if transition.is_epsilon or transition.symbol in seen:
                continue
            seen.add(transition.symbol)
            symbols.append(transition.symbol)
        return symbols

    @property
    def next_state_id(self) -> int:
        return self._next_state_id

    def has_state(self, state_id) -> bool:
        return state_id in self._states

    def get_state(self, state_id) -> Optional[State]:
        state = self._states.get(state_id)
        return None if state is None else self._detached(state)

    def initial_states(self) -> List[State]:
        return [state for state in self.states if state.is_initial]

    def final_states(self) -> List[State]:
        return [state for state in self.states if state.is_final]

    def _require_state(self, state_id):
        if state_id not in self._states:
            raise UnknownStateError(state_id)

    def add_state(self, is_initial: bool = False, is_final: bool = False,
                  metadata: Optional[Dict] = None) -> int:
        """
        Add a new state and return its id.

        Args:
            is_initial: Make the new state the (only) initial state.
            is_final: Mark the new state as accepting.
            metadata: Opaque presentation data stored with the state.

        Returns:
            int: The id assigned to the state.
        """
        state_id = self._next_state_id
        self._next_state_id += 1
        self._states[state_id] = State(state_id, False, is_final, dict(metadata or {}))
        if is_initial:
            self.set_initial_state(state_id)
        return state_id

    def add_transition(self, source: int, target: int, symbol: str,
                       strict: bool = False) -> Optional[Transition]:
        """
        Add a transition from ``source`` to ``target`` labelled ``symbol``.

        Blank symbols are refused: the call returns None and the transition
        list is left untouched (or RejectedTransitionError is raised when
        ``strict`` is set).

        Raises:
            UnknownStateError: If either endpoint does not exist.
        """
        self._require_state(source)
        self._require_state(target)

        if is_blank_symbol(symbol):
            if strict:
                raise RejectedTransitionError(symbol)
            return None

        transition = Transition(source, target, symbol)
        self._transitions.append(transition)
        return transition

    def set_initial_state(self, state_id: int) -> None:
        """Make ``state_id`` the initial state, clearing the flag on every other state."""
        self._require_state(state_id)
        for current_id, state in list(self._states.items()):
            self._states[current_id] = replace(state, is_initial=current_id == state_id)

    def toggle_final(self, state_id: int) -> Optional[bool]:
        """Flip the final flag of a state. Unknown ids are ignored (returns None)."""
        state = self._states.get(state_id)
        if state is None:
            return None
        self._states[state_id] = replace(state, is_final=not state.is_final)
        return not state.is_final

    def delete_state(self, state_id: int) -> bool:
        """Remove a state and every transition entering or leaving it."""
        if state_id not in self._states:
            return False
        del self._states[state_id]
        self._transitions = [
            t for t in self._transitions
            if t.source != state_id and t.target != state_id
        ]
        return True

    def delete_transition(self, source: int, target: int, symbol: str) -> int:
        """Remove every transition matching all three fields. Returns how many were removed."""
        kept = [t for t in self._transitions if t != (source, target, symbol)]
        removed = len(self._transitions) - len(kept)
        self._transitions = kept
        return removed

    def set_transition_symbols(self, source: int, target: int,
                               symbols: Iterable[str]) -> List[Transition]:
        """
        Replace all transitions between ``source`` and ``target`` with one
        transition per symbol. Blank symbols are skipped.

        Returns:
            List[Transition]: The transitions that were added.
        """
        self._require_state(source)
        self._require_state(target)
        symbols = list(symbols)

        self._transitions = [
            t for t in self._transitions
            if not (t.source == source and t.target == target)
        ]

        added = []
        for symbol in symbols:
            transition = self.add_transition(source, target, symbol)
            if transition is not None:
                added.append(transition)
        return added

    def copy(self) -> 'FiniteAutomaton':
        clone = FiniteAutomaton()
        clone._states = {
            state_id: self._detached(state)
            for state_id, state in self._states.items()
        }
        clone._transitions = list(self._transitions)
        clone._next_state_id = self._next_state_id
        return clone

    @classmethod
    def from_parts(cls, states: Iterable[State], transitions: Iterable[Transition],
                   next_state_id: int) -> 'FiniteAutomaton':
        """
        Build an automaton from already-validated parts (used by the snapshot loader).

        Raises:
            UnknownStateError: If a transition references a missing state.
        """
        automaton = cls()
        for state in states:
            automaton._states[state.id] = state
        for transition in transitions:
            automaton._require_state(transition.source)
            automaton._require_state(transition.target)
            automaton._transitions.append(Transition(*transition))
        automaton._next_state_id = next_state_id
        return automaton
