from typing import Dict, Set, Tuple
from collections import deque

from .exceptions import NotDeterministicError, NoSingleInitialStateError
from .fsa_model import FiniteAutomaton, State


def is_deterministic(automaton: FiniteAutomaton) -> bool:
    """
    Checks if the automaton is deterministic.

    An automaton is deterministic if:
    1. It has no epsilon transitions
    2. Every (state, symbol) pair has at most one outgoing transition.
       A repeated transition counts as a second one.

    Args:
        automaton: The automaton to classify

    Returns:
        bool: True if the automaton is a DFA, False otherwise
    """
    seen: Set[Tuple[int, str]] = set()

    for transition in automaton.transitions:
        if transition.is_epsilon:
            return False

        key = (transition.source, transition.symbol)
        if key in seen:
            return False
        seen.add(key)

    return True


def is_nondeterministic(automaton: FiniteAutomaton) -> bool:
    return not is_deterministic(automaton)


def is_complete(automaton: FiniteAutomaton) -> bool:
    """
    Checks if every state has at least one transition on every alphabet symbol.
    Epsilon transitions are ignored. An automaton without states or without an
    alphabet is trivially complete.
    """
    alphabet = automaton.alphabet
    if not automaton.states or not alphabet:
        return True

    defined = {
        (t.source, t.symbol) for t in automaton.transitions if not t.is_epsilon
    }
    for state in automaton.states:
        for symbol in alphabet:
            if (state.id, symbol) not in defined:
                return False

    return True


def is_connected(automaton: FiniteAutomaton) -> bool:
    """
    Checks if every state is reachable from the initial state(s), following
    epsilon transitions as well as symbol transitions.
    """
    states = automaton.states
    if len(states) <= 1:
        return True

    initial = [state.id for state in automaton.initial_states()]
    if not initial:
        return False

    successors = {}
    for transition in automaton.transitions:
        successors.setdefault(transition.source, set()).add(transition.target)

    # BFS from the initial state(s)
    reachable = set(initial)
    queue = deque(initial)
    while queue:
        current = queue.popleft()
        for next_state in successors.get(current, ()):
            if next_state not in reachable:
                reachable.add(next_state)
                queue.append(next_state)

    return len(reachable) == len(states)


def check_all_properties(automaton: FiniteAutomaton) -> Dict:
    """
    Check all automaton properties at once.

    Returns:
        Dict: {'deterministic': bool, 'complete': bool, 'connected': bool}
    """
    return {
        'deterministic': is_deterministic(automaton),
        'complete': is_complete(automaton),
        'connected': is_connected(automaton)
    }


def summarise_automaton(automaton: FiniteAutomaton) -> Dict:
    """Counts, alphabet, initial state and final states, as shown in an editor's properties panel."""
    initial = automaton.initial_states()
    return {
        'states_count': len(automaton.states),
        'transitions_count': len(automaton.transitions),
        'alphabet': automaton.alphabet,
        'initial_state': initial[0].id if len(initial) == 1 else None,
        'final_states': [state.id for state in automaton.final_states()],
        'has_epsilon_transitions': any(t.is_epsilon for t in automaton.transitions)
    }


def require_deterministic(automaton: FiniteAutomaton, operation: str) -> None:
    if not is_deterministic(automaton):
        raise NotDeterministicError(f"{operation} requires a deterministic automaton")


def require_single_initial_state(automaton: FiniteAutomaton) -> State:
    initial = automaton.initial_states()
    if len(initial) != 1:
        raise NoSingleInitialStateError(len(initial))
    return initial[0]
