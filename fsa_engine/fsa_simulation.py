from typing import List, NamedTuple, Optional, Tuple

from .exceptions import NoInitialStateError, UnknownSymbolError
from .fsa_model import EPSILON, FiniteAutomaton
from .fsa_properties import require_deterministic, require_single_initial_state
from .fsa_transformations import epsilon_closure


class SimulationResult(NamedTuple):
    """Outcome of running a DFA over an input string"""
    accepted: bool
    path: List[Tuple[int, str, int]]
    rejection_reason: Optional[str] = None
    rejection_position: Optional[int] = None
    unknown_symbol: Optional[str] = None


def simulate_deterministic_fsa(automaton: FiniteAutomaton, input_string: str) -> SimulationResult:
    """
    Simulates a deterministic automaton with the given input string.

    Each character of the input is one symbol. A missing transition or a symbol
    outside the alphabet rejects the input; the result says where and why.

    Args:
        automaton: A deterministic automaton with exactly one initial state
        input_string: The input string to simulate

    Returns:
        SimulationResult: Whether the input was accepted, plus the executed path
        as (current_state, symbol, next_state) tuples.

    Raises:
        NotDeterministicError: If the automaton is not deterministic
        NoSingleInitialStateError: If it does not have exactly one initial state
    """
    require_deterministic(automaton, "Acceptance testing")
    current_state = require_single_initial_state(automaton)

    alphabet = set(automaton.alphabet)
    delta = {(t.source, t.symbol): t.target for t in automaton.transitions}
    execution_path = []

    for position, symbol in enumerate(input_string):
        if symbol not in alphabet:
            return SimulationResult(
                accepted=False,
                path=execution_path,
                rejection_reason=f"Symbol '{symbol}' not in alphabet",
                rejection_position=position,
                unknown_symbol=symbol
            )

        next_state = delta.get((current_state.id, symbol))
        if next_state is None:
            return SimulationResult(
                accepted=False,
                path=execution_path,
                rejection_reason=f"No transition defined for symbol '{symbol}' from state '{current_state.label}'",
                rejection_position=position
            )

        execution_path.append((current_state.id, symbol, next_state))
        current_state = automaton.get_state(next_state)

    if current_state.is_final:
        return SimulationResult(accepted=True, path=execution_path)

    return SimulationResult(
        accepted=False,
        path=execution_path,
        rejection_reason=f"Final state '{current_state.label}' is not an accepting state",
        rejection_position=len(input_string)
    )


def accepts(automaton: FiniteAutomaton, input_string: str) -> bool:
    """
    Does the deterministic ``automaton`` accept ``input_string``?

    Raises:
        NotDeterministicError, NoSingleInitialStateError: On violated preconditions
        UnknownSymbolError: If the input contains a symbol outside the alphabet
    """
    result = simulate_deterministic_fsa(automaton, input_string)
    if result.unknown_symbol is not None:
        raise UnknownSymbolError(result.unknown_symbol, result.rejection_position)
    return result.accepted


def accepts_nondeterministic(automaton: FiniteAutomaton, input_string: str) -> bool:
    """
    Acceptance under nondeterministic semantics: track the set of possible
    current states, closing it under epsilon moves after every step.
    """
    initial = [state.id for state in automaton.initial_states()]
    if not initial:
        raise NoInitialStateError()

    targets = {}
    for transition in automaton.transitions:
        if not transition.is_epsilon:
            targets.setdefault((transition.source, transition.symbol), set()).add(transition.target)

    current_states = epsilon_closure(automaton, initial)
    for symbol in input_string:
        if symbol == EPSILON:
            return False

        moved = set()
        for state_id in current_states:
            moved |= targets.get((state_id, symbol), set())
        if not moved:
            return False

        current_states = epsilon_closure(automaton, moved)

    return any(automaton.get_state(state_id).is_final for state_id in current_states)
