from fsa_engine.exceptions import UnknownSymbolError
from fsa_engine.fsa_model import FiniteAutomaton
from fsa_engine.fsa_simulation import accepts


def build_automaton(state_count, transitions, initial=0, final=()):
    """
    Build an automaton with states 0..state_count-1.

    ``transitions`` are (from, symbol, to) triples; ``initial`` may be None.
    """
    automaton = FiniteAutomaton()
    for index in range(state_count):
        automaton.add_state(is_initial=index == initial, is_final=index in final)
    for source, symbol, target in transitions:
        automaton.add_transition(source, target, symbol)
    return automaton


def dfa_accepts(dfa, input_string):
    """Like accepts(), but a symbol outside the alphabet simply rejects."""
    try:
        return accepts(dfa, input_string)
    except UnknownSymbolError:
        return False
