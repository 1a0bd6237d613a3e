import logging
from typing import Callable, Dict, FrozenSet, Iterable, List, NamedTuple, Optional, Set, Tuple
from collections import defaultdict, deque

from .exceptions import NoInitialStateError, NoSingleInitialStateError
from .fsa_model import FiniteAutomaton
from .fsa_properties import is_deterministic, require_deterministic, require_single_initial_state

logger = logging.getLogger(__name__)

# Maps the index of a newly created state to its (x, y) position
Placement = Callable[[int], Tuple[float, float]]

# Signature entry for "no transition on this symbol"
NO_TRANSITION = -1


def staggered_placement(index: int) -> Tuple[float, float]:
    """Lay states out left to right, alternating between two rows."""
    return 50 + index * 100, 50 + (index % 2) * 150


def _placement_metadata(placement: Optional[Placement], index: int) -> Dict:
    if placement is None:
        return {}
    x, y = placement(index)
    return {'x': x, 'y': y}


def _epsilon_targets(automaton: FiniteAutomaton) -> Dict[int, Set[int]]:
    targets = defaultdict(set)
    for transition in automaton.transitions:
        if transition.is_epsilon:
            targets[transition.source].add(transition.target)
    return targets


def _symbol_targets(automaton: FiniteAutomaton) -> Dict[Tuple[int, str], Set[int]]:
    targets = defaultdict(set)
    for transition in automaton.transitions:
        if not transition.is_epsilon:
            targets[(transition.source, transition.symbol)].add(transition.target)
    return targets


def _closure(epsilon_targets: Dict[int, Set[int]], state_ids: Iterable[int]) -> FrozenSet[int]:
    closure = set(state_ids)

    # Grow the set until a pass adds nothing
    while True:
        additions = set()
        for state_id in closure:
            additions |= epsilon_targets.get(state_id, set()) - closure
        if not additions:
            return frozenset(closure)
        closure |= additions


def epsilon_closure(automaton: FiniteAutomaton, state_ids: Iterable[int]) -> FrozenSet[int]:
    """
    Compute the set of states reachable from ``state_ids`` using only epsilon transitions.

    Args:
        automaton: The automaton whose epsilon transitions are followed
        state_ids: The starting set of state ids (always part of the closure)

    Returns:
        FrozenSet[int]: The epsilon closure
    """
    return _closure(_epsilon_targets(automaton), state_ids)


def subset_key(state_ids: Iterable[int]) -> Tuple[int, ...]:
    """Canonical key of a set of states: sorted ids without duplicates."""
    return tuple(sorted(set(state_ids)))


class SubsetConstruction(NamedTuple):
    """A DFA built by subset construction, with the source states behind each DFA state"""
    dfa: FiniteAutomaton
    subsets: Dict[int, Tuple[int, ...]]


def subset_construction(nfa: FiniteAutomaton,
                        placement: Optional[Placement] = None) -> SubsetConstruction:
    """
    Converts an NFA (epsilon transitions allowed) into an equivalent DFA using
    the worklist subset construction.

    Args:
        nfa: The automaton to convert. It is not modified.
        placement: Optional strategy giving coordinates to the new states.

    Returns:
        SubsetConstruction: The DFA and, for each DFA state id, the sorted ids of
        the source states it stands for.

    Raises:
        NoInitialStateError: If the source has no initial state
        NoSingleInitialStateError: If the source has several initial states
    """
    initial_states = nfa.initial_states()
    if not initial_states:
        raise NoInitialStateError()
    if len(initial_states) > 1:
        raise NoSingleInitialStateError(len(initial_states))

    epsilon_targets = _epsilon_targets(nfa)
    symbol_targets = _symbol_targets(nfa)
    final_ids = {state.id for state in nfa.final_states()}
    alphabet = nfa.alphabet

    dfa = FiniteAutomaton()
    dfa_state_map: Dict[Tuple[int, ...], int] = {}

    def allocate(key: Tuple[int, ...]) -> int:
        dfa_state_id = dfa.add_state(
            is_final=any(state_id in final_ids for state_id in key),
            metadata=_placement_metadata(placement, len(dfa_state_map))
        )
        dfa_state_map[key] = dfa_state_id
        return dfa_state_id

    start_key = subset_key(_closure(epsilon_targets, [initial_states[0].id]))
    dfa.set_initial_state(allocate(start_key))

    queue = deque([start_key])
    while queue:
        current_key = queue.popleft()
        current_dfa_state = dfa_state_map[current_key]

        for symbol in alphabet:
            moved = set()
            for state_id in current_key:
                moved |= symbol_targets.get((state_id, symbol), set())

            if not moved:
                continue

            target_key = subset_key(_closure(epsilon_targets, moved))
            if target_key not in dfa_state_map:
                allocate(target_key)
                queue.append(target_key)

            dfa.add_transition(current_dfa_state, dfa_state_map[target_key], symbol)

    logger.debug("Subset construction: %d source states -> %d DFA states",
                 len(nfa.states), len(dfa.states))

    subsets = {dfa_state_id: key for key, dfa_state_id in dfa_state_map.items()}
    return SubsetConstruction(dfa, subsets)


def nfa_to_dfa(nfa: FiniteAutomaton, placement: Optional[Placement] = None) -> FiniteAutomaton:
    """
    Returns a DFA equivalent to ``nfa``.

    A deterministic input is returned as is (the same object); anything else goes
    through subset_construction and yields a new automaton.
    """
    if is_deterministic(nfa):
        return nfa
    return subset_construction(nfa, placement).dfa


def reachable_state_ids(automaton: FiniteAutomaton, roots: Iterable[int]) -> Set[int]:
    """Ids of all states reachable from ``roots`` over any transition."""
    successors = defaultdict(set)
    for transition in automaton.transitions:
        successors[transition.source].add(transition.target)

    reachable = set(roots)
    queue = deque(reachable)
    while queue:
        current = queue.popleft()
        for target in successors[current]:
            if target not in reachable:
                reachable.add(target)
                queue.append(target)

    return reachable


def remove_unreachable_states(automaton: FiniteAutomaton) -> FiniteAutomaton:
    """Return a copy without the states that cannot be reached from the initial state(s)."""
    roots = [state.id for state in automaton.initial_states()]
    reachable = reachable_state_ids(automaton, roots)

    pruned = automaton.copy()
    for state in automaton.states:
        if state.id not in reachable:
            pruned.delete_state(state.id)
    return pruned


def _refine_partition(dfa: FiniteAutomaton, alphabet: List[str],
                      delta: Dict[Tuple[int, str], int]) -> List[List[int]]:
    final = [state.id for state in dfa.states if state.is_final]
    non_final = [state.id for state in dfa.states if not state.is_final]
    partition = [block for block in (final, non_final) if block]

    changed = True
    while changed:
        changed = False
        block_index = {
            state_id: index
            for index, block in enumerate(partition)
            for state_id in block
        }

        refined = []
        for block in partition:
            if len(block) == 1:
                refined.append(block)
                continue

            groups: Dict[Tuple[int, ...], List[int]] = {}
            for state_id in block:
                signature = tuple(
                    block_index[delta[(state_id, symbol)]]
                    if (state_id, symbol) in delta else NO_TRANSITION
                    for symbol in alphabet
                )
                groups.setdefault(signature, []).append(state_id)

            if len(groups) > 1:
                changed = True
            refined.extend(groups.values())

        partition = refined

    return sorted(partition, key=min)


def minimise_dfa(dfa: FiniteAutomaton, placement: Optional[Placement] = None) -> FiniteAutomaton:
    """
    Minimises a deterministic finite automaton using partition refinement.

    Unreachable states are removed first. States are then split into final and
    non-final blocks, and blocks are refined by comparing, for every symbol, the
    block each member's transition leads to, until a pass splits nothing. Each
    remaining block becomes one state of the result.

    Args:
        dfa: A deterministic automaton with exactly one initial state. It is not modified.
        placement: Optional strategy giving coordinates to the new states.

    Returns:
        FiniteAutomaton: The minimal equivalent DFA.

    Raises:
        NotDeterministicError: If the input is not deterministic
        NoSingleInitialStateError: If the input does not have exactly one initial state
    """
    require_deterministic(dfa, "DFA minimisation")
    require_single_initial_state(dfa)

    pruned = remove_unreachable_states(dfa)
    alphabet = pruned.alphabet
    delta = {(t.source, t.symbol): t.target for t in pruned.transitions}

    partition = _refine_partition(pruned, alphabet, delta)

    minimised = FiniteAutomaton()
    block_of: Dict[int, int] = {}
    block_state_ids: List[int] = []

    for index, block in enumerate(partition):
        members = [pruned.get_state(state_id) for state_id in block]
        new_state = minimised.add_state(
            is_final=any(state.is_final for state in members),
            metadata=_placement_metadata(placement, index)
        )
        if any(state.is_initial for state in members):
            minimised.set_initial_state(new_state)

        block_state_ids.append(new_state)
        for state_id in block:
            block_of[state_id] = index

    # One representative per block; members agree on target blocks
    added: Set[Tuple[int, str]] = set()
    for index, block in enumerate(partition):
        representative = block[0]
        for symbol in alphabet:
            target = delta.get((representative, symbol))
            if target is None or (index, symbol) in added:
                continue
            added.add((index, symbol))
            minimised.add_transition(block_state_ids[index], block_state_ids[block_of[target]], symbol)

    logger.debug("DFA minimisation: %d states -> %d states", len(dfa.states), len(minimised.states))

    return minimised
