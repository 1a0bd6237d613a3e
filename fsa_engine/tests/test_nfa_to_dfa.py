from django.test import TestCase
from fsa_engine.exceptions import NoInitialStateError, NoSingleInitialStateError
from fsa_engine.fsa_model import EPSILON, Transition
from fsa_engine.fsa_properties import is_deterministic
from fsa_engine.fsa_simulation import accepts_nondeterministic
from fsa_engine.fsa_snapshot import automaton_from_snapshot, automaton_to_snapshot
from fsa_engine.fsa_transformations import (
    epsilon_closure,
    nfa_to_dfa,
    staggered_placement,
    subset_construction,
    subset_key
)

from .helpers import build_automaton, dfa_accepts


class TestEpsilonClosure(TestCase):

    def test_closure_includes_start_states(self):
        automaton = build_automaton(3, [(0, 'a', 1)])
        self.assertEqual(epsilon_closure(automaton, [0, 2]), frozenset({0, 2}))

    def test_closure_follows_chains(self):
        automaton = build_automaton(4, [(0, EPSILON, 1), (1, EPSILON, 2), (2, 'a', 3)])
        self.assertEqual(epsilon_closure(automaton, [0]), frozenset({0, 1, 2}))
        self.assertEqual(epsilon_closure(automaton, [1]), frozenset({1, 2}))

    def test_closure_terminates_on_cycles(self):
        automaton = build_automaton(3, [(0, EPSILON, 1), (1, EPSILON, 2), (2, EPSILON, 0)])
        self.assertEqual(epsilon_closure(automaton, [1]), frozenset({0, 1, 2}))

    def test_subset_key(self):
        self.assertEqual(subset_key([3, 1, 3, 2]), (1, 2, 3))
        self.assertEqual(subset_key({0}), (0,))


class TestNfaToDfa(TestCase):
    """Test cases for NFA to DFA conversion"""

    def test_subset_construction_example(self):
        # q0 (initial) --a--> q0, q0 --a--> q1, q1 --b--> q2 (final)
        nfa = build_automaton(3, [(0, 'a', 0), (0, 'a', 1), (1, 'b', 2)], final=(2,))
        self.assertFalse(is_deterministic(nfa))

        construction = subset_construction(nfa)
        dfa = construction.dfa

        self.assertTrue(is_deterministic(dfa))
        self.assertEqual(construction.subsets, {0: (0,), 1: (0, 1), 2: (2,)})
        self.assertEqual([state.id for state in dfa.initial_states()], [0])
        self.assertEqual([state.id for state in dfa.final_states()], [2])
        self.assertEqual(dfa.transitions, [
            Transition(0, 1, 'a'),
            Transition(1, 1, 'a'),
            Transition(1, 2, 'b'),
        ])

    def test_deterministic_input_is_returned_unchanged(self):
        dfa = build_automaton(2, [(0, 'a', 1), (1, 'a', 0)], final=(1,))
        self.assertIs(nfa_to_dfa(dfa), dfa)

    def test_input_is_not_modified(self):
        nfa = build_automaton(3, [(0, 'a', 0), (0, 'a', 1), (1, EPSILON, 2)], final=(2,))
        before = automaton_to_snapshot(nfa)

        nfa_to_dfa(nfa)

        self.assertEqual(automaton_to_snapshot(nfa), before)

    def test_no_initial_state(self):
        nfa = build_automaton(2, [(0, 'a', 0), (0, 'a', 1)], initial=None)
        with self.assertRaises(NoInitialStateError):
            nfa_to_dfa(nfa)

    def test_several_initial_states(self):
        nfa = automaton_from_snapshot({
            'states': [
                {'id': 0, 'x': 0, 'y': 0, 'isInitial': True, 'isFinal': False},
                {'id': 1, 'x': 0, 'y': 0, 'isInitial': True, 'isFinal': True},
            ],
            'transitions': [
                {'from': 0, 'to': 0, 'symbol': 'a'},
                {'from': 0, 'to': 1, 'symbol': 'a'},
            ],
        })
        with self.assertRaises(NoSingleInitialStateError):
            nfa_to_dfa(nfa)

    def test_epsilon_only_automaton(self):
        nfa = build_automaton(2, [(0, EPSILON, 1)], final=(1,))
        dfa = nfa_to_dfa(nfa)

        self.assertEqual(len(dfa.states), 1)
        self.assertTrue(dfa.states[0].is_initial)
        self.assertTrue(dfa.states[0].is_final)
        self.assertEqual(dfa.transitions, [])
        self.assertTrue(dfa_accepts(dfa, ''))

    def test_initial_state_final_through_epsilon_closure(self):
        nfa = build_automaton(3, [(0, EPSILON, 2), (0, 'a', 1), (0, 'a', 0)], final=(2,))
        construction = subset_construction(nfa)

        self.assertEqual(construction.subsets[0], (0, 2))
        self.assertTrue(construction.dfa.get_state(0).is_final)

    def test_nfa_with_epsilon_transitions_language(self):
        # a*b with epsilon moves
        nfa = build_automaton(4, [(0, EPSILON, 1), (0, 'a', 0), (1, EPSILON, 2), (2, 'b', 3)], final=(3,))
        dfa = nfa_to_dfa(nfa)

        self.assertTrue(is_deterministic(dfa))
        for test_string in ['', 'a', 'b', 'ab', 'aab', 'aaab', 'bb', 'aba', 'ba']:
            self.assertEqual(dfa_accepts(dfa, test_string), accepts_nondeterministic(nfa, test_string),
                             f"Disagreement on string '{test_string}'")

    def test_language_equivalence(self):
        # Strings over {a, b} whose third-to-last symbol is 'a'
        nfa = build_automaton(4, [
            (0, 'a', 0), (0, 'b', 0), (0, 'a', 1),
            (1, 'a', 2), (1, 'b', 2),
            (2, 'a', 3), (2, 'b', 3),
        ], final=(3,))
        dfa = nfa_to_dfa(nfa)

        self.assertTrue(is_deterministic(dfa))
        self.assertEqual(len(dfa.states), 8)

        test_strings = ['', 'a', 'ab', 'aaa', 'abb', 'baa', 'babb', 'abab', 'bbbaab', 'aabba', 'bbbbbb']
        for test_string in test_strings:
            self.assertEqual(dfa_accepts(dfa, test_string), accepts_nondeterministic(nfa, test_string),
                             f"Disagreement on string '{test_string}'")

    def test_duplicate_transitions_are_collapsed(self):
        nfa = build_automaton(2, [(0, 'a', 1), (0, 'a', 1)], final=(1,))
        dfa = nfa_to_dfa(nfa)

        self.assertTrue(is_deterministic(dfa))
        self.assertEqual(dfa.transitions, [Transition(0, 1, 'a')])

    def test_result_is_always_deterministic(self):
        automata = [
            build_automaton(1, [(0, 'a', 0), (0, 'a', 0)]),
            build_automaton(3, [(0, EPSILON, 1), (1, EPSILON, 0), (1, 'x', 2), (0, 'x', 0)], final=(2,)),
            build_automaton(3, [(0, 'a', 1), (0, 'a', 2), (1, 'b', 0), (2, 'b', 2), (2, EPSILON, 0)], final=(1,)),
        ]
        for automaton in automata:
            self.assertTrue(is_deterministic(nfa_to_dfa(automaton)))

    def test_placement(self):
        nfa = build_automaton(3, [(0, 'a', 0), (0, 'a', 1), (1, 'b', 2)], final=(2,))

        placed = subset_construction(nfa, staggered_placement).dfa
        unplaced = subset_construction(nfa).dfa

        self.assertEqual(placed.get_state(0).metadata, {'x': 50, 'y': 50})
        self.assertEqual(placed.get_state(1).metadata, {'x': 150, 'y': 200})
        self.assertEqual(unplaced.get_state(1).metadata, {})
