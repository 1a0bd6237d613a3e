import json
import logging

from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from .conf import get_placement, get_setting
from .exceptions import UnknownSymbolError
from .fsa_properties import check_all_properties, is_deterministic, summarise_automaton
from .fsa_simulation import accepts_nondeterministic, simulate_deterministic_fsa
from .fsa_snapshot import automaton_from_snapshot, automaton_to_snapshot
from .fsa_transformations import minimise_dfa, subset_construction

logger = logging.getLogger(__name__)


def _parse_request(request):
    """
    Decode the JSON body and load its ``automaton`` snapshot.

    Returns:
        (data, automaton): automaton is None when the body has no snapshot.
    """
    data = json.loads(request.body)
    if not isinstance(data, dict):
        raise ValueError('Request body must be a JSON object')

    snapshot = data.get('automaton')
    if snapshot is None:
        return data, None
    return data, automaton_from_snapshot(snapshot)


def _error_response(error, status=400):
    return JsonResponse({
        'error': str(error),
        'kind': getattr(error, 'kind', 'InvalidRequest')
    }, status=status)


def _missing_automaton():
    return JsonResponse({'error': 'Missing automaton definition', 'kind': 'InvalidRequest'}, status=400)


def _too_large(automaton):
    max_states = get_setting('MAX_STATES')
    if len(automaton.states) > max_states:
        return JsonResponse({
            'error': f'Automaton has {len(automaton.states)} states; at most {max_states} are supported',
            'kind': 'TooManyStates'
        }, status=400)
    return None


def _statistics(automaton):
    return {
        'states_count': len(automaton.states),
        'alphabet_size': len(automaton.alphabet),
        'transitions_count': len(automaton.transitions),
        'accepting_states_count': len(automaton.final_states()),
        'has_epsilon_transitions': any(t.is_epsilon for t in automaton.transitions),
        'is_deterministic': is_deterministic(automaton)
    }


@csrf_exempt
@require_POST
def check_deterministic(request):
    """
    Django view reporting whether an automaton is a DFA.

    Expects a POST request with a JSON body containing:
    - automaton: The automaton snapshot
    """
    try:
        _, automaton = _parse_request(request)
        if automaton is None:
            return _missing_automaton()

        deterministic = is_deterministic(automaton)
        return JsonResponse({
            'is_deterministic': deterministic,
            'type': 'dfa' if deterministic else 'nfa'
        })

    except ValueError as e:
        return _error_response(e)
    except Exception as e:
        logger.exception('check_deterministic failed')
        return JsonResponse({'error': f'Server error: {str(e)}'}, status=500)


@csrf_exempt
@require_POST
def check_fsa_properties(request):
    """
    Django view returning all property checks plus a summary of the automaton.
    """
    try:
        _, automaton = _parse_request(request)
        if automaton is None:
            return _missing_automaton()

        return JsonResponse({
            'properties': check_all_properties(automaton),
            'summary': summarise_automaton(automaton)
        })

    except ValueError as e:
        return _error_response(e)
    except Exception as e:
        logger.exception('check_fsa_properties failed')
        return JsonResponse({'error': f'Server error: {str(e)}'}, status=500)


@csrf_exempt
@require_POST
def check_acceptance(request):
    """
    Django view testing whether a DFA accepts an input string.

    Expects a POST request with a JSON body containing:
    - automaton: The automaton snapshot (must be deterministic, one initial state)
    - input: The input string to test

    Returns the verdict and the executed path. A symbol outside the alphabet is
    reported as an UnknownSymbol error.
    """
    try:
        data, automaton = _parse_request(request)
        if automaton is None:
            return _missing_automaton()

        input_string = data.get('input', '')
        if not isinstance(input_string, str):
            return JsonResponse({'error': 'input must be a string', 'kind': 'InvalidRequest'}, status=400)
        if len(input_string) > get_setting('MAX_INPUT_LENGTH'):
            return JsonResponse({'error': 'Input string is too long', 'kind': 'InvalidRequest'}, status=400)

        result = simulate_deterministic_fsa(automaton, input_string)
        if result.unknown_symbol is not None:
            raise UnknownSymbolError(result.unknown_symbol, result.rejection_position)

        return JsonResponse({
            'accepted': result.accepted,
            'input': input_string,
            'path': [list(step) for step in result.path],
            'rejection_reason': result.rejection_reason,
            'rejection_position': result.rejection_position
        })

    except ValueError as e:
        return _error_response(e)
    except Exception as e:
        logger.exception('check_acceptance failed')
        return JsonResponse({'error': f'Server error: {str(e)}'}, status=500)


@csrf_exempt
@require_POST
def simulate_nfa(request):
    """
    Django view testing acceptance under nondeterministic semantics.
    Any automaton with at least one initial state is accepted as input.
    """
    try:
        data, automaton = _parse_request(request)
        if automaton is None:
            return _missing_automaton()

        input_string = data.get('input', '')
        if not isinstance(input_string, str):
            return JsonResponse({'error': 'input must be a string', 'kind': 'InvalidRequest'}, status=400)
        if len(input_string) > get_setting('MAX_INPUT_LENGTH'):
            return JsonResponse({'error': 'Input string is too long', 'kind': 'InvalidRequest'}, status=400)

        return JsonResponse({
            'accepted': accepts_nondeterministic(automaton, input_string),
            'input': input_string,
            'type': 'dfa' if is_deterministic(automaton) else 'nfa'
        })

    except ValueError as e:
        return _error_response(e)
    except Exception as e:
        logger.exception('simulate_nfa failed')
        return JsonResponse({'error': f'Server error: {str(e)}'}, status=500)


@csrf_exempt
@require_POST
def convert_nfa_to_dfa(request):
    """
    Django view to handle NFA to DFA conversion requests.

    Expects a POST request with a JSON body containing:
    - automaton: The automaton snapshot (can be deterministic or non-deterministic)

    Returns a JSON response with the converted DFA, the source states behind each
    DFA state and before/after statistics.
    """
    try:
        _, automaton = _parse_request(request)
        if automaton is None:
            return _missing_automaton()

        too_large = _too_large(automaton)
        if too_large is not None:
            return too_large

        original_stats = _statistics(automaton)

        if original_stats['is_deterministic']:
            converted, subsets = automaton, None
            message = 'Input was already a DFA, returned unchanged'
        else:
            construction = subset_construction(automaton, get_placement())
            converted = construction.dfa
            subsets = {str(state_id): list(key) for state_id, key in construction.subsets.items()}
            message = 'NFA successfully converted to DFA'

        converted_stats = _statistics(converted)

        return JsonResponse({
            'success': True,
            'converted_dfa': automaton_to_snapshot(converted),
            'subsets': subsets,
            'statistics': {
                'original': original_stats,
                'converted': converted_stats,
                'conversion': {
                    'states_added': converted_stats['states_count'] - original_stats['states_count'],
                    'epsilon_transitions_removed': original_stats['has_epsilon_transitions'],
                    'was_already_deterministic': original_stats['is_deterministic']
                }
            },
            'message': message
        })

    except ValueError as e:
        return _error_response(e)
    except Exception as e:
        logger.exception('convert_nfa_to_dfa failed')
        return JsonResponse({'error': f'Server error: {str(e)}'}, status=500)


@csrf_exempt
@require_POST
def min_dfa(request):
    """
    Django view to handle DFA minimisation requests.

    Expects a POST request with a JSON body containing:
    - automaton: The automaton snapshot (must be deterministic)

    Returns a JSON response with the minimised DFA.
    """
    try:
        _, automaton = _parse_request(request)
        if automaton is None:
            return _missing_automaton()

        too_large = _too_large(automaton)
        if too_large is not None:
            return too_large

        original_stats = _statistics(automaton)
        minimised = minimise_dfa(automaton, get_placement())
        minimised_stats = _statistics(minimised)

        states_reduced = original_stats['states_count'] - minimised_stats['states_count']
        is_already_minimal = states_reduced == 0

        return JsonResponse({
            'success': True,
            'minimised_dfa': automaton_to_snapshot(minimised),
            'statistics': {
                'original': original_stats,
                'minimised': minimised_stats,
                'reduction': {
                    'states_reduced': states_reduced,
                    'transitions_reduced': original_stats['transitions_count'] - minimised_stats['transitions_count'],
                    'is_already_minimal': is_already_minimal
                }
            },
            'message': 'DFA was already minimal' if is_already_minimal else 'DFA minimised successfully'
        })

    except ValueError as e:
        return _error_response(e)
    except Exception as e:
        logger.exception('min_dfa failed')
        return JsonResponse({'error': f'Server error: {str(e)}'}, status=500)


@csrf_exempt
@require_POST
def validate_automaton_snapshot(request):
    """
    Django view used before import: loads the snapshot strictly and returns it
    re-serialised, or the reason it was rejected.
    """
    try:
        _, automaton = _parse_request(request)
        if automaton is None:
            return _missing_automaton()

        return JsonResponse({
            'valid': True,
            'automaton': automaton_to_snapshot(automaton),
            'summary': summarise_automaton(automaton)
        })

    except ValueError as e:
        return _error_response(e)
    except Exception as e:
        logger.exception('validate_automaton_snapshot failed')
        return JsonResponse({'error': f'Server error: {str(e)}'}, status=500)
