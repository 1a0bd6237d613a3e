from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from .fsa_transformations import staggered_placement

DEFAULTS = {
    # Largest snapshot (in states) the HTTP layer will transform
    'MAX_STATES': 64,
    'MAX_INPUT_LENGTH': 10000,
    # 'staggered' or 'none'
    'PLACEMENT': 'staggered',
}

PLACEMENTS = {
    'staggered': staggered_placement,
    'none': None,
}


def get_setting(name: str):
    """Read ``name`` from the ``FSA_ENGINE`` settings dict, falling back to DEFAULTS."""
    return getattr(settings, 'FSA_ENGINE', {}).get(name, DEFAULTS[name])


def get_placement():
    name = get_setting('PLACEMENT')
    if name not in PLACEMENTS:
        raise ImproperlyConfigured(f"Unknown FSA_ENGINE['PLACEMENT'] value: {name!r}")
    return PLACEMENTS[name]
