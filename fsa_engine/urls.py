from django.urls import path
from . import views

urlpatterns = [
    # Property checking endpoints
    path('api/check-deterministic/', views.check_deterministic, name='check_deterministic'),
    path('api/check-fsa-properties/', views.check_fsa_properties, name='check_fsa_properties'),

    # Acceptance testing
    path('api/test-acceptance/', views.check_acceptance, name='test_acceptance'),
    path('api/simulate-nfa/', views.simulate_nfa, name='simulate_nfa'),

    # Transformation endpoints
    path('api/nfa-to-dfa/', views.convert_nfa_to_dfa, name='nfa_to_dfa'),
    path('api/minimise-dfa/', views.min_dfa, name='minimise_dfa'),

    # Import/export validation
    path('api/validate-snapshot/', views.validate_automaton_snapshot, name='validate_snapshot'),
]
